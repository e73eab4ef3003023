"""
Metrics registry with collision detection.

This module provides the registry that owns every metric series. Components
receive a registry explicitly; `default_registry()` is only a convenience
for applications that never build their own.

Author: FastAPI HTTP Metrics
Version: 0.1.0
"""

import logging
import threading
from functools import lru_cache
from typing import Dict, List, Optional

from .types import BaseMetric, Counter, Histogram
from ..exceptions import MetricCollisionError


class MetricRegistry:
    """Registry for managing metrics with collision detection."""

    def __init__(self):
        self._metrics: Dict[str, BaseMetric] = {}
        self._lock = threading.RLock()
        self.logger = logging.getLogger("http_metrics.registry")

    def register(self, metric: BaseMetric) -> BaseMetric:
        """Register a metric; a name can only be registered once."""
        with self._lock:
            existing = self._metrics.get(metric.name)
            if existing is not None:
                raise MetricCollisionError(
                    message=self._collision_message(existing, metric),
                    existing_labels=existing.labels,
                    conflicting_labels=metric.labels,
                    metric_name=metric.name
                )

            self._metrics[metric.name] = metric

        self.logger.debug(
            f"Registered {metric.get_type().value} '{metric.name}' with labels {metric.labels}"
        )
        return metric

    def counter(
        self,
        name: str,
        description: str = "",
        labels: Optional[List[str]] = None
    ) -> Counter:
        """Create and register a counter."""
        return self.register(Counter(name, description, labels))

    def histogram(
        self,
        name: str,
        description: str = "",
        labels: Optional[List[str]] = None,
        buckets: Optional[List[float]] = None
    ) -> Histogram:
        """Create and register a histogram."""
        return self.register(Histogram(name, description, labels, buckets=buckets))

    def unregister(self, name: str) -> bool:
        """Unregister a metric from the registry."""
        with self._lock:
            return self._metrics.pop(name, None) is not None

    def get(self, name: str) -> Optional[BaseMetric]:
        with self._lock:
            return self._metrics.get(name)

    def exists(self, name: str) -> bool:
        with self._lock:
            return name in self._metrics

    def list_metrics(self) -> List[str]:
        with self._lock:
            return list(self._metrics)

    def get_all_metrics(self) -> Dict[str, BaseMetric]:
        """Snapshot of all registered metrics in registration order."""
        with self._lock:
            return dict(self._metrics)

    def clear(self) -> None:
        with self._lock:
            self._metrics.clear()

    @staticmethod
    def _collision_message(existing: BaseMetric, metric: BaseMetric) -> str:
        if existing.get_type() != metric.get_type():
            return (
                f"Metric '{metric.name}' type mismatch. "
                f"Existing: {existing.get_type().value}, New: {metric.get_type().value}"
            )
        if set(existing.labels) != set(metric.labels):
            return (
                f"Metric '{metric.name}' label mismatch. "
                f"Existing: {existing.labels}, New: {metric.labels}"
            )
        return f"Metric '{metric.name}' already registered"


@lru_cache(maxsize=None)
def default_registry() -> MetricRegistry:
    """Process-wide registry used when no registry is passed explicitly."""
    return MetricRegistry()
