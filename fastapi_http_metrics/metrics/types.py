"""
Metric types and value containers.

This module defines the metric series held by the registry: counters and
histograms keyed by a fixed, ordered set of label names.

Author: FastAPI HTTP Metrics
Version: 0.1.0
"""

import math
import threading
from abc import ABC, abstractmethod
from enum import Enum
from typing import Dict, Iterator, List, Optional, Tuple, Any

from ..config import METRIC_NAME_PATTERN, LABEL_NAME_PATTERN
from ..exceptions import MetricValidationError


LabelValues = Tuple[str, ...]


class MetricType(Enum):
    """Types of metrics supported by the registry."""
    COUNTER = "counter"
    HISTOGRAM = "histogram"


class BaseMetric(ABC):
    """Base class for all metric types."""

    def __init__(
        self,
        name: str,
        description: str = "",
        labels: Optional[List[str]] = None,
        unit: str = ""
    ):
        self._validate_name(name)
        labels = list(labels or [])
        for label in labels:
            self._validate_label_name(label)
        if len(set(labels)) != len(labels):
            raise MetricValidationError(
                message=f"Duplicate label names for metric '{name}': {labels}",
                validation_rule="unique_labels",
                metric_name=name
            )

        self.name = name
        self.description = description
        self.labels = labels
        self.unit = unit
        self._lock = threading.RLock()

    def _validate_name(self, name: str) -> None:
        """Validate metric name according to Prometheus conventions."""
        if not name:
            raise MetricValidationError(
                message="Metric name cannot be empty",
                validation_rule="non_empty_name"
            )

        if not METRIC_NAME_PATTERN.match(name):
            raise MetricValidationError(
                message=f"Invalid metric name '{name}'. Must contain only alphanumeric characters, "
                        f"underscores and colons, and cannot start with a digit",
                validation_rule="valid_characters",
                metric_name=name
            )

    def _validate_label_name(self, label: str) -> None:
        """Validate label name according to Prometheus conventions."""
        if label.startswith('__'):
            raise MetricValidationError(
                message=f"Label name '{label}' cannot start with '__' (reserved for internal use)",
                validation_rule="no_reserved_prefix"
            )

        if not LABEL_NAME_PATTERN.match(label):
            raise MetricValidationError(
                message=f"Invalid label name '{label}'. Must contain only alphanumeric characters and underscores",
                validation_rule="valid_label_characters"
            )

    def _validate_label_values(self, label_values: Dict[str, str]) -> None:
        """Check that exactly the declared labels are given, all as strings."""
        missing_labels = set(self.labels) - set(label_values)
        if missing_labels:
            raise MetricValidationError(
                message=f"Missing required labels: {sorted(missing_labels)}",
                validation_rule="required_labels",
                metric_name=self.name
            )

        unexpected_labels = set(label_values) - set(self.labels)
        if unexpected_labels:
            raise MetricValidationError(
                message=f"Unexpected labels: {sorted(unexpected_labels)}",
                validation_rule="unexpected_labels",
                metric_name=self.name
            )

        for key, value in label_values.items():
            if not isinstance(value, str):
                raise MetricValidationError(
                    message=f"Label value for '{key}' must be a string, got {type(value)}",
                    validation_rule="string_label_values",
                    metric_name=self.name
                )

    def _labels_to_key(self, labels: Optional[Dict[str, str]]) -> LabelValues:
        labels = labels or {}
        self._validate_label_values(labels)
        return tuple(labels[name] for name in self.labels)

    def _key_to_labels(self, key: LabelValues) -> Dict[str, str]:
        return dict(zip(self.labels, key))

    @abstractmethod
    def get_type(self) -> MetricType:
        """Get the metric type."""
        pass

    @abstractmethod
    def get_value(self, labels: Optional[Dict[str, str]] = None) -> Any:
        """Get the current value of one series."""
        pass

    @abstractmethod
    def series(self) -> Iterator[Tuple[Dict[str, str], Any]]:
        """Yield (labels, value) for every recorded series."""
        pass

    @abstractmethod
    def reset(self) -> None:
        """Drop all recorded series."""
        pass


class Counter(BaseMetric):
    """Counter metric that only increases."""

    def __init__(self, name: str, description: str = "", labels: Optional[List[str]] = None, unit: str = ""):
        super().__init__(name, description, labels, unit)
        self._values: Dict[LabelValues, float] = {}

    def get_type(self) -> MetricType:
        return MetricType.COUNTER

    def inc(self, amount: float = 1.0, labels: Optional[Dict[str, str]] = None) -> None:
        """Increment the counter."""
        if amount < 0:
            raise MetricValidationError(
                message="Counter increment must be non-negative",
                validation_rule="non_negative_increment",
                metric_name=self.name
            )

        label_key = self._labels_to_key(labels)

        with self._lock:
            self._values[label_key] = self._values.get(label_key, 0.0) + amount

    def get_value(self, labels: Optional[Dict[str, str]] = None) -> float:
        """Get the current counter value."""
        label_key = self._labels_to_key(labels)

        with self._lock:
            return self._values.get(label_key, 0.0)

    def series(self) -> Iterator[Tuple[Dict[str, str], float]]:
        with self._lock:
            items = list(self._values.items())
        for label_key, value in items:
            yield self._key_to_labels(label_key), value

    def reset(self) -> None:
        with self._lock:
            self._values.clear()


class Histogram(BaseMetric):
    """Histogram metric for measuring distributions."""

    DEFAULT_BUCKETS = [0.005, 0.01, 0.025, 0.05, 0.075, 0.1, 0.25, 0.5, 0.75, 1.0, 2.5, 5.0, 7.5, 10.0, math.inf]

    def __init__(
        self,
        name: str,
        description: str = "",
        labels: Optional[List[str]] = None,
        unit: str = "",
        buckets: Optional[List[float]] = None
    ):
        if labels and 'le' in labels:
            raise MetricValidationError(
                message="Histogram label names cannot include 'le'",
                validation_rule="reserved_histogram_label",
                metric_name=name
            )
        super().__init__(name, description, labels, unit)
        self.buckets = sorted(buckets or self.DEFAULT_BUCKETS)

        # Ensure +Inf bucket exists
        if math.inf not in self.buckets:
            self.buckets.append(math.inf)

        self._bucket_counts: Dict[LabelValues, List[int]] = {}
        self._sums: Dict[LabelValues, float] = {}
        self._counts: Dict[LabelValues, int] = {}

    def get_type(self) -> MetricType:
        return MetricType.HISTOGRAM

    def observe(self, value: float, labels: Optional[Dict[str, str]] = None) -> None:
        """Observe a value in the histogram."""
        if not isinstance(value, (int, float)):
            raise MetricValidationError(
                message="Histogram observation must be numeric",
                validation_rule="numeric_observation",
                metric_name=self.name
            )

        label_key = self._labels_to_key(labels)

        with self._lock:
            counts = self._bucket_counts.setdefault(label_key, [0] * len(self.buckets))
            for index, bound in enumerate(self.buckets):
                if value <= bound:
                    counts[index] += 1
            self._sums[label_key] = self._sums.get(label_key, 0.0) + value
            self._counts[label_key] = self._counts.get(label_key, 0) + 1

    def get_value(self, labels: Optional[Dict[str, str]] = None) -> Dict[str, Any]:
        """Get count, sum and cumulative bucket counts for one series."""
        label_key = self._labels_to_key(labels)

        with self._lock:
            return self._snapshot(label_key)

    def series(self) -> Iterator[Tuple[Dict[str, str], Dict[str, Any]]]:
        with self._lock:
            items = [(key, self._snapshot(key)) for key in self._counts]
        for label_key, stats in items:
            yield self._key_to_labels(label_key), stats

    def reset(self) -> None:
        with self._lock:
            self._bucket_counts.clear()
            self._sums.clear()
            self._counts.clear()

    def _snapshot(self, label_key: LabelValues) -> Dict[str, Any]:
        counts = self._bucket_counts.get(label_key, [0] * len(self.buckets))
        return {
            'count': self._counts.get(label_key, 0),
            'sum': self._sums.get(label_key, 0.0),
            'buckets': dict(zip(self.buckets, counts))
        }
