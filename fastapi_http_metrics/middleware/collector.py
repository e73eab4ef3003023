"""
Request metrics collection middleware.

MetricsCollector wraps the downstream application and, for every request,
records:

- ``<prefix>_requests_total``: counter by code, method and path
- ``<prefix>_request_duration_seconds``: histogram by method and path
- ``<prefix>_exceptions_total``: counter by exception type name

Configured static labels are added to all three. Paths are normalised with
``strip_ids_from_path`` to keep label cardinality bounded. The exception type
name is used as-is, so an application that raises many distinct exception
classes produces as many series.

Author: FastAPI HTTP Metrics
Version: 0.1.0
"""

import logging
import time
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response
from starlette.types import ASGIApp

from ..config import CollectorConfig, DEFAULT_METRICS_PREFIX
from ..metrics.registry import MetricRegistry, default_registry
from ..metrics.types import BaseMetric
from .paths import label_names, merge_labels, strip_ids_from_path


REQUEST_LABELS = ('code', 'method', 'path')
DURATION_LABELS = ('method', 'path')
EXCEPTION_LABELS = ('exception',)


@dataclass(frozen=True)
class RecordingOutcome:
    """Result of recording metrics for a request that succeeded."""
    recorded: bool
    error: Optional[Exception] = None


class MetricsCollector(BaseHTTPMiddleware):
    """Middleware that records request counts, durations and exceptions."""

    def __init__(
        self,
        app: ASGIApp,
        registry: Optional[MetricRegistry] = None,
        metrics_prefix: str = DEFAULT_METRICS_PREFIX,
        labels: Optional[Dict[str, str]] = None
    ):
        super().__init__(app)

        self.config = CollectorConfig(metrics_prefix=metrics_prefix, labels=labels or {})
        self.registry = registry or default_registry()
        self.metrics_prefix = self.config.metrics_prefix
        self.labels = dict(self.config.labels)

        self.logger = logging.getLogger("http_metrics.collector")

        self._warn_on_label_collisions()
        self._registered: List[str] = []
        try:
            self._init_request_metrics()
            self._init_exception_metrics()
        except Exception:
            self._unregister_metrics()
            raise

    def _register(self, metric: BaseMetric) -> BaseMetric:
        self._registered.append(metric.name)
        return metric

    def _unregister_metrics(self) -> None:
        """Remove the series this collector registered before failing."""
        for name in reversed(self._registered):
            self.registry.unregister(name)
            self.logger.debug(f"Rolled back registration of metric '{name}'")
        self._registered.clear()

    def _init_request_metrics(self) -> None:
        self.requests = self._register(self.registry.counter(
            f"{self.metrics_prefix}_requests_total",
            "The total number of HTTP requests handled by the application.",
            label_names(REQUEST_LABELS, self.labels)
        ))
        self.durations = self._register(self.registry.histogram(
            f"{self.metrics_prefix}_request_duration_seconds",
            "The HTTP response duration of the application.",
            label_names(DURATION_LABELS, self.labels)
        ))

    def _init_exception_metrics(self) -> None:
        self.exceptions = self._register(self.registry.counter(
            f"{self.metrics_prefix}_exceptions_total",
            "The total number of exceptions raised by the application.",
            label_names(EXCEPTION_LABELS, self.labels)
        ))

    def _warn_on_label_collisions(self) -> None:
        builtin = set(REQUEST_LABELS + EXCEPTION_LABELS)
        overridden = sorted(builtin.intersection(self.labels))
        if overridden:
            self.logger.warning(
                f"Configured labels {overridden} override built-in labels of the same name"
            )

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        """Time the downstream call and record its outcome."""
        start_time = time.perf_counter()

        try:
            response = await call_next(request)
        except Exception as e:
            duration = time.perf_counter() - start_time
            self.exceptions.inc(
                labels=merge_labels({'exception': type(e).__name__}, self.labels)
            )
            self.logger.debug(
                f"{request.method} {request.url.path} raised {type(e).__name__} after {duration:.6f}s"
            )
            raise

        duration = time.perf_counter() - start_time

        # Best-effort: the outcome is deliberately not acted upon.
        self._record(request, response, duration)

        return response

    def _record(self, request: Request, response: Response, duration: float) -> RecordingOutcome:
        """Record request count and duration without ever raising."""
        try:
            method = request.method.lower()
            path = strip_ids_from_path(request.url.path)

            counter_labels = {
                'code': str(response.status_code),
                'method': method,
                'path': path,
            }
            duration_labels = {
                'method': method,
                'path': path,
            }

            self.requests.inc(labels=merge_labels(counter_labels, self.labels))
            self.durations.observe(duration, labels=merge_labels(duration_labels, self.labels))
        except Exception as e:
            return RecordingOutcome(recorded=False, error=e)

        return RecordingOutcome(recorded=True)
