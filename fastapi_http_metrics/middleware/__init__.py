"""
Starlette/FastAPI middleware for request metrics.
"""

from typing import Dict, Optional

from starlette.applications import Starlette

from ..config import DEFAULT_METRICS_PATH, DEFAULT_METRICS_PREFIX
from ..metrics.registry import MetricRegistry, default_registry
from .collector import MetricsCollector, RecordingOutcome
from .exporter import MetricsExporter, negotiate, parse_accept
from .paths import strip_ids_from_path


def add_metrics_middleware(
    app: Starlette,
    registry: Optional[MetricRegistry] = None,
    metrics_prefix: str = DEFAULT_METRICS_PREFIX,
    labels: Optional[Dict[str, str]] = None,
    path: str = DEFAULT_METRICS_PATH
) -> MetricRegistry:
    """
    Install the exporter and the collector on an application.

    Both share one registry. The collector is the outermost layer, so
    requests to the metrics path are counted as well.

    Example:
        app = FastAPI()
        registry = add_metrics_middleware(app, labels={"env": "production"})
    """
    registry = registry or default_registry()

    app.add_middleware(MetricsExporter, registry=registry, path=path)
    app.add_middleware(
        MetricsCollector,
        registry=registry,
        metrics_prefix=metrics_prefix,
        labels=labels
    )

    return registry


__all__ = [
    'MetricsCollector',
    'MetricsExporter',
    'RecordingOutcome',
    'add_metrics_middleware',
    'negotiate',
    'parse_accept',
    'strip_ids_from_path',
]
