"""
FastAPI HTTP Metrics

Request instrumentation and a content-negotiated metrics endpoint for
Starlette and FastAPI applications.

Example usage:
    from fastapi import FastAPI
    from fastapi_http_metrics import MetricRegistry, add_metrics_middleware

    app = FastAPI()
    registry = MetricRegistry()
    add_metrics_middleware(app, registry=registry, labels={"env": "production"})
"""

from .version import __version__
from .config import CollectorConfig, ExporterConfig, MetricsConfig
from .exceptions import (
    MetricsError,
    MetricRegistrationError,
    MetricCollisionError,
    MetricValidationError,
    MetricsExportError
)
from .metrics import (
    Counter,
    Histogram,
    MetricType,
    MetricRegistry,
    default_registry
)
from .formats import TextFormat, JSONFormat, FORMATS, FALLBACK
from .middleware import (
    MetricsCollector,
    MetricsExporter,
    RecordingOutcome,
    add_metrics_middleware,
    negotiate,
    parse_accept,
    strip_ids_from_path
)

__all__ = [
    '__version__',

    # Configuration
    'CollectorConfig',
    'ExporterConfig',
    'MetricsConfig',

    # Exceptions
    'MetricsError',
    'MetricRegistrationError',
    'MetricCollisionError',
    'MetricValidationError',
    'MetricsExportError',

    # Registry
    'Counter',
    'Histogram',
    'MetricType',
    'MetricRegistry',
    'default_registry',

    # Formats
    'TextFormat',
    'JSONFormat',
    'FORMATS',
    'FALLBACK',

    # Middleware
    'MetricsCollector',
    'MetricsExporter',
    'RecordingOutcome',
    'add_metrics_middleware',
    'negotiate',
    'parse_accept',
    'strip_ids_from_path',
]
