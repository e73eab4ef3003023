"""
Metric series and the registry that owns them.
"""

from .types import (
    BaseMetric,
    Counter,
    Histogram,
    MetricType
)
from .registry import (
    MetricRegistry,
    default_registry
)

__all__ = [
    'BaseMetric',
    'Counter',
    'Histogram',
    'MetricType',
    'MetricRegistry',
    'default_registry',
]
