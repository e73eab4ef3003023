"""
Wire formats served by the metrics exporter.

FORMATS lists the supported formats in priority order. FALLBACK is used
when a client sends no Accept header at all.
"""

from .text import TextFormat, PrometheusFormatter
from .json import JSONFormat

FORMATS = (TextFormat, JSONFormat)
FALLBACK = JSONFormat

__all__ = [
    'TextFormat',
    'JSONFormat',
    'PrometheusFormatter',
    'FORMATS',
    'FALLBACK',
]
