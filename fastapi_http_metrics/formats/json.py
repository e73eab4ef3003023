"""
JSON telemetry format (version 0.0.2).

Each registered metric becomes one object:

    {"baseLabels": {"__name__": "http_server_requests_total"},
     "docstring": "...",
     "metric": {"type": "counter",
                "value": [{"labels": {"code": "200"}, "value": 3.0}]}}

Histogram series carry {"count", "sum", "buckets"} as their value, with
bucket bounds as string keys.

Author: FastAPI HTTP Metrics
Version: 0.1.0
"""

import json
import math
from typing import Any, Dict, List

from ..exceptions import MetricsExportError
from ..metrics.registry import MetricRegistry
from ..metrics.types import BaseMetric, Histogram
from ..version import JSON_FORMAT_VERSION


def _format_bound(bound: float) -> str:
    return '+Inf' if bound == math.inf else repr(float(bound))


class JSONFormat:
    """JSON representation of a registry snapshot."""

    MEDIA_TYPE = "application/json"
    VERSION = JSON_FORMAT_VERSION
    CONTENT_TYPE = f'{MEDIA_TYPE}; schema="prometheus/telemetry"; version={VERSION}'

    @classmethod
    def marshal(cls, registry: MetricRegistry) -> bytes:
        try:
            document = [
                cls._metric_to_dict(metric)
                for metric in registry.get_all_metrics().values()
            ]
            return json.dumps(document).encode('utf-8')
        except Exception as e:
            raise MetricsExportError(
                message=f"Failed to export metrics: {str(e)}",
                export_format="json",
                original_error=e
            ) from e

    @classmethod
    def _metric_to_dict(cls, metric: BaseMetric) -> Dict[str, Any]:
        return {
            'baseLabels': {'__name__': metric.name},
            'docstring': metric.description,
            'metric': {
                'type': metric.get_type().value,
                'value': cls._values(metric)
            }
        }

    @classmethod
    def _values(cls, metric: BaseMetric) -> List[Dict[str, Any]]:
        values = []
        for labels, value in metric.series():
            if isinstance(metric, Histogram):
                value = {
                    'count': value['count'],
                    'sum': value['sum'],
                    'buckets': {
                        _format_bound(bound): count
                        for bound, count in value['buckets'].items()
                    }
                }
            values.append({'labels': labels, 'value': value})
        return values
