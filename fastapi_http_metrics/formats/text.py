"""
Prometheus text exposition format (version 0.0.4).

Author: FastAPI HTTP Metrics
Version: 0.1.0
"""

import math
from io import StringIO
from typing import Dict, TextIO, Union

from ..exceptions import MetricsExportError
from ..metrics.registry import MetricRegistry
from ..metrics.types import BaseMetric, Counter, Histogram
from ..version import TEXT_FORMAT_VERSION


class PrometheusFormatter:
    """Formatter for Prometheus exposition format."""

    @staticmethod
    def format_label_value(value: str) -> str:
        """Format label value for Prometheus (escape special characters)."""
        escaped = value.replace('\\', '\\\\').replace('"', '\\"').replace('\n', '\\n')
        return f'"{escaped}"'

    @staticmethod
    def format_labels(labels: Dict[str, str]) -> str:
        """Format labels for Prometheus, keeping declaration order."""
        if not labels:
            return ""

        formatted_labels = [
            f'{key}={PrometheusFormatter.format_label_value(value)}'
            for key, value in labels.items()
        ]
        return "{" + ",".join(formatted_labels) + "}"

    @staticmethod
    def format_value(value: Union[int, float]) -> str:
        """Format numeric value for Prometheus."""
        if isinstance(value, float):
            if value == math.inf:
                return '+Inf'
            elif value == -math.inf:
                return '-Inf'
            elif math.isnan(value):
                return 'NaN'
        return repr(value)

    @staticmethod
    def format_docstring(docstring: str) -> str:
        return docstring.replace('\\', '\\\\').replace('\n', '\\n')


class TextFormat:
    """Plain-text exposition format understood by Prometheus scrapers."""

    MEDIA_TYPE = "text/plain"
    VERSION = TEXT_FORMAT_VERSION
    CONTENT_TYPE = f"{MEDIA_TYPE}; version={VERSION}"

    formatter = PrometheusFormatter

    @classmethod
    def marshal(cls, registry: MetricRegistry) -> bytes:
        """Serialize every registered metric."""
        output = StringIO()

        for metric in registry.get_all_metrics().values():
            try:
                cls._export_metric(output, metric)
            except Exception as e:
                raise MetricsExportError(
                    message=f"Failed to export metric {metric.name}: {str(e)}",
                    metric_name=metric.name,
                    export_format="text",
                    original_error=e
                ) from e

        return output.getvalue().encode('utf-8')

    @classmethod
    def _export_metric(cls, output: TextIO, metric: BaseMetric) -> None:
        if metric.description:
            output.write(f"# HELP {metric.name} {cls.formatter.format_docstring(metric.description)}\n")
        output.write(f"# TYPE {metric.name} {metric.get_type().value}\n")

        if isinstance(metric, Counter):
            cls._export_counter(output, metric)
        elif isinstance(metric, Histogram):
            cls._export_histogram(output, metric)

    @classmethod
    def _export_counter(cls, output: TextIO, counter: Counter) -> None:
        samples = list(counter.series())

        if not samples and not counter.labels:
            output.write(f"{counter.name} 0\n")
            return

        for labels, value in samples:
            labels_str = cls.formatter.format_labels(labels)
            output.write(f"{counter.name}{labels_str} {cls.formatter.format_value(value)}\n")

    @classmethod
    def _export_histogram(cls, output: TextIO, histogram: Histogram) -> None:
        name = histogram.name
        for labels, stats in histogram.series():
            for bound, bucket_count in stats['buckets'].items():
                bucket_labels = dict(labels)
                bucket_labels['le'] = cls.formatter.format_value(float(bound))
                output.write(f"{name}_bucket{cls.formatter.format_labels(bucket_labels)} {bucket_count}\n")

            labels_str = cls.formatter.format_labels(labels)
            output.write(f"{name}_sum{labels_str} {cls.formatter.format_value(stats['sum'])}\n")
            output.write(f"{name}_count{labels_str} {stats['count']}\n")
