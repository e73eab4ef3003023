"""
Configuration for the metrics collector and exporter.

The middleware components validate their construction-time options through
these models, so a bad prefix or export path fails when the application is
assembled rather than on the first request.

Author: FastAPI HTTP Metrics
Version: 0.1.0
"""

import json
import os
import re
from typing import Dict

from pydantic import BaseModel, Field, field_validator


METRIC_NAME_PATTERN = re.compile(r'^[a-zA-Z_:][a-zA-Z0-9_:]*$')
LABEL_NAME_PATTERN = re.compile(r'^[a-zA-Z_][a-zA-Z0-9_]*$')

DEFAULT_METRICS_PREFIX = "http_server"
DEFAULT_METRICS_PATH = "/metrics"


class CollectorConfig(BaseModel):
    """Configuration for request metrics collection."""

    metrics_prefix: str = Field(
        default=DEFAULT_METRICS_PREFIX,
        description="Prefix prepended to every metric name"
    )

    labels: Dict[str, str] = Field(
        default_factory=dict,
        description="Static labels merged into every recorded metric"
    )

    @field_validator('metrics_prefix')
    @classmethod
    def validate_metrics_prefix(cls, v):
        if not METRIC_NAME_PATTERN.match(v):
            raise ValueError(f"Invalid metrics prefix '{v}'")
        return v

    @field_validator('labels')
    @classmethod
    def validate_label_names(cls, v):
        for name in v:
            if not LABEL_NAME_PATTERN.match(name) or name.startswith('__'):
                raise ValueError(f"Invalid label name '{name}'")
            # Reserved for histogram bucket bounds
            if name == 'le':
                raise ValueError("Label name 'le' is reserved")
        return v


class ExporterConfig(BaseModel):
    """Configuration for the metrics endpoint."""

    path: str = Field(
        default=DEFAULT_METRICS_PATH,
        description="Request path served by the metrics exporter"
    )

    @field_validator('path')
    @classmethod
    def validate_path(cls, v):
        if not v.startswith('/'):
            raise ValueError("Metrics path must start with '/'")
        return v


class MetricsConfig(CollectorConfig, ExporterConfig):
    """Combined configuration for collector and exporter."""

    @classmethod
    def from_env(cls) -> 'MetricsConfig':
        """
        Create configuration from environment variables.

        Reads HTTP_METRICS_PREFIX, HTTP_METRICS_PATH and HTTP_METRICS_LABELS
        (a JSON object of label name to value).

        Example:
            os.environ['HTTP_METRICS_LABELS'] = '{"env": "production"}'
            config = MetricsConfig.from_env()
        """
        raw_labels = os.getenv('HTTP_METRICS_LABELS')
        return cls(
            metrics_prefix=os.getenv('HTTP_METRICS_PREFIX', DEFAULT_METRICS_PREFIX),
            path=os.getenv('HTTP_METRICS_PATH', DEFAULT_METRICS_PATH),
            labels=json.loads(raw_labels) if raw_labels else {}
        )
