"""
Exception classes for FastAPI HTTP Metrics.

This module defines the errors raised while registering, recording and
exporting metrics. Errors raised by the wrapped application are never
converted into these types; they propagate unchanged.

Author: FastAPI HTTP Metrics
Version: 0.1.0
"""

from typing import Optional, Dict, Any
from datetime import datetime, timezone


class MetricsError(Exception):
    """Base exception for metrics-related errors."""

    def __init__(
        self,
        message: str,
        metric_name: Optional[str] = None,
        operation: Optional[str] = None,
        original_error: Optional[Exception] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        self.metric_name = metric_name
        self.operation = operation
        self.original_error = original_error
        self.details = details or {}
        self.timestamp = datetime.now(timezone.utc)
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'error_type': self.__class__.__name__,
            'message': self.message,
            'metric_name': self.metric_name,
            'operation': self.operation,
            'original_error': str(self.original_error) if self.original_error else None,
            'details': self.details,
            'timestamp': self.timestamp.isoformat()
        }


class MetricRegistrationError(MetricsError):
    """Exception raised during metric registration."""

    def __init__(
        self,
        message: str,
        registration_type: Optional[str] = None,
        **kwargs
    ):
        super().__init__(message, operation="register", **kwargs)
        self.registration_type = registration_type


class MetricCollisionError(MetricRegistrationError):
    """Exception raised when a metric name is registered twice."""

    def __init__(
        self,
        message: str,
        existing_labels: Optional[list] = None,
        conflicting_labels: Optional[list] = None,
        **kwargs
    ):
        super().__init__(message, registration_type="collision", **kwargs)
        self.existing_labels = existing_labels
        self.conflicting_labels = conflicting_labels


class MetricValidationError(MetricsError):
    """Exception raised for invalid metric names, labels or values."""

    def __init__(
        self,
        message: str,
        validation_rule: Optional[str] = None,
        **kwargs
    ):
        kwargs.setdefault('operation', "validate")
        super().__init__(message, **kwargs)
        self.validation_rule = validation_rule


class MetricsExportError(MetricsError):
    """Exception raised while serializing a registry snapshot."""

    def __init__(
        self,
        message: str,
        export_format: Optional[str] = None,
        **kwargs
    ):
        super().__init__(message, operation="export", **kwargs)
        self.export_format = export_format
