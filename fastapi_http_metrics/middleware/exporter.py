"""
Metrics endpoint middleware with content negotiation.

MetricsExporter answers requests to the configured path with a snapshot of
the registry. The representation is picked from the request's Accept header:

- no Accept header (or an empty one): the fallback format (JSON)
- otherwise the highest-quality media range that exactly matches a supported
  format's media type or content type; there is no wildcard matching
- nothing matches: 406 listing the supported media types

Every other path is passed to the downstream application untouched.

Author: FastAPI HTTP Metrics
Version: 0.1.0
"""

import logging
import re
from types import MappingProxyType
from typing import Callable, Iterable, List, Mapping, Optional, Tuple, Type

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response
from starlette.types import ASGIApp

from ..config import ExporterConfig, DEFAULT_METRICS_PATH
from ..formats import FORMATS, FALLBACK
from ..metrics.registry import MetricRegistry, default_registry


def _parse_quality(value: str) -> float:
    try:
        return float(value)
    except ValueError:
        return 0.0


def parse_accept(header: str) -> List[Tuple[str, float]]:
    """
    Split an Accept header into (media range, quality) pairs, best first.

    Parameters other than ``q`` stay part of the media range, joined with
    ``"; "``, so ``text/plain;version=0.0.4;q=0.5`` yields
    ``("text/plain; version=0.0.4", 0.5)``.
    """
    candidates = []
    for media_range in re.split(r'\s*,\s*', header.strip()):
        quality = 1.0
        attributes = []
        for attribute in re.split(r'\s*;\s*', media_range):
            if attribute.startswith('q='):
                quality = _parse_quality(attribute[2:])
            else:
                attributes.append(attribute)
        candidates.append(('; '.join(attributes), quality))

    return sorted(candidates, key=lambda candidate: candidate[1], reverse=True)


def negotiate(
    accept: Optional[str],
    formats: Mapping[str, Type],
    fallback: Type
) -> Optional[Type]:
    """Pick a format for the Accept header, or None if nothing is acceptable."""
    if not accept:
        return fallback

    for content_type, _ in parse_accept(accept):
        if content_type in formats:
            return formats[content_type]

    return None


def build_dictionary(formats: Iterable[Type]) -> Mapping[str, Type]:
    """Map each format's content type and media type to the format."""
    dictionary = {}
    for format_class in formats:
        dictionary[format_class.CONTENT_TYPE] = format_class
        dictionary[format_class.MEDIA_TYPE] = format_class
    return MappingProxyType(dictionary)


class MetricsExporter(BaseHTTPMiddleware):
    """Middleware serving the registry at a fixed path."""

    formats = FORMATS
    fallback = FALLBACK

    def __init__(
        self,
        app: ASGIApp,
        registry: Optional[MetricRegistry] = None,
        path: str = DEFAULT_METRICS_PATH
    ):
        super().__init__(app)

        self.config = ExporterConfig(path=path)
        self.registry = registry or default_registry()
        self.path = self.config.path
        self.acceptable = build_dictionary(self.formats)

        self.logger = logging.getLogger("http_metrics.exporter")

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        if request.url.path != self.path:
            return await call_next(request)

        accept = request.headers.get('accept')
        format_class = negotiate(accept, self.acceptable, self.fallback)
        if format_class is None:
            self.logger.debug(f"No acceptable metrics format for Accept: {accept!r}")
            return self.not_acceptable()

        return self.respond_with(format_class)

    def respond_with(self, format_class: Type) -> Response:
        body = format_class.marshal(self.registry)
        self.logger.debug(f"Exported {len(body)} bytes as {format_class.MEDIA_TYPE}")
        return Response(
            content=body,
            status_code=200,
            headers={'Content-Type': format_class.CONTENT_TYPE}
        )

    def not_acceptable(self) -> Response:
        types = [format_class.MEDIA_TYPE for format_class in self.formats]
        return Response(
            content=f"Supported media types: {', '.join(types)}",
            status_code=406,
            headers={'Content-Type': 'text/plain'}
        )
