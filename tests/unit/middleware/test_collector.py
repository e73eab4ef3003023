"""
Tests for the request metrics collector.
"""

import asyncio
import logging

import pytest
from pydantic import ValidationError
from starlette.requests import Request
from starlette.responses import PlainTextResponse
from starlette.routing import Route, Router
from starlette.testclient import TestClient

from fastapi_http_metrics.exceptions import MetricCollisionError
from fastapi_http_metrics.metrics.registry import MetricRegistry
from fastapi_http_metrics.middleware.collector import MetricsCollector, RecordingOutcome


class CustomError(Exception):
    pass


async def show_user(request):
    return PlainTextResponse("user")


async def create_order(request):
    return PlainTextResponse("created", status_code=201)


async def slow(request):
    await asyncio.sleep(0.01)
    return PlainTextResponse("slow")


async def fail(request):
    raise CustomError("downstream failure")


def build_router():
    return Router(routes=[
        Route("/users/{user_id}", show_user),
        Route("/orders/{order_id}", create_order, methods=["POST"]),
        Route("/slow", slow),
        Route("/fail", fail),
    ])


class TestMetricsCollectorConstruction:
    """Test cases for collector registration."""

    @pytest.fixture
    def registry(self):
        return MetricRegistry()

    def test_registers_three_metrics(self, registry):
        MetricsCollector(build_router(), registry=registry)

        assert registry.list_metrics() == [
            "http_server_requests_total",
            "http_server_request_duration_seconds",
            "http_server_exceptions_total",
        ]
        assert registry.get("http_server_requests_total").labels == ["code", "method", "path"]
        assert registry.get("http_server_request_duration_seconds").labels == ["method", "path"]
        assert registry.get("http_server_exceptions_total").labels == ["exception"]

    def test_custom_prefix_and_labels(self, registry):
        MetricsCollector(
            build_router(),
            registry=registry,
            metrics_prefix="api",
            labels={"env": "production"}
        )

        assert registry.get("api_requests_total").labels == ["code", "method", "path", "env"]
        assert registry.get("api_request_duration_seconds").labels == ["method", "path", "env"]
        assert registry.get("api_exceptions_total").labels == ["exception", "env"]

    def test_second_collector_on_same_registry_fails(self, registry):
        MetricsCollector(build_router(), registry=registry)

        with pytest.raises(MetricCollisionError):
            MetricsCollector(build_router(), registry=registry)

    def test_second_collector_with_other_prefix(self, registry):
        MetricsCollector(build_router(), registry=registry)
        MetricsCollector(build_router(), registry=registry, metrics_prefix="internal")

        assert registry.exists("internal_requests_total")

    def test_invalid_prefix_rejected(self, registry):
        with pytest.raises(ValidationError):
            MetricsCollector(build_router(), registry=registry, metrics_prefix="bad-prefix")

    def test_reserved_le_label_rejected_before_registration(self, registry):
        with pytest.raises(ValidationError):
            MetricsCollector(build_router(), registry=registry, labels={"le": "x"})

        assert registry.list_metrics() == []

    def test_histogram_collision_rolls_back_counter(self, registry):
        registry.histogram("http_server_request_duration_seconds", "Pre-existing", ["route"])

        with pytest.raises(MetricCollisionError):
            MetricsCollector(build_router(), registry=registry)

        assert registry.list_metrics() == ["http_server_request_duration_seconds"]
        assert registry.get("http_server_request_duration_seconds").labels == ["route"]

        registry.unregister("http_server_request_duration_seconds")
        MetricsCollector(build_router(), registry=registry)
        assert registry.exists("http_server_requests_total")

    def test_exceptions_collision_rolls_back_request_metrics(self, registry):
        registry.counter("http_server_exceptions_total", "Pre-existing", ["kind"])

        with pytest.raises(MetricCollisionError):
            MetricsCollector(build_router(), registry=registry)

        assert registry.list_metrics() == ["http_server_exceptions_total"]
        assert registry.get("http_server_exceptions_total").labels == ["kind"]

    def test_label_collision_warns(self, registry, caplog):
        with caplog.at_level(logging.WARNING, logger="http_metrics.collector"):
            MetricsCollector(build_router(), registry=registry, labels={"path": "fixed"})

        assert "override built-in labels" in caplog.text
        assert registry.get("http_server_requests_total").labels == ["code", "method", "path"]


class TestMetricsCollectorRequests:
    """Test cases for request recording."""

    @pytest.fixture
    def registry(self):
        return MetricRegistry()

    @pytest.fixture
    def collector(self, registry):
        return MetricsCollector(build_router(), registry=registry, labels={"env": "test"})

    @pytest.fixture
    def client(self, collector):
        return TestClient(collector)

    def test_successful_request_recorded(self, client, registry):
        response = client.get("/users/42")
        assert response.status_code == 200
        assert response.text == "user"

        requests = registry.get("http_server_requests_total")
        assert list(requests.series()) == [
            ({"code": "200", "method": "get", "path": "/users/:id", "env": "test"}, 1.0)
        ]

        durations = registry.get("http_server_request_duration_seconds")
        series = list(durations.series())
        assert len(series) == 1
        assert series[0][0] == {"method": "get", "path": "/users/:id", "env": "test"}
        assert series[0][1]["count"] == 1

    def test_method_lower_cased_and_status_code(self, client, registry):
        client.post("/orders/550e8400-e29b-41d4-a716-446655440000")

        requests = registry.get("http_server_requests_total")
        assert requests.get_value(
            {"code": "201", "method": "post", "path": "/orders/:uuid", "env": "test"}
        ) == 1.0

    def test_not_found_recorded(self, client, registry):
        response = client.get("/missing/7")
        assert response.status_code == 404

        requests = registry.get("http_server_requests_total")
        assert requests.get_value(
            {"code": "404", "method": "get", "path": "/missing/:id", "env": "test"}
        ) == 1.0

    def test_duration_measured(self, client, registry):
        client.get("/slow")

        durations = registry.get("http_server_request_duration_seconds")
        value = durations.get_value({"method": "get", "path": "/slow", "env": "test"})
        assert value["count"] == 1
        assert value["sum"] >= 0.01

    def test_one_increment_per_request(self, client, registry):
        for _ in range(3):
            client.get("/users/1")

        requests = registry.get("http_server_requests_total")
        durations = registry.get("http_server_request_duration_seconds")
        assert requests.get_value(
            {"code": "200", "method": "get", "path": "/users/:id", "env": "test"}
        ) == 3.0
        assert durations.get_value({"method": "get", "path": "/users/:id", "env": "test"})["count"] == 3

    def test_exception_recorded_and_reraised(self, client, registry):
        with pytest.raises(CustomError, match="downstream failure"):
            client.get("/fail")

        exceptions = registry.get("http_server_exceptions_total")
        assert list(exceptions.series()) == [({"exception": "CustomError", "env": "test"}, 1.0)]

        requests = registry.get("http_server_requests_total")
        assert list(requests.series()) == []

        durations = registry.get("http_server_request_duration_seconds")
        assert list(durations.series()) == []

    def test_recording_error_does_not_fail_request(self, client, collector, monkeypatch):
        def broken(*args, **kwargs):
            raise RuntimeError("registry unavailable")

        monkeypatch.setattr(collector.requests, "inc", broken)

        response = client.get("/users/42")
        assert response.status_code == 200
        assert response.text == "user"

    def test_configured_label_overrides_builtin(self, registry):
        collector = MetricsCollector(build_router(), registry=registry, labels={"path": "fixed"})
        TestClient(collector).get("/users/42")

        requests = registry.get("http_server_requests_total")
        assert list(requests.series()) == [({"code": "200", "method": "get", "path": "fixed"}, 1.0)]


class TestRecordingOutcome:
    """Test cases for the best-effort recording result."""

    @pytest.fixture
    def collector(self):
        return MetricsCollector(build_router(), registry=MetricRegistry())

    def make_request(self, method="GET", path="/users/1"):
        return Request({
            "type": "http",
            "method": method,
            "path": path,
            "headers": [],
            "query_string": b"",
        })

    def test_recorded(self, collector):
        outcome = collector._record(self.make_request(), PlainTextResponse("ok"), 0.1)
        assert outcome == RecordingOutcome(recorded=True)

    def test_failure_captured(self, collector, monkeypatch):
        error = RuntimeError("boom")

        def broken(*args, **kwargs):
            raise error

        monkeypatch.setattr(collector.durations, "observe", broken)

        outcome = collector._record(self.make_request(), PlainTextResponse("ok"), 0.1)
        assert outcome.recorded is False
        assert outcome.error is error
