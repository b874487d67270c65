# tests/routers/test_error_handling.py
"""
Integration tests for error handling and health endpoints.

These tests verify:
- Consistent error response format (ErrorDetail schema)
- Mapping of service exceptions to HTTP status codes
- Health, liveness and readiness checks
"""

from unittest.mock import MagicMock

import pytest

from portfolio_tracker.dependencies import get_benchmark_service
from portfolio_tracker.main import app
from portfolio_tracker.services.exceptions import (
    CircuitBreakerOpen,
    ProviderUnavailableError,
    RateLimitError,
    ServiceError,
)


@pytest.fixture
def failing_benchmarks(client):
    """Replace the benchmark service with a mock; tests set its side effect."""
    service = MagicMock()
    app.dependency_overrides[get_benchmark_service] = lambda: service
    return service


class TestErrorFormat:

    def test_not_found_format(self, client):
        response = client.get("/transactions/999")

        assert response.status_code == 404
        data = response.json()
        assert data["error"] == "TransactionNotFoundError"
        assert data["details"] == {"resource_type": "Transaction", "resource_id": 999}

    def test_validation_error_format(self, client):
        response = client.post("/transactions/", json={"ticker": "BTC"})

        assert response.status_code == 422
        data = response.json()
        assert data["error"] == "ValidationError"
        fields = {d["field"] for d in data["details"]}
        assert "body.quantity" in fields
        assert "body.unit_price" in fields

    def test_all_errors_have_required_fields(self, client):
        for response in (
                client.get("/transactions/999"),
                client.post("/transactions/", json={}),
                client.post("/snapshots/"),
        ):
            data = response.json()
            assert "error" in data
            assert "message" in data


class TestMarketDataErrors:

    def test_circuit_breaker_open_is_503_with_retry_after(self, client, failing_benchmarks):
        failing_benchmarks.current_benchmark_values.side_effect = CircuitBreakerOpen("yahoo_finance", 12.4)

        response = client.get("/benchmarks/current")

        assert response.status_code == 503
        assert response.headers["Retry-After"] == "13"
        assert response.json()["details"] == {"breaker_name": "yahoo_finance", "retry_after": 13}

    def test_provider_unavailable_is_503(self, client, failing_benchmarks):
        failing_benchmarks.current_benchmark_values.side_effect = ProviderUnavailableError("yahoo", "timeout")

        response = client.get("/benchmarks/current")

        assert response.status_code == 503
        assert response.json()["error"] == "ProviderUnavailableError"

    def test_provider_rate_limit_is_429(self, client, failing_benchmarks):
        failing_benchmarks.current_benchmark_values.side_effect = RateLimitError("yahoo", retry_after=30)

        response = client.get("/benchmarks/current")

        assert response.status_code == 429
        assert response.json()["details"] == {"retry_after": 30}

    def test_generic_service_error_is_500(self, client, failing_benchmarks):
        failing_benchmarks.current_benchmark_values.side_effect = ServiceError("boom")

        response = client.get("/benchmarks/current")

        assert response.status_code == 500
        assert response.json()["message"] == "boom"


class TestHealth:

    def test_root(self, client):
        response = client.get("/")

        assert response.status_code == 200
        assert response.json()["docs"] == "/docs"

    def test_health(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] in ("healthy", "degraded")
        assert data["checks"]["database"]["status"] == "healthy"
        assert data["checks"]["market_data"]["critical"] is False

    def test_liveness(self, client):
        assert client.get("/health/live").json() == {"status": "alive"}

    def test_readiness(self, client):
        assert client.get("/health/ready").json() == {"status": "ready"}
