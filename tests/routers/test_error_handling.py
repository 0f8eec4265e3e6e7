# tests/routers/test_error_handling.py
"""
Integration tests for error handling across all API endpoints.

These tests verify:
- Consistent error response format (ErrorDetail schema)
- Correct HTTP status codes for different error types
- Health endpoints and their failure modes
- Global exception handler behavior
"""

from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient

from portfolio_tracker.database import get_db
from portfolio_tracker.dependencies import get_lot_store
from portfolio_tracker.main import app
from portfolio_tracker.services.exceptions import ProviderUnavailableError


class TestErrorFormat:
    """Every error body carries error, message and details."""

    @pytest.mark.parametrize("method,url,body,status", [
        ("get", "/portfolio/history/5Y", None, 400),
        ("put", "/portfolio/999", {"quantity": "1"}, 404),
        ("delete", "/portfolio/999", None, 404),
        ("post", "/portfolio", {"symbol": "AAPL"}, 422),
        ("get", "/settings/nope", None, 404),
        ("get", "/search?q=NOPE", None, 404),
    ])
    def test_all_errors_have_required_fields(self, client, method, url, body, status):
        response = client.request(method, url, json=body)

        assert response.status_code == status
        data = response.json()
        assert set(data) == {"error", "message", "details"}
        assert data["message"]

    def test_validation_error_lists_fields(self, client):
        response = client.post("/portfolio", json={"symbol": "AAPL", "quantity": "abc"})

        assert response.status_code == 422
        fields = {d["field"] for d in response.json()["details"]}
        assert "body.quantity" in fields
        assert "body.buyPrice" in fields
        assert "body.purchaseDate" in fields

    def test_unknown_route(self, client):
        response = client.get("/does-not-exist")

        assert response.status_code == 404
        assert response.json()["error"] == "NotFoundError"

    def test_method_not_allowed(self, client):
        response = client.patch("/portfolio")

        assert response.status_code == 405
        assert response.json()["error"] == "MethodNotAllowedError"

    def test_unexpected_error_hidden(self, db):
        broken_store = MagicMock()
        broken_store.snapshots.side_effect = RuntimeError("secret internals")

        def override_get_db():
            yield db

        app.dependency_overrides[get_db] = override_get_db
        app.dependency_overrides[get_lot_store] = lambda: broken_store
        try:
            with TestClient(app, raise_server_exceptions=False) as c:
                response = c.get("/portfolio")
        finally:
            app.dependency_overrides.clear()

        assert response.status_code == 500
        assert response.json()["error"] == "InternalServerError"
        assert "secret" not in response.text


class TestHealthEndpoints:

    def test_root(self, client):
        response = client.get("/")

        assert response.status_code == 200
        assert response.json()["docs"] == "/docs"

    def test_health(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["checks"]["database"]["status"] == "healthy"
        assert data["checks"]["quote_provider"]["state"] == "closed"

    def test_health_degraded_when_circuit_open(self, client, mock_provider):
        mock_provider.set_error("AAPL", ProviderUnavailableError(provider="mock", reason="down"))
        for _ in range(mock_provider.circuit_breaker.failure_threshold):
            with pytest.raises(ProviderUnavailableError):
                mock_provider.get_current_quote("AAPL")

        response = client.get("/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "degraded"
        assert data["checks"]["quote_provider"]["status"] == "unhealthy"

    def test_health_database_down(self, client):
        broken_db = MagicMock()
        broken_db.execute.side_effect = Exception("database is locked")
        app.dependency_overrides[get_db] = lambda: broken_db

        response = client.get("/health")

        assert response.status_code == 503
        assert response.json()["status"] == "unhealthy"

    def test_liveness(self, client):
        assert client.get("/health/live").json() == {"status": "alive"}

    def test_readiness(self, client):
        response = client.get("/health/ready")

        assert response.status_code == 200
        assert response.json() == {"status": "ready"}
