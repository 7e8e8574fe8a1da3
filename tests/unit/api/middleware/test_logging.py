"""
Tests for Request Logging Middleware

Reference:
- FastAPI middleware patterns
- No bare except clauses

Covered:
- Log request method, path, duration and response status code
- Correlation ID bound per request and echoed in X-Request-ID
- Redact sensitive headers (Authorization, API keys, session cookies)
"""

import logging

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from sessionware.api.middleware.logging import (
    RequestLoggingMiddleware,
    redact_sensitive_headers,
)
from sessionware.observability.logging import get_correlation_id


@pytest.fixture
def app() -> FastAPI:
    """Create a test FastAPI app with logging middleware."""
    app = FastAPI()
    app.add_middleware(RequestLoggingMiddleware)

    @app.get("/test")
    async def test_endpoint():
        return {"message": "test"}

    @app.get("/test/path")
    async def test_path_endpoint():
        return {"message": "path"}

    @app.get("/correlation")
    async def correlation_endpoint():
        return {"correlation_id": get_correlation_id()}

    @app.post("/test")
    async def test_post_endpoint():
        return {"message": "posted"}

    @app.get("/boom")
    async def boom_endpoint():
        raise RuntimeError("handler exploded")

    return app


@pytest.fixture
def client(app: FastAPI) -> TestClient:
    """Create test client."""
    return TestClient(app, raise_server_exceptions=False)


class TestRequestLoggingMiddleware:
    """Test suite for request logging middleware."""

    # =========================================================================
    # Request Method, Path, Duration
    # =========================================================================

    def test_middleware_logs_request_method(self, client: TestClient, caplog):
        with caplog.at_level(logging.INFO):
            client.get("/test")

        assert any("GET" in record.message for record in caplog.records)

    def test_middleware_logs_request_path(self, client: TestClient, caplog):
        with caplog.at_level(logging.INFO):
            client.get("/test/path")

        assert any("/test/path" in record.message for record in caplog.records)

    def test_middleware_logs_request_duration(self, client: TestClient, caplog):
        """
        Duration is logged in milliseconds.
        """
        with caplog.at_level(logging.INFO):
            client.get("/test")

        assert any("duration=" in record.message for record in caplog.records)

    # =========================================================================
    # Response Status Code
    # =========================================================================

    def test_middleware_logs_response_status_200(self, client: TestClient, caplog):
        with caplog.at_level(logging.INFO):
            response = client.get("/test")
            assert response.status_code == 200

        assert any("200" in record.message for record in caplog.records)

    def test_middleware_logs_404_as_warning(self, client: TestClient, caplog):
        with caplog.at_level(logging.INFO):
            response = client.get("/nonexistent")
            assert response.status_code == 404

        assert any(
            "404" in record.message and record.levelno == logging.WARNING
            for record in caplog.records
        )

    def test_middleware_logs_handler_failure(self, client: TestClient, caplog):
        with caplog.at_level(logging.ERROR):
            response = client.get("/boom")

        assert response.status_code == 500
        assert any("RuntimeError" in record.message for record in caplog.records)

    # =========================================================================
    # Correlation ID
    # =========================================================================

    def test_request_id_is_echoed(self, client: TestClient):
        response = client.get("/test", headers={"X-Request-ID": "req-12345"})

        assert response.headers["x-request-id"] == "req-12345"

    def test_request_id_is_generated_when_absent(self, client: TestClient):
        response = client.get("/test")

        assert len(response.headers["x-request-id"]) == 32

    def test_correlation_id_bound_during_request(self, client: TestClient):
        response = client.get("/correlation", headers={"X-Request-ID": "req-12345"})

        assert response.json() == {"correlation_id": "req-12345"}

    # =========================================================================
    # Redact Sensitive Headers
    # =========================================================================

    def test_redact_authorization_header(self):
        """
        Pattern: Security - never log credentials
        """
        headers = {
            "Authorization": "Bearer secret-token-12345",
            "Content-Type": "application/json",
        }

        redacted = redact_sensitive_headers(headers)

        assert redacted["Authorization"] == "[REDACTED]"
        assert redacted["Content-Type"] == "application/json"

    def test_redact_api_key_header_variations(self):
        headers = {
            "x-api-key": "secret1",
            "Api-Key": "secret2",
            "apikey": "secret3",
            "X-Custom-Header": "not-secret",
        }

        redacted = redact_sensitive_headers(headers)

        assert redacted["x-api-key"] == "[REDACTED]"
        assert redacted["Api-Key"] == "[REDACTED]"
        assert redacted["apikey"] == "[REDACTED]"
        assert redacted["X-Custom-Header"] == "not-secret"

    def test_redact_session_cookies(self):
        """
        Session identifiers travel in Cookie and Set-Cookie.
        """
        headers = {
            "Cookie": "sid=3f2a9c1b0d",
            "Set-Cookie": "sid=3f2a9c1b0d; Path=/",
        }

        redacted = redact_sensitive_headers(headers)

        assert redacted == {"Cookie": "[REDACTED]", "Set-Cookie": "[REDACTED]"}

    def test_middleware_does_not_log_sensitive_headers(
        self, client: TestClient, caplog
    ):
        with caplog.at_level(logging.DEBUG):
            client.get(
                "/test",
                headers={
                    "Authorization": "Bearer super-secret-token",
                    "Cookie": "sid=session-secret-value",
                },
            )

        log_output = " ".join(record.message for record in caplog.records)
        assert "super-secret-token" not in log_output
        assert "session-secret-value" not in log_output


class TestLoggingMiddlewareIntegration:
    """Integration tests for logging middleware with FastAPI app."""

    def test_middleware_preserves_response(self, client: TestClient):
        response = client.get("/test")

        assert response.status_code == 200
        assert response.json() == {"message": "test"}

    def test_middleware_handles_post_requests(self, client: TestClient, caplog):
        with caplog.at_level(logging.INFO):
            response = client.post("/test")

        assert response.status_code == 200
        assert any("POST" in record.message for record in caplog.records)
