"""Tests for global exception handlers.

Validates that every error family maps to its HTTP status with the shared
error body, and that store/internal failures never leak details.
"""

import asyncio
import json
from unittest.mock import AsyncMock, patch

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from feedback_api.core.errors import (
    AppError,
    ContentRejectedError,
    CounterStoreError,
    LLMAppError,
    NotFoundAppError,
    RateLimitExceededError,
    RecordStoreError,
    ValidationAppError,
)
from feedback_api.core.exception_handlers import general_exception_handler, setup_exception_handlers

RATE_LIMIT_DETAILS = {
    "http_status": 429,
    "scope": "response-by-ip",
    "limit": 5,
    "remaining": 0,
    "reset_at": 1_700_000_060,
    "retry_after": 59,
    "retry_at": "2023-11-14T22:14:20+00:00",
}


def _raiser(error: AppError):
    async def endpoint():
        raise error

    return endpoint


@pytest.fixture
def app_with_handlers() -> FastAPI:
    """Create FastAPI app with exception handlers and one route per error."""
    app = FastAPI()
    setup_exception_handlers(app)

    errors = {
        "validation": ValidationAppError(code="question_too_short", message="Too short", details={"min_value": 10}),
        "spam": ContentRejectedError(code="spam_detected", message="Response rejected: Too many URLs", details={"hint": "Too many URLs"}),
        "missing": NotFoundAppError(code="question_not_found", message="Question not found"),
        "limited": RateLimitExceededError(code="rate_limit_exceeded", message="Too many responses, please wait a minute", details=RATE_LIMIT_DETAILS),
        "records": RecordStoreError(code="record_store_unavailable", message="Record store insert on 'responses' failed"),
        "counters": CounterStoreError(code="counter_store_unavailable", message="Redis get failed: refused"),
        "llm": LLMAppError(code="llm_request_failed", message="OpenAI API error"),
    }

    for name, error in errors.items():
        app.add_api_route(f"/{name}", _raiser(error), methods=["GET"])

    return app


@pytest.fixture
def client(app_with_handlers: FastAPI) -> TestClient:
    return TestClient(app_with_handlers)


class TestAppErrorHandler:
    @pytest.mark.parametrize(
        "path, status, code",
        [
            ("/validation", 400, "question_too_short"),
            ("/spam", 400, "spam_detected"),
            ("/missing", 404, "question_not_found"),
            ("/limited", 429, "rate_limit_exceeded"),
            ("/records", 502, "record_store_unavailable"),
            ("/counters", 503, "counter_store_unavailable"),
            ("/llm", 500, "llm_request_failed"),
        ],
    )
    def test_status_mapping(self, client: TestClient, path, status, code):
        response = client.get(path)

        assert response.status_code == status
        error = response.json()["error"]
        assert error["code"] == code
        assert "request_id" in error

    def test_validation_error_includes_details(self, client: TestClient):
        error = client.get("/validation").json()["error"]

        assert error["details"] == {"min_value": 10}

    def test_content_rejection_exposes_reason(self, client: TestClient):
        error = client.get("/spam").json()["error"]

        assert error["message"] == "Response rejected: Too many URLs"
        assert error["reason"] == "Too many URLs"

    def test_rate_limit_body_and_headers(self, client: TestClient):
        response = client.get("/limited")

        error = response.json()["error"]
        assert error["status"] == 429
        assert error["retry_at"] == "2023-11-14T22:14:20+00:00"
        assert error["message"] == "Too many responses, please wait a minute"
        assert response.headers["Retry-After"] == "59"
        assert response.headers["X-RateLimit-Limit"] == "5"
        assert response.headers["X-RateLimit-Remaining"] == "0"
        assert response.headers["X-RateLimit-Reset"] == "1700000060"

    def test_rate_limit_headers_can_be_disabled(self, client: TestClient):
        with patch("feedback_api.core.exception_handlers.settings") as mock_settings:
            mock_settings.rate_limit.include_headers = False
            response = client.get("/limited")

        assert response.status_code == 429
        assert "Retry-After" not in response.headers

    @pytest.mark.parametrize("path", ["/records", "/counters"])
    def test_store_failures_are_generic(self, client: TestClient, path):
        error = client.get(path).json()["error"]

        assert "failed" not in error["message"]
        assert "details" not in error


class TestGeneralExceptionHandler:
    def test_unexpected_exception_handler_registered(self, app_with_handlers: FastAPI):
        assert Exception in app_with_handlers.exception_handlers

    def test_general_exception_handler_never_leaks(self):
        request = AsyncMock()
        request.url.path = "/test"
        request.method = "GET"

        exc = RuntimeError("Unexpected error: redis connection failed")
        response = asyncio.run(general_exception_handler(request, exc))

        data = json.loads(bytes(response.body).decode())
        assert response.status_code == 500
        assert data["error"]["code"] == "internal_server_error"
        assert "redis" not in data["error"]["message"]
        assert "RuntimeError" not in bytes(response.body).decode()
        assert "request_id" in data["error"]


def test_multiple_handler_setups_does_not_fail():
    app = FastAPI()

    setup_exception_handlers(app)
    setup_exception_handlers(app)

    assert AppError in app.exception_handlers
