"""Tests for global exception handlers.

Validates that all exception types are handled consistently with
proper HTTP status codes, error format, and no information leakage.
"""

import asyncio
import json
import time
from unittest.mock import AsyncMock

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from tour_forms.core.errors import (
    AppError,
    PersistenceAppError,
    RateLimitedAppError,
    ValidationAppError,
)
from tour_forms.core.exception_handlers import (
    general_exception_handler,
    setup_exception_handlers,
    status_code_for,
)


@pytest.fixture
def app_with_handlers() -> FastAPI:
    """Create FastAPI app with exception handlers registered."""
    app = FastAPI()
    setup_exception_handlers(app)
    return app


@pytest.fixture
def client(app_with_handlers: FastAPI) -> TestClient:
    """Create test client with handlers enabled."""
    return TestClient(app_with_handlers, raise_server_exceptions=False)


class TestAppErrorHandler:
    """Test handler for AppError and subclasses."""

    def test_validation_error_returns_422_with_field_errors(self, client: TestClient, app_with_handlers: FastAPI):
        @app_with_handlers.get("/test-validation")
        async def test_endpoint():
            raise ValidationAppError(
                code="validation_failed",
                message="Please check your information and try again.",
                details={"field_errors": {"email": "Your email is required."}},
            )

        response = client.get("/test-validation")

        assert response.status_code == 422
        data = response.json()
        assert data["error"]["code"] == "validation_failed"
        assert data["error"]["details"]["field_errors"] == {"email": "Your email is required."}
        assert "request_id" in data["error"]

    def test_rate_limited_error_returns_429_with_retry_after(self, client: TestClient, app_with_handlers: FastAPI):
        @app_with_handlers.get("/test-rate-limit")
        async def test_endpoint():
            raise RateLimitedAppError(
                code="rate_limited",
                message="Too many attempts. Please try again in 4 minutes.",
                details={"reset_time": time.time() + 230.4},
            )

        response = client.get("/test-rate-limit")

        assert response.status_code == 429
        assert 230 <= int(response.headers["Retry-After"]) <= 231

    def test_rate_limited_error_with_past_reset_time_retries_after_one_second(
        self, client: TestClient, app_with_handlers: FastAPI
    ):
        @app_with_handlers.get("/test-rate-limit-expired")
        async def test_endpoint():
            raise RateLimitedAppError(
                code="rate_limited",
                message="Too many attempts.",
                details={"reset_time": time.time() - 5},
            )

        response = client.get("/test-rate-limit-expired")

        assert response.headers["Retry-After"] == "1"

    def test_persistence_error_returns_503(self, client: TestClient, app_with_handlers: FastAPI):
        @app_with_handlers.get("/test-persistence")
        async def test_endpoint():
            raise PersistenceAppError(code="persistence_failed", message="Try again later.")

        response = client.get("/test-persistence")

        assert response.status_code == 503
        assert "details" not in response.json()["error"]

    @pytest.mark.parametrize(
        ("error", "status_code"),
        [
            (RateLimitedAppError("c", "m"), 429),
            (ValidationAppError("c", "m"), 422),
            (PersistenceAppError("c", "m"), 503),
            (AppError("c", "m"), 400),
        ],
    )
    def test_status_mapping(self, error: AppError, status_code: int):
        assert status_code_for(error) == status_code

    def test_error_response_format_is_consistent(self, client: TestClient, app_with_handlers: FastAPI):
        @app_with_handlers.get("/test-format")
        async def test_endpoint():
            raise AppError(code="test", message="test")

        data = client.get("/test-format").json()

        assert set(data["error"]) == {"code", "message", "request_id"}


class TestGeneralExceptionHandler:
    """Test fallback handler for unexpected exceptions."""

    def test_unexpected_exception_returns_500(self, client: TestClient, app_with_handlers: FastAPI):
        @app_with_handlers.get("/test-crash")
        async def test_endpoint():
            raise RuntimeError("supabase key sk-123 rejected")

        response = client.get("/test-crash")

        assert response.status_code == 500
        assert "sk-123" not in response.text

    def test_general_exception_handler_never_leaks_stack_trace(self):
        request = AsyncMock()
        request.url.path = "/test"
        request.method = "GET"

        exc = ValueError("Test error with details")
        response = asyncio.run(general_exception_handler(request, exc))

        response_text = bytes(response.body).decode()
        data = json.loads(response_text)
        assert response.status_code == 500
        assert data["error"]["code"] == "internal_server_error"
        assert "Traceback" not in response_text
        assert "ValueError" not in response_text


def test_setup_exception_handlers_registers_handlers(app_with_handlers: FastAPI):
    assert AppError in app_with_handlers.exception_handlers
    assert Exception in app_with_handlers.exception_handlers
