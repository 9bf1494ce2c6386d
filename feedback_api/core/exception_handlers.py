"""Global exception handlers for consistent error responses.

Design:
- AppError subclasses → status code by error family (400, 404, 429, 5xx)
- Unexpected Exception → generic 500 (safety net)
- All responses include request_id for log correlation
"""

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from feedback_api.core.config import settings
from feedback_api.core.errors import (
    AppError,
    ContentRejectedError,
    CounterStoreError,
    LLMAppError,
    NotFoundAppError,
    RateLimitExceededError,
    RecordStoreError,
)
from feedback_api.core.logging import get_request_id

logger = logging.getLogger(__name__)

GENERIC_STORE_MESSAGE = "The request could not be completed. Please try again later."


def status_for(exc: AppError) -> int:
    """Map an error family to its HTTP status."""
    if isinstance(exc, RateLimitExceededError):
        return 429
    if isinstance(exc, NotFoundAppError):
        return 404
    if isinstance(exc, RecordStoreError):
        return 502
    if isinstance(exc, CounterStoreError):
        return 503
    if isinstance(exc, LLMAppError):
        return 500
    # ValidationAppError, ContentRejectedError and any other client fault
    return 400


def _rate_limit_headers(exc: RateLimitExceededError) -> dict[str, str]:
    details = exc.details or {}
    if not settings.rate_limit.include_headers:
        return {}
    return {
        "Retry-After": str(details.get("retry_after", 0)),
        "X-RateLimit-Limit": str(details.get("limit", 0)),
        "X-RateLimit-Remaining": str(details.get("remaining", 0)),
        "X-RateLimit-Reset": str(details.get("reset_at", 0)),
    }


def _error_body(code: str, message: str, **extra: object) -> dict:
    return {"error": {"code": code, "message": message, "request_id": get_request_id(), **extra}}


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    """Render domain errors as ``{"error": {...}}`` with the mapped status.

    Rate limit rejections additionally carry ``status`` and ``retry_at`` and
    the Retry-After/X-RateLimit-* headers. Store failures hide their cause.
    """
    status_code = status_for(exc)
    details = exc.details or {}

    (logger.error if status_code >= 500 else logger.warning)(
        "app_error_handled",
        extra={
            "error_code": exc.code,
            "error_message": exc.message,
            "status_code": status_code,
            "request_path": request.url.path,
        },
    )

    if isinstance(exc, (RecordStoreError, CounterStoreError)):
        return JSONResponse(status_code=status_code, content=_error_body(exc.code, GENERIC_STORE_MESSAGE))

    if isinstance(exc, RateLimitExceededError):
        extra: dict = {"status": 429}
        if details.get("retry_at"):
            extra["retry_at"] = details["retry_at"]
        return JSONResponse(
            status_code=status_code,
            content=_error_body(exc.code, exc.message, **extra),
            headers=_rate_limit_headers(exc) or None,
        )

    extra = {"details": details} if details else {}
    if isinstance(exc, ContentRejectedError) and "hint" in details:
        extra["reason"] = details["hint"]
    return JSONResponse(status_code=status_code, content=_error_body(exc.code, exc.message, **extra))


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Fallback for anything unhandled; the client never sees the cause."""
    logger.error(
        "unhandled_exception",
        extra={
            "error_type": type(exc).__name__,
            "error_msg": str(exc),
            "request_path": request.url.path,
            "request_method": request.method,
        },
    )
    return JSONResponse(
        status_code=500,
        content=_error_body("internal_server_error", "An unexpected error occurred. Please try again later."),
    )


def setup_exception_handlers(app: FastAPI) -> None:
    """Register all exception handlers with the FastAPI app."""
    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(Exception, general_exception_handler)
