"""Application-level exception types.

This module defines domain errors used across services/adapters, enabling
consistent error handling, logging, and API responses.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, NotRequired, TypedDict


class ErrorDetails(TypedDict, total=False):
    """Structured error context for observability and clients."""

    code: str
    message: str
    hint: str
    http_status: int
    retry_after: int
    retry_at: str
    scope: str
    limit: int
    remaining: int
    reset_at: int
    min_value: int
    max_value: int
    actual_value: int
    question_id: str
    table: str
    model: str
    request_id: str
    context: NotRequired[dict[str, Any]]


@dataclass
class AppError(Exception):
    """Base error for application/domain failures.

    Attributes:
        code: Stable, machine-readable error code.
        message: Human-readable error message.
        details: Optional structured details for debugging/observability.
    """

    code: str
    message: str
    details: ErrorDetails | None = None

    def __post_init__(self) -> None:
        # Populate Exception args so str(error) is useful in logs/tracebacks.
        super().__init__(self.message)


class ValidationAppError(AppError):
    """Raised when input/config validation fails."""


class ContentRejectedError(AppError):
    """Raised when submitted text is classified as spam or a duplicate."""


class NotFoundAppError(AppError):
    """Raised when a referenced question does not exist."""


class RateLimitExceededError(AppError):
    """Raised when a limit is exceeded for the caller or the target question."""


class CounterStoreError(AppError):
    """Raised when the shared counter store cannot be reached."""


class MalformedStateError(CounterStoreError):
    """Raised when a stored counter value cannot be decoded."""


class RecordStoreError(AppError):
    """Raised when the persistence service rejects or fails a call."""


class LLMAppError(AppError):
    """Raised when LLM provider/client operations fail."""
