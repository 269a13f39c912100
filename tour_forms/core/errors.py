"""Application-level exception types.

This module defines domain errors used across services/adapters, enabling
consistent error handling, logging, and API responses.

Submission failure taxonomy:
- RateLimitedAppError: caller may retry after ``reset_time``.
- ValidationAppError: caller may retry after fixing the indicated fields.
- PersistenceAppError: fatal for the attempt; nothing was written.
- NotificationAppError: never surfaced to callers; logged and absorbed.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, NotRequired, TypedDict


class ErrorDetails(TypedDict, total=False):
    """Structured error context for observability and clients.

    Fields are optional to keep backward compatibility while encouraging
    consistent shapes across the codebase.
    """

    code: str
    message: str
    hint: str
    http_status: int
    reset_time: float
    field_errors: dict[str, str]
    table: str
    action: str
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


class RateLimitedAppError(AppError):
    """Raised when a caller has exhausted a rate-limit dimension."""


class PersistenceAppError(AppError):
    """Raised when the storage backend cannot create or read a record."""


class NotificationAppError(AppError):
    """Raised when an outbound notification cannot be delivered."""
