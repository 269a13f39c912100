"""Pydantic schemas for submission responses."""

from typing import Any

from pydantic import BaseModel, Field


class SubmissionResult(BaseModel):
    """Outcome of one form submission.

    Exactly one shape is populated:
    - success: ``record`` holds the persisted row.
    - rate limited: ``rate_limited`` is true and ``reset_time`` says when to retry.
    - validation failure: ``field_errors`` maps field names to messages.
    - persistence failure: only ``message`` (and ``error_code``) are set.
    """

    success: bool = Field(
        ...,
        description="True when the submission was stored.",
    )
    message: str = Field(
        ...,
        description="Human-readable outcome suitable for display.",
    )
    record: dict[str, Any] | None = Field(
        default=None,
        description="The persisted record (id, submitted fields, created_at).",
    )
    rate_limited: bool | None = Field(
        default=None,
        description="True when the caller must wait before submitting again.",
    )
    reset_time: float | None = Field(
        default=None,
        description="UNIX epoch seconds when the exhausted rate-limit window resets.",
    )
    field_errors: dict[str, str] | None = Field(
        default=None,
        description="Field name -> first violated rule's message.",
    )
    error_code: str | None = Field(
        default=None,
        description="Machine-readable failure code (rate_limited, validation_failed, persistence_failed).",
    )
