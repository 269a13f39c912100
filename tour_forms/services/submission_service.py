"""Write path shared by every public submission form.

Each submission moves through a linear state machine with one exit per stage:

    RECEIVED -> RATE_CHECKED -> VALIDATED -> PERSISTED -> NOTIFIED -> RESPONDED

- Rate limiting runs first, so a malformed submission still spends quota.
- Persistence is called exactly once; its failure is fatal to the attempt.
- Notification runs after the record exists; its failure is logged and
  swallowed because the stored record is the source of truth.

No deduplication is performed: two identical submissions that both pass rate
limiting create two records.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Mapping

from tour_forms.adapters.notify.factory import create_notifier
from tour_forms.adapters.persistence.base import AbstractPersistence
from tour_forms.adapters.persistence.factory import create_persistence
from tour_forms.core.config import settings
from tour_forms.core.errors import (
    PersistenceAppError,
    RateLimitedAppError,
    ValidationAppError,
)
from tour_forms.core.logging import hash_identifier
from tour_forms.core.rate_limit import (
    AIRPORT_PICKUP_POLICY,
    CONTACT_FORM_POLICY,
    NEWSLETTER_POLICY,
    TOUR_BOOKING_POLICY,
    FormRateLimitPolicy,
    RateLimiter,
    get_rate_limiter,
)
from tour_forms.schemas.forms import (
    EMAIL_FIELDS,
    AirportPickupBase,
    ContactForm,
    FormType,
    NewsletterForm,
    SubmissionPayload,
    TourBookingForm,
)
from tour_forms.schemas.submissions import SubmissionResult
from tour_forms.services.notifications import NotificationDispatcher
from tour_forms.services.validation import ValidationFailed, validate

logger = logging.getLogger(__name__)

TOURS_TABLE = "tours"

FORM_TABLES: dict[FormType, str] = {
    FormType.TOUR_BOOKING: "bookings",
    FormType.AIRPORT_PICKUP: "airport_pickup_bookings",
    FormType.CONTACT: "contact_messages",
    FormType.NEWSLETTER: "newsletter_subscribers",
}

RATE_LIMIT_POLICIES: dict[FormType, FormRateLimitPolicy] = {
    FormType.TOUR_BOOKING: TOUR_BOOKING_POLICY,
    FormType.AIRPORT_PICKUP: AIRPORT_PICKUP_POLICY,
    FormType.CONTACT: CONTACT_FORM_POLICY,
    FormType.NEWSLETTER: NEWSLETTER_POLICY,
}

SUCCESS_MESSAGES: dict[FormType, str] = {
    FormType.TOUR_BOOKING: "Booking created successfully! We'll contact you shortly to confirm.",
    FormType.AIRPORT_PICKUP: "Thank you for your booking! We will contact you shortly to confirm.",
    FormType.CONTACT: "Thank you for your message! We'll get back to you as soon as possible.",
    FormType.NEWSLETTER: "Thank you for subscribing! Welcome to the Island Mystic Tours tribe!",
}

VALIDATION_FAILED_MESSAGE = "Please check your information and try again."
PERSISTENCE_FAILED_MESSAGE = (
    "We couldn't save your submission right now. Please try again in a few minutes."
)


def _raw_email(form_type: FormType, raw_input: Mapping[str, Any]) -> str | None:
    value = raw_input.get(EMAIL_FIELDS[form_type])
    if not isinstance(value, str):
        return None
    return value.strip().lower() or None


def _price_of(row: Mapping[str, Any]) -> float | None:
    try:
        return float(row["price"])
    except (KeyError, TypeError, ValueError):
        return None


class SubmissionPipeline:
    """Orchestrates rate limit -> validation -> persistence -> notification.

    Attributes:
        rate_limiter: Shared multi-key limiter.
        persistence: Storage backend for created records.
        dispatcher: Best-effort notification dispatcher.
    """

    def __init__(
        self,
        *,
        rate_limiter: RateLimiter,
        persistence: AbstractPersistence,
        dispatcher: NotificationDispatcher,
        rate_limit_enabled: bool = True,
        notifications_enabled: bool = True,
        notification_timeout_seconds: float = 5.0,
    ) -> None:
        self.rate_limiter = rate_limiter
        self.persistence = persistence
        self.dispatcher = dispatcher
        self.rate_limit_enabled = rate_limit_enabled
        self.notifications_enabled = notifications_enabled
        self.notification_timeout_seconds = notification_timeout_seconds

    def _check_rate_limit(
        self, form_type: FormType, raw_input: Mapping[str, Any], client_ip: str
    ) -> None:
        """Raise RateLimitedAppError when either dimension is exhausted."""
        if not self.rate_limit_enabled:
            return

        check = self.rate_limiter.check_policy(
            RATE_LIMIT_POLICIES[form_type],
            client_ip,
            _raw_email(form_type, raw_input),
        )
        if check.success:
            return

        raise RateLimitedAppError(
            code="rate_limited",
            message=check.message or "Too many attempts. Please try again later.",
            details={"reset_time": check.reset_time} if check.reset_time is not None else None,
        )

    def _validate(self, form_type: FormType, raw_input: Mapping[str, Any]) -> SubmissionPayload:
        outcome = validate(form_type, raw_input)
        if isinstance(outcome, ValidationFailed):
            raise ValidationAppError(
                code="validation_failed",
                message=VALIDATION_FAILED_MESSAGE,
                details={"field_errors": outcome.field_errors},
            )
        return outcome.payload

    async def _lookup_tour(self, tour_id: str) -> Mapping[str, Any] | None:
        """Fetch the tour row; any failure degrades to None."""
        try:
            rows = await self.persistence.read(TOURS_TABLE, {"id": tour_id})
        except Exception as exc:  # noqa: BLE001 - a failed lookup only drops the computed total
            logger.warning(
                "submission.tour_lookup_failed",
                extra={"tour_id": tour_id, "error_type": type(exc).__name__},
            )
            return None
        return rows[0] if rows else None

    async def _build_record(self, payload: SubmissionPayload) -> dict[str, Any]:
        if isinstance(payload, TourBookingForm):
            tour = await self._lookup_tour(payload.tour_id) or {}
            price = _price_of(tour)
            return {
                "tour_id": payload.tour_id,
                "tour_name": tour.get("name") or payload.tour_name,
                "customer_name": payload.name,
                "customer_email": payload.email,
                "customer_phone": payload.phone,
                "booking_date": payload.date.isoformat(),
                "number_of_people": payload.guests,
                "total_amount": price * payload.guests if price is not None else None,
                "special_requests": payload.special_requests,
                "status": "pending",
            }

        if isinstance(payload, AirportPickupBase):
            record = payload.model_dump(mode="json")
            record["total_price"] = payload.total_price
            record["status"] = "pending"
            return record

        if isinstance(payload, ContactForm):
            return {
                "name": payload.name,
                "email": payload.email,
                "subject": payload.subject,
                "message": payload.message,
                "status": "new",
            }

        if isinstance(payload, NewsletterForm):
            return {"email": payload.contact_email, "source": "website"}

        raise TypeError(f"Unsupported payload type: {type(payload).__name__}")

    async def _persist(self, form_type: FormType, payload: SubmissionPayload) -> dict[str, Any]:
        """Create the record once; any failure raises PersistenceAppError."""
        table = FORM_TABLES[form_type]
        record = await self._build_record(payload)

        try:
            result = await self.persistence.create(table, record)
        except Exception as exc:  # noqa: BLE001 - adapters should not raise, but any error is fatal here
            logger.error(
                "submission.persistence_failed",
                extra={"form_type": form_type.value, "table": table, "error_type": type(exc).__name__},
            )
            raise PersistenceAppError(
                code="persistence_failed",
                message=PERSISTENCE_FAILED_MESSAGE,
                details={"table": table},
            ) from exc

        if not result.ok:
            logger.error(
                "submission.persistence_failed",
                extra={"form_type": form_type.value, "table": table, "error_msg": result.error},
            )
            raise PersistenceAppError(
                code="persistence_failed",
                message=PERSISTENCE_FAILED_MESSAGE,
                details={"table": table},
            )

        logger.info(
            "submission.persisted",
            extra={"form_type": form_type.value, "table": table, "record_id": result.data.get("id")},
        )
        return result.data

    async def _notify(self, form_type: FormType, record: Mapping[str, Any]) -> None:
        """Dispatch one notification and wait for it only to log the outcome."""
        if not self.notifications_enabled:
            logger.debug("notification.skipped", extra={"form_type": form_type.value})
            return

        record_id = record.get("id")
        try:
            result = await asyncio.wait_for(
                self.dispatcher.dispatch(form_type, record),
                timeout=self.notification_timeout_seconds,
            )
        except asyncio.TimeoutError:
            logger.warning(
                "notification.timeout",
                extra={
                    "form_type": form_type.value,
                    "record_id": record_id,
                    "timeout_s": self.notification_timeout_seconds,
                },
            )
            return
        except Exception as exc:  # noqa: BLE001 - notification never fails a submission
            logger.error(
                "notification.failed",
                extra={"form_type": form_type.value, "record_id": record_id, "error_type": type(exc).__name__},
            )
            return

        if not result.success:
            logger.debug(
                "submission.notification_failed",
                extra={"form_type": form_type.value, "record_id": record_id, "reason": result.message},
            )

    async def submit(
        self,
        form_type: FormType | str,
        raw_input: Mapping[str, Any] | None,
        client_ip: str | None,
    ) -> SubmissionResult:
        """Run one submission through every stage.

        Args:
            form_type: Which form was submitted.
            raw_input: Decoded request body (untrusted).
            client_ip: Caller IP used for the IP rate-limit dimension.

        Returns:
            SubmissionResult describing success or the first failing stage.
        """
        form_type = FormType(form_type)
        data: Mapping[str, Any] = raw_input if isinstance(raw_input, Mapping) else {}
        ip = client_ip or "unknown"

        try:
            self._check_rate_limit(form_type, data, ip)
            payload = self._validate(form_type, data)
            record = await self._persist(form_type, payload)
        except RateLimitedAppError as exc:
            logger.info(
                "submission.rate_limited",
                extra={"form_type": form_type.value, "ip_hash": hash_identifier(ip)},
            )
            return SubmissionResult(
                success=False,
                message=exc.message,
                rate_limited=True,
                reset_time=(exc.details or {}).get("reset_time"),
                error_code=exc.code,
            )
        except ValidationAppError as exc:
            field_errors = (exc.details or {}).get("field_errors", {})
            logger.info(
                "submission.validation_failed",
                extra={"form_type": form_type.value, "fields": sorted(field_errors)},
            )
            return SubmissionResult(
                success=False,
                message=exc.message,
                field_errors=field_errors,
                error_code=exc.code,
            )
        except PersistenceAppError as exc:
            return SubmissionResult(success=False, message=exc.message, error_code=exc.code)

        await self._notify(form_type, record)

        return SubmissionResult(
            success=True,
            message=SUCCESS_MESSAGES[form_type],
            record=record,
        )

    async def submit_tour_booking(self, raw_input: Mapping[str, Any] | None, client_ip: str | None) -> SubmissionResult:
        return await self.submit(FormType.TOUR_BOOKING, raw_input, client_ip)

    async def submit_airport_pickup(self, raw_input: Mapping[str, Any] | None, client_ip: str | None) -> SubmissionResult:
        return await self.submit(FormType.AIRPORT_PICKUP, raw_input, client_ip)

    async def submit_contact(self, raw_input: Mapping[str, Any] | None, client_ip: str | None) -> SubmissionResult:
        return await self.submit(FormType.CONTACT, raw_input, client_ip)

    async def subscribe_newsletter(self, raw_input: Mapping[str, Any] | None, client_ip: str | None) -> SubmissionResult:
        return await self.submit(FormType.NEWSLETTER, raw_input, client_ip)


_pipeline: SubmissionPipeline | None = None


def build_submission_pipeline() -> SubmissionPipeline:
    """Wire the pipeline from settings and the process-wide rate limiter."""

    return SubmissionPipeline(
        rate_limiter=get_rate_limiter(),
        persistence=create_persistence(),
        dispatcher=NotificationDispatcher(create_notifier()),
        rate_limit_enabled=settings.app.rate_limit_enabled,
        notifications_enabled=settings.app.notifications_enabled,
        notification_timeout_seconds=settings.app.notification_timeout_seconds,
    )


def get_submission_pipeline() -> SubmissionPipeline:
    """FastAPI dependency returning the cached pipeline instance."""

    global _pipeline

    if _pipeline is None:
        _pipeline = build_submission_pipeline()

    return _pipeline
