"""Notification formatting and best-effort dispatch.

Formatters turn a persisted record into a sectioned Telegram-Markdown message:
request details, then contact details, then an action-required footer. They
are pure and total: every optional field has a placeholder, so rendering never
fails on missing data.

The dispatcher sends exactly one message per call and never raises; callers
only ever see a DispatchResult.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Callable, Mapping

from tour_forms.adapters.notify.base import AbstractNotifier
from tour_forms.core.errors import NotificationAppError
from tour_forms.schemas.forms import FormType

logger = logging.getLogger(__name__)

PLACEHOLDER = "N/A"
DIVIDER = "------------------------------------"

SUBJECT_EMOJI = {
    "Tour Inquiry": "🎫",
    "Booking Question": "❓",
    "Custom Tour Request": "✨",
    "General Question": "💬",
}

# Characters with meaning in Telegram's legacy Markdown parse mode.
_MARKDOWN_SPECIALS = ("\\", "_", "*", "`", "[")


@dataclass(frozen=True)
class NotificationMessage:
    text: str
    destination: str | None


@dataclass(frozen=True)
class DispatchResult:
    success: bool
    message: str


def escape_markdown(value: str) -> str:
    """Escape user-supplied text for Telegram legacy Markdown."""

    for char in _MARKDOWN_SPECIALS:
        value = value.replace(char, f"\\{char}")
    return value


def _text(record: Mapping[str, Any], key: str, placeholder: str = PLACEHOLDER) -> str:
    value = record.get(key)
    if value is None or (isinstance(value, str) and not value.strip()):
        return placeholder
    return escape_markdown(str(value))


def _parse_date(value: Any) -> date | None:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str) and len(value) >= 10:
        try:
            return date.fromisoformat(value[:10])
        except ValueError:
            return None
    return None


def format_long_date(value: Any, placeholder: str = PLACEHOLDER) -> str:
    """Render a date like ``Saturday, October 18, 2026``."""

    parsed = _parse_date(value)
    if parsed is None:
        return placeholder if value in (None, "") else escape_markdown(str(value))
    return f"{parsed:%A, %B} {parsed.day}, {parsed.year}"


def format_currency(value: Any, placeholder: str = "Pending confirmation") -> str:
    try:
        amount = float(value)
    except (TypeError, ValueError):
        return placeholder
    return f"${amount:,.2f}"


def format_tour_booking(record: Mapping[str, Any]) -> str:
    phone = _text(record, "customer_phone")
    lines = [
        "🌴 *Mystic Tours - New Booking!* 🌴",
        "",
        "A new booking has been requested. Please review the details below.",
        "",
        "🎫 *Booking Details*",
        DIVIDER,
        f"🗺️ *Tour:* {_text(record, 'tour_name', 'Unknown tour')}",
        f"🗓️ *Date:* {format_long_date(record.get('booking_date'))}",
        f"🧑‍🤝‍🧑 *Guests:* {_text(record, 'number_of_people')}",
        f"💰 *Total Amount:* *{format_currency(record.get('total_amount'))}*",
    ]
    if record.get("special_requests"):
        lines.append(f"📝 *Special Requests:* {_text(record, 'special_requests')}")
    lines += [
        f"🆔 *Booking ID:* `{record.get('id') or PLACEHOLDER}`",
        DIVIDER,
        "",
        "👤 *Customer Info*",
        DIVIDER,
        f"🧑 *Name:* {_text(record, 'customer_name')}",
        f"📞 *Phone:* `{phone}`",
        f"✉️ *Email:* {_text(record, 'customer_email')}",
        DIVIDER,
        "",
        "*🚨 ACTION REQUIRED 🚨*",
        f"Please call the customer at *{phone}* to confirm the booking and discuss payment options.",
        "",
        "🤖 _Mystic Booking Bot_",
    ]
    return "\n".join(lines)


def format_airport_pickup(record: Mapping[str, Any]) -> str:
    service_type = str(record.get("service_type") or "")
    phone = _text(record, "customer_phone")
    lines = [
        "🚐 *Airport Transfer Request* ✈️",
        "",
        "🚐 *Transfer Details*",
        DIVIDER,
        f"🛠️ *Service Type:* {escape_markdown(service_type.capitalize()) or PLACEHOLDER}",
        f"🧑‍🤝‍🧑 *Passengers:* {_text(record, 'passengers')}",
        f"💰 *Total Price:* *{format_currency(record.get('total_price'))}*",
    ]
    if record.get("notes"):
        lines.append(f"📝 *Notes:* {_text(record, 'notes')}")
    lines.append(f"🆔 *Booking ID:* `{record.get('id') or PLACEHOLDER}`")
    lines.append(DIVIDER)

    if service_type in ("pickup", "both"):
        lines += [
            "",
            "*Arrival Details*",
            f"Flight: `{_text(record, 'flight_number')}`",
            f"Date: {format_long_date(record.get('arrival_date'))}",
            f"Time: {_text(record, 'arrival_time')}",
            f"Drop-off: {_text(record, 'dropoff_location')}",
        ]
    if service_type in ("dropoff", "both"):
        lines += [
            "",
            "*Departure Details*",
            f"Flight: `{_text(record, 'departure_flight_number')}`",
            f"Date: {format_long_date(record.get('departure_date'))}",
            f"Time: {_text(record, 'departure_time')}",
            f"Pickup: {_text(record, 'pickup_location')}",
        ]

    reach = phone if record.get("customer_phone") else _text(record, "customer_email")
    lines += [
        "",
        "👤 *Customer Info*",
        DIVIDER,
        f"🧑 *Name:* {_text(record, 'customer_name')}",
        f"📞 *Phone:* `{phone}`",
        f"✉️ *Email:* {_text(record, 'customer_email')}",
        DIVIDER,
        "",
        "*🚨 ACTION REQUIRED 🚨*",
        f"Confirm booking with customer at `{reach}`.",
        "",
        "🤖 _Mystic Booking Bot_",
    ]
    return "\n".join(lines)


def format_contact(record: Mapping[str, Any]) -> str:
    subject = str(record.get("subject") or "")
    emoji = SUBJECT_EMOJI.get(subject, "📧")
    # Message body goes inside a code block, where only backticks are special.
    body = str(record.get("message") or PLACEHOLDER).replace("`", "'")
    lines = [
        f"{emoji} *Contact Form Submission* 📝",
        "",
        "A new message has been received through the contact form.",
        "",
        "*📋 Message Details*",
        DIVIDER,
        f"{emoji} *Subject:* {_text(record, 'subject')}",
        f"🆔 *Message ID:* `{record.get('id') or PLACEHOLDER}`",
        DIVIDER,
        "",
        "*💬 Message:*",
        "```",
        body,
        "```",
        "",
        "👤 *Contact Info*",
        DIVIDER,
        f"🧑 *Name:* {_text(record, 'name')}",
        f"✉️ *Email:* {_text(record, 'email')}",
        DIVIDER,
        "",
        "*🚨 ACTION REQUIRED 🚨*",
        f"Please respond to the customer at *{_text(record, 'email')}*.",
        "",
        "🤖 _Mystic Contact Bot_",
    ]
    return "\n".join(lines)


def format_newsletter(record: Mapping[str, Any]) -> str:
    lines = [
        "📧 *New Newsletter Subscription* 🌴",
        "",
        "Someone just joined the Island Mystic Tours tribe!",
        "",
        "*📋 Subscription Details*",
        DIVIDER,
        f"📅 *Date:* {format_long_date(record.get('created_at'))}",
        f"📍 *Source:* {_text(record, 'source', 'Website Newsletter Form')}",
        f"🆔 *Subscriber ID:* `{record.get('id') or PLACEHOLDER}`",
        DIVIDER,
        "",
        "👤 *Subscriber*",
        DIVIDER,
        f"✉️ *Email:* {_text(record, 'email')}",
        DIVIDER,
        "",
        "*📝 ACTIONS TO TAKE*",
        "✅ Add email to newsletter list",
        "✅ Send welcome email with travel tips",
        "✅ Include in future tour promotions",
        "",
        "🤖 _Mystic Newsletter Bot_",
    ]
    return "\n".join(lines)


FORMATTERS: dict[FormType, Callable[[Mapping[str, Any]], str]] = {
    FormType.TOUR_BOOKING: format_tour_booking,
    FormType.AIRPORT_PICKUP: format_airport_pickup,
    FormType.CONTACT: format_contact,
    FormType.NEWSLETTER: format_newsletter,
}


class NotificationDispatcher:
    """Render a record and hand it to the notifier once.

    Attributes:
        notifier: Outbound transport.
    """

    def __init__(self, notifier: AbstractNotifier) -> None:
        self.notifier = notifier

    def render(self, kind: FormType | str, record: Mapping[str, Any]) -> NotificationMessage:
        formatter = FORMATTERS[FormType(kind)]
        return NotificationMessage(text=formatter(record), destination=self.notifier.destination)

    async def dispatch(self, kind: FormType | str, record: Mapping[str, Any]) -> DispatchResult:
        """Format and send one notification; always resolves.

        Args:
            kind: Form type that produced the record.
            record: Persisted record (must carry ``id`` for traceability).

        Returns:
            DispatchResult; success=False carries the reason.
        """
        record_id = record.get("id")
        kind_name = kind.value if isinstance(kind, FormType) else str(kind)
        try:
            message = self.render(kind, record)
            response = await self.notifier.send(message.text)
            if not response.ok:
                raise NotificationAppError(
                    code="notification_failed",
                    message=response.description or "Notification was not delivered",
                )
        except NotificationAppError as exc:
            logger.warning(
                "notification.failed",
                extra={
                    "kind": kind_name,
                    "record_id": record_id,
                    "reason": exc.message,
                },
            )
            return DispatchResult(success=False, message=exc.message)
        except Exception as exc:  # noqa: BLE001 - delivery is best-effort
            logger.error(
                "notification.failed",
                extra={
                    "kind": kind_name,
                    "record_id": record_id,
                    "error_type": type(exc).__name__,
                    "error_msg": str(exc),
                },
            )
            return DispatchResult(success=False, message=f"Notification error: {type(exc).__name__}")

        logger.info(
            "notification.sent",
            extra={"kind": kind_name, "record_id": record_id},
        )
        return DispatchResult(
            success=True,
            message=response.description or "Notification sent",
        )
