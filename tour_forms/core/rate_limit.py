"""Multi-key fixed-window rate limiting for public submission forms.

Every form action is throttled on two independent dimensions: the caller's IP
address and the submitted email address. A submission is allowed only when
both dimensions still have quota. The IP dimension is evaluated first; when it
rejects, the email dimension is not consulted and so is not incremented.

Counters live in an injected ``RateLimitStore``. The default store is a
single in-process map, which is sufficient for a single server instance; a
horizontally scaled deployment would see independent limits per instance.
"""

from __future__ import annotations

import logging
import math
import threading
import time
from dataclasses import dataclass
from typing import Callable

from tour_forms.adapters.rate_limit.base import (
    RateLimitCheck,
    RateLimitEntry,
    RateLimitStore,
    build_key,
)
from tour_forms.adapters.rate_limit.in_memory import InMemoryRateLimitStore
from tour_forms.core.logging import hash_identifier

logger = logging.getLogger(__name__)

MINUTE = 60.0

ALREADY_SUBSCRIBED_MESSAGE = (
    "This email is already subscribed. Please check your inbox for our newsletter."
)


@dataclass(frozen=True)
class RateLimitRule:
    """Threshold for one action (one dimension of a form policy)."""

    action: str
    max_attempts: int
    window_seconds: float


@dataclass(frozen=True)
class FormRateLimitPolicy:
    """IP and email thresholds enforced together for one form.

    Attributes:
        ip: Rule applied to the caller IP address.
        email: Rule applied to the lowercased submitted email.
        email_blocked_message: Replaces the generic message when the email
            dimension rejects (None keeps the generic message).
    """

    ip: RateLimitRule
    email: RateLimitRule
    email_blocked_message: str | None = None


TOUR_BOOKING_POLICY = FormRateLimitPolicy(
    ip=RateLimitRule("tour_booking_ip", max_attempts=3, window_seconds=10 * MINUTE),
    email=RateLimitRule("tour_booking_email", max_attempts=2, window_seconds=5 * MINUTE),
)

AIRPORT_PICKUP_POLICY = FormRateLimitPolicy(
    ip=RateLimitRule("airport_pickup_ip", max_attempts=5, window_seconds=15 * MINUTE),
    email=RateLimitRule("airport_pickup_email", max_attempts=3, window_seconds=10 * MINUTE),
)

CONTACT_FORM_POLICY = FormRateLimitPolicy(
    ip=RateLimitRule("contact_form_ip", max_attempts=8, window_seconds=10 * MINUTE),
    email=RateLimitRule("contact_form_email", max_attempts=5, window_seconds=10 * MINUTE),
)

# One signup per email per hour: a repeat is reported as "already subscribed".
NEWSLETTER_POLICY = FormRateLimitPolicy(
    ip=RateLimitRule("newsletter_ip", max_attempts=10, window_seconds=60 * MINUTE),
    email=RateLimitRule("newsletter_email", max_attempts=1, window_seconds=60 * MINUTE),
    email_blocked_message=ALREADY_SUBSCRIBED_MESSAGE,
)


def _blocked_message(reset_time: float, now: float) -> str:
    minutes = max(1, math.ceil((reset_time - now) / MINUTE))
    return f"Too many attempts. Please try again in {minutes} minutes."


class RateLimiter:
    """Keyed fixed-window counters with lazy expiry.

    Windows open on the first attempt for a key and last ``window_seconds``;
    they are not aligned to wall-clock boundaries.
    """

    def __init__(
        self,
        store: RateLimitStore | None = None,
        *,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """Initialize the limiter.

        Args:
            store: Counter storage; defaults to a fresh in-memory store.
            clock: Time source returning UNIX time in seconds.
        """
        self._store = store if store is not None else InMemoryRateLimitStore()
        self._clock = clock
        # Serializes read-check-increment so concurrent threads never under-count.
        self._lock = threading.RLock()

    @property
    def store(self) -> RateLimitStore:
        return self._store

    def check_rate_limit(
        self,
        action: str,
        identifier: str,
        max_attempts: int,
        window_seconds: float,
    ) -> RateLimitCheck:
        """Count one attempt for ``action``/``identifier`` if quota remains.

        Rejected attempts are not counted, so a blocked caller cannot extend
        their own lockout by retrying.

        Args:
            action: Rate-limited operation name (e.g., "tour_booking_email").
            identifier: IP address or lowercased email.
            max_attempts: Allowed attempts per window.
            window_seconds: Window length in seconds.

        Returns:
            RateLimitCheck with the decision, remaining quota and reset time.

        Raises:
            ValueError: If arguments are invalid.
        """
        if not action or not identifier:
            raise ValueError("action and identifier must be non-empty strings")
        if max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        if window_seconds <= 0:
            raise ValueError("window_seconds must be > 0")

        key = build_key(action, identifier)

        with self._lock:
            now = self._clock()
            self._store.delete_if_expired(key, now)

            entry = self._store.get(key)
            if entry is None:
                entry = RateLimitEntry(
                    key=key,
                    attempts=0,
                    window_start=now,
                    reset_time=now + window_seconds,
                )

            if entry.attempts >= max_attempts:
                return RateLimitCheck(
                    success=False,
                    remaining=0,
                    reset_time=entry.reset_time,
                    message=_blocked_message(entry.reset_time, now),
                )

            entry.attempts += 1
            self._store.set(entry)

            return RateLimitCheck(
                success=True,
                remaining=max_attempts - entry.attempts,
                reset_time=entry.reset_time,
            )

    def check_rule(self, rule: RateLimitRule, identifier: str) -> RateLimitCheck:
        return self.check_rate_limit(
            rule.action, identifier, rule.max_attempts, rule.window_seconds
        )

    def check_policy(
        self,
        policy: FormRateLimitPolicy,
        ip: str,
        email: str | None,
    ) -> RateLimitCheck:
        """Evaluate IP then email dimensions, short-circuiting on rejection.

        Args:
            policy: Thresholds for the form.
            ip: Caller IP address.
            email: Submitted email; the dimension is skipped when empty.

        Returns:
            The first rejecting check, or a success carrying the smaller
            remaining quota of the two dimensions.
        """
        ip_check = self.check_rule(policy.ip, ip or "unknown")
        if not ip_check.success:
            self._log_exceeded(policy.ip, ip or "unknown", ip_check)
            return ip_check

        normalized_email = (email or "").strip().lower()
        if not normalized_email:
            return ip_check

        email_check = self.check_rule(policy.email, normalized_email)
        if not email_check.success:
            self._log_exceeded(policy.email, normalized_email, email_check)
            if policy.email_blocked_message:
                return RateLimitCheck(
                    success=False,
                    remaining=0,
                    reset_time=email_check.reset_time,
                    message=policy.email_blocked_message,
                )
            return email_check

        remaining = min(ip_check.remaining, email_check.remaining)
        logger.debug(
            "rate_limit.allowed",
            extra={
                "ip_action": policy.ip.action,
                "email_action": policy.email.action,
                "remaining": remaining,
            },
        )
        return RateLimitCheck(success=True, remaining=remaining)

    def check_tour_booking_rate_limit(self, ip: str, email: str | None) -> RateLimitCheck:
        return self.check_policy(TOUR_BOOKING_POLICY, ip, email)

    def check_airport_pickup_rate_limit(self, ip: str, email: str | None) -> RateLimitCheck:
        return self.check_policy(AIRPORT_PICKUP_POLICY, ip, email)

    def check_contact_form_rate_limit(self, ip: str, email: str | None) -> RateLimitCheck:
        return self.check_policy(CONTACT_FORM_POLICY, ip, email)

    def check_newsletter_rate_limit(self, ip: str, email: str | None) -> RateLimitCheck:
        return self.check_policy(NEWSLETTER_POLICY, ip, email)

    def _log_exceeded(
        self, rule: RateLimitRule, identifier: str, check: RateLimitCheck
    ) -> None:
        logger.warning(
            "rate_limit.exceeded",
            extra={
                "action": rule.action,
                "identifier_hash": hash_identifier(identifier),
                "limit": rule.max_attempts,
                "window_s": rule.window_seconds,
                "reset_time": check.reset_time,
            },
        )


_limiter: RateLimiter | None = None


def get_rate_limiter() -> RateLimiter:
    """Return the process-wide rate limiter instance.

    The instance is cached in-module to preserve counters across requests.
    """

    global _limiter

    if _limiter is None:
        _limiter = RateLimiter(InMemoryRateLimitStore())

    return _limiter


def reset_rate_limiter() -> None:
    """Drop the cached limiter so the next caller starts with empty counters."""

    global _limiter
    _limiter = None
