"""Unit tests for the multi-key rate limiter."""

import re
from unittest.mock import Mock

import pytest

from tour_forms.adapters.rate_limit import InMemoryRateLimitStore
from tour_forms.core.rate_limit import (
    AIRPORT_PICKUP_POLICY,
    ALREADY_SUBSCRIBED_MESSAGE,
    CONTACT_FORM_POLICY,
    NEWSLETTER_POLICY,
    TOUR_BOOKING_POLICY,
    RateLimiter,
    get_rate_limiter,
    reset_rate_limiter,
)


@pytest.fixture
def clock() -> Mock:
    return Mock(return_value=1000.0)


@pytest.fixture
def store() -> InMemoryRateLimitStore:
    return InMemoryRateLimitStore()


@pytest.fixture
def limiter(store: InMemoryRateLimitStore, clock: Mock) -> RateLimiter:
    return RateLimiter(store, clock=clock)


def test_allows_up_to_limit_with_decreasing_remaining(limiter: RateLimiter) -> None:
    remaining = [limiter.check_rate_limit("act", "id", 3, 60).remaining for _ in range(3)]

    assert remaining == [2, 1, 0]


def test_blocks_the_call_after_the_limit(limiter: RateLimiter) -> None:
    for _ in range(3):
        assert limiter.check_rate_limit("act", "id", 3, 60).success is True

    blocked = limiter.check_rate_limit("act", "id", 3, 60)
    assert blocked.success is False
    assert blocked.remaining == 0
    assert blocked.reset_time == 1060.0


def test_rejected_calls_never_increment(limiter: RateLimiter, store: InMemoryRateLimitStore) -> None:
    results = [limiter.check_rate_limit("act", "id", 2, 600) for _ in range(7)]

    assert [r.success for r in results] == [True, True] + [False] * 5
    assert all(r.remaining >= 0 for r in results)
    assert len({r.message for r in results[2:]}) == 1
    assert store.get("act:id").attempts == 2


def test_blocked_message_reports_whole_minutes(limiter: RateLimiter, clock: Mock) -> None:
    limiter.check_rate_limit("act", "id", 1, 600)
    clock.return_value = 1000.0 + 90  # 510s left -> 9 minutes

    blocked = limiter.check_rate_limit("act", "id", 1, 600)

    assert blocked.message == "Too many attempts. Please try again in 9 minutes."


def test_blocked_message_never_says_zero_minutes(limiter: RateLimiter, clock: Mock) -> None:
    limiter.check_rate_limit("act", "id", 1, 60)
    clock.return_value = 1060.0  # exactly at reset_time, window still live

    blocked = limiter.check_rate_limit("act", "id", 1, 60)

    assert blocked.success is False
    assert "in 1 minutes" in blocked.message


def test_fresh_window_after_reset_time(limiter: RateLimiter, clock: Mock, store: InMemoryRateLimitStore) -> None:
    for _ in range(5):
        limiter.check_rate_limit("act", "id", 2, 60)

    clock.return_value = 1060.5
    result = limiter.check_rate_limit("act", "id", 2, 60)

    assert result.success is True
    assert result.remaining == 1
    assert result.reset_time == 1120.5
    assert store.get("act:id").window_start == 1060.5


def test_window_is_anchored_to_first_attempt(limiter: RateLimiter, clock: Mock) -> None:
    limiter.check_rate_limit("act", "id", 2, 60)
    clock.return_value = 1050.0
    second = limiter.check_rate_limit("act", "id", 2, 60)

    assert second.reset_time == 1060.0


def test_isolated_by_action_and_identifier(limiter: RateLimiter) -> None:
    assert limiter.check_rate_limit("act", "a", 1, 60).success is True
    assert limiter.check_rate_limit("act", "a", 1, 60).success is False

    assert limiter.check_rate_limit("act", "b", 1, 60).success is True
    assert limiter.check_rate_limit("other", "a", 1, 60).success is True


@pytest.mark.parametrize(
    "args",
    [
        ("", "id", 1, 60),
        ("act", "", 1, 60),
        ("act", "id", 0, 60),
        ("act", "id", 1, 0),
    ],
)
def test_invalid_args(limiter: RateLimiter, args: tuple) -> None:
    with pytest.raises(ValueError):
        limiter.check_rate_limit(*args)


@pytest.mark.parametrize(
    ("policy", "ip_limit", "ip_window", "email_limit", "email_window"),
    [
        (TOUR_BOOKING_POLICY, 3, 600, 2, 300),
        (AIRPORT_PICKUP_POLICY, 5, 900, 3, 600),
        (CONTACT_FORM_POLICY, 8, 600, 5, 600),
        (NEWSLETTER_POLICY, 10, 3600, 1, 3600),
    ],
)
def test_policy_thresholds(policy, ip_limit, ip_window, email_limit, email_window) -> None:
    assert (policy.ip.max_attempts, policy.ip.window_seconds) == (ip_limit, ip_window)
    assert (policy.email.max_attempts, policy.email.window_seconds) == (email_limit, email_window)


def test_composite_remaining_is_min_of_dimensions(limiter: RateLimiter) -> None:
    first = limiter.check_tour_booking_rate_limit("1.1.1.1", "a@b.com")

    # ip: 3 - 1 = 2, email: 2 - 1 = 1
    assert first.success is True
    assert first.remaining == 1


def test_composite_email_dimension_blocks_across_ips(limiter: RateLimiter) -> None:
    assert limiter.check_tour_booking_rate_limit("1.1.1.1", "a@b.com").success is True
    assert limiter.check_tour_booking_rate_limit("2.2.2.2", "a@b.com").success is True

    blocked = limiter.check_tour_booking_rate_limit("3.3.3.3", "a@b.com")
    assert blocked.success is False
    assert blocked.message.startswith("Too many attempts.")


def test_composite_email_is_case_insensitive(limiter: RateLimiter) -> None:
    limiter.check_tour_booking_rate_limit("1.1.1.1", "A@B.com")
    limiter.check_tour_booking_rate_limit("2.2.2.2", " a@b.COM ")

    assert limiter.check_tour_booking_rate_limit("3.3.3.3", "a@b.com").success is False


def test_ip_rejection_leaves_email_counter_untouched(limiter: RateLimiter, store: InMemoryRateLimitStore) -> None:
    for i in range(3):
        assert limiter.check_tour_booking_rate_limit("1.1.1.1", f"user{i}@x.com").success is True

    blocked = limiter.check_tour_booking_rate_limit("1.1.1.1", "fresh@x.com")
    assert blocked.success is False
    assert store.get("tour_booking_email:fresh@x.com") is None

    # The email still has its full quota from another IP.
    allowed = limiter.check_tour_booking_rate_limit("9.9.9.9", "fresh@x.com")
    assert allowed.success is True
    assert store.get("tour_booking_email:fresh@x.com").attempts == 1


def test_composite_without_email_checks_ip_only(limiter: RateLimiter, store: InMemoryRateLimitStore) -> None:
    result = limiter.check_contact_form_rate_limit("1.1.1.1", None)

    assert result.success is True
    assert len(store) == 1


def test_newsletter_allows_one_signup_per_email(limiter: RateLimiter) -> None:
    assert limiter.check_newsletter_rate_limit("1.1.1.1", "fan@x.com").success is True

    second = limiter.check_newsletter_rate_limit("2.2.2.2", "fan@x.com")
    assert second.success is False
    assert second.message == ALREADY_SUBSCRIBED_MESSAGE
    assert second.reset_time == 1000.0 + 3600


def test_newsletter_ip_rejection_uses_generic_message(limiter: RateLimiter) -> None:
    for i in range(10):
        assert limiter.check_newsletter_rate_limit("1.1.1.1", f"u{i}@x.com").success is True

    blocked = limiter.check_newsletter_rate_limit("1.1.1.1", "another@x.com")
    assert blocked.success is False
    assert re.search(r"try again in \d+ minutes", blocked.message)


def test_airport_pickup_limits(limiter: RateLimiter) -> None:
    for i in range(3):
        assert limiter.check_airport_pickup_rate_limit(f"10.0.0.{i}", "ana@x.com").success is True
    assert limiter.check_airport_pickup_rate_limit("10.0.0.9", "ana@x.com").success is False


def test_module_limiter_is_cached_until_reset() -> None:
    first = get_rate_limiter()
    assert get_rate_limiter() is first

    reset_rate_limiter()
    assert get_rate_limiter() is not first
