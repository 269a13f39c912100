"""Pytest configuration and fixtures shared across all test modules.

This file is automatically loaded by pytest before running any tests.
It pins the environment so settings never pick up real Telegram or
Supabase credentials from the developer's shell or .env files.
"""

import os

# CRITICAL: Set this before any imports that might load settings
os.environ["APP_ENV"] = "testing"
os.environ["STORAGE_BACKEND"] = "memory"
os.environ.setdefault("LOG_LEVEL", "WARNING")
for _name in ("TELEGRAM_BOT_TOKEN", "TELEGRAM_CHAT_ID"):
    os.environ.pop(_name, None)

from datetime import date, timedelta  # noqa: E402

import pytest  # noqa: E402

from tour_forms.core import rate_limit as rate_limit_module  # noqa: E402
from tour_forms.services import submission_service  # noqa: E402


@pytest.fixture(autouse=True)
def reset_process_state():
    """Give every test empty rate-limit counters and a fresh pipeline."""
    rate_limit_module.reset_rate_limiter()
    submission_service._pipeline = None
    yield
    rate_limit_module.reset_rate_limiter()
    submission_service._pipeline = None


@pytest.fixture
def future_date() -> str:
    """An ISO date one week from today."""
    return (date.today() + timedelta(days=7)).isoformat()


@pytest.fixture
def tour_booking_input(future_date: str) -> dict:
    return {
        "tour_id": "t1",
        "tour_name": "Sunset Cruise",
        "date": future_date,
        "guests": 2,
        "name": "John Doe",
        "email": "john@example.com",
        "phone": "5551234567",
    }


@pytest.fixture
def pickup_input(future_date: str) -> dict:
    return {
        "service_type": "pickup",
        "customer_name": "Ana Silva",
        "customer_email": "ana@example.com",
        "customer_phone": "5559876543",
        "passengers": 3,
        "flight_number": "AA123",
        "arrival_date": future_date,
        "arrival_time": "14:30",
        "dropoff_location": "Hotel Paradise",
    }


@pytest.fixture
def contact_input() -> dict:
    return {
        "name": "Mary Jones",
        "email": "mary@example.com",
        "subject": "Tour Inquiry",
        "message": "Do you offer private snorkeling tours?",
    }
