"""Tests for form schemas and the validation service."""

from datetime import date, timedelta

import pytest

from tour_forms.schemas.forms import (
    ContactForm,
    DropoffRequest,
    FormType,
    NewsletterForm,
    PickupRequest,
    RoundTripRequest,
    TourBookingForm,
)
from tour_forms.services.validation import ValidationFailed, ValidationOk, validate


def _days(n: int) -> str:
    return (date.today() + timedelta(days=n)).isoformat()


class TestTourBooking:
    def test_valid_booking(self, tour_booking_input: dict):
        outcome = validate(FormType.TOUR_BOOKING, tour_booking_input)

        assert isinstance(outcome, ValidationOk)
        assert outcome.ok is True
        assert isinstance(outcome.payload, TourBookingForm)
        assert outcome.payload.guests == 2

    def test_accepts_form_type_string(self, tour_booking_input: dict):
        assert validate("tour_booking", tour_booking_input).ok is True

    @pytest.mark.parametrize("offset", [0, -1, -30])
    def test_date_today_or_past_rejected(self, tour_booking_input: dict, offset: int):
        tour_booking_input["date"] = _days(offset)

        outcome = validate(FormType.TOUR_BOOKING, tour_booking_input)

        assert isinstance(outcome, ValidationFailed)
        assert outcome.field_errors == {"date": "Booking date must be in the future"}

    def test_datetime_input_is_truncated_to_date(self, tour_booking_input: dict):
        tour_booking_input["date"] = f"{_days(3)}T00:00:00.000Z"

        outcome = validate(FormType.TOUR_BOOKING, tour_booking_input)

        assert outcome.ok is True
        assert outcome.payload.date.isoformat() == _days(3)

    @pytest.mark.parametrize(("guests", "ok"), [(0, False), (1, True), (20, True), (21, False)])
    def test_guest_bounds(self, tour_booking_input: dict, guests: int, ok: bool):
        tour_booking_input["guests"] = guests

        outcome = validate(FormType.TOUR_BOOKING, tour_booking_input)

        assert outcome.ok is ok
        if not ok:
            assert set(outcome.field_errors) == {"guests"}

    def test_short_name_rejected(self, tour_booking_input: dict):
        tour_booking_input["name"] = " J "

        outcome = validate(FormType.TOUR_BOOKING, tour_booking_input)

        assert outcome.field_errors == {"name": "Name must be at least 2 characters"}

    def test_long_name_rejected(self, tour_booking_input: dict):
        tour_booking_input["name"] = "x" * 101

        assert "name" in validate(FormType.TOUR_BOOKING, tour_booking_input).field_errors

    def test_short_phone_rejected(self, tour_booking_input: dict):
        tour_booking_input["phone"] = "555-123"

        outcome = validate(FormType.TOUR_BOOKING, tour_booking_input)

        assert outcome.field_errors == {"phone": "Phone number must be at least 10 characters"}

    def test_bad_email_rejected(self, tour_booking_input: dict):
        tour_booking_input["email"] = "not-an-email"

        outcome = validate(FormType.TOUR_BOOKING, tour_booking_input)

        assert set(outcome.field_errors) == {"email"}

    def test_missing_fields_use_required_messages(self):
        outcome = validate(FormType.TOUR_BOOKING, {"tour_id": ""})

        assert outcome.field_errors["tour_id"] == "Please select a tour."
        assert outcome.field_errors["email"] == "Your email is required."
        assert outcome.field_errors["date"] == "Please select a booking date."
        assert "special_requests" not in outcome.field_errors

    def test_none_input_reports_every_required_field(self):
        outcome = validate(FormType.TOUR_BOOKING, None)

        assert set(outcome.field_errors) == {
            "tour_id", "tour_name", "date", "guests", "name", "email", "phone",
        }

    def test_unknown_form_type_raises(self):
        with pytest.raises(ValueError):
            validate("survey", {})


class TestAirportPickup:
    def test_valid_pickup(self, pickup_input: dict):
        outcome = validate(FormType.AIRPORT_PICKUP, pickup_input)

        assert isinstance(outcome.payload, PickupRequest)
        assert outcome.payload.total_price == 75.0

    def test_valid_dropoff(self):
        outcome = validate(
            FormType.AIRPORT_PICKUP,
            {
                "service_type": "dropoff",
                "customer_name": "Ana Silva",
                "customer_email": "ana@example.com",
                "passengers": 1,
                "departure_flight_number": "UA9",
                "departure_date": _days(10),
                "departure_time": "08:00",
                "pickup_location": "Villa Azul",
            },
        )

        assert isinstance(outcome.payload, DropoffRequest)
        assert outcome.payload.customer_phone is None
        assert outcome.payload.total_price == 75.0

    def test_round_trip_price_is_flat(self, pickup_input: dict):
        pickup_input.update(
            service_type="both",
            passengers=10,
            departure_flight_number="AA456",
            departure_date=_days(14),
            departure_time="10:00",
            pickup_location="Hotel Paradise",
        )

        outcome = validate(FormType.AIRPORT_PICKUP, pickup_input)

        assert isinstance(outcome.payload, RoundTripRequest)
        assert outcome.payload.total_price == 140.0

    def test_round_trip_missing_departure_flight(self, pickup_input: dict):
        pickup_input.update(
            service_type="both",
            departure_date=_days(14),
            departure_time="10:00",
            pickup_location="Hotel Paradise",
        )

        outcome = validate(FormType.AIRPORT_PICKUP, pickup_input)

        assert outcome.field_errors == {
            "departure_flight_number": "Departure flight number is required for round trip.",
        }

    def test_pickup_requires_arrival_fields(self, pickup_input: dict):
        pickup_input["flight_number"] = "   "
        del pickup_input["dropoff_location"]

        outcome = validate(FormType.AIRPORT_PICKUP, pickup_input)

        assert outcome.field_errors == {
            "flight_number": "Arrival flight number is required for airport pickup.",
            "dropoff_location": "Drop-off location is required for airport pickup.",
        }

    def test_pickup_ignores_departure_fields(self, pickup_input: dict):
        pickup_input["departure_date"] = ""

        assert validate(FormType.AIRPORT_PICKUP, pickup_input).ok is True

    @pytest.mark.parametrize("offset", [-1, 366])
    def test_service_date_window(self, pickup_input: dict, offset: int):
        pickup_input["arrival_date"] = _days(offset)

        outcome = validate(FormType.AIRPORT_PICKUP, pickup_input)

        assert outcome.field_errors == {
            "arrival_date": "Date must be between today and one year from now.",
        }

    def test_service_date_today_allowed(self, pickup_input: dict):
        pickup_input["arrival_date"] = _days(0)

        assert validate(FormType.AIRPORT_PICKUP, pickup_input).ok is True

    @pytest.mark.parametrize("passengers", [0, 11])
    def test_passenger_bounds(self, pickup_input: dict, passengers: int):
        pickup_input["passengers"] = passengers

        assert set(validate(FormType.AIRPORT_PICKUP, pickup_input).field_errors) == {"passengers"}

    @pytest.mark.parametrize("service_type", [None, "", "shuttle", 3])
    def test_invalid_service_type(self, pickup_input: dict, service_type):
        pickup_input["service_type"] = service_type

        outcome = validate(FormType.AIRPORT_PICKUP, pickup_input)

        assert outcome.field_errors == {"service_type": "Please choose pickup, dropoff, or both."}

    def test_blank_optional_phone_becomes_none(self, pickup_input: dict):
        pickup_input["customer_phone"] = ""

        outcome = validate(FormType.AIRPORT_PICKUP, pickup_input)

        assert outcome.payload.customer_phone is None

    def test_short_optional_phone_rejected(self, pickup_input: dict):
        pickup_input["customer_phone"] = "12345"

        assert set(validate(FormType.AIRPORT_PICKUP, pickup_input).field_errors) == {"customer_phone"}


class TestContactAndNewsletter:
    def test_valid_contact(self, contact_input: dict):
        outcome = validate(FormType.CONTACT, contact_input)

        assert isinstance(outcome.payload, ContactForm)

    def test_unknown_subject_rejected(self, contact_input: dict):
        contact_input["subject"] = "Complaint"

        assert set(validate(FormType.CONTACT, contact_input).field_errors) == {"subject"}

    @pytest.mark.parametrize(
        ("message", "error"),
        [
            ("too short", "Message must be at least 10 characters"),
            ("x" * 1001, "Message must be at most 1000 characters"),
        ],
    )
    def test_message_length(self, contact_input: dict, message: str, error: str):
        contact_input["message"] = message

        assert validate(FormType.CONTACT, contact_input).field_errors == {"message": error}

    def test_newsletter_email_only(self):
        outcome = validate(FormType.NEWSLETTER, {"email": "Fan@Example.com", "extra": "ignored"})

        assert isinstance(outcome.payload, NewsletterForm)
        assert outcome.payload.contact_email == "fan@example.com"

    def test_newsletter_missing_email(self):
        outcome = validate(FormType.NEWSLETTER, {})

        assert outcome.field_errors == {"email": "Please enter a valid email address"}
