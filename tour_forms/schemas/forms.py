"""Pydantic schemas for public submission forms.

Each form is a closed set of payload shapes. Airport pickup is itself a union
of three request variants selected by ``service_type``; the validator picks the
variant model from ``AIRPORT_PICKUP_VARIANTS`` before validating.
"""

from __future__ import annotations

from datetime import date, timedelta
from enum import Enum
from typing import Annotated, Any, ClassVar, Literal

from pydantic import (
    AfterValidator,
    BaseModel,
    BeforeValidator,
    ConfigDict,
    EmailStr,
    Field,
)


class FormType(str, Enum):
    """Discriminator for the four public forms."""

    TOUR_BOOKING = "tour_booking"
    AIRPORT_PICKUP = "airport_pickup"
    CONTACT = "contact"
    NEWSLETTER = "newsletter"


ServiceType = Literal["pickup", "dropoff", "both"]

CONTACT_SUBJECTS = (
    "Tour Inquiry",
    "Booking Question",
    "Custom Tour Request",
    "General Question",
)
ContactSubject = Literal[
    "Tour Inquiry",
    "Booking Question",
    "Custom Tour Request",
    "General Question",
]

# Flat transfer fees in USD; not multiplied by passenger count.
SERVICE_PRICES: dict[str, float] = {
    "pickup": 75.00,
    "dropoff": 75.00,
    "both": 140.00,
}


def _check_name(value: str) -> str:
    if len(value) < 2:
        raise ValueError("Name must be at least 2 characters")
    if len(value) > 100:
        raise ValueError("Name must be at most 100 characters")
    return value


def _check_phone(value: str) -> str:
    if len(value) < 10:
        raise ValueError("Phone number must be at least 10 characters")
    return value


def _check_message(value: str) -> str:
    if len(value) < 10:
        raise ValueError("Message must be at least 10 characters")
    if len(value) > 1000:
        raise ValueError("Message must be at most 1000 characters")
    return value


def _normalize_date_input(value: Any) -> Any:
    # Browsers often submit full ISO datetimes, or "" for untouched pickers.
    if isinstance(value, str):
        value = value.strip()
        if not value:
            return None
        if "T" in value:
            return value.split("T", 1)[0]
    return value


def _blank_to_none(value: Any) -> Any:
    if isinstance(value, str) and not value.strip():
        return None
    return value


def _check_future_date(value: date) -> date:
    if value <= date.today():
        raise ValueError("Booking date must be in the future")
    return value


def _check_service_date(value: date) -> date:
    today = date.today()
    if value < today or value > today + timedelta(days=365):
        raise ValueError("Date must be between today and one year from now.")
    return value


Name = Annotated[str, AfterValidator(_check_name)]
Phone = Annotated[str, AfterValidator(_check_phone)]
OptionalPhone = Annotated[Phone | None, BeforeValidator(_blank_to_none)]
RequiredText = Annotated[str, Field(min_length=1, max_length=200)]
FutureDate = Annotated[date, BeforeValidator(_normalize_date_input), AfterValidator(_check_future_date)]
ServiceDate = Annotated[date, BeforeValidator(_normalize_date_input), AfterValidator(_check_service_date)]
OptionalDate = Annotated[date | None, BeforeValidator(_normalize_date_input)]


class FormModel(BaseModel):
    """Shared configuration for submission payloads."""

    model_config = ConfigDict(str_strip_whitespace=True, extra="ignore")

    # Field name -> message used when the field is missing or blank.
    required_messages: ClassVar[dict[str, str]] = {}
    # Name of the field holding the primary contact email.
    email_field: ClassVar[str] = "email"

    @property
    def contact_email(self) -> str:
        return str(getattr(self, self.email_field)).lower()


class TourBookingForm(FormModel):
    """Tour booking request."""

    required_messages: ClassVar[dict[str, str]] = {
        "tour_id": "Please select a tour.",
        "tour_name": "Please select a tour.",
        "date": "Please select a booking date.",
        "guests": "Please enter the number of guests.",
        "name": "Your name is required.",
        "email": "Your email is required.",
        "phone": "Your phone number is required.",
    }

    tour_id: RequiredText
    tour_name: RequiredText
    date: FutureDate
    guests: int = Field(..., ge=1, le=20)
    name: Name
    email: EmailStr
    phone: Phone
    special_requests: str | None = Field(None, max_length=1000)


class AirportPickupBase(FormModel):
    """Fields common to every airport transfer request."""

    email_field: ClassVar[str] = "customer_email"

    customer_name: Name
    customer_email: EmailStr
    customer_phone: OptionalPhone = None
    passengers: int = Field(..., ge=1, le=10)
    notes: str | None = Field(None, max_length=1000)

    @property
    def total_price(self) -> float:
        return SERVICE_PRICES[self.service_type]  # type: ignore[attr-defined]


class PickupRequest(AirportPickupBase):
    """Arrival only: airport to accommodation."""

    required_messages: ClassVar[dict[str, str]] = {
        "customer_name": "Your name is required.",
        "customer_email": "Your email is required.",
        "passengers": "At least 1 passenger is required.",
        "flight_number": "Arrival flight number is required for airport pickup.",
        "arrival_date": "Arrival date is required for airport pickup.",
        "arrival_time": "Arrival time is required for airport pickup.",
        "dropoff_location": "Drop-off location is required for airport pickup.",
    }

    service_type: Literal["pickup"]
    flight_number: RequiredText
    arrival_date: ServiceDate
    arrival_time: RequiredText
    dropoff_location: RequiredText
    departure_flight_number: str | None = None
    departure_date: OptionalDate = None
    departure_time: str | None = None
    pickup_location: str | None = None


class DropoffRequest(AirportPickupBase):
    """Departure only: accommodation to airport."""

    required_messages: ClassVar[dict[str, str]] = {
        "customer_name": "Your name is required.",
        "customer_email": "Your email is required.",
        "passengers": "At least 1 passenger is required.",
        "departure_flight_number": "Departure flight number is required for airport drop-off.",
        "departure_date": "Departure date is required for airport drop-off.",
        "departure_time": "Departure time is required for airport drop-off.",
        "pickup_location": "Pickup location is required for airport drop-off.",
    }

    service_type: Literal["dropoff"]
    flight_number: str | None = None
    arrival_date: OptionalDate = None
    arrival_time: str | None = None
    dropoff_location: str | None = None
    departure_flight_number: RequiredText
    departure_date: ServiceDate
    departure_time: RequiredText
    pickup_location: RequiredText


class RoundTripRequest(AirportPickupBase):
    """Both legs."""

    required_messages: ClassVar[dict[str, str]] = {
        "customer_name": "Your name is required.",
        "customer_email": "Your email is required.",
        "passengers": "At least 1 passenger is required.",
        "flight_number": "Arrival flight number is required for round trip.",
        "arrival_date": "Arrival date is required for round trip.",
        "arrival_time": "Arrival time is required for round trip.",
        "dropoff_location": "Drop-off location is required for round trip.",
        "departure_flight_number": "Departure flight number is required for round trip.",
        "departure_date": "Departure date is required for round trip.",
        "departure_time": "Departure time is required for round trip.",
        "pickup_location": "Pickup location is required for round trip.",
    }

    service_type: Literal["both"]
    flight_number: RequiredText
    arrival_date: ServiceDate
    arrival_time: RequiredText
    dropoff_location: RequiredText
    departure_flight_number: RequiredText
    departure_date: ServiceDate
    departure_time: RequiredText
    pickup_location: RequiredText


AirportPickupForm = PickupRequest | DropoffRequest | RoundTripRequest

AIRPORT_PICKUP_VARIANTS: dict[str, type[AirportPickupBase]] = {
    "pickup": PickupRequest,
    "dropoff": DropoffRequest,
    "both": RoundTripRequest,
}


class ContactForm(FormModel):
    """Contact page inquiry."""

    required_messages: ClassVar[dict[str, str]] = {
        "name": "Your name is required.",
        "email": "Your email is required.",
        "subject": "Please select a subject",
        "message": "Please enter a message.",
    }

    name: Name
    email: EmailStr
    subject: ContactSubject
    message: Annotated[str, AfterValidator(_check_message)]


class NewsletterForm(FormModel):
    """Newsletter signup."""

    required_messages: ClassVar[dict[str, str]] = {
        "email": "Please enter a valid email address",
    }

    email: EmailStr


SubmissionPayload = TourBookingForm | AirportPickupForm | ContactForm | NewsletterForm

FORM_MODELS: dict[FormType, type[FormModel]] = {
    FormType.TOUR_BOOKING: TourBookingForm,
    FormType.CONTACT: ContactForm,
    FormType.NEWSLETTER: NewsletterForm,
}

EMAIL_FIELDS: dict[FormType, str] = {
    FormType.TOUR_BOOKING: "email",
    FormType.AIRPORT_PICKUP: "customer_email",
    FormType.CONTACT: "email",
    FormType.NEWSLETTER: "email",
}
