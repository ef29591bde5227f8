"""Shared builders for tests."""

from datetime import date, datetime, timedelta, timezone

from jose import jwt

from app.config import settings
from app.models.booking import Booking, BookingStatus
from app.models.user import User
from app.schemas.booking import CreateBookingRequest


def auth_headers(user: User) -> dict:
    token = jwt.encode({"sub": str(user.id)}, settings.secret_key, algorithm=settings.algorithm)
    return {"Authorization": f"Bearer {token}"}


def future(days: int) -> date:
    return datetime.now(timezone.utc).date() + timedelta(days=days)


def booking_body(property_id, check_in: date, check_out: date, **overrides) -> dict:
    body = {
        "propertyId": str(property_id),
        "checkIn": check_in.isoformat(),
        "checkOut": check_out.isoformat(),
        "guests": {"adults": 2, "children": 0},
        "contactInformation": {
            "fullName": "Sam Rivera",
            "email": "sam@example.com",
            "phone": "+1 555 0134",
        },
    }
    body.update(overrides)
    return body


def booking_request(property_id, check_in: date, check_out: date, **overrides) -> CreateBookingRequest:
    return CreateBookingRequest.model_validate(booking_body(property_id, check_in, check_out, **overrides))


def make_booking(prop, user, check_in: date, check_out: date, status=BookingStatus.CONFIRMED) -> Booking:
    """A booking row with placeholder pricing, for seeding calendars directly."""
    return Booking(
        property_id=prop.id,
        user_id=user.id,
        status=BookingStatus(status).value,
        check_in=check_in,
        check_out=check_out,
        contact_information={"fullName": "Sam Rivera", "email": "sam@example.com"},
        nightly_rate=199, nights=(check_out - check_in).days, subtotal=0,
        cleaning_fee=0, service_fee=0, taxes=0, total=0,
    )


def review_body(booking_id, rating: int = 5, score: int | None = None, **overrides) -> dict:
    score = score or rating
    body = {
        "bookingId": str(booking_id),
        "rating": rating,
        "title": "Magical night under the stars",
        "content": "The skylight was everything we hoped for.",
        "categories": {
            "cleanliness": score,
            "communication": score,
            "checkIn": score,
            "accuracy": score,
            "location": score,
            "value": score,
        },
    }
    body.update(overrides)
    return body
