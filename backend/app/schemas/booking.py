import uuid
from datetime import date, datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, EmailStr, Field
from pydantic.alias_generators import to_camel

from app.models.booking import Booking, BookingStatus, CancellationPolicy, PaymentStatus


class CamelModel(BaseModel):
    """Accepts and emits camelCase keys; snake_case input works too."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class GuestCount(CamelModel):
    adults: int = Field(1, ge=1)
    children: int = Field(0, ge=0)
    infants: int = Field(0, ge=0)
    pets: int = Field(0, ge=0)


class GuestCountUpdate(CamelModel):
    adults: int | None = Field(None, ge=1)
    children: int | None = Field(None, ge=0)
    infants: int | None = Field(None, ge=0)
    pets: int | None = Field(None, ge=0)


class EmergencyContact(CamelModel):
    name: str
    phone: str
    relationship: str


class ContactInformation(CamelModel):
    full_name: str = Field(..., min_length=1)
    email: EmailStr
    phone: str = ""
    emergency_contact: EmergencyContact | None = None


class ContactInformationUpdate(CamelModel):
    full_name: str | None = Field(None, min_length=1)
    email: EmailStr | None = None
    phone: str | None = None
    emergency_contact: EmergencyContact | None = None


class CreateBookingRequest(CamelModel):
    # Required fields are checked by the booking service so that a missing
    # field is reported the same way whichever caller builds the request.
    property_id: uuid.UUID | None = None
    check_in: date | None = None
    check_out: date | None = None
    guests: GuestCount | None = None
    contact_information: ContactInformation | None = None
    special_requests: str = ""
    cancellation_policy: CancellationPolicy = CancellationPolicy.STANDARD


class QuoteRequest(CamelModel):
    property_id: uuid.UUID
    check_in: date
    check_out: date
    cancellation_policy: CancellationPolicy = CancellationPolicy.STANDARD


class UpdateBookingRequest(CamelModel):
    guests: GuestCountUpdate | None = None
    contact_information: ContactInformationUpdate | None = None
    special_requests: str | None = None


class CancelBookingRequest(CamelModel):
    # Parsed by the booking service; a malformed id is treated as an unknown one
    booking_id: str = Field(..., min_length=1)
    reason: str = Field(..., min_length=1)
    refund_amount: Decimal | None = Field(None, ge=0)


class ProcessPaymentRequest(CamelModel):
    method: str = Field(..., min_length=1, max_length=30)
    transaction_id: str | None = Field(None, max_length=255)
    succeeded: bool = True


class PricingResponse(CamelModel):
    nightly_rate: float
    nights: int
    subtotal: float
    cleaning_fee: float
    service_fee: float
    taxes: float
    total: float
    currency: str = "USD"


class QuoteResponse(PricingResponse):
    taxable_base: float
    cancellation_policy: CancellationPolicy


class PaymentResponse(CamelModel):
    method: str | None
    transaction_id: str | None
    paid_at: datetime | None


class CancellationResponse(CamelModel):
    canceled_at: datetime | None
    canceled_by: uuid.UUID | None
    reason: str | None
    refund_amount: float | None


class BookingResponse(CamelModel):
    id: uuid.UUID
    property_id: uuid.UUID
    user_id: uuid.UUID
    status: BookingStatus
    payment_status: PaymentStatus
    check_in: date
    check_out: date
    guests: GuestCount
    contact_information: dict
    special_requests: str
    cancellation_policy: CancellationPolicy
    pricing: PricingResponse
    payment: PaymentResponse | None = None
    cancellation: CancellationResponse | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @classmethod
    def from_booking(cls, booking: Booking) -> "BookingResponse":
        cancellation = None
        payment = None
        if booking.payment_method:
            payment = PaymentResponse(
                method=booking.payment_method,
                transaction_id=booking.payment_reference,
                paid_at=booking.paid_at,
            )
        if booking.status == BookingStatus.CANCELED:
            cancellation = CancellationResponse(
                canceled_at=booking.canceled_at,
                canceled_by=booking.canceled_by,
                reason=booking.cancellation_reason,
                refund_amount=booking.refund_amount,
            )
        return cls(
            id=booking.id,
            property_id=booking.property_id,
            user_id=booking.user_id,
            status=booking.status,
            payment_status=booking.payment_status,
            check_in=booking.check_in,
            check_out=booking.check_out,
            guests=GuestCount(
                adults=booking.adults,
                children=booking.children,
                infants=booking.infants,
                pets=booking.pets,
            ),
            contact_information=booking.contact_information,
            special_requests=booking.special_requests or "",
            cancellation_policy=booking.cancellation_policy,
            pricing=PricingResponse(
                nightly_rate=booking.nightly_rate,
                nights=booking.nights,
                subtotal=booking.subtotal,
                cleaning_fee=booking.cleaning_fee,
                service_fee=booking.service_fee,
                taxes=booking.taxes,
                total=booking.total,
                currency=booking.currency,
            ),
            payment=payment,
            cancellation=cancellation,
            created_at=booking.created_at,
            updated_at=booking.updated_at,
        )

    def to_json(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)
