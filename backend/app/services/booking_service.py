"""Booking service — creates bookings and drives them through their lifecycle."""

import logging
import uuid
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.context import RequestContext
from app.errors import (
    ConflictError,
    Forbidden,
    InvalidStatusTransition,
    NotFoundError,
    StoreError,
    ValidationError,
)
from app.models.booking import Booking, BookingStatus, CancellationPolicy, PaymentStatus
from app.models.notification import OutboxEventType
from app.models.property import Property
from app.schemas.booking import CreateBookingRequest, UpdateBookingRequest
from app.services.availability_service import availability_service
from app.services.cancellation_policy import RefundDecision, compute_refund, ensure_transition
from app.services.date_range import DateRange
from app.services.outbox import outbox
from app.services.pricing import PriceBreakdown, quote_for_property

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = {
    "property_id": "propertyId",
    "check_in": "checkIn",
    "check_out": "checkOut",
    "guests": "guests",
    "contact_information": "contactInformation",
}


def _parse_booking_id(booking_id: uuid.UUID | str) -> uuid.UUID | None:
    if isinstance(booking_id, uuid.UUID):
        return booking_id
    try:
        return uuid.UUID(booking_id)
    except (TypeError, ValueError):
        return None


def _event_payload(booking: Booking, **extra) -> dict:
    payload = {
        "booking_id": str(booking.id),
        "property_id": str(booking.property_id),
        "user_id": str(booking.user_id),
        "check_in": booking.check_in.isoformat(),
        "check_out": booking.check_out.isoformat(),
        "total": str(booking.total),
        "currency": booking.currency,
        "guest_name": booking.contact_information.get("fullName"),
        "guest_email": booking.contact_information.get("email"),
    }
    payload.update(extra)
    return payload


class BookingService:
    """Validates, prices and persists bookings; enforces ownership rules."""

    async def quote(
        self, db: AsyncSession, property_id: uuid.UUID, date_range: DateRange, policy: CancellationPolicy
    ) -> PriceBreakdown:
        prop = await self._load_bookable_property(db, property_id)
        self._check_min_nights(prop, date_range)
        return quote_for_property(prop, date_range, policy)

    async def create_booking(self, ctx: RequestContext, req: CreateBookingRequest) -> Booking:
        """Create a pending booking.

        1. required fields, 2. property, 3. capacity, 4. availability,
        5. pricing, 6. persist + re-check, 7. commit and emit event.
        """
        missing = [alias for field, alias in REQUIRED_FIELDS.items() if getattr(req, field) is None]
        if missing:
            raise ValidationError(f"Missing required booking information: {', '.join(missing)}")

        date_range = DateRange(req.check_in, req.check_out)
        db = ctx.db

        prop = await self._load_bookable_property(db, req.property_id)
        self._check_min_nights(prop, date_range)

        if req.guests.adults + req.guests.children > prop.max_guests:
            raise ValidationError(
                f"This property can only accommodate up to {prop.max_guests} guests"
            )

        if not await availability_service.is_range_available(db, prop.id, date_range):
            raise ConflictError()

        price = quote_for_property(prop, date_range, req.cancellation_policy)

        booking = Booking(
            property_id=prop.id,
            user_id=ctx.user.id,
            status=BookingStatus.PENDING.value,
            payment_status=PaymentStatus.PENDING.value,
            check_in=date_range.check_in,
            check_out=date_range.check_out,
            adults=req.guests.adults,
            children=req.guests.children,
            infants=req.guests.infants,
            pets=req.guests.pets,
            contact_information=req.contact_information.model_dump(mode="json", by_alias=True),
            special_requests=req.special_requests or "",
            cancellation_policy=CancellationPolicy(req.cancellation_policy).value,
            nightly_rate=price.nightly_rate,
            nights=price.nights,
            subtotal=price.subtotal,
            cleaning_fee=price.cleaning_fee,
            service_fee=price.service_fee,
            taxes=price.taxes,
            total=price.total,
            currency=settings.currency,
        )

        try:
            db.add(booking)
            await db.flush()
            # Another request may have written overlapping dates since the check above
            still_free = await availability_service.is_range_available(
                db, prop.id, date_range, exclude_booking_id=booking.id
            )
            if not still_free:
                await db.rollback()
                logger.warning(
                    f"Concurrent booking detected for property {prop.id} "
                    f"{date_range.check_in}..{date_range.check_out}; rejected"
                )
                raise ConflictError()
            await db.commit()
        except SQLAlchemyError as e:
            await db.rollback()
            logger.error(f"Failed to persist booking for property {prop.id}: {e}")
            raise StoreError("Failed to create booking") from e

        await db.refresh(booking)
        logger.info(
            f"Booking {booking.id} created: property={prop.id} user={ctx.user.id} "
            f"{booking.check_in}..{booking.check_out} total={booking.total}"
        )

        await outbox.emit(
            db,
            OutboxEventType.BOOKING_CREATED,
            _event_payload(booking, property_name=prop.name),
            aggregate_id=booking.id,
        )
        return booking

    async def get_booking(self, ctx: RequestContext, booking_id: uuid.UUID | str) -> Booking:
        """Load a booking the caller may see.

        Non-admin callers get Forbidden for bookings they do not own, including
        bookings that do not exist and ids that are not valid UUIDs.
        """
        parsed_id = _parse_booking_id(booking_id)
        booking = await ctx.db.get(Booking, parsed_id) if parsed_id else None
        if ctx.is_admin:
            if not booking:
                raise NotFoundError("Booking not found")
            return booking
        if not booking or not ctx.owns(booking.user_id):
            raise Forbidden()
        return booking

    async def list_bookings(
        self,
        ctx: RequestContext,
        status: BookingStatus | None = None,
        property_id: uuid.UUID | None = None,
        all_users: bool = False,
    ) -> list[Booking]:
        query = select(Booking).order_by(Booking.check_in.desc())
        if not (all_users and ctx.is_admin):
            query = query.where(Booking.user_id == ctx.user.id)
        if status is not None:
            query = query.where(Booking.status == BookingStatus(status).value)
        if property_id is not None:
            query = query.where(Booking.property_id == property_id)
        result = await ctx.db.execute(query)
        return list(result.scalars().all())

    async def update_booking(
        self, ctx: RequestContext, booking_id: uuid.UUID | str, req: UpdateBookingRequest
    ) -> Booking:
        booking = await self.get_booking(ctx, booking_id)

        if req.guests is not None or req.contact_information is not None:
            if booking.status != BookingStatus.PENDING:
                raise ValidationError(
                    f"Cannot update guest information for a {booking.status} booking"
                )

        if req.guests is not None:
            changes = req.guests.model_dump(exclude_none=True)
            adults = changes.get("adults", booking.adults)
            children = changes.get("children", booking.children)
            prop = await ctx.db.get(Property, booking.property_id)
            if prop and adults + children > prop.max_guests:
                raise ValidationError(
                    f"This property can only accommodate up to {prop.max_guests} guests"
                )
            for field, value in changes.items():
                setattr(booking, field, value)

        if req.contact_information is not None:
            merged = dict(booking.contact_information or {})
            merged.update(
                req.contact_information.model_dump(mode="json", by_alias=True, exclude_none=True)
            )
            booking.contact_information = merged

        if req.special_requests is not None:
            booking.special_requests = req.special_requests

        await ctx.db.commit()
        await ctx.db.refresh(booking)
        logger.info(f"Booking {booking.id} updated by {ctx.user.id}")
        return booking

    async def cancel_booking(
        self,
        ctx: RequestContext,
        booking_id: uuid.UUID | str,
        reason: str,
        refund_amount: Decimal | None = None,
    ) -> tuple[Booking, RefundDecision]:
        booking = await self.get_booking(ctx, booking_id)
        ensure_transition(booking.status, BookingStatus.CANCELED)

        decision = compute_refund(
            total=booking.total,
            check_in=booking.check_in,
            policy=booking.cancellation_policy,
            now=ctx.now,
            is_admin=ctx.is_admin,
            requested_amount=refund_amount,
        )

        booking.status = BookingStatus.CANCELED.value
        booking.canceled_at = ctx.now
        booking.canceled_by = ctx.user.id
        booking.cancellation_reason = reason
        booking.refund_amount = decision.amount
        # Refund only what was collected; an unpaid booking keeps its payment status
        refunded = booking.payment_status == PaymentStatus.PROCESSED and decision.amount > 0
        if refunded:
            booking.payment_status = PaymentStatus.REFUNDED.value

        await ctx.db.commit()
        await ctx.db.refresh(booking)
        logger.info(
            f"Booking {booking.id} canceled by {ctx.user.id}: refund={decision.amount} "
            f"tier={decision.tier} days_before={decision.days_before_check_in} "
            f"payment={booking.payment_status}"
        )

        await outbox.emit(
            ctx.db,
            OutboxEventType.BOOKING_CANCELED,
            _event_payload(
                booking,
                refund_amount=str(decision.amount if refunded else Decimal("0.00")),
                reason=reason,
            ),
            aggregate_id=booking.id,
        )
        return booking, decision

    async def process_payment(
        self,
        ctx: RequestContext,
        booking_id: uuid.UUID | str,
        method: str,
        transaction_id: str | None = None,
        succeeded: bool = True,
    ) -> Booking:
        """Record the outcome of a payment attempt for a booking.

        A successful payment marks the booking paid and confirms it if it is
        still pending. A failed attempt marks the payment failed and leaves
        the booking pending, so the guest can try again.
        """
        booking = await self.get_booking(ctx, booking_id)
        if booking.status not in (BookingStatus.PENDING, BookingStatus.CONFIRMED):
            raise InvalidStatusTransition(f"Cannot take payment for a {booking.status} booking")
        if booking.payment_status in (PaymentStatus.PROCESSED, PaymentStatus.REFUNDED):
            raise InvalidStatusTransition("Booking has already been paid")

        booking.payment_method = method
        booking.payment_reference = transaction_id

        if not succeeded:
            booking.payment_status = PaymentStatus.FAILED.value
            await ctx.db.commit()
            await ctx.db.refresh(booking)
            logger.warning(f"Payment failed for booking {booking.id} via {method} ({transaction_id})")
            return booking

        newly_confirmed = booking.status == BookingStatus.PENDING
        booking.payment_status = PaymentStatus.PROCESSED.value
        booking.paid_at = ctx.now
        if newly_confirmed:
            booking.status = BookingStatus.CONFIRMED.value
            booking.confirmed_at = ctx.now

        await ctx.db.commit()
        await ctx.db.refresh(booking)
        logger.info(
            f"Payment processed for booking {booking.id}: {booking.total} {booking.currency} "
            f"via {method} ({transaction_id})"
        )

        if newly_confirmed:
            await outbox.emit(
                ctx.db, OutboxEventType.BOOKING_CONFIRMED, _event_payload(booking), aggregate_id=booking.id
            )
        return booking

    async def confirm_booking(self, ctx: RequestContext, booking_id: uuid.UUID | str) -> Booking:
        if not ctx.is_admin:
            raise Forbidden("Administrator access required")
        booking = await self.get_booking(ctx, booking_id)
        ensure_transition(booking.status, BookingStatus.CONFIRMED)

        booking.status = BookingStatus.CONFIRMED.value
        booking.confirmed_at = ctx.now
        await ctx.db.commit()
        await ctx.db.refresh(booking)
        logger.info(f"Booking {booking.id} confirmed by {ctx.user.id}")

        await outbox.emit(
            ctx.db, OutboxEventType.BOOKING_CONFIRMED, _event_payload(booking), aggregate_id=booking.id
        )
        return booking

    async def complete_booking(self, ctx: RequestContext, booking_id: uuid.UUID | str) -> Booking:
        if not ctx.is_admin:
            raise Forbidden("Administrator access required")
        booking = await self.get_booking(ctx, booking_id)
        ensure_transition(booking.status, BookingStatus.COMPLETED)
        if ctx.now.date() < booking.check_out:
            raise ValidationError("Cannot complete a booking before the checkout date")

        booking.status = BookingStatus.COMPLETED.value
        booking.completed_at = ctx.now
        await ctx.db.commit()
        await ctx.db.refresh(booking)
        logger.info(f"Booking {booking.id} completed")
        return booking

    async def _load_bookable_property(self, db: AsyncSession, property_id: uuid.UUID) -> Property:
        try:
            prop = await db.get(Property, property_id)
        except SQLAlchemyError as e:
            logger.error(f"Property lookup failed for {property_id}: {e}")
            raise StoreError() from e
        if not prop or not prop.is_active:
            raise NotFoundError("Property not found")
        return prop

    def _check_min_nights(self, prop: Property, date_range: DateRange) -> None:
        if date_range.nights < (prop.min_nights or 1):
            raise ValidationError(f"This property requires a minimum stay of {prop.min_nights} nights")


booking_service = BookingService()
