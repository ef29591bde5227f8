"""Tests for the booking service."""

import uuid
from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest
from sqlalchemy import select

from app.context import RequestContext
from app.errors import (
    ConflictError,
    Forbidden,
    InvalidDateRange,
    InvalidStatusTransition,
    NotFoundError,
    ValidationError,
)
from app.models.booking import ACTIVE_STATUSES, Booking, BookingStatus, PaymentStatus
from app.models.notification import OutboxEvent, OutboxEventType
from app.schemas.booking import CreateBookingRequest, UpdateBookingRequest
from app.services.availability_service import availability_service
from app.services.booking_service import booking_service
from app.services.outbox import outbox
from tests.helpers import booking_request, future, make_booking


class TestCreateBooking:
    async def test_creates_pending_booking_with_frozen_pricing(self, guest_ctx, dome):
        booking = await booking_service.create_booking(
            guest_ctx, booking_request(dome.id, future(30), future(33))
        )
        assert booking.status == BookingStatus.PENDING
        assert booking.payment_status == PaymentStatus.PENDING
        assert booking.nights == 3
        assert booking.total == Decimal("776.13")
        assert booking.user_id == guest_ctx.user.id
        assert booking.contact_information["fullName"] == "Sam Rivera"

    async def test_records_booking_created_event(self, guest_ctx, dome, db):
        booking = await booking_service.create_booking(
            guest_ctx, booking_request(dome.id, future(30), future(33))
        )
        result = await db.execute(select(OutboxEvent))
        events = result.scalars().all()
        assert len(events) == 1
        assert events[0].event_type == OutboxEventType.BOOKING_CREATED
        assert events[0].aggregate_id == booking.id
        assert events[0].payload["property_name"] == dome.name

    async def test_missing_fields_are_named(self, guest_ctx):
        req = CreateBookingRequest.model_validate({"checkIn": future(3).isoformat()})
        with pytest.raises(ValidationError, match="propertyId") as exc:
            await booking_service.create_booking(guest_ctx, req)
        assert "contactInformation" in exc.value.message

    async def test_inverted_dates(self, guest_ctx, dome):
        with pytest.raises(InvalidDateRange):
            await booking_service.create_booking(
                guest_ctx, booking_request(dome.id, future(33), future(30))
            )

    async def test_unknown_property(self, guest_ctx):
        with pytest.raises(NotFoundError):
            await booking_service.create_booking(
                guest_ctx, booking_request(uuid.uuid4(), future(30), future(33))
            )

    async def test_over_capacity(self, guest_ctx, dome):
        req = booking_request(dome.id, future(30), future(33), guests={"adults": 3, "children": 2})
        with pytest.raises(ValidationError, match="up to 4 guests"):
            await booking_service.create_booking(guest_ctx, req)

    async def test_infants_do_not_count_toward_capacity(self, guest_ctx, dome):
        req = booking_request(
            dome.id, future(30), future(33), guests={"adults": 4, "children": 0, "infants": 2}
        )
        booking = await booking_service.create_booking(guest_ctx, req)
        assert booking.infants == 2

    async def test_minimum_stay_enforced(self, guest_ctx, dome, db):
        dome.min_nights = 2
        await db.commit()
        with pytest.raises(ValidationError, match="minimum stay"):
            await booking_service.create_booking(
                guest_ctx, booking_request(dome.id, future(30), future(31))
            )

    async def test_double_booking_rejected(self, guest_ctx, dome, db, other_guest):
        await booking_service.create_booking(guest_ctx, booking_request(dome.id, future(30), future(33)))
        other_ctx = RequestContext(db=db, user=other_guest)
        with pytest.raises(ConflictError, match="not available"):
            await booking_service.create_booking(
                other_ctx, booking_request(dome.id, future(32), future(35))
            )

    async def test_back_to_back_stays_allowed(self, guest_ctx, dome):
        await booking_service.create_booking(guest_ctx, booking_request(dome.id, future(30), future(33)))
        second = await booking_service.create_booking(
            guest_ctx, booking_request(dome.id, future(33), future(35))
        )
        assert second.check_in == future(33)

    async def test_rate_card_change_does_not_touch_existing_booking(self, guest_ctx, dome, db):
        booking = await booking_service.create_booking(
            guest_ctx, booking_request(dome.id, future(30), future(33))
        )
        dome.base_price = Decimal("399.00")
        dome.cleaning_fee = Decimal("90.00")
        await db.commit()

        await db.refresh(booking)
        assert booking.nightly_rate == Decimal("199.00")
        assert booking.total == Decimal("776.13")

    async def test_outbox_failure_does_not_fail_creation(self, guest_ctx, dome, db, monkeypatch):
        real_build = outbox.build

        def broken_build(*args, **kwargs):
            event = real_build(*args, **kwargs)
            event.available_at = None  # violates NOT NULL
            return event

        monkeypatch.setattr(outbox, "build", broken_build)
        booking = await booking_service.create_booking(
            guest_ctx, booking_request(dome.id, future(30), future(33))
        )

        assert booking.total == Decimal("776.13")
        stored = await db.execute(select(Booking).where(Booking.id == booking.id))
        assert stored.scalar_one_or_none() is not None
        events = await db.execute(select(OutboxEvent))
        assert events.scalars().all() == []

    async def test_overlap_committed_after_precheck_is_rejected(
        self, guest_ctx, dome, db, other_guest, session_factory, monkeypatch
    ):
        """A competing booking lands between the availability check and the insert."""
        real_check = availability_service.is_range_available
        calls = []

        async def check_then_compete(session, property_id, candidate, exclude_booking_id=None):
            calls.append(exclude_booking_id)
            if len(calls) == 1:
                async with session_factory() as other:
                    other.add(make_booking(dome, other_guest, future(31), future(34)))
                    await other.commit()
                return True
            return await real_check(session, property_id, candidate, exclude_booking_id=exclude_booking_id)

        monkeypatch.setattr(availability_service, "is_range_available", check_then_compete)

        with pytest.raises(ConflictError):
            await booking_service.create_booking(
                guest_ctx, booking_request(dome.id, future(30), future(33))
            )

        assert len(calls) == 2
        assert calls[1] is not None
        result = await db.execute(
            select(Booking).where(Booking.property_id == dome.id, Booking.status.in_(ACTIVE_STATUSES))
        )
        [survivor] = result.scalars().all()
        assert survivor.user_id == other_guest.id
        events = await db.execute(select(OutboxEvent))
        assert events.scalars().all() == []


@pytest.fixture
async def pending_booking(guest_ctx, dome):
    return await booking_service.create_booking(
        guest_ctx, booking_request(dome.id, future(30), future(33))
    )


class TestGetBooking:
    async def test_owner_can_read(self, guest_ctx, pending_booking):
        booking = await booking_service.get_booking(guest_ctx, pending_booking.id)
        assert booking.id == pending_booking.id

    async def test_other_guest_forbidden(self, db, other_guest, pending_booking):
        with pytest.raises(Forbidden):
            await booking_service.get_booking(RequestContext(db=db, user=other_guest), pending_booking.id)

    async def test_missing_booking_is_forbidden_for_guests(self, guest_ctx):
        with pytest.raises(Forbidden):
            await booking_service.get_booking(guest_ctx, uuid.uuid4())

    async def test_missing_booking_is_not_found_for_admins(self, admin_ctx):
        with pytest.raises(NotFoundError):
            await booking_service.get_booking(admin_ctx, uuid.uuid4())

    async def test_malformed_id_is_forbidden_for_guests(self, guest_ctx):
        with pytest.raises(Forbidden):
            await booking_service.get_booking(guest_ctx, "not-a-real-id")

    async def test_malformed_id_is_not_found_for_admins(self, admin_ctx):
        with pytest.raises(NotFoundError):
            await booking_service.get_booking(admin_ctx, "not-a-real-id")

    async def test_string_id_is_accepted(self, guest_ctx, pending_booking):
        booking = await booking_service.get_booking(guest_ctx, str(pending_booking.id))
        assert booking.id == pending_booking.id

    async def test_admin_can_read_any(self, admin_ctx, pending_booking):
        booking = await booking_service.get_booking(admin_ctx, pending_booking.id)
        assert booking.user_id != admin_ctx.user.id


class TestListBookings:
    async def test_guest_sees_only_own(self, db, guest_ctx, other_guest, dome, pending_booking):
        other_ctx = RequestContext(db=db, user=other_guest)
        await booking_service.create_booking(other_ctx, booking_request(dome.id, future(40), future(42)))

        mine = await booking_service.list_bookings(guest_ctx)
        assert [b.id for b in mine] == [pending_booking.id]

        ignored = await booking_service.list_bookings(guest_ctx, all_users=True)
        assert len(ignored) == 1

    async def test_admin_lists_all_with_status_filter(self, admin_ctx, pending_booking):
        assert len(await booking_service.list_bookings(admin_ctx, all_users=True)) == 1
        assert await booking_service.list_bookings(
            admin_ctx, status=BookingStatus.CONFIRMED, all_users=True
        ) == []


class TestUpdateBooking:
    async def test_updates_guests_and_merges_contact(self, guest_ctx, pending_booking):
        req = UpdateBookingRequest.model_validate({
            "guests": {"children": 1},
            "contactInformation": {"phone": "+1 555 9999"},
            "specialRequests": "Late arrival",
        })
        booking = await booking_service.update_booking(guest_ctx, pending_booking.id, req)
        assert booking.adults == 2
        assert booking.children == 1
        assert booking.contact_information["phone"] == "+1 555 9999"
        assert booking.contact_information["fullName"] == "Sam Rivera"
        assert booking.special_requests == "Late arrival"

    async def test_capacity_rechecked(self, guest_ctx, pending_booking):
        req = UpdateBookingRequest.model_validate({"guests": {"adults": 5}})
        with pytest.raises(ValidationError):
            await booking_service.update_booking(guest_ctx, pending_booking.id, req)

    async def test_guest_changes_blocked_after_confirmation(self, guest_ctx, admin_ctx, pending_booking):
        await booking_service.confirm_booking(admin_ctx, pending_booking.id)
        req = UpdateBookingRequest.model_validate({"guests": {"adults": 1}})
        with pytest.raises(ValidationError, match="confirmed"):
            await booking_service.update_booking(guest_ctx, pending_booking.id, req)


class TestCancelBooking:
    async def test_unpaid_cancel_far_out_records_refund_without_refunding(
        self, guest_ctx, pending_booking, db
    ):
        booking, decision = await booking_service.cancel_booking(
            guest_ctx, pending_booking.id, "Change of plans"
        )
        assert booking.status == BookingStatus.CANCELED
        assert decision.amount == Decimal("776.13")
        assert booking.refund_amount == Decimal("776.13")
        # Nothing was collected, so nothing is reported as refunded
        assert booking.payment_status == PaymentStatus.PENDING
        assert booking.canceled_by == guest_ctx.user.id
        assert booking.cancellation_reason == "Change of plans"

        events = await db.execute(
            select(OutboxEvent).where(OutboxEvent.event_type == OutboxEventType.BOOKING_CANCELED.value)
        )
        assert events.scalar_one().payload["refund_amount"] == "0.00"

    async def test_paid_cancel_far_out_is_refunded(self, guest_ctx, pending_booking, db):
        await booking_service.process_payment(guest_ctx, pending_booking.id, "card", "ch_123")
        booking, decision = await booking_service.cancel_booking(
            guest_ctx, pending_booking.id, "Change of plans"
        )
        assert decision.amount == Decimal("776.13")
        assert booking.payment_status == PaymentStatus.REFUNDED
        assert booking.refund_amount == Decimal("776.13")

        events = await db.execute(
            select(OutboxEvent).where(OutboxEvent.event_type == OutboxEventType.BOOKING_CANCELED.value)
        )
        assert events.scalar_one().payload["refund_amount"] == "776.13"

    async def test_paid_late_cancel_keeps_payment(self, db, guest, guest_ctx, pending_booking):
        await booking_service.process_payment(guest_ctx, pending_booking.id, "card", "ch_123")
        late = RequestContext(
            db=db, user=guest,
            now=datetime.combine(pending_booking.check_in, datetime.min.time(), timezone.utc) - timedelta(hours=12),
        )
        booking, decision = await booking_service.cancel_booking(late, pending_booking.id, "Sick")
        assert decision.amount == Decimal("0.00")
        assert booking.payment_status == PaymentStatus.PROCESSED

    async def test_late_cancel_gets_nothing(self, db, guest, pending_booking):
        late = RequestContext(
            db=db, user=guest,
            now=datetime.combine(pending_booking.check_in, datetime.min.time(), timezone.utc) - timedelta(hours=12),
        )
        booking, decision = await booking_service.cancel_booking(late, pending_booking.id, "Sick")
        assert decision.amount == Decimal("0.00")
        assert booking.payment_status == PaymentStatus.PENDING

    async def test_cannot_cancel_twice(self, guest_ctx, pending_booking):
        await booking_service.cancel_booking(guest_ctx, pending_booking.id, "Change of plans")
        with pytest.raises(InvalidStatusTransition, match="already canceled"):
            await booking_service.cancel_booking(guest_ctx, pending_booking.id, "Again")

    async def test_admin_override_amount(self, admin_ctx, pending_booking):
        _, decision = await booking_service.cancel_booking(
            admin_ctx, pending_booking.id, "Storm damage", refund_amount=Decimal("500")
        )
        assert decision.tier == "override"
        assert decision.amount == Decimal("500.00")

    async def test_canceled_dates_become_bookable(self, guest_ctx, dome, pending_booking):
        await booking_service.cancel_booking(guest_ctx, pending_booking.id, "Change of plans")
        again = await booking_service.create_booking(
            guest_ctx, booking_request(dome.id, future(30), future(33))
        )
        assert again.id != pending_booking.id


class TestLifecycle:
    async def test_confirm_requires_admin(self, guest_ctx, pending_booking):
        with pytest.raises(Forbidden):
            await booking_service.confirm_booking(guest_ctx, pending_booking.id)

    async def test_confirm(self, admin_ctx, pending_booking):
        booking = await booking_service.confirm_booking(admin_ctx, pending_booking.id)
        assert booking.status == BookingStatus.CONFIRMED
        assert booking.confirmed_at is not None

    async def test_complete_before_checkout_rejected(self, admin_ctx, pending_booking):
        await booking_service.confirm_booking(admin_ctx, pending_booking.id)
        with pytest.raises(ValidationError, match="checkout"):
            await booking_service.complete_booking(admin_ctx, pending_booking.id)

    async def test_complete_after_checkout(self, db, admin, admin_ctx, pending_booking):
        await booking_service.confirm_booking(admin_ctx, pending_booking.id)
        later = RequestContext(
            db=db, user=admin,
            now=datetime.combine(pending_booking.check_out, datetime.min.time(), timezone.utc) + timedelta(hours=11),
        )
        booking = await booking_service.complete_booking(later, pending_booking.id)
        assert booking.status == BookingStatus.COMPLETED

    async def test_pending_cannot_complete(self, db, admin, pending_booking):
        later = RequestContext(
            db=db, user=admin,
            now=datetime.combine(pending_booking.check_out, datetime.min.time(), timezone.utc) + timedelta(days=1),
        )
        with pytest.raises(InvalidStatusTransition):
            await booking_service.complete_booking(later, pending_booking.id)


class TestProcessPayment:
    async def test_successful_payment_confirms_booking(self, guest_ctx, pending_booking, db):
        booking = await booking_service.process_payment(
            guest_ctx, pending_booking.id, "card", "ch_3Nx"
        )
        assert booking.payment_status == PaymentStatus.PROCESSED
        assert booking.status == BookingStatus.CONFIRMED
        assert booking.payment_method == "card"
        assert booking.payment_reference == "ch_3Nx"
        assert booking.paid_at is not None
        assert booking.confirmed_at is not None

        events = await db.execute(
            select(OutboxEvent).where(OutboxEvent.event_type == OutboxEventType.BOOKING_CONFIRMED.value)
        )
        assert events.scalar_one().aggregate_id == booking.id

    async def test_failed_payment_leaves_booking_pending(self, guest_ctx, pending_booking, db):
        booking = await booking_service.process_payment(
            guest_ctx, pending_booking.id, "card", "ch_declined", succeeded=False
        )
        assert booking.payment_status == PaymentStatus.FAILED
        assert booking.status == BookingStatus.PENDING
        assert booking.paid_at is None

        events = await db.execute(
            select(OutboxEvent).where(OutboxEvent.event_type == OutboxEventType.BOOKING_CONFIRMED.value)
        )
        assert events.scalars().all() == []

    async def test_retry_after_failure(self, guest_ctx, pending_booking):
        await booking_service.process_payment(guest_ctx, pending_booking.id, "card", "ch_1", succeeded=False)
        booking = await booking_service.process_payment(guest_ctx, pending_booking.id, "card", "ch_2")
        assert booking.payment_status == PaymentStatus.PROCESSED
        assert booking.payment_reference == "ch_2"

    async def test_cannot_pay_twice(self, guest_ctx, pending_booking):
        await booking_service.process_payment(guest_ctx, pending_booking.id, "card", "ch_1")
        with pytest.raises(InvalidStatusTransition, match="already been paid"):
            await booking_service.process_payment(guest_ctx, pending_booking.id, "card", "ch_2")

    async def test_canceled_booking_cannot_be_paid(self, guest_ctx, pending_booking):
        await booking_service.cancel_booking(guest_ctx, pending_booking.id, "Change of plans")
        with pytest.raises(InvalidStatusTransition):
            await booking_service.process_payment(guest_ctx, pending_booking.id, "card", "ch_1")

    async def test_other_guest_forbidden(self, db, other_guest, pending_booking):
        with pytest.raises(Forbidden):
            await booking_service.process_payment(
                RequestContext(db=db, user=other_guest), pending_booking.id, "card", "ch_1"
            )

    async def test_paying_a_confirmed_booking_does_not_reconfirm(
        self, guest_ctx, admin_ctx, pending_booking, db
    ):
        await booking_service.confirm_booking(admin_ctx, pending_booking.id)
        booking = await booking_service.process_payment(guest_ctx, pending_booking.id, "bank_transfer")
        assert booking.status == BookingStatus.CONFIRMED
        assert booking.payment_status == PaymentStatus.PROCESSED

        events = await db.execute(
            select(OutboxEvent).where(OutboxEvent.event_type == OutboxEventType.BOOKING_CONFIRMED.value)
        )
        assert len(events.scalars().all()) == 1
