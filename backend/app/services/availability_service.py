"""Availability service — date-range conflict checks against bookings and owner holds."""

import logging
import uuid
from datetime import date

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.errors import InvalidDateRange, NotFoundError, StoreError
from app.models.booking import ACTIVE_STATUSES, Booking
from app.models.property import BlockedRange, Property
from app.services.date_range import DateRange, expand_to_days, ranges_overlap

logger = logging.getLogger(__name__)


class AvailabilityService:
    """Answers "can these dates be booked?" for a property.

    Store failures raise StoreError instead of returning True: an unreachable
    store must never let a booking through.
    """

    async def is_range_available(
        self,
        db: AsyncSession,
        property_id: uuid.UUID,
        candidate: DateRange,
        exclude_booking_id: uuid.UUID | None = None,
    ) -> bool:
        try:
            bookings = await self._active_bookings(db, property_id, candidate, exclude_booking_id)
            blocks = await self._blocked_ranges(db, property_id, candidate)
        except SQLAlchemyError as e:
            logger.error(f"Availability check failed for property {property_id}: {e}")
            raise StoreError() from e

        for booking in bookings:
            if ranges_overlap(candidate, DateRange(booking.check_in, booking.check_out)):
                logger.info(
                    f"Dates {candidate.check_in}..{candidate.check_out} clash with booking {booking.id}"
                )
                return False

        for block in blocks:
            if ranges_overlap(candidate, DateRange(block.start_date, block.end_date)):
                logger.info(
                    f"Dates {candidate.check_in}..{candidate.check_out} clash with blocked range {block.id}"
                )
                return False

        return True

    async def unavailable_days(
        self, db: AsyncSession, property_id: uuid.UUID, start: date, end: date
    ) -> list[date]:
        """Every occupied or blocked day inside [start, end), sorted."""
        window = DateRange(start, end)
        try:
            bookings = await self._active_bookings(db, property_id, window)
            blocks = await self._blocked_ranges(db, property_id, window)
        except SQLAlchemyError as e:
            logger.error(f"Calendar lookup failed for property {property_id}: {e}")
            raise StoreError() from e

        days: set[date] = set()
        for booking in bookings:
            days.update(expand_to_days(booking.check_in, booking.check_out))
        for block in blocks:
            days.update(expand_to_days(block.start_date, block.end_date))
        return sorted(d for d in days if start <= d < end)

    async def add_blocked_range(
        self,
        db: AsyncSession,
        property_id: uuid.UUID,
        start_date: date,
        end_date: date,
        reason: str | None = None,
        created_by: uuid.UUID | None = None,
    ) -> BlockedRange:
        if end_date <= start_date:
            raise InvalidDateRange("Blocked range end date must be after its start date")

        prop = await db.get(Property, property_id)
        if not prop:
            raise NotFoundError("Property not found")

        block = BlockedRange(
            property_id=property_id,
            start_date=start_date,
            end_date=end_date,
            reason=reason or "Unavailable",
            created_by=created_by,
        )
        db.add(block)
        await db.commit()
        await db.refresh(block)
        logger.info(f"Blocked {start_date}..{end_date} on property {property_id}")
        return block

    async def remove_blocked_range(self, db: AsyncSession, block_id: uuid.UUID) -> None:
        block = await db.get(BlockedRange, block_id)
        if not block:
            raise NotFoundError("Blocked range not found")
        await db.delete(block)
        await db.commit()
        logger.info(f"Removed blocked range {block_id} on property {block.property_id}")

    async def _active_bookings(
        self,
        db: AsyncSession,
        property_id: uuid.UUID,
        window: DateRange,
        exclude_booking_id: uuid.UUID | None = None,
    ) -> list[Booking]:
        # Coarse prefilter in SQL; exact half-open test happens in Python
        query = select(Booking).where(
            Booking.property_id == property_id,
            Booking.status.in_(ACTIVE_STATUSES),
            Booking.check_in < window.check_out,
            Booking.check_out > window.check_in,
        )
        if exclude_booking_id is not None:
            query = query.where(Booking.id != exclude_booking_id)
        result = await db.execute(query)
        return list(result.scalars().all())

    async def _blocked_ranges(
        self, db: AsyncSession, property_id: uuid.UUID, window: DateRange
    ) -> list[BlockedRange]:
        result = await db.execute(
            select(BlockedRange).where(
                BlockedRange.property_id == property_id,
                BlockedRange.start_date < window.check_out,
                BlockedRange.end_date > window.check_in,
            )
        )
        return list(result.scalars().all())


availability_service = AvailabilityService()
