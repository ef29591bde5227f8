"""Stay sweep service — scheduled checks over upcoming and finished stays."""

import logging
from datetime import date, datetime, timedelta, timezone

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.models.booking import Booking, BookingStatus
from app.models.notification import OutboxEventType
from app.models.property import Property
from app.services.outbox import outbox

logger = logging.getLogger(__name__)


class StaySweepService:
    """Periodic jobs run by the background scheduler."""

    async def queue_stay_reminders(self, db: AsyncSession, today: date | None = None) -> int:
        """Queue a reminder for confirmed stays starting within the reminder window.

        Each booking is reminded at most once; the reminder event and the
        reminder_sent_at marker are written in the same commit.
        """
        today = today or datetime.now(timezone.utc).date()
        cutoff = today + timedelta(days=settings.reminder_days_ahead)

        result = await db.execute(
            select(Booking, Property.name)
            .join(Property, Booking.property_id == Property.id)
            .where(
                Booking.status == BookingStatus.CONFIRMED.value,
                Booking.check_in >= today,
                Booking.check_in <= cutoff,
                Booking.reminder_sent_at.is_(None),
            )
        )
        rows = result.all()

        now = datetime.now(timezone.utc)
        for booking, property_name in rows:
            days_until = (booking.check_in - today).days
            db.add(outbox.build(
                OutboxEventType.STAY_REMINDER,
                {
                    "booking_id": str(booking.id),
                    "user_id": str(booking.user_id),
                    "property_name": property_name,
                    "check_in": booking.check_in.isoformat(),
                    "days_until": days_until,
                },
                aggregate_id=booking.id,
            ))
            booking.reminder_sent_at = now

        if rows:
            await db.commit()
            logger.info(f"Queued {len(rows)} stay reminders")
        return len(rows)

    async def complete_finished_stays(self, db: AsyncSession, today: date | None = None) -> int:
        """Mark confirmed bookings whose checkout date has passed as completed."""
        today = today or datetime.now(timezone.utc).date()
        result = await db.execute(
            select(Booking).where(
                Booking.status == BookingStatus.CONFIRMED.value,
                Booking.check_out <= today,
            )
        )
        bookings = result.scalars().all()

        now = datetime.now(timezone.utc)
        for booking in bookings:
            booking.status = BookingStatus.COMPLETED.value
            booking.completed_at = now

        if bookings:
            await db.commit()
            logger.info(f"Completed {len(bookings)} finished stays")
        return len(bookings)


stay_sweep_service = StaySweepService()
