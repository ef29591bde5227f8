"""Notification service — creates in-app notifications for booking events."""

import logging
import uuid

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.notification import Notification, NotificationType
from app.models.user import User, UserRole

logger = logging.getLogger(__name__)


class NotificationService:
    """Creates in-app notifications. Callers own the commit."""

    async def send_booking_created(
        self, db: AsyncSession, guest_id: uuid.UUID, property_name: str,
        check_in: str, booking_id: uuid.UUID
    ) -> Notification:
        return await self._create(
            db,
            user_id=guest_id,
            type=NotificationType.BOOKING_CREATED,
            title="Booking Received",
            body=f"Your booking at {property_name} for check-in on {check_in} has been received.",
            reference_type="booking",
            reference_id=booking_id,
        )

    async def send_new_booking_alert(
        self, db: AsyncSession, guest_name: str, property_name: str,
        check_in: str, check_out: str, booking_id: uuid.UUID
    ) -> list[Notification]:
        admin_ids = await self._admin_ids(db)
        return [
            await self._create(
                db,
                user_id=admin_id,
                type=NotificationType.NEW_BOOKING_ALERT,
                title="New Booking Alert",
                body=f"{guest_name} booked {property_name} from {check_in} to {check_out}.",
                reference_type="booking",
                reference_id=booking_id,
            )
            for admin_id in admin_ids
        ]

    async def send_booking_confirmed(
        self, db: AsyncSession, guest_id: uuid.UUID, check_in: str, booking_id: uuid.UUID
    ) -> Notification:
        return await self._create(
            db,
            user_id=guest_id,
            type=NotificationType.BOOKING_CONFIRMED,
            title="Booking Confirmed",
            body=f"Your booking for check-in on {check_in} is confirmed.",
            reference_type="booking",
            reference_id=booking_id,
        )

    async def send_booking_canceled(
        self, db: AsyncSession, guest_id: uuid.UUID, check_in: str,
        refund_amount: str, currency: str, booking_id: uuid.UUID
    ) -> Notification:
        if refund_amount and refund_amount not in ("0", "0.00"):
            body = f"Your booking for {check_in} was canceled. A refund of {refund_amount} {currency} is on its way."
        else:
            body = f"Your booking for {check_in} was canceled."
        return await self._create(
            db,
            user_id=guest_id,
            type=NotificationType.BOOKING_CANCELED,
            title="Booking Canceled",
            body=body,
            reference_type="booking",
            reference_id=booking_id,
        )

    async def send_stay_reminder(
        self, db: AsyncSession, guest_id: uuid.UUID, property_name: str,
        days_until: int, booking_id: uuid.UUID
    ) -> Notification:
        when = "tomorrow" if days_until == 1 else f"in {days_until} days"
        return await self._create(
            db,
            user_id=guest_id,
            type=NotificationType.STAY_REMINDER,
            title="Your Stay Is Coming Up",
            body=f"Your stay at {property_name} begins {when}. We're looking forward to hosting you!",
            reference_type="booking",
            reference_id=booking_id,
        )

    async def send_contact_message(
        self, db: AsyncSession, sender_name: str, subject: str, message_id: uuid.UUID
    ) -> list[Notification]:
        admin_ids = await self._admin_ids(db)
        return [
            await self._create(
                db,
                user_id=admin_id,
                type=NotificationType.CONTACT_MESSAGE,
                title="New Contact Message",
                body=f"{sender_name} sent a message: '{subject}'.",
                reference_type="contact_message",
                reference_id=message_id,
            )
            for admin_id in admin_ids
        ]

    async def _admin_ids(self, db: AsyncSession) -> list[uuid.UUID]:
        result = await db.execute(
            select(User.id).where(User.role == UserRole.ADMIN.value, User.is_active == True)
        )
        return list(result.scalars().all())

    async def _create(
        self, db: AsyncSession, user_id: uuid.UUID, type: NotificationType,
        title: str, body: str, reference_type: str | None = None,
        reference_id: uuid.UUID | None = None,
    ) -> Notification:
        notification = Notification(
            user_id=user_id,
            type=NotificationType(type).value,
            title=title,
            body=body,
            reference_type=reference_type,
            reference_id=reference_id,
        )
        db.add(notification)
        return notification


notification_service = NotificationService()
