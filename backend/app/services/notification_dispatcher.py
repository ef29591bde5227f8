"""Notification dispatcher — drains the outbox into notifications, with retries."""

import logging
import uuid
from datetime import datetime, timedelta, timezone

import httpx
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.models.notification import OutboxEvent, OutboxEventType, OutboxStatus
from app.services.notification_service import notification_service

logger = logging.getLogger(__name__)


class DispatchError(Exception):
    pass


class NotificationDispatcher:
    """Consumes pending outbox events.

    Each event is forwarded to the external dispatch endpoint (email / push
    provider) when one is configured, then turned into in-app notifications.
    Both happen before the event is marked dispatched, so a failure leaves it
    pending for a later run with exponential backoff.
    """

    def __init__(self):
        self._client: httpx.AsyncClient | None = None

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=settings.notification_timeout_seconds)
        return self._client

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def dispatch_pending(self, db: AsyncSession, now: datetime | None = None) -> int:
        """Process one batch of due events. Returns how many were dispatched."""
        now = now or datetime.now(timezone.utc)
        result = await db.execute(
            select(OutboxEvent.id)
            .where(
                OutboxEvent.status == OutboxStatus.PENDING.value,
                OutboxEvent.available_at <= now,
            )
            .order_by(OutboxEvent.created_at)
            .limit(settings.outbox_batch_size)
        )
        event_ids = list(result.scalars().all())

        dispatched = 0
        for event_id in event_ids:
            if await self._dispatch_one(db, event_id, now):
                dispatched += 1

        if event_ids:
            logger.info(f"Outbox: {dispatched}/{len(event_ids)} events dispatched")
        return dispatched

    async def _dispatch_one(self, db: AsyncSession, event_id: uuid.UUID, now: datetime) -> bool:
        event = await db.get(OutboxEvent, event_id, populate_existing=True)
        if event is None or event.status != OutboxStatus.PENDING:
            return False

        try:
            await self._deliver(event)
            await self._create_notifications(db, event)
            event.status = OutboxStatus.DISPATCHED.value
            event.attempts += 1
            event.dispatched_at = now
            event.last_error = None
            await db.commit()
            return True
        except Exception as e:
            # Every failure counts as an attempt
            await db.rollback()
            await self._record_failure(db, event_id, e, now)
            return False

    async def _record_failure(
        self, db: AsyncSession, event_id: uuid.UUID, error: Exception, now: datetime
    ) -> None:
        event = await db.get(OutboxEvent, event_id, populate_existing=True)
        if event is None:
            return
        event.attempts += 1
        event.last_error = f"{type(error).__name__}: {error}"[:1000]
        if event.attempts >= settings.outbox_max_attempts:
            event.status = OutboxStatus.FAILED.value
            logger.error(
                f"Outbox event {event.id} ({event.event_type}) failed permanently "
                f"after {event.attempts} attempts: {error}"
            )
        else:
            delay = settings.outbox_retry_base_seconds * 2 ** (event.attempts - 1)
            event.available_at = now + timedelta(seconds=delay)
            logger.warning(
                f"Outbox event {event.id} ({event.event_type}) attempt {event.attempts} failed, "
                f"retrying in {delay}s: {error}"
            )
        await db.commit()

    async def _deliver(self, event: OutboxEvent) -> None:
        if not settings.notification_webhook_url:
            return
        client = await self._get_client()
        response = await client.post(
            settings.notification_webhook_url,
            json={
                "id": str(event.id),
                "type": event.event_type,
                "payload": event.payload,
            },
        )
        if response.status_code >= 400:
            raise DispatchError(f"Dispatch endpoint returned {response.status_code}")

    async def _create_notifications(self, db: AsyncSession, event: OutboxEvent) -> None:
        p = event.payload
        event_type = OutboxEventType(event.event_type)

        if event_type == OutboxEventType.BOOKING_CREATED:
            booking_id = uuid.UUID(p["booking_id"])
            await notification_service.send_booking_created(
                db, uuid.UUID(p["user_id"]), p.get("property_name", "your glamping site"),
                p["check_in"], booking_id,
            )
            await notification_service.send_new_booking_alert(
                db, p.get("guest_name") or "A guest", p.get("property_name", "a property"),
                p["check_in"], p["check_out"], booking_id,
            )
        elif event_type == OutboxEventType.BOOKING_CONFIRMED:
            await notification_service.send_booking_confirmed(
                db, uuid.UUID(p["user_id"]), p["check_in"], uuid.UUID(p["booking_id"]),
            )
        elif event_type == OutboxEventType.BOOKING_CANCELED:
            await notification_service.send_booking_canceled(
                db, uuid.UUID(p["user_id"]), p["check_in"], p.get("refund_amount", "0"),
                p.get("currency", settings.currency), uuid.UUID(p["booking_id"]),
            )
        elif event_type == OutboxEventType.STAY_REMINDER:
            await notification_service.send_stay_reminder(
                db, uuid.UUID(p["user_id"]), p.get("property_name", "your glamping site"),
                int(p["days_until"]), uuid.UUID(p["booking_id"]),
            )
        elif event_type == OutboxEventType.CONTACT_MESSAGE:
            await notification_service.send_contact_message(
                db, p["name"], p.get("subject", "General Inquiry"), uuid.UUID(p["message_id"]),
            )


notification_dispatcher = NotificationDispatcher()
