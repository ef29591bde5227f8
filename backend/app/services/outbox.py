"""Outbox — records domain events for the notification dispatcher."""

import logging
import uuid
from datetime import datetime, timezone

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.notification import OutboxEvent, OutboxEventType, OutboxStatus

logger = logging.getLogger(__name__)


class Outbox:
    def build(
        self,
        event_type: OutboxEventType,
        payload: dict,
        aggregate_id: uuid.UUID | None = None,
    ) -> OutboxEvent:
        return OutboxEvent(
            event_type=OutboxEventType(event_type).value,
            aggregate_id=aggregate_id,
            payload=payload,
            status=OutboxStatus.PENDING.value,
            attempts=0,
            available_at=datetime.now(timezone.utc),
        )

    async def emit(
        self,
        db: AsyncSession,
        event_type: OutboxEventType,
        payload: dict,
        aggregate_id: uuid.UUID | None = None,
    ) -> OutboxEvent | None:
        """Persist an event after the business write has been committed.

        The event is written through its own session on the caller's bind, so
        a failure here never rolls back or expires the caller's objects. It is
        logged and swallowed: the business write already stands.
        """
        event = self.build(event_type, payload, aggregate_id)
        async with AsyncSession(db.bind, expire_on_commit=False) as session:
            try:
                session.add(event)
                await session.commit()
            except SQLAlchemyError as e:
                await session.rollback()
                logger.error(f"Failed to record {event.event_type} event for {aggregate_id}: {e}")
                return None
        return event


outbox = Outbox()
