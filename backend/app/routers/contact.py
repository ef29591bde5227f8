"""Contact router — public enquiry form."""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.models.contact import ContactMessage
from app.models.notification import OutboxEventType
from app.schemas.contact import ContactRequest
from app.services.outbox import outbox

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("")
async def submit_contact_message(req: ContactRequest, db: AsyncSession = Depends(get_db)):
    """Store the message and let the dispatcher alert the admins."""
    message = ContactMessage(
        name=req.name,
        email=req.email,
        phone=req.phone,
        subject=req.subject,
        message=req.message,
    )
    db.add(message)
    await db.commit()
    await db.refresh(message)
    logger.info(f"Contact message {message.id} received from {req.email}")

    await outbox.emit(
        db,
        OutboxEventType.CONTACT_MESSAGE,
        {
            "message_id": str(message.id),
            "name": message.name,
            "email": message.email,
            "subject": message.subject,
        },
        aggregate_id=message.id,
    )
    return {"success": True, "message": "Thanks for reaching out! We'll get back to you soon."}
