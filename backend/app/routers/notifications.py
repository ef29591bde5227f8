"""Notifications router — in-app notification management."""

import uuid

from fastapi import APIRouter, Depends, Query
from sqlalchemy import func, select, update

from app.context import RequestContext
from app.dependencies import get_request_context
from app.errors import NotFoundError
from app.models.notification import Notification

router = APIRouter()


@router.get("")
async def list_notifications(
    is_read: bool | None = Query(None, alias="isRead"),
    limit: int = Query(20, ge=1, le=100),
    ctx: RequestContext = Depends(get_request_context),
):
    """Get the caller's notifications, newest first."""
    query = (
        select(Notification)
        .where(Notification.user_id == ctx.user.id)
        .order_by(Notification.created_at.desc())
        .limit(limit)
    )
    if is_read is not None:
        query = query.where(Notification.is_read == is_read)

    result = await ctx.db.execute(query)
    notifications = result.scalars().all()

    count_result = await ctx.db.execute(
        select(func.count(Notification.id))
        .where(Notification.user_id == ctx.user.id, Notification.is_read == False)
    )
    unread_count = count_result.scalar() or 0

    return {
        "success": True,
        "data": [
            {
                "id": str(n.id),
                "type": n.type,
                "title": n.title,
                "body": n.body,
                "referenceType": n.reference_type,
                "referenceId": str(n.reference_id) if n.reference_id else None,
                "isRead": n.is_read,
                "createdAt": n.created_at.isoformat() if n.created_at else None,
            }
            for n in notifications
        ],
        "unreadCount": unread_count,
    }


@router.put("/read-all")
async def mark_all_read(ctx: RequestContext = Depends(get_request_context)):
    await ctx.db.execute(
        update(Notification)
        .where(Notification.user_id == ctx.user.id, Notification.is_read == False)
        .values(is_read=True)
    )
    await ctx.db.commit()
    return {"success": True}


@router.put("/{notification_id}/read")
async def mark_read(
    notification_id: uuid.UUID,
    ctx: RequestContext = Depends(get_request_context),
):
    result = await ctx.db.execute(
        select(Notification).where(
            Notification.id == notification_id, Notification.user_id == ctx.user.id
        )
    )
    notification = result.scalar_one_or_none()
    if not notification:
        raise NotFoundError("Notification not found")

    notification.is_read = True
    await ctx.db.commit()
    return {"success": True}
