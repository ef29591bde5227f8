"""Properties router — listings, availability calendar, reviews and owner holds."""

import uuid
from datetime import date

from fastapi import APIRouter, Depends, Query
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.context import RequestContext
from app.database import get_db
from app.dependencies import require_admin
from app.errors import NotFoundError, ValidationError
from app.models.property import Property
from app.schemas.property import (
    BlockedRangeCreate,
    BlockedRangeResponse,
    PropertyCreate,
    PropertyResponse,
    PropertyUpdate,
    RatingBreakdown,
)
from app.schemas.review import ReviewResponse
from app.services.availability_service import availability_service
from app.services.review_service import review_service

router = APIRouter()
blocked_ranges_router = APIRouter()


def _property_json(prop: Property) -> dict:
    return PropertyResponse.model_validate(prop).model_dump(mode="json", by_alias=True)


async def _get_property(db: AsyncSession, property_id: uuid.UUID) -> Property:
    prop = await db.get(Property, property_id)
    if not prop:
        raise NotFoundError("Property not found")
    return prop


@router.get("")
async def list_properties(db: AsyncSession = Depends(get_db)):
    result = await db.execute(
        select(Property).where(Property.is_active == True).order_by(Property.name)
    )
    return {"success": True, "data": [_property_json(p) for p in result.scalars().all()]}


@router.get("/top-rated")
async def top_rated_properties(
    limit: int | None = Query(None, ge=1, le=50),
    db: AsyncSession = Depends(get_db),
):
    properties = await review_service.top_rated_properties(db, limit)
    return {"success": True, "data": [_property_json(p) for p in properties]}


@router.get("/{property_id}")
async def get_property(property_id: uuid.UUID, db: AsyncSession = Depends(get_db)):
    prop = await _get_property(db, property_id)
    if not prop.is_active:
        raise NotFoundError("Property not found")
    return {"success": True, "data": _property_json(prop)}


@router.get("/{property_id}/availability")
async def get_availability(
    property_id: uuid.UUID,
    start: date = Query(...),
    end: date = Query(...),
    db: AsyncSession = Depends(get_db),
):
    """Days in [start, end) that are booked or blocked."""
    await _get_property(db, property_id)
    if (end - start).days > 366:
        raise ValidationError("Availability window cannot exceed one year")
    days = await availability_service.unavailable_days(db, property_id, start, end)
    return {
        "success": True,
        "data": {
            "propertyId": str(property_id),
            "start": start.isoformat(),
            "end": end.isoformat(),
            "unavailableDates": [d.isoformat() for d in days],
        },
    }


@router.get("/{property_id}/reviews")
async def list_property_reviews(
    property_id: uuid.UUID,
    limit: int | None = Query(None, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
):
    """Public reviews, newest first, with the property's rating summary."""
    prop = await _get_property(db, property_id)
    reviews = await review_service.list_property_reviews(db, property_id, limit)
    return {
        "success": True,
        "data": {
            "averageRating": float(prop.average_rating or 0),
            "reviewCount": prop.review_count or 0,
            "ratingBreakdown": (
                RatingBreakdown.model_validate(prop.rating_breakdown).model_dump(by_alias=True)
                if prop.rating_breakdown else None
            ),
            "reviews": [ReviewResponse.from_review(r).to_json() for r in reviews],
        },
    }


@router.post("", status_code=201)
async def create_property(
    req: PropertyCreate,
    ctx: RequestContext = Depends(require_admin),
):
    prop = Property(**req.model_dump())
    ctx.db.add(prop)
    try:
        await ctx.db.commit()
    except IntegrityError:
        await ctx.db.rollback()
        raise ValidationError(f"A property with slug '{req.slug}' already exists")
    await ctx.db.refresh(prop)
    return {"success": True, "data": _property_json(prop)}


@router.patch("/{property_id}")
async def update_property(
    property_id: uuid.UUID,
    req: PropertyUpdate,
    ctx: RequestContext = Depends(require_admin),
):
    """Rate-card edits apply to future bookings only; stored bookings keep their pricing."""
    prop = await _get_property(ctx.db, property_id)
    for field, value in req.model_dump(exclude_unset=True).items():
        setattr(prop, field, value)
    await ctx.db.commit()
    await ctx.db.refresh(prop)
    return {"success": True, "data": _property_json(prop)}


@router.post("/{property_id}/blocked-ranges", status_code=201)
async def create_blocked_range(
    property_id: uuid.UUID,
    req: BlockedRangeCreate,
    ctx: RequestContext = Depends(require_admin),
):
    block = await availability_service.add_blocked_range(
        ctx.db, property_id, req.start_date, req.end_date, req.reason, created_by=ctx.user.id
    )
    return {
        "success": True,
        "data": BlockedRangeResponse.model_validate(block).model_dump(mode="json", by_alias=True),
    }


@blocked_ranges_router.delete("/{block_id}")
async def delete_blocked_range(
    block_id: uuid.UUID,
    ctx: RequestContext = Depends(require_admin),
):
    await availability_service.remove_blocked_range(ctx.db, block_id)
    return {"success": True}
