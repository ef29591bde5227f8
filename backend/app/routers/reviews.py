"""Reviews router — guest reviews, host responses and moderation flags."""

import uuid

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.context import RequestContext
from app.database import get_db
from app.dependencies import get_request_context, require_admin
from app.errors import NotFoundError
from app.schemas.review import (
    CreateReviewRequest,
    FlaggedReviewResponse,
    FlagReviewRequest,
    HostResponseRequest,
    ReviewResponse,
    UpdateReviewRequest,
)
from app.services.review_service import review_service

router = APIRouter()


@router.post("", status_code=201)
async def create_review(
    req: CreateReviewRequest,
    ctx: RequestContext = Depends(get_request_context),
):
    review = await review_service.create_review(ctx, req)
    return {"success": True, "reviewId": str(review.id)}


@router.get("/eligibility")
async def review_eligibility(
    property_id: uuid.UUID = Query(..., alias="propertyId"),
    ctx: RequestContext = Depends(get_request_context),
):
    """Whether the caller has a completed stay at the property still to review."""
    booking = await review_service.can_review(ctx, property_id)
    return {
        "success": True,
        "data": {"canReview": booking is not None, "bookingId": str(booking.id) if booking else None},
    }


@router.get("/mine")
async def my_reviews(ctx: RequestContext = Depends(get_request_context)):
    reviews = await review_service.list_user_reviews(ctx)
    return {"success": True, "data": [ReviewResponse.from_review(r).to_json() for r in reviews]}


@router.get("/flagged")
async def flagged_reviews(ctx: RequestContext = Depends(require_admin)):
    reviews = await review_service.list_flagged(ctx)
    return {"success": True, "data": [FlaggedReviewResponse.from_review(r).to_json() for r in reviews]}


@router.get("/{review_id}")
async def get_review(review_id: uuid.UUID, db: AsyncSession = Depends(get_db)):
    review = await review_service.get_review(db, review_id)
    if not review.is_public:
        raise NotFoundError("Review not found")
    return {"success": True, "data": ReviewResponse.from_review(review).to_json()}


@router.patch("/{review_id}")
async def update_review(
    review_id: uuid.UUID,
    req: UpdateReviewRequest,
    ctx: RequestContext = Depends(get_request_context),
):
    review = await review_service.update_review(ctx, review_id, req)
    return {"success": True, "review": ReviewResponse.from_review(review).to_json()}


@router.delete("/{review_id}")
async def delete_review(
    review_id: uuid.UUID,
    ctx: RequestContext = Depends(get_request_context),
):
    await review_service.delete_review(ctx, review_id)
    return {"success": True}


@router.post("/{review_id}/response")
async def add_host_response(
    review_id: uuid.UUID,
    req: HostResponseRequest,
    ctx: RequestContext = Depends(get_request_context),
):
    review = await review_service.add_host_response(ctx, review_id, req.response)
    return {"success": True, "review": ReviewResponse.from_review(review).to_json()}


@router.post("/{review_id}/helpful")
async def mark_helpful(
    review_id: uuid.UUID,
    ctx: RequestContext = Depends(get_request_context),
):
    review = await review_service.mark_helpful(ctx.db, review_id)
    return {"success": True, "helpfulVotes": review.helpful_votes}


@router.post("/{review_id}/flag")
async def flag_review(
    review_id: uuid.UUID,
    req: FlagReviewRequest,
    ctx: RequestContext = Depends(get_request_context),
):
    await review_service.flag_review(ctx, review_id, req.reason)
    return {"success": True}
