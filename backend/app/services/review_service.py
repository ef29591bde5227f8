"""Review service — guest reviews of completed stays and per-property rating stats."""

import logging
import uuid
from decimal import ROUND_HALF_UP, Decimal

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.context import RequestContext
from app.errors import Forbidden, NotFoundError, ValidationError
from app.models.booking import Booking, BookingStatus
from app.models.property import Property
from app.models.review import RATING_CATEGORIES, Review
from app.models.user import UserRole
from app.schemas.review import CreateReviewRequest, UpdateReviewRequest
from app.services.booking_service import booking_service

logger = logging.getLogger(__name__)

ALREADY_REVIEWED = "You have already submitted a review for this booking"


def _one_decimal(value) -> Decimal:
    return Decimal(value).quantize(Decimal("0.1"), rounding=ROUND_HALF_UP)


class ReviewService:
    """Reviews can only be written by the guest of a completed booking."""

    async def can_review(self, ctx: RequestContext, property_id: uuid.UUID) -> Booking | None:
        """The caller's most recent completed, not yet reviewed booking at a property."""
        result = await ctx.db.execute(
            select(Booking)
            .outerjoin(Review, Review.booking_id == Booking.id)
            .where(
                Booking.user_id == ctx.user.id,
                Booking.property_id == property_id,
                Booking.status == BookingStatus.COMPLETED.value,
                Review.id.is_(None),
            )
            .order_by(Booking.check_out.desc())
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def create_review(self, ctx: RequestContext, req: CreateReviewRequest) -> Review:
        booking = await booking_service.get_booking(ctx, req.booking_id)
        if not ctx.owns(booking.user_id):
            raise Forbidden("You can only review bookings you have made")
        if booking.status != BookingStatus.COMPLETED:
            raise ValidationError("Cannot review a booking that has not been completed")

        existing = await ctx.db.execute(select(Review.id).where(Review.booking_id == booking.id))
        if existing.scalar_one_or_none():
            raise ValidationError(ALREADY_REVIEWED)

        review = Review(
            property_id=booking.property_id,
            booking_id=booking.id,
            user_id=ctx.user.id,
            reviewer_name=ctx.user.full_name,
            rating=req.rating,
            title=req.title,
            content=req.content,
            categories=req.categories.model_dump(),
            is_public=True,
            helpful_votes=0,
            flag_count=0,
            flag_reasons=[],
        )
        ctx.db.add(review)
        try:
            await ctx.db.flush()
        except IntegrityError:
            await ctx.db.rollback()
            raise ValidationError(ALREADY_REVIEWED)

        await self.update_property_rating_stats(ctx.db, booking.property_id)
        await ctx.db.commit()
        await ctx.db.refresh(review)
        logger.info(f"Review {review.id} posted for property {review.property_id} by {ctx.user.id}")
        return review

    async def get_review(self, db: AsyncSession, review_id: uuid.UUID) -> Review:
        review = await db.get(Review, review_id)
        if not review:
            raise NotFoundError("Review not found")
        return review

    async def list_property_reviews(
        self, db: AsyncSession, property_id: uuid.UUID, limit: int | None = None
    ) -> list[Review]:
        query = (
            select(Review)
            .where(Review.property_id == property_id, Review.is_public == True)
            .order_by(Review.created_at.desc())
        )
        if limit:
            query = query.limit(limit)
        result = await db.execute(query)
        return list(result.scalars().all())

    async def list_user_reviews(self, ctx: RequestContext) -> list[Review]:
        result = await ctx.db.execute(
            select(Review).where(Review.user_id == ctx.user.id).order_by(Review.created_at.desc())
        )
        return list(result.scalars().all())

    async def update_review(
        self, ctx: RequestContext, review_id: uuid.UUID, req: UpdateReviewRequest
    ) -> Review:
        review = await self.get_review(ctx.db, review_id)
        if not ctx.owns(review.user_id):
            raise Forbidden()

        changes = req.model_dump(exclude_none=True)
        for field, value in changes.items():
            setattr(review, field, value)

        if "rating" in changes or "categories" in changes:
            await ctx.db.flush()
            await self.update_property_rating_stats(ctx.db, review.property_id)
        await ctx.db.commit()
        await ctx.db.refresh(review)
        logger.info(f"Review {review.id} updated by {ctx.user.id}")
        return review

    async def delete_review(self, ctx: RequestContext, review_id: uuid.UUID) -> None:
        review = await self.get_review(ctx.db, review_id)
        if not (ctx.is_admin or ctx.owns(review.user_id)):
            raise Forbidden()

        property_id = review.property_id
        await ctx.db.delete(review)
        await ctx.db.flush()
        await self.update_property_rating_stats(ctx.db, property_id)
        await ctx.db.commit()
        logger.info(f"Review {review_id} deleted by {ctx.user.id}")

    async def add_host_response(self, ctx: RequestContext, review_id: uuid.UUID, response: str) -> Review:
        if ctx.user.role not in (UserRole.HOST.value, UserRole.ADMIN.value):
            raise Forbidden("Host access required")
        review = await self.get_review(ctx.db, review_id)
        review.host_response = response
        review.host_response_at = ctx.now
        await ctx.db.commit()
        await ctx.db.refresh(review)
        logger.info(f"Host response added to review {review.id} by {ctx.user.id}")
        return review

    async def mark_helpful(self, db: AsyncSession, review_id: uuid.UUID) -> Review:
        review = await self.get_review(db, review_id)
        review.helpful_votes = Review.helpful_votes + 1
        await db.commit()
        await db.refresh(review)
        return review

    async def flag_review(self, ctx: RequestContext, review_id: uuid.UUID, reason: str) -> Review:
        """Record a flag; enough flags take the review out of public listings and stats."""
        review = await self.get_review(ctx.db, review_id)
        review.flag_count = (review.flag_count or 0) + 1
        review.flag_reasons = [*(review.flag_reasons or []), reason]

        if review.is_public and review.flag_count >= settings.review_flag_threshold:
            review.is_public = False
            await ctx.db.flush()
            await self.update_property_rating_stats(ctx.db, review.property_id)
            logger.warning(f"Review {review.id} hidden after {review.flag_count} flags")

        await ctx.db.commit()
        await ctx.db.refresh(review)
        return review

    async def list_flagged(self, ctx: RequestContext) -> list[Review]:
        if not ctx.is_admin:
            raise Forbidden("Administrator access required")
        result = await ctx.db.execute(
            select(Review)
            .where(Review.flag_count > 0)
            .order_by(Review.flag_count.desc(), Review.created_at.desc())
        )
        return list(result.scalars().all())

    async def update_property_rating_stats(self, db: AsyncSession, property_id: uuid.UUID) -> None:
        """Recompute a property's average rating and category breakdown. Caller commits."""
        prop = await db.get(Property, property_id)
        if not prop:
            return

        result = await db.execute(
            select(Review.rating, Review.categories).where(
                Review.property_id == property_id, Review.is_public == True
            )
        )
        rows = result.all()

        if not rows:
            prop.average_rating = Decimal("0")
            prop.review_count = 0
            prop.rating_breakdown = {name: 0 for name in RATING_CATEGORIES}
            return

        count = len(rows)
        prop.average_rating = _one_decimal(Decimal(sum(rating for rating, _ in rows)) / count)
        prop.review_count = count
        prop.rating_breakdown = {
            name: float(_one_decimal(Decimal(sum(cats.get(name, 0) for _, cats in rows)) / count))
            for name in RATING_CATEGORIES
        }

    async def top_rated_properties(self, db: AsyncSession, limit: int | None = None) -> list[Property]:
        result = await db.execute(
            select(Property)
            .where(Property.is_active == True, Property.review_count > 0)
            .order_by(Property.average_rating.desc(), Property.review_count.desc())
            .limit(limit or settings.top_rated_limit)
        )
        return list(result.scalars().all())


review_service = ReviewService()
