import uuid
from datetime import datetime

from pydantic import Field

from app.models.review import Review
from app.schemas.booking import CamelModel


class ReviewCategories(CamelModel):
    cleanliness: int = Field(..., ge=1, le=5)
    communication: int = Field(..., ge=1, le=5)
    check_in: int = Field(..., ge=1, le=5)
    accuracy: int = Field(..., ge=1, le=5)
    location: int = Field(..., ge=1, le=5)
    value: int = Field(..., ge=1, le=5)


class CreateReviewRequest(CamelModel):
    booking_id: uuid.UUID
    rating: int = Field(..., ge=1, le=5)
    title: str | None = Field(None, max_length=255)
    content: str = Field(..., min_length=1)
    categories: ReviewCategories


class UpdateReviewRequest(CamelModel):
    rating: int | None = Field(None, ge=1, le=5)
    title: str | None = Field(None, max_length=255)
    content: str | None = Field(None, min_length=1)
    categories: ReviewCategories | None = None


class HostResponseRequest(CamelModel):
    response: str = Field(..., min_length=1)


class FlagReviewRequest(CamelModel):
    reason: str = Field(..., min_length=1, max_length=500)


class ReviewResponse(CamelModel):
    id: uuid.UUID
    property_id: uuid.UUID
    booking_id: uuid.UUID
    user_id: uuid.UUID
    reviewer_name: str | None
    rating: int
    title: str | None
    content: str
    categories: ReviewCategories
    host_response: str | None
    host_response_at: datetime | None
    helpful_votes: int
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @classmethod
    def from_review(cls, review: Review) -> "ReviewResponse":
        return cls(
            id=review.id,
            property_id=review.property_id,
            booking_id=review.booking_id,
            user_id=review.user_id,
            reviewer_name=review.reviewer_name,
            rating=review.rating,
            title=review.title,
            content=review.content,
            categories=ReviewCategories.model_validate(review.categories),
            host_response=review.host_response,
            host_response_at=review.host_response_at,
            helpful_votes=review.helpful_votes or 0,
            created_at=review.created_at,
            updated_at=review.updated_at,
        )

    def to_json(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)


class FlaggedReviewResponse(ReviewResponse):
    is_public: bool
    flag_count: int
    flag_reasons: list[str]

    @classmethod
    def from_review(cls, review: Review) -> "FlaggedReviewResponse":
        base = ReviewResponse.from_review(review).model_dump()
        return cls(
            **base,
            is_public=review.is_public,
            flag_count=review.flag_count,
            flag_reasons=list(review.flag_reasons or []),
        )
