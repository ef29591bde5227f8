import uuid
from datetime import date
from decimal import Decimal

from pydantic import Field

from app.schemas.booking import CamelModel


class PropertyCreate(CamelModel):
    name: str = Field(..., min_length=1)
    slug: str = Field(..., min_length=1, pattern=r"^[a-z0-9-]+$")
    property_type: str = "dome"
    short_description: str | None = None
    description: str | None = None
    max_guests: int = Field(..., ge=1)
    min_nights: int = Field(1, ge=1)
    base_price: Decimal = Field(..., ge=0)
    cleaning_fee: Decimal = Field(Decimal("0"), ge=0)
    service_fee_pct: Decimal = Field(Decimal("0"), ge=0, le=100)
    tax_rate_pct: Decimal = Field(Decimal("0"), ge=0, le=100)
    check_in_time: str = "15:00"
    check_out_time: str = "11:00"


class PropertyUpdate(CamelModel):
    name: str | None = Field(None, min_length=1)
    short_description: str | None = None
    description: str | None = None
    max_guests: int | None = Field(None, ge=1)
    min_nights: int | None = Field(None, ge=1)
    base_price: Decimal | None = Field(None, ge=0)
    cleaning_fee: Decimal | None = Field(None, ge=0)
    service_fee_pct: Decimal | None = Field(None, ge=0, le=100)
    tax_rate_pct: Decimal | None = Field(None, ge=0, le=100)
    is_active: bool | None = None


class RatingBreakdown(CamelModel):
    cleanliness: float = 0
    communication: float = 0
    check_in: float = 0
    accuracy: float = 0
    location: float = 0
    value: float = 0


class PropertyResponse(CamelModel):
    id: uuid.UUID
    name: str
    slug: str
    property_type: str
    short_description: str | None
    description: str | None
    max_guests: int
    min_nights: int
    base_price: float
    cleaning_fee: float
    service_fee_pct: float
    tax_rate_pct: float
    check_in_time: str
    check_out_time: str
    is_active: bool
    average_rating: float = 0
    review_count: int = 0
    rating_breakdown: RatingBreakdown | None = None

    model_config = {"from_attributes": True}


class BlockedRangeCreate(CamelModel):
    start_date: date
    end_date: date
    reason: str | None = None


class BlockedRangeResponse(CamelModel):
    id: uuid.UUID
    property_id: uuid.UUID
    start_date: date
    end_date: date
    reason: str | None

    model_config = {"from_attributes": True}
