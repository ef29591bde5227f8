"""Bookings router — create, quote, view, update and cancel stays."""

import uuid

from fastapi import APIRouter, Depends, Query

from app.config import settings
from app.context import RequestContext
from app.dependencies import get_request_context, require_admin
from app.models.booking import BookingStatus
from app.schemas.booking import (
    BookingResponse,
    CancelBookingRequest,
    CreateBookingRequest,
    ProcessPaymentRequest,
    QuoteRequest,
    QuoteResponse,
    UpdateBookingRequest,
)
from app.services.booking_service import booking_service
from app.services.date_range import DateRange

router = APIRouter()


@router.post("/create", status_code=201)
async def create_booking(
    req: CreateBookingRequest,
    ctx: RequestContext = Depends(get_request_context),
):
    booking = await booking_service.create_booking(ctx, req)
    return {"success": True, "bookingId": str(booking.id)}


@router.post("/quote")
async def quote_booking(
    req: QuoteRequest,
    ctx: RequestContext = Depends(get_request_context),
):
    """Price a stay without reserving it."""
    price = await booking_service.quote(
        ctx.db, req.property_id, DateRange(req.check_in, req.check_out), req.cancellation_policy
    )
    data = QuoteResponse(
        **price.as_dict(),
        currency=settings.currency,
        cancellation_policy=req.cancellation_policy,
    )
    return {"success": True, "data": data.model_dump(mode="json", by_alias=True)}


@router.get("")
async def list_bookings(
    status: BookingStatus | None = Query(None),
    property_id: uuid.UUID | None = Query(None, alias="propertyId"),
    all_users: bool = Query(False, alias="all"),
    ctx: RequestContext = Depends(get_request_context),
):
    """The caller's bookings; admins may pass all=true for everyone's."""
    bookings = await booking_service.list_bookings(ctx, status, property_id, all_users)
    return {"success": True, "data": [BookingResponse.from_booking(b).to_json() for b in bookings]}


@router.get("/{booking_id}")
async def get_booking(
    booking_id: str,
    ctx: RequestContext = Depends(get_request_context),
):
    booking = await booking_service.get_booking(ctx, booking_id)
    return {"success": True, "data": BookingResponse.from_booking(booking).to_json()}


@router.patch("/{booking_id}")
async def update_booking(
    booking_id: str,
    req: UpdateBookingRequest,
    ctx: RequestContext = Depends(get_request_context),
):
    booking = await booking_service.update_booking(ctx, booking_id, req)
    return {"success": True, "booking": BookingResponse.from_booking(booking).to_json()}


@router.post("/cancel")
async def cancel_booking(
    req: CancelBookingRequest,
    ctx: RequestContext = Depends(get_request_context),
):
    _, decision = await booking_service.cancel_booking(
        ctx, req.booking_id, req.reason, req.refund_amount
    )
    return {"success": True, "refundAmount": float(decision.amount)}


@router.post("/{booking_id}/confirm")
async def confirm_booking(
    booking_id: str,
    ctx: RequestContext = Depends(require_admin),
):
    booking = await booking_service.confirm_booking(ctx, booking_id)
    return {"success": True, "booking": BookingResponse.from_booking(booking).to_json()}


@router.post("/{booking_id}/complete")
async def complete_booking(
    booking_id: str,
    ctx: RequestContext = Depends(require_admin),
):
    booking = await booking_service.complete_booking(ctx, booking_id)
    return {"success": True, "booking": BookingResponse.from_booking(booking).to_json()}


@router.post("/{booking_id}/payment")
async def process_payment(
    booking_id: str,
    req: ProcessPaymentRequest,
    ctx: RequestContext = Depends(get_request_context),
):
    """Record a payment result from the payment provider for the caller's booking."""
    booking = await booking_service.process_payment(
        ctx, booking_id, req.method, req.transaction_id, req.succeeded
    )
    return {"success": True, "booking": BookingResponse.from_booking(booking).to_json()}
