"""Cancellation policy engine — policy terms, status transitions, refunds."""

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone
from decimal import ROUND_HALF_UP, Decimal

from app.errors import InvalidStatusTransition, ValidationError
from app.models.booking import BookingStatus, CancellationPolicy


@dataclass(frozen=True)
class PolicyTerms:
    name: str
    price_modifier: Decimal
    full_refund_days: int | None  # None = never
    partial_refund_days: int | None
    partial_refund_pct: int = 0
    change_fee: Decimal | None = None


# One canonical schedule. Day cutoffs are "whole days before check-in".
POLICIES: dict[CancellationPolicy, PolicyTerms] = {
    CancellationPolicy.STANDARD: PolicyTerms(
        name="Standard",
        price_modifier=Decimal("0"),
        full_refund_days=7,
        partial_refund_days=3,
        partial_refund_pct=50,
    ),
    CancellationPolicy.FLEXIBLE: PolicyTerms(
        name="Flexible",
        price_modifier=Decimal("0.10"),
        full_refund_days=1,
        partial_refund_days=None,
    ),
    CancellationPolicy.NON_REFUNDABLE: PolicyTerms(
        name="Non-refundable",
        price_modifier=Decimal("-0.15"),
        full_refund_days=None,
        partial_refund_days=None,
        change_fee=Decimal("25.00"),
    ),
}


def policy_terms(policy: CancellationPolicy | str) -> PolicyTerms:
    return POLICIES[CancellationPolicy(policy)]


# ─── Status state machine ───

ALLOWED_TRANSITIONS: dict[BookingStatus, set[BookingStatus]] = {
    BookingStatus.PENDING: {BookingStatus.CONFIRMED, BookingStatus.CANCELED},
    BookingStatus.CONFIRMED: {BookingStatus.COMPLETED, BookingStatus.CANCELED},
    BookingStatus.COMPLETED: set(),
    BookingStatus.CANCELED: set(),
}


def can_transition(current: BookingStatus | str, target: BookingStatus | str) -> bool:
    return BookingStatus(target) in ALLOWED_TRANSITIONS[BookingStatus(current)]


def ensure_transition(current: BookingStatus | str, target: BookingStatus | str) -> None:
    current, target = BookingStatus(current), BookingStatus(target)
    if target not in ALLOWED_TRANSITIONS[current]:
        if current == BookingStatus.CANCELED and target == BookingStatus.CANCELED:
            raise InvalidStatusTransition("Booking is already canceled")
        raise InvalidStatusTransition(
            f"Cannot change booking from '{current.value}' to '{target.value}'"
        )


# ─── Refunds ───


@dataclass(frozen=True)
class RefundDecision:
    amount: Decimal
    tier: str  # full | partial | none | override
    days_before_check_in: int


def days_before_check_in(check_in: date, now: datetime) -> int:
    """Whole days from now until midnight UTC of the check-in date, floored."""
    check_in_at = datetime.combine(check_in, time.min, tzinfo=timezone.utc)
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    return (check_in_at - now) // timedelta(days=1)


def compute_refund(
    total: Decimal,
    check_in: date,
    policy: CancellationPolicy | str,
    now: datetime,
    is_admin: bool = False,
    requested_amount: Decimal | None = None,
) -> RefundDecision:
    """Refund owed when a booking is canceled at `now`.

    Admins may set any amount between 0 and the stored total; when they do not
    supply one the policy schedule applies like for a guest. Guests always get
    the schedule.
    """
    days = days_before_check_in(check_in, now)

    if is_admin and requested_amount is not None:
        amount = Decimal(requested_amount)
        if amount < 0 or amount > total:
            raise ValidationError(f"Refund amount must be between 0 and {total}")
        return RefundDecision(amount=amount.quantize(Decimal("0.01")), tier="override", days_before_check_in=days)

    terms = policy_terms(policy)
    if terms.full_refund_days is not None and days >= terms.full_refund_days:
        return RefundDecision(amount=total, tier="full", days_before_check_in=days)
    if terms.partial_refund_days is not None and days >= terms.partial_refund_days:
        amount = (total * terms.partial_refund_pct / Decimal("100")).quantize(
            Decimal("0.01"), rounding=ROUND_HALF_UP
        )
        return RefundDecision(amount=amount, tier="partial", days_before_check_in=days)
    return RefundDecision(amount=Decimal("0.00"), tier="none", days_before_check_in=days)
