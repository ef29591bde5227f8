"""Tests for cancellation terms, refunds and booking status transitions."""

from datetime import date, datetime, timedelta, timezone
from decimal import Decimal

import pytest

from app.errors import InvalidStatusTransition, ValidationError
from app.models.booking import BookingStatus, CancellationPolicy
from app.services.cancellation_policy import (
    can_transition,
    compute_refund,
    days_before_check_in,
    ensure_transition,
    policy_terms,
)

NOW = datetime(2025, 6, 1, 10, 0, tzinfo=timezone.utc)
TOTAL = Decimal("776.13")


def _check_in(days: int) -> date:
    """Check-in date that is exactly `days` whole days after NOW."""
    return (NOW + timedelta(days=days + 1)).date()


class TestDaysBeforeCheckIn:
    def test_floors_partial_days(self):
        # 10:00 on June 1 to midnight June 4 is 2 days 14 hours
        assert days_before_check_in(date(2025, 6, 4), NOW) == 2

    def test_naive_now_is_treated_as_utc(self):
        assert days_before_check_in(date(2025, 6, 4), NOW.replace(tzinfo=None)) == 2

    def test_past_check_in_is_negative(self):
        assert days_before_check_in(date(2025, 5, 30), NOW) < 0


class TestStandardPolicy:
    def test_full_refund_ten_days_out(self):
        decision = compute_refund(TOTAL, _check_in(10), CancellationPolicy.STANDARD, NOW)
        assert decision.amount == TOTAL
        assert decision.tier == "full"
        assert decision.days_before_check_in == 10

    def test_half_refund_five_days_out(self):
        decision = compute_refund(TOTAL, _check_in(5), CancellationPolicy.STANDARD, NOW)
        assert decision.amount == Decimal("388.07")
        assert decision.tier == "partial"

    def test_no_refund_one_day_out(self):
        decision = compute_refund(TOTAL, _check_in(1), CancellationPolicy.STANDARD, NOW)
        assert decision.amount == Decimal("0.00")
        assert decision.tier == "none"

    def test_boundary_seven_days_is_full(self):
        assert compute_refund(TOTAL, _check_in(7), "standard", NOW).tier == "full"

    def test_boundary_three_days_is_partial(self):
        assert compute_refund(TOTAL, _check_in(3), "standard", NOW).tier == "partial"


class TestOtherPolicies:
    def test_flexible_full_refund_one_day_out(self):
        decision = compute_refund(TOTAL, _check_in(1), CancellationPolicy.FLEXIBLE, NOW)
        assert decision.amount == TOTAL

    def test_flexible_no_refund_on_arrival_day(self):
        decision = compute_refund(TOTAL, _check_in(0), CancellationPolicy.FLEXIBLE, NOW)
        assert decision.amount == Decimal("0.00")

    def test_non_refundable_never_refunds_guests(self):
        decision = compute_refund(TOTAL, _check_in(30), CancellationPolicy.NON_REFUNDABLE, NOW)
        assert decision.amount == Decimal("0.00")

    def test_policy_terms(self):
        assert policy_terms("flexible").price_modifier == Decimal("0.10")
        assert policy_terms(CancellationPolicy.NON_REFUNDABLE).change_fee == Decimal("25.00")


class TestAdminOverride:
    def test_admin_amount_wins_over_schedule(self):
        decision = compute_refund(
            TOTAL, _check_in(30), CancellationPolicy.NON_REFUNDABLE, NOW,
            is_admin=True, requested_amount=Decimal("100"),
        )
        assert decision.amount == Decimal("100.00")
        assert decision.tier == "override"

    def test_guest_requested_amount_is_ignored(self):
        decision = compute_refund(
            TOTAL, _check_in(1), CancellationPolicy.STANDARD, NOW,
            is_admin=False, requested_amount=TOTAL,
        )
        assert decision.amount == Decimal("0.00")

    def test_admin_without_amount_gets_schedule(self):
        decision = compute_refund(TOTAL, _check_in(5), "standard", NOW, is_admin=True)
        assert decision.tier == "partial"

    def test_admin_amount_above_total_rejected(self):
        with pytest.raises(ValidationError):
            compute_refund(TOTAL, _check_in(5), "standard", NOW,
                           is_admin=True, requested_amount=TOTAL + 1)


class TestTransitions:
    @pytest.mark.parametrize("current,target", [
        (BookingStatus.PENDING, BookingStatus.CONFIRMED),
        (BookingStatus.PENDING, BookingStatus.CANCELED),
        (BookingStatus.CONFIRMED, BookingStatus.COMPLETED),
        (BookingStatus.CONFIRMED, BookingStatus.CANCELED),
    ])
    def test_allowed(self, current, target):
        assert can_transition(current, target)
        ensure_transition(current, target)

    @pytest.mark.parametrize("current,target", [
        ("pending", "completed"),
        ("completed", "canceled"),
        ("canceled", "confirmed"),
    ])
    def test_rejected(self, current, target):
        assert not can_transition(current, target)
        with pytest.raises(InvalidStatusTransition):
            ensure_transition(current, target)

    def test_double_cancel_message(self):
        with pytest.raises(InvalidStatusTransition, match="already canceled"):
            ensure_transition("canceled", "canceled")
