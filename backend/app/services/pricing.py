"""Pricing calculator — nightly, cleaning, service, tax and total for a stay."""

from dataclasses import asdict, dataclass
from decimal import ROUND_HALF_UP, Decimal

from app.errors import ValidationError
from app.models.booking import CancellationPolicy
from app.models.property import Property
from app.services.cancellation_policy import policy_terms
from app.services.date_range import DateRange

CENT = Decimal("0.01")
HUNDRED = Decimal("100")


def to_cents(amount: Decimal) -> Decimal:
    """Round half-up to the nearest cent."""
    return Decimal(amount).quantize(CENT, rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class PriceBreakdown:
    nightly_rate: Decimal
    nights: int
    subtotal: Decimal
    cleaning_fee: Decimal
    service_fee: Decimal
    taxable_base: Decimal
    taxes: Decimal
    total: Decimal

    def as_dict(self) -> dict:
        return asdict(self)


def calculate_price(
    base_rate: Decimal,
    nights: int,
    cleaning_fee: Decimal = Decimal("0"),
    service_fee_pct: Decimal = Decimal("0"),
    tax_rate_pct: Decimal = Decimal("0"),
    policy_modifier: Decimal = Decimal("0"),
) -> PriceBreakdown:
    """Compute the price of a stay.

    Every step is rounded to cents before the next step uses it, so identical
    inputs always give the identical total. Percentages are whole-number
    percentages (12 means 12%); the policy modifier is a fraction (-0.15).
    """
    if nights < 1:
        raise ValidationError("A stay must be at least one night")
    if base_rate < 0 or cleaning_fee < 0 or service_fee_pct < 0 or tax_rate_pct < 0:
        raise ValidationError("Rates and fees cannot be negative")

    nightly_rate = to_cents(Decimal(base_rate) * (1 + Decimal(policy_modifier)))
    subtotal = to_cents(nightly_rate * nights)
    cleaning = to_cents(Decimal(cleaning_fee))
    service_fee = to_cents(subtotal * Decimal(service_fee_pct) / HUNDRED)
    taxable_base = subtotal + cleaning + service_fee
    taxes = to_cents(taxable_base * Decimal(tax_rate_pct) / HUNDRED)
    total = subtotal + cleaning + service_fee + taxes

    return PriceBreakdown(
        nightly_rate=nightly_rate,
        nights=nights,
        subtotal=subtotal,
        cleaning_fee=cleaning,
        service_fee=service_fee,
        taxable_base=taxable_base,
        taxes=taxes,
        total=total,
    )


def quote_for_property(
    prop: Property, date_range: DateRange, policy: CancellationPolicy
) -> PriceBreakdown:
    """Price a stay against a property's current rate card."""
    return calculate_price(
        base_rate=prop.base_price,
        nights=date_range.nights,
        cleaning_fee=prop.cleaning_fee or Decimal("0"),
        service_fee_pct=prop.service_fee_pct or Decimal("0"),
        tax_rate_pct=prop.tax_rate_pct or Decimal("0"),
        policy_modifier=policy_terms(policy).price_modifier,
    )
