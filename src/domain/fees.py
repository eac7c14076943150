# src/domain/fees.py

from dataclasses import dataclass
from typing import Iterable, Optional, Sequence

from src.domain.exceptions import ValidationError


# Placeholder applied when a booking is opened; the webhook stores the real fee.
PROVISIONAL_PLATFORM_FEE = 0.08


@dataclass(frozen=True)
class FeeSlab:
    min_price: float
    max_price: Optional[float]
    fee: float

    def matches(self, price: float) -> bool:
        if price < self.min_price:
            return False
        return self.max_price is None or price <= self.max_price


DEFAULT_FEE_SLABS: tuple[FeeSlab, ...] = (
    FeeSlab(min_price=0, max_price=199, fee=0.05),
    FeeSlab(min_price=200, max_price=400, fee=0.07),
    FeeSlab(min_price=401, max_price=None, fee=0.08),
)


def fee_for_price(price: float, slabs: Optional[Sequence[FeeSlab]] = None) -> float:
    """
    Tiered platform-fee fraction for a ticket price.

    Slabs are evaluated in order and the first match wins. A price that
    falls between two slabs takes the fee of the closest slab below it.
    """
    if price < 0:
        raise ValidationError("Ticket price must not be negative")

    active = list(slabs) if slabs else list(DEFAULT_FEE_SLABS)

    for slab in active:
        if slab.matches(price):
            return slab.fee

    below = [slab for slab in active if slab.min_price <= price]
    if below:
        return max(below, key=lambda slab: slab.min_price).fee
    return min(active, key=lambda slab: slab.min_price).fee


def resolve_fee_fraction(
    price: float,
    slabs: Optional[Sequence[FeeSlab]] = None,
    show_override: Optional[float] = None,
    creator_override: Optional[float] = None,
) -> float:
    """
    Effective platform-fee fraction. Overrides are percents (0-100):
    show override first, then the creator's, then the tiered default.
    """
    if show_override is not None:
        return show_override / 100
    if creator_override is not None:
        return creator_override / 100
    return fee_for_price(price, slabs)


def platform_fee(total_amount: float, fraction: float) -> float:
    return round(total_amount * fraction, 2)


def creator_payout(gross_revenue: float, platform_fees: float) -> float:
    return round(gross_revenue - platform_fees, 2)


def validate_override_percent(value: Optional[float]) -> Optional[float]:
    if value is None:
        return None
    if value < 0 or value > 100:
        raise ValidationError("Invalid fee percentage (0-100 required)")
    return float(value)


def validate_slabs(slabs: Iterable[FeeSlab]) -> list[FeeSlab]:
    checked = []
    for index, slab in enumerate(slabs, start=1):
        if slab.fee < 0 or slab.fee > 1:
            raise ValidationError(f"Slab {index}: fee must be a fraction between 0 and 1")
        if slab.min_price < 0:
            raise ValidationError(f"Slab {index}: minPrice must not be negative")
        if slab.max_price is not None and slab.max_price < slab.min_price:
            raise ValidationError(f"Slab {index}: maxPrice must not be below minPrice")
        checked.append(slab)
    if not checked:
        raise ValidationError("At least one fee slab is required")
    return checked
