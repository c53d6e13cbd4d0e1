"""
Fare Calculator

Pure functions for pricing a trip from its measured distance and duration.
All functions are stateless and safe to call concurrently.

Pricing Formula:
    base_price = distance_miles * base_mile_rate
                 + (duration_seconds / 3600) * base_hour_rate
    subtotal   = base_price with every selected surcharge applied in the
                 order the surcharges are configured
    final_price = max(0, subtotal with every selected discount applied in
                  the order the discounts are configured)

A percentage adjustment is taken from the running subtotal, so percentages
compound: +10% then +20% on 100 gives 132, not 130.

Example:
    10 mi * $2.50 + 0.5 h * $0.50 = $25.25
    + Airport Fee ($15 fixed)      = $40.25
    - Loyalty (10%)                = $36.225
"""

from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Sequence

from backend.app.models.billing_enums import AdjustmentKind, AdjustmentType

SECONDS_PER_HOUR = 3600


@dataclass(frozen=True)
class RateAdjustment:
    """A configured surcharge or discount rule."""
    id: Optional[int]
    name: str
    rate: float
    type: AdjustmentType = AdjustmentType.PERCENTAGE


@dataclass(frozen=True)
class RateSettings:
    """Fully materialized rate configuration."""
    base_mile_rate: float
    base_hour_rate: float
    surcharge_factors: Sequence[RateAdjustment] = ()
    discounts: Sequence[RateAdjustment] = ()


@dataclass
class AppliedAdjustment:
    """One line of the itemized price breakdown."""
    id: Optional[int]
    name: str
    kind: AdjustmentKind
    type: AdjustmentType
    rate: float
    applied_amount: float  # Always the magnitude; kind gives the sign

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "kind": self.kind.value,
            "type": AdjustmentType(self.type).value,
            "rate": self.rate,
            "applied_amount": self.applied_amount,
        }


@dataclass
class FareBreakdown:
    """Result of a fare calculation with full breakdown."""

    # Input values
    distance_miles: float
    duration_seconds: float
    base_mile_rate: float
    base_hour_rate: float

    # Calculated values
    base_price: float       # distance + duration charge
    subtotal: float         # after surcharges
    final_price: float      # after discounts, clamped at zero
    surcharge_total: float = 0.0
    discount_total: float = 0.0
    adjustments: List[AppliedAdjustment] = field(default_factory=list)

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "distance_miles": self.distance_miles,
            "duration_seconds": self.duration_seconds,
            "base_mile_rate": self.base_mile_rate,
            "base_hour_rate": self.base_hour_rate,
            "base_price": self.base_price,
            "subtotal": self.subtotal,
            "final_price": self.final_price,
            "surcharge_total": self.surcharge_total,
            "discount_total": self.discount_total,
            "adjustments": [adjustment.to_dict() for adjustment in self.adjustments],
        }


def calculate_base_price(distance_miles: float, duration_seconds: float, settings: RateSettings) -> float:
    """
    Price the raw distance and time of a trip.

    Examples:
        10 miles at $2.50 plus 1800 s at $0.50/h = 25.0 + 0.25 = 25.25
    """
    hours = duration_seconds / SECONDS_PER_HOUR
    return distance_miles * settings.base_mile_rate + hours * settings.base_hour_rate


def adjustment_amount(subtotal: float, adjustment: RateAdjustment) -> float:
    """
    Amount a single rule moves the running subtotal by.

    Percentage rules use the subtotal they see; anything else is a fixed amount.
    """
    if adjustment.type == AdjustmentType.PERCENTAGE:
        return subtotal * (adjustment.rate / 100)
    return adjustment.rate


def _apply_in_order(
    subtotal: float,
    configured: Sequence[RateAdjustment],
    selected_ids: set,
    kind: AdjustmentKind,
) -> tuple:
    sign = 1 if kind == AdjustmentKind.SURCHARGE else -1
    applied = []
    total = 0.0

    for adjustment in configured:
        if adjustment.id not in selected_ids:
            continue
        amount = adjustment_amount(subtotal, adjustment)
        subtotal += sign * amount
        total += amount
        applied.append(AppliedAdjustment(
            id=adjustment.id,
            name=adjustment.name,
            kind=kind,
            type=adjustment.type,
            rate=adjustment.rate,
            applied_amount=amount,
        ))

    return subtotal, total, applied


def calculate_fare(
    distance_miles: float,
    duration_seconds: float,
    settings: RateSettings,
    selected_surcharge_ids: Optional[Iterable] = None,
    selected_discount_ids: Optional[Iterable] = None,
) -> FareBreakdown:
    """
    Calculate a trip fare with surcharges and discounts.

    Surcharges are applied before discounts. Within each group the
    configuration order of ``settings`` decides the sequence; the order of
    the selected ids does not matter and unknown ids are ignored.

    Args:
        distance_miles: Measured trip distance in miles (>= 0)
        duration_seconds: Measured trip duration in seconds (>= 0)
        settings: Rate configuration
        selected_surcharge_ids: Ids of the surcharges that apply to this trip
        selected_discount_ids: Ids of the discounts that apply to this trip

    Returns:
        FareBreakdown with base price, subtotal, final price and itemization

    Examples:
        >>> settings = RateSettings(2.0, 0.0, discounts=[RateAdjustment(1, "Half off", 50)])
        >>> calculate_fare(10, 0, settings, [], [1]).final_price
        10.0
    """
    surcharge_ids = set(selected_surcharge_ids or ())
    discount_ids = set(selected_discount_ids or ())

    base_price = calculate_base_price(distance_miles, duration_seconds, settings)

    subtotal, surcharge_total, surcharges = _apply_in_order(
        base_price, settings.surcharge_factors, surcharge_ids, AdjustmentKind.SURCHARGE
    )
    discounted, discount_total, discounts = _apply_in_order(
        subtotal, settings.discounts, discount_ids, AdjustmentKind.DISCOUNT
    )

    return FareBreakdown(
        distance_miles=distance_miles,
        duration_seconds=duration_seconds,
        base_mile_rate=settings.base_mile_rate,
        base_hour_rate=settings.base_hour_rate,
        base_price=base_price,
        subtotal=subtotal,
        final_price=max(0.0, discounted),
        surcharge_total=surcharge_total,
        discount_total=discount_total,
        adjustments=surcharges + discounts,
    )
