"""
Per-type pricing rule evaluation.

Each evaluator receives the typed conditions of one rule and the pricing
context and returns the adjustment it contributes, or ``None``.
"""

from dataclasses import dataclass
from datetime import date
from typing import Callable, Dict, Optional

from app.models.base.enums import PricingRuleType
from app.schemas.pricing import (
    DayOfWeekConditions,
    GeographicConditions,
    GuestProfile,
    LengthOfStayConditions,
    OccupancyConditions,
    SeasonalConditions,
    Weekday,
)


@dataclass
class PricingContext:
    hotel_id: str
    room_type_id: str
    check_in: date
    check_out: date
    nights: int
    occupancy: Callable[[], float]
    guest: Optional[GuestProfile] = None


def occupancy_adjustment(conditions: OccupancyConditions, ctx: PricingContext) -> Optional[float]:
    occupancy = ctx.occupancy()
    for threshold in conditions.thresholds:
        if threshold.min_occupancy <= occupancy <= threshold.max_occupancy:
            return threshold.adjustment
    return None


def day_of_week_adjustment(conditions: DayOfWeekConditions, ctx: PricingContext) -> Optional[float]:
    weekday = Weekday.of(ctx.check_in)
    for entry in conditions.days:
        if entry.day == weekday:
            return entry.adjustment
    return None


def seasonal_adjustment(conditions: SeasonalConditions, ctx: PricingContext) -> Optional[float]:
    for period in conditions.periods:
        if period.start_date <= ctx.check_in <= period.end_date:
            return period.adjustment
    return None


def length_of_stay_adjustment(conditions: LengthOfStayConditions, ctx: PricingContext) -> Optional[float]:
    for bucket in conditions.buckets:
        if bucket.contains(ctx.nights):
            return bucket.adjustment
    return None


def geographic_adjustment(conditions: GeographicConditions, ctx: PricingContext) -> Optional[float]:
    if ctx.guest is None:
        return None
    for location in conditions.locations:
        if location.matches(ctx.guest.country, ctx.guest.state, ctx.guest.city):
            return location.adjustment
    return None


# demand_based and competitor_based rules parameterize the engine's own
# signal stages and are not evaluated here.
EVALUATORS: Dict[PricingRuleType, Callable] = {
    PricingRuleType.OCCUPANCY_BASED: occupancy_adjustment,
    PricingRuleType.DAY_OF_WEEK: day_of_week_adjustment,
    PricingRuleType.SEASONAL: seasonal_adjustment,
    PricingRuleType.LENGTH_OF_STAY: length_of_stay_adjustment,
    PricingRuleType.GEOGRAPHIC: geographic_adjustment,
}
