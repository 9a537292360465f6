"""
Pricing schemas package.
"""

from app.schemas.pricing.competitor import CompetitorQuote, CompetitorSheetResult, CompetitorSheetUpsert
from app.schemas.pricing.dynamic import DynamicRateResponse, GuestProfile, RateAdjustment
from app.schemas.pricing.rules import (
    CONDITIONS_BY_TYPE,
    CompetitorConditions,
    DayOfWeekConditions,
    DemandConditions,
    GeographicConditions,
    LengthOfStayConditions,
    OccupancyConditions,
    PricingRuleCreate,
    PricingRuleResponse,
    PricingRuleUpdate,
    RuleConditions,
    SeasonalConditions,
    Weekday,
    parse_conditions,
)

__all__ = [
    "CompetitorQuote",
    "CompetitorSheetResult",
    "CompetitorSheetUpsert",
    "DynamicRateResponse",
    "GuestProfile",
    "RateAdjustment",
    "CONDITIONS_BY_TYPE",
    "CompetitorConditions",
    "DayOfWeekConditions",
    "DemandConditions",
    "GeographicConditions",
    "LengthOfStayConditions",
    "OccupancyConditions",
    "PricingRuleCreate",
    "PricingRuleResponse",
    "PricingRuleUpdate",
    "RuleConditions",
    "SeasonalConditions",
    "Weekday",
    "parse_conditions",
]
