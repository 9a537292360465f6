"""Pricing rule, forecast and competitor rate models."""

from app.models.pricing.pricing_rule import PricingRule, PricingRuleRoomType, pricing_rule_room_types
from app.models.pricing.demand_forecast import DemandForecast
from app.models.pricing.competitor_rate import CompetitorRateSheet, CompetitorRate

__all__ = [
    "PricingRule",
    "PricingRuleRoomType",
    "pricing_rule_room_types",
    "DemandForecast",
    "CompetitorRateSheet",
    "CompetitorRate",
]
