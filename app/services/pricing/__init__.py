"""
Pricing services: rule management, rate shopping and the dynamic rate engine.
"""

from app.services.pricing.competitor_rate_service import CompetitorRateService
from app.services.pricing.dynamic_pricing_engine import DynamicPricingEngine
from app.services.pricing.pricing_rule_service import PricingRuleService

__all__ = ["CompetitorRateService", "DynamicPricingEngine", "PricingRuleService"]
