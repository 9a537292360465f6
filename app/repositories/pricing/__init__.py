from app.repositories.pricing.competitor_rate_repository import CompetitorRateRepository
from app.repositories.pricing.forecast_repository import DemandForecastRepository
from app.repositories.pricing.pricing_rule_repository import PricingRuleRepository

__all__ = ["CompetitorRateRepository", "DemandForecastRepository", "PricingRuleRepository"]
