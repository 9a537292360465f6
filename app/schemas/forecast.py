"""
Demand forecast schemas.
"""

from datetime import date, datetime
from typing import List, Optional

from pydantic import Field

from app.schemas.common.base import BaseSchema

__all__ = ["ForecastEvent", "WeatherForecast", "ForecastFactors", "DemandForecastEntry"]


class ForecastEvent(BaseSchema):
    name: str
    impact: str = "low"  # high | medium | low


class WeatherForecast(BaseSchema):
    condition: str = "unknown"


class ForecastFactors(BaseSchema):
    historical_bookings: float = 0.0
    seasonality: float = 1.0
    event_multiplier: float = 1.0
    weather_multiplier: float = 1.0
    events: List[str] = Field(default_factory=list)
    weather_forecast: Optional[str] = None
    competitor_rate: Optional[int] = None
    history_available: bool = True


class DemandForecastEntry(BaseSchema):
    hotel_id: str
    room_type_id: str
    date: date
    predicted_demand: int
    predicted_occupancy: float
    recommended_rate: int
    confidence: int
    factors: ForecastFactors
    generated_at: datetime
