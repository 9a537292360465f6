# app/models/pricing/demand_forecast.py
"""
Per-date demand forecasts.
"""

from datetime import date as Date, datetime
from typing import Any, Dict

from sqlalchemy import JSON, Date as DateColumn, DateTime, Float, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base.base_model import TimestampModel

__all__ = ["DemandForecast"]


class DemandForecast(TimestampModel):
    """Predicted demand and recommended rate for one coordinate."""

    __tablename__ = "demand_forecasts"
    __table_args__ = (
        UniqueConstraint("hotel_id", "room_type_id", "date", name="uq_demand_forecast_coordinate"),
    )

    hotel_id: Mapped[str] = mapped_column(String(36), nullable=False)
    room_type_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    date: Mapped[Date] = mapped_column(DateColumn, nullable=False)

    predicted_demand: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    predicted_occupancy: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    recommended_rate: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    confidence: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    factors: Mapped[Dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)
    generated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
