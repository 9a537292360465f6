# app/repositories/pricing/forecast_repository.py
"""
Demand forecast persistence.
"""

from datetime import date
from typing import Any, Dict, List

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.exceptions import RepositoryError
from app.models.pricing import DemandForecast
from app.repositories.base.base_repository import BaseRepository


class DemandForecastRepository(BaseRepository[DemandForecast]):
    """Repository for DemandForecast entity."""

    def __init__(self, session: Session):
        super().__init__(DemandForecast, session)

    def upsert(self, hotel_id: str, room_type_id: str, day: date, values: Dict[str, Any]) -> DemandForecast:
        """Replace the forecast for one coordinate."""
        stmt = select(DemandForecast).where(
            DemandForecast.hotel_id == hotel_id,
            DemandForecast.room_type_id == room_type_id,
            DemandForecast.date == day,
        )
        try:
            forecast = self.db.scalars(stmt).first()
        except SQLAlchemyError as e:
            raise RepositoryError(f"Forecast lookup failed: {str(e)}") from e

        if forecast is None:
            forecast = DemandForecast(hotel_id=hotel_id, room_type_id=room_type_id, date=day, **values)
            return self.create(forecast)
        return self.update(forecast, values)

    def list_range(self, hotel_id: str, room_type_id: str, start: date, end: date) -> List[DemandForecast]:
        stmt = (
            select(DemandForecast)
            .where(
                DemandForecast.hotel_id == hotel_id,
                DemandForecast.room_type_id == room_type_id,
                DemandForecast.date >= start,
                DemandForecast.date <= end,
            )
            .order_by(DemandForecast.date)
        )
        return list(self.db.scalars(stmt))
