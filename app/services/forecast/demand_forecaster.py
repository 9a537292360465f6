"""
Explainable statistical demand forecast.

Demand is the prior years' same-date bookings scaled by seasonality,
events and weather; the recommended rate follows predicted occupancy.
"""

from datetime import date
from decimal import Decimal
from typing import List, Optional, Tuple

from dateutil.relativedelta import relativedelta
from sqlalchemy.orm import Session

from app.config.settings import Settings
from app.core.clock import Clock
from app.core.exceptions import InvalidDateRangeError, UnknownRoomTypeError, UpstreamError, ValidationError
from app.core.logging import log_execution_time
from app.models.room import RoomType
from app.repositories.booking import ReservationRepository
from app.repositories.inventory import InventoryRepository, iter_dates
from app.repositories.pricing import CompetitorRateRepository, DemandForecastRepository
from app.repositories.room import RoomRepository
from app.schemas.forecast import DemandForecastEntry, ForecastEvent, ForecastFactors, WeatherForecast
from app.services.base import BaseService
from app.services.collaborators import (
    CompetitorRateSource,
    EventProvider,
    NoEvents,
    NoWeather,
    ReservationLog,
    WeatherProvider,
)
from app.services.pricing.dynamic_pricing_engine import round_half_even

SEASONALITY = {
    1: 0.8,
    2: 0.8,
    3: 0.9,
    4: 1.1,
    5: 1.2,
    6: 1.0,
    7: 0.9,
    8: 0.9,
    9: 1.0,
    10: 1.1,
    11: 1.2,
    12: 1.3,
}

EVENT_MULTIPLIERS = {"high": 1.3, "medium": 1.1}
WEATHER_MULTIPLIERS = {"rain": 0.9, "sunny": 1.05}

BASE_CONFIDENCE = 70
HISTORY_CONFIDENCE_BONUS = 20
EVENT_CONFIDENCE_BONUS = 10
MAX_CONFIDENCE = 95
DEGRADED_CONFIDENCE = 50


def rate_multiplier(occupancy: float) -> float:
    if occupancy > 90:
        return 1.3
    if occupancy > 80:
        return 1.2
    if occupancy > 70:
        return 1.1
    if occupancy < 20:
        return 0.8
    if occupancy < 40:
        return 0.9
    return 1.0


def event_multiplier(events: List[ForecastEvent]) -> float:
    multiplier = 1.0
    for event in events:
        multiplier *= EVENT_MULTIPLIERS.get(event.impact.lower(), 1.0)
    return multiplier


def weather_multiplier(weather: Optional[WeatherForecast]) -> float:
    if weather is None:
        return 1.0
    return WEATHER_MULTIPLIERS.get(weather.condition.lower(), 1.0)


class DemandForecaster(BaseService):
    """Generates and stores per-date demand forecasts."""

    def __init__(
        self,
        db_session: Session,
        clock: Optional[Clock] = None,
        config: Optional[Settings] = None,
        inventory: Optional[InventoryRepository] = None,
        rooms: Optional[RoomRepository] = None,
        reservations: Optional[ReservationLog] = None,
        competitors: Optional[CompetitorRateSource] = None,
        forecasts: Optional[DemandForecastRepository] = None,
        events: Optional[EventProvider] = None,
        weather: Optional[WeatherProvider] = None,
    ):
        super().__init__(db_session, clock=clock, config=config)
        self.inventory = inventory or InventoryRepository(db_session)
        self.rooms = rooms or RoomRepository(db_session)
        self.reservations = reservations or ReservationRepository(db_session)
        self.competitors = competitors or CompetitorRateRepository(db_session)
        self.forecasts = forecasts or DemandForecastRepository(db_session)
        self.events = events or NoEvents()
        self.weather = weather or NoWeather()

    @log_execution_time()
    def generate(
        self,
        start: date,
        end: Optional[date] = None,
        room_type_id: Optional[str] = None,
        hotel_id: Optional[str] = None,
    ) -> List[DemandForecastEntry]:
        """
        Forecast every date of ``start..end`` inclusive and upsert the results.

        Raises:
            ValidationError: neither a room type nor a hotel given
            InvalidDateRangeError: ``end`` before ``start``
            UnknownRoomTypeError: room type missing
        """
        end = end or start
        if end < start:
            raise InvalidDateRangeError(start, end)
        room_types = self._room_types(room_type_id, hotel_id)

        generated_at = self.clock.now()
        entries: List[DemandForecastEntry] = []
        with self.transaction():
            for room_type in room_types:
                for day in iter_dates(start, end):
                    entry = self._forecast_day(room_type, day, generated_at)
                    self.forecasts.upsert(
                        room_type.hotel_id,
                        room_type.id,
                        day,
                        entry.model_dump(include={
                            "predicted_demand",
                            "predicted_occupancy",
                            "recommended_rate",
                            "confidence",
                            "generated_at",
                        }) | {"factors": entry.factors.model_dump(mode="json", by_alias=True)},
                    )
                    entries.append(entry)

        self._logger.info(
            f"Generated {len(entries)} forecast(s) for {start}..{end}",
            extra={"hotel_id": hotel_id, "room_type_id": room_type_id},
        )
        return entries

    # ------------------------------------------------------------------

    def _forecast_day(self, room_type: RoomType, day: date, generated_at) -> DemandForecastEntry:
        hotel_id = room_type.hotel_id
        avg_bookings, history_available = self._historical_average(room_type.id, day)

        events = self.events.events_for(hotel_id, day)
        weather = self.weather.forecast_for(hotel_id, day)
        factors = ForecastFactors(
            historical_bookings=avg_bookings,
            seasonality=SEASONALITY[day.month],
            event_multiplier=event_multiplier(events),
            weather_multiplier=weather_multiplier(weather),
            events=[e.name for e in events],
            weather_forecast=weather.condition if weather else None,
            competitor_rate=self._competitor_average(hotel_id, day),
            history_available=history_available,
        )

        predicted_demand = round(
            avg_bookings * factors.seasonality * factors.event_multiplier * factors.weather_multiplier
        )
        total_rooms = self._capacity(room_type, day)
        occupancy = min(predicted_demand / total_rooms * 100, 100.0) if total_rooms else 0.0
        recommended = round_half_even(Decimal(room_type.base_rate) * Decimal(str(rate_multiplier(occupancy))))

        if history_available:
            confidence = BASE_CONFIDENCE
            if avg_bookings > 0:
                confidence += HISTORY_CONFIDENCE_BONUS
            if events:
                confidence += EVENT_CONFIDENCE_BONUS
            confidence = min(confidence, MAX_CONFIDENCE)
        else:
            confidence = DEGRADED_CONFIDENCE

        return DemandForecastEntry(
            hotel_id=hotel_id,
            room_type_id=room_type.id,
            date=day,
            predicted_demand=predicted_demand,
            predicted_occupancy=round(occupancy, 2),
            recommended_rate=recommended,
            confidence=confidence,
            factors=factors,
            generated_at=generated_at,
        )

    def _historical_average(self, room_type_id: str, day: date) -> Tuple[float, bool]:
        """Mean same-date bookings over prior years; 29 Feb maps to 28 Feb."""
        years = self.settings.FORECAST_HISTORY_YEARS
        try:
            counts = [
                self.reservations.count_same_date_bookings(room_type_id, day - relativedelta(years=offset))
                for offset in range(1, years + 1)
            ]
        except UpstreamError as e:
            self._logger.warning(f"Booking history unavailable, forecasting without it: {e.message}")
            return 0.0, False
        return (sum(counts) / len(counts) if counts else 0.0), True

    def _competitor_average(self, hotel_id: str, day: date) -> Optional[int]:
        try:
            quotes = self.competitors.rates_for(hotel_id, day)
        except UpstreamError:
            return None
        if not quotes:
            return None
        return round_half_even(Decimal(sum(q.rate for q in quotes)) / len(quotes))

    def _capacity(self, room_type: RoomType, day: date) -> int:
        row = self.inventory.get(room_type.hotel_id, room_type.id, day)
        if row is not None:
            return row.total_rooms
        return self.rooms.count_active(room_type.hotel_id, room_type.id)

    def _room_types(self, room_type_id: Optional[str], hotel_id: Optional[str]) -> List[RoomType]:
        if room_type_id:
            room_type = self.rooms.get_room_type(room_type_id)
            if room_type is None or (hotel_id and room_type.hotel_id != hotel_id):
                raise UnknownRoomTypeError(room_type_id)
            return [room_type]
        if hotel_id:
            return self.rooms.room_types.list_for_hotel(hotel_id, active_only=True)
        raise ValidationError(
            "Either roomTypeId or hotelId is required",
            field_errors={"roomTypeId": ["required without hotelId"]},
        )
