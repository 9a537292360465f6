"""
Contracts of the collaborators the inventory and pricing core consumes.

SQLAlchemy-backed implementations live in ``app.repositories``; event and
weather feeds default to neutral providers.
"""

from datetime import date, datetime
from typing import List, Optional, Protocol, Sequence

from app.models.booking import Reservation
from app.models.pricing import CompetitorRate
from app.models.room import Room, RoomType
from app.schemas.audit import AuditEntry
from app.schemas.forecast import ForecastEvent, WeatherForecast


class ReservationLog(Protocol):
    def list_overlapping(
        self,
        hotel_id: str,
        room_type_id: str,
        check_in: date,
        check_out: date,
    ) -> List[Reservation]: ...

    def count_recent_bookings(self, room_type_id: str, check_in: date, since: datetime) -> int: ...

    def count_same_date_bookings(self, room_type_id: str, check_in: date) -> int: ...

    def count_rooms_held(self, hotel_id: str, room_type_id: str, day: date) -> int: ...


class RoomRegistry(Protocol):
    def get_room_type(self, room_type_id: str) -> Optional[RoomType]: ...

    def list_room_types(self, hotel_id: str, active_only: bool = True) -> List[RoomType]: ...

    def count_active(self, hotel_id: str, room_type_id: str) -> int: ...

    def list_rooms(self, hotel_id: str, room_type_id: str, active_only: bool = True) -> List[Room]: ...


class AuditLog(Protocol):
    def record(self, entry: AuditEntry) -> object: ...


class CompetitorRateSource(Protocol):
    def rates_for(self, hotel_id: str, day: date) -> Sequence[CompetitorRate]: ...


class EventProvider(Protocol):
    def events_for(self, hotel_id: str, day: date) -> List[ForecastEvent]: ...


class WeatherProvider(Protocol):
    def forecast_for(self, hotel_id: str, day: date) -> Optional[WeatherForecast]: ...


class NoEvents:
    """Event feed with no events."""

    def events_for(self, hotel_id: str, day: date) -> List[ForecastEvent]:
        return []


class NoWeather:
    """Weather feed with no forecast."""

    def forecast_for(self, hotel_id: str, day: date) -> Optional[WeatherForecast]:
        return None
