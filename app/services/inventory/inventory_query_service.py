"""
Read-side inventory views: ranges, monthly calendar and summaries.
"""

import calendar
from datetime import date
from typing import Dict, List, Optional

from sqlalchemy.orm import Session

from app.config.settings import Settings
from app.core.exceptions import InvalidDateRangeError, UnknownRoomTypeError, ValidationError
from app.models.room import RoomType
from app.repositories.inventory import DayDefaults, InventoryRepository, iter_dates
from app.repositories.room import RoomRepository
from app.schemas.inventory import InventoryDaySnapshot, InventorySummary, SummaryCounters
from app.services.base import BaseService
from app.services.inventory.effective_view import channel_view


class InventoryQueryService(BaseService):
    """Snapshots of stored inventory; never writes."""

    def __init__(
        self,
        db_session: Session,
        config: Optional[Settings] = None,
        inventory: Optional[InventoryRepository] = None,
        rooms: Optional[RoomRepository] = None,
    ):
        super().__init__(db_session, config=config)
        self.inventory = inventory or InventoryRepository(db_session)
        self.rooms = rooms or RoomRepository(db_session)

    def get_range(
        self,
        hotel_id: str,
        start: date,
        end: date,
        room_type_id: Optional[str] = None,
        channel: Optional[str] = None,
    ) -> List[InventoryDaySnapshot]:
        """Stored days for ``start..end`` inclusive, with the channel view when asked."""
        if end < start:
            raise InvalidDateRangeError(start, end)
        types = self._room_types(hotel_id, room_type_id)
        codes = {rt.id: rt.code for rt in types}

        snapshots = []
        for row in self.inventory.get_range(hotel_id, room_type_id, start, end):
            snapshot = InventoryDaySnapshot.from_day(row, room_type_code=codes.get(row.room_type_id))
            if channel:
                snapshot.channel_view = channel_view(row, channel)
            snapshots.append(snapshot)
        return snapshots

    def calendar(
        self,
        hotel_id: str,
        year: int,
        month: int,
        room_type_id: Optional[str] = None,
    ) -> Dict[str, Dict[str, InventoryDaySnapshot]]:
        """
        Dense month view: every date, every room type.

        Dates without a stored row show the defaults a lazily created row
        would get, flagged ``synthetic``.
        """
        if not 1 <= month <= 12:
            raise ValidationError("month must be between 1 and 12", field_errors={"month": ["out of range"]})
        types = self._room_types(hotel_id, room_type_id)
        stored = self.inventory.list_for_calendar(hotel_id, year, month, room_type_id)
        defaults = {rt.id: self._defaults(hotel_id, rt) for rt in types}

        first = date(year, month, 1)
        last = date(year, month, calendar.monthrange(year, month)[1])
        result: Dict[str, Dict[str, InventoryDaySnapshot]] = {}
        for day in iter_dates(first, last):
            by_code: Dict[str, InventoryDaySnapshot] = {}
            for rt in types:
                row = stored.get(day, {}).get(rt.id)
                if row is not None:
                    by_code[rt.code] = InventoryDaySnapshot.from_day(row, room_type_code=rt.code)
                else:
                    placeholder = self.inventory.build_day(hotel_id, rt.id, day, defaults[rt.id])
                    by_code[rt.code] = InventoryDaySnapshot.from_day(
                        placeholder, room_type_code=rt.code, synthetic=True
                    )
            result[day.isoformat()] = by_code
        return result

    def summary(
        self,
        hotel_id: str,
        start: date,
        end: date,
        room_type_id: Optional[str] = None,
    ) -> InventorySummary:
        """Occupancy, ADR and stop-sell counts over ``start..end`` inclusive."""
        if end < start:
            raise InvalidDateRangeError(start, end)
        codes = {rt.id: rt.code for rt in self._room_types(hotel_id, room_type_id)}

        totals = SummaryCounters()
        revenue_total = 0
        by_room_type: Dict[str, SummaryCounters] = {}
        for row in self.inventory.summarize(hotel_id, room_type_id, start, end):
            revenue = int(row.pop("revenue") or 0)
            rt_id = row.pop("room_type_id")
            counters = SummaryCounters(**{k: int(v or 0) for k, v in row.items()})
            self._derive_rates(counters, revenue)
            by_room_type[codes.get(rt_id, rt_id)] = counters

            revenue_total += revenue
            for name in ("days", "total_rooms", "sold_rooms", "blocked_rooms",
                         "available_rooms", "overbooked_rooms", "stop_sell_days"):
                setattr(totals, name, getattr(totals, name) + getattr(counters, name))

        self._derive_rates(totals, revenue_total)
        return InventorySummary(
            hotel_id=hotel_id,
            start_date=start,
            end_date=end,
            totals=totals,
            by_room_type=by_room_type,
        )

    # ------------------------------------------------------------------

    @staticmethod
    def _derive_rates(counters: SummaryCounters, revenue: int) -> None:
        if counters.total_rooms:
            counters.occupancy_rate = round(counters.sold_rooms / counters.total_rooms * 100, 2)
        if counters.sold_rooms:
            counters.average_rate = revenue // counters.sold_rooms

    def _room_types(self, hotel_id: str, room_type_id: Optional[str]) -> List[RoomType]:
        if room_type_id:
            room_type = self.rooms.get_room_type(room_type_id)
            if room_type is None or room_type.hotel_id != hotel_id:
                raise UnknownRoomTypeError(room_type_id)
            return [room_type]
        return self.rooms.room_types.list_for_hotel(hotel_id)

    def _defaults(self, hotel_id: str, room_type: RoomType) -> DayDefaults:
        return DayDefaults(
            total_rooms=self.rooms.count_active(hotel_id, room_type.id),
            base_rate=room_type.base_rate,
            currency=room_type.currency or self.settings.DEFAULT_CURRENCY,
            allowed_oversell=self.settings.ALLOWED_OVERSELL,
        )
