"""
Availability decisions over a half-open stay.

Reads are pessimistic: drift between stored sold counts and the
reservation log is reported and the larger count wins. The answer is
advisory; the booking commit path revalidates.
"""

from dataclasses import dataclass
from datetime import date, timedelta
from decimal import ROUND_HALF_EVEN, Decimal
from typing import Any, Dict, List, Optional, Set

from sqlalchemy.orm import Session

from app.config.settings import Settings
from app.core.clock import Clock
from app.core.exceptions import InvalidDateRangeError, UnknownRoomTypeError, ValidationError
from app.core.logging import log_execution_time
from app.models.booking import Reservation
from app.models.inventory import InventoryDay
from app.models.room import RoomType
from app.repositories.booking import ReservationRepository
from app.repositories.inventory import DayDefaults, InventoryRepository, iter_dates
from app.repositories.room import RoomRepository
from app.schemas.availability import (
    AlternativeRoomType,
    AvailabilityResult,
    AvailabilityWarning,
    AvailableRoom,
    DailyAvailability,
)
from app.schemas.inventory import Restrictions
from app.services.base import BaseService
from app.services.collaborators import ReservationLog, RoomRegistry
from app.services.inventory.effective_view import (
    channel_override,
    effective_available,
    effective_rate,
    effective_restrictions,
)

WARNING_MISSING_INVENTORY = "MISSING_INVENTORY"
WARNING_STALE_INVENTORY = "STALE_INVENTORY"

REASON_STOP_SELL = "stopSell"
REASON_CLOSED_TO_ARRIVAL = "closedToArrival"
REASON_CLOSED_TO_DEPARTURE = "closedToDeparture"
REASON_MINIMUM_STAY = "minimumStay"
REASON_MAXIMUM_STAY = "maximumStay"
REASON_INSUFFICIENT = "insufficientInventory"

MAX_ALTERNATIVE_ROOMS = 3


@dataclass
class _Night:
    day: InventoryDay
    synthetic: bool
    sold: int
    available: int
    rate: int
    restrictions: Dict[str, Any]


class AvailabilityService(BaseService):
    """Answers whether a room type can be sold for a stay, and which rooms."""

    def __init__(
        self,
        db_session: Session,
        clock: Optional[Clock] = None,
        config: Optional[Settings] = None,
        inventory: Optional[InventoryRepository] = None,
        rooms: Optional[RoomRegistry] = None,
        reservations: Optional[ReservationLog] = None,
    ):
        super().__init__(db_session, clock=clock, config=config)
        self.inventory = inventory or InventoryRepository(db_session)
        self.rooms = rooms or RoomRepository(db_session)
        self.reservations = reservations or ReservationRepository(db_session)

    @log_execution_time()
    def check(
        self,
        hotel_id: str,
        room_type_id: str,
        check_in: date,
        check_out: date,
        rooms_requested: int = 1,
        channel: Optional[str] = None,
        suggest_alternatives: bool = True,
    ) -> AvailabilityResult:
        """
        Decide availability for ``[check_in, check_out)``.

        A refusal lists upgrade alternatives unless ``suggest_alternatives``
        is off.

        Raises:
            InvalidDateRangeError: empty or inverted stay
            ValidationError: fewer than one room requested
            UnknownRoomTypeError: room type missing, inactive or foreign
        """
        return self._decide(hotel_id, room_type_id, check_in, check_out, rooms_requested, channel, suggest=suggest_alternatives)

    def _decide(
        self,
        hotel_id: str,
        room_type_id: str,
        check_in: date,
        check_out: date,
        rooms_requested: int,
        channel: Optional[str],
        suggest: bool,
    ) -> AvailabilityResult:
        if check_out <= check_in:
            raise InvalidDateRangeError(check_in, check_out, "checkOut must be after checkIn")
        if rooms_requested < 1:
            raise ValidationError(
                "At least one room must be requested",
                field_errors={"roomsRequested": ["must be >= 1"]},
            )
        room_type = self.require_room_type(hotel_id, room_type_id)

        nights = (check_out - check_in).days
        stored = self.inventory.get_stay_range(hotel_id, room_type_id, check_in, check_out)
        reservations = self.reservations.list_overlapping(hotel_id, room_type_id, check_in, check_out)

        warnings: List[AvailabilityWarning] = []
        defaults: Optional[DayDefaults] = None
        breakdown: List[_Night] = []
        for day in iter_dates(check_in, check_out - timedelta(days=1)):
            row = stored.get(day)
            synthetic = row is None
            if synthetic:
                if defaults is None:
                    defaults = DayDefaults(
                        total_rooms=self.rooms.count_active(hotel_id, room_type_id),
                        base_rate=room_type.base_rate,
                        currency=room_type.currency or self.settings.DEFAULT_CURRENCY,
                        allowed_oversell=self.settings.ALLOWED_OVERSELL,
                    )
                row = self.inventory.build_day(hotel_id, room_type_id, day, defaults)
                warnings.append(AvailabilityWarning(
                    code=WARNING_MISSING_INVENTORY,
                    message=f"No inventory stored for {day}; using {defaults.total_rooms} active room(s)",
                    date=day,
                ))
            breakdown.append(self._reconcile(row, synthetic, reservations, channel, warnings))

        result = AvailabilityResult(
            hotel_id=hotel_id,
            room_type_id=room_type_id,
            check_in=check_in,
            check_out=check_out,
            nights=nights,
            channel=channel,
            rooms_requested=rooms_requested,
            available=False,
            available_rooms=min(n.available for n in breakdown),
            currency=room_type.currency or self.settings.DEFAULT_CURRENCY,
            average_rate=_average(sum(n.rate for n in breakdown), nights),
            total_amount=sum(n.rate for n in breakdown) * rooms_requested,
            daily_breakdown=[self._daily(n, channel) for n in breakdown],
            warnings=warnings,
        )

        violation = self._first_restriction(breakdown, check_in, check_out, nights)
        if violation is not None:
            result.binding_date, result.reason = violation
            result.remaining = result.available_rooms
            return self._refuse(result, room_type, suggest)

        if result.available_rooms < rooms_requested:
            binding = next(n for n in breakdown if n.available == result.available_rooms)
            result.binding_date = binding.day.date
            result.reason = REASON_INSUFFICIENT
            result.remaining = result.available_rooms
            return self._refuse(result, room_type, suggest)

        result.available = True
        result.rooms = self._free_rooms(hotel_id, room_type_id, reservations, rooms_requested)
        self._log_decision(result)
        return result

    def require_room_type(self, hotel_id: str, room_type_id: str) -> RoomType:
        room_type = self.rooms.get_room_type(room_type_id)
        if room_type is None:
            raise UnknownRoomTypeError(room_type_id)
        if room_type.hotel_id != hotel_id:
            raise UnknownRoomTypeError(room_type_id, reason=f"does not belong to hotel {hotel_id}")
        if not room_type.is_active:
            raise UnknownRoomTypeError(room_type_id, reason="inactive")
        return room_type

    # ------------------------------------------------------------------

    def alternatives(self, result: AvailabilityResult, room_type: RoomType) -> List[AlternativeRoomType]:
        """
        Upgrade options for a refused stay.

        Candidates are the hotel's other active types priced at or above the
        requested one that sleep at least as many guests, cheapest first.
        """
        candidates = [
            rt for rt in self.rooms.list_room_types(result.hotel_id, active_only=True)
            if rt.id != room_type.id
            and rt.base_rate >= room_type.base_rate
            and rt.max_occupancy >= room_type.max_occupancy
        ]
        found: List[AlternativeRoomType] = []
        for candidate in sorted(candidates, key=lambda rt: (rt.base_rate, rt.code)):
            option = self._decide(
                result.hotel_id, candidate.id, result.check_in, result.check_out,
                result.rooms_requested, result.channel, suggest=False,
            )
            if not option.available or option.has_stale_warning:
                continue
            found.append(AlternativeRoomType(
                room_type_id=candidate.id,
                code=candidate.code,
                name=candidate.name,
                available_rooms=option.available_rooms,
                average_rate=option.average_rate,
                total_amount=option.total_amount,
                rooms=option.rooms[:MAX_ALTERNATIVE_ROOMS],
            ))
        return found

    def _refuse(self, result: AvailabilityResult, room_type: RoomType, suggest: bool) -> AvailabilityResult:
        if suggest:
            result.alternatives = self.alternatives(result, room_type)
        self._log_decision(result)
        return result

    # ------------------------------------------------------------------

    def _reconcile(
        self,
        row: InventoryDay,
        synthetic: bool,
        reservations: List[Reservation],
        channel: Optional[str],
        warnings: List[AvailabilityWarning],
    ) -> _Night:
        held = sum(r.rooms_held for r in reservations if r.covers(row.date))
        sold = row.sold_rooms
        if abs(held - sold) > self.settings.STALE_INVENTORY_TOLERANCE:
            warnings.append(AvailabilityWarning(
                code=WARNING_STALE_INVENTORY,
                message=f"Stored sold rooms ({sold}) differ from reservations ({held}) on {row.date}",
                date=row.date,
                stored_sold=sold,
                reconciled_sold=held,
            ))
            self._logger.warning(
                f"Inventory drift on {row.record_key}: stored={sold} held={held}",
                extra={"hotel_id": row.hotel_id, "room_type_id": row.room_type_id, "date": row.date.isoformat()},
            )
            sold = max(sold, held)

        day_available = max(0, row.total_rooms - sold - row.blocked_rooms + row.allowed_oversell)
        return _Night(
            day=row,
            synthetic=synthetic,
            sold=sold,
            available=effective_available(row, channel, available=day_available),
            rate=effective_rate(row, channel) or row.base_rate,
            restrictions=effective_restrictions(row, channel),
        )

    @staticmethod
    def _first_restriction(breakdown: List[_Night], check_in: date, check_out: date, nights: int):
        last_night = check_out - timedelta(days=1)
        for night in breakdown:
            day = night.day.date
            r = night.restrictions
            if r["stop_sell"]:
                return day, REASON_STOP_SELL
            if day == check_in and r["closed_to_arrival"]:
                return day, REASON_CLOSED_TO_ARRIVAL
            if day == last_night and r["closed_to_departure"]:
                return day, REASON_CLOSED_TO_DEPARTURE
            if r["minimum_stay"] and nights < r["minimum_stay"]:
                return day, REASON_MINIMUM_STAY
            if r["maximum_stay"] and nights > r["maximum_stay"]:
                return day, REASON_MAXIMUM_STAY
        return None

    def _free_rooms(
        self,
        hotel_id: str,
        room_type_id: str,
        reservations: List[Reservation],
        limit: int,
    ) -> List[AvailableRoom]:
        held: Set[str] = {assignment.room_id for r in reservations for assignment in r.rooms}
        free = [room for room in self.rooms.list_rooms(hotel_id, room_type_id, active_only=True) if room.id not in held]
        return [AvailableRoom(id=room.id, number=room.number, floor=room.floor) for room in free[:limit]]

    @staticmethod
    def _daily(night: _Night, channel: Optional[str]) -> DailyAvailability:
        return DailyAvailability(
            date=night.day.date,
            total_rooms=night.day.total_rooms,
            sold_rooms=night.sold,
            blocked_rooms=night.day.blocked_rooms,
            available_rooms=night.available,
            rate=night.rate,
            restrictions=Restrictions(**night.restrictions),
            channel_override=channel_override(night.day, channel) is not None,
            synthetic=night.synthetic,
        )

    def _log_decision(self, result: AvailabilityResult) -> None:
        self._logger.info(
            f"Availability {result.room_type_id} {result.check_in}..{result.check_out} "
            f"x{result.rooms_requested}: available={result.available} reason={result.reason} "
            f"alternatives={len(result.alternatives)}",
            extra={"hotel_id": result.hotel_id, "room_type_id": result.room_type_id},
        )


def _average(total: int, nights: int) -> int:
    return int((Decimal(total) / nights).quantize(Decimal(1), rounding=ROUND_HALF_EVEN))
