# app/repositories/inventory/inventory_repository.py
"""
Inventory repository: persistence of date-level inventory rows.
"""

import calendar
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Any, Dict, List, Optional, Sequence

from sqlalchemy import case, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.exceptions import InvariantViolationError, RepositoryError, ResourceNotFoundError
from app.core.logging import get_logger
from app.models.inventory import InventoryDay
from app.repositories.base.base_repository import BaseRepository

logger = get_logger(__name__)


@dataclass
class DayDefaults:
    """Values used when a row is materialized lazily."""

    total_rooms: int
    base_rate: int
    currency: str
    allowed_oversell: int = 0


@dataclass
class UpsertResult:
    day: InventoryDay
    old_values: Optional[Dict[str, Any]]
    created: bool


def iter_dates(start: date, end: date, inclusive: bool = True):
    """Yield each date from ``start`` to ``end``."""
    stop = end + timedelta(days=1) if inclusive else end
    current = start
    while current < stop:
        yield current
        current += timedelta(days=1)


class InventoryRepository(BaseRepository[InventoryDay]):
    """
    Repository for InventoryDay rows.

    Handles:
    - Single-coordinate reads, optionally under a row lock
    - Ordered range and calendar reads
    - Create-or-merge upserts with invariant checks
    - Aggregated summaries
    """

    def __init__(self, session: Session):
        super().__init__(InventoryDay, session)

    # ============================================================================
    # READS
    # ============================================================================

    def get(
        self,
        hotel_id: str,
        room_type_id: str,
        day: date,
        for_update: bool = False,
    ) -> Optional[InventoryDay]:
        """
        Fetch one coordinate.

        With ``for_update`` the row is locked and re-read from the database,
        discarding any stale identity-map state.
        """
        stmt = select(InventoryDay).where(
            InventoryDay.hotel_id == hotel_id,
            InventoryDay.room_type_id == room_type_id,
            InventoryDay.date == day,
        )
        if for_update:
            stmt = stmt.with_for_update().execution_options(populate_existing=True)
        try:
            return self.db.scalars(stmt).first()
        except SQLAlchemyError as e:
            raise RepositoryError(f"Inventory read failed: {str(e)}") from e

    def require(self, hotel_id: str, room_type_id: str, day: date) -> InventoryDay:
        row = self.get(hotel_id, room_type_id, day)
        if row is None:
            raise ResourceNotFoundError("InventoryDay", f"{hotel_id}:{room_type_id}:{day.isoformat()}")
        return row

    def get_range(
        self,
        hotel_id: str,
        room_type_id: Optional[str],
        start: date,
        end: date,
    ) -> List[InventoryDay]:
        """
        Rows for ``start..end`` inclusive, ordered by date then room type.

        An empty or inverted range yields an empty list.
        """
        if end < start:
            return []
        stmt = select(InventoryDay).where(
            InventoryDay.hotel_id == hotel_id,
            InventoryDay.date >= start,
            InventoryDay.date <= end,
        )
        if room_type_id:
            stmt = stmt.where(InventoryDay.room_type_id == room_type_id)
        stmt = stmt.order_by(InventoryDay.date.asc(), InventoryDay.room_type_id.asc())
        try:
            return list(self.db.scalars(stmt))
        except SQLAlchemyError as e:
            raise RepositoryError(f"Inventory range read failed: {str(e)}") from e

    def get_stay_range(
        self,
        hotel_id: str,
        room_type_id: str,
        check_in: date,
        check_out: date,
    ) -> Dict[date, InventoryDay]:
        """Rows for the half-open stay ``[check_in, check_out)`` keyed by date."""
        if check_out <= check_in:
            return {}
        rows = self.get_range(hotel_id, room_type_id, check_in, check_out - timedelta(days=1))
        return {row.date: row for row in rows}

    def list_for_calendar(
        self,
        hotel_id: str,
        year: int,
        month: int,
        room_type_id: Optional[str] = None,
    ) -> Dict[date, Dict[str, InventoryDay]]:
        """Sparse ``date -> room_type_id -> row`` mapping for one month."""
        last_day = calendar.monthrange(year, month)[1]
        start = date(year, month, 1)
        end = date(year, month, last_day)

        result: Dict[date, Dict[str, InventoryDay]] = {}
        for row in self.get_range(hotel_id, room_type_id, start, end):
            result.setdefault(row.date, {})[row.room_type_id] = row
        return result

    def summarize(
        self,
        hotel_id: str,
        room_type_id: Optional[str],
        start: date,
        end: date,
    ) -> List[Dict[str, Any]]:
        """Aggregate counters per room type over ``start..end`` inclusive."""
        stmt = (
            select(
                InventoryDay.room_type_id,
                func.count(InventoryDay.id).label("days"),
                func.coalesce(func.sum(InventoryDay.total_rooms), 0).label("total_rooms"),
                func.coalesce(func.sum(InventoryDay.sold_rooms), 0).label("sold_rooms"),
                func.coalesce(func.sum(InventoryDay.blocked_rooms), 0).label("blocked_rooms"),
                func.coalesce(func.sum(InventoryDay.available_rooms), 0).label("available_rooms"),
                func.coalesce(func.sum(InventoryDay.overbooked_rooms), 0).label("overbooked_rooms"),
                func.coalesce(
                    func.sum(case((InventoryDay.stop_sell.is_(True), 1), else_=0)), 0
                ).label("stop_sell_days"),
                func.coalesce(func.sum(InventoryDay.selling_rate * InventoryDay.sold_rooms), 0).label("revenue"),
            )
            .where(
                InventoryDay.hotel_id == hotel_id,
                InventoryDay.date >= start,
                InventoryDay.date <= end,
            )
            .group_by(InventoryDay.room_type_id)
            .order_by(InventoryDay.room_type_id)
        )
        if room_type_id:
            stmt = stmt.where(InventoryDay.room_type_id == room_type_id)
        try:
            return [dict(row._mapping) for row in self.db.execute(stmt)]
        except SQLAlchemyError as e:
            raise RepositoryError(f"Inventory summary failed: {str(e)}") from e

    # ============================================================================
    # WRITES
    # ============================================================================

    def build_day(
        self,
        hotel_id: str,
        room_type_id: str,
        day: date,
        defaults: DayDefaults,
    ) -> InventoryDay:
        """Construct (but do not add) a fresh row with every column populated."""
        row = InventoryDay(
            hotel_id=hotel_id,
            room_type_id=room_type_id,
            date=day,
            total_rooms=defaults.total_rooms,
            sold_rooms=0,
            blocked_rooms=0,
            overbooked_rooms=0,
            allowed_oversell=defaults.allowed_oversell,
            available_rooms=0,
            base_rate=defaults.base_rate,
            selling_rate=defaults.base_rate,
            currency=defaults.currency,
            stop_sell=False,
            closed_to_arrival=False,
            closed_to_departure=False,
            minimum_stay=1,
            maximum_stay=None,
            needs_sync=True,
        )
        row.recompute()
        return row

    def upsert_day(
        self,
        hotel_id: str,
        room_type_id: str,
        day: date,
        patches: Sequence[Any],
        defaults: DayDefaults,
        actor: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> UpsertResult:
        """
        Create-or-merge one coordinate under a row lock.

        Patches are applied in order, derived counters are refreshed and
        invariants checked before the flush.

        Raises:
            InvariantViolationError: post-state breaks counter bounds
            StaleDataError / IntegrityError: concurrent writer won; retryable
        """
        row = self.get(hotel_id, room_type_id, day, for_update=True)
        created = row is None
        old_values = None if created else row.audit_values()

        if created:
            row = self.build_day(hotel_id, room_type_id, day, defaults)
            self.db.add(row)

        for patch in patches:
            patch.apply(row)

        self.validate(row)

        row.needs_sync = True
        row.last_modified = now
        row.last_modified_by = actor
        self.flush()

        logger.debug(
            f"Upserted inventory {row.record_key}",
            extra={"hotel_id": hotel_id, "room_type_id": room_type_id, "created": created},
        )
        return UpsertResult(day=row, old_values=old_values, created=created)

    def validate(self, row: InventoryDay) -> None:
        row.recompute()
        violations = row.invariant_violations()
        if violations:
            raise InvariantViolationError(row.record_key, violations, row.counter_values())
