"""
Inventory mutator: every write to date-level inventory goes through here.

Each coordinate is changed in its own transaction together with its audit
entry. Lost optimistic races are retried; invariant breaches abort the
change and leave a critical audit entry behind.
"""

from dataclasses import dataclass
from datetime import date, timedelta
from typing import List, Optional, Sequence

from sqlalchemy.orm import Session

from app.config.settings import Settings
from app.core.clock import Clock, RandomSource
from app.core.exceptions import (
    BaseAppException,
    InvalidDateRangeError,
    InvariantViolationError,
    UnknownRoomTypeError,
)
from app.models.base.enums import AuditSeverity, ChangeType, CreateMode
from app.models.inventory import InventoryDay
from app.repositories.audit import AuditRepository
from app.repositories.inventory import DayDefaults, InventoryRepository, UpsertResult, iter_dates
from app.repositories.room import RoomRepository
from app.schemas.audit import AuditEntry
from app.schemas.inventory import (
    AddChannelOverride,
    BulkItemResult,
    BulkUpdateItem,
    BulkUpdateResponse,
    CreateRangeResponse,
    InventoryChanges,
    InventoryPatch,
    RangeItemResult,
    RemoveChannelOverride,
    ReservationDelta,
    RestrictionsUpdate,
    SetCounters,
    SetRates,
    SetRestrictions,
    StopSellResponse,
    patches_for,
)
from app.services.base import BaseService, ServiceResult
from app.services.collaborators import AuditLog, RoomRegistry

SOURCE_MANUAL = "manual"
SOURCE_BULK = "bulk_update"
SOURCE_STOP_SELL = "stop_sell"
SOURCE_BULK_CREATE = "bulk_create"
SOURCE_RESERVATION = "reservation"
SOURCE_RELEASE = "reservation_release"


@dataclass
class _Outcome:
    result: ServiceResult[UpsertResult]
    day: date


class InventoryMutator(BaseService):
    """
    Applies tagged patches to inventory days.

    Collaborators are injected; by default they are the SQLAlchemy
    repositories bound to the same session.
    """

    def __init__(
        self,
        db_session: Session,
        clock: Optional[Clock] = None,
        rng: Optional[RandomSource] = None,
        config: Optional[Settings] = None,
        inventory: Optional[InventoryRepository] = None,
        rooms: Optional[RoomRegistry] = None,
        audit: Optional[AuditLog] = None,
    ):
        super().__init__(db_session, clock=clock, rng=rng, config=config)
        self.inventory = inventory or InventoryRepository(db_session)
        self.rooms = rooms or RoomRepository(db_session)
        self.audit = audit or AuditRepository(db_session)

    # ------------------------------------------------------------------
    # Single coordinate
    # ------------------------------------------------------------------

    def update_day(
        self,
        hotel_id: str,
        room_type_id: str,
        day: date,
        changes: InventoryChanges,
        actor: str,
        channel: Optional[str] = None,
    ) -> InventoryDay:
        """Manual edit of one day, day-level or for one channel."""
        return self.apply_patches(
            hotel_id,
            room_type_id,
            day,
            patches_for(changes, channel),
            actor=actor,
            source=SOURCE_MANUAL,
            tags=[f"channel:{channel}"] if channel else None,
        ).day

    def apply_reservation_delta(
        self,
        hotel_id: str,
        room_type_id: str,
        day: date,
        delta: int,
        reservation_ref: str,
        source: str = "direct",
        actor: str = "system",
    ) -> InventoryDay:
        """
        Sell (+n) or release (-n) rooms for one night.

        Raises:
            OverbookedError: capacity would be exceeded
            ValidationError: releasing more rooms than are sold
        """
        patch = ReservationDelta(
            delta=delta,
            reservation_ref=reservation_ref,
            source=source,
            reserved_at=self.clock.now(),
        )
        return self.apply_patches(
            hotel_id,
            room_type_id,
            day,
            [patch],
            actor=actor,
            source=SOURCE_RESERVATION if delta > 0 else SOURCE_RELEASE,
            tags=[f"reservation:{reservation_ref}", f"channel:{source}"],
        ).day

    def apply_patches(
        self,
        hotel_id: str,
        room_type_id: str,
        day: date,
        patches: Sequence[InventoryPatch],
        actor: str,
        source: str,
        tags: Optional[List[str]] = None,
        defaults: Optional[DayDefaults] = None,
    ) -> UpsertResult:
        """
        Create-or-merge one coordinate and audit it in one transaction.

        Raises:
            ConcurrentModificationError: retries exhausted
            InvariantViolationError: post-state breaks counter bounds
        """
        defaults = defaults or self.defaults_for(hotel_id, room_type_id)
        record_key = f"{hotel_id}:{room_type_id}:{day.isoformat()}"

        def work() -> UpsertResult:
            now = self.clock.now()
            result = self.inventory.upsert_day(
                hotel_id, room_type_id, day, patches, defaults, actor=actor, now=now
            )
            self.audit.record(AuditEntry(
                hotel_id=hotel_id,
                record_key=result.day.record_key,
                change_type=ChangeType.CREATE if result.created else ChangeType.UPDATE,
                old_values=result.old_values,
                new_values=result.day.audit_values(),
                actor=actor,
                source=source,
                tags=list(tags or []),
                timestamp=now,
            ))
            return result

        try:
            result = self._with_retry(work, record_key)
        except InvariantViolationError as e:
            self._record_violation(hotel_id, e, actor, source)
            raise

        self._logger.info(
            f"Inventory {result.day.record_key} {'created' if result.created else 'updated'} via {source}",
            extra={"hotel_id": hotel_id, "room_type_id": room_type_id, "date": day.isoformat()},
        )
        return result

    # ------------------------------------------------------------------
    # Multi-coordinate
    # ------------------------------------------------------------------

    def bulk_update(
        self,
        hotel_id: str,
        room_type_id: str,
        items: Sequence[BulkUpdateItem],
        actor: str,
        channel: Optional[str] = None,
    ) -> BulkUpdateResponse:
        """Apply independent per-date edits; one failure does not stop the rest."""
        defaults = self.defaults_for(hotel_id, room_type_id)
        outcomes = []
        for item in items:
            outcomes.append(self._attempt(
                item.date,
                lambda item=item: self.apply_patches(
                    hotel_id,
                    room_type_id,
                    item.date,
                    patches_for(InventoryChanges.from_request(item), channel),
                    actor=actor,
                    source=SOURCE_BULK,
                    tags=[f"channel:{channel}"] if channel else None,
                    defaults=defaults,
                ),
            ))

        results = [self._item_result(o) for o in outcomes]
        succeeded = sum(1 for r in results if r.status == "success")
        return BulkUpdateResponse(
            total=len(results),
            succeeded=succeeded,
            failed=len(results) - succeeded,
            results=results,
        )

    def set_stop_sell(
        self,
        hotel_id: str,
        room_type_id: str,
        start: date,
        end: date,
        value: bool,
        actor: str,
        channel: Optional[str] = None,
        reason: Optional[str] = None,
    ) -> StopSellResponse:
        """
        Open or close sales over ``start..end`` inclusive.

        Closing creates missing days; opening skips days (or channel
        overrides) that do not exist, since there is nothing to clear.
        """
        if end < start:
            raise InvalidDateRangeError(start, end)
        defaults = self.defaults_for(hotel_id, room_type_id)
        restrictions = RestrictionsUpdate(stop_sell=value)
        if channel:
            patch: InventoryPatch = AddChannelOverride(channel_id=channel, restrictions=restrictions)
        else:
            patch = SetRestrictions(restrictions=restrictions)

        tags = [f"stop_sell:{str(value).lower()}"]
        if channel:
            tags.append(f"channel:{channel}")
        if reason:
            tags.append(f"reason:{reason}")

        updated = created = 0
        results: List[BulkItemResult] = []
        for day in iter_dates(start, end):
            if not value and not self._has_target(hotel_id, room_type_id, day, channel):
                results.append(BulkItemResult(date=day, status="skipped"))
                continue
            outcome = self._attempt(day, lambda day=day: self.apply_patches(
                hotel_id,
                room_type_id,
                day,
                [patch],
                actor=actor,
                source=SOURCE_STOP_SELL,
                tags=tags,
                defaults=defaults,
            ))
            if outcome.result.is_success:
                if outcome.result.data.created:
                    created += 1
                else:
                    updated += 1
            results.append(self._item_result(outcome))

        return StopSellResponse(updated=updated, created=created, results=results)

    def create_range(
        self,
        hotel_id: str,
        room_type_id: str,
        start: date,
        end: date,
        actor: str,
        base_rate: Optional[int] = None,
        mode: CreateMode = CreateMode.SKIP_EXISTING,
    ) -> CreateRangeResponse:
        """
        Materialize days for ``start..end`` inclusive.

        ``overwrite`` resets capacity, rates, restrictions and overrides of
        existing days; sold and blocked counts and reservation tags stay.
        """
        if end < start:
            raise InvalidDateRangeError(start, end)
        defaults = self.defaults_for(hotel_id, room_type_id)
        if base_rate is not None:
            defaults.base_rate = base_rate

        counts = {"created": 0, "skipped": 0, "overwritten": 0, "failed": 0}
        results: List[RangeItemResult] = []
        for day in iter_dates(start, end):
            existing = self.inventory.get(hotel_id, room_type_id, day)
            if existing is not None and mode == CreateMode.SKIP_EXISTING:
                counts["skipped"] += 1
                results.append(RangeItemResult(date=day, action="skipped", inventory_id=existing.id))
                continue

            patches: List[InventoryPatch] = []
            if existing is not None:
                patches = self._reset_patches(existing, defaults)
            outcome = self._attempt(day, lambda day=day, patches=patches: self.apply_patches(
                hotel_id,
                room_type_id,
                day,
                patches,
                actor=actor,
                source=SOURCE_BULK_CREATE,
                tags=[f"mode:{mode.value}"],
                defaults=defaults,
            ))
            if not outcome.result.is_success:
                counts["failed"] += 1
                results.append(RangeItemResult(date=day, action="failed", error=outcome.result.error.message))
                continue

            upsert = outcome.result.data
            action = "created" if upsert.created else "overwritten"
            counts[action] += 1
            results.append(RangeItemResult(date=day, action=action, inventory_id=upsert.day.id))

        self._logger.info(
            f"Range {start}..{end} for {room_type_id}: {counts}",
            extra={"hotel_id": hotel_id, "room_type_id": room_type_id},
        )
        return CreateRangeResponse(results=results, **counts)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def defaults_for(self, hotel_id: str, room_type_id: str) -> DayDefaults:
        """
        Values for lazily created days.

        Raises:
            UnknownRoomTypeError: room type missing or owned by another hotel
        """
        room_type = self.rooms.get_room_type(room_type_id)
        if room_type is None:
            raise UnknownRoomTypeError(room_type_id)
        if room_type.hotel_id != hotel_id:
            raise UnknownRoomTypeError(room_type_id, reason=f"does not belong to hotel {hotel_id}")
        return DayDefaults(
            total_rooms=self.rooms.count_active(hotel_id, room_type_id),
            base_rate=room_type.base_rate,
            currency=room_type.currency or self.settings.DEFAULT_CURRENCY,
            allowed_oversell=self.settings.ALLOWED_OVERSELL,
        )

    @staticmethod
    def _reset_patches(existing: InventoryDay, defaults: DayDefaults) -> List[InventoryPatch]:
        patches: List[InventoryPatch] = [
            SetCounters(total_rooms=defaults.total_rooms, allowed_oversell=defaults.allowed_oversell),
            SetRates(base_rate=defaults.base_rate, selling_rate=defaults.base_rate, currency=defaults.currency),
            SetRestrictions(restrictions=RestrictionsUpdate(
                stop_sell=False,
                closed_to_arrival=False,
                closed_to_departure=False,
                minimum_stay=1,
                maximum_stay=None,
            )),
        ]
        patches.extend(RemoveChannelOverride(channel_id=c) for c in sorted(existing.channel_overrides))
        return patches

    def _has_target(self, hotel_id: str, room_type_id: str, day: date, channel: Optional[str]) -> bool:
        row = self.inventory.get(hotel_id, room_type_id, day)
        if row is None:
            return False
        return not channel or channel in row.channel_overrides

    def _attempt(self, day: date, operation) -> _Outcome:
        try:
            return _Outcome(result=ServiceResult.success(operation()), day=day)
        except BaseAppException as e:
            self._logger.warning(
                f"Inventory change for {day} failed: {e.error_code.value}",
                extra={"date": day.isoformat()},
            )
            return _Outcome(result=ServiceResult.from_exception(e), day=day)

    @staticmethod
    def _item_result(outcome: _Outcome) -> BulkItemResult:
        result = outcome.result
        if result.is_success:
            return BulkItemResult(date=outcome.day, status="success", inventory_id=result.data.day.id)
        return BulkItemResult(
            date=outcome.day,
            status="failed",
            code=result.error.code,
            error=result.error.message,
        )

    def _record_violation(self, hotel_id: str, error: InvariantViolationError, actor: str, source: str) -> None:
        self._logger.critical(
            f"Invariant violation on {error.record_key}: {error.violations}",
            extra={"hotel_id": hotel_id},
        )
        with self.transaction():
            self.audit.record(AuditEntry(
                hotel_id=hotel_id,
                record_key=error.record_key,
                change_type=ChangeType.UPDATE,
                new_values={"violations": error.violations, "state": error.details.get("state", {})},
                actor=actor,
                source=source,
                tags=["invariant_violation"],
                severity=AuditSeverity.CRITICAL,
                timestamp=self.clock.now(),
            ))


def stay_nights(check_in: date, check_out: date) -> List[date]:
    """Nights of the half-open stay ``[check_in, check_out)``."""
    if check_out <= check_in:
        raise InvalidDateRangeError(check_in, check_out)
    return list(iter_dates(check_in, check_out - timedelta(days=1)))


__all__ = ["InventoryMutator", "stay_nights"]
