"""
Booking commit path: turn a reservation into per-night inventory deltas.
"""

from datetime import date
from typing import List, Optional

from sqlalchemy.orm import Session

from app.config.settings import Settings
from app.core.clock import Clock, RandomSource
from app.core.exceptions import (
    BaseAppException,
    OverbookedError,
    RestrictionViolationError,
    StaleInventoryError,
    StopSellError,
)
from app.models.inventory import InventoryDay
from app.repositories.booking import ReservationRepository
from app.schemas.availability import AvailabilityResult
from app.schemas.booking import NightResult, ReservationCommitResponse
from app.services.base import BaseService
from app.services.inventory.availability_service import (
    REASON_INSUFFICIENT,
    REASON_STOP_SELL,
    WARNING_STALE_INVENTORY,
    AvailabilityService,
)
from app.services.inventory.inventory_mutator import InventoryMutator, stay_nights


class ReservationService(BaseService):
    """
    Reserves and releases rooms night by night.

    Each night is its own transaction; when a later night fails, nights
    already applied are reverted before the error propagates. Once every
    night is applied the reservation log is updated too, so later
    availability checks reconcile against the core's own sales.
    """

    def __init__(
        self,
        db_session: Session,
        clock: Optional[Clock] = None,
        rng: Optional[RandomSource] = None,
        config: Optional[Settings] = None,
        mutator: Optional[InventoryMutator] = None,
        availability: Optional[AvailabilityService] = None,
        reservations: Optional[ReservationRepository] = None,
    ):
        super().__init__(db_session, clock=clock, rng=rng, config=config)
        self.mutator = mutator or InventoryMutator(db_session, clock=self.clock, rng=self.rng, config=self.settings)
        self.availability = availability or AvailabilityService(db_session, clock=self.clock, config=self.settings)
        self.reservations = reservations or ReservationRepository(db_session)

    def reserve(
        self,
        hotel_id: str,
        room_type_id: str,
        check_in: date,
        check_out: date,
        rooms: int,
        reservation_ref: str,
        actor: str,
        source: str = "direct",
        channel: Optional[str] = None,
    ) -> ReservationCommitResponse:
        """
        Revalidate and sell ``rooms`` for every night of the stay.

        Raises:
            StopSellError / RestrictionViolationError: a restriction forbids the stay
            StaleInventoryError: stored counts drifted from the reservation log
            OverbookedError: not enough rooms, including races lost while applying
        """
        decision = self.availability.check(
            hotel_id, room_type_id, check_in, check_out, rooms, channel, suggest_alternatives=False
        )
        self._ensure_bookable(decision, rooms, channel)

        nights = stay_nights(check_in, check_out)
        applied: List[InventoryDay] = []
        try:
            for night in nights:
                applied.append(self.mutator.apply_reservation_delta(
                    hotel_id, room_type_id, night, rooms, reservation_ref, source=source, actor=actor
                ))
            self._with_retry(
                lambda: self.reservations.record_booking(
                    hotel_id, room_type_id, reservation_ref, check_in, check_out, rooms, source, self.clock.now()
                ),
                f"reservation:{reservation_ref}",
            )
        except BaseAppException as e:
            self._logger.warning(
                f"Reservation {reservation_ref} failed on night {len(applied) + 1}/{len(nights)}: "
                f"{e.error_code.value}; reverting {len(applied)} night(s)",
                extra={"hotel_id": hotel_id, "room_type_id": room_type_id},
            )
            self._compensate(hotel_id, room_type_id, [d.date for d in applied], -rooms, reservation_ref, source, actor)
            raise

        self._logger.info(
            f"Reserved {rooms} room(s) for {reservation_ref} over {len(nights)} night(s)",
            extra={"hotel_id": hotel_id, "room_type_id": room_type_id},
        )
        return self._response(reservation_ref, "reserved", rooms, applied)

    def release(
        self,
        hotel_id: str,
        room_type_id: str,
        check_in: date,
        check_out: date,
        rooms: int,
        reservation_ref: str,
        actor: str,
        source: str = "direct",
    ) -> ReservationCommitResponse:
        """Return ``rooms`` to inventory for every night of the stay."""
        nights = stay_nights(check_in, check_out)
        applied: List[InventoryDay] = []
        try:
            for night in nights:
                applied.append(self.mutator.apply_reservation_delta(
                    hotel_id, room_type_id, night, -rooms, reservation_ref, source=source, actor=actor
                ))
            self._with_retry(
                lambda: self.reservations.record_release(reservation_ref, rooms),
                f"reservation:{reservation_ref}",
            )
        except BaseAppException:
            self._compensate(hotel_id, room_type_id, [d.date for d in applied], rooms, reservation_ref, source, actor)
            raise

        self._logger.info(
            f"Released {rooms} room(s) for {reservation_ref} over {len(nights)} night(s)",
            extra={"hotel_id": hotel_id, "room_type_id": room_type_id},
        )
        return self._response(reservation_ref, "released", rooms, applied)

    # ------------------------------------------------------------------

    def _ensure_bookable(self, decision: AvailabilityResult, rooms: int, channel: Optional[str]) -> None:
        if decision.has_stale_warning:
            raise StaleInventoryError(
                [
                    {
                        "date": w.date.isoformat() if w.date else None,
                        "storedSold": w.stored_sold,
                        "reconciledSold": w.reconciled_sold,
                    }
                    for w in decision.warnings
                    if w.code == WARNING_STALE_INVENTORY
                ],
                tolerance=self.settings.STALE_INVENTORY_TOLERANCE,
            )
        if decision.available:
            return
        if decision.reason == REASON_STOP_SELL:
            raise StopSellError(decision.binding_date, channel)
        if decision.reason == REASON_INSUFFICIENT:
            raise OverbookedError(decision.binding_date, remaining=decision.remaining or 0, requested=rooms)
        raise RestrictionViolationError(decision.binding_date, decision.reason, channel)

    def _compensate(self, hotel_id, room_type_id, days, delta, reservation_ref, source, actor) -> None:
        """Undo applied nights; a failed undo is logged and never replaces the error being handled."""
        try:
            self._revert(hotel_id, room_type_id, days, delta, reservation_ref, source, actor)
        except Exception:
            self._logger.error(
                f"Could not revert {len(days)} night(s) of {reservation_ref}; stored counts need reconciliation",
                extra={"hotel_id": hotel_id, "room_type_id": room_type_id},
                exc_info=True,
            )

    def _revert(
        self,
        hotel_id: str,
        room_type_id: str,
        days: List[date],
        delta: int,
        reservation_ref: str,
        source: str,
        actor: str,
    ) -> None:
        for day in reversed(days):
            self.mutator.apply_reservation_delta(
                hotel_id, room_type_id, day, delta, reservation_ref, source=source, actor=actor
            )

    @staticmethod
    def _response(reservation_ref: str, action: str, rooms: int, days: List[InventoryDay]) -> ReservationCommitResponse:
        return ReservationCommitResponse(
            reservation_ref=reservation_ref,
            action=action,
            rooms=rooms,
            nights=[
                NightResult(date=d.date, sold_rooms=d.sold_rooms, available_rooms=d.available_rooms)
                for d in days
            ],
        )
