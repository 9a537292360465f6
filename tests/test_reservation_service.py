from datetime import date

import pytest

from app.core.exceptions import (
    OverbookedError,
    RestrictionViolationError,
    StaleInventoryError,
    StopSellError,
)
from app.models.base.enums import ReservationStatus
from app.repositories.audit import AuditRepository
from app.repositories.booking import ReservationRepository
from app.repositories.inventory import InventoryRepository
from app.schemas.inventory import InventoryChanges, RestrictionsUpdate
from app.services.booking import ReservationService
from app.services.inventory import InventoryMutator
from tests.conftest import HOTEL_ID

MAR_1 = date(2025, 3, 1)
MAR_2 = date(2025, 3, 2)
MAR_3 = date(2025, 3, 3)
MAR_4 = date(2025, 3, 4)


@pytest.fixture
def dbl(seed_room_type, mutator):
    room_type = seed_room_type(code="DBL", rooms=2, base_rate=8000)
    mutator.create_range(HOTEL_ID, room_type.id, MAR_1, MAR_4, actor="ops")
    return room_type


def sold(db, room_type, *days):
    repo = InventoryRepository(db)
    return [repo.require(HOTEL_ID, room_type.id, d).sold_rooms for d in days]


def test_reserve_sells_every_night(db, reservations, dbl):
    response = reservations.reserve(HOTEL_ID, dbl.id, MAR_1, MAR_4, 1, "BK-1", actor="frontdesk")

    assert response.action == "reserved"
    assert [n.date for n in response.nights] == [MAR_1, MAR_2, MAR_3]
    assert all(n.sold_rooms == 1 for n in response.nights)
    assert sold(db, dbl, MAR_1, MAR_2, MAR_3, MAR_4) == [1, 1, 1, 0]


def test_release_returns_rooms(db, reservations, dbl):
    reservations.reserve(HOTEL_ID, dbl.id, MAR_1, MAR_3, 2, "BK-1", actor="frontdesk")

    response = reservations.release(HOTEL_ID, dbl.id, MAR_1, MAR_3, 2, "BK-1", actor="frontdesk")

    assert response.action == "released"
    assert sold(db, dbl, MAR_1, MAR_2) == [0, 0]


def test_stop_sell_refuses_before_any_write(db, reservations, mutator, dbl):
    mutator.set_stop_sell(HOTEL_ID, dbl.id, MAR_2, MAR_2, True, actor="ops")

    with pytest.raises(StopSellError):
        reservations.reserve(HOTEL_ID, dbl.id, MAR_1, MAR_3, 1, "BK-1", actor="frontdesk")
    assert sold(db, dbl, MAR_1, MAR_2) == [0, 0]


def test_restriction_is_a_conflict(reservations, mutator, dbl):
    mutator.update_day(
        HOTEL_ID, dbl.id, MAR_1,
        InventoryChanges(restrictions=RestrictionsUpdate(minimum_stay=3)),
        actor="ops",
    )

    with pytest.raises(RestrictionViolationError) as exc_info:
        reservations.reserve(HOTEL_ID, dbl.id, MAR_1, MAR_3, 1, "BK-1", actor="frontdesk")
    assert exc_info.value.details["rule"] == "minimumStay"


def test_insufficient_rooms_is_overbooked(reservations, dbl):
    with pytest.raises(OverbookedError) as exc_info:
        reservations.reserve(HOTEL_ID, dbl.id, MAR_1, MAR_3, 3, "BK-1", actor="frontdesk")
    assert exc_info.value.details["remaining"] == 2


def test_drift_blocks_the_commit(reservations, dbl, seed_reservation):
    seed_reservation(dbl, MAR_2, MAR_3, rooms=1)

    with pytest.raises(StaleInventoryError) as exc_info:
        reservations.reserve(HOTEL_ID, dbl.id, MAR_1, MAR_3, 1, "BK-1", actor="frontdesk")
    assert exc_info.value.drifts == [{"date": "2025-03-02", "storedSold": 0, "reconciledSold": 1}]


class FailingOnMutator(InventoryMutator):
    """Loses the race for ``fail_on`` as another booking takes the last room."""

    fail_on = MAR_2

    def apply_reservation_delta(self, hotel_id, room_type_id, day, delta, reservation_ref, **kwargs):
        if day == self.fail_on and delta > 0:
            raise OverbookedError(day, remaining=0, requested=delta)
        return super().apply_reservation_delta(hotel_id, room_type_id, day, delta, reservation_ref, **kwargs)


def test_failed_night_reverts_applied_nights(db, clock, rng, settings, availability, dbl):
    mutator = FailingOnMutator(db, clock=clock, rng=rng, config=settings)
    service = ReservationService(db, clock=clock, rng=rng, config=settings, mutator=mutator, availability=availability)

    with pytest.raises(OverbookedError):
        service.reserve(HOTEL_ID, dbl.id, MAR_1, MAR_4, 1, "BK-1", actor="frontdesk")

    assert sold(db, dbl, MAR_1, MAR_2, MAR_3) == [0, 0, 0]
    day = InventoryRepository(db).require(HOTEL_ID, dbl.id, MAR_1)
    sources = sorted(e.source for e in AuditRepository(db).list_for_record("inventory_days", day.record_key))
    assert sources == ["bulk_create", "reservation", "reservation_release"]


def test_successive_bookings_reconcile_with_the_log(db, reservations, dbl):
    reservations.reserve(HOTEL_ID, dbl.id, MAR_1, MAR_3, 1, "BK-1", actor="frontdesk")

    response = reservations.reserve(HOTEL_ID, dbl.id, MAR_1, MAR_3, 1, "BK-2", actor="frontdesk")

    assert [n.sold_rooms for n in response.nights] == [2, 2]
    logged = ReservationRepository(db).list_overlapping(HOTEL_ID, dbl.id, MAR_1, MAR_3)
    assert [(r.reservation_ref, r.rooms_count) for r in logged] == [("BK-1", 1), ("BK-2", 1)]


def test_release_cancels_the_log_entry(db, reservations, availability, dbl):
    reservations.reserve(HOTEL_ID, dbl.id, MAR_1, MAR_3, 2, "BK-1", actor="frontdesk")
    reservations.release(HOTEL_ID, dbl.id, MAR_1, MAR_3, 2, "BK-1", actor="frontdesk")

    assert ReservationRepository(db).find_by_ref("BK-1").status == ReservationStatus.CANCELLED
    result = availability.check(HOTEL_ID, dbl.id, MAR_1, MAR_3, 2)
    assert result.available is True
    assert result.warnings == []


def test_partial_release_keeps_the_rest_held(db, reservations, dbl):
    reservations.reserve(HOTEL_ID, dbl.id, MAR_1, MAR_3, 2, "BK-1", actor="frontdesk")
    reservations.release(HOTEL_ID, dbl.id, MAR_1, MAR_3, 1, "BK-1", actor="frontdesk")

    entry = ReservationRepository(db).find_by_ref("BK-1")
    assert (entry.status, entry.rooms_count) == (ReservationStatus.CONFIRMED, 1)
    assert sold(db, dbl, MAR_1, MAR_2) == [1, 1]


class BrokenUndoMutator(FailingOnMutator):
    """Also fails to give nights back."""

    def apply_reservation_delta(self, hotel_id, room_type_id, day, delta, reservation_ref, **kwargs):
        if delta < 0:
            raise RuntimeError("inventory store went away")
        return super().apply_reservation_delta(hotel_id, room_type_id, day, delta, reservation_ref, **kwargs)


def test_failed_undo_does_not_mask_the_original_error(db, clock, rng, settings, availability, dbl):
    mutator = BrokenUndoMutator(db, clock=clock, rng=rng, config=settings)
    service = ReservationService(db, clock=clock, rng=rng, config=settings, mutator=mutator, availability=availability)

    with pytest.raises(OverbookedError):
        service.reserve(HOTEL_ID, dbl.id, MAR_1, MAR_4, 1, "BK-1", actor="frontdesk")

    assert ReservationRepository(db).find_by_ref("BK-1") is None
