from datetime import date

import pytest

from app.core.exceptions import InvalidDateRangeError, UnknownRoomTypeError, UpstreamError, ValidationError
from app.repositories.room import RoomRepository
from app.schemas.inventory import InventoryChanges, RestrictionsUpdate
from app.services.inventory import AvailabilityService
from tests.conftest import HOTEL_ID

MAR_1 = date(2025, 3, 1)
MAR_2 = date(2025, 3, 2)
MAR_3 = date(2025, 3, 3)


@pytest.fixture
def sgl(seed_room_type, mutator):
    room_type = seed_room_type(code="SGL", rooms=3)
    mutator.create_range(HOTEL_ID, room_type.id, MAR_1, MAR_3, actor="ops")
    return room_type


def restrict(mutator, room_type, day, channel=None, **flags):
    mutator.update_day(
        HOTEL_ID,
        room_type.id,
        day,
        InventoryChanges(restrictions=RestrictionsUpdate(**flags)),
        actor="ops",
        channel=channel,
    )


def test_simple_hit_lists_first_free_rooms(availability, sgl):
    result = availability.check(HOTEL_ID, sgl.id, MAR_1, MAR_3, rooms_requested=2)

    assert result.available is True
    assert result.available_rooms == 3
    assert [room.number for room in result.rooms] == ["101", "102"]
    assert result.nights == 2
    assert result.warnings == []
    assert [d.date for d in result.daily_breakdown] == [MAR_1, MAR_2]


def test_stop_sell_on_middle_day_binds(availability, mutator, sgl):
    restrict(mutator, sgl, MAR_2, stop_sell=True)

    result = availability.check(HOTEL_ID, sgl.id, MAR_1, MAR_3)

    assert result.available is False
    assert result.binding_date == MAR_2
    assert result.reason == "stopSell"


def test_stop_sell_round_trip_restores_decision(availability, mutator, sgl):
    before = availability.check(HOTEL_ID, sgl.id, MAR_1, MAR_3)
    mutator.set_stop_sell(HOTEL_ID, sgl.id, MAR_1, MAR_2, True, actor="ops")
    mutator.set_stop_sell(HOTEL_ID, sgl.id, MAR_1, MAR_2, False, actor="ops")

    after = availability.check(HOTEL_ID, sgl.id, MAR_1, MAR_3)

    assert (after.available, after.available_rooms, after.reason) == (
        before.available, before.available_rooms, before.reason
    )


@pytest.mark.parametrize(
    "day, flags, reason",
    [
        (MAR_1, {"closed_to_arrival": True}, "closedToArrival"),
        (MAR_2, {"closed_to_departure": True}, "closedToDeparture"),
        (MAR_1, {"minimum_stay": 3}, "minimumStay"),
        (MAR_2, {"maximum_stay": 1}, "maximumStay"),
    ],
)
def test_restrictions_refuse_with_binding_date(availability, mutator, sgl, day, flags, reason):
    restrict(mutator, sgl, day, **flags)

    result = availability.check(HOTEL_ID, sgl.id, MAR_1, MAR_3)

    assert result.available is False
    assert result.reason == reason
    assert result.binding_date == day


def test_closed_to_arrival_only_applies_on_check_in(availability, mutator, sgl):
    restrict(mutator, sgl, MAR_2, closed_to_arrival=True)

    assert availability.check(HOTEL_ID, sgl.id, MAR_1, MAR_3).available is True


def test_channel_override_of_zero_closes_only_that_channel(availability, mutator, sgl):
    mutator.update_day(HOTEL_ID, sgl.id, MAR_2, InventoryChanges(available_rooms=0), actor="ops", channel="expedia")

    via_channel = availability.check(HOTEL_ID, sgl.id, MAR_1, MAR_3, channel="expedia")
    direct = availability.check(HOTEL_ID, sgl.id, MAR_1, MAR_3)

    assert via_channel.available is False
    assert via_channel.reason == "insufficientInventory"
    assert via_channel.binding_date == MAR_2
    assert via_channel.daily_breakdown[1].channel_override is True
    assert direct.available is True


def test_channel_restrictions_replace_day_level(availability, mutator, sgl):
    restrict(mutator, sgl, MAR_1, channel="airbnb", minimum_stay=1)
    restrict(mutator, sgl, MAR_1, minimum_stay=3)

    assert availability.check(HOTEL_ID, sgl.id, MAR_1, MAR_3).reason == "minimumStay"
    assert availability.check(HOTEL_ID, sgl.id, MAR_1, MAR_3, channel="airbnb").available is True


def test_insufficient_inventory_reports_remaining(availability, mutator, sgl):
    mutator.apply_reservation_delta(HOTEL_ID, sgl.id, MAR_2, 2, "R-1")

    result = availability.check(HOTEL_ID, sgl.id, MAR_1, MAR_3, rooms_requested=2)

    assert result.available is False
    assert result.reason == "insufficientInventory"
    assert result.binding_date == MAR_2
    assert result.remaining == 1


def test_missing_days_are_synthesized_with_warning(availability, seed_room_type):
    room_type = seed_room_type(rooms=2)

    result = availability.check(HOTEL_ID, room_type.id, MAR_1, MAR_3)

    assert result.available is True
    assert result.available_rooms == 2
    assert [w.code for w in result.warnings] == ["MISSING_INVENTORY", "MISSING_INVENTORY"]
    assert all(d.synthetic for d in result.daily_breakdown)


def test_drift_is_reported_and_larger_count_wins(availability, sgl, seed_reservation):
    seed_reservation(sgl, MAR_1, MAR_2, rooms=2)

    result = availability.check(HOTEL_ID, sgl.id, MAR_1, MAR_3, rooms_requested=2)

    assert result.has_stale_warning
    (warning,) = result.warnings
    assert (warning.date, warning.stored_sold, warning.reconciled_sold) == (MAR_1, 0, 2)
    assert result.daily_breakdown[0].available_rooms == 1
    assert result.reason == "insufficientInventory"


def test_assigned_rooms_are_not_offered(db, availability, mutator, sgl, seed_reservation):
    room_101 = RoomRepository(db).list_rooms(HOTEL_ID, sgl.id)[0]
    for day in (MAR_1, MAR_2):
        mutator.apply_reservation_delta(HOTEL_ID, sgl.id, day, 1, "R-1")
    seed_reservation(sgl, MAR_1, MAR_3, assign=[room_101], ref="R-1")

    result = availability.check(HOTEL_ID, sgl.id, MAR_1, MAR_3, rooms_requested=2)

    assert result.warnings == []
    assert [room.number for room in result.rooms] == ["102", "103"]


def test_cancelled_reservations_hold_nothing(availability, sgl, seed_reservation):
    from app.models.base.enums import ReservationStatus

    seed_reservation(sgl, MAR_1, MAR_3, rooms=3, status=ReservationStatus.CANCELLED)

    result = availability.check(HOTEL_ID, sgl.id, MAR_1, MAR_3, rooms_requested=3)

    assert result.available is True
    assert result.warnings == []


def test_zero_length_stay_is_rejected(availability, sgl):
    with pytest.raises(InvalidDateRangeError):
        availability.check(HOTEL_ID, sgl.id, MAR_1, MAR_1)


def test_zero_rooms_is_rejected(availability, sgl):
    with pytest.raises(ValidationError):
        availability.check(HOTEL_ID, sgl.id, MAR_1, MAR_2, rooms_requested=0)


def test_inactive_room_type_is_unknown(availability, seed_room_type):
    room_type = seed_room_type(code="OLD", is_active=False)
    with pytest.raises(UnknownRoomTypeError):
        availability.check(HOTEL_ID, room_type.id, MAR_1, MAR_2)


def test_reservation_log_outage_propagates(db, clock, settings, sgl):
    class DownReservationLog:
        def list_overlapping(self, *args, **kwargs):
            raise UpstreamError("ReservationLog")

    service = AvailabilityService(db, clock=clock, config=settings, reservations=DownReservationLog())

    with pytest.raises(UpstreamError) as exc_info:
        service.check(HOTEL_ID, sgl.id, MAR_1, MAR_3)
    assert exc_info.value.status_code == 503


def test_rates_follow_channel_and_total_covers_all_rooms(availability, mutator, sgl):
    mutator.update_day(HOTEL_ID, sgl.id, MAR_1, InventoryChanges(selling_rate=6001), actor="ops")
    mutator.update_day(HOTEL_ID, sgl.id, MAR_2, InventoryChanges(selling_rate=4500), actor="ops", channel="expedia")

    direct = availability.check(HOTEL_ID, sgl.id, MAR_1, MAR_3, rooms_requested=2)
    expedia = availability.check(HOTEL_ID, sgl.id, MAR_1, MAR_3, rooms_requested=2, channel="expedia")

    assert [d.rate for d in direct.daily_breakdown] == [6001, 5000]
    assert (direct.average_rate, direct.total_amount) == (5500, 22002)
    assert [d.rate for d in expedia.daily_breakdown] == [6001, 4500]
    assert expedia.currency == "INR"


class TestAlternatives:

    @pytest.fixture
    def upgrades(self, seed_room_type, mutator):
        dbl = seed_room_type(code="DBL", base_rate=8000, rooms=2, first_number=201)
        ste = seed_room_type(code="STE", base_rate=12000, rooms=1, first_number=301)
        cheap = seed_room_type(code="ECO", base_rate=3000, rooms=5, first_number=401)
        small = seed_room_type(code="SOLO", base_rate=9000, rooms=5, first_number=501, max_occupancy=1)
        for room_type in (dbl, ste, cheap, small):
            mutator.create_range(HOTEL_ID, room_type.id, MAR_1, MAR_3, actor="ops")
        return dbl, ste

    def test_only_types_that_take_the_whole_request_are_offered(self, availability, mutator, sgl, upgrades):
        mutator.update_day(HOTEL_ID, sgl.id, MAR_1, InventoryChanges(blocked_rooms=2), actor="ops")

        refused = availability.check(HOTEL_ID, sgl.id, MAR_1, MAR_3, rooms_requested=2)

        assert refused.reason == "insufficientInventory"
        (option,) = refused.alternatives
        assert option.code == "DBL"
        assert [room.number for room in option.rooms] == ["201", "202"]

    def test_available_stay_has_no_alternatives(self, availability, sgl, upgrades):
        assert availability.check(HOTEL_ID, sgl.id, MAR_1, MAR_3).alternatives == []

    def test_stop_sell_lists_options_cheapest_first(self, availability, mutator, sgl, upgrades):
        dbl, _ = upgrades
        restrict(mutator, sgl, MAR_2, stop_sell=True)

        refused = availability.check(HOTEL_ID, sgl.id, MAR_1, MAR_3)

        assert [a.code for a in refused.alternatives] == ["DBL", "STE"]
        option = refused.alternatives[0]
        assert (option.room_type_id, option.available_rooms) == (dbl.id, 2)
        assert (option.average_rate, option.total_amount) == (8000, 16000)
        assert [room.number for room in option.rooms] == ["201"]

    def test_suggestions_can_be_switched_off(self, availability, mutator, sgl, upgrades):
        restrict(mutator, sgl, MAR_2, stop_sell=True)

        refused = availability.check(HOTEL_ID, sgl.id, MAR_1, MAR_3, suggest_alternatives=False)

        assert refused.alternatives == []
