"""
HTTP surface: routing, camelCase payloads and the error shape.
"""

from datetime import date

import pytest

from app.repositories.audit import AuditRepository
from app.repositories.inventory import InventoryRepository
from tests.conftest import HOTEL_ID

API = "/api/v1"
MAR_1 = date(2025, 3, 1)


@pytest.fixture
def sgl(seed_room_type, mutator):
    room_type = seed_room_type(code="SGL", rooms=3, base_rate=5000)
    mutator.create_range(HOTEL_ID, room_type.id, MAR_1, date(2025, 3, 3), actor="ops")
    return room_type


def reserve_body(room_type, **overrides):
    body = {
        "hotelId": HOTEL_ID,
        "roomTypeId": room_type.id,
        "checkIn": "2025-03-01",
        "checkOut": "2025-03-03",
        "rooms": 1,
        "reservationRef": "BK-100",
    }
    body.update(overrides)
    return body


def test_health(client):
    response = client.get(f"{API}/health")

    assert response.status_code == 200
    assert response.json()["status"] == "ok"


class TestInventoryEndpoints:

    def test_put_records_actor_header(self, client, db, sgl):
        response = client.put(
            f"{API}/inventory",
            json={"hotelId": HOTEL_ID, "roomType": sgl.id, "date": "2025-03-01", "blockedRooms": 1},
            headers={"X-Actor": "alice"},
        )

        assert response.status_code == 200
        assert response.json()["availableRooms"] == 2
        day = InventoryRepository(db).require(HOTEL_ID, sgl.id, MAR_1)
        actors = {e.actor for e in AuditRepository(db).list_for_record("inventory_days", day.record_key)}
        assert actors == {"ops", "alice"}

    def test_put_with_channel_returns_channel_view(self, client, sgl):
        response = client.put(
            f"{API}/inventory",
            json={"hotelId": HOTEL_ID, "roomType": sgl.id, "date": "2025-03-01",
                  "availableRooms": 1, "channel": "expedia"},
        )

        body = response.json()
        assert body["availableRooms"] == 3
        assert body["channelView"]["availableRooms"] == 1
        assert body["channelView"]["overridden"] is True

    def test_get_range(self, client, sgl):
        response = client.get(
            f"{API}/inventory",
            params={"hotelId": HOTEL_ID, "startDate": "2025-03-01", "endDate": "2025-03-02"},
        )

        assert response.status_code == 200
        assert [d["date"] for d in response.json()] == ["2025-03-01", "2025-03-02"]

    def test_stop_sell_then_reserve_conflicts(self, client, sgl):
        stop = client.post(
            f"{API}/inventory/stop-sell",
            json={"hotelId": HOTEL_ID, "roomType": sgl.id, "startDate": "2025-03-02",
                  "endDate": "2025-03-02", "stopSell": True},
        )
        assert stop.status_code == 200
        assert stop.json()["updated"] == 1

        response = client.post(f"{API}/inventory/reserve", json=reserve_body(sgl))

        assert response.status_code == 409
        body = response.json()
        assert body["status"] == "error"
        assert body["code"] == "STOP_SELL"
        assert body["details"]["bindingDate"] == "2025-03-02"

    def test_reserve_and_release(self, client, sgl):
        reserved = client.post(f"{API}/inventory/reserve", json=reserve_body(sgl, rooms=2))
        released = client.post(f"{API}/inventory/release", json=reserve_body(sgl, rooms=2))

        assert reserved.status_code == 200
        assert [n["soldRooms"] for n in reserved.json()["nights"]] == [2, 2]
        assert [n["soldRooms"] for n in released.json()["nights"]] == [0, 0]

    def test_successive_bookings_both_succeed(self, client, sgl):
        first = client.post(f"{API}/inventory/reserve", json=reserve_body(sgl, reservationRef="BK-1"))
        second = client.post(f"{API}/inventory/reserve", json=reserve_body(sgl, reservationRef="BK-2"))

        assert first.status_code == 200
        assert second.status_code == 200
        assert [n["soldRooms"] for n in second.json()["nights"]] == [2, 2]

    def test_range_creation_is_201(self, client, sgl):
        response = client.post(
            f"{API}/inventory/range",
            json={"hotelId": HOTEL_ID, "roomType": sgl.id, "startDate": "2025-03-03", "endDate": "2025-03-05"},
        )

        assert response.status_code == 201
        assert (response.json()["created"], response.json()["skipped"]) == (2, 1)

    def test_calendar_and_summary(self, client, sgl):
        calendar = client.get(f"{API}/inventory/calendar", params={"hotelId": HOTEL_ID, "year": 2025, "month": 3})
        summary = client.get(
            f"{API}/inventory/summary",
            params={"hotelId": HOTEL_ID, "startDate": "2025-03-01", "endDate": "2025-03-31"},
        )

        assert len(calendar.json()) == 31
        assert calendar.json()["2025-03-10"]["SGL"]["synthetic"] is True
        assert summary.json()["totals"]["days"] == 3

    def test_unknown_fields_are_rejected(self, client, sgl):
        response = client.put(
            f"{API}/inventory",
            json={"hotelId": HOTEL_ID, "roomType": sgl.id, "date": "2025-03-01", "soldRooms": 3},
        )

        assert response.status_code == 400
        assert response.json()["code"] == "VALIDATION_ERROR"

    def test_unknown_room_type_is_404(self, client, sgl):
        response = client.put(
            f"{API}/inventory",
            json={"hotelId": HOTEL_ID, "roomType": "missing", "date": "2025-03-01", "blockedRooms": 1},
        )

        assert response.status_code == 404
        assert response.json()["code"] == "UNKNOWN_ROOM_TYPE"


class TestAvailabilityEndpoint:

    def test_refusal_is_a_normal_answer(self, client, sgl):
        response = client.get(
            f"{API}/availability",
            params={"hotelId": HOTEL_ID, "roomTypeId": sgl.id, "checkIn": "2025-03-01",
                    "checkOut": "2025-03-03", "roomsRequested": 4},
        )

        assert response.status_code == 200
        body = response.json()
        assert body["available"] is False
        assert body["reason"] == "insufficientInventory"
        assert body["remaining"] == 3

    def test_quote_carries_rates_and_totals(self, client, sgl):
        response = client.get(
            f"{API}/availability",
            params={"hotelId": HOTEL_ID, "roomTypeId": sgl.id, "checkIn": "2025-03-01",
                    "checkOut": "2025-03-03", "roomsRequested": 2},
        )

        body = response.json()
        assert [d["rate"] for d in body["dailyBreakdown"]] == [5000, 5000]
        assert (body["averageRate"], body["totalAmount"], body["currency"]) == (5000, 20000, "INR")
        assert body["alternatives"] == []

    def test_inverted_stay_is_400(self, client, sgl):
        response = client.get(
            f"{API}/availability",
            params={"hotelId": HOTEL_ID, "roomTypeId": sgl.id, "checkIn": "2025-03-03", "checkOut": "2025-03-01"},
        )

        assert response.status_code == 400
        assert response.json()["code"] == "INVALID_DATE_RANGE"


class TestPricingEndpoints:

    def rule_body(self, **overrides):
        body = {
            "ruleId": "weekend",
            "name": "Weekend uplift",
            "type": "day_of_week",
            "priority": 10,
            "validFrom": "2025-01-01",
            "conditions": {"days": [{"day": "saturday", "adjustment": 20}]},
        }
        body.update(overrides)
        return body

    def test_rule_lifecycle_and_quote(self, client, sgl):
        created = client.post(f"{API}/pricing/rules", json=self.rule_body())
        assert created.status_code == 201
        assert created.json()["type"] == "day_of_week"

        quote = client.get(f"{API}/pricing/dynamic", params={"roomTypeId": sgl.id, "checkIn": "2025-03-01"})
        assert quote.json()["finalRate"] == 6000
        assert quote.json()["adjustments"][0]["ruleId"] == "weekend"

        patched = client.put(f"{API}/pricing/rules/weekend", json={"isActive": False})
        assert patched.json()["isActive"] is False
        assert client.get(f"{API}/pricing/rules", params={"activeOnly": True}).json() == []

        assert client.delete(f"{API}/pricing/rules/weekend").status_code == 204
        assert client.get(f"{API}/pricing/rules/weekend").status_code == 404

    def test_conditions_must_match_type(self, client):
        response = client.post(
            f"{API}/pricing/rules",
            json=self.rule_body(conditions={"periods": [{"startDate": "2025-03-01", "endDate": "2025-03-02",
                                                          "adjustment": 10}]}),
        )

        assert response.status_code == 400

    def test_duplicate_rule_is_409(self, client):
        client.post(f"{API}/pricing/rules", json=self.rule_body())

        response = client.post(f"{API}/pricing/rules", json=self.rule_body())

        assert response.status_code == 409
        assert response.json()["code"] == "CONFLICT"

    def test_competitor_rates_are_upserted(self, client, sgl):
        sheet = {
            "hotelId": HOTEL_ID,
            "competitorId": "comp-a",
            "name": "Harbour View",
            "rates": [{"date": "2025-03-01", "rate": 6000}],
        }

        created = client.post(f"{API}/pricing/competitor-rates", json=[sheet])
        updated = client.post(f"{API}/pricing/competitor-rates", json=[sheet])
        quote = client.get(f"{API}/pricing/dynamic", params={"roomTypeId": sgl.id, "checkIn": "2025-03-01"})

        assert created.status_code == 200
        assert created.json()[0]["created"] is True
        assert updated.json()[0]["created"] is False
        assert quote.json()["finalRate"] == 5500

    def test_competitor_sheet_rejects_unknown_fields(self, client):
        response = client.post(
            f"{API}/pricing/competitor-rates",
            json=[{"hotelId": HOTEL_ID, "competitorId": "c", "name": "C", "url": "https://example.com"}],
        )

        assert response.status_code == 400


def test_forecast_endpoint(client, sgl):
    response = client.post(
        f"{API}/forecast",
        params={"roomTypeId": sgl.id, "startDate": "2026-01-15", "endDate": "2026-01-16"},
    )

    assert response.status_code == 200
    first = response.json()[0]
    assert (first["predictedDemand"], first["recommendedRate"], first["confidence"]) == (0, 4000, 70)


def test_forecast_needs_a_scope(client):
    response = client.post(f"{API}/forecast", params={"startDate": "2026-01-15"})

    assert response.status_code == 400
