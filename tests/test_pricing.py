"""
Tests for the dynamic pricing engine and pricing rule management.
"""

from datetime import date, timedelta
from decimal import Decimal

import pytest
from pydantic import TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from app.core.exceptions import (
    ConflictError,
    InvalidDateRangeError,
    ResourceNotFoundError,
    UnknownRoomTypeError,
    UpstreamError,
    ValidationError,
)
from app.models.base.enums import AdjustmentType, PricingRuleType
from app.models.pricing import PricingRule
from app.repositories.audit import AuditRepository
from app.repositories.pricing import CompetitorRateRepository
from app.schemas.inventory import InventoryChanges
from app.schemas.pricing import (
    CompetitorQuote,
    CompetitorSheetUpsert,
    GuestProfile,
    PricingRuleCreate,
    PricingRuleUpdate,
)
from app.services.pricing import DynamicPricingEngine
from app.services.pricing.dynamic_pricing_engine import apply_adjustment, round_half_even
from tests.conftest import HOTEL_ID, NOW

SATURDAY = date(2025, 3, 1)
SUNDAY = date(2025, 3, 2)

rule_payload = TypeAdapter(PricingRuleCreate)


def make_rule(rule_service, rule_id, rule_type, conditions, **fields):
    payload = rule_payload.validate_python({
        "rule_id": rule_id,
        "name": fields.pop("name", rule_id),
        "type": rule_type,
        "priority": fields.pop("priority", 0),
        "valid_from": fields.pop("valid_from", date(2025, 1, 1)),
        "conditions": conditions,
        **fields,
    })
    return rule_service.create_rule(payload, actor="revenue")


def saturday_rule(rule_service, rule_id="dow-weekend", adjustment=20, **fields):
    return make_rule(
        rule_service,
        rule_id,
        "day_of_week",
        {"days": [{"day": "Saturday", "adjustment": adjustment}]},
        **fields,
    )


@pytest.fixture
def sgl(seed_room_type):
    return seed_room_type(code="SGL", base_rate=5000, rooms=3)


class TestArithmetic:

    def test_half_even_rounding(self):
        assert round_half_even(Decimal("6900.5")) == 6900
        assert round_half_even(Decimal("6901.5")) == 6902

    def test_percentage_and_fixed_adjustments(self):
        assert apply_adjustment(Decimal(5000), 20, AdjustmentType.PERCENTAGE) == Decimal(6000)
        assert apply_adjustment(Decimal(5000), -750, AdjustmentType.FIXED) == Decimal(4250)


class TestDynamicRate:

    def test_day_of_week_and_demand(self, pricing_engine, rule_service, sgl, seed_reservation):
        saturday_rule(rule_service, priority=10)
        for _ in range(14):
            seed_reservation(sgl, SATURDAY, SUNDAY, booked_at=NOW - timedelta(days=2))

        quote = pricing_engine.calculate(sgl.id, SATURDAY)

        assert quote.base_rate == 5000
        assert quote.final_rate == 6900
        assert [(a.type, a.value) for a in quote.adjustments] == [("day_of_week", 20), ("demand_based", 15)]
        assert quote.adjustments[1].name == "Booking velocity"
        assert quote.clamped is False

    def test_rate_is_clamped_to_three_times_base(self, pricing_engine, rule_service, sgl):
        saturday_rule(rule_service, adjustment=100, priority=10)
        make_rule(
            rule_service,
            "spring-peak",
            "seasonal",
            {"periods": [{"start_date": "2025-02-15", "end_date": "2025-03-15", "adjustment": 100}]},
            priority=5,
        )

        quote = pricing_engine.calculate(sgl.id, SATURDAY)

        assert quote.final_rate == 15000
        assert quote.max_rate == 15000
        assert quote.min_rate == 2500
        assert quote.clamped is True
        assert [a.rule_id for a in quote.adjustments] == ["dow-weekend", "spring-peak"]

    def test_equal_priority_applies_in_rule_id_order(self, pricing_engine, rule_service, sgl):
        make_rule(rule_service, "b-season", "seasonal",
                  {"periods": [{"start_date": "2025-03-01", "end_date": "2025-03-01", "adjustment": 10}]},
                  priority=5)
        saturday_rule(rule_service, rule_id="a-weekend", adjustment=10, priority=5)

        quote = pricing_engine.calculate(sgl.id, SATURDAY)

        assert [a.rule_id for a in quote.adjustments] == ["a-weekend", "b-season"]
        assert quote.final_rate == 6050

    def test_fixed_adjustment(self, pricing_engine, rule_service, sgl):
        saturday_rule(rule_service, adjustment=750, adjustment_type="fixed")

        assert pricing_engine.calculate(sgl.id, SATURDAY).final_rate == 5750

    def test_rule_outside_validity_or_scope_is_ignored(self, pricing_engine, rule_service, sgl, seed_room_type):
        other = seed_room_type(code="DBL", first_number=201)
        saturday_rule(rule_service, rule_id="expired", valid_to=date(2025, 2, 1))
        saturday_rule(rule_service, rule_id="other-type", applicable_room_types=[other.id])
        saturday_rule(rule_service, rule_id="disabled", is_active=False)

        quote = pricing_engine.calculate(sgl.id, SATURDAY)

        assert quote.final_rate == 5000
        assert quote.adjustments == []

    def test_length_of_stay_uses_nights(self, pricing_engine, rule_service, sgl):
        make_rule(rule_service, "weekly", "length_of_stay",
                  {"buckets": [{"min_nights": 7, "adjustment": -10}]})

        assert pricing_engine.calculate(sgl.id, SATURDAY, SATURDAY + timedelta(days=7)).final_rate == 4500
        assert pricing_engine.calculate(sgl.id, SATURDAY, SUNDAY).final_rate == 5000

    def test_geographic_rule_needs_guest_profile(self, pricing_engine, rule_service, sgl):
        make_rule(rule_service, "domestic", "geographic",
                  {"locations": [{"country": "india", "adjustment": -10}]})

        assert pricing_engine.calculate(sgl.id, SATURDAY).final_rate == 5000
        guest = GuestProfile(country="India", city="Pune")
        assert pricing_engine.calculate(sgl.id, SATURDAY, guest_profile=guest).final_rate == 4500

    def test_occupancy_rule_reads_check_in_night(self, pricing_engine, rule_service, mutator, sgl):
        make_rule(rule_service, "busy", "occupancy_based",
                  {"thresholds": [{"min_occupancy": 60, "max_occupancy": 100, "adjustment": 10}]})
        mutator.apply_reservation_delta(HOTEL_ID, sgl.id, SATURDAY, 2, "R-1")

        assert pricing_engine.calculate(sgl.id, SATURDAY).final_rate == 5500

    def test_competitor_signal_both_directions(self, pricing_engine, sgl, seed_competitor_rates):
        seed_competitor_rates(HOTEL_ID, SATURDAY, 6000, 6200)
        seed_competitor_rates(HOTEL_ID, SUNDAY, 4000)

        above = pricing_engine.calculate(sgl.id, SATURDAY)
        below = pricing_engine.calculate(sgl.id, SUNDAY)

        assert above.final_rate == 5500
        assert above.adjustments[0].name == "Competitor rates"
        assert below.final_rate == 4750

    def test_demand_rule_replaces_intrinsic_parameters(self, pricing_engine, rule_service, sgl, seed_reservation):
        make_rule(rule_service, "velocity", "demand_based",
                  {"window_days": 30, "thresholds": [{"min_bookings": 0, "adjustment": 7}]},
                  name="Hot dates")
        seed_reservation(sgl, SATURDAY, SUNDAY, booked_at=NOW - timedelta(days=20))

        quote = pricing_engine.calculate(sgl.id, SATURDAY)

        assert quote.final_rate == 5350
        (adjustment,) = quote.adjustments
        assert (adjustment.name, adjustment.rule_id, adjustment.value) == ("Hot dates", "velocity", 7)

    def test_first_exceeded_demand_threshold_decides_even_at_zero(
        self, pricing_engine, rule_service, sgl, seed_reservation
    ):
        make_rule(rule_service, "velocity", "demand_based",
                  {"thresholds": [{"min_bookings": 10, "adjustment": 0}, {"min_bookings": 2, "adjustment": 5}]})
        for _ in range(12):
            seed_reservation(sgl, SATURDAY, SUNDAY, booked_at=NOW - timedelta(days=1))

        quote = pricing_engine.calculate(sgl.id, SATURDAY)

        assert quote.final_rate == 5000
        assert quote.adjustments == []

    def test_stored_zero_capacity_night_is_empty(self, pricing_engine, rule_service, mutator, sgl, seed_reservation):
        make_rule(rule_service, "empty", "occupancy_based",
                  {"thresholds": [{"min_occupancy": 0, "max_occupancy": 0, "adjustment": -10}]})
        mutator.update_day(HOTEL_ID, sgl.id, SATURDAY, InventoryChanges(total_rooms=0), actor="ops")
        seed_reservation(sgl, SATURDAY, SUNDAY, rooms=2)

        assert pricing_engine.calculate(sgl.id, SATURDAY).final_rate == 4500

    def test_invalid_stored_conditions_skip_the_rule(self, db, pricing_engine, sgl):
        db.add(PricingRule(
            rule_id="broken",
            name="Broken",
            rule_type=PricingRuleType.OCCUPANCY_BASED,
            priority=1,
            is_active=True,
            valid_from=date(2025, 1, 1),
            adjustment_type=AdjustmentType.PERCENTAGE,
            conditions={"thresholds": "nope"},
        ))
        db.commit()

        assert pricing_engine.calculate(sgl.id, SATURDAY).final_rate == 5000

    def test_collaborator_outages_degrade_to_base(self, db, clock, settings, sgl):
        class Down:
            def rates_for(self, *args):
                raise UpstreamError("CompetitorRates")

            def count_recent_bookings(self, *args):
                raise UpstreamError("ReservationLog")

        engine = DynamicPricingEngine(db, clock=clock, config=settings, reservations=Down(), competitors=Down())

        quote = engine.calculate(sgl.id, SATURDAY)

        assert quote.final_rate == 5000
        assert quote.adjustments == []

    def test_inverted_stay_and_unknown_type(self, pricing_engine, sgl):
        with pytest.raises(InvalidDateRangeError):
            pricing_engine.calculate(sgl.id, SUNDAY, SATURDAY)
        with pytest.raises(UnknownRoomTypeError):
            pricing_engine.calculate("missing", SATURDAY)

    def test_selling_rate_edits_do_not_feed_the_seed(self, pricing_engine, mutator, sgl):
        mutator.update_day(HOTEL_ID, sgl.id, SATURDAY, InventoryChanges(selling_rate=9000), actor="ops")

        assert pricing_engine.calculate(sgl.id, SATURDAY).base_rate == 5000


class TestPricingRuleService:

    def test_create_is_audited(self, db, rule_service, sgl):
        rule = saturday_rule(rule_service, applicable_room_types=[sgl.id])

        assert rule.applicable_room_types == [sgl.id]
        (entry,) = AuditRepository(db).list_for_record("pricing_rules", "dow-weekend")
        assert entry.actor == "revenue"
        assert entry.new_values["type"] == "day_of_week"

    def test_duplicate_rule_id_conflicts(self, rule_service):
        saturday_rule(rule_service)
        with pytest.raises(ConflictError):
            saturday_rule(rule_service)

    def test_update_validates_conditions_against_type(self, rule_service):
        saturday_rule(rule_service)

        with pytest.raises(ValidationError):
            rule_service.update_rule(
                "dow-weekend",
                PricingRuleUpdate(conditions={"days": [{"day": "someday", "adjustment": 5}]}),
                actor="revenue",
            )

        updated = rule_service.update_rule(
            "dow-weekend",
            PricingRuleUpdate(conditions={"days": [{"day": "sunday", "adjustment": 5}]}, priority=3),
            actor="revenue",
        )
        assert updated.priority == 3
        assert updated.conditions["days"][0]["day"] == "sunday"

    def test_update_rejects_inverted_window(self, rule_service):
        saturday_rule(rule_service)
        with pytest.raises(ValidationError):
            rule_service.update_rule("dow-weekend", PricingRuleUpdate(valid_to=date(2024, 12, 1)), actor="revenue")

    def test_update_replaces_scope(self, rule_service, sgl, seed_room_type):
        other = seed_room_type(code="DBL", first_number=201)
        saturday_rule(rule_service, applicable_room_types=[sgl.id])

        updated = rule_service.update_rule(
            "dow-weekend", PricingRuleUpdate(applicable_room_types=[other.id]), actor="revenue"
        )

        assert updated.applicable_room_types == [other.id]
        assert [r.rule_id for r in rule_service.list_rules(room_type_id=sgl.id)] == []

    def test_delete_removes_rule(self, db, rule_service):
        saturday_rule(rule_service)

        rule_service.delete_rule("dow-weekend", actor="revenue")

        with pytest.raises(ResourceNotFoundError):
            rule_service.get_rule("dow-weekend")
        entries = AuditRepository(db).list_for_record("pricing_rules", "dow-weekend")
        assert sorted(e.change_type.value for e in entries) == ["create", "delete"]

    def test_list_filters(self, rule_service, sgl):
        saturday_rule(rule_service, priority=1)
        make_rule(rule_service, "weekly", "length_of_stay",
                  {"buckets": [{"min_nights": 7, "adjustment": -10}]}, priority=9, is_active=False)

        assert [r.rule_id for r in rule_service.list_rules()] == ["weekly", "dow-weekend"]
        assert [r.rule_id for r in rule_service.list_rules(active_only=True)] == ["dow-weekend"]
        assert [r.rule_id for r in rule_service.list_rules(rule_type=PricingRuleType.LENGTH_OF_STAY)] == ["weekly"]


class TestCompetitorRates:

    def sheet(self, competitor_id="comp-a", **fields):
        return CompetitorSheetUpsert(
            hotel_id=fields.pop("hotel_id", HOTEL_ID),
            competitor_id=competitor_id,
            name=fields.pop("name", "Harbour View"),
            rates=fields.pop("rates", [CompetitorQuote(date=SATURDAY, rate=6000)]),
            **fields,
        )

    def test_stored_quotes_feed_the_competitor_signal(self, pricing_engine, competitor_service, sgl):
        (result,) = competitor_service.store([self.sheet()], actor="shopper")

        assert (result.created, result.rates_stored) == (True, 1)
        assert pricing_engine.calculate(sgl.id, SATURDAY).final_rate == 5500

    def test_upsert_replaces_quoted_dates_and_keeps_the_rest(self, db, competitor_service, sgl):
        competitor_service.store([self.sheet(rates=[
            CompetitorQuote(date=SATURDAY, rate=6000),
            CompetitorQuote(date=SUNDAY, rate=4000),
        ])], actor="shopper")

        (result,) = competitor_service.store(
            [self.sheet(name="Harbour View Hotel", rates=[CompetitorQuote(date=SATURDAY, rate=4100)])],
            actor="shopper",
        )

        assert result.created is False
        repo = CompetitorRateRepository(db)
        sheet = repo.find_sheet(HOTEL_ID, "comp-a")
        assert sheet.competitor_name == "Harbour View Hotel"
        assert {q.date: q.rate for q in sheet.rates} == {SATURDAY: 4100, SUNDAY: 4000}
        assert sheet.rates[0].currency == "INR"
        assert sheet.rates[0].last_updated is not None

        changes = [e.change_type.value for e in AuditRepository(db).list_for_record(
            "competitor_rate_sheets", f"{HOTEL_ID}:comp-a")]
        assert sorted(changes) == ["create", "update"]

    def test_inactive_sheet_is_ignored_by_pricing(self, pricing_engine, competitor_service, sgl):
        competitor_service.store([self.sheet(is_active=False)], actor="shopper")

        assert pricing_engine.calculate(sgl.id, SATURDAY).final_rate == 5000

    def test_duplicate_dates_are_rejected(self):
        with pytest.raises(PydanticValidationError):
            self.sheet(rates=[CompetitorQuote(date=SATURDAY, rate=1), CompetitorQuote(date=SATURDAY, rate=2)])
