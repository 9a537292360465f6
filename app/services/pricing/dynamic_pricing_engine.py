"""
Dynamic rate engine.

Pipeline: seed with the room type's base rate, apply prioritized rules,
then the booking-velocity and competitor signals, clamp to
``[base x 0.5, base x 3.0]`` and round half-to-even once at the end.
"""

import math
from datetime import date, timedelta
from decimal import ROUND_HALF_EVEN, Decimal
from typing import List, Optional

from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.orm import Session

from app.config.settings import Settings
from app.core.clock import Clock
from app.core.exceptions import InvalidDateRangeError, UnknownRoomTypeError, UpstreamError
from app.core.logging import log_execution_time
from app.models.base.enums import AdjustmentType, PricingRuleType
from app.models.pricing import PricingRule
from app.models.room import RoomType
from app.repositories.booking import ReservationRepository
from app.repositories.inventory import InventoryRepository
from app.repositories.pricing import CompetitorRateRepository, PricingRuleRepository
from app.repositories.room import RoomRepository
from app.schemas.pricing import (
    CompetitorConditions,
    DemandConditions,
    DynamicRateResponse,
    GuestProfile,
    RateAdjustment,
    parse_conditions,
)
from app.services.base import BaseService
from app.services.collaborators import CompetitorRateSource, ReservationLog, RoomRegistry
from app.services.pricing.rule_evaluators import EVALUATORS, PricingContext

MIN_FACTOR = Decimal("0.5")
MAX_FACTOR = Decimal("3.0")
HUNDRED = Decimal(100)

DEMAND_LABEL = "Booking velocity"
COMPETITOR_LABEL = "Competitor rates"


def round_half_even(value: Decimal) -> int:
    return int(value.quantize(Decimal(1), rounding=ROUND_HALF_EVEN))


def apply_adjustment(rate: Decimal, value: float, adjustment_type: AdjustmentType) -> Decimal:
    amount = Decimal(str(value))
    if adjustment_type == AdjustmentType.FIXED:
        return rate + amount
    return rate * (1 + amount / HUNDRED)


class DynamicPricingEngine(BaseService):
    """
    Computes an explainable nightly rate for a room type.

    Rules are read once per call; demand_based and competitor_based rules
    only replace the parameters of the matching signal stage.
    """

    def __init__(
        self,
        db_session: Session,
        clock: Optional[Clock] = None,
        config: Optional[Settings] = None,
        rules: Optional[PricingRuleRepository] = None,
        inventory: Optional[InventoryRepository] = None,
        rooms: Optional[RoomRegistry] = None,
        reservations: Optional[ReservationLog] = None,
        competitors: Optional[CompetitorRateSource] = None,
    ):
        super().__init__(db_session, clock=clock, config=config)
        self.rules = rules or PricingRuleRepository(db_session)
        self.inventory = inventory or InventoryRepository(db_session)
        self.rooms = rooms or RoomRepository(db_session)
        self.reservations = reservations or ReservationRepository(db_session)
        self.competitors = competitors or CompetitorRateRepository(db_session)

    @log_execution_time()
    def calculate(
        self,
        room_type_id: str,
        check_in: date,
        check_out: Optional[date] = None,
        guest_profile: Optional[GuestProfile] = None,
    ) -> DynamicRateResponse:
        """
        Price one stay.

        Raises:
            InvalidDateRangeError: check-out not after check-in
            UnknownRoomTypeError: room type missing or inactive
        """
        check_out = check_out or check_in + timedelta(days=1)
        if check_out <= check_in:
            raise InvalidDateRangeError(check_in, check_out, "checkOut must be after checkIn")

        room_type = self._require_room_type(room_type_id)
        base = Decimal(room_type.base_rate)
        ctx = PricingContext(
            hotel_id=room_type.hotel_id,
            room_type_id=room_type_id,
            check_in=check_in,
            check_out=check_out,
            nights=(check_out - check_in).days,
            occupancy=lambda: self._occupancy(room_type.hotel_id, room_type_id, check_in),
            guest=guest_profile,
        )

        rules = self.rules.list_applicable(room_type_id, check_in, hotel_id=room_type.hotel_id)
        rate = base
        adjustments: List[RateAdjustment] = []

        demand_rule: Optional[PricingRule] = None
        competitor_rule: Optional[PricingRule] = None
        for rule in rules:
            if rule.rule_type == PricingRuleType.DEMAND_BASED:
                demand_rule = demand_rule or rule
                continue
            if rule.rule_type == PricingRuleType.COMPETITOR_BASED:
                competitor_rule = competitor_rule or rule
                continue

            conditions = self._conditions(rule)
            if conditions is None:
                continue
            value = EVALUATORS[rule.rule_type](conditions, ctx)
            if not value:
                continue
            rate = apply_adjustment(rate, value, rule.adjustment_type)
            adjustments.append(RateAdjustment(
                name=rule.name,
                type=rule.rule_type.value,
                value=value,
                adjustment_type=rule.adjustment_type,
                rule_id=rule.rule_id,
            ))

        for signal in (self._demand_signal(ctx, demand_rule), self._competitor_signal(ctx, base, competitor_rule)):
            if signal is not None:
                rate = apply_adjustment(rate, signal.value, AdjustmentType.PERCENTAGE)
                adjustments.append(signal)

        min_rate = math.ceil(base * MIN_FACTOR)
        max_rate = math.floor(base * MAX_FACTOR)
        unclamped = round_half_even(rate)
        final_rate = max(min_rate, min(max_rate, unclamped))

        self._logger.info(
            f"Priced {room_type_id} on {check_in}: base={room_type.base_rate} final={final_rate} "
            f"adjustments={len(adjustments)}",
            extra={"hotel_id": room_type.hotel_id, "room_type_id": room_type_id, "date": check_in.isoformat()},
        )
        return DynamicRateResponse(
            room_type_id=room_type_id,
            check_in=check_in,
            check_out=check_out,
            nights=ctx.nights,
            base_rate=room_type.base_rate,
            final_rate=final_rate,
            currency=room_type.currency or self.settings.DEFAULT_CURRENCY,
            min_rate=min_rate,
            max_rate=max_rate,
            clamped=final_rate != unclamped,
            adjustments=adjustments,
        )

    # ------------------------------------------------------------------
    # Signal stages
    # ------------------------------------------------------------------

    def _demand_signal(self, ctx: PricingContext, rule: Optional[PricingRule]) -> Optional[RateAdjustment]:
        params = self._conditions(rule) if rule else None
        if params is None:
            params = DemandConditions(window_days=self.settings.DEMAND_VELOCITY_WINDOW_DAYS)

        since = self.clock.now() - timedelta(days=params.window_days)
        try:
            bookings = self.reservations.count_recent_bookings(ctx.room_type_id, ctx.check_in, since)
        except UpstreamError as e:
            self._logger.warning(f"Demand signal skipped: {e.message}", extra={"room_type_id": ctx.room_type_id})
            return None

        # Thresholds are sorted descending; the first one exceeded decides, even at zero
        threshold = next((t for t in params.thresholds if bookings > t.min_bookings), None)
        if threshold is None or not threshold.adjustment:
            return None
        return RateAdjustment(
            name=rule.name if rule else DEMAND_LABEL,
            type=PricingRuleType.DEMAND_BASED.value,
            value=threshold.adjustment,
            rule_id=rule.rule_id if rule else None,
        )

    def _competitor_signal(
        self,
        ctx: PricingContext,
        base: Decimal,
        rule: Optional[PricingRule],
    ) -> Optional[RateAdjustment]:
        params = self._conditions(rule) if rule else None
        if params is None:
            params = CompetitorConditions()

        try:
            quotes = self.competitors.rates_for(ctx.hotel_id, ctx.check_in)
        except UpstreamError as e:
            self._logger.warning(f"Competitor signal skipped: {e.message}", extra={"hotel_id": ctx.hotel_id})
            return None
        if not quotes:
            return None

        mean = Decimal(sum(q.rate for q in quotes)) / len(quotes)
        value = 0.0
        if mean > base * Decimal(str(params.above_ratio)):
            value = params.above_adjustment
        elif mean < base * Decimal(str(params.below_ratio)):
            value = params.below_adjustment
        if not value:
            return None
        return RateAdjustment(
            name=rule.name if rule else COMPETITOR_LABEL,
            type=PricingRuleType.COMPETITOR_BASED.value,
            value=value,
            rule_id=rule.rule_id if rule else None,
        )

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _require_room_type(self, room_type_id: str) -> RoomType:
        room_type = self.rooms.get_room_type(room_type_id)
        if room_type is None:
            raise UnknownRoomTypeError(room_type_id)
        if not room_type.is_active:
            raise UnknownRoomTypeError(room_type_id, reason="inactive")
        return room_type

    def _conditions(self, rule: PricingRule):
        try:
            return parse_conditions(rule.rule_type, rule.conditions)
        except PydanticValidationError as e:
            self._logger.warning(
                f"Skipping rule {rule.rule_id}: stored conditions are invalid ({e.error_count()} error(s))"
            )
            return None

    def _occupancy(self, hotel_id: str, room_type_id: str, day: date) -> float:
        """Occupancy percentage of the check-in night."""
        row = self.inventory.get(hotel_id, room_type_id, day)
        if row is not None:
            if row.total_rooms <= 0:
                return 0.0
            return (row.sold_rooms + row.blocked_rooms) / row.total_rooms * 100

        active = self.rooms.count_active(hotel_id, room_type_id)
        if not active:
            return 0.0
        try:
            held = self.reservations.count_rooms_held(hotel_id, room_type_id, day)
        except UpstreamError as e:
            self._logger.warning(f"Occupancy unavailable, assuming 0: {e.message}")
            return 0.0
        return held / active * 100
