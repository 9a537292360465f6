"""
Pricing rule schemas.

Each rule type carries its own typed condition set; requests are a
discriminated union on ``type`` so malformed conditions are rejected at
the edge rather than during evaluation.
"""

from datetime import date, datetime
from enum import Enum
from typing import Annotated, Any, Dict, List, Literal, Optional, Type, Union

from pydantic import BaseModel, Field, field_validator, model_validator

from app.models.base.enums import AdjustmentType, PricingRuleType
from app.schemas.common.base import BaseRequestSchema, BaseSchema

__all__ = [
    "Weekday",
    "OccupancyThreshold",
    "OccupancyConditions",
    "DayAdjustment",
    "DayOfWeekConditions",
    "SeasonalPeriod",
    "SeasonalConditions",
    "StayBucket",
    "LengthOfStayConditions",
    "LocationMatch",
    "GeographicConditions",
    "DemandThreshold",
    "DemandConditions",
    "CompetitorConditions",
    "RuleConditions",
    "CONDITIONS_BY_TYPE",
    "parse_conditions",
    "PricingRuleCreate",
    "PricingRuleUpdate",
    "PricingRuleResponse",
]


class Weekday(str, Enum):
    MONDAY = "monday"
    TUESDAY = "tuesday"
    WEDNESDAY = "wednesday"
    THURSDAY = "thursday"
    FRIDAY = "friday"
    SATURDAY = "saturday"
    SUNDAY = "sunday"

    @classmethod
    def of(cls, day: date) -> "Weekday":
        return list(cls)[day.weekday()]


# ---------------------------------------------------------------------------
# Typed conditions
# ---------------------------------------------------------------------------


class OccupancyThreshold(BaseSchema):
    min_occupancy: float = Field(..., ge=0, le=100)
    max_occupancy: float = Field(..., ge=0, le=100)
    adjustment: float

    @model_validator(mode="after")
    def _ordered(self) -> "OccupancyThreshold":
        if self.max_occupancy < self.min_occupancy:
            raise ValueError("maxOccupancy must be >= minOccupancy")
        return self


class OccupancyConditions(BaseSchema):
    thresholds: List[OccupancyThreshold] = Field(..., min_length=1)


class DayAdjustment(BaseSchema):
    day: Weekday
    adjustment: float

    @field_validator("day", mode="before")
    @classmethod
    def _lower(cls, v: Any) -> Any:
        return v.lower() if isinstance(v, str) else v


class DayOfWeekConditions(BaseSchema):
    days: List[DayAdjustment] = Field(..., min_length=1)


class SeasonalPeriod(BaseSchema):
    name: Optional[str] = None
    start_date: date
    end_date: date
    adjustment: float

    @model_validator(mode="after")
    def _ordered(self) -> "SeasonalPeriod":
        if self.end_date < self.start_date:
            raise ValueError("endDate must not be before startDate")
        return self


class SeasonalConditions(BaseSchema):
    periods: List[SeasonalPeriod] = Field(..., min_length=1)


class StayBucket(BaseSchema):
    min_nights: int = Field(..., ge=1)
    max_nights: Optional[int] = Field(default=None, ge=1)
    adjustment: float

    def contains(self, nights: int) -> bool:
        if nights < self.min_nights:
            return False
        return self.max_nights is None or nights <= self.max_nights


class LengthOfStayConditions(BaseSchema):
    buckets: List[StayBucket] = Field(..., min_length=1)


class LocationMatch(BaseSchema):
    """Unspecified fields match any value."""

    country: Optional[str] = None
    state: Optional[str] = None
    city: Optional[str] = None
    adjustment: float

    def matches(self, country: Optional[str], state: Optional[str], city: Optional[str]) -> bool:
        for expected, actual in ((self.country, country), (self.state, state), (self.city, city)):
            if expected is None:
                continue
            if actual is None or expected.casefold() != actual.casefold():
                return False
        return True


class GeographicConditions(BaseSchema):
    locations: List[LocationMatch] = Field(..., min_length=1)


class DemandThreshold(BaseSchema):
    """Applies when recent bookings exceed ``min_bookings``."""

    min_bookings: int = Field(..., ge=0)
    adjustment: float


def _default_demand_thresholds() -> List[DemandThreshold]:
    return [
        DemandThreshold(min_bookings=10, adjustment=15),
        DemandThreshold(min_bookings=5, adjustment=10),
        DemandThreshold(min_bookings=2, adjustment=5),
    ]


class DemandConditions(BaseSchema):
    """Parameters of the booking-velocity signal."""

    window_days: int = Field(default=7, ge=1, le=365)
    thresholds: List[DemandThreshold] = Field(default_factory=_default_demand_thresholds)

    @field_validator("thresholds")
    @classmethod
    def _descending(cls, v: List[DemandThreshold]) -> List[DemandThreshold]:
        return sorted(v, key=lambda t: t.min_bookings, reverse=True)


class CompetitorConditions(BaseSchema):
    """Parameters of the competitor-rate signal."""

    above_ratio: float = Field(default=1.10, gt=0)
    above_adjustment: float = 10
    below_ratio: float = Field(default=0.90, gt=0)
    below_adjustment: float = -5

    @model_validator(mode="after")
    def _ordered(self) -> "CompetitorConditions":
        if self.below_ratio > self.above_ratio:
            raise ValueError("belowRatio must not exceed aboveRatio")
        return self


RuleConditions = Union[
    OccupancyConditions,
    DayOfWeekConditions,
    SeasonalConditions,
    LengthOfStayConditions,
    GeographicConditions,
    DemandConditions,
    CompetitorConditions,
]

CONDITIONS_BY_TYPE: Dict[PricingRuleType, Type[BaseModel]] = {
    PricingRuleType.OCCUPANCY_BASED: OccupancyConditions,
    PricingRuleType.DAY_OF_WEEK: DayOfWeekConditions,
    PricingRuleType.SEASONAL: SeasonalConditions,
    PricingRuleType.LENGTH_OF_STAY: LengthOfStayConditions,
    PricingRuleType.GEOGRAPHIC: GeographicConditions,
    PricingRuleType.DEMAND_BASED: DemandConditions,
    PricingRuleType.COMPETITOR_BASED: CompetitorConditions,
}


def parse_conditions(rule_type: PricingRuleType, raw: Dict[str, Any]) -> RuleConditions:
    """Validate stored or submitted conditions against the rule type."""
    return CONDITIONS_BY_TYPE[PricingRuleType(rule_type)].model_validate(raw or {})


# ---------------------------------------------------------------------------
# Rule requests / responses
# ---------------------------------------------------------------------------


class _RuleCommon(BaseRequestSchema):
    rule_id: str = Field(..., min_length=1, max_length=64)
    name: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = None
    hotel_id: Optional[str] = None
    priority: int = 0
    is_active: bool = True
    applicable_room_types: List[str] = Field(default_factory=list)
    valid_from: date
    valid_to: Optional[date] = None
    adjustment_type: AdjustmentType = AdjustmentType.PERCENTAGE

    @model_validator(mode="after")
    def _window(self) -> "_RuleCommon":
        if self.valid_to is not None and self.valid_to < self.valid_from:
            raise ValueError("validTo must not be before validFrom")
        return self


class OccupancyRuleCreate(_RuleCommon):
    type: Literal["occupancy_based"]
    conditions: OccupancyConditions


class DayOfWeekRuleCreate(_RuleCommon):
    type: Literal["day_of_week"]
    conditions: DayOfWeekConditions


class SeasonalRuleCreate(_RuleCommon):
    type: Literal["seasonal"]
    conditions: SeasonalConditions


class LengthOfStayRuleCreate(_RuleCommon):
    type: Literal["length_of_stay"]
    conditions: LengthOfStayConditions


class GeographicRuleCreate(_RuleCommon):
    type: Literal["geographic"]
    conditions: GeographicConditions


class DemandRuleCreate(_RuleCommon):
    type: Literal["demand_based"]
    conditions: DemandConditions = Field(default_factory=DemandConditions)


class CompetitorRuleCreate(_RuleCommon):
    type: Literal["competitor_based"]
    conditions: CompetitorConditions = Field(default_factory=CompetitorConditions)


PricingRuleCreate = Annotated[
    Union[
        OccupancyRuleCreate,
        DayOfWeekRuleCreate,
        SeasonalRuleCreate,
        LengthOfStayRuleCreate,
        GeographicRuleCreate,
        DemandRuleCreate,
        CompetitorRuleCreate,
    ],
    Field(discriminator="type"),
]


class PricingRuleUpdate(BaseRequestSchema):
    """Partial update; ``conditions`` are validated against the stored rule type."""

    name: Optional[str] = Field(default=None, min_length=1, max_length=200)
    description: Optional[str] = None
    priority: Optional[int] = None
    is_active: Optional[bool] = None
    applicable_room_types: Optional[List[str]] = None
    valid_from: Optional[date] = None
    valid_to: Optional[date] = None
    adjustment_type: Optional[AdjustmentType] = None
    conditions: Optional[Dict[str, Any]] = None


class PricingRuleResponse(BaseSchema):
    id: str
    rule_id: str
    name: str
    description: Optional[str] = None
    hotel_id: Optional[str] = None
    type: PricingRuleType = Field(validation_alias="rule_type", serialization_alias="type")
    priority: int
    is_active: bool
    applicable_room_types: List[str]
    valid_from: date
    valid_to: Optional[date] = None
    adjustment_type: AdjustmentType
    conditions: Dict[str, Any]
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
