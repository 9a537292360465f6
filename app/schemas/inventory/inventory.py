"""
Inventory request and response schemas.
"""

from datetime import date, datetime
from typing import Any, Dict, List, Optional

from pydantic import Field, model_validator

from app.models.base.enums import CreateMode
from app.schemas.common.base import BaseRequestSchema, BaseSchema, DateRangeMixin

__all__ = [
    "Restrictions",
    "RestrictionsUpdate",
    "InventoryChanges",
    "ChannelOverrideSnapshot",
    "ChannelView",
    "ReservationTagSnapshot",
    "InventoryDaySnapshot",
    "InventoryUpdateRequest",
    "BulkUpdateItem",
    "BulkUpdateRequest",
    "BulkItemResult",
    "BulkUpdateResponse",
    "StopSellRequest",
    "StopSellResponse",
    "CreateRangeRequest",
    "RangeItemResult",
    "CreateRangeResponse",
    "SummaryCounters",
    "InventorySummary",
]


class Restrictions(BaseSchema):
    """Full restriction set in effect for a day (and channel)."""

    stop_sell: bool = False
    closed_to_arrival: bool = False
    closed_to_departure: bool = False
    minimum_stay: int = 1
    maximum_stay: Optional[int] = None


class RestrictionsUpdate(BaseRequestSchema):
    """Partial restriction edit; only provided fields change."""

    stop_sell: Optional[bool] = None
    closed_to_arrival: Optional[bool] = None
    closed_to_departure: Optional[bool] = None
    minimum_stay: Optional[int] = Field(default=None, ge=1)
    maximum_stay: Optional[int] = Field(default=None, ge=1)

    @model_validator(mode="after")
    def _stay_bounds(self) -> "RestrictionsUpdate":
        if self.minimum_stay and self.maximum_stay and self.maximum_stay < self.minimum_stay:
            raise ValueError("maximumStay must be >= minimumStay")
        return self

    def changes(self) -> Dict[str, Any]:
        """
        Fields explicitly provided by the caller.

        ``maximum_stay`` may be cleared with an explicit null; the boolean
        flags and ``minimum_stay`` ignore nulls.
        """
        result: Dict[str, Any] = {}
        for name in self.model_fields_set:
            value = getattr(self, name)
            if value is None and name != "maximum_stay":
                continue
            result[name] = value
        return result


CHANGE_FIELDS = {
    "available_rooms",
    "total_rooms",
    "blocked_rooms",
    "allowed_oversell",
    "base_rate",
    "selling_rate",
    "currency",
    "restrictions",
}


class InventoryChanges(BaseSchema):
    """Field-level edit of one inventory day, before it is turned into patches."""

    available_rooms: Optional[int] = Field(default=None, ge=0)
    total_rooms: Optional[int] = Field(default=None, ge=0)
    blocked_rooms: Optional[int] = Field(default=None, ge=0)
    allowed_oversell: Optional[int] = Field(default=None, ge=0)
    base_rate: Optional[int] = Field(default=None, ge=0)
    selling_rate: Optional[int] = Field(default=None, ge=0)
    currency: Optional[str] = Field(default=None, min_length=3, max_length=3)
    restrictions: Optional[RestrictionsUpdate] = None

    @classmethod
    def from_request(cls, request: BaseSchema) -> "InventoryChanges":
        return cls.model_validate(request.model_dump(include=CHANGE_FIELDS, exclude_unset=True))

    def is_empty(self) -> bool:
        return not any(getattr(self, name) is not None for name in CHANGE_FIELDS)


class ChannelOverrideSnapshot(BaseSchema):
    channel_id: str
    available_rooms: Optional[int] = None
    rate: Optional[int] = None
    restrictions: Restrictions


class ChannelView(BaseSchema):
    """What a given channel sees for the day after overrides are applied."""

    channel_id: str
    available_rooms: int
    rate: int
    restrictions: Restrictions
    overridden: bool


class ReservationTagSnapshot(BaseSchema):
    reservation_ref: str
    rooms_reserved: int
    source: str
    reserved_at: datetime


class InventoryDaySnapshot(BaseSchema):
    id: Optional[str] = None
    hotel_id: str
    room_type_id: str
    room_type_code: Optional[str] = None
    date: date
    total_rooms: int
    sold_rooms: int
    blocked_rooms: int
    overbooked_rooms: int
    allowed_oversell: int
    available_rooms: int
    base_rate: int
    selling_rate: int
    currency: str
    restrictions: Restrictions
    channel_overrides: List[ChannelOverrideSnapshot] = Field(default_factory=list)
    reservation_tags: List[ReservationTagSnapshot] = Field(default_factory=list)
    channel_view: Optional[ChannelView] = None
    needs_sync: bool = False
    last_modified: Optional[datetime] = None
    synthetic: bool = False

    @classmethod
    def from_day(cls, day: Any, room_type_code: Optional[str] = None, synthetic: bool = False) -> "InventoryDaySnapshot":
        return cls(
            id=None if synthetic else day.id,
            hotel_id=day.hotel_id,
            room_type_id=day.room_type_id,
            room_type_code=room_type_code,
            date=day.date,
            total_rooms=day.total_rooms,
            sold_rooms=day.sold_rooms,
            blocked_rooms=day.blocked_rooms,
            overbooked_rooms=day.overbooked_rooms,
            allowed_oversell=day.allowed_oversell,
            available_rooms=day.available_rooms,
            base_rate=day.base_rate,
            selling_rate=day.selling_rate,
            currency=day.currency,
            restrictions=Restrictions(**day.restriction_values()),
            channel_overrides=[
                ChannelOverrideSnapshot(
                    channel_id=channel_id,
                    available_rooms=override.available_rooms,
                    rate=override.rate,
                    restrictions=Restrictions(**override.restriction_values()),
                )
                for channel_id, override in sorted(day.channel_overrides.items())
            ],
            reservation_tags=[
                ReservationTagSnapshot.model_validate(tag) for tag in day.reservation_tags
            ],
            needs_sync=bool(day.needs_sync),
            last_modified=day.last_modified,
            synthetic=synthetic,
        )


# ---------------------------------------------------------------------------
# Requests
# ---------------------------------------------------------------------------


class InventoryUpdateRequest(BaseRequestSchema):
    """Single-day edit: ``PUT /inventory``."""

    hotel_id: str
    room_type: str = Field(..., description="Room type id")
    date: date
    available_rooms: Optional[int] = Field(default=None, ge=0)
    total_rooms: Optional[int] = Field(default=None, ge=0)
    blocked_rooms: Optional[int] = Field(default=None, ge=0)
    allowed_oversell: Optional[int] = Field(default=None, ge=0)
    base_rate: Optional[int] = Field(default=None, ge=0)
    selling_rate: Optional[int] = Field(default=None, ge=0)
    currency: Optional[str] = Field(default=None, min_length=3, max_length=3)
    restrictions: Optional[RestrictionsUpdate] = None
    channel: Optional[str] = None


class BulkUpdateItem(BaseRequestSchema):
    date: date
    available_rooms: Optional[int] = Field(default=None, ge=0)
    total_rooms: Optional[int] = Field(default=None, ge=0)
    blocked_rooms: Optional[int] = Field(default=None, ge=0)
    allowed_oversell: Optional[int] = Field(default=None, ge=0)
    base_rate: Optional[int] = Field(default=None, ge=0)
    selling_rate: Optional[int] = Field(default=None, ge=0)
    restrictions: Optional[RestrictionsUpdate] = None


class BulkUpdateRequest(BaseRequestSchema):
    hotel_id: str
    room_type: str
    updates: List[BulkUpdateItem] = Field(..., min_length=1)
    channel: Optional[str] = None


class BulkItemResult(BaseSchema):
    date: date
    status: str  # success | failed
    inventory_id: Optional[str] = None
    code: Optional[str] = None
    error: Optional[str] = None


class BulkUpdateResponse(BaseSchema):
    total: int
    succeeded: int
    failed: int
    results: List[BulkItemResult]


class StopSellRequest(BaseRequestSchema, DateRangeMixin):
    hotel_id: str
    room_type: str
    stop_sell: bool
    channel: Optional[str] = None
    reason: Optional[str] = Field(default=None, max_length=500)


class StopSellResponse(BaseSchema):
    updated: int
    created: int
    results: List[BulkItemResult]


class CreateRangeRequest(BaseRequestSchema, DateRangeMixin):
    hotel_id: str
    room_type: str
    base_rate: Optional[int] = Field(default=None, ge=0)
    create_mode: CreateMode = CreateMode.SKIP_EXISTING


class RangeItemResult(BaseSchema):
    date: date
    action: str  # created | skipped | overwritten | failed
    inventory_id: Optional[str] = None
    error: Optional[str] = None


class CreateRangeResponse(BaseSchema):
    created: int
    skipped: int
    overwritten: int
    failed: int
    results: List[RangeItemResult]


class SummaryCounters(BaseSchema):
    days: int = 0
    total_rooms: int = 0
    sold_rooms: int = 0
    blocked_rooms: int = 0
    available_rooms: int = 0
    overbooked_rooms: int = 0
    stop_sell_days: int = 0
    occupancy_rate: float = 0.0
    average_rate: int = 0


class InventorySummary(BaseSchema):
    hotel_id: str
    start_date: date
    end_date: date
    totals: SummaryCounters
    by_room_type: Dict[str, SummaryCounters] = Field(default_factory=dict)
