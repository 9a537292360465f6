"""
Availability check schemas.
"""

from datetime import date as Date
from typing import List, Optional

from pydantic import Field

from app.schemas.common.base import BaseSchema
from app.schemas.inventory.inventory import Restrictions

__all__ = [
    "AvailableRoom",
    "DailyAvailability",
    "AvailabilityWarning",
    "AlternativeRoomType",
    "AvailabilityResult",
]


class AvailableRoom(BaseSchema):
    id: str
    number: str
    floor: Optional[str] = None


class DailyAvailability(BaseSchema):
    date: Date
    total_rooms: int
    sold_rooms: int
    blocked_rooms: int
    available_rooms: int
    rate: int
    restrictions: Restrictions
    channel_override: bool = False
    synthetic: bool = False


class AvailabilityWarning(BaseSchema):
    code: str
    message: str
    date: Optional[Date] = None
    stored_sold: Optional[int] = None
    reconciled_sold: Optional[int] = None


class AlternativeRoomType(BaseSchema):
    """A pricier, at least as roomy type that can take the whole stay."""

    room_type_id: str
    code: str
    name: str
    available_rooms: int
    average_rate: int
    total_amount: int
    rooms: List[AvailableRoom] = Field(default_factory=list)


class AvailabilityResult(BaseSchema):
    hotel_id: str
    room_type_id: str
    check_in: Date
    check_out: Date
    nights: int
    channel: Optional[str] = None
    rooms_requested: int
    available: bool
    available_rooms: int
    rooms: List[AvailableRoom] = Field(default_factory=list)
    binding_date: Optional[Date] = None
    reason: Optional[str] = None
    remaining: Optional[int] = None
    currency: Optional[str] = None
    average_rate: int = 0
    total_amount: int = 0
    daily_breakdown: List[DailyAvailability] = Field(default_factory=list)
    warnings: List[AvailabilityWarning] = Field(default_factory=list)
    alternatives: List[AlternativeRoomType] = Field(default_factory=list)

    @property
    def has_stale_warning(self) -> bool:
        return any(w.code == "STALE_INVENTORY" for w in self.warnings)
