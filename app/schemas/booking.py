"""
Reservation commit schemas.
"""

from datetime import date as Date
from typing import List, Optional

from pydantic import Field, model_validator

from app.schemas.common.base import BaseRequestSchema, BaseSchema

__all__ = ["ReserveRequest", "ReleaseRequest", "NightResult", "ReservationCommitResponse"]


class _StayRequest(BaseRequestSchema):
    hotel_id: str
    room_type_id: str
    check_in: Date
    check_out: Date
    rooms: int = Field(default=1, ge=1)
    reservation_ref: str = Field(..., min_length=1, max_length=64)
    source: str = Field(default="direct", max_length=50)

    @model_validator(mode="after")
    def _stay_order(self) -> "_StayRequest":
        if self.check_out <= self.check_in:
            raise ValueError("checkOut must be after checkIn")
        return self


class ReserveRequest(_StayRequest):
    channel: Optional[str] = None


class ReleaseRequest(_StayRequest):
    pass


class NightResult(BaseSchema):
    date: Date
    sold_rooms: int
    available_rooms: int


class ReservationCommitResponse(BaseSchema):
    reservation_ref: str
    action: str  # reserved | released
    rooms: int
    nights: List[NightResult] = Field(default_factory=list)
