"""
Dynamic rate request and response schemas.
"""

from datetime import date
from typing import List, Optional

from pydantic import Field

from app.models.base.enums import AdjustmentType
from app.schemas.common.base import BaseSchema

__all__ = ["GuestProfile", "RateAdjustment", "DynamicRateResponse"]


class GuestProfile(BaseSchema):
    country: Optional[str] = None
    state: Optional[str] = None
    city: Optional[str] = None


class RateAdjustment(BaseSchema):
    """One entry of the pricing explanation, in application order."""

    name: str
    type: str
    value: float
    adjustment_type: AdjustmentType = AdjustmentType.PERCENTAGE
    rule_id: Optional[str] = None


class DynamicRateResponse(BaseSchema):
    room_type_id: str
    check_in: date
    check_out: date
    nights: int
    base_rate: int
    final_rate: int
    currency: str
    min_rate: int
    max_rate: int
    clamped: bool = False
    adjustments: List[RateAdjustment] = Field(default_factory=list)
