"""
Rate-shopping payloads: competitor quotes pushed in by an external shopper.
"""

from datetime import date as Date
from typing import List, Optional

from pydantic import Field, field_validator

from app.schemas.common.base import BaseRequestSchema, BaseSchema

__all__ = ["CompetitorQuote", "CompetitorSheetUpsert", "CompetitorSheetResult"]


class CompetitorQuote(BaseRequestSchema):
    date: Date
    rate: int = Field(..., ge=0)
    currency: Optional[str] = Field(default=None, min_length=3, max_length=3)
    availability: Optional[bool] = None


class CompetitorSheetUpsert(BaseRequestSchema):
    """
    All quotes of one competitor property.

    Dates already on file are overwritten; other stored dates are kept.
    """

    hotel_id: str = Field(..., min_length=1)
    competitor_id: str = Field(..., min_length=1, max_length=64)
    name: str = Field(..., min_length=1, max_length=200)
    is_active: bool = True
    rates: List[CompetitorQuote] = Field(default_factory=list)

    @field_validator("rates")
    @classmethod
    def _one_quote_per_date(cls, v: List[CompetitorQuote]) -> List[CompetitorQuote]:
        dates = [q.date for q in v]
        if len(dates) != len(set(dates)):
            raise ValueError("rates must contain at most one quote per date")
        return v


class CompetitorSheetResult(BaseSchema):
    hotel_id: str
    competitor_id: str
    created: bool
    rates_stored: int
    is_active: bool
