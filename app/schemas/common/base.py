"""
Base schema classes with common configuration.
"""

from __future__ import annotations

from datetime import date

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

__all__ = [
    "BaseSchema",
    "BaseRequestSchema",
    "DateRangeMixin",
]


class BaseSchema(BaseModel):
    """
    Base schema with common Pydantic configuration.

    Fields are snake_case in Python and camelCase on the wire; both names
    are accepted on input.
    """

    model_config = ConfigDict(
        from_attributes=True,
        populate_by_name=True,
        alias_generator=to_camel,
        use_enum_values=False,
        str_strip_whitespace=True,
        validate_assignment=True,
    )


class BaseRequestSchema(BaseSchema):
    """Request bodies reject unknown fields."""

    model_config = ConfigDict(extra="forbid")


class DateRangeMixin(BaseModel):
    """Inclusive ``start_date..end_date`` range with ordering validation."""

    start_date: date = Field(..., description="First date, inclusive")
    end_date: date = Field(..., description="Last date, inclusive")

    @model_validator(mode="after")
    def _check_order(self) -> "DateRangeMixin":
        if self.end_date < self.start_date:
            raise ValueError("endDate must not be before startDate")
        return self

