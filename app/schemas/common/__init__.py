"""Common schema building blocks."""

from app.schemas.common.base import BaseSchema, BaseRequestSchema, DateRangeMixin

__all__ = ["BaseSchema", "BaseRequestSchema", "DateRangeMixin"]
