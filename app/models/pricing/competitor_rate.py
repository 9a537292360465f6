# app/models/pricing/competitor_rate.py
"""
Competitor rate sheets from rate shopping.
"""

from datetime import date as Date, datetime
from typing import List, Optional

from sqlalchemy import (
    Boolean,
    Date as DateColumn,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.models.base.base_model import BaseModel, TimestampModel

__all__ = ["CompetitorRateSheet", "CompetitorRate"]


class CompetitorRateSheet(TimestampModel):
    """Grouped quotes from one competitor property."""

    __tablename__ = "competitor_rate_sheets"
    __table_args__ = (
        UniqueConstraint("hotel_id", "competitor_ref", name="uq_competitor_sheet_ref"),
    )

    hotel_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    competitor_ref: Mapped[str] = mapped_column(String(64), nullable=False)
    competitor_name: Mapped[str] = mapped_column(String(200), nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    rates: Mapped[List["CompetitorRate"]] = relationship(
        "CompetitorRate",
        back_populates="sheet",
        cascade="all, delete-orphan",
        order_by="CompetitorRate.date",
    )


class CompetitorRate(BaseModel):
    """One competitor quote for one night."""

    __tablename__ = "competitor_rates"
    __table_args__ = (
        Index("ix_competitor_rates_sheet_date", "sheet_id", "date"),
    )

    sheet_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("competitor_rate_sheets.id", ondelete="CASCADE"),
        nullable=False,
    )
    date: Mapped[Date] = mapped_column(DateColumn, nullable=False)
    rate: Mapped[int] = mapped_column(Integer, nullable=False)
    currency: Mapped[str] = mapped_column(String(3), nullable=False, default="INR")
    availability: Mapped[Optional[bool]] = mapped_column(Boolean, nullable=True)
    last_updated: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    sheet: Mapped[CompetitorRateSheet] = relationship("CompetitorRateSheet", back_populates="rates")
