# app/models/inventory/inventory_day.py
"""
Date-level room inventory.

One ``InventoryDay`` row per (hotel, room type, date) coordinate holds the
sellable counters, rates and restrictions for that night, together with
per-channel overrides and advisory reservation tags.
"""

from datetime import date as Date, datetime
from typing import Any, Dict, List, Optional

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
from sqlalchemy.orm import Mapped, attribute_keyed_dict, mapped_column, relationship

from app.models.base.base_model import BaseModel, TimestampModel

__all__ = [
    "InventoryDay",
    "InventoryChannelOverride",
    "InventoryReservationTag",
    "RESTRICTION_FIELDS",
]

RESTRICTION_FIELDS = (
    "stop_sell",
    "closed_to_arrival",
    "closed_to_departure",
    "minimum_stay",
    "maximum_stay",
)


class RestrictionColumnsMixin:
    """Restriction columns shared by day-level rows and channel overrides."""

    stop_sell: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    closed_to_arrival: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    closed_to_departure: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    minimum_stay: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    maximum_stay: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    def restriction_values(self) -> Dict[str, Any]:
        return {name: getattr(self, name) for name in RESTRICTION_FIELDS}

    def apply_restrictions(self, values: Dict[str, Any]) -> None:
        for name in RESTRICTION_FIELDS:
            if name in values:
                setattr(self, name, values[name])


class InventoryDay(RestrictionColumnsMixin, TimestampModel):
    """
    Authoritative per-date inventory record for one room type.

    ``available_rooms`` is derived and persisted so range reads and
    calendar queries need no recomputation; ``recompute()`` keeps it in
    line with the counters.
    """

    __tablename__ = "inventory_days"
    __table_args__ = (
        UniqueConstraint("hotel_id", "room_type_id", "date", name="uq_inventory_day_coordinate"),
        Index("ix_inventory_days_hotel_date", "hotel_id", "date"),
        Index("ix_inventory_days_hotel_needs_sync", "hotel_id", "needs_sync"),
    )

    hotel_id: Mapped[str] = mapped_column(String(36), nullable=False)
    room_type_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("room_types.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    date: Mapped[Date] = mapped_column(DateColumn, nullable=False)

    # Counters
    total_rooms: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    sold_rooms: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    blocked_rooms: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    overbooked_rooms: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    allowed_oversell: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    available_rooms: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    # Rates, integer minor units
    base_rate: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    selling_rate: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    currency: Mapped[str] = mapped_column(String(3), nullable=False, default="INR")

    # Channel sync bookkeeping
    needs_sync: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    last_modified: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    last_modified_by: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)

    version: Mapped[int] = mapped_column(Integer, nullable=False)

    channel_overrides: Mapped[Dict[str, "InventoryChannelOverride"]] = relationship(
        "InventoryChannelOverride",
        collection_class=attribute_keyed_dict("channel_id"),
        cascade="all, delete-orphan",
        back_populates="inventory_day",
        lazy="selectin",
    )
    reservation_tags: Mapped[List["InventoryReservationTag"]] = relationship(
        "InventoryReservationTag",
        cascade="all, delete-orphan",
        back_populates="inventory_day",
        order_by="InventoryReservationTag.reserved_at",
        lazy="selectin",
    )

    __mapper_args__ = {"version_id_col": version}

    @property
    def record_key(self) -> str:
        return f"{self.hotel_id}:{self.room_type_id}:{self.date.isoformat()}"

    def derived_available(self) -> int:
        return max(0, self.total_rooms - self.sold_rooms - self.blocked_rooms + self.allowed_oversell)

    def recompute(self) -> None:
        """Refresh derived counters from the primary ones."""
        self.available_rooms = self.derived_available()
        self.overbooked_rooms = max(0, self.sold_rooms + self.blocked_rooms - self.total_rooms)

    def invariant_violations(self) -> List[str]:
        violations = []
        for name in ("total_rooms", "sold_rooms", "blocked_rooms", "allowed_oversell"):
            if (getattr(self, name) or 0) < 0:
                violations.append(f"{name} is negative")
        if self.sold_rooms + self.blocked_rooms > self.total_rooms + self.allowed_oversell:
            violations.append("sold_rooms + blocked_rooms exceeds total_rooms + allowed_oversell")
        if self.available_rooms != self.derived_available():
            violations.append("available_rooms does not match counters")
        if self.minimum_stay is not None and self.minimum_stay < 1:
            violations.append("minimum_stay below 1")
        if self.maximum_stay is not None and self.maximum_stay < (self.minimum_stay or 1):
            violations.append("maximum_stay below minimum_stay")
        return violations

    def counter_values(self) -> Dict[str, int]:
        return {
            "total_rooms": self.total_rooms,
            "sold_rooms": self.sold_rooms,
            "blocked_rooms": self.blocked_rooms,
            "overbooked_rooms": self.overbooked_rooms,
            "allowed_oversell": self.allowed_oversell,
            "available_rooms": self.available_rooms,
        }

    def audit_values(self) -> Dict[str, Any]:
        """Flat snapshot recorded in audit entries."""
        values: Dict[str, Any] = self.counter_values()
        values.update(self.restriction_values())
        values["base_rate"] = self.base_rate
        values["selling_rate"] = self.selling_rate
        values["currency"] = self.currency
        values["channel_overrides"] = {
            channel_id: override.audit_values()
            for channel_id, override in sorted(self.channel_overrides.items())
        }
        return values

    def __repr__(self) -> str:
        return f"<InventoryDay({self.record_key}, available={self.available_rooms})>"


class InventoryChannelOverride(RestrictionColumnsMixin, BaseModel):
    """
    Per-channel replacement of day-level availability, rate and restrictions.

    ``available_rooms`` of NULL inherits the day-level count. Restrictions
    always replace the day-level set for the channel.
    """

    __tablename__ = "inventory_channel_overrides"
    __table_args__ = (
        UniqueConstraint("inventory_day_id", "channel_id", name="uq_inventory_override_channel"),
    )

    inventory_day_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("inventory_days.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    channel_id: Mapped[str] = mapped_column(String(50), nullable=False)
    available_rooms: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    rate: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    inventory_day: Mapped[InventoryDay] = relationship("InventoryDay", back_populates="channel_overrides")

    def audit_values(self) -> Dict[str, Any]:
        values: Dict[str, Any] = {"available_rooms": self.available_rooms, "rate": self.rate}
        values.update(self.restriction_values())
        return values


class InventoryReservationTag(BaseModel):
    """Advisory link between an inventory day and the reservation holding it."""

    __tablename__ = "inventory_reservation_tags"

    inventory_day_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("inventory_days.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    reservation_ref: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    rooms_reserved: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    source: Mapped[str] = mapped_column(String(50), nullable=False, default="direct")
    reserved_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    inventory_day: Mapped[InventoryDay] = relationship("InventoryDay", back_populates="reservation_tags")
