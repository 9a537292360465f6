# app/models/room/room_type.py
"""
Room type model: the logical sellable class inventory is counted against.
"""

from typing import List, Optional

from sqlalchemy import Boolean, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.models.base.base_model import TimestampModel

__all__ = ["RoomType"]


class RoomType(TimestampModel):
    """
    Sellable room class within a hotel.

    ``base_rate`` is stored in integer minor units of ``currency``.
    """

    __tablename__ = "room_types"
    __table_args__ = (
        UniqueConstraint("hotel_id", "code", name="uq_room_type_hotel_code"),
    )

    hotel_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    code: Mapped[str] = mapped_column(String(20), nullable=False)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    base_rate: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    currency: Mapped[str] = mapped_column(String(3), nullable=False, default="INR")
    max_occupancy: Mapped[int] = mapped_column(Integer, nullable=False, default=2)
    description: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True, index=True)

    rooms: Mapped[List["Room"]] = relationship(
        "Room",
        back_populates="room_type",
        order_by="Room.number",
    )

    def __repr__(self) -> str:
        return f"<RoomType(hotel={self.hotel_id}, code={self.code})>"
