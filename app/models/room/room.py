# app/models/room/room.py
"""
Physical room instances.
"""

from typing import Optional

from sqlalchemy import Boolean, Enum, ForeignKey, Index, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.models.base.base_model import TimestampModel
from app.models.base.enums import OperationalStatus

__all__ = ["Room"]


class Room(TimestampModel):
    """
    Physical room within a hotel.

    Operational status is advisory; booking-level availability decides
    whether the room can be sold.
    """

    __tablename__ = "rooms"
    __table_args__ = (
        UniqueConstraint("hotel_id", "number", name="uq_room_hotel_number"),
        Index("ix_rooms_hotel_type_active", "hotel_id", "room_type_id", "is_active"),
    )

    hotel_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    number: Mapped[str] = mapped_column(String(20), nullable=False)
    room_type_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("room_types.id", ondelete="CASCADE"),
        nullable=False,
    )
    floor: Mapped[Optional[str]] = mapped_column(String(10), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    operational_status: Mapped[OperationalStatus] = mapped_column(
        Enum(OperationalStatus),
        nullable=False,
        default=OperationalStatus.VACANT,
    )

    room_type: Mapped["RoomType"] = relationship("RoomType", back_populates="rooms")

    def __repr__(self) -> str:
        return f"<Room(hotel={self.hotel_id}, number={self.number})>"
