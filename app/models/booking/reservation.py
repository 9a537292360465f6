# app/models/booking/reservation.py
"""
Reservations backing the reservation log collaborator.

Only the fields inventory decisions read are modelled: the stay, the
status, and which physical rooms the reservation holds.
"""

from datetime import date as Date, datetime
from typing import List, Optional

from sqlalchemy import (
    Date as DateColumn,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    Integer,
    String,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.models.base.base_model import BaseModel, TimestampModel
from app.models.base.enums import ReservationStatus

__all__ = ["Reservation", "ReservationRoom"]


class Reservation(TimestampModel):
    """Booking of one or more rooms of a room type over ``[check_in, check_out)``."""

    __tablename__ = "reservations"
    __table_args__ = (
        Index("ix_reservations_stay", "hotel_id", "room_type_id", "check_in", "check_out"),
        Index("ix_reservations_type_check_in", "room_type_id", "check_in", "status"),
    )

    reservation_ref: Mapped[str] = mapped_column(String(64), nullable=False, unique=True)
    hotel_id: Mapped[str] = mapped_column(String(36), nullable=False)
    room_type_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("room_types.id", ondelete="CASCADE"),
        nullable=False,
    )
    check_in: Mapped[Date] = mapped_column(DateColumn, nullable=False)
    check_out: Mapped[Date] = mapped_column(DateColumn, nullable=False)
    status: Mapped[ReservationStatus] = mapped_column(
        Enum(ReservationStatus),
        nullable=False,
        default=ReservationStatus.CONFIRMED,
    )
    rooms_count: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    source: Mapped[str] = mapped_column(String(50), nullable=False, default="direct")
    guest_country: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    booked_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    rooms: Mapped[List["ReservationRoom"]] = relationship(
        "ReservationRoom",
        back_populates="reservation",
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    @property
    def rooms_held(self) -> int:
        return max(self.rooms_count, len(self.rooms))

    def covers(self, day: Date) -> bool:
        return self.check_in <= day < self.check_out


class ReservationRoom(BaseModel):
    """Assignment of a physical room to a reservation."""

    __tablename__ = "reservation_rooms"

    reservation_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("reservations.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    room_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("rooms.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    reservation: Mapped[Reservation] = relationship("Reservation", back_populates="rooms")
