# app/repositories/booking/reservation_repository.py
"""
Reservation log: read-side queries over reservations.

Failures are reported as UpstreamError; callers decide whether to degrade.
"""

from datetime import date, datetime
from typing import List, Optional, Sequence

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.exceptions import UpstreamError
from app.models.base.enums import (
    HISTORY_STATUSES,
    HOLDING_STATUSES,
    VELOCITY_STATUSES,
    ReservationStatus,
)
from app.models.booking import Reservation
from app.repositories.base.base_repository import BaseRepository

SERVICE_NAME = "ReservationLog"


class ReservationRepository(BaseRepository[Reservation]):
    """Repository for Reservation entity."""

    def __init__(self, session: Session):
        super().__init__(Reservation, session)

    def find_by_ref(self, reservation_ref: str) -> Optional[Reservation]:
        stmt = select(Reservation).where(Reservation.reservation_ref == reservation_ref)
        try:
            return self.db.scalars(stmt).first()
        except SQLAlchemyError as e:
            raise UpstreamError(SERVICE_NAME, f"Reservation lookup failed: {e}") from e

    def list_overlapping(
        self,
        hotel_id: str,
        room_type_id: str,
        check_in: date,
        check_out: date,
        statuses: Sequence[ReservationStatus] = HOLDING_STATUSES,
    ) -> List[Reservation]:
        """Reservations whose stay intersects ``[check_in, check_out)``."""
        stmt = (
            select(Reservation)
            .where(
                Reservation.hotel_id == hotel_id,
                Reservation.room_type_id == room_type_id,
                Reservation.check_in < check_out,
                Reservation.check_out > check_in,
                Reservation.status.in_(list(statuses)),
            )
            .order_by(Reservation.check_in, Reservation.reservation_ref)
        )
        try:
            return list(self.db.scalars(stmt))
        except SQLAlchemyError as e:
            raise UpstreamError(SERVICE_NAME, f"Overlap query failed: {e}") from e

    def count_recent_bookings(self, room_type_id: str, check_in: date, since: datetime) -> int:
        """Bookings for ``check_in`` created at or after ``since``."""
        stmt = select(func.count(Reservation.id)).where(
            Reservation.room_type_id == room_type_id,
            Reservation.check_in == check_in,
            Reservation.booked_at >= since,
            Reservation.status.in_(list(VELOCITY_STATUSES)),
        )
        try:
            return int(self.db.scalar(stmt) or 0)
        except SQLAlchemyError as e:
            raise UpstreamError(SERVICE_NAME, f"Booking velocity query failed: {e}") from e

    def count_same_date_bookings(self, room_type_id: str, check_in: date) -> int:
        """Realised bookings arriving on ``check_in``."""
        stmt = select(func.count(Reservation.id)).where(
            Reservation.room_type_id == room_type_id,
            Reservation.check_in == check_in,
            Reservation.status.in_(list(HISTORY_STATUSES)),
        )
        try:
            return int(self.db.scalar(stmt) or 0)
        except SQLAlchemyError as e:
            raise UpstreamError(SERVICE_NAME, f"Historical booking query failed: {e}") from e

    def count_rooms_held(self, hotel_id: str, room_type_id: str, day: date) -> int:
        """Rooms held by confirmed or in-house reservations on the night of ``day``."""
        stmt = select(func.coalesce(func.sum(Reservation.rooms_count), 0)).where(
            Reservation.hotel_id == hotel_id,
            Reservation.room_type_id == room_type_id,
            Reservation.check_in <= day,
            Reservation.check_out > day,
            Reservation.status.in_(list(VELOCITY_STATUSES)),
        )
        try:
            return int(self.db.scalar(stmt) or 0)
        except SQLAlchemyError as e:
            raise UpstreamError(SERVICE_NAME, f"Occupancy query failed: {e}") from e

    # ------------------------------------------------------------------
    # Writes made by the booking commit path
    # ------------------------------------------------------------------

    def record_booking(
        self,
        hotel_id: str,
        room_type_id: str,
        reservation_ref: str,
        check_in: date,
        check_out: date,
        rooms: int,
        source: str,
        booked_at: datetime,
    ) -> Reservation:
        """
        Log ``rooms`` sold under ``reservation_ref``.

        A live entry with the same ref grows by ``rooms``, matching how
        the per-night reservation tags accumulate; a cancelled one is
        reopened for the new stay.
        """
        reservation = self.find_by_ref(reservation_ref)
        if reservation is None:
            return self.create(Reservation(
                reservation_ref=reservation_ref,
                hotel_id=hotel_id,
                room_type_id=room_type_id,
                check_in=check_in,
                check_out=check_out,
                status=ReservationStatus.CONFIRMED,
                rooms_count=rooms,
                source=source,
                booked_at=booked_at,
            ))

        if reservation.status in HOLDING_STATUSES:
            rooms += reservation.rooms_count
        return self.update(reservation, {
            "hotel_id": hotel_id,
            "room_type_id": room_type_id,
            "check_in": check_in,
            "check_out": check_out,
            "status": ReservationStatus.CONFIRMED,
            "rooms_count": rooms,
            "source": source,
        })

    def record_release(self, reservation_ref: str, rooms: int) -> Optional[Reservation]:
        """Give back ``rooms``; the entry is cancelled once nothing is left. Unknown refs are ignored."""
        reservation = self.find_by_ref(reservation_ref)
        if reservation is None or reservation.status not in HOLDING_STATUSES:
            return reservation
        remaining = reservation.rooms_count - rooms
        if remaining > 0:
            return self.update(reservation, {"rooms_count": remaining})
        return self.update(reservation, {"status": ReservationStatus.CANCELLED})
