# app/repositories/room/room_repository.py
"""
Room registry: room types and physical rooms.
"""

from typing import List, Optional

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.exceptions import RepositoryError
from app.models.room import Room, RoomType
from app.repositories.base.base_repository import BaseRepository


class RoomTypeRepository(BaseRepository[RoomType]):
    """Repository for RoomType entity."""

    def __init__(self, session: Session):
        super().__init__(RoomType, session)

    def list_for_hotel(self, hotel_id: str, active_only: bool = False) -> List[RoomType]:
        stmt = select(RoomType).where(RoomType.hotel_id == hotel_id)
        if active_only:
            stmt = stmt.where(RoomType.is_active.is_(True))
        return list(self.db.scalars(stmt.order_by(RoomType.code)))

    def find_by_code(self, hotel_id: str, code: str) -> Optional[RoomType]:
        stmt = select(RoomType).where(RoomType.hotel_id == hotel_id, RoomType.code == code)
        return self.db.scalars(stmt).first()


class RoomRepository(BaseRepository[Room]):
    """
    Repository for physical rooms.

    Implements the room registry contract used by availability and
    forecasting: active counts and ordered room listings.
    """

    def __init__(self, session: Session):
        super().__init__(Room, session)
        self.room_types = RoomTypeRepository(session)

    def get_room_type(self, room_type_id: str) -> Optional[RoomType]:
        return self.room_types.find_by_id(room_type_id)

    def list_room_types(self, hotel_id: str, active_only: bool = True) -> List[RoomType]:
        try:
            return self.room_types.list_for_hotel(hotel_id, active_only=active_only)
        except SQLAlchemyError as e:
            raise RepositoryError(f"Room type listing failed: {e}") from e

    def count_active(self, hotel_id: str, room_type_id: str) -> int:
        stmt = select(func.count(Room.id)).where(
            Room.hotel_id == hotel_id,
            Room.room_type_id == room_type_id,
            Room.is_active.is_(True),
        )
        try:
            return int(self.db.scalar(stmt) or 0)
        except SQLAlchemyError as e:
            raise RepositoryError(f"Room count failed: {str(e)}") from e

    def list_rooms(self, hotel_id: str, room_type_id: str, active_only: bool = True) -> List[Room]:
        """Rooms of a type ordered by room number."""
        stmt = select(Room).where(Room.hotel_id == hotel_id, Room.room_type_id == room_type_id)
        if active_only:
            stmt = stmt.where(Room.is_active.is_(True))
        try:
            return list(self.db.scalars(stmt.order_by(Room.number)))
        except SQLAlchemyError as e:
            raise RepositoryError(f"Room listing failed: {str(e)}") from e
