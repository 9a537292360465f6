"""Room type and room instance models."""

from app.models.room.room_type import RoomType
from app.models.room.room import Room

__all__ = ["RoomType", "Room"]
