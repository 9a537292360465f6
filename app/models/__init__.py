# app/models/__init__.py
"""
SQLAlchemy models. Importing this package registers every table on
``Base.metadata``.
"""

from app.models.base import Base, BaseModel, TimestampModel
from app.models.room import RoomType, Room
from app.models.inventory import InventoryDay, InventoryChannelOverride, InventoryReservationTag
from app.models.pricing import (
    PricingRule,
    PricingRuleRoomType,
    DemandForecast,
    CompetitorRateSheet,
    CompetitorRate,
)
from app.models.booking import Reservation, ReservationRoom
from app.models.audit import InventoryAuditLog

__all__ = [
    "Base",
    "BaseModel",
    "TimestampModel",
    "RoomType",
    "Room",
    "InventoryDay",
    "InventoryChannelOverride",
    "InventoryReservationTag",
    "PricingRule",
    "PricingRuleRoomType",
    "DemandForecast",
    "CompetitorRateSheet",
    "CompetitorRate",
    "Reservation",
    "ReservationRoom",
    "InventoryAuditLog",
]
