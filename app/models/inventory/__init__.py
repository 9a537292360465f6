"""Date-level inventory models."""

from app.models.inventory.inventory_day import (
    InventoryDay,
    InventoryChannelOverride,
    InventoryReservationTag,
    RESTRICTION_FIELDS,
)

__all__ = [
    "InventoryDay",
    "InventoryChannelOverride",
    "InventoryReservationTag",
    "RESTRICTION_FIELDS",
]
