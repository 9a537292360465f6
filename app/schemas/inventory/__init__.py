"""
Inventory schemas package.

Re-exports inventory snapshots, request bodies and patch variants.
"""

from app.schemas.inventory.inventory import (
    BulkItemResult,
    BulkUpdateItem,
    BulkUpdateRequest,
    BulkUpdateResponse,
    ChannelOverrideSnapshot,
    ChannelView,
    CreateRangeRequest,
    CreateRangeResponse,
    InventoryChanges,
    InventoryDaySnapshot,
    InventorySummary,
    InventoryUpdateRequest,
    RangeItemResult,
    ReservationTagSnapshot,
    Restrictions,
    RestrictionsUpdate,
    StopSellRequest,
    StopSellResponse,
    SummaryCounters,
)
from app.schemas.inventory.patches import (
    AddChannelOverride,
    InventoryPatch,
    RemoveChannelOverride,
    ReservationDelta,
    SetCounters,
    SetRates,
    SetRestrictions,
    patches_for,
)

__all__ = [
    "BulkItemResult",
    "BulkUpdateItem",
    "BulkUpdateRequest",
    "BulkUpdateResponse",
    "ChannelOverrideSnapshot",
    "ChannelView",
    "CreateRangeRequest",
    "CreateRangeResponse",
    "InventoryChanges",
    "InventoryDaySnapshot",
    "InventorySummary",
    "InventoryUpdateRequest",
    "RangeItemResult",
    "ReservationTagSnapshot",
    "Restrictions",
    "RestrictionsUpdate",
    "StopSellRequest",
    "StopSellResponse",
    "SummaryCounters",
    "AddChannelOverride",
    "InventoryPatch",
    "RemoveChannelOverride",
    "ReservationDelta",
    "SetCounters",
    "SetRates",
    "SetRestrictions",
    "patches_for",
]
