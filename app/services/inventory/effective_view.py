"""
Channel-effective view of an inventory day.
"""

from typing import Any, Dict, Optional

from app.models.inventory import InventoryChannelOverride, InventoryDay
from app.schemas.inventory import ChannelView, Restrictions


def channel_override(day: InventoryDay, channel: Optional[str]) -> Optional[InventoryChannelOverride]:
    if not channel:
        return None
    return day.channel_overrides.get(channel)


def effective_restrictions(day: InventoryDay, channel: Optional[str] = None) -> Dict[str, Any]:
    """Override restrictions replace the day-level set wholesale."""
    override = channel_override(day, channel)
    source = override if override is not None else day
    return source.restriction_values()


def effective_available(day: InventoryDay, channel: Optional[str] = None, available: Optional[int] = None) -> int:
    """
    Rooms sellable on ``channel``.

    ``available`` replaces the day-level count when the caller has already
    reconciled it. An override can only narrow the day-level count.
    """
    day_available = day.available_rooms if available is None else available
    override = channel_override(day, channel)
    if override is None or override.available_rooms is None:
        return day_available
    return min(override.available_rooms, day_available)


def effective_rate(day: InventoryDay, channel: Optional[str] = None) -> int:
    override = channel_override(day, channel)
    if override is not None and override.rate is not None:
        return override.rate
    return day.selling_rate


def channel_view(day: InventoryDay, channel: str) -> ChannelView:
    return ChannelView(
        channel_id=channel,
        available_rooms=effective_available(day, channel),
        rate=effective_rate(day, channel),
        restrictions=Restrictions(**effective_restrictions(day, channel)),
        overridden=channel_override(day, channel) is not None,
    )
