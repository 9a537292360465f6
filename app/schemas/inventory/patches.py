"""
Tagged inventory patch variants.

Each variant knows how to apply itself to an ``InventoryDay``. Business
rule failures (overbooking, releasing more rooms than were sold) raise
from ``apply``; counter invariants are checked afterwards by the store.
"""

from datetime import datetime
from typing import Annotated, List, Literal, Optional, Union

from pydantic import Field, model_validator

from app.core.exceptions import OverbookedError, ValidationError
from app.models.inventory import InventoryChannelOverride, InventoryDay, InventoryReservationTag
from app.schemas.common.base import BaseSchema
from app.schemas.inventory.inventory import InventoryChanges, RestrictionsUpdate

__all__ = [
    "SetCounters",
    "SetRates",
    "SetRestrictions",
    "AddChannelOverride",
    "RemoveChannelOverride",
    "ReservationDelta",
    "InventoryPatch",
    "patches_for",
]


class SetCounters(BaseSchema):
    """
    Capacity edit.

    ``available_rooms`` is a target for the derived count: total rooms are
    re-derived so that ``available == target`` with the current sold and
    blocked counters.
    """

    kind: Literal["set_counters"] = "set_counters"
    total_rooms: Optional[int] = Field(default=None, ge=0)
    available_rooms: Optional[int] = Field(default=None, ge=0)
    blocked_rooms: Optional[int] = Field(default=None, ge=0)
    allowed_oversell: Optional[int] = Field(default=None, ge=0)

    @model_validator(mode="after")
    def _exclusive_capacity(self) -> "SetCounters":
        if self.total_rooms is not None and self.available_rooms is not None:
            raise ValueError("totalRooms and availableRooms are mutually exclusive")
        return self

    def apply(self, day: InventoryDay) -> None:
        if self.allowed_oversell is not None:
            day.allowed_oversell = self.allowed_oversell
        if self.blocked_rooms is not None:
            day.blocked_rooms = self.blocked_rooms
        if self.total_rooms is not None:
            day.total_rooms = self.total_rooms
        if self.available_rooms is not None:
            total = self.available_rooms + day.sold_rooms + day.blocked_rooms - day.allowed_oversell
            if total < 0:
                raise ValidationError(
                    f"availableRooms {self.available_rooms} cannot be reached on {day.date}",
                    field_errors={"availableRooms": ["below the oversell margin"]},
                )
            day.total_rooms = total


class SetRates(BaseSchema):
    kind: Literal["set_rates"] = "set_rates"
    base_rate: Optional[int] = Field(default=None, ge=0)
    selling_rate: Optional[int] = Field(default=None, ge=0)
    currency: Optional[str] = Field(default=None, min_length=3, max_length=3)

    def apply(self, day: InventoryDay) -> None:
        if self.base_rate is not None:
            day.base_rate = self.base_rate
            # Selling rate follows the base rate unless set explicitly
            if self.selling_rate is None:
                day.selling_rate = self.base_rate
        if self.selling_rate is not None:
            day.selling_rate = self.selling_rate
        if self.currency is not None:
            day.currency = self.currency.upper()


class SetRestrictions(BaseSchema):
    kind: Literal["set_restrictions"] = "set_restrictions"
    restrictions: RestrictionsUpdate

    def apply(self, day: InventoryDay) -> None:
        day.apply_restrictions(self.restrictions.changes())


class AddChannelOverride(BaseSchema):
    """
    Create or merge the override for ``channel_id``.

    A new override inherits the day-level count (``available_rooms`` NULL)
    and a copy of the day-level restrictions, so only the provided fields
    diverge from the day.
    """

    kind: Literal["add_channel_override"] = "add_channel_override"
    channel_id: str = Field(..., min_length=1, max_length=50)
    available_rooms: Optional[int] = Field(default=None, ge=0)
    rate: Optional[int] = Field(default=None, ge=0)
    restrictions: Optional[RestrictionsUpdate] = None

    def apply(self, day: InventoryDay) -> None:
        override = day.channel_overrides.get(self.channel_id)
        if override is None:
            override = InventoryChannelOverride(channel_id=self.channel_id, available_rooms=None, rate=None)
            override.apply_restrictions(day.restriction_values())
            day.channel_overrides[self.channel_id] = override
        if self.available_rooms is not None:
            override.available_rooms = self.available_rooms
        if self.rate is not None:
            override.rate = self.rate
        if self.restrictions is not None:
            override.apply_restrictions(self.restrictions.changes())


class RemoveChannelOverride(BaseSchema):
    kind: Literal["remove_channel_override"] = "remove_channel_override"
    channel_id: str = Field(..., min_length=1, max_length=50)

    def apply(self, day: InventoryDay) -> None:
        day.channel_overrides.pop(self.channel_id, None)


class ReservationDelta(BaseSchema):
    """Rooms sold (+n) or released (-n) by a reservation."""

    kind: Literal["reservation_delta"] = "reservation_delta"
    delta: int
    reservation_ref: str = Field(..., min_length=1, max_length=64)
    source: str = "direct"
    reserved_at: Optional[datetime] = None

    @model_validator(mode="after")
    def _non_zero(self) -> "ReservationDelta":
        if self.delta == 0:
            raise ValueError("delta must be non-zero")
        return self

    def apply(self, day: InventoryDay) -> None:
        if self.delta > 0:
            if day.sold_rooms + self.delta + day.blocked_rooms > day.total_rooms + day.allowed_oversell:
                raise OverbookedError(day.date, remaining=day.derived_available(), requested=self.delta)
        elif day.sold_rooms + self.delta < 0:
            raise ValidationError(
                f"Cannot release {-self.delta} room(s) on {day.date}: only {day.sold_rooms} sold",
                field_errors={"delta": ["exceeds sold rooms"]},
            )
        day.sold_rooms += self.delta
        self._retag(day)

    def _retag(self, day: InventoryDay) -> None:
        tag = next((t for t in day.reservation_tags if t.reservation_ref == self.reservation_ref), None)
        if tag is None:
            if self.delta > 0:
                day.reservation_tags.append(InventoryReservationTag(
                    reservation_ref=self.reservation_ref,
                    rooms_reserved=self.delta,
                    source=self.source,
                    reserved_at=self.reserved_at,
                ))
            return
        tag.rooms_reserved += self.delta
        if tag.rooms_reserved <= 0:
            day.reservation_tags.remove(tag)


InventoryPatch = Annotated[
    Union[
        SetCounters,
        SetRates,
        SetRestrictions,
        AddChannelOverride,
        RemoveChannelOverride,
        ReservationDelta,
    ],
    Field(discriminator="kind"),
]


def patches_for(changes: InventoryChanges, channel: Optional[str] = None) -> List[InventoryPatch]:
    """
    Translate a field-level edit into patches.

    With a channel, availability, rate and restrictions land in that
    channel's override; physical counters always stay day-level.
    """
    if changes.is_empty():
        raise ValidationError("No inventory changes supplied")
    if changes.total_rooms is not None and changes.available_rooms is not None and not channel:
        raise ValidationError(
            "totalRooms and availableRooms are mutually exclusive",
            field_errors={"availableRooms": ["cannot be combined with totalRooms"]},
        )

    patches: List[InventoryPatch] = []
    day_available = None if channel else changes.available_rooms
    if any(v is not None for v in (changes.total_rooms, day_available, changes.blocked_rooms, changes.allowed_oversell)):
        patches.append(SetCounters(
            total_rooms=changes.total_rooms,
            available_rooms=day_available,
            blocked_rooms=changes.blocked_rooms,
            allowed_oversell=changes.allowed_oversell,
        ))

    if channel:
        if changes.currency is not None:
            patches.append(SetRates(currency=changes.currency))
        channel_rate = changes.selling_rate if changes.selling_rate is not None else changes.base_rate
        patches.append(AddChannelOverride(
            channel_id=channel,
            available_rooms=changes.available_rooms,
            rate=channel_rate,
            restrictions=changes.restrictions,
        ))
        return patches

    if any(v is not None for v in (changes.base_rate, changes.selling_rate, changes.currency)):
        patches.append(SetRates(
            base_rate=changes.base_rate,
            selling_rate=changes.selling_rate,
            currency=changes.currency,
        ))
    if changes.restrictions is not None:
        patches.append(SetRestrictions(restrictions=changes.restrictions))
    return patches
