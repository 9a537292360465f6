# app/models/pricing/pricing_rule.py
"""
Pricing rules: one conditional rate adjustment each.
"""

from datetime import date as Date
from typing import Any, Dict, List, Optional

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    Date as DateColumn,
    Enum,
    ForeignKey,
    Index,
    Integer,
    String,
    Table,
    Text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.models.base.base_model import Base, TimestampModel
from app.models.base.enums import AdjustmentType, PricingRuleType

__all__ = ["PricingRule", "PricingRuleRoomType", "pricing_rule_room_types"]


pricing_rule_room_types = Table(
    "pricing_rule_room_types",
    Base.metadata,
    Column("pricing_rule_id", String(36), ForeignKey("pricing_rules.id", ondelete="CASCADE"), primary_key=True),
    Column("room_type_id", String(36), primary_key=True, index=True),
)


class PricingRuleRoomType(Base):
    """Scope row: the rule applies to ``room_type_id``. No rows means all room types."""

    __table__ = pricing_rule_room_types


class PricingRule(TimestampModel):
    """
    Prioritized, typed rate adjustment.

    ``conditions`` holds the JSON form of the typed condition set for
    ``rule_type``; it is validated by the pricing schemas before storage.
    """

    __tablename__ = "pricing_rules"
    __table_args__ = (
        Index("ix_pricing_rules_active_priority", "is_active", "priority"),
    )

    rule_id: Mapped[str] = mapped_column(String(64), nullable=False, unique=True)
    hotel_id: Mapped[Optional[str]] = mapped_column(String(36), nullable=True, index=True)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    rule_type: Mapped[PricingRuleType] = mapped_column(Enum(PricingRuleType), nullable=False)
    priority: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    valid_from: Mapped[Date] = mapped_column(DateColumn, nullable=False)
    valid_to: Mapped[Optional[Date]] = mapped_column(DateColumn, nullable=True)
    adjustment_type: Mapped[AdjustmentType] = mapped_column(
        Enum(AdjustmentType),
        nullable=False,
        default=AdjustmentType.PERCENTAGE,
    )
    conditions: Mapped[Dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)

    scope: Mapped[List[PricingRuleRoomType]] = relationship(
        PricingRuleRoomType,
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    @property
    def applicable_room_types(self) -> List[str]:
        return sorted(row.room_type_id for row in self.scope)

    def set_scope(self, room_type_ids: List[str]) -> None:
        self.scope = [PricingRuleRoomType(room_type_id=rt) for rt in sorted(set(room_type_ids))]

    def applies_to(self, room_type_id: str) -> bool:
        return not self.scope or any(row.room_type_id == room_type_id for row in self.scope)

    def is_valid_on(self, day: Date) -> bool:
        if day < self.valid_from:
            return False
        return self.valid_to is None or day <= self.valid_to

    def __repr__(self) -> str:
        return f"<PricingRule(rule_id={self.rule_id}, type={self.rule_type.value}, priority={self.priority})>"
