# app/models/audit/audit_log.py
"""
Append-only audit trail of inventory changes.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import JSON, DateTime, Enum, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base.base_model import BaseModel
from app.models.base.enums import AuditSeverity, ChangeType

__all__ = ["InventoryAuditLog"]


class InventoryAuditLog(BaseModel):
    """One recorded change to an inventory coordinate or pricing rule."""

    __tablename__ = "inventory_audit_logs"
    __table_args__ = (
        Index("ix_inventory_audit_logs_record", "table_name", "record_key"),
        Index("ix_inventory_audit_logs_hotel_time", "hotel_id", "timestamp"),
    )

    hotel_id: Mapped[Optional[str]] = mapped_column(String(36), nullable=True)
    table_name: Mapped[str] = mapped_column(String(64), nullable=False)
    record_key: Mapped[str] = mapped_column(String(200), nullable=False)
    change_type: Mapped[ChangeType] = mapped_column(Enum(ChangeType), nullable=False)
    old_values: Mapped[Optional[Dict[str, Any]]] = mapped_column(JSON, nullable=True)
    new_values: Mapped[Dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)
    actor: Mapped[str] = mapped_column(String(100), nullable=False, default="system")
    source: Mapped[str] = mapped_column(String(50), nullable=False)
    tags: Mapped[List[str]] = mapped_column(JSON, nullable=False, default=list)
    severity: Mapped[AuditSeverity] = mapped_column(
        Enum(AuditSeverity),
        nullable=False,
        default=AuditSeverity.INFO,
    )
    timestamp: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
