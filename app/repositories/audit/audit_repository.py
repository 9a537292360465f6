# app/repositories/audit/audit_repository.py
"""
Audit log persistence.
"""

from typing import List

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.core.logging import get_structured_logger
from app.models.audit import InventoryAuditLog
from app.repositories.base.base_repository import BaseRepository
from app.schemas.audit import AuditEntry

audit_logger = get_structured_logger("app.audit")


class AuditRepository(BaseRepository[InventoryAuditLog]):
    """
    Records audit entries in the caller's transaction.

    Each entry is also emitted as a structured log event.
    """

    def __init__(self, session: Session):
        super().__init__(InventoryAuditLog, session)

    def record(self, entry: AuditEntry) -> InventoryAuditLog:
        row = InventoryAuditLog(
            hotel_id=entry.hotel_id,
            table_name=entry.table_name,
            record_key=entry.record_key,
            change_type=entry.change_type,
            old_values=entry.old_values,
            new_values=entry.new_values,
            actor=entry.actor,
            source=entry.source,
            tags=list(entry.tags),
            severity=entry.severity,
            timestamp=entry.timestamp,
        )
        self.db.add(row)
        audit_logger.info(
            "audit_recorded",
            record_key=entry.record_key,
            change_type=entry.change_type.value,
            source=entry.source,
            actor=entry.actor,
            severity=entry.severity.value,
        )
        return row

    def list_for_record(self, table_name: str, record_key: str) -> List[InventoryAuditLog]:
        stmt = (
            select(InventoryAuditLog)
            .where(InventoryAuditLog.table_name == table_name, InventoryAuditLog.record_key == record_key)
            .order_by(InventoryAuditLog.timestamp, InventoryAuditLog.id)
        )
        return list(self.db.scalars(stmt))

