"""
Audit entry value object.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import ConfigDict, Field

from app.models.base.enums import AuditSeverity, ChangeType
from app.schemas.common.base import BaseSchema

__all__ = ["AuditEntry"]


class AuditEntry(BaseSchema):
    """Immutable record of one change, written before the change is acknowledged."""

    model_config = ConfigDict(frozen=True, validate_assignment=False)

    hotel_id: Optional[str] = None
    table_name: str = "inventory_days"
    record_key: str
    change_type: ChangeType
    old_values: Optional[Dict[str, Any]] = None
    new_values: Dict[str, Any] = Field(default_factory=dict)
    actor: str = "system"
    source: str
    tags: List[str] = Field(default_factory=list)
    severity: AuditSeverity = AuditSeverity.INFO
    timestamp: datetime
