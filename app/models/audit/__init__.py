"""Audit models."""

from app.models.audit.audit_log import InventoryAuditLog

__all__ = ["InventoryAuditLog"]
