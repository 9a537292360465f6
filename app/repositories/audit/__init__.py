from app.repositories.audit.audit_repository import AuditRepository

__all__ = ["AuditRepository"]
