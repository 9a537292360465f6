"""
Base service infrastructure.
"""

from app.services.base.base_service import BaseService
from app.services.base.service_result import ServiceError, ServiceResult

__all__ = [
    "BaseService",
    "ServiceError",
    "ServiceResult",
]
