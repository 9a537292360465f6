"""
Per-item outcome of a batch operation.

Bulk inventory updates and range creation keep going when a single day
fails; each day's outcome is captured as a ``ServiceResult`` and folded
into the response afterwards.
"""

from dataclasses import dataclass
from typing import Any, Dict, Generic, Optional, TypeVar

from app.core.exceptions import BaseAppException


@dataclass(frozen=True)
class ServiceError:
    code: str
    message: str
    details: Optional[Dict[str, Any]] = None

    @classmethod
    def from_exception(cls, exc: BaseAppException) -> "ServiceError":
        return cls(code=exc.error_code.value, message=exc.message, details=exc.details or None)


TData = TypeVar("TData")


@dataclass(frozen=True)
class ServiceResult(Generic[TData]):
    is_success: bool
    data: Optional[TData] = None
    error: Optional[ServiceError] = None

    @classmethod
    def success(cls, data: TData) -> "ServiceResult[TData]":
        return cls(is_success=True, data=data)

    @classmethod
    def from_exception(cls, exc: BaseAppException) -> "ServiceResult[TData]":
        return cls(is_success=False, error=ServiceError.from_exception(exc))

    def __bool__(self) -> bool:
        return self.is_success


__all__ = [
    "ServiceError",
    "ServiceResult",
]
