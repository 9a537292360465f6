"""
Custom Exceptions for the inventory and pricing core

Every exception carries a stable error code, a human message, structured
details and the HTTP status the API layer renders it with.
"""

from datetime import date
from typing import Any, Dict, List, Optional
from enum import Enum


class ErrorCode(str, Enum):
    """Standard error codes for the application"""
    # General errors
    INTERNAL_ERROR = "INTERNAL_ERROR"
    RESOURCE_NOT_FOUND = "NOT_FOUND"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    INVALID_DATE_RANGE = "INVALID_DATE_RANGE"
    UNKNOWN_ROOM_TYPE = "UNKNOWN_ROOM_TYPE"

    # Inventory conflicts
    CONFLICT = "CONFLICT"
    OVERBOOKED = "OVERBOOKED"
    STOP_SELL = "STOP_SELL"
    RESTRICTION_VIOLATION = "RESTRICTION_VIOLATION"
    CONCURRENT_MODIFICATION = "CONCURRENT_MODIFICATION"
    STALE_INVENTORY = "STALE_INVENTORY"
    INVARIANT_VIOLATION = "INVARIANT_VIOLATION"

    # Infrastructure
    DATABASE_ERROR = "DATABASE_ERROR"
    UPSTREAM_UNAVAILABLE = "UPSTREAM_UNAVAILABLE"


class BaseAppException(Exception):
    """
    Base exception class for all application exceptions.

    Provides consistent error handling across the application with
    structured error information.
    """

    def __init__(
        self,
        message: str,
        error_code: ErrorCode = ErrorCode.INTERNAL_ERROR,
        details: Optional[Dict[str, Any]] = None,
        status_code: int = 500
    ):
        self.message = message
        self.error_code = error_code
        self.details = details or {}
        self.status_code = status_code
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to the API error shape"""
        body = {
            "status": "error",
            "code": self.error_code.value,
            "message": self.message,
        }
        if self.details:
            body["details"] = self.details
        return body

    def __str__(self) -> str:
        return f"{self.error_code.value}: {self.message}"

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(message='{self.message}', error_code='{self.error_code.value}')"


def _iso(value: Optional[date]) -> Optional[str]:
    return value.isoformat() if value is not None else None


# ========================================
# Validation
# ========================================

class ValidationError(BaseAppException):
    """Exception raised when input validation fails"""

    def __init__(
        self,
        message: str = "Validation failed",
        field_errors: Optional[Dict[str, List[str]]] = None,
        error_code: ErrorCode = ErrorCode.VALIDATION_ERROR,
        details: Optional[Dict[str, Any]] = None,
    ):
        details = dict(details or {})
        if field_errors:
            details["field_errors"] = field_errors
        super().__init__(message, error_code, details, 400)


class InvalidDateRangeError(ValidationError):
    """Exception raised for inverted or zero-length date ranges"""

    def __init__(self, start: date, end: date, message: Optional[str] = None):
        super().__init__(
            message or f"Invalid date range: {start} to {end}",
            error_code=ErrorCode.INVALID_DATE_RANGE,
            details={"start": _iso(start), "end": _iso(end)},
        )


# ========================================
# Not found
# ========================================

class ResourceNotFoundError(BaseAppException):
    """Exception raised when a requested resource is not found"""

    def __init__(
        self,
        resource_type: str = "Resource",
        resource_id: Optional[str] = None,
        message: Optional[str] = None,
        error_code: ErrorCode = ErrorCode.RESOURCE_NOT_FOUND,
    ):
        if not message:
            message = f"{resource_type} not found"
            if resource_id:
                message += f" (ID: {resource_id})"

        details = {
            "resource_type": resource_type,
            "resource_id": resource_id
        }
        super().__init__(message, error_code, details, 404)


class UnknownRoomTypeError(ResourceNotFoundError):
    """Room type is missing, inactive, or belongs to another hotel"""

    def __init__(self, room_type_id: str, reason: str = "not found"):
        super().__init__(
            "RoomType",
            room_type_id,
            message=f"Unknown room type {room_type_id}: {reason}",
            error_code=ErrorCode.UNKNOWN_ROOM_TYPE,
        )


# ========================================
# Conflicts
# ========================================

class ConflictError(BaseAppException):
    """Base class for state conflicts surfaced as HTTP 409"""

    def __init__(
        self,
        message: str = "Conflict",
        error_code: ErrorCode = ErrorCode.CONFLICT,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, error_code, details, 409)


class OverbookedError(ConflictError):
    """Requested rooms exceed sellable capacity for a date"""

    def __init__(self, binding_date: date, remaining: int, requested: int):
        super().__init__(
            f"Overbooked on {binding_date}: {remaining} room(s) remaining, {requested} requested",
            ErrorCode.OVERBOOKED,
            {
                "bindingDate": _iso(binding_date),
                "remaining": remaining,
                "requested": requested,
            },
        )
        self.binding_date = binding_date
        self.remaining = remaining


class StopSellError(ConflictError):
    """A date in the requested stay is closed for sale"""

    def __init__(self, binding_date: date, channel: Optional[str] = None):
        super().__init__(
            f"Stop-sell is active on {binding_date}",
            ErrorCode.STOP_SELL,
            {"bindingDate": _iso(binding_date), "rule": "stopSell", "channel": channel},
        )
        self.binding_date = binding_date


class RestrictionViolationError(ConflictError):
    """A length-of-stay or arrival/departure restriction forbids the stay"""

    def __init__(self, binding_date: date, rule: str, channel: Optional[str] = None):
        super().__init__(
            f"Restriction {rule} violated on {binding_date}",
            ErrorCode.RESTRICTION_VIOLATION,
            {"bindingDate": _iso(binding_date), "rule": rule, "channel": channel},
        )
        self.binding_date = binding_date
        self.rule = rule


class ConcurrentModificationError(ConflictError):
    """Retries exhausted while another writer held the coordinate"""

    def __init__(self, record_key: str, attempts: int):
        super().__init__(
            f"Concurrent modification of {record_key} after {attempts} attempt(s)",
            ErrorCode.CONCURRENT_MODIFICATION,
            {"recordKey": record_key, "attempts": attempts},
        )


class StaleInventoryError(BaseAppException):
    """Stored counters drifted from the reservation log beyond tolerance"""

    def __init__(self, drifts: List[Dict[str, Any]], tolerance: int):
        super().__init__(
            f"Inventory drift detected on {len(drifts)} date(s)",
            ErrorCode.STALE_INVENTORY,
            {"drifts": drifts, "tolerance": tolerance},
            409,
        )
        self.drifts = drifts


# ========================================
# Internal / infrastructure
# ========================================

class InvariantViolationError(BaseAppException):
    """Internal consistency violation on an inventory record"""

    def __init__(self, record_key: str, violations: List[str], state: Optional[Dict[str, Any]] = None):
        super().__init__(
            f"Invariant violated for {record_key}: {'; '.join(violations)}",
            ErrorCode.INVARIANT_VIOLATION,
            {"recordKey": record_key, "violations": violations, "state": state or {}},
            500,
        )
        self.record_key = record_key
        self.violations = violations


class RepositoryError(BaseAppException):
    """Exception raised when a persistence operation fails"""

    def __init__(self, message: str = "Database operation failed", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, ErrorCode.DATABASE_ERROR, details, 500)


class UpstreamError(BaseAppException):
    """A collaborator (reservation log, competitor sheets) is unavailable"""

    def __init__(self, service_name: str, message: Optional[str] = None):
        super().__init__(
            message or f"{service_name} is unavailable",
            ErrorCode.UPSTREAM_UNAVAILABLE,
            {"service": service_name},
            503,
        )
        self.service_name = service_name


__all__ = [
    'ErrorCode',
    'BaseAppException',
    'ValidationError',
    'InvalidDateRangeError',
    'ResourceNotFoundError',
    'UnknownRoomTypeError',
    'ConflictError',
    'OverbookedError',
    'StopSellError',
    'RestrictionViolationError',
    'ConcurrentModificationError',
    'StaleInventoryError',
    'InvariantViolationError',
    'RepositoryError',
    'UpstreamError',
]
