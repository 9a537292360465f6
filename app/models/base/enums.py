"""
Database enums shared by models and schemas.
"""

import enum


class OperationalStatus(str, enum.Enum):
    """Housekeeping status of a physical room (advisory only)."""
    VACANT = "vacant"
    OCCUPIED = "occupied"
    DIRTY = "dirty"
    MAINTENANCE = "maintenance"
    OUT_OF_ORDER = "out_of_order"


class ReservationStatus(str, enum.Enum):
    """Reservation lifecycle status."""
    PENDING = "pending"
    CONFIRMED = "confirmed"
    CHECKED_IN = "checked_in"
    CHECKED_OUT = "checked_out"
    CANCELLED = "cancelled"
    NO_SHOW = "no_show"


# Statuses that hold inventory on the stay dates
HOLDING_STATUSES = (
    ReservationStatus.PENDING,
    ReservationStatus.CONFIRMED,
    ReservationStatus.CHECKED_IN,
)

# Statuses counted when measuring booking velocity and occupancy
VELOCITY_STATUSES = (
    ReservationStatus.CONFIRMED,
    ReservationStatus.CHECKED_IN,
)

# Statuses counted as realised demand in prior years
HISTORY_STATUSES = (
    ReservationStatus.CONFIRMED,
    ReservationStatus.CHECKED_IN,
    ReservationStatus.CHECKED_OUT,
)


class PricingRuleType(str, enum.Enum):
    OCCUPANCY_BASED = "occupancy_based"
    DAY_OF_WEEK = "day_of_week"
    SEASONAL = "seasonal"
    LENGTH_OF_STAY = "length_of_stay"
    GEOGRAPHIC = "geographic"
    DEMAND_BASED = "demand_based"
    COMPETITOR_BASED = "competitor_based"


class AdjustmentType(str, enum.Enum):
    PERCENTAGE = "percentage"
    FIXED = "fixed"


class ChangeType(str, enum.Enum):
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"


class AuditSeverity(str, enum.Enum):
    INFO = "info"
    WARNING = "warning"
    CRITICAL = "critical"


class CreateMode(str, enum.Enum):
    """Behaviour of range creation for dates that already have a row."""
    SKIP_EXISTING = "skip_existing"
    OVERWRITE = "overwrite"
