# =======================================================================================
# gatekeeper/models/enums.py - Enums and Constants
# =======================================================================================
from enum import Enum
from typing import Literal

# Type aliases for better type hints
HealthStatus = Literal["healthy", "degraded"]
TokenType = Literal["access", "refresh"]

class Role(str, Enum):
    """Closed set of user roles. Authorization code matches every member explicitly."""
    ADMIN = "ADMIN"
    SUPERVISOR = "SUPERVISOR"
    GATE_OPERATOR = "GATE_OPERATOR"

class EntryType(str, Enum):
    """Categories of checkpoint entries."""
    PERSONNEL = "PERSONNEL"
    TRUCK = "TRUCK"
    CAR = "CAR"
    OTHER = "OTHER"

class EntryStatus(str, Enum):
    """Soft-delete marker; DELETED is the only removal path for entries."""
    ACTIVE = "ACTIVE"
    DELETED = "DELETED"

class PushRejection(str, Enum):
    """Reasons a pushed entry is not persisted."""
    MALFORMED = "MALFORMED"
    FOREIGN_AUTHOR = "FOREIGN_AUTHOR"
    CHECKPOINT_NOT_ALLOWED = "CHECKPOINT_NOT_ALLOWED"
    RECORD_OWNED_BY_OTHER = "RECORD_OWNED_BY_OTHER"
    UNKNOWN_ROLE = "UNKNOWN_ROLE"
    STORE_FAILURE = "STORE_FAILURE"
