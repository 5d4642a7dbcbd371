# =======================================================================================
# gatekeeper/models/__init__.py - Models Package
# =======================================================================================
from .schemas import *
from .enums import *

__all__ = [
    "User", "Checkpoint", "Entry", "Claims", "LoginRequest", "LoginResponse",
    "RefreshRequest", "RefreshResponse", "SyncPushRequest", "SyncPushResponse",
    "EntriesResponse", "CreateUserRequest", "UpdateUserRequest", "DeleteUserRequest",
    "CreateCheckpointRequest", "ResetPasswordRequest", "MessageResponse", "HealthResponse",
    "Role", "EntryType", "EntryStatus", "PushRejection", "HealthStatus", "TokenType",
]
