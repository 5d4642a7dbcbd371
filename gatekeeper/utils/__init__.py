# =======================================================================================
# gatekeeper/utils/__init__.py - Utils Package
# =======================================================================================
from .exceptions import *
from .validators import *

__all__ = [
    "GatekeeperError", "ConfigurationError", "ValidationError", "WeakPasswordError",
    "AuthenticationError", "InvalidTokenError", "ExpiredTokenError", "AuthorizationError",
    "NotFoundError", "ConflictError", "RecordOwnershipError", "RateLimitExceededError", "InternalError",
    "parse_since",
]
