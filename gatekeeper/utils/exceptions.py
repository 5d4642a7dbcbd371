# =======================================================================================
# gatekeeper/utils/exceptions.py - Custom Exceptions
# =======================================================================================
class GatekeeperError(Exception):
    """Base exception for the GateKeeper API."""
    status_code: int = 500
    default_message: str = "Internal server error"

    def __init__(self, message: str = None):
        self.message = message or self.default_message
        super().__init__(self.message)

class ConfigurationError(GatekeeperError):
    """Raised when the process configuration is unusable."""
    default_message = "Invalid configuration"

class ValidationError(GatekeeperError):
    """Raised on malformed or missing input."""
    status_code = 400
    default_message = "Invalid request"

class WeakPasswordError(ValidationError):
    """Raised when a password does not meet the strength policy."""
    default_message = "Password does not meet strength requirements"

class AuthenticationError(GatekeeperError):
    """Raised on bad credentials or a missing/invalid token."""
    status_code = 401
    default_message = "Authentication required"

class InvalidTokenError(AuthenticationError):
    """Raised when a token fails signature, algorithm or claim checks."""
    default_message = "Invalid or expired token"

class ExpiredTokenError(AuthenticationError):
    """Raised when a token is past its expiry."""
    default_message = "Invalid or expired token"

class AuthorizationError(GatekeeperError):
    """Raised when an authenticated user lacks the role or ownership required."""
    status_code = 403
    default_message = "Insufficient permissions"

class NotFoundError(GatekeeperError):
    """Raised when a referenced user, checkpoint or entry does not exist."""
    status_code = 404
    default_message = "Not found"

class ConflictError(GatekeeperError):
    """Raised on uniqueness violations."""
    status_code = 409
    default_message = "Resource already exists"

class RecordOwnershipError(ConflictError):
    """Raised when a write targets an entry logged by another user."""
    default_message = "Record belongs to another user"

class RateLimitExceededError(GatekeeperError):
    """Raised when a client exhausts its request quota."""
    status_code = 429
    default_message = "Rate limit exceeded. Please try again later."

class InternalError(GatekeeperError):
    """Raised on store or infrastructure failures."""
    status_code = 500
