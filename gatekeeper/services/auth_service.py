# =======================================================================================
# gatekeeper/services/auth_service.py - Login and Token Refresh
# =======================================================================================
import logging
from sqlalchemy.exc import SQLAlchemyError

from ..models.schemas import LoginResponse, RefreshResponse, User
from ..store import DirectoryStore
from ..time_utils import utcnow
from ..utils.exceptions import AuthenticationError
from .credentials import CredentialVerifier
from .token_service import TokenService

logger = logging.getLogger(__name__)
audit = logging.getLogger("gatekeeper.audit")

INVALID_CREDENTIALS = "Invalid username or password"


class AuthService:
    """Handles username/password authentication and token refresh."""

    def __init__(self, store: DirectoryStore, credentials: CredentialVerifier, tokens: TokenService):
        self.store = store
        self.credentials = credentials
        self.tokens = tokens

    def authenticate(self, username: str, password: str) -> User:
        """Return the user for valid credentials; every failure looks the same to the caller."""
        user = self.store.get_user_by_username(username)
        if user is None:
            logger.info("Login failed for user %s: user not found", username)
            raise AuthenticationError(INVALID_CREDENTIALS)

        digest = self.store.get_password_hash(user.user_id)
        if digest is None:
            logger.info("Login failed for user %s: password hash not found", username)
            raise AuthenticationError(INVALID_CREDENTIALS)

        if not self.credentials.verify_password(password, digest):
            logger.info("Login failed for user %s: invalid password", username)
            raise AuthenticationError(INVALID_CREDENTIALS)

        return user

    def login(self, username: str, password: str) -> LoginResponse:
        user = self.authenticate(username, password)

        now = utcnow()
        try:
            self.store.touch_last_login(user.user_id, now)
            user = user.model_copy(update={"last_login": now})
        except SQLAlchemyError as e:
            logger.warning("Failed to update last login for user %s: %s", username, e)

        audit.info("User logged in: %s (role: %s)", user.username, user.role.value)
        return LoginResponse(
            access_token=self.tokens.issue_access_token(user),
            refresh_token=self.tokens.issue_refresh_token(user),
            user=user,
        )

    def refresh(self, refresh_token: str) -> RefreshResponse:
        """Mint an access token from the live user record, never from the stale claims."""
        claims = self.tokens.validate(refresh_token, expected_type="refresh")
        user = self.store.get_user(claims.user_id)
        if user is None:
            raise AuthenticationError("User not found")
        return RefreshResponse(access_token=self.tokens.issue_access_token(user))

    def resolve_user(self, access_token: str) -> User:
        """Validate an access token and load the current state of its user."""
        claims = self.tokens.validate(access_token, expected_type="access")
        user = self.store.get_user(claims.user_id)
        if user is None:
            raise AuthenticationError("User not found")
        return user
