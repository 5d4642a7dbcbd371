# =======================================================================================
# gatekeeper/services/token_service.py - Access and Refresh Tokens
# =======================================================================================
from datetime import datetime, timedelta, timezone
from typing import Optional
from jose import ExpiredSignatureError, JWTError, jwt
from pydantic import ValidationError as PydanticValidationError

from ..models.enums import TokenType
from ..models.schemas import Claims, User
from ..time_utils import utcnow
from ..utils.exceptions import ExpiredTokenError, InvalidTokenError


class TokenService:
    """
    Issues and validates signed tokens carrying user_id, username and role.

    The signing algorithm is pinned: a token whose header names any other
    algorithm (including 'none') is rejected before its claims are trusted.
    """

    def __init__(
        self,
        secret_key: str,
        access_ttl: timedelta = timedelta(minutes=30),
        refresh_ttl: timedelta = timedelta(days=7),
        algorithm: str = "HS256",
        issuer: str = "gatekeeper-api",
    ):
        self.secret_key = secret_key
        self.access_ttl = access_ttl
        self.refresh_ttl = refresh_ttl
        self.algorithm = algorithm
        self.issuer = issuer

    def _issue(self, user: User, token_type: TokenType, ttl: timedelta) -> str:
        now = utcnow()
        claims = {
            "user_id": user.user_id,
            "username": user.username,
            "role": user.role.value,
            "token_type": token_type,
            "sub": user.user_id,
            "iss": self.issuer,
            "iat": now,
            "nbf": now,
            "exp": now + ttl,
        }
        return jwt.encode(claims, self.secret_key, algorithm=self.algorithm)

    def issue_access_token(self, user: User) -> str:
        return self._issue(user, "access", self.access_ttl)

    def issue_refresh_token(self, user: User) -> str:
        return self._issue(user, "refresh", self.refresh_ttl)

    def validate(self, token: str, expected_type: Optional[TokenType] = None) -> Claims:
        """Verify signature, algorithm, issuer and expiry; return the identity claims."""
        try:
            payload = jwt.decode(
                token,
                self.secret_key,
                algorithms=[self.algorithm],
                issuer=self.issuer,
            )
        except ExpiredSignatureError as e:
            raise ExpiredTokenError() from e
        except JWTError as e:
            raise InvalidTokenError() from e

        try:
            claims = Claims(
                user_id=payload["user_id"],
                username=payload["username"],
                role=payload["role"],
                token_type=payload.get("token_type", "access"),
                expires_at=datetime.fromtimestamp(payload["exp"], tz=timezone.utc),
            )
        except (KeyError, TypeError, PydanticValidationError) as e:
            raise InvalidTokenError() from e

        if expected_type is not None and claims.token_type != expected_type:
            raise InvalidTokenError()
        return claims
