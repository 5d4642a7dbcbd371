# =======================================================================================
# gatekeeper/config.py - Configuration Management
# =======================================================================================
import os
import re
from datetime import timedelta
from typing import List, Optional
from dotenv import load_dotenv

from .utils.exceptions import ConfigurationError

load_dotenv()

DEFAULT_JWT_SECRET = "dev-secret-key"

_DURATION_RE = re.compile(r"^\s*(\d+)\s*([smhd]?)\s*$")
_DURATION_UNITS = {"": "seconds", "s": "seconds", "m": "minutes", "h": "hours", "d": "days"}


def parse_duration(value: Optional[str], default: timedelta) -> timedelta:
    """
    Parse '30m', '7d', '1h', '45s' or a bare number of seconds.
    Anything else falls back to the default.
    """
    if not value:
        return default
    match = _DURATION_RE.match(value)
    if not match:
        return default
    amount, unit = match.groups()
    return timedelta(**{_DURATION_UNITS[unit]: int(amount)})


def _env_int(name: str, default: int) -> int:
    """Helper to parse integer environment variables."""
    v = os.getenv(name)
    return int(v) if v and v.strip().isdigit() else default


def _env_list(name: str, default: str) -> List[str]:
    raw = os.getenv(name, default)
    return [item.strip() for item in raw.split(",") if item.strip()]


class Config:
    # Database
    DB_URL: str = os.getenv("DB_URL", "sqlite:///gatekeeper.db")
    DB_POOL_SIZE: int = _env_int("DB_POOL_SIZE", 10)
    DB_MAX_OVERFLOW: int = _env_int("DB_MAX_OVERFLOW", 20)

    # API Settings
    API_DEBUG: bool = os.getenv("API_DEBUG", "false").lower() == "true"
    API_HOST: str = os.getenv("API_HOST", "0.0.0.0")
    API_PORT: int = _env_int("API_PORT", 8080)
    ENVIRONMENT: str = os.getenv("ENVIRONMENT", "development")
    ALLOWED_ORIGINS: List[str] = _env_list("ALLOWED_ORIGINS", "http://localhost:5173")

    # Tokens
    JWT_SECRET: str = os.getenv("JWT_SECRET", DEFAULT_JWT_SECRET)
    JWT_ALGORITHM: str = os.getenv("JWT_ALGORITHM", "HS256")
    JWT_ISSUER: str = "gatekeeper-api"
    JWT_EXPIRATION: timedelta = parse_duration(os.getenv("JWT_EXPIRATION"), timedelta(minutes=30))
    REFRESH_TOKEN_EXPIRATION: timedelta = parse_duration(
        os.getenv("REFRESH_TOKEN_EXPIRATION"), timedelta(days=7)
    )

    # Passwords
    PASSWORD_MIN_LENGTH: int = _env_int("PASSWORD_MIN_LENGTH", 8)

    # Rate Limiting
    RATE_LIMIT_REQUESTS: int = _env_int("RATE_LIMIT_REQUESTS", 100)
    RATE_LIMIT_WINDOW: timedelta = parse_duration(os.getenv("RATE_LIMIT_WINDOW"), timedelta(seconds=60))
    RATE_LIMIT_CLEANUP_INTERVAL: timedelta = parse_duration(
        os.getenv("RATE_LIMIT_CLEANUP_INTERVAL"), timedelta(hours=1)
    )
    RATE_LIMIT_ENABLED: bool = os.getenv("RATE_LIMIT_ENABLED", "true").lower() == "true"

    # Logging
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()

    def is_production(self) -> bool:
        return self.ENVIRONMENT == "production"

    def validate(self) -> None:
        """Refuse to boot a production process with unsafe settings."""
        if self.is_production() and self.JWT_SECRET == DEFAULT_JWT_SECRET:
            raise ConfigurationError("JWT_SECRET must be set in production")
        if self.JWT_ALGORITHM not in ("HS256", "HS384", "HS512"):
            raise ConfigurationError(f"Unsupported JWT_ALGORITHM: {self.JWT_ALGORITHM}")
        if self.RATE_LIMIT_REQUESTS <= 0:
            raise ConfigurationError("RATE_LIMIT_REQUESTS must be positive")

config = Config()
