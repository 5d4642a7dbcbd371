# =======================================================================================
# gatekeeper/services/credentials.py - Password Hashing and Strength Policy
# =======================================================================================
import logging
import re
from passlib.context import CryptContext
from passlib.exc import UnknownHashError

from ..utils.exceptions import WeakPasswordError

logger = logging.getLogger(__name__)

pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")

_HAS_LETTER = re.compile(r"[A-Za-z]")
_HAS_DIGIT = re.compile(r"\d")


class CredentialVerifier:
    """Hashes and verifies passwords. Storage of the digest is the store's job."""

    def __init__(self, min_length: int = 8):
        self.min_length = min_length

    def validate_password_strength(self, password: str) -> None:
        if len(password) < self.min_length:
            raise WeakPasswordError(f"Password must be at least {self.min_length} characters")
        if not _HAS_LETTER.search(password):
            raise WeakPasswordError("Password must contain at least one letter")
        if not _HAS_DIGIT.search(password):
            raise WeakPasswordError("Password must contain at least one number")

    def hash_password(self, password: str) -> str:
        self.validate_password_strength(password)
        return pwd_context.hash(password)

    def verify_password(self, plain_password: str, hashed_password: str) -> bool:
        """Constant-time check; a malformed digest counts as a mismatch."""
        if not hashed_password:
            return False
        try:
            return pwd_context.verify(plain_password, hashed_password)
        except (UnknownHashError, ValueError, TypeError) as e:
            logger.warning("Stored password digest could not be verified: %s", e)
            return False
