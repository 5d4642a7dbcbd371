# =======================================================================================
# gatekeeper/utils/validators.py - Validation Helpers
# =======================================================================================
from datetime import datetime
from typing import Optional

from ..time_utils import parse_rfc3339
from .exceptions import ValidationError


def parse_since(value: Optional[str]) -> Optional[datetime]:
    """
    Parse the `since` query parameter of a delta pull.

    Absent or blank means "everything"; a value that is not an RFC 3339
    date-time with an offset is a client error.
    """
    if value is None or not value.strip():
        return None
    try:
        return parse_rfc3339(value)
    except ValueError as e:
        raise ValidationError("Invalid since timestamp; expected RFC 3339") from e
