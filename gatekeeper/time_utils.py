# =======================================================================================
# gatekeeper/time_utils.py - Timestamp Helpers
# =======================================================================================
import re
from datetime import datetime, timezone
from typing import Optional

# Fixed width so that string order equals chronological order in the store.
STORAGE_FORMAT = "%Y-%m-%dT%H:%M:%S.%fZ"
_FRACTION_RE = re.compile(r"\.(\d+)")


def utcnow() -> datetime:
    """Server-side 'now', timezone-aware UTC."""
    return datetime.now(timezone.utc)


def ensure_utc(dt: datetime) -> datetime:
    """Naive datetimes are interpreted as UTC."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def parse_rfc3339(value: str) -> datetime:
    """
    Parse an RFC 3339 date-time ('2024-05-01T10:00:00Z', '...+02:00').

    Raises ValueError when the value is not a date-time or carries no offset.
    """
    s = value.strip()
    if s.endswith(("Z", "z")):
        s = s[:-1] + "+00:00"
    # Fractions are normalized to microseconds (clients may send nanoseconds).
    s = _FRACTION_RE.sub(lambda m: "." + m.group(1)[:6].ljust(6, "0"), s, count=1)
    dt = datetime.fromisoformat(s)
    if dt.tzinfo is None:
        raise ValueError("timestamp must carry a UTC offset")
    return dt.astimezone(timezone.utc)


def to_storage(dt: Optional[datetime]) -> Optional[str]:
    if dt is None:
        return None
    return ensure_utc(dt).strftime(STORAGE_FORMAT)


def from_storage(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    return datetime.strptime(value, STORAGE_FORMAT).replace(tzinfo=timezone.utc)


def to_wire(dt: Optional[datetime]) -> Optional[str]:
    """Serialize for JSON/CSV output as RFC 3339 with a trailing 'Z'."""
    if dt is None:
        return None
    return ensure_utc(dt).isoformat().replace("+00:00", "Z")
