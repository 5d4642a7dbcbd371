"""
Query parameter parsing.
"""

from datetime import datetime, timezone

import pytest

from gatekeeper.utils.exceptions import ValidationError
from gatekeeper.utils.validators import parse_since


def test_absent_since_means_everything():
    assert parse_since(None) is None
    assert parse_since("  ") is None


@pytest.mark.parametrize("value", ["2024-05-01T10:00:00Z", "2024-05-01T12:00:00+02:00"])
def test_rfc3339_is_normalized_to_utc(value):
    assert parse_since(value) == datetime(2024, 5, 1, 10, 0, tzinfo=timezone.utc)


@pytest.mark.parametrize("value", ["yesterday", "2024-13-01T00:00:00Z", "2024-05-01T10:00:00"])
def test_malformed_since_is_a_client_error(value):
    with pytest.raises(ValidationError):
        parse_since(value)


@pytest.mark.parametrize("value,micro", [
    ("2024-05-01T10:00:00.123456789Z", 123456),
    ("2024-05-01T10:00:00.5Z", 500000),
    ("2024-05-01T10:00:00.1234+00:00", 123400),
])
def test_fractional_seconds_of_any_precision(value, micro):
    assert parse_since(value) == datetime(2024, 5, 1, 10, 0, 0, micro, tzinfo=timezone.utc)
