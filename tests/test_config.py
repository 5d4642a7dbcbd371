"""
Configuration parsing and boot-time validation.
"""

from datetime import timedelta

import pytest

from gatekeeper.config import DEFAULT_JWT_SECRET, Config, parse_duration
from gatekeeper.utils.exceptions import ConfigurationError


class TestParseDuration:
    @pytest.mark.parametrize("value,expected", [
        ("30m", timedelta(minutes=30)),
        ("7d", timedelta(days=7)),
        ("1h", timedelta(hours=1)),
        ("45s", timedelta(seconds=45)),
        ("60", timedelta(seconds=60)),
    ])
    def test_valid_values(self, value, expected):
        assert parse_duration(value, timedelta(0)) == expected

    @pytest.mark.parametrize("value", [None, "", "soon", "5w", "-1h"])
    def test_invalid_values_fall_back(self, value):
        assert parse_duration(value, timedelta(minutes=3)) == timedelta(minutes=3)


class TestValidate:
    def test_defaults_are_valid_in_development(self):
        settings = Config()
        settings.ENVIRONMENT = "development"
        settings.JWT_SECRET = DEFAULT_JWT_SECRET
        settings.validate()

    def test_production_requires_secret(self):
        settings = Config()
        settings.ENVIRONMENT = "production"
        settings.JWT_SECRET = DEFAULT_JWT_SECRET
        with pytest.raises(ConfigurationError):
            settings.validate()

        settings.JWT_SECRET = "a-real-secret"
        settings.validate()
        assert settings.is_production()

    def test_asymmetric_algorithm_is_refused(self):
        settings = Config()
        settings.JWT_ALGORITHM = "RS256"
        with pytest.raises(ConfigurationError):
            settings.validate()

    def test_rate_limit_must_be_positive(self):
        settings = Config()
        settings.RATE_LIMIT_REQUESTS = 0
        with pytest.raises(ConfigurationError):
            settings.validate()
