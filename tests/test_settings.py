"""
Settings Tests - Defaults, Environment Overrides and Validation
"""
import pytest  # Testing framework for writing and running tests
from pydantic import ValidationError

from btcperf.config.settings import Settings


class TestSettings:
    def test_defaults(self, monkeypatch):
        monkeypatch.delenv("PRICE_CURRENCIES", raising=False)
        s = Settings(_env_file=None)
        assert s.CURRENCIES == ["eur", "usd", "chf", "czk"]
        assert s.CURRENT_PRICE_TTL_SECONDS == 15 * 60
        assert s.rate_limit_cooldown_seconds == 60
        assert s.MIN_REQUEST_SPACING_SECONDS == 0.05
        assert "429" in s.THROTTLE_INDICATORS

    def test_environment_override(self, monkeypatch):
        monkeypatch.setenv("PRICE_CURRENCIES", "EUR, GBP")
        monkeypatch.setenv("RATE_LIMIT_COOLDOWN_SECONDS", "120")
        monkeypatch.setenv("LOG_LEVEL", "debug")
        s = Settings(_env_file=None)
        assert s.CURRENCIES == ["eur", "gbp"]
        assert s.rate_limit_cooldown_seconds == 120
        assert s.log_level == "DEBUG"

    def test_invalid_currency_rejected(self, monkeypatch):
        monkeypatch.setenv("PRICE_CURRENCIES", "euro")
        with pytest.raises(ValidationError):
            Settings(_env_file=None)

    def test_invalid_log_level_rejected(self, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "LOUD")
        with pytest.raises(ValidationError):
            Settings(_env_file=None)
