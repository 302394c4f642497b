"""Tests for runtime settings."""

import pytest
from storefront.config import ONE_YEAR_SECONDS, load_settings, validate_currency


class TestLoadSettings:
    def test_defaults(self, monkeypatch):
        for name in ("STORE_CURRENCY", "SESSION_COOKIE_NAME", "SESSION_COOKIE_MAX_AGE", "PAYMENT_GATEWAY"):
            monkeypatch.delenv(name, raising=False)
        settings = load_settings()
        assert settings.currency == "usd"
        assert settings.session_cookie_name == "session_id"
        assert settings.session_cookie_max_age == ONE_YEAR_SECONDS
        assert settings.payment_gateway == "fake"

    def test_secure_cookies_only_in_deployed_environments(self, monkeypatch):
        monkeypatch.setenv("PAYMENT_GATEWAY", "stripe")
        monkeypatch.setenv("PROTEAN_ENV", "production")
        assert load_settings().secure_cookies is True
        monkeypatch.setenv("PROTEAN_ENV", "test")
        assert load_settings().secure_cookies is False

    def test_unknown_gateway_rejected(self, monkeypatch):
        monkeypatch.setenv("PAYMENT_GATEWAY", "paypal")
        with pytest.raises(ValueError):
            load_settings()

    @pytest.mark.parametrize("environment", ["production", "staging"])
    def test_deployed_environments_require_stripe(self, monkeypatch, environment):
        monkeypatch.setenv("PROTEAN_ENV", environment)
        monkeypatch.delenv("PAYMENT_GATEWAY", raising=False)
        with pytest.raises(ValueError, match="stripe"):
            load_settings()

        monkeypatch.setenv("PAYMENT_GATEWAY", "fake")
        with pytest.raises(ValueError, match="stripe"):
            load_settings()


class TestValidateCurrency:
    def test_normalizes_case(self):
        assert validate_currency("EUR") == "eur"

    @pytest.mark.parametrize("value", ["us", "dollars", "12a"])
    def test_rejects_non_iso_codes(self, value):
        with pytest.raises(ValueError):
            validate_currency(value)
