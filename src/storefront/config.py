"""Runtime settings read from the environment.

Protean's own configuration (databases, brokers, event store) lives in
``domain.toml``; this module covers everything the storefront reads directly.
"""

import os
from dataclasses import dataclass

ONE_YEAR_SECONDS = 60 * 60 * 24 * 365

_SECURE_ENVIRONMENTS = frozenset({"production", "staging"})
_GATEWAYS = frozenset({"fake", "stripe"})
# Environments where the fake gateway may sign with its built-in secret
LOCAL_ENVIRONMENTS = frozenset({"development", "test"})


@dataclass(frozen=True)
class Settings:
    environment: str = "development"
    currency: str = "usd"
    session_cookie_name: str = "session_id"
    session_cookie_max_age: int = ONE_YEAR_SECONDS
    payment_gateway: str = "fake"
    stripe_secret_key: str | None = None
    stripe_webhook_secret: str | None = None
    webhook_tolerance: int = 300
    total_tolerance_cents: int = 1

    @property
    def secure_cookies(self) -> bool:
        return self.environment in _SECURE_ENVIRONMENTS


def validate_currency(value: str | None) -> str:
    currency = (value or "usd").strip().lower()
    if len(currency) != 3 or not currency.isalpha():
        raise ValueError(f"Invalid currency code: {value!r} (expected ISO 4217)")
    return currency


def load_settings() -> Settings:
    """Build settings from environment variables."""
    gateway = os.environ.get("PAYMENT_GATEWAY", "fake").strip().lower()
    if gateway not in _GATEWAYS:
        raise ValueError(f"Unknown payment gateway: {gateway}")

    environment = os.environ.get("PROTEAN_ENV", "development").lower()
    if environment in _SECURE_ENVIRONMENTS and gateway != "stripe":
        raise ValueError(f"PAYMENT_GATEWAY must be 'stripe' in {environment}, got '{gateway}'")

    return Settings(
        environment=environment,
        currency=validate_currency(os.environ.get("STORE_CURRENCY")),
        session_cookie_name=os.environ.get("SESSION_COOKIE_NAME", "session_id"),
        session_cookie_max_age=int(os.environ.get("SESSION_COOKIE_MAX_AGE", ONE_YEAR_SECONDS)),
        payment_gateway=gateway,
        stripe_secret_key=os.environ.get("STRIPE_SECRET_KEY") or None,
        stripe_webhook_secret=os.environ.get("STRIPE_WEBHOOK_SECRET") or None,
        webhook_tolerance=int(os.environ.get("WEBHOOK_TOLERANCE_SECONDS", 300)),
    )


_current_settings: Settings | None = None


def get_settings() -> Settings:
    """Return the process-wide settings, loading them on first use."""
    global _current_settings
    if _current_settings is None:
        _current_settings = load_settings()
    return _current_settings


def reset_settings() -> None:
    """Forget cached settings so the next call re-reads the environment."""
    global _current_settings
    _current_settings = None
