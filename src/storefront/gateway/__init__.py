"""Payment gateway factory.

Provides get_gateway() / set_gateway() to swap implementations:
- FakeGateway for development and testing (refused in staging and production)
- StripeGateway when ``PAYMENT_GATEWAY=stripe``
"""

from storefront.config import LOCAL_ENVIRONMENTS, get_settings
from storefront.gateway.fake_adapter import FakeGateway
from storefront.gateway.port import PaymentGateway

_current_gateway: PaymentGateway | None = None


def build_gateway() -> PaymentGateway:
    """Instantiate the adapter selected by the settings."""
    settings = get_settings()
    if settings.payment_gateway == "stripe":
        from storefront.gateway.stripe_adapter import StripeGateway

        return StripeGateway(
            api_key=settings.stripe_secret_key,
            webhook_secret=settings.stripe_webhook_secret,
            tolerance=settings.webhook_tolerance,
        )
    if settings.stripe_webhook_secret:
        return FakeGateway(webhook_secret=settings.stripe_webhook_secret, tolerance=settings.webhook_tolerance)
    if settings.environment not in LOCAL_ENVIRONMENTS:
        raise ValueError(
            f"The fake gateway needs STRIPE_WEBHOOK_SECRET outside development and test (environment: {settings.environment})"
        )
    return FakeGateway(tolerance=settings.webhook_tolerance)


def get_gateway() -> PaymentGateway:
    """Return the current payment gateway, building it on first use."""
    global _current_gateway
    if _current_gateway is None:
        _current_gateway = build_gateway()
    return _current_gateway


def set_gateway(gateway: PaymentGateway) -> None:
    """Override the active payment gateway (useful for tests)."""
    global _current_gateway
    _current_gateway = gateway


def reset_gateway() -> None:
    """Reset to default gateway."""
    global _current_gateway
    _current_gateway = None
