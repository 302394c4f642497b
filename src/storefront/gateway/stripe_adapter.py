"""Stripe payment gateway adapter.

Uses the stripe-python SDK to open PaymentIntents and to verify webhook
signatures. Keys are passed per request so no global SDK state is touched.
"""

import json

import stripe

from storefront.domain import logger
from storefront.errors import InvalidWebhook, UpstreamFailure
from storefront.gateway.port import PaymentGateway, PaymentIntent, WebhookEvent

# Transport and provider-side errors; everything else is a rejected request.
_RETRYABLE_ERRORS = (stripe.APIConnectionError, stripe.RateLimitError, stripe.APIError)


class StripeGateway(PaymentGateway):
    """Production Stripe gateway adapter."""

    def __init__(self, api_key: str, webhook_secret: str, tolerance: int = 300) -> None:
        if not api_key:
            raise ValueError("STRIPE_SECRET_KEY is required for the stripe gateway")
        if not webhook_secret:
            raise ValueError("STRIPE_WEBHOOK_SECRET is required for the stripe gateway")
        self.api_key = api_key
        self.webhook_secret = webhook_secret
        self.tolerance = tolerance

    def create_payment_intent(
        self,
        amount_cents: int,
        currency: str,
        metadata: dict[str, str],
        idempotency_key: str | None = None,
    ) -> PaymentIntent:
        params = {
            "api_key": self.api_key,
            "amount": amount_cents,
            "currency": currency,
            "metadata": metadata,
            "automatic_payment_methods": {"enabled": True},
        }
        if idempotency_key:
            params["idempotency_key"] = idempotency_key

        try:
            intent = stripe.PaymentIntent.create(**params)
        except stripe.StripeError as exc:
            retryable = isinstance(exc, _RETRYABLE_ERRORS)
            logger.error(
                "stripe.payment_intent_failed",
                error_type=type(exc).__name__,
                error=exc.user_message or str(exc),
                retryable=retryable,
            )
            raise UpstreamFailure("Could not start the payment. Please try again.", retryable=retryable) from exc

        return PaymentIntent(
            id=intent.id,
            client_secret=intent.client_secret,
            amount_cents=intent.amount,
            currency=intent.currency,
            metadata={key: str(value) for key, value in (intent.metadata or {}).items()},
            status=intent.status,
        )

    def construct_event(self, payload: bytes, signature: str) -> WebhookEvent:
        try:
            stripe.Webhook.construct_event(payload, signature, self.webhook_secret, tolerance=self.tolerance)
        except stripe.SignatureVerificationError as exc:
            raise InvalidWebhook("Webhook signature does not match") from exc
        except ValueError as exc:
            raise InvalidWebhook(f"Invalid webhook payload: {exc}") from exc

        # The signature covers the raw bytes; decode them into plain dicts.
        try:
            return WebhookEvent.from_envelope(json.loads(payload))
        except ValueError as exc:
            raise InvalidWebhook(f"Invalid webhook payload: {exc}") from exc
