"""Configurable fake payment gateway for development and testing.

This adapter simulates the payment provider without any external calls.
It can be configured at runtime to succeed or fail, and signs/verifies
webhook payloads with the same ``t=<timestamp>,v1=<hmac>`` scheme Stripe
uses, so the webhook endpoint can be exercised end to end.
"""

import hashlib
import hmac
import json
import time
from dataclasses import replace
from uuid import uuid4

from storefront.errors import InvalidWebhook, UpstreamFailure
from storefront.gateway.port import (
    PAYMENT_INTENT_SUCCEEDED,
    PaymentGateway,
    PaymentIntent,
    WebhookEvent,
    metadata_violations,
)

DEFAULT_WEBHOOK_SECRET = "whsec_test_secret"


def compute_signature(payload: bytes, secret: str, timestamp: int) -> str:
    signed = f"{timestamp}.".encode() + payload
    return hmac.new(secret.encode(), signed, hashlib.sha256).hexdigest()


def parse_signature_header(header: str) -> tuple[int, list[str]]:
    timestamp = None
    signatures = []
    for part in (header or "").split(","):
        key, _, value = part.strip().partition("=")
        if key == "t":
            try:
                timestamp = int(value)
            except ValueError:
                timestamp = None
        elif key == "v1" and value:
            signatures.append(value)
    if timestamp is None or not signatures:
        raise InvalidWebhook("Malformed signature header")
    return timestamp, signatures


class FakeGateway(PaymentGateway):
    """Configurable fake payment gateway."""

    def __init__(self, webhook_secret: str = DEFAULT_WEBHOOK_SECRET, tolerance: int = 300) -> None:
        self.webhook_secret = webhook_secret
        self.tolerance = tolerance
        self.should_succeed: bool = True
        self.failure_reason: str = "Payment provider unavailable"
        self.retryable: bool = True
        self.calls: list[dict] = []
        self.intents: dict[str, PaymentIntent] = {}
        self._by_idempotency_key: dict[str, str] = {}

    def configure(
        self,
        should_succeed: bool,
        failure_reason: str = "Payment provider unavailable",
        retryable: bool = True,
    ) -> None:
        """Configure gateway behavior at runtime."""
        self.should_succeed = should_succeed
        self.failure_reason = failure_reason
        self.retryable = retryable

    def create_payment_intent(
        self,
        amount_cents: int,
        currency: str,
        metadata: dict[str, str],
        idempotency_key: str | None = None,
    ) -> PaymentIntent:
        self.calls.append(
            {
                "method": "create_payment_intent",
                "amount_cents": amount_cents,
                "currency": currency,
                "metadata": dict(metadata),
                "idempotency_key": idempotency_key,
            }
        )

        if not self.should_succeed:
            raise UpstreamFailure(self.failure_reason, retryable=self.retryable)

        problems = metadata_violations(metadata)
        if problems:
            # Stripe rejects these with an InvalidRequestError
            raise UpstreamFailure(f"Invalid payment intent metadata: {'; '.join(problems)}", retryable=False)

        if idempotency_key and idempotency_key in self._by_idempotency_key:
            return self.intents[self._by_idempotency_key[idempotency_key]]

        intent_id = f"pi_fake_{uuid4().hex[:16]}"
        intent = PaymentIntent(
            id=intent_id,
            client_secret=f"{intent_id}_secret_{uuid4().hex[:12]}",
            amount_cents=amount_cents,
            currency=currency,
            metadata=dict(metadata),
        )
        self.intents[intent_id] = intent
        if idempotency_key:
            self._by_idempotency_key[idempotency_key] = intent_id
        return intent

    # -------------------------------------------------------------------
    # Webhooks
    # -------------------------------------------------------------------
    def sign(self, payload: bytes | str, timestamp: int | None = None) -> str:
        """Return a valid signature header for ``payload``."""
        if isinstance(payload, str):
            payload = payload.encode()
        ts = int(time.time()) if timestamp is None else timestamp
        return f"t={ts},v1={compute_signature(payload, self.webhook_secret, ts)}"

    def build_event(
        self,
        intent_id: str,
        event_type: str = PAYMENT_INTENT_SUCCEEDED,
        metadata: dict[str, str] | None = None,
    ) -> bytes:
        """Serialize a provider-style envelope for a stored intent."""
        intent = self.intents[intent_id]
        if metadata is not None:
            intent = replace(intent, metadata=dict(metadata))
        status = "succeeded" if event_type == PAYMENT_INTENT_SUCCEEDED else intent.status
        envelope = {
            "id": f"evt_fake_{uuid4().hex[:16]}",
            "object": "event",
            "type": event_type,
            "created": int(time.time()),
            "data": {
                "object": {
                    "id": intent.id,
                    "object": "payment_intent",
                    "amount": intent.amount_cents,
                    "amount_received": intent.amount_cents if status == "succeeded" else 0,
                    "currency": intent.currency,
                    "status": status,
                    "metadata": intent.metadata,
                }
            },
        }
        return json.dumps(envelope).encode()

    def construct_event(self, payload: bytes, signature: str) -> WebhookEvent:
        timestamp, signatures = parse_signature_header(signature)
        expected = compute_signature(payload, self.webhook_secret, timestamp)
        if not any(hmac.compare_digest(expected, candidate) for candidate in signatures):
            raise InvalidWebhook("Webhook signature does not match")
        if self.tolerance and abs(time.time() - timestamp) > self.tolerance:
            raise InvalidWebhook("Webhook timestamp is outside the tolerance window")

        try:
            return WebhookEvent.from_envelope(json.loads(payload))
        except ValueError as exc:
            raise InvalidWebhook(f"Invalid webhook payload: {exc}") from exc
