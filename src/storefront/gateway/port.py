"""Payment gateway port (abstract interface).

Defines the contract the storefront relies on from the payment provider:
open a payment intent for an authoritative amount, and authenticate the
asynchronous notifications the provider sends back. Adapters translate
provider errors into ``UpstreamFailure`` and ``InvalidWebhook``.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any

PAYMENT_INTENT_SUCCEEDED = "payment_intent.succeeded"

# Provider limits on intent metadata
METADATA_MAX_KEYS = 50
METADATA_KEY_MAX_LENGTH = 40
METADATA_VALUE_MAX_LENGTH = 500


def metadata_violations(metadata: dict[str, str]) -> list[str]:
    """Describe every way ``metadata`` exceeds the provider limits."""
    problems = []
    if len(metadata) > METADATA_MAX_KEYS:
        problems.append(f"{len(metadata)} keys (max {METADATA_MAX_KEYS})")
    for key, value in metadata.items():
        if len(key) > METADATA_KEY_MAX_LENGTH:
            problems.append(f"key '{key}' longer than {METADATA_KEY_MAX_LENGTH} characters")
        if len(str(value)) > METADATA_VALUE_MAX_LENGTH:
            problems.append(f"value of '{key}' longer than {METADATA_VALUE_MAX_LENGTH} characters")
    return problems


@dataclass(frozen=True)
class PaymentIntent:
    """A payment intent as created by the provider."""

    id: str
    client_secret: str
    amount_cents: int
    currency: str
    metadata: dict[str, str] = field(default_factory=dict)
    status: str = "requires_payment_method"


@dataclass(frozen=True)
class WebhookEvent:
    """An authenticated notification envelope."""

    id: str
    type: str
    data_object: dict[str, Any] = field(default_factory=dict)

    @property
    def object_id(self) -> str | None:
        return self.data_object.get("id")

    @property
    def metadata(self) -> dict[str, Any]:
        return self.data_object.get("metadata") or {}

    @classmethod
    def from_envelope(cls, envelope: dict[str, Any]) -> "WebhookEvent":
        """Build from a decoded provider envelope (``{"id", "type", "data": {"object": {...}}}``)."""
        if not isinstance(envelope, dict):
            raise ValueError("Event envelope must be a JSON object")
        event_type = envelope.get("type")
        if not isinstance(event_type, str) or not event_type:
            raise ValueError("Event envelope has no type")
        data = envelope.get("data") or {}
        data_object = data.get("object") if isinstance(data, dict) else None
        if not isinstance(data_object, dict):
            raise ValueError("Event envelope has no data object")
        return cls(id=str(envelope.get("id") or ""), type=event_type, data_object=data_object)


class PaymentGateway(ABC):
    """Abstract payment gateway interface."""

    @abstractmethod
    def create_payment_intent(
        self,
        amount_cents: int,
        currency: str,
        metadata: dict[str, str],
        idempotency_key: str | None = None,
    ) -> PaymentIntent:
        """Open a payment intent for ``amount_cents``."""
        ...

    @abstractmethod
    def construct_event(self, payload: bytes, signature: str) -> WebhookEvent:
        """Verify the signature of a notification and decode its envelope."""
        ...
