"""Order finalization — turns a payment confirmation into an order.

Each notification moves through Received → Parsed → Validated → Persisted →
CartCleared → Done and may stop early at any stage. The order data comes
only from the intent metadata written at checkout; the cart may have changed
since then and is not consulted.

Failures are split by whether a redelivery could help:

- ``IncompleteOrderData``: the metadata can never become complete, nothing
  is stored and the notification is acknowledged.
- ``UpstreamFailure(retryable=True)``: the order could not be stored, the
  provider should deliver again.
- A replayed notification finds the existing order and is acknowledged as a
  duplicate without touching the cart.
"""

import json
from dataclasses import dataclass, field
from enum import Enum

from protean.exceptions import ValidationError
from protean.utils.globals import current_domain

from storefront.cart.management import ClearCart
from storefront.config import get_settings
from storefront.domain import logger
from storefront.errors import IncompleteOrderData, UpstreamFailure
from storefront.gateway.port import PAYMENT_INTENT_SUCCEEDED, WebhookEvent
from storefront.order.order import Order
from storefront.order.placement import PlaceOrder

REQUIRED_FIELDS = (
    "customer_first_name",
    "customer_last_name",
    "shipping_address",
    "shipping_city",
    "shipping_state",
    "shipping_zip",
)


class Stage(Enum):
    RECEIVED = "Received"
    PARSED = "Parsed"
    VALIDATED = "Validated"
    PERSISTED = "Persisted"
    CART_CLEARED = "CartCleared"
    DONE = "Done"


class Outcome(Enum):
    IGNORED = "ignored"
    PLACED = "placed"
    DUPLICATE = "duplicate"


@dataclass(frozen=True)
class FinalizationResult:
    outcome: Outcome
    stage: Stage
    order_id: str | None = None
    cart_cleared: bool = False


def _clean(value) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _cents(value, field_name: str) -> int:
    if value is None or value == "":
        return 0
    try:
        return int(value)
    except (TypeError, ValueError):
        logger.warning("webhook.invalid_amount", field=field_name, value=value)
        return 0


def join_items(metadata: dict) -> str | None:
    """Reassemble serialized line items split over ``items_<n>`` keys.

    Metadata without ``items_chunks`` carries the list whole under ``items``.
    A missing piece makes the list unreadable and yields ``None``.
    """
    count = metadata.get("items_chunks")
    if count in (None, ""):
        return metadata.get("items")
    try:
        keys = [f"items_{index}" for index in range(int(count))]
    except (TypeError, ValueError):
        logger.warning("webhook.items_unparseable", items_chunks=count)
        return None
    missing = [key for key in keys if key not in metadata]
    if missing:
        logger.warning("webhook.items_chunk_missing", missing=missing)
        return None
    return "".join(str(metadata[key]) for key in keys)


def parse_items(raw) -> list[dict]:
    """Decode the serialized line items; malformed input yields no items."""
    if not raw:
        return []
    try:
        entries = json.loads(raw) if isinstance(raw, str) else raw
    except ValueError:
        logger.warning("webhook.items_unparseable", raw=str(raw)[:200])
        return []
    if not isinstance(entries, list):
        logger.warning("webhook.items_unparseable", raw=str(raw)[:200])
        return []

    items = []
    for entry in entries:
        try:
            product_id = str(entry["id"])
            quantity = int(entry["quantity"])
            unit_price_cents = int(entry["price_cents"])
        except (KeyError, TypeError, ValueError):
            logger.warning("webhook.item_skipped", entry=entry)
            continue
        if quantity < 1 or unit_price_cents < 0:
            logger.warning("webhook.item_skipped", entry=entry)
            continue
        items.append(
            {
                "product_id": product_id,
                "name": _clean(entry.get("name")) or product_id,
                "unit_price_cents": unit_price_cents,
                "quantity": quantity,
            }
        )
    return items


@dataclass(frozen=True)
class OrderDraft:
    """Order fields recovered from intent metadata."""

    customer_first_name: str
    customer_last_name: str
    shipping_address: str
    shipping_city: str
    shipping_state: str
    shipping_zip: str
    session_id: str | None = None
    customer_email: str | None = None
    shipping_apartment: str | None = None
    shipping_phone: str | None = None
    shipping_zone: str = "N/A"
    shipping_description: str | None = None
    subtotal_cents: int = 0
    shipping_cost_cents: int = 0
    items: list[dict] = field(default_factory=list)

    @classmethod
    def from_metadata(cls, metadata: dict) -> "OrderDraft":
        missing = [name for name in REQUIRED_FIELDS if _clean(metadata.get(name)) is None]
        if missing:
            raise IncompleteOrderData(missing)

        return cls(
            **{name: _clean(metadata[name]) for name in REQUIRED_FIELDS},
            session_id=_clean(metadata.get("session_id")),
            customer_email=_clean(metadata.get("customer_email")),
            shipping_apartment=_clean(metadata.get("shipping_apartment")),
            shipping_phone=_clean(metadata.get("shipping_phone")),
            shipping_zone=_clean(metadata.get("shipping_zone")) or "N/A",
            shipping_description=_clean(metadata.get("shipping_description")),
            subtotal_cents=_cents(metadata.get("subtotal_cents"), "subtotal_cents"),
            shipping_cost_cents=_cents(metadata.get("shipping_cost_cents"), "shipping_cost_cents"),
            items=parse_items(join_items(metadata)),
        )


def charged_amount(data_object: dict) -> int:
    amount = data_object.get("amount")
    if isinstance(amount, bool) or not isinstance(amount, int) or amount < 0:
        raise IncompleteOrderData(["amount"])
    return amount


class OrderFinalizer:
    def handle(self, event: WebhookEvent) -> FinalizationResult:
        # The gateway has already authenticated and decoded the envelope
        if event.type != PAYMENT_INTENT_SUCCEEDED:
            logger.info("webhook.ignored", event_id=event.id, event_type=event.type)
            return FinalizationResult(outcome=Outcome.IGNORED, stage=Stage.PARSED)

        payment_intent_id = _clean(event.object_id)
        if payment_intent_id is None:
            raise IncompleteOrderData(["payment_intent_id"])

        draft = OrderDraft.from_metadata(event.metadata)
        total_cents = charged_amount(event.data_object)
        currency = _clean(event.data_object.get("currency")) or get_settings().currency

        created = self._persist(payment_intent_id, draft, total_cents, currency.lower())
        if not created:
            logger.info("webhook.duplicate", event_id=event.id, payment_intent_id=payment_intent_id)
            return FinalizationResult(outcome=Outcome.DUPLICATE, stage=Stage.PERSISTED, order_id=payment_intent_id)

        logger.info(
            "webhook.order_placed",
            event_id=event.id,
            payment_intent_id=payment_intent_id,
            total_cents=total_cents,
            item_count=sum(item["quantity"] for item in draft.items),
        )

        cart_cleared = self._clear_cart(payment_intent_id, draft.session_id)
        return FinalizationResult(
            outcome=Outcome.PLACED,
            stage=Stage.DONE,
            order_id=payment_intent_id,
            cart_cleared=cart_cleared,
        )

    def _persist(self, payment_intent_id: str, draft: OrderDraft, total_cents: int, currency: str) -> bool:
        try:
            command = PlaceOrder(
                payment_intent_id=payment_intent_id,
                session_id=draft.session_id,
                total_cents=total_cents,
                currency=currency,
                subtotal_cents=draft.subtotal_cents,
                shipping_cost_cents=draft.shipping_cost_cents,
                shipping_zone=draft.shipping_zone,
                shipping_description=draft.shipping_description,
                customer_email=draft.customer_email,
                customer_first_name=draft.customer_first_name,
                customer_last_name=draft.customer_last_name,
                shipping_address=draft.shipping_address,
                shipping_apartment=draft.shipping_apartment,
                shipping_city=draft.shipping_city,
                shipping_state=draft.shipping_state,
                shipping_zip=draft.shipping_zip,
                shipping_phone=draft.shipping_phone,
                items=json.dumps(draft.items),
            )
        except ValidationError as exc:
            raise IncompleteOrderData(sorted(exc.messages)) from exc

        try:
            placement = current_domain.process(command, asynchronous=False)
        except ValidationError as exc:
            # Values the order itself refuses will be refused on every redelivery
            logger.error("webhook.order_rejected", payment_intent_id=payment_intent_id, errors=exc.messages)
            raise IncompleteOrderData(sorted(exc.messages)) from exc
        except Exception as exc:
            # A concurrent delivery may have inserted the order first
            if current_domain.repository_for(Order).find_by_payment_intent(payment_intent_id) is not None:
                return False
            logger.error(
                "webhook.persist_failed",
                payment_intent_id=payment_intent_id,
                error_type=type(exc).__name__,
                error=str(exc),
            )
            raise UpstreamFailure("Order could not be stored", retryable=True) from exc
        return placement.created

    def _clear_cart(self, payment_intent_id: str, session_id: str | None) -> bool:
        if not session_id:
            logger.warning("webhook.no_session_id", payment_intent_id=payment_intent_id)
            return False
        try:
            current_domain.process(ClearCart(session_id=session_id), asynchronous=False)
        except Exception as exc:
            logger.error(
                "webhook.cart_clear_failed",
                payment_intent_id=payment_intent_id,
                session_id=session_id,
                error_type=type(exc).__name__,
                error=str(exc),
            )
            return False
        return True
