"""Payment-intent builder.

Loads the session cart, re-prices every line against the catalogue, adds
shipping and asks the payment gateway for an intent carrying the validated
order data in its metadata. The amount charged is always derived here; any
total the client sends is only cross-checked.
"""

import hashlib
import json
from dataclasses import dataclass

from protean.utils.globals import current_domain

from storefront.cart.cart_item import CartItem
from storefront.catalogue.products import get_catalogue
from storefront.config import get_settings
from storefront.domain import logger
from storefront.errors import EmptyCart, InvalidInput, InvalidTotal, NoSession, ProductUnavailable
from storefront.gateway import get_gateway
from storefront.gateway.port import METADATA_VALUE_MAX_LENGTH
from storefront.shipping.estimator import ShippingQuote, estimate_shipping, normalize_region


@dataclass(frozen=True)
class ShippingSelection:
    region: str | None = None
    # Cost the shopper was shown, in major units
    quoted_cost: float | None = None


@dataclass(frozen=True)
class ShippingAddress:
    first_name: str
    last_name: str
    address: str
    city: str
    state: str
    zip: str
    email: str | None = None
    apartment: str | None = None
    phone: str | None = None


@dataclass(frozen=True)
class PricedLine:
    product_id: str
    name: str
    unit_price_cents: int
    quantity: int
    weight_oz: int

    @property
    def line_total_cents(self) -> int:
        return self.unit_price_cents * self.quantity


@dataclass(frozen=True)
class PricedBasket:
    lines: tuple[PricedLine, ...]
    shipping: ShippingQuote

    @property
    def subtotal_cents(self) -> int:
        return sum(line.line_total_cents for line in self.lines)

    @property
    def shipping_cents(self) -> int:
        return self.shipping.cost_cents

    @property
    def total_cents(self) -> int:
        return self.subtotal_cents + self.shipping_cents

    @property
    def item_count(self) -> int:
        return sum(line.quantity for line in self.lines)


@dataclass(frozen=True)
class PaymentIntentResult:
    client_secret: str
    payment_intent_id: str
    amount_cents: int
    subtotal_cents: int
    shipping_cents: int


def price_lines(items: list[CartItem]) -> tuple[PricedLine, ...]:
    """Re-price stored cart rows from the catalogue."""
    catalogue = get_catalogue()
    lines = []
    for item in items:
        product = catalogue.get(item.product_id)
        if product is None:
            raise ProductUnavailable(
                f"'{item.product_id}' is no longer available. Remove it from your cart to continue."
            )
        lines.append(
            PricedLine(
                product_id=product.id,
                name=product.name,
                unit_price_cents=product.price_cents,
                quantity=item.quantity,
                weight_oz=product.weight_oz,
            )
        )
    return tuple(lines)


def destination_region(selection: ShippingSelection, address: ShippingAddress) -> str:
    return normalize_region(selection.region or address.state)


def price_cart(items: list[CartItem], region: str) -> PricedBasket:
    lines = price_lines(items)
    quote = estimate_shipping(lines, region)
    if not quote.supported:
        raise InvalidInput(f"We do not ship to '{region}' yet")
    return PricedBasket(lines=lines, shipping=quote)


def within_tolerance(major_units: float, cents: int, tolerance_cents: int) -> bool:
    return abs(major_units * 100 - cents) <= tolerance_cents


def _text(value) -> str:
    return "" if value is None else str(value)


ITEMS_CHUNKS_KEY = "items_chunks"


def split_items(serialized: str, size: int = METADATA_VALUE_MAX_LENGTH) -> dict[str, str]:
    """Spread serialized line items over ``items_0``, ``items_1``, ... keys.

    Each metadata value is capped by the provider, so a long item list is cut
    into pieces of at most ``size`` characters. ``items_chunks`` records how
    many pieces to join back together.
    """
    chunks = [serialized[start : start + size] for start in range(0, len(serialized), size)] or [""]
    metadata = {f"items_{index}": chunk for index, chunk in enumerate(chunks)}
    metadata[ITEMS_CHUNKS_KEY] = str(len(chunks))
    return metadata


def build_intent_metadata(session_id: str, basket: PricedBasket, address: ShippingAddress) -> dict[str, str]:
    """Metadata bag carried by the intent to the webhook. All values are strings."""
    if not session_id:
        raise ValueError("A session id is required to build payment intent metadata")

    items = [
        {
            "id": line.product_id,
            "name": line.name,
            "price_cents": line.unit_price_cents,
            "quantity": line.quantity,
        }
        for line in basket.lines
    ]
    return {
        "session_id": session_id,
        "subtotal_cents": str(basket.subtotal_cents),
        "total_cents": str(basket.total_cents),
        "shipping_cost_cents": str(basket.shipping_cents),
        "shipping_zone": basket.shipping.zone,
        "shipping_description": basket.shipping.description,
        "customer_email": _text(address.email),
        "customer_first_name": _text(address.first_name),
        "customer_last_name": _text(address.last_name),
        "shipping_address": _text(address.address),
        "shipping_apartment": _text(address.apartment),
        "shipping_city": _text(address.city),
        "shipping_state": _text(address.state),
        "shipping_zip": _text(address.zip),
        "shipping_phone": _text(address.phone),
        **split_items(json.dumps(items, separators=(",", ":"))),
        "item_count": str(basket.item_count),
    }


def idempotency_key(amount_cents: int, currency: str, metadata: dict[str, str]) -> str:
    """Same session, cart, address and total map to the same key."""
    digest = hashlib.sha256()
    digest.update(f"{amount_cents}:{currency}:".encode())
    digest.update(json.dumps(metadata, sort_keys=True).encode())
    return f"checkout-{digest.hexdigest()[:48]}"


def create_payment_intent(
    session_id: str | None,
    shipping_selection: ShippingSelection,
    shipping_address: ShippingAddress,
    client_total: float | None = None,
) -> PaymentIntentResult:
    if not session_id:
        raise NoSession()

    items = current_domain.repository_for(CartItem).for_session(session_id)
    if not items:
        raise EmptyCart()

    settings = get_settings()
    basket = price_cart(items, destination_region(shipping_selection, shipping_address))

    if shipping_selection.quoted_cost is not None and not within_tolerance(
        shipping_selection.quoted_cost, basket.shipping_cents, settings.total_tolerance_cents
    ):
        logger.warning(
            "checkout.shipping_mismatch",
            session_id=session_id,
            quoted_cost=shipping_selection.quoted_cost,
            shipping_cents=basket.shipping_cents,
        )
        raise InvalidTotal("Shipping cost has changed. Please review your order and try again.")

    total = basket.total_cents
    if total <= 0:
        raise InvalidTotal()
    if client_total is not None and not within_tolerance(client_total, total, settings.total_tolerance_cents):
        logger.warning(
            "checkout.total_mismatch",
            session_id=session_id,
            client_total=client_total,
            total_cents=total,
        )
        raise InvalidTotal()

    metadata = build_intent_metadata(session_id, basket, shipping_address)
    intent = get_gateway().create_payment_intent(
        amount_cents=total,
        currency=settings.currency,
        metadata=metadata,
        idempotency_key=idempotency_key(total, settings.currency, metadata),
    )

    logger.info(
        "checkout.payment_intent_created",
        session_id=session_id,
        payment_intent_id=intent.id,
        amount_cents=total,
        item_count=basket.item_count,
        shipping_zone=basket.shipping.zone,
    )
    return PaymentIntentResult(
        client_secret=intent.client_secret,
        payment_intent_id=intent.id,
        amount_cents=total,
        subtotal_cents=basket.subtotal_cents,
        shipping_cents=basket.shipping_cents,
    )
