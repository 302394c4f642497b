"""Pydantic request/response schemas for the Storefront API.

These are external contracts (anti-corruption layer) — separate from
internal Protean commands. Field names are camelCase on the wire.
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, StrictInt
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ---------------------------------------------------------------------------
# Catalogue
# ---------------------------------------------------------------------------
class ProductResponse(CamelModel):
    product_id: str
    name: str
    price_minor_units: int
    image_path: str


class ShippingQuoteResponse(CamelModel):
    cost_minor_units: int
    zone: str
    description: str
    weight_oz: int


# ---------------------------------------------------------------------------
# Cart
# ---------------------------------------------------------------------------
class CartLineResponse(CamelModel):
    product_id: str
    quantity: int
    name: str
    price_minor_units: int
    image_path: str


class AddToCartRequest(CamelModel):
    product_id: str = Field(min_length=1, max_length=100)
    quantity_delta: StrictInt

    model_config = ConfigDict(
        json_schema_extra={"examples": [{"productId": "canvas-tote", "quantityDelta": 1}]},
    )


# ---------------------------------------------------------------------------
# Checkout
# ---------------------------------------------------------------------------
class ShippingSelectionSchema(CamelModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    region: str | None = Field(default=None, max_length=2)
    # Cost shown to the shopper, in major units
    cost: float | None = Field(default=None, ge=0)


class ShippingAddressSchema(CamelModel):
    email: str | None = Field(default=None, max_length=255)
    first_name: str = Field(min_length=1, max_length=100)
    last_name: str = Field(min_length=1, max_length=100)
    address: str = Field(min_length=1, max_length=255)
    apartment: str | None = Field(default=None, max_length=100)
    city: str = Field(min_length=1, max_length=100)
    state: str = Field(min_length=2, max_length=50)
    zip: str = Field(min_length=1, max_length=20)
    phone: str | None = Field(default=None, max_length=50)


class CheckoutRequest(CamelModel):
    shipping_selection: ShippingSelectionSchema = Field(default_factory=ShippingSelectionSchema)
    shipping_address: ShippingAddressSchema
    # Advisory total in major units, cross-checked against the server total
    total: float | None = None


class PaymentIntentResponse(CamelModel):
    client_secret: str
    payment_intent_id: str
    amount_minor_units: int
    subtotal_minor_units: int
    shipping_minor_units: int


# ---------------------------------------------------------------------------
# Orders
# ---------------------------------------------------------------------------
class OrderItemResponse(CamelModel):
    product_id: str
    name: str
    image_path: str | None = None
    unit_price_minor_units: int
    quantity: int
    line_total_minor_units: int


class OrderResponse(CamelModel):
    payment_intent_id: str
    status: str
    customer_email: str | None = None
    customer_first_name: str
    customer_last_name: str
    shipping_address: str
    shipping_apartment: str | None = None
    shipping_city: str
    shipping_state: str
    shipping_zip: str
    shipping_phone: str | None = None
    shipping_zone: str | None = None
    shipping_description: str | None = None
    subtotal_minor_units: int
    shipping_cost_minor_units: int
    total_minor_units: int
    currency: str
    items: list[OrderItemResponse]
    created_at: datetime | None = None


# ---------------------------------------------------------------------------
# Webhook
# ---------------------------------------------------------------------------
class WebhookAckResponse(BaseModel):
    received: bool = True
