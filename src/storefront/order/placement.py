"""Order placement — command and handler.

The handler is the idempotency gate for payment confirmations: an order that
already exists for the payment intent is reported back instead of inserted
again.
"""

import json
from dataclasses import dataclass

from protean import handle
from protean.fields import Identifier, Integer, String, Text
from protean.utils.globals import current_domain

from storefront.domain import logger, storefront
from storefront.order.order import Order


@dataclass(frozen=True)
class PlacementResult:
    order_id: str
    created: bool


@storefront.command(part_of="Order")
class PlaceOrder:
    payment_intent_id = Identifier(required=True)
    session_id = String(max_length=64)
    total_cents = Integer(required=True, min_value=0)
    currency = String(max_length=3, default="usd")
    subtotal_cents = Integer(default=0, min_value=0)
    shipping_cost_cents = Integer(default=0, min_value=0)
    shipping_zone = String(max_length=50)
    shipping_description = String(max_length=255)
    customer_email = String(max_length=255)
    customer_first_name = String(required=True, max_length=100)
    customer_last_name = String(required=True, max_length=100)
    shipping_address = String(required=True, max_length=255)
    shipping_apartment = String(max_length=100)
    shipping_city = String(required=True, max_length=100)
    shipping_state = String(required=True, max_length=50)
    shipping_zip = String(required=True, max_length=20)
    shipping_phone = String(max_length=50)
    items = Text()  # JSON: list of item dicts


@storefront.command_handler(part_of=Order)
class PlaceOrderHandler:
    @handle(PlaceOrder)
    def place_order(self, command):
        repo = current_domain.repository_for(Order)
        payment_intent_id = str(command.payment_intent_id)

        if repo.find_by_payment_intent(payment_intent_id) is not None:
            logger.info("order.already_placed", payment_intent_id=payment_intent_id)
            return PlacementResult(order_id=payment_intent_id, created=False)

        items_data = json.loads(command.items) if command.items else []
        order = Order.place(
            payment_intent_id=payment_intent_id,
            total_cents=command.total_cents,
            items_data=items_data,
            session_id=command.session_id,
            currency=command.currency or "usd",
            subtotal_cents=command.subtotal_cents or 0,
            shipping_cost_cents=command.shipping_cost_cents or 0,
            shipping_zone=command.shipping_zone or "N/A",
            shipping_description=command.shipping_description,
            customer_email=command.customer_email,
            customer_first_name=command.customer_first_name,
            customer_last_name=command.customer_last_name,
            shipping_address=command.shipping_address,
            shipping_apartment=command.shipping_apartment,
            shipping_city=command.shipping_city,
            shipping_state=command.shipping_state,
            shipping_zip=command.shipping_zip,
            shipping_phone=command.shipping_phone,
        )
        repo.add(order)
        return PlacementResult(order_id=payment_intent_id, created=True)
