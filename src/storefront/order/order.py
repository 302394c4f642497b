"""Order aggregate — the record of a paid checkout.

An order is identified by the payment intent it settles, so a payment can
never produce two orders. Items are a denormalized snapshot of what was
bought; they do not follow later catalogue changes. ``total_cents`` is the
amount actually charged.
"""

from datetime import UTC, datetime
from enum import Enum

from protean.fields import DateTime, HasMany, Identifier, Integer, String

from storefront.domain import storefront
from storefront.order.events import OrderPlaced


class OrderStatus(Enum):
    PAID = "Paid"


@storefront.entity(part_of="Order")
class OrderItem:
    product_id = String(required=True, max_length=100)
    name = String(required=True, max_length=255)
    unit_price_cents = Integer(required=True, min_value=0)
    quantity = Integer(required=True, min_value=1)

    @property
    def line_total_cents(self) -> int:
        return self.unit_price_cents * self.quantity


@storefront.aggregate
class Order:
    payment_intent_id = Identifier(identifier=True)
    session_id = String(max_length=64)
    status = String(choices=OrderStatus, default=OrderStatus.PAID.value)

    customer_email = String(max_length=255)
    customer_first_name = String(required=True, max_length=100)
    customer_last_name = String(required=True, max_length=100)

    shipping_address = String(required=True, max_length=255)
    shipping_apartment = String(max_length=100)
    shipping_city = String(required=True, max_length=100)
    shipping_state = String(required=True, max_length=50)
    shipping_zip = String(required=True, max_length=20)
    shipping_phone = String(max_length=50)
    shipping_zone = String(max_length=50, default="N/A")
    shipping_description = String(max_length=255)

    items = HasMany(OrderItem)
    subtotal_cents = Integer(min_value=0, default=0)
    shipping_cost_cents = Integer(min_value=0, default=0)
    total_cents = Integer(required=True, min_value=0)
    currency = String(max_length=3, default="usd")
    created_at = DateTime()

    @classmethod
    def place(cls, payment_intent_id, total_cents, items_data, **details):
        """Record a paid order.

        Args:
            payment_intent_id: Identifier of the settled payment intent.
            total_cents: Amount charged by the payment provider.
            items_data: List of dicts with product_id, name,
                        unit_price_cents, quantity.
            details: Customer, shipping and pricing fields of the order.
        """
        now = datetime.now(UTC)
        order = cls(
            payment_intent_id=payment_intent_id,
            total_cents=total_cents,
            status=OrderStatus.PAID.value,
            created_at=now,
            **details,
        )
        for item in items_data:
            order.add_items(OrderItem(**item))

        order.raise_(
            OrderPlaced(
                order_id=payment_intent_id,
                session_id=order.session_id,
                total_cents=total_cents,
                currency=order.currency,
                item_count=order.item_count,
                placed_at=now,
            )
        )
        return order

    @property
    def item_count(self) -> int:
        return sum(item.quantity for item in self.items)
