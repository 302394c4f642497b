"""Domain events for the Order aggregate."""

from protean.fields import DateTime, Identifier, Integer, String

from storefront.domain import storefront


@storefront.event(part_of="Order")
class OrderPlaced:
    """A paid order was recorded from a payment confirmation."""

    __version__ = 1

    order_id = Identifier(required=True)
    session_id = String()
    total_cents = Integer(required=True)
    currency = String(max_length=3)
    item_count = Integer(default=0)
    placed_at = DateTime(required=True)
