"""Tests for the Order aggregate."""

import pytest
from protean.exceptions import ValidationError
from storefront.order.events import OrderPlaced
from storefront.order.order import Order, OrderStatus


def _place(**overrides):
    defaults = {
        "payment_intent_id": "pi_test_001",
        "total_cents": 3000,
        "items_data": [
            {"product_id": "canvas-tote", "name": "Canvas Tote", "unit_price_cents": 1000, "quantity": 2},
            {"product_id": "sticker-pack", "name": "Sticker Pack", "unit_price_cents": 500, "quantity": 1},
        ],
        "session_id": "a" * 32,
        "subtotal_cents": 2500,
        "shipping_cost_cents": 500,
        "shipping_zone": "Local",
        "customer_first_name": "Ada",
        "customer_last_name": "Lovelace",
        "shipping_address": "12 Analytical Way",
        "shipping_city": "Sacramento",
        "shipping_state": "CA",
        "shipping_zip": "95814",
    }
    defaults.update(overrides)
    return Order.place(**defaults)


class TestOrderPlacement:
    def test_identified_by_payment_intent(self):
        order = _place()
        assert order.payment_intent_id == "pi_test_001"

    def test_status_is_paid(self):
        assert _place().status == OrderStatus.PAID.value

    def test_items_are_a_snapshot(self):
        order = _place()
        assert len(order.items) == 2
        tote = next(item for item in order.items if item.product_id == "canvas-tote")
        assert tote.unit_price_cents == 1000
        assert tote.line_total_cents == 2000

    def test_item_count(self):
        assert _place().item_count == 3

    def test_total_is_the_charged_amount(self):
        order = _place(total_cents=2999)
        assert order.total_cents == 2999

    def test_raises_order_placed(self):
        order = _place()
        assert len(order._events) == 1
        event = order._events[0]
        assert isinstance(event, OrderPlaced)
        assert OrderPlaced.__version__ == 1
        assert event.order_id == "pi_test_001"
        assert event.total_cents == 3000
        assert event.item_count == 3

    def test_optional_fields_may_be_absent(self):
        order = _place(customer_email=None, shipping_apartment=None, shipping_phone=None)
        assert order.customer_email is None
        assert order.shipping_phone is None

    def test_missing_customer_name_rejected(self):
        with pytest.raises(ValidationError):
            _place(customer_first_name=None)

    def test_item_quantity_must_be_positive(self):
        with pytest.raises(ValidationError):
            _place(items_data=[{"product_id": "x", "name": "X", "unit_price_cents": 100, "quantity": 0}])
