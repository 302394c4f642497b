"""Application tests for webhook-driven order finalization."""

import json
from unittest.mock import MagicMock, patch

import pytest
from protean import current_domain
from storefront.cart.cart_item import CartItem
from storefront.cart.view import apply_delta, get_cart
from storefront.errors import IncompleteOrderData, UpstreamFailure
from storefront.gateway.port import PAYMENT_INTENT_SUCCEEDED, WebhookEvent
from storefront.order.finalization import OrderFinalizer, Outcome, Stage
from storefront.order.order import Order
from storefront.order.placement import PlacementResult


def _metadata(session_id, **overrides):
    metadata = {
        "session_id": session_id,
        "subtotal_cents": "2500",
        "total_cents": "3000",
        "shipping_cost_cents": "500",
        "shipping_zone": "Local",
        "shipping_description": "Same state shipping",
        "customer_email": "ada@example.com",
        "customer_first_name": "Ada",
        "customer_last_name": "Lovelace",
        "shipping_address": "12 Analytical Way",
        "shipping_apartment": "",
        "shipping_city": "Sacramento",
        "shipping_state": "CA",
        "shipping_zip": "95814",
        "shipping_phone": "",
        "items": json.dumps(
            [
                {"id": "canvas-tote", "name": "Canvas Tote", "price_cents": 1000, "quantity": 2},
                {"id": "sticker-pack", "name": "Sticker Pack", "price_cents": 500, "quantity": 1},
            ]
        ),
        "item_count": "3",
    }
    metadata.update(overrides)
    return metadata


def _event(metadata, intent_id="pi_test_001", amount=3000, event_type=PAYMENT_INTENT_SUCCEEDED):
    return WebhookEvent(
        id="evt_test_001",
        type=event_type,
        data_object={
            "id": intent_id,
            "object": "payment_intent",
            "amount": amount,
            "currency": "usd",
            "status": "succeeded",
            "metadata": metadata,
        },
    )


def _orders():
    return current_domain.repository_for(Order)._dao.query.all().items


def _fill_cart(session_id):
    apply_delta(session_id, "canvas-tote", 2)
    apply_delta(session_id, "sticker-pack", 1)


class TestSuccessfulPayment:
    def test_places_exactly_one_order(self, session_id):
        _fill_cart(session_id)
        result = OrderFinalizer().handle(_event(_metadata(session_id)))

        assert result.outcome is Outcome.PLACED
        assert result.stage is Stage.DONE
        assert result.order_id == "pi_test_001"
        assert len(_orders()) == 1

    def test_clears_the_paying_session_cart(self, session_id):
        _fill_cart(session_id)
        apply_delta("b" * 32, "canvas-tote", 1)

        result = OrderFinalizer().handle(_event(_metadata(session_id)))

        assert result.cart_cleared is True
        assert get_cart(session_id) == []
        assert len(get_cart("b" * 32)) == 1

    def test_order_snapshot(self, session_id):
        OrderFinalizer().handle(_event(_metadata(session_id)))

        order = current_domain.repository_for(Order).get("pi_test_001")
        assert order.customer_first_name == "Ada"
        assert order.shipping_city == "Sacramento"
        assert order.shipping_apartment is None
        assert order.subtotal_cents == 2500
        assert order.shipping_cost_cents == 500
        assert order.shipping_zone == "Local"
        assert order.session_id == session_id
        assert sorted((item.product_id, item.quantity) for item in order.items) == [
            ("canvas-tote", 2),
            ("sticker-pack", 1),
        ]

    def test_total_is_the_charged_amount(self, session_id):
        OrderFinalizer().handle(_event(_metadata(session_id, total_cents="9999"), amount=3000))
        assert current_domain.repository_for(Order).get("pi_test_001").total_cents == 3000

    def test_unparseable_items_still_place_order(self, session_id):
        OrderFinalizer().handle(_event(_metadata(session_id, items="{broken")))
        order = current_domain.repository_for(Order).get("pi_test_001")
        assert len(order.items) == 0


class TestIncompleteMetadata:
    def test_missing_shipping_fields_place_nothing(self, session_id):
        _fill_cart(session_id)
        metadata = _metadata(session_id)
        del metadata["shipping_address"]
        del metadata["shipping_zip"]

        with pytest.raises(IncompleteOrderData) as exc_info:
            OrderFinalizer().handle(_event(metadata))

        assert exc_info.value.missing_fields == ["shipping_address", "shipping_zip"]
        assert _orders() == []
        assert len(get_cart(session_id)) == 2

    def test_missing_amount_places_nothing(self, session_id):
        with pytest.raises(IncompleteOrderData):
            OrderFinalizer().handle(_event(_metadata(session_id), amount=None))
        assert _orders() == []

    @pytest.mark.parametrize("field_name", ["subtotal_cents", "shipping_cost_cents"])
    def test_negative_amounts_place_nothing(self, session_id, field_name):
        _fill_cart(session_id)

        with pytest.raises(IncompleteOrderData) as exc_info:
            OrderFinalizer().handle(_event(_metadata(session_id, **{field_name: "-100"})))

        assert exc_info.value.missing_fields == [field_name]
        assert _orders() == []
        assert len(get_cart(session_id)) == 2

    def test_items_the_order_refuses_are_not_retried(self, session_id):
        _fill_cart(session_id)
        items = json.dumps([{"id": "canvas-tote", "name": "x" * 300, "price_cents": 1000, "quantity": 2}])

        with pytest.raises(IncompleteOrderData) as exc_info:
            OrderFinalizer().handle(_event(_metadata(session_id, items=items)))

        assert exc_info.value.missing_fields == ["name"]
        assert _orders() == []
        assert len(get_cart(session_id)) == 2

    def test_reassembles_items_split_across_keys(self, session_id):
        metadata = _metadata(session_id)
        serialized = metadata.pop("items")
        metadata.update({"items_0": serialized[:20], "items_1": serialized[20:], "items_chunks": "2"})

        OrderFinalizer().handle(_event(metadata))

        order = _orders()[0]
        assert sorted(item.product_id for item in order.items) == ["canvas-tote", "sticker-pack"]


class TestReplays:
    def test_replay_is_a_duplicate(self, session_id):
        event = _event(_metadata(session_id))
        OrderFinalizer().handle(event)

        result = OrderFinalizer().handle(event)

        assert result.outcome is Outcome.DUPLICATE
        assert result.stage is Stage.PERSISTED
        assert len(_orders()) == 1

    def test_replay_does_not_clear_a_new_cart(self, session_id):
        event = _event(_metadata(session_id))
        OrderFinalizer().handle(event)
        apply_delta(session_id, "enamel-pin", 1)

        OrderFinalizer().handle(event)

        assert [line.product_id for line in get_cart(session_id)] == ["enamel-pin"]


class TestSessionlessPayment:
    def test_order_placed_and_cart_clear_skipped(self, session_id):
        _fill_cart(session_id)
        metadata = _metadata(session_id)
        del metadata["session_id"]

        result = OrderFinalizer().handle(_event(metadata))

        assert result.outcome is Outcome.PLACED
        assert result.cart_cleared is False
        assert len(_orders()) == 1
        assert len(current_domain.repository_for(CartItem).for_session(session_id)) == 2


class TestIgnoredEvents:
    @pytest.mark.parametrize("event_type", ["payment_intent.created", "payment_intent.payment_failed", "charge.refunded"])
    def test_other_event_types_are_ignored(self, session_id, event_type):
        _fill_cart(session_id)
        result = OrderFinalizer().handle(_event(_metadata(session_id), event_type=event_type))

        assert result.outcome is Outcome.IGNORED
        assert _orders() == []
        assert len(get_cart(session_id)) == 2


class TestPersistenceFailures:
    def test_transient_failure_is_retryable(self, session_id):
        mock_domain = MagicMock()
        mock_domain.process.side_effect = RuntimeError("connection reset")
        mock_domain.repository_for.return_value.find_by_payment_intent.return_value = None

        with patch("storefront.order.finalization.current_domain", mock_domain):
            with pytest.raises(UpstreamFailure) as exc_info:
                OrderFinalizer().handle(_event(_metadata(session_id)))

        assert exc_info.value.retryable is True

    def test_failed_insert_after_concurrent_delivery_is_a_duplicate(self, session_id):
        mock_domain = MagicMock()
        mock_domain.process.side_effect = RuntimeError("unique violation")
        mock_domain.repository_for.return_value.find_by_payment_intent.return_value = object()

        with patch("storefront.order.finalization.current_domain", mock_domain):
            result = OrderFinalizer().handle(_event(_metadata(session_id)))

        assert result.outcome is Outcome.DUPLICATE

    def test_cart_clear_failure_is_not_propagated(self, session_id):
        mock_domain = MagicMock()
        mock_domain.process.side_effect = [
            PlacementResult(order_id="pi_test_001", created=True),
            RuntimeError("cart store down"),
        ]

        with patch("storefront.order.finalization.current_domain", mock_domain):
            result = OrderFinalizer().handle(_event(_metadata(session_id)))

        assert result.outcome is Outcome.PLACED
        assert result.cart_cleared is False
