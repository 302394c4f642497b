"""Tests for the fake payment gateway."""

import json
import time

import pytest
from storefront.errors import InvalidWebhook, UpstreamFailure
from storefront.gateway.fake_adapter import FakeGateway
from storefront.gateway.port import PAYMENT_INTENT_SUCCEEDED


@pytest.fixture()
def fake():
    return FakeGateway(webhook_secret="whsec_unit")


def _intent(fake, **metadata):
    return fake.create_payment_intent(3000, "usd", {"session_id": "s1", **metadata})


class TestCreatePaymentIntent:
    def test_returns_secret_and_id(self, fake):
        intent = _intent(fake)
        assert intent.id.startswith("pi_fake_")
        assert intent.client_secret.startswith(intent.id)
        assert intent.amount_cents == 3000
        assert intent.metadata["session_id"] == "s1"

    def test_records_calls(self, fake):
        _intent(fake)
        assert len(fake.calls) == 1
        assert fake.calls[0]["amount_cents"] == 3000

    def test_idempotency_key_reuses_intent(self, fake):
        first = fake.create_payment_intent(3000, "usd", {}, idempotency_key="k1")
        second = fake.create_payment_intent(3000, "usd", {}, idempotency_key="k1")
        assert first.id == second.id

    def test_configured_failure(self, fake):
        fake.configure(should_succeed=False, failure_reason="Card network down", retryable=False)
        with pytest.raises(UpstreamFailure) as exc_info:
            _intent(fake)
        assert exc_info.value.retryable is False
        assert exc_info.value.message == "Card network down"

    @pytest.mark.parametrize(
        "metadata",
        [
            {"notes": "x" * 501},
            {"k" * 41: "value"},
            {f"key_{index}": "value" for index in range(51)},
        ],
        ids=["long-value", "long-key", "too-many-keys"],
    )
    def test_metadata_over_provider_limits_rejected(self, fake, metadata):
        with pytest.raises(UpstreamFailure) as exc_info:
            fake.create_payment_intent(3000, "usd", metadata)
        assert exc_info.value.retryable is False
        assert fake.intents == {}

    def test_metadata_at_provider_limits_accepted(self, fake):
        metadata = {f"k{index}".ljust(40, "k"): "x" * 500 for index in range(50)}
        assert fake.create_payment_intent(3000, "usd", metadata).metadata == metadata


class TestWebhookSignatures:
    def test_signed_event_is_accepted(self, fake):
        intent = _intent(fake)
        payload = fake.build_event(intent.id)
        event = fake.construct_event(payload, fake.sign(payload))
        assert event.type == PAYMENT_INTENT_SUCCEEDED
        assert event.object_id == intent.id
        assert event.data_object["amount"] == 3000
        assert event.metadata["session_id"] == "s1"

    def test_tampered_payload_rejected(self, fake):
        intent = _intent(fake)
        payload = fake.build_event(intent.id)
        signature = fake.sign(payload)
        tampered = payload.replace(b"3000", b"1")
        with pytest.raises(InvalidWebhook):
            fake.construct_event(tampered, signature)

    def test_other_secret_rejected(self, fake):
        intent = _intent(fake)
        payload = fake.build_event(intent.id)
        signature = FakeGateway(webhook_secret="whsec_other").sign(payload)
        with pytest.raises(InvalidWebhook):
            fake.construct_event(payload, signature)

    def test_stale_timestamp_rejected(self, fake):
        intent = _intent(fake)
        payload = fake.build_event(intent.id)
        signature = fake.sign(payload, timestamp=int(time.time()) - 3600)
        with pytest.raises(InvalidWebhook):
            fake.construct_event(payload, signature)

    @pytest.mark.parametrize("header", ["", "garbage", "t=abc,v1=deadbeef", "t=123"])
    def test_malformed_header_rejected(self, fake, header):
        with pytest.raises(InvalidWebhook):
            fake.construct_event(b"{}", header)

    def test_unparseable_payload_rejected(self, fake):
        payload = b"not json"
        with pytest.raises(InvalidWebhook):
            fake.construct_event(payload, fake.sign(payload))

    def test_envelope_without_data_object_rejected(self, fake):
        payload = json.dumps({"id": "evt_1", "type": PAYMENT_INTENT_SUCCEEDED}).encode()
        with pytest.raises(InvalidWebhook):
            fake.construct_event(payload, fake.sign(payload))

    def test_build_event_with_other_type(self, fake):
        intent = _intent(fake)
        payload = fake.build_event(intent.id, event_type="payment_intent.created")
        event = fake.construct_event(payload, fake.sign(payload))
        assert event.type == "payment_intent.created"
