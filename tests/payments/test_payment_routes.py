import json
import os
from decimal import Decimal

import pytest

from application.dtos.payments import GatewayPayment
from domain.payment.signature import checkout_message, compute_signature


WEBHOOK_SECRET = os.environ["RAZORPAY__WEBHOOK_SECRET"]
KEY_SECRET = os.environ["RAZORPAY__KEY_SECRET"]


def _captured(payment_id="pay_1", amount=50000, notes=None, event="payment.captured"):
    return {
        "entity": "event",
        "event": event,
        "payload": {
            "payment": {
                "entity": {
                    "id": payment_id,
                    "entity": "payment",
                    "order_id": "order_1",
                    "amount": amount,
                    "currency": "INR",
                    "status": "captured" if event == "payment.captured" else "failed",
                    "notes": notes if notes is not None else {"purpose": "donation", "campaignId": "camp_1"},
                }
            }
        },
    }


async def _post_webhook(client, payload, *, signature=None, raw=None):
    body = raw if raw is not None else json.dumps(payload).encode()
    sig = signature if signature is not None else compute_signature(body, WEBHOOK_SECRET)
    return await client.post(
        "/api/payment/webhook",
        content=body,
        headers={"Content-Type": "application/json", "X-Razorpay-Signature": sig},
    )


class TestWebhook:
    @pytest.mark.asyncio
    async def test_captured_donation_is_recorded(self, client, read_store):
        resp = await _post_webhook(client, _captured())

        assert resp.status_code == 200
        assert resp.text == "PROCESSED"
        assert await read_store.total() == Decimal("500.00")
        donations = await read_store.donations()
        assert len(donations) == 1
        assert donations[0].payment_id == "pay_1"

    @pytest.mark.asyncio
    async def test_duplicate_delivery_is_acknowledged_without_effect(self, client, read_store):
        await _post_webhook(client, _captured())
        resp = await _post_webhook(client, _captured())

        assert resp.status_code == 200
        assert resp.text == "DUPLICATE"
        assert await read_store.total() == Decimal("500.00")
        assert len(await read_store.donations()) == 1

    @pytest.mark.asyncio
    async def test_bad_signature_rejected(self, client, read_store):
        resp = await _post_webhook(client, _captured(), signature="0" * 64)

        assert resp.status_code == 400
        assert await read_store.total() == Decimal("0")
        assert await read_store.donations() == []

    @pytest.mark.asyncio
    async def test_missing_signature_rejected(self, client, read_store):
        resp = await client.post("/api/payment/webhook", content=json.dumps(_captured()).encode())

        assert resp.status_code == 400
        assert await read_store.donations() == []

    @pytest.mark.asyncio
    async def test_signature_is_checked_over_raw_bytes(self, client, read_store):
        # Same JSON document, different bytes: the signature no longer matches
        payload = _captured()
        signed = json.dumps(payload).encode()
        sent = json.dumps(payload, indent=2).encode()

        resp = await _post_webhook(client, payload, raw=sent, signature=compute_signature(signed, WEBHOOK_SECRET))

        assert resp.status_code == 400
        assert await read_store.donations() == []

    @pytest.mark.asyncio
    async def test_malformed_payload_rejected(self, client):
        resp = await _post_webhook(client, None, raw=b"{not json")

        assert resp.status_code == 400

    @pytest.mark.asyncio
    async def test_other_events_ignored(self, client, read_store):
        resp = await _post_webhook(client, _captured(event="payment.failed"))

        assert resp.status_code == 200
        assert resp.text == "IGNORED"
        assert await read_store.donations() == []

    @pytest.mark.asyncio
    async def test_unroutable_payment_acknowledged(self, client, read_store):
        resp = await _post_webhook(client, _captured(notes={"purpose": "refund"}))

        assert resp.status_code == 200
        assert resp.text == "UNROUTABLE"
        assert await read_store.donations() == []

    @pytest.mark.asyncio
    async def test_unknown_campaign_acknowledged(self, client, read_store):
        resp = await _post_webhook(client, _captured(notes={"purpose": "donation", "campaignId": "camp_missing"}))

        assert resp.status_code == 200
        assert resp.text == "NOT FOUND"
        assert await read_store.donations("camp_missing") == []

    @pytest.mark.asyncio
    async def test_booking_payment_confirms_booking(self, client, read_store):
        notes = {"purpose": "event", "bookingId": "bk_1", "eventId": "evt_1"}
        first = await _post_webhook(client, _captured(payment_id="pay_b1", notes=notes))
        again = await _post_webhook(client, _captured(payment_id="pay_b1", notes=notes))

        assert first.text == "PROCESSED"
        assert again.text == "DUPLICATE"
        booking = await read_store.booking()
        assert booking.is_confirmed
        assert (await read_store.event()).seats_sold == 3

    @pytest.mark.asyncio
    async def test_store_failure_returns_500(self, client, monkeypatch):
        from application.services.confirmation_service import ConfirmationApplier
        from domain.payment.exceptions import StoreUnavailableException

        async def _down(self, event):
            raise StoreUnavailableException()

        monkeypatch.setattr(ConfirmationApplier, "apply", _down)
        resp = await _post_webhook(client, _captured())

        assert resp.status_code == 500


class TestCreateOrder:
    @pytest.mark.asyncio
    @pytest.mark.parametrize("body, message", [
        ({"amount": 0, "campaignId": "camp_1"}, "Invalid amount"),
        ({"amount": -5, "campaignId": "camp_1"}, "Invalid amount"),
        ({"amount": "abc", "campaignId": "camp_1"}, "Invalid amount"),
        ({"amount": 0.001, "campaignId": "camp_1"}, "Invalid amount"),
        ({"amount": "0.004", "campaignId": "camp_1"}, "Invalid amount"),
        ({"amount": 100, "purpose": "refund", "campaignId": "camp_1"}, "Invalid payment purpose"),
        ({"amount": 100, "purpose": "donation"}, "campaignId is required for donations"),
    ])
    async def test_invalid_requests_create_no_order(self, client, stub_gateway, body, message):
        resp = await client.post("/api/payment/create-order", json=body)

        assert resp.status_code == 400
        data = resp.json()
        assert data["success"] is False
        assert data["message"] == message
        assert stub_gateway.orders == []

    @pytest.mark.asyncio
    async def test_donation_order(self, client, stub_gateway):
        resp = await client.post(
            "/api/payment/create-order",
            json={"amount": 500, "purpose": "donation", "campaignId": "camp_1", "meta": {"donor": "anon"}},
        )

        assert resp.status_code == 200
        assert resp.json() == {
            "success": True,
            "orderId": "order_1",
            "amount": 50000,
            "currency": "INR",
            "key": "rzp_test_key",
        }
        assert stub_gateway.orders == [{
            "amount": 50000,
            "currency": "INR",
            "notes": {"purpose": "donation", "campaignId": "camp_1", "donor": "anon"},
        }]

    @pytest.mark.asyncio
    async def test_event_order_does_not_need_campaign(self, client, stub_gateway):
        resp = await client.post(
            "/api/payment/create-order",
            json={"amount": 900.5, "purpose": "event", "meta": {"bookingId": "bk_1", "eventId": "evt_1"}},
        )

        assert resp.status_code == 200
        assert stub_gateway.orders[0]["amount"] == 90050
        assert stub_gateway.orders[0]["notes"] == {"purpose": "event", "bookingId": "bk_1", "eventId": "evt_1"}


class TestConfirm:
    def _body(self, **overrides):
        body = {
            "paymentId": "pay_1",
            "orderId": "order_1",
            "signature": compute_signature(checkout_message("order_1", "pay_1"), KEY_SECRET),
            "campaignId": "camp_1",
            "amount": 500,
        }
        body.update(overrides)
        return body

    def _gateway_payment(self, stub_gateway, **overrides):
        fields = {
            "id": "pay_1",
            "order_id": "order_1",
            "amount": 50000,
            "currency": "INR",
            "status": "captured",
            "notes": {"purpose": "donation", "campaignId": "camp_1"},
        }
        fields.update(overrides)
        stub_gateway.payments["pay_1"] = GatewayPayment(**fields)

    @pytest.mark.asyncio
    async def test_confirm_records_donation(self, client, stub_gateway, read_store):
        self._gateway_payment(stub_gateway)

        resp = await client.post("/api/payment/confirm", json=self._body())

        assert resp.status_code == 200
        data = resp.json()
        assert data["success"] is True
        donations = await read_store.donations()
        assert [d.donation_id for d in donations] == [data["donationId"]]
        assert await read_store.total() == Decimal("500.00")

    @pytest.mark.asyncio
    async def test_confirm_after_webhook_returns_existing_donation(self, client, stub_gateway, read_store):
        self._gateway_payment(stub_gateway)
        await _post_webhook(client, _captured())

        resp = await client.post("/api/payment/confirm", json=self._body())

        assert resp.status_code == 200
        assert resp.json()["donationId"] == (await read_store.donations())[0].donation_id
        assert await read_store.total() == Decimal("500.00")

    @pytest.mark.asyncio
    async def test_bad_signature_is_401(self, client, stub_gateway, read_store):
        self._gateway_payment(stub_gateway)

        resp = await client.post("/api/payment/confirm", json=self._body(signature="f" * 64))

        assert resp.status_code == 401
        assert resp.json()["success"] is False
        assert stub_gateway.fetched == []
        assert await read_store.donations() == []

    @pytest.mark.asyncio
    async def test_amount_must_match_gateway_record(self, client, stub_gateway, read_store):
        self._gateway_payment(stub_gateway)

        resp = await client.post("/api/payment/confirm", json=self._body(amount=5000))

        assert resp.status_code == 400
        assert await read_store.donations() == []

    @pytest.mark.asyncio
    async def test_campaign_must_match_order_notes(self, client, stub_gateway, read_store):
        self._gateway_payment(stub_gateway)

        resp = await client.post("/api/payment/confirm", json=self._body(campaignId="camp_other"))

        assert resp.status_code == 400
        assert await read_store.donations() == []

    @pytest.mark.asyncio
    async def test_uncaptured_payment_rejected(self, client, stub_gateway, read_store):
        self._gateway_payment(stub_gateway, status="authorized")

        resp = await client.post("/api/payment/confirm", json=self._body())

        assert resp.status_code == 400
        assert await read_store.donations() == []

    @pytest.mark.asyncio
    async def test_unknown_campaign_is_404(self, client, stub_gateway):
        self._gateway_payment(stub_gateway, notes={"purpose": "donation", "campaignId": "camp_missing"})

        resp = await client.post("/api/payment/confirm", json=self._body(campaignId="camp_missing"))

        assert resp.status_code == 404

    @pytest.mark.asyncio
    async def test_missing_fields_rejected(self, client):
        resp = await client.post("/api/payment/confirm", json={"paymentId": "pay_1"})

        assert resp.status_code == 400
        assert resp.json()["success"] is False


class TestVerifySignature:
    @pytest.mark.asyncio
    async def test_valid_and_invalid(self, client):
        good = compute_signature(checkout_message("order_1", "pay_1"), KEY_SECRET)

        ok = await client.post("/api/payment/verify-signature", json={"paymentId": "pay_1", "orderId": "order_1", "signature": good})
        bad = await client.post("/api/payment/verify-signature", json={"paymentId": "pay_2", "orderId": "order_1", "signature": good})

        assert ok.json() == {"valid": True}
        assert bad.json() == {"valid": False}

    @pytest.mark.asyncio
    async def test_missing_fields(self, client):
        resp = await client.post("/api/payment/verify-signature", json={"paymentId": "pay_1"})

        assert resp.status_code == 400
        assert resp.json() == {"valid": False}

    @pytest.mark.asyncio
    @pytest.mark.parametrize("content", [b"", b"not json", b"[1, 2]", b"\"pay_1\"", b"{\"paymentId\": 1, \"orderId\": [], \"signature\": {}}"])
    async def test_unparseable_body(self, client, content):
        resp = await client.post(
            "/api/payment/verify-signature",
            content=content,
            headers={"Content-Type": "application/json"},
        )

        assert resp.status_code == 400
        assert resp.json() == {"valid": False}


@pytest.mark.asyncio
async def test_health(client):
    resp = await client.get("/health")

    assert resp.status_code == 200
    assert resp.json() == {"ok": True}
