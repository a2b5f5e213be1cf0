import pytest

from api.middleware.logging import mask_sensitive


def test_mask_sensitive_hides_signatures_at_any_depth():
    body = {
        "razorpay_payment_id": "pay_1",
        "razorpay_signature": "abc",
        "nested": [{"Secret": "s", "amount": 5}],
    }

    assert mask_sensitive(body) == {
        "razorpay_payment_id": "pay_1",
        "razorpay_signature": "***",
        "nested": [{"Secret": "***", "amount": 5}],
    }


@pytest.mark.asyncio
async def test_request_id_is_echoed(client):
    resp = await client.get("/", headers={"X-Request-ID": "req-123"})

    assert resp.status_code == 200
    assert resp.text.endswith("running")
    assert resp.headers["X-Request-ID"] == "req-123"
    assert "X-Process-Time" in resp.headers


@pytest.mark.asyncio
async def test_request_id_is_generated(client):
    resp = await client.get("/health")

    assert resp.json() == {"ok": True}
    assert resp.headers["X-Request-ID"]


@pytest.mark.asyncio
async def test_error_envelope_carries_request_id(client):
    resp = await client.post(
        "/api/payment/create-order",
        json={"amount": 0, "purpose": "donation", "campaignId": "camp_1"},
        headers={"X-Request-ID": "req-err"},
    )

    body = resp.json()
    assert resp.status_code == 400
    assert body["success"] is False
    assert body["error"]["request_id"] == "req-err"
