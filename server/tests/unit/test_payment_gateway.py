"""Unit tests for the Razorpay gateway client."""

import base64
import json

import httpx
import pytest

from adventure_api.core.exceptions import PaymentGatewayError
from adventure_api.services.payment_gateway import RazorpayGateway, to_paise

from conftest import TEST_KEY_ID, TEST_KEY_SECRET, TEST_WEBHOOK_SECRET, checkout_signature, sign


def _gateway(handler) -> RazorpayGateway:
    return RazorpayGateway(
        key_id=TEST_KEY_ID,
        key_secret=TEST_KEY_SECRET,
        webhook_secret=TEST_WEBHOOK_SECRET,
        base_url="https://razorpay.test/v1/",
        transport=httpx.MockTransport(handler),
    )


@pytest.mark.parametrize(("amount", "paise"), [(16500, 1650000), (99.99, 9999), (8000.5, 800050), (0, 0)])
def test_to_paise(amount, paise):
    assert to_paise(amount) == paise


@pytest.mark.asyncio
async def test_create_order_sends_paise_with_basic_auth():
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        body = json.loads(request.content)
        return httpx.Response(200, json={"id": "order_1", "amount": body["amount"], "currency": body["currency"]})

    order = await _gateway(handler).create_order(16500, "AE123", {"bookingId": "AE123"})

    assert order == {"id": "order_1", "amount": 1650000, "currency": "INR"}
    [request] = seen
    assert request.url == "https://razorpay.test/v1/orders"
    credentials = base64.b64encode(f"{TEST_KEY_ID}:{TEST_KEY_SECRET}".encode()).decode()
    assert request.headers["authorization"] == f"Basic {credentials}"
    assert json.loads(request.content)["notes"] == {"bookingId": "AE123"}


@pytest.mark.asyncio
async def test_refund_posts_to_payment():
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"id": "rfnd_1", "status": "processed"})

    refund = await _gateway(handler).refund_payment("pay_9", 250.5)

    assert refund["id"] == "rfnd_1"
    assert seen[0].url.path == "/v1/payments/pay_9/refund"
    assert json.loads(seen[0].content) == {"amount": 25050, "notes": {}}


@pytest.mark.asyncio
async def test_gateway_rejection_maps_to_bad_gateway():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(400, json={"error": {"description": "Order amount less than minimum"}})

    with pytest.raises(PaymentGatewayError) as exc_info:
        await _gateway(handler).create_order(0.5, "AE1")

    assert exc_info.value.status_code == 502
    assert exc_info.value.problem_details["detail"] == "Order amount less than minimum"
    assert exc_info.value.problem_details["gateway_status"] == 400


@pytest.mark.asyncio
async def test_unreachable_gateway():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(PaymentGatewayError) as exc_info:
        await _gateway(handler).create_order(100, "AE1")

    assert "unreachable" in exc_info.value.problem_details["detail"]


def test_checkout_signature_verification():
    gateway = _gateway(lambda request: httpx.Response(404))
    good = checkout_signature("order_1", "pay_1")

    assert gateway.verify_payment_signature("order_1", "pay_1", good)
    assert not gateway.verify_payment_signature("order_1", "pay_2", good)
    assert not gateway.verify_payment_signature("order_1", "pay_1", "")
    assert not gateway.verify_payment_signature("order_1", "pay_1", None)


def test_webhook_signature_uses_raw_body():
    gateway = _gateway(lambda request: httpx.Response(404))
    body = b'{"event":"payment.captured"}'

    assert gateway.verify_webhook_signature(body, sign(TEST_WEBHOOK_SECRET, body))
    assert not gateway.verify_webhook_signature(body + b" ", sign(TEST_WEBHOOK_SECRET, body))
    assert not gateway.verify_webhook_signature(body, sign(TEST_KEY_SECRET, body))
