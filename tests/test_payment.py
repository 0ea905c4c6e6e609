import base64
import hashlib
import hmac
import json
from decimal import Decimal

import httpx
import pytest

from food_court.exceptions import UpstreamFailure
from food_court.services.payment import PaymentGateway, compute_signature, to_minor_units


def make_gateway(handler) -> PaymentGateway:
    return PaymentGateway(
        key_id="rzp_key",
        key_secret="rzp_secret",
        api_url="https://gateway.test/v1/",
        transport=httpx.MockTransport(handler),
    )


def test_minor_units():
    assert to_minor_units(Decimal("270.00")) == 27000
    assert to_minor_units(Decimal("99.99")) == 9999
    assert to_minor_units(Decimal("0.005")) == 1


def test_signature_is_hmac_over_order_and_payment_ids():
    expected = hmac.new(b"rzp_secret", b"order_1|pay_1", hashlib.sha256).hexdigest()
    assert compute_signature("order_1", "pay_1", "rzp_secret") == expected

    gateway = make_gateway(lambda request: httpx.Response(500))
    assert gateway.verify_signature("order_1", "pay_1", expected) is True
    assert gateway.verify_signature("order_1", "pay_2", expected) is False
    assert gateway.verify_signature("order_1", "pay_1", "") is False


@pytest.mark.asyncio
async def test_create_payment_intent_posts_minor_units():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = str(request.url)
        seen["auth"] = request.headers["Authorization"]
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"id": "order_ABC", "amount": 27000, "currency": "INR", "receipt": "r1"})

    intent = await make_gateway(handler).create_payment_intent(Decimal("270.00"), receipt="r1")

    assert intent.id == "order_ABC"
    assert intent.amount == 27000
    assert seen["url"] == "https://gateway.test/v1/orders"
    assert seen["body"] == {"amount": 27000, "currency": "INR", "receipt": "r1"}
    assert seen["auth"] == "Basic " + base64.b64encode(b"rzp_key:rzp_secret").decode()


@pytest.mark.asyncio
async def test_gateway_errors_become_upstream_failures():
    rejected = make_gateway(lambda request: httpx.Response(401, json={"error": "bad key"}))
    with pytest.raises(UpstreamFailure):
        await rejected.create_payment_intent(Decimal("10"), receipt="r1")

    def unreachable(request):
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(UpstreamFailure):
        await make_gateway(unreachable).create_payment_intent(Decimal("10"), receipt="r1")

    def slow(request):
        raise httpx.ReadTimeout("timed out", request=request)

    with pytest.raises(UpstreamFailure, match="in time"):
        await make_gateway(slow).create_payment_intent(Decimal("10"), receipt="r1")
