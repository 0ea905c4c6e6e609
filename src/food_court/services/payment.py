"""
Платёжный шлюз (Razorpay).

Снаружи нужны только две вещи: создать платёжное намерение на сумму заказа
и проверить подпись, которую шлюз возвращает клиенту после оплаты.
Суммы в минорных единицах (×100) существуют только здесь.
"""
import hashlib
import hmac
import logging
from decimal import Decimal, ROUND_HALF_UP

import httpx

from food_court.config import settings
from food_court.exceptions import UpstreamFailure
from food_court.schemas.order import PaymentIntent

logger = logging.getLogger(__name__)


def to_minor_units(amount: Decimal) -> int:
    return int((Decimal(amount) * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def compute_signature(gateway_order_id: str, payment_id: str, secret: str) -> str:
    body = f"{gateway_order_id}|{payment_id}".encode()
    return hmac.new(secret.encode(), body, hashlib.sha256).hexdigest()


class PaymentGateway:
    def __init__(
        self,
        key_id: str,
        key_secret: str,
        api_url: str,
        currency: str = "INR",
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.key_id = key_id
        self.key_secret = key_secret
        self.api_url = api_url.rstrip("/")
        self.currency = currency
        self.timeout = timeout
        self._transport = transport

    async def create_payment_intent(self, amount: Decimal, receipt: str) -> PaymentIntent:
        """
        Создаёт заказ в шлюзе на сумму `amount` (в рупиях).
        """
        payload = {
            "amount": to_minor_units(amount),
            "currency": self.currency,
            "receipt": receipt,
        }
        try:
            async with httpx.AsyncClient(
                timeout=self.timeout,
                auth=(self.key_id, self.key_secret),
                transport=self._transport,
            ) as client:
                response = await client.post(f"{self.api_url}/orders", json=payload)
        except httpx.TimeoutException:
            logger.error("Payment gateway timed out creating intent %s", receipt)
            raise UpstreamFailure("Payment gateway did not respond in time")
        except httpx.RequestError as exc:
            logger.error("Payment gateway unreachable: %s", exc)
            raise UpstreamFailure(f"Payment gateway unreachable: {exc}")

        if not response.is_success:
            logger.error("Payment gateway rejected intent %s: %s %s", receipt, response.status_code, response.text[:200])
            raise UpstreamFailure(f"Payment gateway returned {response.status_code}")

        data = response.json()
        return PaymentIntent(
            id=data["id"],
            amount=data.get("amount", payload["amount"]),
            currency=data.get("currency", self.currency),
            receipt=data.get("receipt", receipt),
        )

    def verify_signature(self, gateway_order_id: str, payment_id: str, signature: str) -> bool:
        expected = compute_signature(gateway_order_id, payment_id, self.key_secret)
        return hmac.compare_digest(expected, signature or "")


def get_payment_gateway() -> PaymentGateway:
    return PaymentGateway(
        key_id=settings.RAZORPAY_KEY_ID,
        key_secret=settings.RAZORPAY_KEY_SECRET,
        api_url=settings.RAZORPAY_API_URL,
        currency=settings.PAYMENT_CURRENCY,
        timeout=settings.PAYMENT_TIMEOUT_SECONDS,
    )
