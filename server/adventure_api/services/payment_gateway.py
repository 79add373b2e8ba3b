"""Razorpay payment gateway client."""

import hashlib
import hmac
import logging
from typing import Any, Optional, Protocol

import httpx

from ..core.config import settings
from ..core.exceptions import PaymentGatewayError

logger = logging.getLogger(__name__)


def to_paise(amount: float) -> int:
    """Convert a rupee amount to the gateway's integer minor unit."""
    return int(round(amount * 100))


def _hmac_sha256(secret: str, message: bytes) -> str:
    return hmac.new(secret.encode("utf-8"), message, hashlib.sha256).hexdigest()


class PaymentGateway(Protocol):
    """Operations the payment flow needs from a gateway."""

    key_id: str

    async def create_order(self, amount: float, receipt: str, notes: Optional[dict[str, str]] = None) -> dict[str, Any]:
        ...

    async def refund_payment(
        self, payment_id: str, amount: float, notes: Optional[dict[str, str]] = None
    ) -> dict[str, Any]:
        ...

    def verify_payment_signature(self, order_id: str, payment_id: str, signature: str) -> bool:
        ...

    def verify_webhook_signature(self, body: bytes, signature: str) -> bool:
        ...


class RazorpayGateway:
    """
    Thin async client for the Razorpay orders and refunds API.

    Amounts are passed in rupees and sent in paise. Signature checks are
    HMAC-SHA256: ``order_id|payment_id`` with the key secret for checkout
    callbacks, the raw body with the webhook secret for webhooks.
    """

    def __init__(
        self,
        key_id: Optional[str] = None,
        key_secret: Optional[str] = None,
        webhook_secret: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.key_id = key_id or settings.razorpay_key_id
        self.key_secret = key_secret or settings.razorpay_key_secret
        self.webhook_secret = webhook_secret or settings.razorpay_webhook_secret
        self.base_url = (base_url or settings.razorpay_api_url).rstrip("/")
        self.timeout = timeout or settings.razorpay_timeout_seconds
        self._transport = transport

    async def _post(self, path: str, payload: dict[str, Any]) -> dict[str, Any]:
        async with httpx.AsyncClient(
            base_url=self.base_url,
            auth=(self.key_id, self.key_secret),
            timeout=self.timeout,
            transport=self._transport,
        ) as client:
            try:
                response = await client.post(path, json=payload)
            except httpx.HTTPError as e:
                logger.error("Payment gateway request failed", extra={"path": path, "error": str(e)})
                raise PaymentGatewayError(detail="Payment gateway is unreachable") from e

        if response.status_code >= 400:
            try:
                description = response.json().get("error", {}).get("description")
            except ValueError:
                description = None
            logger.warning(
                "Payment gateway rejected request",
                extra={"path": path, "status_code": response.status_code, "description": description}
            )
            raise PaymentGatewayError(
                detail=description or "The payment gateway rejected the request",
                gateway_status=response.status_code,
            )

        return response.json()

    async def create_order(self, amount: float, receipt: str, notes: Optional[dict[str, str]] = None) -> dict[str, Any]:
        """Create an order for ``amount`` rupees."""
        order = await self._post(
            "/orders",
            {
                "amount": to_paise(amount),
                "currency": settings.currency,
                "receipt": receipt,
                "notes": notes or {},
            },
        )
        logger.info("Gateway order created", extra={"order_id": order.get("id"), "receipt": receipt})
        return order

    async def refund_payment(
        self, payment_id: str, amount: float, notes: Optional[dict[str, str]] = None
    ) -> dict[str, Any]:
        """Refund ``amount`` rupees of a captured payment."""
        refund = await self._post(
            f"/payments/{payment_id}/refund",
            {"amount": to_paise(amount), "notes": notes or {}},
        )
        logger.info("Gateway refund issued", extra={"payment_id": payment_id, "refund_id": refund.get("id")})
        return refund

    def verify_payment_signature(self, order_id: str, payment_id: str, signature: str) -> bool:
        expected = _hmac_sha256(self.key_secret, f"{order_id}|{payment_id}".encode("utf-8"))
        return hmac.compare_digest(expected, signature or "")

    def verify_webhook_signature(self, body: bytes, signature: str) -> bool:
        expected = _hmac_sha256(self.webhook_secret, body)
        return hmac.compare_digest(expected, signature or "")


def get_payment_gateway() -> PaymentGateway:
    """FastAPI dependency returning the configured gateway."""
    return RazorpayGateway()
