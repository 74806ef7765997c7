"""
Razorpay Client

Thin async wrapper over the gateway's Orders and Refunds APIs.
Every call carries a bounded timeout; timeouts and network failures are
raised as TransientError and never treated as success.
"""

import logging
from typing import Any, Optional

import httpx

from ..errors import GatewayError, TransientError
from ..money import Money
from .models import GatewayOrder, GatewayRefund

logger = logging.getLogger(__name__)


class RazorpayClient:
    """
    Client for the payment gateway REST API.

    Usage:
        client = RazorpayClient(key_id="rzp_test_...", key_secret="...")
        order = await client.create_order(Money(49900, "INR"), receipt="ORD-...")
        await client.close()
    """

    def __init__(
        self,
        key_id: str,
        key_secret: str,
        base_url: str = "https://api.razorpay.com/v1",
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.key_id = key_id
        self.base_url = base_url.rstrip("/")
        self._http_client = httpx.AsyncClient(
            base_url=self.base_url,
            auth=(key_id, key_secret),
            timeout=timeout,
            transport=transport,
        )

    async def close(self) -> None:
        """Close HTTP client"""
        await self._http_client.aclose()

    async def _request(self, method: str, path: str, body: Optional[dict] = None) -> dict[str, Any]:
        try:
            response = await self._http_client.request(method, path, json=body)
        except httpx.TimeoutException as e:
            raise TransientError(f"Gateway timed out on {method} {path}") from e
        except httpx.TransportError as e:
            raise TransientError(f"Gateway unreachable on {method} {path}: {e}") from e

        if response.status_code >= 500:
            raise TransientError(f"Gateway error {response.status_code} on {method} {path}")

        if response.status_code >= 400:
            logger.error(f"Gateway request failed: {response.status_code} - {response.text}")
            raise GatewayError(f"Gateway rejected {method} {path}: {response.status_code}")

        return response.json()

    # ==================== Orders ====================

    async def create_order(
        self,
        amount: Money,
        receipt: Optional[str] = None,
        notes: Optional[dict[str, str]] = None,
    ) -> GatewayOrder:
        """Create a gateway order for `amount` (sent in minor units)"""
        body: dict[str, Any] = {
            "amount": amount.amount,
            "currency": amount.currency,
            "payment_capture": 1,
        }
        if receipt:
            body["receipt"] = receipt
        if notes:
            body["notes"] = notes

        result = await self._request("POST", "/orders", body)
        logger.info(f"Created gateway order {result['id']} for {amount}")

        return GatewayOrder(
            id=result["id"],
            amount=Money(int(result["amount"]), result.get("currency", amount.currency)),
            status=result.get("status", "created"),
            receipt=result.get("receipt"),
        )

    # ==================== Refunds ====================

    async def refund(self, payment_id: str, amount: Money) -> GatewayRefund:
        """Refund `amount` of a captured payment"""
        result = await self._request(
            "POST",
            f"/payments/{payment_id}/refund",
            {"amount": amount.amount},
        )
        logger.info(f"Refund {result['id']} requested for payment {payment_id}")

        return GatewayRefund(
            id=result["id"],
            payment_id=result.get("payment_id", payment_id),
            amount=Money(int(result["amount"]), result.get("currency", amount.currency)),
            status=result.get("status", "pending"),
        )
