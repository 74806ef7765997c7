"""
Storefront API Client

Typed wrapper over the storefront REST API. Every call goes through the
SessionCoordinator, so feature code never handles tokens itself.
"""

import logging
from decimal import Decimal
from typing import Any, Optional

import httpx

from commerce.errors import Reason

from ..core.session import SessionCoordinator

logger = logging.getLogger(__name__)


class StorefrontClientError(Exception):
    """Error response from the storefront API"""

    def __init__(self, status_code: int, detail: str, reason: Optional[str] = None):
        super().__init__(f"{status_code}: {detail}")
        self.status_code = status_code
        self.detail = detail
        self.reason = reason

    @property
    def reason_code(self) -> Optional[Reason]:
        """Reason as an enum member, when the server sent a known code"""
        try:
            return Reason(self.reason)
        except ValueError:
            return None

    @classmethod
    def from_response(cls, response: httpx.Response) -> "StorefrontClientError":
        try:
            body = response.json()
        except ValueError:
            body = {}
        detail = body.get("detail", response.text) if isinstance(body, dict) else response.text
        reason = body.get("reason") if isinstance(body, dict) else None
        return cls(response.status_code, str(detail), reason)


def _major(value: Any) -> str:
    # Decimal amounts travel as strings so no float rounding creeps in
    return str(Decimal(str(value)))


class StorefrontClient:
    """
    Client for the storefront API.

    Usage:
        client = StorefrontClient(SessionCoordinator())
        await client.login("demo@storefront.test", "demo-password")
        cart = await client.add_to_cart("prod-001", quantity=2)
    """

    def __init__(self, coordinator: Optional[SessionCoordinator] = None):
        self.coordinator = coordinator or SessionCoordinator()

    async def close(self) -> None:
        await self.coordinator.close()

    async def _request(
        self,
        method: str,
        path: str,
        body: Optional[dict] = None,
        params: Optional[dict] = None,
    ) -> dict[str, Any]:
        """Send through the session coordinator and decode the JSON body"""
        response = await self.coordinator.request(method, path, json=body, params=params)

        if response.status_code >= 400:
            logger.error(f"Request failed: {response.status_code} - {response.text}")
            raise StorefrontClientError.from_response(response)

        return response.json()

    # ==================== Auth ====================

    async def login(self, email: str, password: str) -> Optional[dict]:
        session = await self.coordinator.login(email, password)
        return session.user

    async def logout(self) -> None:
        await self.coordinator.logout()

    # ==================== Products ====================

    async def list_products(self, category: Optional[str] = None) -> dict:
        params = {"category": category} if category else None
        return await self._request("GET", "/api/products", params=params)

    async def get_product(self, product_id: str) -> dict:
        return await self._request("GET", f"/api/products/{product_id}")

    # ==================== Cart ====================

    async def get_cart(self) -> dict:
        return await self._request("GET", "/api/cart")

    async def add_to_cart(self, product_id: str, quantity: int = 1) -> dict:
        return await self._request(
            "POST", "/api/cart/items", {"productId": product_id, "quantity": quantity}
        )

    async def update_cart_item(self, product_id: str, quantity: int) -> dict:
        return await self._request(
            "PUT", f"/api/cart/items/{product_id}", {"quantity": quantity}
        )

    async def remove_from_cart(self, product_id: str) -> dict:
        return await self._request("DELETE", f"/api/cart/items/{product_id}")

    async def clear_cart(self) -> dict:
        return await self._request("DELETE", "/api/cart/clear")

    # ==================== Coupons ====================

    async def validate_coupon(self, code: str, cart_total) -> dict:
        """Returns the coupon with its discount and payable amount"""
        return await self._request(
            "POST", "/api/coupons/validate", {"code": code, "cartTotal": _major(cart_total)}
        )

    async def available_coupons(self, cart_total) -> dict:
        return await self._request(
            "GET", "/api/coupons/available", params={"cartTotal": _major(cart_total)}
        )

    # ==================== Addresses ====================

    async def list_addresses(self) -> list:
        return await self._request("GET", "/api/addresses")

    async def save_address(self, address: dict, is_default: bool = False) -> dict:
        return await self._request(
            "POST",
            "/api/addresses",
            address,
            params={"isDefault": str(is_default).lower()},
        )

    # ==================== Orders ====================

    async def place_order(
        self,
        address_id: Optional[str] = None,
        shipping_address: Optional[dict] = None,
        payment_method: str = "razorpay",
        coupon_code: Optional[str] = None,
        billing_address: Optional[dict] = None,
        save_address: bool = False,
    ) -> dict:
        """Check out the current cart"""
        body = {
            "addressId": address_id,
            "shippingAddress": shipping_address,
            "billingAddress": billing_address,
            "paymentMethod": payment_method,
            "couponCode": coupon_code,
            "saveAddress": save_address,
        }
        return await self._request("POST", "/api/orders", body)

    async def list_orders(self, status: Optional[str] = None, limit: int = 50) -> dict:
        params = {"limit": limit}
        if status:
            params["status"] = status
        return await self._request("GET", "/api/orders", params=params)

    async def get_order(self, order_id: str) -> dict:
        return await self._request("GET", f"/api/orders/{order_id}")

    async def cancel_order(self, order_id: str, reason: Optional[str] = None) -> dict:
        return await self._request("PUT", f"/api/orders/{order_id}/cancel", {"reason": reason})

    async def update_order_status(self, order_id: str, status: str, note: Optional[str] = None) -> dict:
        """Admin only"""
        return await self._request(
            "PUT", f"/api/orders/{order_id}/status", {"status": status, "note": note}
        )

    # ==================== Payment ====================

    async def create_payment_order(
        self,
        order_id: str,
        amount,
        currency: Optional[str] = None,
        receipt: Optional[str] = None,
    ) -> dict:
        """Returns the gateway order id, amount in minor units and the public key"""
        body = {"orderId": order_id, "amount": _major(amount)}
        if currency:
            body["currency"] = currency
        if receipt:
            body["receipt"] = receipt
        return await self._request("POST", "/api/payment/create-order", body)

    async def verify_payment(
        self,
        order_id: str,
        razorpay_order_id: str,
        razorpay_payment_id: str,
        razorpay_signature: str,
    ) -> dict:
        return await self._request(
            "POST",
            "/api/payment/verify",
            {
                "orderId": order_id,
                "razorpayOrderId": razorpay_order_id,
                "razorpayPaymentId": razorpay_payment_id,
                "razorpaySignature": razorpay_signature,
            },
        )

    async def report_payment_failure(
        self,
        order_id: str,
        razorpay_order_id: Optional[str] = None,
        reason: Optional[str] = None,
    ) -> dict:
        return await self._request(
            "POST",
            "/api/payment/failure",
            {"orderId": order_id, "razorpayOrderId": razorpay_order_id, "reason": reason},
        )
