"""Shared fixtures: fresh in-memory storage, a fake gateway and API clients"""

import itertools
from decimal import Decimal
from typing import Optional

import pytest
from fastapi.testclient import TestClient

from commerce.cart import Cart
from commerce.errors import TransientError
from commerce.gateway import GatewayOrder, GatewayRefund
from commerce.money import Money
from commerce.orders import Address, OrderAssembler, OrderNumberGenerator, PaymentMethod
from commerce.payments import PaymentReconciler, PaymentSigner, PaymentVerifier
from commerce.pricing import PricingEngine, ShippingPolicy, TaxPolicy
from storefront.core.config import settings
from storefront.core.dependencies import get_gateway
from storefront.database import (
    address_db,
    cart_db,
    coupon_db,
    intent_db,
    order_db,
    product_db,
    refund_queue,
)
from storefront.database.orders import OrderDatabase, PaymentIntentDatabase
from storefront.main import app


class FakeGateway:
    """In-process stand-in for the payment gateway"""

    def __init__(self):
        self._ids = itertools.count(1)
        self.orders: list[GatewayOrder] = []
        self.refunds: list[GatewayRefund] = []
        self.amount_override: Optional[Money] = None
        self.refund_status = "processed"
        self.refunds_down = False

    async def create_order(self, amount: Money, receipt: Optional[str] = None) -> GatewayOrder:
        order = GatewayOrder(
            id=f"order_{next(self._ids):06d}",
            amount=self.amount_override or amount,
            receipt=receipt,
        )
        self.orders.append(order)
        return order

    async def refund(self, payment_id: str, amount: Money) -> GatewayRefund:
        if self.refunds_down:
            raise TransientError("Gateway timed out")
        refund = GatewayRefund(
            id=f"rfnd_{next(self._ids):06d}",
            payment_id=payment_id,
            amount=amount,
            status=self.refund_status,
        )
        self.refunds.append(refund)
        return refund


ADDRESS = {
    "fullName": "Asha Verma",
    "phone": "9876543210",
    "addressLine1": "12 MG Road",
    "city": "Bengaluru",
    "state": "Karnataka",
    "pincode": "560001",
}


def inr(value) -> Money:
    return Money.from_major(str(value), "INR")


@pytest.fixture(autouse=True)
def reset_storage():
    """Every test starts from the seeded catalog and empty carts/orders"""
    product_db.reset()
    cart_db.reset()
    coupon_db.reset()
    address_db.reset()
    order_db.reset()
    intent_db.reset()
    refund_queue.clear()
    yield


@pytest.fixture
def gateway() -> FakeGateway:
    return FakeGateway()


@pytest.fixture
def signer() -> PaymentSigner:
    return PaymentSigner(settings.razorpay_key_secret, settings.razorpay_webhook_secret)


@pytest.fixture
def verifier() -> PaymentVerifier:
    return PaymentVerifier(settings.razorpay_key_secret, settings.razorpay_webhook_secret)


@pytest.fixture
def address() -> Address:
    return Address(
        full_name="Asha Verma",
        phone="9876543210",
        address_line1="12 MG Road",
        city="Bengaluru",
        state="Karnataka",
        pincode="560001",
    )


@pytest.fixture
def engine() -> PricingEngine:
    return PricingEngine(
        shipping_policy=ShippingPolicy(free_threshold=inr(999), flat_charge=inr(59)),
        tax_policy=TaxPolicy(rate=Decimal("0.18")),
        coupon_lookup=coupon_db.get,
    )


@pytest.fixture
def assembler() -> OrderAssembler:
    return OrderAssembler(number_generator=OrderNumberGenerator(node=1))


@pytest.fixture
def orders() -> OrderDatabase:
    return OrderDatabase()


@pytest.fixture
def intents() -> PaymentIntentDatabase:
    return PaymentIntentDatabase()


@pytest.fixture
def reconciler(orders, intents, gateway, verifier) -> PaymentReconciler:
    return PaymentReconciler(orders, intents, gateway, verifier, max_attempts=3)


@pytest.fixture
def place_order(orders, engine, assembler, address):
    """Assemble and store an order for a simple two-product cart"""

    def _place(payment_method: PaymentMethod = PaymentMethod.RAZORPAY, coupon_code: Optional[str] = None):
        cart = Cart()
        cart.add("prod-001", "Premium Wireless Headphones", inr("2499.00"), 1, "electronics")
        cart.add("prod-003", "Cotton Crew T-Shirt", inr("399.00"), 2, "fashion")
        pricing = engine.price(cart, coupon_code)
        order = assembler.assemble(cart, address, pricing, payment_method, user_ref="user-001")
        return orders.save(order)

    return _place


@pytest.fixture
def client(gateway):
    """API client with the gateway replaced by FakeGateway"""
    app.dependency_overrides[get_gateway] = lambda: gateway
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def _login(client: TestClient, email: str, password: str) -> dict[str, str]:
    response = client.post("/api/auth/login", json={"email": email, "password": password})
    assert response.status_code == 200, response.text
    return {"Authorization": f"Bearer {response.json()['accessToken']}"}


@pytest.fixture
def auth_headers(client) -> dict[str, str]:
    return _login(client, "demo@storefront.test", "demo-password")


@pytest.fixture
def admin_headers(client) -> dict[str, str]:
    return _login(client, "admin@storefront.test", "admin-password")
