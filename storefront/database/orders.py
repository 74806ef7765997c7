"""Order and payment intent storage for the storefront"""

import asyncio
from collections import defaultdict, deque
from typing import Optional

from commerce.orders import Order, OrderStatus
from commerce.payments.models import PaymentIntent, RefundRequest, VerifiedPayment


class OrderDatabase:
    """
    In-memory order storage.

    `lock(order_id)` serialises read-modify-write cycles on one order.
    """

    def __init__(self):
        self.orders: dict[str, Order] = {}
        self._locks: defaultdict[str, asyncio.Lock] = defaultdict(asyncio.Lock)

    def reset(self) -> None:
        self.orders.clear()
        self._locks.clear()

    def lock(self, order_id: str) -> asyncio.Lock:
        return self._locks[order_id]

    def get(self, order_id: str) -> Optional[Order]:
        return self.orders.get(order_id)

    def save(self, order: Order) -> Order:
        self.orders[order.id] = order
        return order

    def get_for_user(self, order_id: str, user_id: str) -> Optional[Order]:
        order = self.get(order_id)
        if order and order.user_ref == user_id:
            return order
        return None

    def list_orders(
        self,
        user_id: Optional[str] = None,
        status: Optional[OrderStatus] = None,
        limit: int = 50,
    ) -> list[Order]:
        """List recent orders, newest first"""
        orders = list(self.orders.values())
        if user_id is not None:
            orders = [o for o in orders if o.user_ref == user_id]
        if status is not None:
            orders = [o for o in orders if o.order_status == status]
        orders.sort(key=lambda o: o.order_number, reverse=True)
        return orders[:limit]

    def coupon_usage(self, user_id: str) -> dict[str, int]:
        """How many orders the user placed with each coupon code"""
        usage: dict[str, int] = defaultdict(int)
        for order in self.orders.values():
            if order.user_ref == user_id and order.coupon_code:
                usage[order.coupon_code] += 1
        return dict(usage)


class PaymentIntentDatabase:
    """In-memory payment intents and verified payments"""

    def __init__(self):
        self.intents: dict[str, PaymentIntent] = {}
        self.payments: dict[str, VerifiedPayment] = {}

    def reset(self) -> None:
        self.intents.clear()
        self.payments.clear()

    def add(self, intent: PaymentIntent) -> PaymentIntent:
        self.intents[intent.gateway_order_id] = intent
        return intent

    def for_order(self, order_id: str) -> list[PaymentIntent]:
        return [i for i in self.intents.values() if i.order_ref == order_id]

    def by_gateway_order(self, gateway_order_id: str) -> Optional[PaymentIntent]:
        return self.intents.get(gateway_order_id)

    def record_payment(self, payment: VerifiedPayment) -> VerifiedPayment:
        self.payments[payment.order_ref] = payment
        return payment

    def payment_for(self, order_id: str) -> Optional[VerifiedPayment]:
        return self.payments.get(order_id)

    def payment_by_id(self, gateway_payment_id: str) -> Optional[VerifiedPayment]:
        return next(
            (p for p in self.payments.values() if p.gateway_payment_id == gateway_payment_id),
            None,
        )


# Singleton instances
order_db = OrderDatabase()
intent_db = PaymentIntentDatabase()
refund_queue: deque[RefundRequest] = deque()
