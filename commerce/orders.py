"""
Orders

Immutable order snapshots, the order/payment status transition tables, and
the Order Assembler that turns a priced cart into an order at checkout.
"""

import logging
import secrets
import threading
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Callable, Optional, Protocol, Union

from .cart import Cart
from .errors import EmptyCartError, InvalidTransitionError, StaleAddressError
from .money import Money
from .pricing import PricingResult

logger = logging.getLogger(__name__)


class OrderStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"
    RETURNED = "returned"


class PaymentStatus(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"
    REFUNDED = "refunded"


class PaymentMethod(str, Enum):
    RAZORPAY = "razorpay"
    COD = "cod"

    @property
    def uses_gateway(self) -> bool:
        return self == PaymentMethod.RAZORPAY


ORDER_TRANSITIONS: dict[OrderStatus, frozenset[OrderStatus]] = {
    OrderStatus.PENDING: frozenset({OrderStatus.PROCESSING, OrderStatus.CANCELLED}),
    OrderStatus.PROCESSING: frozenset({OrderStatus.SHIPPED, OrderStatus.CANCELLED}),
    OrderStatus.SHIPPED: frozenset({OrderStatus.DELIVERED}),
    OrderStatus.DELIVERED: frozenset({OrderStatus.RETURNED}),
    OrderStatus.CANCELLED: frozenset(),
    OrderStatus.RETURNED: frozenset(),
}

PAYMENT_TRANSITIONS: dict[PaymentStatus, frozenset[PaymentStatus]] = {
    PaymentStatus.PENDING: frozenset({PaymentStatus.COMPLETED, PaymentStatus.FAILED}),
    # a failed attempt may be retried with a new intent
    PaymentStatus.FAILED: frozenset({PaymentStatus.COMPLETED}),
    PaymentStatus.COMPLETED: frozenset({PaymentStatus.REFUNDED}),
    PaymentStatus.REFUNDED: frozenset(),
}

CANCELLABLE_STATUSES = frozenset({OrderStatus.PENDING, OrderStatus.PROCESSING})


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class Address:
    full_name: str
    phone: str
    address_line1: str
    city: str
    state: str
    pincode: str
    country: str = "IN"
    address_line2: Optional[str] = None


class AddressBook(Protocol):
    """Storage collaborator that resolves saved addresses"""

    def resolve(self, address_ref: str) -> Optional[Address]: ...


@dataclass(frozen=True)
class OrderLine:
    """Product name and price as they were at checkout"""
    product_ref: str
    name: str
    unit_price: Money
    quantity: int
    line_subtotal: Money


@dataclass(frozen=True)
class StatusEntry:
    status: str
    timestamp: datetime
    note: Optional[str] = None
    kind: str = "order"


@dataclass
class Order:
    """
    Order snapshot.

    Items, totals and addresses are fixed at creation. Post-creation changes
    go through `transition` / `transition_payment`, which consult the
    transition tables and append to the status history.
    """
    id: str
    order_number: str
    user_ref: str
    items: tuple[OrderLine, ...]
    shipping_address: Address
    billing_address: Address
    subtotal: Money
    shipping_charges: Money
    tax_amount: Money
    discount_amount: Money
    total_amount: Money
    payment_method: PaymentMethod
    coupon_code: Optional[str] = None
    payment_status: PaymentStatus = PaymentStatus.PENDING
    order_status: OrderStatus = OrderStatus.PENDING
    status_history: list[StatusEntry] = field(default_factory=list)
    created_at: datetime = field(default_factory=_utcnow)
    shipped_at: Optional[datetime] = None
    delivered_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None
    cancellation_reason: Optional[str] = None

    @property
    def currency(self) -> str:
        return self.total_amount.currency

    def can_transition(self, status: OrderStatus) -> bool:
        return status in ORDER_TRANSITIONS[self.order_status]

    def transition(self, status: OrderStatus, note: Optional[str] = None) -> "Order":
        """Move the order status along the transition table"""
        status = OrderStatus(status)
        if not self.can_transition(status):
            raise InvalidTransitionError(
                f"Order {self.order_number} cannot move from "
                f"{self.order_status.value} to {status.value}"
            )

        now = _utcnow()
        self.order_status = status
        self.status_history.append(StatusEntry(status=status.value, timestamp=now, note=note))

        if status == OrderStatus.SHIPPED:
            self.shipped_at = now
        elif status == OrderStatus.DELIVERED:
            self.delivered_at = now
        elif status == OrderStatus.CANCELLED:
            self.cancelled_at = now
            self.cancellation_reason = note

        logger.info(f"Order {self.order_number} -> {status.value}")
        return self

    def transition_payment(self, status: PaymentStatus, note: Optional[str] = None) -> "Order":
        """Move the payment status along the transition table"""
        status = PaymentStatus(status)
        if status not in PAYMENT_TRANSITIONS[self.payment_status]:
            raise InvalidTransitionError(
                f"Payment for order {self.order_number} cannot move from "
                f"{self.payment_status.value} to {status.value}"
            )

        self.payment_status = status
        self.status_history.append(
            StatusEntry(status=status.value, timestamp=_utcnow(), note=note, kind="payment")
        )
        logger.info(f"Order {self.order_number} payment -> {status.value}")
        return self


class OrderNumberGenerator:
    """
    Human-readable, sortable order numbers: ORD-<epoch ms>-<node suffix>.

    The millisecond part strictly increases within a process, so numbers
    are never reused; the random node suffix separates processes.
    """

    def __init__(self, clock: Callable[[], float] = time.time, node: Optional[int] = None):
        self._clock = clock
        self._node = node if node is not None else secrets.randbelow(10_000)
        self._last_ms = 0
        self._lock = threading.Lock()

    def next(self) -> str:
        with self._lock:
            now_ms = int(self._clock() * 1000)
            if now_ms <= self._last_ms:
                now_ms = self._last_ms + 1
            self._last_ms = now_ms
        return f"ORD-{now_ms:013d}-{self._node:04d}"


class OrderAssembler:
    """
    Snapshots cart + address + pricing into an order at checkout.

    Usage:
        assembler = OrderAssembler(address_book=address_db)
        order = assembler.assemble(cart, "addr-1", pricing, PaymentMethod.RAZORPAY, user_ref="u-1")
    """

    def __init__(
        self,
        address_book: Optional[AddressBook] = None,
        number_generator: Optional[OrderNumberGenerator] = None,
        id_factory: Optional[Callable[[], str]] = None,
    ):
        self.address_book = address_book
        self.number_generator = number_generator or OrderNumberGenerator()
        self._id_factory = id_factory or (lambda: secrets.token_hex(12))

    def _resolve(self, address: Union[str, Address, None]) -> Address:
        if isinstance(address, Address):
            return address
        resolved = None
        if address and self.address_book is not None:
            resolved = self.address_book.resolve(address)
        if resolved is None:
            raise StaleAddressError(f"Address {address!r} could not be resolved")
        return resolved

    def assemble(
        self,
        cart: Cart,
        address: Union[str, Address],
        pricing: PricingResult,
        payment_method: PaymentMethod,
        user_ref: str = "",
        billing_address: Union[str, Address, None] = None,
    ) -> Order:
        """
        Build a new order.

        Raises:
            EmptyCartError: the cart has no lines
            StaleAddressError: an address reference does not resolve
        """
        if cart.is_empty:
            raise EmptyCartError("Cannot place an order with an empty cart")

        shipping_address = self._resolve(address)
        billing = self._resolve(billing_address) if billing_address else shipping_address
        payment_method = PaymentMethod(payment_method)

        items = tuple(
            OrderLine(
                product_ref=line.product_ref,
                name=line.name,
                unit_price=line.unit_price,
                quantity=line.quantity,
                line_subtotal=line.line_total,
            )
            for line in cart.lines
        )

        order = Order(
            id=self._id_factory(),
            order_number=self.number_generator.next(),
            user_ref=user_ref,
            items=items,
            shipping_address=shipping_address,
            billing_address=billing,
            subtotal=pricing.subtotal,
            shipping_charges=pricing.shipping_charges,
            tax_amount=pricing.tax_amount,
            discount_amount=pricing.discount_amount,
            total_amount=pricing.total_amount,
            payment_method=payment_method,
            coupon_code=pricing.coupon_code,
        )
        order.status_history.append(
            StatusEntry(status=OrderStatus.PENDING.value, timestamp=order.created_at, note="Order placed")
        )

        # Non-gateway methods settle outside the payment reconciler
        if not payment_method.uses_gateway:
            order.transition_payment(PaymentStatus.COMPLETED, note=f"Settled via {payment_method.value}")

        logger.info(f"Assembled order {order.order_number}: {order.total_amount}")
        return order
