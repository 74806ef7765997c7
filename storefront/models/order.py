"""Order models for the storefront"""

from datetime import datetime
from typing import Optional

from pydantic import Field

from commerce.orders import OrderStatus, PaymentMethod, PaymentStatus

from .common import ApiModel, MoneyOut


class AddressIn(ApiModel):
    full_name: str
    phone: str
    address_line1: str
    address_line2: Optional[str] = None
    city: str
    state: str
    pincode: str
    country: str = "IN"


class AddressOut(AddressIn):
    pass


class SavedAddressOut(AddressIn):
    id: str
    is_default: bool = False


class OrderLineOut(ApiModel):
    product_ref: str
    name: str
    unit_price: MoneyOut
    quantity: int
    line_subtotal: MoneyOut


class StatusEntryOut(ApiModel):
    status: str
    timestamp: datetime
    note: Optional[str] = None
    kind: str


class OrderOut(ApiModel):
    id: str
    order_number: str
    items: list[OrderLineOut]
    shipping_address: AddressOut
    billing_address: AddressOut
    subtotal: MoneyOut
    shipping_charges: MoneyOut
    tax_amount: MoneyOut
    discount_amount: MoneyOut
    total_amount: MoneyOut
    coupon_code: Optional[str] = None
    payment_method: PaymentMethod
    payment_status: PaymentStatus
    order_status: OrderStatus
    status_history: list[StatusEntryOut]
    created_at: datetime
    shipped_at: Optional[datetime] = None
    delivered_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None
    cancellation_reason: Optional[str] = None


class CheckoutRequest(ApiModel):
    """
    Place an order from the current cart.

    Either `address_id` (a saved address) or `shipping_address` is required.
    """
    address_id: Optional[str] = None
    shipping_address: Optional[AddressIn] = None
    billing_address: Optional[AddressIn] = None
    payment_method: PaymentMethod = PaymentMethod.RAZORPAY
    coupon_code: Optional[str] = None
    save_address: bool = False


class CancelOrderRequest(ApiModel):
    reason: Optional[str] = Field(default=None, max_length=500)


class UpdateOrderStatusRequest(ApiModel):
    status: OrderStatus
    note: Optional[str] = None


class OrderResponse(ApiModel):
    order: OrderOut
    message: Optional[str] = None


class OrderListResponse(ApiModel):
    items: list[OrderOut]
    total: int
