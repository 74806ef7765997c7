"""Payment models"""

from decimal import Decimal
from typing import Optional

from pydantic import Field

from .common import ApiModel


class CreatePaymentOrderRequest(ApiModel):
    """Amount is in major units (rupees), as shown to the customer"""
    order_id: str
    amount: Decimal = Field(gt=0)
    currency: Optional[str] = None
    receipt: Optional[str] = None


class CreatePaymentOrderResponse(ApiModel):
    order_id: str  # gateway order id
    amount: int  # minor units
    currency: str
    key: str
    attempt: int


class VerifyPaymentRequest(ApiModel):
    razorpay_order_id: str
    razorpay_payment_id: str
    razorpay_signature: str
    order_id: str


class PaymentFailureRequest(ApiModel):
    order_id: str
    razorpay_order_id: Optional[str] = None
    reason: Optional[str] = None


class WebhookResponse(ApiModel):
    received: bool
    event: Optional[str] = None
