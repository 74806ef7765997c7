"""Coupon models"""

from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import Field

from commerce.coupons import DiscountType

from .common import ApiModel, MoneyOut


class CouponOut(ApiModel):
    code: str
    description: str = ""
    discount_type: DiscountType
    discount_value: Decimal
    min_cart_value: Optional[MoneyOut] = None
    max_discount: Optional[MoneyOut] = None
    start_date: datetime
    expiry_date: datetime
    is_active: bool
    usage_limit: Optional[int] = None
    usage_count: int = 0
    per_user_limit: Optional[int] = None


class ValidateCouponRequest(ApiModel):
    code: str = Field(min_length=1)
    cart_total: Decimal = Field(ge=0)


class ValidateCouponResponse(ApiModel):
    coupon: CouponOut
    discount_amount: MoneyOut
    payable_amount: MoneyOut


class AvailableCouponOut(CouponOut):
    estimated_discount: MoneyOut
    estimated_payable: MoneyOut


class AvailableCouponsResponse(ApiModel):
    best_coupon_code: Optional[str] = None
    items: list[AvailableCouponOut] = []
