"""
Pricing Engine

subtotal + shipping + tax - discount, each component rounded once.

Tax policy: by default tax is charged on the discounted subtotal
(subtotal - discount). TaxPolicy(apply_after_discount=False) charges it on
the full subtotal instead.
"""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Optional

from .cart import Cart
from .coupons import Coupon, CouponCheck, normalize_code, validate
from .errors import CouponRejectedError, Reason
from .money import Money, round_half_up


@dataclass(frozen=True)
class ShippingPolicy:
    """Free shipping above a threshold, flat charge otherwise"""
    free_threshold: Money
    flat_charge: Money

    def charge_for(self, subtotal: Money) -> Money:
        if subtotal.amount == 0 or subtotal > self.free_threshold:
            return Money.zero(subtotal.currency)
        return self.flat_charge


@dataclass(frozen=True)
class TaxPolicy:
    rate: Decimal
    apply_after_discount: bool = True

    def taxable_amount(self, subtotal: Money, discount: Money) -> Money:
        if self.apply_after_discount:
            return (subtotal - discount).floor_zero()
        return subtotal

    def tax_for(self, subtotal: Money, discount: Money) -> Money:
        taxable = self.taxable_amount(subtotal, discount)
        return round_half_up(taxable.as_decimal() * self.rate, subtotal.currency)


@dataclass(frozen=True)
class PricingResult:
    subtotal: Money
    shipping_charges: Money
    tax_amount: Money
    discount_amount: Money
    total_amount: Money
    coupon_code: Optional[str] = None
    coupon: Optional[Coupon] = None


class PricingEngine:
    """
    Prices a cart under a shipping policy, a tax policy and an optional coupon.

    Usage:
        engine = PricingEngine(shipping_policy, tax_policy, coupon_lookup=coupon_db.get)
        result = engine.price(cart, "SAVE10", user_usage_count=0)
    """

    def __init__(self, shipping_policy: ShippingPolicy, tax_policy: TaxPolicy, coupon_lookup=None):
        self.shipping_policy = shipping_policy
        self.tax_policy = tax_policy
        self._coupon_lookup = coupon_lookup

    def check_coupon(
        self,
        cart: Cart,
        code: str,
        user_usage_count: int = 0,
        now: Optional[datetime] = None,
    ) -> CouponCheck:
        coupon = self._coupon_lookup(normalize_code(code)) if self._coupon_lookup else None
        return validate(coupon, cart.total_amount, user_usage_count, lines=cart.lines, now=now)

    def price(
        self,
        cart: Cart,
        coupon_code: Optional[str] = None,
        user_usage_count: int = 0,
        now: Optional[datetime] = None,
    ) -> PricingResult:
        """
        Price a cart.

        Raises:
            CouponRejectedError: coupon_code was given but the coupon is not eligible
        """
        subtotal = cart.total_amount
        discount = Money.zero(cart.currency)
        coupon = None

        if coupon_code:
            check = self.check_coupon(cart, coupon_code, user_usage_count, now=now)
            if not check.is_valid:
                raise CouponRejectedError(
                    check.message or "Coupon rejected",
                    check.reason or Reason.COUPON_NOT_APPLICABLE,
                )
            coupon = check.coupon
            discount = check.discount

        shipping = self.shipping_policy.charge_for(subtotal)
        tax = self.tax_policy.tax_for(subtotal, discount)
        total = (subtotal + shipping + tax - discount).floor_zero()

        return PricingResult(
            subtotal=subtotal,
            shipping_charges=shipping,
            tax_amount=tax,
            discount_amount=discount,
            total_amount=total,
            coupon_code=coupon.code if coupon else None,
            coupon=coupon,
        )
