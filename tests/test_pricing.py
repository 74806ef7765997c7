"""Pricing engine: shipping, tax policy and coupon handling"""

from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from commerce.cart import Cart
from commerce.coupons import Coupon, DiscountType
from commerce.errors import CouponRejectedError, Reason
from commerce.money import Money
from commerce.pricing import PricingEngine, ShippingPolicy, TaxPolicy
from storefront.database import coupon_db

from .conftest import inr


def make_cart(*lines) -> Cart:
    cart = Cart()
    for ref, price, quantity, category in lines:
        cart.add(ref, ref, inr(price), quantity, category)
    return cart


def make_engine(apply_after_discount=True, coupon_lookup=None) -> PricingEngine:
    return PricingEngine(
        shipping_policy=ShippingPolicy(free_threshold=inr(999), flat_charge=inr(59)),
        tax_policy=TaxPolicy(rate=Decimal("0.18"), apply_after_discount=apply_after_discount),
        coupon_lookup=coupon_lookup,
    )


class TestShipping:
    def test_flat_below_threshold(self):
        result = make_engine().price(make_cart(("a", "399.00", 1, None)))
        assert result.shipping_charges == inr(59)

    def test_flat_at_threshold(self):
        result = make_engine().price(make_cart(("a", "999.00", 1, None)))
        assert result.shipping_charges == inr(59)

    def test_free_above_threshold(self):
        result = make_engine().price(make_cart(("a", "999.01", 1, None)))
        assert result.shipping_charges == Money.zero("INR")

    def test_empty_cart_ships_free(self):
        result = make_engine().price(Cart())
        assert result.total_amount == Money.zero("INR")


class TestTax:
    def test_without_coupon(self):
        result = make_engine().price(make_cart(("a", "399.00", 1, None)))
        # 18% of 399.00 = 71.82
        assert result.tax_amount == inr("71.82")
        assert result.total_amount == inr("399.00") + inr(59) + inr("71.82")

    def test_tax_after_discount(self, engine):
        cart = make_cart(("prod-001", "2499.00", 1, "electronics"))
        result = engine.price(cart, "flat150")

        assert result.discount_amount == inr(150)
        # 18% of 2349.00 = 422.82
        assert result.tax_amount == inr("422.82")
        assert result.total_amount == inr("2499.00") + inr("422.82") - inr(150)
        assert result.coupon_code == "FLAT150"

    def test_tax_before_discount(self):
        engine = make_engine(apply_after_discount=False, coupon_lookup=coupon_db.get)
        cart = make_cart(("prod-001", "2499.00", 1, "electronics"))
        result = engine.price(cart, "FLAT150")

        # 18% of 2499.00 = 449.82
        assert result.tax_amount == inr("449.82")
        assert result.total_amount == inr("2499.00") + inr("449.82") - inr(150)

    def test_components_rounded_independently(self):
        # 3 x 0.33 = 0.99; tax 0.1782 -> 0.18
        result = make_engine().price(make_cart(("a", "0.33", 3, None)))
        assert result.tax_amount == inr("0.18")
        assert result.total_amount.amount == 99 + 5900 + 18


class TestCoupons:
    def test_rejection_carries_reason(self, engine):
        cart = make_cart(("prod-003", "399.00", 1, "fashion"))
        with pytest.raises(CouponRejectedError) as exc:
            engine.price(cart, "FLAT150")
        assert exc.value.reason == Reason.MIN_CART_VALUE

    def test_unknown_code(self, engine):
        with pytest.raises(CouponRejectedError) as exc:
            engine.price(make_cart(("a", "100", 1, None)), "NOPE")
        assert exc.value.reason == Reason.COUPON_NOT_FOUND

    def test_total_never_negative(self):
        now = datetime.now(timezone.utc)
        coupon = Coupon(
            code="ALL",
            discount_type=DiscountType.PERCENT,
            discount_value=Decimal(100),
            start_date=now - timedelta(days=1),
            expiry_date=now + timedelta(days=1),
        )
        engine = PricingEngine(
            shipping_policy=ShippingPolicy(free_threshold=inr(0), flat_charge=inr(0)),
            tax_policy=TaxPolicy(rate=Decimal(0)),
            coupon_lookup={"ALL": coupon}.get,
        )
        result = engine.price(make_cart(("a", "10", 1, None)), "all")
        assert result.total_amount == Money.zero("INR")
