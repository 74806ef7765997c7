"""Coupon validation, discount bounds and best-coupon selection"""

from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from commerce.cart import Cart
from commerce.coupons import Coupon, DiscountType, available, best_coupon, compute_discount, validate
from commerce.errors import CouponRejectedError, Reason
from commerce.money import Money

from .conftest import inr

NOW = datetime(2026, 6, 1, 12, 0, tzinfo=timezone.utc)


def make_coupon(code="SAVE", discount_type=DiscountType.PERCENT, value="10", **kwargs) -> Coupon:
    kwargs.setdefault("start_date", NOW - timedelta(days=1))
    kwargs.setdefault("expiry_date", NOW + timedelta(days=10))
    return Coupon(code=code, discount_type=discount_type, discount_value=Decimal(value), **kwargs)


class TestDiscountBounds:
    @pytest.mark.parametrize("total", ["0.01", "1", "99.99", "499.50", "1000", "123456.78"])
    def test_percent_never_exceeds_cap(self, total):
        coupon = make_coupon(value="30", max_discount=inr(50))
        check = validate(coupon, inr(total), now=NOW)
        assert check.is_valid
        assert check.discount <= inr(50)
        assert check.payable >= Money.zero("INR")

    @pytest.mark.parametrize("total", ["0.01", "39.99", "40", "1000"])
    def test_flat_never_exceeds_total(self, total):
        coupon = make_coupon(discount_type=DiscountType.FLAT, value="40")
        check = validate(coupon, inr(total), now=NOW)
        assert check.discount <= inr(total)
        assert check.payable == inr(total) - check.discount
        assert check.payable.amount >= 0

    def test_percent_rounded_once(self):
        # 15% of 333.33 = 49.9995 -> 50.00
        coupon = make_coupon(value="15")
        assert compute_discount(coupon, inr("333.33")) == inr("50.00")

    def test_zero_total_discount_is_zero(self):
        assert compute_discount(make_coupon(), Money.zero("INR")) == Money.zero("INR")


class TestBestCoupon:
    def test_larger_discount_wins(self):
        a = make_coupon("A", value="10", max_discount=inr(50))
        b = make_coupon("B", DiscountType.FLAT, "40")
        assert best_coupon([b, a], inr(1000), now=NOW).code == "A"

    def test_tie_prefers_earliest_expiry(self):
        late = make_coupon("LATE", DiscountType.FLAT, "50", expiry_date=NOW + timedelta(days=30))
        soon = make_coupon("SOON", DiscountType.FLAT, "50", expiry_date=NOW + timedelta(days=2))
        assert best_coupon([late, soon], inr(1000), now=NOW).code == "SOON"

    def test_ineligible_coupons_skipped(self):
        expired = make_coupon("OLD", DiscountType.FLAT, "500", expiry_date=NOW - timedelta(days=1))
        small = make_coupon("SMALL", DiscountType.FLAT, "10")
        assert best_coupon([expired, small], inr(1000), now=NOW).code == "SMALL"
        assert best_coupon([expired], inr(1000), now=NOW) is None

    def test_available_ordering(self):
        coupons = [
            make_coupon("B", DiscountType.FLAT, "40"),
            make_coupon("A", value="10", max_discount=inr(50)),
            make_coupon("C", DiscountType.FLAT, "40"),
        ]
        checks = available(coupons, inr(1000), now=NOW)
        assert [c.coupon.code for c in checks] == ["A", "B", "C"]


class TestRejectionReasons:
    def test_not_found(self):
        assert validate(None, inr(100)).reason == Reason.COUPON_NOT_FOUND

    def test_inactive_checked_before_min_value(self):
        coupon = make_coupon(is_active=False, min_cart_value=inr(5000))
        assert validate(coupon, inr(100), now=NOW).reason == Reason.COUPON_INACTIVE

    def test_not_started_and_expired(self):
        future = make_coupon(start_date=NOW + timedelta(days=1))
        past = make_coupon(expiry_date=NOW - timedelta(seconds=1))
        assert validate(future, inr(100), now=NOW).reason == Reason.COUPON_NOT_STARTED
        assert validate(past, inr(100), now=NOW).reason == Reason.COUPON_EXPIRED

    def test_min_cart_value_before_usage(self):
        coupon = make_coupon(min_cart_value=inr(999), usage_limit=1, usage_count=1)
        assert validate(coupon, inr(998), now=NOW).reason == Reason.MIN_CART_VALUE
        assert validate(coupon, inr(999), now=NOW).reason == Reason.USAGE_LIMIT_REACHED

    def test_per_user_limit(self):
        coupon = make_coupon(per_user_limit=1)
        assert validate(coupon, inr(100), user_usage_count=0, now=NOW).is_valid
        check = validate(coupon, inr(100), user_usage_count=1, now=NOW)
        assert check.reason == Reason.USER_LIMIT_REACHED

    def test_raise_for_rejection(self):
        check = validate(make_coupon(expiry_date=NOW - timedelta(days=1)), inr(100), now=NOW)
        with pytest.raises(CouponRejectedError) as exc:
            check.raise_for_rejection()
        assert exc.value.reason == Reason.COUPON_EXPIRED

    def test_invalid_definitions(self):
        with pytest.raises(ValueError):
            make_coupon(value="0")
        with pytest.raises(ValueError):
            make_coupon(value="120")
        with pytest.raises(ValueError):
            make_coupon(discount_type=DiscountType.FLAT, value="-5")


class TestRestrictedCoupons:
    def test_discount_only_on_matching_lines(self):
        cart = Cart()
        cart.add("prod-006", "Atomic Habits", inr("299.00"), 2, "books")
        cart.add("prod-001", "Headphones", inr("2499.00"), 1, "electronics")
        coupon = make_coupon(value="15", applicable_categories={"books"})

        check = validate(coupon, cart.total_amount, lines=cart.lines, now=NOW)

        # 15% of 598.00
        assert check.discount == inr("89.70")
        assert check.payable == cart.total_amount - inr("89.70")

    def test_no_matching_line(self):
        cart = Cart().add("prod-001", "Headphones", inr("2499.00"), 1, "electronics")
        coupon = make_coupon(applicable_products={"prod-006"})
        check = validate(coupon, cart.total_amount, lines=cart.lines, now=NOW)
        assert check.reason == Reason.COUPON_NOT_APPLICABLE

    def test_code_normalised(self):
        assert make_coupon(code="  save10 ").code == "SAVE10"
