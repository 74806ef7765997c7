"""Coupon storage for the storefront"""

from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import Optional

from commerce.coupons import Coupon, DiscountType, normalize_code
from commerce.money import Money


def _seed_coupons() -> list[Coupon]:
    now = datetime.now(timezone.utc)
    return [
        Coupon(
            code="WELCOME10",
            description="10% off, up to Rs 500",
            discount_type=DiscountType.PERCENT,
            discount_value=Decimal("10"),
            max_discount=Money.from_major("500"),
            start_date=now - timedelta(days=30),
            expiry_date=now + timedelta(days=60),
            per_user_limit=1,
        ),
        Coupon(
            code="FLAT150",
            description="Rs 150 off on orders above Rs 999",
            discount_type=DiscountType.FLAT,
            discount_value=Decimal("150"),
            min_cart_value=Money.from_major("999"),
            start_date=now - timedelta(days=7),
            expiry_date=now + timedelta(days=14),
            usage_limit=1000,
        ),
        Coupon(
            code="READMORE",
            description="15% off books",
            discount_type=DiscountType.PERCENT,
            discount_value=Decimal("15"),
            start_date=now - timedelta(days=7),
            expiry_date=now + timedelta(days=30),
            applicable_categories=frozenset({"books"}),
        ),
        Coupon(
            code="SUMMER25",
            description="Summer sale (ended)",
            discount_type=DiscountType.PERCENT,
            discount_value=Decimal("25"),
            start_date=now - timedelta(days=120),
            expiry_date=now - timedelta(days=30),
        ),
    ]


class CouponDatabase:
    """In-memory coupon storage keyed by normalised code"""

    def __init__(self):
        self.coupons: dict[str, Coupon] = {c.code: c for c in _seed_coupons()}

    def reset(self) -> None:
        self.__init__()

    def get(self, code: str) -> Optional[Coupon]:
        return self.coupons.get(normalize_code(code))

    def add(self, coupon: Coupon) -> Coupon:
        if coupon.code in self.coupons:
            raise ValueError(f"Coupon code {coupon.code} already exists")
        self.coupons[coupon.code] = coupon
        return coupon

    def list_candidates(self, now: Optional[datetime] = None) -> list[Coupon]:
        """Active coupons whose validity window contains `now`"""
        now = now or datetime.now(timezone.utc)
        return [
            c for c in self.coupons.values()
            if c.is_active and c.start_date <= now <= c.expiry_date
        ]

    def increment_usage(self, code: str) -> None:
        coupon = self.get(code)
        if coupon:
            coupon.usage_count += 1


# Singleton instance
coupon_db = CouponDatabase()
