"""
Coupon Validator

Pure eligibility checks plus discount computation. Checks run in a fixed
order and the first failing check decides the rejection reason:

1. coupon active and now within [start_date, expiry_date]
2. cart total >= min_cart_value
3. global usage_limit not reached
4. per_user_limit not reached for the requesting user
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Iterable, Optional, Sequence

from .cart import CartLine
from .errors import CouponRejectedError, Reason
from .money import Money, round_half_up


class DiscountType(str, Enum):
    PERCENT = "percent"
    FLAT = "flat"


def normalize_code(code: str) -> str:
    return code.strip().upper()


@dataclass
class Coupon:
    """Coupon definition"""
    code: str
    discount_type: DiscountType
    discount_value: Decimal  # percent for PERCENT, major units for FLAT
    start_date: datetime
    expiry_date: datetime
    min_cart_value: Optional[Money] = None
    max_discount: Optional[Money] = None
    is_active: bool = True
    usage_limit: Optional[int] = None
    usage_count: int = 0
    per_user_limit: Optional[int] = None
    applicable_categories: frozenset[str] = field(default_factory=frozenset)
    applicable_products: frozenset[str] = field(default_factory=frozenset)
    description: str = ""

    def __post_init__(self):
        self.code = normalize_code(self.code)
        self.discount_type = DiscountType(self.discount_type)
        self.discount_value = Decimal(self.discount_value)
        self.applicable_categories = frozenset(self.applicable_categories)
        self.applicable_products = frozenset(self.applicable_products)
        if self.discount_type == DiscountType.PERCENT:
            if not (0 < self.discount_value <= 100):
                raise ValueError(
                    f"Percent coupon {self.code} needs 0 < discount_value <= 100"
                )
        elif self.discount_value <= 0:
            raise ValueError(f"Flat coupon {self.code} needs a positive discount_value")

    @property
    def is_restricted(self) -> bool:
        return bool(self.applicable_categories or self.applicable_products)

    def applies_to(self, line: CartLine) -> bool:
        if not self.is_restricted:
            return True
        return (
            line.product_ref in self.applicable_products
            or (line.category is not None and line.category in self.applicable_categories)
        )

    def eligible_total(self, lines: Sequence[CartLine], currency: str) -> Money:
        """Subtotal of the lines this coupon may discount"""
        amount = sum(line.line_total.amount for line in lines if self.applies_to(line))
        return Money(amount, currency)


@dataclass
class CouponCheck:
    """Result of validating a coupon against a cart"""
    is_valid: bool
    coupon: Optional[Coupon] = None
    discount: Optional[Money] = None
    payable: Optional[Money] = None
    reason: Optional[Reason] = None
    message: Optional[str] = None

    @classmethod
    def rejected(cls, coupon: Optional[Coupon], reason: Reason, message: str) -> "CouponCheck":
        return cls(is_valid=False, coupon=coupon, reason=reason, message=message)

    def raise_for_rejection(self) -> "CouponCheck":
        if not self.is_valid:
            raise CouponRejectedError(self.message or "Coupon rejected", self.reason)
        return self


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _aware(value: datetime) -> datetime:
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)


def compute_discount(coupon: Coupon, base: Money) -> Money:
    """
    Discount for `base`, rounded once.

    Percent discounts are capped at max_discount; flat discounts never
    exceed the base, so the payable amount cannot go negative.
    """
    if base.amount <= 0:
        return Money.zero(base.currency)

    if coupon.discount_type == DiscountType.PERCENT:
        exact = base.as_decimal() * coupon.discount_value / Decimal(100)
        if coupon.max_discount is not None:
            exact = min(exact, coupon.max_discount.as_decimal())
    else:
        exact = Money.from_major(coupon.discount_value, base.currency).as_decimal()

    exact = max(Decimal(0), min(exact, base.as_decimal()))
    return round_half_up(exact, base.currency)


def validate(
    coupon: Optional[Coupon],
    cart_total: Money,
    user_usage_count: int = 0,
    lines: Optional[Sequence[CartLine]] = None,
    now: Optional[datetime] = None,
) -> CouponCheck:
    """
    Validate a coupon and compute its discount.

    Args:
        coupon: Coupon definition, or None when the code did not resolve
        cart_total: Whole cart subtotal (used for min_cart_value)
        user_usage_count: How many times the user already used this coupon
        lines: Cart lines, required to honour product/category restrictions
        now: Evaluation time (defaults to current UTC time)

    Returns:
        CouponCheck with the discount, or the first failing reason
    """
    if coupon is None:
        return CouponCheck.rejected(None, Reason.COUPON_NOT_FOUND, "Coupon does not exist")

    now = _aware(now or _utcnow())

    # 1. Active window
    if not coupon.is_active:
        return CouponCheck.rejected(coupon, Reason.COUPON_INACTIVE, "Coupon is inactive")
    if now < _aware(coupon.start_date):
        return CouponCheck.rejected(coupon, Reason.COUPON_NOT_STARTED, "Coupon is not active yet")
    if now > _aware(coupon.expiry_date):
        return CouponCheck.rejected(coupon, Reason.COUPON_EXPIRED, "Coupon has expired")

    # 2. Minimum cart value
    if coupon.min_cart_value is not None and cart_total < coupon.min_cart_value:
        return CouponCheck.rejected(
            coupon,
            Reason.MIN_CART_VALUE,
            f"Minimum cart value should be {coupon.min_cart_value} to use this coupon",
        )

    # 3. Global usage
    if coupon.usage_limit is not None and coupon.usage_count >= coupon.usage_limit:
        return CouponCheck.rejected(coupon, Reason.USAGE_LIMIT_REACHED, "Coupon usage limit reached")

    # 4. Per-user usage
    if coupon.per_user_limit is not None and user_usage_count >= coupon.per_user_limit:
        return CouponCheck.rejected(
            coupon, Reason.USER_LIMIT_REACHED, "Coupon usage limit reached for this user"
        )

    base = cart_total
    if coupon.is_restricted and lines is not None:
        base = coupon.eligible_total(lines, cart_total.currency)

    discount = compute_discount(coupon, base)
    if discount.amount <= 0:
        return CouponCheck.rejected(
            coupon,
            Reason.COUPON_NOT_APPLICABLE,
            "Coupon is not applicable on current cart value",
        )

    return CouponCheck(
        is_valid=True,
        coupon=coupon,
        discount=discount,
        payable=(cart_total - discount).floor_zero(),
    )


def _rank(check: CouponCheck):
    # Largest discount first, then the coupon closest to expiry
    return (-check.discount.amount, _aware(check.coupon.expiry_date), check.coupon.code)


def available(
    candidates: Iterable[Coupon],
    cart_total: Money,
    usage_by_code: Optional[dict[str, int]] = None,
    lines: Optional[Sequence[CartLine]] = None,
    now: Optional[datetime] = None,
) -> list[CouponCheck]:
    """All coupons that validate, best first"""
    usage_by_code = usage_by_code or {}
    checks = [
        validate(coupon, cart_total, usage_by_code.get(coupon.code, 0), lines=lines, now=now)
        for coupon in candidates
    ]
    return sorted((check for check in checks if check.is_valid), key=_rank)


def best_coupon(
    candidates: Iterable[Coupon],
    cart_total: Money,
    usage_by_code: Optional[dict[str, int]] = None,
    lines: Optional[Sequence[CartLine]] = None,
    now: Optional[datetime] = None,
) -> Optional[Coupon]:
    """Coupon with the largest discount; ties go to the earliest expiry"""
    eligible = available(candidates, cart_total, usage_by_code, lines=lines, now=now)
    return eligible[0].coupon if eligible else None
