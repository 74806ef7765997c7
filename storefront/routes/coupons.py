"""Coupon API routes"""

from datetime import datetime, timezone
from decimal import Decimal

from fastapi import APIRouter, Depends, Query

from commerce import coupons
from commerce.money import Money

from ..core.config import settings
from ..database.carts import cart_db
from ..database.coupons import coupon_db
from ..database.orders import order_db
from ..models.common import MoneyOut
from ..models.coupon import (
    AvailableCouponOut,
    AvailableCouponsResponse,
    CouponOut,
    ValidateCouponRequest,
    ValidateCouponResponse,
)
from ..security.auth import CurrentUser, require_user

router = APIRouter(prefix="/api/coupons", tags=["Coupons"])


@router.post("/validate", response_model=ValidateCouponResponse)
async def validate_coupon(
    request: ValidateCouponRequest,
    user: CurrentUser = Depends(require_user),
):
    """
    Check a coupon against a cart total.

    Rejections answer 400 with the failing check in `reason`.
    """
    cart_total = Money.from_major(request.cart_total, settings.currency)
    code = coupons.normalize_code(request.code)
    usage = order_db.coupon_usage(user.id)

    check = coupons.validate(
        coupon_db.get(code),
        cart_total,
        user_usage_count=usage.get(code, 0),
        lines=cart_db.get_or_create_cart(user.id).lines,
    ).raise_for_rejection()

    return ValidateCouponResponse(
        coupon=CouponOut.model_validate(check.coupon),
        discount_amount=MoneyOut.model_validate(check.discount),
        payable_amount=MoneyOut.model_validate(check.payable),
    )


@router.get("/available", response_model=AvailableCouponsResponse)
async def available_coupons(
    cart_total: Decimal = Query(Decimal(0), alias="cartTotal", ge=0),
    user: CurrentUser = Depends(require_user),
):
    """All coupons the user can apply right now, best first"""
    now = datetime.now(timezone.utc)
    total = Money.from_major(cart_total, settings.currency)

    checks = coupons.available(
        coupon_db.list_candidates(now),
        total,
        usage_by_code=order_db.coupon_usage(user.id),
        lines=cart_db.get_or_create_cart(user.id).lines,
        now=now,
    )

    items = [
        AvailableCouponOut(
            **CouponOut.model_validate(check.coupon).model_dump(),
            estimated_discount=MoneyOut.model_validate(check.discount),
            estimated_payable=MoneyOut.model_validate(check.payable),
        )
        for check in checks
    ]
    return AvailableCouponsResponse(
        best_coupon_code=checks[0].coupon.code if checks else None,
        items=items,
    )
