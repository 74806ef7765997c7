# Commerce core: money, cart, coupons, pricing, orders and payments

from .money import Money
from .cart import Cart, CartLine
from .coupons import Coupon, CouponCheck, DiscountType, best_coupon, validate
from .pricing import PricingEngine, PricingResult, ShippingPolicy, TaxPolicy
from .orders import (
    Address,
    Order,
    OrderAssembler,
    OrderLine,
    OrderStatus,
    PaymentMethod,
    PaymentStatus,
)

__all__ = [
    "Money",
    "Cart",
    "CartLine",
    "Coupon",
    "CouponCheck",
    "DiscountType",
    "best_coupon",
    "validate",
    "PricingEngine",
    "PricingResult",
    "ShippingPolicy",
    "TaxPolicy",
    "Address",
    "Order",
    "OrderAssembler",
    "OrderLine",
    "OrderStatus",
    "PaymentMethod",
    "PaymentStatus",
]
