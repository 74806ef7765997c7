# Storefront API routes

from .auth import router as auth_router
from .products import router as products_router
from .cart import router as cart_router
from .coupons import router as coupons_router
from .addresses import router as addresses_router
from .orders import router as orders_router
from .payment import router as payment_router

__all__ = [
    "auth_router",
    "products_router",
    "cart_router",
    "coupons_router",
    "addresses_router",
    "orders_router",
    "payment_router",
]
