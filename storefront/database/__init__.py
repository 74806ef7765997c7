# Storage collaborators (in-memory)

from .products import product_db, ProductDatabase
from .carts import cart_db, CartDatabase
from .coupons import coupon_db, CouponDatabase
from .addresses import address_db, AddressDatabase
from .orders import order_db, intent_db, refund_queue, OrderDatabase, PaymentIntentDatabase
from .users import user_db, UserDatabase, User

__all__ = [
    "product_db",
    "ProductDatabase",
    "cart_db",
    "CartDatabase",
    "coupon_db",
    "CouponDatabase",
    "address_db",
    "AddressDatabase",
    "order_db",
    "intent_db",
    "refund_queue",
    "OrderDatabase",
    "PaymentIntentDatabase",
    "user_db",
    "UserDatabase",
    "User",
]
