# Storefront API models

from .common import ApiModel, MoneyOut, ErrorResponse
from .product import Product, ProductOut, ProductListResponse
from .auth import LoginRequest, LoginResponse, RefreshResponse, UserOut
from .cart import AddToCartRequest, UpdateCartItemRequest, CartOut, CartResponse
from .coupon import (
    AvailableCouponOut,
    AvailableCouponsResponse,
    CouponOut,
    ValidateCouponRequest,
    ValidateCouponResponse,
)
from .order import (
    AddressIn,
    CancelOrderRequest,
    CheckoutRequest,
    OrderListResponse,
    OrderOut,
    OrderResponse,
    UpdateOrderStatusRequest,
)
from .payment import (
    CreatePaymentOrderRequest,
    CreatePaymentOrderResponse,
    PaymentFailureRequest,
    VerifyPaymentRequest,
    WebhookResponse,
)

__all__ = [
    "ApiModel",
    "MoneyOut",
    "ErrorResponse",
    "Product",
    "ProductOut",
    "ProductListResponse",
    "LoginRequest",
    "LoginResponse",
    "RefreshResponse",
    "UserOut",
    "AddToCartRequest",
    "UpdateCartItemRequest",
    "CartOut",
    "CartResponse",
    "AvailableCouponOut",
    "AvailableCouponsResponse",
    "CouponOut",
    "ValidateCouponRequest",
    "ValidateCouponResponse",
    "AddressIn",
    "CancelOrderRequest",
    "CheckoutRequest",
    "OrderListResponse",
    "OrderOut",
    "OrderResponse",
    "UpdateOrderStatusRequest",
    "CreatePaymentOrderRequest",
    "CreatePaymentOrderResponse",
    "PaymentFailureRequest",
    "VerifyPaymentRequest",
    "WebhookResponse",
]
