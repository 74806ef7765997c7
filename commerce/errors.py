"""
Commerce error taxonomy

Every error carries a machine-checkable reason code alongside the human
message, plus the HTTP status the API layer should answer with.
"""

from enum import Enum
from typing import Optional


class Reason(str, Enum):
    """Reason codes surfaced to callers"""
    # Validation
    EMPTY_CART = "empty_cart"
    STALE_ADDRESS = "stale_address"
    INVALID_QUANTITY = "invalid_quantity"
    ITEM_NOT_IN_CART = "item_not_in_cart"
    INSUFFICIENT_STOCK = "insufficient_stock"
    PRODUCT_UNAVAILABLE = "product_unavailable"
    COUPON_NOT_FOUND = "coupon_not_found"
    COUPON_INACTIVE = "coupon_inactive"
    COUPON_NOT_STARTED = "coupon_not_started"
    COUPON_EXPIRED = "coupon_expired"
    MIN_CART_VALUE = "min_cart_value"
    USAGE_LIMIT_REACHED = "usage_limit_reached"
    USER_LIMIT_REACHED = "user_limit_reached"
    COUPON_NOT_APPLICABLE = "coupon_not_applicable"
    CURRENCY_MISMATCH = "currency_mismatch"
    NOT_FOUND = "not_found"
    # State machine
    INVALID_TRANSITION = "invalid_transition"
    TOO_MANY_ATTEMPTS = "too_many_attempts"
    # Integrity
    SIGNATURE_INVALID = "signature_invalid"
    AMOUNT_MISMATCH = "amount_mismatch"
    INTENT_MISMATCH = "intent_mismatch"
    # Authorization
    UNAUTHORIZED = "unauthorized"
    SESSION_EXPIRED = "session_expired"
    # Transient / gateway
    TRANSIENT = "transient"
    GATEWAY_ERROR = "gateway_error"


class CommerceError(Exception):
    """Base exception for commerce errors"""

    status_code = 400
    default_reason = Reason.GATEWAY_ERROR

    def __init__(self, message: str, reason: Optional[Reason] = None):
        super().__init__(message)
        self.message = message
        self.reason = reason or self.default_reason

    def __repr__(self) -> str:
        return f"{type(self).__name__}(reason={self.reason.value!r}, message={self.message!r})"


# ==================== Validation ====================


class ValidationError(CommerceError):
    """Recoverable input error with a user-facing reason"""
    status_code = 400


class EmptyCartError(ValidationError):
    default_reason = Reason.EMPTY_CART


class StaleAddressError(ValidationError):
    default_reason = Reason.STALE_ADDRESS


class CartError(ValidationError):
    default_reason = Reason.INVALID_QUANTITY


class CurrencyMismatchError(ValidationError):
    default_reason = Reason.CURRENCY_MISMATCH


class OutOfStockError(ValidationError):
    default_reason = Reason.INSUFFICIENT_STOCK


class ProductUnavailableError(ValidationError):
    """Product left the catalog after it was put in the cart"""
    default_reason = Reason.PRODUCT_UNAVAILABLE


class CouponRejectedError(ValidationError):
    """Coupon failed eligibility; `reason` names the failing check"""
    default_reason = Reason.COUPON_NOT_APPLICABLE


class NotFoundError(ValidationError):
    status_code = 404
    default_reason = Reason.NOT_FOUND


# ==================== State machine ====================


class InvalidTransitionError(CommerceError):
    status_code = 409
    default_reason = Reason.INVALID_TRANSITION


class TooManyAttemptsError(CommerceError):
    status_code = 429
    default_reason = Reason.TOO_MANY_ATTEMPTS


# ==================== Integrity ====================


class IntegrityError(CommerceError):
    """Fatal to the operation; never downgraded to success"""
    status_code = 400


class SignatureInvalidError(IntegrityError):
    default_reason = Reason.SIGNATURE_INVALID


class AmountMismatchError(IntegrityError):
    default_reason = Reason.AMOUNT_MISMATCH


# ==================== Authorization ====================


class AuthorizationError(CommerceError):
    status_code = 401
    default_reason = Reason.UNAUTHORIZED


class SessionExpiredError(AuthorizationError):
    """Token refresh failed; the user has to sign in again"""
    default_reason = Reason.SESSION_EXPIRED


# ==================== Transient / gateway ====================


class TransientError(CommerceError):
    """Timeout or network failure; retried by the caller's own policy"""
    status_code = 503
    default_reason = Reason.TRANSIENT


class GatewayError(CommerceError):
    status_code = 502
    default_reason = Reason.GATEWAY_ERROR
