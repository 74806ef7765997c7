"""Payment data models"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional

from ..money import Money


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class PaymentIntent:
    """Gateway order created before the user is sent to pay"""
    gateway_order_id: str
    amount: Money
    order_ref: str
    attempt: int = 1
    receipt: Optional[str] = None
    created_at: datetime = field(default_factory=_utcnow)

    @property
    def currency(self) -> str:
        return self.amount.currency


@dataclass(frozen=True)
class VerifiedPayment:
    """Payment whose gateway signature has been checked"""
    order_ref: str
    gateway_order_id: str
    gateway_payment_id: str
    amount: Money
    signature: Optional[str] = None
    paid_at: datetime = field(default_factory=_utcnow)


@dataclass(frozen=True)
class RefundRequest:
    order_ref: str
    gateway_payment_id: str
    amount: Money
    reason: Optional[str] = None


@dataclass
class SignatureCheck:
    """Result of a gateway signature check"""
    is_valid: bool
    error_message: Optional[str] = None
