"""Payment gateway data models"""

from dataclasses import dataclass
from typing import Optional

from ..money import Money


@dataclass(frozen=True)
class GatewayOrder:
    """Order created on the gateway side"""
    id: str
    amount: Money
    status: str = "created"
    receipt: Optional[str] = None


@dataclass(frozen=True)
class GatewayRefund:
    id: str
    payment_id: str
    amount: Money
    status: str = "pending"

    @property
    def is_processed(self) -> bool:
        return self.status == "processed"
