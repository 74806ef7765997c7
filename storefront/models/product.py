"""Product models for the storefront"""

from decimal import Decimal
from typing import Optional

from pydantic import Field

from commerce.money import Money

from .common import ApiModel, MoneyOut


class Product(ApiModel):
    """Product in the catalog"""
    id: str
    name: str
    description: str
    price: Decimal = Field(gt=0)
    currency: str = "INR"
    category: str
    sku: str
    stock_quantity: int = Field(ge=0, default=100)
    is_active: bool = True

    @property
    def unit_price(self) -> Money:
        return Money.from_major(self.price, self.currency)


class ProductOut(ApiModel):
    id: str
    name: str
    description: str
    category: str
    sku: str
    unit_price: MoneyOut
    stock_quantity: int


class ProductListResponse(ApiModel):
    products: list[ProductOut]
    total: int
    category: Optional[str] = None
