"""Cart models for the storefront"""

from typing import Optional

from pydantic import Field

from .common import ApiModel, MoneyOut


class CartLineOut(ApiModel):
    product_ref: str
    name: str
    unit_price: MoneyOut
    quantity: int
    line_total: MoneyOut
    category: Optional[str] = None


class CartOut(ApiModel):
    lines: list[CartLineOut] = []
    total_amount: MoneyOut
    total_items: int
    currency: str


class AddToCartRequest(ApiModel):
    """Request to add item to cart"""
    product_id: str
    quantity: int = Field(default=1, gt=0)


class UpdateCartItemRequest(ApiModel):
    """Quantity of zero removes the line"""
    quantity: int = Field(ge=0)


class CartResponse(ApiModel):
    """Cart API response"""
    cart: CartOut
    message: Optional[str] = None
