"""Shopping cart: one line per product, totals derived from lines"""

from dataclasses import dataclass, field
from typing import Optional

from .errors import CartError, CurrencyMismatchError, Reason
from .money import DEFAULT_CURRENCY, Money, sum_money


@dataclass
class CartLine:
    """Line in a cart; unit price and name are captured when added"""
    product_ref: str
    name: str
    unit_price: Money
    quantity: int
    category: Optional[str] = None

    @property
    def line_total(self) -> Money:
        return self.unit_price * self.quantity


@dataclass
class Cart:
    """
    Ordered cart lines, unique by product reference.

    `total_amount` and `total_items` are always recomputed from the lines.
    """
    currency: str = DEFAULT_CURRENCY
    _lines: list[CartLine] = field(default_factory=list)

    @property
    def lines(self) -> tuple[CartLine, ...]:
        return tuple(self._lines)

    @property
    def total_amount(self) -> Money:
        return sum_money((line.line_total for line in self._lines), self.currency)

    @property
    def total_items(self) -> int:
        return sum(line.quantity for line in self._lines)

    @property
    def is_empty(self) -> bool:
        return not self._lines

    def get_line(self, product_ref: str) -> Optional[CartLine]:
        return next(
            (line for line in self._lines if line.product_ref == product_ref),
            None,
        )

    def add(
        self,
        product_ref: str,
        name: str,
        unit_price: Money,
        quantity: int = 1,
        category: Optional[str] = None,
    ) -> "Cart":
        """Add a product, or increase the quantity of its existing line"""
        if quantity < 1:
            raise CartError(f"Quantity must be at least 1, got {quantity}")
        if unit_price.currency != self.currency:
            raise CurrencyMismatchError(
                f"Cart is in {self.currency}, product priced in {unit_price.currency}"
            )

        existing = self.get_line(product_ref)
        if existing:
            existing.quantity += quantity
            # Latest catalog price wins while the product sits in the cart
            existing.unit_price = unit_price
            existing.name = name
        else:
            self._lines.append(
                CartLine(
                    product_ref=product_ref,
                    name=name,
                    unit_price=unit_price,
                    quantity=quantity,
                    category=category,
                )
            )
        return self

    def update_quantity(self, product_ref: str, quantity: int) -> "Cart":
        """Set a line's quantity; zero or less removes the line"""
        line = self.get_line(product_ref)
        if not line:
            raise CartError(f"Product {product_ref} is not in the cart", Reason.ITEM_NOT_IN_CART)

        if quantity <= 0:
            self._lines.remove(line)
        else:
            line.quantity = quantity
        return self

    def remove(self, product_ref: str) -> "Cart":
        return self.update_quantity(product_ref, 0)

    def clear(self) -> "Cart":
        self._lines.clear()
        return self
