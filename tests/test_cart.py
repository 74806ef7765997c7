"""Cart totals stay equal to the sum of their lines"""

import pytest

from commerce.cart import Cart
from commerce.errors import CartError, CurrencyMismatchError, Reason
from commerce.money import Money, sum_money

from .conftest import inr


def expected_total(cart: Cart) -> Money:
    return sum_money((line.unit_price * line.quantity for line in cart.lines), cart.currency)


class TestCartTotals:
    def test_repeated_add_increments_quantity(self):
        cart = Cart()
        cart.add("prod-001", "Headphones", inr("2499.00"), 1)
        cart.add("prod-003", "T-Shirt", inr("399.00"), 2)
        cart.add("prod-001", "Headphones", inr("2499.00"), 2)

        assert len(cart.lines) == 2
        assert cart.get_line("prod-001").quantity == 3
        assert cart.total_items == 5
        assert cart.total_amount == inr("8295.00")
        assert cart.total_amount == expected_total(cart)

    def test_totals_after_mixed_operations(self):
        cart = Cart()
        operations = [
            ("add", "a", "10.10", 3),
            ("add", "b", "0.99", 7),
            ("update", "a", None, 1),
            ("add", "c", "1849.50", 2),
            ("remove", "b", None, None),
            ("add", "a", "10.10", 4),
            ("update", "c", None, 0),
        ]
        for op, ref, price, quantity in operations:
            if op == "add":
                cart.add(ref, ref.upper(), inr(price), quantity)
            elif op == "update":
                cart.update_quantity(ref, quantity)
            else:
                cart.remove(ref)
            assert cart.total_amount == expected_total(cart)

        assert [line.product_ref for line in cart.lines] == ["a"]
        assert cart.total_amount == inr("50.50")

    def test_update_to_zero_removes_line(self):
        cart = Cart().add("a", "A", inr(10), 2)
        cart.update_quantity("a", 0)
        assert cart.is_empty
        assert cart.total_amount == Money.zero("INR")

    def test_clear(self):
        cart = Cart().add("a", "A", inr(10), 2).add("b", "B", inr(5))
        assert cart.clear().is_empty


class TestCartErrors:
    def test_add_requires_positive_quantity(self):
        with pytest.raises(CartError) as exc:
            Cart().add("a", "A", inr(10), 0)
        assert exc.value.reason == Reason.INVALID_QUANTITY

    def test_update_missing_line(self):
        with pytest.raises(CartError) as exc:
            Cart().update_quantity("missing", 2)
        assert exc.value.reason == Reason.ITEM_NOT_IN_CART

    def test_single_currency(self):
        with pytest.raises(CurrencyMismatchError):
            Cart(currency="INR").add("a", "A", Money(100, "USD"))
