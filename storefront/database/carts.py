"""Cart storage for the storefront"""

from commerce.cart import Cart

from ..core.config import settings


class CartDatabase:
    """In-memory carts, one per user"""

    def __init__(self):
        self.carts: dict[str, Cart] = {}

    def reset(self) -> None:
        self.carts.clear()

    def get_or_create_cart(self, user_id: str) -> Cart:
        cart = self.carts.get(user_id)
        if cart is None:
            cart = Cart(currency=settings.currency)
            self.carts[user_id] = cart
        return cart

    def clear_cart(self, user_id: str) -> Cart:
        return self.get_or_create_cart(user_id).clear()


# Singleton instance
cart_db = CartDatabase()
