"""Product catalog for the storefront"""

from decimal import Decimal
from typing import Optional

from ..models.product import Product

PRODUCTS: dict[str, Product] = {
    "prod-001": Product(
        id="prod-001",
        name="Premium Wireless Headphones",
        description="Active noise cancellation with 30-hour battery life.",
        price=Decimal("2499.00"),
        category="electronics",
        sku="APH-001",
        stock_quantity=45,
    ),
    "prod-002": Product(
        id="prod-002",
        name="Smart Fitness Band",
        description="Heart-rate, SpO2 and sleep tracking with a 14-day battery.",
        price=Decimal("1299.00"),
        category="electronics",
        sku="SFB-002",
        stock_quantity=120,
    ),
    "prod-003": Product(
        id="prod-003",
        name="Cotton Crew T-Shirt",
        description="Breathable combed cotton, regular fit.",
        price=Decimal("399.00"),
        category="fashion",
        sku="CCT-003",
        stock_quantity=300,
    ),
    "prod-004": Product(
        id="prod-004",
        name="Ceramic Dinner Set (12 pc)",
        description="Microwave-safe stoneware dinner set for four.",
        price=Decimal("1849.50"),
        category="home-living",
        sku="CDS-004",
        stock_quantity=30,
    ),
    "prod-005": Product(
        id="prod-005",
        name="Yoga Mat 6mm",
        description="Non-slip TPE mat with carry strap.",
        price=Decimal("749.00"),
        category="sports",
        sku="YGM-005",
        stock_quantity=80,
    ),
    "prod-006": Product(
        id="prod-006",
        name="Atomic Habits (Paperback)",
        description="An easy and proven way to build good habits and break bad ones.",
        price=Decimal("299.00"),
        category="books",
        sku="BK-006",
        stock_quantity=200,
    ),
}


class ProductDatabase:
    """In-memory product catalog"""

    def __init__(self):
        self.products = {pid: p.model_copy() for pid, p in PRODUCTS.items()}

    def reset(self) -> None:
        self.__init__()

    def get_product(self, product_id: str) -> Optional[Product]:
        """Get an active product by ID"""
        product = self.products.get(product_id)
        if product and product.is_active:
            return product
        return None

    def list_products(self, category: Optional[str] = None) -> list[Product]:
        results = [p for p in self.products.values() if p.is_active]
        if category:
            results = [p for p in results if p.category == category]
        return results

    def set_price(self, product_id: str, price: Decimal) -> Optional[Product]:
        """Change a catalog price (carts and orders keep the price they captured)"""
        product = self.products.get(product_id)
        if not product:
            return None
        product.price = price
        return product

    def update_stock(self, product_id: str, quantity_change: int) -> bool:
        """
        Update product stock.

        Args:
            product_id: Product to update
            quantity_change: Positive to add, negative to remove

        Returns:
            True if successful
        """
        product = self.products.get(product_id)
        if not product:
            return False

        new_quantity = product.stock_quantity + quantity_change
        if new_quantity < 0:
            return False

        product.stock_quantity = new_quantity
        return True


# Singleton instance
product_db = ProductDatabase()
