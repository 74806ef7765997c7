"""Product API routes for the storefront"""

from typing import Optional

from fastapi import APIRouter, HTTPException, Query

from ..database.products import product_db
from ..models.product import Product, ProductListResponse, ProductOut

router = APIRouter(prefix="/api/products", tags=["Products"])


def _to_out(product: Product) -> ProductOut:
    return ProductOut.model_validate({**product.model_dump(), "unit_price": product.unit_price})


@router.get("", response_model=ProductListResponse)
async def list_products(
    category: Optional[str] = Query(None, description="Filter by category"),
):
    """List active products"""
    products = product_db.list_products(category=category)
    return ProductListResponse(
        products=[_to_out(p) for p in products],
        total=len(products),
        category=category,
    )


@router.get("/{product_id}", response_model=ProductOut)
async def get_product(product_id: str):
    """Get a product by ID"""
    product = product_db.get_product(product_id)
    if not product:
        raise HTTPException(status_code=404, detail="Product not found")
    return _to_out(product)
