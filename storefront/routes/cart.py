"""Cart API routes for the storefront"""

from fastapi import APIRouter, Depends, HTTPException

from commerce.cart import Cart
from commerce.errors import NotFoundError, OutOfStockError, ProductUnavailableError

from ..database.carts import cart_db
from ..database.products import product_db
from ..models.cart import AddToCartRequest, CartOut, CartResponse, UpdateCartItemRequest
from ..security.auth import CurrentUser, require_user

router = APIRouter(prefix="/api/cart", tags=["Cart"])


def _respond(cart: Cart, message: str = None) -> CartResponse:
    return CartResponse(cart=CartOut.model_validate(cart), message=message)


@router.get("", response_model=CartResponse)
async def get_cart(user: CurrentUser = Depends(require_user)):
    """Get the current user's cart"""
    return _respond(cart_db.get_or_create_cart(user.id))


@router.post("/items", response_model=CartResponse, status_code=201)
async def add_to_cart(
    request: AddToCartRequest,
    user: CurrentUser = Depends(require_user),
):
    """Add an item to the cart; adding a product already in the cart raises its quantity"""
    product = product_db.get_product(request.product_id)
    if not product:
        raise NotFoundError("Product not available")

    cart = cart_db.get_or_create_cart(user.id)
    existing = cart.get_line(product.id)
    wanted = request.quantity + (existing.quantity if existing else 0)

    if product.stock_quantity < wanted:
        raise OutOfStockError(f"Insufficient stock. Available: {product.stock_quantity}")

    cart.add(
        product_ref=product.id,
        name=product.name,
        unit_price=product.unit_price,
        quantity=request.quantity,
        category=product.category,
    )
    return _respond(cart, f"Added {request.quantity}x {product.name} to cart")


@router.put("/items/{product_id}", response_model=CartResponse)
async def update_cart_item(
    product_id: str,
    request: UpdateCartItemRequest,
    user: CurrentUser = Depends(require_user),
):
    """Update item quantity in cart"""
    cart = cart_db.get_or_create_cart(user.id)
    if not cart.get_line(product_id):
        raise HTTPException(status_code=404, detail="Cart item not found")

    if request.quantity > 0:
        product = product_db.get_product(product_id)
        if not product:
            raise ProductUnavailableError("Product is no longer available")
        if request.quantity > product.stock_quantity:
            raise OutOfStockError(f"Insufficient stock. Available: {product.stock_quantity}")

    cart.update_quantity(product_id, request.quantity)
    return _respond(cart, "Cart item updated")


@router.delete("/items/{product_id}", response_model=CartResponse)
async def remove_from_cart(product_id: str, user: CurrentUser = Depends(require_user)):
    """Remove an item from the cart"""
    cart = cart_db.get_or_create_cart(user.id)
    if not cart.get_line(product_id):
        raise HTTPException(status_code=404, detail="Cart item not found")

    cart.remove(product_id)
    return _respond(cart, "Item removed")


@router.delete("/clear", response_model=CartResponse)
async def clear_cart(user: CurrentUser = Depends(require_user)):
    """Clear all items from cart"""
    return _respond(cart_db.clear_cart(user.id), "Cart cleared")
