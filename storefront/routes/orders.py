"""
Order API routes

Checkout turns the signed-in user's cart into an order; cancellation and
fulfilment updates go through the payment reconciler so that refunds are
queued for paid orders.
"""

import logging
from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Query

from commerce.coupons import normalize_code
from commerce.errors import EmptyCartError, OutOfStockError, ProductUnavailableError
from commerce.orders import Address, Order, OrderAssembler, OrderStatus
from commerce.payments import PaymentReconciler
from commerce.pricing import PricingEngine

from ..core.dependencies import get_order_assembler, get_pricing_engine, get_reconciler
from ..database import address_db, cart_db, coupon_db, order_db, product_db
from ..models.order import (
    CancelOrderRequest,
    CheckoutRequest,
    OrderListResponse,
    OrderOut,
    OrderResponse,
    UpdateOrderStatusRequest,
)
from ..security.auth import CurrentUser, require_admin, require_user

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/orders", tags=["Orders"])


def get_owned_order(order_id: str, user: CurrentUser) -> Order:
    """Order visible to the user (admins see every order)"""
    order = order_db.get(order_id) if user.is_admin else order_db.get_for_user(order_id, user.id)
    if not order:
        raise HTTPException(status_code=404, detail="Order not found")
    return order


def _restock(order: Order) -> None:
    for item in order.items:
        product_db.update_stock(item.product_ref, item.quantity)


@router.post("", response_model=OrderResponse, status_code=201)
async def create_order(
    request: CheckoutRequest,
    user: CurrentUser = Depends(require_user),
    engine: PricingEngine = Depends(get_pricing_engine),
    assembler: OrderAssembler = Depends(get_order_assembler),
):
    """
    Place an order from the current cart.

    Prices the cart (coupon included), snapshots it into an order, takes
    the stock, bumps coupon usage and empties the cart.
    """
    cart = cart_db.get_or_create_cart(user.id)
    if cart.is_empty:
        raise EmptyCartError("Cart is empty")

    for line in cart.lines:
        product = product_db.get_product(line.product_ref)
        if not product:
            raise ProductUnavailableError(f"{line.name} is no longer available")
        if product.stock_quantity < line.quantity:
            raise OutOfStockError(
                f"Insufficient stock for {line.name}. Available: {product.stock_quantity}"
            )

    usage = 0
    if request.coupon_code:
        usage = order_db.coupon_usage(user.id).get(normalize_code(request.coupon_code), 0)
    pricing = engine.price(cart, request.coupon_code, user_usage_count=usage)

    if request.shipping_address:
        shipping = Address(**request.shipping_address.model_dump())
        if request.save_address:
            address_db.add(user.id, shipping)
    else:
        shipping = request.address_id
    billing = Address(**request.billing_address.model_dump()) if request.billing_address else None

    order = assembler.assemble(
        cart,
        shipping,
        pricing,
        request.payment_method,
        user_ref=user.id,
        billing_address=billing,
    )

    for item in order.items:
        product_db.update_stock(item.product_ref, -item.quantity)
    if order.coupon_code:
        coupon_db.increment_usage(order.coupon_code)
    order_db.save(order)
    cart_db.clear_cart(user.id)

    logger.info(f"User {user.id} placed order {order.order_number} ({order.total_amount})")
    return OrderResponse(order=OrderOut.model_validate(order), message="Order placed")


@router.get("", response_model=OrderListResponse)
async def list_orders(
    status: Optional[OrderStatus] = Query(None, description="Filter by status"),
    limit: int = Query(50, ge=1, le=100),
    user: CurrentUser = Depends(require_user),
):
    """List the user's orders, newest first"""
    orders = order_db.list_orders(user_id=user.id, status=status, limit=limit)
    return OrderListResponse(
        items=[OrderOut.model_validate(o) for o in orders],
        total=len(orders),
    )


@router.get("/{order_id}", response_model=OrderResponse)
async def get_order(order_id: str, user: CurrentUser = Depends(require_user)):
    """Get order details"""
    return OrderResponse(order=OrderOut.model_validate(get_owned_order(order_id, user)))


@router.put("/{order_id}/cancel", response_model=OrderResponse)
async def cancel_order(
    order_id: str,
    background_tasks: BackgroundTasks,
    request: Optional[CancelOrderRequest] = None,
    user: CurrentUser = Depends(require_user),
    reconciler: PaymentReconciler = Depends(get_reconciler),
):
    """Cancel a pending or processing order; paid orders get a refund"""
    get_owned_order(order_id, user)

    order = await reconciler.cancel(order_id, request.reason if request else None)
    _restock(order)
    background_tasks.add_task(reconciler.process_refunds)

    return OrderResponse(order=OrderOut.model_validate(order), message="Order cancelled")


@router.put("/{order_id}/status", response_model=OrderResponse)
async def update_order_status(
    order_id: str,
    request: UpdateOrderStatusRequest,
    background_tasks: BackgroundTasks,
    admin: CurrentUser = Depends(require_admin),
    reconciler: PaymentReconciler = Depends(get_reconciler),
):
    """Move an order along fulfilment (admin only)"""
    order = await reconciler.update_status(order_id, request.status, request.note)

    if order.order_status in (OrderStatus.CANCELLED, OrderStatus.RETURNED):
        _restock(order)
        background_tasks.add_task(reconciler.process_refunds)

    logger.info(f"Admin {admin.id} moved order {order.order_number} to {order.order_status.value}")
    return OrderResponse(order=OrderOut.model_validate(order), message="Order status updated")
