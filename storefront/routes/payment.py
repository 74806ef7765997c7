"""
Payment API routes

Checkout payment runs in three steps: create a gateway order for the
order total, let the customer pay on the gateway's checkout, then verify
the signed callback. Webhooks deliver the same outcomes asynchronously.
"""

import logging
from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Header, HTTPException, Request

from commerce.money import Money
from commerce.payments import PaymentReconciler

from ..core.config import settings
from ..core.dependencies import get_reconciler
from ..models.order import OrderOut, OrderResponse
from ..models.payment import (
    CreatePaymentOrderRequest,
    CreatePaymentOrderResponse,
    PaymentFailureRequest,
    VerifyPaymentRequest,
    WebhookResponse,
)
from ..security.auth import CurrentUser, require_user
from .orders import get_owned_order

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/payment", tags=["Payment"])


@router.post("/create-order", response_model=CreatePaymentOrderResponse)
async def create_payment_order(
    request: CreatePaymentOrderRequest,
    user: CurrentUser = Depends(require_user),
    reconciler: PaymentReconciler = Depends(get_reconciler),
):
    """
    Create a gateway order for an order's total.

    The amount must equal the order total; each order gets a bounded
    number of attempts.
    """
    order = get_owned_order(request.order_id, user)
    amount = Money.from_major(request.amount, request.currency or order.currency)

    intent = await reconciler.create_intent(order.id, amount, receipt=request.receipt)

    return CreatePaymentOrderResponse(
        order_id=intent.gateway_order_id,
        amount=intent.amount.amount,
        currency=intent.amount.currency,
        key=settings.razorpay_key_id,
        attempt=intent.attempt,
    )


@router.post("/verify", response_model=OrderResponse)
async def verify_payment(
    request: VerifyPaymentRequest,
    background_tasks: BackgroundTasks,
    user: CurrentUser = Depends(require_user),
    reconciler: PaymentReconciler = Depends(get_reconciler),
):
    """Verify the checkout callback signature and mark the order paid"""
    get_owned_order(request.order_id, user)

    await reconciler.verify(
        request.order_id,
        request.razorpay_order_id,
        request.razorpay_payment_id,
        request.razorpay_signature,
    )
    if reconciler.pending_refunds:
        background_tasks.add_task(reconciler.process_refunds)

    order = get_owned_order(request.order_id, user)
    return OrderResponse(order=OrderOut.model_validate(order), message="Payment verified")


@router.post("/failure", response_model=OrderResponse)
async def payment_failure(
    request: PaymentFailureRequest,
    user: CurrentUser = Depends(require_user),
    reconciler: PaymentReconciler = Depends(get_reconciler),
):
    """Record a payment failure reported by the gateway checkout"""
    get_owned_order(request.order_id, user)

    order = await reconciler.record_failure(
        request.order_id, request.razorpay_order_id, request.reason
    )
    return OrderResponse(order=OrderOut.model_validate(order), message="Payment failure recorded")


@router.post("/webhook", response_model=WebhookResponse)
async def payment_webhook(
    request: Request,
    background_tasks: BackgroundTasks,
    x_razorpay_signature: Optional[str] = Header(None),
    reconciler: PaymentReconciler = Depends(get_reconciler),
):
    """Signed gateway events (payment.captured, payment.failed, refund.processed)"""
    if not settings.webhooks_enabled:
        raise HTTPException(status_code=404, detail="Webhooks are not configured")

    body = await request.body()
    event = await reconciler.handle_webhook(body, x_razorpay_signature)

    if reconciler.pending_refunds:
        background_tasks.add_task(reconciler.process_refunds)

    return WebhookResponse(received=True, event=event)
