"""Service wiring shared by the routes"""

import logging
from functools import lru_cache
from typing import Optional

from fastapi import Depends

from commerce.gateway import RazorpayClient
from commerce.money import Money
from commerce.orders import OrderAssembler, OrderNumberGenerator
from commerce.payments import PaymentReconciler, PaymentVerifier
from commerce.pricing import PricingEngine, ShippingPolicy, TaxPolicy

from ..database import address_db, coupon_db, intent_db, order_db, refund_queue
from ..security.auth import CurrentUser, require_user
from .config import settings

logger = logging.getLogger(__name__)

# Initialize services (overridable through app.dependency_overrides)
gateway_client: Optional[RazorpayClient] = None


def get_gateway() -> RazorpayClient:
    """Get or create the payment gateway client"""
    global gateway_client
    if gateway_client is None:
        gateway_client = RazorpayClient(
            key_id=settings.razorpay_key_id,
            key_secret=settings.razorpay_key_secret,
            base_url=settings.razorpay_base_url,
            timeout=settings.gateway_timeout_seconds,
        )
        logger.info(f"Payment gateway client initialized for {settings.razorpay_base_url}")
    return gateway_client


async def close_gateway() -> None:
    global gateway_client
    if gateway_client is not None:
        await gateway_client.close()
        gateway_client = None


@lru_cache()
def get_verifier() -> PaymentVerifier:
    return PaymentVerifier(
        key_secret=settings.razorpay_key_secret,
        webhook_secret=settings.razorpay_webhook_secret,
    )


@lru_cache()
def get_pricing_engine() -> PricingEngine:
    """Pricing engine configured from settings"""
    return PricingEngine(
        shipping_policy=ShippingPolicy(
            free_threshold=Money.from_major(settings.free_shipping_threshold, settings.currency),
            flat_charge=Money.from_major(settings.flat_shipping_charge, settings.currency),
        ),
        tax_policy=TaxPolicy(
            rate=settings.tax_rate,
            apply_after_discount=settings.tax_after_discount,
        ),
        coupon_lookup=coupon_db.get,
    )


@lru_cache()
def get_order_number_generator() -> OrderNumberGenerator:
    return OrderNumberGenerator()


def get_order_assembler(user: CurrentUser = Depends(require_user)) -> OrderAssembler:
    """Assembler that resolves saved addresses of the signed-in user only"""
    return OrderAssembler(
        address_book=address_db.for_user(user.id),
        number_generator=get_order_number_generator(),
    )


def get_reconciler(
    gateway: RazorpayClient = Depends(get_gateway),
    verifier: PaymentVerifier = Depends(get_verifier),
) -> PaymentReconciler:
    return PaymentReconciler(
        orders=order_db,
        intents=intent_db,
        gateway=gateway,
        verifier=verifier,
        max_attempts=settings.max_payment_attempts,
        refunds=refund_queue,
    )
