"""
Payment Reconciler

Drives an order through the payment state machine as the gateway
responds. All mutations of one order happen under that order's lock, so
two concurrent verifications cannot both transition it.
"""

import json
import logging
from collections import deque
from typing import AsyncContextManager, Optional, Protocol, Union

from ..errors import (
    AmountMismatchError,
    GatewayError,
    IntegrityError,
    InvalidTransitionError,
    NotFoundError,
    Reason,
    SignatureInvalidError,
    TooManyAttemptsError,
    TransientError,
)
from ..gateway.models import GatewayOrder, GatewayRefund
from ..money import Money
from ..orders import CANCELLABLE_STATUSES, Order, OrderStatus, PaymentStatus
from .models import PaymentIntent, RefundRequest, VerifiedPayment
from .verifier import PaymentVerifier

logger = logging.getLogger(__name__)


class OrderStore(Protocol):
    def get(self, order_id: str) -> Optional[Order]: ...

    def save(self, order: Order) -> Order: ...

    def lock(self, order_id: str) -> AsyncContextManager: ...


class IntentStore(Protocol):
    def add(self, intent: PaymentIntent) -> PaymentIntent: ...

    def for_order(self, order_id: str) -> list[PaymentIntent]: ...

    def by_gateway_order(self, gateway_order_id: str) -> Optional[PaymentIntent]: ...

    def record_payment(self, payment: VerifiedPayment) -> VerifiedPayment: ...

    def payment_for(self, order_id: str) -> Optional[VerifiedPayment]: ...

    def payment_by_id(self, gateway_payment_id: str) -> Optional[VerifiedPayment]: ...


class Gateway(Protocol):
    async def create_order(self, amount: Money, receipt: Optional[str] = None) -> GatewayOrder: ...

    async def refund(self, payment_id: str, amount: Money) -> GatewayRefund: ...


class PaymentReconciler:
    """
    Order/payment lifecycle coordinator.

    Usage:
        reconciler = PaymentReconciler(order_db, intent_db, gateway, verifier)
        intent = await reconciler.create_intent(order.id)
        payment = await reconciler.verify(order.id, gateway_order_id, payment_id, signature)
    """

    def __init__(
        self,
        orders: OrderStore,
        intents: IntentStore,
        gateway: Gateway,
        verifier: PaymentVerifier,
        max_attempts: int = 3,
        refunds: Optional[deque] = None,
    ):
        self.orders = orders
        self.intents = intents
        self.gateway = gateway
        self.verifier = verifier
        self.max_attempts = max_attempts
        self._refunds: deque[RefundRequest] = refunds if refunds is not None else deque()

    def _get(self, order_id: str) -> Order:
        order = self.orders.get(order_id)
        if order is None:
            raise NotFoundError(f"Order {order_id} not found")
        return order

    @property
    def pending_refunds(self) -> list[RefundRequest]:
        return list(self._refunds)

    # ==================== Intents ====================

    async def create_intent(
        self,
        order_id: str,
        amount: Optional[Money] = None,
        receipt: Optional[str] = None,
    ) -> PaymentIntent:
        """
        Create a gateway order for an order's payable total.

        Raises:
            AmountMismatchError: requested or gateway amount differs from the order total
            TooManyAttemptsError: the order used up its payment attempts
            InvalidTransitionError: the order is not awaiting payment
        """
        async with self.orders.lock(order_id):
            order = self._get(order_id)

            if not order.payment_method.uses_gateway:
                raise InvalidTransitionError(
                    f"Order {order.order_number} is not paid through the gateway"
                )
            if order.payment_status not in (PaymentStatus.PENDING, PaymentStatus.FAILED):
                raise InvalidTransitionError(
                    f"Order {order.order_number} payment is already {order.payment_status.value}"
                )
            if order.order_status != OrderStatus.PENDING:
                raise InvalidTransitionError(
                    f"Order {order.order_number} is {order.order_status.value}, not awaiting payment"
                )

            if amount is None:
                amount = order.total_amount
            if amount != order.total_amount:
                raise AmountMismatchError(
                    f"Requested {amount} but order {order.order_number} totals {order.total_amount}"
                )

            attempts = len(self.intents.for_order(order.id))
            if attempts >= self.max_attempts:
                raise TooManyAttemptsError(
                    f"Order {order.order_number} reached {self.max_attempts} payment attempts"
                )

            gateway_order = await self.gateway.create_order(amount, receipt or order.order_number)
            if gateway_order.amount != order.total_amount:
                logger.warning(
                    f"Gateway order {gateway_order.id} amount {gateway_order.amount} "
                    f"does not match order {order.order_number} total {order.total_amount}"
                )
                raise AmountMismatchError(
                    f"Gateway amount {gateway_order.amount} differs from order total {order.total_amount}"
                )

            intent = PaymentIntent(
                gateway_order_id=gateway_order.id,
                amount=gateway_order.amount,
                order_ref=order.id,
                attempt=attempts + 1,
                receipt=gateway_order.receipt,
            )
            self.intents.add(intent)
            logger.info(
                f"Payment intent {intent.gateway_order_id} for order {order.order_number} "
                f"(attempt {intent.attempt}/{self.max_attempts})"
            )
            return intent

    def _intent_for(self, order: Order, gateway_order_id: str) -> PaymentIntent:
        intent = self.intents.by_gateway_order(gateway_order_id)
        if intent is None or intent.order_ref != order.id:
            raise IntegrityError(
                f"Gateway order {gateway_order_id} does not belong to order {order.order_number}",
                Reason.INTENT_MISMATCH,
            )
        return intent

    # ==================== Verification ====================

    async def verify(
        self,
        order_id: str,
        gateway_order_id: str,
        gateway_payment_id: str,
        signature: str,
    ) -> VerifiedPayment:
        """
        Verify a checkout callback and mark the order paid.

        Verifying an already paid order is a no-op that returns the stored
        payment. An invalid signature never changes the payment status.

        Raises:
            SignatureInvalidError: the signature does not match
            IntegrityError: the gateway order belongs to another order
        """
        async with self.orders.lock(order_id):
            order = self._get(order_id)
            intent = self._intent_for(order, gateway_order_id)

            check = self.verifier.verify_payment(gateway_order_id, gateway_payment_id, signature)
            if not check.is_valid:
                logger.warning(
                    f"Rejected payment callback for order {order.order_number}: {check.error_message}"
                )
                raise SignatureInvalidError(f"Invalid payment signature: {check.error_message}")

            return self._apply_capture(order, intent, gateway_payment_id, signature)

    def _apply_capture(
        self,
        order: Order,
        intent: PaymentIntent,
        gateway_payment_id: str,
        signature: Optional[str],
    ) -> VerifiedPayment:
        existing = self.intents.payment_for(order.id)
        if existing is not None:
            if existing.gateway_payment_id != gateway_payment_id:
                logger.warning(
                    f"Order {order.order_number} already paid by {existing.gateway_payment_id}; "
                    f"ignoring capture of {gateway_payment_id}"
                )
            return existing

        payment = VerifiedPayment(
            order_ref=order.id,
            gateway_order_id=intent.gateway_order_id,
            gateway_payment_id=gateway_payment_id,
            amount=intent.amount,
            signature=signature,
        )
        order.transition_payment(PaymentStatus.COMPLETED, note="Payment confirmed")

        if order.order_status == OrderStatus.PENDING:
            order.transition(OrderStatus.PROCESSING, note="Payment confirmed")
        elif order.order_status == OrderStatus.CANCELLED:
            # Paid after the customer cancelled: give the money back
            self._enqueue_refund(order, payment, "Payment captured after cancellation")

        self.intents.record_payment(payment)
        self.orders.save(order)
        return payment

    async def record_failure(
        self,
        order_id: str,
        gateway_order_id: Optional[str] = None,
        reason: Optional[str] = None,
    ) -> Order:
        """
        Record a gateway-reported payment failure.

        The order stays pending so the customer can retry within the
        attempt bound. Late failures for a settled payment are ignored.
        """
        async with self.orders.lock(order_id):
            order = self._get(order_id)
            if gateway_order_id is not None:
                self._intent_for(order, gateway_order_id)

            if order.payment_status == PaymentStatus.PENDING:
                order.transition_payment(PaymentStatus.FAILED, note=reason or "Payment failed")
                self.orders.save(order)
            else:
                logger.info(
                    f"Ignoring payment failure for order {order.order_number} "
                    f"with payment {order.payment_status.value}"
                )
            return order

    # ==================== Cancellation & refunds ====================

    def _enqueue_refund(self, order: Order, payment: Optional[VerifiedPayment], reason: Optional[str]) -> None:
        if payment is None:
            logger.warning(f"Order {order.order_number} has no captured payment to refund")
            return
        self._refunds.append(
            RefundRequest(
                order_ref=order.id,
                gateway_payment_id=payment.gateway_payment_id,
                amount=payment.amount,
                reason=reason,
            )
        )
        logger.info(f"Refund queued for order {order.order_number}: {payment.amount}")

    async def cancel(self, order_id: str, reason: Optional[str] = None) -> Order:
        """
        Cancel a pending or processing order; queues a refund when paid.

        Raises:
            InvalidTransitionError: the order has moved past processing
        """
        async with self.orders.lock(order_id):
            order = self._get(order_id)
            if order.order_status not in CANCELLABLE_STATUSES:
                raise InvalidTransitionError(
                    f"Order {order.order_number} cannot be cancelled at this stage "
                    f"({order.order_status.value})"
                )

            order.transition(OrderStatus.CANCELLED, note=reason)
            if order.payment_status == PaymentStatus.COMPLETED and order.payment_method.uses_gateway:
                self._enqueue_refund(order, self.intents.payment_for(order.id), reason or "Order cancelled")

            self.orders.save(order)
            return order

    async def update_status(self, order_id: str, status: OrderStatus, note: Optional[str] = None) -> Order:
        """Fulfilment transitions (shipped, delivered, returned, cancelled)"""
        status = OrderStatus(status)
        if status == OrderStatus.CANCELLED:
            return await self.cancel(order_id, note)

        async with self.orders.lock(order_id):
            order = self._get(order_id)
            order.transition(status, note=note)
            if (
                status == OrderStatus.RETURNED
                and order.payment_status == PaymentStatus.COMPLETED
                and order.payment_method.uses_gateway
            ):
                self._enqueue_refund(order, self.intents.payment_for(order.id), note or "Order returned")
            self.orders.save(order)
            return order

    async def process_refunds(self) -> list[GatewayRefund]:
        """
        Submit queued refunds to the gateway.

        A refund that fails transiently goes back to the front of the queue
        and processing stops until the next call.
        """
        submitted = []
        while self._refunds:
            request = self._refunds.popleft()
            try:
                refund = await self.gateway.refund(request.gateway_payment_id, request.amount)
            except (TransientError, GatewayError) as e:
                logger.warning(f"Refund for order {request.order_ref} not submitted: {e}")
                self._refunds.appendleft(request)
                break

            submitted.append(refund)
            if refund.is_processed:
                await self.confirm_refund(request.order_ref)
        return submitted

    async def confirm_refund(self, order_id: str) -> Order:
        """
        Mark the payment refunded.

        Confirmations may arrive long after cancellation was recorded, and
        may arrive more than once.
        """
        async with self.orders.lock(order_id):
            order = self._get(order_id)
            if order.payment_status == PaymentStatus.REFUNDED:
                return order
            if order.payment_status != PaymentStatus.COMPLETED:
                logger.warning(
                    f"Refund confirmation for order {order.order_number} with payment "
                    f"{order.payment_status.value}; ignoring"
                )
                return order

            order.transition_payment(PaymentStatus.REFUNDED, note="Refund processed")
            self.orders.save(order)
            return order

    # ==================== Webhooks ====================

    async def handle_webhook(self, body: Union[str, bytes], signature: Optional[str]) -> str:
        """
        Apply a signed gateway webhook.

        Returns:
            The event name ("ignored" for events without a handler)
        """
        check = self.verifier.verify_webhook(body, signature)
        if not check.is_valid:
            logger.warning(f"Rejected webhook: {check.error_message}")
            raise SignatureInvalidError(f"Invalid webhook signature: {check.error_message}")

        event = json.loads(body)
        name = event.get("event", "")
        payload = event.get("payload", {})

        if name in ("payment.captured", "payment.failed"):
            entity = payload["payment"]["entity"]
            intent = self.intents.by_gateway_order(entity["order_id"])
            if intent is None:
                logger.warning(f"Webhook {name} for unknown gateway order {entity['order_id']}")
                return "ignored"

            if name == "payment.captured":
                async with self.orders.lock(intent.order_ref):
                    order = self._get(intent.order_ref)
                    self._apply_capture(order, intent, entity["id"], signature=None)
            else:
                await self.record_failure(
                    intent.order_ref,
                    intent.gateway_order_id,
                    entity.get("error_description") or "Payment failed at gateway",
                )
            return name

        if name == "refund.processed":
            entity = payload["refund"]["entity"]
            payment = self.intents.payment_by_id(entity["payment_id"])
            if payment is None:
                logger.warning(f"Refund webhook for unknown payment {entity['payment_id']}")
                return "ignored"
            await self.confirm_refund(payment.order_ref)
            return name

        logger.debug(f"Ignoring webhook event {name!r}")
        return "ignored"
