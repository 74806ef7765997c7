# Payment signature checks and order/payment reconciliation

from .models import PaymentIntent, VerifiedPayment, SignatureCheck, RefundRequest
from .signer import PaymentSigner
from .verifier import PaymentVerifier
from .reconciler import PaymentReconciler

__all__ = [
    "PaymentIntent",
    "VerifiedPayment",
    "SignatureCheck",
    "RefundRequest",
    "PaymentSigner",
    "PaymentVerifier",
    "PaymentReconciler",
]
