"""
Gateway Signature Verifier

Recomputes the expected HMAC and compares it in constant time. Any
mismatch, including malformed hex, is a rejection.
"""

from typing import Optional, Union

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives import hashes, hmac

from .models import SignatureCheck


class PaymentVerifier:
    """
    Verifies gateway callback and webhook signatures.

    Usage:
        verifier = PaymentVerifier(key_secret="...", webhook_secret="...")
        result = verifier.verify_payment(order_id, payment_id, signature)

        if result.is_valid:
            ...
    """

    def __init__(self, key_secret: str, webhook_secret: Optional[str] = None):
        self._key_secret = key_secret.encode()
        self._webhook_secret = webhook_secret.encode() if webhook_secret else None

    def verify_payment(
        self,
        gateway_order_id: str,
        gateway_payment_id: str,
        signature: str,
    ) -> SignatureCheck:
        """Verify the signature returned to the browser after checkout"""
        message = f"{gateway_order_id}|{gateway_payment_id}".encode()
        return self._verify(self._key_secret, message, signature)

    def verify_webhook(self, body: Union[str, bytes], signature: Optional[str]) -> SignatureCheck:
        """Verify a webhook delivery against its raw body"""
        if self._webhook_secret is None:
            return SignatureCheck(is_valid=False, error_message="Webhook secret not configured")
        body_bytes = body.encode() if isinstance(body, str) else body
        return self._verify(self._webhook_secret, body_bytes, signature)

    def _verify(self, secret: bytes, message: bytes, signature: Optional[str]) -> SignatureCheck:
        if not signature:
            return SignatureCheck(is_valid=False, error_message="Missing signature")

        try:
            presented = bytes.fromhex(signature)
        except ValueError:
            return SignatureCheck(is_valid=False, error_message="Signature is not valid hex")

        h = hmac.HMAC(secret, hashes.SHA256())
        h.update(message)
        try:
            # HMAC.verify compares in constant time
            h.verify(presented)
        except InvalidSignature:
            return SignatureCheck(is_valid=False, error_message="Invalid signature")

        return SignatureCheck(is_valid=True)
