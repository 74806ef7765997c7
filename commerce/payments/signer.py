"""
Gateway Signature Generator

Produces the HMAC-SHA256 hex signatures the payment gateway attaches to
checkout callbacks ("<order_id>|<payment_id>" keyed with the API secret)
and to webhook bodies (raw body keyed with the webhook secret).
"""

from typing import Optional, Union

from cryptography.hazmat.primitives import hashes, hmac


class PaymentSigner:
    """
    Computes gateway-style signatures.

    Usage:
        signer = PaymentSigner(key_secret="...", webhook_secret="...")
        signature = signer.sign_payment("order_N1", "pay_N1")
    """

    def __init__(self, key_secret: str, webhook_secret: Optional[str] = None):
        self._key_secret = key_secret.encode()
        self._webhook_secret = webhook_secret.encode() if webhook_secret else None

    @staticmethod
    def _mac(secret: bytes, message: bytes) -> str:
        h = hmac.HMAC(secret, hashes.SHA256())
        h.update(message)
        return h.finalize().hex()

    def sign_payment(self, gateway_order_id: str, gateway_payment_id: str) -> str:
        """Signature for a checkout callback"""
        message = f"{gateway_order_id}|{gateway_payment_id}".encode()
        return self._mac(self._key_secret, message)

    def sign_webhook(self, body: Union[str, bytes]) -> str:
        """Signature for a raw webhook body"""
        if self._webhook_secret is None:
            raise ValueError("Webhook secret is not configured")
        body_bytes = body.encode() if isinstance(body, str) else body
        return self._mac(self._webhook_secret, body_bytes)
