"""
Gateway signature verification (HMAC-SHA256, hex encoded).

Two canonical messages are signed by the gateway:

* webhooks: the raw request body exactly as received, keyed with the
  webhook secret;
* checkout callbacks: ``"{order_id}|{payment_id}"``, keyed with the API key
  secret. This one does not bind the amount, so callers must not treat it as
  sufficient on its own to mutate state.

A verifier without the relevant secret rejects everything.
"""
from __future__ import annotations

import hashlib
import hmac
from typing import Optional

from domain.payment.exceptions import SignatureVerificationException


def compute_signature(message: bytes, secret: str) -> str:
    return hmac.new(secret.encode("utf-8"), message, hashlib.sha256).hexdigest()


def verify(message: bytes, claimed_signature: Optional[str], secret: Optional[str]) -> bool:
    """Constant-time check of ``claimed_signature`` against HMAC(secret, message)."""
    if not secret or not claimed_signature:
        return False
    expected = compute_signature(message, secret)
    return hmac.compare_digest(expected.encode("ascii"), claimed_signature.encode("utf-8", "surrogatepass"))


def checkout_message(order_id: str, payment_id: str) -> bytes:
    return f"{order_id}|{payment_id}".encode("utf-8")


class SignatureVerifier:
    def __init__(self, *, key_secret: Optional[str], webhook_secret: Optional[str]) -> None:
        self._key_secret = key_secret
        self._webhook_secret = webhook_secret

    def verify_webhook(self, body: bytes, signature: Optional[str]) -> None:
        if not self._webhook_secret:
            raise SignatureVerificationException("Webhook secret not configured", reason="missing_secret")
        if not signature:
            raise SignatureVerificationException("Missing webhook signature", reason="missing_signature")
        if not verify(body, signature, self._webhook_secret):
            raise SignatureVerificationException("Invalid webhook signature")

    def verify_checkout(self, order_id: str, payment_id: str, signature: Optional[str]) -> None:
        if not self._key_secret:
            raise SignatureVerificationException("Key secret not configured", reason="missing_secret")
        if not verify(checkout_message(order_id, payment_id), signature, self._key_secret):
            raise SignatureVerificationException("Invalid payment signature")

    def is_valid_checkout(self, order_id: str, payment_id: str, signature: Optional[str]) -> bool:
        return verify(checkout_message(order_id, payment_id), signature, self._key_secret)
