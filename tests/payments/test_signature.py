import pytest

from domain.payment.exceptions import SignatureVerificationException
from domain.payment.signature import (
    SignatureVerifier,
    checkout_message,
    compute_signature,
    verify,
)


SECRET = "whsec_unit"
BODY = b'{"event":"payment.captured","payload":{"payment":{"entity":{"id":"pay_1"}}}}'


def _bit_flips(text: str):
    for i, ch in enumerate(text):
        for bit in range(8):
            yield text[:i] + chr(ord(ch) ^ (1 << bit)) + text[i + 1:]


def test_valid_signature_is_accepted():
    assert verify(BODY, compute_signature(BODY, SECRET), SECRET) is True


def test_every_single_bit_flip_of_signature_is_rejected():
    signature = compute_signature(BODY, SECRET)
    for tampered in _bit_flips(signature):
        assert verify(BODY, tampered, SECRET) is False, tampered


def test_every_single_bit_flip_of_body_is_rejected():
    signature = compute_signature(BODY, SECRET)
    for i in range(len(BODY)):
        for bit in range(8):
            tampered = bytearray(BODY)
            tampered[i] ^= 1 << bit
            assert verify(bytes(tampered), signature, SECRET) is False


def test_signature_from_other_secret_is_rejected():
    assert verify(BODY, compute_signature(BODY, "other"), SECRET) is False


@pytest.mark.parametrize("secret", [None, ""])
def test_missing_secret_fails_closed(secret):
    # Even the signature computed with an empty key must not pass
    assert verify(BODY, compute_signature(BODY, ""), secret) is False


@pytest.mark.parametrize("signature", [None, "", "not-hex", "ü" * 64])
def test_malformed_signature_is_rejected(signature):
    assert verify(BODY, signature, SECRET) is False


def test_checkout_message_layout():
    assert checkout_message("order_1", "pay_1") == b"order_1|pay_1"


class TestSignatureVerifier:
    def test_webhook_without_secret_rejects_everything(self):
        verifier = SignatureVerifier(key_secret="k", webhook_secret=None)
        with pytest.raises(SignatureVerificationException) as ei:
            verifier.verify_webhook(BODY, compute_signature(BODY, SECRET))
        assert ei.value.details["reason"] == "missing_secret"

    def test_webhook_missing_header(self):
        verifier = SignatureVerifier(key_secret="k", webhook_secret=SECRET)
        with pytest.raises(SignatureVerificationException) as ei:
            verifier.verify_webhook(BODY, None)
        assert ei.value.details["reason"] == "missing_signature"

    def test_webhook_mismatch(self):
        verifier = SignatureVerifier(key_secret="k", webhook_secret=SECRET)
        with pytest.raises(SignatureVerificationException) as ei:
            verifier.verify_webhook(BODY + b" ", compute_signature(BODY, SECRET))
        assert ei.value.details["reason"] == "mismatch"

    def test_checkout_signature(self):
        verifier = SignatureVerifier(key_secret="key_secret", webhook_secret=None)
        good = compute_signature(checkout_message("order_1", "pay_1"), "key_secret")
        verifier.verify_checkout("order_1", "pay_1", good)
        assert verifier.is_valid_checkout("order_1", "pay_1", good) is True
        # Swapping the two ids changes the signed message
        assert verifier.is_valid_checkout("pay_1", "order_1", good) is False
        with pytest.raises(SignatureVerificationException):
            verifier.verify_checkout("order_1", "pay_2", good)

    def test_checkout_without_key_secret(self):
        verifier = SignatureVerifier(key_secret=None, webhook_secret=SECRET)
        assert verifier.is_valid_checkout("order_1", "pay_1", "a" * 64) is False
        with pytest.raises(SignatureVerificationException):
            verifier.verify_checkout("order_1", "pay_1", "a" * 64)
