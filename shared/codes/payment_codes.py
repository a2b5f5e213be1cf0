"""
Payment flow codes and the gateway payment status vocabulary.
"""
from enum import IntEnum


class PaymentCode(IntEnum):
    # Gateway / store availability (60xxx)
    PROVIDER_ERROR = 60000
    PROVIDER_RECOVERABLE = 60001
    SIGNATURE_ERROR = 60002
    STORE_UNAVAILABLE = 60004

    # Confirmation flow (61xxx)
    INVALID_PAYLOAD = 61000
    UNROUTABLE_EVENT = 61001
    CAMPAIGN_NOT_FOUND = 61002
    BOOKING_NOT_FOUND = 61003
    PAYMENT_MISMATCH = 61004
    EVENT_NOT_FOUND = 61005


# Razorpay payment.status -> internal status, used in gateway logs
PROVIDER_STATUS_TO_INTERNAL = {
    "razorpay": {
        "created": "pending",
        "authorized": "pending",
        "captured": "succeeded",
        "refunded": "refunded",
        "failed": "failed",
    },
}
