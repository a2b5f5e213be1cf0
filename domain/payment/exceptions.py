"""
Payment confirmation exceptions.

Each maps onto one of the common categories in domain.common.exceptions so
the HTTP layer can pick a status without knowing the payment details.
"""
from __future__ import annotations

from typing import Optional

from domain.common.exceptions import (
    AuthenticationException,
    BusinessException,
    DomainValidationException,
    ResourceNotFoundException,
    TransientInfraException,
)
from shared.codes import BusinessCode
from shared.codes.payment_codes import PaymentCode


class SignatureVerificationException(AuthenticationException):
    def __init__(self, message: str = "Invalid payment signature", *, reason: str = "mismatch"):
        super().__init__(message, code=PaymentCode.SIGNATURE_ERROR, details={"reason": reason})
        self.reason = reason


class InvalidPaymentPayloadException(DomainValidationException):
    def __init__(self, message: str, *, field: Optional[str] = None):
        super().__init__(message, field=field, code=PaymentCode.INVALID_PAYLOAD, error_type="InvalidPaymentPayload")


class UnroutableEventException(BusinessException):
    """Event carries no usable purpose/target; acknowledged but never applied."""

    def __init__(self, message: str, *, details: Optional[dict] = None):
        super().__init__(
            code=PaymentCode.UNROUTABLE_EVENT,
            message=message,
            error_type="UnroutableEvent",
            details=details,
        )


class PaymentMismatchException(DomainValidationException):
    """Client-submitted confirmation disagrees with the gateway's record."""

    def __init__(self, field: str, *, expected, received):
        super().__init__(
            f"{field} does not match the gateway payment",
            field=field,
            details={"expected": str(expected), "received": str(received)},
            code=PaymentCode.PAYMENT_MISMATCH,
            error_type="PaymentMismatch",
        )


class CampaignNotFoundException(ResourceNotFoundException):
    def __init__(self, campaign_id: str):
        super().__init__(
            f"Campaign {campaign_id} not found",
            code=PaymentCode.CAMPAIGN_NOT_FOUND,
            details={"campaign_id": campaign_id},
        )


class BookingNotFoundException(ResourceNotFoundException):
    def __init__(self, booking_id: str):
        super().__init__(
            f"Booking {booking_id} not found",
            code=PaymentCode.BOOKING_NOT_FOUND,
            details={"booking_id": booking_id},
        )


class EventNotFoundException(ResourceNotFoundException):
    def __init__(self, event_id: str):
        super().__init__(
            f"Event {event_id} not found",
            code=PaymentCode.EVENT_NOT_FOUND,
            details={"event_id": event_id},
        )


class DuplicatePaymentException(BusinessException):
    """Raised by the store when a donation for payment_id already exists."""

    def __init__(self, payment_id: str):
        super().__init__(
            code=BusinessCode.BUSINESS_ERROR,
            message=f"Payment {payment_id} already recorded",
            error_type="DuplicatePayment",
            details={"payment_id": payment_id},
        )
        self.payment_id = payment_id


class StoreUnavailableException(TransientInfraException):
    def __init__(self, message: str = "Payment store unavailable", *, details: Optional[dict] = None):
        super().__init__(message, code=PaymentCode.STORE_UNAVAILABLE, details=details)
