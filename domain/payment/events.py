"""
Verified payment events.

A captured payment is decoded once, at the boundary, into exactly one of the
closed variants below. Anything that cannot be routed raises
UnroutableEventException instead of falling through.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Mapping, Optional, Union

from domain.payment.exceptions import InvalidPaymentPayloadException, UnroutableEventException


class PaymentPurpose(str, Enum):
    DONATION = "donation"
    EVENT_BOOKING = "event_booking"


# Order notes use "event"; confirmations may say "event_booking"
_PURPOSE_ALIASES = {
    "donation": PaymentPurpose.DONATION,
    "event": PaymentPurpose.EVENT_BOOKING,
    "event_booking": PaymentPurpose.EVENT_BOOKING,
}


@dataclass(frozen=True)
class DonationEvent:
    payment_id: str
    order_id: str
    amount_minor_units: int
    campaign_id: str

    purpose = PaymentPurpose.DONATION

    @property
    def target_id(self) -> str:
        return self.campaign_id


@dataclass(frozen=True)
class BookingEvent:
    payment_id: str
    order_id: str
    amount_minor_units: int
    booking_id: str
    event_id: Optional[str] = None

    purpose = PaymentPurpose.EVENT_BOOKING

    @property
    def target_id(self) -> str:
        return self.booking_id


PaymentEvent = Union[DonationEvent, BookingEvent]


def parse_purpose(value: Any) -> PaymentPurpose:
    purpose = _PURPOSE_ALIASES.get(str(value or "").strip().lower())
    if purpose is None:
        raise UnroutableEventException(
            f"Unrecognized payment purpose: {value!r}",
            details={"purpose": value},
        )
    return purpose


def _note(notes: Mapping[str, Any], *keys: str) -> Optional[str]:
    for key in keys:
        value = notes.get(key)
        if value not in (None, ""):
            return str(value)
    return None


def build_payment_event(
    *,
    payment_id: str,
    order_id: str,
    amount_minor_units: int,
    notes: Mapping[str, Any],
) -> PaymentEvent:
    """Route a captured payment by its order notes."""
    if not payment_id or not order_id:
        raise InvalidPaymentPayloadException("payment id and order id are required", field="payment_id")
    if isinstance(amount_minor_units, bool) or not isinstance(amount_minor_units, int) or amount_minor_units <= 0:
        raise InvalidPaymentPayloadException(
            f"amount must be a positive integer in minor units: {amount_minor_units!r}",
            field="amount",
        )

    purpose = parse_purpose(notes.get("purpose"))
    if purpose is PaymentPurpose.DONATION:
        campaign_id = _note(notes, "campaignId", "campaign_id")
        if campaign_id is None:
            raise UnroutableEventException(
                "Donation payment carries no campaignId",
                details={"payment_id": payment_id},
            )
        return DonationEvent(
            payment_id=payment_id,
            order_id=order_id,
            amount_minor_units=amount_minor_units,
            campaign_id=campaign_id,
        )

    booking_id = _note(notes, "bookingId", "booking_id")
    if booking_id is None:
        raise UnroutableEventException(
            "Event payment carries no bookingId",
            details={"payment_id": payment_id},
        )
    return BookingEvent(
        payment_id=payment_id,
        order_id=order_id,
        amount_minor_units=amount_minor_units,
        booking_id=booking_id,
        event_id=_note(notes, "eventId", "event_id"),
    )
