import pytest

from domain.payment.events import (
    BookingEvent,
    DonationEvent,
    PaymentPurpose,
    build_payment_event,
    parse_purpose,
)
from domain.payment.exceptions import InvalidPaymentPayloadException, UnroutableEventException


def _build(notes, amount=50000):
    return build_payment_event(payment_id="pay_1", order_id="order_1", amount_minor_units=amount, notes=notes)


def test_donation_routed_by_campaign_id():
    event = _build({"purpose": "donation", "campaignId": "camp_1"})
    assert isinstance(event, DonationEvent)
    assert event.campaign_id == "camp_1"
    assert event.target_id == "camp_1"
    assert event.purpose is PaymentPurpose.DONATION


def test_donation_accepts_snake_case_note():
    event = _build({"purpose": "donation", "campaign_id": "camp_2"})
    assert isinstance(event, DonationEvent)
    assert event.campaign_id == "camp_2"


@pytest.mark.parametrize("purpose", ["event", "event_booking", "EVENT"])
def test_booking_routed_by_booking_id(purpose):
    event = _build({"purpose": purpose, "bookingId": "bk_1", "eventId": "evt_1"})
    assert isinstance(event, BookingEvent)
    assert event.booking_id == "bk_1"
    assert event.event_id == "evt_1"
    assert event.purpose is PaymentPurpose.EVENT_BOOKING


@pytest.mark.parametrize("notes", [
    {},
    {"purpose": "refund", "campaignId": "camp_1"},
    {"purpose": "donation"},
    {"purpose": "donation", "campaignId": ""},
    {"purpose": "event", "eventId": "evt_1"},
])
def test_unroutable_notes(notes):
    with pytest.raises(UnroutableEventException):
        _build(notes)


@pytest.mark.parametrize("amount", [0, -100, True, 500.0, "50000"])
def test_amount_must_be_positive_integer(amount):
    with pytest.raises(InvalidPaymentPayloadException):
        _build({"purpose": "donation", "campaignId": "camp_1"}, amount=amount)


def test_missing_ids_rejected():
    with pytest.raises(InvalidPaymentPayloadException):
        build_payment_event(payment_id="", order_id="order_1", amount_minor_units=100, notes={"purpose": "donation"})


def test_parse_purpose_unknown():
    with pytest.raises(UnroutableEventException) as ei:
        parse_purpose(None)
    assert ei.value.details == {"purpose": None}
