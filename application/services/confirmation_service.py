"""
Confirmation applier: applies a verified payment event to the store exactly once.

Every effect is committed inside a single unit of work together with the fact
that justifies it (donation row / booking status flip), so a failure at any
point leaves nothing observable and the whole call can be retried.
"""
from __future__ import annotations

import asyncio
import uuid
from typing import Callable

from application.dtos.payments import ApplyResult
from core.logging_config import get_logger
from domain.common.unit_of_work import AbstractUnitOfWork
from domain.payment.entity import Donation, minor_to_major
from domain.payment.events import BookingEvent, DonationEvent, PaymentEvent
from domain.payment.exceptions import (
    BookingNotFoundException,
    CampaignNotFoundException,
    DuplicatePaymentException,
    EventNotFoundException,
    StoreUnavailableException,
)


logger = get_logger(__name__)


class ConfirmationApplier:
    def __init__(
        self,
        uow_factory: Callable[..., AbstractUnitOfWork],
        *,
        transaction_timeout: float = 10.0,
    ) -> None:
        self._uow_factory = uow_factory
        self._transaction_timeout = transaction_timeout

    async def apply(self, event: PaymentEvent) -> ApplyResult:
        try:
            return await asyncio.wait_for(self._dispatch(event), timeout=self._transaction_timeout)
        except asyncio.TimeoutError as exc:
            logger.error(
                "payment_apply_timeout",
                payment_id=event.payment_id,
                purpose=event.purpose.value,
                timeout=self._transaction_timeout,
            )
            raise StoreUnavailableException(
                "Payment store transaction timed out",
                details={"payment_id": event.payment_id},
            ) from exc

    async def _dispatch(self, event: PaymentEvent) -> ApplyResult:
        if isinstance(event, DonationEvent):
            return await self.apply_donation(event)
        if isinstance(event, BookingEvent):
            return await self.apply_booking(event)
        raise TypeError(f"unsupported payment event: {type(event).__name__}")

    async def _existing_donation(self, payment_id: str) -> Donation | None:
        async with self._uow_factory(readonly=True) as uow:
            return await uow.donations.get_by_payment_id(payment_id)

    def _duplicate(self, donation: Donation) -> ApplyResult:
        logger.info(
            "donation_already_recorded",
            payment_id=donation.payment_id,
            donation_id=donation.donation_id,
        )
        return ApplyResult(applied=False, result_id=donation.donation_id, purpose=DonationEvent.purpose.value)

    async def apply_donation(self, event: DonationEvent) -> ApplyResult:
        existing = await self._existing_donation(event.payment_id)
        if existing is not None:
            return self._duplicate(existing)

        amount = minor_to_major(event.amount_minor_units)
        donation = Donation(
            donation_id=uuid.uuid4().hex,
            campaign_id=event.campaign_id,
            amount=amount,
            payment_id=event.payment_id,
            order_id=event.order_id,
        )
        try:
            async with self._uow_factory() as uow:
                # Increment first: it takes the campaign write lock, so the
                # re-check below sees any concurrent commit for this payment.
                if not await uow.campaigns.increment_total_raised(event.campaign_id, amount):
                    raise CampaignNotFoundException(event.campaign_id)
                if await uow.donations.get_by_payment_id(event.payment_id) is not None:
                    raise DuplicatePaymentException(event.payment_id)
                await uow.donations.add(donation)
        except DuplicatePaymentException:
            existing = await self._existing_donation(event.payment_id)
            if existing is None:
                raise
            return self._duplicate(existing)

        logger.info(
            "donation_applied",
            payment_id=event.payment_id,
            campaign_id=event.campaign_id,
            donation_id=donation.donation_id,
            amount=str(amount),
        )
        return ApplyResult(applied=True, result_id=donation.donation_id, purpose=event.purpose.value)

    async def apply_booking(self, event: BookingEvent) -> ApplyResult:
        async with self._uow_factory() as uow:
            booking = await uow.bookings.get(event.booking_id)
            if booking is None:
                raise BookingNotFoundException(event.booking_id)
            if booking.is_confirmed:
                logger.info("booking_already_confirmed", booking_id=booking.booking_id, payment_id=event.payment_id)
                return ApplyResult(applied=False, result_id=booking.booking_id, purpose=event.purpose.value)
            if event.event_id and event.event_id != booking.event_id:
                logger.warning(
                    "booking_event_mismatch",
                    booking_id=booking.booking_id,
                    notes_event_id=event.event_id,
                    event_id=booking.event_id,
                )
            # Conditional on status='pending': a concurrent confirmation that
            # committed first makes this a no-op.
            if not await uow.bookings.mark_confirmed(booking.booking_id, event.payment_id):
                return ApplyResult(applied=False, result_id=booking.booking_id, purpose=event.purpose.value)
            if not await uow.events.increment_seats_sold(booking.event_id, booking.seats):
                raise EventNotFoundException(booking.event_id)

        logger.info(
            "booking_applied",
            booking_id=booking.booking_id,
            event_id=booking.event_id,
            seats=booking.seats,
            payment_id=event.payment_id,
        )
        return ApplyResult(applied=True, result_id=booking.booking_id, purpose=event.purpose.value)
