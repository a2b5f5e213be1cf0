"""
Application service orchestrating payment use-cases.

Two entry points lead into the same ConfirmationApplier:

* ``handle_webhook`` - server-to-server notification signed over the raw body;
* ``confirm_payment`` - checkout callback relayed by the browser when no
  webhook channel is available. Its ``order_id|payment_id`` signature does not
  cover the amount, so the payment is re-read from the gateway and the event
  is built from the gateway's record, never from client-supplied fields.

Gateway implementations are provided by infrastructure and injected from the
composition root (API), keeping dependencies one-way.
"""
from __future__ import annotations

import json
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Mapping, Optional

from pydantic import ValidationError

from application.dtos.payments import (
    ConfirmPaymentRequest,
    ConfirmResult,
    CreateOrderRequest,
    OrderCreated,
    VerifySignatureRequest,
    WebhookEnvelope,
    WebhookOutcome,
)
from application.ports.payment_gateway import PaymentGateway
from application.services.confirmation_service import ConfirmationApplier
from core.logging_config import get_logger
from domain.common.exceptions import DomainValidationException, ResourceNotFoundException
from domain.payment.entity import minor_to_major
from domain.payment.events import DonationEvent, build_payment_event
from domain.payment.exceptions import (
    InvalidPaymentPayloadException,
    PaymentMismatchException,
    UnroutableEventException,
)
from domain.payment.signature import SignatureVerifier


logger = get_logger(__name__)

CAPTURED_EVENT = "payment.captured"
SIGNATURE_HEADER = "x-razorpay-signature"


def to_minor_units(amount: Decimal) -> int:
    return int((amount * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def _header(headers: Mapping[str, Any], name: str) -> Optional[str]:
    for key, value in headers.items():
        if key.lower() == name:
            return value
    return None


class PaymentService:
    def __init__(
        self,
        *,
        verifier: SignatureVerifier,
        applier: ConfirmationApplier,
        gateway: Optional[PaymentGateway] = None,
        currency: str = "INR",
    ) -> None:
        self.verifier = verifier
        self.applier = applier
        self.gateway = gateway
        self.currency = currency

    def _require_gateway(self) -> PaymentGateway:
        if self.gateway is None:
            raise RuntimeError("payment gateway not configured for this service")
        return self.gateway

    async def create_order(self, req: CreateOrderRequest) -> OrderCreated:
        gateway = self._require_gateway()
        amount_minor = to_minor_units(req.amount)
        logger.info(
            "payment_order_request",
            purpose=req.purpose,
            campaign_id=req.campaign_id,
            amount_minor=amount_minor,
        )
        order = await gateway.create_order(
            amount_minor_units=amount_minor,
            currency=self.currency,
            notes=req.notes(),
        )
        logger.info("payment_order_created", order_id=order.id, provider=gateway.provider)
        return OrderCreated(order_id=order.id, amount=order.amount, currency=self.currency, key=gateway.key_id)

    def verify_signature(self, req: VerifySignatureRequest) -> bool:
        if not (req.payment_id and req.order_id and req.signature):
            raise DomainValidationException("paymentId, orderId and signature are required")
        return self.verifier.is_valid_checkout(req.order_id, req.payment_id, req.signature)

    async def handle_webhook(self, headers: Mapping[str, Any], body: bytes) -> WebhookOutcome:
        # Verify over the bytes as received; never over a re-serialisation
        self.verifier.verify_webhook(body, _header(headers, SIGNATURE_HEADER))

        try:
            envelope = WebhookEnvelope.model_validate(json.loads(body))
        except (ValueError, ValidationError) as exc:
            raise InvalidPaymentPayloadException(f"Malformed webhook payload: {exc}") from exc

        if envelope.event != CAPTURED_EVENT:
            logger.info("payment_webhook_ignored", webhook_event=envelope.event)
            return WebhookOutcome(status="ignored", event=envelope.event)

        payment = envelope.payment
        if payment is None or not payment.order_id:
            raise InvalidPaymentPayloadException("payment.captured without payment entity", field="payload.payment")

        try:
            event = build_payment_event(
                payment_id=payment.id,
                order_id=payment.order_id,
                amount_minor_units=payment.amount,
                notes=payment.notes,
            )
        except UnroutableEventException as exc:
            logger.warning(
                "payment_webhook_unroutable",
                payment_id=payment.id,
                order_id=payment.order_id,
                reason=exc.message,
            )
            return WebhookOutcome(status="unroutable", event=envelope.event, payment_id=payment.id)

        try:
            result = await self.applier.apply(event)
        except ResourceNotFoundException as exc:
            # The target will not appear on retry; acknowledge
            logger.warning(
                "payment_webhook_target_missing",
                payment_id=payment.id,
                target_id=event.target_id,
                reason=exc.message,
            )
            return WebhookOutcome(status="not_found", event=envelope.event, payment_id=payment.id)

        return WebhookOutcome(
            status="processed" if result.applied else "duplicate",
            event=envelope.event,
            payment_id=payment.id,
            result_id=result.result_id,
        )

    async def confirm_payment(self, req: ConfirmPaymentRequest) -> ConfirmResult:
        self.verifier.verify_checkout(req.order_id, req.payment_id, req.signature)

        payment = await self._require_gateway().fetch_payment(req.payment_id)
        if payment.order_id != req.order_id:
            raise PaymentMismatchException("orderId", expected=payment.order_id, received=req.order_id)
        if payment.status != "captured":
            raise DomainValidationException(
                f"Payment {payment.id} is not captured (status={payment.status})",
                field="paymentId",
            )

        try:
            event = build_payment_event(
                payment_id=payment.id,
                order_id=payment.order_id,
                amount_minor_units=payment.amount,
                notes=payment.notes,
            )
        except UnroutableEventException as exc:
            raise DomainValidationException(exc.message, field="paymentId") from exc
        if not isinstance(event, DonationEvent):
            raise DomainValidationException("Payment is not a donation", field="paymentId")
        if event.campaign_id != req.campaign_id:
            raise PaymentMismatchException("campaignId", expected=event.campaign_id, received=req.campaign_id)
        gateway_amount = minor_to_major(payment.amount)
        if gateway_amount != req.amount:
            raise PaymentMismatchException("amount", expected=gateway_amount, received=req.amount)

        result = await self.applier.apply(event)
        return ConfirmResult(donation_id=result.result_id, applied=result.applied)

    async def aclose(self) -> None:
        # Best-effort close underlying resources
        close = getattr(self.gateway, "aclose", None)
        if callable(close):
            await close()
