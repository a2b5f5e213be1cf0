"""
Razorpay Orders/Payments adapter over the REST API (httpx).

Notes on the API:
- Auth is HTTP basic with ``key_id:key_secret``.
- Amounts are integers in paise. ``payment_capture=1`` makes the gateway
  capture automatically, so a successful checkout ends in ``captured``.
- Order ``notes`` come back verbatim on the payment entity; that is how a
  captured payment is routed to its campaign or booking.
"""
from __future__ import annotations

from typing import Any, Optional

import httpx

from application.dtos.payments import GatewayOrder, GatewayPayment
from core.settings import PaymentSettings, payment_settings
from infrastructure.external.payments.base import BasePaymentClient
from infrastructure.external.payments.exceptions import (
    PaymentProviderError,
    PaymentRecoverableError,
)
from core.logging_config import get_logger


logger = get_logger(__name__)

# Razorpay rejects orders with more than 15 note keys
MAX_NOTES = 15


class RazorpayClient(BasePaymentClient):
    provider = "razorpay"

    def __init__(
        self,
        config: Optional[PaymentSettings] = None,
        *,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        cfg = config or payment_settings
        super().__init__(
            timeouts=cfg.timeouts,
            retry=cfg.retry,
            transport=transport,
        )
        self.key_id = cfg.razorpay.key_id
        self._key_secret = cfg.razorpay.key_secret
        self._api_base = cfg.razorpay.api_base.rstrip("/")

    def _client_kwargs(self) -> dict[str, Any]:
        return {"base_url": self._api_base, "auth": (self.key_id or "", self._key_secret or "")}

    def _ensure_credentials(self) -> None:
        if not self.key_id or not self._key_secret:
            raise PaymentProviderError(
                "Razorpay credentials not configured (RAZORPAY__KEY_ID / RAZORPAY__KEY_SECRET)",
                provider=self.provider,
                provider_code="not_configured",
            )

    def _raise_for_response(self, response: httpx.Response, operation: str) -> None:
        if response.is_success:
            return
        try:
            error = response.json().get("error", {}) or {}
        except ValueError:
            error = {}
        message = error.get("description") or f"{operation} failed with HTTP {response.status_code}"
        code = error.get("code")
        logger.warning(
            "razorpay_request_failed",
            operation=operation,
            status_code=response.status_code,
            provider_code=code,
        )
        if response.status_code >= 500 or response.status_code == 429:
            raise PaymentRecoverableError(message, provider=self.provider, provider_code=code)
        raise PaymentProviderError(message, provider=self.provider, provider_code=code)

    async def create_order(self, *, amount_minor_units: int, currency: str, notes: dict[str, str]) -> GatewayOrder:  # type: ignore[override]
        self._ensure_credentials()
        payload = {
            "amount": amount_minor_units,
            "currency": currency,
            "payment_capture": 1,
            "notes": dict(list(notes.items())[:MAX_NOTES]),
        }

        response = await self._send("POST", "/orders", idempotent=False, json=payload)
        self._raise_for_response(response, "create_order")
        body = response.json()
        logger.info("razorpay_order_created", order_id=body.get("id"), amount=body.get("amount"))
        return GatewayOrder(
            id=str(body["id"]),
            amount=int(body["amount"]),
            currency=str(body.get("currency") or currency),
            status=body.get("status"),
        )

    async def fetch_payment(self, payment_id: str) -> GatewayPayment:  # type: ignore[override]
        self._ensure_credentials()

        response = await self._send("GET", f"/payments/{payment_id}")
        self._raise_for_response(response, "fetch_payment")
        payment = GatewayPayment.model_validate(response.json())
        logger.info(
            "razorpay_payment_fetched",
            payment_id=payment.id,
            status=payment.status,
            internal_status=self.internal_status(payment.status),
        )
        return payment
