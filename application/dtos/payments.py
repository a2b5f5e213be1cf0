"""
Payment DTOs (Pydantic v2) used at application boundaries.

Request models keep the camelCase wire names of the checkout frontend.
"""
from __future__ import annotations

import math
from decimal import Decimal, InvalidOperation
from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


PURPOSES = ("donation", "event")


def _positive_number(value: Any, field: str) -> Decimal:
    if isinstance(value, bool) or value is None:
        raise ValueError(f"Invalid {field}")
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise ValueError(f"Invalid {field}") from None
    if not math.isfinite(number) or number <= 0:
        raise ValueError(f"Invalid {field}")
    try:
        amount = Decimal(str(value)).quantize(Decimal("0.01"))
    except InvalidOperation:
        raise ValueError(f"Invalid {field}") from None
    # 不足一分（paise）的金额量化后为 0
    if amount <= 0:
        raise ValueError(f"Invalid {field}")
    return amount


class CreateOrderRequest(BaseModel):
    amount: Decimal
    purpose: str = "donation"
    campaign_id: Optional[str] = Field(default=None, alias="campaignId")
    meta: dict[str, Any] = Field(default_factory=dict)

    model_config = ConfigDict(populate_by_name=True)

    @field_validator("amount", mode="before")
    @classmethod
    def _validate_amount(cls, v: Any) -> Decimal:
        return _positive_number(v, "amount")

    @field_validator("purpose", mode="before")
    @classmethod
    def _validate_purpose(cls, v: Any) -> str:
        if v is None:
            return "donation"
        if v not in PURPOSES:
            raise ValueError("Invalid payment purpose")
        return v

    @field_validator("meta", mode="before")
    @classmethod
    def _default_meta(cls, v: Any) -> dict:
        return v or {}

    @model_validator(mode="after")
    def _campaign_required_for_donation(self) -> "CreateOrderRequest":
        if self.purpose == "donation" and not self.campaign_id:
            raise ValueError("campaignId is required for donations")
        return self

    def notes(self) -> dict[str, str]:
        """Order notes carried back to us on the captured payment."""
        notes: dict[str, str] = {"purpose": self.purpose}
        if self.campaign_id:
            notes["campaignId"] = self.campaign_id
        for key, value in self.meta.items():
            if value is not None and key not in notes:
                notes[str(key)] = str(value)
        return notes


class OrderCreated(BaseModel):
    success: bool = True
    order_id: str = Field(serialization_alias="orderId")
    amount: int
    currency: str
    key: Optional[str] = None


class ConfirmPaymentRequest(BaseModel):
    payment_id: str = Field(alias="paymentId", min_length=1)
    order_id: str = Field(alias="orderId", min_length=1)
    signature: str = Field(min_length=1)
    campaign_id: str = Field(alias="campaignId", min_length=1)
    amount: Decimal

    model_config = ConfigDict(populate_by_name=True)

    @field_validator("amount", mode="before")
    @classmethod
    def _validate_amount(cls, v: Any) -> Decimal:
        return _positive_number(v, "amount")


class ConfirmResult(BaseModel):
    success: bool = True
    donation_id: str = Field(serialization_alias="donationId")
    applied: bool


class VerifySignatureRequest(BaseModel):
    payment_id: Optional[str] = Field(default=None, alias="paymentId")
    order_id: Optional[str] = Field(default=None, alias="orderId")
    signature: Optional[str] = None

    model_config = ConfigDict(populate_by_name=True)


class ApplyResult(BaseModel):
    """Outcome of applying a verified payment event."""

    applied: bool
    result_id: str
    purpose: str


WebhookStatus = Literal["processed", "duplicate", "ignored", "unroutable", "not_found"]


class WebhookOutcome(BaseModel):
    status: WebhookStatus
    event: str
    payment_id: Optional[str] = None
    result_id: Optional[str] = None


# Gateway (Razorpay) shapes


class GatewayOrder(BaseModel):
    id: str
    amount: int
    currency: str
    status: Optional[str] = None


class GatewayPayment(BaseModel):
    id: str
    order_id: Optional[str] = None
    amount: int
    currency: Optional[str] = None
    status: str
    notes: dict[str, Any] = Field(default_factory=dict)

    @field_validator("notes", mode="before")
    @classmethod
    def _notes_as_mapping(cls, v: Any) -> dict:
        # Razorpay serialises empty notes as []
        return v if isinstance(v, dict) else {}


class _PaymentWrapper(BaseModel):
    entity: GatewayPayment


class _WebhookPayload(BaseModel):
    payment: Optional[_PaymentWrapper] = None


class WebhookEnvelope(BaseModel):
    event: str
    payload: _WebhookPayload = Field(default_factory=_WebhookPayload)

    @property
    def payment(self) -> Optional[GatewayPayment]:
        return self.payload.payment.entity if self.payload.payment else None
