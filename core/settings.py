"""
Payment gateway settings (pydantic-settings v2, nested ``__`` env keys).

    RAZORPAY__KEY_ID / RAZORPAY__KEY_SECRET    order API + checkout signature
    RAZORPAY__WEBHOOK_SECRET                   webhook body signature
    PAYMENT__DEFAULT_PROVIDER, CURRENCY, TIMEOUTS__READ, RETRY__MAX, ...

Collaborators take a PaymentSettings instance at construction; nothing reads
these values as globals, so tests can build their own.
"""
from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class PaymentTimeouts(BaseModel):
    """Seconds; ``total`` bounds waiting for a pooled connection."""

    connect: float = 1.0
    read: float = 3.0
    write: float = 3.0
    total: float = 5.0


class PaymentRetry(BaseModel):
    # Extra attempts after the first; only transport failures are retried
    max: int = Field(default=2, ge=0)
    base_backoff: float = 0.2


class RazorpaySettings(BaseModel):
    key_id: Optional[str] = None
    key_secret: Optional[str] = None
    webhook_secret: Optional[str] = None
    api_base: str = "https://api.razorpay.com/v1"

    @property
    def orders_enabled(self) -> bool:
        return bool(self.key_id and self.key_secret)


class PaymentSettings(BaseSettings):
    default_provider: str = Field(default="razorpay", validation_alias="PAYMENT__DEFAULT_PROVIDER")
    currency: str = "INR"
    timeouts: PaymentTimeouts = Field(default_factory=PaymentTimeouts)
    retry: PaymentRetry = Field(default_factory=PaymentRetry)
    razorpay: RazorpaySettings = Field(default_factory=RazorpaySettings)

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
        env_nested_delimiter="__",
    )

    @field_validator("currency")
    @classmethod
    def _upper_currency(cls, v: str) -> str:
        return v.strip().upper()


payment_settings = PaymentSettings()
