"""Gateway adapters; routes obtain one through ``get_payment_gateway``."""
from __future__ import annotations

from typing import Optional

from application.ports.payment_gateway import PaymentGateway
from core.settings import PaymentSettings, payment_settings

_RAZORPAY_ALIASES = frozenset({"razorpay", "rzp"})


def get_payment_gateway(provider: Optional[str] = None, config: Optional[PaymentSettings] = None) -> PaymentGateway:
    cfg = config or payment_settings
    name = (provider or cfg.default_provider).strip().lower()
    if name not in _RAZORPAY_ALIASES:
        raise ValueError(f"Unsupported payment provider: {name}")
    from .razorpay_client import RazorpayClient

    return RazorpayClient(cfg)
