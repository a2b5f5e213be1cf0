"""网关错误：拒绝类 (502) 与可重试类 (503)，details 里带上网关自己的错误码。"""
from __future__ import annotations

from typing import Optional

from domain.common.exceptions import BusinessException, TransientInfraException
from shared.codes.payment_codes import PaymentCode


class PaymentProviderError(BusinessException):
    """Gateway rejected the call: bad credentials, bad request, unknown id."""

    def __init__(self, message: str, *, provider: str, provider_code: Optional[str] = None):
        super().__init__(
            PaymentCode.PROVIDER_ERROR,
            message,
            "PaymentProviderError",
            {"provider": provider, "provider_code": provider_code},
        )
        self.provider_code = provider_code


class PaymentRecoverableError(TransientInfraException):
    """Timeout, transport failure, 429 or 5xx from the gateway."""

    def __init__(self, message: str, *, provider: str, provider_code: Optional[str] = None):
        super().__init__(
            message,
            code=PaymentCode.PROVIDER_RECOVERABLE,
            details={"provider": provider, "provider_code": provider_code},
        )
        self.error_type = "PaymentRecoverableError"
        self.provider_code = provider_code
