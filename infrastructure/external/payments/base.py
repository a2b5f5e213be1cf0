"""
Shared HTTP plumbing for gateway adapters.

The base client owns one pooled ``httpx.AsyncClient``, the tenacity retry
policy and the translation of transport failures into
``PaymentRecoverableError``. Adapters only build requests and map bodies.
"""
from __future__ import annotations

from typing import Any, Optional

import httpx
from tenacity import AsyncRetrying, retry_if_exception_type, stop_after_attempt, wait_exponential

from application.dtos.payments import GatewayOrder, GatewayPayment
from application.ports.payment_gateway import PaymentGateway
from core.logging_config import get_logger
from core.settings import PaymentRetry, PaymentTimeouts
from infrastructure.external.payments.exceptions import PaymentRecoverableError
from shared.codes.payment_codes import PROVIDER_STATUS_TO_INTERNAL


logger = get_logger(__name__)

# 创建订单不是幂等的：只有请求确定没发出去（连不上）时才重试
_NOT_SENT = (httpx.ConnectError, httpx.ConnectTimeout)
_TRANSIENT = (httpx.TimeoutException, httpx.TransportError)


class BasePaymentClient(PaymentGateway):
    provider: str = "base"
    key_id: Optional[str] = None

    def __init__(
        self,
        *,
        timeouts: Optional[PaymentTimeouts] = None,
        retry: Optional[PaymentRetry] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._timeouts = timeouts or PaymentTimeouts()
        self._retry_policy = retry or PaymentRetry()
        self._transport = transport
        self._http: Optional[httpx.AsyncClient] = None

    def _http_timeout(self) -> httpx.Timeout:
        t = self._timeouts
        return httpx.Timeout(connect=t.connect, read=t.read, write=t.write, pool=t.total)

    def _client_kwargs(self) -> dict[str, Any]:
        """Adapter hook: base_url, auth, default headers."""
        return {}

    @property
    def http(self) -> httpx.AsyncClient:
        if self._http is None:
            self._http = httpx.AsyncClient(
                timeout=self._http_timeout(),
                transport=self._transport,
                **self._client_kwargs(),
            )
        return self._http

    async def aclose(self) -> None:
        http, self._http = self._http, None
        if http is not None:
            await http.aclose()

    async def _send(self, method: str, path: str, *, idempotent: bool = True, **kwargs: Any) -> httpx.Response:
        """Send one request under the retry policy.

        Transport failures left after the last attempt surface as
        ``PaymentRecoverableError``; HTTP error statuses are returned as-is.
        """
        policy = self._retry_policy
        retrying = AsyncRetrying(
            stop=stop_after_attempt(policy.max + 1),
            wait=wait_exponential(multiplier=policy.base_backoff, max=2.0),
            retry=retry_if_exception_type(_TRANSIENT if idempotent else _NOT_SENT),
            reraise=True,
        )
        try:
            async for attempt in retrying:
                with attempt:
                    return await self.http.request(method, path, **kwargs)
        except httpx.HTTPError as exc:
            logger.warning(
                "gateway_transport_failed",
                provider=self.provider,
                method=method,
                path=path,
                error_type=type(exc).__name__,
            )
            raise PaymentRecoverableError(str(exc) or type(exc).__name__, provider=self.provider) from exc

    async def create_order(self, *, amount_minor_units: int, currency: str, notes: dict[str, str]) -> GatewayOrder:  # type: ignore[override]
        raise NotImplementedError

    async def fetch_payment(self, payment_id: str) -> GatewayPayment:  # type: ignore[override]
        raise NotImplementedError

    def internal_status(self, provider_status: str) -> str:
        return PROVIDER_STATUS_TO_INTERNAL.get(self.provider, {}).get(provider_status, provider_status)
