"""
请求日志中间件

每个请求记录一条开始与一条结束日志（状态码、耗时毫秒）。JSON 请求体在
DEBUG 下按需记录并脱敏；webhook 请求体不在这里读取。
"""
import json
import time
from typing import Any, Optional

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from core.config import settings
from core.logging_config import get_logger


logger = get_logger(__name__)

# 客户端确认时提交的签名，以及任何看起来像密钥的字段
SENSITIVE_FIELDS = frozenset({"signature", "razorpay_signature", "key_secret", "webhook_secret", "secret", "token"})

_TRUTHY = {"true", "1", "yes"}
_FALSY = {"false", "0", "no"}


def mask_sensitive(data: Any) -> Any:
    if isinstance(data, dict):
        return {k: "***" if str(k).lower() in SENSITIVE_FIELDS else mask_sensitive(v) for k, v in data.items()}
    if isinstance(data, list):
        return [mask_sensitive(v) for v in data]
    return data


class LoggingMiddleware(BaseHTTPMiddleware):
    SKIP_PATHS = frozenset({"/health", "/docs", "/redoc", "/openapi.json"})
    # 签名按原始字节校验
    SKIP_BODY_PATHS = frozenset({"/api/payment/webhook"})

    def __init__(self, app: ASGIApp, *, log_body: Optional[bool] = None, max_body_bytes: Optional[int] = None):
        super().__init__(app)
        if log_body is None:
            log_body = settings.LOG_REQUEST_BODY_ENABLE_BY_DEFAULT and settings.DEBUG
        self.log_body = log_body
        self.max_body_bytes = max_body_bytes or settings.LOG_REQUEST_BODY_MAX_BYTES

    async def dispatch(self, request: Request, call_next):
        if request.url.path in self.SKIP_PATHS:
            return await call_next(request)

        fields = await self._request_fields(request)
        logger.info("request_started", **fields)
        started = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception as exc:
            logger.error(
                "request_failed",
                duration_ms=self._elapsed_ms(started),
                error_type=type(exc).__name__,
                exc_info=True,
                **fields,
            )
            raise

        duration_ms = self._elapsed_ms(started)
        response.headers["X-Process-Time"] = f"{duration_ms / 1000:.3f}"
        self._log_completion(response, duration_ms, fields)
        return response

    @staticmethod
    def _elapsed_ms(started: float) -> float:
        return round((time.perf_counter() - started) * 1000, 2)

    async def _request_fields(self, request: Request) -> dict:
        fields: dict = {}
        if request.query_params:
            fields["query_params"] = dict(request.query_params)
        user_agent = request.headers.get("user-agent")
        if user_agent:
            fields["user_agent"] = user_agent
        if request.method == "POST" and self._wants_body(request):
            body = await self._json_body(request)
            if body is not None:
                fields["body"] = body
        return fields

    def _wants_body(self, request: Request) -> bool:
        if request.url.path in self.SKIP_BODY_PATHS:
            return False
        override = (request.headers.get("x-log-body") or "").lower()
        if override in _TRUTHY:
            return True
        if override in _FALSY:
            return False
        return self.log_body

    async def _json_body(self, request: Request) -> Any:
        if "application/json" not in request.headers.get("content-type", "").lower():
            return None
        raw = await request.body()
        if not raw:
            return None
        snippet = raw[: self.max_body_bytes].decode("utf-8", errors="replace")
        try:
            return mask_sensitive(json.loads(snippet))
        except ValueError:
            # 被截断的 JSON
            return {"truncated": True, "bytes": len(raw)}

    @staticmethod
    def _log_completion(response: Response, duration_ms: float, fields: dict) -> None:
        status_code = response.status_code
        if status_code >= 500:
            log = logger.error
        elif status_code >= 400:
            log = logger.warning
        else:
            log = logger.info
        log("request_completed", status_code=status_code, duration_ms=duration_ms, **fields)
