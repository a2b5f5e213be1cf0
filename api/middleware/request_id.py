"""
Request ID 中间件
生成或透传追踪ID，并通过 structlog contextvars 传递给日志系统
"""
import uuid

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

import structlog


class RequestIDMiddleware(BaseHTTPMiddleware):
    """
    Request ID 追踪中间件

    1. 从 X-Request-ID 获取或生成 request_id
    2. 绑定到 structlog 上下文（含网关投递ID，便于关联重试）
    3. 在响应头中返回 request_id
    """

    HEADER_NAME = "X-Request-ID"
    # Razorpay 对同一事件的每次重试都携带相同的 X-Razorpay-Event-Id
    GATEWAY_EVENT_HEADER = "X-Razorpay-Event-Id"

    async def dispatch(self, request: Request, call_next):
        request_id = request.headers.get(self.HEADER_NAME) or str(uuid.uuid4())
        request.state.request_id = request_id

        structlog.contextvars.clear_contextvars()
        context = {
            "request_id": request_id,
            "client_ip": get_client_ip(request),
            "method": request.method,
            "path": request.url.path,
        }
        gateway_event_id = request.headers.get(self.GATEWAY_EVENT_HEADER)
        if gateway_event_id:
            context["gateway_event_id"] = gateway_event_id
        structlog.contextvars.bind_contextvars(**context)

        response = await call_next(request)
        response.headers[self.HEADER_NAME] = request_id
        return response


def get_client_ip(request: Request) -> str:
    """获取客户端真实IP（考虑反向代理）"""
    x_forwarded_for = request.headers.get("X-Forwarded-For")
    if x_forwarded_for:
        return x_forwarded_for.split(",")[0].strip()
    real_ip = request.headers.get("X-Real-IP")
    if real_ip:
        return real_ip
    return request.client.host if request.client else "unknown"

