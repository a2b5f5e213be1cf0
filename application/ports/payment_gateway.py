"""
支付网关端口：应用层只依赖这个 Protocol，具体 HTTP 适配器在 infrastructure。
"""
from __future__ import annotations

from typing import Protocol, runtime_checkable

from application.dtos.payments import GatewayOrder, GatewayPayment


@runtime_checkable
class PaymentGateway(Protocol):
    # 公开的 key_id 会返回给前端结账组件；未配置时为 None
    provider: str
    key_id: str | None

    async def create_order(self, *, amount_minor_units: int, currency: str, notes: dict[str, str]) -> GatewayOrder:
        """在网关创建订单；金额为最小货币单位（paise）"""
        ...

    async def fetch_payment(self, payment_id: str) -> GatewayPayment:
        """按支付ID查询网关记录，用于客户端确认时核对金额与状态"""
        ...

    async def aclose(self) -> None: ...
