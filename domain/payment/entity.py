"""
支付领域实体 - 捐赠记录、筹款活动与活动预订
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Optional

from domain.common.exceptions import DomainValidationException


MINOR_UNITS_PER_MAJOR = 100


def minor_to_major(amount_minor_units: int) -> Decimal:
    """paise -> rupees, exact (no float rounding)."""
    return (Decimal(amount_minor_units) / MINOR_UNITS_PER_MAJOR).quantize(Decimal("0.01"))


def _ensure_utc(dt: Optional[datetime]) -> Optional[datetime]:
    """确保时间为 UTC 时区"""
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


class BookingStatus(str, Enum):
    """预订状态：pending -> confirmed（终态）"""
    PENDING = "pending"
    CONFIRMED = "confirmed"


@dataclass
class Donation:
    """
    一笔已入账的捐赠（不可变）

    业务规则：
    1. 每个 payment_id 至多一条记录
    2. 金额必须大于0
    """

    donation_id: str
    campaign_id: str
    amount: Decimal
    payment_id: str
    order_id: str
    created_at: Optional[datetime] = None

    def __post_init__(self):
        if self.amount <= 0:
            raise DomainValidationException(
                f"捐赠金额必须大于0: {self.amount}",
                field="amount",
            )
        self.created_at = _ensure_utc(self.created_at)


@dataclass
class Campaign:
    """筹款活动聚合：total_raised 等于其所有捐赠金额之和"""

    campaign_id: str
    total_raised: Decimal = Decimal("0")
    title: Optional[str] = None


@dataclass
class Event:
    """售票活动聚合：seats_sold 只随预订确认递增"""

    event_id: str
    seats_sold: int = 0
    title: Optional[str] = None


@dataclass
class Booking:
    """活动预订 - 状态机 pending -> confirmed"""

    booking_id: str
    event_id: str
    seats: int
    status: BookingStatus = BookingStatus.PENDING
    is_paid: bool = False
    payment_id: Optional[str] = None
    confirmed_at: Optional[datetime] = None

    def __post_init__(self):
        if self.seats <= 0:
            raise DomainValidationException(
                f"预订座位数必须大于0: {self.seats}",
                field="seats",
            )
        self.confirmed_at = _ensure_utc(self.confirmed_at)

    @property
    def is_confirmed(self) -> bool:
        return self.status == BookingStatus.CONFIRMED
