"""
支付仓储接口 - 定义捐赠/筹款/预订数据访问的抽象接口
"""
from abc import ABC, abstractmethod
from decimal import Decimal
from typing import Optional

from .entity import Booking, Campaign, Donation, Event


class DonationRepository(ABC):
    """捐赠仓储抽象接口 - 只定义能做什么，不管怎么做"""

    @abstractmethod
    async def add(self, donation: Donation) -> Donation:
        """写入捐赠记录；payment_id 已存在时抛出 DuplicatePaymentException"""
        pass

    @abstractmethod
    async def get_by_payment_id(self, payment_id: str) -> Optional[Donation]:
        """根据支付ID获取捐赠"""
        pass

    @abstractmethod
    async def list_by_campaign(self, campaign_id: str) -> list[Donation]:
        pass


class CampaignRepository(ABC):
    """筹款活动仓储抽象接口"""

    @abstractmethod
    async def get(self, campaign_id: str) -> Optional[Campaign]:
        pass

    @abstractmethod
    async def add(self, campaign: Campaign) -> Campaign:
        pass

    @abstractmethod
    async def increment_total_raised(self, campaign_id: str, amount: Decimal) -> bool:
        """原子递增 total_raised；活动不存在时返回 False"""
        pass


class EventRepository(ABC):
    """售票活动仓储抽象接口"""

    @abstractmethod
    async def get(self, event_id: str) -> Optional[Event]:
        pass

    @abstractmethod
    async def add(self, event: Event) -> Event:
        pass

    @abstractmethod
    async def increment_seats_sold(self, event_id: str, seats: int) -> bool:
        """原子递增 seats_sold；活动不存在时返回 False"""
        pass


class BookingRepository(ABC):
    """预订仓储抽象接口"""

    @abstractmethod
    async def get(self, booking_id: str) -> Optional[Booking]:
        pass

    @abstractmethod
    async def add(self, booking: Booking) -> Booking:
        pass

    @abstractmethod
    async def mark_confirmed(self, booking_id: str, payment_id: str) -> bool:
        """pending -> confirmed 的条件更新；仅当本次调用完成了转换时返回 True"""
        pass
