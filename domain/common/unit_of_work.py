"""Unit of Work 抽象：一次 ``async with`` 就是一个事务"""
from __future__ import annotations

from abc import ABC, abstractmethod

from domain.payment.repository import (
    BookingRepository,
    CampaignRepository,
    DonationRepository,
    EventRepository,
)


class AbstractUnitOfWork(ABC):
    """捐赠/预订记录与 total_raised/seats_sold 的更新在同一个实例内提交。

    正常退出时提交（readonly 除外），异常退出时回滚，异常照常抛出。
    仓储属性只在 ``async with`` 块内可用。
    """

    donations: DonationRepository
    campaigns: CampaignRepository
    events: EventRepository
    bookings: BookingRepository

    def __init__(self, *, readonly: bool = False) -> None:
        self.readonly = readonly
        self._committed = False

    async def __aenter__(self) -> "AbstractUnitOfWork":
        self._committed = False
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        if exc is not None:
            await self.rollback()
        elif not (self.readonly or self._committed):
            await self.commit()

    @abstractmethod
    async def commit(self) -> None: ...

    @abstractmethod
    async def rollback(self) -> None: ...
