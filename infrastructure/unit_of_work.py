"""SQLAlchemy Unit of Work：每个实例独占一个 AsyncSession"""
from __future__ import annotations

from typing import Callable, Optional

from sqlalchemy.exc import InterfaceError, OperationalError
from sqlalchemy.ext.asyncio import AsyncSession

from domain.common.unit_of_work import AbstractUnitOfWork
from domain.payment.exceptions import StoreUnavailableException
from infrastructure.database import AsyncSessionLocal
from infrastructure.repositories.payment_repository import (
    SQLAlchemyBookingRepository,
    SQLAlchemyCampaignRepository,
    SQLAlchemyDonationRepository,
    SQLAlchemyEventRepository,
)

# 连接断开、锁等待超时、数据库文件忙
_STORE_ERRORS = (OperationalError, InterfaceError)


def _unavailable(exc: Exception) -> StoreUnavailableException:
    return StoreUnavailableException(details={"error": type(exc).__name__})


class SQLAlchemyUnitOfWork(AbstractUnitOfWork):
    def __init__(
        self,
        session_factory: Callable[[], AsyncSession] = AsyncSessionLocal,
        *,
        readonly: bool = False,
    ) -> None:
        super().__init__(readonly=readonly)
        self._session_factory = session_factory
        self.session: Optional[AsyncSession] = None

    async def __aenter__(self) -> "SQLAlchemyUnitOfWork":
        await super().__aenter__()
        session = self._session_factory()
        self.session = session
        self.donations = SQLAlchemyDonationRepository(session)
        self.campaigns = SQLAlchemyCampaignRepository(session)
        self.events = SQLAlchemyEventRepository(session)
        self.bookings = SQLAlchemyBookingRepository(session)
        if not self.readonly:
            # 只读时由首条查询自动开启，close() 时丢弃
            await session.begin()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        try:
            await super().__aexit__(exc_type, exc, tb)
        finally:
            session, self.session = self.session, None
            for name in ("donations", "campaigns", "events", "bookings"):
                self.__dict__.pop(name, None)
            if session is not None:
                await session.close()
        # 已回滚，整个调用可以重试
        if isinstance(exc, _STORE_ERRORS):
            raise _unavailable(exc) from exc

    async def commit(self) -> None:
        if self.session is not None and self.session.in_transaction():
            try:
                await self.session.commit()
            except _STORE_ERRORS as exc:
                raise _unavailable(exc) from exc
        self._committed = True

    async def rollback(self) -> None:
        if self.session is not None and self.session.in_transaction():
            try:
                await self.session.rollback()
            except _STORE_ERRORS as exc:
                raise _unavailable(exc) from exc
