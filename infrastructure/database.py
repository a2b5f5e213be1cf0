"""
异步引擎与会话工厂

DATABASE__URL 可写同步形式（postgresql:// 或 sqlite://），这里换成对应的异步驱动。
"""
from typing import Optional

from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from core.config import settings
from infrastructure.models import Base


ASYNC_DRIVERS = {
    "postgresql": "postgresql+asyncpg",
    "postgres": "postgresql+asyncpg",
    "sqlite": "sqlite+aiosqlite",
}


def _build_async_url(database_url: str) -> str:
    url = make_url(database_url)
    if "+" in url.drivername:
        # 已显式指定驱动
        return database_url
    try:
        driver = ASYNC_DRIVERS[url.drivername]
    except KeyError:
        raise ValueError(f"不支持的数据库驱动: {url.drivername}，请在 DATABASE__URL 中指定异步驱动") from None
    return url.set(drivername=driver).render_as_string(hide_password=False)


def build_engine(database_url: Optional[str] = None, *, echo: Optional[bool] = None) -> AsyncEngine:
    db = settings.database
    return create_async_engine(
        _build_async_url(database_url or db.url),
        echo=db.echo if echo is None else echo,
    )


def build_session_factory(bind: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    # 提交后仍要读取 total_raised 等字段
    return async_sessionmaker(bind=bind, expire_on_commit=False)


engine = build_engine()
AsyncSessionLocal = build_session_factory(engine)


async def create_tables(bind: Optional[AsyncEngine] = None) -> None:
    """按模型建表（开发环境与测试用，生产走 Alembic）"""
    async with (bind or engine).begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
