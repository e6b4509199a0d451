from __future__ import annotations

from collections.abc import AsyncGenerator

from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool
from sqlmodel import SQLModel

from storyboard.config import get_settings
from storyboard.models import project  # noqa: F401


def _build_engine() -> AsyncEngine:
    settings = get_settings()
    connect_args = {}
    poolclass = None

    # SQLite 特定配置：使用 NullPool 避免连接池限制
    if settings.database_url.startswith("sqlite"):
        connect_args = {
            "check_same_thread": False,
            "timeout": 60,
        }
        poolclass = NullPool

    engine_kwargs = {
        "echo": settings.db_echo,
        "pool_pre_ping": True,
        "connect_args": connect_args,
    }

    if poolclass:
        engine_kwargs["poolclass"] = poolclass
    else:
        engine_kwargs["pool_size"] = 5
        engine_kwargs["max_overflow"] = 10
        engine_kwargs["pool_timeout"] = 30

    engine = create_async_engine(settings.database_url, **engine_kwargs)

    # 画布拖拽时写入频繁，SQLite 使用 WAL 减少锁冲突
    if settings.database_url.startswith("sqlite"):
        @event.listens_for(engine.sync_engine, "connect")
        def set_sqlite_pragma(dbapi_connection, connection_record):
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA journal_mode=WAL")
            cursor.close()

    return engine


engine: AsyncEngine = _build_engine()
async_session_maker: async_sessionmaker[AsyncSession] = async_sessionmaker(
    engine, class_=AsyncSession, expire_on_commit=False
)


async def init_db() -> None:
    """Create database tables."""
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    async with async_session_maker() as session:
        yield session
