from typing import AsyncGenerator

from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import declarative_base

from fee_queue.core.config import settings


def _engine_options(database_url: str) -> dict:
    """Pool options for PostgreSQL; SQLite (local runs, tests) only needs a busy timeout."""
    if make_url(database_url).get_backend_name() == "sqlite":
        # Concurrent enqueues wait on the write lock instead of failing with "database is locked"
        return {"connect_args": {"timeout": 30}}
    # pool_pre_ping: drop connections the server or network closed while idle
    return {"pool_pre_ping": True, "pool_recycle": 300}


engine = create_async_engine(
    settings.database_url,
    echo=False,
    future=True,
    **_engine_options(settings.database_url),
)

AsyncSessionLocal = async_sessionmaker(
    bind=engine,
    class_=AsyncSession,
    expire_on_commit=False,
)

Base = declarative_base()


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """One session per request; services commit or roll back explicitly."""
    async with AsyncSessionLocal() as session:
        yield session
