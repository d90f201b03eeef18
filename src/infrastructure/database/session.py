"""Engine, session factory and unit-of-work factory for the social store."""

from typing import Any, AsyncGenerator

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from core.config import settings
from infrastructure.database.models import Base
from infrastructure.database.sqlalchemy_uow import SQLAlchemyUnitOfWork


def _connect_args(url: str) -> dict[str, Any]:
    # Transaction-mode poolers reject asyncpg's prepared statement cache.
    if url.startswith("postgresql+asyncpg") and "pooler" in url:
        return {"statement_cache_size": 0}
    return {}


engine = create_async_engine(
    settings.async_database_url,
    echo=settings.debug,
    pool_pre_ping=True,
    connect_args=_connect_args(settings.async_database_url),
)

async_session_factory = async_sessionmaker(
    bind=engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False,
)


def unit_of_work_factory() -> SQLAlchemyUnitOfWork:
    """Unit of work over the application engine; one per backend call."""
    return SQLAlchemyUnitOfWork(async_session_factory)


async def get_async_session() -> AsyncGenerator[AsyncSession, None]:
    """Yield a session for request-scoped reads such as the health check."""
    async with async_session_factory() as session:
        yield session


async def create_tables() -> None:
    """Create the profile, group, friend request and notification tables if missing."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
