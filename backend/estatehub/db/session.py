"""
Database session management.
"""
from functools import lru_cache
from typing import AsyncGenerator

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from estatehub.core.config import DatabaseSettings, get_settings


def create_engine_from_settings(db_settings: DatabaseSettings) -> AsyncEngine:
    """Create the async engine; SQLite URLs skip the pool sizing options."""
    kwargs = {"echo": db_settings.database_echo, "future": True, "pool_pre_ping": True}
    if not db_settings.database_url.startswith("sqlite"):
        kwargs.update(
            pool_size=db_settings.database_pool_size,
            max_overflow=db_settings.database_max_overflow,
        )
    return create_async_engine(db_settings.database_url, **kwargs)


@lru_cache
def get_session_maker() -> async_sessionmaker[AsyncSession]:
    """Process-wide session factory, built on first use."""
    engine = create_engine_from_settings(get_settings().database)
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    Dependency for database sessions.

    Usage in FastAPI:
        @app.get("/endpoint")
        async def endpoint(db: AsyncSession = Depends(get_db)):
            ...
    """
    async with get_session_maker()() as session:
        try:
            yield session
        finally:
            await session.close()
