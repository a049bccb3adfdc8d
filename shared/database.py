"""Async engine and session factory for the sleep notes database.

The engine connects lazily, so the dashboard still serves sleep data
(without notes) when the database is unreachable.
"""

from collections.abc import AsyncGenerator

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from shared.config import settings

engine = create_async_engine(
    settings.database_url,
    echo=False,
    pool_size=settings.db_pool_size,
    max_overflow=settings.db_max_overflow,
    pool_pre_ping=True,
    connect_args={"timeout": settings.db_connect_timeout_seconds},
)

async_session_factory = async_sessionmaker(engine, expire_on_commit=False)


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """Yield a request-scoped session for the notes repository."""
    async with async_session_factory() as session:
        yield session
