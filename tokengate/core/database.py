"""tokengate Database Configuration - Async SQLAlchemy."""

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import declarative_base

from tokengate.core.config import Settings

# Base class for models
Base = declarative_base()


def create_engine(settings: Settings) -> AsyncEngine:
    """Create the async engine with the configured connection pool.

    Pool settings come from DB_POOL_SIZE, DB_MAX_OVERFLOW, DB_POOL_TIMEOUT
    and DB_POOL_RECYCLE.
    """
    return create_async_engine(
        settings.database_url,
        pool_size=settings.db_pool_size,
        max_overflow=settings.db_max_overflow,
        pool_timeout=settings.db_pool_timeout,
        pool_recycle=settings.db_pool_recycle,
        pool_pre_ping=True,  # Verify connection before use
        # Only echo SQL when debug is explicitly enabled
        echo=settings.debug and settings.log_level == "DEBUG",
    )


def create_session_maker(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Session factory; one short-lived session per store call."""
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


async def init_models(engine: AsyncEngine) -> None:
    """Create missing tables."""
    # Model modules register their tables on Base.metadata when imported
    import tokengate.models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

