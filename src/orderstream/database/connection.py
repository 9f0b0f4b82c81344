"""
Database connection management with SQLAlchemy async engine.

This module builds the async engine and session factory used by the SQL
order store, and performs the single connectivity check made at startup.
An unreachable database is fatal: the check is not retried.
"""

from typing import Optional

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import NullPool

from orderstream.core.config import Settings, get_settings
from orderstream.core.exceptions import StartupError
from orderstream.core.logging import get_logger

logger = get_logger(__name__)


def create_engine(settings: Optional[Settings] = None) -> AsyncEngine:
    """
    Create async SQLAlchemy engine with connection pooling.

    Args:
        settings: Application settings (defaults to the cached settings)

    Returns:
        Configured async SQLAlchemy engine
    """
    settings = settings or get_settings()

    pool_kwargs = (
        {"poolclass": NullPool}
        if settings.environment == "test"
        else {
            "pool_size": settings.db_pool_size,
            "max_overflow": settings.db_max_overflow,
            "pool_pre_ping": True,
            "pool_recycle": 3600,
        }
    )

    engine = create_async_engine(
        settings.database_url,
        echo=False,
        connect_args={
            "server_settings": {
                "application_name": settings.app_name,
            },
            "command_timeout": 60,
            "timeout": 10,
        },
        **pool_kwargs,
    )

    logger.info(
        "Database engine created",
        host=settings.database_host,
        database=settings.database_name,
        pool_size=settings.db_pool_size,
        max_overflow=settings.db_max_overflow,
        environment=settings.environment,
    )

    return engine


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """
    Create the session factory bound to an engine.

    Args:
        engine: Async engine

    Returns:
        Configured async session factory
    """
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


async def check_database_connection(engine: AsyncEngine) -> None:
    """
    Verify the database answers a trivial query.

    Args:
        engine: Async engine to check

    Raises:
        StartupError: If the database cannot be reached
    """
    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
    except (SQLAlchemyError, OSError) as e:
        raise StartupError(
            "Database is unreachable",
            error=str(e),
            error_type=type(e).__name__,
        ) from e

    logger.info("Database connectivity check passed")


async def close_engine(engine: AsyncEngine) -> None:
    """
    Dispose of the engine and close pooled connections.

    Args:
        engine: Async engine to dispose
    """
    try:
        await engine.dispose()
        logger.info("Database connections closed and engine disposed")
    except SQLAlchemyError as e:
        logger.error(
            "Error closing database connections",
            error=str(e),
            error_type=type(e).__name__,
        )
