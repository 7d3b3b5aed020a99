"""Database engine and connection pool."""

import logging
from typing import Optional

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine

from booking_core.config import get_settings

logger = logging.getLogger(__name__)

# Global engine instance
_engine: Optional[AsyncEngine] = None


def get_database_url() -> str:
    """Get the database URL, converting to async format if needed."""
    settings = get_settings()
    db_url = settings.database.url

    # Convert sync driver URLs to their async equivalents
    if db_url.startswith("postgresql://"):
        db_url = db_url.replace("postgresql://", "postgresql+asyncpg://", 1)
    elif db_url.startswith("postgresql+psycopg2://"):
        db_url = db_url.replace("postgresql+psycopg2://", "postgresql+asyncpg://", 1)
    elif db_url.startswith("sqlite://"):
        db_url = db_url.replace("sqlite://", "sqlite+aiosqlite://", 1)

    return db_url


def create_engine() -> AsyncEngine:
    """Create and configure the SQLAlchemy async engine."""
    settings = get_settings()
    db_url = get_database_url()

    if settings.database.is_sqlite:
        # aiosqlite doesn't take queue pool arguments
        engine = create_async_engine(db_url, echo=settings.database.echo)
        logger.info("Database engine created for SQLite")
        return engine

    pool_config = {
        "pool_size": settings.database.pool_size,
        "max_overflow": settings.database.max_overflow,
        "pool_timeout": settings.database.pool_timeout,
        "pool_recycle": settings.database.pool_recycle,
        "pool_pre_ping": True,
        "echo": settings.database.echo,
    }
    engine = create_async_engine(db_url, **pool_config)

    logger.info(
        f"Database engine created: pool_size={pool_config['pool_size']}, "
        f"max_overflow={pool_config['max_overflow']}"
    )

    return engine


def get_engine() -> AsyncEngine:
    """Get or create the global database engine."""
    global _engine
    if _engine is None:
        _engine = create_engine()
    return _engine


async def close_engine() -> None:
    """Close the database engine and dispose of all connections."""
    global _engine
    if _engine is not None:
        await _engine.dispose()
        _engine = None
        logger.info("Database engine closed")


async def check_connection() -> bool:
    """Check if database connection is available."""
    try:
        engine = get_engine()
        async with engine.connect() as conn:
            result = await conn.execute(text("SELECT 1"))
            row = result.fetchone()
            return row is not None and row[0] == 1
    except Exception as e:
        logger.error(f"Database connection check failed: {e}")
        return False
