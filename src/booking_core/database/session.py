"""Session factory and the request-scoped session dependency.

Read endpoints share one session per request through :func:`get_session`.
Booking needs one transaction per occurrence, so it takes the factory itself.
"""

import logging
from typing import AsyncGenerator, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from booking_core.database.connection import check_connection, close_engine, get_engine

logger = logging.getLogger(__name__)

_session_factory: Optional[async_sessionmaker[AsyncSession]] = None


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    """Return the process-wide session factory, bound to the engine on first use."""
    global _session_factory
    if _session_factory is None:
        # Loaded rows stay readable after commit; services return them to the API layer
        _session_factory = async_sessionmaker(
            get_engine(), class_=AsyncSession, expire_on_commit=False, autoflush=False
        )
    return _session_factory


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency: commit when the endpoint returns, roll back when it raises."""
    async with get_session_factory()() as session:
        try:
            yield session
            await session.commit()
        except SQLAlchemyError as e:
            await session.rollback()
            logger.error(f"Rolled back request session: {e}")
            raise
        except Exception:
            await session.rollback()
            raise


async def init_db() -> None:
    """Verify the scheduling database is reachable at startup."""
    if await check_connection():
        logger.info("Scheduling database reachable")
    else:
        logger.warning("Scheduling database not reachable; requests will fail until it is")


async def close_db() -> None:
    global _session_factory
    await close_engine()
    _session_factory = None
    logger.info("Database connections closed")
