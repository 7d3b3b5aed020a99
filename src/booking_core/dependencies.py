"""FastAPI dependencies."""

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from booking_core.database.session import get_session
from booking_core.database.session import get_session_factory as _get_session_factory


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    """Session factory for services that open one transaction per unit of work."""
    return _get_session_factory()


__all__ = ["get_session", "get_session_factory"]
