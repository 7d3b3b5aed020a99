"""Time-off repository."""

import logging
from typing import Iterable, List, Optional

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from booking_core.database.models import TimeOff, TimeOffStatus
from booking_core.exceptions import DatabaseError
from booking_core.repositories.base import BaseRepository
from booking_core.scheduling.intervals import TimeInterval

logger = logging.getLogger(__name__)


class TimeOffRepository(BaseRepository[TimeOff]):
    """Staff time-off blocks."""

    def __init__(self, session: AsyncSession):
        super().__init__(TimeOff, session)

    async def get_time_off(
        self,
        staff_id: str,
        window: TimeInterval,
        statuses: Optional[Iterable[TimeOffStatus]] = None,
        exclude_id: Optional[str] = None,
    ) -> List[TimeOff]:
        """Time-off of a staff member overlapping ``window``, optionally filtered by status."""
        try:
            query = select(TimeOff).where(
                TimeOff.staff_id == staff_id,
                TimeOff.start_at < window.end,
                TimeOff.end_at > window.start,
            )
            if statuses is not None:
                query = query.where(TimeOff.status.in_([TimeOffStatus(s).value for s in statuses]))
            if exclude_id:
                query = query.where(TimeOff.id != exclude_id)
            result = await self.session.execute(query.order_by(TimeOff.start_at))
            return list(result.scalars().all())
        except SQLAlchemyError as e:
            logger.error(f"Error getting time off for staff {staff_id}: {e}")
            raise DatabaseError("Failed to retrieve time off") from e

    async def list_for_staff(self, staff_id: str) -> List[TimeOff]:
        try:
            result = await self.session.execute(
                select(TimeOff).where(TimeOff.staff_id == staff_id).order_by(TimeOff.start_at)
            )
            return list(result.scalars().all())
        except SQLAlchemyError as e:
            logger.error(f"Error listing time off for staff {staff_id}: {e}")
            raise DatabaseError("Failed to retrieve time off") from e
