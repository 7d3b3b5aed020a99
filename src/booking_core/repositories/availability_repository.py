"""Availability rule repository."""

import logging
from datetime import time
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from booking_core.database.models import AvailabilityRule
from booking_core.exceptions import DatabaseError
from booking_core.repositories.base import BaseRepository

logger = logging.getLogger(__name__)


class AvailabilityRepository(BaseRepository[AvailabilityRule]):
    """Weekly open-hours rules per staff member."""

    def __init__(self, session: AsyncSession):
        super().__init__(AvailabilityRule, session)

    async def get_weekly_rules(self, staff_id: str) -> List[AvailabilityRule]:
        """All rules of a staff member, ordered by weekday then start time."""
        try:
            result = await self.session.execute(
                select(AvailabilityRule)
                .where(AvailabilityRule.staff_id == staff_id)
                .order_by(AvailabilityRule.day_of_week, AvailabilityRule.local_start)
            )
            return list(result.scalars().all())
        except SQLAlchemyError as e:
            logger.error(f"Error getting availability rules for staff {staff_id}: {e}")
            raise DatabaseError("Failed to retrieve availability rules") from e

    async def get_rules_for_day(
        self, staff_id: str, day_of_week: int, only_available: bool = True
    ) -> List[AvailabilityRule]:
        try:
            query = select(AvailabilityRule).where(
                AvailabilityRule.staff_id == staff_id,
                AvailabilityRule.day_of_week == day_of_week,
            )
            if only_available:
                query = query.where(AvailabilityRule.is_available.is_(True))
            result = await self.session.execute(query.order_by(AvailabilityRule.local_start))
            return list(result.scalars().all())
        except SQLAlchemyError as e:
            logger.error(f"Error getting day {day_of_week} rules for staff {staff_id}: {e}")
            raise DatabaseError("Failed to retrieve availability rules") from e

    async def find_overlapping_rule(
        self,
        staff_id: str,
        day_of_week: int,
        local_start: time,
        local_end: time,
        exclude_id: Optional[str] = None,
    ) -> Optional[AvailabilityRule]:
        """An available rule on the same day whose hours overlap ``[local_start, local_end)``."""
        for rule in await self.get_rules_for_day(staff_id, day_of_week):
            if rule.id == exclude_id:
                continue
            if rule.local_start < local_end and local_start < rule.local_end:
                return rule
        return None
