"""Appointments repository for data access operations."""

from __future__ import annotations

import logging
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from booking_core.database.models import Appointment, AppointmentStatus
from booking_core.exceptions import DatabaseError
from booking_core.repositories.base import BaseRepository
from booking_core.scheduling.intervals import TimeInterval

logger = logging.getLogger(__name__)


class AppointmentsRepository(BaseRepository[Appointment]):
    """Repository for appointment data access operations."""

    def __init__(self, session: AsyncSession):
        super().__init__(Appointment, session)

    async def get_appointments(
        self,
        staff_id: str,
        window: TimeInterval,
        exclude_cancelled: bool = True,
        exclude_id: Optional[str] = None,
    ) -> List[Appointment]:
        """Appointments of a staff member that overlap ``window``, ordered by start."""
        try:
            query = select(Appointment).where(
                Appointment.staff_id == staff_id,
                Appointment.start_at < window.end,
                Appointment.end_at > window.start,
            )
            if exclude_cancelled:
                query = query.where(Appointment.status != AppointmentStatus.CANCELLED.value)
            if exclude_id:
                query = query.where(Appointment.id != exclude_id)
            result = await self.session.execute(query.order_by(Appointment.start_at))
            return list(result.scalars().all())
        except SQLAlchemyError as e:
            logger.error(f"Error getting appointments for staff {staff_id}: {e}")
            raise DatabaseError("Failed to retrieve appointments") from e

    async def update_status(self, appointment_id: str, status: AppointmentStatus) -> Optional[Appointment]:
        return await self.update(appointment_id, status=AppointmentStatus(status).value)
