"""Checkout hold repository."""

import logging
from datetime import datetime
from typing import List, Optional

from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from booking_core.database.models import AppointmentReservation
from booking_core.exceptions import DatabaseError
from booking_core.repositories.base import BaseRepository
from booking_core.scheduling.intervals import TimeInterval

logger = logging.getLogger(__name__)


class ReservationsRepository(BaseRepository[AppointmentReservation]):
    """Short-lived slot holds placed while a customer checks out."""

    def __init__(self, session: AsyncSession):
        super().__init__(AppointmentReservation, session)

    async def get_active(
        self,
        staff_id: str,
        window: TimeInterval,
        now: datetime,
        exclude_id: Optional[str] = None,
    ) -> List[AppointmentReservation]:
        """Unexpired holds of a staff member overlapping ``window``."""
        try:
            query = select(AppointmentReservation).where(
                AppointmentReservation.staff_id == staff_id,
                AppointmentReservation.start_at < window.end,
                AppointmentReservation.end_at > window.start,
                AppointmentReservation.expires_at > now,
            )
            if exclude_id:
                query = query.where(AppointmentReservation.id != exclude_id)
            result = await self.session.execute(query.order_by(AppointmentReservation.start_at))
            return list(result.scalars().all())
        except SQLAlchemyError as e:
            logger.error(f"Error getting reservations for staff {staff_id}: {e}")
            raise DatabaseError("Failed to retrieve reservations") from e

    async def delete_expired(self, now: datetime) -> int:
        try:
            result = await self.session.execute(
                delete(AppointmentReservation).where(AppointmentReservation.expires_at <= now)
            )
            return result.rowcount or 0
        except SQLAlchemyError as e:
            logger.error(f"Error deleting expired reservations: {e}")
            raise DatabaseError("Failed to delete expired reservations") from e
