"""Lookups for companies, staff and services.

This is also the timezone source for scheduling: a staff member's zone is
their own override or, failing that, their company's.
"""

import logging
from typing import Optional

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from booking_core.config import get_settings
from booking_core.database.models import Company, Service, Staff, staff_services
from booking_core.exceptions import DatabaseError, NotFoundError
from booking_core.repositories.base import BaseRepository

logger = logging.getLogger(__name__)


class DirectoryRepository(BaseRepository[Staff]):
    """Read access to the business directory plus the per-staff write lock."""

    def __init__(self, session: AsyncSession):
        super().__init__(Staff, session)

    async def get_staff(self, staff_id: str, active_only: bool = True) -> Staff:
        staff = await self.get_by_id(staff_id)
        if staff is None or (active_only and not staff.is_active):
            raise NotFoundError(resource="Staff", resource_id=staff_id)
        return staff

    async def get_company(self, company_id: str) -> Company:
        try:
            company = await self.session.get(Company, company_id)
        except SQLAlchemyError as e:
            logger.error(f"Error getting company {company_id}: {e}")
            raise DatabaseError("Failed to retrieve company") from e
        if company is None:
            raise NotFoundError(resource="Company", resource_id=company_id)
        return company

    async def get_service(self, service_id: str, active_only: bool = True) -> Service:
        try:
            service = await self.session.get(Service, service_id)
        except SQLAlchemyError as e:
            logger.error(f"Error getting service {service_id}: {e}")
            raise DatabaseError("Failed to retrieve service") from e
        if service is None or (active_only and not service.is_active):
            raise NotFoundError(resource="Service", resource_id=service_id)
        return service

    async def is_staff_eligible(self, staff_id: str, service_id: str) -> bool:
        """Whether the staff member is assigned to perform the service."""
        try:
            result = await self.session.execute(
                select(staff_services.c.staff_id).where(
                    staff_services.c.staff_id == staff_id,
                    staff_services.c.service_id == service_id,
                )
            )
            return result.first() is not None
        except SQLAlchemyError as e:
            logger.error(f"Error checking eligibility of staff {staff_id}: {e}")
            raise DatabaseError("Failed to check staff eligibility") from e

    async def lock_staff(self, staff_id: str) -> Optional[Staff]:
        """Take a row lock on the staff member for the rest of the transaction.

        Serialises concurrent bookings of the same staff on PostgreSQL. SQLite
        ignores ``FOR UPDATE``.
        """
        try:
            result = await self.session.execute(
                select(Staff).where(Staff.id == staff_id).with_for_update()
            )
            return result.scalar_one_or_none()
        except SQLAlchemyError as e:
            logger.error(f"Error locking staff {staff_id}: {e}")
            raise DatabaseError("Failed to lock staff schedule") from e

    async def resolve_timezone(self, staff_id: str) -> str:
        """The IANA zone a staff member's local times are interpreted in."""
        staff = await self.get_staff(staff_id, active_only=False)
        if staff.timezone:
            return staff.timezone
        company = await self.get_company(staff.company_id)
        return company.timezone or get_settings().scheduling.default_timezone
