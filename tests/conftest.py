"""Pytest configuration and fixtures."""

from datetime import datetime, time, timedelta, timezone
from zoneinfo import ZoneInfo

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from booking_core.config import SchedulingSettings, Settings
from booking_core.database.models import (
    Appointment,
    AvailabilityRule,
    Base,
    Company,
    Service,
    Staff,
    TimeOff,
)
from booking_core.dependencies import get_session, get_session_factory
from booking_core.main import app

BUSINESS_TZ = "America/New_York"


@pytest.fixture
async def engine(tmp_path):
    """Temp-file SQLite engine; each session gets its own connection."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'booking.db'}")

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)


@pytest.fixture
async def session(session_factory):
    """Create test database session."""
    async with session_factory() as session:
        yield session
        await session.rollback()


@pytest.fixture
def settings():
    """Settings with the defaults tests rely on, independent of the environment."""
    return Settings(scheduling=SchedulingSettings())


class Seed:
    """Handles to the rows every scheduling test starts from."""

    def __init__(self, session_factory, company, staff, service):
        self.session_factory = session_factory
        self.company = company
        self.staff = staff
        self.service = service

    async def add(self, instance):
        async with self.session_factory() as session:
            session.add(instance)
            await session.commit()
        return instance

    async def add_appointment(self, day, local_start, minutes=60, status="confirmed", tz=BUSINESS_TZ):
        start = datetime.combine(day, local_start, tzinfo=ZoneInfo(tz)).astimezone(timezone.utc)
        return await self.add(
            Appointment(
                company_id=self.company.id,
                staff_id=self.staff.id,
                service_id=self.service.id,
                customer_id="customer-existing",
                start_at=start,
                end_at=start + timedelta(minutes=minutes),
                timezone=tz,
                status=status,
            )
        )

    async def add_time_off(self, start_at, end_at, status="approved", is_full_day=False):
        return await self.add(
            TimeOff(
                staff_id=self.staff.id,
                start_at=start_at,
                end_at=end_at,
                status=status,
                is_full_day=is_full_day,
            )
        )


@pytest.fixture
async def seed(session_factory):
    """Company in New York, one staff member open 09:00-17:00 every day, a 60-minute service."""
    async with session_factory() as session:
        company = Company(name="Acme Salon", timezone=BUSINESS_TZ, buffer_minutes=0)
        session.add(company)
        await session.flush()

        service = Service(company_id=company.id, name="Haircut", duration_minutes=60)
        staff = Staff(company_id=company.id, name="Dana")
        staff.services.append(service)
        session.add_all([service, staff])
        await session.flush()

        for day_of_week in range(7):
            session.add(
                AvailabilityRule(
                    staff_id=staff.id,
                    day_of_week=day_of_week,
                    local_start=time(9, 0),
                    local_end=time(17, 0),
                )
            )
        await session.commit()

    return Seed(session_factory, company, staff, service)


@pytest.fixture
async def client(session_factory):
    """HTTP client against the app with its database pointed at the test engine."""

    async def override_get_session():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_session] = override_get_session
    app.dependency_overrides[get_session_factory] = lambda: session_factory

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()
