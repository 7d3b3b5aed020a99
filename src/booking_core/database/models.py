"""SQLAlchemy database models."""

import uuid
from datetime import datetime, time
from enum import Enum
from typing import Optional

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    ForeignKey,
    Index,
    Integer,
    String,
    Table,
    Text,
    Time,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship

from booking_core.database.types import UTCDateTime, utcnow


class Base(DeclarativeBase):
    """Base class for all database models."""

    pass


def _uuid() -> str:
    return str(uuid.uuid4())


class AppointmentStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"
    COMPLETED = "completed"


class TimeOffStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


staff_services = Table(
    "staff_services",
    Base.metadata,
    Column("staff_id", String(36), ForeignKey("staff.id", ondelete="CASCADE"), primary_key=True),
    Column("service_id", String(36), ForeignKey("services.id", ondelete="CASCADE"), primary_key=True),
)


class Company(Base):
    """Business owning staff, services and the default scheduling zone."""

    __tablename__ = "companies"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid, index=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)

    # IANA zone id, e.g. "America/New_York"
    timezone: Mapped[str] = mapped_column(String(64), default="UTC", nullable=False)
    buffer_minutes: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    created_at: Mapped[datetime] = mapped_column(UTCDateTime, default=utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        UTCDateTime, default=utcnow, onupdate=utcnow, nullable=False
    )

    staff: Mapped[list["Staff"]] = relationship("Staff", back_populates="company")
    services: Mapped[list["Service"]] = relationship("Service", back_populates="company")

    def __repr__(self) -> str:
        return f"<Company(id={self.id}, name={self.name}, timezone={self.timezone})>"


class Staff(Base):
    """Staff member whose calendar is booked."""

    __tablename__ = "staff"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid, index=True)
    company_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("companies.id", ondelete="CASCADE"), nullable=False, index=True
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)

    # Overrides the company zone when set
    timezone: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    created_at: Mapped[datetime] = mapped_column(UTCDateTime, default=utcnow, nullable=False)

    company: Mapped["Company"] = relationship("Company", back_populates="staff")
    services: Mapped[list["Service"]] = relationship(
        "Service", secondary=staff_services, back_populates="staff"
    )
    availability_rules: Mapped[list["AvailabilityRule"]] = relationship(
        "AvailabilityRule", back_populates="staff", cascade="all, delete-orphan"
    )

    def __repr__(self) -> str:
        return f"<Staff(id={self.id}, name={self.name})>"


class Service(Base):
    """Bookable service with a fixed duration."""

    __tablename__ = "services"
    __table_args__ = (
        CheckConstraint("duration_minutes BETWEEN 15 AND 480", name="ck_services_duration"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid, index=True)
    company_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("companies.id", ondelete="CASCADE"), nullable=False, index=True
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    duration_minutes: Mapped[int] = mapped_column(Integer, nullable=False)

    # Falls back to the company buffer when null
    buffer_minutes: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    company: Mapped["Company"] = relationship("Company", back_populates="services")
    staff: Mapped[list["Staff"]] = relationship(
        "Staff", secondary=staff_services, back_populates="services"
    )

    def __repr__(self) -> str:
        return f"<Service(id={self.id}, name={self.name}, duration={self.duration_minutes})>"


class AvailabilityRule(Base):
    """Weekly open hours for a staff member, in business wall-clock time."""

    __tablename__ = "availability_rules"
    __table_args__ = (
        CheckConstraint("day_of_week BETWEEN 0 AND 6", name="ck_availability_rules_day"),
        CheckConstraint("local_start < local_end", name="ck_availability_rules_order"),
        Index("ix_availability_rules_staff_day", "staff_id", "day_of_week"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid, index=True)
    staff_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("staff.id", ondelete="CASCADE"), nullable=False
    )

    # Monday=0 .. Sunday=6
    day_of_week: Mapped[int] = mapped_column(Integer, nullable=False)
    local_start: Mapped[time] = mapped_column(Time, nullable=False)
    local_end: Mapped[time] = mapped_column(Time, nullable=False)
    is_available: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    staff: Mapped["Staff"] = relationship("Staff", back_populates="availability_rules")

    def __repr__(self) -> str:
        return (
            f"<AvailabilityRule(id={self.id}, staff_id={self.staff_id}, "
            f"day={self.day_of_week}, {self.local_start}-{self.local_end})>"
        )


class TimeOff(Base):
    """Exception removing a span of time from a staff member's availability."""

    __tablename__ = "time_off"
    __table_args__ = (
        CheckConstraint("start_at < end_at", name="ck_time_off_order"),
        Index("ix_time_off_staff_range", "staff_id", "start_at", "end_at"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid, index=True)
    staff_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("staff.id", ondelete="CASCADE"), nullable=False
    )
    start_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False)
    end_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False)
    is_full_day: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    reason: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)

    # pending, approved, rejected
    status: Mapped[str] = mapped_column(
        String(20), default=TimeOffStatus.PENDING.value, nullable=False, index=True
    )

    created_at: Mapped[datetime] = mapped_column(UTCDateTime, default=utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        UTCDateTime, default=utcnow, onupdate=utcnow, nullable=False
    )

    def __repr__(self) -> str:
        return f"<TimeOff(id={self.id}, staff_id={self.staff_id}, status={self.status})>"


class Appointment(Base):
    """Booked appointment. Never deleted, only cancelled."""

    __tablename__ = "appointments"
    __table_args__ = (
        CheckConstraint("start_at < end_at", name="ck_appointments_order"),
        Index("ix_appointments_staff_range", "staff_id", "start_at", "end_at"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid, index=True)
    company_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("companies.id", ondelete="CASCADE"), nullable=False, index=True
    )
    staff_id: Mapped[str] = mapped_column(String(36), ForeignKey("staff.id"), nullable=False)
    service_id: Mapped[str] = mapped_column(String(36), ForeignKey("services.id"), nullable=False)
    customer_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)

    start_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False)
    end_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False)

    # Zone the customer booked in, for rendering local times back
    timezone: Mapped[str] = mapped_column(String(64), nullable=False)

    # pending, confirmed, cancelled, completed
    status: Mapped[str] = mapped_column(
        String(20), default=AppointmentStatus.PENDING.value, nullable=False, index=True
    )

    # Shared by every occurrence of a recurring booking
    series_id: Mapped[Optional[str]] = mapped_column(String(36), nullable=True, index=True)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(UTCDateTime, default=utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        UTCDateTime, default=utcnow, onupdate=utcnow, nullable=False
    )

    def __repr__(self) -> str:
        return (
            f"<Appointment(id={self.id}, staff_id={self.staff_id}, "
            f"start_at={self.start_at}, status={self.status})>"
        )


class AppointmentReservation(Base):
    """Short-lived hold on a slot while a customer checks out."""

    __tablename__ = "appointment_reservations"
    __table_args__ = (
        CheckConstraint("start_at < end_at", name="ck_appointment_reservations_order"),
        Index("ix_appointment_reservations_staff_range", "staff_id", "start_at", "end_at"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid, index=True)
    staff_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("staff.id", ondelete="CASCADE"), nullable=False
    )
    service_id: Mapped[str] = mapped_column(String(36), ForeignKey("services.id"), nullable=False)
    start_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False)
    end_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False)
    session_id: Mapped[str] = mapped_column(String(100), nullable=False)
    expires_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False, index=True)
    created_at: Mapped[datetime] = mapped_column(UTCDateTime, default=utcnow, nullable=False)

    def __repr__(self) -> str:
        return (
            f"<AppointmentReservation(id={self.id}, staff_id={self.staff_id}, "
            f"expires_at={self.expires_at})>"
        )
