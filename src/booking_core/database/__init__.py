"""Database connection and session management."""

from booking_core.database.connection import (
    check_connection,
    close_engine,
    create_engine,
    get_engine,
)
from booking_core.database.models import (
    Appointment,
    AppointmentReservation,
    AppointmentStatus,
    AvailabilityRule,
    Base,
    Company,
    Service,
    Staff,
    TimeOff,
    TimeOffStatus,
    staff_services,
)
from booking_core.database.session import (
    close_db,
    get_session,
    get_session_factory,
    init_db,
)

__all__ = [
    # Models
    "Base",
    "Company",
    "Staff",
    "Service",
    "staff_services",
    "AvailabilityRule",
    "TimeOff",
    "TimeOffStatus",
    "Appointment",
    "AppointmentStatus",
    "AppointmentReservation",
    # Connection
    "get_engine",
    "create_engine",
    "close_engine",
    "check_connection",
    # Session
    "get_session",
    "get_session_factory",
    "init_db",
    "close_db",
]
