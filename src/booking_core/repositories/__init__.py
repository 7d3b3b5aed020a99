"""Repositories package."""

from booking_core.repositories.appointments_repository import AppointmentsRepository
from booking_core.repositories.availability_repository import AvailabilityRepository
from booking_core.repositories.base import BaseRepository
from booking_core.repositories.directory_repository import DirectoryRepository
from booking_core.repositories.reservations_repository import ReservationsRepository
from booking_core.repositories.time_off_repository import TimeOffRepository

__all__ = [
    "BaseRepository",
    "AppointmentsRepository",
    "AvailabilityRepository",
    "DirectoryRepository",
    "ReservationsRepository",
    "TimeOffRepository",
]
