"""Services package."""

from booking_core.services.availability_service import (
    AvailabilityRulesService,
    AvailabilityService,
    get_availability_rules_service,
    get_availability_service,
)
from booking_core.services.booking_service import BookingService, get_booking_service
from booking_core.services.conflict_service import ConflictService, get_conflict_service
from booking_core.services.time_off_service import TimeOffService, get_time_off_service

__all__ = [
    "AvailabilityService",
    "AvailabilityRulesService",
    "BookingService",
    "ConflictService",
    "TimeOffService",
    "get_availability_service",
    "get_availability_rules_service",
    "get_booking_service",
    "get_conflict_service",
    "get_time_off_service",
]
