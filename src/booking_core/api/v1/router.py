"""API v1 router aggregation.

This module aggregates all v1 API routers and applies common configuration.
All v1 endpoints are prefixed with the configured ``api_v1_prefix`` (``/api/v1``).

Routers included:
- Availability (`/api/v1/availability/*`)
- Appointments (`/api/v1/appointments/*`)
- Time off (`/api/v1/time-off/*`)

Common middleware (applied at application level in main.py):
- CORS: Cross-origin resource sharing
- RequestID: Request tracking and correlation
- Timing: Request processing time measurement
- ErrorLogging: Unhandled exception logging
"""

from fastapi import APIRouter

from booking_core.api.v1 import appointments, availability, time_off
from booking_core.config import get_settings

# Create v1 API router with version prefix
router = APIRouter(
    prefix=get_settings().api_v1_prefix,
    tags=["v1"],
    responses={
        404: {"description": "Not found"},
        409: {"description": "Slot no longer available"},
        422: {"description": "Validation error"},
        500: {"description": "Internal server error"},
    },
)

router.include_router(availability.router)
router.include_router(appointments.router)
router.include_router(time_off.router)


@router.get(
    "/",
    summary="API Information",
    description="Get API version and status information",
    tags=["v1"],
)
async def api_info():
    """
    Get API v1 information.

    Returns:
        dict: API version and status information
    """
    return {
        "version": "v1",
        "status": "active",
        "endpoints": {
            "availability": "/api/v1/availability",
            "appointments": "/api/v1/appointments",
            "time-off": "/api/v1/time-off",
        },
    }
