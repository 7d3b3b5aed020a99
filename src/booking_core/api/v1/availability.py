"""Availability endpoints: bookable slots and weekly open hours."""

from __future__ import annotations

from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from booking_core.dependencies import get_session
from booking_core.models.availability import (
    AvailabilityResponse,
    AvailabilityRuleCreateRequest,
    AvailabilityRuleResponse,
    AvailabilityRuleUpdateRequest,
    SlotResponse,
)
from booking_core.services.availability_service import (
    get_availability_rules_service,
    get_availability_service,
)

router = APIRouter(prefix="/availability", tags=["availability"])


@router.get(
    "/slots",
    response_model=AvailabilityResponse,
    status_code=status.HTTP_200_OK,
    summary="List bookable slots",
    description=(
        "Return every bookable start time for a staff member and service on a business-local "
        "date, after removing existing appointments, time off and checkout holds."
    ),
)
async def get_slots(
    staff_id: str = Query(..., description="Staff ID"),
    service_id: str = Query(..., description="Service ID"),
    date: date = Query(..., description="Business-local date (YYYY-MM-DD)"),
    timezone: Optional[str] = Query(None, description="IANA zone to render local times in"),
    reservation_id: Optional[str] = Query(None, description="Caller's own checkout hold"),
    db: AsyncSession = Depends(get_session),
) -> AvailabilityResponse:
    service = get_availability_service(db)
    result = await service.compute_free_slots(
        staff_id, service_id, date, tz=timezone, reservation_id=reservation_id
    )
    return AvailabilityResponse(
        staff_id=result.staff_id,
        service_id=result.service_id,
        date=result.date,
        timezone=result.timezone,
        business_timezone=result.business_timezone,
        duration_minutes=result.duration_minutes,
        buffer_minutes=result.buffer_minutes,
        slots=[SlotResponse.from_interval(slot, result.timezone) for slot in result.slots],
    )


@router.get(
    "/rules/staff/{staff_id}",
    response_model=List[AvailabilityRuleResponse],
    summary="List weekly open hours",
)
async def list_rules(
    staff_id: str, db: AsyncSession = Depends(get_session)
) -> List[AvailabilityRuleResponse]:
    rules = await get_availability_rules_service(db).list_rules(staff_id)
    return [AvailabilityRuleResponse.from_model(rule) for rule in rules]


@router.post(
    "/rules",
    response_model=AvailabilityRuleResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Add weekly open hours",
)
async def create_rule(
    request: AvailabilityRuleCreateRequest, db: AsyncSession = Depends(get_session)
) -> AvailabilityRuleResponse:
    rule = await get_availability_rules_service(db).create_rule(
        request.staff_id,
        request.day_of_week,
        request.local_start,
        request.local_end,
        request.is_available,
    )
    return AvailabilityRuleResponse.from_model(rule)


@router.put(
    "/rules/{rule_id}",
    response_model=AvailabilityRuleResponse,
    summary="Change weekly open hours",
)
async def update_rule(
    rule_id: str,
    request: AvailabilityRuleUpdateRequest,
    db: AsyncSession = Depends(get_session),
) -> AvailabilityRuleResponse:
    rule = await get_availability_rules_service(db).update_rule(
        rule_id,
        day_of_week=request.day_of_week,
        local_start=request.local_start,
        local_end=request.local_end,
        is_available=request.is_available,
    )
    return AvailabilityRuleResponse.from_model(rule)


@router.delete(
    "/rules/{rule_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    response_class=Response,
    summary="Remove weekly open hours",
)
async def delete_rule(rule_id: str, db: AsyncSession = Depends(get_session)) -> Response:
    await get_availability_rules_service(db).delete_rule(rule_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
