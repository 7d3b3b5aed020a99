"""Time-off endpoints."""

from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from booking_core.dependencies import get_session
from booking_core.models.time_off import (
    ConflictReportResponse,
    ConflictResponse,
    TimeOffConflictCheckRequest,
    TimeOffCreateRequest,
    TimeOffCreateResponse,
    TimeOffResponse,
    TimeOffStatusUpdateRequest,
)
from booking_core.services.conflict_service import get_conflict_service
from booking_core.services.time_off_service import get_time_off_service

router = APIRouter(prefix="/time-off", tags=["time-off"])


@router.post(
    "/conflicts",
    response_model=ConflictReportResponse,
    summary="Check a time-off block for conflicts",
    description="Read-only. Lists appointments and time off the proposed block would overlap.",
)
async def check_conflicts(
    request: TimeOffConflictCheckRequest, db: AsyncSession = Depends(get_session)
) -> ConflictReportResponse:
    report = await get_conflict_service(db).check_time_off(
        request.staff_id,
        request.start_at,
        request.end_at,
        exclude_time_off_id=request.exclude_time_off_id,
    )
    return ConflictReportResponse.from_report(report)


@router.post(
    "",
    response_model=TimeOffCreateResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create time off",
)
async def create_time_off(
    request: TimeOffCreateRequest, db: AsyncSession = Depends(get_session)
) -> TimeOffCreateResponse:
    result = await get_time_off_service(db).create_time_off(
        request.staff_id,
        start_at=request.start_at,
        end_at=request.end_at,
        start_date=request.start_date,
        end_date=request.end_date,
        is_full_day=request.is_full_day,
        reason=request.reason,
        status=request.status,
    )
    return TimeOffCreateResponse(
        time_off=TimeOffResponse.model_validate(result.time_off),
        affected_appointments=[ConflictResponse.from_conflict(c) for c in result.affected.conflicts],
    )


@router.get(
    "/staff/{staff_id}",
    response_model=List[TimeOffResponse],
    summary="List a staff member's time off",
)
async def list_time_off(staff_id: str, db: AsyncSession = Depends(get_session)) -> List[TimeOffResponse]:
    blocks = await get_time_off_service(db).list_time_off(staff_id)
    return [TimeOffResponse.model_validate(block) for block in blocks]


@router.patch(
    "/{time_off_id}/status",
    response_model=TimeOffResponse,
    summary="Approve or reject time off",
)
async def update_time_off_status(
    time_off_id: str,
    request: TimeOffStatusUpdateRequest,
    db: AsyncSession = Depends(get_session),
) -> TimeOffResponse:
    block = await get_time_off_service(db).update_status(time_off_id, request.status)
    return TimeOffResponse.model_validate(block)


@router.delete(
    "/{time_off_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    response_class=Response,
    summary="Remove time off",
)
async def delete_time_off(time_off_id: str, db: AsyncSession = Depends(get_session)) -> Response:
    await get_time_off_service(db).delete_time_off(time_off_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
