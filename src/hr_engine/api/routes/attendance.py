"""Attendance and timesheet API endpoints."""

from datetime import date
from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Path, status

from hr_engine.api.dependencies import ActorId, DbSession
from hr_engine.api.schemas import (
    ClockEventCreate,
    ClockEventResponse,
    CloseDayRequest,
    CloseDayResponse,
    ErrorResponse,
    TimesheetResponse,
)
from hr_engine.services.attendance_service import AttendanceAggregator

router = APIRouter(tags=["attendance"])


@router.post(
    "/attendance/events",
    response_model=ClockEventResponse,
    status_code=status.HTTP_201_CREATED,
    responses={409: {"model": ErrorResponse}, 422: {"model": ErrorResponse}},
)
async def record_clock_event(
    db: DbSession,
    payload: ClockEventCreate,
) -> ClockEventResponse:
    """Record a CLOCK_IN or CLOCK_OUT event."""
    log = await AttendanceAggregator(db).record_event(
        payload.employee_id,
        payload.event_type,
        payload.timestamp,
        notes=payload.notes,
        source=payload.source,
    )
    return ClockEventResponse.model_validate(log)


@router.post(
    "/attendance/close-day",
    response_model=CloseDayResponse,
    responses={409: {"model": ErrorResponse}},
)
async def close_day(
    db: DbSession,
    payload: CloseDayRequest,
) -> CloseDayResponse:
    """Build or rebuild the DRAFT timesheet of a day."""
    result = await AttendanceAggregator(db).close_day(payload.employee_id, payload.work_date)
    return CloseDayResponse(
        timesheet=TimesheetResponse.model_validate(result.timesheet),
        warnings=result.warnings,
    )


@router.post(
    "/timesheets/{employee_id}/{work_date}/post",
    response_model=TimesheetResponse,
    responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
async def post_timesheet(
    db: DbSession,
    employee_id: Annotated[UUID, Path()],
    work_date: Annotated[date, Path()],
) -> TimesheetResponse:
    """Post a DRAFT timesheet so payroll can read it."""
    timesheet = await AttendanceAggregator(db).post_timesheet(employee_id, work_date)
    return TimesheetResponse.model_validate(timesheet)


@router.post(
    "/timesheets/{employee_id}/{work_date}/approve",
    response_model=TimesheetResponse,
    responses={403: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
async def approve_timesheet(
    db: DbSession,
    actor_id: ActorId,
    employee_id: Annotated[UUID, Path()],
    work_date: Annotated[date, Path()],
) -> TimesheetResponse:
    """Approve a POSTED timesheet."""
    timesheet = await AttendanceAggregator(db).approve_timesheet(employee_id, work_date, actor_id)
    return TimesheetResponse.model_validate(timesheet)
