"""Leave request API endpoints."""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Path, status

from hr_engine.api.dependencies import ActorId, DbSession
from hr_engine.api.schemas import (
    ErrorResponse,
    LeaveDecision,
    LeaveRequestCreate,
    LeaveRequestResponse,
)
from hr_engine.services.errors import NotAuthorizedError
from hr_engine.services.leave_service import LeaveRequestInput, LeaveRequestWorkflow

router = APIRouter(prefix="/leave-requests", tags=["leave-requests"])


@router.post(
    "",
    response_model=LeaveRequestResponse,
    status_code=status.HTTP_201_CREATED,
    responses={409: {"model": ErrorResponse}, 422: {"model": ErrorResponse}},
)
async def create_leave_request(
    db: DbSession,
    actor_id: ActorId,
    payload: LeaveRequestCreate,
) -> LeaveRequestResponse:
    """File a leave request for the acting employee, pending unless ``draft`` is set."""
    if payload.employee_id != actor_id:
        raise NotAuthorizedError(
            "Leave requests can only be filed by the employee themselves",
            actor_id=actor_id,
        )

    workflow = LeaveRequestWorkflow(db)
    request_input = LeaveRequestInput(
        employee_id=payload.employee_id,
        leave_type_id=payload.leave_type_id,
        start_date=payload.start_date,
        end_date=payload.end_date,
        reason=payload.reason,
    )
    if payload.draft:
        request = await workflow.create_draft(request_input)
    else:
        request = await workflow.submit(request_input)
    return LeaveRequestResponse.model_validate(request)


@router.get(
    "/{leave_request_id}",
    response_model=LeaveRequestResponse,
    responses={404: {"model": ErrorResponse}},
)
async def get_leave_request(
    db: DbSession,
    leave_request_id: Annotated[UUID, Path()],
) -> LeaveRequestResponse:
    """Get a specific leave request by ID."""
    request = await LeaveRequestWorkflow(db).get_request(leave_request_id)
    return LeaveRequestResponse.model_validate(request)


@router.post(
    "/{leave_request_id}/submit",
    response_model=LeaveRequestResponse,
    responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
async def submit_leave_request(
    db: DbSession,
    actor_id: ActorId,
    leave_request_id: Annotated[UUID, Path()],
) -> LeaveRequestResponse:
    """Submit a DRAFT request for approval."""
    request = await LeaveRequestWorkflow(db).submit_draft(leave_request_id, actor_id)
    return LeaveRequestResponse.model_validate(request)


@router.post(
    "/{leave_request_id}/approve",
    response_model=LeaveRequestResponse,
    responses={403: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
async def approve_leave_request(
    db: DbSession,
    actor_id: ActorId,
    leave_request_id: Annotated[UUID, Path()],
) -> LeaveRequestResponse:
    """Approve a PENDING request, debiting the employee's balance."""
    request = await LeaveRequestWorkflow(db).approve(leave_request_id, actor_id)
    return LeaveRequestResponse.model_validate(request)


@router.post(
    "/{leave_request_id}/reject",
    response_model=LeaveRequestResponse,
    responses={403: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
async def reject_leave_request(
    db: DbSession,
    actor_id: ActorId,
    leave_request_id: Annotated[UUID, Path()],
    payload: LeaveDecision | None = None,
) -> LeaveRequestResponse:
    """Reject a PENDING request."""
    reason = payload.reason if payload else None
    request = await LeaveRequestWorkflow(db).reject(leave_request_id, actor_id, reason)
    return LeaveRequestResponse.model_validate(request)


@router.post(
    "/{leave_request_id}/cancel",
    response_model=LeaveRequestResponse,
    responses={403: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
async def cancel_leave_request(
    db: DbSession,
    actor_id: ActorId,
    leave_request_id: Annotated[UUID, Path()],
) -> LeaveRequestResponse:
    """Withdraw a PENDING request or reverse an APPROVED one."""
    request = await LeaveRequestWorkflow(db).cancel(leave_request_id, actor_id)
    return LeaveRequestResponse.model_validate(request)
