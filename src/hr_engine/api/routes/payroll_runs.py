"""Payroll run API endpoints."""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Path, status

from hr_engine.api.dependencies import DbSession, OptionalActorId
from hr_engine.api.schemas import (
    ErrorResponse,
    GenerationResponse,
    PayrollItemResponse,
    PayrollRunCreate,
    PayrollRunResponse,
    PayslipListResponse,
    PayslipResponse,
)
from hr_engine.services.payroll_run_service import PayrollRunWorkflow

router = APIRouter(prefix="/payroll-runs", tags=["payroll-runs"])


# ============================================================================
# Payroll Run CRUD
# ============================================================================


@router.post(
    "",
    response_model=PayrollRunResponse,
    status_code=status.HTTP_201_CREATED,
    responses={409: {"model": ErrorResponse}, 422: {"model": ErrorResponse}},
)
async def create_payroll_run(
    db: DbSession,
    actor_id: OptionalActorId,
    payload: PayrollRunCreate,
) -> PayrollRunResponse:
    """Create the DRAFT payroll run of a company for a period."""
    run = await PayrollRunWorkflow(db).create(payload.company_id, payload.period, actor_id)
    return PayrollRunResponse.model_validate(run)


@router.get(
    "/{payroll_run_id}",
    response_model=PayrollRunResponse,
    responses={404: {"model": ErrorResponse}},
)
async def get_payroll_run(
    db: DbSession,
    payroll_run_id: Annotated[UUID, Path()],
) -> PayrollRunResponse:
    """Get a specific payroll run by ID."""
    run = await PayrollRunWorkflow(db).get_run(payroll_run_id)
    return PayrollRunResponse.model_validate(run)


@router.get(
    "/{payroll_run_id}/payslips",
    response_model=PayslipListResponse,
    responses={404: {"model": ErrorResponse}},
)
async def list_payslips(
    db: DbSession,
    payroll_run_id: Annotated[UUID, Path()],
) -> PayslipListResponse:
    """List payslips of a run."""
    payslips = await PayrollRunWorkflow(db).list_payslips(payroll_run_id)
    items = [PayslipResponse.model_validate(p) for p in payslips]
    return PayslipListResponse(items=items, total=len(items))


@router.get(
    "/{payroll_run_id}/employees/{employee_id}/items",
    response_model=list[PayrollItemResponse],
    responses={404: {"model": ErrorResponse}},
)
async def list_employee_items(
    db: DbSession,
    payroll_run_id: Annotated[UUID, Path()],
    employee_id: Annotated[UUID, Path()],
) -> list[PayrollItemResponse]:
    """List the earning and deduction lines of one employee in a run."""
    workflow = PayrollRunWorkflow(db)
    await workflow.get_run(payroll_run_id)
    items = await workflow.list_items(payroll_run_id, employee_id)
    return [PayrollItemResponse.model_validate(i) for i in items]


# ============================================================================
# Payroll Run State Transitions
# ============================================================================


@router.post(
    "/{payroll_run_id}/generate",
    response_model=GenerationResponse,
    responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
async def generate_payroll_run(
    db: DbSession,
    actor_id: OptionalActorId,
    payroll_run_id: Annotated[UUID, Path()],
) -> GenerationResponse:
    """Recompute items and payslips of a DRAFT run. Safe to repeat."""
    result = await PayrollRunWorkflow(db).generate(payroll_run_id, actor_id)
    return GenerationResponse(
        payroll_run=PayrollRunResponse.model_validate(result.payroll_run),
        generation=result.generation,
        payslip_count=len(result.payslips),
        item_count=result.item_count,
        total_gross=result.total_gross,
        total_net=result.total_net,
    )


@router.post(
    "/{payroll_run_id}/lock",
    response_model=PayrollRunResponse,
    responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
async def lock_payroll_run(
    db: DbSession,
    actor_id: OptionalActorId,
    payroll_run_id: Annotated[UUID, Path()],
) -> PayrollRunResponse:
    """Lock a generated run."""
    run = await PayrollRunWorkflow(db).lock(payroll_run_id, actor_id)
    return PayrollRunResponse.model_validate(run)


@router.post(
    "/{payroll_run_id}/publish",
    response_model=PayrollRunResponse,
    responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
async def publish_payroll_run(
    db: DbSession,
    actor_id: OptionalActorId,
    payroll_run_id: Annotated[UUID, Path()],
) -> PayrollRunResponse:
    """Publish the payslips of a locked run."""
    run = await PayrollRunWorkflow(db).publish(payroll_run_id, actor_id)
    return PayrollRunResponse.model_validate(run)


@router.post(
    "/{payroll_run_id}/mark-paid",
    response_model=PayrollRunResponse,
    responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
async def mark_payroll_run_paid(
    db: DbSession,
    actor_id: OptionalActorId,
    payroll_run_id: Annotated[UUID, Path()],
) -> PayrollRunResponse:
    """Mark a locked run with all payslips published as paid."""
    run = await PayrollRunWorkflow(db).mark_paid(payroll_run_id, actor_id)
    return PayrollRunResponse.model_validate(run)
