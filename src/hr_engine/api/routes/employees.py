"""Employee lifecycle API endpoints."""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Path, status

from hr_engine.api.dependencies import ActorId, DbSession
from hr_engine.api.schemas import (
    EmployeeResponse,
    EmploymentChange,
    EmploymentCreate,
    EmploymentResponse,
    ErrorResponse,
    RetireEmployeeRequest,
)
from hr_engine.services.employee_service import EmployeeService

router = APIRouter(prefix="/employees", tags=["employees"])

EmployeeIdPath = Annotated[UUID, Path(description="Employee ID")]


@router.get(
    "/{employee_id}/employments",
    response_model=list[EmploymentResponse],
    responses={404: {"model": ErrorResponse}},
)
async def list_employments(db: DbSession, employee_id: EmployeeIdPath) -> list[EmploymentResponse]:
    """List an employee's contracts, oldest first."""
    service = EmployeeService(db)
    await service.get_employee(employee_id)
    return [EmploymentResponse.model_validate(e) for e in await service.list_employments(employee_id)]


@router.post(
    "/{employee_id}/employments",
    response_model=EmploymentResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        403: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        409: {"model": ErrorResponse},
        422: {"model": ErrorResponse},
    },
)
async def start_employment(
    db: DbSession,
    actor_id: ActorId,
    employee_id: EmployeeIdPath,
    payload: EmploymentCreate,
) -> EmploymentResponse:
    """Record a new contract. It may not overlap an existing one."""
    employment = await EmployeeService(db).start_employment(
        employee_id,
        payload.start_date,
        payload.base_salary,
        employment_type=payload.employment_type,
        bank_account=payload.bank_account,
        end_date=payload.end_date,
        actor_id=actor_id,
    )
    return EmploymentResponse.model_validate(employment)


@router.post(
    "/{employee_id}/employments/supersede",
    response_model=EmploymentResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        403: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        409: {"model": ErrorResponse},
        422: {"model": ErrorResponse},
    },
)
async def supersede_employment(
    db: DbSession,
    actor_id: ActorId,
    employee_id: EmployeeIdPath,
    payload: EmploymentChange,
) -> EmploymentResponse:
    """Change contract terms from the effective date on."""
    employment = await EmployeeService(db).supersede_employment(
        employee_id,
        payload.effective_date,
        base_salary=payload.base_salary,
        employment_type=payload.employment_type,
        bank_account=payload.bank_account,
        actor_id=actor_id,
    )
    return EmploymentResponse.model_validate(employment)


@router.post(
    "/{employee_id}/retire",
    response_model=EmployeeResponse,
    responses={
        403: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        409: {"model": ErrorResponse},
    },
)
async def retire_employee(
    db: DbSession,
    actor_id: ActorId,
    employee_id: EmployeeIdPath,
    payload: RetireEmployeeRequest,
) -> EmployeeResponse:
    """Soft-retire an employee and end their open contracts."""
    employee = await EmployeeService(db).retire_employee(employee_id, payload.end_date, actor_id=actor_id)
    return EmployeeResponse.model_validate(employee)
