"""Leave balance API endpoints."""

from datetime import date
from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Path, Query, status

from hr_engine.api.dependencies import DbSession, OptionalActorId
from hr_engine.api.schemas import (
    ErrorResponse,
    LeaveBalanceCreate,
    LeaveBalanceEntryResponse,
    LeaveBalanceResponse,
)
from hr_engine.models import LeaveBalance
from hr_engine.services.errors import NotFoundError
from hr_engine.services.ledger_service import BalanceLedger

router = APIRouter(prefix="/leave-balances", tags=["leave-balances"])


@router.get(
    "",
    response_model=LeaveBalanceResponse,
    responses={404: {"model": ErrorResponse}},
)
async def get_leave_balance(
    db: DbSession,
    employee_id: Annotated[UUID, Query()],
    leave_type_id: Annotated[UUID, Query()],
    on: Annotated[date | None, Query(description="Date inside the balance period")] = None,
) -> LeaveBalanceResponse:
    """Get the balance period covering a date (today by default)."""
    as_of = on or date.today()
    balance = await BalanceLedger(db).find_balance(employee_id, leave_type_id, as_of)
    if balance is None:
        raise NotFoundError("LeaveBalance", f"(employee={employee_id}, type={leave_type_id}, on={as_of})")
    return LeaveBalanceResponse.model_validate(balance)


@router.post(
    "",
    response_model=LeaveBalanceResponse,
    status_code=status.HTTP_201_CREATED,
    responses={409: {"model": ErrorResponse}, 422: {"model": ErrorResponse}},
)
async def provision_leave_balance(
    db: DbSession,
    actor_id: OptionalActorId,
    payload: LeaveBalanceCreate,
) -> LeaveBalanceResponse:
    """Provision a new balance period."""
    balance = await BalanceLedger(db).provision(
        payload.employee_id,
        payload.leave_type_id,
        payload.period_start,
        payload.period_end,
        payload.days,
        actor_id=actor_id,
    )
    return LeaveBalanceResponse.model_validate(balance)


@router.get(
    "/{leave_balance_id}/entries",
    response_model=list[LeaveBalanceEntryResponse],
    responses={404: {"model": ErrorResponse}},
)
async def list_leave_balance_entries(
    db: DbSession,
    leave_balance_id: Annotated[UUID, Path()],
) -> list[LeaveBalanceEntryResponse]:
    """List the audit entries of a balance, oldest first."""
    if await db.get(LeaveBalance, leave_balance_id) is None:
        raise NotFoundError("LeaveBalance", leave_balance_id)
    entries = await BalanceLedger(db).history(leave_balance_id)
    return [LeaveBalanceEntryResponse.model_validate(e) for e in entries]
