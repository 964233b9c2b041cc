"""Employee lifecycle service - employment contracts and retirement."""

from __future__ import annotations

import logging
from datetime import date, timedelta
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from hr_engine.models import Employee, Employment
from hr_engine.services.audit import record_audit
from hr_engine.services.collaborators import PRIVILEGED_ROLES
from hr_engine.services.errors import (
    InvalidRangeError,
    NotAuthorizedError,
    NotFoundError,
    OverlapError,
    StateConflictError,
    ValidationError,
)

logger = logging.getLogger(__name__)

EMPLOYMENT_TYPES = ("FULLTIME", "PARTTIME", "CONTRACT")


class EmployeeService:
    """Service for employee and employment lifecycle.

    Operations:
    - start_employment: First contract of an employee (or a rehire)
    - supersede_employment: Contract change; ends the current row, inserts a new one
    - retire_employee: Soft retirement through ``end_date``

    Employees and contracts are never deleted or edited in place, and an
    employee has at most one employment active on any day. Every operation
    locks the employee row first so contract changes for the same employee
    apply one at a time.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_employee(self, employee_id: UUID, lock: bool = False) -> Employee:
        stmt = select(Employee).where(Employee.employee_id == employee_id)
        if lock:
            stmt = stmt.with_for_update().execution_options(populate_existing=True)
        result = await self.session.execute(stmt)
        employee = result.scalar_one_or_none()
        if employee is None:
            raise NotFoundError("Employee", employee_id)
        return employee

    async def list_employments(self, employee_id: UUID) -> list[Employment]:
        """Contracts of an employee, oldest first."""
        result = await self.session.execute(
            select(Employment)
            .where(Employment.employee_id == employee_id)
            .order_by(Employment.start_date)
        )
        return list(result.scalars().all())

    async def active_employment(self, employee_id: UUID, as_of: date) -> Employment | None:
        for employment in await self.list_employments(employee_id):
            if employment.is_active_on(as_of):
                return employment
        return None

    async def start_employment(
        self,
        employee_id: UUID,
        start_date: date,
        base_salary: int,
        *,
        employment_type: str = "FULLTIME",
        bank_account: str | None = None,
        end_date: date | None = None,
        actor_id: UUID | None = None,
    ) -> Employment:
        """Record a new contract that follows any earlier ones.

        Raises:
            ValidationError: Bad salary or type, or the employee is not active on ``start_date``
            InvalidRangeError: If ``end_date`` is before ``start_date``
            OverlapError: If another contract covers any day of the new one
        """
        employee = await self.get_employee(employee_id, lock=True)
        await self._require_privileged(actor_id, employee)
        self._check_terms(base_salary, employment_type)
        if end_date is not None and end_date < start_date:
            raise InvalidRangeError(start_date, end_date)
        if not employee.is_active_on(start_date):
            raise ValidationError(f"Employee {employee_id} is not active on {start_date}")

        for existing in await self.list_employments(employee_id):
            if existing.overlaps(start_date, end_date or date.max):
                raise OverlapError(
                    f"Employment {existing.employment_id} already covers part of the new contract",
                    employment_id=existing.employment_id,
                )

        employment = Employment(
            employee_id=employee_id,
            employment_type=employment_type,
            base_salary=base_salary,
            pay_schedule="MONTHLY",
            bank_account=bank_account,
            start_date=start_date,
            end_date=end_date,
        )
        self.session.add(employment)
        await self.session.flush()

        await record_audit(
            self.session,
            entity_type="employment",
            entity_id=employment.employment_id,
            action="started",
            actor_id=actor_id,
            details={"employee_id": employee_id, "start_date": start_date, "base_salary": base_salary},
        )
        logger.info("Started employment %s for employee %s on %s", employment.employment_id, employee_id, start_date)
        return employment

    async def supersede_employment(
        self,
        employee_id: UUID,
        effective_date: date,
        *,
        base_salary: int | None = None,
        employment_type: str | None = None,
        bank_account: str | None = None,
        actor_id: UUID | None = None,
    ) -> Employment:
        """Change contract terms from ``effective_date`` on.

        The contract active on ``effective_date`` is ended the day before and a
        new row carrying the changed terms takes over until the old row's end
        date. Terms left as None are carried over.

        Raises:
            StateConflictError: If no contract is active on ``effective_date``
            ValidationError: If the change would start on or before the current
                contract's first day, or the terms are invalid
            OverlapError: If a later contract is already scheduled
        """
        employee = await self.get_employee(employee_id, lock=True)
        await self._require_privileged(actor_id, employee)

        contracts = await self.list_employments(employee_id)
        current = next((c for c in contracts if c.is_active_on(effective_date)), None)
        if current is None:
            raise StateConflictError(
                f"Employee {employee_id} has no employment active on {effective_date}",
                employee_id=employee_id,
            )
        if effective_date <= current.start_date:
            raise ValidationError(
                f"Contract change on {effective_date} must come after the current "
                f"contract's start {current.start_date}",
                employment_id=current.employment_id,
            )
        for later in contracts:
            if later is not current and later.start_date > effective_date:
                raise OverlapError(
                    f"Employment {later.employment_id} is already scheduled from {later.start_date}",
                    employment_id=later.employment_id,
                )

        new_salary = current.base_salary if base_salary is None else base_salary
        new_type = employment_type or current.employment_type
        self._check_terms(new_salary, new_type)

        replacement = Employment(
            employee_id=employee_id,
            employment_type=new_type,
            base_salary=new_salary,
            pay_schedule=current.pay_schedule,
            bank_account=current.bank_account if bank_account is None else bank_account,
            start_date=effective_date,
            end_date=current.end_date,
        )
        current.end_date = effective_date - timedelta(days=1)
        self.session.add(replacement)
        await self.session.flush()

        await record_audit(
            self.session,
            entity_type="employment",
            entity_id=replacement.employment_id,
            action="superseded",
            actor_id=actor_id,
            details={
                "previous_employment_id": current.employment_id,
                "effective_date": effective_date,
                "base_salary": new_salary,
            },
        )
        logger.info(
            "Employment %s of employee %s superseded by %s from %s",
            current.employment_id,
            employee_id,
            replacement.employment_id,
            effective_date,
        )
        return replacement

    async def retire_employee(
        self,
        employee_id: UUID,
        end_date: date,
        actor_id: UUID | None = None,
    ) -> Employee:
        """Set the employee's last working day and end open contracts with it.

        Raises:
            StateConflictError: If already retired, or a contract starts after ``end_date``
            InvalidRangeError: If ``end_date`` is before the employee's start date
        """
        employee = await self.get_employee(employee_id, lock=True)
        await self._require_privileged(actor_id, employee)
        if employee.end_date is not None:
            raise StateConflictError(
                f"Employee {employee_id} is already retired as of {employee.end_date}",
                employee_id=employee_id,
            )
        if end_date < employee.start_date:
            raise InvalidRangeError(employee.start_date, end_date)

        contracts = await self.list_employments(employee_id)
        for contract in contracts:
            if contract.start_date > end_date:
                raise StateConflictError(
                    f"Employment {contract.employment_id} starts after {end_date}",
                    employment_id=contract.employment_id,
                )
        for contract in contracts:
            if contract.end_date is None or contract.end_date > end_date:
                contract.end_date = end_date

        employee.end_date = end_date
        await self.session.flush()

        await record_audit(
            self.session,
            entity_type="employee",
            entity_id=employee_id,
            action="retired",
            actor_id=actor_id,
            details={"end_date": end_date},
        )
        logger.info("Employee %s retired as of %s", employee_id, end_date)
        return employee

    async def _require_privileged(self, actor_id: UUID | None, employee: Employee) -> None:
        """Contract and retirement changes need ADMIN or HR in the same company.

        System callers (no actor) are trusted.
        """
        if actor_id is None:
            return
        actor = await self.session.get(Employee, actor_id)
        if (
            actor is None
            or actor.company_id != employee.company_id
            or actor.role not in PRIVILEGED_ROLES
            or actor.employee_id == employee.employee_id
        ):
            raise NotAuthorizedError(
                f"Employee {actor_id} may not change employment of {employee.employee_id}",
                actor_id=actor_id,
                employee_id=employee.employee_id,
            )

    @staticmethod
    def _check_terms(base_salary: int, employment_type: str) -> None:
        if base_salary < 0:
            raise ValidationError("Base salary must not be negative", base_salary=base_salary)
        if employment_type not in EMPLOYMENT_TYPES:
            raise ValidationError(f"Unknown employment type '{employment_type}'")
