"""Payroll run service - lifecycle of a company's monthly payroll run."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from datetime import date
from uuid import UUID

from sqlalchemy import delete, func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from hr_engine.calculators.business_days import business_days, month_bounds
from hr_engine.calculators.pay_calculator import PayslipCalculator
from hr_engine.calculators.types import ContractPortion, EmployeePayInputs, PayslipCalculation
from hr_engine.config import Settings, get_settings
from hr_engine.models import Employee, Employment, PayrollItem, PayrollRun, Payslip, Timesheet
from hr_engine.models.base import utcnow
from hr_engine.services.audit import record_audit
from hr_engine.services.collaborators import DatabaseHolidayCalendar
from hr_engine.services.errors import (
    AlreadyGeneratingError,
    DuplicateRunError,
    InvalidTransitionError,
    NotFoundError,
    StateConflictError,
    ValidationError,
)
from hr_engine.services.state_machine import (
    PayrollRunStateMachine,
    PayrollRunStatus,
    TimesheetStateMachine,
    status_value,
)

logger = logging.getLogger(__name__)

PERIOD_PATTERN = re.compile(r"^\d{4}-(0[1-9]|1[0-2])$")


@dataclass
class GenerationResult:
    """Outcome of one generation of a payroll run."""

    payroll_run: PayrollRun
    generation: int
    payslips: list[Payslip] = field(default_factory=list)
    item_count: int = 0

    @property
    def total_gross(self) -> int:
        return sum(p.gross_pay for p in self.payslips)

    @property
    def total_net(self) -> int:
        return sum(p.net_pay for p in self.payslips)


class PayrollRunWorkflow:
    """Service for managing payroll run lifecycle.

    Operations:
    - create: Open a DRAFT run for (company, period), at most one per pair
    - generate: (Re)compute items and payslips of a DRAFT run
    - lock: Freeze the run's results (DRAFT → LOCKED)
    - publish: Make payslips visible to employees (LOCKED or PAID)
    - mark_paid: Record disbursement once every payslip is published
    """

    def __init__(
        self,
        session: AsyncSession,
        settings: Settings | None = None,
        calculator: PayslipCalculator | None = None,
    ):
        self.session = session
        self.settings = settings or get_settings()
        self.calculator = calculator or PayslipCalculator(
            overtime_multiplier=self.settings.overtime_multiplier,
            deduction_rate=self.settings.deduction_rate,
        )
        self.calendar = DatabaseHolidayCalendar(session)

    async def get_run(self, payroll_run_id: UUID, load_payslips: bool = False) -> PayrollRun:
        """Load a payroll run, raising NotFoundError when missing."""
        stmt = select(PayrollRun).where(PayrollRun.payroll_run_id == payroll_run_id)
        if load_payslips:
            stmt = stmt.options(selectinload(PayrollRun.payslips))
        result = await self.session.execute(stmt)
        run = result.scalar_one_or_none()
        if run is None:
            raise NotFoundError("PayrollRun", payroll_run_id)
        return run

    async def create(
        self,
        company_id: UUID,
        period: str,
        actor_id: UUID | None = None,
    ) -> PayrollRun:
        """Create the DRAFT run for a company and ``YYYY-MM`` period.

        Raises:
            ValidationError: If the period is malformed
            DuplicateRunError: If the company already has a run for the period
        """
        if not PERIOD_PATTERN.match(period):
            raise ValidationError(f"Period '{period}' is not in YYYY-MM form", period=period)

        if await self._existing_run_id(company_id, period) is not None:
            raise DuplicateRunError(company_id, period)

        run = PayrollRun(
            company_id=company_id,
            period=period,
            status=PayrollRunStatus.DRAFT.value,
            generation=0,
            created_by_employee_id=actor_id,
        )
        # The unique constraint settles races the pre-check cannot see
        try:
            async with self.session.begin_nested():
                self.session.add(run)
                await self.session.flush()
        except IntegrityError as e:
            raise DuplicateRunError(company_id, period) from e

        await record_audit(
            self.session,
            entity_type="payroll_run",
            entity_id=run.payroll_run_id,
            action="created",
            actor_id=actor_id,
            details={"period": period},
        )
        logger.info("Created payroll run %s for company %s period %s", run.payroll_run_id, company_id, period)
        return run

    async def generate(self, payroll_run_id: UUID, actor_id: UUID | None = None) -> GenerationResult:
        """Recompute every item and payslip of a DRAFT run.

        Previous results are replaced, never added to, so generating twice
        yields the same payslip set.

        Raises:
            InvalidTransitionError: If the run is not DRAFT
            AlreadyGeneratingError: If a concurrent generation claimed the run first
        """
        run = await self._lock_run(payroll_run_id)
        if not PayrollRunStateMachine.can_generate(run.status):
            raise InvalidTransitionError(
                run.status, PayrollRunStatus.DRAFT.value, "Only DRAFT runs can be generated"
            )

        observed = run.generation
        claimed = await self.session.execute(
            update(PayrollRun)
            .where(
                PayrollRun.payroll_run_id == payroll_run_id,
                PayrollRun.generation == observed,
                PayrollRun.status == PayrollRunStatus.DRAFT.value,
            )
            .values(generation=observed + 1)
        )
        if claimed.rowcount == 0:
            raise AlreadyGeneratingError(payroll_run_id)

        await self.session.execute(
            delete(PayrollItem)
            .where(PayrollItem.payroll_run_id == payroll_run_id)
        )
        await self.session.execute(
            delete(Payslip)
            .where(Payslip.payroll_run_id == payroll_run_id)
        )

        period_start, period_end = month_bounds(run.period)
        holidays = await self._holidays(run.company_id, period_start, period_end)
        month_days = business_days(period_start, period_end, holidays)

        payslips: list[Payslip] = []
        item_count = 0
        for employee, contracts in await self._payable_employments(
            run.company_id, period_start, period_end
        ):
            inputs = await self._pay_inputs(
                employee, contracts, period_start, period_end, month_days
            )
            calculation = self.calculator.calculate(inputs)
            payslips.append(self._persist(run, calculation))
            item_count += len(calculation.lines)

        run.generated_at = utcnow()
        await self.session.flush()

        await record_audit(
            self.session,
            entity_type="payroll_run",
            entity_id=run.payroll_run_id,
            action="generated",
            actor_id=actor_id,
            details={"generation": run.generation, "payslips": len(payslips)},
        )
        logger.info(
            "Generated payroll run %s (generation %s): %s payslip(s), %s item(s)",
            run.payroll_run_id,
            run.generation,
            len(payslips),
            item_count,
        )
        return GenerationResult(
            payroll_run=run,
            generation=run.generation,
            payslips=payslips,
            item_count=item_count,
        )

    async def lock(self, payroll_run_id: UUID, actor_id: UUID | None = None) -> PayrollRun:
        """DRAFT → LOCKED. A run with no payslips cannot be locked."""
        run = await self.get_run(payroll_run_id)
        PayrollRunStateMachine.validate_transition(run.status, PayrollRunStatus.LOCKED)
        if await self._payslip_count(payroll_run_id) == 0:
            raise InvalidTransitionError(
                run.status, PayrollRunStatus.LOCKED.value, "Run has no payslips; generate it first"
            )

        run.status = PayrollRunStatus.LOCKED.value
        run.locked_at = utcnow()
        await self.session.flush()
        await self._record_status_change(run, PayrollRunStatus.DRAFT, actor_id)
        return run

    async def publish(self, payroll_run_id: UUID, actor_id: UUID | None = None) -> PayrollRun:
        """Stamp ``published_at`` on every unpublished payslip of a LOCKED or PAID run.

        The run status is unchanged and publishing again is a no-op.
        """
        run = await self.get_run(payroll_run_id)
        if run.status not in PayrollRunStateMachine.PUBLISHABLE:
            raise StateConflictError(
                f"Payroll run {payroll_run_id} is {run.status}; only LOCKED or PAID runs can be published",
                payroll_run_id=payroll_run_id,
            )

        result = await self.session.execute(
            update(Payslip)
            .where(
                Payslip.payroll_run_id == payroll_run_id,
                Payslip.published_at.is_(None),
            )
            .values(published_at=utcnow())
        )
        if result.rowcount:
            await record_audit(
                self.session,
                entity_type="payroll_run",
                entity_id=run.payroll_run_id,
                action="published",
                actor_id=actor_id,
                details={"payslips": result.rowcount},
            )
            logger.info("Published %s payslip(s) of run %s", result.rowcount, payroll_run_id)
        return run

    async def mark_paid(self, payroll_run_id: UUID, actor_id: UUID | None = None) -> PayrollRun:
        """LOCKED → PAID once every payslip has been published.

        Raises:
            StateConflictError: If any payslip is unpublished
        """
        run = await self.get_run(payroll_run_id)
        PayrollRunStateMachine.validate_transition(run.status, PayrollRunStatus.PAID)

        unpublished = await self.session.execute(
            select(func.count())
            .select_from(Payslip)
            .where(
                Payslip.payroll_run_id == payroll_run_id,
                Payslip.published_at.is_(None),
            )
        )
        pending = unpublished.scalar_one()
        if pending:
            raise StateConflictError(
                f"{pending} payslip(s) of run {payroll_run_id} are not published",
                payroll_run_id=payroll_run_id,
            )

        paid_at = utcnow()
        await self.session.execute(
            update(Payslip)
            .where(Payslip.payroll_run_id == payroll_run_id)
            .values(paid_at=paid_at)
        )
        run.status = PayrollRunStatus.PAID.value
        run.paid_at = paid_at
        await self.session.flush()
        await self._record_status_change(run, PayrollRunStatus.LOCKED, actor_id)
        return run

    async def list_payslips(self, payroll_run_id: UUID) -> list[Payslip]:
        await self.get_run(payroll_run_id)
        result = await self.session.execute(
            select(Payslip)
            .where(Payslip.payroll_run_id == payroll_run_id)
            .order_by(Payslip.employee_id)
        )
        return list(result.scalars().all())

    async def list_items(self, payroll_run_id: UUID, employee_id: UUID | None = None) -> list[PayrollItem]:
        stmt = select(PayrollItem).where(PayrollItem.payroll_run_id == payroll_run_id)
        if employee_id is not None:
            stmt = stmt.where(PayrollItem.employee_id == employee_id)
        result = await self.session.execute(stmt.order_by(PayrollItem.employee_id, PayrollItem.created_at))
        return list(result.scalars().all())

    async def _existing_run_id(self, company_id: UUID, period: str) -> UUID | None:
        result = await self.session.execute(
            select(PayrollRun.payroll_run_id).where(
                PayrollRun.company_id == company_id,
                PayrollRun.period == period,
            )
        )
        return result.scalar_one_or_none()

    async def _lock_run(self, payroll_run_id: UUID) -> PayrollRun:
        """Load the run row FOR UPDATE, refreshing any identity-map copy."""
        result = await self.session.execute(
            select(PayrollRun)
            .where(PayrollRun.payroll_run_id == payroll_run_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        run = result.scalar_one_or_none()
        if run is None:
            raise NotFoundError("PayrollRun", payroll_run_id)
        return run

    # ------------------------------------------------------------------
    # Generation helpers
    # ------------------------------------------------------------------

    async def _holidays(self, company_id: UUID, start: date, end: date) -> frozenset[date]:
        days: set[date] = set()
        for year in range(start.year, end.year + 1):
            days.update(await self.calendar.holidays_in_year(company_id, year))
        return frozenset(days)

    async def _payable_employments(
        self,
        company_id: UUID,
        start: date,
        end: date,
    ) -> list[tuple[Employee, list[Employment]]]:
        """MONTHLY employments overlapping the period, grouped by employee in start order."""
        result = await self.session.execute(
            select(Employee, Employment)
            .join(Employment, Employment.employee_id == Employee.employee_id)
            .where(
                Employee.company_id == company_id,
                Employee.start_date <= end,
                (Employee.end_date.is_(None)) | (Employee.end_date >= start),
                Employment.pay_schedule == "MONTHLY",
                Employment.start_date <= end,
                (Employment.end_date.is_(None)) | (Employment.end_date >= start),
            )
            .options(selectinload(Employee.work_schedule))
            .order_by(Employee.employee_id, Employment.start_date)
        )
        grouped: dict[UUID, tuple[Employee, list[Employment]]] = {}
        for employee, employment in result.all():
            grouped.setdefault(employee.employee_id, (employee, []))[1].append(employment)
        return list(grouped.values())

    async def _pay_inputs(
        self,
        employee: Employee,
        contracts: list[Employment],
        start: date,
        end: date,
        month_days: list[date],
    ) -> EmployeePayInputs:
        # Each business day is paid once, under the latest contract active that day
        days_by_contract = {c.employment_id: 0 for c in contracts}
        for day in month_days:
            if not employee.is_active_on(day):
                continue
            active = [c for c in contracts if c.is_active_on(day)]
            if active:
                days_by_contract[active[-1].employment_id] += 1

        overtime = await self.session.execute(
            select(func.coalesce(func.sum(Timesheet.overtime_minutes), 0)).where(
                Timesheet.employee_id == employee.employee_id,
                Timesheet.work_date >= start,
                Timesheet.work_date <= end,
                Timesheet.status.in_([status_value(s) for s in TimesheetStateMachine.PAYABLE]),
            )
        )

        if employee.work_schedule is not None:
            shift_minutes = employee.work_schedule.shift_minutes
        else:
            shift_minutes = int(self.settings.default_shift_hours * 60)

        portions = [
            ContractPortion(base_salary=c.base_salary, active_business_days=days_by_contract[c.employment_id])
            for c in contracts
        ]
        return EmployeePayInputs(
            employee_id=employee.employee_id,
            business_days_in_period=len(month_days),
            overtime_minutes=int(overtime.scalar_one()),
            shift_minutes=shift_minutes,
            contracts=[p for p in portions if p.active_business_days] or portions[-1:],
        )

    def _persist(self, run: PayrollRun, calculation: PayslipCalculation) -> Payslip:
        for line in calculation.lines:
            self.session.add(
                PayrollItem(
                    payroll_run_id=run.payroll_run_id,
                    employee_id=calculation.employee_id,
                    name=line.name,
                    item_type=line.item_type.value,
                    amount=line.amount,
                    quantity=line.quantity,
                    explanation=line.explanation,
                )
            )
        payslip = Payslip(
            payroll_run_id=run.payroll_run_id,
            employee_id=calculation.employee_id,
            gross_pay=calculation.gross_pay,
            deductions=calculation.deductions,
            net_pay=calculation.net_pay,
        )
        self.session.add(payslip)
        return payslip

    async def _payslip_count(self, payroll_run_id: UUID) -> int:
        result = await self.session.execute(
            select(func.count())
            .select_from(Payslip)
            .where(Payslip.payroll_run_id == payroll_run_id)
        )
        return result.scalar_one()

    async def _record_status_change(
        self,
        run: PayrollRun,
        from_status: PayrollRunStatus,
        actor_id: UUID | None,
    ) -> None:
        await record_audit(
            self.session,
            entity_type="payroll_run",
            entity_id=run.payroll_run_id,
            action=f"status_change:{from_status.value}:{run.status}",
            actor_id=actor_id,
        )
        logger.info("Payroll run %s moved %s -> %s", run.payroll_run_id, from_status.value, run.status)
