"""Tests for employment contracts and retirement."""

from __future__ import annotations

from datetime import date, timedelta

import pytest
from sqlalchemy import select

from hr_engine.models import AuditEvent, Employment
from hr_engine.services.employee_service import EmployeeService
from hr_engine.services.errors import (
    InvalidRangeError,
    NotAuthorizedError,
    NotFoundError,
    OverlapError,
    StateConflictError,
    ValidationError,
)
from hr_engine.services.payroll_run_service import PayrollRunWorkflow

from conftest import make_employee

pytestmark = pytest.mark.asyncio


@pytest.fixture
def service(session) -> EmployeeService:
    return EmployeeService(session)


def assert_one_active_per_day(contracts: list[Employment], start: date, end: date) -> None:
    day = start
    while day <= end:
        assert sum(1 for c in contracts if c.is_active_on(day)) <= 1, day
        day += timedelta(days=1)


class TestSupersedeEmployment:
    async def test_change_ends_current_contract_the_day_before(self, org, employments, service):
        replacement = await service.supersede_employment(
            org.alice.employee_id,
            date(2025, 6, 16),
            base_salary=12_000_000,
            actor_id=org.hr.employee_id,
        )

        contracts = await service.list_employments(org.alice.employee_id)
        assert [c.employment_id for c in contracts] == [
            employments["alice"].employment_id,
            replacement.employment_id,
        ]
        assert contracts[0].end_date == date(2025, 6, 15)
        assert contracts[0].base_salary == 10_000_000
        assert replacement.start_date == date(2025, 6, 16)
        assert replacement.end_date is None
        assert replacement.base_salary == 12_000_000
        assert (await service.active_employment(org.alice.employee_id, date(2025, 6, 15))).base_salary == 10_000_000
        assert (await service.active_employment(org.alice.employee_id, date(2025, 6, 16))).base_salary == 12_000_000

    async def test_unchanged_terms_carry_over(self, session, org, employments, service):
        employments["alice"].bank_account = "BCA-001"
        await session.flush()

        replacement = await service.supersede_employment(
            org.alice.employee_id, date(2025, 7, 1), employment_type="PARTTIME"
        )

        assert replacement.employment_type == "PARTTIME"
        assert replacement.base_salary == 10_000_000
        assert replacement.bank_account == "BCA-001"
        assert replacement.pay_schedule == "MONTHLY"

    async def test_fixed_term_end_moves_to_new_contract(self, session, org, employments, service):
        employments["alice"].end_date = date(2025, 12, 31)
        await session.flush()

        replacement = await service.supersede_employment(
            org.alice.employee_id, date(2025, 7, 1), base_salary=11_000_000
        )

        assert replacement.end_date == date(2025, 12, 31)
        assert employments["alice"].end_date == date(2025, 6, 30)

    async def test_change_on_contract_start_rejected(self, org, employments, service):
        with pytest.raises(ValidationError):
            await service.supersede_employment(org.alice.employee_id, date(2024, 1, 1), base_salary=1)

    async def test_no_active_contract(self, session, org, service):
        with pytest.raises(StateConflictError):
            await service.supersede_employment(org.alice.employee_id, date(2025, 6, 16), base_salary=1)

    async def test_scheduled_later_contract_blocks_earlier_change(self, org, employments, service):
        await service.supersede_employment(org.alice.employee_id, date(2025, 7, 1), base_salary=11_000_000)

        with pytest.raises(OverlapError):
            await service.supersede_employment(org.alice.employee_id, date(2025, 6, 16), base_salary=12_000_000)

    async def test_negative_salary_rejected(self, org, employments, service):
        with pytest.raises(ValidationError):
            await service.supersede_employment(org.alice.employee_id, date(2025, 6, 16), base_salary=-1)

    async def test_manager_may_not_change_contracts(self, org, employments, service):
        with pytest.raises(NotAuthorizedError):
            await service.supersede_employment(
                org.alice.employee_id,
                date(2025, 6, 16),
                base_salary=12_000_000,
                actor_id=org.manager.employee_id,
            )

    async def test_successive_changes_never_overlap(self, org, employments, service):
        for month, salary in ((3, 10_500_000), (6, 11_000_000), (9, 11_500_000)):
            await service.supersede_employment(
                org.alice.employee_id, date(2025, month, 1), base_salary=salary
            )

        contracts = await service.list_employments(org.alice.employee_id)
        assert len(contracts) == 4
        assert_one_active_per_day(contracts, date(2024, 12, 1), date(2025, 12, 31))
        assert [c.base_salary for c in contracts] == [10_000_000, 10_500_000, 11_000_000, 11_500_000]

    async def test_change_is_audited(self, session, org, employments, service):
        replacement = await service.supersede_employment(
            org.alice.employee_id, date(2025, 6, 16), base_salary=12_000_000, actor_id=org.hr.employee_id
        )
        await session.flush()

        result = await session.execute(
            select(AuditEvent).where(AuditEvent.entity_id == replacement.employment_id)
        )
        event = result.scalar_one()
        assert event.action == "superseded"
        assert event.actor_employee_id == org.hr.employee_id
        assert event.details_json["previous_employment_id"] == str(employments["alice"].employment_id)


class TestStartEmployment:
    async def test_first_contract(self, session, org, service):
        carol = make_employee(org.company, "Carol", start_date=date(2025, 6, 16))
        session.add(carol)
        await session.flush()

        employment = await service.start_employment(
            carol.employee_id, date(2025, 6, 16), 5_000_000, actor_id=org.hr.employee_id
        )

        assert employment.employment_type == "FULLTIME"
        assert employment.pay_schedule == "MONTHLY"
        assert await service.active_employment(carol.employee_id, date(2025, 6, 16)) is employment

    async def test_overlapping_contract_rejected(self, org, employments, service):
        with pytest.raises(OverlapError):
            await service.start_employment(org.alice.employee_id, date(2025, 7, 1), 1_000_000)

    async def test_contract_after_ended_one(self, session, org, employments, service):
        employments["bob"].end_date = date(2025, 3, 31)
        await session.flush()

        employment = await service.start_employment(
            org.bob.employee_id, date(2025, 5, 1), 6_000_000, employment_type="CONTRACT"
        )

        contracts = await service.list_employments(org.bob.employee_id)
        assert [c.employment_id for c in contracts][-1] == employment.employment_id
        assert_one_active_per_day(contracts, date(2025, 1, 1), date(2025, 12, 31))

    async def test_inverted_range(self, session, org, service):
        with pytest.raises(InvalidRangeError):
            await service.start_employment(
                org.alice.employee_id, date(2025, 6, 1), 1_000_000, end_date=date(2025, 5, 31)
            )

    async def test_unknown_employment_type(self, org, service):
        with pytest.raises(ValidationError):
            await service.start_employment(
                org.alice.employee_id, date(2025, 6, 1), 1_000_000, employment_type="INTERN"
            )

    async def test_before_employee_start(self, session, org, service):
        with pytest.raises(ValidationError):
            await service.start_employment(org.alice.employee_id, date(2023, 12, 1), 1_000_000)

    async def test_unknown_employee(self, org, service):
        with pytest.raises(NotFoundError):
            await service.start_employment(org.company.company_id, date(2025, 6, 1), 1_000_000)


class TestRetireEmployee:
    async def test_retire_ends_open_contract(self, org, employments, service):
        retired = await service.retire_employee(
            org.bob.employee_id, date(2025, 6, 30), actor_id=org.hr.employee_id
        )

        assert retired.end_date == date(2025, 6, 30)
        assert retired.is_active_on(date(2025, 7, 1)) is False
        assert employments["bob"].end_date == date(2025, 6, 30)
        assert await service.active_employment(org.bob.employee_id, date(2025, 7, 1)) is None

    async def test_earlier_contract_end_is_kept(self, session, org, employments, service):
        employments["bob"].end_date = date(2025, 3, 31)
        await session.flush()

        await service.retire_employee(org.bob.employee_id, date(2025, 6, 30))

        assert employments["bob"].end_date == date(2025, 3, 31)

    async def test_retire_twice(self, org, employments, service):
        await service.retire_employee(org.bob.employee_id, date(2025, 6, 30))

        with pytest.raises(StateConflictError):
            await service.retire_employee(org.bob.employee_id, date(2025, 7, 31))

    async def test_end_before_start(self, org, service):
        with pytest.raises(InvalidRangeError):
            await service.retire_employee(org.bob.employee_id, date(2023, 12, 31))

    async def test_contract_starting_after_retirement(self, org, employments, service):
        await service.supersede_employment(org.bob.employee_id, date(2025, 8, 1), base_salary=6_000_000)

        with pytest.raises(StateConflictError):
            await service.retire_employee(org.bob.employee_id, date(2025, 6, 30))

    async def test_nobody_retires_themselves(self, org, service):
        with pytest.raises(NotAuthorizedError):
            await service.retire_employee(org.hr.employee_id, date(2025, 6, 30), actor_id=org.hr.employee_id)

    async def test_retired_employee_is_not_paid_after_end(self, session, settings, org, employments, service):
        await service.retire_employee(org.bob.employee_id, date(2025, 5, 31))
        workflow = PayrollRunWorkflow(session, settings=settings)
        run = await workflow.create(org.company.company_id, "2025-06")

        result = await workflow.generate(run.payroll_run_id)

        assert [p.employee_id for p in result.payslips] == [org.alice.employee_id]
