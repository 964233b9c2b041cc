"""Tests for the leave balance ledger."""

from __future__ import annotations

import asyncio
from datetime import date
from uuid import uuid4

import pytest
from hypothesis import HealthCheck, given, settings as hypothesis_settings, strategies as st
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from hr_engine.models import Base, Company, Employee, LeaveBalance, LeaveType
from hr_engine.services.errors import (
    InsufficientBalanceError,
    InvalidRangeError,
    NotFoundError,
    OverlapError,
    ValidationError,
)
from hr_engine.services.ledger_service import BalanceLedger

from conftest import make_test_engine

YEAR_2025 = (date(2025, 1, 1), date(2025, 12, 31))


@pytest.mark.asyncio
class TestBalanceLedger:
    async def test_get_balance_by_covering_date(self, session, org, sick_balance):
        ledger = BalanceLedger(session)
        days = await ledger.get_balance(org.alice.employee_id, org.sick.leave_type_id, date(2025, 6, 2))
        assert days == 12

    async def test_get_balance_by_exact_period(self, session, org, sick_balance):
        ledger = BalanceLedger(session)
        days = await ledger.get_balance(org.alice.employee_id, org.sick.leave_type_id, YEAR_2025)
        assert days == 12

    async def test_get_balance_missing(self, session, org):
        ledger = BalanceLedger(session)
        with pytest.raises(NotFoundError):
            await ledger.get_balance(org.bob.employee_id, org.sick.leave_type_id, date(2025, 6, 2))

    async def test_debit_reduces_balance_and_records_entry(self, session, org, sick_balance):
        ledger = BalanceLedger(session)

        remaining = await ledger.debit(
            org.alice.employee_id,
            org.sick.leave_type_id,
            YEAR_2025,
            3,
            actor_id=org.manager.employee_id,
        )

        assert remaining == 9
        history = await ledger.history(sick_balance.leave_balance_id)
        assert [(e.delta_days, e.resulting_days) for e in history] == [(12, 12), (-3, 9)]
        assert history[-1].actor_employee_id == org.manager.employee_id

    async def test_debit_bumps_version(self, session, org, sick_balance):
        ledger = BalanceLedger(session)
        await ledger.debit(org.alice.employee_id, org.sick.leave_type_id, YEAR_2025, 1)

        result = await session.execute(
            select(LeaveBalance.version).where(
                LeaveBalance.leave_balance_id == sick_balance.leave_balance_id
            )
        )
        assert result.scalar_one() == 2

    async def test_debit_beyond_balance_fails_without_change(self, session, org, sick_balance):
        ledger = BalanceLedger(session)

        with pytest.raises(InsufficientBalanceError) as exc_info:
            await ledger.debit(org.alice.employee_id, org.sick.leave_type_id, YEAR_2025, 13)

        assert exc_info.value.requested == 13
        assert exc_info.value.available == 12
        assert await ledger.get_balance(org.alice.employee_id, org.sick.leave_type_id, YEAR_2025) == 12
        assert len(await ledger.history(sick_balance.leave_balance_id)) == 1

    async def test_debit_entire_balance(self, session, org, sick_balance):
        ledger = BalanceLedger(session)
        remaining = await ledger.debit(org.alice.employee_id, org.sick.leave_type_id, YEAR_2025, 12)
        assert remaining == 0

    @pytest.mark.parametrize("days", [0, -1])
    async def test_non_positive_days_rejected(self, session, org, sick_balance, days):
        ledger = BalanceLedger(session)
        with pytest.raises(ValidationError):
            await ledger.debit(org.alice.employee_id, org.sick.leave_type_id, YEAR_2025, days)
        with pytest.raises(ValidationError):
            await ledger.credit(org.alice.employee_id, org.sick.leave_type_id, YEAR_2025, days)

    async def test_credit_has_no_upper_bound(self, session, org, sick_balance):
        ledger = BalanceLedger(session)
        remaining = await ledger.credit(org.alice.employee_id, org.sick.leave_type_id, YEAR_2025, 30)
        assert remaining == 42

    async def test_provision_rejects_inverted_range(self, session, org):
        ledger = BalanceLedger(session)
        with pytest.raises(InvalidRangeError):
            await ledger.provision(
                org.bob.employee_id,
                org.annual.leave_type_id,
                date(2025, 12, 31),
                date(2025, 1, 1),
                12,
            )

    async def test_provision_rejects_overlapping_period(self, session, org, sick_balance):
        ledger = BalanceLedger(session)
        with pytest.raises(OverlapError):
            await ledger.provision(
                org.alice.employee_id,
                org.sick.leave_type_id,
                date(2025, 7, 1),
                date(2026, 6, 30),
                12,
            )

    async def test_provision_next_period(self, session, org, sick_balance):
        ledger = BalanceLedger(session)
        balance = await ledger.provision(
            org.alice.employee_id,
            org.sick.leave_type_id,
            date(2026, 1, 1),
            date(2026, 12, 31),
            10,
        )
        assert balance.balance_days == 10
        assert await ledger.get_balance(org.alice.employee_id, org.sick.leave_type_id, date(2026, 3, 1)) == 10
        assert await ledger.get_balance(org.alice.employee_id, org.sick.leave_type_id, date(2025, 3, 1)) == 12


# ============================================================================
# Properties
# ============================================================================

operations = st.lists(
    st.tuples(st.sampled_from(["debit", "credit"]), st.integers(min_value=1, max_value=15)),
    min_size=1,
    max_size=12,
)


async def _seed(session: AsyncSession, opening: int) -> tuple[Employee, LeaveType]:
    company = Company(name="Property Co")
    session.add(company)
    await session.flush()
    employee = Employee(
        company_id=company.company_id,
        first_name="Pat",
        last_name="Property",
        email="pat@example.com",
        start_date=date(2024, 1, 1),
    )
    leave_type = LeaveType(company_id=company.company_id, name="Annual Leave", default_days=opening)
    session.add_all([employee, leave_type])
    await session.flush()
    await BalanceLedger(session).provision(
        employee.employee_id, leave_type.leave_type_id, *YEAR_2025, opening
    )
    return employee, leave_type


async def _replay(opening: int, ops: list[tuple[str, int]]) -> list[tuple[int, int]]:
    """Apply operations; return (expected, actual) balance after each one."""
    engine = make_test_engine()
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    observed: list[tuple[int, int]] = []
    try:
        async with AsyncSession(engine, expire_on_commit=False, autoflush=False) as session:
            employee, leave_type = await _seed(session, opening)
            ledger = BalanceLedger(session)
            expected = opening
            for op, days in ops:
                if op == "credit":
                    await ledger.credit(employee.employee_id, leave_type.leave_type_id, YEAR_2025, days)
                    expected += days
                else:
                    try:
                        await ledger.debit(employee.employee_id, leave_type.leave_type_id, YEAR_2025, days)
                        expected -= days
                    except InsufficientBalanceError:
                        assert days > expected
                actual = await ledger.get_balance(employee.employee_id, leave_type.leave_type_id, YEAR_2025)
                observed.append((expected, actual))
    finally:
        await engine.dispose()
    return observed


@hypothesis_settings(max_examples=25, deadline=None, suppress_health_check=[HealthCheck.too_slow])
@given(opening=st.integers(min_value=0, max_value=20), ops=operations)
def test_balance_never_negative(opening, ops):
    for expected, actual in asyncio.run(_replay(opening, ops)):
        assert actual >= 0
        assert actual == expected


@hypothesis_settings(max_examples=25, deadline=None, suppress_health_check=[HealthCheck.too_slow])
@given(opening=st.integers(min_value=0, max_value=20), days=st.integers(min_value=1, max_value=20))
def test_debit_then_credit_restores_balance(opening, days):
    observed = asyncio.run(_replay(opening, [("debit", days), ("credit", days)]))
    if days <= opening:
        assert observed[-1][1] == opening
    else:
        # the debit was refused, so the credit adds on top of the opening balance
        assert observed[0][1] == opening
        assert observed[-1][1] == opening + days
