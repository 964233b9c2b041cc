"""Pytest fixtures for HR engine tests."""

from __future__ import annotations

from collections.abc import AsyncGenerator
from dataclasses import dataclass
from datetime import date, time
from decimal import Decimal

import pytest
import pytest_asyncio
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from hr_engine.config import Settings
from hr_engine.models import (
    Base,
    Company,
    Employee,
    Employment,
    Holiday,
    LeaveBalance,
    LeaveType,
    WorkSchedule,
)
from hr_engine.services.ledger_service import BalanceLedger

# Use in-memory SQLite for tests (with async support)
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


def make_test_engine() -> AsyncEngine:
    """In-memory engine whose transactions and savepoints behave like Postgres."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )

    @event.listens_for(engine.sync_engine, "connect")
    def do_connect(dbapi_connection, connection_record):
        # let SQLAlchemy emit BEGIN itself so SAVEPOINT nests correctly
        dbapi_connection.isolation_level = None

    @event.listens_for(engine.sync_engine, "begin")
    def do_begin(conn):
        conn.exec_driver_sql("BEGIN")

    return engine


def make_test_settings(**overrides) -> Settings:
    values = dict(
        database_url=TEST_DATABASE_URL,
        database_url_sync="sqlite:///:memory:",
        host="127.0.0.1",
        port=8000,
        debug=False,
        log_level="INFO",
        default_timezone="UTC",
        default_shift_hours=Decimal("8"),
        overtime_multiplier=Decimal("1.5"),
        deduction_rate=Decimal("0.05"),
    )
    values.update(overrides)
    return Settings(**values)


@pytest_asyncio.fixture
async def engine() -> AsyncGenerator[AsyncEngine, None]:
    """Create a fresh test database per test."""
    engine = make_test_engine()
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture
async def session_factory(engine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


@pytest_asyncio.fixture
async def session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """Create a database session for each test."""
    async with session_factory() as session:
        yield session
        await session.rollback()


@pytest.fixture
def settings() -> Settings:
    return make_test_settings()


# ============================================================================
# Organization fixtures
# ============================================================================


@dataclass
class Org:
    """A small company: HR admin, a manager and two reports."""

    company: Company
    schedule: WorkSchedule
    hr: Employee
    manager: Employee
    alice: Employee
    bob: Employee
    annual: LeaveType
    sick: LeaveType


def make_employee(company: Company, first_name: str, role: str = "EMPLOYEE", **kwargs) -> Employee:
    return Employee(
        company_id=company.company_id,
        first_name=first_name,
        last_name="Test",
        email=f"{first_name.lower()}@acme.example",
        role=role,
        start_date=kwargs.pop("start_date", date(2024, 1, 1)),
        **kwargs,
    )


@pytest_asyncio.fixture
async def org(session: AsyncSession) -> Org:
    """Create the standard test organization."""
    company = Company(name="Acme Indonesia", currency="IDR")
    session.add(company)
    await session.flush()

    schedule = WorkSchedule(
        company_id=company.company_id,
        name="Office",
        timezone="UTC",
        shift_start=time(9, 0),
        shift_end=time(18, 0),
    )
    session.add(schedule)
    session.add(Holiday(company_id=company.company_id, holiday_date=date(2025, 1, 1), name="New Year"))
    await session.flush()

    hr = make_employee(company, "Hana", role="HR", work_schedule_id=schedule.work_schedule_id)
    manager = make_employee(company, "Maya", role="MANAGER", work_schedule_id=schedule.work_schedule_id)
    session.add_all([hr, manager])
    await session.flush()

    alice = make_employee(
        company,
        "Alice",
        manager_employee_id=manager.employee_id,
        work_schedule_id=schedule.work_schedule_id,
    )
    bob = make_employee(
        company,
        "Bob",
        manager_employee_id=manager.employee_id,
        work_schedule_id=schedule.work_schedule_id,
    )
    annual = LeaveType(company_id=company.company_id, name="Annual Leave", accrues=True, default_days=12)
    sick = LeaveType(company_id=company.company_id, name="Sick Leave", accrues=False, default_days=12)
    session.add_all([alice, bob, annual, sick])
    await session.flush()

    return Org(
        company=company,
        schedule=schedule,
        hr=hr,
        manager=manager,
        alice=alice,
        bob=bob,
        annual=annual,
        sick=sick,
    )


@pytest_asyncio.fixture
async def sick_balance(session: AsyncSession, org: Org) -> LeaveBalance:
    """Alice's 2025 Sick Leave balance with 12 days."""
    return await BalanceLedger(session).provision(
        org.alice.employee_id,
        org.sick.leave_type_id,
        date(2025, 1, 1),
        date(2025, 12, 31),
        12,
        actor_id=org.hr.employee_id,
    )


@pytest_asyncio.fixture
async def employments(session: AsyncSession, org: Org) -> dict[str, Employment]:
    """Monthly employments for Alice and Bob."""
    alice = Employment(
        employee_id=org.alice.employee_id,
        employment_type="FULLTIME",
        base_salary=10_000_000,
        pay_schedule="MONTHLY",
        start_date=date(2024, 1, 1),
    )
    bob = Employment(
        employee_id=org.bob.employee_id,
        employment_type="FULLTIME",
        base_salary=5_000_000,
        pay_schedule="MONTHLY",
        start_date=date(2024, 1, 1),
    )
    session.add_all([alice, bob])
    await session.flush()
    return {"alice": alice, "bob": bob}
