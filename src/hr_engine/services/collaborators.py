"""Boundary collaborators consumed by the workflows.

Workflows depend on the protocols only; the database-backed classes are the
defaults wired in by the API and CLI.
"""

from __future__ import annotations

from datetime import date
from typing import Protocol
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from hr_engine.models import Employee, Holiday

# Roles with authority over every employee of their company
PRIVILEGED_ROLES = frozenset({"ADMIN", "HR"})


class ApprovalAuthority(Protocol):
    async def has_approval_authority(self, actor_id: UUID, employee_id: UUID) -> bool: ...


class HolidayCalendar(Protocol):
    async def is_holiday(self, company_id: UUID, day: date) -> bool: ...


class RoleApprovalAuthority:
    """Authority from the employee table.

    An actor may decide for an employee when the actor is that employee's
    direct manager, or holds the ADMIN or HR role in the same company.
    Nobody approves their own requests.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def has_approval_authority(self, actor_id: UUID, employee_id: UUID) -> bool:
        if actor_id == employee_id:
            return False
        actor = await self.session.get(Employee, actor_id)
        employee = await self.session.get(Employee, employee_id)
        if actor is None or employee is None:
            return False
        if actor.end_date is not None and actor.end_date < date.today():
            return False
        if actor.company_id != employee.company_id:
            return False
        if actor.role in PRIVILEGED_ROLES:
            return True
        return employee.manager_employee_id == actor.employee_id


class DatabaseHolidayCalendar:
    """Holiday calendar backed by the ``holiday`` table.

    Holidays are loaded once per (company, year) for the lifetime of the
    instance, which is scoped to one session.
    """

    def __init__(self, session: AsyncSession):
        self.session = session
        self._cache: dict[tuple[UUID, int], frozenset[date]] = {}

    async def is_holiday(self, company_id: UUID, day: date) -> bool:
        return day in await self.holidays_in_year(company_id, day.year)

    async def holidays_in_year(self, company_id: UUID, year: int) -> frozenset[date]:
        key = (company_id, year)
        if key not in self._cache:
            result = await self.session.execute(
                select(Holiday.holiday_date).where(
                    Holiday.company_id == company_id,
                    Holiday.holiday_date >= date(year, 1, 1),
                    Holiday.holiday_date <= date(year, 12, 31),
                )
            )
            self._cache[key] = frozenset(result.scalars().all())
        return self._cache[key]
