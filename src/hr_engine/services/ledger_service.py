"""Leave balance ledger.

Holds per-employee, per-leave-type, per-period day balances. Every mutation
is a single conditional UPDATE on the balance row, so the balance check and
the decrement cannot be split by a concurrent writer, and every mutation
appends a ``LeaveBalanceEntry`` audit record.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import Union
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from hr_engine.models import LeaveBalance, LeaveBalanceEntry
from hr_engine.models.base import utcnow
from hr_engine.services.errors import (
    InsufficientBalanceError,
    InvalidRangeError,
    NotFoundError,
    OverlapError,
    ValidationError,
)

logger = logging.getLogger(__name__)

# A period is either a date inside it or its exact (start, end) bounds
Period = Union[date, tuple[date, date]]


class BalanceLedger:
    """Append-audited leave balance ledger.

    Notes:
    - balance_days never drops below zero (conditional update + check constraint).
    - credit has no upper bound; accrual policy lives elsewhere.
    - the ledger never commits; the caller owns the transaction.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_balance(self, employee_id: UUID, leave_type_id: UUID, period: Period) -> int:
        """Return the current balance in days.

        Raises:
            NotFoundError: If no balance row exists for the period
        """
        result = await self.session.execute(
            select(LeaveBalance.balance_days).where(
                *self._period_filter(employee_id, leave_type_id, period)
            )
        )
        days = result.scalar_one_or_none()
        if days is None:
            raise NotFoundError("LeaveBalance", self._describe(employee_id, leave_type_id, period))
        return days

    async def find_balance(
        self, employee_id: UUID, leave_type_id: UUID, period: Period
    ) -> LeaveBalance | None:
        """Load the balance row for a period, if provisioned."""
        result = await self.session.execute(
            select(LeaveBalance).where(*self._period_filter(employee_id, leave_type_id, period))
        )
        return result.scalar_one_or_none()

    async def debit(
        self,
        employee_id: UUID,
        leave_type_id: UUID,
        period: Period,
        days: int,
        *,
        actor_id: UUID | None = None,
        leave_request_id: UUID | None = None,
        reason: str = "debit",
    ) -> int:
        """Atomically take ``days`` off the balance.

        Returns the resulting balance.

        Raises:
            NotFoundError: If no balance row exists for the period
            InsufficientBalanceError: If ``days`` exceeds the current balance
        """
        self._check_days(days)
        balance_id = await self._resolve_id(employee_id, leave_type_id, period)

        result = await self.session.execute(
            update(LeaveBalance)
            .where(
                LeaveBalance.leave_balance_id == balance_id,
                LeaveBalance.balance_days >= days,
            )
            .values(
                balance_days=LeaveBalance.balance_days - days,
                version=LeaveBalance.version + 1,
            )
            .returning(LeaveBalance.balance_days)
        )
        resulting = result.scalar_one_or_none()
        if resulting is None:
            available = await self._current_days(balance_id)
            raise InsufficientBalanceError(balance_id, days, available)

        await self._append_entry(balance_id, -days, resulting, reason, actor_id, leave_request_id)
        logger.info(
            "Debited %s day(s) from leave balance %s, %s remaining",
            days,
            balance_id,
            resulting,
        )
        return resulting

    async def credit(
        self,
        employee_id: UUID,
        leave_type_id: UUID,
        period: Period,
        days: int,
        *,
        actor_id: UUID | None = None,
        leave_request_id: UUID | None = None,
        reason: str = "credit",
    ) -> int:
        """Add ``days`` to the balance and return the resulting balance."""
        self._check_days(days)
        balance_id = await self._resolve_id(employee_id, leave_type_id, period)
        return await self.credit_balance(
            balance_id,
            days,
            actor_id=actor_id,
            leave_request_id=leave_request_id,
            reason=reason,
        )

    async def credit_balance(
        self,
        balance_id: UUID,
        days: int,
        *,
        actor_id: UUID | None = None,
        leave_request_id: UUID | None = None,
        reason: str = "credit",
    ) -> int:
        """Credit a balance row addressed by id (reversal of a recorded debit)."""
        self._check_days(days)
        result = await self.session.execute(
            update(LeaveBalance)
            .where(LeaveBalance.leave_balance_id == balance_id)
            .values(
                balance_days=LeaveBalance.balance_days + days,
                version=LeaveBalance.version + 1,
            )
            .returning(LeaveBalance.balance_days)
        )
        resulting = result.scalar_one_or_none()
        if resulting is None:
            raise NotFoundError("LeaveBalance", balance_id)

        await self._append_entry(balance_id, days, resulting, reason, actor_id, leave_request_id)
        logger.info(
            "Credited %s day(s) to leave balance %s, %s remaining",
            days,
            balance_id,
            resulting,
        )
        return resulting

    async def provision(
        self,
        employee_id: UUID,
        leave_type_id: UUID,
        period_start: date,
        period_end: date,
        days: int,
        *,
        actor_id: UUID | None = None,
    ) -> LeaveBalance:
        """Create the balance row for a new period (e.g. at fiscal-year start).

        Raises:
            InvalidRangeError: If period_end is before period_start
            OverlapError: If the period overlaps an existing one
        """
        if period_end < period_start:
            raise InvalidRangeError(period_start, period_end)
        if days < 0:
            raise ValidationError("Provisioned days must not be negative", days=days)

        existing = await self.session.execute(
            select(LeaveBalance.leave_balance_id).where(
                LeaveBalance.employee_id == employee_id,
                LeaveBalance.leave_type_id == leave_type_id,
                LeaveBalance.period_start <= period_end,
                LeaveBalance.period_end >= period_start,
            )
        )
        if existing.first() is not None:
            raise OverlapError(
                f"Leave balance period {period_start}..{period_end} overlaps an existing period",
                employee_id=employee_id,
                leave_type_id=leave_type_id,
            )

        balance = LeaveBalance(
            employee_id=employee_id,
            leave_type_id=leave_type_id,
            period_start=period_start,
            period_end=period_end,
            balance_days=days,
            version=1,
        )
        self.session.add(balance)
        await self.session.flush()

        await self._append_entry(balance.leave_balance_id, days, days, "provision", actor_id, None)
        return balance

    async def history(self, balance_id: UUID) -> list[LeaveBalanceEntry]:
        """Audit entries for a balance row, oldest first."""
        result = await self.session.execute(
            select(LeaveBalanceEntry)
            .where(LeaveBalanceEntry.leave_balance_id == balance_id)
            .order_by(LeaveBalanceEntry.recorded_at)
        )
        return list(result.scalars().all())

    async def _resolve_id(self, employee_id: UUID, leave_type_id: UUID, period: Period) -> UUID:
        result = await self.session.execute(
            select(LeaveBalance.leave_balance_id).where(
                *self._period_filter(employee_id, leave_type_id, period)
            )
        )
        balance_id = result.scalar_one_or_none()
        if balance_id is None:
            raise NotFoundError("LeaveBalance", self._describe(employee_id, leave_type_id, period))
        return balance_id

    async def _current_days(self, balance_id: UUID) -> int:
        result = await self.session.execute(
            select(LeaveBalance.balance_days).where(LeaveBalance.leave_balance_id == balance_id)
        )
        return result.scalar_one()

    async def _append_entry(
        self,
        balance_id: UUID,
        delta: int,
        resulting: int,
        reason: str,
        actor_id: UUID | None,
        leave_request_id: UUID | None,
    ) -> None:
        self.session.add(
            LeaveBalanceEntry(
                leave_balance_id=balance_id,
                actor_employee_id=actor_id,
                delta_days=delta,
                resulting_days=resulting,
                reason=reason,
                leave_request_id=leave_request_id,
                recorded_at=utcnow(),
            )
        )
        await self.session.flush()

    @staticmethod
    def _period_filter(employee_id: UUID, leave_type_id: UUID, period: Period) -> list:
        clauses = [
            LeaveBalance.employee_id == employee_id,
            LeaveBalance.leave_type_id == leave_type_id,
        ]
        if isinstance(period, tuple):
            start, end = period
            clauses += [LeaveBalance.period_start == start, LeaveBalance.period_end == end]
        else:
            clauses += [LeaveBalance.period_start <= period, LeaveBalance.period_end >= period]
        return clauses

    @staticmethod
    def _describe(employee_id: UUID, leave_type_id: UUID, period: Period) -> str:
        if isinstance(period, tuple):
            period_text = f"{period[0]}..{period[1]}"
        else:
            period_text = f"covering {period}"
        return f"(employee={employee_id}, leave_type={leave_type_id}, period {period_text})"

    @staticmethod
    def _check_days(days: int) -> None:
        if isinstance(days, bool) or not isinstance(days, int) or days <= 0:
            raise ValidationError("Days must be a positive whole number", days=days)
