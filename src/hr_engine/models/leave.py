"""Leave type, balance ledger and leave request models."""

from __future__ import annotations

from datetime import date, datetime
from typing import TYPE_CHECKING
from uuid import UUID, uuid4

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from hr_engine.models.base import Base, TimestampMixin

if TYPE_CHECKING:
    from hr_engine.models.employee import Employee


class LeaveType(Base, TimestampMixin):
    """Company-scoped category of absence."""

    __tablename__ = "leave_type"

    leave_type_id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    company_id: Mapped[UUID] = mapped_column(
        ForeignKey("company.company_id", ondelete="RESTRICT"),
        nullable=False,
    )
    name: Mapped[str] = mapped_column(String, nullable=False)
    accrues: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    default_days: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    __table_args__ = (
        UniqueConstraint("company_id", "name", name="leave_type_company_name_unique"),
        CheckConstraint("default_days >= 0", name="leave_type_default_days_check"),
    )


class LeaveBalance(Base, TimestampMixin):
    """Ledger row keyed by (employee, leave type, period).

    Only the balance ledger service mutates ``balance_days``; every mutation
    bumps ``version`` and appends a ``LeaveBalanceEntry``.
    """

    __tablename__ = "leave_balance"

    leave_balance_id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    employee_id: Mapped[UUID] = mapped_column(
        ForeignKey("employee.employee_id", ondelete="RESTRICT"),
        nullable=False,
    )
    leave_type_id: Mapped[UUID] = mapped_column(
        ForeignKey("leave_type.leave_type_id", ondelete="RESTRICT"),
        nullable=False,
    )
    period_start: Mapped[date] = mapped_column(Date, nullable=False)
    period_end: Mapped[date] = mapped_column(Date, nullable=False)
    balance_days: Mapped[int] = mapped_column(Integer, nullable=False)
    version: Mapped[int] = mapped_column(Integer, nullable=False, default=1)

    __table_args__ = (
        UniqueConstraint(
            "employee_id",
            "leave_type_id",
            "period_start",
            name="leave_balance_period_unique",
        ),
        CheckConstraint("balance_days >= 0", name="leave_balance_non_negative"),
        CheckConstraint("period_end >= period_start", name="leave_balance_period_check"),
    )

    # Relationships
    employee: Mapped[Employee] = relationship()
    leave_type: Mapped[LeaveType] = relationship()

    def covers(self, start: date, end: date) -> bool:
        """Check if the whole range ``[start, end]`` falls in this period."""
        return self.period_start <= start and end <= self.period_end


class LeaveBalanceEntry(Base):
    """Append-only audit record of a balance mutation."""

    __tablename__ = "leave_balance_entry"

    leave_balance_entry_id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    leave_balance_id: Mapped[UUID] = mapped_column(
        ForeignKey("leave_balance.leave_balance_id", ondelete="RESTRICT"),
        nullable=False,
    )
    actor_employee_id: Mapped[UUID | None] = mapped_column(nullable=True)
    delta_days: Mapped[int] = mapped_column(Integer, nullable=False)
    resulting_days: Mapped[int] = mapped_column(Integer, nullable=False)
    reason: Mapped[str] = mapped_column(String, nullable=False)
    leave_request_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("leave_request.leave_request_id"),
        nullable=True,
    )
    recorded_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    __table_args__ = (
        CheckConstraint("resulting_days >= 0", name="leave_balance_entry_result_check"),
    )


class LeaveRequest(Base, TimestampMixin):
    """Leave request. Immutable once decided, except for cancellation."""

    __tablename__ = "leave_request"

    leave_request_id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    employee_id: Mapped[UUID] = mapped_column(
        ForeignKey("employee.employee_id", ondelete="RESTRICT"),
        nullable=False,
    )
    leave_type_id: Mapped[UUID] = mapped_column(
        ForeignKey("leave_type.leave_type_id", ondelete="RESTRICT"),
        nullable=False,
    )
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date] = mapped_column(Date, nullable=False)
    days: Mapped[int] = mapped_column(Integer, nullable=False)
    reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    status: Mapped[str] = mapped_column(String, nullable=False, default="DRAFT")
    approver_employee_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("employee.employee_id"),
        nullable=True,
    )
    decided_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    decision_note: Mapped[str | None] = mapped_column(Text, nullable=True)
    debited_balance_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("leave_balance.leave_balance_id"),
        nullable=True,
    )
    canceled_by_employee_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("employee.employee_id"),
        nullable=True,
    )
    canceled_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        CheckConstraint(
            "status IN ('DRAFT', 'PENDING', 'APPROVED', 'REJECTED', 'CANCELED')",
            name="leave_request_status_check",
        ),
        CheckConstraint("end_date >= start_date", name="leave_request_dates_check"),
        CheckConstraint("days > 0", name="leave_request_days_check"),
    )

    # Relationships
    employee: Mapped[Employee] = relationship(foreign_keys=[employee_id])
    leave_type: Mapped[LeaveType] = relationship()
