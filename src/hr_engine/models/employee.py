"""Employee and employment models."""

from __future__ import annotations

from datetime import date
from typing import TYPE_CHECKING
from uuid import UUID, uuid4

from sqlalchemy import BigInteger, CheckConstraint, Date, ForeignKey, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from hr_engine.models.base import Base, TimestampMixin

if TYPE_CHECKING:
    from hr_engine.models.company import Company, WorkSchedule


class Employee(Base, TimestampMixin):
    """Employee record.

    Employees are never deleted once they have history; they are retired by
    setting ``end_date``. ``manager_employee_id`` is a plain back-reference,
    the manager does not own its reports.
    """

    __tablename__ = "employee"

    employee_id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    company_id: Mapped[UUID] = mapped_column(
        ForeignKey("company.company_id", ondelete="RESTRICT"),
        nullable=False,
    )
    first_name: Mapped[str] = mapped_column(String, nullable=False)
    last_name: Mapped[str] = mapped_column(String, nullable=False)
    email: Mapped[str] = mapped_column(String, nullable=False)
    department: Mapped[str | None] = mapped_column(String, nullable=True)
    job_title: Mapped[str | None] = mapped_column(String, nullable=True)
    job_level: Mapped[str | None] = mapped_column(String, nullable=True)
    role: Mapped[str] = mapped_column(String, nullable=False, default="EMPLOYEE")
    manager_employee_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("employee.employee_id", ondelete="SET NULL"),
        nullable=True,
    )
    work_schedule_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("work_schedule.work_schedule_id"),
        nullable=True,
    )
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date | None] = mapped_column(Date, nullable=True)

    __table_args__ = (
        UniqueConstraint("company_id", "email", name="employee_company_email_unique"),
        CheckConstraint(
            "role IN ('ADMIN', 'HR', 'MANAGER', 'EMPLOYEE')",
            name="employee_role_check",
        ),
        CheckConstraint(
            "end_date IS NULL OR end_date >= start_date",
            name="employee_dates_check",
        ),
    )

    # Relationships
    company: Mapped[Company] = relationship(back_populates="employees")
    work_schedule: Mapped[WorkSchedule | None] = relationship()
    manager: Mapped[Employee | None] = relationship(remote_side=[employee_id])
    employments: Mapped[list[Employment]] = relationship(back_populates="employee")

    @property
    def full_name(self) -> str:
        """Get full name."""
        return f"{self.first_name} {self.last_name}"

    def is_active_on(self, as_of_date: date) -> bool:
        """Check if the employee is not retired on a given date."""
        if self.start_date > as_of_date:
            return False
        return self.end_date is None or self.end_date >= as_of_date


class Employment(Base, TimestampMixin):
    """Employment contract. Superseded by a new row, never edited in place."""

    __tablename__ = "employment"

    employment_id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    employee_id: Mapped[UUID] = mapped_column(
        ForeignKey("employee.employee_id", ondelete="RESTRICT"),
        nullable=False,
    )
    employment_type: Mapped[str] = mapped_column(String, nullable=False, default="FULLTIME")
    base_salary: Mapped[int] = mapped_column(BigInteger, nullable=False)
    pay_schedule: Mapped[str] = mapped_column(String, nullable=False, default="MONTHLY")
    bank_account: Mapped[str | None] = mapped_column(String, nullable=True)
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date | None] = mapped_column(Date, nullable=True)

    __table_args__ = (
        CheckConstraint(
            "employment_type IN ('FULLTIME', 'PARTTIME', 'CONTRACT')",
            name="employment_type_check",
        ),
        CheckConstraint("pay_schedule IN ('MONTHLY')", name="employment_pay_schedule_check"),
        CheckConstraint("base_salary >= 0", name="employment_base_salary_check"),
        CheckConstraint(
            "end_date IS NULL OR end_date >= start_date",
            name="employment_dates_check",
        ),
    )

    # Relationships
    employee: Mapped[Employee] = relationship(back_populates="employments")

    def is_active_on(self, as_of_date: date) -> bool:
        """Check if employment is active on a given date."""
        if self.start_date > as_of_date:
            return False
        if self.end_date is not None and self.end_date < as_of_date:
            return False
        return True

    def overlaps(self, start: date, end: date) -> bool:
        """Check if employment is active on any day of ``[start, end]``."""
        if self.start_date > end:
            return False
        return self.end_date is None or self.end_date >= start
