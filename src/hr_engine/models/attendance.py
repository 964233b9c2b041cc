"""Attendance log and timesheet models."""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from uuid import UUID, uuid4

from sqlalchemy import CheckConstraint, Date, DateTime, ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from hr_engine.models.base import Base, TimestampMixin

_MINUTES_PER_HOUR = Decimal(60)


class AttendanceLog(Base, TimestampMixin):
    """Append-only clock event. Corrections are new compensating rows."""

    __tablename__ = "attendance_log"

    attendance_log_id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    employee_id: Mapped[UUID] = mapped_column(
        ForeignKey("employee.employee_id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    event_time: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    event_type: Mapped[str] = mapped_column(String, nullable=False)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    source: Mapped[str] = mapped_column(String, nullable=False, default="web")

    __table_args__ = (
        CheckConstraint(
            "event_type IN ('CLOCK_IN', 'CLOCK_OUT')",
            name="attendance_log_type_check",
        ),
        CheckConstraint(
            "source IN ('web', 'kiosk', 'import', 'correction')",
            name="attendance_log_source_check",
        ),
    )


class Timesheet(Base, TimestampMixin):
    """Daily rollup derived from attendance logs."""

    __tablename__ = "timesheet"

    timesheet_id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    employee_id: Mapped[UUID] = mapped_column(
        ForeignKey("employee.employee_id", ondelete="RESTRICT"),
        nullable=False,
    )
    work_date: Mapped[date] = mapped_column(Date, nullable=False)
    work_minutes: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    overtime_minutes: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    status: Mapped[str] = mapped_column(String, nullable=False, default="DRAFT")
    posted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    approved_by_employee_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("employee.employee_id"),
        nullable=True,
    )
    approved_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        UniqueConstraint("employee_id", "work_date", name="timesheet_employee_date_unique"),
        CheckConstraint(
            "status IN ('DRAFT', 'POSTED', 'APPROVED')",
            name="timesheet_status_check",
        ),
        CheckConstraint(
            "work_minutes >= 0 AND overtime_minutes >= 0 AND overtime_minutes <= work_minutes",
            name="timesheet_minutes_check",
        ),
    )

    @property
    def work_hours(self) -> Decimal:
        return (Decimal(self.work_minutes) / _MINUTES_PER_HOUR).quantize(Decimal("0.01"))

    @property
    def overtime_hours(self) -> Decimal:
        return (Decimal(self.overtime_minutes) / _MINUTES_PER_HOUR).quantize(Decimal("0.01"))
