"""Company, work schedule and holiday models."""

from __future__ import annotations

from datetime import date, time
from typing import TYPE_CHECKING
from uuid import UUID, uuid4

from sqlalchemy import CheckConstraint, Date, ForeignKey, String, Time, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from hr_engine.models.base import Base, TimestampMixin

if TYPE_CHECKING:
    from hr_engine.models.employee import Employee


class Company(Base, TimestampMixin):
    """Company owning employees, leave types and payroll runs."""

    __tablename__ = "company"

    company_id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    name: Mapped[str] = mapped_column(String, nullable=False)
    currency: Mapped[str] = mapped_column(String(3), nullable=False, default="IDR")

    # Relationships
    employees: Mapped[list[Employee]] = relationship(back_populates="company")
    work_schedules: Mapped[list[WorkSchedule]] = relationship(back_populates="company")
    holidays: Mapped[list[Holiday]] = relationship(back_populates="company")


class WorkSchedule(Base, TimestampMixin):
    """Work schedule with a single daily shift."""

    __tablename__ = "work_schedule"

    work_schedule_id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    company_id: Mapped[UUID] = mapped_column(
        ForeignKey("company.company_id", ondelete="CASCADE"),
        nullable=False,
    )
    name: Mapped[str] = mapped_column(String, nullable=False)
    timezone: Mapped[str] = mapped_column(String, nullable=False, default="UTC")
    shift_start: Mapped[time] = mapped_column(Time, nullable=False)
    shift_end: Mapped[time] = mapped_column(Time, nullable=False)

    __table_args__ = (
        UniqueConstraint("company_id", "name", name="work_schedule_company_name_unique"),
        CheckConstraint("shift_end > shift_start", name="work_schedule_shift_check"),
    )

    # Relationships
    company: Mapped[Company] = relationship(back_populates="work_schedules")

    @property
    def shift_minutes(self) -> int:
        """Scheduled shift length in minutes."""
        start = self.shift_start.hour * 60 + self.shift_start.minute
        end = self.shift_end.hour * 60 + self.shift_end.minute
        return end - start


class Holiday(Base, TimestampMixin):
    """Company holiday excluded from business-day counts."""

    __tablename__ = "holiday"

    holiday_id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    company_id: Mapped[UUID] = mapped_column(
        ForeignKey("company.company_id", ondelete="CASCADE"),
        nullable=False,
    )
    holiday_date: Mapped[date] = mapped_column(Date, nullable=False)
    name: Mapped[str] = mapped_column(String, nullable=False)

    __table_args__ = (
        UniqueConstraint("company_id", "holiday_date", name="holiday_company_date_unique"),
    )

    # Relationships
    company: Mapped[Company] = relationship(back_populates="holidays")
