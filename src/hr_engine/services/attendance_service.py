"""Time and attendance aggregation: clock events to daily timesheets."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta
from uuid import UUID
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from sqlalchemy import Select, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from hr_engine.calculators.hours import CLOCK_IN, CLOCK_OUT, pair_clock_events, split_overtime
from hr_engine.config import Settings, get_settings
from hr_engine.models import AttendanceLog, Employee, Timesheet
from hr_engine.models.base import as_utc, utcnow
from hr_engine.services.audit import record_audit
from hr_engine.services.collaborators import ApprovalAuthority, RoleApprovalAuthority
from hr_engine.services.errors import (
    DuplicateClockInError,
    NotAuthorizedError,
    NotFoundError,
    StateConflictError,
    UnmatchedClockOutError,
    ValidationError,
)
from hr_engine.services.state_machine import TimesheetStateMachine, TimesheetStatus

logger = logging.getLogger(__name__)

EVENT_TYPES = (CLOCK_IN, CLOCK_OUT)
EVENT_SOURCES = ("web", "kiosk", "import", "correction")


@dataclass
class CloseDayResult:
    """Timesheet produced by closing a day, plus pairing warnings."""

    timesheet: Timesheet
    warnings: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class _WorkContext:
    employee: Employee
    zone: ZoneInfo
    shift_minutes: int


class AttendanceAggregator:
    """Service turning append-only clock events into daily timesheets.

    The employee's calendar day is taken in the work schedule's timezone;
    without a schedule the configured default timezone and shift length apply.
    """

    def __init__(
        self,
        session: AsyncSession,
        authority: ApprovalAuthority | None = None,
        settings: Settings | None = None,
    ):
        self.session = session
        self.authority = authority or RoleApprovalAuthority(session)
        self.settings = settings or get_settings()

    async def record_event(
        self,
        employee_id: UUID,
        event_type: str,
        timestamp: datetime,
        notes: str | None = None,
        source: str = "web",
    ) -> AttendanceLog:
        """Append a clock event.

        Naive timestamps are taken as UTC.

        Raises:
            DuplicateClockInError: CLOCK_IN while the day already has an open CLOCK_IN
            UnmatchedClockOutError: CLOCK_OUT without an open CLOCK_IN
            ValidationError: Unknown type/source, retired employee, or an event
                older than the day's latest event
        """
        if event_type not in EVENT_TYPES:
            raise ValidationError(f"Unknown clock event type '{event_type}'")
        if source not in EVENT_SOURCES:
            raise ValidationError(f"Unknown clock event source '{source}'")

        # Serializes clock events per employee so the sequence check below holds
        ctx = await self._context(employee_id, lock=True)
        event_time = as_utc(timestamp)
        local_day = event_time.astimezone(ctx.zone).date()
        if not ctx.employee.is_active_on(local_day):
            raise ValidationError(f"Employee {employee_id} is not active on {local_day}")

        start, end = self._day_bounds(local_day, ctx.zone)
        result = await self.session.execute(
            select(AttendanceLog)
            .where(
                AttendanceLog.employee_id == employee_id,
                AttendanceLog.event_time >= start,
                AttendanceLog.event_time < end,
            )
            .order_by(AttendanceLog.event_time.desc())
            .limit(1)
        )
        latest = result.scalar_one_or_none()

        if latest is not None and as_utc(latest.event_time) > event_time:
            raise ValidationError(
                f"Clock event at {event_time.isoformat()} is older than the latest "
                f"event of the day ({as_utc(latest.event_time).isoformat()})"
            )
        clocked_in = latest is not None and latest.event_type == CLOCK_IN
        if event_type == CLOCK_IN and clocked_in:
            raise DuplicateClockInError(employee_id)
        if event_type == CLOCK_OUT and not clocked_in:
            raise UnmatchedClockOutError(employee_id)

        log = AttendanceLog(
            employee_id=employee_id,
            event_time=event_time,
            event_type=event_type,
            notes=notes,
            source=source,
        )
        self.session.add(log)
        await self.session.flush()

        logger.info("Recorded %s for employee %s at %s", event_type, employee_id, event_time)
        return log

    async def close_day(self, employee_id: UUID, work_date: date) -> CloseDayResult:
        """Rebuild the DRAFT timesheet for a day from its clock events.

        A trailing CLOCK_IN with no CLOCK_OUT is reported as an ``openEntry``
        warning and left out of the hours.

        Raises:
            StateConflictError: If the day's timesheet is already POSTED or APPROVED
        """
        ctx = await self._context(employee_id)
        start, end = self._day_bounds(work_date, ctx.zone)

        result = await self.session.execute(
            select(AttendanceLog.event_time, AttendanceLog.event_type)
            .where(
                AttendanceLog.employee_id == employee_id,
                AttendanceLog.event_time >= start,
                AttendanceLog.event_time < end,
            )
            .order_by(AttendanceLog.event_time)
        )
        pairing = pair_clock_events(
            (as_utc(event_time), event_type) for event_time, event_type in result.all()
        )
        worked = pairing.worked_minutes
        overtime = split_overtime(worked, ctx.shift_minutes)

        timesheet = await self._find_timesheet(employee_id, work_date)
        if timesheet is None:
            timesheet = Timesheet(
                employee_id=employee_id,
                work_date=work_date,
                status=TimesheetStatus.DRAFT.value,
            )
            self.session.add(timesheet)
        elif not TimesheetStateMachine.can_recompute(timesheet.status):
            raise StateConflictError(
                f"Timesheet for {work_date} is {timesheet.status} and cannot be recomputed",
                timesheet_id=timesheet.timesheet_id,
            )

        timesheet.work_minutes = worked
        timesheet.overtime_minutes = overtime
        await self.session.flush()

        if pairing.warnings:
            logger.warning(
                "Closed %s for employee %s with warnings: %s",
                work_date,
                employee_id,
                ", ".join(pairing.warnings),
            )
        return CloseDayResult(timesheet=timesheet, warnings=list(pairing.warnings))

    async def post_timesheet(self, employee_id: UUID, work_date: date) -> Timesheet:
        """DRAFT → POSTED, making the day payable.

        Raises:
            NotFoundError: If the day was never closed
            ValidationError: If no hours were recorded
            InvalidTransitionError: If the timesheet is not DRAFT
        """
        timesheet = await self.get_timesheet(employee_id, work_date)
        TimesheetStateMachine.validate_transition(timesheet.status, TimesheetStatus.POSTED)
        if timesheet.work_minutes <= 0:
            raise ValidationError(f"Timesheet for {work_date} has no recorded hours")

        timesheet.status = TimesheetStatus.POSTED.value
        timesheet.posted_at = utcnow()
        await self.session.flush()

        await record_audit(
            self.session,
            entity_type="timesheet",
            entity_id=timesheet.timesheet_id,
            action="posted",
            details={"work_minutes": timesheet.work_minutes},
        )
        return timesheet

    async def approve_timesheet(
        self,
        employee_id: UUID,
        work_date: date,
        approver_id: UUID,
    ) -> Timesheet:
        """POSTED → APPROVED by someone with authority over the employee."""
        timesheet = await self.get_timesheet(employee_id, work_date)
        TimesheetStateMachine.validate_transition(timesheet.status, TimesheetStatus.APPROVED)
        if not await self.authority.has_approval_authority(approver_id, employee_id):
            raise NotAuthorizedError(
                f"Employee {approver_id} has no approval authority over {employee_id}",
                actor_id=approver_id,
                employee_id=employee_id,
            )

        timesheet.status = TimesheetStatus.APPROVED.value
        timesheet.approved_by_employee_id = approver_id
        timesheet.approved_at = utcnow()
        await self.session.flush()

        await record_audit(
            self.session,
            entity_type="timesheet",
            entity_id=timesheet.timesheet_id,
            action="approved",
            actor_id=approver_id,
        )
        return timesheet

    async def get_timesheet(self, employee_id: UUID, work_date: date) -> Timesheet:
        timesheet = await self._find_timesheet(employee_id, work_date)
        if timesheet is None:
            raise NotFoundError("Timesheet", f"(employee={employee_id}, date={work_date})")
        return timesheet

    async def _find_timesheet(self, employee_id: UUID, work_date: date) -> Timesheet | None:
        result = await self.session.execute(
            select(Timesheet).where(
                Timesheet.employee_id == employee_id,
                Timesheet.work_date == work_date,
            )
        )
        return result.scalar_one_or_none()

    @staticmethod
    def _employee_query(employee_id: UUID, lock: bool = False) -> Select:
        stmt = (
            select(Employee)
            .where(Employee.employee_id == employee_id)
            .options(selectinload(Employee.work_schedule))
        )
        if lock:
            stmt = stmt.with_for_update().execution_options(populate_existing=True)
        return stmt

    async def _context(self, employee_id: UUID, lock: bool = False) -> _WorkContext:
        result = await self.session.execute(self._employee_query(employee_id, lock))
        employee = result.scalar_one_or_none()
        if employee is None:
            raise NotFoundError("Employee", employee_id)

        schedule = employee.work_schedule
        zone_name = schedule.timezone if schedule is not None else self.settings.default_timezone
        try:
            zone = ZoneInfo(zone_name)
        except ZoneInfoNotFoundError as e:
            raise ValidationError(f"Unknown timezone '{zone_name}'") from e

        if schedule is not None:
            shift_minutes = schedule.shift_minutes
        else:
            shift_minutes = int(self.settings.default_shift_hours * 60)
        return _WorkContext(employee=employee, zone=zone, shift_minutes=shift_minutes)

    @staticmethod
    def _day_bounds(day: date, zone: ZoneInfo) -> tuple[datetime, datetime]:
        """UTC bounds of a local calendar day, half-open."""
        start = datetime.combine(day, time.min, tzinfo=zone)
        end = datetime.combine(day + timedelta(days=1), time.min, tzinfo=zone)
        return as_utc(start), as_utc(end)
