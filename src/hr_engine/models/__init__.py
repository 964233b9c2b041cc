"""ORM models."""

from hr_engine.models.base import Base, TimestampMixin
from hr_engine.models.company import Company, Holiday, WorkSchedule
from hr_engine.models.employee import Employee, Employment
from hr_engine.models.leave import LeaveBalance, LeaveBalanceEntry, LeaveRequest, LeaveType
from hr_engine.models.attendance import AttendanceLog, Timesheet
from hr_engine.models.payroll import AuditEvent, PayrollItem, PayrollRun, Payslip

__all__ = [
    "Base",
    "TimestampMixin",
    "Company",
    "Holiday",
    "WorkSchedule",
    "Employee",
    "Employment",
    "LeaveType",
    "LeaveBalance",
    "LeaveBalanceEntry",
    "LeaveRequest",
    "AttendanceLog",
    "Timesheet",
    "PayrollRun",
    "PayrollItem",
    "Payslip",
    "AuditEvent",
]
