"""HR engine services."""

from hr_engine.services.attendance_service import AttendanceAggregator, CloseDayResult
from hr_engine.services.employee_service import EmployeeService
from hr_engine.services.errors import (
    AlreadyGeneratingError,
    ClockSequenceError,
    DuplicateClockInError,
    DuplicateRunError,
    HREngineError,
    InsufficientBalanceError,
    InvalidRangeError,
    InvalidTransitionError,
    NotAuthorizedError,
    NotFoundError,
    OverlapError,
    StateConflictError,
    UnmatchedClockOutError,
    ValidationError,
)
from hr_engine.services.leave_service import LeaveRequestInput, LeaveRequestWorkflow
from hr_engine.services.ledger_service import BalanceLedger
from hr_engine.services.payroll_run_service import GenerationResult, PayrollRunWorkflow
from hr_engine.services.state_machine import (
    LeaveRequestStateMachine,
    LeaveRequestStatus,
    PayrollRunStateMachine,
    PayrollRunStatus,
    TimesheetStateMachine,
    TimesheetStatus,
)

__all__ = [
    "AttendanceAggregator",
    "CloseDayResult",
    "EmployeeService",
    "BalanceLedger",
    "LeaveRequestInput",
    "LeaveRequestWorkflow",
    "GenerationResult",
    "PayrollRunWorkflow",
    "LeaveRequestStateMachine",
    "LeaveRequestStatus",
    "TimesheetStateMachine",
    "TimesheetStatus",
    "PayrollRunStateMachine",
    "PayrollRunStatus",
    "HREngineError",
    "ValidationError",
    "InvalidRangeError",
    "OverlapError",
    "NotFoundError",
    "NotAuthorizedError",
    "StateConflictError",
    "InvalidTransitionError",
    "AlreadyGeneratingError",
    "InsufficientBalanceError",
    "DuplicateRunError",
    "ClockSequenceError",
    "DuplicateClockInError",
    "UnmatchedClockOutError",
]
