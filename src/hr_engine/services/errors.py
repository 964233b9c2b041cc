"""Typed errors raised by the workflow services.

Every error carries a stable ``code`` and the HTTP status the API layer
renders it with. Services raise these and never log-and-swallow them.
"""

from __future__ import annotations

from datetime import date
from typing import Any
from uuid import UUID


class HREngineError(Exception):
    """Base class for all domain errors."""

    code = "HR_ERROR"
    http_status = 400

    def __init__(self, message: str, **context: Any):
        self.message = message
        self.context = context
        super().__init__(message)


class ValidationError(HREngineError):
    """Bad input shape or range."""

    code = "VALIDATION_ERROR"
    http_status = 422


class InvalidRangeError(ValidationError):
    """End date before start date."""

    code = "INVALID_RANGE"

    def __init__(self, start_date: date, end_date: date):
        self.start_date = start_date
        self.end_date = end_date
        super().__init__(f"End date {end_date} is before start date {start_date}")


class OverlapError(HREngineError):
    """A new range collides with an existing one."""

    code = "OVERLAP"
    http_status = 409


class NotFoundError(HREngineError):
    """Referenced entity does not exist."""

    code = "NOT_FOUND"
    http_status = 404

    def __init__(self, entity_type: str, entity_id: Any):
        self.entity_type = entity_type
        self.entity_id = entity_id
        super().__init__(f"{entity_type} {entity_id} not found")


class NotAuthorizedError(HREngineError):
    """Actor lacks authority for the attempted action."""

    code = "NOT_AUTHORIZED"
    http_status = 403


class StateConflictError(HREngineError):
    """Operation is not allowed in the entity's current state."""

    code = "STATE_CONFLICT"
    http_status = 409


class InvalidTransitionError(StateConflictError):
    """Raised when an invalid state transition is attempted."""

    code = "INVALID_TRANSITION"

    def __init__(self, from_status: str, to_status: str, reason: str | None = None):
        self.from_status = from_status
        self.to_status = to_status
        self.reason = reason
        msg = f"Invalid transition from '{from_status}' to '{to_status}'"
        if reason:
            msg += f": {reason}"
        super().__init__(msg)


class AlreadyGeneratingError(StateConflictError):
    """Another generation of the same payroll run won the race."""

    code = "ALREADY_GENERATING"

    def __init__(self, payroll_run_id: UUID):
        self.payroll_run_id = payroll_run_id
        super().__init__(f"Payroll run {payroll_run_id} is being generated concurrently")


class InsufficientBalanceError(HREngineError):
    """Debit exceeds the remaining leave balance."""

    code = "INSUFFICIENT_BALANCE"
    http_status = 409

    def __init__(self, leave_balance_id: UUID, requested: int, available: int):
        self.leave_balance_id = leave_balance_id
        self.requested = requested
        self.available = available
        super().__init__(
            f"Requested {requested} day(s) but only {available} remain on balance {leave_balance_id}"
        )


class DuplicateRunError(HREngineError):
    """A payroll run already exists for the company and period."""

    code = "DUPLICATE_RUN"
    http_status = 409

    def __init__(self, company_id: UUID, period: str):
        self.company_id = company_id
        self.period = period
        super().__init__(f"Payroll run for company {company_id} period {period} already exists")


class ClockSequenceError(HREngineError):
    """Clock event does not fit the employee's event sequence for the day."""

    code = "CLOCK_SEQUENCE"
    http_status = 409

    def __init__(self, employee_id: UUID, message: str):
        self.employee_id = employee_id
        super().__init__(message)


class DuplicateClockInError(ClockSequenceError):
    """CLOCK_IN while already clocked in."""

    code = "DUPLICATE_CLOCK_IN"

    def __init__(self, employee_id: UUID):
        super().__init__(employee_id, f"Employee {employee_id} is already clocked in")


class UnmatchedClockOutError(ClockSequenceError):
    """CLOCK_OUT without an open CLOCK_IN."""

    code = "UNMATCHED_CLOCK_OUT"

    def __init__(self, employee_id: UUID):
        super().__init__(employee_id, f"Employee {employee_id} is not clocked in")
