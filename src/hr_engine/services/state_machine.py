"""Status enums and transition tables for the HR workflows."""

from __future__ import annotations

from enum import Enum
from typing import ClassVar

from hr_engine.services.errors import InvalidTransitionError


class LeaveRequestStatus(str, Enum):
    """Leave request status values."""

    DRAFT = "DRAFT"
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
    CANCELED = "CANCELED"


class TimesheetStatus(str, Enum):
    """Timesheet status values."""

    DRAFT = "DRAFT"
    POSTED = "POSTED"
    APPROVED = "APPROVED"


class PayrollRunStatus(str, Enum):
    """Payroll run status values."""

    DRAFT = "DRAFT"
    LOCKED = "LOCKED"
    PAID = "PAID"


def status_value(status: str) -> str:
    """Plain string form of a status or status enum member."""
    return status.value if isinstance(status, Enum) else status


class StateMachine:
    """Transition table lookups shared by the workflow state machines."""

    VALID_TRANSITIONS: ClassVar[dict[str, list[str]]] = {}

    @classmethod
    def can_transition(cls, from_status: str, to_status: str) -> bool:
        """Check if a transition is valid."""
        allowed = cls.VALID_TRANSITIONS.get(from_status, [])
        return to_status in allowed

    @classmethod
    def validate_transition(cls, from_status: str, to_status: str) -> None:
        """Validate a transition, raising InvalidTransitionError if invalid."""
        if not cls.can_transition(from_status, to_status):
            raise InvalidTransitionError(status_value(from_status), status_value(to_status))

    @classmethod
    def get_next_statuses(cls, current_status: str) -> list[str]:
        """Get list of valid next statuses from current status."""
        return cls.VALID_TRANSITIONS.get(current_status, [])

    @classmethod
    def is_terminal(cls, status: str) -> bool:
        return not cls.VALID_TRANSITIONS.get(status)


class LeaveRequestStateMachine(StateMachine):
    """State machine for leave requests.

    Allowed transitions:
    - DRAFT → PENDING (submit)
    - PENDING → APPROVED | REJECTED (decision)
    - PENDING → CANCELED (requester withdraws)
    - APPROVED → CANCELED (administrative reversal, credits the balance)
    """

    VALID_TRANSITIONS = {
        LeaveRequestStatus.DRAFT: [LeaveRequestStatus.PENDING],
        LeaveRequestStatus.PENDING: [
            LeaveRequestStatus.APPROVED,
            LeaveRequestStatus.REJECTED,
            LeaveRequestStatus.CANCELED,
        ],
        LeaveRequestStatus.APPROVED: [LeaveRequestStatus.CANCELED],
        LeaveRequestStatus.REJECTED: [],
        LeaveRequestStatus.CANCELED: [],
    }

    # Requests that hold days on the calendar
    ACTIVE = {LeaveRequestStatus.PENDING, LeaveRequestStatus.APPROVED}

    @classmethod
    def is_reversal(cls, from_status: str, to_status: str) -> bool:
        """Check if this transition gives debited days back."""
        return from_status == LeaveRequestStatus.APPROVED and to_status == LeaveRequestStatus.CANCELED


class TimesheetStateMachine(StateMachine):
    """State machine for daily timesheets: DRAFT → POSTED → APPROVED."""

    VALID_TRANSITIONS = {
        TimesheetStatus.DRAFT: [TimesheetStatus.POSTED],
        TimesheetStatus.POSTED: [TimesheetStatus.APPROVED],
        TimesheetStatus.APPROVED: [],
    }

    # Statuses payroll generation reads hours from
    PAYABLE = {TimesheetStatus.POSTED, TimesheetStatus.APPROVED}

    @classmethod
    def can_recompute(cls, status: str) -> bool:
        """Only drafts may be rebuilt from attendance logs."""
        return status == TimesheetStatus.DRAFT


class PayrollRunStateMachine(StateMachine):
    """State machine for payroll runs.

    Allowed transitions:
    - DRAFT → LOCKED
    - LOCKED → PAID

    Nothing returns a run to DRAFT; corrections need a new run.
    """

    VALID_TRANSITIONS = {
        PayrollRunStatus.DRAFT: [PayrollRunStatus.LOCKED],
        PayrollRunStatus.LOCKED: [PayrollRunStatus.PAID],
        PayrollRunStatus.PAID: [],
    }

    # Statuses where payslips may be published
    PUBLISHABLE = {PayrollRunStatus.LOCKED, PayrollRunStatus.PAID}

    @classmethod
    def can_generate(cls, status: str) -> bool:
        """Check if item generation is allowed in this status."""
        return status == PayrollRunStatus.DRAFT
