"""Tests for the workflow state machines."""

import pytest

from hr_engine.services.errors import InvalidTransitionError
from hr_engine.services.state_machine import (
    LeaveRequestStateMachine,
    LeaveRequestStatus,
    PayrollRunStateMachine,
    PayrollRunStatus,
    TimesheetStateMachine,
    TimesheetStatus,
)


class TestLeaveRequestStateMachine:
    """Test leave request transitions."""

    def test_valid_transitions(self):
        assert LeaveRequestStateMachine.can_transition("DRAFT", "PENDING") is True
        assert LeaveRequestStateMachine.can_transition("PENDING", "APPROVED") is True
        assert LeaveRequestStateMachine.can_transition("PENDING", "REJECTED") is True
        assert LeaveRequestStateMachine.can_transition("PENDING", "CANCELED") is True
        assert LeaveRequestStateMachine.can_transition("APPROVED", "CANCELED") is True

    def test_invalid_transitions(self):
        # Drafts must be submitted before a decision
        assert LeaveRequestStateMachine.can_transition("DRAFT", "APPROVED") is False
        assert LeaveRequestStateMachine.can_transition("DRAFT", "CANCELED") is False

        # Decisions are final
        assert LeaveRequestStateMachine.can_transition("APPROVED", "REJECTED") is False
        assert LeaveRequestStateMachine.can_transition("REJECTED", "APPROVED") is False
        assert LeaveRequestStateMachine.can_transition("CANCELED", "PENDING") is False

    def test_validate_transition_raises(self):
        with pytest.raises(InvalidTransitionError) as exc_info:
            LeaveRequestStateMachine.validate_transition("REJECTED", LeaveRequestStatus.APPROVED)

        assert exc_info.value.from_status == "REJECTED"
        assert exc_info.value.to_status == "APPROVED"
        assert "REJECTED" in str(exc_info.value)

    def test_is_reversal(self):
        assert LeaveRequestStateMachine.is_reversal("APPROVED", "CANCELED") is True
        assert LeaveRequestStateMachine.is_reversal("PENDING", "CANCELED") is False

    def test_terminal_statuses(self):
        assert LeaveRequestStateMachine.is_terminal("REJECTED") is True
        assert LeaveRequestStateMachine.is_terminal("CANCELED") is True
        assert LeaveRequestStateMachine.is_terminal("APPROVED") is False

    def test_active_statuses_hold_calendar_days(self):
        assert "PENDING" in LeaveRequestStateMachine.ACTIVE
        assert "APPROVED" in LeaveRequestStateMachine.ACTIVE
        assert "DRAFT" not in LeaveRequestStateMachine.ACTIVE


class TestTimesheetStateMachine:
    """Test timesheet transitions."""

    def test_linear_flow(self):
        assert TimesheetStateMachine.can_transition("DRAFT", "POSTED") is True
        assert TimesheetStateMachine.can_transition("POSTED", "APPROVED") is True
        assert TimesheetStateMachine.can_transition("DRAFT", "APPROVED") is False
        assert TimesheetStateMachine.can_transition("POSTED", "DRAFT") is False

    def test_only_drafts_recompute(self):
        assert TimesheetStateMachine.can_recompute(TimesheetStatus.DRAFT.value) is True
        assert TimesheetStateMachine.can_recompute(TimesheetStatus.POSTED.value) is False
        assert TimesheetStateMachine.can_recompute(TimesheetStatus.APPROVED.value) is False


class TestPayrollRunStateMachine:
    """Test payroll run transitions."""

    def test_valid_transitions(self):
        assert PayrollRunStateMachine.can_transition("DRAFT", "LOCKED") is True
        assert PayrollRunStateMachine.can_transition("LOCKED", "PAID") is True

    def test_no_way_back(self):
        assert PayrollRunStateMachine.can_transition("LOCKED", "DRAFT") is False
        assert PayrollRunStateMachine.can_transition("PAID", "LOCKED") is False
        assert PayrollRunStateMachine.can_transition("DRAFT", "PAID") is False

    def test_get_next_statuses(self):
        assert PayrollRunStateMachine.get_next_statuses("DRAFT") == [PayrollRunStatus.LOCKED]
        assert PayrollRunStateMachine.get_next_statuses("PAID") == []

    def test_generation_only_in_draft(self):
        assert PayrollRunStateMachine.can_generate("DRAFT") is True
        assert PayrollRunStateMachine.can_generate("LOCKED") is False
        assert PayrollRunStateMachine.can_generate("PAID") is False
