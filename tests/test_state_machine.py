"""Tests for payroll run state machine."""

import pytest

from hrms_payroll.exceptions import ConflictError
from hrms_payroll.services.state_machine import (
    InvalidTransitionError,
    PayrollRunStateMachine,
    PayrollRunStatus,
)


class TestPayrollRunStateMachine:
    """Test state machine transitions."""

    def test_valid_transitions(self):
        """Test that valid transitions are allowed."""
        assert PayrollRunStateMachine.can_transition("draft", "processing") is True
        assert PayrollRunStateMachine.can_transition("processing", "completed") is True
        # processing → draft (reset of a stuck run)
        assert PayrollRunStateMachine.can_transition("processing", "draft") is True
        assert PayrollRunStateMachine.can_transition("completed", "paid") is True

    def test_invalid_transitions(self):
        """Test that invalid transitions are blocked."""
        # Can't skip processing
        assert PayrollRunStateMachine.can_transition("draft", "completed") is False
        assert PayrollRunStateMachine.can_transition("draft", "paid") is False

        # Completed runs are never reopened
        assert PayrollRunStateMachine.can_transition("completed", "processing") is False
        assert PayrollRunStateMachine.can_transition("completed", "draft") is False

        # Paid is terminal
        assert PayrollRunStateMachine.can_transition("paid", "draft") is False
        assert PayrollRunStateMachine.can_transition("paid", "completed") is False

    def test_unknown_status_has_no_transitions(self):
        assert PayrollRunStateMachine.can_transition("voided", "draft") is False
        assert PayrollRunStateMachine.get_next_statuses("voided") == []

    def test_validate_transition_raises(self):
        """Test that validate_transition raises for invalid transitions."""
        with pytest.raises(InvalidTransitionError) as exc_info:
            PayrollRunStateMachine.validate_transition("completed", "processing")

        assert exc_info.value.from_status == "completed"
        assert exc_info.value.to_status == "processing"
        assert isinstance(exc_info.value, ConflictError)
        assert exc_info.value.code == "INVALID_TRANSITION"

    def test_rejection_lists_allowed_statuses(self):
        with pytest.raises(InvalidTransitionError) as exc_info:
            PayrollRunStateMachine.validate_transition("draft", "completed")
        assert exc_info.value.reason == "allowed: processing"

        with pytest.raises(InvalidTransitionError) as exc_info:
            PayrollRunStateMachine.validate_transition("paid", "draft")
        assert exc_info.value.reason == "no further transitions"

    def test_validate_transition_accepts_enum_members(self):
        PayrollRunStateMachine.validate_transition(
            PayrollRunStatus.DRAFT, PayrollRunStatus.PROCESSING
        )

    def test_is_reset(self):
        assert PayrollRunStateMachine.is_reset("processing", "draft") is True
        assert PayrollRunStateMachine.is_reset("draft", "processing") is False

    def test_is_finished(self):
        """Completed and paid runs own the period's payslips."""
        assert PayrollRunStateMachine.is_finished("completed") is True
        assert PayrollRunStateMachine.is_finished("paid") is True
        assert PayrollRunStateMachine.is_finished("processing") is False
        assert PayrollRunStateMachine.is_finished("draft") is False

    def test_get_next_statuses(self):
        assert PayrollRunStateMachine.get_next_statuses("draft") == ["processing"]
        assert set(PayrollRunStateMachine.get_next_statuses("processing")) == {
            "completed",
            "draft",
        }
        assert PayrollRunStateMachine.get_next_statuses("paid") == []
