"""Payroll run state machine with transition validation."""

from __future__ import annotations

from enum import Enum

from hrms_payroll.exceptions import ConflictError


class PayrollRunStatus(str, Enum):
    """Payroll run status values."""

    DRAFT = "draft"
    PROCESSING = "processing"
    COMPLETED = "completed"
    PAID = "paid"


class PayslipStatus(str, Enum):
    """Payslip status values."""

    DRAFT = "draft"
    FINALIZED = "finalized"
    PAID = "paid"


class InvalidTransitionError(ConflictError):
    """Raised when an invalid state transition is attempted."""

    code = "INVALID_TRANSITION"

    def __init__(self, from_status: str, to_status: str, reason: str | None = None):
        self.from_status = str(getattr(from_status, "value", from_status))
        self.to_status = str(getattr(to_status, "value", to_status))
        self.reason = reason
        msg = f"Invalid transition from '{self.from_status}' to '{self.to_status}'"
        if reason:
            msg += f": {reason}"
        super().__init__(msg, from_status=self.from_status, to_status=self.to_status)


class PayrollRunStateMachine:
    """State machine for payroll run status transitions.

    Allowed transitions:
    - draft → processing
    - processing → completed
    - processing → draft (administrative reset of a stuck run)
    - completed → paid (disbursement confirmation)
    """

    VALID_TRANSITIONS: dict[str, list[str]] = {
        PayrollRunStatus.DRAFT: [PayrollRunStatus.PROCESSING],
        PayrollRunStatus.PROCESSING: [PayrollRunStatus.COMPLETED, PayrollRunStatus.DRAFT],
        PayrollRunStatus.COMPLETED: [PayrollRunStatus.PAID],
        PayrollRunStatus.PAID: [],  # Terminal state
    }

    # A run in one of these states owns a final payslip set for its period
    FINISHED = {
        PayrollRunStatus.COMPLETED,
        PayrollRunStatus.PAID,
    }

    @classmethod
    def can_transition(cls, from_status: str, to_status: str) -> bool:
        """Check if a transition is valid."""
        allowed = cls.VALID_TRANSITIONS.get(from_status, [])
        return to_status in allowed

    @classmethod
    def validate_transition(cls, from_status: str, to_status: str) -> None:
        """Validate a transition, raising InvalidTransitionError if invalid."""
        if not cls.can_transition(from_status, to_status):
            allowed = [str(getattr(s, "value", s)) for s in cls.get_next_statuses(from_status)]
            reason = f"allowed: {', '.join(allowed)}" if allowed else "no further transitions"
            raise InvalidTransitionError(from_status, to_status, reason)

    @classmethod
    def is_finished(cls, status: str) -> bool:
        """Check if the run has produced its final payslips."""
        return status in cls.FINISHED

    @classmethod
    def is_reset(cls, from_status: str, to_status: str) -> bool:
        """Check if this transition is a reset (processing → draft)."""
        return from_status == PayrollRunStatus.PROCESSING and to_status == PayrollRunStatus.DRAFT

    @classmethod
    def get_next_statuses(cls, current_status: str) -> list[str]:
        """Get list of valid next statuses from current status."""
        return cls.VALID_TRANSITIONS.get(current_status, [])
