"""Typed exceptions for payroll operations.

Every exception carries a machine-readable ``code`` and the HTTP status the
API layer maps it to, so callers catch by type instead of parsing messages.

    PayrollError
    +-- ValidationError               400
    +-- NotFoundError                 404
    +-- ConflictError                 409
    |   +-- PayrollAlreadyProcessedError   400
    |   +-- InvalidTransitionError         409 (services.state_machine)
    +-- TransactionFailure            500
"""

from __future__ import annotations

from typing import Any


class PayrollError(Exception):
    """Base class for all payroll domain errors."""

    code: str = "PAYROLL_ERROR"
    http_status: int = 500

    def __init__(self, message: str, **context: Any):
        self.message = message
        self.context = context
        super().__init__(message)


class ValidationError(PayrollError):
    """Malformed or inconsistent input; user-correctable."""

    code = "VALIDATION_ERROR"
    http_status = 400


class NotFoundError(PayrollError):
    """A referenced employee, component, structure or run does not exist."""

    code = "NOT_FOUND"
    http_status = 404

    def __init__(self, entity: str, identifier: Any):
        self.entity = entity
        self.identifier = identifier
        super().__init__(f"{entity} {identifier} not found", entity=entity)


class ConflictError(PayrollError):
    """The request collides with existing state; nothing was mutated."""

    code = "CONFLICT"
    http_status = 409


class PayrollAlreadyProcessedError(ConflictError):
    """A completed run already exists for the period."""

    code = "ALREADY_PROCESSED"
    http_status = 400

    def __init__(self, month: int, year: int):
        self.month = month
        self.year = year
        super().__init__(
            f"Payroll already processed for {month:02d}/{year}",
            month=month,
            year=year,
        )


class TransactionFailure(PayrollError):
    """A persistence error aborted a multi-step operation; all work rolled back."""

    code = "TRANSACTION_FAILED"
    http_status = 500
