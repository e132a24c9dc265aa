"""Payroll services."""

from hrms_payroll.services.component_service import ComponentService, ComponentSpec
from hrms_payroll.services.payroll_service import PayrollOrchestrator, validate_period
from hrms_payroll.services.state_machine import (
    InvalidTransitionError,
    PayrollRunStateMachine,
    PayrollRunStatus,
    PayslipStatus,
)
from hrms_payroll.services.structure_service import SalaryStructureService

__all__ = [
    "ComponentService",
    "ComponentSpec",
    "PayrollOrchestrator",
    "validate_period",
    "InvalidTransitionError",
    "PayrollRunStateMachine",
    "PayrollRunStatus",
    "PayslipStatus",
    "SalaryStructureService",
]
