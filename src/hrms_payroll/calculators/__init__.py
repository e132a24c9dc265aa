"""Payslip calculation."""

from hrms_payroll.calculators.payslip_generator import PayslipGenerator
from hrms_payroll.calculators.structure_resolver import StructureResolver
from hrms_payroll.calculators.types import (
    CalculationType,
    ComponentType,
    PayslipComputation,
    ResolvedLine,
    RunTotals,
    StructureLine,
)

__all__ = [
    "PayslipGenerator",
    "StructureResolver",
    "CalculationType",
    "ComponentType",
    "PayslipComputation",
    "ResolvedLine",
    "RunTotals",
    "StructureLine",
]
