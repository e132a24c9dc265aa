"""Payslip generator: evaluates an active salary structure."""

from __future__ import annotations

from decimal import Decimal
from typing import TYPE_CHECKING

from hrms_payroll.calculators.types import (
    ZERO,
    PayslipComputation,
    to_money,
)

if TYPE_CHECKING:
    from hrms_payroll.models import SalaryStructure

# Attendance is not wired into payroll: every payslip assumes a full month.
FULL_MONTH_WORKING_DAYS = 30
DEFAULT_LOP_DAYS = 0


class PayslipGenerator:
    """Computes gross, deductions and net pay from structure details.

    Detail amounts are snapshots fixed at assignment (percentages included),
    so evaluation is a straight sum with no re-resolution. Two components
    sharing a display name are summed under that name, which keeps every
    breakdown equal to its total.
    """

    def generate(self, structure: SalaryStructure) -> PayslipComputation:
        gross = ZERO
        deductions = ZERO
        earnings_breakdown: dict[str, Decimal] = {}
        deductions_breakdown: dict[str, Decimal] = {}

        for detail in structure.details:
            amount = to_money(detail.amount)
            component = detail.component

            if component.is_earning:
                gross += amount
                earnings_breakdown[component.name] = (
                    earnings_breakdown.get(component.name, ZERO) + amount
                )
            else:
                deductions += amount
                deductions_breakdown[component.name] = (
                    deductions_breakdown.get(component.name, ZERO) + amount
                )

        return PayslipComputation(
            employee_id=structure.employee_id,
            salary_structure_id=structure.id,
            gross_earnings=gross,
            total_deductions=deductions,
            earnings_breakdown=earnings_breakdown,
            deductions_breakdown=deductions_breakdown,
            working_days=FULL_MONTH_WORKING_DAYS,
            days_worked=FULL_MONTH_WORKING_DAYS,
            lop_days=DEFAULT_LOP_DAYS,
        )
