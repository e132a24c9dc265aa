"""Type definitions for the payslip calculation pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum
from uuid import UUID

CENT = Decimal("0.01")
ZERO = Decimal("0.00")
# Largest value a NUMERIC(12, 2) structure column holds
MAX_STRUCTURE_AMOUNT = Decimal("9999999999.99")
MAX_PERCENTAGE = Decimal("999.9999")


def to_money(value: Decimal | int | str) -> Decimal:
    """Quantize a value to currency precision (half-up)."""
    return Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


class ComponentType(str, Enum):
    """Salary component kinds."""

    EARNING = "earning"
    DEDUCTION = "deduction"


class CalculationType(str, Enum):
    """How a component's amount is derived at assignment time."""

    FIXED = "fixed"
    PERCENTAGE = "percentage"


@dataclass
class StructureLine:
    """A requested component line for a new salary structure."""

    component_code: str
    amount: Decimal | None = None
    percentage: Decimal | None = None


@dataclass
class ResolvedLine:
    """A structure line with its snapshot amount fixed."""

    component_code: str
    amount: Decimal
    percentage: Decimal | None = None


@dataclass
class PayslipComputation:
    """Result of evaluating one employee's active salary structure."""

    employee_id: UUID
    salary_structure_id: UUID
    gross_earnings: Decimal = ZERO
    total_deductions: Decimal = ZERO
    earnings_breakdown: dict[str, Decimal] = field(default_factory=dict)
    deductions_breakdown: dict[str, Decimal] = field(default_factory=dict)
    working_days: int = 30
    days_worked: int = 30
    lop_days: int = 0

    @property
    def net_pay(self) -> Decimal:
        return self.gross_earnings - self.total_deductions

    def breakdown_json(self) -> tuple[dict[str, str], dict[str, str]]:
        """Breakdowns with decimal-string values for JSON storage."""
        return (
            {name: str(amount) for name, amount in self.earnings_breakdown.items()},
            {name: str(amount) for name, amount in self.deductions_breakdown.items()},
        )


@dataclass
class RunTotals:
    """Running aggregates for a payroll run."""

    total_gross: Decimal = ZERO
    total_deductions: Decimal = ZERO
    total_net: Decimal = ZERO
    employee_count: int = 0

    def add(self, computation: PayslipComputation) -> None:
        self.total_gross += computation.gross_earnings
        self.total_deductions += computation.total_deductions
        self.total_net += computation.net_pay
        self.employee_count += 1
