"""Pydantic schemas for API request/response models.

Request models forbid unknown fields so malformed bodies are rejected before
any domain logic runs. Money fields are decimals and serialize as strings.
"""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from hrms_payroll.calculators.types import CalculationType, ComponentType


class RequestModel(BaseModel):
    """Base for request bodies."""

    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)


# ============================================================================
# Payroll run schemas
# ============================================================================


class ProcessPayrollRequest(RequestModel):
    """Schema for starting a payroll run."""

    month: int = Field(ge=1, le=12)
    year: int = Field(ge=1900, le=9999)


class MarkPaidRequest(RequestModel):
    """Schema for confirming disbursement of a completed run."""

    payment_date: date
    payment_method: str | None = Field(default=None, max_length=50)


class PayrollRunResponse(BaseModel):
    """Schema for payroll run response."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    company_id: UUID
    month: int
    year: int
    status: str
    processed_by: UUID | None = None
    processed_at: datetime | None = None
    total_gross: Decimal
    total_deductions: Decimal
    total_net: Decimal
    employee_count: int


class PayrollRunListResponse(BaseModel):
    """Schema for listing payroll runs."""

    items: list[PayrollRunResponse]
    total: int


# ============================================================================
# Payslip schemas
# ============================================================================


class PayslipEmployee(BaseModel):
    """Employee identity shown alongside a payslip."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    employee_code: str
    full_name: str
    email: str | None = None


class PayslipResponse(BaseModel):
    """Schema for payslip response."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    company_id: UUID
    employee_id: UUID
    payroll_run_id: UUID
    salary_structure_id: UUID | None = None
    month: int
    year: int
    working_days: int
    days_worked: int
    lop_days: int
    gross_earnings: Decimal
    total_deductions: Decimal
    net_pay: Decimal
    status: str
    earnings_breakdown: dict[str, Decimal]
    deductions_breakdown: dict[str, Decimal]
    payment_date: date | None = None
    payment_method: str | None = None
    employee: PayslipEmployee


class PayslipListResponse(BaseModel):
    """Schema for listing payslips."""

    items: list[PayslipResponse]
    total: int


# ============================================================================
# Salary component schemas
# ============================================================================


class SalaryComponentCreate(RequestModel):
    """Schema for registering a salary component."""

    name: str = Field(min_length=1, max_length=100)
    code: str = Field(min_length=1, max_length=50)
    type: ComponentType
    calculation_type: CalculationType = CalculationType.FIXED
    percentage_of: str | None = Field(default=None, max_length=50)
    is_taxable: bool = True


class SalaryComponentResponse(BaseModel):
    """Schema for salary component response."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    company_id: UUID
    name: str
    code: str
    type: str
    calculation_type: str
    percentage_of: str | None = None
    is_taxable: bool
    is_active: bool


# ============================================================================
# Salary structure schemas
# ============================================================================


class StructureComponentInput(RequestModel):
    """One component line of a structure assignment.

    Percentage components may carry either a resolved ``amount`` or a
    ``percentage`` of their base component; the amount is fixed at assignment.
    """

    component_code: str = Field(min_length=1, max_length=50)
    amount: Decimal | None = Field(default=None, ge=0, max_digits=12, decimal_places=2)
    percentage: Decimal | None = Field(default=None, ge=0, max_digits=7, decimal_places=4)


class SalaryStructureCreate(RequestModel):
    """Schema for assigning a salary structure."""

    employee_id: UUID
    ctc: Decimal = Field(ge=0, max_digits=12, decimal_places=2)
    effective_from: date
    components: list[StructureComponentInput] = Field(min_length=1)


class SalaryStructureDetailResponse(BaseModel):
    """Schema for a structure line with its component."""

    id: UUID
    component_id: UUID
    component_code: str
    component_name: str
    component_type: str
    amount: Decimal
    percentage: Decimal | None = None

    @classmethod
    def from_detail(cls, detail: Any) -> SalaryStructureDetailResponse:
        return cls(
            id=detail.id,
            component_id=detail.salary_component_id,
            component_code=detail.component.code,
            component_name=detail.component.name,
            component_type=detail.component.type,
            amount=detail.amount,
            percentage=detail.percentage,
        )


class SalaryStructureResponse(BaseModel):
    """Schema for salary structure response."""

    id: UUID
    company_id: UUID
    employee_id: UUID
    ctc: Decimal
    effective_from: date
    is_active: bool
    details: list[SalaryStructureDetailResponse]

    @classmethod
    def from_structure(cls, structure: Any) -> SalaryStructureResponse:
        return cls(
            id=structure.id,
            company_id=structure.company_id,
            employee_id=structure.employee_id,
            ctc=structure.ctc,
            effective_from=structure.effective_from,
            is_active=structure.is_active,
            details=[SalaryStructureDetailResponse.from_detail(d) for d in structure.details],
        )


# ============================================================================
# Error schemas
# ============================================================================


class ErrorResponse(BaseModel):
    """Schema for error response."""

    detail: str
    code: str | None = None
    context: dict[str, Any] | None = None
