"""ORM models."""

from hrms_payroll.models.base import Base, TimestampMixin
from hrms_payroll.models.company import Company, Employee
from hrms_payroll.models.payroll import Payslip, PayrollRun
from hrms_payroll.models.salary import (
    SalaryComponent,
    SalaryStructure,
    SalaryStructureDetail,
)

__all__ = [
    "Base",
    "TimestampMixin",
    "Company",
    "Employee",
    "PayrollRun",
    "Payslip",
    "SalaryComponent",
    "SalaryStructure",
    "SalaryStructureDetail",
]
