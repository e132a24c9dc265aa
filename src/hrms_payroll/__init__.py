"""HRMS payroll core: salary structures, payroll runs and payslips."""

__version__ = "0.1.0"
