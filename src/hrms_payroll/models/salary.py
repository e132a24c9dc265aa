"""Salary component registry and salary structure models."""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import TYPE_CHECKING
from uuid import UUID

from sqlalchemy import (
    CheckConstraint,
    Date,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    UniqueConstraint,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from hrms_payroll.models.base import Base, TimestampMixin, uuid_pk

if TYPE_CHECKING:
    from hrms_payroll.models.company import Employee


class SalaryComponent(Base, TimestampMixin):
    """Earning or deduction line item definition, scoped to a company.

    Deactivated, never deleted; historical payslips refer to them by name.
    """

    __tablename__ = "salary_component"

    id: Mapped[UUID] = uuid_pk()
    company_id: Mapped[UUID] = mapped_column(
        ForeignKey("company.id", ondelete="CASCADE"),
        nullable=False,
    )
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    code: Mapped[str] = mapped_column(String(50), nullable=False)
    type: Mapped[str] = mapped_column(String(20), nullable=False)
    calculation_type: Mapped[str] = mapped_column(
        String(20), nullable=False, default="fixed"
    )
    percentage_of: Mapped[str | None] = mapped_column(String(50), nullable=True)
    is_taxable: Mapped[bool] = mapped_column(default=True, nullable=False)
    is_active: Mapped[bool] = mapped_column(default=True, nullable=False)

    __table_args__ = (
        UniqueConstraint("company_id", "code", name="salary_component_company_code_unique"),
        CheckConstraint(
            "type IN ('earning', 'deduction')",
            name="salary_component_type_check",
        ),
        CheckConstraint(
            "calculation_type IN ('fixed', 'percentage')",
            name="salary_component_calculation_type_check",
        ),
        CheckConstraint(
            "calculation_type = 'percentage' OR percentage_of IS NULL",
            name="salary_component_percentage_of_check",
        ),
    )

    @property
    def is_earning(self) -> bool:
        return self.type == "earning"

    @property
    def is_percentage(self) -> bool:
        return self.calculation_type == "percentage"


class SalaryStructure(Base, TimestampMixin):
    """Versioned salary assignment for one employee.

    At most one row per employee has ``is_active`` set; the partial unique
    index closes the race between two concurrent assignments.
    """

    __tablename__ = "salary_structure"

    id: Mapped[UUID] = uuid_pk()
    company_id: Mapped[UUID] = mapped_column(
        ForeignKey("company.id", ondelete="CASCADE"),
        nullable=False,
    )
    employee_id: Mapped[UUID] = mapped_column(
        ForeignKey("employee.id", ondelete="CASCADE"),
        nullable=False,
    )
    ctc: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    effective_from: Mapped[date] = mapped_column(Date, nullable=False)
    is_active: Mapped[bool] = mapped_column(default=True, nullable=False)

    __table_args__ = (
        CheckConstraint("ctc >= 0", name="salary_structure_ctc_check"),
        Index(
            "salary_structure_one_active_per_employee",
            "employee_id",
            unique=True,
            postgresql_where=text("is_active"),
            sqlite_where=text("is_active"),
        ),
        Index("salary_structure_company_employee_idx", "company_id", "employee_id"),
    )

    employee: Mapped[Employee] = relationship(back_populates="salary_structures")
    details: Mapped[list[SalaryStructureDetail]] = relationship(
        back_populates="salary_structure",
        order_by="SalaryStructureDetail.sort_order",
        cascade="all, delete-orphan",
    )


class SalaryStructureDetail(Base, TimestampMixin):
    """One component line of a salary structure.

    ``amount`` is a snapshot: for percentage components it holds the value
    resolved when the structure was assigned, and payroll runs use it as-is.
    ``percentage`` records the rate it was resolved from, when one was given.
    """

    __tablename__ = "salary_structure_detail"

    id: Mapped[UUID] = uuid_pk()
    salary_structure_id: Mapped[UUID] = mapped_column(
        ForeignKey("salary_structure.id", ondelete="CASCADE"),
        nullable=False,
    )
    salary_component_id: Mapped[UUID] = mapped_column(
        ForeignKey("salary_component.id", ondelete="RESTRICT"),
        nullable=False,
    )
    amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    percentage: Mapped[Decimal | None] = mapped_column(Numeric(7, 4), nullable=True)
    sort_order: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    __table_args__ = (
        UniqueConstraint(
            "salary_structure_id",
            "salary_component_id",
            name="salary_structure_detail_component_unique",
        ),
        CheckConstraint("amount >= 0", name="salary_structure_detail_amount_check"),
    )

    salary_structure: Mapped[SalaryStructure] = relationship(back_populates="details")
    component: Mapped[SalaryComponent] = relationship(lazy="joined")
