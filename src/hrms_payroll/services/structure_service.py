"""Salary structure assignment and lookup."""

from __future__ import annotations

import logging
from datetime import date
from decimal import Decimal
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from hrms_payroll.calculators.structure_resolver import StructureResolver
from hrms_payroll.calculators.types import MAX_STRUCTURE_AMOUNT, StructureLine, to_money
from hrms_payroll.exceptions import ConflictError, NotFoundError, ValidationError
from hrms_payroll.models import (
    Employee,
    SalaryStructure,
    SalaryStructureDetail,
)
from hrms_payroll.services.component_service import ComponentService

logger = logging.getLogger(__name__)


class SalaryStructureService:
    """Service for assigning versioned salary structures.

    Assignment runs inside the caller's transaction:
    1. Lock the employee row (serializes assignments per employee)
    2. Deactivate the currently active structure
    3. Insert the new active structure
    4. Insert one detail per component with its resolve-once amount

    The partial unique index on active structures backs up step 1 on
    databases without row locks.
    """

    def __init__(self, session: AsyncSession):
        self.session = session
        self.component_service = ComponentService(session)

    async def assign(
        self,
        company_id: UUID,
        employee_id: UUID,
        ctc: Decimal,
        effective_from: date,
        lines: list[StructureLine],
    ) -> SalaryStructure:
        """Assign a new active structure, superseding the previous one.

        Raises:
            NotFoundError: employee or a component code is unknown
            ValidationError: malformed component lines or negative ctc
            ConflictError: a concurrent assignment won the race
        """
        if ctc < 0:
            raise ValidationError("ctc cannot be negative", employee_id=str(employee_id))
        if to_money(ctc) > MAX_STRUCTURE_AMOUNT:
            raise ValidationError(
                f"ctc exceeds the maximum {MAX_STRUCTURE_AMOUNT}",
                employee_id=str(employee_id),
            )

        await self._lock_employee(company_id, employee_id)

        codes = [line.component_code for line in lines]
        components = await self.component_service.get_by_codes(company_id, codes)
        resolved = StructureResolver(components).resolve(lines)

        superseded = await self.session.execute(
            update(SalaryStructure)
            .where(
                SalaryStructure.employee_id == employee_id,
                SalaryStructure.is_active.is_(True),
            )
            .values(is_active=False)
        )

        structure = SalaryStructure(
            company_id=company_id,
            employee_id=employee_id,
            ctc=to_money(ctc),
            effective_from=effective_from,
            is_active=True,
        )
        structure.details = [
            SalaryStructureDetail(
                salary_component_id=components[line.component_code].id,
                component=components[line.component_code],
                amount=line.amount,
                percentage=line.percentage,
                sort_order=position,
            )
            for position, line in enumerate(resolved)
        ]
        self.session.add(structure)

        try:
            await self.session.flush()
        except IntegrityError as exc:
            raise ConflictError(
                f"Employee {employee_id} already has an active salary structure",
                employee_id=str(employee_id),
            ) from exc

        logger.info(
            "Assigned salary structure %s to employee %s (superseded %d)",
            structure.id,
            employee_id,
            superseded.rowcount or 0,
        )
        return structure

    async def get_active(self, company_id: UUID, employee_id: UUID) -> SalaryStructure:
        result = await self.session.execute(
            select(SalaryStructure)
            .where(
                SalaryStructure.company_id == company_id,
                SalaryStructure.employee_id == employee_id,
                SalaryStructure.is_active.is_(True),
            )
            .options(selectinload(SalaryStructure.details))
        )
        structure = result.scalar_one_or_none()
        if structure is None:
            raise NotFoundError("Active salary structure for employee", employee_id)
        return structure

    async def list_history(
        self, company_id: UUID, employee_id: UUID
    ) -> list[SalaryStructure]:
        """All structures for an employee, newest first."""
        await self._get_employee(company_id, employee_id)
        result = await self.session.execute(
            select(SalaryStructure)
            .where(
                SalaryStructure.company_id == company_id,
                SalaryStructure.employee_id == employee_id,
            )
            .options(selectinload(SalaryStructure.details))
            .order_by(
                SalaryStructure.effective_from.desc(),
                SalaryStructure.created_at.desc(),
            )
        )
        return list(result.scalars().all())

    async def _get_employee(self, company_id: UUID, employee_id: UUID) -> Employee:
        employee = await self.session.get(Employee, employee_id)
        if employee is None or employee.company_id != company_id:
            raise NotFoundError("Employee", employee_id)
        return employee

    async def _lock_employee(self, company_id: UUID, employee_id: UUID) -> Employee:
        result = await self.session.execute(
            select(Employee)
            .where(Employee.id == employee_id, Employee.company_id == company_id)
            .with_for_update()
        )
        employee = result.scalar_one_or_none()
        if employee is None:
            raise NotFoundError("Employee", employee_id)
        return employee
