"""Salary component registry."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from hrms_payroll.calculators.types import CalculationType, ComponentType
from hrms_payroll.exceptions import NotFoundError, ValidationError
from hrms_payroll.models import SalaryComponent

logger = logging.getLogger(__name__)


@dataclass
class ComponentSpec:
    """Input for creating a salary component."""

    name: str
    code: str
    type: ComponentType
    calculation_type: CalculationType = CalculationType.FIXED
    percentage_of: str | None = None
    is_taxable: bool = True


class ComponentService:
    """Create, list and deactivate salary components. There is no delete."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def list_active(self, company_id: UUID) -> list[SalaryComponent]:
        result = await self.session.execute(
            select(SalaryComponent)
            .where(
                SalaryComponent.company_id == company_id,
                SalaryComponent.is_active.is_(True),
            )
            .order_by(SalaryComponent.type, SalaryComponent.code)
        )
        return list(result.scalars().all())

    async def get_by_codes(
        self, company_id: UUID, codes: list[str]
    ) -> dict[str, SalaryComponent]:
        """Load components by code, active or not."""
        if not codes:
            return {}
        result = await self.session.execute(
            select(SalaryComponent).where(
                SalaryComponent.company_id == company_id,
                SalaryComponent.code.in_(codes),
            )
        )
        return {c.code: c for c in result.scalars().all()}

    async def create(self, company_id: UUID, spec: ComponentSpec) -> SalaryComponent:
        """Register a new component.

        Raises:
            ValidationError: duplicate code, or a percentage reference that
                does not resolve within the company
        """
        code = spec.code.strip()
        if not code:
            raise ValidationError("Component code is required")

        try:
            component_type = ComponentType(spec.type)
            calculation_type = CalculationType(spec.calculation_type)
        except ValueError as exc:
            raise ValidationError(str(exc), code=code) from exc

        lookup = [code]
        if spec.percentage_of:
            lookup.append(spec.percentage_of)
        existing = await self.get_by_codes(company_id, lookup)

        if code in existing:
            raise ValidationError(
                f"Salary component code {code} already exists",
                code=code,
            )

        if calculation_type == CalculationType.PERCENTAGE:
            if not spec.percentage_of:
                raise ValidationError(
                    "Percentage components must name the component they are a percentage of",
                    code=code,
                )
            if spec.percentage_of not in existing:
                raise ValidationError(
                    f"percentage_of {spec.percentage_of} does not match any component",
                    code=code,
                    percentage_of=spec.percentage_of,
                )
        elif spec.percentage_of:
            raise ValidationError(
                "percentage_of is only allowed on percentage components",
                code=code,
            )

        component = SalaryComponent(
            company_id=company_id,
            name=spec.name,
            code=code,
            type=component_type.value,
            calculation_type=calculation_type.value,
            percentage_of=spec.percentage_of,
            is_taxable=spec.is_taxable,
            is_active=True,
        )
        self.session.add(component)
        try:
            await self.session.flush()
        except IntegrityError as exc:
            # Lost a race with a concurrent create of the same code
            raise ValidationError(
                f"Salary component code {code} already exists",
                code=code,
            ) from exc

        logger.info(
            "Created salary component %s for company %s", code, company_id
        )
        return component

    async def deactivate(self, company_id: UUID, component_id: UUID) -> SalaryComponent:
        component = await self.session.get(SalaryComponent, component_id)
        if component is None or component.company_id != company_id:
            raise NotFoundError("Salary component", component_id)

        component.is_active = False
        await self.session.flush()
        logger.info(
            "Deactivated salary component %s for company %s", component.code, company_id
        )
        return component
