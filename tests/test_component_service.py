"""Tests for the salary component registry."""

from uuid import uuid4

import pytest

from hrms_payroll.calculators.types import CalculationType, ComponentType
from hrms_payroll.exceptions import NotFoundError, ValidationError
from hrms_payroll.services.component_service import ComponentService, ComponentSpec

from .conftest import add_company


class TestCreateComponent:
    """Test component registration."""

    async def test_create_fixed_component(self, session, company):
        service = ComponentService(session)

        component = await service.create(
            company.id,
            ComponentSpec(name="Basic", code="BASIC", type=ComponentType.EARNING),
        )
        await session.commit()

        assert component.id is not None
        assert component.code == "BASIC"
        assert component.type == "earning"
        assert component.calculation_type == "fixed"
        assert component.is_active is True
        assert component.is_earning is True

    async def test_create_percentage_component(self, session, company, basic_components):
        service = ComponentService(session)

        component = await service.create(
            company.id,
            ComponentSpec(
                name="Dearness Allowance",
                code="DA",
                type=ComponentType.EARNING,
                calculation_type=CalculationType.PERCENTAGE,
                percentage_of="BASIC",
            ),
        )

        assert component.is_percentage is True
        assert component.percentage_of == "BASIC"

    async def test_duplicate_code_rejected(self, session, company, basic_components):
        service = ComponentService(session)

        with pytest.raises(ValidationError, match="already exists"):
            await service.create(
                company.id,
                ComponentSpec(name="Basic again", code="BASIC", type=ComponentType.EARNING),
            )

    async def test_same_code_allowed_in_another_company(
        self, session, company, basic_components
    ):
        other = await add_company(session, "Other Co")
        service = ComponentService(session)

        component = await service.create(
            other.id,
            ComponentSpec(name="Basic", code="BASIC", type=ComponentType.EARNING),
        )

        assert component.company_id == other.id

    async def test_percentage_requires_base(self, session, company):
        service = ComponentService(session)

        with pytest.raises(ValidationError, match="must name"):
            await service.create(
                company.id,
                ComponentSpec(
                    name="HRA",
                    code="HRA",
                    type=ComponentType.EARNING,
                    calculation_type=CalculationType.PERCENTAGE,
                ),
            )

    async def test_percentage_base_must_exist(self, session, company):
        service = ComponentService(session)

        with pytest.raises(ValidationError, match="does not match"):
            await service.create(
                company.id,
                ComponentSpec(
                    name="HRA",
                    code="HRA",
                    type=ComponentType.EARNING,
                    calculation_type=CalculationType.PERCENTAGE,
                    percentage_of="BASIC",
                ),
            )

    async def test_fixed_component_cannot_have_base(
        self, session, company, basic_components
    ):
        service = ComponentService(session)

        with pytest.raises(ValidationError, match="only allowed"):
            await service.create(
                company.id,
                ComponentSpec(
                    name="Bonus",
                    code="BONUS",
                    type=ComponentType.EARNING,
                    percentage_of="BASIC",
                ),
            )

    async def test_unknown_type_rejected(self, session, company):
        service = ComponentService(session)

        with pytest.raises(ValidationError):
            await service.create(
                company.id,
                ComponentSpec(name="Odd", code="ODD", type="reimbursement"),
            )


class TestListAndDeactivate:
    """Test listing and soft deactivation."""

    async def test_list_active_orders_by_type_then_code(
        self, session, company, basic_components
    ):
        components = await ComponentService(session).list_active(company.id)

        assert [c.code for c in components] == ["PF", "BASIC", "HRA"]

    async def test_list_is_tenant_scoped(self, session, company, basic_components):
        other = await add_company(session, "Other Co")

        assert await ComponentService(session).list_active(other.id) == []

    async def test_deactivate_hides_from_active_list(
        self, session, company, basic_components
    ):
        service = ComponentService(session)

        component = await service.deactivate(company.id, basic_components["HRA"].id)
        await session.commit()

        assert component.is_active is False
        codes = [c.code for c in await service.list_active(company.id)]
        assert "HRA" not in codes

        # Still resolvable by code for historical lookups
        by_code = await service.get_by_codes(company.id, ["HRA"])
        assert by_code["HRA"].is_active is False

    async def test_deactivate_unknown_component(self, session, company):
        with pytest.raises(NotFoundError):
            await ComponentService(session).deactivate(company.id, uuid4())

    async def test_deactivate_other_tenants_component(
        self, session, company, basic_components
    ):
        other = await add_company(session, "Other Co")

        with pytest.raises(NotFoundError):
            await ComponentService(session).deactivate(
                other.id, basic_components["BASIC"].id
            )
