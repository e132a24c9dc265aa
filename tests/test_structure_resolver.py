"""Tests for resolve-once structure amounts."""

from decimal import Decimal

import pytest

from hrms_payroll.calculators.structure_resolver import StructureResolver
from hrms_payroll.calculators.types import StructureLine
from hrms_payroll.exceptions import NotFoundError, ValidationError
from hrms_payroll.models import SalaryComponent


def component(code, type="earning", calculation_type="fixed", percentage_of=None, is_active=True):
    return SalaryComponent(
        code=code,
        name=code.title(),
        type=type,
        calculation_type=calculation_type,
        percentage_of=percentage_of,
        is_active=is_active,
    )


@pytest.fixture
def registry():
    return {
        "BASIC": component("BASIC"),
        "HRA": component("HRA", calculation_type="percentage", percentage_of="BASIC"),
        "PF": component(
            "PF", type="deduction", calculation_type="percentage", percentage_of="BASIC"
        ),
        "DA": component("DA", calculation_type="percentage", percentage_of="HRA"),
        "OLD": component("OLD", is_active=False),
    }


class TestStructureResolver:
    """Test amount resolution at assignment time."""

    def test_fixed_amounts_are_kept(self, registry):
        resolved = StructureResolver(registry).resolve(
            [StructureLine("BASIC", amount=Decimal("30000"))]
        )

        assert len(resolved) == 1
        assert resolved[0].component_code == "BASIC"
        assert resolved[0].amount == Decimal("30000.00")
        assert resolved[0].percentage is None

    def test_percentage_resolves_against_base(self, registry):
        resolved = StructureResolver(registry).resolve([
            StructureLine("BASIC", amount=Decimal("30000")),
            StructureLine("PF", percentage=Decimal("12")),
            StructureLine("HRA", percentage=Decimal("40")),
        ])

        amounts = {line.component_code: line.amount for line in resolved}
        assert amounts == {
            "BASIC": Decimal("30000.00"),
            "PF": Decimal("3600.00"),
            "HRA": Decimal("12000.00"),
        }
        # Percentages are kept for display
        assert resolved[1].percentage == Decimal("12")

    def test_order_is_preserved_when_base_comes_later(self, registry):
        resolved = StructureResolver(registry).resolve([
            StructureLine("HRA", percentage=Decimal("50")),
            StructureLine("BASIC", amount=Decimal("20000")),
        ])

        assert [line.component_code for line in resolved] == ["HRA", "BASIC"]
        assert resolved[0].amount == Decimal("10000.00")

    def test_chained_percentages(self, registry):
        resolved = StructureResolver(registry).resolve([
            StructureLine("DA", percentage=Decimal("10")),
            StructureLine("HRA", percentage=Decimal("50")),
            StructureLine("BASIC", amount=Decimal("20000")),
        ])

        assert resolved[0].amount == Decimal("1000.00")

    def test_rounds_half_up_to_cents(self, registry):
        resolved = StructureResolver(registry).resolve([
            StructureLine("BASIC", amount=Decimal("333.33")),
            StructureLine("PF", percentage=Decimal("12.5")),
        ])

        # 41.66625 -> 41.67
        assert resolved[1].amount == Decimal("41.67")

    def test_percentage_component_with_explicit_amount(self, registry):
        resolved = StructureResolver(registry).resolve([
            StructureLine("PF", amount=Decimal("1800")),
        ])

        assert resolved[0].amount == Decimal("1800.00")

    def test_empty_structure_rejected(self, registry):
        with pytest.raises(ValidationError):
            StructureResolver(registry).resolve([])

    def test_unknown_code_rejected(self, registry):
        with pytest.raises(NotFoundError):
            StructureResolver(registry).resolve(
                [StructureLine("BONUS", amount=Decimal("100"))]
            )

    def test_inactive_component_rejected(self, registry):
        with pytest.raises(ValidationError, match="inactive"):
            StructureResolver(registry).resolve(
                [StructureLine("OLD", amount=Decimal("100"))]
            )

    def test_duplicate_code_rejected(self, registry):
        with pytest.raises(ValidationError, match="more than once"):
            StructureResolver(registry).resolve([
                StructureLine("BASIC", amount=Decimal("100")),
                StructureLine("BASIC", amount=Decimal("200")),
            ])

    def test_fixed_component_requires_amount(self, registry):
        with pytest.raises(ValidationError, match="requires an amount"):
            StructureResolver(registry).resolve(
                [StructureLine("BASIC", percentage=Decimal("10"))]
            )

    def test_amount_and_percentage_together_rejected(self, registry):
        with pytest.raises(ValidationError, match="not both"):
            StructureResolver(registry).resolve([
                StructureLine("BASIC", amount=Decimal("100")),
                StructureLine("PF", amount=Decimal("12"), percentage=Decimal("12")),
            ])

    def test_negative_amount_rejected(self, registry):
        with pytest.raises(ValidationError, match="negative"):
            StructureResolver(registry).resolve(
                [StructureLine("BASIC", amount=Decimal("-1"))]
            )

    def test_percentage_without_value_rejected(self, registry):
        with pytest.raises(ValidationError):
            StructureResolver(registry).resolve([
                StructureLine("BASIC", amount=Decimal("100")),
                StructureLine("PF"),
            ])

    def test_missing_base_rejected(self, registry):
        with pytest.raises(ValidationError, match="not part of this structure"):
            StructureResolver(registry).resolve(
                [StructureLine("PF", percentage=Decimal("12"))]
            )

    def test_circular_reference_rejected(self):
        registry = {
            "X": component("X", calculation_type="percentage", percentage_of="Y"),
            "Y": component("Y", calculation_type="percentage", percentage_of="X"),
        }

        with pytest.raises(ValidationError, match="Circular"):
            StructureResolver(registry).resolve([
                StructureLine("X", percentage=Decimal("10")),
                StructureLine("Y", percentage=Decimal("10")),
            ])


class TestAmountBounds:
    """Resolved amounts must fit the structure detail column."""

    def test_resolved_percentage_above_column_maximum(self, registry):
        with pytest.raises(ValidationError, match="exceeds the maximum"):
            StructureResolver(registry).resolve([
                StructureLine("BASIC", amount=Decimal("9999999999.99")),
                StructureLine("HRA", percentage=Decimal("200")),
            ])

    def test_resolved_percentage_at_column_maximum(self, registry):
        resolved = StructureResolver(registry).resolve([
            StructureLine("BASIC", amount=Decimal("9999999999.99")),
            StructureLine("HRA", percentage=Decimal("100")),
        ])

        assert resolved[1].amount == Decimal("9999999999.99")

    def test_fixed_amount_above_column_maximum(self, registry):
        with pytest.raises(ValidationError, match="exceeds the maximum"):
            StructureResolver(registry).resolve(
                [StructureLine("BASIC", amount=Decimal("10000000000"))]
            )

    def test_percentage_above_column_maximum(self, registry):
        with pytest.raises(ValidationError, match="exceeds"):
            StructureResolver(registry).resolve([
                StructureLine("BASIC", amount=Decimal("100")),
                StructureLine("HRA", percentage=Decimal("1000")),
            ])
