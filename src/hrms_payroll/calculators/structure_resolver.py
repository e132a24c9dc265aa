"""Resolve-once amounts for salary structure lines.

Percentage components are turned into absolute amounts exactly once, when the
structure is assigned. The snapshot is what every later payroll run pays, so a
change to the base component in a later revision never rewrites history.
"""

from __future__ import annotations

from decimal import Decimal
from typing import TYPE_CHECKING, Mapping

from hrms_payroll.calculators.types import (
    MAX_PERCENTAGE,
    MAX_STRUCTURE_AMOUNT,
    ResolvedLine,
    StructureLine,
    to_money,
)
from hrms_payroll.exceptions import NotFoundError, ValidationError

if TYPE_CHECKING:
    from hrms_payroll.models import SalaryComponent

HUNDRED = Decimal("100")


class StructureResolver:
    """Validates requested structure lines and fixes their amounts.

    Rules:
    - every code must exist for the company and be active
    - a code may appear once per structure
    - fixed components need ``amount`` and no ``percentage``
    - percentage components take either a resolved ``amount`` or a
      ``percentage`` of their ``percentage_of`` component, which must be part
      of the same structure; chains resolve in dependency order
    """

    def __init__(self, components_by_code: Mapping[str, SalaryComponent]):
        self.components_by_code = components_by_code

    def resolve(self, lines: list[StructureLine]) -> list[ResolvedLine]:
        if not lines:
            raise ValidationError("A salary structure needs at least one component")

        requested: dict[str, StructureLine] = {}
        for line in lines:
            if line.component_code in requested:
                raise ValidationError(
                    f"Component {line.component_code} listed more than once",
                    component_code=line.component_code,
                )
            self._check_line(line)
            requested[line.component_code] = line

        resolved: dict[str, Decimal] = {}
        for code in requested:
            self._resolve_amount(code, requested, resolved, chain=())

        return [
            ResolvedLine(
                component_code=line.component_code,
                amount=resolved[line.component_code],
                percentage=line.percentage,
            )
            for line in lines
        ]

    def _check_line(self, line: StructureLine) -> None:
        component = self.components_by_code.get(line.component_code)
        if component is None:
            raise NotFoundError("Salary component", line.component_code)
        if not component.is_active:
            raise ValidationError(
                f"Salary component {line.component_code} is inactive",
                component_code=line.component_code,
            )
        if line.amount is not None and line.percentage is not None:
            raise ValidationError(
                f"Give either amount or percentage for {line.component_code}, not both",
                component_code=line.component_code,
            )
        if line.amount is not None and line.amount < 0:
            raise ValidationError(
                f"Amount for {line.component_code} cannot be negative",
                component_code=line.component_code,
            )
        if line.amount is not None:
            self._check_bound(line.component_code, to_money(line.amount))

        if not component.is_percentage:
            if line.amount is None:
                raise ValidationError(
                    f"Fixed component {line.component_code} requires an amount",
                    component_code=line.component_code,
                )
            return

        if line.amount is None and line.percentage is None:
            raise ValidationError(
                f"Percentage component {line.component_code} requires "
                "an amount or a percentage",
                component_code=line.component_code,
            )
        if line.percentage is not None and line.percentage < 0:
            raise ValidationError(
                f"Percentage for {line.component_code} cannot be negative",
                component_code=line.component_code,
            )
        if line.percentage is not None and line.percentage > MAX_PERCENTAGE:
            raise ValidationError(
                f"Percentage for {line.component_code} exceeds {MAX_PERCENTAGE}",
                component_code=line.component_code,
            )

    def _resolve_amount(
        self,
        code: str,
        requested: dict[str, StructureLine],
        resolved: dict[str, Decimal],
        chain: tuple[str, ...],
    ) -> Decimal:
        if code in resolved:
            return resolved[code]
        if code in chain:
            cycle = " -> ".join((*chain, code))
            raise ValidationError(f"Circular percentage reference: {cycle}")

        line = requested[code]
        if line.amount is not None:
            resolved[code] = to_money(line.amount)
            return resolved[code]

        base_code = self.components_by_code[code].percentage_of
        if base_code is None or base_code not in requested:
            raise ValidationError(
                f"Component {code} is a percentage of {base_code}, "
                "which is not part of this structure",
                component_code=code,
                percentage_of=base_code,
            )

        base = self._resolve_amount(base_code, requested, resolved, (*chain, code))
        amount = to_money(base * line.percentage / HUNDRED)
        self._check_bound(code, amount)
        resolved[code] = amount
        return amount

    @staticmethod
    def _check_bound(code: str, amount: Decimal) -> None:
        if amount > MAX_STRUCTURE_AMOUNT:
            raise ValidationError(
                f"Amount {amount} for {code} exceeds the maximum {MAX_STRUCTURE_AMOUNT}",
                component_code=code,
            )
