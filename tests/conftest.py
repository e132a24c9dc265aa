"""Pytest fixtures for payroll tests."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from hrms_payroll.calculators.types import StructureLine
from hrms_payroll.database import create_schema, get_engine, make_session_factory
from hrms_payroll.logging_config import reset_logging
from hrms_payroll.models import Company, Employee, SalaryComponent
from hrms_payroll.services.structure_service import SalaryStructureService

# File-backed SQLite so every session in a test sees the same database.
# PostgreSQL-only behaviour (advisory locks, isolation level) is skipped there.


@pytest.fixture(autouse=True)
def _plain_logging():
    """Let caplog see hrms_payroll records even after the app configured logging."""
    reset_logging()
    yield
    reset_logging()


@pytest_asyncio.fixture
async def engine(tmp_path) -> AsyncGenerator[AsyncEngine, None]:
    """Create a fresh test database per test."""
    engine = get_engine(f"sqlite+aiosqlite:///{tmp_path / 'payroll.db'}")
    await create_schema(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return make_session_factory(engine)


@pytest_asyncio.fixture
async def session(
    session_factory: async_sessionmaker[AsyncSession],
) -> AsyncGenerator[AsyncSession, None]:
    """Create a database session for each test."""
    async with session_factory() as session:
        yield session
        await session.rollback()


async def add_company(session: AsyncSession, name: str = "Test Company") -> Company:
    company = Company(name=name, status="active")
    session.add(company)
    await session.flush()
    return company


async def add_employee(
    session: AsyncSession,
    company: Company,
    code: str,
    first_name: str = "Test",
    last_name: str = "Employee",
    employment_status: str = "active",
) -> Employee:
    employee = Employee(
        company_id=company.id,
        employee_code=code,
        first_name=first_name,
        last_name=last_name,
        email=f"{code.lower()}@example.com",
        employment_status=employment_status,
    )
    session.add(employee)
    await session.flush()
    return employee


async def add_component(
    session: AsyncSession,
    company: Company,
    code: str,
    name: str,
    type: str = "earning",
    calculation_type: str = "fixed",
    percentage_of: str | None = None,
    is_active: bool = True,
) -> SalaryComponent:
    component = SalaryComponent(
        company_id=company.id,
        code=code,
        name=name,
        type=type,
        calculation_type=calculation_type,
        percentage_of=percentage_of,
        is_taxable=True,
        is_active=is_active,
    )
    session.add(component)
    await session.flush()
    return component


@pytest_asyncio.fixture
async def company(session: AsyncSession) -> Company:
    """Create a test company."""
    company = await add_company(session)
    await session.commit()
    return company


@pytest_asyncio.fixture
async def basic_components(
    session: AsyncSession, company: Company
) -> dict[str, SalaryComponent]:
    """BASIC, HRA (50% of BASIC) and PF (12% of BASIC)."""
    components = {
        "BASIC": await add_component(session, company, "BASIC", "Basic"),
        "HRA": await add_component(
            session, company, "HRA", "House Rent Allowance",
            calculation_type="percentage", percentage_of="BASIC",
        ),
        "PF": await add_component(
            session, company, "PF", "Provident Fund",
            type="deduction", calculation_type="percentage", percentage_of="BASIC",
        ),
    }
    await session.commit()
    return components


@dataclass
class PayrollScenario:
    """Three active employees: A and B with structures, C without."""

    company: Company
    employee_a: Employee
    employee_b: Employee
    employee_c: Employee


@pytest_asyncio.fixture
async def t1(session: AsyncSession) -> PayrollScenario:
    """A: Basic 30000 + PF 3600. B: Basic 25000. C: no structure."""
    company = await add_company(session, "T1")
    await add_component(session, company, "BASIC", "Basic")
    await add_component(
        session, company, "PF", "Provident Fund",
        type="deduction", calculation_type="percentage", percentage_of="BASIC",
    )
    employee_a = await add_employee(session, company, "A001", "Asha", "Rao")
    employee_b = await add_employee(session, company, "B001", "Bilal", "Khan")
    employee_c = await add_employee(session, company, "C001", "Chen", "Li")

    service = SalaryStructureService(session)
    await service.assign(
        company.id,
        employee_a.id,
        Decimal("400000"),
        date(2026, 1, 1),
        [
            StructureLine("BASIC", amount=Decimal("30000")),
            StructureLine("PF", percentage=Decimal("12")),
        ],
    )
    await service.assign(
        company.id,
        employee_b.id,
        Decimal("300000"),
        date(2026, 1, 1),
        [StructureLine("BASIC", amount=Decimal("25000"))],
    )
    await session.commit()
    return PayrollScenario(company, employee_a, employee_b, employee_c)
