"""Payroll API endpoints: runs, payslips, components and structures."""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Path, Query, status

from hrms_payroll.api.dependencies import ActorId, DbSession, Orchestrator, TenantId
from hrms_payroll.api.schemas import (
    ErrorResponse,
    MarkPaidRequest,
    PayrollRunListResponse,
    PayrollRunResponse,
    PayslipListResponse,
    PayslipResponse,
    ProcessPayrollRequest,
    SalaryComponentCreate,
    SalaryComponentResponse,
    SalaryStructureCreate,
    SalaryStructureResponse,
)
from hrms_payroll.calculators.types import StructureLine
from hrms_payroll.services.component_service import ComponentService, ComponentSpec
from hrms_payroll.services.structure_service import SalaryStructureService

router = APIRouter(prefix="/payroll", tags=["payroll"])


# ============================================================================
# Payroll runs
# ============================================================================


@router.post(
    "/process",
    response_model=PayrollRunResponse,
    status_code=status.HTTP_200_OK,
    responses={
        400: {"model": ErrorResponse},
        409: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
    },
)
async def process_payroll(
    orchestrator: Orchestrator,
    tenant_id: TenantId,
    actor_id: ActorId,
    payload: ProcessPayrollRequest,
) -> PayrollRunResponse:
    """Run payroll for a month. All-or-nothing."""
    run = await orchestrator.process_payroll(
        tenant_id, payload.month, payload.year, initiated_by=actor_id
    )
    return PayrollRunResponse.model_validate(run)


@router.get("/runs", response_model=PayrollRunListResponse)
async def list_payroll_runs(
    orchestrator: Orchestrator,
    tenant_id: TenantId,
) -> PayrollRunListResponse:
    """List payroll runs, most recent period first."""
    runs = await orchestrator.list_runs(tenant_id)
    return PayrollRunListResponse(
        items=[PayrollRunResponse.model_validate(r) for r in runs],
        total=len(runs),
    )


@router.get(
    "/runs/{run_id}",
    response_model=PayrollRunResponse,
    responses={404: {"model": ErrorResponse}},
)
async def get_payroll_run(
    orchestrator: Orchestrator,
    tenant_id: TenantId,
    run_id: Annotated[UUID, Path()],
) -> PayrollRunResponse:
    """Get a specific payroll run by ID."""
    run = await orchestrator.get_run(tenant_id, run_id)
    return PayrollRunResponse.model_validate(run)


@router.post(
    "/runs/{run_id}/reset",
    response_model=PayrollRunResponse,
    responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
async def reset_payroll_run(
    orchestrator: Orchestrator,
    tenant_id: TenantId,
    actor_id: ActorId,
    run_id: Annotated[UUID, Path()],
) -> PayrollRunResponse:
    """Return a run stuck in processing to draft so it can be retried."""
    run = await orchestrator.reset_run(tenant_id, run_id, actor_user_id=actor_id)
    return PayrollRunResponse.model_validate(run)


@router.post(
    "/runs/{run_id}/mark-paid",
    response_model=PayrollRunResponse,
    responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
async def mark_payroll_run_paid(
    orchestrator: Orchestrator,
    tenant_id: TenantId,
    run_id: Annotated[UUID, Path()],
    payload: MarkPaidRequest,
) -> PayrollRunResponse:
    """Confirm disbursement of a completed run."""
    run = await orchestrator.mark_paid(
        tenant_id, run_id, payload.payment_date, payload.payment_method
    )
    return PayrollRunResponse.model_validate(run)


# ============================================================================
# Payslips
# ============================================================================


@router.get(
    "/payslips",
    response_model=PayslipListResponse,
    responses={404: {"model": ErrorResponse}},
)
async def list_payslips(
    orchestrator: Orchestrator,
    tenant_id: TenantId,
    payroll_run_id: Annotated[UUID | None, Query(alias="payrollRunId")] = None,
) -> PayslipListResponse:
    """List payslips with employee identity, optionally for one run."""
    payslips = await orchestrator.list_payslips(tenant_id, payroll_run_id)
    return PayslipListResponse(
        items=[PayslipResponse.model_validate(p) for p in payslips],
        total=len(payslips),
    )


# ============================================================================
# Salary components
# ============================================================================


@router.get("/salary-components", response_model=list[SalaryComponentResponse])
async def list_salary_components(
    db: DbSession,
    tenant_id: TenantId,
) -> list[SalaryComponentResponse]:
    """List active salary components."""
    components = await ComponentService(db).list_active(tenant_id)
    return [SalaryComponentResponse.model_validate(c) for c in components]


@router.post(
    "/salary-components",
    response_model=SalaryComponentResponse,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"model": ErrorResponse}},
)
async def create_salary_component(
    db: DbSession,
    tenant_id: TenantId,
    payload: SalaryComponentCreate,
) -> SalaryComponentResponse:
    """Register a salary component. Components are never deleted."""
    component = await ComponentService(db).create(
        tenant_id,
        ComponentSpec(
            name=payload.name,
            code=payload.code,
            type=payload.type,
            calculation_type=payload.calculation_type,
            percentage_of=payload.percentage_of,
            is_taxable=payload.is_taxable,
        ),
    )
    await db.commit()
    return SalaryComponentResponse.model_validate(component)


@router.post(
    "/salary-components/{component_id}/deactivate",
    response_model=SalaryComponentResponse,
    responses={404: {"model": ErrorResponse}},
)
async def deactivate_salary_component(
    db: DbSession,
    tenant_id: TenantId,
    component_id: Annotated[UUID, Path()],
) -> SalaryComponentResponse:
    """Soft-deactivate a salary component."""
    component = await ComponentService(db).deactivate(tenant_id, component_id)
    await db.commit()
    return SalaryComponentResponse.model_validate(component)


# ============================================================================
# Salary structures
# ============================================================================


@router.get(
    "/salary-structures/{employee_id}",
    response_model=SalaryStructureResponse,
    responses={404: {"model": ErrorResponse}},
)
async def get_salary_structure(
    db: DbSession,
    tenant_id: TenantId,
    employee_id: Annotated[UUID, Path()],
) -> SalaryStructureResponse:
    """Get the active salary structure for an employee."""
    structure = await SalaryStructureService(db).get_active(tenant_id, employee_id)
    return SalaryStructureResponse.from_structure(structure)


@router.get(
    "/salary-structures/{employee_id}/history",
    response_model=list[SalaryStructureResponse],
    responses={404: {"model": ErrorResponse}},
)
async def list_salary_structure_history(
    db: DbSession,
    tenant_id: TenantId,
    employee_id: Annotated[UUID, Path()],
) -> list[SalaryStructureResponse]:
    """All salary structures for an employee, newest first."""
    structures = await SalaryStructureService(db).list_history(tenant_id, employee_id)
    return [SalaryStructureResponse.from_structure(s) for s in structures]


@router.post(
    "/salary-structures",
    response_model=SalaryStructureResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        409: {"model": ErrorResponse},
    },
)
async def assign_salary_structure(
    db: DbSession,
    tenant_id: TenantId,
    payload: SalaryStructureCreate,
) -> SalaryStructureResponse:
    """Assign a new salary structure, deactivating the previous one."""
    structure = await SalaryStructureService(db).assign(
        tenant_id,
        payload.employee_id,
        payload.ctc,
        payload.effective_from,
        [
            StructureLine(
                component_code=c.component_code,
                amount=c.amount,
                percentage=c.percentage,
            )
            for c in payload.components
        ],
    )
    await db.commit()
    return SalaryStructureResponse.from_structure(structure)
