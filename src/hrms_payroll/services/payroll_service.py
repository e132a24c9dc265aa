"""Payroll orchestrator: run lifecycle and payslip batch processing."""

from __future__ import annotations

import logging
from datetime import date, datetime, timezone
from uuid import UUID

from sqlalchemy import delete, func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.orm import joinedload, selectinload

from hrms_payroll.calculators.payslip_generator import PayslipGenerator
from hrms_payroll.calculators.types import ZERO, PayslipComputation, RunTotals
from hrms_payroll.database import acquire_period_lock
from hrms_payroll.exceptions import (
    ConflictError,
    NotFoundError,
    PayrollAlreadyProcessedError,
    PayrollError,
    TransactionFailure,
    ValidationError,
)
from hrms_payroll.models import (
    Employee,
    Payslip,
    PayrollRun,
    SalaryStructure,
)
from hrms_payroll.services.state_machine import (
    InvalidTransitionError,
    PayrollRunStateMachine,
    PayrollRunStatus,
    PayslipStatus,
)

logger = logging.getLogger(__name__)

MIN_PAYROLL_YEAR = 1900
MAX_PAYROLL_YEAR = 9999


def validate_period(month: int, year: int) -> None:
    """Reject a month/year pair that cannot name a payroll period."""
    if not 1 <= month <= 12:
        raise ValidationError(f"month must be between 1 and 12, got {month}", month=month)
    if not MIN_PAYROLL_YEAR <= year <= MAX_PAYROLL_YEAR:
        raise ValidationError(f"year {year} is out of range", year=year)


class PayrollOrchestrator:
    """Coordinates a payroll run as a single all-or-nothing transaction.

    The orchestrator owns its sessions through the injected session factory,
    so the same object can run inside a request handler or a background
    worker without changing the transactional contract.

    process_payroll:
    1. Validate the period and reject a finished run before any transaction
    2. Open a transaction and take the period advisory lock
    3. Create (or reuse a draft) run row in ``processing``
    4. Load active employees that have an active structure
    5. Generate one payslip per employee and accumulate totals
    6. Bulk insert finalized payslips
    7. Complete the run with the aggregates and commit

    Any failure in 3-7 rolls back everything: no run row, no payslips.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        generator: PayslipGenerator | None = None,
        isolation_level: str | None = None,
    ):
        self.session_factory = session_factory
        self.generator = generator or PayslipGenerator()
        self.isolation_level = isolation_level

    async def process_payroll(
        self,
        company_id: UUID,
        month: int,
        year: int,
        initiated_by: UUID | None = None,
    ) -> PayrollRun:
        """Process payroll for a company and period.

        Raises:
            ValidationError: invalid month/year
            PayrollAlreadyProcessedError: a completed or paid run exists
            ConflictError: the period is stuck in processing, or a concurrent
                run for the same period won the race
            TransactionFailure: any other error; everything was rolled back
        """
        validate_period(month, year)

        async with self.session_factory() as session:
            existing = await self._find_run(session, company_id, month, year)
            if existing is not None:
                self._guard_existing(existing)

        logger.info(
            "Processing payroll for company %s period %d-%02d", company_id, year, month
        )

        try:
            async with self.session_factory() as session:
                async with session.begin():
                    await self._configure_transaction(session)
                    await acquire_period_lock(
                        session, f"payroll:{company_id}:{year}:{month:02d}"
                    )

                    run = await self._open_run(
                        session, company_id, month, year, initiated_by
                    )
                    structures = await self._load_eligible_structures(session, company_id)

                    totals = RunTotals()
                    payslips: list[Payslip] = []
                    for structure in structures:
                        computation = self.generator.generate(structure)
                        if computation.net_pay < ZERO:
                            logger.warning(
                                "Negative net pay %s for employee %s in run %s",
                                computation.net_pay,
                                computation.employee_id,
                                run.id,
                            )
                        totals.add(computation)
                        payslips.append(self._build_payslip(run, computation))

                    await self._persist_payslips(session, payslips)
                    self._complete_run(run, totals)
                    await session.flush()

        except PayrollError:
            raise
        except Exception as exc:
            logger.exception(
                "Payroll run for company %s period %d-%02d failed; rolled back",
                company_id,
                year,
                month,
            )
            raise TransactionFailure(
                f"Payroll processing for {month:02d}/{year} failed and was rolled back",
                month=month,
                year=year,
            ) from exc

        logger.info(
            "Completed payroll run %s: %d payslips, net %s",
            run.id,
            run.employee_count,
            run.total_net,
        )
        return run

    async def reset_run(
        self,
        company_id: UUID,
        run_id: UUID,
        actor_user_id: UUID | None = None,
    ) -> PayrollRun:
        """Move a run stuck in ``processing`` back to ``draft``.

        Any payslips attached to the stuck run are discarded so the next
        process_payroll call reuses the row and starts clean.
        """
        async with self.session_factory() as session, session.begin():
            run = await self._get_run_for_update(session, company_id, run_id)
            if not PayrollRunStateMachine.is_reset(run.status, PayrollRunStatus.DRAFT):
                raise InvalidTransitionError(
                    run.status,
                    PayrollRunStatus.DRAFT,
                    "only a run stuck in processing can be reset",
                )

            discarded = await session.execute(
                delete(Payslip).where(Payslip.payroll_run_id == run.id)
            )
            run.status = PayrollRunStatus.DRAFT.value
            run.processed_by = None
            run.processed_at = None
            run.total_gross = ZERO
            run.total_deductions = ZERO
            run.total_net = ZERO
            run.employee_count = 0

        logger.warning(
            "Payroll run %s reset to draft by %s (%d payslips discarded)",
            run_id,
            actor_user_id,
            discarded.rowcount or 0,
        )
        return run

    async def mark_paid(
        self,
        company_id: UUID,
        run_id: UUID,
        payment_date: date,
        payment_method: str | None = None,
    ) -> PayrollRun:
        """Record disbursement of a completed run and its payslips."""
        async with self.session_factory() as session, session.begin():
            run = await self._get_run_for_update(session, company_id, run_id)
            PayrollRunStateMachine.validate_transition(run.status, PayrollRunStatus.PAID)

            await session.execute(
                update(Payslip)
                .where(
                    Payslip.payroll_run_id == run.id,
                    Payslip.status == PayslipStatus.FINALIZED.value,
                )
                .values(
                    status=PayslipStatus.PAID.value,
                    payment_date=payment_date,
                    payment_method=payment_method,
                )
            )
            run.status = PayrollRunStatus.PAID.value

        logger.info("Payroll run %s marked paid on %s", run_id, payment_date)
        return run

    async def list_runs(self, company_id: UUID) -> list[PayrollRun]:
        """All runs for a company, most recent period first."""
        async with self.session_factory() as session:
            result = await session.execute(
                select(PayrollRun)
                .where(PayrollRun.company_id == company_id)
                .order_by(PayrollRun.year.desc(), PayrollRun.month.desc())
            )
            return list(result.scalars().all())

    async def get_run(self, company_id: UUID, run_id: UUID) -> PayrollRun:
        async with self.session_factory() as session:
            run = await session.get(PayrollRun, run_id)
            if run is None or run.company_id != company_id:
                raise NotFoundError("Payroll run", run_id)
            return run

    async def list_payslips(
        self,
        company_id: UUID,
        payroll_run_id: UUID | None = None,
    ) -> list[Payslip]:
        """Payslips for a company, optionally one run, with employee identity."""
        async with self.session_factory() as session:
            query = (
                select(Payslip)
                .join(Employee, Payslip.employee_id == Employee.id)
                .where(Payslip.company_id == company_id)
                .options(joinedload(Payslip.employee))
            )
            if payroll_run_id is not None:
                run = await session.get(PayrollRun, payroll_run_id)
                if run is None or run.company_id != company_id:
                    raise NotFoundError("Payroll run", payroll_run_id)
                query = query.where(Payslip.payroll_run_id == payroll_run_id)

            query = query.order_by(
                Payslip.year.desc(), Payslip.month.desc(), Employee.employee_code
            )
            result = await session.execute(query)
            return list(result.scalars().all())

    async def _configure_transaction(self, session: AsyncSession) -> None:
        """Pin the isolation level before the first statement runs."""
        if not self.isolation_level:
            return
        if session.get_bind().dialect.name != "postgresql":
            return
        await session.connection(
            execution_options={"isolation_level": self.isolation_level}
        )

    async def _find_run(
        self, session: AsyncSession, company_id: UUID, month: int, year: int
    ) -> PayrollRun | None:
        result = await session.execute(
            select(PayrollRun).where(
                PayrollRun.company_id == company_id,
                PayrollRun.month == month,
                PayrollRun.year == year,
            )
        )
        return result.scalar_one_or_none()

    def _guard_existing(self, run: PayrollRun) -> None:
        if PayrollRunStateMachine.is_finished(run.status):
            raise PayrollAlreadyProcessedError(run.month, run.year)
        if run.status == PayrollRunStatus.PROCESSING:
            raise ConflictError(
                f"Payroll run {run.id} for {run.month:02d}/{run.year} is stuck in "
                "processing; reset it before retrying",
                run_id=str(run.id),
            )

    async def _open_run(
        self,
        session: AsyncSession,
        company_id: UUID,
        month: int,
        year: int,
        initiated_by: UUID | None,
    ) -> PayrollRun:
        """Insert the period's run row, or reuse a draft one, in processing."""
        result = await session.execute(
            select(PayrollRun)
            .where(
                PayrollRun.company_id == company_id,
                PayrollRun.month == month,
                PayrollRun.year == year,
            )
            .with_for_update()
        )
        run = result.scalar_one_or_none()

        if run is None:
            run = PayrollRun(
                company_id=company_id,
                month=month,
                year=year,
                status=PayrollRunStatus.DRAFT.value,
            )
            session.add(run)
        else:
            # Re-check under the lock: another request may have finished first
            self._guard_existing(run)

        PayrollRunStateMachine.validate_transition(run.status, PayrollRunStatus.PROCESSING)
        run.status = PayrollRunStatus.PROCESSING.value
        run.processed_by = initiated_by
        run.processed_at = datetime.now(timezone.utc)
        run.total_gross = ZERO
        run.total_deductions = ZERO
        run.total_net = ZERO
        run.employee_count = 0

        try:
            await session.flush()
        except IntegrityError as exc:
            raise ConflictError(
                f"Another payroll run for {month:02d}/{year} is already in progress",
                month=month,
                year=year,
            ) from exc
        return run

    async def _load_eligible_structures(
        self, session: AsyncSession, company_id: UUID
    ) -> list[SalaryStructure]:
        """Active structures of active employees, details and components loaded.

        Active employees without a structure are simply not in the result.
        """
        result = await session.execute(
            select(SalaryStructure)
            .join(Employee, SalaryStructure.employee_id == Employee.id)
            .where(
                Employee.company_id == company_id,
                Employee.employment_status == "active",
                SalaryStructure.company_id == company_id,
                SalaryStructure.is_active.is_(True),
            )
            .options(selectinload(SalaryStructure.details))
            .order_by(Employee.employee_code)
        )
        structures = list(result.scalars().unique().all())

        active_count = await session.scalar(
            select(func.count())
            .select_from(Employee)
            .where(
                Employee.company_id == company_id,
                Employee.employment_status == "active",
            )
        )
        skipped = (active_count or 0) - len(structures)
        if skipped:
            logger.info(
                "Skipping %d active employee(s) without a salary structure", skipped
            )
        return structures

    def _build_payslip(self, run: PayrollRun, computation: PayslipComputation) -> Payslip:
        earnings, deductions = computation.breakdown_json()
        return Payslip(
            company_id=run.company_id,
            employee_id=computation.employee_id,
            payroll_run_id=run.id,
            salary_structure_id=computation.salary_structure_id,
            month=run.month,
            year=run.year,
            working_days=computation.working_days,
            days_worked=computation.days_worked,
            lop_days=computation.lop_days,
            gross_earnings=computation.gross_earnings,
            total_deductions=computation.total_deductions,
            net_pay=computation.net_pay,
            status=PayslipStatus.FINALIZED.value,
            earnings_breakdown=earnings,
            deductions_breakdown=deductions,
        )

    async def _persist_payslips(
        self, session: AsyncSession, payslips: list[Payslip]
    ) -> None:
        session.add_all(payslips)
        await session.flush()

    def _complete_run(self, run: PayrollRun, totals: RunTotals) -> None:
        PayrollRunStateMachine.validate_transition(run.status, PayrollRunStatus.COMPLETED)
        run.total_gross = totals.total_gross
        run.total_deductions = totals.total_deductions
        run.total_net = totals.total_net
        run.employee_count = totals.employee_count
        run.status = PayrollRunStatus.COMPLETED.value

    async def _get_run_for_update(
        self, session: AsyncSession, company_id: UUID, run_id: UUID
    ) -> PayrollRun:
        result = await session.execute(
            select(PayrollRun)
            .where(PayrollRun.id == run_id, PayrollRun.company_id == company_id)
            .with_for_update()
        )
        run = result.scalar_one_or_none()
        if run is None:
            raise NotFoundError("Payroll run", run_id)
        return run
