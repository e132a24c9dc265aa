"""Payroll Command Line Interface.

Operational tools for running payroll outside the HTTP surface:
- Schema creation
- Payroll processing for a period
- Resetting a run stuck in processing
- Listing runs

Usage:
    python -m hrms_payroll.cli init-db
    python -m hrms_payroll.cli process --tenant-id X --month 3 --year 2025
    python -m hrms_payroll.cli reset-run --tenant-id X --run-id Y
    python -m hrms_payroll.cli list-runs --tenant-id X
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from collections.abc import Awaitable, Callable
from uuid import UUID

from hrms_payroll.config import get_settings
from hrms_payroll.database import create_schema, get_engine, make_session_factory
from hrms_payroll.exceptions import PayrollError
from hrms_payroll.logging_config import configure_logging
from hrms_payroll.services.payroll_service import PayrollOrchestrator


def parse_uuid(s: str) -> UUID:
    """Parse UUID string."""
    return UUID(s)


class PayrollCli:
    """Payroll Command Line Interface."""

    def __init__(self) -> None:
        self.parser = self._build_parser()

    def _build_parser(self) -> argparse.ArgumentParser:
        """Build argument parser."""
        parser = argparse.ArgumentParser(
            prog="python -m hrms_payroll.cli",
            description="Payroll operational tools",
        )
        parser.add_argument(
            "--database-url",
            type=str,
            help="Database URL (defaults to DATABASE_URL)",
        )
        subparsers = parser.add_subparsers(dest="command", help="Commands")

        subparsers.add_parser("init-db", help="Create missing tables")

        process = subparsers.add_parser(
            "process",
            help="Process payroll for a month",
        )
        process.add_argument("--tenant-id", type=parse_uuid, required=True)
        process.add_argument("--month", type=int, required=True)
        process.add_argument("--year", type=int, required=True)
        process.add_argument(
            "--user-id",
            type=parse_uuid,
            help="User recorded as having processed the run",
        )

        reset = subparsers.add_parser(
            "reset-run",
            help="Return a run stuck in processing to draft",
        )
        reset.add_argument("--tenant-id", type=parse_uuid, required=True)
        reset.add_argument("--run-id", type=parse_uuid, required=True)

        runs = subparsers.add_parser("list-runs", help="List payroll runs")
        runs.add_argument("--tenant-id", type=parse_uuid, required=True)

        return parser

    def run(self, args: list[str] | None = None) -> int:
        """Run the CLI with given arguments."""
        parsed = self.parser.parse_args(args)

        if not parsed.command:
            self.parser.print_help()
            return 1

        settings = get_settings()
        configure_logging(level=settings.log_level, fmt=settings.log_format)

        handlers: dict[str, Callable[[argparse.Namespace], Awaitable[int]]] = {
            "init-db": self._cmd_init_db,
            "process": self._cmd_process,
            "reset-run": self._cmd_reset_run,
            "list-runs": self._cmd_list_runs,
        }

        handler = handlers.get(parsed.command)
        if handler is None:
            print(f"Unknown command: {parsed.command}", file=sys.stderr)
            return 1

        try:
            return asyncio.run(handler(parsed))
        except PayrollError as e:
            print(f"ERROR [{e.code}]: {e.message}", file=sys.stderr)
            return 1

    async def _with_orchestrator(
        self,
        args: argparse.Namespace,
        action: Callable[[PayrollOrchestrator], Awaitable[int]],
    ) -> int:
        engine = get_engine(args.database_url)
        try:
            orchestrator = PayrollOrchestrator(
                make_session_factory(engine),
                isolation_level=get_settings().payroll_isolation_level,
            )
            return await action(orchestrator)
        finally:
            await engine.dispose()

    async def _cmd_init_db(self, args: argparse.Namespace) -> int:
        """Create the schema."""
        engine = get_engine(args.database_url)
        try:
            await create_schema(engine)
        finally:
            await engine.dispose()
        print("Schema is up to date.")
        return 0

    async def _cmd_process(self, args: argparse.Namespace) -> int:
        """Process payroll for a period."""

        async def action(orchestrator: PayrollOrchestrator) -> int:
            run = await orchestrator.process_payroll(
                args.tenant_id, args.month, args.year, initiated_by=args.user_id
            )
            print(f"Payroll run {run.id} for {run.period_label}: {run.status}")
            print(f"  Employees:   {run.employee_count}")
            print(f"  Gross:       {run.total_gross:>15,.2f}")
            print(f"  Deductions:  {run.total_deductions:>15,.2f}")
            print(f"  Net:         {run.total_net:>15,.2f}")
            return 0

        return await self._with_orchestrator(args, action)

    async def _cmd_reset_run(self, args: argparse.Namespace) -> int:
        """Reset a stuck run."""

        async def action(orchestrator: PayrollOrchestrator) -> int:
            run = await orchestrator.reset_run(args.tenant_id, args.run_id)
            print(f"Payroll run {run.id} for {run.period_label} is back in {run.status}")
            return 0

        return await self._with_orchestrator(args, action)

    async def _cmd_list_runs(self, args: argparse.Namespace) -> int:
        """List payroll runs."""

        async def action(orchestrator: PayrollOrchestrator) -> int:
            runs = await orchestrator.list_runs(args.tenant_id)
            if not runs:
                print("No payroll runs.")
                return 0
            print(f"{'Period':<10} {'Status':<12} {'Employees':>9} {'Net':>15}  ID")
            print("-" * 86)
            for run in runs:
                print(
                    f"{run.period_label:<10} {run.status:<12} "
                    f"{run.employee_count:>9} {run.total_net:>15,.2f}  {run.id}"
                )
            return 0

        return await self._with_orchestrator(args, action)


def main() -> int:
    """CLI entry point."""
    cli = PayrollCli()
    return cli.run()


if __name__ == "__main__":
    sys.exit(main())
