"""Attendance Payroll Command Line Interface.

Provides operational tools for:
- On-demand payroll runs (optionally back-dated or for selected employees)
- The leave/day-off sweep
- Schema creation
- The long-running scheduler

Usage:
    attendance-payroll run-payroll [--as-of 2024-05-20] [--employee-number E1 ...]
    attendance-payroll sweep-leaves [--today 2024-05-20]
    attendance-payroll init-db
    attendance-payroll scheduler
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from collections.abc import Awaitable, Callable
from datetime import date
from typing import TypeVar

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError

from attendance_payroll.clock import Clock, FixedClock, SystemClock
from attendance_payroll.config import Settings, configure_logging, get_settings
from attendance_payroll.database import create_schema, get_engine, make_session_factory
from attendance_payroll.models import Employee
from attendance_payroll.notifications import build_dispatcher
from attendance_payroll.scheduler import Scheduler
from attendance_payroll.services import LeaveSweepService, PayrollRunService

T = TypeVar("T")


def parse_date(s: str) -> date:
    """Parse ISO date string."""
    return date.fromisoformat(s)


class AttendancePayrollCli:
    """Attendance Payroll Command Line Interface."""

    def __init__(self, settings: Settings | None = None) -> None:
        self.settings = settings or get_settings()
        self.parser = self._build_parser()

    def _build_parser(self) -> argparse.ArgumentParser:
        """Build argument parser."""
        parser = argparse.ArgumentParser(
            prog="attendance-payroll",
            description="Attendance reconciliation and payroll tools",
        )
        parser.add_argument(
            "--database-url",
            type=str,
            help="Database URL (default: $DATABASE_URL)",
        )
        parser.add_argument(
            "--log-level",
            type=str,
            help="Log level (default: $LOG_LEVEL)",
        )
        subparsers = parser.add_subparsers(dest="command", help="Commands")

        # run-payroll command
        run_payroll = subparsers.add_parser(
            "run-payroll",
            help="Run payroll now (idempotent per employee and run date)",
        )
        run_payroll.add_argument(
            "--as-of",
            type=parse_date,
            help="Run date (ISO format, default: today in the org timezone)",
        )
        run_payroll.add_argument(
            "--employee-number",
            action="append",
            dest="employee_numbers",
            metavar="NUMBER",
            help="Restrict to this employee number (repeatable)",
        )

        # sweep-leaves command
        sweep = subparsers.add_parser(
            "sweep-leaves",
            help="Reconcile leave statuses and day-off flags",
        )
        sweep.add_argument(
            "--today",
            type=parse_date,
            help="Sweep date (ISO format, default: today in the org timezone)",
        )

        # init-db command
        subparsers.add_parser(
            "init-db",
            help="Create missing tables",
        )

        # scheduler command
        scheduler = subparsers.add_parser(
            "scheduler",
            help="Run the payroll and leave sweep schedule until interrupted",
        )
        scheduler.add_argument(
            "--poll-interval",
            type=float,
            default=30.0,
            help="Seconds between schedule checks (default: 30)",
        )

        return parser

    def run(self, args: list[str] | None = None) -> int:
        """Run the CLI with given arguments."""
        parsed = self.parser.parse_args(args)

        if not parsed.command:
            self.parser.print_help()
            return 1

        configure_logging(parsed.log_level)

        # Dispatch to command handler
        handlers: dict[str, Callable[[argparse.Namespace], Awaitable[int]]] = {
            "run-payroll": self._cmd_run_payroll,
            "sweep-leaves": self._cmd_sweep_leaves,
            "init-db": self._cmd_init_db,
            "scheduler": self._cmd_scheduler,
        }

        handler = handlers.get(parsed.command)
        if handler is None:
            print(f"Unknown command: {parsed.command}", file=sys.stderr)
            return 1

        try:
            return asyncio.run(handler(parsed))
        except SQLAlchemyError as e:
            print(f"ERROR: database error: {e}", file=sys.stderr)
            return 1
        except KeyboardInterrupt:
            return 130

    async def _with_database(
        self,
        args: argparse.Namespace,
        body: Callable[..., Awaitable[T]],
    ) -> T:
        """Open an engine for the command and dispose it afterwards."""
        engine = get_engine(args.database_url or self.settings.database_url)
        try:
            return await body(engine, make_session_factory(engine))
        finally:
            await engine.dispose()

    def _clock(self, as_of: date | None) -> Clock:
        if as_of is not None:
            return FixedClock(as_of, self.settings.org_timezone)
        return SystemClock(self.settings.org_timezone)

    async def _cmd_run_payroll(self, args: argparse.Namespace) -> int:
        """Run payroll."""

        async def body(engine, session_factory) -> int:
            employee_ids = None
            if args.employee_numbers:
                async with session_factory() as session:
                    result = await session.execute(
                        select(Employee.employee_id, Employee.employee_number).where(
                            Employee.employee_number.in_(args.employee_numbers)
                        )
                    )
                    found = {row.employee_number: row.employee_id for row in result}
                unknown = sorted(set(args.employee_numbers) - set(found))
                if unknown:
                    print(f"Unknown employee number(s): {', '.join(unknown)}", file=sys.stderr)
                    return 1
                employee_ids = list(found.values())

            service = PayrollRunService.from_settings(
                self.settings, session_factory, self._clock(args.as_of)
            )
            summary = await service.run(as_of=args.as_of, employee_ids=employee_ids)

            print(f"Payroll run for {summary.run_date.isoformat()}")
            print(f"  Processed: {len(summary.processed)}")
            print(f"  Skipped:   {len(summary.skipped)}")
            print(f"  Failed:    {len(summary.failed)}")
            for number, reason in sorted(summary.failed.items()):
                print(f"    {number}: {reason}")
            return 0 if not summary.failed else 2

        return await self._with_database(args, body)

    async def _cmd_sweep_leaves(self, args: argparse.Namespace) -> int:
        """Run the leave sweep."""

        async def body(engine, session_factory) -> int:
            service = LeaveSweepService(
                session_factory, self._clock(args.today), build_dispatcher(self.settings)
            )
            summary = await service.run(args.today)
            print(f"Leave sweep for {summary.today.isoformat()}")
            print(f"  Started:   {len(summary.started)}")
            print(f"  Completed: {len(summary.completed)}")
            print(f"  Rejected:  {len(summary.rejected)}")
            print(f"  Failed:    {len(summary.failed)}")
            return 0 if not summary.failed else 2

        return await self._with_database(args, body)

    async def _cmd_init_db(self, args: argparse.Namespace) -> int:
        """Create the schema."""

        async def body(engine, session_factory) -> int:
            await create_schema(engine)
            print("Schema created.")
            return 0

        return await self._with_database(args, body)

    async def _cmd_scheduler(self, args: argparse.Namespace) -> int:
        """Run the scheduler loop."""

        async def body(engine, session_factory) -> int:
            scheduler = Scheduler.from_settings(self.settings, session_factory)
            scheduler.poll_interval = args.poll_interval
            await scheduler.run_forever()
            return 0

        return await self._with_database(args, body)


def main() -> int:
    """CLI entry point."""
    cli = AttendancePayrollCli()
    return cli.run()


if __name__ == "__main__":
    sys.exit(main())
