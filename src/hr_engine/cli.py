"""HR engine command line interface.

Provides operational tools for:
- Schema creation
- Yearly leave balance provisioning
- Closing attendance days in bulk

Usage:
    python -m hr_engine.cli init-db
    python -m hr_engine.cli provision-balances --company-id X --year 2025
    python -m hr_engine.cli close-day --company-id X --date 2025-06-02
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from datetime import date
from typing import Awaitable, Callable
from uuid import UUID

from sqlalchemy import select

from hr_engine.config import configure_logging
from hr_engine.database import create_schema, dispose_db, get_session, init_db
from hr_engine.models import Employee, LeaveType
from hr_engine.services.attendance_service import AttendanceAggregator
from hr_engine.services.errors import HREngineError, OverlapError, StateConflictError
from hr_engine.services.ledger_service import BalanceLedger

logger = logging.getLogger(__name__)


def parse_date(s: str) -> date:
    """Parse ISO date string."""
    return date.fromisoformat(s)


def parse_uuid(s: str) -> UUID:
    """Parse UUID string."""
    return UUID(s)


class HRCli:
    """HR engine Command Line Interface."""

    def __init__(self) -> None:
        self.parser = self._build_parser()

    def _build_parser(self) -> argparse.ArgumentParser:
        """Build argument parser."""
        parser = argparse.ArgumentParser(
            prog="python -m hr_engine.cli",
            description="HR engine operational tools",
        )
        parser.add_argument(
            "--database-url",
            type=str,
            help="Database URL (default: $DATABASE_URL)",
        )
        subparsers = parser.add_subparsers(dest="command", help="Commands")

        # init-db command
        subparsers.add_parser(
            "init-db",
            help="Create all tables that do not exist yet",
        )

        # provision-balances command
        provision = subparsers.add_parser(
            "provision-balances",
            help="Provision a calendar year of leave balances for a company",
        )
        provision.add_argument(
            "--company-id",
            type=parse_uuid,
            required=True,
            help="Company to provision balances for",
        )
        provision.add_argument(
            "--year",
            type=int,
            default=date.today().year,
            help="Calendar year of the balance period (default: current year)",
        )

        # close-day command
        close = subparsers.add_parser(
            "close-day",
            help="Build DRAFT timesheets for every active employee of a company",
        )
        close.add_argument(
            "--company-id",
            type=parse_uuid,
            required=True,
            help="Company whose employees' day is closed",
        )
        close.add_argument(
            "--date",
            type=parse_date,
            default=date.today(),
            help="Work date to close (ISO format, default: today)",
        )

        return parser

    def run(self, args: list[str] | None = None) -> int:
        """Run the CLI with given arguments."""
        parsed = self.parser.parse_args(args)

        if not parsed.command:
            self.parser.print_help()
            return 1

        # Dispatch to command handler
        handlers: dict[str, Callable[[argparse.Namespace], Awaitable[int]]] = {
            "init-db": self._cmd_init_db,
            "provision-balances": self._cmd_provision_balances,
            "close-day": self._cmd_close_day,
        }

        handler = handlers.get(parsed.command)
        if handler is None:
            print(f"Unknown command: {parsed.command}", file=sys.stderr)
            return 1

        configure_logging()
        try:
            return asyncio.run(self._with_database(parsed, handler))
        except HREngineError as e:
            print(f"Error [{e.code}]: {e.message}", file=sys.stderr)
            return 1

    async def _with_database(
        self,
        args: argparse.Namespace,
        handler: Callable[[argparse.Namespace], Awaitable[int]],
    ) -> int:
        init_db(args.database_url)
        try:
            return await handler(args)
        finally:
            await dispose_db()

    async def _cmd_init_db(self, args: argparse.Namespace) -> int:
        """Create the schema."""
        engine, _ = init_db()
        await create_schema(engine)
        print("Schema created.")
        return 0

    async def _cmd_provision_balances(self, args: argparse.Namespace) -> int:
        """Provision every leave type's default days for each active employee."""
        period_start = date(args.year, 1, 1)
        period_end = date(args.year, 12, 31)
        print(f"Provisioning {period_start}..{period_end} for company: {args.company_id}")

        created = skipped = 0
        async with get_session() as session:
            employees = await _active_employees(session, args.company_id, period_start, period_end)
            result = await session.execute(
                select(LeaveType).where(
                    LeaveType.company_id == args.company_id,
                    LeaveType.default_days > 0,
                )
            )
            leave_types = list(result.scalars().all())

            ledger = BalanceLedger(session)
            for employee in employees:
                for leave_type in leave_types:
                    try:
                        await ledger.provision(
                            employee.employee_id,
                            leave_type.leave_type_id,
                            period_start,
                            period_end,
                            leave_type.default_days,
                        )
                    except OverlapError:
                        skipped += 1
                        continue
                    created += 1

        print(f"\n  Created: {created}")
        print(f"  Skipped (already provisioned): {skipped}")
        return 0

    async def _cmd_close_day(self, args: argparse.Namespace) -> int:
        """Close one work date for all active employees."""
        print(f"Closing {args.date} for company: {args.company_id}")

        async with get_session() as session:
            employees = await _active_employees(session, args.company_id, args.date, args.date)
            closed = 0
            aggregator = AttendanceAggregator(session)
            for employee in employees:
                try:
                    result = await aggregator.close_day(employee.employee_id, args.date)
                except StateConflictError as e:
                    print(f"  {employee.full_name:<30} skipped: {e.message}")
                    continue
                closed += 1
                line = (
                    f"  {employee.full_name:<30} {result.timesheet.work_hours:>6}h"
                    f"  overtime {result.timesheet.overtime_hours:>5}h"
                )
                if result.warnings:
                    line += f"  [{', '.join(result.warnings)}]"
                print(line)

        print(f"\nClosed {closed} timesheet(s).")
        return 0


async def _active_employees(session, company_id: UUID, start: date, end: date) -> list[Employee]:
    result = await session.execute(
        select(Employee)
        .where(
            Employee.company_id == company_id,
            Employee.start_date <= end,
            (Employee.end_date.is_(None)) | (Employee.end_date >= start),
        )
        .order_by(Employee.last_name, Employee.first_name)
    )
    return list(result.scalars().all())


def main() -> int:
    """CLI entry point."""
    cli = HRCli()
    return cli.run()


if __name__ == "__main__":
    sys.exit(main())
