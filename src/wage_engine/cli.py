"""Wage engine command line interface.

Usage:
    python -m wage_engine init-db
    python -m wage_engine daily --worker-id W1 --date 2025-03-04 --hours 10
    python -m wage_engine issue --worker-id W1 --year 2025 --month 3 --issuer-id admin
    python -m wage_engine show --worker-id W1 --year 2025 --month 3
    python -m wage_engine list --worker-id W1 --status approved
    python -m wage_engine approve --worker-id W1 --year 2025 --month 3 --approver-id boss
    python -m wage_engine pay --worker-id W1 --year 2025 --month 3 --payer-id accounting
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from dataclasses import asdict
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Awaitable, Callable

from wage_engine.calculators.types import LaborRecord
from wage_engine.config import Settings, get_settings
from wage_engine.database import create_engine_from_settings, create_schema, create_session_factory
from wage_engine.exceptions import WageEngineError
from wage_engine.services import InvalidTransitionError, SnapshotStatus, WageService


def _json_default(value: Any) -> Any:
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def parse_date(s: str) -> date:
    """Parse ISO date string."""
    return date.fromisoformat(s)


def parse_decimal(s: str) -> Decimal:
    try:
        return Decimal(s)
    except InvalidOperation:
        raise argparse.ArgumentTypeError(f"not a number: {s!r}") from None


class WageCli:
    """Wage engine command line interface."""

    def __init__(self, settings: Settings | None = None) -> None:
        self.settings = settings
        self.parser = self._build_parser()

    def _build_parser(self) -> argparse.ArgumentParser:
        """Build argument parser."""
        parser = argparse.ArgumentParser(
            prog="wage-engine",
            description="Monthly wage computation and salary snapshots",
        )
        subparsers = parser.add_subparsers(dest="command", help="Commands")

        init_db = subparsers.add_parser("init-db", help="Create database tables")
        init_db.add_argument(
            "--without-snapshots",
            action="store_true",
            help="Leave the salary_snapshots table out (snapshots go to blob storage)",
        )

        daily = subparsers.add_parser("daily", help="Compute one day of pay")
        daily.add_argument("--worker-id", required=True)
        daily.add_argument("--date", type=parse_date, required=True, help="Work date (YYYY-MM-DD)")
        quantity = daily.add_mutually_exclusive_group(required=True)
        quantity.add_argument("--hours", type=parse_decimal, help="Hours worked")
        quantity.add_argument(
            "--labor-days", type=parse_decimal, help="Labor-day fraction (1.0 = full day)"
        )
        daily.add_argument("--bonus", type=parse_decimal, help="Bonus pay for the day")
        daily.add_argument("--site-id")

        for name, help_text in (
            ("issue", "Compute a month and issue its snapshot"),
            ("show", "Show a month's snapshot"),
            ("approve", "Approve a month's snapshot"),
            ("pay", "Mark a month's snapshot paid"),
        ):
            cmd = subparsers.add_parser(name, help=help_text)
            cmd.add_argument("--worker-id", required=True)
            cmd.add_argument("--year", type=int, required=True)
            cmd.add_argument("--month", type=int, required=True)
            if name == "issue":
                cmd.add_argument("--issuer-id")
            elif name == "approve":
                cmd.add_argument("--approver-id", required=True)
            elif name == "pay":
                cmd.add_argument("--payer-id", required=True)

        listing = subparsers.add_parser("list", help="List snapshots")
        listing.add_argument("--worker-id")
        listing.add_argument("--year", type=int)
        listing.add_argument("--month", type=int)
        listing.add_argument("--status", choices=[s.value for s in SnapshotStatus])
        listing.add_argument("--limit", type=int, default=100)

        return parser

    def run(self, argv: list[str] | None = None) -> int:
        """Run CLI with arguments."""
        args = self.parser.parse_args(argv)

        if not args.command:
            self.parser.print_help()
            return 1

        settings = self.settings or get_settings()
        logging.basicConfig(
            level=getattr(logging, settings.log_level, logging.INFO),
            format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        )

        try:
            output = asyncio.run(self._dispatch(settings, args))
        except (WageEngineError, InvalidTransitionError) as e:
            print(
                json.dumps({"error": type(e).__name__, "message": str(e)}),
                file=sys.stderr,
            )
            return 1

        if output is not None:
            print(json.dumps(output, indent=2, default=_json_default))
        return 0

    async def _dispatch(self, settings: Settings, args: argparse.Namespace) -> Any:
        engine = create_engine_from_settings(settings)
        try:
            if args.command == "init-db":
                await create_schema(engine, include_snapshots=not args.without_snapshots)
                return {"status": "ok"}
            handler: Callable[[argparse.Namespace, WageService], Awaitable[Any]] = getattr(
                self, f"_cmd_{args.command}"
            )
            service = WageService.from_settings(settings, create_session_factory(engine))
            return await handler(args, service)
        finally:
            await engine.dispose()

    async def _cmd_daily(self, args: argparse.Namespace, service: WageService) -> Any:
        record = LaborRecord(
            worker_id=args.worker_id,
            work_date=args.date,
            site_id=args.site_id,
            hours=args.hours,
            labor_days=args.labor_days,
            bonus_pay=args.bonus,
        )
        return asdict(await service.compute_daily(record, args.worker_id))

    async def _cmd_issue(self, args: argparse.Namespace, service: WageService) -> Any:
        snapshot, result = await service.issue_snapshot(
            args.worker_id, args.year, args.month, issuer_id=args.issuer_id
        )
        return {"source_used": result.source_used.value, "snapshot": asdict(snapshot)}

    async def _cmd_show(self, args: argparse.Namespace, service: WageService) -> Any:
        loaded = await service.load_snapshot(args.worker_id, args.year, args.month)
        return {
            "source_used": loaded.source_used.value if loaded.source_used else None,
            "snapshot": asdict(loaded.snapshot) if loaded.snapshot else None,
        }

    async def _cmd_list(self, args: argparse.Namespace, service: WageService) -> Any:
        snapshots = await service.list_snapshots(
            worker_id=args.worker_id,
            year=args.year,
            month=args.month,
            status=args.status,
            limit=args.limit,
        )
        return [asdict(s) for s in snapshots]

    async def _cmd_approve(self, args: argparse.Namespace, service: WageService) -> Any:
        snapshot = await service.approve_snapshot(
            args.worker_id, args.year, args.month, args.approver_id
        )
        return asdict(snapshot)

    async def _cmd_pay(self, args: argparse.Namespace, service: WageService) -> Any:
        snapshot = await service.pay_snapshot(args.worker_id, args.year, args.month, args.payer_id)
        return asdict(snapshot)


def main() -> int:
    """CLI entry point."""
    return WageCli().run()


if __name__ == "__main__":
    sys.exit(main())
