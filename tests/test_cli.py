"""Tests for the command line interface."""

import asyncio
import json
from datetime import date
from decimal import Decimal

import pytest
from sqlalchemy.ext.asyncio import create_async_engine

from conftest import make_settings
from wage_engine.cli import WageCli
from wage_engine.database import create_session_factory
from wage_engine.models import WorkerSalarySetting, WorkRecord


async def seed(database_url: str) -> None:
    engine = create_async_engine(database_url)
    async with create_session_factory(engine)() as session:
        session.add_all(
            [
                WorkerSalarySetting(
                    worker_id="W1",
                    employment_type="daily_worker",
                    daily_rate=Decimal("150000"),
                    effective_date=date(2025, 1, 1),
                ),
                WorkRecord(worker_id="W1", work_date=date(2025, 3, 3), labor_days=Decimal("1")),
            ]
        )
        await session.commit()
    await engine.dispose()


def last_json_line(stream: str) -> dict:
    return json.loads(stream.strip().splitlines()[-1])


@pytest.fixture
def settings(tmp_path):
    return make_settings(tmp_path)


@pytest.fixture
def cli(settings):
    cli = WageCli(settings=settings)
    assert cli.run(["init-db"]) == 0
    return cli


def run_json(cli, capsys, argv):
    capsys.readouterr()
    assert cli.run(argv) == 0
    return json.loads(capsys.readouterr().out)


class TestWageCli:
    def test_no_command_prints_help(self, settings):
        assert WageCli(settings=settings).run([]) == 1

    def test_daily_requires_quantity(self, settings):
        with pytest.raises(SystemExit):
            WageCli(settings=settings).run(["daily", "--worker-id", "W1", "--date", "2025-03-04"])

    def test_issue_approve_pay(self, cli, settings, capsys):
        asyncio.run(seed(settings.database_url))
        period = ["--worker-id", "W1", "--year", "2025", "--month", "3"]

        issued = run_json(cli, capsys, ["issue", *period, "--issuer-id", "admin"])
        run_json(cli, capsys, ["approve", *period, "--approver-id", "boss"])
        paid = run_json(cli, capsys, ["pay", *period, "--payer-id", "accounting"])
        shown = run_json(cli, capsys, ["show", *period])
        listed = run_json(cli, capsys, ["list", "--worker-id", "W1"])

        assert issued["source_used"] == "primary"
        assert Decimal(issued["snapshot"]["gross_pay"]) == Decimal("150000")
        assert paid["status"] == "paid"
        assert shown["snapshot"]["approver_id"] == "boss"
        assert [s["status"] for s in listed] == ["paid"]

    def test_daily(self, cli, settings, capsys):
        asyncio.run(seed(settings.database_url))

        result = run_json(
            cli, capsys, ["daily", "--worker-id", "W1", "--date", "2025-03-04", "--hours", "10"]
        )

        assert Decimal(result["overtime_pay"]) == Decimal("56250")

    def test_engine_errors_exit_nonzero(self, cli, capsys):
        capsys.readouterr()

        code = cli.run(["issue", "--worker-id", "W9", "--year", "2025", "--month", "3"])

        error = last_json_line(capsys.readouterr().err)
        assert code == 1
        assert error["error"] == "MissingRateConfigurationError"

    def test_invalid_transition_exits_nonzero(self, cli, settings, capsys):
        asyncio.run(seed(settings.database_url))
        period = ["--worker-id", "W1", "--year", "2025", "--month", "3"]
        assert cli.run(["issue", *period]) == 0
        capsys.readouterr()

        code = cli.run(["pay", *period, "--payer-id", "accounting"])

        assert code == 1
        assert last_json_line(capsys.readouterr().err)["error"] == "InvalidTransitionError"

    def test_show_missing(self, cli, capsys):
        shown = run_json(cli, capsys, ["show", "--worker-id", "W1", "--year", "2025", "--month", "1"])

        assert shown == {"source_used": None, "snapshot": None}
