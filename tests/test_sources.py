"""Tests for the SQL-backed labor, worker and rate sources."""

from datetime import date
from decimal import Decimal

import pytest

from conftest import make_settings
from wage_engine.calculators import RateResolver
from wage_engine.models import EmploymentTaxRate, WorkerSalarySetting, WorkRecord
from wage_engine.services import WageService
from wage_engine.sources import (
    SqlLaborRecordSource,
    SqlRateTableSource,
    SqlWorkerConfigurationSource,
)


@pytest.fixture
async def seeded(session_factory):
    """Seed one worker with March work records and daily worker tax rates."""
    async with session_factory() as session:
        session.add_all(
            [
                WorkRecord(
                    id="r1",
                    worker_id="W1",
                    site_id="S1",
                    work_date=date(2025, 3, 3),
                    labor_days=Decimal("1"),
                ),
                WorkRecord(
                    id="r2",
                    worker_id="W1",
                    site_id="S2",
                    work_date=date(2025, 3, 4),
                    work_hours=Decimal("10"),
                    bonus_pay=Decimal("5000"),
                ),
                WorkRecord(
                    id="r3",
                    worker_id="W1",
                    work_date=date(2025, 4, 1),
                    labor_days=Decimal("1"),
                ),
                WorkRecord(
                    id="r4",
                    worker_id="W2",
                    work_date=date(2025, 3, 3),
                    labor_days=Decimal("1"),
                ),
                WorkerSalarySetting(
                    worker_id="W1",
                    employment_type="freelancer",
                    daily_rate=Decimal("100000"),
                    effective_date=date(2024, 1, 1),
                ),
                WorkerSalarySetting(
                    worker_id="W1",
                    employment_type="daily_worker",
                    daily_rate=Decimal("150000"),
                    custom_tax_rates={"income_tax": 3.3},
                    effective_date=date(2025, 1, 1),
                ),
                WorkerSalarySetting(
                    worker_id="W1",
                    employment_type="regular_employee",
                    daily_rate=Decimal("200000"),
                    effective_date=date(2025, 6, 1),
                    is_active=False,
                ),
                EmploymentTaxRate(
                    employment_type="daily_worker", tax_name="income_tax", rate=Decimal("6")
                ),
                EmploymentTaxRate(
                    employment_type="daily_worker", tax_name="resident_tax", rate=Decimal("0.5")
                ),
                EmploymentTaxRate(
                    employment_type="daily_worker",
                    tax_name="retired_levy",
                    rate=Decimal("1"),
                    is_active=False,
                ),
            ]
        )
        await session.commit()


class TestSqlSources:
    @pytest.mark.asyncio
    async def test_labor_records_in_range(self, session_factory, seeded):
        source = SqlLaborRecordSource(session_factory)

        records = await source.list_for_worker_in_range("W1", date(2025, 3, 1), date(2025, 3, 31))

        assert [r.record_id for r in records] == ["r1", "r2"]
        assert records[1].hours == Decimal("10")
        assert records[1].labor_days is None
        assert records[1].bonus_pay == Decimal("5000")
        assert records[0].site_id == "S1"

    @pytest.mark.asyncio
    async def test_latest_active_setting_wins(self, session_factory, seeded):
        source = SqlWorkerConfigurationSource(session_factory)

        profile = await source.get_employment_profile("W1")

        assert profile.classification == "daily_worker"
        assert profile.daily_rate == Decimal("150000")
        assert profile.custom_rates == {"income_tax": 3.3}

    @pytest.mark.asyncio
    async def test_worker_without_setting(self, session_factory, seeded):
        assert await SqlWorkerConfigurationSource(session_factory).get_employment_profile("W2") is None

    @pytest.mark.asyncio
    async def test_active_rates_only(self, session_factory, seeded):
        rate_set = await RateResolver(SqlRateTableSource(session_factory)).resolve("daily_worker")

        assert rate_set.rates == {"income_tax": Decimal("6"), "resident_tax": Decimal("0.5")}

    @pytest.mark.asyncio
    async def test_issue_from_tables(self, tmp_path, session_factory, seeded):
        service = WageService.from_settings(make_settings(tmp_path), session_factory)

        snapshot, _ = await service.issue_snapshot("W1", 2025, 3, issuer_id="admin")

        # 150000 + 150000 + 56250 overtime + 5000 bonus
        assert snapshot.gross_pay == Decimal("361250")
        assert snapshot.site_count == 2
        # custom 3.3% income tax replaces the table's 6%
        assert snapshot.deductions == {
            "income_tax": Decimal("4950") + Decimal("6971"),
            "resident_tax": Decimal("750") + Decimal("1056"),
        }
