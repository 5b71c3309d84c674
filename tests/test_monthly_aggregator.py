"""Tests for monthly aggregation."""

from datetime import date
from decimal import Decimal

import pytest

from conftest import FakeWorkerSource, UnreachableRateSource
from wage_engine.calculators import (
    MonthlyAggregator,
    RateResolver,
    StaticRateTableSource,
    period_bounds,
)
from wage_engine.calculators.types import EmploymentProfile, LaborRecord
from wage_engine.exceptions import (
    MissingRateConfigurationError,
    RateLookupError,
    ValidationError,
)


def labor(day: int, month: int = 3, worker_id: str = "W1", **kwargs) -> LaborRecord:
    return LaborRecord(
        worker_id=worker_id,
        work_date=date(2025, month, day),
        record_id=f"r-{month}-{day}",
        **kwargs,
    )


class TestMonthlyAggregator:
    """Test month totals built from daily calculations."""

    @pytest.mark.asyncio
    async def test_sums_daily_calculations(self, aggregator, labor_source):
        labor_source.records = [
            labor(3, labor_days=1, site_id="S1"),
            labor(4, hours=10, site_id="S2"),
            labor(5, labor_days="0.5", bonus_pay=10000, site_id="S1"),
        ]

        totals = await aggregator.aggregate_month("W1", 2025, 3)

        assert totals.record_count == 3
        assert totals.base_pay == Decimal("375000")
        assert totals.overtime_pay == Decimal("56250")
        assert totals.bonus_pay == Decimal("10000")
        assert totals.gross_pay == Decimal("441250")
        assert totals.total_labor_days == Decimal("2.75")
        assert totals.total_work_hours == Decimal("10")
        assert totals.total_overtime_hours == Decimal("2")
        assert totals.workdays == 3
        assert totals.site_count == 2

    @pytest.mark.asyncio
    async def test_totals_equal_sum_of_rounded_daily_deductions(self, aggregator, labor_source):
        """Each day is rounded on its own before summing."""
        labor_source.records = [labor(d, hours=3) for d in (3, 4, 5)]

        totals = await aggregator.aggregate_month("W1", 2025, 3)

        # 56250 per day: income tax 3375, resident tax 337.5 -> 337
        assert totals.deductions == {
            "income_tax": Decimal("10125"),
            "resident_tax": Decimal("1011"),
        }
        assert totals.total_deductions == Decimal("11136")
        assert totals.net_pay == totals.gross_pay - totals.total_deductions

    @pytest.mark.asyncio
    async def test_month_without_records(self, aggregator):
        totals = await aggregator.aggregate_month("W1", 2025, 2)

        assert totals.gross_pay == Decimal("0")
        assert totals.net_pay == Decimal("0")
        assert totals.workdays == 0
        assert totals.first_workday is None
        assert totals.last_workday is None
        assert totals.deductions == {"income_tax": Decimal("0"), "resident_tax": Decimal("0")}
        assert totals.period_start == date(2025, 2, 1)
        assert totals.period_end == date(2025, 2, 28)

    @pytest.mark.asyncio
    async def test_missing_daily_rate_aborts_month(self, labor_source):
        """No daily rate means no totals at all."""
        aggregator = MonthlyAggregator(
            labor_source=labor_source,
            worker_source=FakeWorkerSource(
                {"W2": EmploymentProfile(worker_id="W2", classification="daily_worker", daily_rate=None)}
            ),
            rate_resolver=RateResolver(UnreachableRateSource()),
        )
        labor_source.records = [labor(3, worker_id="W2", labor_days=1)]

        with pytest.raises(MissingRateConfigurationError) as exc_info:
            await aggregator.aggregate_month("W2", 2025, 3)

        assert exc_info.value.worker_id == "W2"
        assert (exc_info.value.year, exc_info.value.month) == (2025, 3)

    @pytest.mark.asyncio
    async def test_unknown_worker(self, aggregator):
        with pytest.raises(MissingRateConfigurationError):
            await aggregator.aggregate_month("nobody", 2025, 3)

    @pytest.mark.asyncio
    async def test_rate_source_failure(self, labor_source, worker_source):
        aggregator = MonthlyAggregator(
            labor_source=labor_source,
            worker_source=worker_source,
            rate_resolver=RateResolver(UnreachableRateSource()),
        )

        with pytest.raises(RateLookupError):
            await aggregator.aggregate_month("W1", 2025, 3)

    @pytest.mark.asyncio
    async def test_anomalous_records_are_skipped_with_warning(self, aggregator, labor_source):
        labor_source.records = [
            labor(3, labor_days=1),
            labor(4),
            labor(5, hours="lots"),
        ]

        totals = await aggregator.aggregate_month("W1", 2025, 3)

        assert totals.record_count == 1
        assert totals.base_pay == Decimal("150000")
        assert len(totals.warnings) == 2

    @pytest.mark.asyncio
    async def test_records_outside_period_or_worker_are_ignored(self, aggregator):
        class LeakySource:
            async def list_for_worker_in_range(self, worker_id, start_date, end_date):
                return [
                    labor(3, labor_days=1),
                    labor(3, month=4, labor_days=1),
                    labor(4, worker_id="W9", labor_days=1),
                ]

        aggregator.labor_source = LeakySource()

        totals = await aggregator.aggregate_month("W1", 2025, 3)

        assert totals.record_count == 1
        assert len(totals.warnings) == 2

    @pytest.mark.asyncio
    async def test_first_and_last_workday_by_date(self, aggregator, labor_source):
        """Source order does not matter; zero-labor days are not workdays."""
        labor_source.records = [
            labor(20, labor_days=1),
            labor(2, labor_days=0),
            labor(7, hours=8),
            labor(7, hours=2, site_id="S2"),
        ]

        totals = await aggregator.aggregate_month("W1", 2025, 3)

        assert totals.first_workday == date(2025, 3, 7)
        assert totals.last_workday == date(2025, 3, 20)
        assert totals.workdays == 2
        assert totals.record_count == 4

    @pytest.mark.asyncio
    async def test_custom_rates_override_classification(self, labor_source):
        aggregator = MonthlyAggregator(
            labor_source=labor_source,
            worker_source=FakeWorkerSource(
                {
                    "W1": EmploymentProfile(
                        worker_id="W1",
                        classification="daily_worker",
                        daily_rate="150000",
                        custom_rates={"income_tax": "3.3"},
                    )
                }
            ),
            rate_resolver=RateResolver(StaticRateTableSource()),
        )
        labor_source.records = [labor(3, labor_days=1)]

        totals = await aggregator.aggregate_month("W1", 2025, 3)

        assert totals.deductions == {"income_tax": Decimal("4950"), "resident_tax": Decimal("900")}

    @pytest.mark.asyncio
    async def test_profile_without_classification_uses_default(self, labor_source):
        aggregator = MonthlyAggregator(
            labor_source=labor_source,
            worker_source=FakeWorkerSource(
                {"W1": EmploymentProfile(worker_id="W1", classification=None, daily_rate=100000)}
            ),
            rate_resolver=RateResolver(StaticRateTableSource()),
            default_classification="freelancer",
        )

        totals = await aggregator.aggregate_month("W1", 2025, 3)

        assert totals.employment_classification == "freelancer"
        assert set(totals.deductions) == {"income_tax", "resident_tax"}

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "worker_id,year,month",
        [("W1", 2025, 13), ("W1", 2025, 0), ("W1", 1800, 1), ("../W1", 2025, 3), ("", 2025, 3)],
    )
    async def test_rejects_malformed_input(self, aggregator, worker_id, year, month):
        with pytest.raises(ValidationError):
            await aggregator.aggregate_month(worker_id, year, month)


def test_period_bounds_leap_year():
    assert period_bounds(2024, 2) == (date(2024, 2, 1), date(2024, 2, 29))
    assert period_bounds(2025, 12) == (date(2025, 12, 1), date(2025, 12, 31))
