"""Monthly aggregation of daily wage calculations."""

from __future__ import annotations

import calendar
import logging
from datetime import date
from decimal import Decimal
from typing import Protocol, Sequence

from wage_engine.calculators.daily import DailyWageCalculator, LaborRecordAnomaly, to_decimal
from wage_engine.calculators.rate_resolver import RateResolver, parse_rate_overrides
from wage_engine.calculators.types import (
    ZERO,
    DailyCalculation,
    EmploymentProfile,
    LaborRecord,
    MonthlyTotals,
    RateSet,
)
from wage_engine.exceptions import MissingRateConfigurationError
from wage_engine.validation import validate_period, validate_worker_id

logger = logging.getLogger(__name__)


class LaborRecordSource(Protocol):
    """Read interface over attendance / work-log data."""

    async def list_for_worker_in_range(
        self, worker_id: str, start_date: date, end_date: date
    ) -> Sequence[LaborRecord]:
        ...


class WorkerConfigurationSource(Protocol):
    """Read interface over per-worker pay settings."""

    async def get_employment_profile(self, worker_id: str) -> EmploymentProfile | None:
        ...


def period_bounds(year: int, month: int) -> tuple[date, date]:
    """First and last calendar day of a month (inclusive)."""
    validate_period(year, month)
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, 1), date(year, month, last_day)


class MonthlyAggregator:
    """Sums daily calculations over a calendar month for one worker.

    The employment profile and rate set are resolved once per month. A
    missing daily rate aborts the whole month; any other per-record problem
    skips that record and is reported in MonthlyTotals.warnings.
    """

    def __init__(
        self,
        labor_source: LaborRecordSource,
        worker_source: WorkerConfigurationSource,
        rate_resolver: RateResolver,
        calculator: DailyWageCalculator | None = None,
        default_classification: str = "daily_worker",
    ):
        self.labor_source = labor_source
        self.worker_source = worker_source
        self.rate_resolver = rate_resolver
        self.calculator = calculator or DailyWageCalculator()
        self.default_classification = default_classification

    async def aggregate_month(self, worker_id: str, year: int, month: int) -> MonthlyTotals:
        """Aggregate a worker's pay for one month.

        Raises:
            ValidationError: If worker_id or the period is malformed
            MissingRateConfigurationError: If the worker has no valid daily rate
            RateLookupError: If the rate source is unreachable
        """
        validate_worker_id(worker_id)
        period_start, period_end = period_bounds(year, month)

        profile = await self.load_profile(worker_id, year, month)
        daily_rate = self.require_daily_rate(profile, year, month)
        rate_set = await self.resolve_rate_set(profile, as_of=period_end)

        records = await self.labor_source.list_for_worker_in_range(
            worker_id, period_start, period_end
        )

        totals = MonthlyTotals(
            worker_id=worker_id,
            year=year,
            month=month,
            period_start=period_start,
            period_end=period_end,
            employment_classification=rate_set.classification,
            daily_rate=daily_rate,
            rates_effective_date=rate_set.effective_date,
            deductions={name: ZERO for name in rate_set.rates},
        )
        work_dates: set[date] = set()
        site_ids: set[str] = set()

        for record in records:
            if record.worker_id != worker_id:
                self._skip(
                    totals,
                    f"record {record.record_id} belongs to worker {record.worker_id}",
                )
                continue
            if record.work_date is not None and not period_start <= record.work_date <= period_end:
                self._skip(totals, f"record dated {record.work_date} is outside the period")
                continue

            try:
                daily = self.calculator.compute(record, rate_set, daily_rate)
            except LaborRecordAnomaly as e:
                self._skip(totals, str(e))
                continue

            self._accumulate(totals, daily)
            if daily.is_workday:
                work_dates.add(daily.work_date)
                if record.site_id:
                    site_ids.add(record.site_id)

        totals.workdays = len(work_dates)
        totals.site_count = len(site_ids)
        if work_dates:
            totals.first_workday = min(work_dates)
            totals.last_workday = max(work_dates)

        return totals

    async def load_profile(
        self, worker_id: str, year: int | None = None, month: int | None = None
    ) -> EmploymentProfile:
        profile = await self.worker_source.get_employment_profile(worker_id)
        if profile is None:
            raise MissingRateConfigurationError(
                worker_id, year, month, reason="no employment profile"
            )
        return profile

    def require_daily_rate(
        self, profile: EmploymentProfile, year: int | None = None, month: int | None = None
    ) -> Decimal:
        try:
            rate = to_decimal(profile.daily_rate)
        except ValueError as e:
            raise MissingRateConfigurationError(profile.worker_id, year, month, reason=str(e)) from e
        if rate is None or rate <= 0:
            raise MissingRateConfigurationError(
                profile.worker_id, year, month, reason=f"daily rate is {profile.daily_rate!r}"
            )
        return rate

    async def resolve_rate_set(self, profile: EmploymentProfile, as_of: date | None = None) -> RateSet:
        classification = profile.classification or self.default_classification
        rate_set = await self.rate_resolver.resolve(classification, as_of=as_of)
        return rate_set.with_overrides(parse_rate_overrides(profile.custom_rates))

    @staticmethod
    def _accumulate(totals: MonthlyTotals, daily: DailyCalculation) -> None:
        totals.record_count += 1
        totals.total_labor_days += daily.labor_days
        totals.total_work_hours += daily.hours if daily.hours is not None else ZERO
        totals.total_overtime_hours += daily.overtime_hours
        totals.base_pay += daily.base_pay
        totals.overtime_pay += daily.overtime_pay
        totals.bonus_pay += daily.bonus_pay
        totals.gross_pay += daily.gross_pay
        for name, amount in daily.deductions.items():
            totals.deductions[name] = totals.deductions.get(name, ZERO) + amount
        totals.total_deductions += daily.total_deductions
        totals.net_pay += daily.net_pay

    @staticmethod
    def _skip(totals: MonthlyTotals, reason: str) -> None:
        logger.warning(
            "Skipping labor record for worker %s (%s-%02d): %s",
            totals.worker_id,
            totals.year,
            totals.month,
            reason,
        )
        totals.warnings.append(reason)
