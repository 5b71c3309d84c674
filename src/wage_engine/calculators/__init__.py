"""Wage calculation pipeline."""

from wage_engine.calculators.daily import DailyWageCalculator, LaborRecordAnomaly
from wage_engine.calculators.monthly import (
    LaborRecordSource,
    MonthlyAggregator,
    WorkerConfigurationSource,
    period_bounds,
)
from wage_engine.calculators.rate_resolver import (
    DEFAULT_RATE_TABLE,
    RateResolver,
    RateTableSource,
    StaticRateTableSource,
)

__all__ = [
    "DEFAULT_RATE_TABLE",
    "DailyWageCalculator",
    "LaborRecordAnomaly",
    "LaborRecordSource",
    "MonthlyAggregator",
    "RateResolver",
    "RateTableSource",
    "StaticRateTableSource",
    "WorkerConfigurationSource",
    "period_bounds",
]
