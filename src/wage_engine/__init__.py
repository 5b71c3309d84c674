"""Wage engine: monthly wage computation with versioned salary snapshots."""

from wage_engine.calculators import DailyWageCalculator, MonthlyAggregator, RateResolver
from wage_engine.calculators.types import (
    DailyCalculation,
    EmploymentProfile,
    LaborRecord,
    MonthlySnapshot,
    MonthlyTotals,
    OvertimePolicy,
    RateSet,
)
from wage_engine.exceptions import (
    MissingRateConfigurationError,
    PersistenceError,
    RateLookupError,
    SnapshotNotFoundError,
    SnapshotReadError,
    ValidationError,
    WageEngineError,
)
from wage_engine.services import (
    InvalidTransitionError,
    SnapshotLifecycleManager,
    SnapshotStatus,
    WageService,
)
from wage_engine.storage import SnapshotQuery, SnapshotStore, StorageTier

__version__ = "1.0.0"

__all__ = [
    "DailyCalculation",
    "DailyWageCalculator",
    "EmploymentProfile",
    "InvalidTransitionError",
    "LaborRecord",
    "MissingRateConfigurationError",
    "MonthlyAggregator",
    "MonthlySnapshot",
    "MonthlyTotals",
    "OvertimePolicy",
    "PersistenceError",
    "RateLookupError",
    "RateResolver",
    "RateSet",
    "SnapshotLifecycleManager",
    "SnapshotNotFoundError",
    "SnapshotReadError",
    "SnapshotQuery",
    "SnapshotStatus",
    "SnapshotStore",
    "StorageTier",
    "ValidationError",
    "WageEngineError",
    "WageService",
]
