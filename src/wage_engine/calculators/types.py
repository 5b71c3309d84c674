"""Type definitions for the wage calculation pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Mapping

ZERO = Decimal("0")

# Raw numeric input as delivered by a labor-record source
Quantity = Decimal | int | float | str | None


class EmploymentClassification(str, Enum):
    """Known employment classifications."""

    REGULAR_EMPLOYEE = "regular_employee"
    FREELANCER = "freelancer"
    DAILY_WORKER = "daily_worker"


@dataclass(frozen=True)
class LaborRecord:
    """One day of labor for one worker at one site.

    The labor quantity is given either as hours or as a labor-day fraction
    (1.0 = one standard day). Values are kept as delivered by the source and
    parsed by the calculator.
    """

    worker_id: str
    work_date: date | None
    site_id: str | None = None
    hours: Quantity = None
    labor_days: Quantity = None
    bonus_pay: Quantity = None
    record_id: str | None = None


@dataclass(frozen=True)
class RateSet:
    """Deduction percentages effective for one employment classification."""

    classification: str
    rates: Mapping[str, Decimal] = field(default_factory=dict)  # name -> percent
    effective_date: date | None = None

    @classmethod
    def empty(cls, classification: str, effective_date: date | None = None) -> RateSet:
        return cls(classification=classification, rates={}, effective_date=effective_date)

    @property
    def is_empty(self) -> bool:
        return not self.rates

    def with_overrides(self, overrides: Mapping[str, Decimal]) -> RateSet:
        """Return a copy where same-named rates are replaced by overrides."""
        if not overrides:
            return self
        merged = dict(self.rates)
        merged.update(overrides)
        return RateSet(
            classification=self.classification,
            rates=merged,
            effective_date=self.effective_date,
        )


@dataclass(frozen=True)
class OvertimePolicy:
    """Overtime rule applied to hour-based labor records."""

    standard_hours: Decimal = Decimal("8")
    threshold_hours: Decimal = Decimal("8")
    multiplier: Decimal = Decimal("1.5")

    def __post_init__(self) -> None:
        if self.standard_hours <= 0:
            raise ValueError("standard_hours must be positive")
        if self.threshold_hours < 0:
            raise ValueError("threshold_hours must not be negative")
        if self.multiplier < 0:
            raise ValueError("multiplier must not be negative")

    @classmethod
    def from_settings(cls, settings: Any) -> OvertimePolicy:
        return cls(
            standard_hours=settings.standard_hours,
            threshold_hours=settings.overtime_threshold_hours,
            multiplier=settings.overtime_multiplier,
        )


@dataclass(frozen=True)
class EmploymentProfile:
    """Per-worker pay configuration."""

    worker_id: str
    classification: str | None
    daily_rate: Quantity
    custom_rates: Mapping[str, Decimal] = field(default_factory=dict)


@dataclass
class DailyCalculation:
    """Itemized pay for one labor record.

    gross_pay = base_pay + overtime_pay + bonus_pay
    net_pay = gross_pay - total_deductions
    """

    work_date: date | None
    site_id: str | None
    labor_days: Decimal
    hours: Decimal | None
    overtime_hours: Decimal
    base_pay: Decimal
    overtime_pay: Decimal
    bonus_pay: Decimal
    gross_pay: Decimal
    deductions: dict[str, Decimal]
    total_deductions: Decimal
    net_pay: Decimal

    @classmethod
    def zero(
        cls,
        work_date: date | None,
        site_id: str | None,
        deduction_names: list[str] | None = None,
    ) -> DailyCalculation:
        """All-zero breakdown for a record with no labor."""
        return cls(
            work_date=work_date,
            site_id=site_id,
            labor_days=ZERO,
            hours=None,
            overtime_hours=ZERO,
            base_pay=ZERO,
            overtime_pay=ZERO,
            bonus_pay=ZERO,
            gross_pay=ZERO,
            deductions={name: ZERO for name in deduction_names or []},
            total_deductions=ZERO,
            net_pay=ZERO,
        )

    @property
    def is_workday(self) -> bool:
        return self.labor_days > 0


@dataclass
class MonthlyTotals:
    """Aggregated pay for one worker over one calendar month."""

    worker_id: str
    year: int
    month: int
    period_start: date
    period_end: date
    employment_classification: str
    daily_rate: Decimal
    rates_effective_date: date | None = None
    workdays: int = 0
    total_labor_days: Decimal = ZERO
    total_work_hours: Decimal = ZERO
    total_overtime_hours: Decimal = ZERO
    base_pay: Decimal = ZERO
    overtime_pay: Decimal = ZERO
    bonus_pay: Decimal = ZERO
    gross_pay: Decimal = ZERO
    deductions: dict[str, Decimal] = field(default_factory=dict)
    total_deductions: Decimal = ZERO
    net_pay: Decimal = ZERO
    record_count: int = 0
    site_count: int = 0
    first_workday: date | None = None
    last_workday: date | None = None
    warnings: list[str] = field(default_factory=list)


@dataclass
class MonthlySnapshot:
    """Issued wage record for one worker-month.

    Identified by (worker_id, year, month). Only the lifecycle fields
    (status, approver/payer ids and timestamps) change after issuance.
    """

    worker_id: str
    year: int
    month: int
    period_label: str
    schema_version: str
    template_version: str
    issued_at: datetime
    issuer_id: str | None
    employment_classification: str
    daily_rate: Decimal
    period_start: date
    period_end: date
    workdays: int
    total_labor_days: Decimal
    base_pay: Decimal
    overtime_pay: Decimal
    bonus_pay: Decimal
    gross_pay: Decimal
    deductions: dict[str, Decimal]
    total_deductions: Decimal
    net_pay: Decimal
    status: str = "issued"
    approver_id: str | None = None
    approved_at: datetime | None = None
    payer_id: str | None = None
    paid_at: datetime | None = None
    site_count: int = 0
    first_workday: date | None = None
    last_workday: date | None = None
    total_work_hours: Decimal = ZERO
    total_overtime_hours: Decimal = ZERO
    metadata: dict[str, Any] = field(default_factory=dict)

    @property
    def key(self) -> tuple[str, int, int]:
        return (self.worker_id, self.year, self.month)

    @classmethod
    def from_totals(
        cls,
        totals: MonthlyTotals,
        *,
        issued_at: datetime,
        issuer_id: str | None,
        schema_version: str,
        template_version: str,
    ) -> MonthlySnapshot:
        """Wrap aggregated totals into a freshly issued snapshot."""
        metadata: dict[str, Any] = {}
        if totals.warnings:
            metadata["warnings"] = list(totals.warnings)
        if totals.rates_effective_date is not None:
            metadata["rates_effective_date"] = totals.rates_effective_date.isoformat()

        return cls(
            worker_id=totals.worker_id,
            year=totals.year,
            month=totals.month,
            period_label=f"{totals.year}-{totals.month:02d}",
            schema_version=schema_version,
            template_version=template_version,
            issued_at=issued_at,
            issuer_id=issuer_id,
            employment_classification=totals.employment_classification,
            daily_rate=totals.daily_rate,
            period_start=totals.period_start,
            period_end=totals.period_end,
            workdays=totals.workdays,
            total_labor_days=totals.total_labor_days,
            base_pay=totals.base_pay,
            overtime_pay=totals.overtime_pay,
            bonus_pay=totals.bonus_pay,
            gross_pay=totals.gross_pay,
            deductions=dict(totals.deductions),
            total_deductions=totals.total_deductions,
            net_pay=totals.net_pay,
            site_count=totals.site_count,
            first_workday=totals.first_workday,
            last_workday=totals.last_workday,
            total_work_hours=totals.total_work_hours,
            total_overtime_hours=totals.total_overtime_hours,
            metadata=metadata,
        )
