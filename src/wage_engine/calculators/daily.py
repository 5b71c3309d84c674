"""Daily wage calculation for a single labor record."""

from __future__ import annotations

from decimal import ROUND_DOWN, Decimal, InvalidOperation

from wage_engine.calculators.types import (
    ZERO,
    DailyCalculation,
    LaborRecord,
    OvertimePolicy,
    Quantity,
    RateSet,
)
from wage_engine.exceptions import MissingRateConfigurationError


class LaborRecordAnomaly(ValueError):
    """Raised when a labor record cannot be interpreted.

    The monthly aggregator skips such records with a warning.
    """

    def __init__(self, record: LaborRecord, reason: str):
        self.record = record
        self.reason = reason
        ref = record.record_id or (record.work_date.isoformat() if record.work_date else "?")
        super().__init__(f"Labor record {ref} for worker {record.worker_id}: {reason}")


def to_decimal(value: Quantity) -> Decimal | None:
    """Convert a raw numeric value to Decimal; None/blank stays None.

    Raises:
        ValueError: If the value is not a finite number
    """
    if value is None:
        return None
    if isinstance(value, bool):
        raise ValueError(f"not a number: {value!r}")
    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, int):
        result = Decimal(value)
    elif isinstance(value, float):
        result = Decimal(str(value))
    elif isinstance(value, str):
        if not value.strip():
            return None
        try:
            result = Decimal(value.strip())
        except InvalidOperation:
            raise ValueError(f"not a number: {value!r}") from None
    else:
        raise ValueError(f"not a number: {value!r}")

    if not result.is_finite():
        raise ValueError(f"not a finite number: {value!r}")
    return result


class DailyWageCalculator:
    """Turns one labor record and a rate set into an itemized day of pay.

    Pipeline:
    1) Normalize the labor quantity to labor-days (hours / standard_hours)
    2) base_pay = daily_rate x labor-days (regular hours only for hour records)
    3) overtime_pay = hours over threshold x hourly rate x multiplier
    4) gross_pay = base_pay + overtime_pay + bonus_pay
    5) Each deduction = gross_pay x percent, rounded down to the currency unit
    6) net_pay = gross_pay - sum(deductions)

    Only deductions are rounded; base and overtime pay are kept exact.
    """

    def __init__(
        self,
        policy: OvertimePolicy | None = None,
        currency_quantum: Decimal = Decimal("1"),
    ):
        if currency_quantum <= 0:
            raise ValueError("currency_quantum must be positive")
        self.policy = policy or OvertimePolicy()
        self.currency_quantum = currency_quantum

    def compute(
        self,
        record: LaborRecord,
        rate_set: RateSet,
        daily_rate: Quantity,
        bonus_pay: Quantity = None,
    ) -> DailyCalculation:
        """Compute the pay breakdown for one labor record.

        Args:
            record: The labor record
            rate_set: Deduction rates for the worker's classification
            daily_rate: Pay for one full labor-day
            bonus_pay: Bonus for the day; overrides record.bonus_pay

        Raises:
            MissingRateConfigurationError: If daily_rate is missing or <= 0
            LaborRecordAnomaly: If the record's fields cannot be interpreted
        """
        rate = self._require_daily_rate(daily_rate, record.worker_id)

        if record.work_date is None:
            raise LaborRecordAnomaly(record, "missing work date")

        hours, labor_days = self._labor_quantity(record)
        raw_bonus = bonus_pay if bonus_pay is not None else record.bonus_pay
        bonus = self._parse_field(record, "bonus_pay", raw_bonus)
        if bonus is None:
            bonus = ZERO
        elif bonus < 0:
            raise LaborRecordAnomaly(record, f"negative bonus_pay {bonus}")

        if labor_days <= 0:
            return DailyCalculation.zero(record.work_date, record.site_id, list(rate_set.rates))

        policy = self.policy
        overtime_hours = ZERO
        overtime_pay = ZERO

        if hours is not None:
            regular_hours = min(hours, policy.threshold_hours)
            base_pay = rate * regular_hours / policy.standard_hours
            if hours > policy.threshold_hours:
                overtime_hours = hours - policy.threshold_hours
                overtime_pay = overtime_hours * (rate / policy.standard_hours) * policy.multiplier
        else:
            base_pay = rate * labor_days

        gross_pay = base_pay + overtime_pay + bonus

        # Each deduction is taken from gross independently, not cascaded
        deductions = {
            name: self._round_down(gross_pay * percent / 100)
            for name, percent in rate_set.rates.items()
        }
        total_deductions = sum(deductions.values(), ZERO)

        return DailyCalculation(
            work_date=record.work_date,
            site_id=record.site_id,
            labor_days=labor_days,
            hours=hours,
            overtime_hours=overtime_hours,
            base_pay=base_pay,
            overtime_pay=overtime_pay,
            bonus_pay=bonus,
            gross_pay=gross_pay,
            deductions=deductions,
            total_deductions=total_deductions,
            net_pay=gross_pay - total_deductions,
        )

    def _labor_quantity(self, record: LaborRecord) -> tuple[Decimal | None, Decimal]:
        """Return (hours, labor_days); hours wins when both are present."""
        hours = self._parse_field(record, "hours", record.hours)
        if hours is not None:
            return hours, hours / self.policy.standard_hours

        labor_days = self._parse_field(record, "labor_days", record.labor_days)
        if labor_days is None:
            raise LaborRecordAnomaly(record, "no labor quantity (hours or labor_days)")
        return None, labor_days

    def _round_down(self, amount: Decimal) -> Decimal:
        return amount.quantize(self.currency_quantum, rounding=ROUND_DOWN)

    @staticmethod
    def _parse_field(record: LaborRecord, name: str, value: Quantity) -> Decimal | None:
        try:
            return to_decimal(value)
        except ValueError as e:
            raise LaborRecordAnomaly(record, f"unparsable {name}: {e}") from e

    @staticmethod
    def _require_daily_rate(daily_rate: Quantity, worker_id: str | None) -> Decimal:
        try:
            rate = to_decimal(daily_rate)
        except ValueError as e:
            raise MissingRateConfigurationError(worker_id, reason=str(e)) from e
        if rate is None:
            raise MissingRateConfigurationError(worker_id, reason="daily rate not set")
        if rate <= 0:
            raise MissingRateConfigurationError(
                worker_id, reason=f"daily rate must be positive, got {rate}"
            )
        return rate
