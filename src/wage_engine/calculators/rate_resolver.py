"""Deduction rate resolution by employment classification."""

from __future__ import annotations

import logging
from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Any, Mapping, Protocol

from wage_engine.calculators.types import EmploymentClassification, RateSet
from wage_engine.exceptions import RateLookupError, ValidationError

logger = logging.getLogger(__name__)


# Percentages per classification; income_tax + resident_tax make up the
# withholding rate (e.g. 3.3 + 0.33 = 3.63 for regular employees).
DEFAULT_RATE_TABLE: dict[str, dict[str, Decimal]] = {
    EmploymentClassification.REGULAR_EMPLOYEE.value: {
        "income_tax": Decimal("3.3"),
        "resident_tax": Decimal("0.33"),
        "national_pension": Decimal("4.5"),
        "health_insurance": Decimal("3.545"),
        "employment_insurance": Decimal("0.9"),
    },
    EmploymentClassification.FREELANCER.value: {
        "income_tax": Decimal("3.3"),
        "resident_tax": Decimal("0.33"),
    },
    EmploymentClassification.DAILY_WORKER.value: {
        "income_tax": Decimal("6.0"),
        "resident_tax": Decimal("0.6"),
    },
}


class RateTableSource(Protocol):
    """Read interface over the configured deduction rates."""

    async def get_rates_for(self, classification: str) -> Mapping[str, Any] | None:
        ...


class StaticRateTableSource:
    """Rate table held in memory, defaulting to DEFAULT_RATE_TABLE."""

    def __init__(self, table: Mapping[str, Mapping[str, Any]] | None = None):
        self.table = dict(DEFAULT_RATE_TABLE if table is None else table)

    async def get_rates_for(self, classification: str) -> Mapping[str, Any] | None:
        return self.table.get(classification)


class RateResolver:
    """Resolves the RateSet for an employment classification.

    An unknown classification resolves to an empty RateSet (every deduction
    is zero). Only a failure of the underlying source is an error.
    """

    def __init__(self, source: RateTableSource):
        self.source = source

    async def resolve(self, classification: str, as_of: date | None = None) -> RateSet:
        """Resolve the rate set for a classification.

        Args:
            classification: Employment classification, e.g. "daily_worker"
            as_of: Date the rates are effective for (defaults to today)

        Returns:
            The RateSet, possibly empty

        Raises:
            ValidationError: If classification is empty
            RateLookupError: If the rate source cannot be reached
        """
        if not isinstance(classification, str) or not classification.strip():
            raise ValidationError(
                "Employment classification must be a non-empty string",
                field="classification",
            )

        effective_date = as_of or date.today()

        try:
            raw = await self.source.get_rates_for(classification)
        except RateLookupError:
            raise
        except Exception as e:
            raise RateLookupError(classification, e) from e

        if not raw:
            return RateSet.empty(classification, effective_date)

        rates: dict[str, Decimal] = {}
        for name, value in raw.items():
            percent = _parse_percent(value)
            if percent is None or percent < 0:
                logger.warning(
                    "Ignoring invalid rate %r=%r for classification %s",
                    name,
                    value,
                    classification,
                )
                continue
            rates[name] = percent

        return RateSet(
            classification=classification,
            rates=rates,
            effective_date=effective_date,
        )


def _parse_percent(value: Any) -> Decimal | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        percent = Decimal(str(value))
    except InvalidOperation:
        return None
    if not percent.is_finite():
        return None
    return percent


def parse_rate_overrides(raw: Mapping[str, Any] | None) -> dict[str, Decimal]:
    """Parse worker-specific rate overrides, dropping unusable entries."""
    overrides: dict[str, Decimal] = {}
    for name, value in (raw or {}).items():
        percent = _parse_percent(value)
        if percent is None or percent < 0:
            logger.warning("Ignoring invalid rate override %r=%r", name, value)
            continue
        overrides[name] = percent
    return overrides
