"""Storage tier contracts and result types."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Protocol

from wage_engine.calculators.types import MonthlySnapshot
from wage_engine.exceptions import ValidationError
from wage_engine.validation import validate_period, validate_worker_id

MAX_LIST_LIMIT = 1000


class StorageTier(str, Enum):
    """Which tier served a request."""

    PRIMARY = "primary"
    FALLBACK = "fallback"


class PrimaryUnavailableError(Exception):
    """The primary tier is structurally unable to serve the request."""

    def __init__(self, reason: str, cause: BaseException | None = None):
        self.reason = reason
        self.cause = cause
        super().__init__(reason if cause is None else f"{reason}: {cause}")


@dataclass(frozen=True)
class SaveResult:
    success: bool
    source_used: StorageTier
    dropped_fields: tuple[str, ...] = ()


@dataclass(frozen=True)
class LoadResult:
    snapshot: MonthlySnapshot | None
    source_used: StorageTier | None

    @property
    def found(self) -> bool:
        return self.snapshot is not None


@dataclass(frozen=True)
class SnapshotQuery:
    """Filters for listing snapshots."""

    worker_id: str | None = None
    year: int | None = None
    month: int | None = None
    status: str | None = None
    limit: int = 100

    def validate(self) -> SnapshotQuery:
        if self.worker_id is not None:
            validate_worker_id(self.worker_id)
        if self.year is not None:
            validate_period(self.year, self.month if self.month is not None else 1)
        elif self.month is not None:
            validate_period(2000, self.month)
        if not isinstance(self.limit, int) or not 1 <= self.limit <= MAX_LIST_LIMIT:
            raise ValidationError(
                f"limit must be between 1 and {MAX_LIST_LIMIT}, got {self.limit!r}",
                field="limit",
            )
        return self

    def matches(self, snapshot: MonthlySnapshot) -> bool:
        return (
            (self.worker_id is None or snapshot.worker_id == self.worker_id)
            and (self.year is None or snapshot.year == self.year)
            and (self.month is None or snapshot.month == self.month)
            and (self.status is None or snapshot.status == self.status)
        )


def newest_first(snapshots: list[MonthlySnapshot]) -> list[MonthlySnapshot]:
    return sorted(snapshots, key=lambda s: (-s.year, -s.month, s.worker_id))


class SnapshotStorage(Protocol):
    """One storage tier for monthly snapshots."""

    tier: StorageTier

    async def save(self, snapshot: MonthlySnapshot) -> tuple[str, ...]:
        """Upsert a snapshot; returns the names of fields that could not be stored."""
        ...

    async def load(self, worker_id: str, year: int, month: int) -> MonthlySnapshot | None:
        ...

    async def list(self, query: SnapshotQuery) -> list[MonthlySnapshot]:
        ...
