"""Primary snapshot tier backed by the salary_snapshots table.

The live table may lag behind the ORM definition while a deployment is being
provisioned. Writes and reads negotiate with it:

- missing table            -> PrimaryUnavailableError (caller falls back)
- missing required column  -> PrimaryUnavailableError
- missing optional column  -> remembered in BackendCapabilities, the
                              statement is retried without it, and written
                              values are kept in extra_metadata["dropped_fields"]

Capabilities live as long as the storage instance, which is built once at
startup, so each missing column costs one failed statement per process.
"""

from __future__ import annotations

import logging
import re
from dataclasses import MISSING, fields
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Any, Callable, Mapping

from sqlalchemy import select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import DBAPIError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.sql import Executable

from wage_engine.calculators.types import MonthlySnapshot
from wage_engine.models import SalarySnapshotRow
from wage_engine.storage.base import PrimaryUnavailableError, SnapshotQuery, StorageTier

logger = logging.getLogger(__name__)

KEY_COLUMNS = ("worker_id", "year", "month")

ROW_COLUMNS: tuple[str, ...] = tuple(
    f.name for f in fields(MonthlySnapshot) if f.name != "metadata"
) + ("extra_metadata",)

OPTIONAL_COLUMNS = frozenset(
    {
        "period_label",
        "template_version",
        "issuer_id",
        "site_count",
        "first_workday",
        "last_workday",
        "total_work_hours",
        "total_overtime_hours",
        "approver_id",
        "approved_at",
        "payer_id",
        "paid_at",
        "extra_metadata",
    }
)

# Postgres SQLSTATE codes
UNDEFINED_TABLE = "42P01"
UNDEFINED_COLUMN = "42703"

_MISSING_COLUMN_PATTERNS = (
    # postgres: column "paid_at" of relation "salary_snapshots" does not exist
    #           column salary_snapshots.paid_at does not exist
    re.compile(r'column "?(?:\w+\.)?(?P<name>\w+)"? (?:of relation "[\w.]+" )?does not exist'),
    # sqlite
    re.compile(r"has no column named (?P<name>\w+)"),
    re.compile(r"no such column: (?:\w+\.)?(?P<name>\w+)"),
)
_MISSING_RELATION = re.compile(r'relation "[\w.]+" does not exist|no such table')

_DATETIME_FIELDS = frozenset({"issued_at", "approved_at", "paid_at"})
_DATE_FIELDS = frozenset({"period_start", "period_end", "first_workday", "last_workday"})
_DECIMAL_FIELDS = frozenset(
    {
        "daily_rate",
        "total_labor_days",
        "base_pay",
        "overtime_pay",
        "bonus_pay",
        "gross_pay",
        "total_deductions",
        "net_pay",
        "total_work_hours",
        "total_overtime_hours",
    }
)
_INT_FIELDS = frozenset({"year", "month", "workdays", "site_count"})


class BackendCapabilities:
    """Optional columns the live table is known to lack."""

    def __init__(self) -> None:
        self._unsupported: set[str] = set()

    def supports(self, column: str) -> bool:
        return column not in self._unsupported

    def mark_unsupported(self, column: str) -> None:
        self._unsupported.add(column)

    @property
    def unsupported(self) -> frozenset[str]:
        return frozenset(self._unsupported)


def classify_failure(error: DBAPIError) -> tuple[str, str | None]:
    """Classify a driver error as ("relation"|"column"|"other", column)."""
    orig = error.orig
    code = getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)
    message = str(orig) if orig is not None else str(error)

    for pattern in _MISSING_COLUMN_PATTERNS:
        match = pattern.search(message)
        if match:
            return "column", match.group("name")
    if code == UNDEFINED_COLUMN:
        return "column", None
    if code == UNDEFINED_TABLE or _MISSING_RELATION.search(message):
        return "relation", None
    return "other", None


def snapshot_to_row(snapshot: MonthlySnapshot) -> dict[str, Any]:
    row: dict[str, Any] = {}
    for name in ROW_COLUMNS:
        if name == "extra_metadata":
            row[name] = dict(snapshot.metadata)
            continue
        value = getattr(snapshot, name)
        if name == "deductions":
            value = {k: str(v) for k, v in value.items()}
        elif isinstance(value, datetime):
            value = _as_utc(value)
        row[name] = value
    return row


def row_to_snapshot(row: Mapping[str, Any]) -> MonthlySnapshot:
    data = dict(row)
    metadata = dict(data.pop("extra_metadata", None) or {})
    for name, value in (metadata.pop("dropped_fields", None) or {}).items():
        if data.get(name) is None:
            data[name] = value

    values: dict[str, Any] = {"metadata": metadata}
    for f in fields(MonthlySnapshot):
        if f.name == "metadata":
            continue
        raw = data.get(f.name)
        if raw is None and (f.default is not MISSING or f.default_factory is not MISSING):
            continue
        values[f.name] = _coerce(f.name, raw)
    return MonthlySnapshot(**values)


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes; everything is written in UTC
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _coerce(name: str, value: Any) -> Any:
    if value is None:
        return None
    if name == "deductions":
        return {k: Decimal(str(v)) for k, v in value.items()}
    if name in _DATETIME_FIELDS:
        return _as_utc(datetime.fromisoformat(value) if isinstance(value, str) else value)
    if name in _DATE_FIELDS:
        return date.fromisoformat(value) if isinstance(value, str) else value
    if name in _DECIMAL_FIELDS:
        return value if isinstance(value, Decimal) else Decimal(str(value))
    if name in _INT_FIELDS:
        return int(value)
    return value


def _to_json(value: Any) -> Any:
    if isinstance(value, datetime):
        return _as_utc(value).isoformat()
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, Decimal):
        return str(value)
    return value


class SqlSnapshotStorage:
    """Snapshot tier on a SQL table with upsert by (worker_id, year, month)."""

    tier = StorageTier.PRIMARY

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        capabilities: BackendCapabilities | None = None,
    ):
        self.session_factory = session_factory
        self.capabilities = capabilities or BackendCapabilities()
        self.table = SalarySnapshotRow.__table__

    async def save(self, snapshot: MonthlySnapshot) -> tuple[str, ...]:
        """Upsert a snapshot.

        Returns:
            Names of fields the live table could not hold

        Raises:
            PrimaryUnavailableError: If the table or a required column is missing
            DBAPIError: For any other database failure
        """
        row = snapshot_to_row(snapshot)
        await self._execute(lambda dialect: self._upsert(dialect, row), fetch=False)
        return tuple(
            sorted(
                name
                for name in self.capabilities.unsupported
                if row.get(name) not in (None, {})
            )
        )

    async def load(self, worker_id: str, year: int, month: int) -> MonthlySnapshot | None:
        def build(_dialect: str) -> Executable:
            c = self.table.c
            return self._select().where(
                c.worker_id == worker_id, c.year == year, c.month == month
            )

        rows = await self._execute(build, fetch=True)
        return row_to_snapshot(rows[0]) if rows else None

    async def list(self, query: SnapshotQuery) -> list[MonthlySnapshot]:
        def build(_dialect: str) -> Executable:
            c = self.table.c
            stmt = self._select()
            if query.worker_id is not None:
                stmt = stmt.where(c.worker_id == query.worker_id)
            if query.year is not None:
                stmt = stmt.where(c.year == query.year)
            if query.month is not None:
                stmt = stmt.where(c.month == query.month)
            if query.status is not None:
                stmt = stmt.where(c.status == query.status)
            return stmt.order_by(c.year.desc(), c.month.desc(), c.worker_id).limit(query.limit)

        rows = await self._execute(build, fetch=True)
        return [row_to_snapshot(row) for row in rows]

    # === Statement construction ===

    def _select(self):
        columns = [self.table.c[name] for name in ROW_COLUMNS if self.capabilities.supports(name)]
        return select(*columns)

    def _upsert(self, dialect: str, row: dict[str, Any]) -> Executable:
        values = {k: v for k, v in row.items() if self.capabilities.supports(k)}
        dropped = {
            k: _to_json(v)
            for k, v in row.items()
            if not self.capabilities.supports(k) and k != "extra_metadata" and v is not None
        }
        if dropped:
            if self.capabilities.supports("extra_metadata"):
                metadata = dict(values.get("extra_metadata") or {})
                metadata["dropped_fields"] = dropped
                values["extra_metadata"] = metadata
            else:
                logger.warning(
                    "Discarding unsupported snapshot fields %s for %s/%s-%02d",
                    sorted(dropped),
                    row["worker_id"],
                    row["year"],
                    row["month"],
                )

        if dialect == "postgresql":
            stmt = pg_insert(self.table).values(**values)
        elif dialect == "sqlite":
            stmt = sqlite_insert(self.table).values(**values)
        else:
            raise ValueError(f"Unsupported dialect for snapshot upsert: {dialect}")

        return stmt.on_conflict_do_update(
            index_elements=list(KEY_COLUMNS),
            set_={k: stmt.excluded[k] for k in values if k not in KEY_COLUMNS},
        )

    # === Execution with capability negotiation ===

    async def _execute(
        self, build: Callable[[str], Executable], *, fetch: bool
    ) -> list[dict[str, Any]]:
        for _ in range(len(OPTIONAL_COLUMNS) + 1):
            try:
                async with self.session_factory() as session:
                    result = await session.execute(build(session.bind.dialect.name))
                    if fetch:
                        return [dict(r) for r in result.mappings().all()]
                    await session.commit()
                    return []
            except DBAPIError as e:
                if self._negotiate(e) is None:
                    raise

        raise PrimaryUnavailableError("column negotiation did not converge")

    def _negotiate(self, error: DBAPIError) -> str | None:
        """Record an unsupported optional column, or raise if the tier is unusable.

        Returns the dropped column name, or None if the error is unrelated
        to the table's shape.
        """
        kind, column = classify_failure(error)
        if kind == "relation":
            raise PrimaryUnavailableError(
                f"table {self.table.name} is not provisioned", error
            ) from error
        if kind == "column":
            if column in OPTIONAL_COLUMNS and self.capabilities.supports(column):
                self.capabilities.mark_unsupported(column)
                logger.warning(
                    "Column %s.%s is missing; omitting it from now on",
                    self.table.name,
                    column,
                )
                return column
            raise PrimaryUnavailableError(
                f"required column {column!r} of {self.table.name} is missing", error
            ) from error
        return None
