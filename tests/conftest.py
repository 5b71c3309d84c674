"""Pytest fixtures for wage engine tests."""

from __future__ import annotations

from dataclasses import replace
from datetime import date, datetime, timezone
from decimal import Decimal
from pathlib import Path
from typing import AsyncGenerator

import pytest
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from wage_engine.calculators import (
    DailyWageCalculator,
    MonthlyAggregator,
    RateResolver,
    StaticRateTableSource,
)
from wage_engine.calculators.types import EmploymentProfile, LaborRecord, MonthlySnapshot
from wage_engine.config import Settings
from wage_engine.database import create_schema, create_session_factory
from wage_engine.services import WageService
from wage_engine.storage import (
    BlobSnapshotStorage,
    LocalBlobBackend,
    SnapshotStore,
    SqlSnapshotStorage,
)

FIXED_NOW = datetime(2025, 4, 1, 9, 0, tzinfo=timezone.utc)


def fixed_clock() -> datetime:
    return FIXED_NOW


class FakeLaborSource:
    """In-memory labor records."""

    def __init__(self, records: list[LaborRecord] | None = None):
        self.records = list(records or [])

    async def list_for_worker_in_range(self, worker_id, start_date, end_date):
        return [
            r
            for r in self.records
            if r.worker_id == worker_id
            and (r.work_date is None or start_date <= r.work_date <= end_date)
        ]


class FakeWorkerSource:
    """In-memory employment profiles."""

    def __init__(self, profiles: dict[str, EmploymentProfile] | None = None):
        self.profiles = dict(profiles or {})

    async def get_employment_profile(self, worker_id):
        return self.profiles.get(worker_id)


class UnreachableRateSource:
    """Rate source whose backing store is down."""

    async def get_rates_for(self, classification):
        raise ConnectionError("rate table unreachable")


class FlakyReadStorage:
    """Wraps a storage tier; the first ``failures`` loads time out."""

    def __init__(self, inner, failures: int = 1):
        self.inner = inner
        self.tier = inner.tier
        self.failures = failures

    async def save(self, snapshot):
        return await self.inner.save(snapshot)

    async def load(self, worker_id, year, month):
        if self.failures:
            self.failures -= 1
            raise TimeoutError("read timed out")
        return await self.inner.load(worker_id, year, month)

    async def list(self, query):
        return await self.inner.list(query)


def make_snapshot(
    worker_id: str = "W1",
    year: int = 2025,
    month: int = 3,
    net_pay: Decimal = Decimal("280200"),
    status: str = "issued",
) -> MonthlySnapshot:
    return MonthlySnapshot(
        worker_id=worker_id,
        year=year,
        month=month,
        period_label=f"{year}-{month:02d}",
        schema_version="wage-snapshot-v1",
        template_version="v2024.11",
        issued_at=FIXED_NOW,
        issuer_id="admin",
        employment_classification="daily_worker",
        daily_rate=Decimal("150000"),
        period_start=date(year, month, 1),
        period_end=date(year, month, 28),
        workdays=2,
        total_labor_days=Decimal("2"),
        base_pay=Decimal("300000"),
        overtime_pay=Decimal("0"),
        bonus_pay=Decimal("0"),
        gross_pay=Decimal("300000"),
        deductions={"income_tax": Decimal("18000"), "resident_tax": Decimal("1800")},
        total_deductions=Decimal("19800"),
        net_pay=net_pay,
        status=status,
        site_count=1,
        first_workday=date(year, month, 3),
        last_workday=date(year, month, 4),
        total_work_hours=Decimal("16"),
    )


def paid_snapshot(worker_id: str = "W1", year: int = 2025, month: int = 3) -> MonthlySnapshot:
    return replace(
        make_snapshot(worker_id, year, month, status="paid"),
        approver_id="boss",
        approved_at=datetime(2025, 4, 2, 10, 0, tzinfo=timezone.utc),
        payer_id="accounting",
        paid_at=datetime(2025, 4, 10, 15, 30, tzinfo=timezone.utc),
    )


def make_settings(tmp_path: Path, **overrides) -> Settings:
    values = dict(
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'wages.db'}",
        blob_backend="local",
        blob_root=tmp_path / "blobs",
        blob_prefix="salary-snapshots",
        azure_connection_string="",
        azure_container="documents",
        standard_hours=Decimal("8"),
        overtime_threshold_hours=Decimal("8"),
        overtime_multiplier=Decimal("1.5"),
        currency_quantum=Decimal("1"),
        default_classification="daily_worker",
        snapshot_schema_version="wage-snapshot-v1",
        template_version="v2024.11",
        strict_transitions=True,
        log_level="INFO",
    )
    values.update(overrides)
    return Settings(**values)


@pytest.fixture
def daily_worker_profile() -> EmploymentProfile:
    return EmploymentProfile(
        worker_id="W1",
        classification="daily_worker",
        daily_rate=Decimal("150000"),
    )


@pytest.fixture
def labor_source() -> FakeLaborSource:
    return FakeLaborSource()


@pytest.fixture
def worker_source(daily_worker_profile) -> FakeWorkerSource:
    return FakeWorkerSource({"W1": daily_worker_profile})


@pytest.fixture
def aggregator(labor_source, worker_source) -> MonthlyAggregator:
    return MonthlyAggregator(
        labor_source=labor_source,
        worker_source=worker_source,
        rate_resolver=RateResolver(StaticRateTableSource()),
        calculator=DailyWageCalculator(),
    )


@pytest.fixture
async def engine(tmp_path) -> AsyncGenerator[AsyncEngine, None]:
    """File-backed SQLite database with every table provisioned."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'wages.db'}", echo=False)
    await create_schema(engine)

    yield engine

    await engine.dispose()


@pytest.fixture
async def bare_engine(tmp_path) -> AsyncGenerator[AsyncEngine, None]:
    """SQLite database without a salary_snapshots table."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'bare.db'}", echo=False)
    await create_schema(engine, include_snapshots=False)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_factory(engine) -> async_sessionmaker[AsyncSession]:
    return create_session_factory(engine)


@pytest.fixture
def blob_backend(tmp_path) -> LocalBlobBackend:
    return LocalBlobBackend(tmp_path / "blobs")


@pytest.fixture
def fallback(blob_backend) -> BlobSnapshotStorage:
    return BlobSnapshotStorage(blob_backend)


@pytest.fixture
def store(session_factory, fallback) -> SnapshotStore:
    return SnapshotStore(primary=SqlSnapshotStorage(session_factory), fallback=fallback)


@pytest.fixture
def fallback_only_store(bare_engine, fallback) -> SnapshotStore:
    """Store whose primary tier is not provisioned."""
    return SnapshotStore(
        primary=SqlSnapshotStorage(create_session_factory(bare_engine)),
        fallback=fallback,
    )


@pytest.fixture
def service(aggregator, store) -> WageService:
    return WageService(aggregator=aggregator, store=store, clock=fixed_clock)
