"""Entry point for wage computation and snapshot management."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import TYPE_CHECKING, Callable

from wage_engine.calculators import (
    DailyWageCalculator,
    LaborRecordAnomaly,
    LaborRecordSource,
    MonthlyAggregator,
    RateResolver,
    WorkerConfigurationSource,
)
from wage_engine.calculators.types import (
    DailyCalculation,
    LaborRecord,
    MonthlySnapshot,
    MonthlyTotals,
    OvertimePolicy,
)
from wage_engine.exceptions import ValidationError
from wage_engine.services.lifecycle import SnapshotLifecycleManager, utc_now
from wage_engine.services.state_machine import (
    InvalidTransitionError,
    SnapshotStateMachine,
    SnapshotStatus,
)
from wage_engine.storage import (
    BlobSnapshotStorage,
    LoadResult,
    LocalBlobBackend,
    SaveResult,
    SnapshotQuery,
    SnapshotStore,
    SqlSnapshotStorage,
)
from wage_engine.validation import validate_worker_id

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

    from wage_engine.config import Settings

logger = logging.getLogger(__name__)


class WageService:
    """Computes wages and manages issued snapshots.

    All collaborators are passed in; use from_settings() to wire the SQL
    sources and storage tiers once at startup.
    """

    def __init__(
        self,
        aggregator: MonthlyAggregator,
        store: SnapshotStore,
        schema_version: str = "wage-snapshot-v1",
        template_version: str = "v2024.11",
        strict_transitions: bool = True,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.aggregator = aggregator
        self.store = store
        self.schema_version = schema_version
        self.template_version = template_version
        self.clock = clock
        self.lifecycle = SnapshotLifecycleManager(store, strict=strict_transitions, clock=clock)

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        session_factory: async_sessionmaker[AsyncSession],
        labor_source: LaborRecordSource | None = None,
        worker_source: WorkerConfigurationSource | None = None,
        rate_source=None,
    ) -> WageService:
        """Wire a service from settings; sources default to the SQL tables."""
        from wage_engine.sources import (
            SqlLaborRecordSource,
            SqlRateTableSource,
            SqlWorkerConfigurationSource,
        )

        if settings.blob_backend == "azure":
            from wage_engine.storage.azure_blob import AzureBlobBackend

            backend = AzureBlobBackend.from_connection_string(
                settings.azure_connection_string, settings.azure_container
            )
        elif settings.blob_backend == "local":
            backend = LocalBlobBackend(settings.blob_root)
        else:
            raise ValueError(f"Unknown BLOB_BACKEND: {settings.blob_backend}")

        calculator = DailyWageCalculator(
            policy=OvertimePolicy.from_settings(settings),
            currency_quantum=settings.currency_quantum,
        )
        aggregator = MonthlyAggregator(
            labor_source=labor_source or SqlLaborRecordSource(session_factory),
            worker_source=worker_source or SqlWorkerConfigurationSource(session_factory),
            rate_resolver=RateResolver(rate_source or SqlRateTableSource(session_factory)),
            calculator=calculator,
            default_classification=settings.default_classification,
        )
        store = SnapshotStore(
            primary=SqlSnapshotStorage(session_factory),
            fallback=BlobSnapshotStorage(
                backend,
                prefix=settings.blob_prefix,
                known_schema_versions=frozenset({settings.snapshot_schema_version}),
            ),
        )
        return cls(
            aggregator=aggregator,
            store=store,
            schema_version=settings.snapshot_schema_version,
            template_version=settings.template_version,
            strict_transitions=settings.strict_transitions,
        )

    # === Calculation ===

    async def compute_daily(self, record: LaborRecord, worker_id: str) -> DailyCalculation:
        """Ad hoc breakdown of one labor record using the worker's configuration.

        Raises:
            MissingRateConfigurationError: If the worker has no valid daily rate
            ValidationError: If the record cannot be interpreted
        """
        validate_worker_id(worker_id)
        profile = await self.aggregator.load_profile(worker_id)
        daily_rate = self.aggregator.require_daily_rate(profile)
        rate_set = await self.aggregator.resolve_rate_set(profile, as_of=record.work_date)
        try:
            return self.aggregator.calculator.compute(record, rate_set, daily_rate)
        except LaborRecordAnomaly as e:
            raise ValidationError(str(e), field="labor_record") from e

    async def aggregate_month(self, worker_id: str, year: int, month: int) -> MonthlyTotals:
        return await self.aggregator.aggregate_month(worker_id, year, month)

    async def issue_snapshot(
        self, worker_id: str, year: int, month: int, issuer_id: str | None = None
    ) -> tuple[MonthlySnapshot, SaveResult]:
        """Compute a month and store it as an issued snapshot.

        A period may be re-issued while its snapshot is still issued; once
        approved or paid it is frozen.

        Raises:
            MissingRateConfigurationError: Nothing is written in this case
            InvalidTransitionError: If the existing snapshot is approved or paid
            SnapshotReadError: If the current snapshot could not be read
            PersistenceError: If no storage tier accepted the write
        """
        totals = await self.aggregator.aggregate_month(worker_id, year, month)

        existing = await self.store.load(worker_id, year, month, strict=True)
        current_status = existing.snapshot.status if existing.snapshot else None
        if not SnapshotStateMachine.can_reissue(current_status):
            raise InvalidTransitionError(
                current_status,
                SnapshotStatus.ISSUED.value,
                reason="snapshot is no longer editable",
            )

        snapshot = MonthlySnapshot.from_totals(
            totals,
            issued_at=self.clock(),
            issuer_id=issuer_id,
            schema_version=self.schema_version,
            template_version=self.template_version,
        )
        result = await self.store.save(snapshot)
        return snapshot, result

    # === Storage ===

    async def save_snapshot(self, snapshot: MonthlySnapshot) -> SaveResult:
        return await self.store.save(snapshot)

    async def load_snapshot(self, worker_id: str, year: int, month: int) -> LoadResult:
        return await self.store.load(worker_id, year, month)

    async def list_snapshots(
        self,
        worker_id: str | None = None,
        year: int | None = None,
        month: int | None = None,
        status: str | None = None,
        limit: int = 100,
    ) -> list[MonthlySnapshot]:
        return await self.store.list(
            SnapshotQuery(worker_id=worker_id, year=year, month=month, status=status, limit=limit)
        )

    # === Lifecycle ===

    async def approve_snapshot(
        self, worker_id: str, year: int, month: int, approver_id: str
    ) -> MonthlySnapshot:
        return await self.lifecycle.approve(worker_id, year, month, approver_id)

    async def pay_snapshot(
        self, worker_id: str, year: int, month: int, payer_id: str
    ) -> MonthlySnapshot:
        return await self.lifecycle.pay(worker_id, year, month, payer_id)
