"""Two-tier snapshot store: SQL table first, blob documents as fallback."""

from __future__ import annotations

import logging

from wage_engine.calculators.types import MonthlySnapshot
from wage_engine.exceptions import PersistenceError, SnapshotReadError
from wage_engine.storage.base import (
    LoadResult,
    PrimaryUnavailableError,
    SaveResult,
    SnapshotQuery,
    SnapshotStorage,
    StorageTier,
)
from wage_engine.validation import validate_period, validate_timestamp, validate_worker_id

logger = logging.getLogger(__name__)


class SnapshotStore:
    """Persists monthly snapshots in one of two tiers.

    Tiers are tried in fixed order. A save lands in exactly one tier: the
    primary, or the fallback when the primary is structurally unavailable.
    The tiers are never synchronized, so a record written to the fallback
    is only visible through the fallback.

    Plain reads never raise on storage problems: a primary miss or failure
    falls through to the fallback, and a fallback failure reads as "not
    found". Reads that guard a write pass ``strict=True``.
    """

    def __init__(self, primary: SnapshotStorage, fallback: SnapshotStorage):
        self.primary = primary
        self.fallback = fallback

    async def save(self, snapshot: MonthlySnapshot) -> SaveResult:
        """Upsert a snapshot keyed by (worker_id, year, month).

        Raises:
            ValidationError: If the snapshot key is malformed or a timestamp is naive
            PersistenceError: If no tier accepted the write
        """
        worker_id, year, month = snapshot.key
        validate_worker_id(worker_id)
        validate_period(year, month)
        for name in ("issued_at", "approved_at", "paid_at"):
            validate_timestamp(getattr(snapshot, name), name)

        try:
            dropped = await self.primary.save(snapshot)
        except PrimaryUnavailableError as e:
            logger.warning(
                "Primary snapshot tier unavailable (%s); writing %s/%s-%02d to fallback",
                e.reason,
                worker_id,
                year,
                month,
            )
            primary_error: BaseException = e
        except Exception as e:
            logger.exception("Primary snapshot write failed for %s/%s-%02d", worker_id, year, month)
            raise PersistenceError(worker_id, year, month, e, None) from e
        else:
            logger.info("Saved snapshot %s/%s-%02d to primary tier", worker_id, year, month)
            return SaveResult(success=True, source_used=StorageTier.PRIMARY, dropped_fields=dropped)

        try:
            await self.fallback.save(snapshot)
        except Exception as e:
            logger.exception("Fallback snapshot write failed for %s/%s-%02d", worker_id, year, month)
            raise PersistenceError(worker_id, year, month, primary_error, e) from e

        logger.info("Saved snapshot %s/%s-%02d to fallback tier", worker_id, year, month)
        return SaveResult(success=True, source_used=StorageTier.FALLBACK)

    async def load(
        self, worker_id: str, year: int, month: int, *, strict: bool = False
    ) -> LoadResult:
        """Load the snapshot for a period from whichever tier holds it.

        With ``strict`` the read is used to guard a write, so it does not
        degrade: a primary failure other than structural unavailability, or
        any fallback failure, raises instead of reading as "not found".

        Raises:
            SnapshotReadError: Only with ``strict``, if a tier read failed
        """
        validate_worker_id(worker_id)
        validate_period(year, month)

        try:
            snapshot = await self.primary.load(worker_id, year, month)
        except PrimaryUnavailableError as e:
            logger.warning("Primary snapshot tier unavailable (%s), trying fallback", e.reason)
        except Exception as e:
            if strict:
                raise SnapshotReadError(worker_id, year, month, e) from e
            logger.warning("Primary snapshot read failed, trying fallback: %s", e)
        else:
            if snapshot is not None:
                return LoadResult(snapshot=snapshot, source_used=StorageTier.PRIMARY)
            logger.debug("No primary snapshot for %s/%s-%02d", worker_id, year, month)

        try:
            snapshot = await self.fallback.load(worker_id, year, month)
        except Exception as e:
            if strict:
                raise SnapshotReadError(worker_id, year, month, e) from e
            logger.warning("Fallback snapshot read failed: %s", e)
            return LoadResult(snapshot=None, source_used=None)

        if snapshot is None:
            return LoadResult(snapshot=None, source_used=None)
        return LoadResult(snapshot=snapshot, source_used=StorageTier.FALLBACK)

    async def list(self, query: SnapshotQuery | None = None) -> list[MonthlySnapshot]:
        """List snapshots matching the filters, newest period first.

        When the primary tier is unavailable the fallback is scanned, which
        needs a worker_id.
        """
        query = (query or SnapshotQuery()).validate()

        try:
            return await self.primary.list(query)
        except Exception as e:
            logger.warning("Primary snapshot listing failed: %s", e)

        if query.worker_id is None:
            logger.warning("Fallback snapshot listing needs a worker_id; returning no results")
            return []

        try:
            return await self.fallback.list(query)
        except Exception as e:
            logger.warning("Fallback snapshot listing failed: %s", e)
            return []
