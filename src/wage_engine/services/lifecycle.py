"""Approval and payment transitions for stored snapshots."""

from __future__ import annotations

import logging
from dataclasses import replace
from datetime import datetime, timezone
from typing import Callable

from wage_engine.calculators.types import MonthlySnapshot
from wage_engine.exceptions import SnapshotNotFoundError
from wage_engine.services.state_machine import SnapshotStateMachine, SnapshotStatus
from wage_engine.storage import SnapshotStore
from wage_engine.validation import validate_actor_id

logger = logging.getLogger(__name__)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class SnapshotLifecycleManager:
    """Moves snapshots through issued → approved → paid.

    Each transition only adds its own actor and timestamp; fields set by an
    earlier transition are kept. With strict=False any transition is applied
    regardless of the current status.
    """

    def __init__(
        self,
        store: SnapshotStore,
        strict: bool = True,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.store = store
        self.strict = strict
        self.clock = clock

    async def approve(
        self, worker_id: str, year: int, month: int, approver_id: str
    ) -> MonthlySnapshot:
        """Mark a period's snapshot approved.

        Raises:
            SnapshotNotFoundError: If the period has no snapshot
            InvalidTransitionError: If strict and the snapshot is not issued
            SnapshotReadError: If the current snapshot could not be read
        """
        validate_actor_id(approver_id, "approver_id")
        return await self._transition(
            worker_id,
            year,
            month,
            SnapshotStatus.APPROVED,
            approver_id=approver_id,
            approved_at=self.clock(),
        )

    async def pay(self, worker_id: str, year: int, month: int, payer_id: str) -> MonthlySnapshot:
        """Mark a period's snapshot paid.

        Raises:
            SnapshotNotFoundError: If the period has no snapshot
            InvalidTransitionError: If strict and the snapshot is not approved
        """
        validate_actor_id(payer_id, "payer_id")
        return await self._transition(
            worker_id,
            year,
            month,
            SnapshotStatus.PAID,
            payer_id=payer_id,
            paid_at=self.clock(),
        )

    async def _transition(
        self, worker_id: str, year: int, month: int, to_status: SnapshotStatus, **changes
    ) -> MonthlySnapshot:
        loaded = await self.store.load(worker_id, year, month, strict=True)
        if loaded.snapshot is None:
            raise SnapshotNotFoundError(worker_id, year, month)

        current = loaded.snapshot
        if self.strict:
            SnapshotStateMachine.validate_transition(current.status, to_status.value)

        updated = replace(current, status=to_status.value, **changes)
        result = await self.store.save(updated)

        logger.info(
            "Snapshot %s/%s-%02d moved %s -> %s (%s tier)",
            worker_id,
            year,
            month,
            current.status,
            to_status.value,
            result.source_used.value,
        )
        return updated
