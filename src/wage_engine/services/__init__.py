"""Wage engine services."""

from wage_engine.services.lifecycle import SnapshotLifecycleManager
from wage_engine.services.state_machine import (
    InvalidTransitionError,
    SnapshotStateMachine,
    SnapshotStatus,
)
from wage_engine.services.wage_service import WageService

__all__ = [
    "InvalidTransitionError",
    "SnapshotLifecycleManager",
    "SnapshotStateMachine",
    "SnapshotStatus",
    "WageService",
]
