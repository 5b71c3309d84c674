"""Salary snapshot state machine with transition validation."""

from __future__ import annotations

from enum import Enum


class SnapshotStatus(str, Enum):
    """Snapshot lifecycle status values."""

    ISSUED = "issued"
    APPROVED = "approved"
    PAID = "paid"


class InvalidTransitionError(Exception):
    """Raised when an invalid state transition is attempted."""

    def __init__(self, from_status: str | None, to_status: str, reason: str | None = None):
        self.from_status = from_status
        self.to_status = to_status
        self.reason = reason
        msg = f"Invalid transition from '{from_status}' to '{to_status}'"
        if reason:
            msg += f": {reason}"
        super().__init__(msg)


class SnapshotStateMachine:
    """State machine for snapshot status transitions.

    Allowed transitions:
    - issued → approved
    - approved → paid
    """

    VALID_TRANSITIONS: dict[str, list[str]] = {
        SnapshotStatus.ISSUED: [SnapshotStatus.APPROVED],
        SnapshotStatus.APPROVED: [SnapshotStatus.PAID],
        SnapshotStatus.PAID: [],  # Terminal state
    }

    # Statuses in which the snapshot may be recomputed and re-issued
    REISSUE_ALLOWED = {SnapshotStatus.ISSUED}

    @classmethod
    def can_transition(cls, from_status: str, to_status: str) -> bool:
        """Check if a transition is valid."""
        allowed = cls.VALID_TRANSITIONS.get(from_status, [])
        return to_status in allowed

    @classmethod
    def validate_transition(cls, from_status: str, to_status: str) -> None:
        """Validate a transition, raising InvalidTransitionError if invalid."""
        if not cls.can_transition(from_status, to_status):
            raise InvalidTransitionError(from_status, to_status)

    @classmethod
    def can_reissue(cls, status: str | None) -> bool:
        """Check if a period in this status may be issued again."""
        return status is None or status in cls.REISSUE_ALLOWED

    @classmethod
    def is_terminal(cls, status: str) -> bool:
        return not cls.VALID_TRANSITIONS.get(status, [])

    @classmethod
    def get_next_statuses(cls, current_status: str) -> list[str]:
        """Get list of valid next statuses from current status."""
        return cls.VALID_TRANSITIONS.get(current_status, [])
