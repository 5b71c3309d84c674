"""Typed errors raised by the wage engine.

Every error carries the identifiers a caller needs to tell the user which
period could not be computed, persisted or transitioned:

    WageEngineError
    +-- RateLookupError
    +-- MissingRateConfigurationError
    +-- SnapshotNotFoundError
    +-- PersistenceError
    +-- SnapshotReadError
    +-- ValidationError
"""

from __future__ import annotations


def _period(year: int | None, month: int | None) -> str:
    if year is None or month is None:
        return ""
    return f" for {year}-{month:02d}"


class WageEngineError(Exception):
    """Base class for all wage engine errors."""

    code: str = "WAGE_ENGINE_ERROR"


class RateLookupError(WageEngineError):
    """Raised when the rate table source cannot be reached."""

    code = "RATE_LOOKUP_FAILED"

    def __init__(self, classification: str, cause: BaseException | None = None):
        self.classification = classification
        self.cause = cause
        msg = f"Rate lookup failed for employment classification '{classification}'"
        if cause is not None:
            msg += f": {cause}"
        super().__init__(msg)


class MissingRateConfigurationError(WageEngineError):
    """Raised when a worker has no usable daily rate."""

    code = "MISSING_RATE_CONFIGURATION"

    def __init__(
        self,
        worker_id: str | None,
        year: int | None = None,
        month: int | None = None,
        reason: str | None = None,
    ):
        self.worker_id = worker_id
        self.year = year
        self.month = month
        self.reason = reason
        msg = f"No valid daily rate configured for worker {worker_id}{_period(year, month)}"
        if reason:
            msg += f": {reason}"
        super().__init__(msg)


class SnapshotNotFoundError(WageEngineError):
    """Raised when a lifecycle transition targets a period with no snapshot."""

    code = "SNAPSHOT_NOT_FOUND"

    def __init__(self, worker_id: str, year: int, month: int):
        self.worker_id = worker_id
        self.year = year
        self.month = month
        super().__init__(f"No salary snapshot for worker {worker_id}{_period(year, month)}")


class PersistenceError(WageEngineError):
    """Raised when no storage tier accepted a snapshot write."""

    code = "PERSISTENCE_FAILED"

    def __init__(
        self,
        worker_id: str,
        year: int,
        month: int,
        primary_error: BaseException | None,
        fallback_error: BaseException | None,
    ):
        self.worker_id = worker_id
        self.year = year
        self.month = month
        self.primary_error = primary_error
        self.fallback_error = fallback_error
        parts = [f"primary: {primary_error}"]
        if fallback_error is not None:
            parts.append(f"fallback: {fallback_error}")
        else:
            parts.append("fallback: not attempted")
        super().__init__(
            f"Could not persist snapshot for worker {worker_id}{_period(year, month)} "
            f"({'; '.join(parts)})"
        )


class SnapshotReadError(WageEngineError):
    """Raised when the current snapshot for a period cannot be read reliably.

    Only reads that guard a write raise this; plain lookups degrade instead.
    """

    code = "SNAPSHOT_READ_FAILED"

    def __init__(self, worker_id: str, year: int, month: int, cause: BaseException):
        self.worker_id = worker_id
        self.year = year
        self.month = month
        self.cause = cause
        super().__init__(
            f"Could not read snapshot for worker {worker_id}{_period(year, month)}: {cause}"
        )


class ValidationError(WageEngineError, ValueError):
    """Raised for malformed caller input (period, worker id, filters)."""

    code = "VALIDATION_FAILED"

    def __init__(self, message: str, field: str | None = None):
        self.field = field
        super().__init__(message)
