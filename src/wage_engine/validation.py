"""Input validation for caller-supplied identifiers and periods."""

from __future__ import annotations

import re
from datetime import datetime

from wage_engine.exceptions import ValidationError

# Worker ids form part of the blob path, so separators are not allowed
_WORKER_ID = re.compile(r"^[A-Za-z0-9][A-Za-z0-9_.-]*$")


def validate_worker_id(worker_id: object) -> str:
    """Return the worker id if it is usable as a storage key."""
    if not isinstance(worker_id, str) or not worker_id:
        raise ValidationError("Worker id must be a non-empty string", field="worker_id")
    if not _WORKER_ID.match(worker_id) or ".." in worker_id:
        raise ValidationError(f"Malformed worker id: {worker_id!r}", field="worker_id")
    return worker_id


def validate_period(year: object, month: object) -> tuple[int, int]:
    """Validate a (year, month) pair."""
    if not isinstance(year, int) or isinstance(year, bool) or not 1900 <= year <= 9999:
        raise ValidationError(f"Year out of range: {year!r}", field="year")
    if not isinstance(month, int) or isinstance(month, bool) or not 1 <= month <= 12:
        raise ValidationError(f"Month must be between 1 and 12, got {month!r}", field="month")
    return year, month


def validate_actor_id(actor_id: object, field: str) -> str:
    if not isinstance(actor_id, str) or not actor_id.strip():
        raise ValidationError(f"{field} must be a non-empty string", field=field)
    return actor_id


def validate_timestamp(value: object, field: str) -> None:
    """Reject naive datetimes; None passes."""
    if value is None:
        return
    if not isinstance(value, datetime) or value.utcoffset() is None:
        raise ValidationError(f"{field} must be a timezone-aware datetime", field=field)
