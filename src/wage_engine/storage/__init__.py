"""Snapshot persistence."""

from wage_engine.storage.base import (
    LoadResult,
    PrimaryUnavailableError,
    SaveResult,
    SnapshotQuery,
    SnapshotStorage,
    StorageTier,
)
from wage_engine.storage.blob import BlobBackend, BlobSnapshotStorage, LocalBlobBackend
from wage_engine.storage.primary import BackendCapabilities, SqlSnapshotStorage
from wage_engine.storage.schemas import SnapshotDocument
from wage_engine.storage.store import SnapshotStore

__all__ = [
    "BackendCapabilities",
    "BlobBackend",
    "BlobSnapshotStorage",
    "LoadResult",
    "LocalBlobBackend",
    "PrimaryUnavailableError",
    "SaveResult",
    "SnapshotDocument",
    "SnapshotQuery",
    "SnapshotStorage",
    "SnapshotStore",
    "SqlSnapshotStorage",
    "StorageTier",
]
