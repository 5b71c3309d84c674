"""Fallback snapshot tier: one JSON document per worker-month in a blob store."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Protocol

from pydantic import ValidationError as SchemaError

from wage_engine.calculators.types import MonthlySnapshot
from wage_engine.storage.base import SnapshotQuery, StorageTier, newest_first
from wage_engine.storage.schemas import SnapshotDocument

logger = logging.getLogger(__name__)

CONTENT_TYPE = "application/json"
EXTENSION = ".json"


class BlobBackend(Protocol):
    """Path-addressed storage of opaque payloads."""

    async def write(self, path: str, payload: bytes, content_type: str) -> None:
        ...

    async def read(self, path: str) -> bytes | None:
        """Return the payload, or None if nothing is stored at path."""
        ...

    async def list(self, prefix: str) -> list[str]:
        """Return the paths stored under prefix."""
        ...


class LocalBlobBackend:
    """Blob backend on the local filesystem (or a mounted bucket)."""

    def __init__(self, root: Path | str):
        self.root = Path(root)

    def _resolve(self, path: str) -> Path:
        target = (self.root / path).resolve()
        if not target.is_relative_to(self.root.resolve()):
            raise ValueError(f"Blob path escapes storage root: {path}")
        return target

    async def write(self, path: str, payload: bytes, content_type: str = CONTENT_TYPE) -> None:
        target = self._resolve(path)
        target.parent.mkdir(parents=True, exist_ok=True)
        tmp = target.with_name(target.name + ".tmp")
        tmp.write_bytes(payload)
        os.replace(tmp, target)

    async def read(self, path: str) -> bytes | None:
        target = self._resolve(path)
        if not target.is_file():
            return None
        return target.read_bytes()

    async def list(self, prefix: str) -> list[str]:
        base = self._resolve(prefix)
        if not base.is_dir():
            return []
        return sorted(
            p.relative_to(self.root.resolve()).as_posix()
            for p in base.rglob("*")
            if p.is_file() and not p.name.endswith(".tmp")
        )


class BlobSnapshotStorage:
    """Snapshot tier storing each snapshot as a self-describing JSON document.

    Path layout: {prefix}/{worker_id}/{YYYY-MM}.json, so a snapshot can be
    found without an index.
    """

    tier = StorageTier.FALLBACK

    def __init__(
        self,
        backend: BlobBackend,
        prefix: str = "salary-snapshots",
        known_schema_versions: frozenset[str] | None = None,
    ):
        self.backend = backend
        self.prefix = prefix.strip("/")
        self.known_schema_versions = known_schema_versions

    def path_for(self, worker_id: str, year: int, month: int) -> str:
        return f"{self.prefix}/{worker_id}/{year}-{month:02d}{EXTENSION}"

    async def save(self, snapshot: MonthlySnapshot) -> tuple[str, ...]:
        document = SnapshotDocument.from_snapshot(snapshot)
        payload = document.model_dump_json(indent=2).encode("utf-8")
        await self.backend.write(
            self.path_for(snapshot.worker_id, snapshot.year, snapshot.month),
            payload,
            CONTENT_TYPE,
        )
        return ()

    async def load(self, worker_id: str, year: int, month: int) -> MonthlySnapshot | None:
        path = self.path_for(worker_id, year, month)
        payload = await self.backend.read(path)
        if payload is None:
            return None
        return self._decode(path, payload)

    async def list(self, query: SnapshotQuery) -> list[MonthlySnapshot]:
        if query.worker_id is None:
            raise ValueError("Listing the blob tier requires a worker_id")

        snapshots: list[MonthlySnapshot] = []
        for path in await self.backend.list(f"{self.prefix}/{query.worker_id}/"):
            if not path.endswith(EXTENSION):
                continue
            payload = await self.backend.read(path)
            if payload is None:
                continue
            snapshot = self._decode(path, payload)
            if snapshot is not None and query.matches(snapshot):
                snapshots.append(snapshot)

        return newest_first(snapshots)[: query.limit]

    def _decode(self, path: str, payload: bytes) -> MonthlySnapshot | None:
        try:
            document = SnapshotDocument.model_validate_json(payload)
        except SchemaError as e:
            logger.warning("Unreadable snapshot document %s: %s", path, e)
            return None

        if (
            self.known_schema_versions is not None
            and document.schema_version not in self.known_schema_versions
        ):
            logger.warning(
                "Snapshot document %s has unknown schema version %s",
                path,
                document.schema_version,
            )
        return document.to_snapshot()
