"""Azure Blob Storage backend for the fallback snapshot tier.

Requires the ``azure`` extra (azure-storage-blob). The SDK client is
synchronous, so each call runs in a worker thread.
"""

from __future__ import annotations

import asyncio

from azure.storage.blob import BlobServiceClient, ContainerClient, ContentSettings


class AzureBlobBackend:
    """Blob backend on an Azure Storage container."""

    def __init__(self, container_client: ContainerClient):
        self.container = container_client

    @classmethod
    def from_connection_string(cls, connection_string: str, container: str) -> AzureBlobBackend:
        service = BlobServiceClient.from_connection_string(connection_string)
        container_client = service.get_container_client(container)
        if not container_client.exists():
            container_client.create_container()
        return cls(container_client)

    async def write(self, path: str, payload: bytes, content_type: str) -> None:
        await asyncio.to_thread(self._write, path, payload, content_type)

    async def read(self, path: str) -> bytes | None:
        return await asyncio.to_thread(self._read, path)

    async def list(self, prefix: str) -> list[str]:
        return await asyncio.to_thread(self._list, prefix)

    def _write(self, path: str, payload: bytes, content_type: str) -> None:
        self.container.get_blob_client(path).upload_blob(
            payload,
            content_settings=ContentSettings(content_type=content_type),
            overwrite=True,
        )

    def _read(self, path: str) -> bytes | None:
        blob_client = self.container.get_blob_client(path)
        if not blob_client.exists():
            return None
        return blob_client.download_blob().readall()

    def _list(self, prefix: str) -> list[str]:
        return sorted(blob.name for blob in self.container.list_blobs(name_starts_with=prefix))
