"""In-process object store for local runs and tests."""

import logging
from collections.abc import AsyncIterator
from typing import BinaryIO

from image_variants.storage.base import (
    ObjectNotFoundError,
    ObjectStore,
    StoredObject,
    iter_chunks,
)

logger = logging.getLogger(__name__)


class MemoryObjectStore(ObjectStore):
    """Dict-backed store. Objects are swapped in whole after a full read."""

    def __init__(self, public_base_url: str = "", chunk_size: int = 4 * 1024 * 1024):
        super().__init__(public_base_url)
        self._chunk_size = chunk_size
        self._objects: dict[str, StoredObject] = {}

    async def put(
        self,
        key: str,
        data: bytes | BinaryIO,
        content_type: str | None = None,
    ) -> int:
        payload = b"".join(iter_chunks(data, self._chunk_size))
        self._objects[key] = StoredObject(key=key, data=payload, content_type=content_type)
        logger.debug(f"Stored {key} ({len(payload)} bytes)")
        return len(payload)

    async def get(self, key: str) -> StoredObject:
        stored = self._objects.get(key)
        if stored is None:
            raise ObjectNotFoundError(key)
        return stored

    async def exists(self, key: str) -> bool:
        return key in self._objects

    async def delete(self, key: str) -> bool:
        return self._objects.pop(key, None) is not None

    async def list_keys(self, prefix: str) -> AsyncIterator[str]:
        # Snapshot so callers may delete while iterating
        for key in sorted(k for k in self._objects if k.startswith(prefix)):
            yield key

    def __len__(self) -> int:
        return len(self._objects)
