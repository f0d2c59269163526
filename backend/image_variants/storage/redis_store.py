"""Redis-backed object store.

Layout (see ``RedisKeys``):
- ``{ns}:blob:{key}``   raw object bytes
- ``{ns}:ctype:{key}``  content type
- ``{ns}:staging:...``  chunked uploads in progress

Uploads are assembled out of sight with ``SETRANGE`` and published with a
single MULTI/EXEC ``RENAME``, so readers never observe a partial object.
Only staging keys expire; published objects live until deleted.
"""

import asyncio
import logging
import uuid
from collections.abc import AsyncIterator
from typing import BinaryIO

from image_variants.redis.client import RedisClient
from image_variants.redis.keys import RedisKeys
from image_variants.storage.base import (
    ObjectNotFoundError,
    ObjectStore,
    StoredObject,
    iter_chunks,
)

logger = logging.getLogger(__name__)


class RedisObjectStore(ObjectStore):
    """
    Object store on top of a pooled Redis connection.

    Features:
    - Bounded-concurrency chunked uploads
    - Atomic publish of completed uploads
    - Lazy prefix listing via SCAN
    """

    STAGING_TTL_SECONDS = 3600
    SCAN_COUNT = 100

    def __init__(
        self,
        redis: RedisClient,
        keys: RedisKeys | None = None,
        public_base_url: str = "",
        chunk_size: int = 4 * 1024 * 1024,
        max_concurrency: int = 4,
    ):
        super().__init__(public_base_url)
        self._redis = redis
        self._keys = keys or RedisKeys()
        self._chunk_size = chunk_size
        self._max_concurrency = max(1, max_concurrency)

    async def put(
        self,
        key: str,
        data: bytes | BinaryIO,
        content_type: str | None = None,
    ) -> int:
        staging = self._keys.staging(key, uuid.uuid4().hex)
        semaphore = asyncio.Semaphore(self._max_concurrency)
        tasks: list[asyncio.Task] = []
        size = 0

        async def write_chunk(offset: int, chunk: bytes) -> None:
            try:
                await self._redis.client.setrange(staging, offset, chunk)
                if offset == 0:
                    await self._redis.client.expire(staging, self.STAGING_TTL_SECONDS)
            finally:
                semaphore.release()

        try:
            for chunk in iter_chunks(data, self._chunk_size):
                # At most max_concurrency chunks are held in memory at once
                await semaphore.acquire()
                tasks.append(asyncio.create_task(write_chunk(size, chunk)))
                size += len(chunk)

            await asyncio.gather(*tasks)

            async with self._redis.pipeline(transaction=True) as pipe:
                if size:
                    pipe.rename(staging, self._keys.blob(key))
                    # RENAME carries the staging TTL over to the blob
                    pipe.persist(self._keys.blob(key))
                else:
                    pipe.set(self._keys.blob(key), b"")
                if content_type:
                    pipe.set(self._keys.content_type(key), content_type)
                else:
                    pipe.delete(self._keys.content_type(key))

        except (Exception, asyncio.CancelledError):
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            await self._redis.client.delete(staging)
            logger.warning(f"Upload of {key} aborted after {size} bytes")
            raise

        logger.debug(f"Stored {key} ({size} bytes in {len(tasks)} chunks)")
        return size

    async def get(self, key: str) -> StoredObject:
        # Single command so bytes and content type come from the same write
        data, content_type = await self._redis.client.mget(
            self._keys.blob(key),
            self._keys.content_type(key),
        )
        if data is None:
            raise ObjectNotFoundError(key)

        if isinstance(content_type, bytes):
            content_type = content_type.decode("utf-8")
        return StoredObject(key=key, data=bytes(data), content_type=content_type)

    async def exists(self, key: str) -> bool:
        return await self._redis.client.exists(self._keys.blob(key)) > 0

    async def delete(self, key: str) -> bool:
        deleted = await self._redis.client.delete(
            self._keys.blob(key),
            self._keys.content_type(key),
        )
        return deleted > 0

    async def list_keys(self, prefix: str) -> AsyncIterator[str]:
        seen: set[str] = set()
        async for redis_key in self._redis.client.scan_iter(
            match=self._keys.blob_pattern(prefix),
            count=self.SCAN_COUNT,
        ):
            # SCAN may return a key more than once
            key = self._keys.object_key(redis_key)
            if key not in seen:
                seen.add(key)
                yield key

    async def health_check(self) -> bool:
        return await self._redis.health_check()

    async def close(self) -> None:
        await self._redis.disconnect()
