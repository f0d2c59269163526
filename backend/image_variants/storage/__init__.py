"""Object store gateway backends."""

from image_variants.config import Settings
from image_variants.redis.client import RedisClient
from image_variants.redis.keys import RedisKeys
from image_variants.storage.base import ObjectNotFoundError, ObjectStore, StoredObject
from image_variants.storage.memory_store import MemoryObjectStore
from image_variants.storage.redis_store import RedisObjectStore

__all__ = [
    "MemoryObjectStore",
    "ObjectNotFoundError",
    "ObjectStore",
    "RedisObjectStore",
    "StoredObject",
    "create_object_store",
]


async def create_object_store(settings: Settings) -> ObjectStore:
    """Build the store selected by ``settings.storage_backend``."""
    backend = settings.storage_backend.lower()

    if backend == "memory":
        return MemoryObjectStore(
            public_base_url=settings.public_base_url,
            chunk_size=settings.upload_chunk_size_bytes,
        )

    if backend == "redis":
        client = await RedisClient.get_instance(settings)
        return RedisObjectStore(
            client,
            keys=RedisKeys(settings.redis_namespace),
            public_base_url=settings.public_base_url,
            chunk_size=settings.upload_chunk_size_bytes,
            max_concurrency=settings.upload_max_concurrency,
        )

    raise ValueError(f"Unknown storage backend: {settings.storage_backend}")
