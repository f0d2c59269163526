"""Object store gateway contract."""

from abc import ABC, abstractmethod
from collections.abc import AsyncIterator
from dataclasses import dataclass
from typing import BinaryIO


class ObjectNotFoundError(Exception):
    """Raised by ``get`` when no object is stored at the key."""

    def __init__(self, key: str):
        self.key = key
        super().__init__(f"No object stored at key {key!r}")


@dataclass
class StoredObject:
    """A blob held in the object store."""

    key: str
    data: bytes
    content_type: str | None = None

    @property
    def size_bytes(self) -> int:
        return len(self.data)


class ObjectStore(ABC):
    """
    Minimal key-value blob store used by the variant engine.

    Writes are all-or-nothing from a reader's point of view: an object is
    either fully present at its key or absent. Errors are propagated to the
    caller and never retried here.
    """

    def __init__(self, public_base_url: str = ""):
        self._public_base_url = public_base_url.rstrip("/")

    @abstractmethod
    async def put(
        self,
        key: str,
        data: bytes | BinaryIO,
        content_type: str | None = None,
    ) -> int:
        """
        Store an object, replacing any previous one at the key.

        Args:
            key: Object key
            data: Bytes or a readable binary stream (read in chunks)
            content_type: MIME type recorded with the object

        Returns:
            Number of bytes stored
        """
        ...

    @abstractmethod
    async def get(self, key: str) -> StoredObject:
        """
        Read an object.

        Raises:
            ObjectNotFoundError: If nothing is stored at the key
        """
        ...

    @abstractmethod
    async def exists(self, key: str) -> bool:
        """Check whether an object is stored at the key."""
        ...

    @abstractmethod
    async def delete(self, key: str) -> bool:
        """Delete an object. Returns False if it was already absent."""
        ...

    @abstractmethod
    def list_keys(self, prefix: str) -> AsyncIterator[str]:
        """Lazily iterate keys starting with ``prefix``; restartable per call."""
        ...

    async def health_check(self) -> bool:
        """Check if the backend is reachable."""
        return True

    async def close(self) -> None:
        """Release backend resources."""
        return None

    def locate(self, key: str) -> str:
        """Public location of the object at ``key``."""
        return f"{self._public_base_url}/api/v1/blobs/{key}"


def iter_chunks(data: bytes | BinaryIO, chunk_size: int):
    """Yield ``data`` in chunks of at most ``chunk_size`` bytes."""
    if isinstance(data, (bytes, bytearray)):
        for offset in range(0, len(data), chunk_size):
            yield bytes(data[offset:offset + chunk_size])
        return

    while chunk := data.read(chunk_size):
        yield chunk
