"""Redis key patterns and builders with namespacing."""

import re

_GLOB_SPECIAL = re.compile(r"([*?\[\]\\])")


class RedisKeys:
    """Centralized Redis key management for the object store."""

    def __init__(self, namespace: str = "imgvar"):
        self.namespace = namespace

    @property
    def blob_prefix(self) -> str:
        return f"{self.namespace}:blob:"

    def blob(self, key: str) -> str:
        """Raw bytes of a stored object."""
        return f"{self.blob_prefix}{key}"

    def content_type(self, key: str) -> str:
        """Content type recorded for a stored object."""
        return f"{self.namespace}:ctype:{key}"

    def staging(self, key: str, upload_id: str) -> str:
        """Private key a chunked upload is assembled under."""
        return f"{self.namespace}:staging:{key}:{upload_id}"

    def blob_pattern(self, prefix: str) -> str:
        """SCAN MATCH pattern for objects whose key starts with ``prefix``."""
        escaped = _GLOB_SPECIAL.sub(r"\\\1", self.blob_prefix + prefix)
        return escaped + "*"

    def object_key(self, redis_key: bytes | str) -> str:
        """Strip the namespace from a blob key returned by SCAN."""
        if isinstance(redis_key, bytes):
            redis_key = redis_key.decode("utf-8")
        return redis_key[len(self.blob_prefix):]
