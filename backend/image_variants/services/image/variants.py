"""Variant engine: upload, lookup, on-demand resize and deletion of images.

Variants are produced with a cache-aside protocol: the variant key is
checked first and the original is only decoded, resized and re-encoded on
a miss. The result is written to its final key only after encoding has
fully completed.
"""

import asyncio
import logging
import os
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Any, BinaryIO

from image_variants.config import Settings
from image_variants.services.image.codec import ImageCodec, spool_to_seekable
from image_variants.services.image.errors import (
    DecodeError,
    ErrorKind,
    NotFoundError,
    StoredImageCorruptError,
    TargetHeightExceededError,
    ValidationError,
    VariantServiceError,
)
from image_variants.services.image.keys import belongs_to, new_image_id, variant_key
from image_variants.services.image.singleflight import SingleFlight
from image_variants.storage.base import ObjectNotFoundError, ObjectStore, StoredObject

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ImageLocation:
    """Where an original or variant of an image can be fetched."""

    id: str
    url: str


@dataclass(frozen=True)
class DeletedImage:
    """Outcome of deleting an image and its variants."""

    id: str
    keys_deleted: int


def scaled_width(original_width: int, original_height: int, target_height: int) -> int:
    """
    Width that keeps the original aspect ratio at ``target_height``.

    floor(W * t / H) in exact integer arithmetic, never below one pixel.
    """
    return max(1, original_width * target_height // original_height)


class VariantEngine:
    """
    Orchestrates the object store and codec for the four image operations.

    Holds no mutable state besides the optional single-flight map; all
    configuration comes from the immutable settings passed in.
    """

    def __init__(
        self,
        store: ObjectStore,
        settings: Settings,
        codec: ImageCodec | None = None,
        single_flight: SingleFlight | None = None,
    ):
        self._store = store
        self._settings = settings
        self._codec = codec or ImageCodec()
        if single_flight is None and settings.single_flight_enabled:
            single_flight = SingleFlight()
        self._single_flight = single_flight

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    async def upload(
        self,
        file_name: str,
        content_type: str | None,
        size: int,
        stream: BinaryIO,
    ) -> ImageLocation:
        """
        Validate and store a new original.

        Args:
            file_name: Client supplied file name (extension is checked)
            content_type: Client supplied MIME type
            size: Declared size in bytes
            stream: Binary stream with the image bytes

        Returns:
            ImageLocation of the stored original

        Raises:
            ValidationError: Unsupported extension, oversized or undecodable upload
        """
        async with self._operation("upload", file_name=file_name):
            self._validate_extension(file_name)
            self._validate_size(size)

            buffer = await asyncio.to_thread(
                spool_to_seekable,
                stream,
                self._settings.max_image_size_bytes,
                self._settings.spool_max_memory_bytes,
            )
            try:
                decoded = await asyncio.to_thread(self._codec.decode, buffer)
                detected_format = decoded.format
                decoded.image.close()

                image_id = new_image_id()
                buffer.seek(0)
                stored = await self._store.put(
                    image_id,
                    buffer,
                    content_type or self._codec.mime_type_for(detected_format),
                )
            finally:
                # Spooled copies may have rolled over to a temp file
                if buffer is not stream:
                    buffer.close()

            logger.info(f"Uploaded image {image_id} ({detected_format}, {stored} bytes)")
            return ImageLocation(id=image_id, url=self._store.locate(image_id))

    async def fetch_original(self, image_id: str) -> ImageLocation:
        """Location of the original; never touches the codec."""
        async with self._operation("fetch_original", image_id=image_id):
            if not await self._store.exists(image_id):
                raise NotFoundError(image_id)
            return ImageLocation(id=image_id, url=self._store.locate(image_id))

    async def fetch_or_build_variant(self, image_id: str, target_height: int) -> ImageLocation:
        """
        Location of the ``target_height`` variant, building it on first request.

        Raises:
            NotFoundError: No original stored under ``image_id``
            TargetHeightExceededError: ``target_height`` is above the original's height
            ValidationError: ``target_height`` is not positive
        """
        async with self._operation(
            "fetch_or_build_variant",
            image_id=image_id,
            target_height=target_height,
        ):
            if target_height <= 0:
                raise ValidationError(
                    "Target height must be a positive integer.",
                    image_id=image_id,
                    target_height=target_height,
                )

            key = variant_key(image_id, target_height)
            if await self._store.exists(key):
                logger.debug(f"Variant cache hit: {key}")
                return ImageLocation(id=image_id, url=self._store.locate(key))

            if self._single_flight is None:
                await self._build_variant(image_id, target_height, key)
            else:
                await self._single_flight.do(
                    key,
                    lambda: self._build_variant(image_id, target_height, key),
                )

            return ImageLocation(id=image_id, url=self._store.locate(key))

    async def fetch_thumbnail(self, image_id: str) -> ImageLocation:
        """Variant at the configured thumbnail height."""
        return await self.fetch_or_build_variant(image_id, self._settings.thumbnail_height)

    async def delete_all(self, image_id: str) -> DeletedImage:
        """
        Delete the original and every variant of ``image_id``.

        Raises:
            NotFoundError: Nothing is stored for ``image_id``
        """
        async with self._operation("delete_all", image_id=image_id):
            found = 0
            deleted = 0

            async for key in self._store.list_keys(image_id):
                if not belongs_to(key, image_id):
                    continue
                found += 1
                # Already-gone keys are fine
                if await self._store.delete(key):
                    deleted += 1

            if not found:
                raise NotFoundError(image_id)

            logger.info(f"Deleted image {image_id} ({deleted} of {found} objects)")
            return DeletedImage(id=image_id, keys_deleted=deleted)

    async def read_object(self, key: str) -> StoredObject:
        """Raw stored bytes of an original or variant."""
        async with self._operation("read_object", image_id=key):
            try:
                return await self._store.get(key)
            except ObjectNotFoundError as e:
                raise NotFoundError(key) from e

    # ------------------------------------------------------------------
    # Variant construction
    # ------------------------------------------------------------------

    async def _build_variant(self, image_id: str, target_height: int, key: str) -> None:
        try:
            original = await self._store.get(image_id)
        except ObjectNotFoundError as e:
            raise NotFoundError(image_id, target_height=target_height) from e

        payload, content_type = await asyncio.to_thread(
            self._render_variant,
            original,
            target_height,
        )
        await self._store.put(key, payload, content_type)
        logger.info(f"Built variant {key} ({len(payload)} bytes)")

    def _render_variant(self, original: StoredObject, target_height: int) -> tuple[bytes, str]:
        try:
            decoded = self._codec.decode(original.data)
        except DecodeError as e:
            raise StoredImageCorruptError(
                f"Stored image could not be decoded: {e.message}",
                image_id=original.key,
                target_height=target_height,
            ) from e

        try:
            if target_height > decoded.height:
                raise TargetHeightExceededError(
                    target_height,
                    decoded.height,
                    image_id=original.key,
                )

            target_width = scaled_width(decoded.width, decoded.height, target_height)
            resized = self._codec.resize(decoded.image, target_width, target_height)
            payload = self._codec.encode(resized, decoded.format)
        finally:
            decoded.image.close()

        content_type = original.content_type or self._codec.mime_type_for(decoded.format)
        return payload, content_type

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------

    def _validate_extension(self, file_name: str) -> None:
        extension = os.path.splitext(file_name or "")[1].lstrip(".").lower()
        if extension not in self._settings.supported_extensions_list:
            raise ValidationError("Unsupported image extension.", extension=extension)

    def _validate_size(self, size: int) -> None:
        if size > self._settings.max_image_size_bytes:
            raise ValidationError(
                "File too large.",
                size=size,
                max_size=self._settings.max_image_size_bytes,
            )

    @asynccontextmanager
    async def _operation(self, name: str, **context: Any) -> AsyncIterator[None]:
        """Log failures of an operation with its context, then re-raise."""
        try:
            yield
        except VariantServiceError as e:
            details = {**context, **e.context}
            if e.kind is ErrorKind.UNEXPECTED:
                logger.exception(f"{name} failed: {e.message} {details}")
            else:
                logger.error(f"{name} rejected: {e.message} {details}")
            raise
        except Exception:
            logger.exception(f"{name} failed unexpectedly {context}")
            raise
