"""Image decoding, resizing and re-encoding.

Features:
- Full decode with detected format (guards against extension spoofing)
- Aspect-agnostic resize to exact pixel dimensions
- Format-preserving encode with a fixed JPEG fallback
- Bounded spooling of non-seekable streams
"""

import logging
import tempfile
from dataclasses import dataclass
from io import BytesIO
from typing import BinaryIO

from PIL import Image, UnidentifiedImageError

from image_variants.services.image.errors import DecodeError, ValidationError

logger = logging.getLogger(__name__)

_COPY_CHUNK_SIZE = 64 * 1024


@dataclass
class DecodedImage:
    """A raster image plus the encoding it was read from."""

    image: Image.Image
    format: str | None

    @property
    def width(self) -> int:
        return self.image.width

    @property
    def height(self) -> int:
        return self.image.height


def spool_to_seekable(
    stream: BinaryIO,
    max_bytes: int,
    max_memory_bytes: int,
) -> BinaryIO:
    """
    Return a seekable view of ``stream``.

    Seekable streams are rewound and returned as-is. Anything else is copied
    into a temporary buffer that stays in memory up to ``max_memory_bytes``
    and rolls over to disk beyond that.

    Raises:
        ValidationError: If the stream yields more than ``max_bytes``
    """
    if stream.seekable():
        stream.seek(0)
        return stream

    buffer = tempfile.SpooledTemporaryFile(max_size=max_memory_bytes)
    total = 0
    while chunk := stream.read(_COPY_CHUNK_SIZE):
        total += len(chunk)
        if total > max_bytes:
            buffer.close()
            raise ValidationError("File too large.", size=total)
        buffer.write(chunk)

    buffer.seek(0)
    return buffer


class ImageCodec:
    """
    Pillow-backed codec adapter.

    Decoding and encoding are synchronous and CPU-bound; callers running on
    an event loop should offload them to a worker thread.
    """

    DEFAULT_FORMAT = "JPEG"

    MIME_TYPES = {
        "jpeg": "image/jpeg",
        "jpg": "image/jpeg",
        "mpo": "image/jpeg",
        "png": "image/png",
        "gif": "image/gif",
        "webp": "image/webp",
        "bmp": "image/bmp",
        "tiff": "image/tiff",
    }

    def decode(self, source: bytes | BinaryIO) -> DecodedImage:
        """
        Decode bytes or a seekable stream into a raster image.

        Args:
            source: Raw image bytes or a seekable binary stream

        Returns:
            DecodedImage with the loaded raster and detected format

        Raises:
            DecodeError: If the data is not a recognizable image
        """
        buffer = BytesIO(source) if isinstance(source, (bytes, bytearray)) else source

        try:
            image = Image.open(buffer)
            # Force a full decode so truncated payloads fail here
            image.load()
        except (UnidentifiedImageError, OSError, SyntaxError, ValueError) as e:
            raise DecodeError(f"Invalid or corrupted image: {e}") from e
        except Image.DecompressionBombError as e:
            raise DecodeError(f"Image dimensions too large: {e}") from e

        detected = image.format
        logger.debug(f"Decoded image: {detected} {image.width}x{image.height}")
        return DecodedImage(image=image, format=detected)

    def resize(self, image: Image.Image, width: int, height: int) -> Image.Image:
        """Resize to exact pixel dimensions."""
        return image.resize((width, height), Image.Resampling.LANCZOS)

    def encode(self, image: Image.Image, format: str | None) -> bytes:
        """
        Encode a raster image.

        Args:
            image: PIL Image
            format: Pillow format name; ``None`` falls back to JPEG

        Returns:
            Encoded bytes
        """
        target = (format or self.DEFAULT_FORMAT).upper()
        if target in ("JPEG", "MPO"):
            image = self._flatten_for_jpeg(image)

        output = BytesIO()
        image.save(output, format=target)
        return output.getvalue()

    def mime_type_for(self, format: str | None) -> str:
        """Content type for a Pillow format name (JPEG when unknown)."""
        if not format:
            return self.MIME_TYPES["jpeg"]
        return self.MIME_TYPES.get(
            format.lower(),
            Image.MIME.get(format.upper(), "application/octet-stream"),
        )

    @staticmethod
    def _flatten_for_jpeg(image: Image.Image) -> Image.Image:
        """Drop alpha onto a white background; JPEG has no transparency."""
        if image.mode in ("RGB", "L", "CMYK"):
            return image

        if image.mode == "P":
            image = image.convert("RGBA")
        if image.mode == "LA":
            image = image.convert("RGBA")
        if image.mode == "RGBA":
            background = Image.new("RGB", image.size, (255, 255, 255))
            background.paste(image, mask=image.split()[3])
            return background

        return image.convert("RGB")
