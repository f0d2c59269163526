"""Test helpers shared across modules."""

import io

from PIL import Image

from image_variants.services.image.codec import ImageCodec

BASE_URL = "http://testserver"


def make_image_bytes(
    width: int = 320,
    height: int = 240,
    format: str = "JPEG",
    mode: str = "RGB",
    color=(200, 40, 40),
) -> bytes:
    """Encode a solid-color test image."""
    if mode == "RGBA" and len(color) == 3:
        color = (*color, 128)
    img = Image.new(mode, (width, height), color=color)
    buf = io.BytesIO()
    img.save(buf, format=format)
    return buf.getvalue()


def image_size_of(data: bytes) -> tuple[int, int]:
    with Image.open(io.BytesIO(data)) as img:
        return img.size


def image_format_of(data: bytes) -> str | None:
    with Image.open(io.BytesIO(data)) as img:
        return img.format


class CountingCodec(ImageCodec):
    """Codec that records how often it decodes."""

    def __init__(self):
        self.decode_calls = 0

    def decode(self, source):
        self.decode_calls += 1
        return super().decode(source)


class OneWayStream(io.RawIOBase):
    """Readable, non-seekable stream (like a socket body)."""

    def __init__(self, data: bytes):
        self._buf = io.BytesIO(data)

    def readable(self) -> bool:
        return True

    def readinto(self, b) -> int:
        chunk = self._buf.read(len(b))
        b[: len(chunk)] = chunk
        return len(chunk)
