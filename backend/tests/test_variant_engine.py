import asyncio
import io

import pytest

from image_variants.services.image.codec import spool_to_seekable
from image_variants.services.image.errors import (
    DecodeError,
    ErrorKind,
    NotFoundError,
    StoredImageCorruptError,
    TargetHeightExceededError,
    ValidationError,
)
from image_variants.services.image.variants import VariantEngine, scaled_width

from helpers import (
    BASE_URL,
    CountingCodec,
    OneWayStream,
    image_format_of,
    image_size_of,
    make_image_bytes,
)


async def upload(engine, data, name="photo.jpg", content_type="image/jpeg"):
    return await engine.upload(name, content_type, len(data), io.BytesIO(data))


# ----------------------------------------------------------------------
# Upload
# ----------------------------------------------------------------------


async def test_upload_stores_original_under_fresh_id(engine, store, jpeg_bytes):
    location = await upload(engine, jpeg_bytes)

    assert location.url == f"{BASE_URL}/api/v1/blobs/{location.id}"
    stored = await store.get(location.id)
    assert stored.data == jpeg_bytes
    assert stored.content_type == "image/jpeg"


async def test_upload_rejects_unsupported_extension(engine, store, jpeg_bytes):
    with pytest.raises(ValidationError, match="Unsupported image extension"):
        await upload(engine, jpeg_bytes, name="x.exe")
    assert len(store) == 0


async def test_upload_extension_check_is_case_insensitive(engine, jpeg_bytes):
    location = await upload(engine, jpeg_bytes, name="HOLIDAY.JPG")
    assert location.id


async def test_upload_rejects_declared_size_over_limit(engine, store, settings, jpeg_bytes):
    with pytest.raises(ValidationError, match="File too large"):
        await engine.upload(
            "photo.jpg",
            "image/jpeg",
            settings.max_image_size_bytes + 1,
            io.BytesIO(jpeg_bytes),
        )
    assert len(store) == 0


async def test_upload_rejects_spoofed_extension(engine, store):
    with pytest.raises(DecodeError):
        await upload(engine, b"MZ\x90\x00 not really a jpeg", name="evil.jpg")
    assert len(store) == 0


async def test_upload_accepts_non_seekable_stream(engine, store, jpeg_bytes):
    location = await engine.upload("photo.jpg", "image/jpeg", len(jpeg_bytes), OneWayStream(jpeg_bytes))
    assert (await store.get(location.id)).data == jpeg_bytes


@pytest.fixture
def spooled_buffers(monkeypatch):
    """Record the buffers the engine spools uploads into."""
    from image_variants.services.image import variants

    buffers = []

    def recording_spool(*args, **kwargs):
        buffer = spool_to_seekable(*args, **kwargs)
        buffers.append(buffer)
        return buffer

    monkeypatch.setattr(variants, "spool_to_seekable", recording_spool)
    return buffers


async def test_spooled_upload_buffer_is_closed(engine, spooled_buffers, jpeg_bytes):
    await engine.upload("photo.jpg", "image/jpeg", len(jpeg_bytes), OneWayStream(jpeg_bytes))

    assert len(spooled_buffers) == 1
    assert spooled_buffers[0].closed


async def test_spooled_upload_buffer_is_closed_when_decode_fails(engine, store, spooled_buffers):
    garbage = b"MZ\x90\x00 not really a jpeg"
    with pytest.raises(DecodeError):
        await engine.upload("evil.jpg", "image/jpeg", len(garbage), OneWayStream(garbage))

    assert spooled_buffers[0].closed
    assert len(store) == 0


async def test_caller_stream_is_left_open(engine, jpeg_bytes):
    stream = io.BytesIO(jpeg_bytes)
    await engine.upload("photo.jpg", "image/jpeg", len(jpeg_bytes), stream)
    assert not stream.closed


async def test_upload_without_content_type_uses_detected_format(engine, store, png_bytes):
    location = await upload(engine, png_bytes, name="logo.png", content_type=None)
    assert (await store.get(location.id)).content_type == "image/png"


# ----------------------------------------------------------------------
# Fetch original
# ----------------------------------------------------------------------


async def test_fetch_original_returns_location_without_decoding(engine, codec, jpeg_bytes):
    location = await upload(engine, jpeg_bytes)
    codec.decode_calls = 0

    fetched = await engine.fetch_original(location.id)

    assert fetched == location
    assert codec.decode_calls == 0


async def test_fetch_never_uploaded_id_is_not_found(engine):
    with pytest.raises(NotFoundError, match="not found") as exc_info:
        await engine.fetch_original("nope")
    assert isinstance(exc_info.value, ValidationError)

    with pytest.raises(NotFoundError, match="not found"):
        await engine.fetch_or_build_variant("nope", 100)


# ----------------------------------------------------------------------
# Variants
# ----------------------------------------------------------------------


async def test_variant_is_built_once_then_served_from_storage(engine, codec, jpeg_bytes):
    original = await upload(engine, jpeg_bytes)
    codec.decode_calls = 0

    first = await engine.fetch_or_build_variant(original.id, 120)
    second = await engine.fetch_or_build_variant(original.id, 120)

    assert first.url == second.url == f"{BASE_URL}/api/v1/blobs/{original.id}_120"
    assert first.id == original.id
    assert codec.decode_calls == 1


@pytest.mark.parametrize(
    "width,height,target",
    [(320, 240, 120), (333, 250, 100), (100, 300, 7), (640, 480, 480), (17, 13, 5)],
)
async def test_variant_keeps_aspect_ratio(engine, store, width, height, target):
    original = await upload(engine, make_image_bytes(width, height, "PNG"), name="a.png")

    await engine.fetch_or_build_variant(original.id, target)

    variant = await store.get(f"{original.id}_{target}")
    assert image_size_of(variant.data) == (width * target // height, target)


def test_scaled_width_floors_and_never_reaches_zero():
    assert scaled_width(333, 250, 100) == 133
    assert scaled_width(1000, 3, 2) == 666
    assert scaled_width(2, 1000, 1) == 1


async def test_upscaling_is_refused(engine, store, jpeg_bytes):
    original = await upload(engine, jpeg_bytes)

    with pytest.raises(TargetHeightExceededError) as exc_info:
        await engine.fetch_or_build_variant(original.id, 241)

    assert exc_info.value.kind is ErrorKind.TARGET_HEIGHT_EXCEEDED
    assert not await store.exists(f"{original.id}_241")


async def test_non_positive_height_is_rejected(engine, jpeg_bytes):
    original = await upload(engine, jpeg_bytes)
    with pytest.raises(ValidationError):
        await engine.fetch_or_build_variant(original.id, 0)


async def test_variant_preserves_format_and_content_type(engine, store, png_bytes):
    original = await upload(engine, png_bytes, name="logo.png", content_type="image/png")

    await engine.fetch_or_build_variant(original.id, 50)

    variant = await store.get(f"{original.id}_50")
    assert image_format_of(variant.data) == "PNG"
    assert variant.content_type == "image/png"


async def test_variant_falls_back_to_jpeg_when_format_unknown(store, settings):
    class FormatlessCodec(CountingCodec):
        def decode(self, source):
            decoded = super().decode(source)
            decoded.format = None
            return decoded

    engine = VariantEngine(store, settings, codec=FormatlessCodec())
    await store.put("raw", make_image_bytes(80, 60, "PNG"), None)

    await engine.fetch_or_build_variant("raw", 30)

    variant = await store.get("raw_30")
    assert image_format_of(variant.data) == "JPEG"
    assert variant.content_type == "image/jpeg"


async def test_corrupt_stored_original_is_unexpected_and_writes_nothing(engine, store):
    await store.put("broken", b"\x89PNG garbage", "image/png")

    with pytest.raises(StoredImageCorruptError) as exc_info:
        await engine.fetch_or_build_variant("broken", 10)

    assert exc_info.value.kind is ErrorKind.UNEXPECTED
    assert not await store.exists("broken_10")


async def test_concurrent_requests_build_variant_once(engine, codec, jpeg_bytes):
    original = await upload(engine, jpeg_bytes)
    codec.decode_calls = 0

    results = await asyncio.gather(
        *(engine.fetch_or_build_variant(original.id, 90) for _ in range(5))
    )

    assert len({r.url for r in results}) == 1
    assert codec.decode_calls == 1


async def test_without_single_flight_variants_still_build(store, codec, jpeg_bytes):
    from image_variants.config import Settings

    settings = Settings(_env_file=None, single_flight_enabled=False, supported_image_extensions="jpg")
    engine = VariantEngine(store, settings, codec=codec)
    original = await upload(engine, jpeg_bytes)

    location = await engine.fetch_or_build_variant(original.id, 60)
    assert location.url.endswith(f"{original.id}_60")


async def test_thumbnail_uses_configured_height(engine, store, jpeg_bytes):
    original = await upload(engine, jpeg_bytes)

    location = await engine.fetch_thumbnail(original.id)

    assert location.url.endswith(f"{original.id}_160")
    assert image_size_of((await store.get(f"{original.id}_160")).data) == (213, 160)


# ----------------------------------------------------------------------
# Delete
# ----------------------------------------------------------------------


async def test_delete_removes_original_and_all_variants(engine, store, jpeg_bytes):
    original = await upload(engine, jpeg_bytes)
    await engine.fetch_or_build_variant(original.id, 100)
    await engine.fetch_or_build_variant(original.id, 160)
    await store.put(original.id + "x", b"someone else", None)

    deleted = await engine.delete_all(original.id)

    assert deleted.id == original.id
    assert deleted.keys_deleted == 3
    for key in (original.id, f"{original.id}_100", f"{original.id}_160"):
        assert not await store.exists(key)
    assert await store.exists(original.id + "x")

    with pytest.raises(NotFoundError, match="not found"):
        await engine.delete_all(original.id)


async def test_read_object_maps_missing_key_to_not_found(engine):
    with pytest.raises(NotFoundError):
        await engine.read_object("missing_10")
