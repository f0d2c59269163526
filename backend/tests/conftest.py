"""Shared fixtures for the variant service tests."""

import pytest

from image_variants.config import Settings
from image_variants.services.image.variants import VariantEngine
from image_variants.storage.memory_store import MemoryObjectStore

from helpers import BASE_URL, CountingCodec, make_image_bytes


@pytest.fixture
def settings() -> Settings:
    return Settings(
        _env_file=None,
        storage_backend="memory",
        public_base_url=BASE_URL,
        supported_image_extensions="jpg,jpeg,png",
        max_image_size_bytes=5 * 1024 * 1024,
        thumbnail_height=160,
        upload_chunk_size_bytes=1024,
        enable_structured_logging=False,
    )


@pytest.fixture
def store() -> MemoryObjectStore:
    return MemoryObjectStore(public_base_url=BASE_URL, chunk_size=1024)


@pytest.fixture
def codec() -> CountingCodec:
    return CountingCodec()


@pytest.fixture
def engine(store, settings, codec) -> VariantEngine:
    return VariantEngine(store, settings, codec=codec)


@pytest.fixture
def jpeg_bytes() -> bytes:
    return make_image_bytes(320, 240, "JPEG")


@pytest.fixture
def png_bytes() -> bytes:
    return make_image_bytes(300, 200, "PNG", mode="RGBA")
