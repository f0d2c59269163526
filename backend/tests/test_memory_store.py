import io

import pytest

from image_variants.storage.base import ObjectNotFoundError
from image_variants.storage.memory_store import MemoryObjectStore


@pytest.fixture
def mem():
    return MemoryObjectStore(public_base_url="https://cdn.example.com/", chunk_size=4)


async def test_put_get_roundtrip_with_content_type(mem):
    size = await mem.put("a", b"hello world", "text/plain")
    stored = await mem.get("a")
    assert size == 11
    assert stored.data == b"hello world"
    assert stored.content_type == "text/plain"


async def test_put_reads_streams_in_chunks(mem):
    await mem.put("a", io.BytesIO(b"0123456789"), None)
    assert (await mem.get("a")).data == b"0123456789"


async def test_get_missing_raises(mem):
    with pytest.raises(ObjectNotFoundError):
        await mem.get("missing")


async def test_delete_is_idempotent(mem):
    await mem.put("a", b"x")
    assert await mem.delete("a") is True
    assert await mem.delete("a") is False
    assert not await mem.exists("a")


async def test_list_keys_by_prefix_allows_deleting_while_iterating(mem):
    for key in ("img", "img_10", "img_20", "other"):
        await mem.put(key, b"x")

    listed = []
    async for key in mem.list_keys("img"):
        listed.append(key)
        await mem.delete(key)

    assert listed == ["img", "img_10", "img_20"]
    assert len(mem) == 1


def test_locate_uses_public_base_url(mem):
    assert mem.locate("img_10") == "https://cdn.example.com/api/v1/blobs/img_10"
