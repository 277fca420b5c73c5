"""
Unit tests for the metadata cache
"""
import pytest

from conftest import make_meta
from services.exceptions import CacheCorruptedError, CacheStoreError, ObjectStoreError

pytestmark = pytest.mark.unit


class TestMetadataCache:

    @pytest.mark.asyncio
    async def test_write_then_read_returns_equal_record(self, metadata_cache, fake_store):
        record = make_meta()
        record.cdn_video_url = "https://cache.example/tiktok/alice/123.mp4"

        await metadata_cache.write("alice/123", record)
        assert await metadata_cache.exists("alice/123")

        assert await metadata_cache.read("alice/123") == record
        body, content_type = fake_store.objects["tiktok/alice/123.json"]
        assert content_type == "application/json"
        assert b'"cdnVideoURL":"https://cache.example/tiktok/alice/123.mp4"' in body

    @pytest.mark.asyncio
    async def test_exists_false_when_absent(self, metadata_cache, fake_store):
        assert not await metadata_cache.exists("alice/123")
        assert fake_store.heads == ["tiktok/alice/123.json"]

    @pytest.mark.asyncio
    async def test_exists_fails_open_on_store_error(self, metadata_cache, fake_store):
        fake_store.head_error = ObjectStoreError("access denied", operation="head")

        assert await metadata_cache.exists("alice/123") is False

    @pytest.mark.asyncio
    async def test_read_missing_entry_raises(self, metadata_cache):
        with pytest.raises(CacheStoreError) as exc_info:
            await metadata_cache.read("alice/123")

        assert exc_info.value.cache_key == "alice/123"

    @pytest.mark.asyncio
    async def test_read_undecodable_entry_raises_corrupted(self, metadata_cache, fake_store):
        fake_store.objects["tiktok/alice/123.json"] = (b"{not json", "application/json")

        with pytest.raises(CacheCorruptedError):
            await metadata_cache.read("alice/123")

    @pytest.mark.asyncio
    async def test_write_failure_raises(self, metadata_cache, fake_store):
        fake_store.put_error = ObjectStoreError("bucket is read only", operation="put")

        with pytest.raises(CacheStoreError, match="bucket is read only"):
            await metadata_cache.write("alice/123", make_meta())
