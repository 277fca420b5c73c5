"""Metadata records stored as JSON documents under tiktok/<owner>/<video_id>.json."""
from pydantic import ValidationError

from common_py.logging_config import configure_logging
from models.tiktok_models import TikTokMeta
from services.exceptions import CacheCorruptedError, CacheStoreError, ObjectStoreError
from storage.object_store import ObjectStore
from utils.url_utils import metadata_key

logger = configure_logging("tiktok-cache:metadata_cache")


class MetadataCache:
    def __init__(self, store: ObjectStore):
        self.store = store

    async def exists(self, cache_key: str) -> bool:
        """
        Whether a metadata record is cached for cache_key.

        Store failures other than not-found are logged and reported as not
        cached, so a flaky store costs an extra origin fetch instead of failing
        the request.
        """
        key = metadata_key(cache_key)
        try:
            return await self.store.head_exists(key)
        except ObjectStoreError as e:
            logger.error("Failed to HEAD cached metadata, treating as not cached", key=key, error=str(e))
            return False

    async def read(self, cache_key: str) -> TikTokMeta:
        """Read a record that `exists` has confirmed; any failure is a hard error."""
        key = metadata_key(cache_key)
        try:
            body = await self.store.get(key)
        except ObjectStoreError as e:
            raise CacheStoreError(f"failed to read cached metadata {key}: {e.message}", cache_key) from e

        try:
            return TikTokMeta.from_json(body)
        except ValidationError as e:
            raise CacheCorruptedError(f"cached metadata {key} is not a valid record: {e}", cache_key) from e

    async def write(self, cache_key: str, record: TikTokMeta) -> None:
        key = metadata_key(cache_key)
        try:
            await self.store.put(key, record.to_json().encode("utf-8"), "application/json")
        except ObjectStoreError as e:
            raise CacheStoreError(f"failed to write cached metadata {key}: {e.message}", cache_key) from e
