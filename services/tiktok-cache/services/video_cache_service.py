"""
Fetch-or-populate pipeline for TikTok videos.

Per request:

    ACQUIRING_LOCK -> CHECK_CACHE -> HIT
                                  -> FETCH_METADATA -> CACHE_CLIP -> CACHE_IMAGES -> PERSIST

A per-video lock collapses concurrent requests for the same video into one
origin fetch; callers queued behind it find the record in the cache. Nothing
is persisted unless the clip and every image were cached.
"""
import asyncio
from enum import Enum
from typing import List, Optional, Tuple

from common_py.logging_config import configure_logging, set_video_key
from models.tiktok_models import TikTokMeta, VideoIdentity
from platform_crawler.tiktok.tiktok_origin_client import TikTokOriginClient
from services.asset_cache import AssetCache
from services.exceptions import OriginError
from services.key_lock import KeyedLock
from services.metadata_cache import MetadataCache

logger = configure_logging("tiktok-cache:video_cache_service")

DEFAULT_CLIP_FORMAT = "mp4"


def _consume_result(task: "asyncio.Future") -> None:
    # Failures are logged in the pipeline; a cancelled caller never reads them
    if not task.cancelled():
        task.exception()


class PipelineState(Enum):
    ACQUIRING_LOCK = "acquiring_lock"
    CHECK_CACHE = "check_cache"
    HIT = "hit"
    FETCH_METADATA = "fetch_metadata"
    CACHE_CLIP = "cache_clip"
    CACHE_IMAGES = "cache_images"
    PERSIST = "persist"
    DONE = "done"


class VideoCacheService:
    def __init__(
        self,
        origin: TikTokOriginClient,
        metadata_cache: MetadataCache,
        asset_cache: AssetCache,
        locks: Optional[KeyedLock] = None,
        parallel_images: bool = False,
    ):
        self.origin = origin
        self.metadata_cache = metadata_cache
        self.asset_cache = asset_cache
        self.locks = locks or KeyedLock()
        self.parallel_images = parallel_images

    async def resolve_video(self, owner: str, video_id: str) -> Optional[TikTokMeta]:
        """
        Return the cached metadata of a video, populating the cache on a miss.

        Returns:
            The fully materialized and persisted record, or None when the video
            does not exist at the origin or the identity is not acceptable as a cache key.

        Raises:
            TikTokCacheError: origin, object store or cache failures.
        """
        identity = VideoIdentity(owner, video_id)
        if not identity.is_valid():
            logger.warning("Rejecting invalid video identity", owner=owner, video_id=video_id)
            return None

        # Finishes even if this caller goes away; others may be queued on the lock
        task = asyncio.ensure_future(self._resolve_locked(identity))
        task.add_done_callback(_consume_result)
        return await asyncio.shield(task)

    async def _resolve_locked(self, identity: VideoIdentity) -> Optional[TikTokMeta]:
        cache_key = identity.cache_key
        set_video_key(cache_key)
        state = self._enter(PipelineState.ACQUIRING_LOCK, cache_key)
        async with self.locks.hold(cache_key):
            try:
                state = self._enter(PipelineState.CHECK_CACHE, cache_key)
                if await self.metadata_cache.exists(cache_key):
                    state = self._enter(PipelineState.HIT, cache_key)
                    cached = await self.metadata_cache.read(cache_key)
                    logger.info("Returning cached metadata", key=cache_key)
                    return cached

                state = self._enter(PipelineState.FETCH_METADATA, cache_key)
                logger.info("Getting metadata from TikTok", key=cache_key)
                record = await self.origin.fetch_metadata(identity.owner, identity.video_id)
                if record is None:
                    logger.info("Video not found at origin", key=cache_key)
                    return None

                state = self._enter(PipelineState.CACHE_CLIP, cache_key)
                await self._cache_clip(identity, record)

                state = self._enter(PipelineState.CACHE_IMAGES, cache_key)
                if self.parallel_images:
                    await self._cache_images_concurrently(record)
                else:
                    await self._cache_images(record)

                state = self._enter(PipelineState.PERSIST, cache_key)
                # A failed write leaves the assets as orphans; the next request redoes the pipeline
                await self.metadata_cache.write(cache_key, record)

                self._enter(PipelineState.DONE, cache_key)
                return record
            except Exception as e:
                logger.error("Video pipeline failed", key=cache_key, state=state.value, error=str(e))
                raise

    @staticmethod
    def _enter(state: PipelineState, cache_key: str) -> PipelineState:
        logger.debug("Pipeline state", key=cache_key, state=state.value)
        return state

    async def _cache_clip(self, identity: VideoIdentity, record: TikTokMeta) -> None:
        if record.is_materialized:
            return

        address = record.clip_address
        if not address:
            raise OriginError(f"video {identity.cache_key} has neither a download nor a play address")

        fmt = record.video.format or DEFAULT_CLIP_FORMAT
        record.cdn_video_url = await self.asset_cache.cache_clip(identity, address, fmt)

    async def _cache_images(self, record: TikTokMeta) -> None:
        for sub_record, name, url in record.image_urls():
            record.set_image_url(sub_record, name, await self.asset_cache.cache_asset(url))

    async def _cache_images_concurrently(self, record: TikTokMeta) -> None:
        fields: List[Tuple[str, str, str]] = record.image_urls()
        tasks = [asyncio.ensure_future(self.asset_cache.cache_asset(url)) for _, _, url in fields]
        try:
            cached_urls = await asyncio.gather(*tasks)
        except BaseException:
            for task in tasks:
                task.cancel()
            raise

        for (sub_record, name, _), cached_url in zip(fields, cached_urls):
            record.set_image_url(sub_record, name, cached_url)
