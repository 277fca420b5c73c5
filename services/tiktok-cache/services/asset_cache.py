"""
Copies origin media into the object store and hands back the cached URL.

Images are addressed by the digest of their origin URL, so the same image
referenced by many videos is stored once. Clips live next to their metadata.
"""
from typing import Optional

from common_py.logging_config import configure_logging
from models.tiktok_models import VideoIdentity
from platform_crawler.tiktok.tiktok_origin_client import TikTokOriginClient
from storage.object_store import ObjectStore
from utils.url_utils import clip_key, image_key, to_public_url

logger = configure_logging("tiktok-cache:asset_cache")


class AssetCache:
    def __init__(
        self,
        store: ObjectStore,
        origin: TikTokOriginClient,
        public_url: str,
        skip_existing: bool = False,
    ):
        """
        Args:
            store: destination object store
            origin: client used to download the media
            public_url: base URL the bucket is served from
            skip_existing: HEAD the image key first and skip the download when
                present. Off by default: with it on, new content served at an
                already cached origin URL is never picked up.
        """
        self.store = store
        self.origin = origin
        self.public_url = public_url
        self.skip_existing = skip_existing

    async def _copy(self, url: str, key: str, identity: Optional[VideoIdentity] = None) -> None:
        owner = identity.owner if identity else None
        video_id = identity.video_id if identity else None
        async with self.origin.fetch_bytes(url, owner, video_id) as media:
            body = await media.aread()
            content_type = media.content_type
        await self.store.put(key, body, content_type)

    async def cache_asset(self, url: str) -> str:
        """Cache the image at url and return its public cached URL."""
        if not url:
            return url

        key = image_key(url)
        if self.skip_existing and await self.store.head_exists(key):
            logger.debug("Image already cached", key=key)
            return to_public_url(self.public_url, key)

        await self._copy(url, key)
        return to_public_url(self.public_url, key)

    async def cache_clip(self, identity: VideoIdentity, address: str, fmt: str) -> str:
        """Cache the video clip of identity, sending the video page as referer."""
        key = clip_key(identity.cache_key, fmt)
        logger.info("Downloading video", key=identity.cache_key)
        await self._copy(address, key, identity)
        return to_public_url(self.public_url, key)
