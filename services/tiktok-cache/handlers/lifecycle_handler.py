from typing import Optional

from api.dependency import init_dependencies, reset_dependencies
from common_py.logging_config import configure_logging
from config_loader import TikTokCacheConfig
from platform_crawler.tiktok.tiktok_origin_client import TikTokOriginClient
from services.asset_cache import AssetCache
from services.metadata_cache import MetadataCache
from services.video_cache_service import VideoCacheService
from storage.object_store import ObjectStore, S3ObjectStore

logger = configure_logging("tiktok-cache:lifecycle_handler")


class LifecycleHandler:
    def __init__(self, config: TikTokCacheConfig, store: Optional[ObjectStore] = None, origin_transport=None):
        self.config = config
        self.store = store
        self.origin_transport = origin_transport
        self.origin: Optional[TikTokOriginClient] = None
        self.service: Optional[VideoCacheService] = None

    async def startup(self):
        """Validate config, prime origin cookies and wire the pipeline; any failure aborts startup"""
        self.config.validate()

        self.origin = await TikTokOriginClient.create(
            base_url=self.config.ORIGIN_BASE_URL,
            short_link_base_url=self.config.SHORT_LINK_BASE_URL,
            timeout=self.config.ORIGIN_TIMEOUT,
            required_cookies=self.config.ORIGIN_REQUIRED_COOKIES,
            transport=self.origin_transport,
        )

        if self.store is None:
            self.store = S3ObjectStore(
                bucket_name=self.config.BUCKET_NAME,
                region=self.config.AWS_REGION,
                access_key_id=self.config.AWS_ACCESS_KEY_ID,
                secret_access_key=self.config.AWS_SECRET_ACCESS_KEY,
                endpoint_url=self.config.S3_ENDPOINT_URL,
                timeout=self.config.ORIGIN_TIMEOUT,
            )

        self.service = VideoCacheService(
            origin=self.origin,
            metadata_cache=MetadataCache(self.store),
            asset_cache=AssetCache(
                self.store,
                self.origin,
                self.config.CACHE_PUBLIC_URL,
                skip_existing=self.config.ASSET_CACHE_SKIP_EXISTING,
            ),
            parallel_images=self.config.PARALLEL_IMAGE_CACHING,
        )
        init_dependencies(self.origin, self.store, self.service)

        logger.info("TikTok cache service started", bucket=self.config.BUCKET_NAME,
                    cookies=len(self.origin.cookies))

    async def shutdown(self):
        """Close the origin client"""
        reset_dependencies()
        if self.origin is not None:
            await self.origin.close()
            self.origin = None
        logger.info("TikTok cache service stopped")
