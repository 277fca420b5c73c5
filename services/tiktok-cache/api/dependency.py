"""
Dependency injection module for the tiktok-cache service.
Holds the shared origin client, object store and pipeline built at startup.
"""
from typing import Optional

from platform_crawler.tiktok.tiktok_origin_client import TikTokOriginClient
from services.video_cache_service import VideoCacheService
from storage.object_store import ObjectStore

# Global instances (will be initialized on startup)
_origin_instance: Optional[TikTokOriginClient] = None
_store_instance: Optional[ObjectStore] = None
_service_instance: Optional[VideoCacheService] = None


def init_dependencies(origin: TikTokOriginClient, store: ObjectStore, service: VideoCacheService) -> None:
    """Register the shared instances built by the lifecycle handler"""
    global _origin_instance, _store_instance, _service_instance

    _origin_instance = origin
    _store_instance = store
    _service_instance = service


def reset_dependencies() -> None:
    global _origin_instance, _store_instance, _service_instance

    _origin_instance = None
    _store_instance = None
    _service_instance = None


def get_origin_client() -> TikTokOriginClient:
    """Get shared origin client instance"""
    if _origin_instance is None:
        raise RuntimeError(
            "Dependencies not initialized. Call init_dependencies() first.")
    return _origin_instance


def get_object_store() -> ObjectStore:
    """Get shared object store instance"""
    if _store_instance is None:
        raise RuntimeError(
            "Dependencies not initialized. Call init_dependencies() first.")
    return _store_instance


def get_video_cache_service() -> VideoCacheService:
    """Get shared fetch-or-populate pipeline"""
    if _service_instance is None:
        raise RuntimeError(
            "Dependencies not initialized. Call init_dependencies() first.")
    return _service_instance
