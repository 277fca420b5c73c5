"""
Pytest configuration and shared fixtures for tiktok-cache tests
"""
import asyncio
import sys
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Dict, List, Optional, Set, Tuple

import pytest

# Ensure the service modules, libs/config.py and common_py are importable
TESTS_DIR = Path(__file__).resolve().parent
SERVICE_ROOT = TESTS_DIR.parent
REPO_ROOT = SERVICE_ROOT.parent.parent
for candidate in (REPO_ROOT / "libs" / "common-py", REPO_ROOT / "libs", SERVICE_ROOT):
    candidate_str = str(candidate)
    if candidate_str not in sys.path:
        sys.path.insert(0, candidate_str)

from models.tiktok_models import TikTokMeta
from services.asset_cache import AssetCache
from services.exceptions import ObjectNotFoundError, ObjectStoreError, OriginError
from services.metadata_cache import MetadataCache
from services.video_cache_service import VideoCacheService
from storage.object_store import ObjectStore

CACHE_BASE_URL = "https://cache.example"


def make_meta_dict(video_id: str = "123", owner: str = "alice", **video_overrides) -> dict:
    """Origin-shaped itemStruct for one video."""
    video = {
        "height": 1024,
        "width": 576,
        "duration": 15,
        "cover": "https://p16.example/cover.jpeg",
        "originCover": "https://p16.example/origin-cover.jpeg",
        "dynamicCover": "https://p16.example/dynamic-cover.webp",
        "playAddr": "https://v16.example/play.mp4",
        "downloadAddr": "https://v16.example/download.mp4",
        "format": "mp4",
    }
    video.update(video_overrides)
    return {
        "id": video_id,
        "desc": "a test video #fyp",
        "createTime": 1646000000,
        "video": video,
        "author": {
            "id": "6800000000000000000",
            "uniqueId": owner,
            "nickname": "Alice",
            "avatarLarger": "https://p16.example/avatar-large.jpeg",
            "avatarMedium": "https://p16.example/avatar-medium.jpeg",
            "avatarThumb": "https://p16.example/avatar-thumb.jpeg",
            "signature": "hello",
        },
        "stats": {"diggCount": 10, "shareCount": 2, "commentCount": 3, "playCount": 400},
    }


def make_meta(**kwargs) -> TikTokMeta:
    return TikTokMeta.model_validate(make_meta_dict(**kwargs))


class FakeObjectStore(ObjectStore):
    """In-memory ObjectStore that records every call."""

    def __init__(self):
        self.objects: Dict[str, Tuple[bytes, str]] = {}
        self.puts: List[str] = []
        self.heads: List[str] = []
        self.gets: List[str] = []
        self.head_error: Optional[Exception] = None
        self.get_error: Optional[Exception] = None
        self.put_error: Optional[Exception] = None
        self.failing_put_prefixes: Set[str] = set()

    async def head_exists(self, key: str) -> bool:
        self.heads.append(key)
        if self.head_error:
            raise self.head_error
        return key in self.objects

    async def get(self, key: str) -> bytes:
        self.gets.append(key)
        if self.get_error:
            raise self.get_error
        if key not in self.objects:
            raise ObjectNotFoundError(key, operation="get")
        return self.objects[key][0]

    async def put(self, key: str, body: bytes, content_type: str) -> None:
        self.puts.append(key)
        if self.put_error or any(key.startswith(p) for p in self.failing_put_prefixes):
            raise self.put_error or ObjectStoreError("put refused", key=key, operation="put")
        self.objects[key] = (body, content_type)

    @property
    def call_count(self) -> int:
        return len(self.puts) + len(self.heads) + len(self.gets)


class FakeMedia:
    def __init__(self, body: bytes, content_type: str):
        self.body = body
        self.content_type = content_type

    async def aread(self) -> bytes:
        return self.body


class FakeOriginClient:
    """Origin double with call counters and an optional gate on metadata fetches."""

    def __init__(self, records: Optional[Dict[Tuple[str, str], dict]] = None):
        self.records = records if records is not None else {("alice", "123"): make_meta_dict()}
        self.metadata_calls: List[Tuple[str, str]] = []
        self.bytes_calls: List[Tuple[str, Optional[str], Optional[str]]] = []
        self.failing_urls: Set[str] = set()
        self.stalled_urls: Set[str] = set()
        self.cancelled_urls: List[str] = []
        self.metadata_error: Optional[Exception] = None
        self.gate: Optional[asyncio.Event] = None
        self.fetch_started = asyncio.Event()
        self.cookies = {"ttwid": "cookie"}

    async def fetch_metadata(self, owner: str, video_id: str) -> Optional[TikTokMeta]:
        self.metadata_calls.append((owner, video_id))
        self.fetch_started.set()
        if self.gate is not None:
            await self.gate.wait()
        if self.metadata_error:
            raise self.metadata_error
        data = self.records.get((owner, video_id))
        return TikTokMeta.model_validate(data) if data is not None else None

    @asynccontextmanager
    async def fetch_bytes(self, url: str, referer_owner: Optional[str] = None,
                          referer_video_id: Optional[str] = None):
        self.bytes_calls.append((url, referer_owner, referer_video_id))
        if url in self.failing_urls:
            raise OriginError(f"origin returned HTTP 403 for {url}", status_code=403, url=url)
        if url in self.stalled_urls:
            try:
                await asyncio.Event().wait()
            except asyncio.CancelledError:
                self.cancelled_urls.append(url)
                raise
        content_type = "video/mp4" if url.endswith(".mp4") else "image/jpeg"
        yield FakeMedia(f"bytes of {url}".encode(), content_type)

    @property
    def call_count(self) -> int:
        return len(self.metadata_calls) + len(self.bytes_calls)


@pytest.fixture
def fake_store():
    return FakeObjectStore()


@pytest.fixture
def fake_origin():
    return FakeOriginClient()


@pytest.fixture
def metadata_cache(fake_store):
    return MetadataCache(fake_store)


@pytest.fixture
def asset_cache(fake_store, fake_origin):
    return AssetCache(fake_store, fake_origin, CACHE_BASE_URL)


@pytest.fixture
def video_cache_service(fake_origin, metadata_cache, asset_cache):
    return VideoCacheService(fake_origin, metadata_cache, asset_cache)
