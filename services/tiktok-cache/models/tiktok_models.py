"""TikTok data models for video metadata and the origin API envelope."""

from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field


class _OriginModel(BaseModel):
    """Accepts either the origin's camelCase names or the Python attribute names."""

    model_config = ConfigDict(populate_by_name=True)


class TikTokVideo(_OriginModel):
    height: int = 0
    width: int = 0
    duration: int = 0
    cover: str = ""
    origin_cover: str = Field("", alias="originCover")
    dynamic_cover: str = Field("", alias="dynamicCover")
    play_addr: str = Field("", alias="playAddr")
    download_addr: str = Field("", alias="downloadAddr")
    format: str = ""


class TikTokAuthor(_OriginModel):
    id: str = ""
    unique_id: str = Field("", alias="uniqueId")
    nickname: str = ""
    avatar_larger: str = Field("", alias="avatarLarger")
    avatar_medium: str = Field("", alias="avatarMedium")
    avatar_thumb: str = Field("", alias="avatarThumb")
    signature: str = ""


class TikTokStats(_OriginModel):
    digg_count: int = Field(0, alias="diggCount")
    share_count: int = Field(0, alias="shareCount")
    comment_count: int = Field(0, alias="commentCount")
    play_count: int = Field(0, alias="playCount")


# (sub-record, field) pairs rewritten to cached copies, in caching order
IMAGE_FIELDS: Tuple[Tuple[str, str], ...] = (
    ("video", "cover"),
    ("video", "origin_cover"),
    ("video", "dynamic_cover"),
    ("author", "avatar_larger"),
    ("author", "avatar_medium"),
    ("author", "avatar_thumb"),
)


class TikTokMeta(_OriginModel):
    """
    Canonical metadata record for one video.

    Either `video.download_addr` or `video.play_addr` may be empty, not both.
    `cdn_video_url` stays empty until the clip has been cached; once set the
    record is fully materialized and the clip is never fetched again for it.
    """

    id: str = ""
    description: str = Field("", alias="desc")
    create_time: int = Field(0, alias="createTime")
    video: TikTokVideo = Field(default_factory=TikTokVideo)
    author: TikTokAuthor = Field(default_factory=TikTokAuthor)
    stats: TikTokStats = Field(default_factory=TikTokStats)

    cdn_video_url: str = Field("", alias="cdnVideoURL")

    @property
    def is_materialized(self) -> bool:
        return bool(self.cdn_video_url)

    @property
    def clip_address(self) -> str:
        """Download address when present, otherwise the play address."""
        return self.video.download_addr or self.video.play_addr

    def image_urls(self) -> List[Tuple[str, str, str]]:
        """(sub-record, field, url) for every image field, in caching order."""
        return [
            (record, name, getattr(getattr(self, record), name))
            for record, name in IMAGE_FIELDS
        ]

    def set_image_url(self, record: str, name: str, url: str) -> None:
        setattr(getattr(self, record), name, url)

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True)

    @classmethod
    def from_json(cls, data: bytes) -> "TikTokMeta":
        return cls.model_validate_json(data)


class TikTokItemInfo(_OriginModel):
    item_struct: Optional[TikTokMeta] = Field(None, alias="itemStruct")


class TikTokApiResponse(_OriginModel):
    """Envelope returned by the origin's share endpoint."""

    status_code: int = Field(0, alias="statusCode")
    status_message: str = Field("", alias="statusMsg")
    item_info: TikTokItemInfo = Field(default_factory=TikTokItemInfo, alias="itemInfo")

    @classmethod
    def from_api_response(cls, response_data: Dict[str, Any]) -> "TikTokApiResponse":
        return cls.model_validate(response_data)


@dataclass(frozen=True)
class VideoIdentity:
    """The (owner, video_id) pair naming one video."""

    owner: str
    video_id: str

    def is_valid(self) -> bool:
        # Components end up verbatim in object keys
        return all(part and "/" not in part for part in (self.owner, self.video_id))

    @property
    def cache_key(self) -> str:
        return f"{self.owner}/{self.video_id}"

    def __str__(self) -> str:
        return self.cache_key
