from typing import Optional

from pydantic import BaseModel

from models.tiktok_models import TikTokMeta


class VideoResponse(BaseModel):
    """Body of every /video and /hash response; unset fields are omitted."""
    error: Optional[str] = None
    video: Optional[TikTokMeta] = None

    def to_content(self) -> dict:
        return self.model_dump(by_alias=True, exclude_none=True)


class HealthResponse(BaseModel):
    status: str
    service: str
    environment: str
    bucket: str
    cookies: int
    videos_in_flight: int
