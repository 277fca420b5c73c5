from typing import Optional
from urllib.parse import quote

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse, RedirectResponse

from api.dependency import get_origin_client, get_video_cache_service
from common_py.error_codes import ServiceError
from common_py.logging_config import configure_logging
from models.schemas import VideoResponse
from platform_crawler.tiktok.tiktok_origin_client import TikTokOriginClient
from services.video_cache_service import VideoCacheService

logger = configure_logging("tiktok-cache:video_endpoints")

router = APIRouter()


def error_response(status_code: int, message: str, error: Optional[Exception] = None) -> JSONResponse:
    if isinstance(error, ServiceError):
        logger.error("error in response", status_code=status_code, **error.to_dict())
    else:
        logger.error("error in response", status_code=status_code, error=message)
    return JSONResponse(status_code=status_code, content=VideoResponse(error=message).to_content())


@router.get("/video/{username}/{videoid}")
async def get_video(
    username: str,
    videoid: str,
    service: VideoCacheService = Depends(get_video_cache_service),
):
    """
    Cached metadata of one video; every media URL in it points at the cache.

    Returns 404 when the video does not exist at TikTok and 500 with the error
    message when fetching or caching fails.
    """
    try:
        meta = await service.resolve_video(username, videoid)
    except Exception as e:
        return error_response(500, str(e), e)

    if meta is None:
        return error_response(404, "video not found")

    return JSONResponse(status_code=200, content=VideoResponse(video=meta).to_content())


@router.get("/hash/{hash}")
async def resolve_short_url(
    hash: str,
    origin: TikTokOriginClient = Depends(get_origin_client),
):
    """Redirect a vm.tiktok.com short code to the matching /video URL."""
    try:
        resolved = await origin.resolve_short_link(hash)
    except Exception as e:
        return error_response(500, str(e), e)

    if resolved is None:
        return error_response(404, "could not find video by hash")

    username, video_id = resolved
    return RedirectResponse(
        url=f"/video/{quote(username, safe='')}/{quote(video_id, safe='')}",
        status_code=301,
    )
