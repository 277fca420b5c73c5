from fastapi import APIRouter, HTTPException

from api.dependency import get_origin_client, get_video_cache_service
from common_py.logging_config import configure_logging
from config_loader import config
from models.schemas import HealthResponse

logger = configure_logging("tiktok-cache:health_endpoints")

router = APIRouter()


@router.get("/health", response_model=HealthResponse)
async def health_check():
    """Health check endpoint"""
    try:
        origin = get_origin_client()
        service = get_video_cache_service()
    except RuntimeError as e:
        logger.error("Health check failed", error=str(e))
        raise HTTPException(status_code=503, detail=str(e))

    return HealthResponse(
        status="healthy" if origin.cookies else "degraded",
        service="tiktok-cache",
        environment=config.ENVIRONMENT,
        bucket=config.BUCKET_NAME,
        cookies=len(origin.cookies),
        videos_in_flight=len(service.locks),
    )
