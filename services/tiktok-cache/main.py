from contextlib import asynccontextmanager

from fastapi import FastAPI

from config_loader import config
from common_py.logging_config import configure_logging

logger = configure_logging("tiktok-cache:main", log_level=config.LOG_LEVEL, log_format=config.LOG_FORMAT)

from handlers.lifecycle_handler import LifecycleHandler
from api.video_endpoints import router as video_router
from api.health_endpoints import router as health_router

lifecycle_handler = LifecycleHandler(config)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Primes the origin cookies and builds the pipeline on startup, closes the
    origin client on shutdown. Startup failures abort the process.
    """
    await lifecycle_handler.startup()
    yield
    await lifecycle_handler.shutdown()


app = FastAPI(title="TikTok Cache Service", version="1.0.0", lifespan=lifespan)

app.include_router(video_router)
app.include_router(health_router)

if __name__ == "__main__":
    import uvicorn
    logger.info("🚀 Starting tiktok-cache")
    uvicorn.run(app, host="0.0.0.0", port=config.PORT)
