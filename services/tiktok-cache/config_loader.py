"""
Configuration loader for the TikTok cache service.
Service-specific values come from the service's .env file and the environment;
shared values (bucket, credentials, logging) come from the global configuration.
"""
import os
import sys
from dataclasses import dataclass, field
from typing import List

from dotenv import load_dotenv
load_dotenv(dotenv_path=os.path.join(os.path.dirname(__file__), '.env'))

# Add libs directory to PYTHONPATH for imports
sys.path.append(os.path.join(os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__)))), "libs"))

from config import Config as GlobalConfig, get_env_bool, get_env_float, get_env_list
from services.exceptions import ConfigurationError

global_config = GlobalConfig()


@dataclass
class TikTokCacheConfig:
    """Configuration for the TikTok cache service"""

    # Object storage (from global config)
    BUCKET_NAME: str = global_config.BUCKET_NAME
    CACHE_PUBLIC_URL: str = global_config.CACHE_PUBLIC_URL
    AWS_ACCESS_KEY_ID: str = global_config.AWS_ACCESS_KEY_ID
    AWS_SECRET_ACCESS_KEY: str = global_config.AWS_SECRET_ACCESS_KEY
    AWS_REGION: str = global_config.AWS_REGION
    S3_ENDPOINT_URL: str = global_config.S3_ENDPOINT_URL

    # Origin access
    ORIGIN_BASE_URL: str = os.getenv("ORIGIN_BASE_URL", "https://www.tiktok.com")
    SHORT_LINK_BASE_URL: str = os.getenv("SHORT_LINK_BASE_URL", "https://vm.tiktok.com")
    ORIGIN_TIMEOUT: float = get_env_float("ORIGIN_TIMEOUT", 15.0)
    ORIGIN_REQUIRED_COOKIES: List[str] = field(default_factory=lambda: get_env_list("ORIGIN_REQUIRED_COOKIES"))

    # Pipeline tuning
    ASSET_CACHE_SKIP_EXISTING: bool = get_env_bool("ASSET_CACHE_SKIP_EXISTING", False)
    PARALLEL_IMAGE_CACHING: bool = get_env_bool("PARALLEL_IMAGE_CACHING", False)

    # Logging (from .env first, then global config)
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", global_config.LOG_LEVEL)
    LOG_FORMAT: str = os.getenv("LOG_FORMAT", global_config.LOG_FORMAT)

    ENVIRONMENT: str = global_config.ENVIRONMENT
    PORT: int = global_config.PORT_TIKTOK_CACHE

    def validate(self) -> None:
        """Fail fast on settings the service cannot start without."""
        for key in ("BUCKET_NAME", "CACHE_PUBLIC_URL"):
            if not getattr(self, key):
                raise ConfigurationError(f"{key} must be set", config_key=key)
        if self.ORIGIN_TIMEOUT <= 0:
            raise ConfigurationError("ORIGIN_TIMEOUT must be positive", config_key="ORIGIN_TIMEOUT")


# Create config instance
config = TikTokCacheConfig()
