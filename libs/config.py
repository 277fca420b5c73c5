"""
Centralized configuration management for the TikTok cache system.
Loads environment variables and provides type-safe accessors shared by every service.
"""
import os
from typing import List, Optional
from dataclasses import dataclass, field

# Helper function to get environment variable with fallback
def get_env_var(key: str, default: Optional[str] = None) -> str:
    """Get environment variable with fallback to default"""
    return os.getenv(key, default)

# Helper function to get integer environment variable
def get_env_int(key: str, default: int = 0) -> int:
    """Get integer environment variable with fallback to default"""
    value = get_env_var(key, str(default))
    try:
        return int(value)
    except ValueError:
        return default

# Helper function to get float environment variable
def get_env_float(key: str, default: float = 0.0) -> float:
    """Get float environment variable with fallback to default"""
    value = get_env_var(key, str(default))
    try:
        return float(value)
    except ValueError:
        return default

def get_env_bool(key: str, default: bool = False) -> bool:
    """Get boolean environment variable; accepts true/1/yes/on"""
    value = get_env_var(key)
    if value is None:
        return default
    return value.strip().lower() in ("true", "1", "yes", "on")

def get_env_list(key: str, default: str = "") -> List[str]:
    """Get comma separated environment variable as a list of non-empty items"""
    value = get_env_var(key, default) or ""
    return [item.strip() for item in value.split(",") if item.strip()]

@dataclass
class Config:
    """Centralized configuration class"""

    # Port Configuration
    PORT_TIKTOK_CACHE: int = field(default_factory=lambda: get_env_int("PORT_TIKTOK_CACHE", 8082))

    # Object storage (S3 or any S3 compatible endpoint such as MinIO)
    BUCKET_NAME: str = field(default_factory=lambda: get_env_var("BUCKET_NAME", ""))
    CACHE_PUBLIC_URL: str = field(default_factory=lambda: get_env_var("CACHE_PUBLIC_URL", ""))
    AWS_ACCESS_KEY_ID: str = field(default_factory=lambda: get_env_var("AWS_ACCESS_KEY_ID", ""))
    AWS_SECRET_ACCESS_KEY: str = field(default_factory=lambda: get_env_var("AWS_SECRET_ACCESS_KEY", ""))
    AWS_REGION: str = field(default_factory=lambda: get_env_var("AWS_REGION", "us-east-1"))
    S3_ENDPOINT_URL: str = field(default_factory=lambda: get_env_var("S3_ENDPOINT_URL", ""))

    # Logging
    LOG_LEVEL: str = field(default_factory=lambda: get_env_var("LOG_LEVEL", "INFO"))
    LOG_FORMAT: str = field(default_factory=lambda: get_env_var("LOG_FORMAT", "text"))

    # Deployment label, reported by the health endpoint
    ENVIRONMENT: str = field(default_factory=lambda: get_env_var("ENVIRONMENT", "development"))

# Create global config instance
config = Config()
