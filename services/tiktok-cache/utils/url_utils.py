"""
Object key layout and public URL derivation for cached TikTok content.

    tiktok/<owner>/<video_id>.json      metadata record
    tiktok/<owner>/<video_id>.<format>  video clip
    tiktok/img/<md5 of origin URL>      cover and avatar images
"""
import hashlib

KEY_PREFIX = "tiktok"


def url_digest(url: str) -> str:
    """Hex digest of the URL string itself, so one origin image maps to one key."""
    return hashlib.md5(url.encode("utf-8")).hexdigest()


def metadata_key(cache_key: str) -> str:
    return f"{KEY_PREFIX}/{cache_key}.json"


def clip_key(cache_key: str, fmt: str) -> str:
    return f"{KEY_PREFIX}/{cache_key}.{fmt}"


def image_key(url: str) -> str:
    return f"{KEY_PREFIX}/img/{url_digest(url)}"


def to_public_url(base_url: str, key: str) -> str:
    """Public URL of an object key under the configured cache base URL."""
    return f"{base_url.rstrip('/')}/{key}"
