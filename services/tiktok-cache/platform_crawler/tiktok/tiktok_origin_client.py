"""
Async HTTP client for the TikTok origin.

Every request carries a fixed browser header set and the cookie set captured
from the landing page at startup; the origin rejects requests without them.
"""
from contextlib import asynccontextmanager
from types import MappingProxyType
from typing import AsyncIterator, Dict, Iterable, Mapping, Optional, Tuple

import httpx
from pydantic import ValidationError

from common_py.logging_config import configure_logging
from models.tiktok_models import TikTokApiResponse, TikTokMeta
from services.exceptions import (
    CookieBootstrapError,
    OriginError,
    OriginTimeoutError,
    ShortLinkError,
)

logger = configure_logging("tiktok-cache:tiktok_origin_client")

DEFAULT_HEADERS = {
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,image/avif,image/webp,image/apng,*/*;q=0.8,application/signed-exchange;v=b3;q=0.9",
    "User-Agent": "Mozilla/5.0 (Macintosh; Intel Mac OS X 10.15; rv:97.0) Gecko/20100101 Firefox/97.0",
}

ORIGIN_HOSTS = {"www.tiktok.com", "tiktok.com"}

DEFAULT_CONTENT_TYPE = "application/octet-stream"


class OriginMedia:
    """Streaming media response; only valid inside `fetch_bytes`."""

    def __init__(self, response: httpx.Response):
        self._response = response
        self.content_type = response.headers.get("Content-Type") or DEFAULT_CONTENT_TYPE

    async def aread(self) -> bytes:
        try:
            return await self._response.aread()
        except httpx.HTTPError as e:
            raise _translate_error(e, str(self._response.url)) from e


def _translate_error(error: httpx.HTTPError, url: str) -> OriginError:
    if isinstance(error, httpx.TimeoutException):
        return OriginTimeoutError(f"timed out requesting {url}", url=url)
    return OriginError(f"request to {url} failed: {error}", url=url)


class TikTokOriginClient:
    """Fetches metadata documents and raw media bytes from TikTok."""

    def __init__(
        self,
        base_url: str = "https://www.tiktok.com",
        short_link_base_url: str = "https://vm.tiktok.com",
        timeout: float = 15.0,
        required_cookies: Optional[Iterable[str]] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.short_link_base_url = short_link_base_url.rstrip("/")
        self.timeout = timeout
        self.required_cookies = list(required_cookies or [])
        self._cookies: Dict[str, str] = {}
        self.client = httpx.AsyncClient(
            timeout=httpx.Timeout(timeout),
            headers=DEFAULT_HEADERS,
            transport=transport,
        )

    @classmethod
    async def create(cls, **kwargs) -> "TikTokOriginClient":
        """Build a client and prime its cookies; the client is closed if priming fails."""
        origin = cls(**kwargs)
        try:
            await origin.prime_cookies()
        except Exception:
            await origin.close()
            raise
        return origin

    @property
    def cookies(self) -> Mapping[str, str]:
        return MappingProxyType(self._cookies)

    async def close(self) -> None:
        await self.client.aclose()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    async def prime_cookies(self) -> None:
        """Capture the origin's session cookies from a plain landing page GET."""
        url = self.base_url
        try:
            response = await self.client.get(url, follow_redirects=True)
        except httpx.HTTPError as e:
            raise CookieBootstrapError(f"could not get cookies from tiktok: {e}") from e

        if response.status_code != 200:
            logger.warning("Cookie priming rejected", status_code=response.status_code, body=response.text[:500])
            raise CookieBootstrapError(
                f"could not get cookies from tiktok, status code = {response.status_code}",
                status_code=response.status_code,
            )

        cookies = {cookie.name: cookie.value for cookie in response.cookies.jar}
        for name, value in cookies.items():
            logger.info("Found cookie", cookie=name, value=value)

        if not cookies:
            raise CookieBootstrapError("tiktok did not set any cookies")
        missing = [name for name in self.required_cookies if name not in cookies]
        if missing:
            raise CookieBootstrapError(f"tiktok did not set required cookies: {', '.join(missing)}")

        self._cookies = cookies

    def _request_headers(self) -> Dict[str, str]:
        headers: Dict[str, str] = {}
        if self._cookies:
            headers["Cookie"] = "; ".join(f"{name}={value}" for name, value in self._cookies.items())
        return headers

    def referer_for(self, owner: str, video_id: str) -> str:
        return f"{self.base_url}/@{owner.lstrip('@')}/video/{video_id}"

    async def _send(self, method: str, url: str, headers: Optional[Dict[str, str]] = None,
                    stream: bool = False, follow_redirects: bool = False) -> httpx.Response:
        try:
            request = self.client.build_request(method, url, headers=headers)
            return await self.client.send(request, stream=stream, follow_redirects=follow_redirects)
        except httpx.InvalidURL as e:
            raise OriginError(f"invalid origin URL {url!r}: {e}", url=url) from e
        except httpx.HTTPError as e:
            raise _translate_error(e, url) from e

    async def fetch_metadata(self, owner: str, video_id: str) -> Optional[TikTokMeta]:
        """
        Fetch the metadata record of one video.

        Returns:
            The record, or None when the origin reports the video as not found.

        Raises:
            OriginError: any other origin status, transport failure or malformed envelope.
        """
        url = f"{self.base_url}/node/share/video/@{owner.lstrip('@')}/{video_id}"
        response = await self._send("GET", url, headers=self._request_headers())

        try:
            envelope = TikTokApiResponse.from_api_response(response.json())
        except (ValueError, ValidationError) as e:
            raise OriginError(
                f"failed to decode tiktok api response (HTTP {response.status_code}): {e}",
                status_code=response.status_code,
                url=url,
            ) from e

        if envelope.status_code == 404:
            return None

        if envelope.status_code != 0:
            raise OriginError(
                f"tiktok api response code {envelope.status_code}: {envelope.status_message}",
                status_code=envelope.status_code,
                url=url,
            )

        if envelope.item_info.item_struct is None:
            raise OriginError("tiktok api response has no video item", url=url)

        return envelope.item_info.item_struct

    @asynccontextmanager
    async def fetch_bytes(
        self,
        url: str,
        referer_owner: Optional[str] = None,
        referer_video_id: Optional[str] = None,
    ) -> AsyncIterator[OriginMedia]:
        """
        Stream raw media bytes from the origin or its CDN.

        Usage:
            async with origin.fetch_bytes(url, owner, video_id) as media:
                body = await media.aread()
        """
        if not url.startswith(("http://", "https://")):
            raise OriginError(f"invalid media URL {url!r}", url=url)

        headers = self._request_headers()
        if referer_owner and referer_video_id:
            headers["Referer"] = self.referer_for(referer_owner, referer_video_id)

        response = await self._send("GET", url, headers=headers, stream=True, follow_redirects=True)
        try:
            if not response.is_success:
                raise OriginError(
                    f"origin returned HTTP {response.status_code} for {url}",
                    status_code=response.status_code,
                    url=url,
                )
            yield OriginMedia(response)
        finally:
            await response.aclose()

    async def resolve_short_link(self, code: str) -> Optional[Tuple[str, str]]:
        """
        Resolve a short link code to (owner, video_id) by following its redirects.

        Returns:
            (owner, video_id), or None when the short link does not exist.

        Raises:
            ShortLinkError: the redirect ends anywhere but a TikTok video page.
        """
        if not code or "/" in code:
            return None

        response = await self._send("HEAD", f"{self.short_link_base_url}/{code}", follow_redirects=True)
        if response.status_code == 404:
            return None

        dest = response.url
        if dest.host not in ORIGIN_HOSTS:
            raise ShortLinkError("not a valid tiktok URL in response", destination=str(dest))

        parts = dest.path.strip("/").split("/")
        if len(parts) != 3 or parts[1] != "video" or not parts[0].lstrip("@") or not parts[2]:
            raise ShortLinkError("invalid tiktok URL in response", destination=str(dest))

        return parts[0].lstrip("@"), parts[2]
