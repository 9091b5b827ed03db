"""
Thumbnail fetching with an in-memory LRU cache.

Images are embedded in responses as data URIs so clients need no second
round trip to the image CDN.
"""
import base64
import logging
from typing import Optional

import requests

from .cache import BoundedCache

logger = logging.getLogger("thumbnails")

DEFAULT_TTL_SECONDS = 43200  # 12 hours


def default_thumbnail_url(video_id: str) -> str:
    """Static small thumbnail for a video."""
    return f"https://i.ytimg.com/vi_webp/{video_id}/default.webp"


def guess_image_type(url: str) -> str:
    return "image/webp" if "webp" in url else "image/jpeg"


class ThumbnailResolver:
    """
    Resolves image URLs to ``data:`` URIs, caching by URL.

    resolve() never raises: any failure yields an empty string.
    """

    def __init__(
        self,
        cache: BoundedCache[str],
        session: Optional[requests.Session] = None,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        timeout: float = 10.0,
    ):
        self._cache = cache
        self._session = session or requests.Session()
        self._ttl_seconds = ttl_seconds
        self._timeout = timeout

    @property
    def cache(self) -> BoundedCache[str]:
        return self._cache

    def resolve(self, url: Optional[str], fallback_type: str = "image/jpeg") -> str:
        """
        Return the image at ``url`` as a data URI.

        Args:
            url: Image URL (also the cache key)
            fallback_type: Content type used when the response has none

        Returns:
            ``data:<type>;base64,<payload>``, or "" on any failure
        """
        if not url:
            return ""

        cached = self._cache.get(url)
        if cached is not None:
            return cached

        try:
            response = self._session.get(url, timeout=self._timeout)
            if not response.ok:
                logger.debug(f"Thumbnail fetch returned HTTP {response.status_code}: {url}")
                return ""
            body = response.content
            content_type = response.headers.get("content-type") or fallback_type
        except Exception as e:
            logger.debug(f"Thumbnail fetch failed for {url}: {e}")
            return ""

        if not body:
            return ""

        media_type = content_type.split(";")[0].strip() or fallback_type
        encoded = f"data:{media_type};base64,{base64.b64encode(body).decode('ascii')}"
        self._cache.set(url, encoded, self._ttl_seconds)
        return encoded
