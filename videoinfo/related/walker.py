"""
Continuation-token pagination over a video's related items.
"""
import time
import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import replace
from typing import Callable, List, Optional

from ..errors import error_kind, error_message
from ..models import RelatedItem, RelatedVideos
from ..thumbnails import ThumbnailResolver, default_thumbnail_url, guess_image_type
from ..upstream.client import UpstreamClient
from ..utils.helpers import dig

logger = logging.getLogger("related.walker")

# Pause between continuation requests to stay under upstream rate limits
DEFAULT_PAGE_DELAY_SECONDS = 0.2


class RelatedVideoWalker:
    """
    Walks related-item pages and resolves their thumbnails.

    A walk fetches the implicit first page (unless resuming from a token),
    then up to ``max_depth`` continuation pages, then resolves every item's
    thumbnail concurrently. Page failures end the walk early but never
    raise: the items gathered so far are returned together with the error.
    """

    def __init__(
        self,
        thumbnails: ThumbnailResolver,
        page_delay: float = DEFAULT_PAGE_DELAY_SECONDS,
        max_workers: int = 8,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self._thumbnails = thumbnails
        self._page_delay = page_delay
        self._max_workers = max_workers
        self._sleep = sleep

    def walk(
        self,
        client: UpstreamClient,
        video_id: str,
        resume_token: Optional[str] = None,
        max_depth: int = 0,
    ) -> RelatedVideos:
        """
        Collect related items for a video.

        Args:
            client: Upstream client used for page fetches
            video_id: Seed video
            resume_token: Start from this continuation instead of page 0
            max_depth: Number of continuation pages to follow

        Returns:
            RelatedVideos with items in page order and the token for the
            next unfetched page (None when the listing is exhausted)
        """
        items: List[RelatedItem] = []
        token = resume_token or None
        failure: Optional[Exception] = None

        try:
            if token is None:
                page = client.fetch_related_page(video_id)
                items.extend(page.items)
                token = page.next_token

            depth = 0
            while depth < max_depth and token:
                self._sleep(self._page_delay)
                page = client.fetch_related_page(video_id, continuation=token)
                items.extend(page.items)
                token = page.next_token
                depth += 1
        except Exception as e:
            failure = e
            logger.warning(
                f"Related walk for {video_id} stopped after {len(items)} items: {e}"
            )

        return RelatedVideos(
            items=self._resolve_thumbnails(items),
            next_continuation_token=token,
            error=error_kind(failure),
            error_message=error_message(failure) if failure else None,
        )

    def _resolve_thumbnails(self, items: List[RelatedItem]) -> List[RelatedItem]:
        if not items:
            return []
        with ThreadPoolExecutor(
            max_workers=self._max_workers, thread_name_prefix="related-thumbs"
        ) as executor:
            payloads = list(executor.map(self._resolve_one, items))
        return [replace(item, thumbnail=payload) for item, payload in zip(items, payloads)]

    def _resolve_one(self, item: RelatedItem) -> str:
        url = dig(item.thumbnails, 0, "url") or (
            default_thumbnail_url(item.video_id) if item.video_id else None
        )
        if not url:
            return ""
        try:
            return self._thumbnails.resolve(url, guess_image_type(url))
        except Exception as e:
            logger.debug(f"Thumbnail resolution failed for {item.video_id}: {e}")
            return ""
