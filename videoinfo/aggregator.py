"""
Aggregation of primary metadata, thumbnail and related items for a video.

The three upstream fetches run concurrently and are settled independently,
so one failing never cancels the others. A retryable primary failure gets
exactly one more attempt on a freshly constructed client.
"""
import logging
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Any, Optional, Tuple

from tenacity import RetryCallState, Retrying, retry_if_result, stop_after_attempt

from config.settings import Settings, settings
from .cache import BoundedCache
from .compose import compose_available
from .errors import InitializationError, error_kind, error_message
from .models import AggregationOutcome, AggregationResult, RelatedVideos
from .related import RelatedVideoWalker
from .retry_policy import PERMANENT_MARKERS, is_retryable
from .thumbnails import ThumbnailResolver, default_thumbnail_url
from .upstream import ClientLifecycleManager, InnertubeClient, UpstreamClient, VideoInfo

logger = logging.getLogger("aggregator")

# One initial attempt plus a single retry
MAX_PRIMARY_ATTEMPTS = 2
DEFAULT_MAX_DEPTH = 10


@dataclass
class FanOutResult:
    """Settled outcome of one round of concurrent fetches."""
    info: Optional[VideoInfo] = None
    info_error: Optional[BaseException] = None
    thumbnail: str = ""
    related: RelatedVideos = field(default_factory=RelatedVideos)

    @property
    def primary_failed(self) -> bool:
        return self.info is None


def _settle(future: Future) -> Tuple[Any, Optional[BaseException]]:
    """Wait for a future and return (value, None) or (None, error)."""
    try:
        return future.result(), None
    except Exception as e:
        return None, e


class VideoAggregator:
    """
    Top-level entry point for composing a video's info.

    Usage:
        aggregator = build_aggregator(settings)
        result = aggregator.aggregate("dQw4w9WgXcQ", depth=2)
        if result.available:
            ...
    """

    def __init__(
        self,
        clients: ClientLifecycleManager[UpstreamClient],
        thumbnails: ThumbnailResolver,
        walker: RelatedVideoWalker,
        max_depth: int = DEFAULT_MAX_DEPTH,
    ):
        self._clients = clients
        self._thumbnails = thumbnails
        self._walker = walker
        self._max_depth = max_depth

    @property
    def clients(self) -> ClientLifecycleManager[UpstreamClient]:
        return self._clients

    @property
    def thumbnails(self) -> ThumbnailResolver:
        return self._thumbnails

    def aggregate(
        self,
        video_id: str,
        resume_token: Optional[str] = None,
        depth: Optional[int] = None,
    ) -> AggregationResult:
        """
        Compose the full result for a video.

        Args:
            video_id: Platform video identifier (validated by the caller)
            resume_token: Continuation token to resume related items from
            depth: Continuation pages to follow (default 0)

        Returns:
            AggregationResult; this method never raises
        """
        depth = self._clamp_depth(depth)

        try:
            fan_out = self._fetch_with_retry(video_id, resume_token, depth)
        except InitializationError as e:
            logger.error(f"Upstream client unavailable for {video_id}: {e}")
            return AggregationResult.failure(
                video_id, AggregationOutcome.CLIENT_UNAVAILABLE, str(e)
            )
        except Exception:
            logger.exception(f"Unexpected failure fetching {video_id}")
            return AggregationResult.failure(
                video_id, AggregationOutcome.INTERNAL_ERROR, "Internal error"
            )

        try:
            return self._compose(video_id, fan_out)
        except Exception:
            logger.exception(f"Failed to compose response for {video_id}")
            return AggregationResult.failure(
                video_id, AggregationOutcome.INTERNAL_ERROR, "Internal error"
            )

    def _clamp_depth(self, depth: Optional[int]) -> int:
        if depth is None or depth < 0:
            return 0
        return min(depth, self._max_depth)

    def _fetch_with_retry(
        self,
        video_id: str,
        resume_token: Optional[str],
        depth: int,
    ) -> FanOutResult:
        retrying = Retrying(
            stop=stop_after_attempt(MAX_PRIMARY_ATTEMPTS),
            retry=retry_if_result(self._should_retry),
            before_sleep=self._refresh_client,
            # Out of attempts: hand back the last partial result
            retry_error_callback=lambda state: state.outcome.result(),
        )
        return retrying(self._fan_out, video_id, resume_token, depth)

    def _should_retry(self, result: FanOutResult) -> bool:
        return result.info_error is not None and is_retryable(result.info_error)

    def _refresh_client(self, retry_state: RetryCallState) -> None:
        error = retry_state.outcome.result().info_error
        logger.warning(f"Network error on primary fetch, refreshing client and retrying ({error})")
        self._clients.acquire(force_refresh=True)

    def _fan_out(
        self,
        video_id: str,
        resume_token: Optional[str],
        depth: int,
    ) -> FanOutResult:
        """Run the primary, thumbnail and related fetches concurrently."""
        client = self._clients.acquire()

        with ThreadPoolExecutor(max_workers=3, thread_name_prefix="aggregate") as executor:
            info_future = executor.submit(client.get_info, video_id)
            thumb_future = executor.submit(
                self._thumbnails.resolve, default_thumbnail_url(video_id), "image/webp"
            )
            related_future = executor.submit(
                self._walker.walk, client, video_id, resume_token, depth
            )

            info, info_error = _settle(info_future)
            thumbnail, thumb_error = _settle(thumb_future)
            related, related_error = _settle(related_future)

        if thumb_error is not None:
            logger.warning(f"Thumbnail fetch failed for {video_id}: {thumb_error}")
        if related_error is not None:
            logger.warning(f"Related walk failed for {video_id}: {related_error}")
            related = RelatedVideos(
                error=error_kind(related_error),
                error_message=error_message(related_error),
            )

        return FanOutResult(
            info=info,
            info_error=info_error,
            thumbnail=thumbnail or "",
            related=related or RelatedVideos(),
        )

    def _compose(self, video_id: str, fan_out: FanOutResult) -> AggregationResult:
        if fan_out.primary_failed:
            reason = error_message(fan_out.info_error) or "This video is unavailable"
            # Content-level refusals are expected; only log the surprising ones
            if any(marker in reason for marker in PERMANENT_MARKERS):
                logger.info(f"Video {video_id} unavailable: {reason}")
            else:
                logger.warning(f"Info fetch failed for {video_id}: {reason}")
            return AggregationResult.unavailable(
                video_id,
                reason=reason,
                thumbnail=fan_out.thumbnail,
                related=fan_out.related,
            )

        return compose_available(fan_out.info, fan_out.thumbnail, fan_out.related)


def build_aggregator(settings: Settings) -> VideoAggregator:
    """Construct an aggregator and the shared state it owns."""
    cache: BoundedCache[str] = BoundedCache(
        max_entries=settings.thumbnail_cache_max_entries,
        default_ttl=settings.thumbnail_cache_ttl_seconds,
    )
    thumbnails = ThumbnailResolver(
        cache,
        ttl_seconds=settings.thumbnail_cache_ttl_seconds,
        timeout=settings.request_timeout_seconds,
    )
    walker = RelatedVideoWalker(
        thumbnails,
        page_delay=settings.related_page_delay_seconds,
        max_workers=settings.thumbnail_workers,
    )
    clients = ClientLifecycleManager(
        lambda: InnertubeClient.create(settings),
        timeout=settings.client_init_timeout_seconds,
    )
    return VideoAggregator(
        clients=clients,
        thumbnails=thumbnails,
        walker=walker,
        max_depth=settings.max_related_depth,
    )


# Global aggregator instance
_aggregator: Optional[VideoAggregator] = None


def get_aggregator() -> VideoAggregator:
    """Get or create the global aggregator."""
    global _aggregator
    if _aggregator is None:
        _aggregator = build_aggregator(settings)
    return _aggregator
