"""
Upstream client interface and innertube implementation.

The protocol keeps the aggregation pipeline independent of the wire
format; InnertubeClient talks to YouTube's internal web API with requests.
"""
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Protocol
import logging

import requests

from config.settings import Settings
from ..errors import InitializationError, ParseError, TransientUpstreamError, UpstreamError
from ..models import PageResult
from .parsing import check_playability, parse_watch_next_page, parse_ytcfg

logger = logging.getLogger("upstream.client")


@dataclass
class VideoInfo:
    """Raw primary metadata for one video."""
    video_id: str
    player: Dict[str, Any] = field(default_factory=dict)      # /player response
    watch_next: Dict[str, Any] = field(default_factory=dict)  # /next response


class UpstreamClient(Protocol):
    """
    Interface for upstream platform clients.

    Implementations:
    - InnertubeClient: YouTube web innertube API over requests (current)
    """

    def get_info(self, video_id: str) -> VideoInfo:
        """
        Fetch primary metadata for a video.

        Raises:
            PermanentContentError: Video is private, removed or restricted
            TransientUpstreamError: Network failure or upstream 429/5xx
            ParseError: Response could not be decoded
        """
        ...

    def fetch_related_page(
        self, video_id: str, continuation: Optional[str] = None
    ) -> PageResult:
        """
        Fetch one page of related items.

        Without ``continuation`` this is the video's initial page (page 0);
        with it, the page the token points at.
        """
        ...


class InnertubeClient:
    """
    Session-holding client for the innertube web API.

    Build with InnertubeClient.create(); construction fetches the bootstrap
    page to negotiate the client version and visitor data used by every
    subsequent API call.
    """

    def __init__(
        self,
        session: requests.Session,
        settings: Settings,
        client_version: str,
        api_key: Optional[str] = None,
        visitor_data: Optional[str] = None,
    ):
        self._session = session
        self._settings = settings
        self.client_version = client_version
        self.api_key = api_key
        self.visitor_data = visitor_data

    @classmethod
    def create(
        cls,
        settings: Settings,
        session: Optional[requests.Session] = None,
    ) -> "InnertubeClient":
        """
        Negotiate a new client session.

        Raises:
            InitializationError: If the bootstrap page cannot be loaded
        """
        session = session or requests.Session()
        session.headers.update(_base_headers(settings))

        try:
            response = session.get(
                f"{settings.youtube_base_url}/",
                params={"hl": settings.youtube_lang, "gl": settings.youtube_location},
                timeout=settings.request_timeout_seconds,
            )
            response.raise_for_status()
        except requests.RequestException as e:
            raise InitializationError(f"Bootstrap request failed: {e}") from e

        config = parse_ytcfg(response.text)
        if not config:
            logger.warning("No ytcfg found in bootstrap page, using configured client version")

        client_version = config.get("INNERTUBE_CLIENT_VERSION") or settings.youtube_client_version
        client = cls(
            session=session,
            settings=settings,
            client_version=client_version,
            api_key=config.get("INNERTUBE_API_KEY"),
            visitor_data=config.get("VISITOR_DATA"),
        )
        logger.info(f"Innertube session ready (client version {client_version})")
        return client

    def get_info(self, video_id: str) -> VideoInfo:
        """Fetch player and watch-next responses for a video."""
        player = self._post(
            "player",
            {"videoId": video_id, "contentCheckOk": True, "racyCheckOk": True},
            video_id,
        )
        check_playability(player)
        watch_next = self._post("next", {"videoId": video_id}, video_id)
        return VideoInfo(video_id=video_id, player=player, watch_next=watch_next)

    def fetch_related_page(
        self, video_id: str, continuation: Optional[str] = None
    ) -> PageResult:
        """Fetch page 0 (no token) or a continuation page of related items."""
        body = {"continuation": continuation} if continuation else {"videoId": video_id}
        data = self._post("next", body, video_id)
        return parse_watch_next_page(data)

    def _context(self, video_id: str) -> Dict[str, Any]:
        client = {
            "hl": self._settings.youtube_lang,
            "gl": self._settings.youtube_location,
            "clientName": "WEB",
            "clientVersion": self.client_version,
            "userAgent": self._settings.user_agent,
            "platform": "DESKTOP",
            "originalUrl": f"{self._settings.youtube_base_url}/watch?v={video_id}",
        }
        if self.visitor_data:
            client["visitorData"] = self.visitor_data
        return {"client": client}

    def _post(self, endpoint: str, body: Dict[str, Any], video_id: str) -> Dict[str, Any]:
        """
        POST to an innertube endpoint and decode the JSON response.

        Raises:
            TransientUpstreamError: Timeout, connection failure, HTTP 429/5xx
            UpstreamError: Any other non-2xx status
            ParseError: Body is not a JSON object
        """
        url = f"{self._settings.youtube_base_url}/youtubei/v1/{endpoint}"
        params = {"prettyPrint": "false"}
        if self.api_key:
            params["key"] = self.api_key

        headers = {
            "Content-Type": "application/json",
            "x-youtube-client-name": "1",
            "x-youtube-client-version": self.client_version,
            "Origin": self._settings.youtube_base_url,
            "Referer": f"{self._settings.youtube_base_url}/",
        }
        if self.visitor_data:
            headers["X-Goog-Visitor-Id"] = self.visitor_data

        try:
            response = self._session.post(
                url,
                params=params,
                headers=headers,
                json={"context": self._context(video_id), **body},
                timeout=self._settings.request_timeout_seconds,
            )
        except requests.Timeout as e:
            raise TransientUpstreamError(f"network timeout on {endpoint}: {e}") from e
        except requests.ConnectionError as e:
            raise TransientUpstreamError(f"network error on {endpoint}: {e}") from e
        except requests.RequestException as e:
            raise UpstreamError(f"Request to {endpoint} failed: {e}") from e

        if response.status_code == 429 or response.status_code >= 500:
            raise TransientUpstreamError(
                f"network error: {endpoint} returned HTTP {response.status_code}"
            )
        if not response.ok:
            raise UpstreamError(f"{endpoint} rejected request: HTTP {response.status_code}")

        try:
            data = response.json()
        except ValueError as e:
            raise ParseError(f"Invalid JSON from {endpoint}: {e}") from e
        if not isinstance(data, dict):
            raise ParseError(f"Unexpected payload type from {endpoint}")
        return data


def _base_headers(settings: Settings) -> Dict[str, str]:
    return {
        "User-Agent": settings.user_agent,
        "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,image/avif,image/webp,*/*;q=0.8",
        "Accept-Language": f"{settings.youtube_lang}-{settings.youtube_location},"
                           f"{settings.youtube_lang};q=0.9,en-US;q=0.8,en;q=0.7",
    }
