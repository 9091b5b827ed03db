"""
Field extraction and response composition for primary video metadata.

Each logical field has an ordered list of extractors; the first one that
yields a non-empty value wins.
"""
import html
from typing import Any, Callable, Dict, List, Optional

from .models import (
    AggregationOutcome,
    AggregationResult,
    Author,
    Collaborator,
    Description,
    RelatedVideos,
)
from .upstream.client import VideoInfo
from .utils.helpers import dig, first_present, safe_str

Extractor = Callable[[VideoInfo], Any]

MAX_DESCRIPTION_RUNS = 4
AVATAR_HOST = "yt3.ggpht.com"


# =============================================================================
# Renderer lookups
# =============================================================================

def _watch_contents(info: VideoInfo) -> List[Dict[str, Any]]:
    return dig(
        info.watch_next, "contents", "twoColumnWatchNextResults",
        "results", "results", "contents",
    ) or []


def _renderer(info: VideoInfo, key: str) -> Dict[str, Any]:
    for entry in _watch_contents(info):
        if isinstance(entry, dict) and key in entry:
            return entry[key]
    return {}


def primary_renderer(info: VideoInfo) -> Dict[str, Any]:
    return _renderer(info, "videoPrimaryInfoRenderer")


def secondary_renderer(info: VideoInfo) -> Dict[str, Any]:
    return _renderer(info, "videoSecondaryInfoRenderer")


def owner_renderer(info: VideoInfo) -> Dict[str, Any]:
    return dig(secondary_renderer(info), "owner", "videoOwnerRenderer") or {}


def _join_runs(runs: Any) -> Optional[str]:
    if not isinstance(runs, list):
        return None
    return "".join(safe_str(run.get("text")) for run in runs if isinstance(run, dict)) or None


def _collab_dialog(info: VideoInfo) -> Dict[str, Any]:
    owner = owner_renderer(info)
    return first_present(
        [
            lambda o: dig(o, "navigationEndpoint", "showDialogCommand",
                          "panelLoadingStrategy", "inlineContent", "dialogViewModel"),
            lambda o: dig(o, "title", "runs", 0, "navigationEndpoint", "showDialogCommand",
                          "panelLoadingStrategy", "inlineContent", "dialogViewModel"),
        ],
        owner,
        default={},
    )


# =============================================================================
# Field extractors (priority order)
# =============================================================================

TITLE: List[Extractor] = [
    lambda i: dig(i.player, "videoDetails", "title"),
    lambda i: _join_runs(dig(primary_renderer(i), "title", "runs")),
]

VIEWS: List[Extractor] = [
    lambda i: dig(primary_renderer(i), "viewCount", "videoViewCountRenderer",
                  "shortViewCount", "simpleText"),
    lambda i: dig(primary_renderer(i), "viewCount", "videoViewCountRenderer",
                  "viewCount", "simpleText"),
    lambda i: _join_runs(dig(primary_renderer(i), "viewCount", "videoViewCountRenderer",
                             "viewCount", "runs")),
    lambda i: dig(i.player, "videoDetails", "viewCount"),
]

RELATIVE_DATE: List[Extractor] = [
    lambda i: dig(primary_renderer(i), "relativeDateText", "simpleText"),
    lambda i: dig(primary_renderer(i), "dateText", "simpleText"),
]

LIKES: List[Extractor] = [
    lambda i: dig(
        primary_renderer(i), "videoActions", "menuRenderer", "topLevelButtons", 0,
        "segmentedLikeDislikeButtonViewModel", "likeButtonViewModel", "likeButtonViewModel",
        "toggleButtonViewModel", "toggleButtonViewModel", "defaultButtonViewModel",
        "buttonViewModel", "title",
    ),
    lambda i: dig(
        primary_renderer(i), "videoActions", "menuRenderer", "topLevelButtons", 0,
        "toggleButtonRenderer", "defaultText", "simpleText",
    ),
]

AUTHOR_ID: List[Extractor] = [
    lambda i: dig(i.player, "videoDetails", "channelId"),
    lambda i: dig(owner_renderer(i), "title", "runs", 0, "navigationEndpoint",
                  "browseEndpoint", "browseId"),
    lambda i: dig(owner_renderer(i), "navigationEndpoint", "browseEndpoint", "browseId"),
]

AUTHOR_NAME: List[Extractor] = [
    lambda i: dig(i.player, "videoDetails", "author"),
    lambda i: _join_runs(dig(owner_renderer(i), "title", "runs")),
]

AUTHOR_SUBSCRIBERS: List[Extractor] = [
    lambda i: dig(owner_renderer(i), "subscriberCountText", "simpleText"),
]

# Only channel avatars (served from the avatar host) are accepted
AUTHOR_THUMBNAIL: List[Extractor] = [
    lambda i: dig(i.player, "endscreen", "endscreenRenderer", "elements", 0,
                  "endscreenElementRenderer", "image", "thumbnails", 0, "url"),
    lambda i: dig(i.player, "endscreen", "endscreenRenderer", "elements", 1,
                  "endscreenElementRenderer", "image", "thumbnails", 0, "url"),
    lambda i: dig(i.watch_next, "playerOverlays", "playerOverlayRenderer", "videoDetails",
                  "playerOverlayVideoDetailsRenderer", "channelAvatar", "avatarViewModel",
                  "image", "sources", 0, "url"),
    lambda i: dig(owner_renderer(i), "thumbnail", "thumbnails", 0, "url"),
]

COLLAB_HEADLINE: List[Extractor] = [
    lambda i: dig(_collab_dialog(i), "header", "dialogHeaderViewModel", "headline", "content"),
]

DESCRIPTION_TEXT: List[Extractor] = [
    lambda i: dig(secondary_renderer(i), "attributedDescription", "content"),
    lambda i: _join_runs(dig(secondary_renderer(i), "description", "runs")),
    lambda i: dig(i.player, "videoDetails", "shortDescription"),
]


# =============================================================================
# Composition
# =============================================================================

def extract_collaborators(info: VideoInfo) -> List[Collaborator]:
    items = dig(_collab_dialog(info), "customContent", "listViewModel", "listItems")
    if not isinstance(items, list):
        items = []
    collaborators = []
    for entry in items:
        vm = dig(entry, "listItemViewModel") or {}
        collaborators.append(Collaborator(
            name=dig(vm, "title", "content") or "",
            subtitle=dig(vm, "subtitle", "content") or "",
            channel_id=dig(vm, "title", "commandRuns", 0, "onTap", "innertubeCommand",
                           "browseEndpoint", "browseId") or "",
            thumbnail=dig(vm, "leadingAccessory", "avatarViewModel", "image",
                          "sources", 0, "url") or "",
        ))
    return collaborators


def extract_author(info: VideoInfo) -> Author:
    return Author(
        id=safe_str(first_present(AUTHOR_ID, info)),
        name=safe_str(first_present(AUTHOR_NAME, info)),
        subscribers_text=safe_str(first_present(AUTHOR_SUBSCRIBERS, info)),
        thumbnail=first_present(
            AUTHOR_THUMBNAIL,
            info,
            accept=lambda url: isinstance(url, str) and AVATAR_HOST in url,
        ),
        is_collaboration=bool(first_present(COLLAB_HEADLINE, info)),
        collaborators=extract_collaborators(info),
    )


def format_description_html(text: str) -> str:
    """Escape &, < and > and turn newlines into <br>."""
    return html.escape(text, quote=False).replace("\n", "<br>")


def extract_description(info: VideoInfo) -> Description:
    text = safe_str(first_present(DESCRIPTION_TEXT, info))
    runs = dig(secondary_renderer(info), "description", "runs")
    if not isinstance(runs, list):
        runs = []
    first_runs = [
        safe_str(run.get("text"))
        for run in runs[:MAX_DESCRIPTION_RUNS]
        if isinstance(run, dict)
    ]
    return Description(
        raw_text=text,
        html_text=format_description_html(text),
        first_runs=first_runs,
    )


def compose_available(
    info: VideoInfo,
    thumbnail: str,
    related: RelatedVideos,
) -> AggregationResult:
    """Build the full result for a video whose primary metadata loaded."""
    return AggregationResult(
        id=info.video_id,
        outcome=AggregationOutcome.AVAILABLE,
        title=safe_str(first_present(TITLE, info)),
        views_text=safe_str(first_present(VIEWS, info)),
        relative_date_text=safe_str(first_present(RELATIVE_DATE, info)),
        likes_text=safe_str(first_present(LIKES, info)),
        thumbnail=thumbnail,
        author=extract_author(info),
        description=extract_description(info),
        related=related,
    )
