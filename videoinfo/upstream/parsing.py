"""
Parsing helpers for innertube responses.

Pure functions over decoded JSON / HTML; no network access here.
"""
import json
import re
import logging
from typing import Any, Dict, Iterable, List, Optional

from ..errors import ParseError, PermanentContentError
from ..models import PageResult, RelatedItem, RelatedItemKind
from ..utils.helpers import dig, first_present

logger = logging.getLogger("upstream.parsing")

_YTCFG_RE = re.compile(r"ytcfg\.set\s*\(\s*(\{.+?\})\s*\)\s*;", re.DOTALL)

# Playability states that mean the content itself cannot be served
BLOCKING_PLAYABILITY = ("ERROR", "LOGIN_REQUIRED")


def parse_ytcfg(html: str) -> Dict[str, Any]:
    """
    Merge every ``ytcfg.set({...})`` blob found in a bootstrap page.

    Blobs that fail to decode are skipped.
    """
    config: Dict[str, Any] = {}
    for match in _YTCFG_RE.finditer(html):
        try:
            blob = json.loads(match.group(1))
        except ValueError:
            continue
        if isinstance(blob, dict):
            config.update(blob)
    return config


def check_playability(player_response: Dict[str, Any]) -> None:
    """
    Raise PermanentContentError if the player response refuses the video.

    Raises:
        PermanentContentError: Status is blocking, or video details are missing
    """
    status = dig(player_response, "playabilityStatus", "status")
    if status in BLOCKING_PLAYABILITY:
        reason = first_present(
            [
                lambda p: dig(p, "playabilityStatus", "reason"),
                lambda p: dig(
                    p, "playabilityStatus", "errorScreen",
                    "playerErrorMessageRenderer", "reason", "simpleText",
                ),
                lambda p: _join_runs(dig(
                    p, "playabilityStatus", "errorScreen",
                    "playerErrorMessageRenderer", "reason", "runs",
                )),
            ],
            player_response,
            default="This video is unavailable",
        )
        raise PermanentContentError(reason)

    if not dig(player_response, "videoDetails", "videoId"):
        raise PermanentContentError("No video content found")


def parse_lockup(lockup: Dict[str, Any]) -> RelatedItem:
    """Convert a ``lockupViewModel`` into a RelatedItem."""
    watch = dig(
        lockup, "rendererContext", "commandContext", "onTap",
        "innertubeCommand", "watchEndpoint",
    ) or {}
    video_id = watch.get("videoId") or lockup.get("contentId") or ""
    playlist_id = watch.get("playlistId")

    meta = dig(lockup, "metadata", "lockupMetadataViewModel") or {}
    title = dig(meta, "title", "content") or ""

    if playlist_id:
        return RelatedItem(
            video_id=video_id,
            title=title,
            kind=RelatedItemKind.PLAYLIST,
            playlist_id=playlist_id,
        )

    rows = dig(meta, "metadata", "contentMetadataViewModel", "metadataRows") or []
    overlays = dig(lockup, "contentImage", "thumbnailViewModel", "overlays") or []

    duration = None
    for overlay in overlays:
        text = dig(
            overlay, "thumbnailOverlayBadgeViewModel", "thumbnailBadges", 0,
            "thumbnailBadgeViewModel", "text",
        )
        if text:
            duration = text
            break

    return RelatedItem(
        video_id=video_id,
        title=title,
        channel_name=dig(rows, 0, "metadataParts", 0, "text", "content") or "",
        view_count_text=dig(rows, 1, "metadataParts", 0, "text", "content") or "",
        published_time_text=dig(rows, 1, "metadataParts", 1, "text", "content") or "",
        duration=duration,
        badge=dig(rows, 2, "badges", 0, "badgeViewModel", "badgeText"),
        thumbnails=list(dig(lockup, "contentImage", "thumbnailViewModel", "image", "sources") or []),
        channel_avatar=dig(
            meta, "image", "decoratedAvatarViewModel", "avatar",
            "avatarViewModel", "image", "sources", 0, "url",
        ) or "",
        overlay_icon=dig(
            overlays, 0, "thumbnailOverlayBadgeViewModel", "thumbnailBadges", 0,
            "thumbnailBadgeViewModel", "icon", "sources", 0, "clientResource", "imageName",
        ),
        verified_icon=dig(
            rows, 0, "metadataParts", 0, "text", "attachmentRuns", 0, "element",
            "type", "imageType", "image", "sources", 0, "clientResource", "imageName",
        ),
    )


def parse_related_items(entries: Iterable[Dict[str, Any]]) -> PageResult:
    """
    Collect related items and the continuation token from a list of entries.

    Entries without a video id are dropped. If several continuation
    entries appear, the last one wins.
    """
    items: List[RelatedItem] = []
    next_token: Optional[str] = None

    for entry in entries:
        if not isinstance(entry, dict):
            continue
        if "continuationItemRenderer" in entry:
            next_token = dig(
                entry, "continuationItemRenderer", "continuationEndpoint",
                "continuationCommand", "token",
            ) or next_token
        elif "lockupViewModel" in entry:
            item = parse_lockup(entry["lockupViewModel"])
            if item.video_id:
                items.append(item)

    return PageResult(items=items, next_token=next_token)


def parse_watch_next_page(data: Dict[str, Any]) -> PageResult:
    """
    Extract one page of related items from a ``/next`` response.

    Handles both the initial watch response (secondary results) and
    continuation responses (append/reload continuation actions).

    Raises:
        ParseError: If the payload is not a JSON object
    """
    if not isinstance(data, dict):
        raise ParseError("Unexpected watch-next payload")

    entries: List[Dict[str, Any]] = list(dig(
        data, "contents", "twoColumnWatchNextResults", "secondaryResults",
        "secondaryResults", "results",
    ) or [])

    actions = (data.get("onResponseReceivedEndpoints") or []) + (
        data.get("onResponseReceivedActions") or []
    )
    for action in actions:
        continuation_items = first_present(
            [
                lambda a: dig(a, "appendContinuationItemsAction", "continuationItems"),
                lambda a: dig(a, "reloadContinuationItemsCommand", "continuationItems"),
            ],
            action,
            default=None,
        )
        if continuation_items:
            entries.extend(continuation_items)

    page = parse_related_items(entries)
    logger.debug(f"Parsed {len(page.items)} related items (next token: {bool(page.next_token)})")
    return page


def _join_runs(runs: Optional[List[Dict[str, Any]]]) -> Optional[str]:
    if not runs:
        return None
    return "".join(run.get("text", "") for run in runs if isinstance(run, dict)) or None
