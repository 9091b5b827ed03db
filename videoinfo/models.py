"""
Data models for aggregated video info.

These dataclasses are the canonical shape of a composed response,
independent of how the HTTP layer serializes them. to_dict() produces the
public JSON field names.
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from .errors import ErrorKind


class RelatedItemKind(Enum):
    VIDEO = "video"
    PLAYLIST = "playlist"


@dataclass(frozen=True)
class RelatedItem:
    """One entry of the related-videos list."""
    video_id: str
    title: str
    kind: RelatedItemKind = RelatedItemKind.VIDEO
    playlist_id: Optional[str] = None
    channel_name: str = ""
    view_count_text: str = ""
    published_time_text: str = ""
    duration: Optional[str] = None  # "12:34" overlay badge
    badge: Optional[str] = None     # "New", "4K", ...
    thumbnails: List[Dict[str, Any]] = field(default_factory=list)
    channel_avatar: str = ""
    overlay_icon: Optional[str] = None
    verified_icon: Optional[str] = None
    thumbnail: str = ""  # Resolved data URI, filled in after the walk

    def to_dict(self) -> Dict[str, Any]:
        if self.kind is RelatedItemKind.PLAYLIST:
            return {
                "type": self.kind.value,
                "title": self.title,
                "videoId": self.video_id,
                "playlistId": self.playlist_id,
                "thumbnail": self.thumbnail,
            }
        return {
            "type": self.kind.value,
            "videoId": self.video_id,
            "title": self.title,
            "channelName": self.channel_name,
            "viewCountText": self.view_count_text,
            "publishedTimeText": self.published_time_text,
            "duration": self.duration,
            "badge": self.badge,
            "thumbnails": self.thumbnails,
            "channelAvatar": self.channel_avatar,
            "overlayIcon": self.overlay_icon,
            "verifiedIcon": self.verified_icon,
            "thumbnail": self.thumbnail,
        }


@dataclass
class PageResult:
    """Outcome of fetching one page of related items."""
    items: List[RelatedItem] = field(default_factory=list)
    next_token: Optional[str] = None


@dataclass
class RelatedVideos:
    """Related items gathered by one pagination walk."""
    items: List[RelatedItem] = field(default_factory=list)
    next_continuation_token: Optional[str] = None
    error: Optional[ErrorKind] = None
    error_message: Optional[str] = None

    @property
    def count(self) -> int:
        return len(self.items)

    def to_dict(self) -> Dict[str, Any]:
        result = {
            "relatedCount": self.count,
            "nextContinuationToken": self.next_continuation_token,
            "relatedVideos": [item.to_dict() for item in self.items],
        }
        if self.error is not None:
            result["error"] = self.error_message or self.error.value
        return result


@dataclass
class Collaborator:
    """A co-author listed on a collaboration video."""
    name: str = ""
    subtitle: str = ""
    channel_id: str = ""
    thumbnail: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "subtitle": self.subtitle,
            "channelId": self.channel_id,
            "thumbnail": self.thumbnail,
        }


@dataclass
class Author:
    """Channel that owns the video."""
    id: str = ""
    name: str = ""
    subscribers_text: str = ""
    thumbnail: str = ""
    collaborators: List[Collaborator] = field(default_factory=list)
    is_collaboration: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "subscribers": self.subscribers_text,
            "thumbnail": self.thumbnail,
            "collaborator": self.is_collaboration,
            "collaborators": [c.to_dict() for c in self.collaborators],
        }


@dataclass
class Description:
    raw_text: str = ""
    html_text: str = ""  # Escaped, newlines as <br>
    first_runs: List[str] = field(default_factory=list)  # Up to 4 fragments

    def to_dict(self) -> Dict[str, Any]:
        return {
            "text": self.raw_text,
            "formatted": self.html_text,
            "runs": list(self.first_runs),
        }


class AggregationOutcome(Enum):
    """Terminal state of one aggregate() call."""
    AVAILABLE = "available"
    UNAVAILABLE = "unavailable"                # Content could not be loaded
    CLIENT_UNAVAILABLE = "client_unavailable"  # Upstream client failed to initialize
    INTERNAL_ERROR = "internal_error"          # Our own logic broke


@dataclass
class AggregationResult:
    """The composite answer for one video."""
    id: str
    outcome: AggregationOutcome
    reason: Optional[str] = None
    title: str = ""
    views_text: str = ""
    relative_date_text: str = ""
    likes_text: str = ""
    thumbnail: str = ""
    author: Author = field(default_factory=Author)
    description: Description = field(default_factory=Description)
    related: RelatedVideos = field(default_factory=RelatedVideos)

    @property
    def available(self) -> bool:
        return self.outcome is AggregationOutcome.AVAILABLE

    @classmethod
    def unavailable(
        cls,
        video_id: str,
        reason: str,
        thumbnail: str = "",
        related: Optional[RelatedVideos] = None,
    ) -> "AggregationResult":
        return cls(
            id=video_id,
            outcome=AggregationOutcome.UNAVAILABLE,
            reason=reason,
            thumbnail=thumbnail,
            related=related or RelatedVideos(),
        )

    @classmethod
    def failure(
        cls,
        video_id: str,
        outcome: AggregationOutcome,
        reason: str,
    ) -> "AggregationResult":
        """Result for requests that could not run at all."""
        return cls(id=video_id, outcome=outcome, reason=reason)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON response."""
        if self.outcome is AggregationOutcome.AVAILABLE:
            return {
                "id": self.id,
                "title": self.title,
                "views": self.views_text,
                "relativeDate": self.relative_date_text,
                "likes": self.likes_text,
                "thumbnail": self.thumbnail,
                "author": self.author.to_dict(),
                "description": self.description.to_dict(),
                "Related-videos": self.related.to_dict(),
            }
        if self.outcome is AggregationOutcome.UNAVAILABLE:
            return {
                "id": self.id,
                "unavailable": True,
                "reason": self.reason,
                "thumbnail": self.thumbnail,
                "Related-videos": self.related.to_dict(),
            }
        return {"id": self.id, "error": self.reason}
