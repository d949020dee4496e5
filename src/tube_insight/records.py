"""Video and channel records mapped from raw YouTube Data API items."""

from __future__ import annotations

import re
from datetime import UTC, datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

from tube_insight.scoring import classify_video_type, parse_duration, popularity_score

_HASHTAG_RE = re.compile(r"#[^\s#]+")


class VideoRecord(BaseModel):
    """A scored video. Immutable once built."""

    model_config = ConfigDict(frozen=True)

    id: str
    title: str = ""
    description: str = ""
    published_at: str = ""
    thumbnail_url: str = ""
    tags: tuple[str, ...] = ()
    hashtags: tuple[str, ...] = ()
    duration_seconds: int = Field(default=0, ge=0)
    video_type: Literal["short", "regular"] = "short"
    channel_id: str = ""
    channel_title: str = ""
    view_count: int = Field(default=0, ge=0)
    like_count: int = Field(default=0, ge=0)
    comment_count: int = Field(default=0, ge=0)
    popularity_score: float = Field(default=0.0, ge=0.0, le=100.0)


class ChannelRecord(BaseModel):
    """A resolved channel with its headline statistics."""

    model_config = ConfigDict(frozen=True)

    id: str
    title: str = ""
    description: str = ""
    thumbnail_url: str = ""
    uploads_playlist_id: str = ""
    video_count: int = 0
    published_at: str = ""
    subscriber_count: int = 0
    view_count: int = 0


def _to_int(value: Any) -> int:
    """Parse an API count string, treating missing or garbage values as 0."""
    try:
        return max(int(value), 0)
    except (TypeError, ValueError):
        return 0


def _thumbnail_url(snippet: dict[str, Any]) -> str:
    thumbnails = snippet.get("thumbnails") or {}
    for size in ("high", "medium", "default"):
        url = (thumbnails.get(size) or {}).get("url")
        if url:
            return str(url)
    return ""


def extract_hashtags(description: str) -> tuple[str, ...]:
    """Return hashtags found in a description, without the leading ``#``."""
    return tuple(tag[1:] for tag in _HASHTAG_RE.findall(description or ""))


def map_video(item: dict[str, Any]) -> VideoRecord:
    """Build a scored ``VideoRecord`` from a ``videos.list`` item.

    Args:
        item: One element of ``items`` with ``snippet``, ``statistics`` and
            ``contentDetails`` parts.

    Returns:
        The mapped record with duration, type and popularity derived.
    """
    snippet = item.get("snippet") or {}
    stats = item.get("statistics") or {}
    details = item.get("contentDetails") or {}

    duration = parse_duration(details.get("duration"))
    views = _to_int(stats.get("viewCount"))
    likes = _to_int(stats.get("likeCount"))
    comments = _to_int(stats.get("commentCount"))
    description = snippet.get("description") or ""

    return VideoRecord(
        id=str(item.get("id", "")),
        title=snippet.get("title") or "",
        description=description,
        published_at=snippet.get("publishedAt") or "",
        thumbnail_url=_thumbnail_url(snippet),
        tags=tuple(snippet.get("tags") or ()),
        hashtags=extract_hashtags(description),
        duration_seconds=duration,
        video_type=classify_video_type(duration),
        channel_id=snippet.get("channelId") or "",
        channel_title=snippet.get("channelTitle") or "",
        view_count=views,
        like_count=likes,
        comment_count=comments,
        popularity_score=popularity_score(views, likes, comments),
    )


def map_channel(item: dict[str, Any]) -> ChannelRecord:
    """Build a ``ChannelRecord`` from a ``channels.list`` item."""
    snippet = item.get("snippet") or {}
    stats = item.get("statistics") or {}
    playlists = (item.get("contentDetails") or {}).get("relatedPlaylists") or {}

    return ChannelRecord(
        id=str(item.get("id", "")),
        title=snippet.get("title") or "",
        description=snippet.get("description") or "",
        thumbnail_url=_thumbnail_url(snippet),
        uploads_playlist_id=playlists.get("uploads") or "",
        video_count=_to_int(stats.get("videoCount")),
        published_at=snippet.get("publishedAt") or "",
        subscriber_count=_to_int(stats.get("subscriberCount")),
        view_count=_to_int(stats.get("viewCount")),
    )


def parse_published(value: str) -> datetime | None:
    """Parse an API ``publishedAt`` timestamp; None when missing or malformed."""
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=UTC)
