"""Shared pytest fixtures for the tube-insight test suite."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest

from tube_insight.llm import GenerativeClient
from tube_insight.storage import MemoryStore
from tube_insight.youtube import YouTubeClient

# ---------------------------------------------------------------------------
# Raw YouTube API payload builders
# ---------------------------------------------------------------------------


def _video_item(
    video_id: str,
    *,
    title: str = "",
    views: int | str = 0,
    likes: int | str = 0,
    comments: int | str = 0,
    duration: str = "PT1M",
    published_at: str = "2024-01-01T00:00:00Z",
    description: str = "",
    channel_id: str = "UC_test",
    tags: list[str] | None = None,
) -> dict[str, Any]:
    """A ``videos.list`` item with snippet, statistics and contentDetails."""
    return {
        "id": video_id,
        "snippet": {
            "title": title or f"Video {video_id}",
            "description": description,
            "publishedAt": published_at,
            "channelId": channel_id,
            "channelTitle": "Test Channel",
            "tags": tags or [],
            "thumbnails": {"high": {"url": f"https://i.ytimg.com/vi/{video_id}/hq.jpg"}},
        },
        "statistics": {
            "viewCount": str(views),
            "likeCount": str(likes),
            "commentCount": str(comments),
        },
        "contentDetails": {"duration": duration},
    }


def _channel_item(
    channel_id: str,
    *,
    title: str = "",
    subscribers: int = 0,
    views: int = 0,
    videos: int = 0,
    uploads: str | None = None,
) -> dict[str, Any]:
    """A ``channels.list`` item."""
    return {
        "id": channel_id,
        "snippet": {
            "title": title or f"Channel {channel_id}",
            "description": "About this channel",
            "publishedAt": "2020-01-01T00:00:00Z",
            "thumbnails": {"default": {"url": f"https://yt3.ggpht.com/{channel_id}.jpg"}},
        },
        "statistics": {
            "subscriberCount": str(subscribers),
            "viewCount": str(views),
            "videoCount": str(videos),
        },
        "contentDetails": {"relatedPlaylists": {"uploads": uploads or f"UU{channel_id}"}},
    }


@pytest.fixture()
def video_item() -> Callable[..., dict[str, Any]]:
    return _video_item


@pytest.fixture()
def channel_item() -> Callable[..., dict[str, Any]]:
    return _channel_item


# ---------------------------------------------------------------------------
# Stores
# ---------------------------------------------------------------------------


@pytest.fixture()
def memory_store() -> MemoryStore:
    """An empty in-process key-value store."""
    return MemoryStore()


# ---------------------------------------------------------------------------
# Clients
# ---------------------------------------------------------------------------

Handler = Callable[[httpx.Request], httpx.Response]


@pytest.fixture()
def make_youtube() -> Callable[..., YouTubeClient]:
    """Factory building a ``YouTubeClient`` over an ``httpx.MockTransport``."""

    def _make(handler: Handler, api_key: str | None = "yt-key", **kwargs: Any) -> YouTubeClient:
        client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        return YouTubeClient(api_key, client=client, retry_wait=0, **kwargs)

    return _make


@pytest.fixture()
def fake_llm() -> MagicMock:
    """A generative client whose ``generate`` is an ``AsyncMock``."""
    llm = MagicMock(spec=GenerativeClient)
    llm.generate = AsyncMock(return_value="")
    llm.require_key = MagicMock(return_value="llm-key")
    llm.has_key = True
    return llm
