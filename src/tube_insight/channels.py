"""Single-channel video analysis and upload cadence statistics."""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING

import structlog
from pydantic import BaseModel, Field

from tube_insight.records import ChannelRecord, VideoRecord, parse_published

if TYPE_CHECKING:
    from collections.abc import Sequence

    from tube_insight.youtube import YouTubeClient

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)

RECENT_WINDOW = 5
UPLOAD_SAMPLE = 50
_SECONDS_PER_DAY = 86_400


class ChannelExtraStats(BaseModel):
    """Upload cadence derived from a channel's recent uploads."""

    first_video_date: str = ""
    average_upload_interval_all: str = ""
    average_upload_interval_recent: str = ""


class ChannelAnalysis(BaseModel):
    channel: ChannelRecord
    videos: list[VideoRecord] = Field(default_factory=list)
    stats: ChannelExtraStats = Field(default_factory=ChannelExtraStats)


def format_interval(seconds: float) -> str:
    """Render an interval as whole days, e.g. ``"3 days"``."""
    days = int(seconds // _SECONDS_PER_DAY)
    return "1 day" if days == 1 else f"{days} days"


def _average_gap(timestamps: Sequence[datetime]) -> float:
    if len(timestamps) < 2:
        return 0.0
    total = sum(
        (later - earlier).total_seconds()
        for earlier, later in zip(timestamps, timestamps[1:], strict=False)
    )
    return total / (len(timestamps) - 1)


def compute_extra_stats(videos: Sequence[VideoRecord]) -> ChannelExtraStats:
    """Summarize upload cadence over all videos and the five most recent.

    Videos whose ``published_at`` cannot be parsed are ignored.
    """
    dated = sorted(
        (
            (published, video)
            for video in videos
            if (published := parse_published(video.published_at)) is not None
        ),
        key=lambda pair: pair[0],
    )
    if not dated:
        return ChannelExtraStats()

    timestamps = [published for published, _ in dated]
    return ChannelExtraStats(
        first_video_date=dated[0][1].published_at,
        average_upload_interval_all=format_interval(_average_gap(timestamps)),
        average_upload_interval_recent=format_interval(
            _average_gap(timestamps[-RECENT_WINDOW:])
        ),
    )


async def analyze_channel_videos(youtube: YouTubeClient, query: str) -> ChannelAnalysis:
    """Resolve a channel and analyze its most recent uploads.

    Args:
        youtube: YouTube API client.
        query: Channel ID or name.

    Returns:
        The channel, its uploads sorted by views (descending) and cadence
        statistics. A channel without uploads yields empty videos and stats.

    Raises:
        ChannelNotFoundError: If the channel cannot be resolved.
        ConfigurationError: If the YouTube API key is missing.
    """
    channel = await youtube.find_channel(query)
    videos = await youtube.get_channel_uploads(channel, max_results=UPLOAD_SAMPLE)
    if not videos:
        return ChannelAnalysis(channel=channel)

    stats = compute_extra_stats(videos)
    ranked = sorted(videos, key=lambda video: video.view_count, reverse=True)
    logger.info("channel_analyzed", channel_id=channel.id, videos=len(ranked))
    return ChannelAnalysis(channel=channel, videos=ranked, stats=stats)
