"""Head-to-head channel comparison.

Deterministic statistics are computed locally from each channel's recent
uploads. The model contributes only qualitative radar scores, optional
per-metric weights and narrative text; the power scores and the winner are
always derived here, so the declared winner can never contradict the
displayed scores.
"""

from __future__ import annotations

import asyncio
import json
from collections.abc import Mapping, Sequence
from typing import TYPE_CHECKING, Any, Literal

import structlog
from pydantic import BaseModel, Field

from tube_insight.exceptions import GenerationError
from tube_insight.json_repair import parse_repaired_json
from tube_insight.normalize import normalize, normalize_list
from tube_insight.records import ChannelRecord, VideoRecord, parse_published
from tube_insight.results import DEFAULT_BATTLE_NARRATIVE, DEFAULT_RADAR_POINT
from tube_insight.scoring import (
    POWER_METRICS,
    decide_winner,
    engagement_rate,
    normalize_weights,
    power_scores,
    sanitize_score,
    upload_frequency,
)

if TYPE_CHECKING:
    from tube_insight.llm import GenerativeClient
    from tube_insight.youtube import YouTubeClient

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)

SAMPLE_SIZE = 50
RADAR_FULL_MARK = 100

METRIC_LABELS: dict[str, str] = {
    "subscribers": "Subscribers",
    "total_views": "Total views",
    "avg_views": "Average views",
    "engagement_rate": "Engagement",
    "upload_frequency": "Upload frequency",
}


class BattleStats(BaseModel):
    """Comparable statistics for one side of a battle."""

    subscribers: int = 0
    total_views: int = 0
    avg_views: float = 0.0
    engagement_rate: float = Field(default=0.0, description="Percent of views.")
    upload_frequency: float = Field(default=0.0, description="Uploads per 30 days.")
    video_count: int = 0
    power_score: float = 0.0

    def metrics(self) -> dict[str, float]:
        return {metric: float(getattr(self, metric)) for metric in POWER_METRICS}


class BattleResult(BaseModel):
    channel_a: ChannelRecord
    channel_b: ChannelRecord
    stats_a: BattleStats
    stats_b: BattleStats
    winner: Literal["A", "B", "Tie"]
    radar_data: list[dict[str, Any]] = Field(default_factory=list)
    weights: dict[str, float] = Field(default_factory=dict)
    summary: str = ""


def compute_base_stats(channel: ChannelRecord, videos: Sequence[VideoRecord]) -> BattleStats:
    """Derive the deterministic statistics for one channel.

    The power score is left at zero; it only makes sense relative to the
    opponent (see ``power_scores``).
    """
    count = len(videos)
    if count:
        avg_views = sum(video.view_count for video in videos) / count
        avg_likes = sum(video.like_count for video in videos) / count
        avg_comments = sum(video.comment_count for video in videos) / count
    else:
        avg_views = avg_likes = avg_comments = 0.0

    published = [
        timestamp
        for video in videos
        if (timestamp := parse_published(video.published_at)) is not None
    ]
    return BattleStats(
        subscribers=channel.subscriber_count,
        total_views=channel.view_count,
        avg_views=round(avg_views, 1),
        engagement_rate=engagement_rate(avg_views, avg_likes, avg_comments),
        upload_frequency=upload_frequency(published),
        video_count=channel.video_count,
    )


def _share(value: float, other: float) -> float:
    top = max(value, other)
    return value / top * 100 if top > 0 else 0.0


def default_radar(stats_a: BattleStats, stats_b: BattleStats) -> list[dict[str, Any]]:
    """Radar points built from each metric's relative share."""
    metrics_a = stats_a.metrics()
    metrics_b = stats_b.metrics()
    return [
        {
            "subject": METRIC_LABELS[metric],
            "A": round(_share(metrics_a[metric], metrics_b[metric])),
            "B": round(_share(metrics_b[metric], metrics_a[metric])),
            "fullMark": RADAR_FULL_MARK,
        }
        for metric in POWER_METRICS
    ]


def sanitize_radar(raw: Any) -> list[dict[str, Any]]:
    """Normalize model radar points and clamp each score to 0-100."""
    points = normalize_list(raw, DEFAULT_RADAR_POINT)
    for point in points:
        point["subject"] = str(point.get("subject") or "")
        point["A"] = min(max(sanitize_score(point.get("A")), 0), RADAR_FULL_MARK)
        point["B"] = min(max(sanitize_score(point.get("B")), 0), RADAR_FULL_MARK)
        point["fullMark"] = RADAR_FULL_MARK
    return [point for point in points if point["subject"]]


def _battle_prompt(
    channel_a: ChannelRecord,
    stats_a: BattleStats,
    channel_b: ChannelRecord,
    stats_b: BattleStats,
    persona: str | None,
) -> str:
    def side(channel: ChannelRecord, stats: BattleStats) -> str:
        payload = {
            "title": channel.title,
            "description": channel.description[:300],
            **stats.model_dump(exclude={"power_score"}),
        }
        return json.dumps(payload, ensure_ascii=False)

    body = (
        "Compare these two YouTube channels. Return JSON with:\n"
        '- "radarData": 5 to 6 objects {"subject", "A", "B", "fullMark": 100} scoring '
        "qualitative dimensions from 0 to 100,\n"
        '- "weights": relative importance of subscribers, total_views, avg_views, '
        "engagement_rate and upload_frequency for this pair,\n"
        '- "summary": a short narrative comparison.\n'
        f"Channel A: {side(channel_a, stats_a)}\n"
        f"Channel B: {side(channel_b, stats_b)}"
    )
    return f"{persona}\n\n{body}" if persona else body


async def _fetch_sample(youtube: YouTubeClient, channel: ChannelRecord) -> list[VideoRecord]:
    return await youtube.get_channel_uploads(channel, max_results=SAMPLE_SIZE)


def resolve_battle(
    channel_a: ChannelRecord,
    channel_b: ChannelRecord,
    stats_a: BattleStats,
    stats_b: BattleStats,
    narrative: Mapping[str, Any],
) -> BattleResult:
    """Combine local stats with a normalized model narrative.

    Any winner the model claims is ignored.
    """
    weights = normalize_weights(narrative.get("weights"))
    power_a, power_b = power_scores(stats_a.metrics(), stats_b.metrics(), weights)
    stats_a = stats_a.model_copy(update={"power_score": power_a})
    stats_b = stats_b.model_copy(update={"power_score": power_b})

    radar = sanitize_radar(narrative.get("radarData")) or default_radar(stats_a, stats_b)
    summary = narrative.get("summary")
    return BattleResult(
        channel_a=channel_a,
        channel_b=channel_b,
        stats_a=stats_a,
        stats_b=stats_b,
        winner=decide_winner(power_a, power_b),
        radar_data=radar,
        weights=weights,
        summary=summary if isinstance(summary, str) else "",
    )


async def compare_channels(
    query_a: str,
    query_b: str,
    youtube: YouTubeClient,
    llm: GenerativeClient,
    *,
    persona: str | None = None,
) -> BattleResult:
    """Compare two channels and pick a winner.

    Both channels are resolved concurrently, then their upload samples are
    fetched concurrently. A sample that fails to load counts as empty. A
    failed model call leaves the narrative empty and the power score equally
    weighted.

    Args:
        query_a: Channel ID or name for side A.
        query_b: Channel ID or name for side B.
        youtube: YouTube API client.
        llm: Generative client.
        persona: Optional system-instruction text.

    Returns:
        The battle result with locally decided winner.

    Raises:
        ConfigurationError: If either API key is missing.
        ChannelNotFoundError: If a channel cannot be resolved.
    """
    youtube.require_key()
    llm.require_key()

    channel_a, channel_b = await asyncio.gather(
        youtube.find_channel(query_a), youtube.find_channel(query_b)
    )
    samples = await asyncio.gather(
        _fetch_sample(youtube, channel_a),
        _fetch_sample(youtube, channel_b),
        return_exceptions=True,
    )
    videos: list[list[VideoRecord]] = []
    for side, sample in zip(("A", "B"), samples, strict=True):
        if isinstance(sample, BaseException):
            logger.warning("battle_sample_failed", side=side, error=str(sample))
            videos.append([])
        else:
            videos.append(sample)

    stats_a = compute_base_stats(channel_a, videos[0])
    stats_b = compute_base_stats(channel_b, videos[1])

    try:
        text = await llm.generate(_battle_prompt(channel_a, stats_a, channel_b, stats_b, persona))
    except GenerationError as exc:
        logger.warning("battle_narrative_failed", error=str(exc))
        text = ""
    narrative = normalize(parse_repaired_json(text), DEFAULT_BATTLE_NARRATIVE)

    result = resolve_battle(channel_a, channel_b, stats_a, stats_b, narrative)
    logger.info(
        "battle_resolved",
        channel_a=channel_a.id,
        channel_b=channel_b.id,
        power_a=result.stats_a.power_score,
        power_b=result.stats_b.power_score,
        winner=result.winner,
    )
    return result
