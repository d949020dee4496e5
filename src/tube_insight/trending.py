"""Trending videos with concurrent AI enrichment.

The most-popular chart is fetched first; trend keywords and rising
creators are then derived from the same batch in parallel. Either
enrichment may fail on its own and comes back empty, while the videos are
always returned.
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Any

import structlog
from pydantic import BaseModel, Field

from tube_insight.analysis import analyze_rising_creators, analyze_trends_from_videos
from tube_insight.records import VideoRecord
from tube_insight.youtube import ANY_CATEGORY, MAX_PAGE_SIZE

if TYPE_CHECKING:
    from collections.abc import Sequence

    from tube_insight.llm import GenerativeClient
    from tube_insight.youtube import YouTubeClient

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)


class TrendingReport(BaseModel):
    """Trending chart plus its AI-derived summaries."""

    region_code: str
    category_id: str = ANY_CATEGORY
    videos: list[VideoRecord] = Field(default_factory=list)
    keywords: list[dict[str, Any]] = Field(default_factory=list)
    creators: list[dict[str, Any]] = Field(default_factory=list)


async def enrich_trending(
    llm: GenerativeClient, videos: Sequence[VideoRecord]
) -> tuple[list[dict[str, Any]], list[dict[str, Any]]]:
    """Run keyword and rising-creator analysis concurrently.

    Returns:
        ``(keywords, creators)``. A branch that raised is replaced by an
        empty list.
    """
    keywords, creators = await asyncio.gather(
        analyze_trends_from_videos(llm, videos),
        analyze_rising_creators(llm, videos),
        return_exceptions=True,
    )
    if isinstance(keywords, BaseException):
        logger.warning("trend_keywords_failed", error=str(keywords))
        keywords = []
    if isinstance(creators, BaseException):
        logger.warning("rising_creators_failed", error=str(creators))
        creators = []
    return list(keywords), list(creators)


async def build_trending_report(
    youtube: YouTubeClient,
    llm: GenerativeClient,
    *,
    region_code: str | None = None,
    category_id: str = ANY_CATEGORY,
    max_results: int = MAX_PAGE_SIZE,
) -> TrendingReport:
    """Fetch the trending chart and enrich it.

    Args:
        youtube: YouTube API client.
        llm: Generative client for the enrichments.
        region_code: Two-letter region; the client default when None.
        category_id: Video category, ``"0"`` for all.
        max_results: Chart size (API maximum 50).

    Returns:
        The report. Keywords and creators are empty if their analysis failed.

    Raises:
        ConfigurationError: If the YouTube API key is missing.
        UpstreamAPIError: If the chart itself cannot be fetched.
    """
    region = region_code or youtube.region_code
    videos = await youtube.get_trending_videos(region, max_results, category_id)
    report = TrendingReport(region_code=region, category_id=category_id, videos=videos)
    if not videos:
        return report

    keywords, creators = await enrich_trending(llm, videos)
    report.keywords = keywords
    report.creators = creators
    logger.info(
        "trending_report_built",
        region=region,
        videos=len(videos),
        keywords=len(keywords),
        creators=len(creators),
    )
    return report
