"""Keyword video collection across search result pages.

Pages are fetched strictly in order (each needs the previous page's token)
under two budgets: the caller's ``target_count`` and a hard safety ceiling
of ``min(target_count + 50, 500)`` that bounds quota use however large the
request is.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING, Literal

import structlog
from pydantic import BaseModel, Field

from tube_insight.exceptions import UpstreamAPIError
from tube_insight.records import VideoRecord, map_video
from tube_insight.youtube import ANY_CATEGORY, MAX_PAGE_SIZE

if TYPE_CHECKING:
    from tube_insight.youtube import YouTubeClient

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)

SAFETY_CEILING = 500
CEILING_BUFFER = 50

ProgressCallback = Callable[[int], None]


class SearchFilters(BaseModel):
    """Optional narrowing of a keyword search."""

    category_id: str = Field(default=ANY_CATEGORY, description="'0' means any category.")
    duration: Literal["any", "short", "medium", "long"] = "any"

    def search_params(self) -> dict[str, str | None]:
        return {
            "video_category_id": None if self.category_id == ANY_CATEGORY else self.category_id,
            "video_duration": None if self.duration == "any" else self.duration,
        }


def safety_limit(target_count: int, ceiling: int = SAFETY_CEILING) -> int:
    return min(target_count + CEILING_BUFFER, ceiling)


async def collect_videos_by_keyword(
    client: YouTubeClient,
    keyword: str,
    target_count: int,
    filters: SearchFilters | None = None,
    on_progress: ProgressCallback | None = None,
    *,
    page_size: int = MAX_PAGE_SIZE,
    ceiling: int = SAFETY_CEILING,
) -> list[VideoRecord]:
    """Collect up to ``target_count`` scored videos for a keyword.

    Each page is a search call followed by a details batch for the returned
    IDs. ``on_progress`` receives the running total (capped at
    ``target_count`` and the safety limit) after every page, so it never decreases.

    A failure on the first page propagates: nothing was collected and the
    caller should show the error. A failure on any later page ends the loop
    and the partial result is returned.

    Args:
        client: YouTube API client.
        keyword: Search query.
        target_count: Maximum number of videos to return.
        filters: Optional category/duration filters.
        on_progress: Optional callback receiving the running total.
        page_size: Results per search page (API maximum is 50).
        ceiling: Absolute upper bound used for the safety limit.

    Returns:
        At most ``target_count`` videos in search order, never more than the
        safety limit.

    Raises:
        ConfigurationError: If the YouTube API key is missing (before any
            request is made).
        UpstreamAPIError: If the first page fails.
    """
    client.require_key()
    if target_count <= 0:
        return []

    params = (filters or SearchFilters()).search_params()
    limit = safety_limit(target_count, ceiling)
    bound = min(target_count, limit)
    collected: list[VideoRecord] = []
    page_token: str | None = None
    page = 0

    while len(collected) < target_count:
        try:
            found = await client.search(
                keyword, page_token=page_token, max_results=page_size, **params
            )
            items = found.get("items") or []
            if not items:
                break
            video_ids = [
                str(item["id"]["videoId"])
                for item in items
                if isinstance(item.get("id"), dict) and item["id"].get("videoId")
            ]
            details = await client.list_videos(video_ids)
        except UpstreamAPIError as exc:
            if page == 0:
                raise
            logger.warning(
                "collector_page_failed",
                keyword=keyword,
                page=page,
                collected=len(collected),
                error=exc.message,
            )
            break

        collected.extend(map_video(item) for item in details.get("items") or [])
        page += 1
        if on_progress is not None:
            on_progress(min(len(collected), bound))

        page_token = found.get("nextPageToken")
        if not page_token or len(collected) >= limit:
            break

    logger.info(
        "collector_done",
        keyword=keyword,
        pages=page,
        collected=len(collected),
        target=target_count,
    )
    return collected[:bound]
