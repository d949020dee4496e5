"""Unit tests for tube_insight.collector - paged keyword collection."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

import httpx
import pytest

from tube_insight.collector import SearchFilters, collect_videos_by_keyword, safety_limit
from tube_insight.exceptions import ConfigurationError, UpstreamAPIError
from tube_insight.youtube import YouTubeClient

MakeClient = Callable[..., YouTubeClient]


def _paged_handler(
    video_item: Callable[..., dict[str, Any]],
    *,
    per_page: int = 3,
    pages: int = 10,
    fail_on_page: int | None = None,
    unavailable_per_batch: int = 0,
    log: list[dict[str, str]] | None = None,
) -> Callable[[httpx.Request], httpx.Response]:
    """Serve ``pages`` search pages of ``per_page`` videos each.

    ``unavailable_per_batch`` IDs per details batch come back missing, as
    private or deleted videos do.
    """

    def handler(request: httpx.Request) -> httpx.Response:
        params = dict(request.url.params)
        if request.url.path.endswith("/search"):
            if log is not None:
                log.append(params)
            page = int(params.get("pageToken", "0"))
            if fail_on_page is not None and page == fail_on_page:
                return httpx.Response(403, json={"error": {"message": "quotaExceeded"}})
            ids = [f"p{page}v{i}" for i in range(per_page)]
            body: dict[str, Any] = {"items": [{"id": {"videoId": vid}} for vid in ids]}
            if page + 1 < pages:
                body["nextPageToken"] = str(page + 1)
            return httpx.Response(200, json=body)
        ids = params["id"].split(",")
        if unavailable_per_batch:
            ids = ids[:-unavailable_per_batch]
        return httpx.Response(200, json={"items": [video_item(vid, views=100) for vid in ids]})

    return handler


class TestSafetyLimit:
    """Ceiling arithmetic."""

    def test_buffer_added(self) -> None:
        assert safety_limit(100) == 150

    def test_capped_at_ceiling(self) -> None:
        assert safety_limit(480) == 500
        assert safety_limit(10, ceiling=30) == 30


class TestSearchFilters:
    """Mapping filters to search parameters."""

    def test_defaults_send_nothing(self) -> None:
        assert SearchFilters().search_params() == {
            "video_category_id": None,
            "video_duration": None,
        }

    def test_explicit_filters(self) -> None:
        params = SearchFilters(category_id="20", duration="long").search_params()
        assert params == {"video_category_id": "20", "video_duration": "long"}


class TestCollectVideosByKeyword:
    """Budgets, partial failures and progress reporting."""

    @pytest.mark.asyncio()
    async def test_stops_at_target(
        self, make_youtube: MakeClient, video_item: Callable[..., dict[str, Any]]
    ) -> None:
        log: list[dict[str, str]] = []
        async with make_youtube(_paged_handler(video_item, log=log)) as client:
            videos = await collect_videos_by_keyword(client, "cats", 7, page_size=3)
        assert len(videos) == 7
        assert len(log) == 3
        assert videos[0].id == "p0v0"
        assert videos[0].popularity_score == pytest.approx(0.006)

    @pytest.mark.asyncio()
    async def test_stops_when_pages_run_out(
        self, make_youtube: MakeClient, video_item: Callable[..., dict[str, Any]]
    ) -> None:
        handler = _paged_handler(video_item, pages=2)
        async with make_youtube(handler) as client:
            videos = await collect_videos_by_keyword(client, "cats", 50, page_size=3)
        assert len(videos) == 6

    @pytest.mark.asyncio()
    async def test_safety_ceiling_bounds_requests(
        self, make_youtube: MakeClient, video_item: Callable[..., dict[str, Any]]
    ) -> None:
        log: list[dict[str, str]] = []
        handler = _paged_handler(video_item, per_page=5, pages=100, log=log)
        async with make_youtube(handler) as client:
            videos = await collect_videos_by_keyword(
                client, "cats", 1000, page_size=5, ceiling=12
            )
        # 5 + 5 + 5 crosses the ceiling of 12 on the third page.
        assert len(log) == 3
        assert len(videos) == 12

    @pytest.mark.asyncio()
    async def test_default_ceiling_with_missing_details(
        self, make_youtube: MakeClient, video_item: Callable[..., dict[str, Any]]
    ) -> None:
        log: list[dict[str, str]] = []
        progress: list[int] = []
        handler = _paged_handler(
            video_item, per_page=50, pages=100, unavailable_per_batch=1, log=log
        )
        async with make_youtube(handler) as client:
            videos = await collect_videos_by_keyword(
                client, "cats", 1000, on_progress=progress.append
            )
        # 49 per page: the eleventh page reaches 539 before the loop stops.
        assert len(log) == 11
        assert len(videos) == 500
        assert max(progress) == 500
        assert videos[-1].id == "p10v9"

    @pytest.mark.asyncio()
    async def test_filters_forwarded(
        self, make_youtube: MakeClient, video_item: Callable[..., dict[str, Any]]
    ) -> None:
        log: list[dict[str, str]] = []
        handler = _paged_handler(video_item, pages=1, log=log)
        async with make_youtube(handler) as client:
            await collect_videos_by_keyword(
                client, "cats", 3, SearchFilters(category_id="10", duration="short")
            )
        assert log[0]["videoCategoryId"] == "10"
        assert log[0]["videoDuration"] == "short"

    @pytest.mark.asyncio()
    async def test_first_page_failure_raises(
        self, make_youtube: MakeClient, video_item: Callable[..., dict[str, Any]]
    ) -> None:
        handler = _paged_handler(video_item, fail_on_page=0)
        async with make_youtube(handler) as client:
            with pytest.raises(UpstreamAPIError, match="quotaExceeded"):
                await collect_videos_by_keyword(client, "cats", 10)

    @pytest.mark.asyncio()
    async def test_later_page_failure_returns_partial(
        self, make_youtube: MakeClient, video_item: Callable[..., dict[str, Any]]
    ) -> None:
        handler = _paged_handler(video_item, fail_on_page=2)
        async with make_youtube(handler) as client:
            videos = await collect_videos_by_keyword(client, "cats", 20, page_size=3)
        assert [video.id for video in videos][-1] == "p1v2"
        assert len(videos) == 6

    @pytest.mark.asyncio()
    async def test_progress_is_monotonic_and_capped(
        self, make_youtube: MakeClient, video_item: Callable[..., dict[str, Any]]
    ) -> None:
        seen: list[int] = []
        async with make_youtube(_paged_handler(video_item)) as client:
            await collect_videos_by_keyword(client, "cats", 7, on_progress=seen.append, page_size=3)
        assert seen == [3, 6, 7]

    @pytest.mark.asyncio()
    async def test_non_positive_target(self, make_youtube: MakeClient) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise AssertionError("no request expected")

        async with make_youtube(handler) as client:
            assert await collect_videos_by_keyword(client, "cats", 0) == []

    @pytest.mark.asyncio()
    async def test_missing_key(self, make_youtube: MakeClient) -> None:
        async with make_youtube(lambda request: httpx.Response(200), api_key=None) as client:
            with pytest.raises(ConfigurationError):
                await collect_videos_by_keyword(client, "cats", 0)
