"""Integration tests: mocked YouTube API through collection, export and battle.

The YouTube side runs the real client over ``httpx.MockTransport``; only the
generative model is faked.
"""

from __future__ import annotations

import json
from collections.abc import Callable
from typing import TYPE_CHECKING, Any
from unittest.mock import MagicMock

import httpx
import pytest

from tube_insight.battle import compare_channels
from tube_insight.channels import analyze_channel_videos
from tube_insight.collector import collect_videos_by_keyword
from tube_insight.export import CSV_BOM, write_export
from tube_insight.library import Library
from tube_insight.storage import JsonFileStore

if TYPE_CHECKING:
    from pathlib import Path

    from tube_insight.youtube import YouTubeClient

pytestmark = pytest.mark.integration

ItemBuilder = Callable[..., dict[str, Any]]


def _fake_api(video_item: ItemBuilder, channel_item: ItemBuilder) -> Callable[..., httpx.Response]:
    """A tiny in-memory YouTube: two channels, a keyword index and uploads."""
    videos = {
        "k1": video_item("k1", title="Kimchi basics", views=50_000, likes=900, comments=40),
        "k2": video_item(
            "k2",
            title='Kimchi "fast"',
            views=1_000,
            likes=10,
            description="#kimchi #food",
            tags=["kimchi"],
        ),
        "a1": video_item("a1", views=2_000, likes=100, published_at="2024-01-01T00:00:00Z"),
        "a2": video_item("a2", views=4_000, likes=300, published_at="2024-01-16T00:00:00Z"),
        "b1": video_item("b1", views=500, likes=5, published_at="2024-01-01T00:00:00Z"),
    }
    channels = {
        "UCA": channel_item("UCA", title="Alpha", subscribers=20_000, views=900_000),
        "UCB": channel_item("UCB", title="Beta", subscribers=5_000, views=100_000),
    }
    uploads = {"UUUCA": ["a1", "a2"], "UUUCB": ["b1"]}

    def handler(request: httpx.Request) -> httpx.Response:
        endpoint = request.url.path.rsplit("/", 1)[-1]
        params = request.url.params
        if endpoint == "search" and params["type"] == "video":
            page = params.get("pageToken")
            ids = ["k1"] if page is None else ["k2"]
            body: dict[str, Any] = {"items": [{"id": {"videoId": vid}} for vid in ids]}
            if page is None:
                body["nextPageToken"] = "p2"
            return httpx.Response(200, json=body)
        if endpoint == "search":
            match = [
                cid for cid, item in channels.items() if item["snippet"]["title"] == params["q"]
            ]
            return httpx.Response(
                200, json={"items": [{"id": {"channelId": cid}} for cid in match]}
            )
        if endpoint == "channels":
            item = channels.get(params["id"])
            return httpx.Response(200, json={"items": [item] if item else []})
        if endpoint == "playlistItems":
            ids = uploads.get(params["playlistId"], [])
            return httpx.Response(
                200, json={"items": [{"contentDetails": {"videoId": vid}} for vid in ids]}
            )
        if endpoint == "videos":
            ids = params["id"].split(",")
            return httpx.Response(200, json={"items": [videos[vid] for vid in ids]})
        return httpx.Response(404, json={"error": {"message": f"No route for {endpoint}"}})

    return handler


@pytest.fixture()
def youtube(
    make_youtube: Callable[..., YouTubeClient],
    video_item: ItemBuilder,
    channel_item: ItemBuilder,
) -> YouTubeClient:
    return make_youtube(_fake_api(video_item, channel_item))


class TestCollectAndExport:
    """Keyword collection feeding a CSV export."""

    @pytest.mark.asyncio()
    async def test_csv_export(self, youtube: YouTubeClient, tmp_path: Path) -> None:
        progress: list[int] = []
        async with youtube:
            videos = await collect_videos_by_keyword(
                youtube, "kimchi", 10, on_progress=progress.append, page_size=1
            )
        assert [video.id for video in videos] == ["k1", "k2"]
        assert progress == [1, 2]
        assert videos[0].popularity_score == pytest.approx(3.0 + 2.7 + 0.4)

        path = write_export(videos, tmp_path / "kimchi.csv", "csv")
        lines = path.read_text(encoding="utf-8").split("\n")
        assert lines[0].startswith(CSV_BOM + "ID,")
        assert lines[1].startswith('k1,"Kimchi basics"')
        assert lines[2].startswith('k2,"Kimchi ""fast"""')
        assert lines[2].endswith('"kimchi","kimchi, food"')


class TestChannelFlows:
    """Channel analysis and battle over the same fake API."""

    @pytest.mark.asyncio()
    async def test_channel_analysis_by_name(self, youtube: YouTubeClient) -> None:
        async with youtube:
            analysis = await analyze_channel_videos(youtube, "Alpha")
        assert analysis.channel.id == "UCA"
        assert [video.id for video in analysis.videos] == ["a2", "a1"]
        assert analysis.stats.average_upload_interval_all == "15 days"

    @pytest.mark.asyncio()
    async def test_battle(self, youtube: YouTubeClient, fake_llm: MagicMock) -> None:
        fake_llm.generate.return_value = (
            "Here is the comparison:\n```json\n"
            + json.dumps({"winner": "B", "summary": "Alpha leads on every metric."})
            + "\n```"
        )
        async with youtube:
            result = await compare_channels("UCA", "Beta", youtube, fake_llm)

        assert result.channel_b.id == "UCB"
        assert result.stats_a.avg_views == 3000.0
        assert result.stats_b.avg_views == 500.0
        assert result.stats_a.power_score > result.stats_b.power_score
        assert result.winner == "A"
        assert result.summary == "Alpha leads on every metric."
        assert len(result.radar_data) == 5


class TestHistoryPersistence:
    """Library state survives a reopened file store."""

    def test_reopen(self, tmp_path: Path) -> None:
        path = tmp_path / "store.json"
        Library(JsonFileStore(path)).add_to_history("keyword", "kimchi")
        assert Library(JsonFileStore(path)).get_history()[0].value == "kimchi"
