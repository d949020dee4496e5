"""Unit tests for tube_insight.cli - commands, options and error handling."""

from __future__ import annotations

import json
import re
from typing import TYPE_CHECKING
from unittest.mock import AsyncMock, patch

import pytest
from typer.testing import CliRunner

from tube_insight import __version__
from tube_insight.battle import BattleResult, BattleStats
from tube_insight.cli import app
from tube_insight.commerce import CommerceStore
from tube_insight.exceptions import UpstreamAPIError
from tube_insight.library import Library
from tube_insight.records import ChannelRecord, VideoRecord
from tube_insight.storage import YOUTUBE_KEY, JsonFileStore

if TYPE_CHECKING:
    from collections.abc import Iterator
    from pathlib import Path

runner = CliRunner()

CODE_RE = re.compile(r"[A-Z0-9]{4}-[A-Z0-9]{4}-[A-Z0-9]{4}")


@pytest.fixture(autouse=True)
def _isolated(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    """Run every command against a throwaway store without touching logging."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("TUBE_INSIGHT_STORAGE__PATH", str(tmp_path / "store.json"))
    monkeypatch.delenv("TUBE_INSIGHT_YOUTUBE__API_KEY", raising=False)
    monkeypatch.delenv("TUBE_INSIGHT_LLM__API_KEY", raising=False)
    with patch("tube_insight.cli.configure_logging"):
        yield


@pytest.fixture()
def store(tmp_path: Path) -> JsonFileStore:
    return JsonFileStore(tmp_path / "store.json")


# ---- Version and help -------------------------------------------------------


class TestVersionAndHelp:
    """Version flag and help text output."""

    def test_version_flag(self) -> None:
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert __version__ in result.output

    def test_short_version_flag(self) -> None:
        result = runner.invoke(app, ["-V"])
        assert result.exit_code == 0
        assert __version__ in result.output

    def test_help_lists_commands(self) -> None:
        result = runner.invoke(app, ["--help"])
        assert result.exit_code == 0
        for command in ("search", "export", "channel", "battle", "trending", "coupons"):
            assert command in result.output

    def test_search_help(self) -> None:
        result = runner.invoke(app, ["search", "--help"])
        assert result.exit_code == 0
        assert "--count" in result.output
        assert "--duration" in result.output


# ---- Keys ----------------------------------------------------------------------


class TestKeys:
    """Saving and showing API keys."""

    def test_set_youtube_key(self, store: JsonFileStore) -> None:
        result = runner.invoke(app, ["keys", "set", "youtube", "abcd12345678"])
        assert result.exit_code == 0
        assert "Saved youtube key" in result.output
        assert "5678" in result.output
        assert "abcd1234" not in result.output
        assert store.get(YOUTUBE_KEY) == "abcd12345678"

    def test_unknown_service(self) -> None:
        result = runner.invoke(app, ["keys", "set", "vimeo", "k"])
        assert result.exit_code == 2

    def test_show(self) -> None:
        runner.invoke(app, ["keys", "set", "llm", "llm-secret-key"])
        result = runner.invoke(app, ["keys", "show"])
        assert result.exit_code == 0
        assert "(not set)" in result.output
        assert "-key" in result.output

    def test_corrupt_store_exits_1(self, tmp_path: Path) -> None:
        (tmp_path / "store.json").write_text('{"tube_insight.coupons": "[', encoding="utf-8")
        result = runner.invoke(app, ["keys", "show"])
        assert result.exit_code == 1
        assert "Error:" in result.output
        assert isinstance(result.exception, SystemExit)


# ---- Collection commands ----------------------------------------------------------


class TestSearch:
    """Keyword search and export."""

    def test_ranked_table_and_history(self, store: JsonFileStore) -> None:
        videos = [
            VideoRecord(id="a", title="Cat nap", popularity_score=1.5),
            VideoRecord(id="b", title="Cat jump", popularity_score=9.25),
        ]
        with patch(
            "tube_insight.cli.collect_videos_by_keyword", AsyncMock(return_value=videos)
        ) as mock:
            result = runner.invoke(app, ["search", "cats", "-n", "2", "--duration", "short"])

        assert result.exit_code == 0, result.output
        assert result.output.index("Cat jump") < result.output.index("Cat nap")
        assert "9.25" in result.output
        assert mock.call_args.args[3].duration == "short"
        assert Library(store).get_history()[0].value == "cats"

    def test_upstream_error_exits_1(self) -> None:
        error = UpstreamAPIError("quota exceeded", 403)
        with patch("tube_insight.cli.collect_videos_by_keyword", AsyncMock(side_effect=error)):
            result = runner.invoke(app, ["search", "cats"])
        assert result.exit_code == 1
        assert "quota exceeded" in result.output

    def test_missing_key_exits_1(self) -> None:
        result = runner.invoke(app, ["search", "cats"])
        assert result.exit_code == 1
        assert "YouTube API key is not set" in result.output

    def test_bad_duration(self) -> None:
        result = runner.invoke(app, ["search", "cats", "--duration", "forever"])
        assert result.exit_code == 2

    def test_export_csv(self, tmp_path: Path) -> None:
        videos = [VideoRecord(id="a", title="Cat nap")]
        target = tmp_path / "out" / "cats.csv"
        with patch("tube_insight.cli.collect_videos_by_keyword", AsyncMock(return_value=videos)):
            result = runner.invoke(app, ["export", "cats", "-o", str(target)])
        assert result.exit_code == 0, result.output
        assert "Exported 1 videos" in result.output
        assert target.read_text(encoding="utf-8").splitlines()[1].startswith('a,"Cat nap"')

    def test_export_bad_format(self, tmp_path: Path) -> None:
        result = runner.invoke(app, ["export", "cats", "-o", str(tmp_path / "x"), "-f", "xml"])
        assert result.exit_code == 2


class TestBattle:
    """Battle rendering."""

    def test_winner_printed(self) -> None:
        outcome = BattleResult(
            channel_a=ChannelRecord(id="UCA", title="Alpha"),
            channel_b=ChannelRecord(id="UCB", title="Beta"),
            stats_a=BattleStats(subscribers=1000, power_score=80.0),
            stats_b=BattleStats(subscribers=10, power_score=20.0),
            winner="A",
            summary="Alpha is bigger.",
        )
        with patch("tube_insight.cli.compare_channels", AsyncMock(return_value=outcome)):
            result = runner.invoke(app, ["battle", "alpha", "beta"])
        assert result.exit_code == 0, result.output
        assert "Winner:" in result.output
        assert "Alpha is bigger." in result.output

    def test_tie(self) -> None:
        outcome = BattleResult(
            channel_a=ChannelRecord(id="UCA"),
            channel_b=ChannelRecord(id="UCB"),
            stats_a=BattleStats(),
            stats_b=BattleStats(),
            winner="Tie",
        )
        with patch("tube_insight.cli.compare_channels", AsyncMock(return_value=outcome)):
            result = runner.invoke(app, ["battle", "a", "b"])
        assert "Result: tie" in result.output


class TestComments:
    """Comment analysis short-circuits when there is nothing to analyze."""

    def test_no_comments(self) -> None:
        with patch(
            "tube_insight.cli.YouTubeClient.get_video_comments", AsyncMock(return_value=[])
        ):
            result = runner.invoke(app, ["comments", "v1"])
        assert result.exit_code == 0, result.output
        assert "No comments found." in result.output


# ---- Commerce ---------------------------------------------------------------------


class TestCoupons:
    """Generate, redeem and list."""

    def test_generate(self, store: JsonFileStore) -> None:
        result = runner.invoke(app, ["coupons", "generate", "-d", "3", "-n", "2"])
        assert result.exit_code == 0, result.output
        assert len(CODE_RE.findall(result.output)) == 2
        assert "Generated 2 coupon(s)." in result.output
        assert all(c.duration_months == 3 for c in CommerceStore(store).get_coupons())

    def test_generate_trial(self, store: JsonFileStore) -> None:
        result = runner.invoke(app, ["coupons", "generate", "-d", "0.5"])
        assert result.exit_code == 0, result.output
        assert CommerceStore(store).get_coupons()[0].duration_months == 0.5

    def test_generate_bad_duration(self) -> None:
        result = runner.invoke(app, ["coupons", "generate", "-d", "2"])
        assert result.exit_code == 2

    def test_redeem_once(self, store: JsonFileStore) -> None:
        code = CommerceStore(store).generate_coupons(3, 1)[0].code
        result = runner.invoke(app, ["coupons", "redeem", code, "-e", "ana@example.com"])
        assert result.exit_code == 0, result.output
        assert "Coupon redeemed." in result.output
        assert "Growth plan (3 months)" in result.output

        again = runner.invoke(app, ["coupons", "redeem", code, "-e", "bo@example.com"])
        assert again.exit_code == 1
        assert "already been used" in again.output

    def test_redeem_unknown(self) -> None:
        result = runner.invoke(app, ["coupons", "redeem", "NOPE", "-e", "ana@example.com"])
        assert result.exit_code == 1
        assert "Invalid coupon code" in result.output

    def test_list_unused(self, store: JsonFileStore) -> None:
        commerce = CommerceStore(store)
        used, unused = commerce.generate_coupons(1, 2)
        runner.invoke(app, ["coupons", "redeem", used.code, "-e", "ana@example.com"])
        result = runner.invoke(app, ["coupons", "list", "--unused"])
        assert result.exit_code == 0
        assert unused.code in result.output
        assert used.code not in result.output


class TestPlans:
    """Plan catalogue edits."""

    def test_list(self) -> None:
        result = runner.invoke(app, ["plans"])
        assert result.exit_code == 0
        assert "18,900" in result.output

    def test_update_price(self, tmp_path: Path) -> None:
        result = runner.invoke(app, ["plans", "--plan", "1month", "--price", "15000"])
        assert result.exit_code == 0, result.output
        assert "15,000" in result.output
        stored = json.loads((tmp_path / "store.json").read_text(encoding="utf-8"))
        assert "tube_insight.plans" in stored

    def test_unknown_plan(self) -> None:
        result = runner.invoke(app, ["plans", "--plan", "lifetime", "--price", "1"])
        assert result.exit_code == 1
        assert "Unknown plan" in result.output


class TestInstructions:
    """Persona listing and activation."""

    def test_list(self) -> None:
        result = runner.invoke(app, ["instructions", "list"])
        assert result.exit_code == 0
        assert "default" in result.output
        assert "critic" in result.output

    def test_activate(self) -> None:
        result = runner.invoke(app, ["instructions", "activate", "critic"])
        assert result.exit_code == 0
        assert "Blunt critic" in result.output

    def test_activate_unknown(self) -> None:
        result = runner.invoke(app, ["instructions", "activate", "nope"])
        assert result.exit_code == 1
