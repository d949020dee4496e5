"""Export collected videos as JSON or spreadsheet-friendly CSV."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Literal

import structlog

if TYPE_CHECKING:
    from collections.abc import Sequence
    from pathlib import Path

    from tube_insight.records import VideoRecord

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)

ExportFormat = Literal["json", "csv"]

CSV_BOM = "\ufeff"
CSV_HEADER = (
    "ID",
    "Title",
    "Published At",
    "Thumbnail URL",
    "View Count",
    "Like Count",
    "Comment Count",
    "Popularity Score",
    "Keywords",
    "Hashtags",
)


def export_json(videos: Sequence[VideoRecord]) -> str:
    """Pretty-printed JSON array of video records."""
    return json.dumps(
        [video.model_dump(mode="json") for video in videos],
        ensure_ascii=False,
        indent=2,
    )


def _quote(value: str) -> str:
    return '"' + value.replace('"', '""') + '"'


def export_csv(videos: Sequence[VideoRecord]) -> str:
    """CSV text with a UTF-8 BOM so spreadsheet apps detect the encoding.

    Free-text columns are always quoted; numbers are written bare and the
    popularity score keeps two decimals.
    """
    rows = [",".join(CSV_HEADER)]
    for video in videos:
        rows.append(
            ",".join(
                (
                    video.id,
                    _quote(video.title),
                    video.published_at,
                    video.thumbnail_url,
                    str(video.view_count),
                    str(video.like_count),
                    str(video.comment_count),
                    f"{video.popularity_score:.2f}",
                    _quote(", ".join(video.tags)),
                    _quote(", ".join(video.hashtags)),
                )
            )
        )
    return CSV_BOM + "\n".join(rows)


def render_export(videos: Sequence[VideoRecord], fmt: ExportFormat) -> str:
    if fmt == "csv":
        return export_csv(videos)
    return export_json(videos)


def write_export(videos: Sequence[VideoRecord], path: Path, fmt: ExportFormat) -> Path:
    """Write an export file, creating parent directories as needed."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(render_export(videos, fmt), encoding="utf-8")
    logger.info("export_written", path=str(path), format=fmt, videos=len(videos))
    return path
