"""Pure numeric scoring functions.

The popularity formula and its scaling constants are part of the observable
contract (exported CSV/JSON, progress-bar percentages) and must stay exactly
as written here.
"""

from __future__ import annotations

import math
import re
from collections.abc import Mapping
from datetime import datetime
from typing import Any, Final, Literal

from tube_insight.results import ThumbnailScores

# ---------------------------------------------------------------------------
# Video popularity
# ---------------------------------------------------------------------------

_VIEW_SCALE = 10_000
_LIKE_SCALE = 100
_COMMENT_SCALE = 10
_VIEW_WEIGHT = 0.6
_LIKE_WEIGHT = 0.3
_COMMENT_WEIGHT = 0.1
MAX_POPULARITY: Final = 100

SHORT_MAX_SECONDS: Final = 60

_DURATION_RE = re.compile(r"PT(\d+H)?(\d+M)?(\d+S)?")
_DIGITS_RE = re.compile(r"\d+")


def popularity_score(view_count: int, like_count: int, comment_count: int) -> float:
    """Compute the 0-100 popularity score of a video.

    ``min((views/10000)*0.6 + (likes/100)*0.3 + (comments/10)*0.1, 100)``,
    with negative counts clamped to zero.
    """
    views = max(view_count, 0)
    likes = max(like_count, 0)
    comments = max(comment_count, 0)
    raw = (
        (views / _VIEW_SCALE) * _VIEW_WEIGHT
        + (likes / _LIKE_SCALE) * _LIKE_WEIGHT
        + (comments / _COMMENT_SCALE) * _COMMENT_WEIGHT
    )
    return min(raw, MAX_POPULARITY)


def parse_duration(duration: str | None) -> int:
    """Convert an ISO-8601 ``PT#H#M#S`` duration to total seconds.

    Missing components count as zero; anything unparseable yields 0.
    """
    if not duration:
        return 0
    match = _DURATION_RE.search(duration)
    if match is None:
        return 0
    hours, minutes, seconds = (int(part[:-1]) if part else 0 for part in match.groups())
    return hours * 3600 + minutes * 60 + seconds


def classify_video_type(duration_seconds: int) -> Literal["short", "regular"]:
    return "short" if duration_seconds <= SHORT_MAX_SECONDS else "regular"


# ---------------------------------------------------------------------------
# Sub-score sanitization
# ---------------------------------------------------------------------------

SCORE_ALIASES: Final[dict[str, tuple[str, ...]]] = {
    "textReadability": ("textReadability", "readability"),
    "design": ("design", "composition"),
}

THUMBNAIL_SCORE_KEYS: Final = ("visibility", "curiosity", "textReadability", "design")


def sanitize_score(value: Any) -> int | float:
    """Coerce a model-supplied score to a number.

    Numbers pass through unchanged (booleans and non-finite floats become
    0). Strings yield their first run of digits (``"85 points"`` -> 85).
    Everything else is 0.
    """
    if isinstance(value, bool):
        return 0
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return value if math.isfinite(value) else 0
    if isinstance(value, str):
        match = _DIGITS_RE.search(value)
        return int(match.group(0)) if match else 0
    return 0


def _lookup_case_insensitive(obj: Mapping[str, Any], key: str) -> Any:
    wanted = key.lower()
    for candidate, value in obj.items():
        if isinstance(candidate, str) and candidate.lower() == wanted:
            return value
    return None


def extract_score(obj: Any, canonical_key: str) -> int | float:
    """Look up a sub-score by canonical name, tolerating case and synonyms.

    Aliases from ``SCORE_ALIASES`` are tried in order and the first one
    that yields a non-zero sanitized value wins.

    Args:
        obj: The raw ``scores`` object from the model (any type).
        canonical_key: One of the canonical sub-score names.

    Returns:
        The sanitized score, or 0 when no alias matches.
    """
    if not isinstance(obj, Mapping):
        return 0
    for alias in SCORE_ALIASES.get(canonical_key, (canonical_key,)):
        score = sanitize_score(_lookup_case_insensitive(obj, alias))
        if score:
            return score
    return 0


def sanitize_thumbnail_scores(raw_scores: Any) -> ThumbnailScores:
    """Build the four canonical thumbnail sub-scores from raw model output."""
    return {
        "visibility": extract_score(raw_scores, "visibility"),
        "curiosity": extract_score(raw_scores, "curiosity"),
        "textReadability": extract_score(raw_scores, "textReadability"),
        "design": extract_score(raw_scores, "design"),
    }


def round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def thumbnail_overall_score(scores: Mapping[str, Any], model_overall: Any = None) -> int | float:
    """Self-healing thumbnail aggregate.

    The rounded mean of the four sub-scores wins whenever it is positive;
    otherwise the model's own ``overallScore`` (sanitized) is used.

    Args:
        scores: Sanitized sub-scores keyed by canonical name.
        model_overall: The model-provided overall score, any type.

    Returns:
        The final overall score.
    """
    total = sum(sanitize_score(scores.get(key)) for key in THUMBNAIL_SCORE_KEYS)
    average = round_half_up(total / len(THUMBNAIL_SCORE_KEYS))
    if average > 0:
        return average
    return sanitize_score(model_overall)


# ---------------------------------------------------------------------------
# Channel comparison
# ---------------------------------------------------------------------------

POWER_METRICS: Final = (
    "subscribers",
    "total_views",
    "avg_views",
    "engagement_rate",
    "upload_frequency",
)

_DAYS_PER_WINDOW = 30
_SECONDS_PER_DAY = 86_400


def engagement_rate(avg_views: float, avg_likes: float, avg_comments: float) -> float:
    """``(avg_likes + avg_comments) / avg_views * 100``, 0 when there are no views."""
    if avg_views <= 0:
        return 0.0
    return round((avg_likes + avg_comments) / avg_views * 100, 2)


def upload_frequency(published: list[datetime]) -> float:
    """Uploads per 30-day window over the observed sample.

    The window count never drops below one, so a burst of uploads within a
    single month reports the raw count.
    """
    if not published:
        return 0.0
    span_days = (max(published) - min(published)).total_seconds() / _SECONDS_PER_DAY
    windows = max(span_days / _DAYS_PER_WINDOW, 1)
    return round(len(published) / windows, 1)


def _metric_key(name: str) -> str:
    return name.replace("_", "").lower()


def normalize_weights(raw: Any) -> dict[str, float]:
    """Turn model-suggested per-metric weights into weights summing to 1.

    Unknown keys are ignored, values are sanitized like sub-scores and
    negative values dropped. Missing or unusable weights fall back to equal
    weighting.
    """
    weights: dict[str, float] = dict.fromkeys(POWER_METRICS, 0.0)
    if isinstance(raw, Mapping):
        by_key = {_metric_key(metric): metric for metric in POWER_METRICS}
        for name, value in raw.items():
            metric = by_key.get(_metric_key(str(name)))
            if metric is None:
                continue
            weight = float(sanitize_score(value))
            if weight > 0:
                weights[metric] = weight

    total = sum(weights.values())
    if total <= 0:
        return {metric: 1 / len(POWER_METRICS) for metric in POWER_METRICS}
    return {metric: weight / total for metric, weight in weights.items()}


def power_scores(
    metrics_a: Mapping[str, float],
    metrics_b: Mapping[str, float],
    weights: Mapping[str, float] | None = None,
) -> tuple[float, float]:
    """Composite 0-100 power score for two channels.

    Each metric is expressed as a percentage of the larger of the two
    channels' values (0 when both are 0) and combined with ``weights``.

    Args:
        metrics_a: Metric values for channel A keyed by ``POWER_METRICS``.
        metrics_b: Metric values for channel B.
        weights: Normalized weights; equal weighting when None.

    Returns:
        ``(power_a, power_b)``, each rounded to one decimal.
    """
    resolved = weights if weights is not None else normalize_weights(None)
    score_a = 0.0
    score_b = 0.0
    for metric in POWER_METRICS:
        value_a = max(float(metrics_a.get(metric, 0)), 0.0)
        value_b = max(float(metrics_b.get(metric, 0)), 0.0)
        top = max(value_a, value_b)
        if top <= 0:
            continue
        weight = resolved.get(metric, 0.0)
        score_a += weight * (value_a / top * 100)
        score_b += weight * (value_b / top * 100)
    return round(score_a, 1), round(score_b, 1)


def decide_winner(power_a: float, power_b: float) -> Literal["A", "B", "Tie"]:
    """Pick the side with the higher power score; exact equality is a tie."""
    if power_a > power_b:
        return "A"
    if power_b > power_a:
        return "B"
    return "Tie"
