"""AI-generated analysis artifacts.

Every function here follows the same path: build a prompt (optionally
prefixed with the active persona), call the generative model once, repair
the returned text with ``parse_repaired_json`` and merge it over the shape's
default with ``normalize``. Bad model output therefore never raises; only a
missing credential (``ConfigurationError``) or a failed call
(``GenerationError``) does.
"""

from __future__ import annotations

import asyncio
import json
from collections.abc import Mapping, Sequence
from datetime import datetime
from typing import TYPE_CHECKING, Any, cast
from zoneinfo import ZoneInfo

import structlog

from tube_insight.exceptions import GenerationError
from tube_insight.json_repair import parse_repaired_json
from tube_insight.llm import WEB_SEARCH_TOOL
from tube_insight.normalize import normalize, normalize_list
from tube_insight.results import (
    DEFAULT_COMMENT_ANALYSIS,
    DEFAULT_CONSULTING,
    DEFAULT_GENERATED_SCRIPT,
    DEFAULT_GROWTH,
    DEFAULT_KEYWORD_ANALYSIS,
    DEFAULT_NEWS_DIGEST,
    DEFAULT_RISING_CREATOR,
    DEFAULT_SHORTS_SCRIPT,
    DEFAULT_STRATEGY,
    DEFAULT_THUMBNAIL_ANALYSIS,
    DEFAULT_THUMBNAIL_TEXT,
    DEFAULT_TITLES,
    DEFAULT_TRANSCRIPT_SUMMARY,
    DEFAULT_TREND_INSIGHT,
    DEFAULT_TRENDING_KEYWORD,
    THUMBNAIL_FEEDBACK_FALLBACKS,
    CommentAnalysisResult,
    ConsultingResult,
    GeneratedScript,
    GeneratedTitles,
    GrowthAnalysisResult,
    KeywordAnalysisResult,
    NewsDigest,
    RisingCreator,
    ShortsScript,
    StrategyResult,
    ThumbnailAnalysisResult,
    ThumbnailText,
    TranscriptSummary,
    TrendingKeyword,
    TrendInsightResult,
)
from tube_insight.scoring import sanitize_thumbnail_scores, thumbnail_overall_score

if TYPE_CHECKING:
    from tube_insight.llm import GenerativeClient, ImageInput
    from tube_insight.records import VideoRecord

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)

_STRATEGY_SAMPLE = 10
_GROWTH_SAMPLE = 20
_TREND_SAMPLE = 30
_NEWS_TIMEZONE = ZoneInfo("Asia/Seoul")

GENRE_GUIDES: dict[str, str] = {
    "default": (
        "The most immersive structure for the topic with the best view potential. "
        "A strong hook that grabs attention within three seconds is mandatory."
    ),
    "senior_health": (
        "Warm, gentle explanatory tone. Cover knee or back pain and health advice "
        "seniors relate to, offering comfort together with information."
    ),
    "national_pride": (
        "Open with a strongly stimulating hook. Make pride in Korean technology, "
        "culture and civic spirit overflow and build up the emotion."
    ),
    "overseas_reactions": (
        "Describe realistic reactions of foreigners surprised by or praising Korea, "
        "with a 'greatness only Koreans don't know about' nuance."
    ),
    "story": (
        "Start the first sentence with a twist or conflict. Use a full narrative arc "
        "(mistake to realisation, misunderstanding to reconciliation) and draw the "
        "viewer into the emotion."
    ),
    "senior_nostalgia": (
        "Calm, reflective mood that the parents' generation deeply relates to, "
        "drawing on longing, regret and love while looking back on life."
    ),
    "shopping_conversion": (
        "Start from an everyday inconvenience and let the solution (a product or "
        "service) appear naturally. Stay informative rather than promotional while "
        "building purchase intent."
    ),
}

NEWS_CATEGORIES: tuple[str, ...] = (
    "General",
    "Politics",
    "Economy",
    "Society",
    "IT/Science",
    "Entertainment",
)


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


def _string_array() -> dict[str, Any]:
    return {"type": "array", "items": {"type": "string"}}


COMMENT_SCHEMA: dict[str, Any] = {
    "type": "object",
    "properties": {
        "sentiment": {
            "type": "object",
            "properties": {
                "positive": {"type": "number"},
                "negative": {"type": "number"},
                "neutral": {"type": "number"},
            },
            "required": ["positive", "negative", "neutral"],
        },
        "keywords": _string_array(),
        "summary": {
            "type": "object",
            "properties": {
                "pros": _string_array(),
                "cons": _string_array(),
                "oneLine": {"type": "string"},
            },
            "required": ["pros", "cons", "oneLine"],
        },
    },
    "required": ["sentiment", "keywords", "summary"],
}

SUMMARY_SCHEMA: dict[str, Any] = {
    "type": "object",
    "properties": {
        "title": {"type": "string"},
        "coreMessage": {"type": "string"},
        "structure": {"type": "string"},
        "summaryPoints": _string_array(),
    },
    "required": ["title", "coreMessage", "structure", "summaryPoints"],
}

_SCENE_CUE = {
    "type": "object",
    "properties": {"narration": {"type": "string"}, "visual_cue": {"type": "string"}},
    "required": ["narration", "visual_cue"],
}

SCRIPT_SCHEMA: dict[str, Any] = {
    "type": "object",
    "properties": {
        "title": {"type": "string"},
        "description": {"type": "string"},
        "script": {
            "type": "object",
            "properties": {
                "opening": _SCENE_CUE,
                "main_points": {
                    "type": "array",
                    "items": {
                        "type": "object",
                        "properties": {
                            "scene": {"type": "string"},
                            "narration": {"type": "string"},
                            "visual_cue": {"type": "string"},
                        },
                        "required": ["scene", "narration", "visual_cue"],
                    },
                },
                "closing": _SCENE_CUE,
            },
            "required": ["opening", "main_points", "closing"],
        },
    },
    "required": ["title", "description", "script"],
}

TITLES_SCHEMA: dict[str, Any] = {
    "type": "object",
    "properties": {"fresh": _string_array(), "stable": _string_array()},
    "required": ["fresh", "stable"],
}

THUMBNAIL_TEXT_SCHEMA: dict[str, Any] = {
    "type": "object",
    "properties": {
        "emotional": _string_array(),
        "informational": _string_array(),
        "visual": _string_array(),
    },
    "required": ["emotional", "informational", "visual"],
}

SHORTS_SCHEMA: dict[str, Any] = {
    "type": "array",
    "items": {
        "type": "object",
        "properties": {
            "title": {"type": "string", "description": "Shorts title"},
            "hook": {"type": "string", "description": "3-second hook"},
            "body": {"type": "string", "description": "Main content (500-900 chars)"},
            "ending": {"type": "string", "description": "Ending or call to action"},
        },
        "required": ["title", "hook", "body", "ending"],
    },
}

TRENDING_KEYWORDS_SCHEMA: dict[str, Any] = {
    "type": "array",
    "items": {
        "type": "object",
        "properties": {
            "rank": {"type": "integer"},
            "keyword": {"type": "string"},
            "videoCount": {"type": "integer"},
            "totalViews": {"type": "integer"},
            "mainCategory": {"type": "string"},
            "mainChannelType": {"type": "string"},
        },
    },
}

RISING_CREATORS_SCHEMA: dict[str, Any] = {
    "type": "array",
    "items": {
        "type": "object",
        "properties": {
            "rank": {"type": "integer"},
            "name": {"type": "string"},
            "videoCount": {"type": "integer"},
            "channelId": {"type": "string"},
            "thumbnailUrl": {"type": "string"},
        },
    },
}


# ---------------------------------------------------------------------------
# Shared helpers
# ---------------------------------------------------------------------------


def with_persona(prompt: str, persona: str | None) -> str:
    return f"{persona}\n\n{prompt}" if persona else prompt


def _dumps(value: Any) -> str:
    return json.dumps(value, ensure_ascii=False)


def _video_brief(videos: Sequence[VideoRecord], limit: int, *fields: str) -> str:
    return _dumps(
        [
            {field: getattr(video, field) for field in fields}
            for video in list(videos)[:limit]
        ]
    )


async def _generate_object(
    llm: GenerativeClient,
    prompt: str,
    defaults: Mapping[str, Any],
    *,
    fallbacks: Mapping[str, Any] | None = None,
    **generate_kwargs: Any,
) -> tuple[dict[str, Any], Any]:
    """Generate, repair and normalize one object-shaped result.

    Returns the normalized result together with the raw parsed value so
    callers can post-process fields the plain merge does not cover.
    """
    text = await llm.generate(prompt, **generate_kwargs)
    parsed = parse_repaired_json(text)
    if parsed is None:
        logger.info("analysis_defaults_used", chars=len(text))
    return normalize(parsed, defaults, fallbacks), parsed


async def _generate_list(
    llm: GenerativeClient,
    prompt: str,
    item_defaults: Mapping[str, Any],
    **generate_kwargs: Any,
) -> list[dict[str, Any]]:
    text = await llm.generate(prompt, **generate_kwargs)
    return normalize_list(parse_repaired_json(text), item_defaults)


# ---------------------------------------------------------------------------
# Channel and keyword reports
# ---------------------------------------------------------------------------


async def generate_channel_strategy(
    llm: GenerativeClient,
    videos: Sequence[VideoRecord],
    *,
    persona: str | None = None,
) -> StrategyResult:
    """Build a channel strategy report from a channel's top videos.

    Args:
        llm: Generative client.
        videos: The channel's videos, most relevant first.
        persona: Optional system-instruction text prefixed to the prompt.

    Returns:
        A fully-populated strategy result.
    """
    prompt = with_persona(
        "Analyze these videos and provide a channel strategy as JSON with the keys "
        "coreConcept, detailedPlan, initialStrategy, suggestedTitles, kpiSettings, "
        "riskManagement and revenueModel.\n"
        f"Videos: {_video_brief(videos, _STRATEGY_SAMPLE, 'title', 'view_count')}",
        persona,
    )
    result, _ = await _generate_object(llm, prompt, DEFAULT_STRATEGY)
    return cast("StrategyResult", result)


async def generate_keyword_strategy(
    llm: GenerativeClient,
    keyword: str,
    *,
    persona: str | None = None,
) -> StrategyResult:
    prompt = with_persona(
        f'Create a YouTube channel strategy around the keyword "{keyword}". Return JSON '
        "with the keys coreConcept, detailedPlan, initialStrategy, suggestedTitles, "
        "kpiSettings, riskManagement and revenueModel.",
        persona,
    )
    result, _ = await _generate_object(llm, prompt, DEFAULT_STRATEGY)
    return cast("StrategyResult", result)


async def generate_growth_analysis(
    llm: GenerativeClient,
    videos: Sequence[VideoRecord],
    *,
    persona: str | None = None,
) -> GrowthAnalysisResult:
    prompt = with_persona(
        "Analyze this channel's growth over time and return JSON with title, "
        "overallSummary and phases (each with phaseTitle, period, performanceSummary, "
        "strategyAnalysis, keyVideos, quantitativeAnalysis, contentStrategyAnalysis).\n"
        "Videos: "
        f"{_video_brief(videos, _GROWTH_SAMPLE, 'title', 'published_at', 'view_count')}",
        persona,
    )
    result, _ = await _generate_object(llm, prompt, DEFAULT_GROWTH)
    return cast("GrowthAnalysisResult", result)


async def generate_consulting(
    llm: GenerativeClient,
    videos: Sequence[VideoRecord],
    *,
    persona: str | None = None,
) -> ConsultingResult:
    brief = _video_brief(
        videos,
        _STRATEGY_SAMPLE,
        "title",
        "published_at",
        "view_count",
        "like_count",
        "comment_count",
        "video_type",
    )
    prompt = with_persona(
        "Provide consulting for this channel based on video performance. Return JSON "
        "with overallDiagnosis {title, summary}, detailedAnalysis [{area, problem, "
        "solution}] and actionPlan {shortTerm, longTerm} where each term has title, "
        f"period and steps.\nVideos: {brief}",
        persona,
    )
    result, _ = await _generate_object(llm, prompt, DEFAULT_CONSULTING)
    return cast("ConsultingResult", result)


async def analyze_keyword_volume(llm: GenerativeClient, keyword: str) -> KeywordAnalysisResult:
    prompt = (
        f'Analyze the keyword "{keyword}" for YouTube. Estimate search volumes and '
        "related keywords. Return JSON with relatedKeywords (strings) and volumes "
        "(objects with keyword, pcVolume, mobileVolume, totalVolume)."
    )
    result, _ = await _generate_object(llm, prompt, DEFAULT_KEYWORD_ANALYSIS)
    return cast("KeywordAnalysisResult", result)


# ---------------------------------------------------------------------------
# Comments and thumbnails
# ---------------------------------------------------------------------------


async def analyze_comment_sentiment(
    llm: GenerativeClient,
    comments: Sequence[str],
    *,
    persona: str | None = None,
) -> CommentAnalysisResult:
    prompt = with_persona(
        "Analyze the sentiment of these comments. Return JSON with sentiment counts, "
        f"keywords and a summary of pros, cons and a one-line verdict.\n"
        f"Comments: {_dumps(list(comments))}",
        persona,
    )
    result, _ = await _generate_object(
        llm, prompt, DEFAULT_COMMENT_ANALYSIS, response_schema=COMMENT_SCHEMA
    )
    return cast("CommentAnalysisResult", result)


_THUMBNAIL_PROMPT = """\
[Task]
Analyze this YouTube thumbnail from the point of view of a professional consultant.

[Output format]
Respond with raw JSON only, in exactly this shape:
{
    "overallScore": number (0-100),
    "scores": {
        "visibility": number (0-100),
        "curiosity": number (0-100),
        "textReadability": number (0-100),
        "design": number (0-100)
    },
    "feedback": {
        "strengths": ["sentence", "sentence", "sentence"],
        "weaknesses": ["sentence", "sentence", "sentence"],
        "improvements": ["sentence", "sentence", "sentence"]
    }
}

[Requirements]
1. Base the advice on visual hierarchy, text contrast and emotional hooks.
2. Every feedback array must contain at least two items.
"""


async def analyze_thumbnail(
    llm: GenerativeClient,
    image: ImageInput,
    *,
    persona: str | None = None,
) -> ThumbnailAnalysisResult:
    """Critique a thumbnail image.

    Sub-scores are sanitized (case-insensitive keys, synonyms, numeric
    strings) and ``overallScore`` is recomputed from them, falling back to
    the model's own figure only when the recomputed average is zero. Empty
    feedback lists are filled with generic phrases.

    Args:
        llm: Generative client with vision support.
        image: The thumbnail image.
        persona: Optional system-instruction text.

    Returns:
        A normalized thumbnail analysis.
    """
    result, parsed = await _generate_object(
        llm,
        with_persona(_THUMBNAIL_PROMPT, persona),
        DEFAULT_THUMBNAIL_ANALYSIS,
        fallbacks=THUMBNAIL_FEEDBACK_FALLBACKS,
        image=image,
    )
    raw = parsed if isinstance(parsed, Mapping) else {}
    scores = sanitize_thumbnail_scores(raw.get("scores"))
    result["scores"] = scores
    result["overallScore"] = thumbnail_overall_score(scores, raw.get("overallScore"))
    return cast("ThumbnailAnalysisResult", result)


def empty_thumbnail_analysis() -> ThumbnailAnalysisResult:
    """The analysis shown when the model produced nothing usable."""
    return cast(
        "ThumbnailAnalysisResult",
        normalize(None, DEFAULT_THUMBNAIL_ANALYSIS, THUMBNAIL_FEEDBACK_FALLBACKS),
    )


async def compare_thumbnails(
    llm: GenerativeClient,
    image_a: ImageInput,
    image_b: ImageInput,
    *,
    persona: str | None = None,
) -> tuple[ThumbnailAnalysisResult, ThumbnailAnalysisResult]:
    """Analyze two thumbnails concurrently for an A/B comparison.

    A failed branch yields an empty analysis and does not affect the other.

    Raises:
        ConfigurationError: If no API key is configured.
    """
    llm.require_key()
    outcomes = await asyncio.gather(
        analyze_thumbnail(llm, image_a, persona=persona),
        analyze_thumbnail(llm, image_b, persona=persona),
        return_exceptions=True,
    )
    results: list[ThumbnailAnalysisResult] = []
    for side, outcome in zip(("A", "B"), outcomes, strict=True):
        if isinstance(outcome, BaseException):
            logger.warning("thumbnail_branch_failed", side=side, error=str(outcome))
            results.append(empty_thumbnail_analysis())
        else:
            results.append(outcome)
    return results[0], results[1]


# ---------------------------------------------------------------------------
# Script production
# ---------------------------------------------------------------------------


async def generate_shorts_scripts(
    llm: GenerativeClient,
    keyword: str,
    genre: str = "default",
    *,
    persona: str | None = None,
) -> list[ShortsScript]:
    """Write five Shorts scripts for a topic in a given genre style.

    Unknown genres use the ``default`` guide.
    """
    guide = GENRE_GUIDES.get(genre, GENRE_GUIDES["default"])
    prompt = f"""\
[System persona]
{persona or ""}

[Task]
Topic: "{keyword}"
Genre/style: "{genre}"

[Genre guideline]
{guide}

[Requirements]
1. Write five YouTube Shorts scripts following the topic and guideline above.
2. The body of each script must be between 500 and 900 characters including spaces.

[Output structure]
A JSON array of objects with title, hook (first three seconds), body and ending.
"""
    items = await _generate_list(llm, prompt, DEFAULT_SHORTS_SCRIPT, response_schema=SHORTS_SCHEMA)
    return cast("list[ShortsScript]", items)


async def summarize_transcript_for_creation(
    llm: GenerativeClient,
    transcript: str,
    *,
    persona: str | None = None,
) -> TranscriptSummary:
    prompt = with_persona(
        "[Task]\nAnalyze the following transcript and summarize it for content "
        "creation. Output valid JSON matching the schema.\n\n"
        f"[Transcript]\n{transcript}",
        persona,
    )
    result, _ = await _generate_object(
        llm, prompt, DEFAULT_TRANSCRIPT_SUMMARY, response_schema=SUMMARY_SCHEMA
    )
    return cast("TranscriptSummary", result)


async def recreate_script_from_summary(
    llm: GenerativeClient,
    summary: Mapping[str, Any],
    *,
    persona: str | None = None,
) -> GeneratedScript:
    prompt = with_persona(
        "[Task]\nCreate a NEW creative script based on this summary. Do not copy the "
        "original; rewrite it for better engagement. Output valid JSON matching the "
        f"schema.\n\n[Summary]\n{_dumps(dict(summary))}",
        persona,
    )
    result, _ = await _generate_object(
        llm, prompt, DEFAULT_GENERATED_SCRIPT, response_schema=SCRIPT_SCHEMA
    )
    return cast("GeneratedScript", result)


async def generate_titles_from_script(
    llm: GenerativeClient,
    script: Mapping[str, Any],
    *,
    persona: str | None = None,
) -> GeneratedTitles:
    prompt = with_persona(
        "[Task]\nGenerate 10 catchy YouTube titles for this script: 5 'fresh' "
        "(provocative, curiosity-driven) and 5 'stable' (informative, benefit-driven). "
        "Output valid JSON matching the schema.\n\n"
        f"[Script info]\nTitle: {script.get('title', '')}\n"
        f"Description: {script.get('description', '')}",
        persona,
    )
    result, _ = await _generate_object(llm, prompt, DEFAULT_TITLES, response_schema=TITLES_SCHEMA)
    return cast("GeneratedTitles", result)


async def generate_thumbnail_text_from_titles(
    llm: GenerativeClient,
    titles: Mapping[str, Any],
    *,
    persona: str | None = None,
) -> ThumbnailText:
    prompt = with_persona(
        "[Task]\nGenerate short, punchy thumbnail texts based on these titles, grouped "
        "into emotional, informational and visual. Output valid JSON matching the "
        f"schema.\n\n[Titles]\n{_dumps(dict(titles))}",
        persona,
    )
    result, _ = await _generate_object(
        llm, prompt, DEFAULT_THUMBNAIL_TEXT, response_schema=THUMBNAIL_TEXT_SCHEMA
    )
    return cast("ThumbnailText", result)


async def summarize_transcript(llm: GenerativeClient, text: str) -> str:
    """Plain-text three-line summary."""
    return await llm.generate(f"Summarize the following in three lines:\n{text}")


async def clean_transcript(
    llm: GenerativeClient,
    transcript: str,
    *,
    persona: str | None = None,
) -> str:
    """Turn a raw transcript into readable prose. Returns plain text, not JSON."""
    prompt = with_persona(
        "Clean and correct this transcript into a readable text format. Do not use "
        f"JSON. Just return the text.\nTranscript:\n{transcript}",
        persona,
    )
    return await llm.generate(prompt)


# ---------------------------------------------------------------------------
# Trends and news
# ---------------------------------------------------------------------------


async def analyze_trends_from_videos(
    llm: GenerativeClient, videos: Sequence[VideoRecord]
) -> list[TrendingKeyword]:
    """Group trending videos into keyword topics with view totals."""
    prompt = (
        "Analyze the following list of trending videos (title and view count). Group "
        "them by common topics or keywords. For each trend, sum the views and count "
        "the videos.\nReturn a JSON array of objects with rank, keyword, videoCount, "
        "totalViews, mainCategory and mainChannelType.\n"
        f"Input data: {_video_brief(videos, _TREND_SAMPLE, 'title', 'view_count')}"
    )
    items = await _generate_list(
        llm, prompt, DEFAULT_TRENDING_KEYWORD, response_schema=TRENDING_KEYWORDS_SCHEMA
    )
    return cast("list[TrendingKeyword]", items)


async def analyze_rising_creators(
    llm: GenerativeClient, videos: Sequence[VideoRecord]
) -> list[RisingCreator]:
    """Pick rising creators from a trending batch, keeping their IDs and thumbnails."""
    brief = _dumps(
        [
            {
                "name": video.channel_title,
                "id": video.channel_id,
                "views": video.view_count,
                "thumb": video.thumbnail_url,
            }
            for video in list(videos)[:_TREND_SAMPLE]
        ]
    )
    prompt = (
        "Identify rising creators from this list. Return a JSON array of objects with "
        "rank, name, videoCount (number of trending videos in this list), channelId "
        "(copied from input id) and thumbnailUrl (copied from input thumb). Preserve "
        f"channelId and thumbnailUrl exactly.\nInput data: {brief}"
    )
    items = await _generate_list(
        llm, prompt, DEFAULT_RISING_CREATOR, response_schema=RISING_CREATORS_SCHEMA
    )
    return cast("list[RisingCreator]", items)


async def generate_trend_insight_report(llm: GenerativeClient) -> TrendInsightResult:
    prompt = (
        "Generate a trend insight report for today in South Korea from Naver and "
        "Google search trends. Return JSON with 'naver' and 'google' arrays of "
        "objects with rank, keyword, searchVolume and status (new, up, down, same)."
    )
    result, _ = await _generate_object(
        llm, prompt, DEFAULT_TREND_INSIGHT, tools=[WEB_SEARCH_TOOL]
    )
    return cast("TrendInsightResult", result)


async def fetch_news(
    llm: GenerativeClient,
    category: str = "General",
    *,
    now: datetime | None = None,
) -> NewsDigest:
    """Fetch the top 30 real-time headlines for a category via web search.

    A failed model call degrades to an empty digest; a missing credential
    still raises ``ConfigurationError``.
    """
    llm.require_key()
    moment = (now or datetime.now(tz=_NEWS_TIMEZONE)).astimezone(_NEWS_TIMEZONE)
    prompt = f"""\
[Context]
Current time (KST): {moment.strftime("%Y-%m-%d %H:%M")}
Task: Search for the top 30 real-time news headlines in South Korea for the
category "{category}". Prefer Naver News and major Korean media.

[Requirements]
1. Fetch exactly 30 news items.
2. "rank" must be sequential from 1 to 30.

[Output JSON structure]
Return only a raw JSON object:
{{"referenceDate": "YYYY-MM-DD HH:mm", "items": [{{"rank": 1, "title": "",
"press": "", "time": "", "url": ""}}]}}
"""
    try:
        result, _ = await _generate_object(
            llm, prompt, DEFAULT_NEWS_DIGEST, tools=[WEB_SEARCH_TOOL]
        )
    except GenerationError as exc:
        logger.warning("news_fetch_failed", category=category, error=str(exc))
        return cast("NewsDigest", normalize(None, DEFAULT_NEWS_DIGEST))
    if not isinstance(result.get("referenceDate"), str):
        result["referenceDate"] = ""
    return cast("NewsDigest", result)
