"""Result shapes returned by the AI analysis functions, with their defaults.

Each shape is a ``TypedDict`` using the camelCase keys the model is asked to
produce, paired with a ``DEFAULT_*`` constant that ``normalize`` uses as the
merge base. The constants are shared module-level objects: treat them as
read-only and go through ``normalize`` (which deep-copies) to get a result.
"""

from __future__ import annotations

from typing import Any, Final, TypedDict

# ---------------------------------------------------------------------------
# Strategy
# ---------------------------------------------------------------------------


class TitledText(TypedDict):
    title: str
    description: str


class PlanSection(TypedDict):
    title: str
    details: str


class DetailedPlan(TypedDict):
    contentDirection: PlanSection
    uploadSchedule: PlanSection
    communityEngagement: PlanSection
    keywordStrategy: PlanSection


class StrategyResult(TypedDict):
    """Channel or keyword strategy report."""

    coreConcept: TitledText
    detailedPlan: DetailedPlan
    initialStrategy: dict[str, Any]
    suggestedTitles: dict[str, Any]
    kpiSettings: dict[str, Any]
    riskManagement: dict[str, Any]
    revenueModel: dict[str, Any]


DEFAULT_STRATEGY: Final[StrategyResult] = {
    "coreConcept": {
        "title": "Analysis unavailable",
        "description": "The data could not be analyzed.",
    },
    "detailedPlan": {
        "contentDirection": {"title": "", "details": ""},
        "uploadSchedule": {"title": "", "details": ""},
        "communityEngagement": {"title": "", "details": ""},
        "keywordStrategy": {"title": "", "details": ""},
    },
    "initialStrategy": {"title": "", "phases": []},
    "suggestedTitles": {"title": "", "titles": []},
    "kpiSettings": {"title": "", "kpis": []},
    "riskManagement": {"title": "", "risks": []},
    "revenueModel": {"title": "", "streams": []},
}


# ---------------------------------------------------------------------------
# Growth analysis and consulting
# ---------------------------------------------------------------------------


class GrowthAnalysisResult(TypedDict):
    title: str
    overallSummary: str
    phases: list[dict[str, Any]]


DEFAULT_GROWTH: Final[GrowthAnalysisResult] = {
    "title": "Analysis unavailable",
    "overallSummary": "The channel data could not be loaded.",
    "phases": [],
}


class ActionStep(TypedDict):
    title: str
    period: str
    steps: list[str]


class ConsultingResult(TypedDict):
    overallDiagnosis: dict[str, str]
    detailedAnalysis: list[dict[str, str]]
    actionPlan: dict[str, ActionStep]


DEFAULT_CONSULTING: Final[ConsultingResult] = {
    "overallDiagnosis": {
        "title": "Diagnosis unavailable",
        "summary": "The channel data could not be loaded.",
    },
    "detailedAnalysis": [],
    "actionPlan": {
        "shortTerm": {"title": "", "period": "", "steps": []},
        "longTerm": {"title": "", "period": "", "steps": []},
    },
}


# ---------------------------------------------------------------------------
# Comments and thumbnails
# ---------------------------------------------------------------------------


class Sentiment(TypedDict):
    positive: float
    negative: float
    neutral: float


class CommentSummary(TypedDict):
    pros: list[str]
    cons: list[str]
    oneLine: str


class CommentAnalysisResult(TypedDict):
    sentiment: Sentiment
    keywords: list[str]
    summary: CommentSummary


DEFAULT_COMMENT_ANALYSIS: Final[CommentAnalysisResult] = {
    "sentiment": {"positive": 0, "negative": 0, "neutral": 0},
    "keywords": [],
    "summary": {
        "pros": [],
        "cons": [],
        "oneLine": "The comment analysis could not be loaded.",
    },
}


class ThumbnailScores(TypedDict):
    visibility: int | float
    curiosity: int | float
    textReadability: int | float
    design: int | float


class ThumbnailFeedback(TypedDict):
    strengths: list[str]
    weaknesses: list[str]
    improvements: list[str]


class ThumbnailAnalysisResult(TypedDict):
    """Thumbnail critique. ``overallScore`` is recomputed from ``scores``."""

    overallScore: int | float
    scores: ThumbnailScores
    feedback: ThumbnailFeedback


DEFAULT_THUMBNAIL_ANALYSIS: Final[ThumbnailAnalysisResult] = {
    "overallScore": 0,
    "scores": {"visibility": 0, "curiosity": 0, "textReadability": 0, "design": 0},
    "feedback": {"strengths": [], "weaknesses": [], "improvements": []},
}

THUMBNAIL_FEEDBACK_FALLBACKS: Final[dict[str, list[str]]] = {
    "feedback.strengths": [
        "The image is sharp.",
        "The subject is clearly visible.",
    ],
    "feedback.weaknesses": [
        "Text readability could be improved.",
        "Contrast between background and subject may be weak.",
    ],
    "feedback.improvements": [
        "Add an outline to the text.",
        "Raise saturation to draw the eye.",
    ],
}


# ---------------------------------------------------------------------------
# Script production
# ---------------------------------------------------------------------------


class ShortsScript(TypedDict):
    title: str
    hook: str
    body: str
    ending: str


DEFAULT_SHORTS_SCRIPT: Final[ShortsScript] = {
    "title": "",
    "hook": "",
    "body": "",
    "ending": "",
}


class TranscriptSummary(TypedDict):
    title: str
    coreMessage: str
    structure: str
    summaryPoints: list[str]


DEFAULT_TRANSCRIPT_SUMMARY: Final[TranscriptSummary] = {
    "title": "",
    "coreMessage": "",
    "structure": "",
    "summaryPoints": [],
}


class SceneCue(TypedDict):
    narration: str
    visual_cue: str


class ScriptBody(TypedDict):
    opening: SceneCue
    main_points: list[dict[str, str]]
    closing: SceneCue


class GeneratedScript(TypedDict):
    title: str
    description: str
    script: ScriptBody


DEFAULT_GENERATED_SCRIPT: Final[GeneratedScript] = {
    "title": "",
    "description": "",
    "script": {
        "opening": {"narration": "", "visual_cue": ""},
        "main_points": [],
        "closing": {"narration": "", "visual_cue": ""},
    },
}


class GeneratedTitles(TypedDict):
    fresh: list[str]
    stable: list[str]


DEFAULT_TITLES: Final[GeneratedTitles] = {"fresh": [], "stable": []}


class ThumbnailText(TypedDict):
    emotional: list[str]
    informational: list[str]
    visual: list[str]


DEFAULT_THUMBNAIL_TEXT: Final[ThumbnailText] = {
    "emotional": [],
    "informational": [],
    "visual": [],
}


# ---------------------------------------------------------------------------
# Trends, keywords and news
# ---------------------------------------------------------------------------


class TrendInsightResult(TypedDict):
    naver: list[dict[str, Any]]
    google: list[dict[str, Any]]


DEFAULT_TREND_INSIGHT: Final[TrendInsightResult] = {"naver": [], "google": []}


class KeywordAnalysisResult(TypedDict):
    relatedKeywords: list[str]
    volumes: list[dict[str, Any]]


DEFAULT_KEYWORD_ANALYSIS: Final[KeywordAnalysisResult] = {
    "relatedKeywords": [],
    "volumes": [],
}


class NewsDigest(TypedDict):
    items: list[dict[str, Any]]
    referenceDate: str


DEFAULT_NEWS_DIGEST: Final[NewsDigest] = {"items": [], "referenceDate": ""}


class TrendingKeyword(TypedDict):
    rank: int
    keyword: str
    videoCount: int
    totalViews: int
    mainCategory: str
    mainChannelType: str


DEFAULT_TRENDING_KEYWORD: Final[TrendingKeyword] = {
    "rank": 0,
    "keyword": "",
    "videoCount": 0,
    "totalViews": 0,
    "mainCategory": "",
    "mainChannelType": "",
}


class RisingCreator(TypedDict):
    rank: int
    name: str
    videoCount: int
    channelId: str
    thumbnailUrl: str


DEFAULT_RISING_CREATOR: Final[RisingCreator] = {
    "rank": 0,
    "name": "",
    "videoCount": 0,
    "channelId": "",
    "thumbnailUrl": "",
}


# ---------------------------------------------------------------------------
# Channel battle
# ---------------------------------------------------------------------------


class RadarPoint(TypedDict):
    subject: str
    A: int | float
    B: int | float
    fullMark: int


class BattleNarrative(TypedDict):
    """Model-supplied part of a channel comparison."""

    summary: str
    radarData: list[RadarPoint]
    weights: dict[str, Any]


DEFAULT_BATTLE_NARRATIVE: Final[BattleNarrative] = {
    "summary": "",
    "radarData": [],
    "weights": {},
}

DEFAULT_RADAR_POINT: Final[RadarPoint] = {
    "subject": "",
    "A": 0,
    "B": 0,
    "fullMark": 100,
}


ALL_DEFAULTS: Final[dict[str, dict[str, Any]]] = {
    "strategy": DEFAULT_STRATEGY,  # type: ignore[dict-item]
    "growth": DEFAULT_GROWTH,  # type: ignore[dict-item]
    "consulting": DEFAULT_CONSULTING,  # type: ignore[dict-item]
    "comment_analysis": DEFAULT_COMMENT_ANALYSIS,  # type: ignore[dict-item]
    "thumbnail_analysis": DEFAULT_THUMBNAIL_ANALYSIS,  # type: ignore[dict-item]
    "shorts_script": DEFAULT_SHORTS_SCRIPT,  # type: ignore[dict-item]
    "transcript_summary": DEFAULT_TRANSCRIPT_SUMMARY,  # type: ignore[dict-item]
    "generated_script": DEFAULT_GENERATED_SCRIPT,  # type: ignore[dict-item]
    "titles": DEFAULT_TITLES,  # type: ignore[dict-item]
    "thumbnail_text": DEFAULT_THUMBNAIL_TEXT,  # type: ignore[dict-item]
    "trend_insight": DEFAULT_TREND_INSIGHT,  # type: ignore[dict-item]
    "keyword_analysis": DEFAULT_KEYWORD_ANALYSIS,  # type: ignore[dict-item]
    "news_digest": DEFAULT_NEWS_DIGEST,  # type: ignore[dict-item]
    "trending_keyword": DEFAULT_TRENDING_KEYWORD,  # type: ignore[dict-item]
    "rising_creator": DEFAULT_RISING_CREATOR,  # type: ignore[dict-item]
    "battle_narrative": DEFAULT_BATTLE_NARRATIVE,  # type: ignore[dict-item]
}
