"""Unit tests for tube_insight.normalize and the result defaults."""

from __future__ import annotations

import copy
from typing import Any

import pytest

from tube_insight.normalize import apply_feedback_fallbacks, normalize, normalize_list
from tube_insight.results import (
    ALL_DEFAULTS,
    DEFAULT_STRATEGY,
    DEFAULT_THUMBNAIL_ANALYSIS,
    THUMBNAIL_FEEDBACK_FALLBACKS,
)

_DEFAULTS: dict[str, Any] = {
    "title": "untitled",
    "items": [],
    "nested": {"count": 0, "tags": ["x"]},
}


def _same_shape(result: Any, defaults: Any) -> bool:
    """Every default key exists and keeps its container type."""
    if isinstance(defaults, dict):
        return isinstance(result, dict) and all(
            key in result and _same_shape(result[key], value) for key, value in defaults.items()
        )
    if isinstance(defaults, list):
        return isinstance(result, list)
    return True


# ---- normalize ----------------------------------------------------------------


class TestNormalize:
    """Merging parsed output onto defaults."""

    @pytest.mark.parametrize("parsed", [None, [], "text", 42, {"unrelated": True}])
    def test_missing_input_yields_defaults(self, parsed: Any) -> None:
        result = normalize(parsed, _DEFAULTS)
        assert result["title"] == "untitled"
        assert result["items"] == []
        assert result["nested"] == {"count": 0, "tags": ["x"]}

    def test_values_are_taken_from_parsed(self) -> None:
        parsed = {"title": "Mine", "items": [1, 2], "nested": {"count": 3}}
        result = normalize(parsed, _DEFAULTS)
        assert result == {
            "title": "Mine",
            "items": [1, 2],
            "nested": {"count": 3, "tags": ["x"]},
        }

    def test_wrong_container_type_falls_back(self) -> None:
        result = normalize({"items": "not a list", "nested": "nope"}, _DEFAULTS)
        assert result["items"] == []
        assert result["nested"] == {"count": 0, "tags": ["x"]}

    def test_scalars_are_not_coerced(self) -> None:
        result = normalize({"title": 7}, _DEFAULTS)
        assert result["title"] == 7

    def test_explicit_null_scalar_is_kept(self) -> None:
        assert normalize({"title": None}, _DEFAULTS)["title"] is None

    def test_extra_keys_are_preserved(self) -> None:
        result = normalize({"extra": {"deep": 1}}, _DEFAULTS)
        assert result["extra"] == {"deep": 1}

    def test_defaults_are_never_mutated(self) -> None:
        snapshot = copy.deepcopy(_DEFAULTS)
        result = normalize(None, _DEFAULTS)
        result["items"].append("oops")
        result["nested"]["tags"].append("oops")
        assert snapshot == _DEFAULTS

    def test_result_does_not_alias_parsed(self) -> None:
        parsed = {"items": [{"a": 1}]}
        result = normalize(parsed, _DEFAULTS)
        result["items"][0]["a"] = 2
        assert parsed["items"][0]["a"] == 1

    def test_fallbacks_fill_empty_lists(self) -> None:
        result = normalize(
            {"feedback": {"strengths": []}},
            DEFAULT_THUMBNAIL_ANALYSIS,
            THUMBNAIL_FEEDBACK_FALLBACKS,
        )
        for path, fallback in THUMBNAIL_FEEDBACK_FALLBACKS.items():
            leaf = path.split(".")[1]
            assert result["feedback"][leaf] == fallback

    def test_fallbacks_keep_populated_lists(self) -> None:
        result = normalize(
            {"feedback": {"strengths": ["great colors"]}},
            DEFAULT_THUMBNAIL_ANALYSIS,
            THUMBNAIL_FEEDBACK_FALLBACKS,
        )
        assert result["feedback"]["strengths"] == ["great colors"]


@pytest.mark.parametrize("name", sorted(ALL_DEFAULTS))
@pytest.mark.parametrize("parsed", [None, {}, {"junk": 1}, ["list"]])
def test_every_shape_is_complete(name: str, parsed: Any) -> None:
    defaults = ALL_DEFAULTS[name]
    assert _same_shape(normalize(parsed, defaults), defaults)


def test_strategy_default_placeholder() -> None:
    result = normalize(None, DEFAULT_STRATEGY)
    assert result["coreConcept"]["title"] == "Analysis unavailable"
    assert isinstance(result["suggestedTitles"]["titles"], list)


# ---- apply_feedback_fallbacks ---------------------------------------------------


class TestApplyFeedbackFallbacks:
    """Dotted-path fallback replacement."""

    def test_creates_missing_parents(self) -> None:
        result: dict[str, Any] = {}
        apply_feedback_fallbacks(result, "a.b.c", ["x"])
        assert result == {"a": {"b": {"c": ["x"]}}}

    def test_replaces_non_list(self) -> None:
        result: dict[str, Any] = {"a": {"b": "text"}}
        apply_feedback_fallbacks(result, "a.b", ["x"])
        assert result["a"]["b"] == ["x"]

    def test_returns_same_object(self) -> None:
        result: dict[str, Any] = {"a": ["keep"]}
        assert apply_feedback_fallbacks(result, "a", ["x"]) is result
        assert result["a"] == ["keep"]


# ---- normalize_list -----------------------------------------------------------


class TestNormalizeList:
    """Item-wise list normalization."""

    def test_non_list_is_empty(self) -> None:
        assert normalize_list({"a": 1}, {"a": 0}) == []
        assert normalize_list(None, {"a": 0}) == []

    def test_items_are_normalized_and_non_dicts_dropped(self) -> None:
        items = normalize_list([{"a": 5}, "junk", 3, {}], {"a": 0, "b": ""})
        assert items == [{"a": 5, "b": ""}, {"a": 0, "b": ""}]
