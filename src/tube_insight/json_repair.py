"""Defensive JSON extraction for free-form generative-model responses.

Models asked for JSON routinely wrap it in markdown fences or prose, leave
``//`` comments and trailing commas, write ``...`` to mean "more items",
and put raw newlines inside string literals. ``parse_repaired_json`` strips
all of that and parses the largest bracketed span, returning ``None`` instead
of raising when nothing usable remains.
"""

from __future__ import annotations

import json
import re
from typing import Any

import structlog

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)

_FENCE_RE = re.compile(r"```(?:json)?\s*|```", re.IGNORECASE)
_TRAILING_COMMA_RE = re.compile(r",(\s*[\]}])")
# "1, 2, ...]", "}, ...]", "], ...]", "[...]"
_ELLIPSIS_RE = re.compile(r"(?<=[\d\]}\"\[{])\s*,?\s*\.\.\.\s*(?=[\]}])")

_CONTROL_ESCAPES: dict[str, str] = {
    "\n": "\\n",
    "\r": "\\r",
    "\t": "\\t",
    "\b": "\\b",
    "\f": "\\f",
}

_PLACEHOLDER_RE = re.compile(r'"(\d+)"')

_PREVIEW_CHARS = 200


def _is_string_boundary(text: str, index: int) -> bool:
    """Return True if the quote at ``index`` is not backslash-escaped.

    An even number of consecutive backslashes before the quote (including
    zero) means the quote is a real string boundary.
    """
    backslashes = 0
    j = index - 1
    while j >= 0 and text[j] == "\\":
        backslashes += 1
        j -= 1
    return backslashes % 2 == 0


def _slice_outer_span(text: str) -> str | None:
    """Cut ``text`` down to the first opening and last closing bracket."""
    starts = [i for i in (text.find("{"), text.find("[")) if i != -1]
    if not starts:
        return None
    candidate = text[min(starts) :]

    end = max(candidate.rfind("}"), candidate.rfind("]"))
    if end == -1:
        logger.warning("json_repair_truncated", preview=candidate[:_PREVIEW_CHARS])
        return None
    return candidate[: end + 1]


def _strip_comments(text: str) -> str:
    """Remove ``//`` line and ``/* */`` block comments outside string literals."""
    out: list[str] = []
    in_string = False
    i = 0
    length = len(text)

    while i < length:
        char = text[i]
        if in_string:
            if char == '"' and _is_string_boundary(text, i):
                in_string = False
            out.append(char)
            i += 1
            continue

        if text.startswith("//", i):
            newline = text.find("\n", i)
            i = length if newline == -1 else newline
            continue
        if text.startswith("/*", i):
            close = text.find("*/", i + 2)
            i = length if close == -1 else close + 2
            continue

        if char == '"' and _is_string_boundary(text, i):
            in_string = True
        out.append(char)
        i += 1

    return "".join(out)


def _mask_strings(text: str) -> tuple[str, list[str]]:
    """Swap every string literal for a numbered ``"<n>"`` placeholder.

    Lets the regex repairs run over structure only. An unterminated literal
    runs to the end of ``text``.
    """
    literals: list[str] = []
    out: list[str] = []
    start: int | None = None

    for i, char in enumerate(text):
        if char != '"' or not _is_string_boundary(text, i):
            if start is None:
                out.append(char)
            continue
        if start is None:
            start = i
            continue
        out.append(f'"{len(literals)}"')
        literals.append(text[start : i + 1])
        start = None

    if start is not None:
        out.append(f'"{len(literals)}"')
        literals.append(text[start:])
    return "".join(out), literals


def _unmask_strings(text: str, literals: list[str]) -> str:
    return _PLACEHOLDER_RE.sub(lambda match: literals[int(match.group(1))], text)


def _escape_control_chars(text: str) -> str:
    """Escape raw control characters inside string literals.

    Also inserts the comma models sometimes forget between two adjacent
    string values (``"a" "b"``), since that is only detectable while
    tracking string boundaries.
    """
    out: list[str] = []
    in_string = False
    last_closed_string = False

    for i, char in enumerate(text):
        if char == '"' and _is_string_boundary(text, i):
            if not in_string and last_closed_string:
                out.append(", ")
            in_string = not in_string
            last_closed_string = not in_string
            out.append(char)
            continue

        if in_string:
            out.append(_CONTROL_ESCAPES.get(char, char))
            continue

        if not char.isspace():
            last_closed_string = False
        out.append(char)

    return "".join(out)


def clean_json_text(raw_text: str) -> str | None:
    """Apply every repair step and return the text that would be parsed.

    Args:
        raw_text: Raw model response.

    Returns:
        Cleaned JSON candidate text, or None when no bracketed span exists.
    """
    cleaned = _FENCE_RE.sub("", raw_text).strip()
    span = _slice_outer_span(cleaned)
    if span is None:
        return None

    masked, literals = _mask_strings(_strip_comments(span))
    masked = _ELLIPSIS_RE.sub("", masked)
    masked = _TRAILING_COMMA_RE.sub(r"\1", masked)
    return _escape_control_chars(_unmask_strings(masked, literals))


def parse_repaired_json(raw_text: str | None) -> dict[str, Any] | list[Any] | None:
    """Extract and parse a JSON object or array from model output.

    Never raises: callers treat ``None`` as "no usable AI output" and fall
    back to normalized defaults.

    Args:
        raw_text: Arbitrary text expected to contain JSON, possibly fenced,
            commented, truncated, or with unescaped control characters.

    Returns:
        The parsed dict or list, or None when no bracket is found, the
        structure is truncated, or parsing fails after cleaning.
    """
    if not raw_text:
        return None

    cleaned = clean_json_text(raw_text)
    if cleaned is None:
        return None

    try:
        result = json.loads(cleaned)
    except (ValueError, RecursionError) as exc:
        logger.warning(
            "json_repair_parse_failed",
            error=str(exc),
            preview=cleaned[:_PREVIEW_CHARS],
        )
        return None

    if not isinstance(result, (dict, list)):
        return None
    return result
