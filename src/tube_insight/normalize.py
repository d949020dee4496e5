"""Default-driven normalization of loosely-typed model output.

Every AI result shape has a fully-populated default object. ``normalize``
walks that default and pulls matching values out of whatever the model
returned, so consumers always receive every documented field with the
documented container type, whatever the model actually produced.
"""

from __future__ import annotations

import copy
from collections.abc import Mapping, Sequence
from typing import Any

import structlog

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)


def normalize(
    parsed: Any,
    defaults: Mapping[str, Any],
    fallbacks: Mapping[str, Any] | None = None,
) -> dict[str, Any]:
    """Merge parsed model output onto a template of defaults.

    Rules, applied per key of ``defaults``:

    * list default: the parsed value is used only if it is a list, otherwise
      a copy of the default list is used.
    * dict default: recurse. A non-dict parsed value counts as missing.
    * anything else: the parsed value is used whenever the key is present,
      without type coercion.

    Keys present in ``parsed`` but absent from ``defaults`` are carried
    through untouched. A non-dict ``parsed`` behaves like ``None``.

    Args:
        parsed: Output of ``parse_repaired_json`` (or any JSON-like value).
        defaults: The template. Never mutated.
        fallbacks: Optional mapping of dotted list paths to replacement
            lists used when that list ends up empty (see
            ``apply_feedback_fallbacks``).

    Returns:
        A new dict sharing no mutable state with ``defaults``.
    """
    source: Mapping[str, Any] = parsed if isinstance(parsed, Mapping) else {}
    result: dict[str, Any] = {}

    for key, default in defaults.items():
        present = key in source
        value = source.get(key)

        if isinstance(default, list):
            result[key] = copy.deepcopy(value if isinstance(value, list) else default)
        elif isinstance(default, Mapping):
            result[key] = normalize(value, default)
        elif present:
            result[key] = copy.deepcopy(value)
        else:
            result[key] = copy.deepcopy(default)

    for key, value in source.items():
        if key not in result:
            result[key] = copy.deepcopy(value)

    if fallbacks:
        for path, fallback in fallbacks.items():
            apply_feedback_fallbacks(result, path, fallback)

    return result


def apply_feedback_fallbacks(
    result: dict[str, Any],
    path: str,
    fallbacks: Sequence[Any],
) -> dict[str, Any]:
    """Replace an empty or non-list value at a dotted path with fallbacks.

    Intermediate dicts are created when missing. ``result`` is modified in
    place and also returned for chaining.

    Args:
        result: A normalized result.
        path: Dotted key path, e.g. ``"feedback.strengths"``.
        fallbacks: Items to use when the target is empty or not a list.

    Returns:
        The same ``result`` object.
    """
    *parents, leaf = path.split(".")
    node = result
    for part in parents:
        child = node.get(part)
        if not isinstance(child, dict):
            child = {}
            node[part] = child
        node = child

    current = node.get(leaf)
    if not isinstance(current, list) or not current:
        node[leaf] = list(copy.deepcopy(fallbacks))
    return result


def normalize_list(parsed: Any, item_defaults: Mapping[str, Any]) -> list[dict[str, Any]]:
    """Normalize a list of objects item by item.

    Non-list input yields an empty list. Dict items are normalized against
    ``item_defaults``; non-dict items are dropped.
    """
    if not isinstance(parsed, list):
        return []

    items = [normalize(item, item_defaults) for item in parsed if isinstance(item, Mapping)]
    dropped = len(parsed) - len(items)
    if dropped:
        logger.debug("normalize_list_dropped_items", dropped=dropped)
    return items
