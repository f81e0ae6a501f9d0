"""
Evaluation of legacy (v8) style layer filters against decoded features.

Supported operators: ``all``, ``any``, ``none``, ``==``, ``!=``, ``<``,
``<=``, ``>``, ``>=``, ``in``, ``!in``, ``has`` and ``!has``. The special
keys ``$type`` and ``$id`` address the geometry type and feature id.
"""

from __future__ import annotations

import operator
from collections.abc import Callable, Mapping
from typing import Any

Feature = Mapping[str, Any]
Predicate = Callable[[Feature], bool]

_COMPARISONS: dict[str, Callable[[Any, Any], bool]] = {
    "==": operator.eq,
    "!=": operator.ne,
    "<": operator.lt,
    "<=": operator.le,
    ">": operator.gt,
    ">=": operator.ge,
}
_MISSING = object()


def geometry_type(feature: Feature) -> str:
    geometry = feature.get("geometry")
    kind = geometry.get("type", "") if isinstance(geometry, Mapping) else ""
    return kind.removeprefix("Multi") or "Unknown"


def _value(feature: Feature, key: str) -> Any:
    if key == "$type":
        return geometry_type(feature)
    if key == "$id":
        return feature.get("id", _MISSING)
    return (feature.get("properties") or {}).get(key, _MISSING)


def _compare(op: Callable[[Any, Any], bool], left: Any, right: Any) -> bool:
    if left is _MISSING:
        return op is operator.ne
    if op not in (operator.eq, operator.ne) and type(left) is not type(right):
        # Ordering comparisons only match values of the same kind.
        if not (isinstance(left, (int, float)) and isinstance(right, (int, float))):
            return False
    return bool(op(left, right))


def create_filter(expression: Any) -> Predicate:
    """Compile a legacy filter expression into a feature predicate."""
    if not expression:
        return lambda feature: True
    if not isinstance(expression, list):
        raise ValueError(f"Invalid filter expression: {expression!r}")

    op, *args = expression
    if op in ("all", "any", "none"):
        parts = [create_filter(arg) for arg in args]
        if op == "all":
            return lambda feature: all(part(feature) for part in parts)
        if op == "any":
            return lambda feature: any(part(feature) for part in parts)
        return lambda feature: not any(part(feature) for part in parts)

    if op in _COMPARISONS:
        key, expected = args
        compare = _COMPARISONS[op]
        return lambda feature: _compare(compare, _value(feature, key), expected)

    if op in ("in", "!in"):
        key, *values = args
        negate = op == "!in"
        return lambda feature: (_value(feature, key) in values) != negate

    if op in ("has", "!has"):
        (key,) = args
        negate = op == "!has"
        return lambda feature: (_value(feature, key) is not _MISSING) != negate

    raise ValueError(f"Unsupported filter operator: {op!r}")
