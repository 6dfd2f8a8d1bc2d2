"""
Case normalization (auto-fix) for TMK documents.

Rewrites keys and enum-valued strings of a parsed document to the casing the
schema declares, recursing into nested objects and arrays of objects wherever
the schema describes them. Hand-typed documents frequently say ``"Model":
"task"`` where the schema wants ``"model": "Task"``; this repairs that class
of mistake before the document is checked.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Any, Literal

from tmk_validator.services.errors import KeyCollisionError

logger = logging.getLogger(__name__)

COLLISION_MODES = ("error", "last")


class NodeKind(str, Enum):
    OBJECT = "object"
    ARRAY = "array"
    STRING = "string"
    ENUM = "enum"
    OTHER = "other"


def node_kind(node: dict[str, Any] | None) -> NodeKind:
    """Classify a schema node by the shape the normalizer cares about."""
    if not isinstance(node, dict):
        return NodeKind.OTHER
    declared = node.get("type")
    if declared == "object":
        return NodeKind.OBJECT
    if declared == "array":
        return NodeKind.ARRAY
    if isinstance(node.get("enum"), list):
        return NodeKind.ENUM
    if declared == "string":
        return NodeKind.STRING
    return NodeKind.OTHER


def _fold(text: str) -> str:
    return text.casefold()


def canonical_key(key: str, properties: dict[str, Any]) -> str:
    """Declared property name matching ``key`` case-insensitively, else ``key``."""
    if key in properties:
        return key
    folded = _fold(key)
    for name in properties:
        if _fold(name) == folded:
            return name
    return key


def canonical_enum_value(value: str, choices: list[Any]) -> str:
    folded = _fold(value)
    for choice in choices:
        if isinstance(choice, str) and _fold(choice) == folded:
            return choice
    return value


def _normalize_value(value: Any, definition: dict[str, Any] | None, on_collision: str) -> Any:
    if not isinstance(definition, dict):
        return value

    if isinstance(value, str) and isinstance(definition.get("enum"), list):
        value = canonical_enum_value(value, definition["enum"])

    kind = node_kind(definition)
    if kind is NodeKind.OBJECT and isinstance(value, dict):
        return normalize(value, definition, on_collision=on_collision)
    if kind is NodeKind.ARRAY and isinstance(value, list) and isinstance(definition.get("items"), dict):
        items = definition["items"]
        return [
            normalize(item, items, on_collision=on_collision) if isinstance(item, dict) else item
            for item in value
        ]
    return value


def normalize(
    data: dict[str, Any],
    schema: dict[str, Any],
    *,
    on_collision: Literal["error", "last"] = "error",
) -> dict[str, Any]:
    """
    Return a copy of ``data`` with keys and enum strings in canonical casing.

    Key order is preserved. Keys the schema does not declare pass through
    untouched, as do values that are not enum strings. When two keys of the
    same object resolve to one canonical name, ``on_collision="error"`` raises
    KeyCollisionError and ``on_collision="last"`` keeps the later value.
    """
    if not isinstance(data, dict):
        raise TypeError(f"normalize() expects a JSON object, got {type(data).__name__}")
    if on_collision not in COLLISION_MODES:
        raise ValueError(f"Unknown collision mode: {on_collision!r}")

    properties = schema.get("properties") or {}
    corrected: dict[str, Any] = {}
    sources: dict[str, str] = {}

    for key, value in data.items():
        canonical = canonical_key(key, properties)

        if canonical in corrected:
            if on_collision == "error":
                raise KeyCollisionError(canonical, sources[canonical], key)
            logger.warning(
                "Key '%s' overwrites '%s' (both normalize to '%s')",
                key, sources[canonical], canonical,
            )

        corrected[canonical] = _normalize_value(value, properties.get(canonical), on_collision)
        sources[canonical] = key

    return corrected
