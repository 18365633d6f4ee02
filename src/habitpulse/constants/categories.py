"""
Centralized habit category definitions shared by the API, stats and reports.
Legacy category names from older clients are folded onto the six canonical ones.
"""

from __future__ import annotations

from types import MappingProxyType
from typing import Any

HABIT_CATEGORIES = (
    "physical",
    "nutrition",
    "sleep",
    "mental",
    "relationships",
    "financial",
)

CATEGORY_COLORS = MappingProxyType(
    {
        "physical": "#ef4444",
        "nutrition": "#f97316",
        "sleep": "#a855f7",
        "mental": "#eab308",
        "relationships": "#3b82f6",
        "financial": "#22c55e",
    }
)

LEGACY_CATEGORY_ALIASES = MappingProxyType(
    {
        "health": "physical",
        "fitness": "physical",
        "mind": "mental",
        "social": "relationships",
        "finance": "financial",
        "productivity": "financial",
    }
)

DEFAULT_CATEGORY_COLOR = "#6b7280"
UNKNOWN_CATEGORY = "unknown"


def normalize_category(value: Any) -> str:
    """Return the canonical category name for ``value``.

    Unknown names pass through lower-cased so custom categories still group.
    Non-string values (numbers from loosely typed JSON) are read as text.
    """

    if value is None:
        return UNKNOWN_CATEGORY
    key = str(value).strip().lower()
    if not key:
        return UNKNOWN_CATEGORY
    return LEGACY_CATEGORY_ALIASES.get(key, key)


def category_color(value: Any) -> str:
    return CATEGORY_COLORS.get(normalize_category(value), DEFAULT_CATEGORY_COLOR)


__all__ = [
    "CATEGORY_COLORS",
    "DEFAULT_CATEGORY_COLOR",
    "HABIT_CATEGORIES",
    "LEGACY_CATEGORY_ALIASES",
    "UNKNOWN_CATEGORY",
    "category_color",
    "normalize_category",
]
