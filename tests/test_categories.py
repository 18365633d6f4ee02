from __future__ import annotations

import pytest

from habitpulse.constants.categories import (
    DEFAULT_CATEGORY_COLOR,
    HABIT_CATEGORIES,
    category_color,
    normalize_category,
)
from habitpulse.services.metrics import clamp_percent, percent, round_half_up


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("physical", "physical"),
        ("  Sleep ", "sleep"),
        ("Fitness", "physical"),
        ("health", "physical"),
        ("mind", "mental"),
        ("social", "relationships"),
        ("finance", "financial"),
        ("productivity", "financial"),
        ("hobbies", "hobbies"),
        ("", "unknown"),
        ("   ", "unknown"),
        (None, "unknown"),
        (7, "7"),
    ],
)
def test_normalize_category(raw, expected):
    assert normalize_category(raw) == expected


def test_every_category_has_a_color():
    assert len({category_color(name) for name in HABIT_CATEGORIES}) == len(HABIT_CATEGORIES)
    assert category_color("fitness") == category_color("physical")
    assert category_color("hobbies") == DEFAULT_CATEGORY_COLOR


class TestMetrics:
    @pytest.mark.parametrize(
        ("value", "expected"),
        [(2.5, 3), (2.4, 2), (-2.5, -2), (-2.6, -3), (0.5, 1), (28.57, 29)],
    )
    def test_round_half_up(self, value, expected):
        assert round_half_up(value) == expected

    def test_percent(self):
        assert percent(1, 3) == 33
        assert percent(2, 3) == 67
        assert percent(1, 8) == 13
        assert percent(5, 0) == 0

    def test_clamp_percent(self):
        assert clamp_percent(-4) == 0
        assert clamp_percent(42) == 42
        assert clamp_percent(140) == 100
