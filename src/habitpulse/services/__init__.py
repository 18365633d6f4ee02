"""Habit engine: completion lookups, streaks, statistics and gamification."""

from .completions import CompletionIndex, is_completed, to_day, toggle_completion
from .gamification import derive_gamification
from .habits import (
    compute_longest_streak,
    compute_streak,
    frequency_target,
    has_met_weekly_frequency,
    start_of_week,
    streak_milestone_progress,
)
from .stats import Timeframe, completion_rate_by_category, compute_stats

__all__ = [
    "CompletionIndex",
    "Timeframe",
    "completion_rate_by_category",
    "compute_longest_streak",
    "compute_stats",
    "compute_streak",
    "derive_gamification",
    "frequency_target",
    "has_met_weekly_frequency",
    "is_completed",
    "start_of_week",
    "streak_milestone_progress",
    "to_day",
    "toggle_completion",
]
