"""Habit service helpers for streaks and weekly frequency targets."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, timedelta
from types import MappingProxyType
from typing import Any, Iterable, Sequence

from ..constants.categories import normalize_category
from ..models.habit import Habit
from .completions import CompletionIndex, field_value, to_day
from .metrics import clamp_percent, percent

logger = logging.getLogger("habitpulse.services.habits")

ONE_DAY = timedelta(days=1)
DAILY = "daily"

FREQUENCY_TARGETS = MappingProxyType(
    {
        "daily": 7,
        "2x-week": 2,
        "3x-week": 3,
        "4x-week": 4,
        "5x-week": 5,
        "6x-week": 6,
        "weekly": 1,
    }
)
DEFAULT_FREQUENCY_TARGET = 1
DEFAULT_MILESTONES = (3, 7, 14, 30, 60, 90, 180, 365)


@dataclass(frozen=True, slots=True)
class StreakMilestone:
    """Next streak milestone and progress toward it from the previous one."""

    next_milestone: int
    progress_percent: int


@dataclass(frozen=True, slots=True)
class WeeklyProgress:
    completed: int
    target: int

    @property
    def met(self) -> bool:
        return self.completed >= self.target


@dataclass(frozen=True, slots=True)
class HabitStreaks:
    """Current and longest streak for one habit."""

    habit_id: str
    current: int
    longest: int
    milestone: StreakMilestone

    def to_dict(self) -> dict[str, Any]:
        return {
            "habitId": self.habit_id,
            "currentStreak": self.current,
            "longestStreak": self.longest,
            "nextMilestone": self.milestone.next_milestone,
            "milestoneProgress": self.milestone.progress_percent,
        }


def _floor_day(created_at: Any) -> date | None:
    if created_at is None:
        return None
    try:
        return to_day(created_at)
    except ValueError:
        logger.debug("Ignoring unreadable created_at %r", created_at)
        return None


def compute_streak(
    habit_id: Any,
    completions: CompletionIndex | Iterable[Any],
    today: Any,
    *,
    created_at: Any = None,
    grace_today: bool = True,
) -> int:
    """Return the consecutive-day streak for ``habit_id`` ending at ``today``.

    With ``grace_today`` an unfinished today does not break the streak and the
    walk starts from yesterday. Days before ``created_at`` are never counted.
    """

    index = CompletionIndex.coerce(completions)
    floor = _floor_day(created_at)
    cursor = to_day(today)
    if grace_today and not index.is_completed(habit_id, cursor):
        cursor -= ONE_DAY

    streak = 0
    while (floor is None or cursor >= floor) and index.is_completed(habit_id, cursor):
        streak += 1
        cursor -= ONE_DAY
    return streak


def habit_streak(
    habit: Any,
    completions: CompletionIndex | Iterable[Any],
    today: Any,
    *,
    grace_today: bool = True,
) -> int:
    """Return ``compute_streak`` for a habit object or mapping."""

    return compute_streak(
        field_value(habit, "id"),
        completions,
        today,
        created_at=field_value(habit, "created_at"),
        grace_today=grace_today,
    )


def compute_longest_streak(
    habit_id: Any,
    completions: CompletionIndex | Iterable[Any],
    *,
    created_at: Any = None,
) -> int:
    """Return the longest run of consecutive completed days ever recorded."""

    index = CompletionIndex.coerce(completions)
    floor = _floor_day(created_at)
    days = sorted(d for d in index.completed_days(habit_id) if floor is None or d >= floor)

    longest = 0
    run = 0
    last_day: date | None = None
    for day in days:
        run = run + 1 if last_day is not None and day == last_day + ONE_DAY else 1
        longest = max(longest, run)
        last_day = day
    return longest


def streak_milestone_progress(
    current: int, milestones: Sequence[int] = DEFAULT_MILESTONES
) -> StreakMilestone:
    """Return the next milestone above ``current`` and progress toward it.

    Beyond the last milestone the next target is a week past the current streak.
    """

    current = max(0, current)
    next_milestone = next((m for m in milestones if m > current), current + 7)
    previous = max((m for m in milestones if m <= current), default=0)
    progress = clamp_percent(percent(current - previous, next_milestone - previous))
    return StreakMilestone(next_milestone=next_milestone, progress_percent=progress)


def summarize_streaks(
    habits: Iterable[Any],
    completions: CompletionIndex | Iterable[Any],
    today: Any,
    *,
    grace_today: bool = True,
) -> list[HabitStreaks]:
    index = CompletionIndex.coerce(completions)
    summaries: list[HabitStreaks] = []
    for habit in habits:
        habit_id = str(field_value(habit, "id"))
        current = habit_streak(habit, index, today, grace_today=grace_today)
        longest = compute_longest_streak(
            habit_id, index, created_at=field_value(habit, "created_at")
        )
        summaries.append(
            HabitStreaks(
                habit_id=habit_id,
                current=current,
                longest=max(longest, current),
                milestone=streak_milestone_progress(current),
            )
        )
    return summaries


def frequency_target(frequency: Any) -> int:
    """Map a frequency label to its weekly completion target (unknown -> 1)."""

    key = ("" if frequency is None else str(frequency)).strip().lower().replace("/", "-")
    if key.endswith("x"):
        key = f"{key}-week"
    target = FREQUENCY_TARGETS.get(key)
    if target is None:
        logger.debug("Unknown frequency %r; defaulting to %d", frequency, DEFAULT_FREQUENCY_TARGET)
        return DEFAULT_FREQUENCY_TARGET
    return target


def start_of_week(day: Any, *, week_starts_on: int = 0) -> date:
    """Return the first day of the week containing ``day`` (0 = Monday)."""

    day = to_day(day)
    return day - timedelta(days=(day.weekday() - week_starts_on) % 7)


def weekly_completion_count(
    habit: Any, completions: CompletionIndex | Iterable[Any], week_start: Any
) -> int:
    """Count distinct completed days in the 7-day window from ``week_start``."""

    index = CompletionIndex.coerce(completions)
    start = to_day(week_start)
    end = start + timedelta(days=6)
    floor = _floor_day(field_value(habit, "created_at"))
    days = index.completed_days(field_value(habit, "id"))
    return sum(1 for d in days if start <= d <= end and (floor is None or d >= floor))


def weekly_progress(
    habit: Any, completions: CompletionIndex | Iterable[Any], week_start: Any
) -> WeeklyProgress:
    return WeeklyProgress(
        completed=weekly_completion_count(habit, completions, week_start),
        target=frequency_target(field_value(habit, "frequency")),
    )


def has_met_weekly_frequency(
    habit: Any, completions: CompletionIndex | Iterable[Any], week_start: Any
) -> bool:
    """Return True when the habit reached its weekly target in that window."""

    return weekly_progress(habit, completions, week_start).met


def normalize_habit(habit: Habit) -> Habit:
    """Apply habit invariants in place: canonical category, daily is absolute."""

    habit.category = normalize_category(habit.category)
    habit.frequency = (habit.frequency or DAILY).strip().lower()
    if habit.frequency == DAILY:
        habit.is_absolute = True
    habit.streak = max(0, habit.streak or 0)
    return habit


__all__ = [
    "DEFAULT_MILESTONES",
    "FREQUENCY_TARGETS",
    "HabitStreaks",
    "StreakMilestone",
    "WeeklyProgress",
    "compute_longest_streak",
    "compute_streak",
    "frequency_target",
    "habit_streak",
    "has_met_weekly_frequency",
    "normalize_habit",
    "start_of_week",
    "streak_milestone_progress",
    "summarize_streaks",
    "weekly_completion_count",
    "weekly_progress",
]
