"""XP, levels and achievements derived from a user's habits and completions.

Nothing here is persisted: unlock state is re-evaluated on every call from the
current habits, completions and streaks.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, timedelta
from typing import Any, Iterable

from ..constants.categories import HABIT_CATEGORIES, normalize_category
from .completions import CompletionIndex, field_value, to_day
from .habits import habit_streak
from .metrics import clamp_percent, percent

ONE_DAY = timedelta(days=1)

HABIT_XP = 10
COMPLETION_XP = 5
STREAK_DAY_XP = 2
# (minimum streak, bonus); bonuses stack
STREAK_BONUSES = ((7, 25), (30, 100), (100, 500))


@dataclass(frozen=True, slots=True)
class Level:
    level: int
    title: str
    min_xp: int
    max_xp: int


LEVELS: tuple[Level, ...] = (
    Level(1, "Habit Novice", 0, 100),
    Level(2, "Habit Apprentice", 100, 250),
    Level(3, "Habit Enthusiast", 250, 500),
    Level(4, "Habit Builder", 500, 1000),
    Level(5, "Habit Expert", 1000, 2000),
    Level(6, "Habit Master", 2000, 3500),
    Level(7, "Habit Champion", 3500, 5500),
    Level(8, "Habit Elite", 5500, 8000),
    Level(9, "Habit Legend", 8000, 12000),
    Level(10, "Habit Guru", 12000, 20000),
)


@dataclass(frozen=True, slots=True)
class AchievementDefinition:
    id: str
    title: str
    description: str
    tier: str
    reward_xp: int
    metric: str
    threshold: int


ACHIEVEMENTS: tuple[AchievementDefinition, ...] = (
    AchievementDefinition(
        "first-habit", "First Steps", "Create your first habit", "beginner", 20, "habit_count", 1
    ),
    AchievementDefinition(
        "first-completion",
        "Getting Started",
        "Complete a habit for the first time",
        "beginner",
        15,
        "completion_count",
        1,
    ),
    AchievementDefinition(
        "three-day-streak",
        "Momentum Builder",
        "Achieve a 3-day streak with any habit",
        "beginner",
        25,
        "max_streak",
        3,
    ),
    AchievementDefinition(
        "five-habits", "Habit Collector", "Track 5 different habits", "intermediate", 50, "habit_count", 5
    ),
    AchievementDefinition(
        "week-streak",
        "Week Warrior",
        "Maintain a 7-day streak with any habit",
        "intermediate",
        75,
        "max_streak",
        7,
    ),
    AchievementDefinition(
        "fifty-completions",
        "Half Century",
        "Complete 50 habit check-ins",
        "intermediate",
        100,
        "completion_count",
        50,
    ),
    AchievementDefinition(
        "month-streak",
        "Monthly Master",
        "Maintain a 30-day streak with any habit",
        "advanced",
        300,
        "max_streak",
        30,
    ),
    AchievementDefinition(
        "all-categories",
        "Well Rounded",
        "Have at least one habit in each category",
        "advanced",
        250,
        "category_coverage",
        len(HABIT_CATEGORIES),
    ),
    AchievementDefinition(
        "ten-habits", "Habit Arsenal", "Track 10 different habits", "advanced", 200, "habit_count", 10
    ),
    AchievementDefinition(
        "hundred-day-streak",
        "Century Streak",
        "Maintain a 100-day streak with any habit",
        "master",
        1000,
        "max_streak",
        100,
    ),
    AchievementDefinition(
        "perfect-week",
        "Perfect Week",
        "Complete all daily habits for 7 consecutive days",
        "master",
        500,
        "perfect_days_run",
        7,
    ),
    AchievementDefinition(
        "thousand-completions",
        "Millennium Milestone",
        "Complete 1000 habit check-ins",
        "master",
        1500,
        "completion_count",
        1000,
    ),
)


@dataclass(frozen=True, slots=True)
class AchievementStatus:
    definition: AchievementDefinition
    current: int
    unlocked: bool
    progress_percent: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.definition.id,
            "title": self.definition.title,
            "description": self.definition.description,
            "tier": self.definition.tier,
            "xp": self.definition.reward_xp,
            "current": self.current,
            "threshold": self.definition.threshold,
            "unlocked": self.unlocked,
            "progress": self.progress_percent,
        }


@dataclass(frozen=True, slots=True)
class GamificationState:
    xp: int
    level: int
    level_title: str
    level_progress_percent: int
    next_level_xp: int
    xp_to_next_level: int
    achievements: tuple[AchievementStatus, ...]
    unlocked_count: int

    @property
    def achievement_progress_percent(self) -> int:
        return percent(self.unlocked_count, len(self.achievements))

    def to_dict(self) -> dict[str, Any]:
        return {
            "xp": self.xp,
            "level": self.level,
            "levelTitle": self.level_title,
            "levelProgress": self.level_progress_percent,
            "nextLevelXp": self.next_level_xp,
            "xpToNextLevel": self.xp_to_next_level,
            "achievements": [status.to_dict() for status in self.achievements],
            "unlockedCount": self.unlocked_count,
            "achievementProgress": self.achievement_progress_percent,
        }


def streak_xp(streak: int) -> int:
    """XP contributed by one habit's streak, milestone bonuses included."""

    streak = max(0, streak)
    bonus = sum(amount for minimum, amount in STREAK_BONUSES if streak >= minimum)
    return STREAK_DAY_XP * streak + bonus


def compute_xp(habit_count: int, completed_count: int, streaks: Iterable[int]) -> int:
    return (
        HABIT_XP * max(0, habit_count)
        + COMPLETION_XP * max(0, completed_count)
        + sum(streak_xp(streak) for streak in streaks)
    )


def resolve_level(xp: int) -> Level:
    """Return the level whose ``[min_xp, max_xp)`` band holds ``xp``."""

    for level in LEVELS:
        if level.min_xp <= xp < level.max_xp:
            return level
    return LEVELS[-1] if xp >= LEVELS[-1].max_xp else LEVELS[0]


def level_progress(xp: int, level: Level) -> int:
    return clamp_percent(percent(xp - level.min_xp, level.max_xp - level.min_xp))


def perfect_days_run(habits: Iterable[Any], completions: CompletionIndex | Iterable[Any]) -> int:
    """Longest run of consecutive days on which every absolute habit was done.

    A habit only counts toward a day once it exists (``created_at``); a day with
    no existing absolute habit is never perfect.
    """

    index = CompletionIndex.coerce(completions)
    absolute: list[tuple[str, date | None]] = []
    for habit in habits:
        if not field_value(habit, "is_absolute", False):
            continue
        created_at = field_value(habit, "created_at")
        try:
            floor = to_day(created_at) if created_at is not None else None
        except ValueError:
            floor = None
        absolute.append((str(field_value(habit, "id")), floor))
    if not absolute:
        return 0

    candidates = sorted(set().union(*(index.completed_days(hid) for hid, _ in absolute)))
    longest = 0
    run = 0
    last_day: date | None = None
    for day in candidates:
        required = [hid for hid, floor in absolute if floor is None or floor <= day]
        perfect = bool(required) and all(index.is_completed(hid, day) for hid in required)
        if not perfect:
            run = 0
            last_day = None
            continue
        run = run + 1 if last_day is not None and day == last_day + ONE_DAY else 1
        longest = max(longest, run)
        last_day = day
    return longest


def _category_coverage(habits: Iterable[Any]) -> int:
    present = {normalize_category(field_value(habit, "category")) for habit in habits}
    return sum(1 for category in HABIT_CATEGORIES if category in present)


def evaluate_achievements(metrics: dict[str, int]) -> tuple[AchievementStatus, ...]:
    statuses = []
    for definition in ACHIEVEMENTS:
        current = max(0, metrics.get(definition.metric, 0))
        unlocked = current >= definition.threshold
        progress = 100 if unlocked else min(100, percent(current, definition.threshold))
        statuses.append(
            AchievementStatus(
                definition=definition,
                current=current,
                unlocked=unlocked,
                progress_percent=progress,
            )
        )
    return tuple(statuses)


def derive_gamification(
    habits: Iterable[Any],
    completions: CompletionIndex | Iterable[Any],
    *,
    today: Any = None,
    grace_today: bool = True,
) -> GamificationState:
    """Derive XP, level and achievement state.

    With ``today`` the streaks are recomputed from ``completions``; without it
    each habit's stored ``streak`` field is trusted.
    """

    habits = list(habits)
    index = CompletionIndex.coerce(completions)
    if today is not None:
        streaks = [habit_streak(habit, index, today, grace_today=grace_today) for habit in habits]
    else:
        streaks = [max(0, int(field_value(habit, "streak", 0) or 0)) for habit in habits]

    completed_count = index.completed_count()
    xp = compute_xp(len(habits), completed_count, streaks)
    level = resolve_level(xp)

    achievements = evaluate_achievements(
        {
            "habit_count": len(habits),
            "completion_count": completed_count,
            "max_streak": max(streaks, default=0),
            "category_coverage": _category_coverage(habits),
            "perfect_days_run": perfect_days_run(habits, index),
        }
    )
    return GamificationState(
        xp=xp,
        level=level.level,
        level_title=level.title,
        level_progress_percent=level_progress(xp, level),
        next_level_xp=level.max_xp,
        xp_to_next_level=max(0, level.max_xp - xp),
        achievements=achievements,
        unlocked_count=sum(1 for status in achievements if status.unlocked),
    )


__all__ = [
    "ACHIEVEMENTS",
    "LEVELS",
    "AchievementDefinition",
    "AchievementStatus",
    "GamificationState",
    "Level",
    "compute_xp",
    "derive_gamification",
    "evaluate_achievements",
    "level_progress",
    "perfect_days_run",
    "resolve_level",
    "streak_xp",
]
