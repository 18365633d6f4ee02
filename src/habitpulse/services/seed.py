"""Demo data seeding."""

from __future__ import annotations

from datetime import date, datetime, time, timedelta, timezone

from ..domain.repositories.habit import HabitRepository
from ..logging_config import get_logger
from ..models.habit import Habit, HabitCompletion

logger = get_logger("services.seed")

DEMO_HISTORY_DAYS = 30

# (title, category, frequency, impact, effort, skip_every); skip_every=0 never misses
DEMO_HABITS = (
    ("Morning run", "physical", "3x-week", 8, 6, 0),
    ("Eat a vegetable with lunch", "nutrition", "daily", 6, 3, 9),
    ("Lights out by 23:00", "sleep", "daily", 7, 5, 4),
    ("Ten minutes of meditation", "mental", "daily", 7, 2, 0),
    ("Call a friend", "relationships", "weekly", 5, 3, 0),
    ("Review spending", "financial", "2x-week", 6, 4, 0),
)

_WEEKLY_DAYS = {"3x-week": (0, 2, 4), "2x-week": (1, 5), "weekly": (6,)}


def _is_demo_completion(frequency: str, skip_every: int, day: date, offset: int) -> bool:
    if frequency in _WEEKLY_DAYS:
        return day.weekday() in _WEEKLY_DAYS[frequency]
    return not (skip_every and offset % skip_every == skip_every - 1)


def run_demo_seed(repo: HabitRepository, *, user_id: str, today: date | None = None) -> int:
    """Seed demo habits with a month of history for ``user_id``.

    Idempotent: a user who already has habits is left untouched. Returns the
    number of habits created.
    """

    if repo.list_all(user_id=user_id):
        logger.info("Demo seed skipped; user already has habits", extra={"user_id": user_id})
        return 0

    today = today or date.today()
    start = today - timedelta(days=DEMO_HISTORY_DAYS - 1)
    created_at = datetime.combine(start, time.min, tzinfo=timezone.utc)

    for title, category, frequency, impact, effort, skip_every in DEMO_HABITS:
        habit = repo.create(
            Habit(
                title=title,
                category=category,
                frequency=frequency,
                is_absolute=frequency == "daily",
                impact=impact,
                effort=effort,
                created_at=created_at,
            ),
            user_id=user_id,
        )
        for offset in range(DEMO_HISTORY_DAYS):
            day = start + timedelta(days=offset)
            if _is_demo_completion(frequency, skip_every, day, offset):
                repo.upsert_completion(
                    HabitCompletion(habit_id=habit.id, date=day, completed=True),
                    user_id=user_id,
                )

    repo.refresh_streaks(today, user_id=user_id)
    logger.info("Demo seed completed", extra={"user_id": user_id, "habits": len(DEMO_HABITS)})
    return len(DEMO_HABITS)


__all__ = ["DEMO_HABITS", "run_demo_seed"]
