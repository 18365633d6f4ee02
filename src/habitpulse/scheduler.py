"""Background scheduler keeping stored habit streaks current."""

from __future__ import annotations

from datetime import date
from typing import Callable

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.cron import CronTrigger

from .domain.repositories.habit import HabitRepository
from .logging_config import get_logger

logger = get_logger("scheduler")

STREAK_JOB_ID = "refresh_streaks"


class StreakScheduler:
    """Runs a daily job that recomputes every habit's stored streak.

    Stored streaks drift when a day passes without a toggle; the job brings
    them back in line with the completion records.
    """

    def __init__(
        self,
        repo: HabitRepository,
        *,
        hour: int = 0,
        minute: int = 5,
        grace_today: bool = True,
        clock: Callable[[], date] = date.today,
    ):
        self.repo = repo
        self.hour = hour
        self.minute = minute
        self.grace_today = grace_today
        self.clock = clock
        self.scheduler: BackgroundScheduler | None = None

    @property
    def running(self) -> bool:
        return self.scheduler is not None and self.scheduler.running

    def start(self) -> None:
        """Start the background scheduler."""
        if self.scheduler is not None:
            logger.warning("Scheduler already running")
            return

        self.scheduler = BackgroundScheduler(daemon=True)
        self.scheduler.add_job(
            func=self.refresh_streaks,
            trigger=CronTrigger(hour=self.hour, minute=self.minute),
            id=STREAK_JOB_ID,
            name="Daily streak refresh",
            replace_existing=True,
        )
        self.scheduler.start()
        logger.info("Scheduled streak refresh at %02d:%02d", self.hour, self.minute)

    def stop(self) -> None:
        """Stop the background scheduler gracefully."""
        if self.scheduler is not None:
            self.scheduler.shutdown(wait=True)
            self.scheduler = None
            logger.info("Background scheduler stopped")

    def refresh_streaks(self) -> int:
        """Recompute stored streaks for all users; failures are logged, not raised."""
        today = self.clock()
        try:
            changed = self.repo.refresh_streaks(today, grace_today=self.grace_today)
        except Exception:
            logger.exception("Scheduled streak refresh failed")
            return 0
        logger.info("Scheduled streak refresh updated %d habits", changed)
        return changed


def create_scheduler(
    repo: HabitRepository, *, auto_start: bool = False, **options
) -> StreakScheduler:
    """Create and optionally start a streak scheduler."""
    scheduler = StreakScheduler(repo, **options)
    if auto_start:
        scheduler.start()
    return scheduler


__all__ = ["STREAK_JOB_ID", "StreakScheduler", "create_scheduler"]
