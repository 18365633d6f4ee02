"""SQLModel implementation of the habit repository."""

from __future__ import annotations

import datetime as dt
from typing import Callable, Optional, TypeVar

from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from ...errors import HabitNotFoundError
from ...logging_config import get_logger
from ...models.habit import Habit, HabitCompletion
from ...services.habits import compute_streak, normalize_habit
from ..database import SessionFactory

logger = get_logger("infra.repositories.habit")

T = TypeVar("T")

# retries after losing a (habit_id, date) insert race
CONFLICT_RETRIES = 2

UPDATABLE_FIELDS = (
    "title",
    "description",
    "category",
    "frequency",
    "is_absolute",
    "impact",
    "effort",
)


def _utcnow() -> dt.datetime:
    return dt.datetime.now(dt.timezone.utc)


class SQLModelHabitRepository:
    """SQLModel-based habit repository implementation."""

    def __init__(self, session_factory: SessionFactory):
        """Initialize with a session factory."""
        self.session_factory = session_factory

    @staticmethod
    def _owned(session: Session, habit_id: str, user_id: str) -> Optional[Habit]:
        return session.exec(
            select(Habit).where(Habit.id == habit_id, Habit.user_id == user_id)
        ).first()

    @staticmethod
    def _refresh_streak(
        session: Session, habit: Habit, today: dt.date, grace_today: bool
    ) -> bool:
        rows = session.exec(
            select(HabitCompletion).where(HabitCompletion.habit_id == habit.id)
        ).all()
        streak = compute_streak(
            habit.id, rows, today, created_at=habit.created_at, grace_today=grace_today
        )
        if streak == habit.streak:
            return False
        habit.streak = streak
        session.add(habit)
        return True

    @staticmethod
    def _retry_on_conflict(operation: Callable[[], T], *, habit_id: str, day: dt.date) -> T:
        """Run ``operation``, re-running it when a concurrent insert of the same
        ``(habit_id, date)`` row wins the race; the retry then sees that row."""
        attempt = 0
        while True:
            try:
                return operation()
            except IntegrityError:
                attempt += 1
                if attempt > CONFLICT_RETRIES:
                    raise
                logger.info(
                    "Completion row inserted concurrently; retrying",
                    extra={"habit_id": habit_id, "date": day.isoformat(), "attempt": attempt},
                )

    def get_by_id(self, habit_id: str, *, user_id: str) -> Optional[Habit]:
        """Retrieve a habit by ID."""
        with self.session_factory() as session:
            obj = self._owned(session, habit_id, user_id)
            if obj:
                session.expunge(obj)
            return obj

    def list_all(self, *, user_id: str) -> list[Habit]:
        """List all habits owned by ``user_id``, oldest first."""
        with self.session_factory() as session:
            statement = (
                select(Habit)
                .where(Habit.user_id == user_id)
                .order_by(Habit.created_at, Habit.title)  # type: ignore[arg-type]
            )
            rows = list(session.exec(statement).all())
            session.expunge_all()
            return rows

    def list_user_ids(self) -> list[str]:
        with self.session_factory() as session:
            return sorted(session.exec(select(Habit.user_id).distinct()).all())

    def create(self, habit: Habit, *, user_id: str) -> Habit:
        """Create a new habit."""
        with self.session_factory() as session:
            habit.user_id = user_id
            normalize_habit(habit)
            session.add(habit)
            session.commit()
            session.refresh(habit)
            session.expunge(habit)
        logger.info("Created habit", extra={"habit_id": habit.id, "user_id": user_id})
        return habit

    def update(self, habit: Habit, *, user_id: str) -> Habit:
        """Copy editable fields from ``habit`` onto the stored row."""
        with self.session_factory() as session:
            existing = self._owned(session, habit.id, user_id)
            if existing is None:
                raise HabitNotFoundError(f"Habit {habit.id} not found.")
            for name in UPDATABLE_FIELDS:
                setattr(existing, name, getattr(habit, name))
            normalize_habit(existing)
            session.add(existing)
            session.commit()
            session.refresh(existing)
            session.expunge(existing)
        logger.info("Updated habit", extra={"habit_id": existing.id, "user_id": user_id})
        return existing

    def delete(self, habit_id: str, *, user_id: str) -> bool:
        """Delete a habit and all of its completion records."""
        with self.session_factory() as session:
            habit = self._owned(session, habit_id, user_id)
            if habit is None:
                return False
            for completion in session.exec(
                select(HabitCompletion).where(HabitCompletion.habit_id == habit_id)
            ).all():
                session.delete(completion)
            session.delete(habit)
            session.commit()
        logger.info("Deleted habit", extra={"habit_id": habit_id, "user_id": user_id})
        return True

    def get_completion(
        self, habit_id: str, day: dt.date, *, user_id: str
    ) -> Optional[HabitCompletion]:
        with self.session_factory() as session:
            obj = session.exec(
                select(HabitCompletion)
                .where(HabitCompletion.user_id == user_id)
                .where(HabitCompletion.habit_id == habit_id)
                .where(HabitCompletion.date == day)
            ).first()
            if obj:
                session.expunge(obj)
            return obj

    def list_completions(
        self,
        *,
        user_id: str,
        habit_id: Optional[str] = None,
        start: Optional[dt.date] = None,
        end: Optional[dt.date] = None,
    ) -> list[HabitCompletion]:
        """List completion records ordered by date."""
        with self.session_factory() as session:
            statement = select(HabitCompletion).where(HabitCompletion.user_id == user_id)
            if habit_id is not None:
                statement = statement.where(HabitCompletion.habit_id == habit_id)
            if start is not None:
                statement = statement.where(HabitCompletion.date >= start)
            if end is not None:
                statement = statement.where(HabitCompletion.date <= end)
            statement = statement.order_by(HabitCompletion.date, HabitCompletion.habit_id)  # type: ignore[arg-type]
            rows = list(session.exec(statement).all())
            session.expunge_all()
            return rows

    def upsert_completion(self, completion: HabitCompletion, *, user_id: str) -> HabitCompletion:
        """Insert or update the record keyed by ``(habit_id, date)``; last write wins."""
        return self._retry_on_conflict(
            lambda: self._upsert_once(completion, user_id=user_id),
            habit_id=completion.habit_id,
            day=completion.date,
        )

    def _upsert_once(self, completion: HabitCompletion, *, user_id: str) -> HabitCompletion:
        with self.session_factory() as session:
            if self._owned(session, completion.habit_id, user_id) is None:
                raise HabitNotFoundError(f"Habit {completion.habit_id} not found.")
            existing = session.get(HabitCompletion, (completion.habit_id, completion.date))
            if existing is not None:
                existing.completed = completion.completed
                existing.updated_at = _utcnow()
                target = existing
            else:
                completion.user_id = user_id
                target = completion
            session.add(target)
            session.commit()
            session.refresh(target)
            session.expunge(target)
            return target

    def toggle_completion(
        self,
        habit_id: str,
        day: dt.date,
        *,
        user_id: str,
        today: Optional[dt.date] = None,
        grace_today: bool = True,
    ) -> tuple[HabitCompletion, Habit]:
        """Flip completion for ``day`` and refresh the stored streak in one transaction.

        Two first toggles of the same day can race to insert the row; the loser
        rolls back and flips the row the winner stored.
        """
        completion, habit = self._retry_on_conflict(
            lambda: self._toggle_once(
                habit_id, day, user_id=user_id, today=today, grace_today=grace_today
            ),
            habit_id=habit_id,
            day=day,
        )

        logger.info(
            "Toggled completion",
            extra={
                "habit_id": habit_id,
                "date": day.isoformat(),
                "completed": completion.completed,
                "streak": habit.streak,
            },
        )
        return completion, habit

    def _toggle_once(
        self,
        habit_id: str,
        day: dt.date,
        *,
        user_id: str,
        today: Optional[dt.date],
        grace_today: bool,
    ) -> tuple[HabitCompletion, Habit]:
        with self.session_factory() as session:
            habit = self._owned(session, habit_id, user_id)
            if habit is None:
                raise HabitNotFoundError(f"Habit {habit_id} not found.")

            completion = session.get(HabitCompletion, (habit_id, day))
            if completion is None:
                completion = HabitCompletion(habit_id=habit_id, date=day, user_id=user_id)
            else:
                completion.completed = not completion.completed
                completion.updated_at = _utcnow()
            session.add(completion)
            session.flush()

            self._refresh_streak(session, habit, today or dt.date.today(), grace_today)
            session.commit()
            session.refresh(completion)
            session.refresh(habit)
            session.expunge(completion)
            session.expunge(habit)
        return completion, habit

    def refresh_streaks(
        self, today: dt.date, *, user_id: Optional[str] = None, grace_today: bool = True
    ) -> int:
        """Recompute stored streaks for one user (or everyone)."""
        with self.session_factory() as session:
            statement = select(Habit)
            if user_id is not None:
                statement = statement.where(Habit.user_id == user_id)
            changed = sum(
                1
                for habit in session.exec(statement).all()
                if self._refresh_streak(session, habit, today, grace_today)
            )
            session.commit()
        logger.info("Refreshed streaks", extra={"changed": changed, "today": today.isoformat()})
        return changed


__all__ = ["SQLModelHabitRepository"]
