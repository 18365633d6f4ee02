"""Habit repository protocol."""

from __future__ import annotations

from datetime import date
from typing import Optional, Protocol

from ...models.habit import Habit, HabitCompletion


class HabitRepository(Protocol):
    """Repository for habits and their completion records, scoped per user."""

    def get_by_id(self, habit_id: str, *, user_id: str) -> Optional[Habit]:
        """Retrieve a habit by ID."""
        ...

    def list_all(self, *, user_id: str) -> list[Habit]:
        """List every habit owned by the user."""
        ...

    def list_user_ids(self) -> list[str]:
        """List users that own at least one habit."""
        ...

    def create(self, habit: Habit, *, user_id: str) -> Habit:
        """Create a new habit."""
        ...

    def update(self, habit: Habit, *, user_id: str) -> Habit:
        """Update an existing habit."""
        ...

    def delete(self, habit_id: str, *, user_id: str) -> bool:
        """Delete a habit and its completions; False when it did not exist."""
        ...

    def get_completion(self, habit_id: str, day: date, *, user_id: str) -> Optional[HabitCompletion]:
        ...

    def list_completions(
        self,
        *,
        user_id: str,
        habit_id: Optional[str] = None,
        start: Optional[date] = None,
        end: Optional[date] = None,
    ) -> list[HabitCompletion]:
        """List completion records, optionally for one habit and a date window."""
        ...

    def upsert_completion(self, completion: HabitCompletion, *, user_id: str) -> HabitCompletion:
        """Insert or update the record keyed by ``(habit_id, date)``."""
        ...

    def toggle_completion(
        self,
        habit_id: str,
        day: date,
        *,
        user_id: str,
        today: Optional[date] = None,
        grace_today: bool = True,
    ) -> tuple[HabitCompletion, Habit]:
        """Flip completion for one day and refresh the habit's stored streak."""
        ...

    def refresh_streaks(
        self, today: date, *, user_id: Optional[str] = None, grace_today: bool = True
    ) -> int:
        """Recompute stored streaks; returns the number of habits that changed."""
        ...
