"""SQLModel table exports."""

from .habit import Habit, HabitCompletion

__all__ = [
    "Habit",
    "HabitCompletion",
]
