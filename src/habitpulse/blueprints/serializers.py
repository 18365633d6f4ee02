"""camelCase JSON shapes for habits and completions."""

from __future__ import annotations

from typing import Any

from ..models.habit import Habit, HabitCompletion


def habit_to_dict(habit: Habit) -> dict[str, Any]:
    return {
        "id": habit.id,
        "userId": habit.user_id,
        "title": habit.title,
        "description": habit.description,
        "category": habit.category,
        "frequency": habit.frequency,
        "isAbsolute": habit.is_absolute,
        "impact": habit.impact,
        "effort": habit.effort,
        "streak": habit.streak,
        "createdAt": habit.created_at.isoformat() if habit.created_at else None,
    }


def completion_to_dict(completion: HabitCompletion) -> dict[str, Any]:
    return {
        "habitId": completion.habit_id,
        "userId": completion.user_id,
        "date": completion.date.isoformat(),
        "completed": completion.completed,
        "updatedAt": completion.updated_at.isoformat() if completion.updated_at else None,
    }


__all__ = ["completion_to_dict", "habit_to_dict"]
