"""Habit tracking data structures."""

from __future__ import annotations

import datetime as dt
from typing import ClassVar, Optional
from uuid import uuid4

from sqlmodel import Field, SQLModel


def _utcnow() -> dt.datetime:
    return dt.datetime.now(dt.timezone.utc)


class Habit(SQLModel, table=True):
    """A user-defined habit, either absolute (every day) or frequency based."""

    __tablename__: ClassVar[str] = "habit"

    id: str = Field(default_factory=lambda: uuid4().hex, primary_key=True, max_length=64)
    user_id: Optional[str] = Field(default=None, nullable=False, index=True, max_length=128)
    title: str = Field(nullable=False, max_length=100, index=True)
    description: str = Field(default="", max_length=400)
    category: str = Field(default="physical", max_length=32, index=True)
    frequency: str = Field(default="daily", max_length=16)
    is_absolute: bool = Field(default=True, nullable=False)
    impact: int = Field(default=5, nullable=False)
    effort: int = Field(default=5, nullable=False)
    streak: int = Field(default=0, nullable=False)
    created_at: dt.datetime = Field(default_factory=_utcnow, nullable=False)


class HabitCompletion(SQLModel, table=True):
    """Completion record for a habit on one calendar day.

    ``(habit_id, date)`` is the primary key so toggling is always an upsert.
    """

    __tablename__: ClassVar[str] = "habit_completion"

    habit_id: str = Field(primary_key=True, max_length=64)
    date: dt.date = Field(primary_key=True, index=True)
    user_id: Optional[str] = Field(default=None, nullable=False, index=True, max_length=128)
    completed: bool = Field(default=True, nullable=False)
    updated_at: dt.datetime = Field(default_factory=_utcnow, nullable=False)
