"""Completion index: calendar-day lookups over raw completion records.

Records may be ``HabitCompletion`` rows or plain mappings decoded from JSON
(``habitId``/``habit_id``, ``date``, ``completed``). Dates are compared by
calendar day only.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from datetime import date, datetime
from typing import Any, Iterable, Iterator

from ..models.habit import HabitCompletion

logger = logging.getLogger("habitpulse.services.completions")

_CAMEL_ALIASES = {
    "habit_id": "habitId",
    "is_absolute": "isAbsolute",
    "created_at": "createdAt",
    "user_id": "userId",
}


def field_value(record: Any, name: str, default: Any = None) -> Any:
    """Read ``name`` from a model instance or a (possibly camelCase) mapping."""

    if isinstance(record, Mapping):
        if name in record:
            return record[name]
        alias = _CAMEL_ALIASES.get(name)
        if alias is not None and alias in record:
            return record[alias]
        return default
    return getattr(record, name, default)


def to_day(value: Any) -> date:
    """Normalize a date, datetime or ISO-8601 string to a calendar day.

    Time-of-day (and any UTC offset) is dropped, not converted.
    """

    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        text = value.strip()
        if len(text) > 10 and text[10] in ("T", " "):
            text = text[:10]
        return date.fromisoformat(text)
    raise ValueError(f"Cannot interpret {value!r} as a calendar date")


def _key(record: Any) -> tuple[str, date]:
    return str(field_value(record, "habit_id")), to_day(field_value(record, "date"))


class CompletionIndex:
    """Authoritative ``(habit_id, day) -> completed`` view of completion records.

    Duplicate keys resolve last-write-wins. Records with an unreadable date are
    skipped so one bad row cannot break the rest of a user's data.
    """

    def __init__(self, completions: Iterable[Any] = ()) -> None:
        self._records: dict[tuple[str, date], Any] = {}
        self._by_habit: dict[str, dict[date, bool]] = {}
        for record in completions:
            try:
                key = _key(record)
            except (TypeError, ValueError):
                logger.warning("Skipping completion with unreadable date: %r", record)
                continue
            # pop first so a later duplicate moves to the end of insertion order
            self._records.pop(key, None)
            self._records[key] = record
            habit_id, day = key
            self._by_habit.setdefault(habit_id, {})[day] = bool(
                field_value(record, "completed", False)
            )

    @classmethod
    def coerce(cls, completions: "CompletionIndex | Iterable[Any]") -> "CompletionIndex":
        if isinstance(completions, cls):
            return completions
        return cls(completions)

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[Any]:
        return iter(self._records.values())

    def records(self) -> list[Any]:
        """Return the authoritative record for every key, in insertion order."""

        return list(self._records.values())

    def items(self) -> Iterator[tuple[tuple[str, date], Any]]:
        return iter(self._records.items())

    def is_completed(self, habit_id: Any, day: Any) -> bool:
        return self._by_habit.get(str(habit_id), {}).get(to_day(day), False)

    def completed_days(self, habit_id: Any) -> set[date]:
        days = self._by_habit.get(str(habit_id), {})
        return {day for day, completed in days.items() if completed}

    def completed_count(self) -> int:
        return sum(
            1 for days in self._by_habit.values() for completed in days.values() if completed
        )

    def habit_ids(self) -> set[str]:
        return set(self._by_habit)


def is_completed(habit_id: Any, day: Any, completions: Iterable[Any]) -> bool:
    """Return True when ``habit_id`` is marked completed on ``day``."""

    return CompletionIndex.coerce(completions).is_completed(habit_id, day)


def _flipped(record: Any) -> Any:
    completed = not bool(field_value(record, "completed", False))
    if isinstance(record, Mapping):
        return {**record, "completed": completed}
    return HabitCompletion(
        habit_id=str(field_value(record, "habit_id")),
        date=to_day(field_value(record, "date")),
        user_id=field_value(record, "user_id"),
        completed=completed,
    )


def toggle_completion(
    completions: Iterable[Any],
    habit_id: Any,
    day: Any,
    *,
    user_id: str | None = None,
) -> list[Any]:
    """Return a new completion list with ``(habit_id, day)`` toggled.

    The authoritative record for the key is replaced by a copy with its
    ``completed`` flag flipped; without one, a completed record is appended.
    Input records are never mutated.
    """

    target = (str(habit_id), to_day(day))
    result = list(completions)
    position = None
    for offset, record in enumerate(result):
        try:
            if _key(record) == target:
                position = offset
        except (TypeError, ValueError):
            continue

    if position is None:
        result.append(
            HabitCompletion(habit_id=target[0], date=target[1], user_id=user_id, completed=True)
        )
    else:
        result[position] = _flipped(result[position])
    return result


__all__ = [
    "CompletionIndex",
    "field_value",
    "is_completed",
    "to_day",
    "toggle_completion",
]
