"""CSV export helpers for habits and completions."""

from __future__ import annotations

import csv
from datetime import date, datetime
from pathlib import Path
from typing import Any, Iterable, Sequence

from .completions import field_value

HABIT_COLUMNS = (
    "id",
    "title",
    "description",
    "category",
    "frequency",
    "is_absolute",
    "impact",
    "effort",
    "streak",
    "created_at",
)
COMPLETION_COLUMNS = ("habit_id", "date", "completed", "updated_at")


def _serialize_value(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _write_rows(rows: Iterable[Any], columns: Sequence[str], output_path: Path) -> Path:
    output_path.parent.mkdir(parents=True, exist_ok=True)
    # newline='' keeps csv from doubling line endings on Windows
    with output_path.open("w", newline="", encoding="utf-8") as fh:
        writer = csv.DictWriter(
            fh, fieldnames=list(columns), extrasaction="ignore", quoting=csv.QUOTE_MINIMAL
        )
        writer.writeheader()
        for record in rows:
            writer.writerow({name: _serialize_value(field_value(record, name)) for name in columns})
    return output_path


def export_habits_csv(*, habits: Iterable[Any], output_path: Path) -> Path:
    """Write habits to CSV at ``output_path`` with the fixed ``HABIT_COLUMNS`` order."""

    return _write_rows(habits, HABIT_COLUMNS, output_path)


def export_completions_csv(*, completions: Iterable[Any], output_path: Path) -> Path:
    """Write completion records to CSV, sorted by date then habit."""

    ordered = sorted(
        completions,
        key=lambda record: (
            _serialize_value(field_value(record, "date")),
            str(field_value(record, "habit_id")),
        ),
    )
    return _write_rows(ordered, COMPLETION_COLUMNS, output_path)


__all__ = ["COMPLETION_COLUMNS", "HABIT_COLUMNS", "export_completions_csv", "export_habits_csv"]
