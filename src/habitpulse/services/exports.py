"""Zip export bundle: habits and completions CSVs plus progress charts."""

from __future__ import annotations

import os
from datetime import date, datetime, timezone
from pathlib import Path
from tempfile import TemporaryDirectory
from zipfile import ZipFile

from ..domain.repositories.habit import HabitRepository
from ..logging_config import get_logger
from .export_csv import export_completions_csv, export_habits_csv
from .reports import export_category_png, export_progress_png
from .stats import Timeframe, compute_stats

logger = get_logger("services.exports")

EXPORT_RETENTION = 5
EXPORT_PREFIX = "habitpulse_export_"


def _ensure_secure_directory(directory: Path) -> None:
    """Create the directory and set restrictive permissions when possible."""

    directory.mkdir(parents=True, exist_ok=True)
    try:
        os.chmod(directory, 0o700)
    except (NotImplementedError, PermissionError):  # pragma: no cover - platform specific
        logger.debug("Could not restrict permissions on %s", directory)


def _prune_old_exports(directory: Path, keep: int = EXPORT_RETENTION) -> None:
    """Remove export archives beyond the retention count."""

    archives = sorted(
        directory.glob(f"{EXPORT_PREFIX}*.zip"),
        key=lambda file: file.stat().st_mtime,
        reverse=True,
    )
    for old in archives[keep:]:
        try:
            old.unlink()
        except OSError:  # pragma: no cover - best-effort cleanup
            logger.warning("Could not remove old export %s", old)


def run_export(
    repo: HabitRepository,
    *,
    user_id: str,
    output_dir: Path,
    today: date | None = None,
    timeframe: Timeframe | str = Timeframe.MONTH,
    week_starts_on: int = 0,
    grace_today: bool = True,
    keep: int = EXPORT_RETENTION,
) -> Path:
    """Write a zip of the user's data and charts into ``output_dir``; return its path."""

    today = today or date.today()
    output_dir = Path(output_dir)
    _ensure_secure_directory(output_dir)

    habits = repo.list_all(user_id=user_id)
    completions = repo.list_completions(user_id=user_id)
    stats = compute_stats(
        habits,
        completions,
        timeframe,
        today=today,
        week_starts_on=week_starts_on,
        grace_today=grace_today,
    )

    stamp = datetime.now(timezone.utc).strftime("%Y%m%dT%H%M%S%fZ")
    zip_path = output_dir / f"{EXPORT_PREFIX}{stamp}.zip"

    with TemporaryDirectory() as tmpdir:
        tmp = Path(tmpdir)
        artifacts = [
            export_habits_csv(habits=habits, output_path=tmp / "habits.csv"),
            export_completions_csv(completions=completions, output_path=tmp / "completions.csv"),
            export_progress_png(stats=stats, output_path=tmp / "progress.png"),
            export_category_png(stats=stats, output_path=tmp / "categories.png"),
        ]
        with ZipFile(zip_path, "w") as archive:
            for artifact in artifacts:
                archive.write(artifact, arcname=artifact.name)

    _prune_old_exports(output_dir, keep=keep)
    logger.info(
        "Export written",
        extra={"user_id": user_id, "path": str(zip_path), "habits": len(habits)},
    )
    return zip_path


__all__ = ["EXPORT_RETENTION", "run_export"]
