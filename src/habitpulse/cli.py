"""Flask CLI commands for HabitPulse."""

from __future__ import annotations

from datetime import date, datetime
from pathlib import Path

import click
from flask import current_app

from .services.stats import Timeframe

_DATE = click.DateTime(formats=["%Y-%m-%d"])


def _day(value: datetime | None) -> date:
    return value.date() if value is not None else date.today()


def _repository():
    from .infra.repositories.habit import SQLModelHabitRepository
    from .extensions import get_session_factory

    return SQLModelHabitRepository(get_session_factory())


def init_app(app) -> None:
    """Register CLI commands on the Flask app."""

    @app.cli.command("habitpulse-seed")
    @click.option("--user", "user_id", required=True, help="User id to seed demo habits for")
    @click.option("--today", type=_DATE, default=None, help="Anchor date (YYYY-MM-DD)")
    def habitpulse_seed(user_id: str, today: datetime | None) -> None:
        """Seed demo habits and a month of completions."""

        from .services.seed import run_demo_seed

        created = run_demo_seed(_repository(), user_id=user_id, today=_day(today))
        if created:
            click.echo(f"Seeded {created} demo habits for {user_id}.")
        else:
            click.echo(f"{user_id} already has habits; nothing seeded.")

    @app.cli.command("habitpulse-refresh-streaks")
    @click.option("--user", "user_id", default=None, help="Limit to one user")
    @click.option("--today", type=_DATE, default=None, help="Anchor date (YYYY-MM-DD)")
    def habitpulse_refresh_streaks(user_id: str | None, today: datetime | None) -> None:
        """Recompute stored streaks from completion records."""

        config = current_app.config["HABITPULSE_CONFIG"]
        changed = _repository().refresh_streaks(
            _day(today), user_id=user_id, grace_today=config.STREAK_GRACE_TODAY
        )
        click.echo(f"Updated {changed} habit streaks.")

    @app.cli.command("habitpulse-export")
    @click.option("--user", "user_id", required=True, help="User id to export")
    @click.option(
        "--output-dir",
        type=click.Path(file_okay=False, path_type=Path),
        default=None,
        help="Directory for the zip (defaults to <DATA_DIR>/exports)",
    )
    @click.option(
        "--timeframe",
        type=click.Choice([tf.value for tf in Timeframe]),
        default=Timeframe.MONTH.value,
        show_default=True,
    )
    @click.option("--today", type=_DATE, default=None, help="Anchor date (YYYY-MM-DD)")
    def habitpulse_export(
        user_id: str, output_dir: Path | None, timeframe: str, today: datetime | None
    ) -> None:
        """Export habits, completions and charts into a zip file."""

        from .services.exports import run_export

        config = current_app.config["HABITPULSE_CONFIG"]
        click.echo("Starting export...")
        path = run_export(
            _repository(),
            user_id=user_id,
            output_dir=output_dir or Path(config.DATA_DIR) / "exports",
            today=_day(today),
            timeframe=timeframe,
            week_starts_on=config.WEEK_STARTS_ON,
            grace_today=config.STREAK_GRACE_TODAY,
            keep=config.EXPORT_RETENTION,
        )
        click.echo(f"Export written: {path}")
