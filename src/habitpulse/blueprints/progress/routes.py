"""Read-only progress endpoints: stats, streaks, categories and gamification."""

from __future__ import annotations

from flask import jsonify, request

from ...errors import InvalidHabitDataError
from ...extensions import get_repository
from ...services.completions import CompletionIndex
from ...services.gamification import derive_gamification
from ...services.habits import summarize_streaks
from ...services.stats import Timeframe, category_progress, category_window, compute_stats
from .. import current_config, current_user_id, date_arg
from . import bp


def _load(user_id: str):
    repo = get_repository()
    habits = repo.list_all(user_id=user_id)
    return habits, CompletionIndex(repo.list_completions(user_id=user_id))


def _timeframe_arg() -> Timeframe:
    raw = (request.args.get("timeframe") or Timeframe.WEEK.value).strip().lower()
    try:
        return Timeframe(raw)
    except ValueError as exc:
        allowed = [tf.value for tf in Timeframe]
        raise InvalidHabitDataError(
            f"Unknown timeframe '{raw}'.", fields={"timeframe": [f"Use one of {allowed}."]}
        ) from exc


@bp.get("/stats")
def progress_stats():
    timeframe = _timeframe_arg()
    today = date_arg("today")
    config = current_config()
    habits, index = _load(current_user_id())
    stats = compute_stats(
        habits,
        index,
        timeframe,
        today=today,
        week_starts_on=config.WEEK_STARTS_ON,
        grace_today=config.STREAK_GRACE_TODAY,
    )
    return jsonify(stats.to_dict())


@bp.get("/streaks")
def progress_streaks():
    today = date_arg("today")
    habits, index = _load(current_user_id())
    summaries = summarize_streaks(
        habits, index, today, grace_today=current_config().STREAK_GRACE_TODAY
    )
    return jsonify({"today": today.isoformat(), "streaks": [item.to_dict() for item in summaries]})


@bp.get("/categories")
def progress_categories():
    end = date_arg("end")
    start = date_arg("start", category_window(end).start)
    if start > end:
        raise InvalidHabitDataError(
            "Start date must not be after end date.", fields={"start": ["Must be on or before end."]}
        )
    habits, index = _load(current_user_id())
    categories = category_progress(
        habits, index, start, end, week_starts_on=current_config().WEEK_STARTS_ON
    )
    return jsonify(
        {
            "start": start.isoformat(),
            "end": end.isoformat(),
            "categories": [item.to_dict() for item in categories],
        }
    )


@bp.get("/gamification")
def progress_gamification():
    today = date_arg("today")
    habits, index = _load(current_user_id())
    state = derive_gamification(
        habits, index, today=today, grace_today=current_config().STREAK_GRACE_TODAY
    )
    return jsonify(state.to_dict())
