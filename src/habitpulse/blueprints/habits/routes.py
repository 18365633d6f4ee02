"""Habit CRUD and completion toggle endpoints."""

from __future__ import annotations

from flask import jsonify, request

from ...errors import HabitNotFoundError
from ...extensions import get_repository
from ...logging_config import get_logger
from ...models.habit import Habit
from ...services.habits import start_of_week, weekly_progress
from .. import current_config, current_user_id, date_arg
from ..serializers import completion_to_dict, habit_to_dict
from . import bp
from .forms import HabitPayload, HabitUpdatePayload, TogglePayload, parse_payload

logger = get_logger("blueprints.habits")


def _require_habit(habit_id: str, user_id: str) -> Habit:
    habit = get_repository().get_by_id(habit_id, user_id=user_id)
    if habit is None:
        raise HabitNotFoundError(f"Habit {habit_id} not found.")
    return habit


@bp.get("")
def list_habits():
    """Return every habit and completion record for the user."""

    user_id = current_user_id()
    repo = get_repository()
    habits = repo.list_all(user_id=user_id)
    completions = repo.list_completions(user_id=user_id)
    return jsonify(
        {
            "habits": [habit_to_dict(habit) for habit in habits],
            "completions": [completion_to_dict(record) for record in completions],
        }
    )


@bp.post("")
def create_habit():
    user_id = current_user_id()
    payload = parse_payload(HabitPayload, request.get_json(silent=True))
    habit = get_repository().create(Habit(**payload.model_dump()), user_id=user_id)
    return jsonify(habit_to_dict(habit)), 201


@bp.get("/<habit_id>")
def get_habit(habit_id: str):
    return jsonify(habit_to_dict(_require_habit(habit_id, current_user_id())))


@bp.patch("/<habit_id>")
def update_habit(habit_id: str):
    """Apply a partial update; omitted fields keep their stored values."""

    user_id = current_user_id()
    payload = parse_payload(HabitUpdatePayload, request.get_json(silent=True))
    habit = _require_habit(habit_id, user_id)
    for name, value in payload.changes().items():
        setattr(habit, name, value)
    updated = get_repository().update(habit, user_id=user_id)
    return jsonify(habit_to_dict(updated))


@bp.delete("/<habit_id>")
def delete_habit(habit_id: str):
    if not get_repository().delete(habit_id, user_id=current_user_id()):
        raise HabitNotFoundError(f"Habit {habit_id} not found.")
    return "", 204


@bp.post("/<habit_id>/toggle")
def toggle_habit(habit_id: str):
    """Toggle completion for the requested day and return the refreshed streak."""

    user_id = current_user_id()
    payload = parse_payload(TogglePayload, request.get_json(silent=True))
    config = current_config()
    completion, habit = get_repository().toggle_completion(
        habit_id,
        payload.date,
        user_id=user_id,
        today=date_arg("today"),
        grace_today=config.STREAK_GRACE_TODAY,
    )
    return jsonify({"completion": completion_to_dict(completion), "streak": habit.streak})


@bp.get("/<habit_id>/weekly")
def habit_weekly(habit_id: str):
    """Weekly target progress for the week containing ``week_start`` (default today)."""

    user_id = current_user_id()
    habit = _require_habit(habit_id, user_id)
    week_start = start_of_week(
        date_arg("week_start"), week_starts_on=current_config().WEEK_STARTS_ON
    )
    completions = get_repository().list_completions(user_id=user_id, habit_id=habit_id)
    progress = weekly_progress(habit, completions, week_start)
    return jsonify(
        {
            "habitId": habit.id,
            "weekStart": week_start.isoformat(),
            "completed": progress.completed,
            "target": progress.target,
            "met": progress.met,
        }
    )
