"""Blueprint exports and request helpers shared by the API blueprints."""

from __future__ import annotations

from datetime import date

from flask import current_app, request

from ..config import BaseConfig
from ..errors import InvalidHabitDataError, UnauthorizedError
from ..services.completions import to_day

USER_HEADER = "X-User-Id"


def current_user_id() -> str:
    """Return the already-authenticated user id from the request header."""

    user_id = (request.headers.get(USER_HEADER) or "").strip()
    if not user_id:
        raise UnauthorizedError(f"Missing {USER_HEADER} header.")
    return user_id


def current_config() -> BaseConfig:
    return current_app.config["HABITPULSE_CONFIG"]


def date_arg(name: str, default: date | None = None) -> date:
    """Parse a ``YYYY-MM-DD`` query parameter, defaulting to today."""

    raw = request.args.get(name)
    if not raw:
        return default or date.today()
    try:
        return to_day(raw)
    except ValueError as exc:
        raise InvalidHabitDataError(
            f"Invalid date for '{name}'.", fields={name: ["Use YYYY-MM-DD."]}
        ) from exc


__all__ = ["USER_HEADER", "current_config", "current_user_id", "date_arg"]
