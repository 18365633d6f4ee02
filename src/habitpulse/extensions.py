"""Database and repository wiring for the Flask app."""

from __future__ import annotations

from typing import ContextManager

from flask import Flask, current_app, g
from sqlalchemy.engine import Engine
from sqlmodel import Session

from .config import BaseConfig
from .infra.database import SessionFactory, bootstrap_database
from .infra.repositories.habit import SQLModelHabitRepository

ENGINE_KEY = "habitpulse.engine"
SESSION_FACTORY_KEY = "habitpulse.session_factory"


def init_db(app: Flask) -> None:
    """Create the engine, ensure the schema and expose a per-request repository."""

    config: BaseConfig = app.config["HABITPULSE_CONFIG"]
    engine, session_factory = bootstrap_database(config)
    app.extensions[ENGINE_KEY] = engine
    app.extensions[SESSION_FACTORY_KEY] = session_factory

    @app.teardown_appcontext
    def _release_repository(exception: BaseException | None) -> None:  # pragma: no cover
        g.pop("habit_repository", None)


def get_engine(app: Flask | None = None) -> Engine:
    """Return the initialized SQLModel engine."""

    app = app or current_app
    try:
        return app.extensions[ENGINE_KEY]
    except KeyError as exc:  # pragma: no cover - init_db always runs in create_app
        raise RuntimeError("Database engine not initialized") from exc


def get_session_factory(app: Flask | None = None) -> SessionFactory:
    app = app or current_app
    return app.extensions[SESSION_FACTORY_KEY]


def session_scope() -> ContextManager[Session]:
    """Provide a transactional scope around operations on the app's engine."""

    return get_session_factory()()


def get_repository() -> SQLModelHabitRepository:
    """Return the habit repository bound to the current app, cached on ``g``."""

    if "habit_repository" not in g:
        g.habit_repository = SQLModelHabitRepository(get_session_factory())
    return g.habit_repository
