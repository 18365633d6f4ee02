"""HabitPulse application factory."""

from __future__ import annotations

from importlib import import_module
from typing import Iterable

from flask import Flask

from . import cli as _cli
from .config import CONFIG_MAP, BaseConfig
from .errors import register_error_handlers
from .logging_config import setup_logging


def _resolve_config(name: str | None) -> type[BaseConfig]:
    """Return the config class for the provided environment name."""

    if not name:
        return BaseConfig
    return CONFIG_MAP.get(name.lower(), BaseConfig)


def _blueprint_paths() -> Iterable[str]:
    """Yield blueprint import paths."""

    yield "habitpulse.blueprints.habits"
    yield "habitpulse.blueprints.progress"


def create_app(config_name: str | None = None) -> Flask:
    """Create and configure the Flask application instance."""

    app = Flask(__name__, instance_relative_config=True)
    config_obj = _resolve_config(config_name)()
    app.config.from_object(config_obj)
    app.config["SQLALCHEMY_ENGINE_OPTIONS"] = config_obj.sqlalchemy_engine_options()
    app.config["HABITPULSE_CONFIG"] = config_obj
    app.json.sort_keys = False

    logger = setup_logging(config_obj)

    # imported here so model classes can be used without building an engine
    from .extensions import get_session_factory, init_db

    init_db(app)
    register_error_handlers(app)
    _register_blueprints(app)
    _cli.init_app(app)

    if config_obj.ENABLE_SCHEDULER:
        from .infra.repositories.habit import SQLModelHabitRepository
        from .scheduler import create_scheduler

        app.extensions["habitpulse.scheduler"] = create_scheduler(
            SQLModelHabitRepository(get_session_factory(app)),
            auto_start=True,
            hour=config_obj.STREAK_REFRESH_HOUR,
            grace_today=config_obj.STREAK_GRACE_TODAY,
        )

    logger.info("Application created", extra={"config": type(config_obj).__name__})
    return app


def _register_blueprints(app: Flask) -> None:
    """Import and register all blueprints declared in `_blueprint_paths`."""

    for dotted_path in _blueprint_paths():
        module = import_module(dotted_path)
        app.register_blueprint(getattr(module, "bp"))


__all__ = ["create_app"]
