"""Application configuration objects and helpers."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

from dotenv import load_dotenv

load_dotenv()

WEEKDAY_NAMES = ("monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday")


def _env_bool(name: str, default: bool = False) -> bool:
    """Interpret environment variable values as booleans."""

    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    try:
        return int(value)
    except ValueError as exc:
        raise ValueError(f"{name} must be an integer, got {value!r}.") from exc


def parse_week_start(value: str | int | None) -> int:
    """Return a weekday index (0 = Monday) from a name, prefix or number."""

    if value is None or value == "":
        return 0
    if isinstance(value, int):
        index = value
    else:
        text = value.strip().lower()
        if text.isdigit():
            index = int(text)
        else:
            matches = [i for i, name in enumerate(WEEKDAY_NAMES) if name.startswith(text[:3])]
            if len(text) < 3 or not matches:
                raise ValueError(f"Unknown week start day: {value!r}")
            index = matches[0]
    if not 0 <= index <= 6:
        raise ValueError(f"Week start must be between 0 and 6, got {index}.")
    return index


class BaseConfig:
    """Base configuration shared across environments."""

    APP_NAME = "HabitPulse"
    DB_FILENAME = "habitpulse.db"
    EXPORT_RETENTION = 5
    DEBUG = False
    TESTING = False

    def __init__(self) -> None:
        self.SECRET_KEY = os.getenv("HABITPULSE_SECRET_KEY", "replace-me")
        self.DEV_MODE = _env_bool("HABITPULSE_DEV_MODE", default=True)
        self.DATA_DIR = self._resolve_data_dir()
        self.DATABASE_URL = os.getenv("HABITPULSE_DATABASE_URL", self._build_sqlite_url())
        self.WEEK_STARTS_ON = parse_week_start(os.getenv("HABITPULSE_WEEK_STARTS_ON", "monday"))
        self.STREAK_GRACE_TODAY = _env_bool("HABITPULSE_STREAK_GRACE_TODAY", default=True)
        self.ENABLE_SCHEDULER = _env_bool("HABITPULSE_ENABLE_SCHEDULER", default=False)
        self.STREAK_REFRESH_HOUR = _env_int("HABITPULSE_STREAK_REFRESH_HOUR", 0)
        if not 0 <= self.STREAK_REFRESH_HOUR <= 23:
            raise ValueError("HABITPULSE_STREAK_REFRESH_HOUR must be between 0 and 23.")
        if not self.DEV_MODE and self.SECRET_KEY == "replace-me":
            raise ValueError("HABITPULSE_SECRET_KEY must be set in non-dev mode.")

    def _resolve_data_dir(self) -> Path:
        """Return the directory holding the SQLite file, logs and exports."""

        data_root = os.getenv("HABITPULSE_DATA_DIR", "instance")
        path = Path(data_root).expanduser().resolve()
        path.mkdir(parents=True, exist_ok=True)
        return path

    def _build_sqlite_url(self) -> str:
        return f"sqlite:///{self.DATA_DIR / self.DB_FILENAME}"

    def sqlalchemy_engine_options(self) -> dict[str, Any]:
        """Expose engine kwargs for SQLModel to consume."""

        if self.DATABASE_URL.startswith("sqlite"):
            return {"connect_args": {"check_same_thread": False}}
        return {"pool_pre_ping": True}


class DevConfig(BaseConfig):
    """Development configuration using local SQLite."""

    DEBUG = True
    TESTING = False


class TestConfig(BaseConfig):
    """Configuration for the test suite; never starts background jobs."""

    TESTING = True

    def __init__(self) -> None:
        super().__init__()
        self.ENABLE_SCHEDULER = False


CONFIG_MAP: dict[str, type[BaseConfig]] = {
    "development": DevConfig,
    "testing": TestConfig,
    "default": BaseConfig,
}
