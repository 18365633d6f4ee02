"""Pytest configuration and shared fixtures for HabitPulse tests.

Provides an isolated temporary SQLite database, a repository bound to it,
factories for habits and completions, and a Flask test client.
"""

from __future__ import annotations

from datetime import date, datetime, timezone
from pathlib import Path

import pytest

from habitpulse import create_app
from habitpulse.extensions import get_engine
from habitpulse.infra.database import create_session_factory, init_database
from habitpulse.infra.repositories.habit import SQLModelHabitRepository
from habitpulse.models import Habit, HabitCompletion
from sqlmodel import create_engine

USER_ID = "user-1"
CREATED_AT = datetime(2024, 1, 1, 8, 0, tzinfo=timezone.utc)

_ENV_VARS = (
    "HABITPULSE_SECRET_KEY",
    "HABITPULSE_DEV_MODE",
    "HABITPULSE_DATABASE_URL",
    "HABITPULSE_WEEK_STARTS_ON",
    "HABITPULSE_STREAK_GRACE_TODAY",
    "HABITPULSE_ENABLE_SCHEDULER",
    "HABITPULSE_STREAK_REFRESH_HOUR",
)


@pytest.fixture(autouse=True)
def isolated_env(tmp_path, monkeypatch):
    """Keep every test away from the developer's environment and ./instance."""

    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    data_dir = tmp_path / "data"
    monkeypatch.setenv("HABITPULSE_DATA_DIR", str(data_dir))
    return data_dir


# =============================================================================
# Database Fixtures
# =============================================================================


@pytest.fixture(scope="function")
def db_engine(tmp_path):
    """Create an isolated SQLite database file for each test.

    Yields:
        Engine: SQLModel engine with all tables created
    """
    db_path = Path(tmp_path) / "test.db"
    engine = create_engine(f"sqlite:///{db_path}", echo=False)
    init_database(engine)

    yield engine

    engine.dispose()


@pytest.fixture(scope="function")
def session_factory(db_engine):
    """Transactional session factory matching the one the app builds."""

    return create_session_factory(db_engine)


@pytest.fixture
def repo(session_factory) -> SQLModelHabitRepository:
    return SQLModelHabitRepository(session_factory)


# =============================================================================
# Test Data Factories
# =============================================================================


@pytest.fixture
def make_habit():
    """Build an unsaved Habit for pure engine tests."""

    def _make(
        habit_id: str = "h1",
        *,
        title: str = "Test Habit",
        category: str = "physical",
        frequency: str = "daily",
        is_absolute: bool = True,
        streak: int = 0,
        created_at: datetime = CREATED_AT,
    ) -> Habit:
        return Habit(
            id=habit_id,
            user_id=USER_ID,
            title=title,
            category=category,
            frequency=frequency,
            is_absolute=is_absolute,
            streak=streak,
            created_at=created_at,
        )

    return _make


@pytest.fixture
def make_completions():
    """Build completed records for ``habit_id`` on each of ``days``."""

    def _make(habit_id: str, *days: date, completed: bool = True) -> list[HabitCompletion]:
        return [
            HabitCompletion(habit_id=habit_id, date=day, user_id=USER_ID, completed=completed)
            for day in days
        ]

    return _make


@pytest.fixture
def habit_factory(repo):
    """Factory for creating persisted habits.

    Returns:
        Callable: Function that creates and persists Habit instances
    """

    def _create_habit(
        title: str = "Test Habit",
        *,
        category: str = "physical",
        frequency: str = "daily",
        is_absolute: bool = True,
        created_at: datetime = CREATED_AT,
        user_id: str = USER_ID,
    ) -> Habit:
        habit = Habit(
            title=title,
            category=category,
            frequency=frequency,
            is_absolute=is_absolute,
            created_at=created_at,
        )
        return repo.create(habit, user_id=user_id)

    return _create_habit


# =============================================================================
# Flask Fixtures
# =============================================================================


@pytest.fixture
def app(tmp_path, monkeypatch):
    monkeypatch.setenv("HABITPULSE_DATABASE_URL", f"sqlite:///{tmp_path / 'app.db'}")
    app = create_app("testing")
    yield app
    get_engine(app).dispose()


@pytest.fixture
def client(app):
    with app.test_client() as client:
        yield client


@pytest.fixture
def auth_headers() -> dict[str, str]:
    return {"X-User-Id": USER_ID}
