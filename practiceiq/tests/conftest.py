"""
Shared fixtures for the PracticeIQ tests.

Engines run against the in-memory store and log with a controllable clock;
SQL repository tests get a fresh in-memory SQLite database per test.
"""

from datetime import datetime, timedelta

import pytest

import practiceiq.common.config as app_config
from practiceiq.common.config import AdaptiveConfig
from practiceiq.common.db.session import create_db_engine, create_session_factory
from practiceiq.common.performance.engine import build_engine
from practiceiq.database.base import create_schema, drop_schema
from practiceiq.domain.progress import MemoryProgressStore, MemoryResponseLog


class FakeClock:
    """Clock that only moves when told to."""

    def __init__(self, start: datetime):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **delta) -> datetime:
        self.now += timedelta(**delta)
        return self.now


@pytest.fixture(autouse=True)
def default_config(monkeypatch):
    """Start every test from the built-in defaults, whatever the shell exports."""
    for name in ("CONFIG_PATH", "DATABASE_URL", "SQL_ECHO", "DB_POOL_SIZE"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setattr(app_config, "_config_loader", None)


@pytest.fixture
def clock():
    return FakeClock(datetime(2024, 3, 1, 9, 0, 0))


@pytest.fixture
def store():
    return MemoryProgressStore()


@pytest.fixture
def response_log():
    return MemoryResponseLog()


@pytest.fixture
def engine(store, response_log, clock):
    """Adaptive engine over in-memory collaborators."""
    return build_engine(AdaptiveConfig(), store=store, log=response_log, clock=clock)


@pytest.fixture
def db_engine():
    """SQLite in-memory database with the schema created"""
    test_engine = create_db_engine("sqlite:///:memory:", echo=False)
    create_schema(test_engine)

    yield test_engine

    drop_schema(test_engine)
    test_engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    return create_session_factory(db_engine)


def _answer(user_id="user-1", unit_id="unit-1", question_id="q-1", is_correct=True,
            difficulty="EASY", topic_id=None, topic_name=None, time_spent=None):
    """Build a submission payload with sensible defaults."""
    return {
        "user_id": user_id,
        "unit_id": unit_id,
        "question_id": question_id,
        "is_correct": is_correct,
        "difficulty": difficulty,
        "topic_id": topic_id,
        "topic_name": topic_name,
        "time_spent": time_spent,
    }


@pytest.fixture
def answer():
    """Factory for submission payloads."""
    return _answer
