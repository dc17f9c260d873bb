import os

# Use in-memory sqlite for tests; must be set before checkmate is imported
os.environ.setdefault("DATABASE_URL", "sqlite+pysqlite:///:memory:")

import pytest  # noqa: E402

from checkmate.db import Base, SessionLocal, engine  # noqa: E402
from checkmate.engine.recurrence import Daily  # noqa: E402
from checkmate.main import app  # noqa: E402,F401  (registers every table)
from checkmate.models.goal import Goal  # noqa: E402


def _goal(**overrides):
    rule = overrides.pop("recurrence", Daily())
    fields = {
        "user_id": "user-1",
        "title": "Test goal",
        "checkins_per_day": 1,
        "end_date": None,
        "reset_time": None,
    }
    fields.update(overrides)
    goal = Goal(**fields)
    goal.recurrence = rule
    return goal


@pytest.fixture
def new_goal():
    """Unsaved goal for pure evaluation tests (id defaults to 1)."""

    def _make(**overrides):
        overrides.setdefault("id", 1)
        return _goal(**overrides)

    return _make


@pytest.fixture
def db():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def make_goal(db):
    """Persisted goal."""

    def _make(**overrides):
        goal = _goal(**overrides)
        db.add(goal)
        db.commit()
        db.refresh(goal)
        return goal

    return _make


@pytest.fixture
def client(db):
    from fastapi.testclient import TestClient

    app.dependency_overrides.clear()
    yield TestClient(app)
    app.dependency_overrides.clear()
