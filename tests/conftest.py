"""Shared fixtures: a hand-driven clock and recording notifiers."""

import pytest

from domain.models import Task
from storage.db import Database
from storage.repos import TaskRepo


class FakeClock:
    def __init__(self, now: float = 0.0):
        self.now = float(now)

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class RecordingNotifier:
    def __init__(self):
        self.calls = []

    def notify(self, title, body):
        self.calls.append((title, body))


class FailingNotifier:
    def __init__(self):
        self.attempts = 0

    def notify(self, title, body):
        self.attempts += 1
        raise RuntimeError("notification daemon is not running")


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def make_task():
    def _make(n_intervals=2, interval_duration=1.0, message="write docs", task_id=1):
        return Task(
            id=task_id,
            message=message,
            n_intervals=n_intervals,
            interval_duration=interval_duration,
            tags=("work",),
        )

    return _make


@pytest.fixture
def db(tmp_path):
    database = Database(db_path=str(tmp_path / "pomo.db"))
    database.init_schema()
    yield database
    database.close()


@pytest.fixture
def task_repo(db) -> TaskRepo:
    return TaskRepo(db)
