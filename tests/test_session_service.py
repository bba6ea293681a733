"""Tests for services/session_service.py - threaded runs with tiny durations."""

import io
import threading

import pytest

from conftest import FailingNotifier, RecordingNotifier
from core.config import Config
from core.errors import ConfigurationError
from domain.models import Outcome, State
from services.session_service import SessionRunner

FAST = Config(break_duration=0.02, tick_interval=0.005, refresh_interval=0.005)


def test_runs_task_to_completion_and_persists(task_repo):
    task = task_repo.create("write docs", n_intervals=2, interval_duration=0.05)
    notifier = RecordingNotifier()
    lines = []

    snap = SessionRunner(task, task_repo, notifier, FAST, sink=lines.append).run()

    assert snap.state == State.COMPLETE
    assert snap.outcome == Outcome.COMPLETED
    stored = task_repo.get(task.id)
    assert len(stored.intervals) == 2
    assert all(i.end > i.start and not i.partial for i in stored.intervals)
    assert notifier.calls == [
        ("Pomodoro complete", "write docs"),
        ("Task complete", "write docs"),
    ]
    assert lines
    assert lines[-1].plain.startswith("[COMPLETE] 2/2 done")


def test_stop_command_persists_partial_interval(task_repo):
    task = task_repo.create("long read", n_intervals=3, interval_duration=60)
    runner = SessionRunner(task, task_repo, RecordingNotifier(), FAST)
    threading.Timer(0.05, runner.handle_command, args=("s",)).start()

    snap = runner.run()

    assert snap.outcome == Outcome.CANCELLED
    stored = task_repo.get(task.id)
    assert len(stored.intervals) == 1
    assert stored.intervals[0].partial
    assert stored.completed_count == 0


def test_commands_from_input_stream(task_repo):
    task = task_repo.create("x", n_intervals=1, interval_duration=60)
    runner = SessionRunner(task, task_repo, RecordingNotifier(), FAST)

    snap = runner.run(input_stream=io.StringIO("p\nr\nwhat\nq\n"))

    assert snap.outcome == Outcome.CANCELLED
    assert len(task_repo.get(task.id).intervals) == 1


def test_handle_command(task_repo):
    task = task_repo.create("x", n_intervals=1, interval_duration=60)
    runner = SessionRunner(task, task_repo, RecordingNotifier(), FAST)

    assert runner.handle_command("P\n") is True
    assert runner.session.state == State.PAUSED
    assert runner.handle_command("resume") is True
    assert runner.session.state == State.RUNNING
    assert runner.handle_command("dance") is False
    runner.session.stop()


def test_failing_notifier_and_sink_do_not_stop_the_clock(task_repo):
    task = task_repo.create("x", n_intervals=2, interval_duration=0.03)

    def broken_sink(line):
        raise OSError("terminal closed")

    snap = SessionRunner(task, task_repo, FailingNotifier(), FAST, sink=broken_sink).run()

    assert snap.outcome == Outcome.COMPLETED
    assert task_repo.get(task.id).completed_count == 2


def test_invalid_task_fails_before_starting(task_repo):
    task = task_repo.create("x", n_intervals=1, interval_duration=60)
    task.n_intervals = 0
    with pytest.raises(ConfigurationError):
        SessionRunner(task, task_repo, RecordingNotifier(), FAST)
