"""CLI tests for app.py using click's CliRunner."""

import json

import pytest
from click.testing import CliRunner

from app import main


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def pomo_dir(tmp_path):
    return str(tmp_path / "pomo")


def _invoke(runner, pomo_dir, *args, **kwargs):
    return runner.invoke(main, ["--dir", pomo_dir, *args], catch_exceptions=False, **kwargs)


def test_init_creates_files(runner, pomo_dir, tmp_path):
    result = _invoke(runner, pomo_dir, "init")

    assert result.exit_code == 0
    assert (tmp_path / "pomo" / "pomo.db").exists()
    assert json.loads((tmp_path / "pomo" / "config.json").read_text()) == {}


def test_create_list_delete(runner, pomo_dir):
    result = _invoke(runner, pomo_dir, "create", "write docs", "-p", "2", "-d", "10m", "-t", "work")
    assert result.exit_code == 0
    assert result.output.strip() == "1"

    result = _invoke(runner, pomo_dir, "list")
    assert "1: [0/2] 10:00 write docs (work)" in result.output

    result = _invoke(runner, pomo_dir, "delete", "1")
    assert result.exit_code == 0
    assert _invoke(runner, pomo_dir, "list").output == ""


def test_create_rejects_bad_input(runner, pomo_dir):
    result = _invoke(runner, pomo_dir, "create", "x", "-p", "0")
    assert result.exit_code == 1
    assert "at least 1" in result.output

    result = _invoke(runner, pomo_dir, "create", "x", "-d", "soon")
    assert result.exit_code == 2

    for value in ("nan", "inf"):
        result = _invoke(runner, pomo_dir, "create", "x", "-d", value)
        assert result.exit_code == 2
        assert "finite" in result.output
    assert _invoke(runner, pomo_dir, "list").output == ""


def test_delete_missing(runner, pomo_dir):
    result = _invoke(runner, pomo_dir, "delete", "42")
    assert result.exit_code == 1
    assert "not found" in result.output


def test_start_runs_session(runner, pomo_dir, tmp_path):
    _invoke(runner, pomo_dir, "init")
    (tmp_path / "pomo" / "config.json").write_text(
        json.dumps(
            {
                "notifier": "none",
                "break_duration": 0,
                "tick_interval": 0.005,
                "refresh_interval": 0.005,
            }
        )
    )
    _invoke(runner, pomo_dir, "create", "quick", "-p", "1", "-d", "0.05")

    result = _invoke(runner, pomo_dir, "start", "1", input="")

    assert result.exit_code == 0
    assert "Completed 1/1 pomodoros." in result.output
    assert "1: [1/1]" in _invoke(runner, pomo_dir, "list").output


def test_start_missing_task(runner, pomo_dir):
    result = _invoke(runner, pomo_dir, "start", "9")
    assert result.exit_code == 1
    assert "not found" in result.output
