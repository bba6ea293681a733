"""Tests for services/task_service.py."""

import pytest

from core.errors import ConfigurationError
from services.task_service import TaskService


@pytest.fixture
def service(task_repo) -> TaskService:
    return TaskService(task_repo)


def test_create_task_strips_and_dedupes(service):
    t = service.create_task("  plan sprint  ", 2, 600, tags=["work", " work ", "", "planning"])
    assert t.message == "plan sprint"
    assert t.tags == ("work", "planning")
    assert service.get_task(t.id).n_intervals == 2


@pytest.mark.parametrize(
    "message,n,duration",
    [
        ("", 1, 60),
        ("   ", 1, 60),
        ("x", 0, 60),
        ("x", 1, 0),
        ("x", 1, -30),
        ("x", 1, float("nan")),
        ("x", 1, float("inf")),
    ],
)
def test_create_task_validation(service, message, n, duration):
    with pytest.raises(ConfigurationError):
        service.create_task(message, n, duration)
    assert service.list_tasks() == []


def test_get_missing_task(service):
    with pytest.raises(ConfigurationError, match="not found"):
        service.get_task(12)


def test_delete_task(service):
    t = service.create_task("x", 1, 60)
    service.delete_task(t.id)
    assert service.list_tasks() == []
    with pytest.raises(ConfigurationError):
        service.delete_task(t.id)
