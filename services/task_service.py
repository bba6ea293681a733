# services/task_service.py
#!/usr/bin/env python3
# -*- coding: utf-8 -*-

from __future__ import annotations

import math
from typing import Iterable, List

import structlog

from core.errors import ConfigurationError
from domain.models import Task
from storage.repos import TaskRepo

log = structlog.get_logger()


class TaskService:
    def __init__(self, tasks: TaskRepo):
        self.tasks = tasks

    def create_task(
        self,
        message: str,
        n_intervals: int = 4,
        interval_duration: float = 25 * 60,
        tags: Iterable[str] = (),
    ) -> Task:
        message = (message or "").strip()
        if not message:
            raise ConfigurationError("Task message cannot be empty.")
        if n_intervals < 1:
            raise ConfigurationError("Number of pomodoros must be at least 1.")
        if not math.isfinite(interval_duration) or interval_duration <= 0:
            raise ConfigurationError("Pomodoro duration must be positive.")

        clean_tags = []
        for t in tags:
            t = (t or "").strip()
            if t and t not in clean_tags:
                clean_tags.append(t)

        task = self.tasks.create(
            message=message,
            n_intervals=n_intervals,
            interval_duration=interval_duration,
            tags=clean_tags,
        )
        log.info("task_created", task_id=task.id, n_intervals=n_intervals)
        return task

    def list_tasks(self) -> List[Task]:
        return self.tasks.list()

    def get_task(self, task_id: int) -> Task:
        t = self.tasks.get(task_id)
        if t is None:
            raise ConfigurationError(f"Task {task_id} not found.")
        return t

    def delete_task(self, task_id: int) -> None:
        if not self.tasks.delete_task(task_id):
            raise ConfigurationError(f"Task {task_id} not found.")
        log.info("task_deleted", task_id=task_id)
