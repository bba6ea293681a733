#!/usr/bin/env python3
# -*- coding: utf-8 -*-

import os
import time

import click

from core.config import Config, load_config, parse_duration, resolve_dir
from core.errors import PomoError
from core.logging_config import setup_logging
from domain.models import Outcome
from services.notify_service import new_notifier
from services.session_service import run_task
from services.task_service import TaskService
from storage.db import Database
from storage.repos import TaskRepo
from ui.status_line import ConsoleSink, format_time


class Context:
    def __init__(self, base_dir: str):
        self.base_dir = base_dir
        self._db = None

    def path(self, name: str) -> str:
        return os.path.join(self.base_dir, name)

    @property
    def db(self) -> Database:
        if self._db is None:
            self._db = Database(db_path=self.path("pomo.db"))
            self._db.init_schema()
        return self._db

    def config(self) -> Config:
        return load_config(self.path("config.json"))

    def task_service(self) -> TaskService:
        return TaskService(TaskRepo(self.db))


def _duration(ctx, param, value):
    try:
        return parse_duration(value)
    except PomoError as e:
        raise click.BadParameter(str(e))


@click.group()
@click.option(
    "--dir",
    "base_dir",
    envvar="POMO_DIR",
    default="",
    help="Directory holding pomo.db, config.json and logs (default ~/.pomo).",
)
@click.pass_context
def main(ctx, base_dir):
    """Pomodoro timer for the terminal."""
    ctx.obj = Context(resolve_dir(base_dir))
    os.makedirs(ctx.obj.base_dir, exist_ok=True)
    setup_logging(log_file=ctx.obj.path("pomo.log"))


@main.command()
@click.pass_obj
def init(obj: Context):
    """Create the database and an empty config file."""
    try:
        obj.db
        obj.config()
    except PomoError as e:
        raise click.ClickException(str(e))
    click.echo(f"Initialized {obj.base_dir}")


@main.command()
@click.argument("message")
@click.option("-p", "--pomodoros", default=4, show_default=True, type=int, help="Number of pomodoros.")
@click.option("-d", "--duration", default="25m", show_default=True, callback=_duration, help="Length of each pomodoro.")
@click.option("-t", "--tag", "tags", multiple=True, help="Tag (repeatable).")
@click.pass_obj
def create(obj: Context, message, pomodoros, duration, tags):
    """Create a new task."""
    try:
        task = obj.task_service().create_task(message, pomodoros, duration, tags)
    except PomoError as e:
        raise click.ClickException(str(e))
    click.echo(task.id)


@main.command(name="list")
@click.pass_obj
def list_tasks(obj: Context):
    """List tasks and their recorded pomodoros."""
    for t in obj.task_service().list_tasks():
        tags = ",".join(t.tags)
        click.echo(
            f"{t.id}: [{t.completed_count}/{t.n_intervals}] "
            f"{format_time(t.interval_duration)} {t.message}" + (f" ({tags})" if tags else "")
        )
        for i in t.intervals:
            start = time.strftime("%Y-%m-%d %H:%M", time.localtime(i.start))
            mark = " partial" if i.partial else ""
            click.echo(f"    {start} {format_time(i.duration())}{mark}")


@main.command()
@click.argument("task_id", type=int)
@click.pass_obj
def start(obj: Context, task_id):
    """Run a task. Type p / r / s + Enter to pause, resume or stop."""
    try:
        config = obj.config()
        task = obj.task_service().get_task(task_id)
        notifier = new_notifier(config.notifier, obj.path("icon.png"))
        sink = ConsoleSink()
        snap = run_task(task, TaskRepo(obj.db), notifier, config, sink=sink)
    except PomoError as e:
        raise click.ClickException(str(e))
    sink.finish()
    if snap.outcome == Outcome.CANCELLED:
        click.echo(f"Stopped after {snap.completed}/{snap.n_intervals} pomodoros.")
    else:
        click.echo(f"Completed {snap.completed}/{snap.n_intervals} pomodoros.")


@main.command()
@click.argument("task_id", type=int)
@click.pass_obj
def delete(obj: Context, task_id):
    """Delete a task and its pomodoros."""
    try:
        obj.task_service().delete_task(task_id)
    except PomoError as e:
        raise click.ClickException(str(e))


if __name__ == "__main__":
    main()
