# -*- coding: utf-8 -*-

import sys
import threading
import time
from typing import IO, Callable, Optional

import structlog

from core.config import Config
from core.session import Session, SessionSnapshot
from domain.models import Interval, Task
from services.notify_service import NotificationDispatcher
from storage.repos import TaskRepo
from ui.status_line import DisplaySink, StatusRenderer

log = structlog.get_logger()

COMMANDS = {
    "p": "pause",
    "pause": "pause",
    "r": "resume",
    "resume": "resume",
    "s": "stop",
    "stop": "stop",
    "q": "stop",
    "quit": "stop",
}


class SessionRunner:
    """
    Orchestrates one run of a task:
    - clock thread: session.tick() every tick_interval
    - render thread: snapshot -> StatusRenderer -> display sink every refresh_interval
    - optional stdin thread: p / r / s commands
    - persists each recorded interval through TaskRepo
    """

    def __init__(
        self,
        task: Task,
        task_repo: TaskRepo,
        notifier,
        config: Config,
        sink: Optional[DisplaySink] = None,
        clock: Callable[[], float] = time.time,
    ):
        self.task_repo = task_repo
        self.config = config
        self.dispatcher = NotificationDispatcher(notifier)
        self.renderer = StatusRenderer(config.colors)
        self.sink = sink

        # raises ConfigurationError before any thread starts
        self.session = Session(
            task,
            notifier=self.dispatcher,
            break_duration=config.break_duration,
            clock=clock,
        )
        self.session.set_on_interval_recorded(self._persist_interval)
        self.session.set_on_state_change(self._on_state_change)

        self._stopping = threading.Event()
        self._threads = []

    # ----- Session callbacks -----
    def _persist_interval(self, task: Task, interval: Interval) -> None:
        self.task_repo.add_interval(task.id, interval)

    def _on_state_change(self, snap: SessionSnapshot) -> None:
        log.info("session_state", task_id=snap.task_id, state=str(snap.state))

    # ----- Commands -----
    def handle_command(self, text: str) -> bool:
        name = COMMANDS.get((text or "").strip().lower())
        if name is None:
            return False
        getattr(self.session, name)()
        return True

    # ----- Loops -----
    def _clock_loop(self) -> None:
        while not self.session.done.is_set() and not self._stopping.is_set():
            self.session.tick()
            self._stopping.wait(self.config.tick_interval)

    def _render_loop(self) -> None:
        while not self.session.done.is_set() and not self._stopping.is_set():
            self._draw(self.session.snapshot)
            self._stopping.wait(self.config.refresh_interval)

    def _input_loop(self, stream: IO[str]) -> None:
        for line in stream:
            if self.session.done.is_set():
                return
            if not self.handle_command(line):
                log.debug("unknown_command", text=line.strip())

    def _draw(self, snap: SessionSnapshot) -> None:
        if self.sink is None:
            return
        try:
            self.sink(self.renderer.render(snap))
        except Exception:
            log.exception("render_failed")

    def _spawn(self, target, *args, daemon: bool = False) -> None:
        name = "pomo-" + target.__name__.strip("_").replace("_loop", "")
        t = threading.Thread(target=target, args=args, daemon=daemon, name=name)
        t.start()
        if not daemon:
            self._threads.append(t)

    def run(self, input_stream: Optional[IO[str]] = None) -> SessionSnapshot:
        """Blocks until the task completes or is stopped. Returns the final snapshot."""
        self._spawn(self._clock_loop)
        self._spawn(self._render_loop)
        if input_stream is not None:
            # a blocking readline cannot be interrupted; never joined
            self._spawn(self._input_loop, input_stream, daemon=True)

        try:
            while not self.session.done.wait(0.2):
                pass
        except KeyboardInterrupt:
            log.info("session_interrupted", task_id=self.session.task.id)
        finally:
            if not self.session.done.is_set():
                # closes the open interval so partial progress is persisted
                self.session.stop()
            self._stopping.set()
            for t in self._threads:
                t.join()
            self._draw(self.session.snapshot)
            self.dispatcher.close(wait=True)

        return self.session.snapshot


def run_task(
    task: Task,
    task_repo: TaskRepo,
    notifier,
    config: Config,
    sink: Optional[DisplaySink] = None,
    interactive: bool = True,
) -> SessionSnapshot:
    runner = SessionRunner(task, task_repo, notifier, config, sink=sink)
    return runner.run(input_stream=sys.stdin if interactive else None)
