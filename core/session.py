# -*- coding: utf-8 -*-

import math
import threading
import time
from dataclasses import dataclass
from typing import Any, Callable, List, Optional, Tuple

import structlog

from core.errors import ConfigurationError, StateTransitionError
from domain.models import Interval, Outcome, State, Task

log = structlog.get_logger()

DEFAULT_BREAK_SEC = 5 * 60


@dataclass(frozen=True)
class SessionSnapshot:
    task_id: Optional[int]
    message: str
    state: State
    outcome: Optional[Outcome]
    elapsed: float  # seconds spent in the current phase
    target: float  # nominal length of the current phase
    interval_index: int
    n_intervals: int
    completed: int

    @property
    def remaining(self) -> float:
        return max(0.0, self.target - self.elapsed)


class Session:
    """
    Tick-driven state machine advancing one Task through its pomodoros.

    The clock loop calls tick(); user input calls pause() / resume() / stop().
    Every mutation happens under a single lock, so a tick and a command never
    interleave mid-transition. Readers take `snapshot`, which is replaced
    wholesale (never mutated) at each tick and command.

    Notifier and observer calls run after the lock is released and their
    failures are logged only: they cannot change the timing.
    """

    def __init__(
        self,
        task: Task,
        notifier: Any = None,
        break_duration: float = DEFAULT_BREAK_SEC,
        clock: Callable[[], float] = time.time,
    ):
        if task.n_intervals < 1:
            raise ConfigurationError("Number of pomodoros must be at least 1.")
        if not math.isfinite(task.interval_duration) or task.interval_duration <= 0:
            raise ConfigurationError("Pomodoro duration must be positive.")
        if not math.isfinite(break_duration) or break_duration < 0:
            raise ConfigurationError("Break duration must be a finite, non-negative number.")
        if task.is_complete:
            raise ConfigurationError(f"Task {task.id} is already complete.")

        self.task = task
        self.notifier = notifier
        self.break_duration = float(break_duration)
        self._clock = clock
        self._lock = threading.Lock()
        self.done = threading.Event()

        self._on_state_change: Optional[Callable[[SessionSnapshot], None]] = None
        self._on_interval_recorded: Optional[Callable[[Task, Interval], None]] = None

        now = self._clock()
        self.state = State.RUNNING
        self.outcome: Optional[Outcome] = None
        self.current: Optional[Interval] = Interval.open(now)
        self.interval_index = task.completed_count

        # elapsed = accumulated + (now - phase_started); phase_started is None while paused
        self._phase_started: Optional[float] = now
        self._accumulated = 0.0
        self._resume_state: Optional[State] = None

        self._snapshot = self._build_snapshot(now)
        log.info(
            "session_started",
            task_id=task.id,
            n_intervals=task.n_intervals,
            interval_duration=task.interval_duration,
            break_duration=self.break_duration,
        )

    # ----- Callbacks -----
    def set_on_state_change(self, fn: Callable[[SessionSnapshot], None]) -> None:
        self._on_state_change = fn

    def set_on_interval_recorded(self, fn: Callable[[Task, Interval], None]) -> None:
        self._on_interval_recorded = fn

    # ----- Public API -----
    @property
    def snapshot(self) -> SessionSnapshot:
        return self._snapshot

    def tick(self) -> SessionSnapshot:
        return self._apply(None)

    def pause(self) -> SessionSnapshot:
        return self._apply(self._pause)

    def resume(self) -> SessionSnapshot:
        return self._apply(self._resume)

    def stop(self) -> SessionSnapshot:
        return self._apply(self._stop)

    # ----- Mutation point -----
    def _apply(self, command: Optional[Callable[[float, list], None]]) -> SessionSnapshot:
        effects: List[Tuple[str, Any]] = []
        with self._lock:
            now = self._clock()
            # catch up with the clock before honoring a command
            while self._advance(now, effects):
                pass
            if command is not None:
                try:
                    command(now, effects)
                except StateTransitionError as e:
                    log.info(
                        "command_ignored",
                        command=command.__name__.lstrip("_"),
                        state=str(self.state),
                        reason=str(e),
                    )
            snap = self._snapshot = self._build_snapshot(now)
        self._fire(effects, snap)
        if snap.state == State.COMPLETE:
            # after observers, so waiters see the recorded history
            self.done.set()
        return snap

    def _advance(self, now: float, effects: list) -> bool:
        """Returns True if a phase ended, so the caller loops until caught up."""
        if self.state == State.RUNNING:
            duration = self.task.interval_duration
            elapsed = self._elapsed(now)
            if elapsed < duration:
                return False
            # overshoot is discarded: the interval ends when it reached its length
            reached = max(now - (elapsed - duration), self.current.start)
            self._close_current(reached, partial=False, effects=effects)
            self._accumulated = 0.0
            self._phase_started = reached
            if self.task.is_complete:
                self._finish(Outcome.COMPLETED, effects)
                effects.append(("notify", ("Task complete", self.task.message)))
                return False
            self.state = State.BREAKING
            effects.append(("notify", ("Pomodoro complete", self.task.message)))
            effects.append(("state", None))
            return True

        if self.state == State.BREAKING:
            elapsed = self._elapsed(now)
            if elapsed < self.break_duration:
                return False
            reached = now - (elapsed - self.break_duration)
            self.current = Interval.open(reached)
            self.interval_index = self.task.completed_count
            self._accumulated = 0.0
            self._phase_started = reached
            self.state = State.RUNNING
            effects.append(("state", None))
            return True

        return False

    # ----- Commands -----
    def _pause(self, now: float, effects: list) -> None:
        if self.state == State.PAUSED:
            return
        if self.state == State.COMPLETE:
            raise StateTransitionError("Session is complete.")
        self._accumulated = self._elapsed(now)
        self._phase_started = None
        self._resume_state = self.state
        self.state = State.PAUSED
        effects.append(("state", None))

    def _resume(self, now: float, effects: list) -> None:
        if self.state in (State.RUNNING, State.BREAKING):
            return
        if self.state == State.COMPLETE:
            raise StateTransitionError("Session is complete.")
        self.state = self._resume_state
        self._resume_state = None
        self._phase_started = now
        effects.append(("state", None))

    def _stop(self, now: float, effects: list) -> None:
        if self.state == State.COMPLETE:
            raise StateTransitionError("Session is already complete.")
        if self.current is not None:
            # a wall clock stepped back still ends the interval, with zero length
            self._close_current(max(now, self.current.start), partial=True, effects=effects)
        self._phase_started = None
        self._finish(Outcome.CANCELLED, effects)

    # ----- Internals -----
    def _elapsed(self, now: float) -> float:
        if self._phase_started is None:
            return self._accumulated
        return self._accumulated + max(0.0, now - self._phase_started)

    def _close_current(self, end: float, partial: bool, effects: list) -> None:
        interval = self.current
        interval.close(end, partial=partial)
        self.task.record_completed_interval(interval)
        self.current = None
        effects.append(("recorded", interval))

    def _finish(self, outcome: Outcome, effects: list) -> None:
        self.state = State.COMPLETE
        self.outcome = outcome
        self._resume_state = None
        effects.append(("state", None))

    def _target(self) -> float:
        state = self._resume_state if self.state == State.PAUSED else self.state
        if state == State.RUNNING:
            return float(self.task.interval_duration)
        if state == State.BREAKING:
            return self.break_duration
        return 0.0

    def _build_snapshot(self, now: float) -> SessionSnapshot:
        complete = self.state == State.COMPLETE
        return SessionSnapshot(
            task_id=self.task.id,
            message=self.task.message,
            state=self.state,
            outcome=self.outcome,
            elapsed=0.0 if complete else self._elapsed(now),
            target=self._target(),
            interval_index=self.interval_index,
            n_intervals=self.task.n_intervals,
            completed=self.task.completed_count,
        )

    def _fire(self, effects: List[Tuple[str, Any]], snap: SessionSnapshot) -> None:
        for kind, payload in effects:
            if kind == "notify":
                self._notify(*payload)
            elif kind == "recorded":
                log.info(
                    "interval_recorded",
                    task_id=self.task.id,
                    start=payload.start,
                    end=payload.end,
                    partial=payload.partial,
                )
                self._call_observer(self._on_interval_recorded, self.task, payload)
            elif kind == "state":
                self._call_observer(self._on_state_change, snap)

        if any(kind == "state" for kind, _ in effects) and snap.state == State.COMPLETE:
            log.info(
                "session_finished",
                task_id=self.task.id,
                outcome=snap.outcome.value if snap.outcome else None,
                completed=snap.completed,
            )

    def _notify(self, title: str, body: str) -> None:
        if self.notifier is None:
            return
        try:
            self.notifier.notify(title, body)
        except Exception as e:
            log.warning("notification_failed", title=title, error=str(e))

    def _call_observer(self, fn: Optional[Callable], *args) -> None:
        if fn is None:
            return
        try:
            fn(*args)
        except Exception:
            log.exception("session_observer_failed", task_id=self.task.id)
