# -*- coding: utf-8 -*-

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Tuple

from core.errors import StateTransitionError


class State(Enum):
    RUNNING = "RUNNING"
    BREAKING = "BREAKING"
    PAUSED = "PAUSED"
    COMPLETE = "COMPLETE"

    def __str__(self) -> str:
        return self.value


class Outcome(Enum):
    COMPLETED = "completed"
    CANCELLED = "cancelled"


@dataclass
class Interval:
    """One pomodoro. `end` is None while the interval is still running."""

    start: float
    end: Optional[float] = None
    partial: bool = False  # closed by a stop before its nominal duration

    @classmethod
    def open(cls, now: float) -> "Interval":
        return cls(start=float(now))

    @property
    def is_closed(self) -> bool:
        return self.end is not None

    def close(self, now: float, partial: bool = False) -> None:
        if self.end is not None:
            raise StateTransitionError("Interval is already closed.")
        now = float(now)
        if now < self.start:
            raise StateTransitionError("Interval cannot end before it starts.")
        self.end = now
        self.partial = partial

    def duration(self) -> float:
        if self.end is None:
            return 0.0
        return self.end - self.start


@dataclass
class Task:
    id: Optional[int]
    message: str
    n_intervals: int
    interval_duration: float  # seconds
    tags: Tuple[str, ...] = ()
    intervals: List[Interval] = field(default_factory=list)

    @property
    def completed_count(self) -> int:
        # derived, never stored
        return sum(1 for i in self.intervals if i.is_closed and not i.partial)

    @property
    def is_complete(self) -> bool:
        return self.completed_count >= self.n_intervals

    def record_completed_interval(self, interval: Interval) -> None:
        if not interval.is_closed:
            raise StateTransitionError("Only closed intervals can be recorded.")
        self.intervals.append(interval)
