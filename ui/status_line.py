# -*- coding: utf-8 -*-

from typing import Callable, Dict, Optional, Tuple

from rich.console import Console
from rich.text import Text

from core.session import SessionSnapshot
from domain.models import Outcome, State

GLYPHS = ("|", "/", "-", "\\")


def next_glyph(state: int) -> Tuple[str, int]:
    """Spinner step: returns the glyph for `state` and the state to pass next."""
    i = state % len(GLYPHS)
    return GLYPHS[i], (i + 1) % len(GLYPHS)


def format_time(seconds: float) -> str:
    sec = max(0, int(seconds))
    h = sec // 3600
    m = (sec % 3600) // 60
    s = sec % 60
    if h > 0:
        return f"{h}:{m:02d}:{s:02d}"
    return f"{m:02d}:{s:02d}"


class StatusRenderer:
    """Formats one status line per call. Colors come from Config.colors."""

    def __init__(self, colors: Optional[Dict[str, str]] = None):
        self.colors = dict(colors or {})
        self._spin = 0

    def render(self, snap: SessionSnapshot) -> Text:
        glyph, self._spin = next_glyph(self._spin)
        style = self.colors.get(snap.state.value.lower(), "")

        line = Text()
        line.append(f"[{snap.state.value}]", style=style)
        if snap.state == State.COMPLETE:
            label = "cancelled" if snap.outcome == Outcome.CANCELLED else "done"
            line.append(f" {snap.completed}/{snap.n_intervals} {label}")
        else:
            line.append(f" {glyph}")
            if snap.state == State.BREAKING:
                line.append(f" {snap.completed}/{snap.n_intervals}")
            else:
                # number of the pomodoro in progress, or of the one before a paused break
                line.append(f" {min(snap.interval_index + 1, snap.n_intervals)}/{snap.n_intervals}")
            line.append(f" {format_time(snap.elapsed)} / {format_time(snap.target)}")
        line.append(f"  {snap.message}")
        return line


class ConsoleSink:
    """Redraws the status line in place on a rich Console."""

    def __init__(self, console: Optional[Console] = None):
        self.console = console or Console(highlight=False)
        self._width = 0

    def __call__(self, line: Text) -> None:
        pad = max(0, self._width - len(line.plain))
        self._width = len(line.plain)
        self.console.print(line, " " * pad, sep="", end="\r")

    def finish(self) -> None:
        self.console.print()


DisplaySink = Callable[[Text], None]
