# -*- coding: utf-8 -*-

import json
import math
import os
import re
from dataclasses import dataclass, field
from typing import Dict

import structlog
from rich.color import Color, ColorParseError

from core.errors import ConfigurationError

log = structlog.get_logger()

DEFAULT_DIR = os.path.join("~", ".pomo")
DEFAULT_COLORS = {
    "running": "red",
    "breaking": "green",
    "paused": "blue",
    "complete": "white",
}

_DURATION_RE = re.compile(r"^\s*(?:(\d+(?:\.\d+)?)h)?\s*(?:(\d+(?:\.\d+)?)m)?\s*(?:(\d+(?:\.\d+)?)s)?\s*$")


def parse_duration(text: str) -> float:
    """'25m' -> 1500.0, '1h30m' -> 5400.0, '90s' -> 90.0, '90' -> 90.0"""
    raw = (text or "").strip().lower()
    if not raw:
        raise ConfigurationError("Duration cannot be empty.")
    try:
        value = float(raw)
    except ValueError:
        pass
    else:
        if not math.isfinite(value):
            raise ConfigurationError(f"Invalid duration '{text}'. It must be a finite number.")
        return value
    m = _DURATION_RE.match(raw)
    if not m or not any(m.groups()):
        raise ConfigurationError(f"Invalid duration '{text}'. Use e.g. 25m, 90s, 1h.")
    h, mi, s = (float(g) if g else 0.0 for g in m.groups())
    return h * 3600 + mi * 60 + s


@dataclass(frozen=True)
class Config:
    """User preferences, loaded once and passed down explicitly."""

    colors: Dict[str, str] = field(default_factory=lambda: dict(DEFAULT_COLORS))
    break_duration: float = 5 * 60
    tick_interval: float = 0.8
    refresh_interval: float = 0.8
    notifier: str = "auto"


def resolve_dir(path: str = "") -> str:
    return os.path.abspath(os.path.expanduser(path or os.environ.get("POMO_DIR") or DEFAULT_DIR))


def _check_color(key: str, name) -> None:
    if not isinstance(name, str):
        raise ConfigurationError(f"bad color choice for '{key}': {name!r}")
    try:
        Color.parse(name)
    except ColorParseError:
        raise ConfigurationError(f"bad color choice for '{key}': {name}")


def load_config(path: str) -> Config:
    # create an empty config file if it does not exist yet
    if not os.path.exists(path):
        with open(path, "w") as f:
            json.dump({}, f)
        log.info("config_created", path=path)

    try:
        with open(path) as f:
            raw = json.load(f)
    except json.JSONDecodeError as e:
        raise ConfigurationError(f"Invalid config file {path}: {e}")
    if not isinstance(raw, dict):
        raise ConfigurationError(f"Invalid config file {path}: expected an object.")

    raw_colors = raw.get("colors") or {}
    if not isinstance(raw_colors, dict):
        raise ConfigurationError(f"Invalid colors in {path}: expected an object.")
    colors = dict(DEFAULT_COLORS)
    for key, name in raw_colors.items():
        _check_color(key, name)
        colors[key.lower()] = name

    kwargs = {"colors": colors}
    for key in ("break_duration", "tick_interval", "refresh_interval"):
        if key in raw:
            value = raw[key]
            try:
                kwargs[key] = parse_duration(value) if isinstance(value, str) else float(value)
            except (TypeError, ValueError):
                raise ConfigurationError(f"Invalid {key} in {path}: {value!r}")
            if not math.isfinite(kwargs[key]):
                raise ConfigurationError(f"Invalid {key} in {path}: {value!r}")
    if "notifier" in raw:
        kwargs["notifier"] = str(raw["notifier"])

    cfg = Config(**kwargs)
    if cfg.break_duration < 0:
        raise ConfigurationError("break_duration cannot be negative.")
    if cfg.tick_interval <= 0 or cfg.refresh_interval <= 0:
        raise ConfigurationError("tick_interval and refresh_interval must be positive.")
    return cfg
