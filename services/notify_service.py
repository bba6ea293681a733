# -*- coding: utf-8 -*-

import os
import queue
import shutil
import subprocess
import sys
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeout
from typing import Optional

import structlog
from plyer import notification

from core.errors import ConfigurationError, NotificationDeliveryError

log = structlog.get_logger()

ICON_ASSET = os.path.join(
    os.path.dirname(os.path.abspath(__file__)), "assets", "tomato-icon.png"
)
NOTIFY_TIMEOUT_SEC = 5.0
NOTIFIER_KINDS = ("auto", "none", "libnotify", "plyer")


def ensure_icon(icon_path: str, asset_path: str = ICON_ASSET) -> bool:
    """Write the bundled icon to icon_path unless a file is already there.

    Returns True if the file was written.
    """
    if os.path.exists(icon_path):
        return False
    with open(asset_path, "rb") as f:
        raw = f.read()
    parent = os.path.dirname(icon_path)
    if parent:
        os.makedirs(parent, exist_ok=True)
    with open(icon_path, "wb") as f:
        f.write(raw)
    log.info("icon_written", path=icon_path)
    return True


class NoopNotifier:
    def notify(self, title: str, body: str) -> None:
        return None


class LibNotifier:
    """Linux desktop notifications through libnotify's `notify-send`."""

    name = "libnotify"

    def __init__(self, icon_path: str, timeout: float = NOTIFY_TIMEOUT_SEC):
        ensure_icon(icon_path)
        self.icon_path = icon_path
        self.timeout = timeout

    def notify(self, title: str, body: str) -> None:
        cmd = ["notify-send", "--app-name=pomo", "-i", self.icon_path, title, body]
        try:
            subprocess.run(
                cmd,
                check=True,
                timeout=self.timeout,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.PIPE,
            )
        except (OSError, subprocess.SubprocessError) as e:
            raise NotificationDeliveryError(self.name, e) from e


class PlyerNotifier:
    """macOS / Windows notifications through plyer."""

    name = "plyer"

    def __init__(self, icon_path: str, timeout: int = 10):
        ensure_icon(icon_path)
        self.icon_path = icon_path
        self.timeout = timeout

    def notify(self, title: str, body: str) -> None:
        try:
            notification.notify(
                title=title,
                message=body,
                app_name="pomo",
                app_icon=self.icon_path,
                timeout=self.timeout,
            )
        except Exception as e:
            raise NotificationDeliveryError(self.name, e) from e


def new_notifier(kind: str, icon_path: str, platform: Optional[str] = None):
    """Pick a notifier variant by name. "auto" chooses by platform."""
    kind = (kind or "auto").strip().lower()
    if kind not in NOTIFIER_KINDS:
        raise ConfigurationError(
            f"Unknown notifier '{kind}'. Use {'/'.join(NOTIFIER_KINDS)}."
        )
    platform = platform or sys.platform

    if kind == "auto":
        if platform.startswith("linux"):
            kind = "libnotify" if shutil.which("notify-send") else "none"
        elif platform in ("darwin", "win32"):
            kind = "plyer"
        else:
            kind = "none"

    if kind == "libnotify":
        return LibNotifier(icon_path)
    if kind == "plyer":
        return PlyerNotifier(icon_path)
    return NoopNotifier()


class NotificationDispatcher:
    """
    Delivers notifications on one background worker so a slow or hung
    backend never stalls the session clock. Failures are only logged.

    The worker is a daemon thread: a backend call that never returns is
    abandoned by close() after `timeout` seconds and cannot keep the
    process alive.
    """

    def __init__(self, notifier, timeout: float = NOTIFY_TIMEOUT_SEC):
        self.notifier = notifier
        self.timeout = timeout
        self._queue: "queue.Queue" = queue.Queue()
        self._worker = threading.Thread(target=self._deliver_loop, name="pomo-notify", daemon=True)
        self._worker.start()
        self._waiter = ThreadPoolExecutor(max_workers=1, thread_name_prefix="pomo-notify-wait")

    def notify(self, title: str, body: str) -> None:
        future: Future = Future()
        self._queue.put((future, title, body))
        self._waiter.submit(self._await, future, title)

    def _deliver_loop(self) -> None:
        while True:
            item = self._queue.get()
            if item is None:
                return
            future, title, body = item
            if not future.set_running_or_notify_cancel():
                continue
            try:
                self.notifier.notify(title, body)
            except Exception as e:
                future.set_exception(e)
            else:
                future.set_result(None)

    def _await(self, future, title: str) -> None:
        try:
            future.result(timeout=self.timeout)
        except FutureTimeout:
            log.warning("notification_timeout", title=title, timeout=self.timeout)
        except NotificationDeliveryError as e:
            log.warning("notification_failed", title=title, backend=e.backend, error=str(e))
        except Exception as e:
            log.warning("notification_failed", title=title, error=str(e))

    def close(self, wait: bool = True) -> None:
        """Flushes queued deliveries, waiting at most `timeout` seconds."""
        self._queue.put(None)
        if wait:
            self._worker.join(self.timeout)
        if self._worker.is_alive():
            if wait:
                log.warning("notifications_abandoned", timeout=self.timeout)
            self._waiter.shutdown(wait=False, cancel_futures=True)
        else:
            # every delivery has settled, so the waiters finish at once
            self._waiter.shutdown(wait=True)
