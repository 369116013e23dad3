"""
Poll detector: fingerprint the file every interval and reload when it differs from the watcher's.

Portable, but change latency is bounded by the interval. Waiting happens on a stop Event,
so close() wakes the loop immediately instead of after the next tick.
"""

from __future__ import annotations

import threading
from typing import TYPE_CHECKING, Any

import structlog

from confwatch.detectors.base import ChangeDetector
from confwatch.errors import DetectorError
from confwatch.fingerprint import file_fingerprint

if TYPE_CHECKING:
    from confwatch.watcher import Watcher

logger = structlog.get_logger(__name__)


class PollDetector(ChangeDetector):
    """Content-hash polling on a daemon thread."""

    name = "poll"

    def __init__(self, interval: float = 1.0):
        super().__init__()
        if interval <= 0:
            raise ValueError(f"poll interval must be positive, got {interval!r}")
        self.interval = interval
        self._stop = threading.Event()
        self._lock = threading.Lock()
        self._thread: threading.Thread | None = None
        self._log: Any = logger

    @property
    def alive(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self, watcher: Watcher[Any]) -> None:
        with self._lock:
            if self._stop.is_set():
                raise DetectorError("poll detector is closed")
            if self._thread is not None:
                raise DetectorError("poll detector already started")
            self._watcher = watcher
            self._log = watcher.logger.bind(detector=self.name)
            self._thread = threading.Thread(
                target=self._run,
                name=f"confwatch-poll:{watcher.path.name}",
                daemon=True,
            )
            self._thread.start()

    def check(self) -> bool:
        """One poll step: fingerprint the file and reload if it changed. Returns True if a value was published."""
        watcher = self.watcher
        try:
            current = file_fingerprint(watcher.path)
        except OSError as e:
            # mid-rewrite or briefly missing; try again next tick
            self._log.error("config_fingerprint_failed", error=str(e))
            return False
        last = watcher.fingerprint
        if last is None or current == last:
            return False
        self._log.debug("config_changed", previous=last, fingerprint=current)
        return watcher.reload()

    def close(self) -> None:
        self._stop.set()

    def join(self, timeout: float | None = None) -> bool:
        """Wait for the poll thread to exit after close(). Returns True if it has exited."""
        thread = self._thread
        if thread is None or thread is threading.current_thread():
            return thread is None
        thread.join(timeout)
        return not thread.is_alive()

    def _run(self) -> None:
        self._log.debug("poll_started", interval=self.interval)
        while not self._stop.wait(self.interval):
            if not self.watcher.running:
                break
            try:
                self.check()
            except Exception as e:
                self._log.exception("poll_check_failed", error=str(e))
        self._log.debug("poll_stopped")

    def __repr__(self) -> str:
        return f"PollDetector(interval={self.interval!r})"
