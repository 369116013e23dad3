"""
Event detector: OS file-change notifications via watchdog.

- The watch is placed on the file's parent directory (non-recursive) so delete-and-recreate
  and rename-into-place writes are seen; events for other files are dropped.
- Only write-like events reload: modified, created, moved onto the path, closed after write.
  Deletions, opens, closes without write and directory events are ignored.
- Some filesystems (container bind mounts, network and VM shared folders) never deliver write
  events. That is a degraded mode, not an error; pass observer_factory=PollingObserver or use
  the poll strategy there.
"""

from __future__ import annotations

import os
import threading
from pathlib import Path
from typing import TYPE_CHECKING, Any, Callable

import structlog
from watchdog.events import (
    EVENT_TYPE_CLOSED,
    EVENT_TYPE_CREATED,
    EVENT_TYPE_MODIFIED,
    EVENT_TYPE_MOVED,
    FileSystemEvent,
    FileSystemEventHandler,
)
from watchdog.observers import Observer

from confwatch.detectors.base import ChangeDetector
from confwatch.errors import DetectorError

if TYPE_CHECKING:
    from confwatch.watcher import Watcher

logger = structlog.get_logger(__name__)

WRITE_EVENT_TYPES = frozenset({EVENT_TYPE_MODIFIED, EVENT_TYPE_CREATED, EVENT_TYPE_CLOSED})


def _same_file(event_path: str | bytes, path: Path) -> bool:
    p = os.path.normcase(os.path.abspath(os.fsdecode(event_path)))
    target = os.path.normcase(str(path))
    if p == target:
        return True
    return os.path.realpath(p) == os.path.realpath(target)


def is_write_event(event: FileSystemEvent, path: Path) -> bool:
    """True if event means the content of path may have been (re)written."""
    if event.is_directory:
        return False
    if event.event_type == EVENT_TYPE_MOVED:
        dest = getattr(event, "dest_path", "")
        return bool(dest) and _same_file(dest, path)
    if event.event_type not in WRITE_EVENT_TYPES:
        return False
    return _same_file(event.src_path, path)


class _ConfigFileHandler(FileSystemEventHandler):
    def __init__(self, detector: EventDetector):
        self._detector = detector

    def on_any_event(self, event: FileSystemEvent) -> None:
        self._detector.handle(event)


class EventDetector(ChangeDetector):
    """Reloads on OS write notifications for the watched file."""

    name = "event"

    def __init__(self, observer_factory: Callable[[], Any] | None = None):
        super().__init__()
        self._observer_factory = observer_factory or Observer
        self._observer: Any = None
        self._stopped: Any = None
        self._closed = False
        self._lock = threading.Lock()
        self._log: Any = logger

    @property
    def alive(self) -> bool:
        observer = self._observer
        return observer is not None and observer.is_alive()

    def start(self, watcher: Watcher[Any]) -> None:
        with self._lock:
            if self._closed:
                raise DetectorError("event detector is closed")
            if self._observer is not None:
                raise DetectorError("event detector already started")
            self._watcher = watcher
            self._log = watcher.logger.bind(detector=self.name)
            observer = self._observer_factory()
            try:
                observer.schedule(_ConfigFileHandler(self), str(watcher.path.parent), recursive=False)
                observer.start()
            except Exception as e:
                self._log.error("event_subscription_failed", error=str(e))
                raise DetectorError(f"unable to watch {watcher.path.parent}: {e}") from e
            self._observer = observer
        self._log.debug("event_subscription_started", directory=str(watcher.path.parent))

    def handle(self, event: FileSystemEvent) -> bool:
        """
        Process one notification; reloads on write events for the watched path.

        Returns:
            True if the event qualified and a reload was attempted.
        """
        watcher = self.watcher
        if not watcher.running:
            return False
        if not is_write_event(event, watcher.path):
            return False
        self._log.debug("config_changed", event_type=event.event_type)
        try:
            watcher.reload()
        except Exception as e:
            # keep the subscription alive; the next event retries
            self._log.exception("event_reload_failed", event_type=event.event_type, error=str(e))
        return True

    def close(self) -> None:
        with self._lock:
            if self._closed:
                return
            self._closed = True
            observer, self._observer = self._observer, None
        if observer is None:
            return
        try:
            observer.stop()
        except Exception as e:
            self._log.error("event_subscription_close_failed", error=str(e))
        self._stopped = observer

    def join(self, timeout: float | None = None) -> bool:
        """Wait for the observer thread to exit after close(). Returns True if it has exited."""
        observer = self._stopped
        if observer is None:
            return self._observer is None
        if observer is threading.current_thread():
            return False
        try:
            observer.join(timeout)
        except RuntimeError as e:
            self._log.error("event_subscription_join_failed", error=str(e))
            return False
        return not observer.is_alive()

    def __repr__(self) -> str:
        factory = getattr(self._observer_factory, "__name__", repr(self._observer_factory))
        return f"EventDetector(observer_factory={factory})"
