"""Shared test helpers: file rewrites, waiting, stand-in watcher and detector."""

import os
import time
from pathlib import Path
from typing import Any, Callable

import structlog
from pydantic import BaseModel

from confwatch.detectors.base import ChangeDetector


class NamedConfig(BaseModel):
    Name: str


def modify_file(path: Path, data: str) -> None:
    """Delete the file and create it again with new content."""
    os.remove(path)
    with open(path, "w", encoding="utf-8") as f:
        f.write(data)


def replace_file(path: Path, data: str) -> None:
    """Write to a sibling temp file and rename it over path."""
    tmp = path.with_name(path.name + ".tmp")
    tmp.write_text(data, encoding="utf-8")
    os.replace(tmp, path)


def wait_until(predicate: Callable[[], bool], timeout: float = 5.0, interval: float = 0.005) -> bool:
    """Poll predicate until it is true or timeout elapses; returns the last result."""
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(interval)
    return predicate()


class ManualDetector(ChangeDetector):
    """Detector that never fires; tests call watcher.reload() themselves."""

    name = "manual"

    def __init__(self) -> None:
        super().__init__()
        self.started = False
        self.close_calls = 0

    def start(self, watcher: Any) -> None:
        self._watcher = watcher
        self.started = True

    def close(self) -> None:
        self.close_calls += 1


class FailingDetector(ChangeDetector):
    name = "failing"

    def __init__(self, error: Exception) -> None:
        super().__init__()
        self.error = error
        self.close_calls = 0

    def start(self, watcher: Any) -> None:
        raise self.error

    def close(self) -> None:
        self.close_calls += 1


class StubWatcher:
    """The parts of Watcher a detector uses, with reload() counted."""

    def __init__(self, path: Path, fingerprint: str | None = None):
        self.path = Path(path)
        self.fingerprint = fingerprint
        self.running = True
        self.reloads = 0
        self.reload_error: Exception | None = None
        self.logger = structlog.get_logger("tests")

    def reload(self) -> bool:
        self.reloads += 1
        if self.reload_error is not None:
            raise self.reload_error
        return True
