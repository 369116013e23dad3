"""
Abstract base for change detectors: polling with a content hash, OS file notifications.

- start(watcher) begins background monitoring; on a detected change the detector calls watcher.reload().
- close() stops monitoring; idempotent and never raises.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from confwatch.watcher import Watcher


class ChangeDetector(ABC):
    """Notices that the watched file changed and asks the watcher to reload."""

    name = "detector"

    def __init__(self) -> None:
        self._watcher: Watcher[Any] | None = None

    @property
    def watcher(self) -> Watcher[Any]:
        if self._watcher is None:
            raise RuntimeError(f"{self.name} detector has not been started")
        return self._watcher

    @abstractmethod
    def start(self, watcher: Watcher[Any]) -> None:
        """
        Begin monitoring watcher.path in the background.

        Raises:
            DetectorError: monitoring could not be established.
        """
        ...

    @abstractmethod
    def close(self) -> None:
        """Stop monitoring. Safe to call repeatedly, before start(), and from the detector's own thread."""
        ...

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"
