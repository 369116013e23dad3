"""Build a change detector from a strategy name (poll or event)."""

from __future__ import annotations

from confwatch.detectors.base import ChangeDetector

DEFAULT_INTERVAL = 1.0

STRATEGIES = ("poll", "event")


def build_detector(strategy: str = "poll", interval: float = DEFAULT_INTERVAL) -> ChangeDetector:
    """PollDetector for "poll" (uses interval), EventDetector for "event"."""
    if strategy == "event":
        from confwatch.detectors.event import EventDetector
        return EventDetector()
    if strategy == "poll":
        from confwatch.detectors.poll import PollDetector
        return PollDetector(interval)
    raise ValueError(f"strategy {strategy!r} must be one of: {list(STRATEGIES)}")
