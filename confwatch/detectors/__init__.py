"""Change detectors: content-hash polling and OS file notifications (watchdog)."""

from confwatch.detectors.base import ChangeDetector
from confwatch.detectors.factory import DEFAULT_INTERVAL, STRATEGIES, build_detector

__all__ = ["ChangeDetector", "DEFAULT_INTERVAL", "STRATEGIES", "build_detector"]
