"""Exception hierarchy for confwatch."""

from __future__ import annotations

from pathlib import Path


class ConfwatchError(Exception):
    """Base exception for all confwatch errors."""

    def __init__(self, message: str, *, hint: str | None = None) -> None:
        super().__init__(message)
        self.hint = hint


class DecodeError(ConfwatchError):
    """File content could not be decoded into the configured type."""


class ConfigLoadError(ConfwatchError):
    """The initial load of a watched file failed; no watcher was created."""

    def __init__(self, path: str | Path, message: str, *, hint: str | None = None) -> None:
        super().__init__(f"Unable to load config file {path}: {message}", hint=hint)
        self.path = Path(path)


class DetectorError(ConfwatchError):
    """A change detector could not be started."""
