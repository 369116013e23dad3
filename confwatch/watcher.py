"""
Watcher: a live, typed view of one configuration file.

- Loads the file synchronously on construction; a failed first load raises and starts nothing.
- A pluggable ChangeDetector (poll or OS events) calls reload() when the file may have changed.
- reload() publishes a new value only when the content fingerprint changed and the content decodes;
  otherwise the last good value keeps being served.
- read()/get() return deep copies; the update callback also receives its own copy and runs outside the read lock.
"""

from __future__ import annotations

import copy
import threading
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING, Any, Callable, Generic, TypeVar

import structlog

from confwatch.codecs import Codec, codec_for_path
from confwatch.detectors.base import ChangeDetector
from confwatch.detectors.factory import DEFAULT_INTERVAL, build_detector
from confwatch.errors import ConfigLoadError, DecodeError, DetectorError
from confwatch.fingerprint import Fingerprint, fingerprint_bytes

if TYPE_CHECKING:
    from confwatch.settings import WatchSettings

T = TypeVar("T")


class WatcherState(str, Enum):
    CREATED = "created"
    LOADING = "loading"
    READY = "ready"
    RELOADING = "reloading"
    CLOSED = "closed"


class Watcher(Generic[T]):
    """Keeps the decoded content of one file current while the file changes on disk."""

    def __init__(
        self,
        path: str | Path,
        codec: Codec[T],
        *,
        detector: ChangeDetector | None = None,
        logger: Any = None,
        on_update: Callable[[T], None] | None = None,
    ):
        try:
            self._path = Path(path).expanduser().absolute()
        except OSError as e:
            raise ConfigLoadError(path, f"cannot resolve path: {e}") from e
        self._codec = codec
        self._detector = detector if detector is not None else build_detector("poll", DEFAULT_INTERVAL)
        self._log = (logger if logger is not None else structlog.get_logger(__name__)).bind(path=str(self._path))
        self._on_update = on_update

        # _lock guards _value and _fingerprint; _reload_lock serialises reloads (file I/O happens under it, not under _lock).
        # _reload_lock is reentrant: on_update runs under it and may call reload() itself.
        self._lock = threading.Lock()
        self._reload_lock = threading.RLock()
        self._closed = threading.Event()
        self._state = WatcherState.CREATED
        self._value: T | None = None
        self._fingerprint: Fingerprint | None = None
        self._rejected: Fingerprint | None = None

        self._load()
        try:
            self._detector.start(self)
        except Exception as e:
            self.close()
            if isinstance(e, DetectorError):
                raise
            raise DetectorError(f"{self._detector.name} detector failed to start for {self._path}: {e}") from e
        self._log.info("watcher_started", detector=self._detector.name, fingerprint=self._fingerprint)

    # --- public API ---

    @property
    def path(self) -> Path:
        return self._path

    @property
    def codec(self) -> Codec[T]:
        return self._codec

    @property
    def detector(self) -> ChangeDetector:
        return self._detector

    @property
    def logger(self) -> Any:
        return self._log

    @property
    def running(self) -> bool:
        return not self._closed.is_set()

    @property
    def state(self) -> WatcherState:
        if self._closed.is_set():
            return WatcherState.CLOSED
        return self._state

    @property
    def fingerprint(self) -> Fingerprint | None:
        """Fingerprint of the content behind the value currently served."""
        with self._lock:
            return self._fingerprint

    def read(self) -> T:
        """Return an independent deep copy of the current value."""
        with self._lock:
            value = self._value
        # the stored value is replaced on reload, never mutated, so copying outside the lock is safe
        return copy.deepcopy(value)

    get = read

    def close(self) -> None:
        """Stop watching. Idempotent; never raises. A reload already running may still finish."""
        if self._closed.is_set():
            return
        self._closed.set()
        try:
            self._detector.close()
        except Exception as e:
            self._log.error("detector_close_failed", detector=self._detector.name, error=str(e))
        self._log.info("watcher_closed")

    def reload(self) -> bool:
        """
        Re-read and decode the file; publish the value if the content changed.

        Returns:
            True if a new value was published. False when closed, unchanged, unreadable or undecodable.
        """
        if self._closed.is_set():
            return False
        with self._reload_lock:
            if self._closed.is_set():
                return False
            outer = self._state
            self._state = WatcherState.RELOADING
            try:
                return self._reload()
            finally:
                self._state = WatcherState.RELOADING if outer == WatcherState.RELOADING else WatcherState.READY

    def __enter__(self) -> Watcher[T]:
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"Watcher(path={str(self._path)!r}, detector={self._detector.name!r}, state={self.state.value!r})"

    # --- internals ---

    def _load(self) -> None:
        """Initial synchronous load; any failure is a construction error."""
        self._state = WatcherState.LOADING
        try:
            data = self._path.read_bytes()
        except OSError as e:
            raise ConfigLoadError(self._path, f"unable to open: {e}") from e
        try:
            value = self._codec.decode(data)
        except DecodeError as e:
            raise ConfigLoadError(self._path, f"unable to decode: {e}", hint=f"check the file is valid {self._codec.name}") from e
        with self._lock:
            self._value = value
            self._fingerprint = fingerprint_bytes(data)
        self._state = WatcherState.READY

    def _reload(self) -> bool:
        try:
            data = self._path.read_bytes()
        except OSError as e:
            self._log.error("config_read_failed", error=str(e))
            return False

        new_fingerprint = fingerprint_bytes(data)
        with self._lock:
            current = self._fingerprint
        if new_fingerprint == current:
            self._rejected = None
            self._log.debug("config_unchanged", fingerprint=new_fingerprint)
            return False
        if new_fingerprint == self._rejected:
            self._log.debug("config_still_invalid", fingerprint=new_fingerprint)
            return False

        try:
            value = self._codec.decode(data)
        except DecodeError as e:
            self._rejected = new_fingerprint
            self._log.error("config_decode_failed", fingerprint=new_fingerprint, error=str(e))
            return False

        self._rejected = None
        with self._lock:
            self._value = value
            self._fingerprint = new_fingerprint
        self._log.info("config_updated", previous=current, fingerprint=new_fingerprint)
        self._notify(value)
        return True

    def _notify(self, value: T) -> None:
        """Hand the callback its own copy; called without holding the read lock."""
        if self._on_update is None:
            return
        try:
            self._on_update(copy.deepcopy(value))
        except Exception as e:
            self._log.exception("update_callback_failed", error=str(e))


def new(
    path: str | Path,
    model: Any = None,
    *,
    strategy: str = "poll",
    interval: float = DEFAULT_INTERVAL,
    codec: Codec[Any] | None = None,
    expand_env: bool = False,
    logger: Any = None,
    on_update: Callable[[Any], None] | None = None,
) -> Watcher[Any]:
    """
    Load path into model and start watching it.

    Args:
        path: JSON (or .yaml/.yml) file to watch.
        model: Target type (pydantic model, dataclass, dict[str, Any], ...); None keeps plain decoded data.
        strategy: "poll" (content hash every interval seconds) or "event" (OS notifications).
        interval: Poll interval in seconds; ignored by the event strategy.
        codec: Explicit codec; overrides model/expand_env and suffix detection.
        expand_env: Substitute ${VAR} / $VAR in string values.
        logger: structlog-compatible logger; defaults to this module's logger.
        on_update: Called with a copy of each newly published value.

    Raises:
        ConfigLoadError: the file could not be read or decoded.
        DetectorError: the change detector could not start.
        ValueError: unknown strategy or non-positive interval.
    """
    if codec is None:
        codec = codec_for_path(path, model, expand_env=expand_env)
    detector = build_detector(strategy, interval)
    return Watcher(path, codec, detector=detector, logger=logger, on_update=on_update)


def from_settings(
    settings: WatchSettings,
    model: Any = None,
    *,
    logger: Any = None,
    on_update: Callable[[Any], None] | None = None,
) -> Watcher[Any]:
    """Build a watcher from WatchSettings (see confwatch.settings)."""
    return new(
        settings.path,
        model,
        strategy=settings.strategy,
        interval=settings.interval,
        codec=settings.build_codec(model),
        logger=logger,
        on_update=on_update,
    )
