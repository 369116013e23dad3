"""confwatch: a typed configuration value kept current with its file on disk."""

from confwatch.codecs import Codec, JsonCodec, YamlCodec, codec_for_path
from confwatch.detectors import ChangeDetector, build_detector
from confwatch.errors import ConfigLoadError, ConfwatchError, DecodeError, DetectorError
from confwatch.settings import WatchSettings, load_settings
from confwatch.watcher import Watcher, WatcherState, from_settings, new

__version__ = "0.1.0"

__all__ = [
    "ChangeDetector",
    "Codec",
    "ConfigLoadError",
    "ConfwatchError",
    "DecodeError",
    "DetectorError",
    "JsonCodec",
    "WatchSettings",
    "Watcher",
    "WatcherState",
    "YamlCodec",
    "build_detector",
    "codec_for_path",
    "from_settings",
    "load_settings",
    "new",
]
