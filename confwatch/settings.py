"""
Watch settings: which file to watch, how to detect changes, how to decode it.

- Loaded from a YAML file with ${ENV_VAR} injection, validated by pydantic.
- CONFWATCH_STRATEGY / CONFWATCH_INTERVAL environment variables override the file.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import BaseModel, Field, ValidationError

from confwatch.codecs import Codec, JsonCodec, YamlCodec, codec_for_path, substitute_env
from confwatch.errors import ConfigLoadError

Strategy = Literal["poll", "event"]
Format = Literal["json", "yaml"]

ENV_OVERRIDES = {
    "CONFWATCH_STRATEGY": "strategy",
    "CONFWATCH_INTERVAL": "interval",
}


class WatchSettings(BaseModel):
    """One watched file and how to watch it."""

    model_config = {"extra": "forbid"}

    path: str = Field(..., description="File to watch (JSON or YAML)")
    strategy: Strategy = Field("poll", description="poll: content hash every interval; event: OS notifications")
    interval: float = Field(1.0, gt=0, description="Poll interval in seconds (poll strategy only)")
    format: Format | None = Field(None, description="Codec; None picks by file suffix")
    expand_env: bool = Field(False, description="Substitute ${VAR} / $VAR in string values of the watched file")

    def build_codec(self, model: Any = None) -> Codec[Any]:
        """Codec for the watched file according to format (or the path suffix)."""
        if self.format == "yaml":
            return YamlCodec(model, expand_env=self.expand_env)
        if self.format == "json":
            return JsonCodec(model, expand_env=self.expand_env)
        return codec_for_path(self.path, model, expand_env=self.expand_env)


def load_settings(path: str | Path) -> WatchSettings:
    """
    Load and validate watch settings from a YAML file.

    Relative `path` values inside the file are resolved against the settings file's directory.

    Raises:
        ConfigLoadError: file missing, not YAML, or not valid settings.
    """
    p = Path(path).expanduser()
    try:
        text = p.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigLoadError(p, f"unable to open settings: {e}") from e
    try:
        data = yaml.safe_load(text) or {}
    except yaml.YAMLError as e:
        raise ConfigLoadError(p, f"invalid YAML: {e}") from e
    if not isinstance(data, dict):
        raise ConfigLoadError(p, "settings must be a mapping")
    data = substitute_env(data)
    for env_name, field in ENV_OVERRIDES.items():
        if os.environ.get(env_name):
            data[field] = os.environ[env_name]
    if isinstance(data.get("path"), str) and not Path(data["path"]).expanduser().is_absolute():
        data["path"] = str(p.absolute().parent / data["path"])
    try:
        return WatchSettings.model_validate(data)
    except ValidationError as e:
        raise ConfigLoadError(p, f"invalid settings: {e}") from e
