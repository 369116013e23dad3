"""
Codecs: bytes from the watched file -> typed value, or DecodeError.

- JsonCodec / YamlCodec decode into any type pydantic's TypeAdapter accepts
  (BaseModel, dataclass, TypedDict, dict[str, Any], ...) or plain data when no model is given.
- Optional ${ENV_VAR} / $ENV_VAR injection in string values before typing.
- codec_for_path picks a codec from the file suffix.
"""

from __future__ import annotations

import json
import os
import re
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Generic, Mapping, TypeVar

import yaml
from pydantic import TypeAdapter, ValidationError

from confwatch.errors import DecodeError

T = TypeVar("T")

_ENV_PATTERN = re.compile(r"\$\{([^}]+)\}|\$([A-Za-z_][A-Za-z0-9_]*)")

YAML_SUFFIXES = (".yaml", ".yml")


def _expand_string(text: str, environ: Mapping[str, str]) -> str:
    return _ENV_PATTERN.sub(lambda m: environ.get(m.group(1) or m.group(2), m.group(0)), text)


def substitute_env(value: Any, environ: Mapping[str, str] | None = None) -> Any:
    """
    Expand ${VAR} / $VAR references in the string leaves of decoded data.

    This is what a codec's expand_env flag applies between parsing and typing, so
    references survive as literal text when expansion is off. Mapping keys and
    non-string scalars are never touched; unknown variables are left as written.

    Args:
        value: Parsed JSON/YAML data (str, dict, list, tuple or scalar).
        environ: Variables to expand from; defaults to os.environ at call time.
    """
    env = os.environ if environ is None else environ
    if isinstance(value, str):
        return _expand_string(value, env)
    if isinstance(value, dict):
        return {k: substitute_env(v, env) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return type(value)(substitute_env(v, env) for v in value)
    return value


class Codec(ABC, Generic[T]):
    """Decode raw file content into a value of type T."""

    name = "codec"

    def __init__(self, model: Any = None, expand_env: bool = False):
        self.model = model
        self.expand_env = expand_env
        self._adapter: TypeAdapter[Any] | None = TypeAdapter(model) if model is not None else None

    @abstractmethod
    def decode(self, data: bytes) -> T:
        """
        Decode file content.

        Raises:
            DecodeError: content is not valid for this format or the target type.
        """
        ...

    def _validate(self, data: Any) -> T:
        if self.expand_env:
            data = substitute_env(data)
        if self._adapter is None:
            return data
        try:
            return self._adapter.validate_python(data)
        except ValidationError as e:
            raise DecodeError(f"{self.name} content does not match {self._model_name()}: {e}") from e

    def _model_name(self) -> str:
        return getattr(self.model, "__name__", repr(self.model))

    def __repr__(self) -> str:
        return f"{type(self).__name__}(model={self._model_name() if self.model is not None else None}, expand_env={self.expand_env})"


class JsonCodec(Codec[T]):
    """JSON documents; strict JSON parsing by pydantic when a model is set and no env expansion is needed."""

    name = "json"

    def decode(self, data: bytes) -> T:
        if self._adapter is not None and not self.expand_env:
            try:
                return self._adapter.validate_json(data)
            except ValidationError as e:
                raise DecodeError(f"invalid JSON for {self._model_name()}: {e}") from e
        try:
            parsed = json.loads(data)
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            raise DecodeError(f"invalid JSON: {e}") from e
        return self._validate(parsed)


class YamlCodec(Codec[T]):
    """YAML documents (safe loader). An empty document decodes as {}."""

    name = "yaml"

    def decode(self, data: bytes) -> T:
        try:
            parsed = yaml.safe_load(data)
        except yaml.YAMLError as e:
            raise DecodeError(f"invalid YAML: {e}") from e
        if parsed is None:
            parsed = {}
        return self._validate(parsed)


def codec_for_path(path: str | Path, model: Any = None, expand_env: bool = False) -> Codec[Any]:
    """YamlCodec for .yaml/.yml files, JsonCodec for everything else."""
    if str(path).lower().endswith(YAML_SUFFIXES):
        return YamlCodec(model, expand_env=expand_env)
    return JsonCodec(model, expand_env=expand_env)
