from __future__ import annotations

import os
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import yaml
from dotenv import dotenv_values

DEFAULT_ENDPOINT = "https://api.smith.langchain.com"
DEFAULT_PROJECT = "greetflow"

ENV_TRACING = "LANGCHAIN_TRACING_V2"
ENV_API_KEY = "LANGCHAIN_API_KEY"
ENV_PROJECT = "LANGCHAIN_PROJECT"
ENV_ENDPOINT = "LANGCHAIN_ENDPOINT"


class TracingConfigError(RuntimeError):
    """Raised when a tracing config file cannot be used."""


@dataclass(frozen=True)
class TracingConfig:
    enabled: bool = False
    endpoint: str = DEFAULT_ENDPOINT
    api_key: Optional[str] = field(default=None, repr=False)
    project: str = DEFAULT_PROJECT
    timeout_s: float = 5.0

    @property
    def active(self) -> bool:
        """Tracing is exported only when switched on and a key is present."""

        return self.enabled and bool(self.api_key)

    @classmethod
    def from_env(cls, environ: Mapping[str, Optional[str]] | None = None) -> "TracingConfig":
        return apply_env(cls(), os.environ if environ is None else environ)


_YAML_FIELDS = {
    "enabled": bool,
    "endpoint": str,
    "api_key": str,
    "project": str,
    "timeout_s": (int, float),
}


def _is_true(value: str) -> bool:
    return value.strip().lower() == "true"


def apply_env(config: TracingConfig, environ: Mapping[str, Optional[str]]) -> TracingConfig:
    """Overlay the ``LANGCHAIN_*`` variables found in ``environ`` onto ``config``."""

    updates: Dict[str, Any] = {}
    tracing = environ.get(ENV_TRACING)
    if tracing:
        updates["enabled"] = _is_true(tracing)
    api_key = environ.get(ENV_API_KEY)
    if api_key:
        updates["api_key"] = api_key
    project = environ.get(ENV_PROJECT)
    if project:
        updates["project"] = project
    endpoint = environ.get(ENV_ENDPOINT)
    if endpoint:
        updates["endpoint"] = endpoint.rstrip("/")
    return replace(config, **updates) if updates else config


def _load_yaml(path: Path) -> TracingConfig:
    try:
        with path.open("r", encoding="utf-8") as fh:
            document = yaml.safe_load(fh) or {}
    except FileNotFoundError as exc:
        raise TracingConfigError(f"config file not found: {path}") from exc
    except yaml.YAMLError as exc:
        raise TracingConfigError(f"invalid YAML in {path}: {exc}") from exc

    if not isinstance(document, dict):
        raise TracingConfigError(f"{path}: top level must be a mapping")
    section = document.get("tracing", {})
    if not isinstance(section, dict):
        raise TracingConfigError(f"{path}: 'tracing' must be a mapping")

    values: Dict[str, Any] = {}
    for key, value in section.items():
        expected = _YAML_FIELDS.get(key)
        if expected is None:
            raise TracingConfigError(f"{path}: unknown tracing option '{key}'")
        # bool is an int subclass; keep it out of numeric fields
        if not isinstance(value, expected) or (key == "timeout_s" and isinstance(value, bool)):
            raise TracingConfigError(f"{path}: tracing.{key} has the wrong type ({type(value).__name__})")
        values[key] = value
    if "endpoint" in values:
        values["endpoint"] = values["endpoint"].rstrip("/")
    if "timeout_s" in values:
        values["timeout_s"] = float(values["timeout_s"])
    return TracingConfig(**values)


def load_tracing_config(
    path: str | os.PathLike[str] | None = None,
    *,
    env_file: str | os.PathLike[str] | None = None,
    environ: Mapping[str, Optional[str]] | None = None,
) -> TracingConfig:
    """Build the tracing config from a YAML file, a ``.env`` file and the environment.

    Later sources win: the YAML ``tracing:`` section is the base, ``env_file``
    entries overlay it and ``environ`` (``os.environ`` by default) overlays both.
    The ``.env`` file is read, not exported into the process environment.
    """

    config = _load_yaml(Path(path)) if path is not None else TracingConfig()
    merged: Dict[str, Optional[str]] = {}
    if env_file is not None:
        merged.update(dotenv_values(env_file))
    merged.update(os.environ if environ is None else environ)
    return apply_env(config, merged)


__all__ = [
    "DEFAULT_ENDPOINT",
    "DEFAULT_PROJECT",
    "ENV_API_KEY",
    "ENV_ENDPOINT",
    "ENV_PROJECT",
    "ENV_TRACING",
    "TracingConfig",
    "TracingConfigError",
    "apply_env",
    "load_tracing_config",
]
