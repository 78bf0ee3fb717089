"""Runtime settings for the function.

Settings are resolved in three layers, later layers winning:

  1. Built-in defaults
  2. An optional YAML file (``--config`` on the CLI)
  3. ``FN_MSGRAPH_*`` environment variables, e.g. FN_MSGRAPH_TIMEOUT_SECONDS=10
"""

from __future__ import annotations

import os
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Mapping

import yaml

ENV_PREFIX = "FN_MSGRAPH_"


class ConfigError(Exception):
    """A settings file or override is invalid."""


@dataclass
class Settings:
    credentials_name: str = "azure-creds"
    graph_endpoint: str = "https://graph.microsoft.com/v1.0"
    authority_host: str = "https://login.microsoftonline.com"
    timeout_seconds: float = 30.0
    response_ttl_seconds: int = 60
    log_level: str = "INFO"
    log_format: str = "console"  # console | json


def load_settings(
    path: str | Path | None = None,
    environ: Mapping[str, str] | None = None,
) -> Settings:
    """Load settings from defaults, an optional YAML file, and the environment."""
    environ = os.environ if environ is None else environ
    defaults = Settings()
    known = {f.name for f in fields(Settings)}
    values: dict = {}

    if path:
        with open(path) as f:
            data = yaml.safe_load(f) or {}
        if not isinstance(data, dict):
            raise ConfigError(f"{path}: expected a mapping of settings")
        unknown = sorted(set(data) - known)
        if unknown:
            raise ConfigError(f"{path}: unknown settings {unknown}")
        for name, value in data.items():
            values[name] = _coerce(name, value, type(getattr(defaults, name)))

    for name in known:
        key = ENV_PREFIX + name.upper()
        if key in environ:
            values[name] = _coerce(key, environ[key], type(getattr(defaults, name)))

    settings = Settings(**values)
    if settings.log_format not in ("console", "json"):
        raise ConfigError(f"log_format must be 'console' or 'json', got {settings.log_format!r}")
    return settings


def _coerce(name: str, value, expected: type):
    try:
        return expected(value)
    except (TypeError, ValueError) as e:
        raise ConfigError(f"{name}: cannot convert {value!r} to {expected.__name__}") from e
