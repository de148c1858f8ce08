"""Resolve version-trail settings from init params, env, YAML and defaults.

Precedence, highest first:
1) ``cli_params`` passed by the host
2) ``TRAIL_`` environment variables, with ``__`` between nested keys
   (``TRAIL_VERSIONING__ENABLED=false`` sets ``versioning.enabled``)
3) ``~/.config/version_trail/trail.yaml``
4) Model defaults
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml

from .models import (
    DEFAULT_CONFIG_PATH,
    LoggingSettings,
    TrailSettings,
    VersioningSettings,
)

ENV_PREFIX = "TRAIL_"


def load_settings(
    *,
    cli_params: Mapping[str, Any] | None = None,
    environ: Mapping[str, str] | None = None,
    config_path: str | Path | None = None,
) -> TrailSettings:
    """Resolve typed settings from the precedence cascade."""
    merged = load_config(
        cli_params=cli_params, environ=environ, config_path=config_path
    )
    return TrailSettings(**merged)


def load_config(
    *,
    cli_params: Mapping[str, Any] | None = None,
    environ: Mapping[str, str] | None = None,
    config_path: str | Path | None = None,
) -> dict[str, Any]:
    """Merge every source into one plain mapping, later sources winning."""
    merged = {
        "logging": LoggingSettings().model_dump(),
        "versioning": VersioningSettings().model_dump(),
    }
    path = Path(config_path) if config_path is not None else DEFAULT_CONFIG_PATH
    for layer in (
        _file_layer(path),
        _env_layer(os.environ if environ is None else environ),
        dict(cli_params or {}),
    ):
        _merge_into(merged, layer)
    return merged


def _file_layer(path: Path) -> dict[str, Any]:
    if not path.exists():
        return {}
    parsed = yaml.safe_load(path.read_text(encoding="utf-8"))
    if parsed is None:
        return {}
    if not isinstance(parsed, dict):
        raise ValueError(f"Config file must contain a top-level mapping: {path}")
    return parsed


def _env_layer(environ: Mapping[str, str]) -> dict[str, Any]:
    layer: dict[str, Any] = {}
    for key, raw in environ.items():
        if not key.startswith(ENV_PREFIX):
            continue
        path = [part.lower() for part in key[len(ENV_PREFIX) :].split("__") if part]
        if not path:
            continue
        cursor = layer
        for part in path[:-1]:
            cursor = cursor.setdefault(part, {})
        cursor[path[-1]] = _parse_scalar(raw)
    return layer


def _parse_scalar(raw: str) -> Any:
    """Read booleans, numbers and inline lists or mappings the way YAML does."""
    if not raw.strip():
        return raw
    try:
        return yaml.safe_load(raw)
    except yaml.YAMLError:
        return raw


def _merge_into(target: dict[str, Any], layer: Mapping[str, Any]) -> None:
    for key, value in layer.items():
        current = target.get(key)
        if isinstance(current, dict) and isinstance(value, Mapping):
            _merge_into(current, value)
        else:
            target[key] = dict(value) if isinstance(value, Mapping) else value
