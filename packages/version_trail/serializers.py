"""Text encoders for stored object snapshots and changesets."""

from __future__ import annotations

import enum
import json
from collections.abc import Mapping
from datetime import date, datetime, time
from decimal import Decimal
from typing import Any
from uuid import UUID

import yaml

from packages.trail_shared.errors import codes
from packages.version_trail.errors import ConfigurationError, ReificationError
from packages.version_trail.interfaces import Serializer


class _SnapshotDumper(yaml.SafeDumper):
    """Safe YAML dumper for ``Decimal``, ``UUID``, ``time`` and enum values."""


def _represent_as_str(dumper: yaml.SafeDumper, value: object) -> yaml.Node:
    return dumper.represent_str(str(value))


_SnapshotDumper.add_representer(Decimal, _represent_as_str)
_SnapshotDumper.add_representer(UUID, _represent_as_str)
_SnapshotDumper.add_representer(time, lambda dumper, value: dumper.represent_str(value.isoformat()))
_SnapshotDumper.add_multi_representer(
    enum.Enum, lambda dumper, value: dumper.represent_data(value.value)
)


class YamlSerializer:
    """YAML snapshots via PyYAML's safe dumper and loader.

    JSON documents are valid YAML, so this serializer also reads blobs that
    were written while the JSON serializer was configured.
    """

    name = "yaml"

    def dump(self, data: Mapping[str, Any]) -> str:
        return yaml.dump(
            dict(data),
            Dumper=_SnapshotDumper,
            sort_keys=False,
            allow_unicode=True,
        )

    def load(self, blob: str) -> dict[str, Any]:
        try:
            parsed = yaml.safe_load(blob)
        except yaml.YAMLError as exc:
            raise ReificationError.undecodable(self.name, exc) from exc
        return _require_mapping(self.name, parsed)


class JsonSerializer:
    """JSON snapshots with ISO-8601 temporal values.

    Blobs that are not JSON are read as YAML, so switching the default to
    JSON keeps versions written under the YAML default readable.
    """

    name = "json"

    def dump(self, data: Mapping[str, Any]) -> str:
        return json.dumps(dict(data), default=_json_default, separators=(",", ":"))

    def load(self, blob: str) -> dict[str, Any]:
        try:
            parsed = json.loads(blob)
        except json.JSONDecodeError:
            try:
                parsed = yaml.safe_load(blob)
            except yaml.YAMLError as exc:
                raise ReificationError.undecodable(self.name, exc) from exc
        return _require_mapping(self.name, parsed)


def _json_default(value: object) -> object:
    if isinstance(value, (datetime, date, time)):
        return value.isoformat()
    if isinstance(value, (Decimal, UUID)):
        return str(value)
    if isinstance(value, enum.Enum):
        return value.value
    raise TypeError(f"{type(value).__name__} is not JSON serializable")


def _require_mapping(name: str, parsed: object) -> dict[str, Any]:
    if not isinstance(parsed, dict):
        raise ReificationError.undecodable(
            name, TypeError(f"expected mapping, got {type(parsed).__name__}")
        )
    return parsed


SERIALIZERS: dict[str, Serializer] = {
    YamlSerializer.name: YamlSerializer(),
    JsonSerializer.name: JsonSerializer(),
}

_default_name = YamlSerializer.name


def get_serializer(name: str | None = None) -> Serializer:
    """Return a registered serializer, or the default one when ``name`` is empty."""
    resolved = name or _default_name
    try:
        return SERIALIZERS[resolved]
    except KeyError:
        raise ConfigurationError(
            f"unknown serializer {resolved!r}; expected one of {sorted(SERIALIZERS)}",
            code=codes.INVALID_ARGUMENT,
        ) from None


def set_default_serializer(name: str) -> None:
    """Select the serializer used by models that do not choose their own."""
    global _default_name
    get_serializer(name)
    _default_name = name
