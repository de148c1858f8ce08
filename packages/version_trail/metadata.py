"""Per-model metadata rules and the payload merge.

Rules are an explicit tagged variant: a ``Literal`` value, a ``Computed``
function of the record, or an ``Accessor`` attribute name read from the record.

Merge precedence, lowest first: ambient context metadata, model rules, then
the base payload built by the capture hook. Ambient keys that are reserved or
not columns of the version table are dropped.
"""

from __future__ import annotations

from collections.abc import Callable, Collection, Mapping
from dataclasses import dataclass
from typing import Any, Union

from packages.trail_shared.errors import codes
from packages.trail_shared.logging import get_logger, log_context
from packages.trail_shared.logging import fields
from packages.version_trail.errors import ConfigurationError

_LOGGER = get_logger(__name__)


@dataclass(frozen=True)
class Literal:
    """Store a fixed value."""

    value: Any

    def resolve(self, record: object) -> Any:
        return self.value


@dataclass(frozen=True)
class Computed:
    """Store the result of calling ``fn(record)``."""

    fn: Callable[[Any], Any]

    def resolve(self, record: object) -> Any:
        return self.fn(record)


@dataclass(frozen=True)
class Accessor:
    """Store an attribute of the record, calling it when it is a method."""

    name: str

    def resolve(self, record: object) -> Any:
        value = getattr(record, self.name)
        return value() if callable(value) else value


MetaRule = Union[Literal, Computed, Accessor]


def coerce_rule(column: str, value: object, *, model: type) -> MetaRule:
    """Validate one configured rule, wrapping plain values as ``Literal``."""
    if isinstance(value, Accessor):
        if not hasattr(model, value.name):
            raise ConfigurationError(
                f"{model.__name__} has no attribute {value.name!r} for meta column {column!r}",
                code=codes.UNKNOWN_ATTRIBUTE,
                metadata={"column": column},
            )
        return value
    if isinstance(value, (Literal, Computed)):
        return value
    if callable(value):
        raise ConfigurationError(
            f"meta column {column!r} got a bare callable; wrap it in Computed(...)",
            metadata={"column": column},
        )
    return Literal(value)


def resolve_rules(rules: Mapping[str, MetaRule], record: object) -> dict[str, Any]:
    """Evaluate every rule against one record."""
    return {column: rule.resolve(record) for column, rule in rules.items()}


def merge_metadata(
    base: Mapping[str, Any],
    *,
    record: object,
    rules: Mapping[str, MetaRule],
    ambient: Mapping[str, Any],
    allowed_columns: Collection[str],
    reserved_columns: Collection[str],
) -> dict[str, Any]:
    """Combine ambient metadata, model rules and the base payload."""
    payload: dict[str, Any] = {}
    dropped: list[str] = []
    for key, value in ambient.items():
        if key in reserved_columns or key not in allowed_columns:
            dropped.append(key)
            continue
        payload[key] = value

    if dropped:
        with log_context({fields.DROPPED_KEYS: ",".join(sorted(dropped))}):
            _LOGGER.warning("Dropped ambient metadata keys without version columns")

    payload.update(resolve_rules(rules, record))
    payload.update(base)
    return payload
