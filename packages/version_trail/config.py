"""Validation of ``has_versions`` options into a resolved ``ModelTrail``.

Checks run when a model is configured, so mis-spelled attributes, unknown
events, and missing version columns fail at import or mapper configuration
time rather than on the first mutation.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from sqlalchemy import inspect as sa_inspect
from sqlalchemy.orm import Mapper, QueryableAttribute

from packages.trail_shared.errors import codes
from packages.version_trail import registry
from packages.version_trail.data.schema import EVENTS, RESERVED_COLUMNS, VersionMixin
from packages.version_trail.errors import ConfigurationError
from packages.version_trail.metadata import MetaRule, coerce_rule
from packages.version_trail.snapshot import tracked_attribute_keys

EventName = Literal["create", "update", "destroy"]


class TrailOptions(BaseModel):
    """Raw options accepted by ``has_versions``."""

    model_config = ConfigDict(frozen=True, extra="forbid", arbitrary_types_allowed=True)

    on: tuple[EventName, ...] = EVENTS
    ignore: tuple[str, ...] = ()
    skip: tuple[str, ...] = ()
    only: tuple[str, ...] = ()
    meta: dict[str, Any] = Field(default_factory=dict)
    version_class: type[Any] | None = None
    versions: str = "versions"
    version: str = "version"
    associations: tuple[str, ...] = ()
    serializer: Literal["yaml", "json"] | None = None

    @field_validator("on", "ignore", "skip", "only", "associations", mode="before")
    @classmethod
    def _accept_single_name(cls, value: object) -> object:
        """Allow a bare string where a sequence of names is expected."""
        if isinstance(value, str):
            return (value,)
        return value

    @field_validator("versions", "version")
    @classmethod
    def _require_identifier(cls, value: str) -> str:
        if not value.isidentifier():
            raise ValueError(f"{value!r} is not a valid attribute name")
        return value


def resolve_trail(model: type, options: Mapping[str, Any]) -> registry.ModelTrail:
    """Validate ``options`` against ``model`` and return its resolved trail."""
    try:
        parsed = TrailOptions.model_validate(dict(options))
    except ValidationError as exc:
        first = exc.errors()[0]
        location = ".".join(str(part) for part in first["loc"])
        raise ConfigurationError(
            f"{model.__name__}: invalid option {location}: {first['msg']}",
            code=(
                codes.UNKNOWN_EVENT
                if first["loc"][:1] == ("on",)
                else codes.INVALID_CONFIGURATION
            ),
        ) from exc

    mapper = sa_inspect(model, raiseerr=False)
    if mapper is None:
        raise ConfigurationError(f"{model.__name__} is not a mapped class")

    tracked = tracked_attribute_keys(mapper)
    for option_name in ("ignore", "skip", "only"):
        for name in getattr(parsed, option_name):
            if name not in tracked:
                raise ConfigurationError(
                    f"{model.__name__}.{option_name} names unknown attribute {name!r}",
                    code=codes.UNKNOWN_ATTRIBUTE,
                    metadata={"option": option_name, "attribute": name},
                )

    for accessor_name in (parsed.versions, parsed.version):
        if isinstance(getattr(model, accessor_name, None), QueryableAttribute):
            raise ConfigurationError(
                f"{model.__name__} already maps an attribute named {accessor_name!r}",
                code=codes.RESERVED_COLUMN,
                metadata={"attribute": accessor_name},
            )

    version_class = _resolve_version_class(model, parsed.version_class)
    return registry.ModelTrail(
        model=model,
        item_type=mapper.base_mapper.class_.__name__,
        events=frozenset(parsed.on),
        ignore=parsed.ignore,
        skip=parsed.skip,
        only=parsed.only,
        rules=_resolve_rules(model, version_class, parsed.meta),
        version_class=version_class,
        versions_name=parsed.versions,
        version_name=parsed.version,
        associations=parsed.associations,
        tracked_keys=tracked,
        serializer_name=parsed.serializer,
    )


def _resolve_version_class(model: type, configured: type | None) -> type:
    version_class = configured or registry.default_version_class()
    if version_class is None:
        raise ConfigurationError(
            f"{model.__name__}: no version_class given and no default registered"
        )
    if not issubclass(version_class, VersionMixin):
        raise ConfigurationError(
            f"{version_class.__name__} must inherit VersionMixin",
            metadata={"version_class": version_class.__name__},
        )
    if sa_inspect(version_class, raiseerr=False) is None:
        raise ConfigurationError(f"{version_class.__name__} is not a mapped class")
    return version_class


def _resolve_rules(
    model: type, version_class: type, meta: Mapping[str, Any]
) -> dict[str, MetaRule]:
    columns = set(version_class.__table__.columns.keys())
    rules: dict[str, MetaRule] = {}
    for column, value in meta.items():
        if column in RESERVED_COLUMNS:
            raise ConfigurationError(
                f"{model.__name__}.meta cannot set reserved column {column!r}",
                code=codes.RESERVED_COLUMN,
                metadata={"column": column},
            )
        if column not in columns:
            raise ConfigurationError(
                f"{version_class.__name__} has no column {column!r} for {model.__name__}.meta",
                code=codes.UNKNOWN_ATTRIBUTE,
                metadata={"column": column},
            )
        rules[column] = coerce_rule(column, value, model=model)
    return rules


def validate_configured_mapper(trail: registry.ModelTrail, mapper: Mapper) -> None:
    """Check ``associations`` once relationships to later classes resolve."""
    model = trail.model
    for name in trail.associations:
        if name not in mapper.relationships:
            raise ConfigurationError(
                f"{model.__name__}.associations names unknown relationship {name!r}",
                code=codes.UNKNOWN_ATTRIBUTE,
                metadata={"option": "associations", "attribute": name},
            )
