"""Process-wide lookup of versioned classes, their settings, and their stores."""

from __future__ import annotations

import threading
from collections.abc import Mapping
from dataclasses import dataclass

from packages.trail_shared.errors import codes
from packages.version_trail.data.store import SqlAlchemyVersionStore
from packages.version_trail.errors import ConfigurationError, ReificationError
from packages.version_trail.interfaces import Serializer, VersionStore
from packages.version_trail.metadata import MetaRule
from packages.version_trail.serializers import get_serializer


@dataclass(frozen=True)
class ModelTrail:
    """Resolved versioning configuration for one model class."""

    model: type
    item_type: str
    events: frozenset[str]
    ignore: tuple[str, ...]
    skip: tuple[str, ...]
    only: tuple[str, ...]
    rules: Mapping[str, MetaRule]
    version_class: type
    versions_name: str
    version_name: str
    associations: tuple[str, ...]
    tracked_keys: tuple[str, ...]
    serializer_name: str | None = None

    @property
    def serializer(self) -> Serializer:
        return get_serializer(self.serializer_name)

    @property
    def store(self) -> VersionStore:
        return store_for(self.version_class)

    @property
    def version_columns(self) -> frozenset[str]:
        return frozenset(self.version_class.__table__.columns.keys())

    @property
    def records_object_changes(self) -> bool:
        return "object_changes" in self.version_columns


_lock = threading.Lock()
_trails: dict[type, ModelTrail] = {}
_item_types: dict[str, type] = {}
_stores: dict[type, VersionStore] = {}
_default_version_class: type | None = None


def register(trail: ModelTrail) -> None:
    with _lock:
        _trails[trail.model] = trail
        _item_types[trail.item_type] = trail.model


def find_trail(cls: type) -> ModelTrail | None:
    """Return the trail configured on ``cls`` or its nearest versioned base."""
    with _lock:
        for klass in cls.__mro__:
            trail = _trails.get(klass)
            if trail is not None:
                return trail
    return None


def trail_for(cls: type) -> ModelTrail:
    trail = find_trail(cls)
    if trail is None:
        raise ConfigurationError(
            f"{cls.__name__} is not configured with has_versions",
            code=codes.NOT_FOUND,
        )
    return trail


def class_for_item_type(item_type: str) -> type:
    with _lock:
        model = _item_types.get(item_type)
    if model is None:
        raise ReificationError.unknown_item_type(item_type)
    return model


def trail_for_item_type(item_type: str) -> ModelTrail:
    return trail_for(class_for_item_type(item_type))


def store_for(version_class: type) -> VersionStore:
    """Return the store writing ``version_class`` rows, creating it on first use."""
    with _lock:
        store = _stores.get(version_class)
        if store is None:
            store = SqlAlchemyVersionStore(version_class)
            _stores[version_class] = store
        return store


def use_store(version_class: type, store: VersionStore) -> None:
    """Replace the store used for ``version_class`` rows."""
    with _lock:
        _stores[version_class] = store


def set_default_version_class(version_class: type | None) -> None:
    """Select the version class used when ``has_versions`` names none."""
    global _default_version_class
    with _lock:
        _default_version_class = version_class


def default_version_class() -> type | None:
    with _lock:
        return _default_version_class
