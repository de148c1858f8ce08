"""Audit trail of create, update, and destroy events for SQLAlchemy models."""

from packages.version_trail.data.schema import (
    EVENTS,
    RESERVED_COLUMNS,
    ObjectChangesMixin,
    VersionMixin,
)
from packages.version_trail.data.store import SqlAlchemyVersionStore
from packages.version_trail.context import (
    ContextVarProvider,
    get_context_provider,
    request_context,
    set_context_provider,
    set_controller_info,
    set_enabled_for_controller,
    set_whodunnit,
)
from packages.version_trail.enablement import (
    EnablementController,
    controller,
    is_enabled,
    set_enabled,
    without_versioning,
)
from packages.version_trail.errors import (
    ConfigurationError,
    ReificationError,
    StoreUnavailable,
    VersionTrailError,
)
from packages.version_trail.metadata import Accessor, Computed, Literal
from packages.version_trail.model import Versioned, has_versions
from packages.version_trail.reification import ReifyOptions, reify
from packages.version_trail.registry import set_default_version_class, use_store
from packages.version_trail.serializers import JsonSerializer, YamlSerializer
from packages.version_trail.bootstrap import configure_versioning

__all__ = [
    "Accessor",
    "Computed",
    "ConfigurationError",
    "ContextVarProvider",
    "EVENTS",
    "EnablementController",
    "JsonSerializer",
    "Literal",
    "ObjectChangesMixin",
    "RESERVED_COLUMNS",
    "ReificationError",
    "ReifyOptions",
    "SqlAlchemyVersionStore",
    "StoreUnavailable",
    "VersionMixin",
    "VersionTrailError",
    "Versioned",
    "YamlSerializer",
    "configure_versioning",
    "controller",
    "get_context_provider",
    "has_versions",
    "is_enabled",
    "reify",
    "request_context",
    "set_context_provider",
    "set_controller_info",
    "set_default_version_class",
    "set_enabled",
    "set_enabled_for_controller",
    "set_whodunnit",
    "use_store",
    "without_versioning",
]
