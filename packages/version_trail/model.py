"""``has_versions`` decorator and the ``Versioned`` mixin for mapped classes.

Usage::

    @has_versions(ignore=["updated_at"], meta={"author_id": Accessor("author_id")})
    class Article(Versioned, Base):
        __tablename__ = "articles"
        ...
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime
from typing import Any, TypeVar

from sqlalchemy import event
from sqlalchemy.orm import Mapper, Session

from packages.version_trail import capture, navigator, registry
from packages.version_trail.config import resolve_trail, validate_configured_mapper
from packages.version_trail.enablement import controller
from packages.version_trail.errors import ConfigurationError
from packages.version_trail.reification import ReifyOptions
from packages.version_trail.snapshot import tracked_attribute_keys

T = TypeVar("T", bound=type)

_HANDLERS: dict[str, tuple[tuple[str, Callable[..., None]], ...]] = {
    "create": (("after_insert", capture.record_create),),
    "update": (("before_update", capture.record_update),),
    "destroy": (
        ("before_delete", capture.stage_destroy),
        ("after_delete", capture.record_destroy),
    ),
}


class Versioned:
    """Navigation and switches for classes configured with ``has_versions``."""

    @property
    def live(self) -> bool:
        """``True`` unless this instance was reified from a version."""
        return navigator.is_live(self)

    def versions(self, session: Session | None = None) -> list[Any]:
        return navigator.versions(self, session=session)

    def version_at(
        self,
        timestamp: datetime,
        options: ReifyOptions | None = None,
        *,
        session: Session | None = None,
    ) -> Any | None:
        return navigator.version_at(self, timestamp, options, session=session)

    def previous_version(self, *, session: Session | None = None) -> Any | None:
        return navigator.previous_version(self, session=session)

    def next_version(self, *, session: Session | None = None) -> Any | None:
        return navigator.next_version(self, session=session)

    def originator(self, *, session: Session | None = None) -> str | None:
        return navigator.originator(self, session=session)

    def without_versioning(
        self, operation: Callable[[Any], Any] | None = None
    ) -> Any:
        """Suppress capture for this class while ``operation(self)`` runs.

        Without an operation, return a context manager instead::

            with widget.without_versioning():
                widget.name = "quiet"
                session.flush()
        """
        if operation is None:
            return controller.suppressed(self)
        return controller.without_versioning(self, operation)

    @classmethod
    def enable_versioning(cls) -> None:
        controller.enable_for(cls)

    @classmethod
    def disable_versioning(cls) -> None:
        controller.disable_for(cls)

    @classmethod
    def versioning_enabled(cls) -> bool:
        return controller.is_enabled_for(cls)


def has_versions(**options: Any) -> Callable[[T], T]:
    """Configure version capture for a mapped ``Versioned`` class.

    Raises:
        ConfigurationError: When an option is invalid for the class.
    """

    def decorate(cls: T) -> T:
        if not issubclass(cls, Versioned):
            raise ConfigurationError(f"{cls.__name__} must inherit Versioned")

        trail = resolve_trail(cls, options)
        registry.register(trail)
        controller.register(cls)

        setattr(cls, trail.version_name, None)
        if trail.versions_name != "versions":
            setattr(cls, trail.versions_name, Versioned.versions)

        for event_name in trail.events:
            for hook, handler in _HANDLERS[event_name]:
                event.listen(cls, hook, handler, propagate=True)

        def on_configured(mapper: Mapper, class_: type) -> None:
            _enable_active_history(mapper)
            if class_ is cls:
                validate_configured_mapper(trail, mapper)

        event.listen(cls, "mapper_configured", on_configured, propagate=True)
        return cls

    return decorate


def _enable_active_history(mapper: Mapper) -> None:
    """Load replaced values on set so expired attributes keep their history."""
    for key in tracked_attribute_keys(mapper):
        attribute = getattr(mapper.class_, key)
        if not event.contains(attribute, "set", _load_replaced_value):
            event.listen(attribute, "set", _load_replaced_value, active_history=True)


def _load_replaced_value(
    target: Any, value: Any, oldvalue: Any, initiator: Any
) -> None:
    return None
