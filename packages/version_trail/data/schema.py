"""Declarative mixins for version tables.

Combine ``VersionMixin`` with the host's declarative base to map a version
class; add ``ObjectChangesMixin`` to also store structured changesets::

    class Version(VersionMixin, ObjectChangesMixin, Base):
        __tablename__ = "versions"
"""

from __future__ import annotations

from typing import Any

from sqlalchemy import Column, DateTime, Index, Integer, String, Text
from sqlalchemy.orm import Session, declared_attr, object_session

from packages.version_trail import reification, registry

RESERVED_COLUMNS: frozenset[str] = frozenset(
    {
        "id",
        "item_type",
        "item_id",
        "event",
        "whodunnit",
        "object",
        "object_changes",
        "created_at",
    }
)

EVENTS: tuple[str, ...] = ("create", "update", "destroy")


class VersionMixin:
    """Columns and navigation helpers shared by every version class."""

    id = Column(Integer, primary_key=True, autoincrement=True)
    item_type = Column(String(255), nullable=False)
    item_id = Column(String(255), nullable=False)
    event = Column(String(16), nullable=False)
    whodunnit = Column(String(255), nullable=True)
    object = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False)

    @declared_attr.directive
    def __table_args__(cls) -> tuple[Any, ...]:
        return (
            Index(
                f"ix_{cls.__tablename__}_item_order",
                "item_type",
                "item_id",
                "created_at",
                "id",
            ),
        )

    @property
    def item_key(self) -> tuple[str, str]:
        return (self.item_type, self.item_id)

    def reify(self, options: Any = None, *, session: Session | None = None) -> Any:
        """Rebuild the item as it was just before this version's change."""
        return reification.reify(self, session=session, options=options)

    def previous(self, session: Session | None = None) -> Any | None:
        """Return the version immediately before this one for the same item."""
        return self._store().preceding(self._session(session), self)

    def next(self, session: Session | None = None) -> Any | None:
        """Return the version immediately after this one for the same item."""
        return self._store().following(self._session(session), self)

    def index(self, session: Session | None = None) -> int:
        """Return this version's zero-based position in its item's history."""
        return self._store().index_of(self._session(session), self)

    def changeset(self) -> dict[str, list[Any]]:
        """Return the decoded ``{attribute: [before, after]}`` mapping."""
        blob = getattr(self, "object_changes", None)
        if not blob:
            return {}
        return registry.trail_for_item_type(self.item_type).serializer.load(blob)

    def _store(self) -> Any:
        return registry.store_for(type(self))

    def _session(self, session: Session | None) -> Session:
        resolved = session or object_session(self)
        if resolved is None:
            raise ValueError(f"version {self.id} is detached; pass a session")
        return resolved

    def __repr__(self) -> str:
        return (
            f"<{type(self).__name__} id={self.id} item={self.item_type}:{self.item_id} "
            f"event={self.event}>"
        )


class ObjectChangesMixin:
    """Adds the optional structured changeset column."""

    object_changes = Column(Text, nullable=True)
