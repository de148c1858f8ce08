"""Protocol interfaces for the collaborators the versioning engine consumes."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from datetime import datetime
from typing import Any, Protocol

from sqlalchemy import Connection
from sqlalchemy.orm import Session


class VersionStore(Protocol):
    """Append-only, per-item ordered log of version rows."""

    def append(self, connection: Connection, payload: Mapping[str, Any]) -> int:
        """Write one version row on the flushing connection and return its id."""

    def list_ordered(
        self, session: Session, item_type: str, item_id: str
    ) -> Sequence[Any]:
        """Return all versions for one item ordered by ``(created_at, id)``."""

    def first_after(
        self, session: Session, item_type: str, item_id: str, timestamp: datetime
    ) -> Any | None:
        """Return the earliest version created strictly after ``timestamp``."""

    def last(self, session: Session, item_type: str, item_id: str) -> Any | None:
        """Return the newest version for one item."""

    def preceding(self, session: Session, version: Any) -> Any | None:
        """Return the version immediately before ``version`` in item order."""

    def following(self, session: Session, version: Any) -> Any | None:
        """Return the version immediately after ``version`` in item order."""

    def index_of(self, session: Session, version: Any) -> int:
        """Return the zero-based position of ``version`` in item order."""


class ContextProvider(Protocol):
    """Source of actor identity and ambient request metadata."""

    def current_actor(self) -> str | None:
        """Return the actor to record as ``whodunnit``."""

    def ambient_metadata(self) -> Mapping[str, Any]:
        """Return extra version columns supplied by the calling environment."""

    def is_capturing_enabled_for_context(self) -> bool:
        """Return whether the current request scope allows capture."""


class Serializer(Protocol):
    """Encode/decode capability for stored attribute payloads."""

    name: str

    def dump(self, data: Mapping[str, Any]) -> str:
        """Encode one attribute mapping into a text blob."""

    def load(self, blob: str) -> dict[str, Any]:
        """Decode one text blob back into an attribute mapping."""
