"""Walk an item's history relative to a live or reified instance.

A live instance has no source version. A reified instance carries the version
it was rebuilt from in its back-reference attribute, and navigation steps
from there.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy.orm import Session, object_session

from packages.version_trail import registry
from packages.version_trail.reification import ReifyOptions, reify
from packages.version_trail.snapshot import item_id_for


def source_version(record: Any) -> Any | None:
    """Return the version ``record`` was reified from, or ``None`` when live."""
    trail = registry.trail_for(type(record))
    return getattr(record, trail.version_name, None)


def is_live(record: Any) -> bool:
    return source_version(record) is None


def versions(record: Any, *, session: Session | None = None) -> list[Any]:
    """Return every version of ``record`` ordered by ``(created_at, id)``."""
    trail = registry.trail_for(type(record))
    return trail.store.list_ordered(
        _session_for(record, session), trail.item_type, item_id_for(record)
    )


def originator(record: Any, *, session: Session | None = None) -> str | None:
    """Return who made the most recent recorded change."""
    trail = registry.trail_for(type(record))
    latest = trail.store.last(
        _session_for(record, session), trail.item_type, item_id_for(record)
    )
    return latest.whodunnit if latest is not None else None


def version_at(
    record: Any,
    timestamp: datetime,
    options: ReifyOptions | None = None,
    *,
    session: Session | None = None,
) -> Any | None:
    """Return ``record`` as it was at ``timestamp``.

    Each version stores the state from before its change, so the first
    version recorded after ``timestamp`` holds the answer. With no such
    version the live record is current. A ``create`` there means the record
    did not exist yet, and ``None`` is returned.
    """
    trail = registry.trail_for(type(record))
    resolved = _session_for(record, session)
    later = trail.store.first_after(
        resolved, trail.item_type, item_id_for(record), timestamp
    )
    if later is None:
        return record
    return _reify_or_none(later, resolved, options)


def previous_version(record: Any, *, session: Session | None = None) -> Any | None:
    """Return the state before ``record``'s source, or before the latest change."""
    trail = registry.trail_for(type(record))
    resolved = _session_for(record, session)
    source = source_version(record)
    if source is None:
        preceding = trail.store.last(resolved, trail.item_type, item_id_for(record))
    else:
        preceding = trail.store.preceding(resolved, source)
    return _reify_or_none(preceding, resolved)


def next_version(record: Any, *, session: Session | None = None) -> Any | None:
    """Return the state after ``record``'s source change.

    Live records and reifications of the newest version have no next state
    and return ``None``.
    """
    source = source_version(record)
    if source is None:
        return None
    resolved = _session_for(record, session)
    following = registry.trail_for(type(record)).store.following(resolved, source)
    return _reify_or_none(following, resolved)


def _reify_or_none(
    version: Any | None,
    session: Session,
    options: ReifyOptions | None = None,
) -> Any | None:
    if version is None or version.event == "create":
        return None
    return reify(version, session=session, options=options)


def _session_for(record: Any, session: Session | None) -> Session:
    if session is not None:
        return session
    resolved = object_session(record)
    if resolved is None:
        source = source_version(record)
        if source is not None:
            resolved = object_session(source)
    if resolved is None:
        raise ValueError(f"{type(record).__name__} is detached; pass a session")
    return resolved
