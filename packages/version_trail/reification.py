"""Turn stored versions back into transient instances of the versioned class.

A reified instance is never added to a session. Its back-reference attribute
(``version`` unless configured otherwise) points at the version it came from.
"""

from __future__ import annotations

import enum
import uuid
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import date, datetime, time
from decimal import Decimal
from typing import Any

from sqlalchemy import inspect as sa_inspect
from sqlalchemy import select
from sqlalchemy.orm import Mapper, RelationshipProperty, Session, object_session
from sqlalchemy.orm.attributes import set_committed_value

from packages.trail_shared.logging import fields, get_logger, log_context
from packages.version_trail import registry
from packages.version_trail.errors import ReificationError
from packages.version_trail.snapshot import item_id_for, tracked_attribute_keys

_LOGGER = get_logger(__name__)


@dataclass(frozen=True)
class ReifyOptions:
    """Optional extras applied while reifying.

    ``include_associations`` attaches each configured association as it was
    when the version was recorded. It needs a session.
    """

    include_associations: bool = False


def reify(
    version: Any,
    *,
    session: Session | None = None,
    options: ReifyOptions | None = None,
) -> Any:
    """Rebuild the item's state from just before ``version``'s change."""
    if version.event == "create" or version.object is None:
        raise ReificationError.nothing_to_reify(version)

    model = registry.class_for_item_type(version.item_type)
    trail = registry.trail_for(model)
    attributes = trail.serializer.load(version.object)

    mapper = _mapper_for(sa_inspect(model), attributes)
    instance = _build(mapper, attributes, version)
    setattr(instance, trail.version_name, version)

    if options is not None and options.include_associations:
        _attach_associations(
            trail, instance, version, session or object_session(version)
        )
    return instance


def _mapper_for(mapper: Mapper, attributes: Mapping[str, Any]) -> Mapper:
    """Pick the inheriting mapper named by a stored discriminator value."""
    if mapper.polymorphic_on is None:
        return mapper
    discriminator = mapper.get_property_by_column(mapper.polymorphic_on).key
    value = attributes.get(discriminator)
    return mapper.polymorphic_map.get(value, mapper)


def _build(mapper: Mapper, attributes: Mapping[str, Any], version: Any) -> Any:
    instance = mapper.class_manager.new_instance()
    known = tracked_attribute_keys(mapper)
    for key in known:
        if key in attributes:
            setattr(instance, key, _coerce(mapper, key, attributes[key]))

    dropped = sorted(set(attributes) - set(known))
    if dropped:
        with log_context(
            {
                fields.VERSION_ID: version.id,
                fields.ITEM_TYPE: version.item_type,
                fields.DROPPED_KEYS: ",".join(dropped),
            }
        ):
            _LOGGER.debug("Ignored stored attributes without mapped columns")
    return instance


def _coerce(mapper: Mapper, key: str, value: Any) -> Any:
    """Convert text-encoded values back to the column's Python type."""
    if value is None:
        return None
    column = mapper.columns[key]
    try:
        python_type = column.type.python_type
    except NotImplementedError:
        return value

    if python_type is datetime and isinstance(value, str):
        return datetime.fromisoformat(value)
    if python_type is date and isinstance(value, datetime):
        return value.date()
    if python_type is date and isinstance(value, str):
        return date.fromisoformat(value)
    if python_type is time and isinstance(value, str):
        return time.fromisoformat(value)
    if python_type is Decimal and not isinstance(value, Decimal):
        return Decimal(str(value))
    if python_type is uuid.UUID and not isinstance(value, uuid.UUID):
        return uuid.UUID(str(value))
    if issubclass(python_type, enum.Enum) and not isinstance(value, python_type):
        return python_type(value)
    return value


def _attach_associations(
    trail: registry.ModelTrail,
    instance: Any,
    version: Any,
    session: Session | None,
) -> None:
    if session is None:
        raise ValueError("reifying associations requires a session")

    mapper = sa_inspect(type(instance))
    for name in trail.associations:
        relationship = mapper.relationships[name]
        related = _load_related(session, mapper, relationship, instance)
        as_of = [_as_of(session, item, version.created_at) for item in related]
        present = [item for item in as_of if item is not None]
        if relationship.uselist:
            set_committed_value(instance, name, present)
        else:
            set_committed_value(instance, name, present[0] if present else None)


def _load_related(
    session: Session,
    mapper: Mapper,
    relationship: RelationshipProperty,
    instance: Any,
) -> list[Any]:
    """Query the rows ``instance``'s stored keys point at, not the live links."""
    if relationship.secondary is not None:
        pairs = relationship.synchronize_pairs
        criteria = [relationship.secondaryjoin]
    else:
        pairs = relationship.local_remote_pairs
        criteria = []

    for local, remote in pairs:
        value = getattr(instance, mapper.get_property_by_column(local).key, None)
        if value is None:
            return []
        criteria.append(remote == value)

    target = relationship.mapper
    stmt = select(target.class_).where(*criteria).order_by(*target.primary_key)
    return list(session.scalars(stmt))


def _as_of(session: Session, record: Any, timestamp: datetime) -> Any | None:
    """Return ``record`` as of ``timestamp``, or itself when it is not versioned."""
    trail = registry.find_trail(type(record))
    if trail is None:
        return record
    later = trail.store.first_after(
        session, trail.item_type, item_id_for(record), timestamp
    )
    if later is None:
        return record
    if later.event == "create":
        return None
    return reify(later, session=session)

