"""Mapper event handlers that append versions during a flush.

Versions are written on the flushing connection, so they commit or roll back
with the record they describe. Store failures propagate out of ``flush()``.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from sqlalchemy import Connection
from sqlalchemy import inspect as sa_inspect
from sqlalchemy.orm import Mapper

from packages.trail_shared.logging import fields, get_logger, log_context
from packages.version_trail import registry
from packages.version_trail.change_detector import notably_changed
from packages.version_trail.context import get_context_provider
from packages.version_trail.data.schema import RESERVED_COLUMNS
from packages.version_trail.enablement import controller
from packages.version_trail.metadata import merge_metadata
from packages.version_trail.snapshot import (
    before_values,
    current_attributes,
    item_before_change,
    item_id_for,
    object_attributes,
    object_changes,
)

_LOGGER = get_logger(__name__)

# Key in ``InstanceState.info`` holding the snapshot staged by ``before_delete``.
_DESTROY_SNAPSHOT = "version_trail.destroy_snapshot"


def record_create(mapper: Mapper, connection: Connection, target: Any) -> None:
    """``after_insert``: append a ``create`` version without prior state."""
    trail = registry.trail_for(type(target))
    if not _switched_on(target):
        return
    _append(trail, connection, target, {"event": "create"})


def record_update(mapper: Mapper, connection: Connection, target: Any) -> None:
    """``before_update``: append an ``update`` version for notable changes."""
    trail = registry.trail_for(type(target))
    if not _switched_on(target):
        return

    before = before_values(target)
    notable = notably_changed(
        before, ignore=trail.ignore, skip=trail.skip, only=trail.only
    )
    if not notable:
        with log_context(
            {
                **_item_fields(trail, target, "update"),
                fields.SKIP_REASON: "no_notable_changes",
            }
        ):
            _LOGGER.debug("Skipped version capture")
        return

    current = current_attributes(target)
    snapshot = item_before_change(current, before)
    serializer = trail.serializer
    payload: dict[str, Any] = {
        "event": "update",
        "object": serializer.dump(object_attributes(snapshot, trail.skip)),
    }
    if trail.records_object_changes:
        payload["object_changes"] = serializer.dump(
            object_changes(before, current, notable)
        )
    _append(trail, connection, target, payload)


def stage_destroy(mapper: Mapper, connection: Connection, target: Any) -> None:
    """``before_delete``: capture the full snapshot while the row still exists."""
    if not _switched_on(target):
        return
    snapshot = item_before_change(current_attributes(target), before_values(target))
    sa_inspect(target).info[_DESTROY_SNAPSHOT] = snapshot


def record_destroy(mapper: Mapper, connection: Connection, target: Any) -> None:
    """``after_delete``: append a ``destroy`` version from the staged snapshot."""
    snapshot = sa_inspect(target).info.pop(_DESTROY_SNAPSHOT, None)
    if snapshot is None:
        return
    trail = registry.trail_for(type(target))
    payload = {
        "event": "destroy",
        "object": trail.serializer.dump(object_attributes(snapshot, trail.skip)),
    }
    _append(trail, connection, target, payload)


def _switched_on(target: Any) -> bool:
    return controller.switched_on(type(target), get_context_provider())


def _append(
    trail: registry.ModelTrail,
    connection: Connection,
    target: Any,
    base: Mapping[str, Any],
) -> int:
    context = get_context_provider()
    payload = dict(base)
    payload["whodunnit"] = context.current_actor()
    payload = merge_metadata(
        payload,
        record=target,
        rules=trail.rules,
        ambient=context.ambient_metadata(),
        allowed_columns=trail.version_columns,
        reserved_columns=RESERVED_COLUMNS,
    )
    payload["item_type"] = trail.item_type
    payload["item_id"] = item_id_for(target)

    version_id = trail.store.append(connection, payload)
    with log_context(
        {**_item_fields(trail, target, payload["event"]), fields.VERSION_ID: version_id}
    ):
        _LOGGER.info("Version recorded")
    return version_id


def _item_fields(
    trail: registry.ModelTrail, target: Any, event: str
) -> dict[str, object]:
    return {
        fields.ITEM_TYPE: trail.item_type,
        fields.ITEM_ID: item_id_for(target),
        fields.EVENT: event,
    }
