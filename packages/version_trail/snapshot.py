"""Build the prior-state snapshot and changeset for one mutation.

The pure functions work on plain attribute mappings. The ``*_attributes`` and
``before_values`` helpers adapt a mapped SQLAlchemy instance to those mappings.
"""

from __future__ import annotations

from collections.abc import Collection, Iterable, Mapping
from typing import Any

from sqlalchemy import Column
from sqlalchemy import inspect as sa_inspect
from sqlalchemy.orm import Mapper


def item_before_change(
    current: Mapping[str, Any],
    before: Mapping[str, Any],
) -> dict[str, Any]:
    """Project current attributes, then overlay the recorded before-values.

    Attributes the mutation did not touch keep their current value, so
    identity and timestamp columns are never blanked.
    """
    previous = dict(current)
    previous.update(before)
    return previous


def object_attributes(
    snapshot: Mapping[str, Any], skip: Collection[str] = ()
) -> dict[str, Any]:
    """Drop skipped attributes from a snapshot before it is stored."""
    excluded = set(skip)
    return {key: value for key, value in snapshot.items() if key not in excluded}


def object_changes(
    before: Mapping[str, Any],
    current: Mapping[str, Any],
    notable: Iterable[str],
) -> dict[str, list[Any]]:
    """Return ``{attribute: [before, after]}`` for notable attributes only."""
    return {
        name: [before.get(name), current.get(name)]
        for name in notable
        if name in before
    }


def tracked_attribute_keys(mapper: Mapper) -> tuple[str, ...]:
    """Return keys of column attributes backed by real table columns.

    Reads ``mapper.columns`` so it is safe before mappers are configured.
    """
    return tuple(
        key for key, column in mapper.columns.items() if isinstance(column, Column)
    )


def current_attributes(instance: object) -> dict[str, Any]:
    """Read every tracked column attribute, loading expired ones."""
    mapper = sa_inspect(instance).mapper
    return {key: getattr(instance, key) for key in tracked_attribute_keys(mapper)}


def before_values(instance: object) -> dict[str, Any]:
    """Return replaced values for attributes with pending changes.

    The result is ordered like the mapper's columns; its keys are the changed
    attribute names.
    """
    state = sa_inspect(instance)
    before: dict[str, Any] = {}
    for key in tracked_attribute_keys(state.mapper):
        history = state.attrs[key].history
        if not history.has_changes():
            continue
        before[key] = history.deleted[0] if history.deleted else None
    return before


def item_id_for(instance: object) -> str:
    """Return the stored string identity for one mapped instance."""
    mapper = sa_inspect(instance).mapper
    values = mapper.primary_key_from_instance(instance)
    return ",".join(str(value) for value in values)
