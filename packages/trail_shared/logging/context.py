"""Structured fields carried by every log line in the current context.

The fields live in a ``ContextVar``, so each thread and asyncio task sees its
own bindings. Values are stored as strings.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from contextvars import ContextVar

_FIELDS: ContextVar[dict[str, str]] = ContextVar("trail_log_fields", default={})


def get_context() -> dict[str, str]:
    """Return a copy of the fields bound in the current context."""
    return dict(_FIELDS.get())


def bind_context(**values: object) -> None:
    """Add or replace fields; ``None`` values are skipped."""
    _FIELDS.set(_with(_FIELDS.get(), values))


def clear_context(*keys: str) -> None:
    """Drop the named fields, or every field when none are named."""
    if not keys:
        _FIELDS.set({})
        return
    _FIELDS.set({key: value for key, value in _FIELDS.get().items() if key not in keys})


@contextmanager
def log_context(values: Mapping[str, object]) -> Iterator[None]:
    """Bind ``values`` for the duration of the block."""
    token = _FIELDS.set(_with(_FIELDS.get(), values))
    try:
        yield
    finally:
        _FIELDS.reset(token)


def _with(current: Mapping[str, str], values: Mapping[str, object]) -> dict[str, str]:
    updated = dict(current)
    updated.update(
        {str(key): str(value) for key, value in values.items() if value is not None}
    )
    return updated
