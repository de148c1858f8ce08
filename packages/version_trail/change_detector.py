"""Decide whether a mutation is notable enough to record.

``skip`` attributes are excluded from comparison and from stored snapshots,
``ignore`` attributes only from comparison. ``only`` narrows what remains and
can never bring back an ignored or skipped attribute.
"""

from __future__ import annotations

from collections.abc import Collection, Iterable


def changed_and_not_ignored(
    changed: Iterable[str],
    *,
    ignore: Collection[str] = (),
    skip: Collection[str] = (),
) -> list[str]:
    """Return changed attribute names minus ignored and skipped ones."""
    excluded = set(ignore) | set(skip)
    return [name for name in changed if name not in excluded]


def notably_changed(
    changed: Iterable[str],
    *,
    ignore: Collection[str] = (),
    skip: Collection[str] = (),
    only: Collection[str] = (),
) -> list[str]:
    """Return the notable attribute names, preserving ``changed`` order."""
    candidates = changed_and_not_ignored(changed, ignore=ignore, skip=skip)
    if not only:
        return candidates
    allowed = set(only)
    return [name for name in candidates if name in allowed]


def changed_notably(
    changed: Iterable[str],
    *,
    ignore: Collection[str] = (),
    skip: Collection[str] = (),
    only: Collection[str] = (),
) -> bool:
    """Return ``True`` when at least one changed attribute is notable."""
    return bool(notably_changed(changed, ignore=ignore, skip=skip, only=only))
