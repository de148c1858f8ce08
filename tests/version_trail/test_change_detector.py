"""Tests for notable-change filtering."""

from __future__ import annotations

from packages.version_trail.change_detector import (
    changed_and_not_ignored,
    changed_notably,
    notably_changed,
)


def test_notably_changed_drops_ignored_and_skipped_attributes() -> None:
    """Ignored and skipped attributes should never count as notable."""
    notable = notably_changed(
        ["name", "touched_at", "secret", "color"],
        ignore=["touched_at"],
        skip=["secret"],
    )

    assert notable == ["name", "color"]


def test_notably_changed_narrows_to_only_and_preserves_order() -> None:
    """A non-empty only list should narrow candidates without reordering them."""
    notable = notably_changed(["color", "price", "name"], only=["name", "color"])

    assert notable == ["color", "name"]


def test_only_cannot_bring_back_an_ignored_attribute() -> None:
    """Overlap between only and ignore should resolve to ignored."""
    assert notably_changed(["name"], ignore=["name"], only=["name"]) == []


def test_empty_only_means_every_remaining_attribute() -> None:
    assert notably_changed(["a", "b"], only=[]) == ["a", "b"]


def test_changed_notably_reports_whether_anything_survives() -> None:
    """The boolean helper should mirror the emptiness of the notable list."""
    assert changed_notably(["name"]) is True
    assert changed_notably(["touched_at"], ignore=["touched_at"]) is False
    assert changed_notably([]) is False


def test_changed_and_not_ignored_ignores_only() -> None:
    assert changed_and_not_ignored(["a", "b", "c"], ignore=["b"], skip=["c"]) == ["a"]
