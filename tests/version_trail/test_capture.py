"""Tests for version capture through SQLAlchemy flush events."""

from __future__ import annotations

import json
import logging
from datetime import UTC, datetime
from decimal import Decimal

import pytest
import yaml
from sqlalchemy import func, select
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session

from packages.trail_shared.errors import codes
from packages.version_trail import StoreUnavailable, registry, request_context
from packages.version_trail.context import set_whodunnit
from tests.version_trail.trail_models import (
    DeterministicClock,
    Gadget,
    Note,
    PlainVersion,
    Sprocket,
    Version,
    Widget,
)


def _history(session: Session, version_class: type, item_type: str, item_id: object):
    """Return stored versions for one item straight from the store."""
    store = registry.store_for(version_class)
    return store.list_ordered(session, item_type, str(item_id))


def test_create_appends_version_without_prior_state(session: Session) -> None:
    """Inserting a record should append one create event with no blob."""
    set_whodunnit("alice")
    widget = Widget(name="A", color="red")
    session.add(widget)
    session.commit()

    versions = widget.versions()

    assert [version.event for version in versions] == ["create"]
    created = versions[0]
    assert created.object is None
    assert created.object_changes is None
    assert created.whodunnit == "alice"
    assert created.item_key == ("Widget", str(widget.id))


def test_create_applies_model_metadata_rules(session: Session) -> None:
    """Literal, computed, and accessor rules should fill their version columns."""
    widget = Widget(name="Anvil", color="red")
    session.add(widget)
    session.commit()

    created = widget.versions()[0]

    assert created.source == "orm"
    assert created.name_length == 5
    assert created.widget_color == "red"


def test_update_records_prior_state_and_changeset(
    session: Session, clock: DeterministicClock
) -> None:
    """An update should store the pre-change snapshot and a notable-only diff."""
    widget = Widget(name="A", color="red", price=Decimal("9.99"), secret="s1")
    session.add(widget)
    session.commit()

    clock.advance(minutes=1)
    widget.name = "Bee"
    session.commit()

    update = widget.versions()[-1]
    stored = yaml.safe_load(update.object)

    assert update.event == "update"
    assert stored["name"] == "A"
    assert stored["color"] == "red"
    assert stored["price"] == "9.99"
    assert stored["id"] == widget.id
    assert "secret" not in stored
    assert update.changeset() == {"name": ["A", "Bee"]}
    assert update.name_length == 3


def test_changes_to_ignored_attributes_do_not_append_versions(session: Session) -> None:
    widget = Widget(name="A")
    session.add(widget)
    session.commit()

    widget.touched_at = datetime(2026, 1, 6, tzinfo=UTC)
    session.commit()

    assert [version.event for version in widget.versions()] == ["create"]


def test_changes_to_skipped_attributes_do_not_append_versions(session: Session) -> None:
    widget = Widget(name="A", secret="s1")
    session.add(widget)
    session.commit()

    widget.secret = "s2"
    session.commit()

    assert len(widget.versions()) == 1


def test_ignored_attribute_is_still_stored_in_snapshot(session: Session) -> None:
    """Ignore affects change detection only, never the stored state."""
    widget = Widget(name="A", touched_at=datetime(2026, 1, 1, 8, 0, tzinfo=UTC))
    session.add(widget)
    session.commit()

    widget.name = "B"
    widget.touched_at = datetime(2026, 1, 2, 8, 0, tzinfo=UTC)
    session.commit()

    update = widget.versions()[-1]
    stored = yaml.safe_load(update.object)

    assert stored["touched_at"].replace(tzinfo=None) == datetime(2026, 1, 1, 8, 0)
    assert update.changeset() == {"name": ["A", "B"]}


def test_same_value_assignment_appends_nothing(session: Session) -> None:
    widget = Widget(name="A")
    session.add(widget)
    session.commit()

    widget.name = "A"
    session.commit()

    assert len(widget.versions()) == 1


def test_only_limits_capture_to_listed_attributes(session: Session) -> None:
    """A model configured with only should ignore every other attribute."""
    note = Note(title="Draft", body="first")
    session.add(note)
    session.commit()

    note.body = "second"
    session.commit()
    assert [version.event for version in note.revisions()] == ["create"]

    note.title = "Final"
    session.commit()

    update = note.revisions()[-1]
    assert update.event == "update"
    assert json.loads(update.object)["title"] == "Draft"
    assert json.loads(update.object)["body"] == "second"
    assert update.changeset() == {"title": ["Draft", "Final"]}


def test_destroy_appends_full_snapshot(session: Session) -> None:
    """Deleting a record should append one destroy event with its last state."""
    widget = Widget(name="A", color="red")
    session.add(widget)
    session.commit()
    widget_id = widget.id

    session.delete(widget)
    session.commit()

    history = _history(session, Version, "Widget", widget_id)
    assert [version.event for version in history] == ["create", "destroy"]
    stored = yaml.safe_load(history[-1].object)
    assert stored["name"] == "A"
    assert stored["color"] == "red"
    assert history[-1].object_changes is None


def test_events_not_listed_in_on_are_not_captured(session: Session) -> None:
    """Gadget tracks update and destroy only, so creation leaves no trace."""
    gadget = Gadget(label="knob")
    session.add(gadget)
    session.commit()

    assert gadget.versions() == []

    gadget.label = "dial"
    session.commit()

    versions = gadget.versions()
    assert [version.event for version in versions] == ["update"]
    assert isinstance(versions[0], PlainVersion)
    assert versions[0].changeset() == {}


def test_single_table_subclasses_share_the_base_item_type(session: Session) -> None:
    sprocket = Sprocket(label="cog", teeth=12)
    session.add(sprocket)
    session.commit()

    sprocket.teeth = 14
    session.commit()

    versions = sprocket.versions()
    assert versions[0].item_type == "Gadget"
    assert yaml.safe_load(versions[0].object)["teeth"] == 12


def test_ambient_metadata_fills_version_columns(session: Session) -> None:
    """Request metadata should land in matching version columns."""
    with request_context(whodunnit="bob", metadata={"ip_address": "10.0.0.1"}):
        widget = Widget(name="A")
        session.add(widget)
        session.commit()

    created = widget.versions()[0]
    assert created.whodunnit == "bob"
    assert created.ip_address == "10.0.0.1"


def test_model_rules_and_base_payload_win_over_ambient_metadata(
    session: Session, caplog: pytest.LogCaptureFixture
) -> None:
    """Ambient metadata must not override rules or reserved audit columns."""
    with caplog.at_level(logging.WARNING):
        with request_context(
            whodunnit="bob",
            metadata={"source": "api", "event": "forged", "referrer": "x"},
        ):
            widget = Widget(name="A")
            session.add(widget)
            session.commit()

    created = widget.versions()[0]
    assert created.source == "orm"
    assert created.event == "create"
    assert "Dropped ambient metadata keys" in caplog.text


def test_version_rows_roll_back_with_the_mutation(session: Session) -> None:
    widget = Widget(name="A")
    session.add(widget)
    session.commit()
    widget_id = widget.id

    widget.name = "B"
    session.flush()
    session.rollback()

    assert [version.event for version in _history(session, Version, "Widget", widget_id)] == [
        "create"
    ]


def test_store_failure_aborts_the_update(session: Session, engine: Engine) -> None:
    """A failed append should surface from commit and keep the record unchanged."""
    widget = Widget(name="A")
    session.add(widget)
    session.commit()
    widget_id = widget.id

    Version.__table__.drop(engine)
    widget.name = "B"

    with pytest.raises(StoreUnavailable) as exc_info:
        session.commit()

    session.rollback()
    assert exc_info.value.code == codes.STORE_UNAVAILABLE
    assert exc_info.value.detail.retryable is True
    assert session.get(Widget, widget_id).name == "A"


def test_store_failure_aborts_the_insert(session: Session, engine: Engine) -> None:
    Version.__table__.drop(engine)
    session.add(Widget(name="A"))

    with pytest.raises(StoreUnavailable):
        session.commit()

    session.rollback()
    assert session.scalar(select(func.count()).select_from(Widget)) == 0
