"""Declarative models shared by the versioning engine tests."""

from __future__ import annotations

import enum
from datetime import UTC, datetime, timedelta

from sqlalchemy import Column, DateTime, Enum, ForeignKey, Integer, Numeric, String
from sqlalchemy.orm import DeclarativeBase, relationship

from packages.version_trail import (
    Accessor,
    Computed,
    ObjectChangesMixin,
    VersionMixin,
    Versioned,
    has_versions,
)


class DeterministicClock:
    """Manually advanced UTC clock used as the store's time source."""

    def __init__(self, start: datetime) -> None:
        self._now = start

    def now(self) -> datetime:
        return self._now

    def advance(self, *, seconds: int = 0, minutes: int = 0) -> datetime:
        self._now = self._now + timedelta(seconds=seconds, minutes=minutes)
        return self._now


class Finish(enum.Enum):
    MATTE = "matte"
    GLOSS = "gloss"


class Base(DeclarativeBase):
    """Declarative base for versioned test models."""


class Version(VersionMixin, ObjectChangesMixin, Base):
    """Version table with changesets and extra metadata columns."""

    __tablename__ = "versions"

    ip_address = Column(String(64), nullable=True)
    widget_color = Column(String(32), nullable=True)
    source = Column(String(32), nullable=True)
    name_length = Column(Integer, nullable=True)


class PlainVersion(VersionMixin, Base):
    """Version table without the changeset column."""

    __tablename__ = "plain_versions"


@has_versions(version_class=Version, associations=["widgets"])
class Owner(Versioned, Base):
    __tablename__ = "owners"

    id = Column(Integer, primary_key=True)
    name = Column(String(64), nullable=False)

    widgets = relationship("Widget", viewonly=True)


@has_versions(
    version_class=Version,
    ignore=["touched_at"],
    skip=["secret"],
    associations=["owner"],
    meta={
        "widget_color": Accessor("color"),
        "source": "orm",
        "name_length": Computed(lambda widget: len(widget.name or "")),
    },
)
class Widget(Versioned, Base):
    __tablename__ = "widgets"

    id = Column(Integer, primary_key=True)
    name = Column(String(64), nullable=False)
    color = Column(String(32), nullable=True)
    price = Column(Numeric(10, 2), nullable=True)
    finish = Column(Enum(Finish), nullable=True)
    secret = Column(String(64), nullable=True)
    touched_at = Column(DateTime(timezone=True), nullable=True)
    owner_id = Column(Integer, ForeignKey("owners.id"), nullable=True)

    owner = relationship("Owner")


@has_versions(
    version_class=Version,
    only=["title"],
    serializer="json",
    versions="revisions",
    version="revision",
)
class Note(Versioned, Base):
    __tablename__ = "notes"

    id = Column(Integer, primary_key=True)
    title = Column(String(128), nullable=False)
    body = Column(String(512), nullable=True)


@has_versions(version_class=PlainVersion, on=["update", "destroy"])
class Gadget(Versioned, Base):
    __tablename__ = "gadgets"

    id = Column(Integer, primary_key=True)
    kind = Column(String(32), nullable=False)
    label = Column(String(64), nullable=False)

    __mapper_args__ = {"polymorphic_on": kind, "polymorphic_identity": "gadget"}


class Sprocket(Gadget):
    teeth = Column(Integer, nullable=True)

    __mapper_args__ = {"polymorphic_identity": "sprocket"}


START = datetime(2026, 1, 5, 9, 0, tzinfo=UTC)
