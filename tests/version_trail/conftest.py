"""Shared fixtures for versioning engine tests."""

from __future__ import annotations

from collections.abc import Generator
from contextlib import closing
from pathlib import Path

import pytest
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from packages.trail_shared.logging import clear_context
from packages.version_trail import SqlAlchemyVersionStore, registry
from packages.version_trail.context import (
    set_context_provider,
    set_controller_info,
    set_enabled_for_controller,
    set_whodunnit,
)
from packages.version_trail.enablement import controller
from packages.version_trail.serializers import set_default_serializer
from tests.version_trail.trail_models import (
    START,
    Base,
    DeterministicClock,
    PlainVersion,
    Version,
)


@pytest.fixture
def clock() -> DeterministicClock:
    """Provide a store clock starting at a fixed UTC instant."""
    return DeterministicClock(START)


@pytest.fixture
def engine(tmp_path: Path, clock: DeterministicClock) -> Generator[Engine, None, None]:
    """Provide a sqlite engine backed by a temp file with all tables created."""
    engine = create_engine(f"sqlite:///{tmp_path / 'trail.db'}")
    Base.metadata.create_all(engine)
    registry.use_store(Version, SqlAlchemyVersionStore(Version, now_provider=clock.now))
    registry.use_store(
        PlainVersion, SqlAlchemyVersionStore(PlainVersion, now_provider=clock.now)
    )
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(bind=engine)


@pytest.fixture
def session(session_factory: sessionmaker) -> Generator[Session, None, None]:
    with closing(session_factory()) as session:
        yield session


@pytest.fixture(autouse=True)
def reset_trail_state() -> Generator[None, None, None]:
    """Restore process, class, and request switches after every test."""
    yield
    controller.reset()
    set_context_provider(None)
    set_whodunnit(None)
    set_controller_info(None)
    set_enabled_for_controller(True)
    set_default_serializer("yaml")
    clear_context()
