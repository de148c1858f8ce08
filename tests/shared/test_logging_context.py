"""Tests for structured logging context and formatters."""

from __future__ import annotations

import json
import logging
import threading
from collections.abc import Generator

import pytest

from packages.trail_shared.config import LoggingSettings
from packages.trail_shared.logging import (
    JsonFormatter,
    PlainFormatter,
    bind_context,
    clear_context,
    configure_logging,
    get_context,
    log_context,
)
from packages.trail_shared.logging.config import ContextFilter


@pytest.fixture(autouse=True)
def _clean_context() -> Generator[None, None, None]:
    clear_context()
    yield
    clear_context()


def _record(message: str) -> logging.LogRecord:
    record = logging.LogRecord("packages.test", logging.INFO, __file__, 1, message, None, None)
    ContextFilter().filter(record)
    return record


def test_bind_context_stringifies_values_and_skips_none() -> None:
    bind_context(item_id=7, whodunnit=None)

    assert get_context() == {"item_id": "7"}


def test_log_context_restores_previous_values_on_exit() -> None:
    """Nested blocks should unwind to the outer binding."""
    bind_context(item_type="Widget")

    with log_context({"item_type": "Gadget", "event": "update"}):
        assert get_context() == {"item_type": "Gadget", "event": "update"}

    assert get_context() == {"item_type": "Widget"}


def test_clear_context_drops_selected_keys() -> None:
    bind_context(item_type="Widget", item_id="1")

    clear_context("item_id")

    assert get_context() == {"item_type": "Widget"}


def test_context_does_not_leak_across_threads() -> None:
    seen: list[dict[str, str]] = []
    bind_context(whodunnit="alice")

    worker = threading.Thread(target=lambda: seen.append(get_context()))
    worker.start()
    worker.join()

    assert seen == [{}]


def test_json_formatter_includes_bound_context() -> None:
    with log_context({"item_type": "Widget", "version_id": 3}):
        line = JsonFormatter().format(_record("Version recorded"))

    payload = json.loads(line)
    assert payload["message"] == "Version recorded"
    assert payload["level"] == "INFO"
    assert payload["item_type"] == "Widget"
    assert payload["version_id"] == "3"


def test_plain_formatter_appends_sorted_context() -> None:
    with log_context({"item_type": "Widget", "event": "create"}):
        line = PlainFormatter().format(_record("Version recorded"))

    assert line.endswith("Version recorded event=create item_type=Widget")


def test_configure_logging_binds_service_and_environment() -> None:
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    try:
        configure_logging(LoggingSettings(service="billing", environment="prod"))

        assert get_context() == {"service": "billing", "environment": "prod"}
        assert isinstance(root.handlers[0].formatter, JsonFormatter)
    finally:
        root.handlers[:] = handlers
        root.setLevel(level)
