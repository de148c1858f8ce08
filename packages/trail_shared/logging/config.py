"""Root logger setup for hosts that let version-trail own logging.

One stdout handler carries the bound ``log_context`` fields on every record.
Hosts that configure logging themselves only need ``get_logger``.
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import UTC, datetime
from typing import Any

from packages.trail_shared.config.models import LoggingSettings

from . import fields
from .context import bind_context, get_context


class ContextFilter(logging.Filter):
    """Copy the bound logging context onto each record as ``record.context``."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.context = get_context()
        return True


class JsonFormatter(logging.Formatter):
    """One JSON object per line: core fields, then the bound context."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            fields.TIMESTAMP: datetime.fromtimestamp(record.created, UTC).isoformat(),
            fields.LEVEL: record.levelname,
            fields.LOGGER: record.name,
            fields.MESSAGE: record.getMessage(),
            **getattr(record, "context", {}),
        }
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str, separators=(",", ":"))


class PlainFormatter(logging.Formatter):
    """Text lines with the bound context appended as sorted ``key=value`` pairs."""

    def __init__(self) -> None:
        super().__init__(
            fmt="%(asctime)s %(levelname)s %(name)s %(message)s",
            datefmt="%Y-%m-%dT%H:%M:%S%z",
        )

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        context = getattr(record, "context", {})
        if not context:
            return line
        pairs = " ".join(f"{key}={context[key]}" for key in sorted(context))
        return f"{line} {pairs}"


def configure_logging(settings: LoggingSettings | None = None) -> None:
    """Replace the root handlers with a single stdout handler.

    ``service`` and ``environment`` are bound into the current logging
    context so every later line carries them.
    """
    resolved = settings or LoggingSettings()

    handler = logging.StreamHandler(stream=sys.stdout)
    handler.addFilter(ContextFilter())
    handler.setFormatter(JsonFormatter() if resolved.json_output else PlainFormatter())

    root = logging.getLogger()
    root.handlers.clear()
    root.setLevel(resolved.level)
    root.addHandler(handler)

    bind_context(
        **{fields.SERVICE: resolved.service, fields.ENVIRONMENT: resolved.environment}
    )


def get_logger(name: str | None = None) -> logging.Logger:
    return logging.getLogger(name)
