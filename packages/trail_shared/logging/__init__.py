"""Public logging API for version-trail.

This package wraps Python's ``logging`` module with stdout defaults and
structured context propagation.
"""

from .config import JsonFormatter, PlainFormatter, configure_logging, get_logger
from .context import bind_context, clear_context, get_context, log_context

__all__ = [
    "bind_context",
    "clear_context",
    "configure_logging",
    "get_context",
    "get_logger",
    "JsonFormatter",
    "log_context",
    "PlainFormatter",
]
