"""Public API for version-trail configuration utilities."""

from .loader import load_config, load_settings
from .models import (
    DEFAULT_CONFIG_PATH,
    LoggingSettings,
    TrailSettings,
    VersioningSettings,
)

__all__ = [
    "DEFAULT_CONFIG_PATH",
    "LoggingSettings",
    "TrailSettings",
    "VersioningSettings",
    "load_config",
    "load_settings",
]
