"""Apply resolved runtime settings to the versioning engine."""

from __future__ import annotations

from packages.trail_shared.config import TrailSettings, load_settings
from packages.trail_shared.logging import configure_logging, get_logger
from packages.version_trail.enablement import controller
from packages.version_trail.serializers import set_default_serializer

_LOGGER = get_logger(__name__)


def configure_versioning(
    settings: TrailSettings | None = None,
    *,
    configure_logs: bool = True,
) -> TrailSettings:
    """Configure logging, the process-wide switch, and the default serializer.

    Settings are loaded from the standard cascade when none are passed.
    Hosts that own logging setup pass ``configure_logs=False``.
    """
    resolved = settings if settings is not None else load_settings()
    if configure_logs:
        configure_logging(resolved.logging)

    controller.set_enabled(resolved.versioning.enabled)
    set_default_serializer(resolved.versioning.serializer)
    _LOGGER.info(
        "Versioning configured: enabled=%s serializer=%s",
        resolved.versioning.enabled,
        resolved.versioning.serializer,
    )
    return resolved
