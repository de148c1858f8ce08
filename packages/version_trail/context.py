"""Request-scoped actor and metadata propagation.

The default provider keeps ``whodunnit``, ambient metadata, and the
request-level capture switch in ``contextvars`` so concurrent requests on
threads or asyncio tasks never see each other's values.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Any

from packages.trail_shared.logging import fields, log_context
from packages.version_trail.interfaces import ContextProvider

_WHODUNNIT: ContextVar[str | None] = ContextVar("trail_whodunnit", default=None)
_CONTROLLER_INFO: ContextVar[Mapping[str, Any] | None] = ContextVar(
    "trail_controller_info", default=None
)
_ENABLED_FOR_CONTROLLER: ContextVar[bool] = ContextVar(
    "trail_enabled_for_controller", default=True
)


def set_whodunnit(actor: str | None) -> None:
    """Set the actor recorded on versions created in this context."""
    _WHODUNNIT.set(actor)


def get_whodunnit() -> str | None:
    """Return the actor recorded on versions created in this context."""
    return _WHODUNNIT.get()


def set_controller_info(info: Mapping[str, Any] | None) -> None:
    """Set extra version columns supplied by the calling request."""
    _CONTROLLER_INFO.set(dict(info) if info is not None else None)


def get_controller_info() -> dict[str, Any]:
    """Return a copy of the ambient request metadata."""
    info = _CONTROLLER_INFO.get()
    return dict(info) if info else {}


def set_enabled_for_controller(enabled: bool) -> None:
    """Switch capture on or off for the current request scope."""
    _ENABLED_FOR_CONTROLLER.set(enabled)


def is_enabled_for_controller() -> bool:
    """Return whether the current request scope allows capture."""
    return _ENABLED_FOR_CONTROLLER.get()


@contextmanager
def request_context(
    *,
    whodunnit: str | None = None,
    metadata: Mapping[str, Any] | None = None,
    enabled: bool = True,
) -> Iterator[None]:
    """Bind actor, ambient metadata, and capture switch for one block."""
    actor_token = _WHODUNNIT.set(whodunnit)
    info_token = _CONTROLLER_INFO.set(dict(metadata) if metadata is not None else None)
    enabled_token = _ENABLED_FOR_CONTROLLER.set(enabled)
    try:
        with log_context({fields.WHODUNNIT: whodunnit}):
            yield
    finally:
        _ENABLED_FOR_CONTROLLER.reset(enabled_token)
        _CONTROLLER_INFO.reset(info_token)
        _WHODUNNIT.reset(actor_token)


class ContextVarProvider:
    """Default ``ContextProvider`` backed by this module's context variables."""

    def current_actor(self) -> str | None:
        return get_whodunnit()

    def ambient_metadata(self) -> Mapping[str, Any]:
        return get_controller_info()

    def is_capturing_enabled_for_context(self) -> bool:
        return is_enabled_for_controller()


_provider: ContextProvider = ContextVarProvider()


def get_context_provider() -> ContextProvider:
    """Return the provider consulted by capture hooks."""
    return _provider


def set_context_provider(provider: ContextProvider | None) -> None:
    """Install a host-specific provider, or restore the default with ``None``."""
    global _provider
    _provider = provider if provider is not None else ContextVarProvider()
