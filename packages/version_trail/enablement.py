"""Process-wide, per-class, and scoped switches that gate version capture.

Process and class flags are shared state guarded by a lock. Scoped
suppression lives in a ``ContextVar`` keyed by class, so one thread or task
running ``without_versioning`` never turns capture off for another.
"""

from __future__ import annotations

import threading
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Any, TypeVar

from packages.version_trail.interfaces import ContextProvider

T = TypeVar("T")

_SUPPRESSED: ContextVar[frozenset[type]] = ContextVar(
    "trail_suppressed_classes", default=frozenset()
)


def _as_class(target: object) -> type:
    return target if isinstance(target, type) else type(target)


class EnablementController:
    """Lock-guarded capture switches."""

    def __init__(self, *, enabled: bool = True) -> None:
        self._lock = threading.Lock()
        self._enabled = enabled
        self._class_flags: dict[type, bool] = {}

    def set_enabled(self, enabled: bool) -> None:
        """Switch capture on or off for the whole process."""
        with self._lock:
            self._enabled = enabled

    def is_enabled(self) -> bool:
        with self._lock:
            return self._enabled

    def reset(self) -> None:
        """Turn capture back on and forget every per-class flag."""
        with self._lock:
            self._enabled = True
            self._class_flags.clear()

    def register(self, cls: type) -> None:
        """Record a newly configured class as enabled."""
        self.enable_for(cls)

    def enable_for(self, cls: type) -> None:
        with self._lock:
            self._class_flags[cls] = True

    def disable_for(self, cls: type) -> None:
        with self._lock:
            self._class_flags[cls] = False

    def is_enabled_for(self, cls: type) -> bool:
        """Return the nearest explicit flag in ``cls``'s MRO, default on."""
        with self._lock:
            for klass in cls.__mro__:
                flag = self._class_flags.get(klass)
                if flag is not None:
                    return flag
        return True

    def is_suppressed(self, cls: type) -> bool:
        suppressed = _SUPPRESSED.get()
        if not suppressed:
            return False
        return any(klass in suppressed for klass in cls.__mro__)

    @contextmanager
    def suppressed(self, target: object) -> Iterator[None]:
        """Suppress capture for ``target``'s class in the current context.

        On exit the suppression set is reset to its value at entry, whether
        the block raised or not, so nested scopes unwind correctly.
        """
        cls = _as_class(target)
        token = _SUPPRESSED.set(_SUPPRESSED.get() | {cls})
        try:
            yield
        finally:
            _SUPPRESSED.reset(token)

    def without_versioning(self, target: T, operation: Callable[[T], Any]) -> Any:
        """Run ``operation(target)`` with capture suppressed and return its result."""
        with self.suppressed(target):
            return operation(target)

    def switched_on(self, cls: type, context: ContextProvider) -> bool:
        """Return ``True`` when every gate allows capture for ``cls``."""
        return (
            self.is_enabled()
            and context.is_capturing_enabled_for_context()
            and self.is_enabled_for(cls)
            and not self.is_suppressed(cls)
        )


controller = EnablementController()


def set_enabled(enabled: bool) -> None:
    controller.set_enabled(enabled)


def is_enabled() -> bool:
    return controller.is_enabled()


def without_versioning(target: T, operation: Callable[[T], Any]) -> Any:
    """Run ``operation(target)`` without recording versions for its class."""
    return controller.without_versioning(target, operation)
