"""Typed exceptions raised by the versioning engine.

Every exception carries a shared ``ErrorDetail`` so hosts can map failures onto
their own transport without string matching.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from packages.trail_shared.errors import (
    ErrorDetail,
    codes,
    dependency_error,
    internal_error,
    not_found_error,
    validation_error,
)


class VersionTrailError(Exception):
    """Base error type for versioning failures."""

    def __init__(self, detail: ErrorDetail) -> None:
        super().__init__(detail.message)
        self.detail = detail

    @property
    def code(self) -> str:
        """Return the machine-readable error code."""
        return self.detail.code


class ConfigurationError(VersionTrailError):
    """Model versioning configuration is invalid."""

    def __init__(
        self,
        message: str,
        *,
        code: str = codes.INVALID_CONFIGURATION,
        metadata: Mapping[str, str] | None = None,
    ) -> None:
        super().__init__(validation_error(message, code=code, metadata=metadata))


class StoreUnavailable(VersionTrailError):
    """The version store failed to read or append."""

    def __init__(
        self,
        message: str,
        *,
        operation: str,
        metadata: Mapping[str, str] | None = None,
    ) -> None:
        merged = {"operation": operation, **dict(metadata or {})}
        super().__init__(
            dependency_error(
                message,
                code=codes.STORE_UNAVAILABLE,
                retryable=True,
                metadata=merged,
            )
        )
        self.operation = operation

    @classmethod
    def from_exception(cls, operation: str, exc: Exception) -> "StoreUnavailable":
        """Wrap one low-level database exception."""
        return cls(
            f"version store {operation} failed",
            operation=operation,
            metadata={"exception_type": type(exc).__name__},
        )


class ReificationError(VersionTrailError):
    """A stored version cannot be turned back into an object."""

    @classmethod
    def nothing_to_reify(cls, version: Any) -> "ReificationError":
        """No prior state exists for this version (for example ``create``)."""
        return cls(
            not_found_error(
                f"version {version.id} ({version.event}) has no prior state to reify",
                code=codes.NOTHING_TO_REIFY,
                metadata=_version_meta(version),
            )
        )

    @classmethod
    def unknown_item_type(cls, item_type: str) -> "ReificationError":
        """The stored item type is not a registered versioned class."""
        return cls(
            not_found_error(
                f"no versioned class registered for item type {item_type!r}",
                code=codes.UNKNOWN_ITEM_TYPE,
                metadata={"item_type": item_type},
            )
        )

    @classmethod
    def undecodable(cls, serializer: str, exc: Exception) -> "ReificationError":
        """The stored blob could not be decoded."""
        return cls(
            internal_error(
                f"stored object could not be decoded as {serializer}",
                code=codes.UNDECODABLE_OBJECT,
                metadata={
                    "serializer": serializer,
                    "exception_type": type(exc).__name__,
                },
            )
        )


def _version_meta(version: Any) -> dict[str, str]:
    """Describe one version row for error metadata."""
    return {
        "version_id": str(version.id),
        "item_type": str(version.item_type),
        "item_id": str(version.item_id),
        "event": str(version.event),
    }
