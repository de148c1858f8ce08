"""Data-layer exports for version storage."""

from packages.version_trail.data.store import SqlAlchemyVersionStore, to_utc

__all__ = ["SqlAlchemyVersionStore", "to_utc"]
