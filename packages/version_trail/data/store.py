"""SQLAlchemy-backed version store.

Rows are only ever inserted. Reads order one item's rows by
``(created_at, id)``; ``id`` breaks ties between rows sharing a timestamp.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from datetime import UTC, datetime
from typing import Any

from sqlalchemy import Connection, and_, func, insert, or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from packages.trail_shared.logging import fields, get_logger, log_context
from packages.version_trail.errors import StoreUnavailable

_LOGGER = get_logger(__name__)


def to_utc(value: datetime) -> datetime:
    """Normalize a datetime to UTC, treating naive values as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def _utc_now() -> datetime:
    return datetime.now(UTC)


class SqlAlchemyVersionStore:
    """Version store over one mapped version class."""

    def __init__(
        self,
        version_class: type,
        *,
        now_provider: Callable[[], datetime] | None = None,
    ) -> None:
        self._version_class = version_class
        self._now = now_provider or _utc_now

    @property
    def version_class(self) -> type:
        return self._version_class

    @property
    def column_names(self) -> frozenset[str]:
        return frozenset(self._version_class.__table__.columns.keys())

    def append(self, connection: Connection, payload: Mapping[str, Any]) -> int:
        """Insert one version row on the flushing connection."""
        values = dict(payload)
        values["created_at"] = to_utc(values.get("created_at") or self._now())
        try:
            result = connection.execute(
                insert(self._version_class.__table__).values(**values)
            )
        except SQLAlchemyError as exc:
            with log_context(
                {
                    fields.ITEM_TYPE: values.get("item_type"),
                    fields.ITEM_ID: values.get("item_id"),
                    fields.EVENT: values.get("event"),
                    fields.ERROR_CATEGORY: "dependency",
                }
            ):
                _LOGGER.exception("Version append failed")
            raise StoreUnavailable.from_exception("append", exc) from exc
        return int(result.inserted_primary_key[0])

    def list_ordered(self, session: Session, item_type: str, item_id: str) -> list[Any]:
        version = self._version_class
        stmt = (
            select(version)
            .where(version.item_type == item_type, version.item_id == item_id)
            .order_by(version.created_at.asc(), version.id.asc())
        )
        return list(self._read("list_ordered", lambda: session.scalars(stmt).all()))

    def first_after(
        self,
        session: Session,
        item_type: str,
        item_id: str,
        timestamp: datetime,
    ) -> Any | None:
        version = self._version_class
        stmt = (
            select(version)
            .where(
                version.item_type == item_type,
                version.item_id == item_id,
                version.created_at > to_utc(timestamp),
            )
            .order_by(version.created_at.asc(), version.id.asc())
            .limit(1)
        )
        return self._read("first_after", lambda: session.scalars(stmt).first())

    def last(self, session: Session, item_type: str, item_id: str) -> Any | None:
        version = self._version_class
        stmt = (
            select(version)
            .where(version.item_type == item_type, version.item_id == item_id)
            .order_by(version.created_at.desc(), version.id.desc())
            .limit(1)
        )
        return self._read("last", lambda: session.scalars(stmt).first())

    def preceding(self, session: Session, current: Any) -> Any | None:
        version = self._version_class
        created_at = to_utc(current.created_at)
        stmt = (
            select(version)
            .where(
                version.item_type == current.item_type,
                version.item_id == current.item_id,
                or_(
                    version.created_at < created_at,
                    and_(version.created_at == created_at, version.id < current.id),
                ),
            )
            .order_by(version.created_at.desc(), version.id.desc())
            .limit(1)
        )
        return self._read("preceding", lambda: session.scalars(stmt).first())

    def following(self, session: Session, current: Any) -> Any | None:
        version = self._version_class
        created_at = to_utc(current.created_at)
        stmt = (
            select(version)
            .where(
                version.item_type == current.item_type,
                version.item_id == current.item_id,
                or_(
                    version.created_at > created_at,
                    and_(version.created_at == created_at, version.id > current.id),
                ),
            )
            .order_by(version.created_at.asc(), version.id.asc())
            .limit(1)
        )
        return self._read("following", lambda: session.scalars(stmt).first())

    def index_of(self, session: Session, current: Any) -> int:
        """Return the zero-based position of ``current`` in its item's history."""
        version = self._version_class
        created_at = to_utc(current.created_at)
        stmt = select(func.count()).where(
            version.item_type == current.item_type,
            version.item_id == current.item_id,
            or_(
                version.created_at < created_at,
                and_(version.created_at == created_at, version.id < current.id),
            ),
        )
        return int(self._read("index_of", lambda: session.scalar(stmt)) or 0)

    def _read(self, operation: str, handler: Callable[[], Any]) -> Any:
        try:
            return handler()
        except SQLAlchemyError as exc:
            _LOGGER.exception("Version store %s failed", operation)
            raise StoreUnavailable.from_exception(operation, exc) from exc
