"""Durable notification store backed by a sqlite file.

Rows are mapped with SQLAlchemy. Blocking engine calls run in the
loop's default executor, and every write is one ``engine.begin()``
transaction covering both the upsert and the retention trim.
"""

from __future__ import annotations

import asyncio
import json
import logging
import os
from collections.abc import Callable, Iterable
from typing import Any, TypeVar

from pydantic import ValidationError
from sqlalchemy import Integer, String, Text, create_engine, delete, func, literal_column, select, update
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from pybustrack._constants import EPOCH_ZERO
from pybustrack.exceptions import BusTrackPersistenceError
from pybustrack.models.notification import NotificationRecord
from pybustrack.store.retention import RetentionPolicy

_logger = logging.getLogger(__name__)

T = TypeVar("T")


class Base(DeclarativeBase):
    pass


class NotificationRow(Base):
    """One cached notification; ``body`` holds the serialized record."""

    __tablename__ = "notifications"

    id: Mapped[str] = mapped_column("_id", String, primary_key=True)
    time_ms: Mapped[int] = mapped_column(Integer, nullable=False)
    read: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    body: Mapped[str] = mapped_column(Text, nullable=False)


_rowid = literal_column("rowid")


class SqliteNotificationStore:
    """Notification cache persisted across sessions in a sqlite file."""

    def __init__(
        self,
        path: str | os.PathLike[str],
        *,
        retention: RetentionPolicy | None = None,
        busy_timeout: float = 5.0,
    ) -> None:
        self._path = os.fspath(path)
        self._retention = retention or RetentionPolicy()
        self._engine: Engine = create_engine(
            f"sqlite:///{self._path}",
            connect_args={"timeout": busy_timeout, "check_same_thread": False},
        )
        self._schema_ready = False

    @property
    def path(self) -> str:
        return self._path

    async def close(self) -> None:
        await asyncio.get_running_loop().run_in_executor(None, self._engine.dispose)

    # ------------------------------------------------------------------
    # Engine plumbing
    # ------------------------------------------------------------------

    def _ensure_schema(self) -> None:
        if not self._schema_ready:
            Base.metadata.create_all(self._engine)
            self._schema_ready = True

    async def _run(self, fn: Callable[[], T]) -> T:
        def _call() -> T:
            self._ensure_schema()
            return fn()

        try:
            return await asyncio.get_running_loop().run_in_executor(None, _call)
        except SQLAlchemyError as exc:
            raise BusTrackPersistenceError(f"Local notification store {self._path} failed: {exc}") from exc

    @staticmethod
    def _decode(body: str, read: int) -> NotificationRecord | None:
        try:
            record = NotificationRecord.model_validate(json.loads(body))
        except (json.JSONDecodeError, ValidationError):
            _logger.warning("Skipping unreadable cached notification row")
            _logger.debug("Cached notification decode failure", exc_info=True)
            return None
        return record.as_read() if read else record

    def _trim(self, conn: Connection) -> None:
        entries = conn.execute(select(NotificationRow.id, NotificationRow.time_ms).order_by(_rowid)).all()
        evictions = self._retention.select_evictions((str(i), int(t)) for i, t in entries)
        if evictions:
            conn.execute(delete(NotificationRow).where(NotificationRow.id.in_(evictions)))
            _logger.debug("Retention trimmed %d notification(s)", len(evictions))

    # ------------------------------------------------------------------
    # Store operations
    # ------------------------------------------------------------------

    async def upsert_all(self, records: Iterable[NotificationRecord]) -> None:
        rows: list[dict[str, Any]] = [
            {
                "_id": record.id,
                "time_ms": record.time_ms,
                "read": int(record.read),
                "body": json.dumps(record.to_storage()),
            }
            for record in records
        ]

        def _write() -> None:
            with self._engine.begin() as conn:
                if rows:
                    stmt = sqlite_insert(NotificationRow.__table__)
                    stmt = stmt.on_conflict_do_update(
                        index_elements=["_id"],
                        set_={
                            "time_ms": stmt.excluded.time_ms,
                            "body": stmt.excluded.body,
                            "read": func.max(NotificationRow.__table__.c.read, stmt.excluded.read),
                        },
                    )
                    conn.execute(stmt, rows)
                self._trim(conn)

        await self._run(_write)

    async def get_all(self) -> list[NotificationRecord]:
        def _read() -> list[tuple[str, int]]:
            with self._engine.connect() as conn:
                query = select(NotificationRow.body, NotificationRow.read).order_by(
                    NotificationRow.time_ms.desc(),
                    _rowid,
                )
                return [(body, read) for body, read in conn.execute(query)]

        rows = await self._run(_read)
        records = (self._decode(body, read) for body, read in rows)
        return [record for record in records if record is not None]

    async def get_by_id(self, notification_id: str) -> NotificationRecord | None:
        def _read() -> tuple[str, int] | None:
            with self._engine.connect() as conn:
                row = conn.execute(
                    select(NotificationRow.body, NotificationRow.read).where(NotificationRow.id == notification_id)
                ).first()
                return None if row is None else (row[0], row[1])

        row = await self._run(_read)
        if row is None:
            return None
        return self._decode(row[0], row[1])

    async def latest_timestamp(self) -> int:
        def _read() -> int | None:
            with self._engine.connect() as conn:
                return conn.execute(select(func.max(NotificationRow.time_ms))).scalar()

        value = await self._run(_read)
        return EPOCH_ZERO if value is None else int(value)

    async def delete_by_id(self, notification_id: str) -> bool:
        def _write() -> bool:
            with self._engine.begin() as conn:
                result = conn.execute(delete(NotificationRow).where(NotificationRow.id == notification_id))
                return result.rowcount > 0

        return await self._run(_write)

    async def put(self, record: NotificationRecord) -> bool:
        body = json.dumps(record.to_storage())

        def _write() -> bool:
            with self._engine.begin() as conn:
                result = conn.execute(
                    update(NotificationRow)
                    .where(NotificationRow.id == record.id)
                    .values(body=body, read=func.max(NotificationRow.read, int(record.read)))
                )
                return result.rowcount > 0

        return await self._run(_write)
