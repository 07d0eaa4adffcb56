"""Store interface shared by the sync engine and the read-state tracker."""

from __future__ import annotations

from collections.abc import Iterable
from typing import Protocol

from pybustrack.models.notification import NotificationRecord


class NotificationStore(Protocol):
    """Durable key-value persistence of notifications keyed by ``id``.

    Implementations raise :class:`~pybustrack.exceptions.BusTrackPersistenceError`
    when the underlying storage is unavailable. Absence of a record is
    never an error.
    """

    async def upsert_all(self, records: Iterable[NotificationRecord]) -> None:
        """Insert or replace by id, then trim to the retention bound.

        A record already marked read stays read when it is replaced.
        """
        ...

    async def get_all(self) -> list[NotificationRecord]:
        """All records, newest first."""
        ...

    async def get_by_id(self, notification_id: str) -> NotificationRecord | None:
        ...

    async def latest_timestamp(self) -> int:
        """Largest ``time_ms`` stored, or ``EPOCH_ZERO`` when empty."""
        ...

    async def delete_by_id(self, notification_id: str) -> bool:
        """Remove a record; returns whether it existed."""
        ...

    async def put(self, record: NotificationRecord) -> bool:
        """Replace an existing record in place; returns whether it existed."""
        ...

    async def close(self) -> None:
        """Release underlying resources."""
        ...
