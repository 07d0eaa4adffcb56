"""In-process notification store."""

from __future__ import annotations

from collections.abc import Iterable

from pybustrack._constants import EPOCH_ZERO
from pybustrack.models.notification import NotificationRecord, sort_newest_first
from pybustrack.store.retention import RetentionPolicy


class MemoryNotificationStore:
    """Dict-backed store.

    No method awaits internally, so each call runs to completion without
    interleaving on the event loop.
    """

    def __init__(self, *, retention: RetentionPolicy | None = None) -> None:
        self._retention = retention or RetentionPolicy()
        self._records: dict[str, NotificationRecord] = {}

    def __len__(self) -> int:
        return len(self._records)

    async def upsert_all(self, records: Iterable[NotificationRecord]) -> None:
        for record in records:
            existing = self._records.get(record.id)
            if existing is not None and existing.read:
                record = record.as_read()
            self._records[record.id] = record

        evictions = self._retention.select_evictions(
            (record.id, record.time_ms) for record in self._records.values()
        )
        for notification_id in evictions:
            del self._records[notification_id]

    async def get_all(self) -> list[NotificationRecord]:
        return sort_newest_first(self._records.values())

    async def get_by_id(self, notification_id: str) -> NotificationRecord | None:
        return self._records.get(notification_id)

    async def latest_timestamp(self) -> int:
        if not self._records:
            return EPOCH_ZERO
        return max(record.time_ms for record in self._records.values())

    async def delete_by_id(self, notification_id: str) -> bool:
        return self._records.pop(notification_id, None) is not None

    async def put(self, record: NotificationRecord) -> bool:
        existing = self._records.get(record.id)
        if existing is None:
            return False
        self._records[record.id] = record.as_read() if existing.read else record
        return True

    async def close(self) -> None:
        return None
