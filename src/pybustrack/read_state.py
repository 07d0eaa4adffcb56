"""Per-notification read state."""

from __future__ import annotations

import logging

from pybustrack.store.base import NotificationStore

_logger = logging.getLogger(__name__)


class ReadStateTracker:
    """Flip a stored notification's ``read`` flag, at most once."""

    def __init__(self, store: NotificationStore) -> None:
        self._store = store

    async def mark_read(self, notification_id: str) -> bool:
        """Mark a notification read.

        Returns ``True`` only when the stored flag actually changed. An
        unknown id (e.g. already evicted by retention) is a no-op.
        """
        record = await self._store.get_by_id(notification_id)
        if record is None:
            _logger.debug("mark_read: notification %s not in store", notification_id)
            return False
        if record.read:
            return False
        return await self._store.put(record.as_read())
