"""Incremental notification synchronization.

The engine keeps an in-memory view of the notification list for display
and reconciles it with the local store and the remote source:

1. publish the stored snapshot immediately (local-first render),
2. read the store's watermark,
3. fetch only notifications newer than the watermark,
4. prepend them to the view and persist them (which trims the store).

Background failures never invalidate the cached view. They are logged and
returned in :class:`SyncResult` instead of being raised.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import Awaitable, Callable, Iterable
from dataclasses import dataclass, field

from pybustrack._constants import EPOCH_ZERO
from pybustrack.exceptions import (
    BusTrackError,
    BusTrackParseError,
    BusTrackPersistenceError,
    BusTrackTransportError,
)
from pybustrack.models.notification import NotificationRecord, sort_newest_first
from pybustrack.store.base import NotificationStore

_logger = logging.getLogger(__name__)

NotificationSource = Callable[[int], Awaitable[list[NotificationRecord]]]
"""Fetches notifications strictly newer than an epoch-ms watermark."""


@dataclass(frozen=True)
class SyncResult:
    """Outcome of one :meth:`NotificationSyncEngine.sync` call."""

    notifications: list[NotificationRecord]
    """The view after the sync, newest first."""
    new_notifications: list[NotificationRecord] = field(default_factory=list)
    """Items received from the remote source in this sync."""
    watermark_ms: int = EPOCH_ZERO
    """Watermark sent with the remote request."""
    error: BusTrackError | None = None
    """Non-fatal failure absorbed during the sync, if any."""

    @property
    def ok(self) -> bool:
        return self.error is None


class NotificationSyncEngine:
    """Merge remote notifications into a local store and a display view.

    ``sync()`` is not reentrant. Overlapping calls are coalesced: a call
    made while another is outstanding waits for it and returns the same
    :class:`SyncResult` instead of issuing a second request.
    """

    def __init__(
        self,
        store: NotificationStore,
        source: NotificationSource,
        *,
        retries: int = 2,
        retry_backoff: float = 0.5,
        on_snapshot: Callable[[list[NotificationRecord]], None] | None = None,
    ) -> None:
        self._store = store
        self._source = source
        self._retries = max(0, retries)
        self._retry_backoff = retry_backoff
        self._on_snapshot = on_snapshot
        self._view: list[NotificationRecord] = []
        self._inflight: asyncio.Task[SyncResult] | None = None

    @property
    def notifications(self) -> list[NotificationRecord]:
        """Current view, newest first."""
        return list(self._view)

    @property
    def unread_count(self) -> int:
        return sum(1 for record in self._view if not record.read)

    @property
    def is_syncing(self) -> bool:
        return self._inflight is not None and not self._inflight.done()

    async def close(self) -> None:
        """Cancel an outstanding sync and wait for it to finish."""
        inflight = self._inflight
        self._inflight = None
        if inflight is None or inflight.done():
            return
        inflight.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await inflight

    # ------------------------------------------------------------------
    # Sync
    # ------------------------------------------------------------------

    async def sync(self) -> SyncResult:
        """Run one incremental sync, or join the one already running."""
        inflight = self._inflight
        if inflight is None or inflight.done():
            inflight = asyncio.get_running_loop().create_task(self._sync_once(), name="notification-sync")
            self._inflight = inflight
        else:
            _logger.debug("Notification sync already in progress, joining it")
        # Shield so one cancelled caller does not abort the sync for the others.
        return await asyncio.shield(inflight)

    async def _sync_once(self) -> SyncResult:
        local = await self._load_local()
        self._set_view(local)

        watermark = await self._load_watermark(local)

        try:
            incoming = await self._fetch(watermark)
        except (BusTrackTransportError, BusTrackParseError) as exc:
            _logger.warning("Notification sync failed, keeping cached view: %s", exc)
            return SyncResult(self.notifications, watermark_ms=watermark, error=exc)

        if not incoming:
            _logger.debug("Notification sync: nothing newer than %d", watermark)
            return SyncResult(self.notifications, watermark_ms=watermark)

        new_items = self._merge_into_view(incoming)
        _logger.debug("Notification sync: %d new item(s)", len(new_items))

        try:
            await self._store.upsert_all(new_items)
        except BusTrackPersistenceError as exc:
            _logger.warning("Could not persist synced notifications: %s", exc)
            return SyncResult(self.notifications, new_items, watermark, error=exc)
        return SyncResult(self.notifications, new_items, watermark)

    async def _load_local(self) -> list[NotificationRecord]:
        try:
            return await self._store.get_all()
        except BusTrackPersistenceError as exc:
            # Degrade to remote-only rather than failing the sync.
            _logger.warning("Local notification store unavailable: %s", exc)
            return []

    async def _load_watermark(self, local: list[NotificationRecord]) -> int:
        try:
            return await self._store.latest_timestamp()
        except BusTrackPersistenceError:
            _logger.debug("Watermark read failed, deriving from snapshot", exc_info=True)
            return max((record.time_ms for record in local), default=EPOCH_ZERO)

    async def _fetch(self, watermark: int) -> list[NotificationRecord]:
        delay = self._retry_backoff
        attempt = 0
        while True:
            try:
                return await self._source(watermark)
            except BusTrackTransportError as exc:
                if attempt >= self._retries:
                    raise
                attempt += 1
                _logger.debug(
                    "Notification fetch attempt %d failed (%s); retrying in %.2fs",
                    attempt,
                    exc,
                    delay,
                )
                await asyncio.sleep(delay)
                delay *= 2

    def _merge_into_view(self, incoming: Iterable[NotificationRecord]) -> list[NotificationRecord]:
        """Merge *incoming* into the view, newest first; returns the de-duplicated new items."""
        by_id: dict[str, NotificationRecord] = {}
        for record in incoming:
            by_id[record.id] = record

        read_ids = {record.id for record in self._view if record.read}
        new_items = [
            record.as_read() if record.id in read_ids else record
            for record in sort_newest_first(by_id.values())
        ]
        remaining = [record for record in self._view if record.id not in by_id]
        self._set_view(sort_newest_first([*new_items, *remaining]))
        return new_items

    # ------------------------------------------------------------------
    # View maintenance for user actions
    # ------------------------------------------------------------------

    def prepend(self, record: NotificationRecord) -> None:
        """Show a freshly created record at the top of the view."""
        self._set_view([record, *(r for r in self._view if r.id != record.id)])

    def remove(self, notification_id: str) -> None:
        self._set_view([r for r in self._view if r.id != notification_id])

    def mark_read_in_view(self, notification_id: str) -> None:
        if not any(r.id == notification_id and not r.read for r in self._view):
            return
        self._set_view([r.as_read() if r.id == notification_id else r for r in self._view])

    def _set_view(self, records: list[NotificationRecord]) -> None:
        self._view = records
        if self._on_snapshot is None:
            return
        try:
            self._on_snapshot(list(records))
        except Exception:
            _logger.debug("on_snapshot callback failed", exc_info=True)
