"""High-level async client for the bus-tracking backend."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Mapping
from typing import Any

import aiohttp

from pybustrack._api import location as _location_api
from pybustrack._api import notifications as _notifications_api
from pybustrack._constants import NEW_NOTIFICATION_MESSAGE
from pybustrack._transport import HttpTransport
from pybustrack.config import BusTrackConfig
from pybustrack.exceptions import BusTrackError, BusTrackPersistenceError
from pybustrack.models.notification import NotificationDraft, NotificationRecord
from pybustrack.models.position import LatLng, PositionSample
from pybustrack.motion import PositionAnimator
from pybustrack.read_state import ReadStateTracker
from pybustrack.reporter import LocationReporter, PositionSource
from pybustrack.staleness import StalenessMonitor, StalenessReport
from pybustrack.store import MemoryNotificationStore, NotificationStore, RetentionPolicy, SqliteNotificationStore
from pybustrack.stream import PositionStreamClient
from pybustrack.sync import NotificationSyncEngine, SyncResult

_logger = logging.getLogger(__name__)


class BusTrackClient:
    """Async client for the bus-tracking backend.

    Usage::

        async with BusTrackClient(config) as client:
            result = await client.sync_notifications()
            stream = client.position_stream(on_sample=print)
            await stream.subscribe("12", config.token)
    """

    def __init__(
        self,
        config: BusTrackConfig,
        *,
        session: aiohttp.ClientSession | None = None,
        store: NotificationStore | None = None,
        on_notifications: Callable[[list[NotificationRecord]], None] | None = None,
    ) -> None:
        self._config = config
        self._external_session = session is not None
        self._http_session = session
        self._transport: HttpTransport | None = None
        self._owns_store = store is None
        self._store = store if store is not None else self._default_store(config)
        self._read_state = ReadStateTracker(self._store)
        self._sync = NotificationSyncEngine(
            self._store,
            self._fetch_after,
            retries=config.sync_retries,
            retry_backoff=config.sync_retry_backoff,
            on_snapshot=on_notifications,
        )

    @staticmethod
    def _default_store(config: BusTrackConfig) -> NotificationStore:
        retention = RetentionPolicy(config.max_notifications)
        if config.store_path:
            return SqliteNotificationStore(config.store_path, retention=retention)
        return MemoryNotificationStore(retention=retention)

    # ------------------------------------------------------------------
    # Context manager lifecycle
    # ------------------------------------------------------------------

    async def __aenter__(self) -> BusTrackClient:
        if self._http_session is None:
            self._http_session = aiohttp.ClientSession()
        self._transport = HttpTransport(self._config, self._http_session)
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self._sync.close()
        if self._owns_store:
            await self._store.close()
        if not self._external_session and self._http_session is not None:
            await self._http_session.close()
            self._http_session = None
        self._transport = None

    def _require_transport(self) -> HttpTransport:
        if self._transport is None:
            raise BusTrackError("Client not initialized. Use 'async with BusTrackClient(...) as client:'")
        return self._transport

    @property
    def config(self) -> BusTrackConfig:
        return self._config

    @property
    def store(self) -> NotificationStore:
        return self._store

    # ------------------------------------------------------------------
    # Notifications
    # ------------------------------------------------------------------

    async def _fetch_after(self, watermark_ms: int) -> list[NotificationRecord]:
        return await _notifications_api.fetch_notifications_after(self._require_transport(), watermark_ms)

    async def sync_notifications(self) -> SyncResult:
        """Publish the cached list, then fetch and persist anything newer.

        Failures are reported in :attr:`SyncResult.error`, never raised.
        """
        self._require_transport()
        return await self._sync.sync()

    @property
    def notifications(self) -> list[NotificationRecord]:
        """Notifications as of the last sync, newest first."""
        return self._sync.notifications

    @property
    def unread_count(self) -> int:
        return self._sync.unread_count

    async def mark_notification_read(self, notification_id: str) -> bool:
        changed = await self._read_state.mark_read(notification_id)
        self._sync.mark_read_in_view(notification_id)
        return changed

    async def delete_notification(self, notification_id: str) -> None:
        """Delete a notification remotely, then drop it locally.

        Raises
        ------
        BusTrackApiError
            The server refused the delete.
        BusTrackTransportError
            The request failed.
        """
        await _notifications_api.delete_notification(self._require_transport(), notification_id)
        self._sync.remove(notification_id)
        await self._store.delete_by_id(notification_id)

    async def send_notification(
        self,
        draft: NotificationDraft,
        *,
        image: bytes | None = None,
        image_filename: str = "image",
        image_content_type: str = "application/octet-stream",
    ) -> NotificationRecord:
        """Publish a notification and add the created record locally.

        Raises
        ------
        BusTrackPersistenceError
            The server accepted the notification but it could not be
            saved locally. It will arrive with the next sync.
        """
        record = await _notifications_api.create_notification(
            self._require_transport(),
            draft,
            image=image,
            image_filename=image_filename,
            image_content_type=image_content_type,
        )
        self._sync.prepend(record)
        try:
            await self._store.upsert_all([record])
        except BusTrackPersistenceError as exc:
            raise BusTrackPersistenceError(f"Notification sent but could not save locally: {exc}") from exc
        return record

    async def handle_push_message(self, message: Mapping[str, Any]) -> SyncResult | None:
        """React to a platform push; new-notification pushes trigger a sync."""
        if message.get("type") != NEW_NOTIFICATION_MESSAGE:
            _logger.debug("Ignoring push message type=%r", message.get("type"))
            return None
        return await self.sync_notifications()

    # ------------------------------------------------------------------
    # Location
    # ------------------------------------------------------------------

    async def get_location(self, bus_no: str) -> PositionSample:
        return await _location_api.fetch_location(self._require_transport(), bus_no)

    async def get_route_path(self, bus_no: str) -> list[LatLng]:
        """Planned route for *bus_no*, or ``[]`` when it cannot be loaded."""
        try:
            return await _location_api.fetch_route_path(self._require_transport(), bus_no)
        except BusTrackError as exc:
            _logger.warning("Route path unavailable for bus=%s: %s", bus_no, exc)
            return []

    def position_stream(
        self,
        *,
        on_sample: Callable[[PositionSample], None] | None = None,
        on_loaded: Callable[[], None] | None = None,
        on_error: Callable[[str], None] | None = None,
    ) -> PositionStreamClient:
        """New live position subscription bound to this client's transport."""
        return PositionStreamClient(
            self._require_transport(),
            on_sample=on_sample,
            on_loaded=on_loaded,
            on_error=on_error,
        )

    def staleness_monitor(
        self,
        stream: PositionStreamClient,
        on_report: Callable[[StalenessReport], None],
    ) -> StalenessMonitor:
        return StalenessMonitor(
            lambda: stream.last_update,
            on_report,
            interval=self._config.staleness_interval,
            stale_after=self._config.stale_after,
            reload_after=self._config.reload_prompt_after,
            clock=time.time,
        )

    def animator(self, render: Callable[[LatLng], None]) -> PositionAnimator:
        return PositionAnimator(render, duration_ms=self._config.animation_duration_ms)

    def location_reporter(self, bus_no: str, position_source: PositionSource) -> LocationReporter:
        return LocationReporter(
            self._require_transport(),
            bus_no,
            position_source,
            interval=self._config.report_interval,
            base_url=self._config.effective_report_base_url,
        )

    async def wait_for_location(self, bus_no: str, *, timeout: float = 10.0) -> PositionSample | None:
        """Subscribe briefly and return the first live sample for *bus_no*."""
        async with self.position_stream() as stream:
            await stream.subscribe(bus_no, self._config.token)
            return await stream.wait_for_first_sample(timeout)
