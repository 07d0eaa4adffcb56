"""Periodic driver-side location reports."""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable

from pybustrack._api.location import publish_location
from pybustrack._constants import REPORT_INTERVAL_S
from pybustrack._periodic import PeriodicTask
from pybustrack._transport import Transport
from pybustrack.exceptions import BusTrackError
from pybustrack.models.position import LatLng

_logger = logging.getLogger(__name__)

PositionSource = Callable[[], Awaitable[LatLng | None]]
"""Returns the device's current position, or ``None`` when unknown."""


class LocationReporter:
    """Post the current position of a bus every *interval* seconds.

    Failures are logged and kept in :attr:`last_error`; the schedule
    keeps running.
    """

    def __init__(
        self,
        transport: Transport,
        bus_no: str,
        position_source: PositionSource,
        *,
        interval: float = REPORT_INTERVAL_S,
        base_url: str | None = None,
    ) -> None:
        if not bus_no.strip():
            raise ValueError("bus_no must be non-empty")
        self._transport = transport
        self._bus_no = bus_no.strip()
        self._position_source = position_source
        self._base_url = base_url
        self._sent_count = 0
        self._last_error: BusTrackError | None = None
        self._task = PeriodicTask(self.report_once, interval, name=f"location-reporter-{self._bus_no}")

    @property
    def bus_no(self) -> str:
        return self._bus_no

    @property
    def sent_count(self) -> int:
        return self._sent_count

    @property
    def last_error(self) -> BusTrackError | None:
        return self._last_error

    @property
    def is_running(self) -> bool:
        return self._task.is_running

    async def __aenter__(self) -> LocationReporter:
        self.start()
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.stop()

    def start(self) -> None:
        self._task.start()

    async def stop(self) -> None:
        await self._task.stop()

    async def report_once(self) -> bool:
        """Send one report. Returns ``True`` when the server accepted it."""
        position = await self._position_source()
        if position is None:
            _logger.debug("No position available for bus=%s, skipping report", self._bus_no)
            return False
        try:
            await publish_location(self._transport, self._bus_no, position, base_url=self._base_url)
        except BusTrackError as exc:
            _logger.warning("Location report failed bus=%s: %s", self._bus_no, exc)
            self._last_error = exc
            return False
        self._sent_count += 1
        self._last_error = None
        return True
