from __future__ import annotations

import asyncio
from typing import Any

import pytest

from pybustrack.exceptions import BusTrackTransportError
from pybustrack.models.position import LatLng
from pybustrack.reporter import LocationReporter


class RecordingTransport:
    def __init__(self) -> None:
        self.calls: list[dict[str, Any]] = []
        self.fail = False

    async def request_json(self, method: str, endpoint: str, **kwargs: Any) -> Any:
        self.calls.append({"method": method, "endpoint": endpoint, **kwargs})
        if self.fail:
            raise BusTrackTransportError("offline", endpoint=endpoint)
        return {"success": True}


async def _position() -> LatLng:
    return LatLng(13.0827, 80.2707)


@pytest.mark.asyncio
async def test_report_once_posts_bus_position() -> None:
    transport = RecordingTransport()
    reporter = LocationReporter(transport, "12", _position, base_url="http://reports.local")

    assert await reporter.report_once() is True

    assert transport.calls == [
        {
            "method": "POST",
            "endpoint": "/update-location",
            "base_url": "http://reports.local",
            "json_body": {"clgNo": "12", "lat": 13.0827, "lon": 80.2707},
        }
    ]
    assert reporter.sent_count == 1


@pytest.mark.asyncio
async def test_report_failure_recorded_not_raised() -> None:
    transport = RecordingTransport()
    transport.fail = True
    reporter = LocationReporter(transport, "12", _position)

    assert await reporter.report_once() is False

    assert isinstance(reporter.last_error, BusTrackTransportError)
    assert reporter.sent_count == 0


@pytest.mark.asyncio
async def test_unknown_position_skips_report() -> None:
    async def _unknown() -> None:
        return None

    transport = RecordingTransport()
    reporter = LocationReporter(transport, "12", _unknown)

    assert await reporter.report_once() is False
    assert transport.calls == []


@pytest.mark.asyncio
async def test_reporter_runs_periodically_until_stopped() -> None:
    transport = RecordingTransport()

    async with LocationReporter(transport, "12", _position, interval=0.01) as reporter:
        await asyncio.sleep(0.05)

    sent = reporter.sent_count
    assert sent >= 2
    assert not reporter.is_running
    await asyncio.sleep(0.03)
    assert reporter.sent_count == sent


def test_blank_bus_rejected() -> None:
    with pytest.raises(ValueError):
        LocationReporter(RecordingTransport(), " ", _position)
