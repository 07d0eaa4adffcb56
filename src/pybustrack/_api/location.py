"""Bus location endpoints.

Endpoints:
  - GET  /get-location/obu/{busNo}  (one-shot position)
  - GET  /get-path/{busNo}          (planned route polyline)
  - POST /update-location           (driver position report)
"""

from __future__ import annotations

import logging
from typing import Any

from pydantic import ValidationError

from pybustrack._constants import LOCATION_ENDPOINT, REPORT_LOCATION_ENDPOINT, ROUTE_PATH_ENDPOINT
from pybustrack._transport import Transport
from pybustrack.exceptions import BusTrackNotFoundError, BusTrackParseError, BusTrackTransportError
from pybustrack.ingestion.normalize import safe_float
from pybustrack.models.position import LatLng, PositionSample

_logger = logging.getLogger(__name__)


def _parse_path_point(point: Any) -> LatLng | None:
    """Accept ``{"lat", "lng"|"lon"|"long"}`` objects or ``[lat, lng]`` pairs."""
    if isinstance(point, dict):
        lat = safe_float(point.get("lat", point.get("latitude")))
        lng = safe_float(
            point.get("lng", point.get("lon", point.get("long", point.get("longitude")))),
        )
    elif isinstance(point, (list, tuple)) and len(point) >= 2:
        lat = safe_float(point[0])
        lng = safe_float(point[1])
    else:
        return None
    if lat is None or lng is None:
        return None
    return LatLng(lat, lng)


def parse_route_path(data: Any) -> list[LatLng]:
    """Parse a ``{"path": [...]}`` response, dropping unusable points."""
    if not isinstance(data, dict) or not isinstance(data.get("path"), list):
        raise BusTrackParseError("route path response missing 'path' list", payload=data)
    points = [_parse_path_point(point) for point in data["path"]]
    return [point for point in points if point is not None]


async def fetch_location(transport: Transport, bus_no: str) -> PositionSample:
    """Fetch the last known position of a bus.

    Raises
    ------
    BusTrackNotFoundError
        The backend has no position for this bus (HTTP 404).
    """
    endpoint = f"{LOCATION_ENDPOINT}/{bus_no}"
    try:
        data = await transport.request_json("GET", endpoint)
    except BusTrackTransportError as exc:
        if exc.status_code == 404:
            raise BusTrackNotFoundError(f"No location available for bus {bus_no}") from exc
        raise

    if not isinstance(data, dict):
        raise BusTrackParseError(f"{endpoint} returned a non-object response", payload=data)
    try:
        return PositionSample.model_validate(data)
    except ValidationError as exc:
        raise BusTrackParseError(f"{endpoint} returned an invalid position", payload=data) from exc


async def fetch_route_path(transport: Transport, bus_no: str) -> list[LatLng]:
    """Fetch the planned route of a bus as an ordered list of points."""
    endpoint = f"{ROUTE_PATH_ENDPOINT}/{bus_no}"
    data = await transport.request_json("GET", endpoint)
    path = parse_route_path(data)
    _logger.debug("Route path bus=%s points=%d", bus_no, len(path))
    return path


async def publish_location(
    transport: Transport,
    bus_no: str,
    position: LatLng,
    *,
    base_url: str | None = None,
) -> None:
    """Report the driver's current position for *bus_no*."""
    await transport.request_json(
        "POST",
        REPORT_LOCATION_ENDPOINT,
        base_url=base_url,
        json_body={"clgNo": bus_no, "lat": position.lat, "lon": position.long},
    )
