"""Bus position models."""

from __future__ import annotations

import time
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from pydantic import AliasChoices, Field, field_validator

from pybustrack.ingestion.normalize import parse_timestamp, safe_float
from pybustrack.models._base import BusTrackBaseModel


@dataclass(frozen=True, slots=True)
class LatLng:
    """A displayable coordinate pair in degrees."""

    lat: float
    long: float


class PositionSample(BusTrackBaseModel):
    """Latest reported position of a tracked bus.

    Parameters
    ----------
    lat : float
        Latitude in degrees.
    long : float
        Longitude in degrees (``lon``/``lng`` on some payloads).
    source_timestamp : datetime or None
        Timestamp asserted by the server, informational only.
    received_at : float
        Client epoch seconds when the sample arrived. Staleness is
        computed from this, never from ``source_timestamp``.
    raw : dict
        Original payload.
    """

    lat: float = Field(validation_alias=AliasChoices("lat", "latitude"))
    long: float = Field(validation_alias=AliasChoices("long", "lon", "lng", "longitude"))
    source_timestamp: datetime | None = Field(
        default=None,
        validation_alias=AliasChoices("ts", "timestamp", "time", "source_timestamp"),
    )
    received_at: float = Field(default_factory=time.time)

    @field_validator("lat", mode="before")
    @classmethod
    def _coerce_lat(cls, value: Any) -> float:
        parsed = safe_float(value)
        if parsed is None or not -90.0 <= parsed <= 90.0:
            raise ValueError(f"invalid latitude: {value!r}")
        return parsed

    @field_validator("long", mode="before")
    @classmethod
    def _coerce_long(cls, value: Any) -> float:
        parsed = safe_float(value)
        if parsed is None or not -180.0 <= parsed <= 180.0:
            raise ValueError(f"invalid longitude: {value!r}")
        return parsed

    @field_validator("source_timestamp", mode="before")
    @classmethod
    def _coerce_timestamp(cls, value: Any) -> datetime | None:
        return parse_timestamp(value)

    @property
    def position(self) -> LatLng:
        return LatLng(self.lat, self.long)
