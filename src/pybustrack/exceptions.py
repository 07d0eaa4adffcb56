"""Custom exception hierarchy for pybustrack."""

from __future__ import annotations

from typing import Any


class BusTrackError(Exception):
    """Base exception for all pybustrack errors."""


class BusTrackConfigError(BusTrackError):
    """Invalid or missing configuration."""


class BusTrackTransportError(BusTrackError):
    """HTTP-level failure (network, non-2xx, invalid JSON, dropped stream)."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        endpoint: str = "",
    ) -> None:
        self.status_code = status_code
        self.endpoint = endpoint
        super().__init__(message)


class BusTrackParseError(BusTrackError):
    """Payload could not be parsed into the expected shape.

    Raised for malformed push-event data and for responses whose JSON is
    valid but not what the endpoint promises (e.g. an object instead of a
    list of notifications).
    """

    def __init__(self, message: str, *, payload: Any = None) -> None:
        self.payload = payload
        super().__init__(message)


class BusTrackApiError(BusTrackError):
    """Server answered but reported failure (``success: false``)."""

    def __init__(self, message: str, *, endpoint: str = "") -> None:
        self.endpoint = endpoint
        super().__init__(message)


class BusTrackPersistenceError(BusTrackError):
    """Local notification store unavailable or write failed."""


class BusTrackNotFoundError(BusTrackError):
    """Referenced entity does not exist (deleted, evicted, unknown bus)."""
