"""Data models for backend payloads."""

from pybustrack.models._base import BusTrackBaseModel
from pybustrack.models.notification import (
    NotificationDraft,
    NotificationRecord,
    NotificationType,
    sort_newest_first,
)
from pybustrack.models.position import LatLng, PositionSample

__all__ = [
    "BusTrackBaseModel",
    "LatLng",
    "NotificationDraft",
    "NotificationRecord",
    "NotificationType",
    "PositionSample",
    "sort_newest_first",
]
