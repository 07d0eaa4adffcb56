"""pybustrack - Async Python client for a campus bus-tracking backend."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("pybustrack")
except PackageNotFoundError:
    __version__ = "0+local"
from pybustrack.client import BusTrackClient
from pybustrack.config import BusTrackConfig
from pybustrack.exceptions import (
    BusTrackApiError,
    BusTrackConfigError,
    BusTrackError,
    BusTrackNotFoundError,
    BusTrackParseError,
    BusTrackPersistenceError,
    BusTrackTransportError,
)
from pybustrack.models import (
    LatLng,
    NotificationDraft,
    NotificationRecord,
    NotificationType,
    PositionSample,
)
from pybustrack.motion import PositionAnimator
from pybustrack.read_state import ReadStateTracker
from pybustrack.reporter import LocationReporter
from pybustrack.staleness import Freshness, StalenessMonitor, StalenessReport, describe_elapsed
from pybustrack.store import MemoryNotificationStore, NotificationStore, RetentionPolicy, SqliteNotificationStore
from pybustrack.stream import PositionStreamClient, StreamState
from pybustrack.sync import NotificationSyncEngine, SyncResult

__all__ = [
    "__version__",
    "BusTrackApiError",
    "BusTrackClient",
    "BusTrackConfig",
    "BusTrackConfigError",
    "BusTrackError",
    "BusTrackNotFoundError",
    "BusTrackParseError",
    "BusTrackPersistenceError",
    "BusTrackTransportError",
    "Freshness",
    "LatLng",
    "LocationReporter",
    "MemoryNotificationStore",
    "NotificationDraft",
    "NotificationRecord",
    "NotificationStore",
    "NotificationSyncEngine",
    "NotificationType",
    "PositionAnimator",
    "PositionSample",
    "PositionStreamClient",
    "ReadStateTracker",
    "RetentionPolicy",
    "SqliteNotificationStore",
    "StalenessMonitor",
    "StalenessReport",
    "StreamState",
    "SyncResult",
    "describe_elapsed",
]
