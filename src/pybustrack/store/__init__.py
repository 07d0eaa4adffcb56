"""Local notification store.

The store is the single owner of cached :class:`NotificationRecord`
objects. Every write goes through the retention trim in the same atomic
unit, so a reader never sees more than the configured maximum.
"""

from pybustrack.store.base import NotificationStore
from pybustrack.store.memory import MemoryNotificationStore
from pybustrack.store.retention import RetentionPolicy
from pybustrack.store.sqlite import SqliteNotificationStore

__all__ = [
    "MemoryNotificationStore",
    "NotificationStore",
    "RetentionPolicy",
    "SqliteNotificationStore",
]
