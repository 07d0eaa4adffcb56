"""Bounded retention for the local notification cache."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

from pybustrack._constants import MAX_RETAINED_NOTIFICATIONS


@dataclass(frozen=True)
class RetentionPolicy:
    """Keep only the ``max_items`` newest notifications."""

    max_items: int = MAX_RETAINED_NOTIFICATIONS

    def __post_init__(self) -> None:
        if self.max_items < 1:
            raise ValueError(f"max_items must be positive, got {self.max_items}")

    def select_evictions(self, entries: Iterable[tuple[str, int]]) -> list[str]:
        """Return the ids to delete from ``(id, time_ms)`` entries.

        Entries are stable-sorted by time descending, so among equal
        timestamps the one seen first is kept.
        """
        ordered = sorted(entries, key=lambda entry: entry[1], reverse=True)
        if len(ordered) <= self.max_items:
            return []
        return [notification_id for notification_id, _ in ordered[self.max_items :]]
