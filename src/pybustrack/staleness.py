"""Age of the last received position sample.

The monitor re-evaluates on its own schedule, independent of sample
arrival, so the displayed age keeps growing while the feed is silent.
"""

from __future__ import annotations

import enum
import logging
import math
import time
from collections.abc import Callable
from dataclasses import dataclass

from pybustrack._constants import RELOAD_PROMPT_AFTER_S, STALE_AFTER_S, STALENESS_INTERVAL_S
from pybustrack._periodic import PeriodicTask

_logger = logging.getLogger(__name__)


def describe_elapsed(elapsed: float) -> str:
    """Human label for *elapsed* seconds: ``just now``, ``Ns ago`` or ``Nm ago``."""
    if elapsed < 1:
        return "just now"
    if elapsed < 60:
        return f"{math.floor(elapsed)}s ago"
    return f"{math.floor(elapsed / 60)}m ago"


class Freshness(enum.StrEnum):
    FRESH = "green"
    STALE = "red"


@dataclass(frozen=True, slots=True)
class StalenessReport:
    """One evaluation of the last sample's age."""

    elapsed: float
    label: str
    status: Freshness
    prompt_reload: bool = False


class StalenessMonitor:
    """Periodically classify how old the last position sample is.

    *last_update* returns the client epoch seconds of the last sample,
    or ``None`` when there is none yet; nothing is reported then.
    """

    def __init__(
        self,
        last_update: Callable[[], float | None],
        on_report: Callable[[StalenessReport], None],
        *,
        interval: float = STALENESS_INTERVAL_S,
        stale_after: float = STALE_AFTER_S,
        reload_after: float = RELOAD_PROMPT_AFTER_S,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._last_update = last_update
        self._on_report = on_report
        self._stale_after = stale_after
        self._reload_after = reload_after
        self._clock = clock
        self._last_report: StalenessReport | None = None
        self._task = PeriodicTask(self._tick, interval, name="staleness-monitor")

    @property
    def last_report(self) -> StalenessReport | None:
        return self._last_report

    @property
    def is_running(self) -> bool:
        return self._task.is_running

    def evaluate(self, now: float | None = None) -> StalenessReport | None:
        last = self._last_update()
        if last is None:
            return None
        now = self._clock() if now is None else now
        # Clock skew can put the sample slightly in the future.
        elapsed = max(0.0, now - last)
        return StalenessReport(
            elapsed=elapsed,
            label=describe_elapsed(elapsed),
            status=Freshness.STALE if elapsed >= self._stale_after else Freshness.FRESH,
            prompt_reload=elapsed >= self._reload_after,
        )

    def start(self) -> None:
        self._task.start()

    async def stop(self) -> None:
        await self._task.stop()

    def _tick(self) -> None:
        report = self.evaluate()
        if report is None:
            return
        self._last_report = report
        self._on_report(report)
