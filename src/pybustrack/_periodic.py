"""Owned, cancellable periodic task.

Replaces free-floating timers: whoever creates a :class:`PeriodicTask`
owns it and must :meth:`~PeriodicTask.stop` it when the owning
subscription or view goes away.
"""

from __future__ import annotations

import asyncio
import contextlib
import inspect
import logging
from collections.abc import Awaitable, Callable

_logger = logging.getLogger(__name__)


class PeriodicTask:
    """Run *callback* every *interval* seconds on the running loop.

    The callback may be sync or async. Exceptions it raises are logged
    and do not stop the schedule.
    """

    def __init__(
        self,
        callback: Callable[[], Awaitable[None] | None],
        interval: float,
        *,
        name: str = "periodic",
        run_immediately: bool = True,
    ) -> None:
        if interval <= 0:
            raise ValueError(f"interval must be positive, got {interval}")
        self._callback = callback
        self._interval = interval
        self._name = name
        self._run_immediately = run_immediately
        self._task: asyncio.Task[None] | None = None

    @property
    def interval(self) -> float:
        return self._interval

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        """Start ticking. Calling it on a running task is a no-op."""
        if self.is_running:
            return
        self._task = asyncio.get_running_loop().create_task(self._run(), name=self._name)

    async def stop(self) -> None:
        """Cancel the schedule and wait until the task has finished."""
        task = self._task
        self._task = None
        if task is None:
            return
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task

    async def _tick(self) -> None:
        try:
            result = self._callback()
            if inspect.isawaitable(result):
                await result
        except asyncio.CancelledError:
            raise
        except Exception:
            _logger.debug("%s callback failed", self._name, exc_info=True)

    async def _run(self) -> None:
        if not self._run_immediately:
            await asyncio.sleep(self._interval)
        while True:
            await self._tick()
            await asyncio.sleep(self._interval)
