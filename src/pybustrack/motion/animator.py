"""Frame-driven marker animation."""

from __future__ import annotations

import asyncio
import contextlib
import logging
import time
from collections.abc import Callable

from pybustrack._constants import ANIMATION_DURATION_MS
from pybustrack.models.position import LatLng
from pybustrack.motion.interpolate import AnimationState

_logger = logging.getLogger(__name__)


class PositionAnimator:
    """Animate a displayed position toward each new target.

    *render* is called with every displayed position: once per frame
    while a transition runs and once immediately when there is nothing
    to animate from. A new target arriving mid-transition restarts from
    whatever is currently displayed, so the marker never jumps.
    """

    def __init__(
        self,
        render: Callable[[LatLng], None],
        *,
        duration_ms: float = ANIMATION_DURATION_MS,
        frame_interval: float = 1 / 60,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if frame_interval <= 0:
            raise ValueError(f"frame_interval must be positive, got {frame_interval}")
        self._render = render
        self._duration_ms = duration_ms
        self._frame_interval = frame_interval
        self._clock = clock
        self._displayed: LatLng | None = None
        self._animation: AnimationState | None = None
        self._task: asyncio.Task[None] | None = None

    @property
    def displayed(self) -> LatLng | None:
        return self._displayed

    @property
    def animation(self) -> AnimationState | None:
        return self._animation

    @property
    def is_animating(self) -> bool:
        return self._task is not None and not self._task.done()

    def update(self, target: LatLng) -> None:
        """Start moving toward *target*."""
        self._cancel_frames()

        if self._displayed is None or self._displayed == target:
            self._animation = None
            self._show(target)
            return

        self._animation = AnimationState(
            start=self._displayed,
            target=target,
            started_at=self._clock(),
            duration_ms=self._duration_ms,
        )
        self._task = asyncio.get_running_loop().create_task(self._frames(), name="position-animation")

    def step(self, now: float | None = None) -> LatLng | None:
        """Render the frame for *now*; returns the displayed position."""
        animation = self._animation
        if animation is None:
            return self._displayed
        now = self._clock() if now is None else now
        self._show(animation.position_at(now))
        if animation.finished(now):
            self._animation = None
        return self._displayed

    async def close(self) -> None:
        task = self._task
        self._task = None
        self._animation = None
        if task is None:
            return
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task

    def _cancel_frames(self) -> None:
        if self._task is not None and not self._task.done():
            self._task.cancel()
        self._task = None

    def _show(self, position: LatLng) -> None:
        self._displayed = position
        try:
            self._render(position)
        except Exception:
            _logger.debug("render callback failed", exc_info=True)

    async def _frames(self) -> None:
        while self._animation is not None:
            self.step()
            if self._animation is None:
                break
            await asyncio.sleep(self._frame_interval)
