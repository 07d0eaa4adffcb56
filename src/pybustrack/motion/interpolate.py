"""Linear interpolation between two coordinates."""

from __future__ import annotations

from dataclasses import dataclass

from pybustrack.models.position import LatLng


def animation_progress(now: float, started_at: float, duration_ms: float) -> float:
    """Fraction of a transition completed at *now*, clamped to ``[0, 1]``.

    *now* and *started_at* are in seconds; *duration_ms* in milliseconds.
    """
    if duration_ms <= 0:
        return 1.0
    elapsed_ms = (now - started_at) * 1000.0
    return min(max(elapsed_ms / duration_ms, 0.0), 1.0)


def interpolate(start: LatLng, target: LatLng, progress: float) -> LatLng:
    progress = min(max(progress, 0.0), 1.0)
    return LatLng(
        lat=start.lat + (target.lat - start.lat) * progress,
        long=start.long + (target.long - start.long) * progress,
    )


@dataclass(frozen=True, slots=True)
class AnimationState:
    """A running transition from ``start`` to ``target``."""

    start: LatLng
    target: LatLng
    started_at: float
    duration_ms: float

    def progress(self, now: float) -> float:
        return animation_progress(now, self.started_at, self.duration_ms)

    def position_at(self, now: float) -> LatLng:
        return interpolate(self.start, self.target, self.progress(now))

    def finished(self, now: float) -> bool:
        return self.progress(now) >= 1.0
