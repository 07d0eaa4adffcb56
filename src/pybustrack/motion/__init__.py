"""Smooth marker motion between successive position samples."""

from pybustrack.models.position import LatLng
from pybustrack.motion.animator import PositionAnimator
from pybustrack.motion.interpolate import AnimationState, animation_progress, interpolate

__all__ = [
    "AnimationState",
    "LatLng",
    "PositionAnimator",
    "animation_progress",
    "interpolate",
]
