from __future__ import annotations

import asyncio

import pytest

from pybustrack.motion import AnimationState, LatLng, PositionAnimator, animation_progress, interpolate

START = LatLng(13.0, 80.0)
TARGET = LatLng(13.01, 80.01)


@pytest.mark.parametrize(
    ("progress", "expected"),
    [
        (0.0, (13.0, 80.0)),
        (0.5, (13.005, 80.005)),
        (1.0, (13.01, 80.01)),
    ],
)
def test_interpolate_boundaries(progress: float, expected: tuple[float, float]) -> None:
    point = interpolate(START, TARGET, progress)

    assert point.lat == pytest.approx(expected[0])
    assert point.long == pytest.approx(expected[1])


def test_interpolate_clamps_progress() -> None:
    assert interpolate(START, TARGET, 2.0) == interpolate(START, TARGET, 1.0)
    assert interpolate(START, TARGET, -1.0) == START


def test_animation_progress() -> None:
    assert animation_progress(10.0, 10.0, 8000) == 0.0
    assert animation_progress(14.0, 10.0, 8000) == pytest.approx(0.5)
    assert animation_progress(30.0, 10.0, 8000) == 1.0
    assert animation_progress(5.0, 10.0, 8000) == 0.0


def test_animation_state_position_and_finish() -> None:
    state = AnimationState(START, TARGET, started_at=0.0, duration_ms=8000)

    assert state.position_at(4.0).lat == pytest.approx(13.005)
    assert not state.finished(4.0)
    assert state.finished(8.0)


class FakeClock:
    def __init__(self, now: float = 100.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now


@pytest.mark.asyncio
async def test_first_target_rendered_immediately() -> None:
    rendered: list[LatLng] = []
    animator = PositionAnimator(rendered.append, clock=FakeClock())

    animator.update(START)

    assert rendered == [START]
    assert animator.displayed == START
    assert animator.animation is None
    assert not animator.is_animating


@pytest.mark.asyncio
async def test_same_target_rendered_without_animation() -> None:
    rendered: list[LatLng] = []
    animator = PositionAnimator(rendered.append, clock=FakeClock())
    animator.update(START)

    animator.update(START)

    assert rendered == [START, START]
    assert animator.animation is None


@pytest.mark.asyncio
async def test_new_target_animates_over_duration() -> None:
    clock = FakeClock()
    animator = PositionAnimator(lambda _: None, duration_ms=8000, frame_interval=60, clock=clock)
    animator.update(START)

    animator.update(TARGET)
    assert animator.is_animating
    assert animator.animation is not None
    assert animator.animation.start == START

    midway = animator.step(clock.now + 4.0)
    assert midway is not None
    assert midway.lat == pytest.approx(13.005)
    assert midway.long == pytest.approx(80.005)

    done = animator.step(clock.now + 8.0)
    assert done == TARGET
    assert animator.animation is None
    await animator.close()


@pytest.mark.asyncio
async def test_retarget_restarts_from_displayed_position() -> None:
    clock = FakeClock()
    animator = PositionAnimator(lambda _: None, duration_ms=8000, frame_interval=60, clock=clock)
    animator.update(START)
    animator.update(TARGET)

    clock.now += 4.0
    animator.step()
    animator.update(LatLng(13.02, 80.02))

    assert animator.animation is not None
    assert animator.animation.start.lat == pytest.approx(13.005)
    assert animator.animation.started_at == clock.now
    await animator.close()


@pytest.mark.asyncio
async def test_frame_task_reaches_target() -> None:
    clock = FakeClock()
    rendered: list[LatLng] = []
    animator = PositionAnimator(rendered.append, duration_ms=8000, frame_interval=0.001, clock=clock)
    animator.update(START)
    animator.update(TARGET)

    clock.now += 10.0
    for _ in range(20):
        await asyncio.sleep(0.002)
        if not animator.is_animating:
            break

    assert rendered[-1] == TARGET
    assert not animator.is_animating


@pytest.mark.asyncio
async def test_close_cancels_frames() -> None:
    clock = FakeClock()
    animator = PositionAnimator(lambda _: None, frame_interval=60, clock=clock)
    animator.update(START)
    animator.update(TARGET)

    await animator.close()

    assert not animator.is_animating
    assert animator.animation is None
    assert animator.displayed is not None
