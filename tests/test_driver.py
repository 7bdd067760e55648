from __future__ import annotations

import asyncio

import pytest

from gymclock.core.clock import ManualClock
from gymclock.core.driver import AsyncClockRunner, ClockDriver
from gymclock.core.sequencer import PhaseSequencer
from gymclock.workout.model import TimerSettings, WorkoutBlock


class CountingTarget:
    def __init__(self) -> None:
        self.is_ticking = True
        self.ticks: list[int] = []

    def tick(self, seconds: int = 1) -> int:
        self.ticks.append(seconds)
        return seconds


class RecordingWakeLock:
    def __init__(self, fail: bool = False) -> None:
        self.calls: list[str] = []
        self.fail = fail

    def acquire(self) -> None:
        self.calls.append("acquire")
        if self.fail:
            raise RuntimeError("wake lock denied")

    def release(self) -> None:
        self.calls.append("release")
        if self.fail:
            raise RuntimeError("wake lock already released")


def test_driver_carries_fractions_and_catches_up() -> None:
    clock = ManualClock()
    target = CountingTarget()
    driver = ClockDriver(target, clock=clock)
    driver.rearm()

    clock.advance(0.5)
    assert driver.poll() == 0
    clock.advance(0.7)
    assert driver.poll() == 1
    clock.advance(0.9)
    assert driver.poll() == 1
    clock.advance(3.0)
    assert driver.poll() == 3

    assert target.ticks == [1, 1, 3]


def test_first_poll_only_anchors() -> None:
    clock = ManualClock(100.0)
    target = CountingTarget()
    driver = ClockDriver(target, clock=clock)

    assert driver.poll() == 0
    clock.advance(1.0)
    assert driver.poll() == 1


def test_paused_time_never_reaches_target() -> None:
    clock = ManualClock()
    target = CountingTarget()
    driver = ClockDriver(target, clock=clock)
    driver.rearm()

    target.is_ticking = False
    clock.advance(30.0)
    assert driver.poll() == 0

    target.is_ticking = True
    driver.rearm()
    clock.advance(2.0)
    assert driver.poll() == 2
    assert target.ticks == [2]


def test_backwards_clock_reanchors() -> None:
    clock = ManualClock(10.0)
    target = CountingTarget()
    driver = ClockDriver(target, clock=clock)
    driver.rearm()

    clock.set(5.0)
    assert driver.poll() == 0
    clock.advance(1.0)
    assert driver.poll() == 1


def test_catch_up_limit_clamps_large_gaps() -> None:
    clock = ManualClock()
    target = CountingTarget()
    driver = ClockDriver(target, clock=clock, max_catch_up_sec=2)
    driver.rearm()

    clock.advance(10.0)

    assert driver.poll() == 2
    assert target.ticks == [2]


def test_driver_fast_forwards_sequencer_through_phases() -> None:
    block = WorkoutBlock(
        title="Intervals",
        settings=TimerSettings(mode="interval", work_time=10, rest_time=5, rounds=2),
    )
    sequencer = PhaseSequencer(block)
    clock = ManualClock()
    driver = ClockDriver(sequencer, clock=clock)
    sequencer.start(skip_prep=True)
    driver.rearm()

    clock.advance(12.4)
    driver.poll()
    assert sequencer.status == "resting"
    assert sequencer.time_in_phase == 3

    clock.advance(20.0)
    driver.poll()
    assert sequencer.is_finished
    assert sequencer.total_time_elapsed == 25


def test_wake_lock_follows_ticking_state() -> None:
    clock = ManualClock()
    target = CountingTarget()
    lock = RecordingWakeLock()
    driver = ClockDriver(target, clock=clock, wake_lock=lock)

    driver.rearm()
    driver.poll()
    target.is_ticking = False
    driver.poll()

    assert lock.calls == ["acquire", "release"]


def test_wake_lock_failures_are_swallowed() -> None:
    clock = ManualClock()
    target = CountingTarget()
    lock = RecordingWakeLock(fail=True)
    driver = ClockDriver(target, clock=clock, wake_lock=lock)

    driver.rearm()
    clock.advance(1.0)
    assert driver.poll() == 1
    driver.release()

    assert lock.calls == ["acquire", "release"]


def test_async_runner_start_stop() -> None:
    async def _run() -> None:
        target = CountingTarget()
        polls: list[int] = []
        driver = ClockDriver(target)
        runner = AsyncClockRunner(driver, poll_interval_sec=0.01, on_poll=polls.append)

        await runner.start()
        assert runner.is_running
        with pytest.raises(RuntimeError):
            await runner.start()

        await asyncio.sleep(0.05)
        await runner.stop()

        assert not runner.is_running
        assert polls
        await runner.stop()

    asyncio.run(_run())
