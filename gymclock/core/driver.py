"""Wall-clock driver that feeds whole seconds into the timer engine."""

from __future__ import annotations

import asyncio
import logging
from typing import Callable, Optional, Protocol

from gymclock.core.clock import Clock, MonotonicClock


logger = logging.getLogger(__name__)


class Tickable(Protocol):
    @property
    def is_ticking(self) -> bool: ...

    def tick(self, seconds: int = 1) -> int: ...


class WakeLock(Protocol):
    def acquire(self) -> None: ...

    def release(self) -> None: ...


PollCallback = Callable[[int], None]


class ClockDriver:
    """Samples a clock and advances the target by the whole seconds elapsed.

    Host timers drift and get throttled; instead of trusting each callback to
    be one second, the driver measures the gap and catches up. Fractions are
    carried to the next poll. While the target is not ticking the anchor is
    dropped, so paused or reset time never reaches the engine.
    """

    def __init__(
        self,
        target: Tickable,
        clock: Clock | None = None,
        wake_lock: WakeLock | None = None,
        max_catch_up_sec: int | None = None,
    ) -> None:
        self._target = target
        self._clock = clock or MonotonicClock()
        self._wake_lock = wake_lock
        self._max_catch_up_sec = max_catch_up_sec
        self._anchor: float | None = None
        self._lock_held = False

    @property
    def target(self) -> Tickable:
        return self._target

    def retarget(self, target: Tickable) -> None:
        self._target = target
        self.rearm()

    def rearm(self) -> None:
        """Restart the second boundary now; call right after start/resume."""
        self._anchor = self._clock.now() if self._target.is_ticking else None
        self._sync_wake_lock(self._target.is_ticking)

    def poll(self) -> int:
        ticking = self._target.is_ticking
        self._sync_wake_lock(ticking)
        if not ticking:
            self._anchor = None
            return 0

        now = self._clock.now()
        if self._anchor is None:
            self._anchor = now
            return 0

        delta = now - self._anchor
        if delta < 0:
            logger.debug("Clock moved backwards by %.3fs; re-anchoring", -delta)
            self._anchor = now
            return 0

        whole = int(delta)
        if whole <= 0:
            return 0
        self._anchor += whole
        if whole > 1:
            logger.debug("Catching up %ss after a delayed poll", whole)
        if self._max_catch_up_sec is not None and whole > self._max_catch_up_sec:
            logger.warning(
                "Clock gap of %ss exceeds catch-up limit; clamping to %ss",
                whole,
                self._max_catch_up_sec,
            )
            whole = self._max_catch_up_sec

        self._target.tick(whole)
        self._sync_wake_lock(self._target.is_ticking)
        return whole

    def release(self) -> None:
        self._anchor = None
        self._sync_wake_lock(False)

    def _sync_wake_lock(self, want: bool) -> None:
        if self._wake_lock is None or want == self._lock_held:
            return
        self._lock_held = want
        try:
            if want:
                self._wake_lock.acquire()
            else:
                self._wake_lock.release()
        except Exception as exc:
            logger.warning("Wake lock %s failed: %s", "acquire" if want else "release", exc)


class AsyncClockRunner:
    """Runs ``ClockDriver.poll`` in an asyncio task until stopped."""

    def __init__(
        self,
        driver: ClockDriver,
        poll_interval_sec: float = 0.2,
        on_poll: PollCallback | None = None,
    ) -> None:
        self._driver = driver
        self._poll_interval_sec = poll_interval_sec
        self._on_poll = on_poll
        self._task: Optional[asyncio.Task[None]] = None
        self._stop_event = asyncio.Event()

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def start(self) -> None:
        if self.is_running:
            raise RuntimeError("Clock runner already running")

        self._stop_event = asyncio.Event()
        self._driver.rearm()
        self._task = asyncio.create_task(self._run())

    async def stop(self) -> None:
        if not self.is_running:
            return

        self._stop_event.set()
        assert self._task is not None
        await self._task
        self._task = None

    async def _run(self) -> None:
        try:
            while not self._stop_event.is_set():
                processed = self._driver.poll()
                if self._on_poll is not None:
                    self._on_poll(processed)
                await asyncio.sleep(self._poll_interval_sec)
        finally:
            self._driver.release()
