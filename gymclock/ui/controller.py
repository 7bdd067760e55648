"""Host-side controller shared by the terminal and web displays."""

from __future__ import annotations

from typing import Union

from gymclock.audio.cues import AudioCueScheduler, AudioOutput
from gymclock.audio.phrases import phrase_book
from gymclock.core.chain import ChainCoordinator, ChainSnapshot
from gymclock.core.clock import Clock
from gymclock.core.config import EngineConfig
from gymclock.core.driver import AsyncClockRunner, ClockDriver, PollCallback, WakeLock
from gymclock.core.sequencer import PhaseSequencer
from gymclock.core.state import EventCallback
from gymclock.race.scheduler import FinishRecord, RaceEventCallback, RaceResult
from gymclock.race.session import RaceSession, RaceSnapshot, ResultSink
from gymclock.workout.model import Workout


Snapshot = Union[ChainSnapshot, RaceSnapshot]


class TimerController:
    """Owns the engine for one loaded workout plus its clock and audio.

    Plain workouts run through a ``ChainCoordinator``; workouts with start
    groups run as a ``RaceSession``. Either way the driver feeds it whole
    seconds and every event is routed to the audio cue scheduler.
    """

    def __init__(
        self,
        workout: Workout,
        config: EngineConfig | None = None,
        audio_output: AudioOutput | None = None,
        wake_lock: WakeLock | None = None,
        clock: Clock | None = None,
        sink: ResultSink | None = None,
    ) -> None:
        self.workout = workout
        self.config = config or EngineConfig()
        self.audio = AudioCueScheduler(audio_output, phrases=phrase_book(self.config.language))
        self._chain: ChainCoordinator | None = None
        self._race: RaceSession | None = None

        if workout.is_race:
            self._race = RaceSession.from_workout(workout, config=self.config, sink=sink)
            self._race.add_timer_listener(self.audio.on_timer_event)
            self._race.add_race_listener(self.audio.on_race_event)
            target: RaceSession | ChainCoordinator = self._race
        else:
            self._chain = ChainCoordinator(
                workout.blocks,
                skip_prep_on_advance=self.config.skip_prep_on_advance,
                default_prepare_time=self.config.default_prepare_time,
            )
            self._chain.add_listener(self.audio.on_timer_event)
            target = self._chain

        self.driver = ClockDriver(
            target,
            clock=clock,
            wake_lock=wake_lock,
            max_catch_up_sec=self.config.max_catch_up_sec,
        )
        self._runner: AsyncClockRunner | None = None

    @property
    def is_race(self) -> bool:
        return self._race is not None

    @property
    def chain(self) -> ChainCoordinator | None:
        return self._chain

    @property
    def race(self) -> RaceSession | None:
        return self._race

    @property
    def is_ticking(self) -> bool:
        return self.driver.target.is_ticking

    def add_timer_listener(self, callback: EventCallback) -> None:
        if self._race is not None:
            self._race.add_timer_listener(callback)
        else:
            assert self._chain is not None
            self._chain.add_listener(callback)

    def add_race_listener(self, callback: RaceEventCallback) -> None:
        if self._race is None:
            raise RuntimeError("Loaded workout has no start groups")
        self._race.add_race_listener(callback)

    # --- clock controls -------------------------------------------------

    def start(self, skip_prep: bool = False) -> None:
        self.audio.resume()
        self._engine().start(skip_prep=skip_prep)
        self.driver.rearm()

    def pause(self) -> None:
        self._engine().pause()
        self.driver.rearm()

    def resume(self) -> None:
        self.audio.resume()
        self._engine().resume()
        self.driver.rearm()

    def reset(self) -> None:
        self._engine().reset()
        self.driver.rearm()

    def toggle(self) -> None:
        """Start, pause or resume depending on where the clock is."""
        if self._chain is not None and self._chain.in_transition:
            if self._transition_paused():
                self.resume()
            else:
                self.pause()
            return
        status = self.sequencer.status
        if status in ("idle", "finished"):
            if self._race is not None and not self._race.can_restart:
                return
            self.start()
        elif status == "paused":
            self.resume()
        else:
            self.pause()

    def start_next_now(self) -> None:
        if self._chain is None:
            return
        self._chain.start_next_now()
        self.driver.rearm()

    def select_block(self, index: int) -> None:
        if self._chain is None:
            return
        self._chain.select_block(index)
        self.driver.rearm()

    def skip_phase(self) -> None:
        self.sequencer.skip_phase()

    def finish_block(self) -> None:
        self.sequencer.finish()
        self.driver.rearm()

    def poll(self) -> int:
        return self.driver.poll()

    # --- race actions ---------------------------------------------------

    def register_finish(self, participant: str) -> FinishRecord:
        return self._require_race().register_finish(participant)

    def edit_finish(self, participant: str, new_time: int) -> FinishRecord:
        return self._require_race().edit_finish(participant, new_time)

    def apply_penalty(self, participant: str, seconds: int | None = None) -> FinishRecord:
        return self._require_race().apply_penalty(participant, seconds)

    def undo_finish(self, participant: str) -> None:
        self._require_race().undo_finish(participant)

    def complete_race(self) -> RaceResult:
        result = self._require_race().complete_race()
        self.driver.rearm()
        return result

    # --- asyncio clock --------------------------------------------------

    async def start_clock(self, on_poll: PollCallback | None = None) -> None:
        if self._runner is None:
            self._runner = AsyncClockRunner(
                self.driver,
                poll_interval_sec=self.config.poll_interval_sec,
                on_poll=on_poll,
            )
        await self._runner.start()

    async def stop_clock(self) -> None:
        if self._runner is not None:
            await self._runner.stop()

    @property
    def clock_running(self) -> bool:
        return self._runner is not None and self._runner.is_running

    def snapshot(self) -> Snapshot:
        if self._race is not None:
            return self._race.snapshot()
        assert self._chain is not None
        return self._chain.snapshot()

    # --- internals ------------------------------------------------------

    def _engine(self) -> RaceSession | ChainCoordinator:
        if self._race is not None:
            return self._race
        assert self._chain is not None
        return self._chain

    @property
    def sequencer(self) -> PhaseSequencer:
        if self._race is not None:
            return self._race.sequencer
        assert self._chain is not None
        return self._chain.sequencer

    def _transition_paused(self) -> bool:
        return bool(
            self._chain is not None
            and self._chain.transition is not None
            and self._chain.transition.paused
        )

    def _require_race(self) -> RaceSession:
        if self._race is None:
            raise RuntimeError("Loaded workout has no start groups")
        return self._race
