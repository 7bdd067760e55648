"""A live race: one race clock plus start-group scheduling and finishes."""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import Callable, Sequence

from gymclock.core.config import EngineConfig
from gymclock.core.sequencer import PhaseSequencer
from gymclock.core.state import EventCallback, TimerSnapshot
from gymclock.race.scheduler import (
    DEFAULT_PENALTY_SEC,
    FinishRecord,
    RaceActionError,
    RaceEventCallback,
    RaceGroupScheduler,
    RaceResult,
)
from gymclock.workout.model import (
    DEFAULT_PREPARE_TIME,
    StartGroup,
    TimerSettings,
    Workout,
    WorkoutBlock,
)


logger = logging.getLogger(__name__)

ResultSink = Callable[[RaceResult], None]

RACE_CLOCK_SEC = 6 * 60 * 60


@dataclass(frozen=True)
class RaceSnapshot:
    timer: TimerSnapshot
    groups: tuple[StartGroup, ...]
    next_group_to_start: StartGroup | None
    countdown_to_next_start: int | None
    finish_records: tuple[FinishRecord, ...]
    unfinished_participants: tuple[str, ...]
    all_finished: bool
    completed: bool


def default_race_block(title: str = "HYROX") -> WorkoutBlock:
    return WorkoutBlock(
        title=title,
        tag="race",
        settings=TimerSettings(mode="stopwatch", work_time=RACE_CLOCK_SEC),
    )


class RaceSession:
    """Drives the race block's sequencer and feeds its clock to the scheduler."""

    def __init__(
        self,
        block: WorkoutBlock,
        groups: Sequence[StartGroup],
        start_interval_seconds: int,
        race_name: str | None = None,
        penalty_seconds: int = DEFAULT_PENALTY_SEC,
        sink: ResultSink | None = None,
        default_prepare_time: int = DEFAULT_PREPARE_TIME,
    ) -> None:
        self.sequencer = PhaseSequencer(block, default_prepare_time=default_prepare_time)
        self.scheduler = RaceGroupScheduler(
            groups, start_interval_seconds, penalty_seconds=penalty_seconds
        )
        self.race_name = race_name or block.title
        self._sink = sink
        self._result: RaceResult | None = None

    @classmethod
    def from_workout(
        cls,
        workout: Workout,
        config: EngineConfig | None = None,
        sink: ResultSink | None = None,
    ) -> RaceSession:
        config = config or EngineConfig()
        block = workout.blocks[0] if workout.blocks else default_race_block(workout.title)
        if workout.start_interval_minutes is None:
            interval = config.start_interval_seconds
        else:
            interval = int(round(workout.start_interval_minutes * 60))
        return cls(
            block,
            workout.start_groups,
            start_interval_seconds=interval,
            race_name=workout.title,
            penalty_seconds=config.penalty_seconds,
            sink=sink,
            default_prepare_time=config.default_prepare_time,
        )

    def add_timer_listener(self, callback: EventCallback) -> None:
        self.sequencer.add_listener(callback)

    def add_race_listener(self, callback: RaceEventCallback) -> None:
        self.scheduler.add_listener(callback)

    @property
    def is_ticking(self) -> bool:
        return self.sequencer.is_ticking

    @property
    def result(self) -> RaceResult | None:
        return self._result

    # --- clock controls -------------------------------------------------

    @property
    def can_restart(self) -> bool:
        """False while finishes are registered but the race is not completed."""
        return self.scheduler.completed or not self.scheduler.finish_records

    def start(self, skip_prep: bool = False) -> None:
        if not self.can_restart:
            raise RaceActionError(
                "Race has registered finishes; complete or reset it before restarting"
            )
        self.scheduler.reset()
        self._result = None
        self.sequencer.start(skip_prep=skip_prep)
        self._sync()

    def pause(self) -> None:
        self.sequencer.pause()

    def resume(self) -> None:
        if self.scheduler.completed:
            return
        self.sequencer.resume()

    def reset(self) -> None:
        self.sequencer.reset()
        self.scheduler.reset()
        self._result = None

    def tick(self, seconds: int = 1) -> int:
        consumed = 0
        for _ in range(max(0, int(seconds))):
            if not self.sequencer.is_ticking:
                break
            self.sequencer.tick(1)
            self._sync()
            consumed += 1
        return consumed

    # --- operator actions -----------------------------------------------

    def register_finish(self, participant: str) -> FinishRecord:
        return self.scheduler.register_finish(participant)

    def edit_finish(self, participant: str, new_time: int) -> FinishRecord:
        return self.scheduler.edit_finish(participant, new_time)

    def apply_penalty(self, participant: str, seconds: int | None = None) -> FinishRecord:
        return self.scheduler.apply_penalty(participant, seconds)

    def undo_finish(self, participant: str) -> None:
        self.scheduler.undo_finish(participant)

    def complete_race(self) -> RaceResult:
        """Freeze the race clock and hand the final leaderboard to the sink."""
        result = self.scheduler.complete_race(self.race_name)
        self.sequencer.pause()
        self._result = result
        logger.info(
            "Race %r completed with %s finishers (winner: %s)",
            self.race_name,
            len(result.entries),
            result.winner,
        )
        if self._sink is not None:
            try:
                self._sink(result)
            except Exception:
                logger.exception("Failed to save race results for %r", self.race_name)
                raise
        return result

    def snapshot(self) -> RaceSnapshot:
        next_group = self.scheduler.next_group_to_start
        return RaceSnapshot(
            timer=self.sequencer.snapshot(),
            groups=tuple(replace(group) for group in self.scheduler.groups),
            next_group_to_start=replace(next_group) if next_group else None,
            countdown_to_next_start=self.scheduler.countdown_to_next_start,
            finish_records=tuple(replace(r) for r in self.scheduler.finish_records),
            unfinished_participants=self.scheduler.unfinished_participants,
            all_finished=self.scheduler.all_finished,
            completed=self.scheduler.completed,
        )

    def _sync(self) -> None:
        sequencer = self.sequencer
        prepare_remaining = (
            sequencer.time_in_phase if sequencer.status == "preparing" else None
        )
        self.scheduler.update(
            sequencer.total_time_elapsed,
            sequencer.status,
            prepare_remaining=prepare_remaining,
        )
