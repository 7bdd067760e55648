"""Phase state machine driving a single workout block's clock."""

from __future__ import annotations

import logging
import math

from gymclock.core.state import (
    ACTIVE_STATUSES,
    ActivePhase,
    EventCallback,
    EventKind,
    TimerEvent,
    TimerSnapshot,
    TimerStatus,
)
from gymclock.workout.durations import (
    normalize_settings,
    rest_phase_seconds,
    total_duration,
    work_phase_seconds,
)
from gymclock.workout.model import DEFAULT_PREPARE_TIME, Exercise, WorkoutBlock


logger = logging.getLogger(__name__)

COUNTDOWN_SECONDS = (1, 2, 3)


class PhaseSequencer:
    """Prepare -> work -> rest -> ... -> finished for one block.

    The sequencer never looks at a wall clock. Whoever owns it calls
    ``tick(seconds)`` with whole elapsed seconds; multi-second ticks are
    processed one second at a time so phase boundaries are never skipped.
    """

    def __init__(
        self,
        block: WorkoutBlock,
        default_prepare_time: int = DEFAULT_PREPARE_TIME,
    ) -> None:
        self.block = block
        self.settings = normalize_settings(block.settings, default_prepare_time)
        self.total_block_duration = total_duration(self.settings)
        self._work_sec = work_phase_seconds(self.settings)
        self._rest_sec = rest_phase_seconds(self.settings)
        self._untimed = self.settings.mode == "no_timer"
        self._listeners: list[EventCallback] = []

        self.status: TimerStatus = "idle"
        self.time_in_phase = 0
        self.phase_duration = 0
        self.completed_work_intervals = 0
        self.total_time_elapsed = 0
        self._paused_phase: ActivePhase | None = None

    def add_listener(self, callback: EventCallback) -> None:
        self._listeners.append(callback)

    def remove_listener(self, callback: EventCallback) -> None:
        if callback in self._listeners:
            self._listeners.remove(callback)

    @property
    def is_ticking(self) -> bool:
        return self.status in ACTIVE_STATUSES

    @property
    def is_finished(self) -> bool:
        return self.status == "finished"

    @property
    def paused_phase(self) -> ActivePhase | None:
        return self._paused_phase

    @property
    def _counting_up(self) -> bool:
        # No-timer work has no countdown; only elapsed time moves.
        return self._untimed and "running" in (self.status, self._paused_phase)

    # --- controls -------------------------------------------------------

    def start(self, skip_prep: bool = False) -> None:
        """Begin the block from the top, discarding any previous progress."""
        self.completed_work_intervals = 0
        self.total_time_elapsed = 0
        self._paused_phase = None

        if skip_prep:
            self._enter("running", self._work_sec)
            self._emit("started")
            self._emit("start")
        else:
            self._enter("preparing", self.settings.prepare_time)
            self._emit("started")
        logger.debug(
            "Block %r started (mode=%s, skip_prep=%s)",
            self.block.title,
            self.settings.mode,
            skip_prep,
        )
        self._settle()

    def pause(self) -> None:
        if self.status not in ACTIVE_STATUSES:
            return
        self._paused_phase = self.status  # type: ignore[assignment]
        self.status = "paused"
        self._emit("paused", previous=self._paused_phase)

    def resume(self) -> None:
        if self.status != "paused" or self._paused_phase is None:
            return
        self.status = self._paused_phase
        self._paused_phase = None
        self._emit("resumed", previous="paused")

    def reset(self) -> None:
        self.status = "idle"
        self.time_in_phase = 0
        self.phase_duration = 0
        self.completed_work_intervals = 0
        self.total_time_elapsed = 0
        self._paused_phase = None
        self._emit("reset")

    def skip_phase(self) -> None:
        """Jump to the next phase without the phase-complete cue."""
        if self.status not in ACTIVE_STATUSES or self._counting_up:
            return
        self._expire(natural=False)
        self._settle()

    def finish(self) -> None:
        """Operator marks the block done (stopwatch and no-timer blocks)."""
        if self.status not in ACTIVE_STATUSES and self.status != "paused":
            return
        self._paused_phase = None
        self._finish(clamp_elapsed=False)

    def tick(self, seconds: int = 1) -> int:
        """Advance by whole seconds; returns how many were consumed."""
        consumed = 0
        for _ in range(max(0, int(seconds))):
            if self.status not in ACTIVE_STATUSES:
                break
            self._tick_once()
            consumed += 1
        return consumed

    # --- derived values -------------------------------------------------

    @property
    def exercise_count(self) -> int:
        return len(self.block.exercises)

    @property
    def total_work_intervals(self) -> int:
        return self.settings.rounds

    @property
    def effective_intervals_per_lap(self) -> int:
        return self.settings.specified_intervals_per_lap or max(1, self.exercise_count)

    @property
    def total_rounds(self) -> int:
        if self.settings.mode == "emom":
            return self.settings.rounds
        if self.settings.specified_laps:
            return self.settings.specified_laps
        return math.ceil(self.settings.rounds / self.effective_intervals_per_lap)

    @property
    def current_round(self) -> int:
        # EMOM counts minutes; both forms stop at the last round once finished.
        if self.settings.mode == "emom":
            raw = self.completed_work_intervals + 1
        else:
            raw = self.completed_work_intervals // self.effective_intervals_per_lap + 1
        return min(raw, max(1, self.total_rounds))

    @property
    def current_exercise_index(self) -> int:
        if self.exercise_count == 0:
            return 0
        return self.completed_work_intervals % self.exercise_count

    @property
    def current_exercise(self) -> Exercise | None:
        if self.exercise_count == 0:
            return None
        return self.block.exercises[self.current_exercise_index]

    @property
    def next_exercise(self) -> Exercise | None:
        if self.exercise_count == 0:
            return None
        return self.block.exercises[
            (self.completed_work_intervals + 1) % self.exercise_count
        ]

    @property
    def is_last_exercise_in_round(self) -> bool:
        return (self.completed_work_intervals + 1) % self.effective_intervals_per_lap == 0

    @property
    def display_time(self) -> int:
        if self._counting_up:
            return self.total_time_elapsed
        direction = self.settings.direction
        if direction is None:
            direction = "up" if self.settings.mode == "stopwatch" else "down"
        if direction == "up":
            return max(0, self.phase_duration - self.time_in_phase)
        return self.time_in_phase

    def snapshot(self) -> TimerSnapshot:
        if self.status in ACTIVE_STATUSES:
            phase: ActivePhase | None = self.status  # type: ignore[assignment]
        else:
            phase = self._paused_phase
        return TimerSnapshot(
            status=self.status,
            phase=phase,
            time_in_phase=self.time_in_phase,
            phase_duration=self.phase_duration,
            display_time=self.display_time,
            current_round=self.current_round,
            total_rounds=self.total_rounds,
            current_exercise_index=self.current_exercise_index,
            completed_work_intervals=self.completed_work_intervals,
            total_work_intervals=self.total_work_intervals,
            total_time_elapsed=self.total_time_elapsed,
            total_block_duration=self.total_block_duration,
        )

    # --- internals ------------------------------------------------------

    def _tick_once(self) -> None:
        status = self.status
        if status in ("running", "resting"):
            self.total_time_elapsed += 1
            if self.total_block_duration > 0 and not self._untimed:
                self.total_time_elapsed = min(
                    self.total_time_elapsed, self.total_block_duration
                )
        if self._counting_up:
            return

        self.time_in_phase = max(0, self.time_in_phase - 1)
        if status in ("preparing", "resting") and self.time_in_phase in COUNTDOWN_SECONDS:
            self._emit("countdown")
        if self.time_in_phase == 0:
            self._expire(natural=True)
            self._settle()

    def _settle(self) -> None:
        # Zero-length phases expire as soon as they are entered.
        while (
            self.status in ACTIVE_STATUSES
            and self.time_in_phase <= 0
            and not self._counting_up
        ):
            self._expire(natural=True)

    def _expire(self, natural: bool) -> None:
        status = self.status
        if status == "preparing":
            if natural:
                self._emit("phase_complete")
            self._enter("running", self._work_sec)
            self._emit("start", previous="preparing")
            return

        if status == "resting":
            self._enter("running", self._work_sec)
            self._emit("phase_changed", previous="resting")
            return

        if natural:
            self._emit("phase_complete")
        if self.settings.mode in ("amrap", "time_cap"):
            self._finish(clamp_elapsed=True)
            return

        self.completed_work_intervals += 1
        if self.completed_work_intervals >= self.settings.rounds:
            self._finish(clamp_elapsed=True)
        elif self._rest_sec > 0:
            self._enter("resting", self._rest_sec)
            self._emit("phase_changed", previous="running")
        else:
            self._enter("running", self._work_sec)
            self._emit("phase_changed", previous="running")

    def _enter(self, status: ActivePhase, duration: int) -> None:
        self.status = status
        self.time_in_phase = duration
        self.phase_duration = duration

    def _finish(self, clamp_elapsed: bool) -> None:
        previous = self.status
        self.status = "finished"
        self.time_in_phase = 0
        if clamp_elapsed and self.total_block_duration > 0:
            self.total_time_elapsed = self.total_block_duration
        logger.debug(
            "Block %r finished after %ss (%s work intervals)",
            self.block.title,
            self.total_time_elapsed,
            self.completed_work_intervals,
        )
        self._emit("finished", previous=previous)

    def _emit(self, kind: EventKind, previous: TimerStatus | None = None) -> None:
        event = TimerEvent(
            kind=kind,
            status=self.status,
            time_in_phase=self.time_in_phase,
            previous_status=previous,
        )
        for callback in list(self._listeners):
            callback(event)
