"""Shared runtime state types for the timer engine."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Literal


TimerStatus = Literal["idle", "preparing", "running", "resting", "paused", "finished"]
ActivePhase = Literal["preparing", "running", "resting"]

ACTIVE_STATUSES: frozenset[str] = frozenset({"preparing", "running", "resting"})

EventKind = Literal[
    "started",
    "start",
    "countdown",
    "phase_complete",
    "phase_changed",
    "paused",
    "resumed",
    "finished",
    "reset",
    "transition_started",
    "transition_countdown",
    "transition_paused",
    "transition_resumed",
    "block_advanced",
]


@dataclass(frozen=True)
class TimerEvent:
    kind: EventKind
    status: TimerStatus
    time_in_phase: int = 0
    previous_status: TimerStatus | None = None
    block_index: int | None = None


@dataclass(frozen=True)
class TimerSnapshot:
    status: TimerStatus
    phase: ActivePhase | None
    time_in_phase: int
    phase_duration: int
    display_time: int
    current_round: int
    total_rounds: int
    current_exercise_index: int
    completed_work_intervals: int
    total_work_intervals: int
    total_time_elapsed: int
    total_block_duration: int

    @property
    def progress_pct(self) -> float:
        if self.total_block_duration <= 0:
            return 0.0
        return min(100.0, (self.total_time_elapsed / self.total_block_duration) * 100.0)


EventCallback = Callable[[TimerEvent], None]
