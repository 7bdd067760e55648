"""Workout domain models."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal


TimerMode = Literal[
    "interval",
    "tabata",
    "amrap",
    "emom",
    "time_cap",
    "stopwatch",
    "no_timer",
]
CountDirection = Literal["up", "down"]

TIMER_MODES: tuple[TimerMode, ...] = (
    "interval",
    "tabata",
    "amrap",
    "emom",
    "time_cap",
    "stopwatch",
    "no_timer",
)

DEFAULT_PREPARE_TIME = 10


@dataclass(frozen=True)
class Exercise:
    name: str
    reps: str | None = None
    description: str | None = None


@dataclass(frozen=True)
class TimerSettings:
    mode: TimerMode
    work_time: int
    rest_time: int = 0
    rounds: int = 1
    prepare_time: int = DEFAULT_PREPARE_TIME
    specified_intervals_per_lap: int | None = None
    specified_laps: int | None = None
    direction: CountDirection | None = None


@dataclass(frozen=True)
class WorkoutBlock:
    title: str
    settings: TimerSettings
    exercises: tuple[Exercise, ...] = ()
    tag: str = ""
    auto_advance: bool = False
    transition_time: int = 0
    follow_me: bool = False


@dataclass
class StartGroup:
    id: str
    name: str
    participants: str = ""
    start_time: int | None = None

    @property
    def participant_names(self) -> tuple[str, ...]:
        return tuple(
            name.strip() for name in self.participants.split("\n") if name.strip()
        )

    @property
    def has_started(self) -> bool:
        return self.start_time is not None


@dataclass(frozen=True)
class Workout:
    title: str
    blocks: tuple[WorkoutBlock, ...]
    start_groups: tuple[StartGroup, ...] = field(default=())
    start_interval_minutes: float | None = None

    @property
    def is_race(self) -> bool:
        return bool(self.start_groups)
