"""Block duration math and timer settings normalization."""

from __future__ import annotations

import math
from dataclasses import replace

from gymclock.workout.model import (
    DEFAULT_PREPARE_TIME,
    TIMER_MODES,
    TimerSettings,
    WorkoutBlock,
)


EMOM_ROUND_SEC = 60

ROUND_BASED_MODES = frozenset({"interval", "tabata", "emom"})
SINGLE_PHASE_MODES = frozenset({"amrap", "time_cap", "stopwatch"})


def clamp_seconds(raw: object) -> int:
    """Coerce user-authored numbers to a non-negative int; junk becomes 0."""
    if isinstance(raw, bool):
        return 0
    try:
        value = float(raw)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return 0
    if math.isnan(value) or math.isinf(value) or value <= 0:
        return 0
    return int(value)


def _optional_positive(raw: object) -> int | None:
    if raw is None:
        return None
    value = clamp_seconds(raw)
    return value or None


def normalize_settings(
    settings: TimerSettings, default_prepare_time: int = DEFAULT_PREPARE_TIME
) -> TimerSettings:
    """Clamp a settings object into something the sequencer can always run."""
    mode = settings.mode if settings.mode in TIMER_MODES else "no_timer"

    rounds = clamp_seconds(settings.rounds)
    if mode in ROUND_BASED_MODES:
        rounds = max(1, rounds)
    else:
        rounds = 1

    # Skipping prepare is start(skip_prep=True)'s job, never a zero setting.
    prepare_time = clamp_seconds(settings.prepare_time) or default_prepare_time

    direction = settings.direction if settings.direction in ("up", "down") else None

    return replace(
        settings,
        mode=mode,
        work_time=clamp_seconds(settings.work_time),
        rest_time=clamp_seconds(settings.rest_time),
        rounds=rounds,
        prepare_time=prepare_time,
        specified_intervals_per_lap=_optional_positive(
            settings.specified_intervals_per_lap
        ),
        specified_laps=_optional_positive(settings.specified_laps),
        direction=direction,
    )


def work_phase_seconds(settings: TimerSettings) -> int:
    if settings.mode == "emom":
        return EMOM_ROUND_SEC
    if settings.mode == "no_timer":
        return 0
    return clamp_seconds(settings.work_time)


def rest_phase_seconds(settings: TimerSettings) -> int:
    if settings.mode in ("interval", "tabata"):
        return clamp_seconds(settings.rest_time)
    return 0


def total_duration(settings: TimerSettings) -> int:
    """Total active seconds of a block; prepare time is not included."""
    mode = settings.mode
    if mode in ("interval", "tabata"):
        rounds = clamp_seconds(settings.rounds)
        work = clamp_seconds(settings.work_time)
        rest = clamp_seconds(settings.rest_time)
        return rounds * work + max(0, rounds - 1) * rest
    if mode in SINGLE_PHASE_MODES:
        return clamp_seconds(settings.work_time)
    if mode == "emom":
        return clamp_seconds(settings.rounds) * EMOM_ROUND_SEC
    return 0


def block_duration(block: WorkoutBlock) -> int:
    return total_duration(normalize_settings(block.settings))
