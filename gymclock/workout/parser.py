"""Workout definition loader (JSON)."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from gymclock.workout.durations import clamp_seconds
from gymclock.workout.model import (
    DEFAULT_PREPARE_TIME,
    TIMER_MODES,
    Exercise,
    StartGroup,
    TimerMode,
    TimerSettings,
    Workout,
    WorkoutBlock,
)
from gymclock.workout.titles import parse_settings_from_title


logger = logging.getLogger(__name__)

# Mode labels as they appear in exported studio workouts.
_MODE_ALIASES: dict[str, TimerMode] = {
    "intervall": "interval",
    "time cap": "time_cap",
    "timecap": "time_cap",
    "time-cap": "time_cap",
    "stoppur": "stopwatch",
    "ingen timer": "no_timer",
    "notimer": "no_timer",
}


class WorkoutParseError(ValueError):
    """Raised when a workout file is structurally invalid."""


def load_workout(path: str | Path) -> Workout:
    file_path = Path(path)
    if file_path.suffix.lower() != ".json":
        raise WorkoutParseError(
            f"Unsupported workout format '{file_path.suffix}'. Use .json"
        )
    try:
        data = json.loads(file_path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise WorkoutParseError(f"Invalid JSON: {exc}") from exc
    return parse_workout(data, default_title=file_path.stem)


def parse_workout(data: object, default_title: str = "Workout") -> Workout:
    if not isinstance(data, dict):
        raise WorkoutParseError("Workout JSON must be an object")

    title_obj = data.get("title", data.get("name", default_title))
    if not isinstance(title_obj, str):
        raise WorkoutParseError("Workout field 'title' must be a string")

    blocks_obj = data.get("blocks")
    if not isinstance(blocks_obj, list):
        raise WorkoutParseError("Workout field 'blocks' must be an array")

    blocks: list[WorkoutBlock] = []
    for i, raw in enumerate(blocks_obj):
        if not isinstance(raw, dict):
            raise WorkoutParseError(f"Block {i + 1}: must be an object")
        blocks.append(_build_block(raw, index=i))
    if not blocks:
        raise WorkoutParseError("Workout must contain at least one block")

    groups_obj = _field(data, "start_groups", "startGroups")
    if groups_obj is None:
        groups_obj = []
    if not isinstance(groups_obj, list):
        raise WorkoutParseError("Workout field 'start_groups' must be an array")

    interval_obj = _field(data, "start_interval_minutes", "startIntervalMinutes")
    interval_minutes: float | None = None
    if interval_obj is not None:
        interval_minutes = clamp_seconds(float(_number_or_zero(interval_obj)) * 60) / 60

    return Workout(
        title=title_obj.strip() or default_title,
        blocks=tuple(blocks),
        start_groups=tuple(_build_group(raw, index=i) for i, raw in enumerate(groups_obj)),
        start_interval_minutes=interval_minutes,
    )


def _field(raw: dict[str, Any], snake: str, camel: str) -> Any:
    return raw.get(snake, raw.get(camel))


def _number_or_zero(raw: object) -> float:
    try:
        return float(str(raw).strip())
    except ValueError:
        return 0.0


def _build_block(raw: dict[str, Any], *, index: int) -> WorkoutBlock:
    title = str(raw.get("title") or f"Block {index + 1}").strip()

    settings_obj = raw.get("settings")
    if settings_obj is None:
        settings_obj = {}
    if not isinstance(settings_obj, dict):
        raise WorkoutParseError(f"Block {index + 1}: 'settings' must be an object")

    exercises_obj = raw.get("exercises") or []
    if not isinstance(exercises_obj, list):
        raise WorkoutParseError(f"Block {index + 1}: 'exercises' must be an array")

    return WorkoutBlock(
        title=title,
        tag=str(raw.get("tag") or ""),
        settings=_build_settings(settings_obj, title=title, index=index),
        exercises=tuple(_build_exercise(item, index=index) for item in exercises_obj),
        auto_advance=bool(_field(raw, "auto_advance", "autoAdvance")),
        transition_time=clamp_seconds(_field(raw, "transition_time", "transitionTime")),
        follow_me=bool(_field(raw, "follow_me", "followMe")),
    )


def _build_settings(raw: dict[str, Any], *, title: str, index: int) -> TimerSettings:
    inferred = parse_settings_from_title(title) or {}
    merged: dict[str, Any] = dict(inferred)
    for snake, camel in (
        ("mode", "mode"),
        ("work_time", "workTime"),
        ("rest_time", "restTime"),
        ("rounds", "rounds"),
        ("prepare_time", "prepareTime"),
        ("specified_intervals_per_lap", "specifiedIntervalsPerLap"),
        ("specified_laps", "specifiedLaps"),
        ("direction", "direction"),
    ):
        value = _field(raw, snake, camel)
        if value is not None:
            merged[snake] = value

    mode = _parse_mode(merged.get("mode"), fallback=inferred.get("mode"), index=index)
    return TimerSettings(
        mode=mode,
        work_time=clamp_seconds(merged.get("work_time")),
        rest_time=clamp_seconds(merged.get("rest_time")),
        rounds=clamp_seconds(merged.get("rounds", 1)),
        prepare_time=_prepare_time(merged.get("prepare_time")),
        specified_intervals_per_lap=clamp_seconds(merged.get("specified_intervals_per_lap"))
        or None,
        specified_laps=clamp_seconds(merged.get("specified_laps")) or None,
        direction=merged.get("direction") if merged.get("direction") in ("up", "down") else None,
    )


def _prepare_time(raw: object) -> int:
    # Zero, negative and junk values all keep the default countdown.
    return clamp_seconds(raw) or DEFAULT_PREPARE_TIME


def _parse_mode(raw: object, *, fallback: TimerMode | None, index: int) -> TimerMode:
    if raw is None:
        return fallback or "no_timer"
    text = str(raw).strip().lower()
    if text in TIMER_MODES:
        return text  # type: ignore[return-value]
    if text in _MODE_ALIASES:
        return _MODE_ALIASES[text]
    if fallback is not None:
        logger.info("Block %s: unknown timer mode %r; using %s from title", index + 1, raw, fallback)
        return fallback
    logger.warning("Block %s: unknown timer mode %r; treating as no timer", index + 1, raw)
    return "no_timer"


def _build_exercise(raw: object, *, index: int) -> Exercise:
    if isinstance(raw, str):
        return Exercise(name=raw.strip())
    if not isinstance(raw, dict):
        raise WorkoutParseError(f"Block {index + 1}: exercise must be an object or string")
    name = raw.get("name")
    if not isinstance(name, str) or not name.strip():
        raise WorkoutParseError(f"Block {index + 1}: exercise 'name' is required")
    reps = raw.get("reps")
    description = raw.get("description")
    return Exercise(
        name=name.strip(),
        reps=str(reps).strip() or None if reps is not None else None,
        description=str(description).strip() or None if description is not None else None,
    )


def _build_group(raw: object, *, index: int) -> StartGroup:
    if not isinstance(raw, dict):
        raise WorkoutParseError(f"Start group {index + 1}: must be an object")
    participants = raw.get("participants", "")
    if isinstance(participants, list):
        participants = "\n".join(str(name) for name in participants)
    return StartGroup(
        id=str(raw.get("id") or f"group-{index + 1}"),
        name=str(raw.get("name") or f"Startgrupp {index + 1}"),
        participants=str(participants),
    )
