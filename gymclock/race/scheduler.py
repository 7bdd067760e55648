"""Staggered-start race groups, finish registration and live ranking."""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from typing import Callable, Literal, Sequence

from gymclock.workout.durations import clamp_seconds
from gymclock.workout.model import StartGroup


logger = logging.getLogger(__name__)

RACE_CLOCK_STATUSES = frozenset({"preparing", "running"})
CUE_THRESHOLDS = (60, 30, 10, 5, 4, 3, 2, 1, 0)
DEFAULT_PENALTY_SEC = 60


class RaceActionError(ValueError):
    """Raised when an operator action on a race is rejected."""


RaceEventKind = Literal[
    "group_started",
    "start_countdown",
    "finish_registered",
    "finish_edited",
    "penalty_applied",
    "finish_undone",
    "all_finished",
    "race_completed",
]


@dataclass(frozen=True)
class RaceEvent:
    kind: RaceEventKind
    group_id: str | None = None
    group_name: str | None = None
    participant: str | None = None
    seconds: int | None = None
    preparing: bool = False


RaceEventCallback = Callable[[RaceEvent], None]


@dataclass
class FinishRecord:
    participant: str
    group_id: str
    time: int
    placement: int = 0
    sequence: int = 0


@dataclass(frozen=True)
class LeaderboardEntry:
    placement: int
    participant: str
    group_id: str
    group_name: str
    time: int


@dataclass(frozen=True)
class RaceResult:
    race_name: str
    completed_at_utc: str
    start_interval_seconds: int
    groups: tuple[StartGroup, ...]
    entries: tuple[LeaderboardEntry, ...]

    @property
    def winner(self) -> str | None:
        return self.entries[0].participant if self.entries else None


class RaceGroupScheduler:
    """Promotes start groups off one shared race clock and ranks finishers.

    Group ``i`` is due at ``i * start_interval_seconds`` of race time. Groups
    start strictly in order; a clock jump starts every group it passed.
    Placements are derived from net times and recomputed on every change.
    """

    def __init__(
        self,
        groups: Sequence[StartGroup],
        start_interval_seconds: int,
        penalty_seconds: int = DEFAULT_PENALTY_SEC,
    ) -> None:
        self._groups = [replace(group, start_time=None) for group in groups]
        self._interval = clamp_seconds(start_interval_seconds)
        self._penalty = clamp_seconds(penalty_seconds)
        self._listeners: list[RaceEventCallback] = []
        self._records: dict[str, FinishRecord] = {}
        self._fired: set[tuple[str, int]] = set()
        self._last_countdown: dict[str, int] = {}
        self._elapsed = 0
        self._sequence = 0
        self._completed = False
        self._all_finished_announced = False

    def add_listener(self, callback: RaceEventCallback) -> None:
        self._listeners.append(callback)

    @property
    def groups(self) -> tuple[StartGroup, ...]:
        return tuple(self._groups)

    @property
    def start_interval_seconds(self) -> int:
        return self._interval

    @property
    def elapsed(self) -> int:
        return self._elapsed

    @property
    def completed(self) -> bool:
        return self._completed

    def scheduled_start(self, index: int) -> int:
        return index * self._interval

    # --- clock ----------------------------------------------------------

    def update(
        self,
        total_time_elapsed: int,
        status: str,
        prepare_remaining: int | None = None,
    ) -> None:
        if self._completed:
            return
        self._elapsed = max(0, int(total_time_elapsed))
        if status not in RACE_CLOCK_STATUSES:
            return
        self._announce_countdown(status, prepare_remaining)
        self._promote_due_groups()

    @property
    def next_group_to_start(self) -> StartGroup | None:
        return next((group for group in self._groups if group.start_time is None), None)

    @property
    def countdown_to_next_start(self) -> int | None:
        for index, group in enumerate(self._groups):
            if group.start_time is None:
                return max(0, self.scheduled_start(index) - self._elapsed)
        return None

    def _promote_due_groups(self) -> None:
        for index, group in enumerate(self._groups):
            if group.start_time is not None:
                continue
            scheduled = self.scheduled_start(index)
            if self._elapsed < scheduled:
                break
            group.start_time = scheduled
            logger.info("Start group %r started at %ss", group.name, scheduled)
            self._emit(
                RaceEvent(
                    kind="group_started",
                    group_id=group.id,
                    group_name=group.name,
                    seconds=scheduled,
                )
            )

    def _announce_countdown(self, status: str, prepare_remaining: int | None) -> None:
        if not self._groups:
            return
        first = self._groups[0]
        if status == "preparing":
            self._cue(first, max(0, prepare_remaining or 0), preparing=True)
            return

        if (first.id, 0) not in self._fired:
            self._cue(first, 0)
        group = self.next_group_to_start
        countdown = self.countdown_to_next_start
        if group is None or countdown is None or group is first:
            return
        self._cue(group, countdown)

    def _cue(self, group: StartGroup, countdown: int, preparing: bool = False) -> None:
        previous = self._last_countdown.get(group.id)
        self._last_countdown[group.id] = countdown
        if previous is None:
            crossed = [t for t in CUE_THRESHOLDS if t == countdown]
            # Thresholds already behind us when first seen stay silent.
            self._fired.update((group.id, t) for t in CUE_THRESHOLDS if t > countdown)
        else:
            crossed = [t for t in CUE_THRESHOLDS if countdown <= t < previous]
        crossed = [t for t in crossed if (group.id, t) not in self._fired]
        if not crossed:
            return
        self._fired.update((group.id, t) for t in crossed)
        self._emit(
            RaceEvent(
                kind="start_countdown",
                group_id=group.id,
                group_name=group.name,
                seconds=min(crossed),
                preparing=preparing,
            )
        )

    # --- participants ---------------------------------------------------

    def group_of(self, participant: str) -> StartGroup | None:
        name = participant.strip()
        return next(
            (group for group in self._groups if name in group.participant_names), None
        )

    @property
    def participants(self) -> tuple[str, ...]:
        return tuple(name for group in self._groups for name in group.participant_names)

    @property
    def started_participants(self) -> tuple[str, ...]:
        return tuple(
            name
            for group in self._groups
            if group.start_time is not None
            for name in group.participant_names
        )

    @property
    def unfinished_participants(self) -> tuple[str, ...]:
        return tuple(name for name in self.started_participants if name not in self._records)

    @property
    def finish_records(self) -> tuple[FinishRecord, ...]:
        return tuple(sorted(self._records.values(), key=lambda r: r.placement))

    def finish_record(self, participant: str) -> FinishRecord | None:
        return self._records.get(participant.strip())

    @property
    def all_finished(self) -> bool:
        names = self.participants
        return bool(names) and all(name in self._records for name in names)

    def register_finish(self, participant: str) -> FinishRecord:
        self._require_open()
        name = participant.strip()
        group = self.group_of(name)
        if group is None:
            raise RaceActionError(f"Unknown participant '{name}'")
        if group.start_time is None:
            raise RaceActionError(f"Group '{group.name}' has not started yet")
        if name in self._records:
            raise RaceActionError(f"'{name}' has already finished")

        self._sequence += 1
        record = FinishRecord(
            participant=name,
            group_id=group.id,
            time=max(0, self._elapsed - group.start_time),
            sequence=self._sequence,
        )
        self._records[name] = record
        self._rank()
        self._emit(
            RaceEvent(
                kind="finish_registered",
                group_id=group.id,
                group_name=group.name,
                participant=name,
                seconds=record.time,
            )
        )
        self._check_all_finished()
        return record

    def edit_finish(self, participant: str, new_time: int) -> FinishRecord:
        record = self._require_record(participant)
        record.time = clamp_seconds(new_time)
        self._rank()
        self._emit(
            RaceEvent(kind="finish_edited", participant=record.participant, seconds=record.time)
        )
        return record

    def apply_penalty(self, participant: str, seconds: int | None = None) -> FinishRecord:
        record = self._require_record(participant)
        penalty = self._penalty if seconds is None else clamp_seconds(seconds)
        record.time += penalty
        self._rank()
        self._emit(
            RaceEvent(kind="penalty_applied", participant=record.participant, seconds=penalty)
        )
        return record

    def undo_finish(self, participant: str) -> None:
        record = self._require_record(participant)
        del self._records[record.participant]
        self._rank()
        self._all_finished_announced = False
        self._emit(RaceEvent(kind="finish_undone", participant=record.participant))

    def leaderboard(self) -> tuple[LeaderboardEntry, ...]:
        names = {group.id: group.name for group in self._groups}
        return tuple(
            LeaderboardEntry(
                placement=record.placement,
                participant=record.participant,
                group_id=record.group_id,
                group_name=names.get(record.group_id, ""),
                time=record.time,
            )
            for record in self.finish_records
        )

    def complete_race(self, race_name: str) -> RaceResult:
        self._require_open()
        if not self.started_participants:
            raise RaceActionError("No participants have started")
        if not self._records:
            raise RaceActionError("No participants have finished")

        result = RaceResult(
            race_name=race_name,
            completed_at_utc=datetime.now(tz=timezone.utc).isoformat(),
            start_interval_seconds=self._interval,
            groups=tuple(replace(group) for group in self._groups),
            entries=self.leaderboard(),
        )
        self._completed = True
        self._emit(RaceEvent(kind="race_completed", participant=result.winner))
        return result

    def reset(self) -> None:
        for group in self._groups:
            group.start_time = None
        self._records.clear()
        self._fired.clear()
        self._last_countdown.clear()
        self._elapsed = 0
        self._sequence = 0
        self._completed = False
        self._all_finished_announced = False

    # --- internals ------------------------------------------------------

    def _require_open(self) -> None:
        if self._completed:
            raise RaceActionError("Race is already completed")

    def _require_record(self, participant: str) -> FinishRecord:
        self._require_open()
        record = self._records.get(participant.strip())
        if record is None:
            raise RaceActionError(f"'{participant.strip()}' has not finished")
        return record

    def _rank(self) -> None:
        ordered = sorted(self._records.values(), key=lambda r: (r.time, r.sequence))
        for placement, record in enumerate(ordered, start=1):
            record.placement = placement

    def _check_all_finished(self) -> None:
        if self._all_finished_announced or not self.all_finished:
            return
        self._all_finished_announced = True
        self._emit(RaceEvent(kind="all_finished"))

    def _emit(self, event: RaceEvent) -> None:
        for callback in list(self._listeners):
            callback(event)
