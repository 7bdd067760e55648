"""Auto-advancing block chains and the transition rest between blocks."""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import Sequence

from gymclock.core.sequencer import PhaseSequencer
from gymclock.core.state import EventCallback, EventKind, TimerEvent, TimerSnapshot
from gymclock.workout.durations import block_duration, clamp_seconds
from gymclock.workout.model import DEFAULT_PREPARE_TIME, WorkoutBlock


logger = logging.getLogger(__name__)

TRANSITION_COUNTDOWN_SECONDS = (1, 2, 3)


@dataclass(frozen=True)
class ChainProgress:
    first_index: int
    last_index: int
    position: int
    length: int
    total_duration: int
    elapsed_before_current: int


@dataclass
class TransitionCountdown:
    duration: int
    remaining: int
    paused: bool = False

    @property
    def elapsed(self) -> int:
        return self.duration - self.remaining


@dataclass(frozen=True)
class ChainSnapshot:
    block_index: int
    block_title: str
    next_block_title: str | None
    timer: TimerSnapshot
    in_transition: bool
    transition_remaining: int
    transition_duration: int
    transition_paused: bool
    chain_total_duration: int
    chain_elapsed: int
    position_in_chain: int
    chain_length: int


def find_chain(blocks: Sequence[WorkoutBlock], index: int) -> tuple[int, int]:
    """Return (first, last) indices of the auto-advance chain holding ``index``."""
    if not 0 <= index < len(blocks):
        raise IndexError(f"Block index {index} out of range")
    first = index
    while first > 0 and blocks[first - 1].auto_advance:
        first -= 1
    last = index
    while last < len(blocks) - 1 and blocks[last].auto_advance:
        last += 1
    return first, last


def chain_contribution(block: WorkoutBlock, is_last_in_chain: bool) -> int:
    duration = block_duration(block)
    if block.auto_advance and not is_last_in_chain:
        duration += clamp_seconds(block.transition_time)
    return duration


def chain_progress(blocks: Sequence[WorkoutBlock], index: int) -> ChainProgress:
    first, last = find_chain(blocks, index)
    total = 0
    before = 0
    for i in range(first, last + 1):
        contribution = chain_contribution(blocks[i], is_last_in_chain=i == last)
        total += contribution
        if i < index:
            before += contribution
    return ChainProgress(
        first_index=first,
        last_index=last,
        position=index - first + 1,
        length=last - first + 1,
        total_duration=total,
        elapsed_before_current=before,
    )


class ChainCoordinator:
    """Runs a workout's blocks, chaining auto-advance blocks end to end.

    Exactly one ``PhaseSequencer`` is live at a time. When it finishes on an
    auto-advance block, a separate transition countdown runs (with its own
    pause flag) before the next block's sequencer is created and started.
    """

    def __init__(
        self,
        blocks: Sequence[WorkoutBlock],
        start_index: int = 0,
        skip_prep_on_advance: bool = True,
        default_prepare_time: int = DEFAULT_PREPARE_TIME,
    ) -> None:
        if not blocks:
            raise ValueError("Workout must contain at least one block")
        if not 0 <= start_index < len(blocks):
            raise IndexError(f"Block index {start_index} out of range")
        self._blocks = tuple(blocks)
        self._skip_prep_on_advance = skip_prep_on_advance
        self._default_prepare_time = default_prepare_time
        self._listeners: list[EventCallback] = []
        self._index = start_index
        self._transition: TransitionCountdown | None = None
        self._sequencer = self._new_sequencer(start_index)

    def add_listener(self, callback: EventCallback) -> None:
        self._listeners.append(callback)

    @property
    def blocks(self) -> tuple[WorkoutBlock, ...]:
        return self._blocks

    @property
    def current_index(self) -> int:
        return self._index

    @property
    def current_block(self) -> WorkoutBlock:
        return self._blocks[self._index]

    @property
    def sequencer(self) -> PhaseSequencer:
        return self._sequencer

    @property
    def transition(self) -> TransitionCountdown | None:
        return self._transition

    @property
    def in_transition(self) -> bool:
        return self._transition is not None

    @property
    def has_next(self) -> bool:
        return self._index + 1 < len(self._blocks)

    @property
    def is_ticking(self) -> bool:
        if self._transition is not None:
            return not self._transition.paused
        return self._sequencer.is_ticking

    # --- controls -------------------------------------------------------

    def start(self, skip_prep: bool = False) -> None:
        self._transition = None
        self._sequencer.start(skip_prep=skip_prep)

    def pause(self) -> None:
        if self._transition is not None:
            if not self._transition.paused:
                self._transition.paused = True
                self._emit_transition("transition_paused")
            return
        self._sequencer.pause()

    def resume(self) -> None:
        if self._transition is not None:
            if self._transition.paused:
                self._transition.paused = False
                self._emit_transition("transition_resumed")
            return
        self._sequencer.resume()

    def reset(self) -> None:
        self._transition = None
        self._sequencer.reset()

    def select_block(self, index: int) -> None:
        """Abandon the live block and load ``index`` idle."""
        if not 0 <= index < len(self._blocks):
            raise IndexError(f"Block index {index} out of range")
        self._transition = None
        self._sequencer.remove_listener(self._on_block_event)
        self._index = index
        self._sequencer = self._new_sequencer(index)

    def start_next_now(self) -> None:
        """Skip what is left of the transition rest."""
        if self._transition is not None or (self._sequencer.is_finished and self.has_next):
            self._advance()

    def tick(self, seconds: int = 1) -> int:
        consumed = 0
        for _ in range(max(0, int(seconds))):
            if not self.is_ticking:
                break
            if self._transition is not None:
                self._tick_transition()
            else:
                self._sequencer.tick(1)
            consumed += 1
        return consumed

    # --- progress -------------------------------------------------------

    def progress(self) -> ChainProgress:
        return chain_progress(self._blocks, self._index)

    def snapshot(self) -> ChainSnapshot:
        timer = self._sequencer.snapshot()
        progress = self.progress()
        transition = self._transition
        elapsed = progress.elapsed_before_current + timer.total_time_elapsed
        if transition is not None:
            elapsed += transition.elapsed
        next_title = self._blocks[self._index + 1].title if self.has_next else None
        return ChainSnapshot(
            block_index=self._index,
            block_title=self.current_block.title,
            next_block_title=next_title,
            timer=timer,
            in_transition=transition is not None,
            transition_remaining=transition.remaining if transition else 0,
            transition_duration=transition.duration if transition else 0,
            transition_paused=transition.paused if transition else False,
            chain_total_duration=progress.total_duration,
            chain_elapsed=min(elapsed, progress.total_duration)
            if progress.total_duration > 0
            else elapsed,
            position_in_chain=progress.position,
            chain_length=progress.length,
        )

    # --- internals ------------------------------------------------------

    def _new_sequencer(self, index: int) -> PhaseSequencer:
        sequencer = PhaseSequencer(
            self._blocks[index], default_prepare_time=self._default_prepare_time
        )
        sequencer.add_listener(self._on_block_event)
        return sequencer

    def _on_block_event(self, event: TimerEvent) -> None:
        self._dispatch(replace(event, block_index=self._index))
        if event.kind == "finished":
            self._on_block_finished()

    def _on_block_finished(self) -> None:
        block = self.current_block
        if not block.auto_advance or not self.has_next:
            return
        duration = clamp_seconds(block.transition_time)
        if duration == 0:
            self._advance()
            return
        self._transition = TransitionCountdown(duration=duration, remaining=duration)
        logger.debug("Transition of %ss before block %s", duration, self._index + 1)
        self._emit_transition("transition_started")

    def _tick_transition(self) -> None:
        transition = self._transition
        assert transition is not None
        transition.remaining = max(0, transition.remaining - 1)
        if transition.remaining in TRANSITION_COUNTDOWN_SECONDS:
            self._emit_transition("transition_countdown")
        if transition.remaining == 0:
            self._advance()

    def _advance(self) -> None:
        if not self.has_next:
            return
        self._transition = None
        self._sequencer.remove_listener(self._on_block_event)
        self._index += 1
        self._sequencer = self._new_sequencer(self._index)
        self._dispatch(
            TimerEvent(
                kind="block_advanced",
                status=self._sequencer.status,
                block_index=self._index,
            )
        )
        self._sequencer.start(skip_prep=self._skip_prep_on_advance)

    def _emit_transition(self, kind: EventKind) -> None:
        transition = self._transition
        self._dispatch(
            TimerEvent(
                kind=kind,
                status=self._sequencer.status,
                time_in_phase=transition.remaining if transition else 0,
                block_index=self._index,
            )
        )

    def _dispatch(self, event: TimerEvent) -> None:
        for callback in list(self._listeners):
            callback(event)
