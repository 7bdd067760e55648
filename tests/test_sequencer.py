from __future__ import annotations

from gymclock.core.sequencer import PhaseSequencer
from gymclock.core.state import TimerEvent
from gymclock.workout.model import Exercise, TimerMode, TimerSettings, WorkoutBlock


def _block(
    mode: TimerMode,
    work: int,
    rest: int = 0,
    rounds: int = 1,
    prepare: int = 10,
    exercises: tuple[str, ...] = (),
    **overrides: object,
) -> WorkoutBlock:
    return WorkoutBlock(
        title=f"{mode} block",
        settings=TimerSettings(
            mode=mode,
            work_time=work,
            rest_time=rest,
            rounds=rounds,
            prepare_time=prepare,
            **overrides,  # type: ignore[arg-type]
        ),
        exercises=tuple(Exercise(name=name) for name in exercises),
    )


def _recording(sequencer: PhaseSequencer) -> list[TimerEvent]:
    events: list[TimerEvent] = []
    sequencer.add_listener(events.append)
    return events


def test_prepare_hands_over_to_work_on_last_prepare_tick() -> None:
    sequencer = PhaseSequencer(_block("interval", 30, 15, rounds=3, prepare=10))
    sequencer.start()
    assert sequencer.status == "preparing"
    assert sequencer.time_in_phase == 10

    sequencer.tick(9)
    assert sequencer.status == "preparing"
    assert sequencer.time_in_phase == 1

    sequencer.tick(1)
    assert sequencer.status == "running"
    assert sequencer.time_in_phase == 30
    assert sequencer.total_time_elapsed == 0


def test_prepare_emits_countdown_then_complete_then_start() -> None:
    sequencer = PhaseSequencer(_block("interval", 30, prepare=5))
    events = _recording(sequencer)
    sequencer.start()
    sequencer.tick(5)

    kinds = [event.kind for event in events]
    assert kinds == [
        "started",
        "countdown",
        "countdown",
        "countdown",
        "phase_complete",
        "start",
    ]
    assert [e.time_in_phase for e in events if e.kind == "countdown"] == [3, 2, 1]


def test_zero_rest_never_enters_resting() -> None:
    sequencer = PhaseSequencer(_block("interval", 20, 0, rounds=4))
    seen: set[str] = set()
    sequencer.add_listener(lambda event: seen.add(event.status))
    sequencer.start(skip_prep=True)

    while sequencer.is_ticking:
        sequencer.tick(1)
        seen.add(sequencer.status)

    assert "resting" not in seen
    assert sequencer.status == "finished"
    assert sequencer.completed_work_intervals == 4
    assert sequencer.total_time_elapsed == 80


def test_full_interval_block_matches_total_duration() -> None:
    sequencer = PhaseSequencer(_block("interval", 30, 15, rounds=4))
    sequencer.start(skip_prep=True)

    consumed = sequencer.tick(500)

    assert consumed == 165
    assert sequencer.is_finished
    assert sequencer.total_time_elapsed == sequencer.total_block_duration == 165


def test_exercise_index_cycles_through_exercises() -> None:
    sequencer = PhaseSequencer(
        _block("interval", 10, rounds=6, exercises=("Squat", "Row", "Burpee"))
    )
    sequencer.start(skip_prep=True)

    indices = [sequencer.current_exercise_index]
    for _ in range(4):
        sequencer.tick(10)
        indices.append(sequencer.current_exercise_index)

    assert indices == [0, 1, 2, 0, 1]
    assert sequencer.current_exercise == Exercise(name="Row")
    assert sequencer.next_exercise == Exercise(name="Burpee")


def test_pause_in_rest_resumes_in_rest() -> None:
    sequencer = PhaseSequencer(_block("interval", 10, 5, rounds=2))
    sequencer.start(skip_prep=True)
    sequencer.tick(12)
    assert sequencer.status == "resting"
    assert sequencer.time_in_phase == 3

    sequencer.pause()
    assert sequencer.status == "paused"
    assert sequencer.paused_phase == "resting"
    assert sequencer.tick(10) == 0

    sequencer.resume()
    assert sequencer.status == "resting"
    assert sequencer.time_in_phase == 3
    assert sequencer.total_time_elapsed == 12


def test_pause_during_prepare_keeps_countdown() -> None:
    sequencer = PhaseSequencer(_block("tabata", 20, 10, rounds=8, prepare=10))
    sequencer.start()
    sequencer.tick(4)
    sequencer.pause()
    sequencer.resume()

    assert sequencer.status == "preparing"
    assert sequencer.time_in_phase == 6


def test_rest_countdown_events() -> None:
    sequencer = PhaseSequencer(_block("interval", 10, 5, rounds=2))
    events = _recording(sequencer)
    sequencer.start(skip_prep=True)
    sequencer.tick(15)

    countdowns = [e for e in events if e.kind == "countdown"]
    assert [e.time_in_phase for e in countdowns] == [3, 2, 1]
    assert all(e.status == "resting" for e in countdowns)


def test_amrap_finishes_with_elapsed_clamped() -> None:
    sequencer = PhaseSequencer(_block("amrap", 60, rounds=7))
    sequencer.start(skip_prep=True)
    sequencer.tick(60)

    assert sequencer.is_finished
    assert sequencer.total_time_elapsed == 60
    assert sequencer.completed_work_intervals == 0
    assert sequencer.current_round == 1


def test_emom_rounds_are_minutes() -> None:
    sequencer = PhaseSequencer(_block("emom", 45, rounds=3, exercises=("Swing", "Burpee")))
    sequencer.start(skip_prep=True)
    assert sequencer.time_in_phase == 60
    assert sequencer.total_rounds == 3

    sequencer.tick(60)
    assert sequencer.status == "running"
    assert sequencer.current_round == 2

    sequencer.tick(120)
    assert sequencer.is_finished
    assert sequencer.total_time_elapsed == 180
    # EMOM rounds are minutes, not exercise laps, and never read past the last one.
    assert sequencer.current_round == 3


def test_round_math_uses_exercise_count_and_overrides() -> None:
    by_exercises = PhaseSequencer(
        _block("interval", 10, rounds=6, exercises=("A", "B", "C"))
    )
    by_laps = PhaseSequencer(
        _block("interval", 10, rounds=6, exercises=("A", "B", "C"), specified_laps=4)
    )
    by_intervals = PhaseSequencer(
        _block(
            "interval",
            10,
            rounds=6,
            exercises=("A", "B", "C"),
            specified_intervals_per_lap=2,
        )
    )

    assert by_exercises.total_rounds == 2
    assert by_laps.total_rounds == 4
    assert by_intervals.effective_intervals_per_lap == 2
    assert by_intervals.total_rounds == 3

    by_exercises.start(skip_prep=True)
    by_exercises.tick(40)
    assert by_exercises.completed_work_intervals == 4
    assert by_exercises.current_round == 2


def test_current_round_is_capped_after_last_lap() -> None:
    sequencer = PhaseSequencer(
        _block("interval", 10, rounds=6, exercises=("A", "B", "C"))
    )
    sequencer.start(skip_prep=True)
    sequencer.tick(60)

    assert sequencer.is_finished
    assert sequencer.completed_work_intervals == 6
    # 6 // 3 + 1 would read "3/2"; the display stays on the final lap.
    assert sequencer.current_round == sequencer.total_rounds == 2


def test_only_skip_prep_bypasses_prepare() -> None:
    skipped = PhaseSequencer(_block("interval", 30, prepare=10))
    skipped.start(skip_prep=True)
    zero_prepare = PhaseSequencer(_block("interval", 30, prepare=0))
    zero_prepare.start()

    assert skipped.status == "running"
    # A zero prepare time falls back to the default countdown.
    assert zero_prepare.status == "preparing"
    assert zero_prepare.time_in_phase == 10


def test_zero_length_phases_finish_immediately() -> None:
    sequencer = PhaseSequencer(_block("interval", 0, 0, rounds=3))
    sequencer.start(skip_prep=True)

    assert sequencer.is_finished
    assert sequencer.completed_work_intervals == 3


def test_reset_returns_to_idle() -> None:
    sequencer = PhaseSequencer(_block("interval", 10, 5, rounds=2))
    events = _recording(sequencer)
    sequencer.start(skip_prep=True)
    sequencer.tick(7)
    sequencer.reset()

    assert sequencer.status == "idle"
    assert sequencer.time_in_phase == 0
    assert sequencer.total_time_elapsed == 0
    assert sequencer.completed_work_intervals == 0
    assert events[-1].kind == "reset"
    assert sequencer.tick(5) == 0


def test_skip_phase_has_no_phase_complete_cue() -> None:
    sequencer = PhaseSequencer(_block("interval", 30, 10, rounds=3))
    events = _recording(sequencer)
    sequencer.start(skip_prep=True)
    sequencer.skip_phase()

    assert sequencer.status == "resting"
    assert sequencer.completed_work_intervals == 1
    assert "phase_complete" not in [e.kind for e in events]


def test_no_timer_counts_up_until_finished() -> None:
    sequencer = PhaseSequencer(_block("no_timer", 0))
    sequencer.start(skip_prep=True)
    sequencer.tick(5)

    assert sequencer.status == "running"
    assert sequencer.display_time == 5

    sequencer.finish()
    assert sequencer.is_finished
    assert sequencer.total_time_elapsed == 5


def test_no_timer_with_prepare_still_counts_down_prepare() -> None:
    sequencer = PhaseSequencer(_block("no_timer", 0, prepare=3))
    sequencer.start()
    sequencer.tick(3)

    assert sequencer.status == "running"
    sequencer.tick(2)
    assert sequencer.total_time_elapsed == 2


def test_stopwatch_displays_elapsed_time() -> None:
    sequencer = PhaseSequencer(_block("stopwatch", 300))
    sequencer.start(skip_prep=True)
    sequencer.tick(5)

    assert sequencer.time_in_phase == 295
    assert sequencer.display_time == 5


def test_snapshot_reports_progress() -> None:
    sequencer = PhaseSequencer(_block("interval", 30, 15, rounds=3))
    sequencer.start(skip_prep=True)
    sequencer.tick(60)

    snapshot = sequencer.snapshot()
    assert snapshot.status == "running"
    assert snapshot.phase == "running"
    assert snapshot.total_block_duration == 120
    assert snapshot.total_time_elapsed == 60
    assert snapshot.progress_pct == 50.0
