from __future__ import annotations

from pathlib import Path

import pytest

from gymclock.core.config import load_config
from gymclock.race.results_store import JsonlResultSink, append_race_result, load_recent_races
from gymclock.race.scheduler import LeaderboardEntry, RaceResult
from gymclock.workout.model import StartGroup


def _result(name: str, winner: str) -> RaceResult:
    return RaceResult(
        race_name=name,
        completed_at_utc="2026-10-16T18:30:00+00:00",
        start_interval_seconds=120,
        groups=(StartGroup(id="g0", name="Heat 1", participants=f"{winner}\nErik", start_time=0),),
        entries=(
            LeaderboardEntry(1, winner, "g0", "Heat 1", 3540),
            LeaderboardEntry(2, "Erik", "g0", "Heat 1", 3720),
        ),
    )


def test_append_and_load_recent_races(tmp_path: Path) -> None:
    store = tmp_path / "races.jsonl"
    append_race_result(_result("Thursday", "Anna"), path=store)
    append_race_result(_result("Friday", "Sara"), path=store)

    records = load_recent_races(path=store)

    assert [r.race_name for r in records] == ["Friday", "Thursday"]
    assert records[0].winner == "Sara"
    assert records[0].groups[0]["participants"] == ["Sara", "Erik"]
    assert records[0].results[1]["time"] == 3720


def test_load_skips_unreadable_lines(tmp_path: Path) -> None:
    store = tmp_path / "races.jsonl"
    append_race_result(_result("Thursday", "Anna"), path=store)
    with store.open("a", encoding="utf-8") as handle:
        handle.write("{broken\n\n")
        handle.write('{"race_name": "missing fields"}\n')

    records = load_recent_races(path=store)

    assert [r.race_name for r in records] == ["Thursday"]


def test_load_respects_limit_and_missing_file(tmp_path: Path) -> None:
    store = tmp_path / "nested" / "races.jsonl"
    assert load_recent_races(path=store) == []

    for i in range(5):
        append_race_result(_result(f"Race {i}", "Anna"), path=store)

    assert len(load_recent_races(limit=2, path=store)) == 2


def test_jsonl_sink_appends(tmp_path: Path) -> None:
    sink = JsonlResultSink(tmp_path / "out" / "races.jsonl")

    sink(_result("Saturday", "Kim"))

    assert load_recent_races(path=sink.path)[0].winner == "Kim"


def test_default_path_follows_data_dir(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("GYMCLOCK_DATA_DIR", str(tmp_path))

    assert JsonlResultSink().path == tmp_path / "races.jsonl"
    assert load_config().race_results_path == JsonlResultSink().path
