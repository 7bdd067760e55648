"""Local persistence for completed race leaderboards."""

from __future__ import annotations

import json
import logging
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any

from gymclock.core.config import load_config
from gymclock.race.scheduler import RaceResult


logger = logging.getLogger(__name__)


def _default_results_path() -> Path:
    return load_config().race_results_path


@dataclass(frozen=True)
class RaceResultRecord:
    race_name: str
    completed_at_utc: str
    start_interval_seconds: int
    groups: list[dict[str, Any]]
    results: list[dict[str, Any]]

    @property
    def winner(self) -> str | None:
        return self.results[0]["participant"] if self.results else None


def record_from_result(result: RaceResult) -> RaceResultRecord:
    return RaceResultRecord(
        race_name=result.race_name,
        completed_at_utc=result.completed_at_utc,
        start_interval_seconds=result.start_interval_seconds,
        groups=[
            {
                "id": group.id,
                "name": group.name,
                "participants": list(group.participant_names),
                "start_time": group.start_time,
            }
            for group in result.groups
        ],
        results=[
            {
                "placement": entry.placement,
                "participant": entry.participant,
                "group_id": entry.group_id,
                "time": entry.time,
            }
            for entry in result.entries
        ],
    )


def append_race_result(result: RaceResult, path: Path | None = None) -> Path:
    target = path or _default_results_path()
    target.parent.mkdir(parents=True, exist_ok=True)
    with target.open("a", encoding="utf-8") as handle:
        handle.write(json.dumps(asdict(record_from_result(result)), ensure_ascii=True) + "\n")
    return target


def load_recent_races(limit: int = 20, path: Path | None = None) -> list[RaceResultRecord]:
    target = path or _default_results_path()
    if not target.exists():
        return []

    lines = target.read_text(encoding="utf-8").splitlines()
    out: list[RaceResultRecord] = []
    for raw in reversed(lines):
        if not raw.strip():
            continue
        try:
            item = json.loads(raw)
            out.append(RaceResultRecord(**item))
        except (json.JSONDecodeError, TypeError) as exc:
            logger.debug("Skipping unreadable race record in %s: %s", target, exc)
            continue
        if len(out) >= limit:
            break
    return out


class JsonlResultSink:
    """Race result sink appending to a JSON-lines file."""

    def __init__(self, path: Path | None = None) -> None:
        self.path = path or _default_results_path()

    def __call__(self, result: RaceResult) -> None:
        append_race_result(result, self.path)
