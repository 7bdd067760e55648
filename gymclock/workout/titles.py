"""Infer timer settings from a block title such as "AMRAP 12" or "30/15"."""

from __future__ import annotations

import re
from typing import Any

_AMRAP_RE = re.compile(r"(?:(\d+)\s*min\s*)?(amrap|time cap)(?:\s*(\d+))?")
_EMOM_RE = re.compile(r"emom\s*(\d+)")
_INTERVAL_RE = re.compile(r"(\d+)\s*/\s*(\d+)")

TABATA_DEFAULTS: dict[str, Any] = {
    "mode": "tabata",
    "work_time": 20,
    "rest_time": 10,
    "rounds": 8,
}


def parse_settings_from_title(title: str) -> dict[str, Any] | None:
    """Return partial TimerSettings fields implied by ``title``, or None.

    Rounds are left out for plain "work/rest" titles; the title does not
    say how many there are.
    """
    lower = title.lower().strip()

    amrap = _AMRAP_RE.search(lower)
    if amrap:
        minutes = amrap.group(1) or amrap.group(3)
        if minutes:
            return {
                "mode": "amrap" if amrap.group(2) == "amrap" else "time_cap",
                "work_time": int(minutes) * 60,
                "rest_time": 0,
                "rounds": 1,
            }

    emom = _EMOM_RE.search(lower)
    if emom:
        return {
            "mode": "emom",
            "work_time": 60,
            "rest_time": 0,
            "rounds": int(emom.group(1)),
        }

    if "tabata" in lower:
        return dict(TABATA_DEFAULTS)

    interval = _INTERVAL_RE.search(lower)
    if interval:
        work = int(interval.group(1))
        rest = int(interval.group(2))
        if (work, rest) == (20, 10):
            return dict(TABATA_DEFAULTS)
        return {"mode": "interval", "work_time": work, "rest_time": rest}

    return None
