"""Pure formatting helpers shared by the terminal and web displays."""

from __future__ import annotations

from gymclock.core.chain import ChainSnapshot
from gymclock.core.state import TimerSnapshot, TimerStatus
from gymclock.workout.model import TimerMode


STATUS_LABELS: dict[str, dict[TimerStatus, str]] = {
    "sv": {
        "idle": "Redo",
        "preparing": "Gör dig redo",
        "running": "Arbete",
        "resting": "Vila",
        "paused": "Pausad",
        "finished": "Klart!",
    },
    "en": {
        "idle": "Ready",
        "preparing": "Get ready",
        "running": "Work",
        "resting": "Rest",
        "paused": "Paused",
        "finished": "Done!",
    },
}

MODE_LABELS: dict[TimerMode, str] = {
    "interval": "Intervall",
    "tabata": "Tabata",
    "amrap": "AMRAP",
    "emom": "EMOM",
    "time_cap": "Time Cap",
    "stopwatch": "Stoppur",
    "no_timer": "Ingen timer",
}

STATUS_COLORS: dict[TimerStatus, str] = {
    "idle": "#94a3b8",
    "preparing": "#f59e0b",
    "running": "#22c55e",
    "resting": "#38bdf8",
    "paused": "#a855f7",
    "finished": "#f43f5e",
}


def format_clock(total_seconds: int) -> str:
    minutes, seconds = divmod(max(0, int(total_seconds)), 60)
    hours, minutes = divmod(minutes, 60)
    if hours:
        return f"{hours:d}:{minutes:02d}:{seconds:02d}"
    return f"{minutes:02d}:{seconds:02d}"


def status_label(status: TimerStatus, language: str = "sv") -> str:
    labels = STATUS_LABELS.get(language, STATUS_LABELS["sv"])
    return labels[status]


def mode_label(mode: TimerMode) -> str:
    return MODE_LABELS.get(mode, mode)


def round_label(snapshot: TimerSnapshot) -> str:
    if snapshot.total_rounds <= 1:
        return ""
    return f"{snapshot.current_round}/{snapshot.total_rounds}"


def progress_pct(snapshot: TimerSnapshot | ChainSnapshot) -> float:
    """Block progress, or whole-chain progress for a chain snapshot."""
    if isinstance(snapshot, ChainSnapshot):
        if snapshot.chain_total_duration <= 0:
            return snapshot.timer.progress_pct
        return min(100.0, snapshot.chain_elapsed / snapshot.chain_total_duration * 100.0)
    return snapshot.progress_pct


def clock_line(snapshot: ChainSnapshot, language: str = "sv") -> str:
    """One-line summary used by the terminal clock."""
    if snapshot.in_transition:
        paused = " (paus)" if snapshot.transition_paused else ""
        nxt = snapshot.next_block_title or "-"
        return f"{format_clock(snapshot.transition_remaining)}  -> {nxt}{paused}"

    timer = snapshot.timer
    parts = [
        format_clock(timer.display_time),
        status_label(timer.status, language),
    ]
    rounds = round_label(timer)
    if rounds:
        parts.append(rounds)
    if snapshot.chain_length > 1:
        parts.append(f"[{snapshot.position_in_chain}/{snapshot.chain_length}]")
    parts.append(f"{progress_pct(snapshot):.0f}%")
    return "  ".join(parts)
