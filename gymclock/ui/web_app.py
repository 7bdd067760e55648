"""NiceGUI studio display for gymclock."""

from __future__ import annotations

import json
from typing import cast

from nicegui import ui

from gymclock.audio.cues import ToneSpec
from gymclock.core.chain import ChainSnapshot
from gymclock.core.config import EngineConfig
from gymclock.race.results_store import JsonlResultSink
from gymclock.race.scheduler import RaceActionError
from gymclock.race.session import RaceSnapshot
from gymclock.ui.controller import TimerController
from gymclock.ui.display import (
    STATUS_COLORS,
    format_clock,
    mode_label,
    progress_pct,
    round_label,
    status_label,
)
from gymclock.workout.model import Workout


REFRESH_SEC = 0.2

_AUDIO_JS = """
<script>
  window.gymclock = window.gymclock || (() => {
    let ctx = null;
    const audio = () => {
      if (!ctx) { ctx = new (window.AudioContext || window.webkitAudioContext)(); }
      return ctx;
    };
    return {
      tone(freq, durationMs, type, delayMs, gainValue) {
        const c = audio();
        const t0 = c.currentTime + delayMs / 1000;
        const osc = c.createOscillator();
        const gain = c.createGain();
        osc.type = type;
        osc.frequency.value = freq;
        gain.gain.setValueAtTime(0.0001, t0);
        gain.gain.exponentialRampToValueAtTime(Math.max(0.0001, 0.3 * gainValue), t0 + 0.01);
        gain.gain.exponentialRampToValueAtTime(0.0001, t0 + durationMs / 1000);
        osc.connect(gain);
        gain.connect(c.destination);
        osc.start(t0);
        osc.stop(t0 + durationMs / 1000 + 0.05);
      },
      speak(text, lang) {
        if (!window.speechSynthesis) { return; }
        const utterance = new SpeechSynthesisUtterance(text);
        utterance.lang = lang;
        window.speechSynthesis.speak(utterance);
      },
      resume() {
        if (ctx && ctx.state === 'suspended') { ctx.resume(); }
      },
      wakeLock: null,
      async lockScreen() {
        if (navigator.wakeLock) { this.wakeLock = await navigator.wakeLock.request('screen'); }
      },
      unlockScreen() {
        if (this.wakeLock) { this.wakeLock.release(); this.wakeLock = null; }
      },
    };
  })();
</script>
"""


class BrowserAudioOutput:
    """Plays cues in the connected browser through Web Audio and speechSynthesis."""

    def play_tone(self, tone: ToneSpec) -> None:
        ui.run_javascript(
            "window.gymclock.tone("
            f"{tone.frequency_hz}, {tone.duration_ms}, {json.dumps(tone.waveform)}, "
            f"{tone.delay_ms}, {tone.gain})"
        )

    def speak(self, text: str, lang: str) -> None:
        ui.run_javascript(f"window.gymclock.speak({json.dumps(text)}, {json.dumps(lang)})")

    def resume(self) -> None:
        ui.run_javascript("window.gymclock.resume()")


class BrowserWakeLock:
    def acquire(self) -> None:
        ui.run_javascript("window.gymclock.lockScreen()")

    def release(self) -> None:
        ui.run_javascript("window.gymclock.unlockScreen()")


def run_web_ui(
    workout: Workout,
    *,
    config: EngineConfig | None = None,
    host: str = "127.0.0.1",
    port: int = 8088,
    skip_prep: bool = False,
) -> int:
    config = config or EngineConfig()
    controller = TimerController(
        workout,
        config=config,
        audio_output=BrowserAudioOutput(),
        wake_lock=BrowserWakeLock(),
        sink=JsonlResultSink(config.race_results_path) if workout.is_race else None,
    )
    language = config.language

    ui.add_head_html(
        """
        <style>
          body { background: #0b1220; color: #e5e7eb; font-family: Arial, sans-serif; }
          .gc-card { background: #0f1b35; border: 1px solid rgba(148,163,184,.22); border-radius: 14px; }
          .gc-clock { font-size: 9rem; font-weight: 700; line-height: 1; font-variant-numeric: tabular-nums; }
          .gc-muted { color: #9caecf; }
        </style>
        """
    )
    ui.add_head_html(_AUDIO_JS)

    with ui.column().classes("w-full items-center gap-3"):
        ui.label(workout.title).classes("text-2xl font-semibold")
        block_label = ui.label("").classes("text-lg gc-muted")
        with ui.card().classes("w-full max-w-[960px] gc-card items-center"):
            status_text = ui.label("").classes("text-xl font-semibold")
            clock_label = ui.label("00:00").classes("gc-clock")
            round_text = ui.label("").classes("text-lg")
            exercise_label = ui.label("").classes("text-lg")
            next_label = ui.label("").classes("text-sm gc-muted")
            progress = ui.linear_progress(value=0, show_value=False).classes("w-full")
            chain_label = ui.label("").classes("text-sm gc-muted")
        with ui.row().classes("gap-2"):
            start_btn = ui.button("Start")
            pause_btn = ui.button("Paus")
            reset_btn = ui.button("Nollställ").props("outline color=white")
            next_btn = ui.button("Starta nästa nu")
            finish_btn = ui.button("Klar").props("color=positive")

        race_card = ui.card().classes("w-full max-w-[960px] gc-card")
        with race_card:
            groups_label = ui.label("").classes("text-sm")
            with ui.row().classes("w-full items-end gap-2"):
                participant_select = ui.select([], label="Deltagare").classes("w-1/3")
                finish_btn_race = ui.button("Målgång").props("color=positive")
                penalty_btn = ui.button("+ straff").props("outline color=white")
                undo_btn = ui.button("Ångra").props("outline color=white")
                complete_btn = ui.button("Avsluta lopp").props("color=negative")
            leaderboard = ui.table(
                columns=[
                    {"name": "place", "label": "#", "field": "place"},
                    {"name": "name", "label": "Namn", "field": "name"},
                    {"name": "group", "label": "Grupp", "field": "group"},
                    {"name": "time", "label": "Tid", "field": "time"},
                ],
                rows=[],
            ).classes("w-full")
        race_card.set_visibility(controller.is_race)

    def selected_participant() -> str | None:
        return cast(str | None, participant_select.value)

    def refresh_chain(snapshot: ChainSnapshot) -> None:
        block = workout.blocks[snapshot.block_index]
        block_label.text = f"{block.title} | {mode_label(block.settings.mode)}"
        if snapshot.in_transition:
            status_text.text = f"Nästa: {snapshot.next_block_title or '-'}"
            clock_label.text = format_clock(snapshot.transition_remaining)
        if snapshot.chain_length > 1:
            chain_label.text = (
                f"Block {snapshot.position_in_chain}/{snapshot.chain_length}"
                f" | {format_clock(snapshot.chain_elapsed)}"
                f" / {format_clock(snapshot.chain_total_duration)}"
            )
        else:
            chain_label.text = ""
        next_btn.set_visibility(
            snapshot.in_transition
            or (snapshot.timer.status == "finished" and snapshot.next_block_title is not None)
        )

    def refresh_race(snapshot: RaceSnapshot) -> None:
        block_label.text = "Lopp"
        if snapshot.next_group_to_start is not None and snapshot.countdown_to_next_start is not None:
            groups_label.text = (
                f"{snapshot.next_group_to_start.name} startar om "
                f"{format_clock(snapshot.countdown_to_next_start)}"
            )
        elif snapshot.completed:
            groups_label.text = "Loppet är avslutat"
        else:
            groups_label.text = "Alla grupper har startat"
        participant_select.options = list(snapshot.unfinished_participants) + [
            r.participant for r in snapshot.finish_records
        ]
        participant_select.update()
        names = {group.id: group.name for group in snapshot.groups}
        leaderboard.rows = [
            {
                "place": r.placement,
                "name": r.participant,
                "group": names.get(r.group_id, ""),
                "time": format_clock(r.time),
            }
            for r in snapshot.finish_records
        ]
        leaderboard.update()
        complete_btn.set_enabled(not snapshot.completed)
        next_btn.set_visibility(False)

    def refresh_ui() -> None:
        snapshot = controller.snapshot()
        timer = snapshot.timer
        status_text.text = status_label(timer.status, language)
        status_text.style(f"color: {STATUS_COLORS[timer.status]};")
        clock_label.text = format_clock(timer.display_time)
        round_text.text = round_label(timer)
        sequencer = controller.sequencer
        current = sequencer.current_exercise
        upcoming = sequencer.next_exercise
        exercise_label.text = current.name if current else ""
        next_label.text = f"Nästa: {upcoming.name}" if upcoming and upcoming != current else ""
        progress.value = progress_pct(snapshot if isinstance(snapshot, ChainSnapshot) else timer) / 100.0
        if isinstance(snapshot, RaceSnapshot):
            refresh_race(snapshot)
        else:
            refresh_chain(snapshot)
        pause_btn.text = "Fortsätt" if timer.status == "paused" else "Paus"
        finish_btn.set_visibility(
            not controller.is_race and sequencer.settings.mode in ("stopwatch", "no_timer")
        )

    def on_tick() -> None:
        controller.poll()
        refresh_ui()

    def on_start() -> None:
        try:
            controller.start(skip_prep=skip_prep)
        except RaceActionError as exc:
            ui.notify(str(exc), color="negative")
        refresh_ui()

    def on_pause() -> None:
        controller.toggle()
        refresh_ui()

    def on_reset() -> None:
        controller.reset()
        refresh_ui()

    def on_next() -> None:
        controller.start_next_now()
        refresh_ui()

    def on_finish_block() -> None:
        controller.finish_block()
        refresh_ui()

    def race_action(action: str) -> None:
        name = selected_participant()
        try:
            if action == "complete":
                result = controller.complete_race()
                ui.notify(f"Vinnare: {result.winner}", color="positive")
            elif not name:
                ui.notify("Välj en deltagare", color="warning")
            elif action == "finish":
                controller.register_finish(name)
            elif action == "penalty":
                controller.apply_penalty(name)
            elif action == "undo":
                controller.undo_finish(name)
        except RaceActionError as exc:
            ui.notify(str(exc), color="negative")
        except OSError as exc:
            ui.notify(f"Kunde inte spara resultatet: {exc}", color="negative")
        refresh_ui()

    start_btn.on_click(on_start)
    pause_btn.on_click(on_pause)
    reset_btn.on_click(on_reset)
    next_btn.on_click(on_next)
    finish_btn.on_click(on_finish_block)
    finish_btn_race.on_click(lambda: race_action("finish"))
    penalty_btn.on_click(lambda: race_action("penalty"))
    undo_btn.on_click(lambda: race_action("undo"))
    complete_btn.on_click(lambda: race_action("complete"))

    refresh_ui()
    ui.timer(REFRESH_SEC, on_tick)
    ui.run(host=host, port=port, reload=False, title="gymclock")
    return 0
