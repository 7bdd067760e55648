"""Terminal CLI entrypoint for gymclock."""

from __future__ import annotations

import argparse
import asyncio
import logging
import os
import sys

from gymclock.audio.cues import ToneSpec
from gymclock.core.chain import ChainSnapshot
from gymclock.core.config import EngineConfig, load_config
from gymclock.race.results_store import JsonlResultSink, load_recent_races
from gymclock.race.scheduler import RaceActionError
from gymclock.ui.controller import TimerController
from gymclock.ui.display import clock_line, format_clock, status_label
from gymclock.workout.library import build_workout_from_template, list_templates
from gymclock.workout.model import Workout
from gymclock.workout.parser import load_workout


COMPLETE_COMMANDS = {"klar", "done"}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="gymclock workout timer")
    parser.add_argument("--workout", default=None, help="Path to a workout JSON file")
    parser.add_argument(
        "--template",
        default=None,
        help="Run a built-in workout template (see --list-templates)",
    )
    parser.add_argument(
        "--list-templates", action="store_true", help="List built-in workout templates"
    )
    parser.add_argument(
        "--history", action="store_true", help="Show recently completed races"
    )
    parser.add_argument(
        "--ui-web",
        action="store_true",
        help="Launch the studio display (NiceGUI) instead of the terminal clock",
    )
    parser.add_argument("--web-host", default="127.0.0.1", help="Host bind for --ui-web")
    parser.add_argument("--web-port", type=int, default=8088, help="Port for --ui-web")
    parser.add_argument(
        "--skip-prep", action="store_true", help="Start working without the prepare countdown"
    )
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    return parser


def configure_logging(debug: bool) -> None:
    level_name = "DEBUG" if debug else os.environ.get("GYMCLOCK_LOG_LEVEL", "WARNING")
    logging.basicConfig(
        level=getattr(logging, level_name.upper(), logging.WARNING),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


class TerminalAudioOutput:
    """Rings the terminal bell for tones and prints what would be spoken."""

    def play_tone(self, tone: ToneSpec) -> None:
        if tone.delay_ms == 0:
            sys.stdout.write("\a")
            sys.stdout.flush()

    def speak(self, text: str, lang: str) -> None:
        print(f"  >> {text}")

    def resume(self) -> None:
        return None


def run_list_templates() -> int:
    for template in list_templates():
        blocks = len(template.blocks)
        race = " [race]" if template.race_groups else ""
        print(f"{template.key:<18} {template.name:<20} {template.category:<10} blocks={blocks}{race}")
    return 0


def run_history(config: EngineConfig) -> int:
    records = load_recent_races(path=config.race_results_path)
    if not records:
        print("No completed races yet")
        return 0
    for record in records:
        print(f"{record.completed_at_utc}  {record.race_name:<24} winner={record.winner or '-'}")
    return 0


def _print_status(controller: TimerController, language: str) -> None:
    snapshot = controller.snapshot()
    if isinstance(snapshot, ChainSnapshot):
        print(clock_line(snapshot, language))
        return
    timer = snapshot.timer
    line = f"{format_clock(timer.display_time)}  {status_label(timer.status, language)}"
    if snapshot.next_group_to_start is not None and snapshot.countdown_to_next_start is not None:
        line += (
            f"  next: {snapshot.next_group_to_start.name}"
            f" in {format_clock(snapshot.countdown_to_next_start)}"
        )
    print(line)


def _chain_done(controller: TimerController) -> bool:
    chain = controller.chain
    assert chain is not None
    return chain.sequencer.is_finished and not chain.in_transition


async def run_terminal_clock(
    workout: Workout, config: EngineConfig, skip_prep: bool = False
) -> int:
    controller = TimerController(
        workout,
        config=config,
        audio_output=TerminalAudioOutput(),
        sink=JsonlResultSink(config.race_results_path) if workout.is_race else None,
    )

    def on_poll(processed: int) -> None:
        if processed > 0:
            _print_status(controller, config.language)

    print(f"{workout.title}: {len(workout.blocks)} block(s)")
    controller.start(skip_prep=skip_prep)
    _print_status(controller, config.language)
    await controller.start_clock(on_poll=on_poll)
    try:
        if controller.is_race:
            await _race_console(controller)
        else:
            while not _chain_done(controller):
                await asyncio.sleep(config.poll_interval_sec)
    except KeyboardInterrupt:
        controller.pause()
    finally:
        await controller.stop_clock()
    return 0


async def _race_console(controller: TimerController) -> None:
    print("Type a participant name to register a finish, 'klar' to complete the race.")
    while True:
        line = (await asyncio.to_thread(sys.stdin.readline)).strip()
        if not line:
            continue
        try:
            if line.lower() in COMPLETE_COMMANDS:
                try:
                    result = controller.complete_race()
                except OSError as exc:
                    # The race is completed even when saving fails.
                    print(f"  ! Could not save race results: {exc}")
                    assert controller.race is not None and controller.race.result is not None
                    result = controller.race.result
                for entry in result.entries:
                    print(f"{entry.placement:>3}. {entry.participant:<20} {format_clock(entry.time)}")
                return
            record = controller.register_finish(line)
            print(f"  {record.participant}: {format_clock(record.time)} (#{record.placement})")
        except RaceActionError as exc:
            print(f"  ! {exc}")


def _resolve_workout(args: argparse.Namespace) -> Workout | None:
    if args.workout:
        return load_workout(args.workout)
    if args.template:
        return build_workout_from_template(args.template)
    return None


def main() -> int:
    parser = build_parser()
    args = parser.parse_args()
    configure_logging(args.debug)
    config = load_config()

    if args.list_templates:
        return run_list_templates()
    if args.history:
        return run_history(config)

    try:
        workout = _resolve_workout(args)
    except (ValueError, OSError) as exc:
        print(f"Could not load workout: {exc}")
        return 1
    if workout is None:
        parser.print_help()
        return 1

    if args.ui_web:
        from gymclock.ui.web_app import run_web_ui

        return run_web_ui(
            workout,
            config=config,
            host=args.web_host,
            port=args.web_port,
            skip_prep=args.skip_prep,
        )

    return asyncio.run(run_terminal_clock(workout, config, skip_prep=args.skip_prep))


if __name__ == "__main__":
    raise SystemExit(main())
