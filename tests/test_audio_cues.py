from __future__ import annotations

import logging

import pytest

from gymclock.audio.cues import (
    COUNTDOWN_TONE,
    PHASE_COMPLETE_TONE,
    START_TONE,
    AudioCueScheduler,
    SpeechCue,
    ToneCue,
    ToneSpec,
    bell_chord,
    cues_for_race_event,
    cues_for_timer_event,
)
from gymclock.audio.phrases import ENGLISH, phrase_book
from gymclock.core.state import TimerEvent
from gymclock.race.scheduler import RaceEvent


class RecordingOutput:
    def __init__(self) -> None:
        self.tones: list[ToneSpec] = []
        self.spoken: list[tuple[str, str]] = []
        self.resumed = 0

    def play_tone(self, tone: ToneSpec) -> None:
        self.tones.append(tone)

    def speak(self, text: str, lang: str) -> None:
        self.spoken.append((text, lang))

    def resume(self) -> None:
        self.resumed += 1


class BrokenOutput:
    def play_tone(self, tone: ToneSpec) -> None:
        raise RuntimeError("audio device unplugged")

    def speak(self, text: str, lang: str) -> None:
        raise RuntimeError("no speech engine")

    def resume(self) -> None:
        raise RuntimeError("context closed")


def test_timer_events_map_to_tones() -> None:
    assert cues_for_timer_event(TimerEvent(kind="countdown", status="preparing")) == (
        COUNTDOWN_TONE,
    )
    assert cues_for_timer_event(TimerEvent(kind="phase_complete", status="running")) == (
        PHASE_COMPLETE_TONE,
    )
    assert cues_for_timer_event(TimerEvent(kind="start", status="running")) == (START_TONE,)
    assert cues_for_timer_event(TimerEvent(kind="paused", status="paused")) == ()


def test_countdown_tone_is_short_and_high() -> None:
    (tone,) = COUNTDOWN_TONE.tones
    low, high = PHASE_COMPLETE_TONE.tones

    assert (tone.frequency_hz, tone.duration_ms, tone.waveform) == (880.0, 150, "triangle")
    assert low.frequency_hz < high.frequency_hz
    assert high.delay_ms == low.duration_ms


def test_bell_has_five_decaying_partials() -> None:
    bell = bell_chord(440.0)

    assert len(bell.tones) == 5
    assert all(tone.delay_ms == 0 for tone in bell.tones)
    assert len({tone.duration_ms for tone in bell.tones}) == 5
    assert bell.tones[1].frequency_hz == 440.0


def test_race_cues_speak_swedish_by_default() -> None:
    minute = cues_for_race_event(
        RaceEvent(kind="start_countdown", group_name="Heat 2", seconds=60)
    )
    go = cues_for_race_event(RaceEvent(kind="start_countdown", group_name="Heat 2", seconds=0))
    finish = cues_for_race_event(RaceEvent(kind="finish_registered", participant="Anna"))

    assert minute == (SpeechCue("Heat 2 startar om en minut", "sv-SE"),)
    assert go == (SpeechCue("Kör Heat 2!", "sv-SE"),)
    assert finish == (SpeechCue("Målgång Anna!", "sv-SE"),)


def test_race_final_seconds_beep_only_outside_prepare() -> None:
    running = cues_for_race_event(RaceEvent(kind="start_countdown", seconds=2))
    preparing = cues_for_race_event(
        RaceEvent(kind="start_countdown", seconds=2, preparing=True)
    )
    five = cues_for_race_event(RaceEvent(kind="start_countdown", seconds=5))

    assert running == (COUNTDOWN_TONE, SpeechCue("2", "sv-SE"))
    assert preparing == (SpeechCue("2", "sv-SE"),)
    assert five == (SpeechCue("5", "sv-SE"),)


def test_race_completion_rings_bell_and_names_winner() -> None:
    cues = cues_for_race_event(
        RaceEvent(kind="race_completed", participant="Sara"), phrases=ENGLISH
    )

    assert isinstance(cues[0], ToneCue)
    assert len(cues[0].tones) == 5
    assert cues[1] == SpeechCue("And the winner is Sara! Great job everyone!", "en-US")


def test_scheduler_plays_through_output() -> None:
    output = RecordingOutput()
    scheduler = AudioCueScheduler(output, phrases=phrase_book("en"))

    scheduler.on_timer_event(TimerEvent(kind="phase_complete", status="running"))
    scheduler.on_race_event(RaceEvent(kind="finish_registered", participant="Kim"))
    scheduler.on_timer_event(TimerEvent(kind="resumed", status="running"))

    assert [tone.frequency_hz for tone in output.tones] == [523.0, 784.0]
    assert output.spoken == [("Kim finished!", "en-US")]
    assert output.resumed == 1


def test_disabled_scheduler_is_silent() -> None:
    output = RecordingOutput()
    scheduler = AudioCueScheduler(output, enabled=False)

    scheduler.celebrate()

    assert output.tones == []


def test_output_failures_are_logged_not_raised(caplog: pytest.LogCaptureFixture) -> None:
    scheduler = AudioCueScheduler(BrokenOutput())

    with caplog.at_level(logging.WARNING, logger="gymclock.audio.cues"):
        scheduler.on_timer_event(TimerEvent(kind="countdown", status="resting"))
        scheduler.on_race_event(RaceEvent(kind="finish_registered", participant="Anna"))
        scheduler.resume()

    assert len(caplog.records) == 3


def test_unknown_language_falls_back_to_swedish() -> None:
    assert phrase_book("de").lang_tag == "sv-SE"
