"""Tone and speech cues for timer, chain and race events.

The policy here is purely reactive: it turns engine events into cue specs
and hands them to an injected ``AudioOutput``. Nothing in this module feeds
back into engine state, and a broken or missing audio device only produces
log warnings.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Literal, Protocol, Union

from gymclock.audio.phrases import SWEDISH, PhraseBook
from gymclock.core.state import TimerEvent
from gymclock.race.scheduler import RaceEvent


logger = logging.getLogger(__name__)

Waveform = Literal["sine", "square", "triangle", "sawtooth"]


@dataclass(frozen=True)
class ToneSpec:
    """One oscillator: short attack, then exponential decay over ``duration_ms``."""

    frequency_hz: float
    duration_ms: int
    waveform: Waveform = "sine"
    delay_ms: int = 0
    gain: float = 1.0


@dataclass(frozen=True)
class ToneCue:
    tones: tuple[ToneSpec, ...]


@dataclass(frozen=True)
class SpeechCue:
    text: str
    lang: str = SWEDISH.lang_tag


Cue = Union[ToneCue, SpeechCue]


COUNTDOWN_TONE = ToneCue((ToneSpec(880.0, 150, "triangle"),))
PHASE_COMPLETE_TONE = ToneCue(
    (
        ToneSpec(523.0, 400, "sine"),
        ToneSpec(784.0, 400, "sine", delay_ms=400),
    )
)
START_TONE = ToneCue((ToneSpec(1046.5, 300, "square", delay_ms=800, gain=0.5),))

# (frequency ratio, gain, decay ms): hum, prime, tierce, quint, nominal.
BELL_PARTIALS: tuple[tuple[float, float, int], ...] = (
    (0.5, 0.45, 4200),
    (1.0, 0.8, 3200),
    (1.2, 0.35, 2100),
    (1.5, 0.3, 1600),
    (2.0, 0.5, 1100),
)


def bell_chord(fundamental_hz: float = 523.25) -> ToneCue:
    return ToneCue(
        tuple(
            ToneSpec(fundamental_hz * ratio, decay_ms, "sine", gain=gain)
            for ratio, gain, decay_ms in BELL_PARTIALS
        )
    )


def cues_for_timer_event(event: TimerEvent) -> tuple[Cue, ...]:
    if event.kind in ("countdown", "transition_countdown"):
        return (COUNTDOWN_TONE,)
    if event.kind == "phase_complete":
        return (PHASE_COMPLETE_TONE,)
    if event.kind == "start":
        return (START_TONE,)
    return ()


def cues_for_race_event(event: RaceEvent, phrases: PhraseBook = SWEDISH) -> tuple[Cue, ...]:
    lang = phrases.lang_tag
    group = event.group_name or ""
    if event.kind == "start_countdown":
        seconds = event.seconds
        if seconds == 60:
            return (SpeechCue(phrases.starts_in_one_minute.format(group=group), lang),)
        if seconds == 30:
            return (SpeechCue(phrases.thirty_seconds, lang),)
        if seconds == 10:
            return (SpeechCue(phrases.ten_seconds, lang),)
        if seconds == 0:
            return (SpeechCue(phrases.go.format(group=group), lang),)
        if seconds is not None and 1 <= seconds <= 3 and not event.preparing:
            # The prepare countdown already beeps on its own.
            return (COUNTDOWN_TONE, SpeechCue(str(seconds), lang))
        if seconds is not None and 1 <= seconds <= 5:
            return (SpeechCue(str(seconds), lang),)
        return ()
    if event.kind == "finish_registered" and event.participant:
        return (SpeechCue(phrases.finish.format(name=event.participant), lang),)
    if event.kind == "race_completed":
        if event.participant:
            return (bell_chord(), SpeechCue(phrases.winner.format(name=event.participant), lang))
        return (bell_chord(),)
    return ()


class AudioOutput(Protocol):
    def play_tone(self, tone: ToneSpec) -> None: ...

    def speak(self, text: str, lang: str) -> None: ...

    def resume(self) -> None: ...


class NullAudioOutput:
    def play_tone(self, tone: ToneSpec) -> None:
        return None

    def speak(self, text: str, lang: str) -> None:
        return None

    def resume(self) -> None:
        return None


class AudioCueScheduler:
    def __init__(
        self,
        output: AudioOutput | None = None,
        phrases: PhraseBook = SWEDISH,
        enabled: bool = True,
    ) -> None:
        self._output: AudioOutput = output or NullAudioOutput()
        self._phrases = phrases
        self.enabled = enabled

    @property
    def phrases(self) -> PhraseBook:
        return self._phrases

    def on_timer_event(self, event: TimerEvent) -> None:
        if event.kind == "resumed":
            self.resume()
        self.play(cues_for_timer_event(event))

    def on_race_event(self, event: RaceEvent) -> None:
        self.play(cues_for_race_event(event, self._phrases))

    def celebrate(self) -> None:
        self.play((bell_chord(),))

    def resume(self) -> None:
        """Wake the output after the platform suspended it."""
        try:
            self._output.resume()
        except Exception as exc:
            logger.warning("Audio output could not be resumed: %s", exc)

    def play(self, cues: tuple[Cue, ...]) -> None:
        if not self.enabled:
            return
        for cue in cues:
            try:
                if isinstance(cue, ToneCue):
                    for tone in cue.tones:
                        self._output.play_tone(tone)
                else:
                    self._output.speak(cue.text, cue.lang)
            except Exception as exc:
                logger.warning("Audio cue %r failed: %s", cue, exc)
