"""Spoken announcements for race starts and finishes."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class PhraseBook:
    lang_tag: str
    starts_in_one_minute: str
    thirty_seconds: str
    ten_seconds: str
    go: str
    finish: str
    winner: str


SWEDISH = PhraseBook(
    lang_tag="sv-SE",
    starts_in_one_minute="{group} startar om en minut",
    thirty_seconds="30 sekunder till start",
    ten_seconds="10 sekunder",
    go="Kör {group}!",
    finish="Målgång {name}!",
    winner="Och vinnaren är {name}! Bra jobbat alla!",
)

ENGLISH = PhraseBook(
    lang_tag="en-US",
    starts_in_one_minute="{group} starts in one minute",
    thirty_seconds="30 seconds to start",
    ten_seconds="10 seconds",
    go="Go {group}!",
    finish="{name} finished!",
    winner="And the winner is {name}! Great job everyone!",
)

_BOOKS = {"sv": SWEDISH, "en": ENGLISH}


def phrase_book(language: str) -> PhraseBook:
    return _BOOKS.get(language, SWEDISH)
