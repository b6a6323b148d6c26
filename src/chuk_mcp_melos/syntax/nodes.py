"""
Syntax tree for Melos source.

Produced by the parser, consumed once by the walker. Every node is a frozen
dataclass and every sequence is a tuple, so a Score is immutable once built
and structurally comparable in tests.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Union


class BaseDuration(str, Enum):
    """Nominal note values, keyed by their source letter."""

    WHOLE = "w"
    HALF = "h"
    QUARTER = "q"
    EIGHTH = "e"
    SIXTEENTH = "s"


class Accidental(str, Enum):
    SHARP = "#"
    FLAT = "b"


# ---------- Durations ----------


@dataclass(frozen=True)
class Base:
    """A nominal value with zero or more augmentation dots."""

    unit: BaseDuration
    dots: int = 0


@dataclass(frozen=True)
class Subdivision:
    """A nominal value split into n equal parts. Not lowered."""

    unit: BaseDuration
    divisions: int


@dataclass(frozen=True)
class Fraction:
    """A duration given as a fraction of a whole note. Not lowered."""

    numerator: int
    denominator: int


Duration = Union[Base, Subdivision, Fraction]


# ---------- Pitch ----------


@dataclass(frozen=True)
class Pitch:
    """Step, accidental and octave in scientific pitch notation."""

    step: str
    accidental: Accidental | None = None
    octave: int = 4

    def __str__(self) -> str:
        acc = self.accidental.value if self.accidental else ""
        return f"{self.step}{acc}{self.octave}"


# ---------- Swing ----------


@dataclass(frozen=True)
class SwingSetting:
    """Swing applied to pairs of `unit` notes; the first note gets `ratio` of the pair."""

    unit: BaseDuration
    ratio: float


# ---------- Headers and context changes ----------


@dataclass(frozen=True)
class Title:
    text: str


@dataclass(frozen=True)
class Tempo:
    bpm: int


@dataclass(frozen=True)
class TimeSignature:
    numerator: int
    denominator: int

    def __str__(self) -> str:
        return f"{self.numerator}/{self.denominator}"


@dataclass(frozen=True)
class KeySignature:
    root: str
    scale: str


@dataclass(frozen=True)
class Swing:
    """Swing directive; `setting` is None for `Swing: off`."""

    setting: SwingSetting | None = None


Header = Union[Title, Tempo, TimeSignature, KeySignature, Swing]

# Payloads allowed inline in a part; they share the header types
ContextPayload = Union[Tempo, TimeSignature, KeySignature, Swing]


# ---------- Events ----------


@dataclass(frozen=True)
class Note:
    pitch: Pitch
    duration: Duration | None = None
    dynamic: str | None = None
    articulation: str | None = None


@dataclass(frozen=True)
class Chord:
    """Several pitches sharing one duration, dynamic and articulation."""

    pitches: tuple[Pitch, ...]
    duration: Duration | None = None
    dynamic: str | None = None
    articulation: str | None = None


@dataclass(frozen=True)
class Rest:
    duration: Duration | None = None


@dataclass(frozen=True)
class Tie:
    """Joins the next note or chord to the previous one."""


@dataclass(frozen=True)
class Tuplet:
    """`p` events played in the time normally taken by `q`."""

    p: int
    q: int
    events: tuple[Event, ...]


@dataclass(frozen=True)
class Dynamic:
    """A standalone dynamic marking; changes velocity without sounding."""

    marking: str


Event = Union[Note, Chord, Rest, Tie, Tuplet, Dynamic]


# ---------- Structure ----------


@dataclass(frozen=True)
class Measure:
    events: tuple[Event, ...]


@dataclass(frozen=True)
class ContextChange:
    """An inline directive scoped to the rest of the part."""

    change: ContextPayload


MeasureBlock = Union[Measure, ContextChange]


@dataclass(frozen=True)
class Part:
    name: str
    instrument: str
    content: tuple[MeasureBlock, ...]


@dataclass(frozen=True)
class Score:
    headers: tuple[Header, ...]
    parts: tuple[Part, ...]
