"""
Pitch primitives - written pitches to MIDI note numbers.

A written pitch is a step letter, an optional accidental and an octave
(C4 = middle C = 60). Results outside 0-127 are errors, never clamped.
"""

from __future__ import annotations

from enum import IntEnum

from chuk_mcp_melos.constants import ErrorMessages
from chuk_mcp_melos.errors import LoweringError
from chuk_mcp_melos.syntax.nodes import Accidental, Pitch

MIDI_MIN = 0
MIDI_MAX = 127

SEMITONES_PER_OCTAVE = 12

_ACCIDENTAL_SHIFT: dict[Accidental | None, int] = {
    None: 0,
    Accidental.SHARP: 1,
    Accidental.FLAT: -1,
}


class PitchClass(IntEnum):
    """
    Semitone position within an octave, C = 0 through B = 11.

    Black keys are named by their sharp spelling (Cs is C#, also Db).
    """

    C = 0
    Cs = 1
    D = 2
    Ds = 3
    E = 4
    F = 5
    Fs = 6
    G = 7
    Gs = 8
    A = 9
    As = 10
    B = 11

    @classmethod
    def of_step(cls, step: str) -> PitchClass:
        """Pitch class of a natural step letter A-G."""
        if len(step) != 1 or step not in "ABCDEFG":
            raise LoweringError(ErrorMessages.INVALID_STEP.format(step=step))
        return cls[step]

    def to_midi(self, octave: int = 4) -> int:
        return (octave + 1) * SEMITONES_PER_OCTAVE + self

    def spell(self, prefer_flats: bool = False) -> str:
        """Letter name, using a sharp or a flat for black keys."""
        if len(self.name) == 1:
            return self.name
        if prefer_flats:
            return f"{PitchClass(self + 1).name}b"
        return f"{self.name[0]}#"


def resolve_pitch(pitch: Pitch) -> int:
    """
    Resolve a written pitch to a MIDI note number.

    Raises:
        LoweringError: for a step outside A-G or a result outside 0-127
    """
    natural = PitchClass.of_step(pitch.step).to_midi(pitch.octave)
    midi = natural + _ACCIDENTAL_SHIFT[pitch.accidental]
    if not MIDI_MIN <= midi <= MIDI_MAX:
        raise LoweringError(ErrorMessages.PITCH_OUT_OF_RANGE.format(pitch=pitch, midi=midi))
    return midi


def note_name(midi_note: int, prefer_flats: bool = False) -> str:
    """60 → 'C4', 61 → 'C#4' (or 'Db4')."""
    octave, semitone = divmod(midi_note, SEMITONES_PER_OCTAVE)
    return f"{PitchClass(semitone).spell(prefer_flats)}{octave - 1}"
