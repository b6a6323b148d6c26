"""
Constants and enums for the Melos compiler.

No magic strings - use enums and Literal types for constrained values.
"""

from enum import Enum, IntEnum
from typing import Literal

# Ticks per quarter note - fixed for the whole pipeline
PPQ = 480

# MIDI has 16 channels, parts are assigned round-robin
MIDI_CHANNELS = 16

# Velocity before any dynamic marking is seen
DEFAULT_VELOCITY = 100

# Program used when an instrument name cannot be resolved (Acoustic Grand Piano)
DEFAULT_PROGRAM = 0

# Time signature injected when none is declared
DEFAULT_TIME_SIGNATURE: tuple[int, int] = (4, 4)

# Name of the synthetic track holding global meta events
CONDUCTOR_TRACK_NAME = "Conductor"

# Source file extension and the file loaded first from a score directory
SOURCE_EXTENSION = ".mel"
SCORE_ENTRY_FILE = "score.mel"


class DynamicMarking(str, Enum):
    """Dynamic markings understood by the walker."""

    PPP = "ppp"
    PP = "pp"
    P = "p"
    MP = "mp"
    MF = "mf"
    F = "f"
    FF = "ff"
    FFF = "fff"


class MetaOrder(IntEnum):
    """
    Ordering class for MIDI messages sharing one absolute tick.

    Lower values are written first.
    """

    NOTE_OFF = 0
    META = 1
    PROGRAM = 2
    NOTE_ON = 3


# Dynamic marking → MIDI velocity
DYNAMIC_VELOCITIES: dict[str, int] = {
    DynamicMarking.FFF.value: 127,
    DynamicMarking.FF.value: 112,
    DynamicMarking.F.value: 96,
    DynamicMarking.MF.value: 80,
    DynamicMarking.MP.value: 64,
    DynamicMarking.P.value: 48,
    DynamicMarking.PP.value: 32,
    DynamicMarking.PPP.value: 16,
}

# Output formats for IR export
IRExportFormat = Literal["json", "yaml"]


class ErrorMessages:
    """Standardized error messages."""

    UNSUPPORTED_DURATION = "Unsupported duration type: {duration}"
    INVALID_STEP = "Invalid pitch step: '{step}'"
    PITCH_OUT_OF_RANGE = "Pitch out of MIDI range: {pitch} resolves to {midi}"
    INVALID_SWING_RATIO = "Swing ratio must be between 0 and 1, got {ratio}"
    INVALID_TEMPO = "Tempo must be a positive BPM, got {bpm}"
    INVALID_TUPLET = "Tuplet ratio must be positive, got {p}:{q}"
    INVALID_TIME_SIGNATURE = "Invalid time signature: {numerator}/{denominator}"
    MEASURE_LENGTH = (
        "Measure {measure} in part '{part}' has incorrect duration. "
        "Expected {expected} ticks, got {actual}."
    )
    PATH_NOT_FOUND = "Path does not exist: {path}"
    NO_SOURCE_FILES = "No .mel files found in directory: {path}"


class SuccessMessages:
    """Standardized success messages."""

    SCORE_COMPILED = "Compiled {tracks} tracks, {notes} notes to {path}."
    SCORE_VALID = "Score is valid: {tracks} tracks, {notes} notes."
