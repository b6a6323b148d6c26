"""
MIDI export - the end of the pipeline.

This module converts Score IR into a Standard MIDI File (type 1) using mido.
All operations are deterministic: same IR → same bytes.

Every IR track becomes one MIDI track. Events are expanded to absolute
messages, ordered, and then converted to delta times. At a shared tick,
note-offs are written first, then meta events, then program changes, then
note-ons, so a repeated pitch is released before it is struck again. A
zero-length note keeps its note-off after its own note-on.
"""

from __future__ import annotations

import io
import logging
from pathlib import Path

from mido import Message, MetaMessage, MidiFile, MidiTrack

from chuk_mcp_melos.compiler.score_ir import (
    IRKeySignature,
    IRNote,
    IRProgramChange,
    IRScore,
    IRTempo,
    IRTimeSignature,
    IRTrack,
)
from chuk_mcp_melos.constants import MIDI_CHANNELS, MetaOrder
from chuk_mcp_melos.errors import EncodeError

logger = logging.getLogger(__name__)

# Standard MIDI file type with simultaneous tracks
SMF_TYPE = 1

# Largest value a set_tempo meta can hold (24 bits, µs per quarter)
MAX_TEMPO_US = 0xFFFFFF

# Time signature fields fixed for every file
CLOCKS_PER_CLICK = 24
NOTATED_32NDS_PER_BEAT = 8

# Absolute tick, order class, message
_AbsMessage = tuple[int, MetaOrder, Message | MetaMessage]


def bpm_to_tempo(bpm: int) -> int:
    """Microseconds per quarter note for a tempo in BPM."""
    return 60_000_000 // bpm


def key_name(key: IRKeySignature) -> str | None:
    """
    mido key name for a key signature, or None if it has no MIDI encoding.

    Only major and minor scales can be written: 'G' 'Major' → 'G',
    'A' 'Minor' → 'Am'.
    """
    scale = key.scale.strip().lower()
    if scale == "major":
        return key.root
    if scale == "minor":
        return f"{key.root}m"
    return None


def generate(ir: IRScore) -> MidiFile:
    """
    Convert Score IR to a MidiFile.

    Args:
        ir: Lowered score

    Returns:
        A mido MidiFile ready to be saved

    Raises:
        EncodeError: if the IR cannot be represented in a MIDI file
    """
    midi = MidiFile(type=SMF_TYPE, ticks_per_beat=ir.ppq)
    for ir_track in ir.tracks:
        midi.tracks.append(_encode_track(ir_track))
    logger.debug(f"Encoded {len(midi.tracks)} tracks at {ir.ppq} PPQ")
    return midi


def _encode_track(ir_track: IRTrack) -> MidiTrack:
    if not 0 <= ir_track.channel < MIDI_CHANNELS:
        raise EncodeError(f"Channel must be 0-15, got {ir_track.channel}")

    messages: list[_AbsMessage] = []
    for event in ir_track.events:
        messages.extend(_expand(event.time, event.kind, ir_track.channel))

    # Stable: equal (tick, class) keep IR order
    messages.sort(key=lambda m: (m[0], m[1]))

    track = MidiTrack()
    current_time = 0
    for abs_time, _, msg in messages:
        track.append(msg.copy(time=abs_time - current_time))
        current_time = abs_time

    track.append(MetaMessage("end_of_track", time=0))
    return track


def _expand(time: int, kind, channel: int) -> list[_AbsMessage]:
    """Absolute messages for one IR event."""
    if isinstance(kind, IRNote):
        # A zero-length note is released right after its own note-on
        off_order = MetaOrder.NOTE_OFF if kind.duration > 0 else MetaOrder.NOTE_ON
        return [
            (
                time,
                MetaOrder.NOTE_ON,
                Message("note_on", channel=channel, note=kind.pitch, velocity=kind.velocity),
            ),
            (
                time + kind.duration,
                off_order,
                Message("note_off", channel=channel, note=kind.pitch, velocity=0),
            ),
        ]

    if isinstance(kind, IRProgramChange):
        return [
            (
                time,
                MetaOrder.PROGRAM,
                Message("program_change", channel=channel, program=kind.program),
            )
        ]

    if isinstance(kind, IRTempo):
        tempo = bpm_to_tempo(kind.bpm)
        if not 0 < tempo <= MAX_TEMPO_US:
            raise EncodeError(f"Tempo {kind.bpm} BPM is outside the MIDI tempo range")
        return [(time, MetaOrder.META, MetaMessage("set_tempo", tempo=tempo))]

    if isinstance(kind, IRTimeSignature):
        den = kind.denominator
        if den <= 0 or den & (den - 1):
            raise EncodeError(
                f"Time signature {kind.numerator}/{den}: denominator must be a power of two"
            )
        if not 0 < kind.numerator <= 255:
            raise EncodeError(f"Time signature numerator out of range: {kind.numerator}")
        return [
            (
                time,
                MetaOrder.META,
                MetaMessage(
                    "time_signature",
                    numerator=kind.numerator,
                    denominator=den,
                    clocks_per_click=CLOCKS_PER_CLICK,
                    notated_32nd_notes_per_beat=NOTATED_32NDS_PER_BEAT,
                ),
            )
        ]

    if isinstance(kind, IRKeySignature):
        name = key_name(kind)
        if name is not None:
            try:
                return [(time, MetaOrder.META, MetaMessage("key_signature", key=name))]
            except ValueError:
                pass
        logger.debug(f"Key signature {kind.root} {kind.scale} has no MIDI encoding, skipped")
        return []

    raise EncodeError(f"Unknown IR event: {kind!r}")


def to_bytes(midi: MidiFile) -> bytes:
    """Serialize a MidiFile to SMF bytes."""
    buffer = io.BytesIO()
    midi.save(file=buffer)
    return buffer.getvalue()


def write_midi(midi: MidiFile, path: Path | str) -> Path:
    """
    Write a MidiFile to disk, creating parent directories.

    Returns:
        The path written
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    midi.save(str(path))
    logger.info(f"Wrote MIDI file: {path}")
    return path
