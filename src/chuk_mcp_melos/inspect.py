"""
MIDI inspector - summarizes an existing Standard MIDI File.

Reports the header (format, resolution) and, per track, its duration in
ticks, event counts and the tempo / time signature / key signature / name
meta events with the absolute tick they occur at.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

from mido import MidiFile

from chuk_mcp_melos.errors import LoaderError

logger = logging.getLogger(__name__)


def inspect_midi(path: Path | str) -> dict[str, Any]:
    """
    Read a MIDI file and summarize it.

    Args:
        path: Path to a .mid file

    Returns:
        Dictionary with `format`, `ticks_per_beat` and `tracks`

    Raises:
        LoaderError: if the file is missing or not a valid MIDI file
    """
    path = Path(path)
    if not path.is_file():
        raise LoaderError(f"MIDI file not found: {path}", path)
    try:
        midi = MidiFile(str(path))
    except (OSError, EOFError, ValueError) as e:
        raise LoaderError(f"Failed to parse MIDI file: {path} ({e})", path) from e
    return summarize_midi(midi)


def summarize_midi(midi: MidiFile) -> dict[str, Any]:
    """Summarize an in-memory MidiFile."""
    return {
        "format": midi.type,
        "ticks_per_beat": midi.ticks_per_beat,
        "track_count": len(midi.tracks),
        "tracks": [_summarize_track(i, track) for i, track in enumerate(midi.tracks)],
    }


def _summarize_track(index: int, track) -> dict[str, Any]:
    absolute_time = 0
    note_ons = 0
    meta: list[dict[str, Any]] = []
    name = track.name or None

    for msg in track:
        absolute_time += msg.time
        if msg.type == "note_on" and msg.velocity > 0:
            note_ons += 1
        elif msg.type == "set_tempo":
            meta.append(
                {
                    "tick": absolute_time,
                    "type": "tempo",
                    "bpm": round(60_000_000 / msg.tempo, 2),
                    "mpq": msg.tempo,
                }
            )
        elif msg.type == "time_signature":
            meta.append(
                {
                    "tick": absolute_time,
                    "type": "time_signature",
                    "value": f"{msg.numerator}/{msg.denominator}",
                }
            )
        elif msg.type == "key_signature":
            meta.append({"tick": absolute_time, "type": "key_signature", "key": msg.key})
        elif msg.type == "program_change":
            meta.append(
                {
                    "tick": absolute_time,
                    "type": "program_change",
                    "channel": msg.channel,
                    "program": msg.program,
                }
            )

    return {
        "index": index,
        "name": name,
        "duration_ticks": absolute_time,
        "event_count": len(track),
        "note_on_count": note_ons,
        "meta": meta,
    }


def format_summary(summary: dict[str, Any]) -> str:
    """Render a summary as human-readable text for the terminal."""
    lines = [
        f"Format: {summary['format']}",
        f"Ticks per beat: {summary['ticks_per_beat']}",
        f"Tracks: {summary['track_count']}",
    ]
    for track in summary["tracks"]:
        lines.append("")
        header = f"Track {track['index']}"
        if track["name"]:
            header += f" ({track['name']})"
        lines.append(f"{header}:")
        for item in track["meta"]:
            tick = item["tick"]
            if item["type"] == "tempo":
                lines.append(f"  [@{tick}] Tempo: {item['bpm']:.2f} BPM ({item['mpq']} mpq)")
            elif item["type"] == "time_signature":
                lines.append(f"  [@{tick}] Time Signature: {item['value']}")
            elif item["type"] == "key_signature":
                lines.append(f"  [@{tick}] Key Signature: {item['key']}")
            elif item["type"] == "program_change":
                lines.append(f"  [@{tick}] Program: {item['program']} (channel {item['channel']})")
        lines.append(f"  Total Duration: {track['duration_ticks']} ticks")
        lines.append(f"  Total Events: {track['event_count']}")
        lines.append(f"  Note On Events: {track['note_on_count']}")
    return "\n".join(lines)
