#!/usr/bin/env python3
"""
Example: Compile a Melos score to MIDI.

This walks the whole pipeline step by step:
    source text → Score (parser) → Score IR (walker) → MIDI (codec)

Usage:
    python examples/compile_score.py
    # Creates: examples/output/waltz.mid and examples/output/waltz.ir.yaml
"""

from pathlib import Path

from chuk_mcp_melos.compiler import MelosCompiler
from chuk_mcp_melos.compiler.midi import generate, write_midi
from chuk_mcp_melos.compiler.score_ir import IREvent, IRNote, IRScore, IRTrack
from chuk_mcp_melos.core import note_name
from chuk_mcp_melos.inspect import format_summary, summarize_midi
from chuk_mcp_melos.loader import load_source


def main() -> None:
    """Compile the waltz, then write a transposed copy from edited IR."""
    examples_dir = Path(__file__).parent
    output_dir = examples_dir / "output"
    output_dir.mkdir(exist_ok=True)

    print("Melos Compile Demo")
    print("=" * 50)
    print()

    # Step 1: Load and compile
    loaded = load_source(examples_dir / "waltz.mel")
    compiler = MelosCompiler()
    result = compiler.compile(loaded.source)

    print(f"1. Compiled {loaded.base_path.name}")
    print(f"   Title: {result.score_ir.title}")
    print(f"   Parts: {[t.name for t in result.score_ir.part_tracks]}")
    print(f"   Notes: {result.note_count}")
    low, high = result.score_ir.summary()["pitch_range"]
    print(f"   Range: {note_name(low)} to {note_name(high)}")
    for warning in result.warnings:
        print(f"   Warning: {warning}")
    print()

    # Step 2: Save MIDI and the IR next to it
    midi_path = write_midi(result.midi_file, output_dir / "waltz.mid")
    ir_path = output_dir / "waltz.ir.yaml"
    ir_path.write_text(result.score_ir.to_yaml(), encoding="utf-8")
    print(f"2. Wrote {midi_path.name} and {ir_path.name}")
    print()

    # Step 3: Edit the IR - move the melody up an octave
    transposed = transpose_track(result.score_ir, "Melody", 12)
    up_path = write_midi(generate(transposed), output_dir / "waltz_octave_up.mid")
    print(f"3. Wrote {up_path.name} with the melody an octave higher")
    print()

    # Step 4: Inspect what was written
    print("4. MIDI summary")
    print(format_summary(summarize_midi(result.midi_file)))


def transpose_track(ir: IRScore, name: str, semitones: int) -> IRScore:
    """Return a copy of the IR with one track's notes shifted."""
    tracks = []
    for track in ir.tracks:
        if track.name == name:
            events = tuple(
                IREvent(
                    e.time,
                    IRNote(e.kind.pitch + semitones, e.kind.velocity, e.kind.duration),
                )
                if isinstance(e.kind, IRNote)
                else e
                for e in track.events
            )
            track = IRTrack(name=track.name, channel=track.channel, events=events)
        tracks.append(track)
    return IRScore(tracks=tuple(tracks), ppq=ir.ppq, title=ir.title)


if __name__ == "__main__":
    main()
