"""
Compilation pipeline - compiles Melos source to MIDI.

    source text → Score (parser) → IRScore (walker) → MidiFile (codec)

Each stage either returns the next stage's input or raises a MelosError;
measure length problems are collected as warnings and never stop the
pipeline. The Score IR is kept on the result so callers can inspect,
serialize or diff it.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path

from mido import MidiFile

from chuk_mcp_melos.compiler.midi import generate, to_bytes, write_midi
from chuk_mcp_melos.compiler.score_ir import IRScore
from chuk_mcp_melos.compiler.walker import ProgramLookup, Walker
from chuk_mcp_melos.errors import MeasureLengthMismatch
from chuk_mcp_melos.loader import load_source
from chuk_mcp_melos.syntax.parser import parse_text

logger = logging.getLogger(__name__)


@dataclass
class CompileResult:
    """Result of compiling a score."""

    midi_file: MidiFile
    score_ir: IRScore
    warnings: list[MeasureLengthMismatch] = field(default_factory=list)
    source_path: Path | None = None
    output_path: Path | None = None

    @property
    def track_count(self) -> int:
        """Part tracks, not counting the Conductor."""
        return len(self.score_ir.part_tracks)

    @property
    def note_count(self) -> int:
        return self.score_ir.note_count()

    def to_bytes(self) -> bytes:
        return to_bytes(self.midi_file)


class MelosCompiler:
    """
    Compiles Melos source to a MIDI file.

    The compiler orchestrates the full pipeline and holds only
    configuration; every call starts from fresh state.
    """

    def __init__(self, instruments: ProgramLookup | None = None):
        """
        Initialize the compiler.

        Args:
            instruments: Instrument lookup (General MIDI by default)
        """
        self.instruments = instruments

    def lower(self, source: str) -> tuple[IRScore, list[MeasureLengthMismatch]]:
        """
        Parse and lower source text without encoding.

        Returns:
            The Score IR and any measure length warnings
        """
        score = parse_text(source)
        walker = Walker(self.instruments)
        ir = walker.walk(score)
        return ir, list(walker.diagnostics)

    def compile(self, source: str) -> CompileResult:
        """
        Compile source text to MIDI via Score IR.

        Args:
            source: Melos source text

        Returns:
            CompileResult with MIDI file, Score IR and warnings
        """
        ir, warnings = self.lower(source)
        midi_file = generate(ir)
        logger.debug(f"Compiled {ir.note_count()} notes on {len(ir.tracks)} tracks")
        return CompileResult(midi_file=midi_file, score_ir=ir, warnings=warnings)

    def compile_path(
        self,
        path: Path | str,
        output_path: Path | str | None = None,
    ) -> CompileResult:
        """
        Compile a `.mel` file or score directory, optionally writing the MIDI file.

        Nothing is written unless every stage succeeds.
        """
        loaded = load_source(path)
        result = self.compile(loaded.source)
        result.source_path = loaded.base_path
        if output_path:
            result.output_path = write_midi(result.midi_file, output_path)
        return result


def compile_source(source: str, instruments: ProgramLookup | None = None) -> CompileResult:
    """
    Convenience function to compile source text.

    Args:
        source: Melos source text
        instruments: Optional instrument lookup

    Returns:
        CompileResult with MIDI file
    """
    return MelosCompiler(instruments).compile(source)


def compile_path(
    path: Path | str,
    output_path: Path | str | None = None,
    instruments: ProgramLookup | None = None,
) -> CompileResult:
    """
    Convenience function to compile a file or directory.

    Args:
        path: `.mel` file or score directory
        output_path: Optional path to save MIDI file
        instruments: Optional instrument lookup

    Returns:
        CompileResult with MIDI file
    """
    return MelosCompiler(instruments).compile_path(path, output_path)


def default_output_path(source_path: Path | str) -> Path:
    """`song.mel` → `song.mid`; a directory `song/` → `song.mid` beside it."""
    source_path = Path(source_path)
    if source_path.is_dir():
        return source_path.parent / f"{source_path.name}.mid"
    return source_path.with_suffix(".mid")
