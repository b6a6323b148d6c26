"""
End-to-end tests: source text → Score → IR → MIDI.
"""

from pathlib import Path

import pytest
from mido import MidiFile

from chuk_mcp_melos.compiler import MelosCompiler, compile_path, compile_source
from chuk_mcp_melos.compiler.pipeline import default_output_path
from chuk_mcp_melos.errors import LoaderError, LoweringError, ScoreSyntaxError

TWO_PARTS = """
Title: "Duet"
Tempo: 90
Time: 3/4
Part: Violin Instrument: Violin {
    | G4 q A4 q B4 q |
}
Part: Cello Instrument: Cello {
    | G2 h. |
}
"""


class StubInstruments:
    """Every instrument is program 7."""

    def get_program(self, name: str) -> int | None:
        return 7


class TestCompileSource:
    """Tests for compiling source text."""

    def test_simple_score(self, simple_source: str) -> None:
        """Conductor plus one part."""
        result = compile_source(simple_source)

        assert result.track_count == 1
        assert result.note_count == 4
        assert result.warnings == []
        assert len(result.midi_file.tracks) == 2
        assert result.score_ir.title == "Test Score"

    def test_notes_in_midi(self, simple_source: str) -> None:
        """Encoded notes match the source."""
        result = compile_source(simple_source)
        piano = result.midi_file.tracks[1]
        notes = [m.note for m in piano if m.type == "note_on"]
        assert notes == [60, 62, 64, 65]

    def test_conductor_tempo(self) -> None:
        """Tempo and meter live on the Conductor track."""
        result = compile_source(TWO_PARTS)
        conductor = result.midi_file.tracks[0]
        tempo = next(m for m in conductor if m.type == "set_tempo")
        meter = next(m for m in conductor if m.type == "time_signature")
        assert tempo.tempo == 666_666
        assert (meter.numerator, meter.denominator) == (3, 4)

    def test_programs_and_channels(self) -> None:
        """Each part gets its own channel and program."""
        result = compile_source(TWO_PARTS)
        programs = [
            next(m for m in track if m.type == "program_change")
            for track in result.midi_file.tracks[1:]
        ]
        assert [(m.channel, m.program) for m in programs] == [(0, 40), (1, 42)]

    def test_custom_instruments(self) -> None:
        """The compiler uses the lookup it was given."""
        result = MelosCompiler(StubInstruments()).compile(TWO_PARTS)
        programs = [t.events[0].kind.program for t in result.score_ir.part_tracks]
        assert programs == [7, 7]

    def test_measure_warning(self) -> None:
        """Short measures are reported but still compiled."""
        result = compile_source("Part: Piano Instrument: Piano { | C4 q | }")
        assert len(result.warnings) == 1
        warning = result.warnings[0]
        assert (warning.part, warning.measure) == ("Piano", 1)
        assert (warning.expected_ticks, warning.actual_ticks) == (1920, 480)
        assert result.note_count == 1

    def test_deterministic_bytes(self, simple_source: str) -> None:
        """Same source produces identical bytes."""
        assert compile_source(simple_source).to_bytes() == compile_source(simple_source).to_bytes()

    def test_syntax_error(self) -> None:
        """Syntax errors propagate."""
        with pytest.raises(ScoreSyntaxError):
            compile_source("Part: Piano {")

    def test_lowering_error(self) -> None:
        """Lowering errors propagate."""
        with pytest.raises(LoweringError):
            compile_source("Part: Piano Instrument: Piano { | C10 w | }")

    def test_lower_only(self, simple_source: str) -> None:
        """lower() stops before encoding."""
        ir, warnings = MelosCompiler().lower(simple_source)
        assert ir.note_count() == 4
        assert warnings == []


class TestCompilePath:
    """Tests for compiling files and directories."""

    def test_file_to_midi(self, simple_mel_path: Path, temp_midi_path: Path) -> None:
        """Compiling a file writes a readable MIDI file."""
        result = compile_path(simple_mel_path, temp_midi_path)

        assert result.source_path == simple_mel_path
        assert result.output_path == temp_midi_path
        loaded = MidiFile(str(temp_midi_path))
        assert len(loaded.tracks) == 2
        assert loaded.ticks_per_beat == 480

    def test_no_output_path(self, simple_mel_path: Path) -> None:
        """Without an output path nothing is written."""
        result = compile_path(simple_mel_path)
        assert result.output_path is None
        assert not simple_mel_path.with_suffix(".mid").exists()

    def test_directory(self, temp_dir: Path) -> None:
        """A directory compiles as one score."""
        score_dir = temp_dir / "duet"
        score_dir.mkdir()
        (score_dir / "score.mel").write_text('Title: "Duet"\nTempo: 90\n')
        (score_dir / "violin.mel").write_text("Part: Violin Instrument: Violin { | G4 w | }\n")
        (score_dir / "cello.mel").write_text("Part: Cello Instrument: Cello { | G2 w | }\n")

        result = compile_path(score_dir)
        assert result.score_ir.title == "Duet"
        assert [t.name for t in result.score_ir.part_tracks] == ["Cello", "Violin"]

    def test_failure_writes_nothing(self, temp_dir: Path) -> None:
        """A failing compile leaves no output file."""
        source = temp_dir / "bad.mel"
        source.write_text("Part: Piano Instrument: Piano { | C4 q")
        output = temp_dir / "bad.mid"

        with pytest.raises(ScoreSyntaxError):
            compile_path(source, output)
        assert not output.exists()

    def test_missing_source(self, temp_dir: Path) -> None:
        """Missing sources raise LoaderError."""
        with pytest.raises(LoaderError):
            compile_path(temp_dir / "nope.mel")


class TestDefaultOutputPath:
    """Tests for output naming."""

    def test_file(self, simple_mel_path: Path) -> None:
        """song.mel → song.mid"""
        assert default_output_path(simple_mel_path) == simple_mel_path.with_suffix(".mid")

    def test_directory(self, temp_dir: Path) -> None:
        """song/ → song.mid beside the directory."""
        score_dir = temp_dir / "song"
        score_dir.mkdir()
        assert default_output_path(score_dir) == temp_dir / "song.mid"
