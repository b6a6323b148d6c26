"""
Tests for the Melos parser.

Tests cover:
- Headers and the value-shape rule for header kinds
- Part headers with quoted and bare names
- Notes, chords, rests, tuplets, dynamics, ties and articulations
- Inline context changes
- Syntax errors with location
"""

import pytest

from chuk_mcp_melos.errors import ScoreSyntaxError
from chuk_mcp_melos.syntax import (
    Accidental,
    Base,
    BaseDuration,
    Chord,
    ContextChange,
    Dynamic,
    KeySignature,
    Measure,
    Note,
    Part,
    Pitch,
    Rest,
    Score,
    Swing,
    SwingSetting,
    Tempo,
    Tie,
    TimeSignature,
    Title,
    Tuplet,
    parse,
    parse_file,
)

QUARTER = Base(BaseDuration.QUARTER)


def only_events(source: str) -> tuple:
    """Events of the first measure of the first part."""
    score = parse(source)
    measure = score.parts[0].content[0]
    assert isinstance(measure, Measure)
    return measure.events


def piano(body: str) -> str:
    return f"Part: Piano Instrument: Piano {{\n{body}\n}}\n"


class TestSimpleScore:
    """Tests for the smallest complete scores."""

    def test_parse_simple_score(self) -> None:
        """Title header and one part with one note."""
        source = """
        Title: "Test Score"
        Part: Piano Instrument: Piano {
            | C4 q |
        }
        """
        expected = Score(
            headers=(Title("Test Score"),),
            parts=(
                Part(
                    name="Piano",
                    instrument="Piano",
                    content=(Measure((Note(Pitch("C", None, 4), QUARTER),)),),
                ),
            ),
        )
        assert parse(source) == expected

    def test_parse_advanced_features(self) -> None:
        """Headers, rests, inline context changes and a tuplet."""
        source = """
        Title: "Advanced"
        Tempo: 120
        Time: 4/4
        Part: Flute Instrument: Flute {
            | C5 q r q |
            Time: 3/4
            Key: G "Major"
            | Tuplet(3:2) { D5 q E5 q F#5 q } |
        }
        """
        score = parse(source)
        assert score.headers == (Title("Advanced"), Tempo(120), TimeSignature(4, 4))

        content = score.parts[0].content
        assert content[0] == Measure((Note(Pitch("C", None, 5), QUARTER), Rest(QUARTER)))
        assert content[1] == ContextChange(TimeSignature(3, 4))
        assert content[2] == ContextChange(KeySignature("G", "Major"))
        assert content[3] == Measure(
            (
                Tuplet(
                    p=3,
                    q=2,
                    events=(
                        Note(Pitch("D", None, 5), QUARTER),
                        Note(Pitch("E", None, 5), QUARTER),
                        Note(Pitch("F", Accidental.SHARP, 5), QUARTER),
                    ),
                ),
            )
        )

    def test_empty_part(self) -> None:
        """A part may have no measures."""
        score = parse("Part: Piano Instrument: Piano { }")
        assert score.parts[0].content == ()

    def test_parse_file(self, simple_mel_path) -> None:
        """Files are read as UTF-8 and parsed."""
        score = parse_file(simple_mel_path)
        assert score.headers[0] == Title("Test Score")
        assert len(score.parts[0].content[0].events) == 4

    def test_multiple_parts(self) -> None:
        """Parts keep declaration order."""
        score = parse(piano("| C4 w |") + "Part: Violin Instrument: Violin { | G4 w | }")
        assert [p.name for p in score.parts] == ["Piano", "Violin"]


class TestHeaders:
    """Tests for the value-shape rule."""

    def test_header_kinds(self) -> None:
        """Each value shape selects its header kind."""
        source = """
        Title: "Song"
        Tempo: 96
        Time: 6/8
        Key: Bb "Minor"
        Swing: e 0.66
        """ + piano("| C4 q |")
        assert parse(source).headers == (
            Title("Song"),
            Tempo(96),
            TimeSignature(6, 8),
            KeySignature("Bb", "Minor"),
            Swing(SwingSetting(BaseDuration.EIGHTH, 0.66)),
        )

    def test_shape_not_keyword_decides(self) -> None:
        """A quoted value is a Title whatever the keyword."""
        score = parse('Tempo: "Not a tempo"\n' + piano("| C4 q |"))
        assert score.headers == (Title("Not a tempo"),)

    def test_swing_off(self) -> None:
        """Swing: off parses to an empty swing setting."""
        score = parse("Swing: off\n" + piano("| C4 q |"))
        assert score.headers == (Swing(None),)

    def test_swing_context_changes(self) -> None:
        """Swing can be switched on and off inside a part."""
        score = parse(
            piano(
                """
                | C4 q |
                Swing: e 0.66
                | C4 e D4 e |
                Swing: off
                | C4 q |
                """
            )
        )
        content = score.parts[0].content
        assert content[1] == ContextChange(Swing(SwingSetting(BaseDuration.EIGHTH, 0.66)))
        assert content[3] == ContextChange(Swing(None))

    def test_inline_tempo(self) -> None:
        """Inline tempo change."""
        score = parse(piano("Tempo: 140\n| C4 q |"))
        assert score.parts[0].content[0] == ContextChange(Tempo(140))


class TestPartNames:
    """Tests for quoted and bare part and instrument names."""

    def test_quoted_names(self) -> None:
        """Quoted names keep their spaces."""
        score = parse('Part: "Lead Line" Instrument: "Alto Sax" { | C4 w | }')
        assert score.parts[0].name == "Lead Line"
        assert score.parts[0].instrument == "Alto Sax"

    def test_bare_part_name(self) -> None:
        """Bare names may contain spaces."""
        score = parse(
            'Part: Acoustic Guitar Instrument: "Acoustic Guitar (Steel)" { | C4 q | }'
        )
        assert score.parts[0].name == "Acoustic Guitar"
        assert score.parts[0].instrument == "Acoustic Guitar (Steel)"

    def test_bare_name_with_special_chars(self) -> None:
        """Bare names may contain punctuation."""
        score = parse("Part: First_Violin (Solo) Instrument: Violin { | C4 q | }")
        assert score.parts[0].name == "First_Violin (Solo)"
        assert score.parts[0].instrument == "Violin"

    def test_bare_name_stops_at_comment(self) -> None:
        """A trailing line comment is not part of a bare name."""
        source = """
        Part: Piano // the left hand
        Instrument: Piano // GM 0
        {
            | C4 q |
        }
        """
        part = parse(source).parts[0]
        assert part.name == "Piano"
        assert part.instrument == "Piano"

    def test_bare_instrument_before_brace(self) -> None:
        """A bare instrument ends before the opening brace."""
        score = parse("Part: Keys Instrument: Acoustic Grand Piano{ | C4 q | }")
        assert score.parts[0].instrument == "Acoustic Grand Piano"


class TestEvents:
    """Tests for measure contents."""

    def test_default_octave_and_duration(self) -> None:
        """Omitted octave is 4 and omitted duration is None."""
        (note,) = only_events(piano("| C |"))
        assert note == Note(Pitch("C", None, 4))

    def test_negative_octave(self) -> None:
        """Octave is a signed integer."""
        (note,) = only_events(piano("| C-1 q |"))
        assert note.pitch == Pitch("C", None, -1)

    def test_flat_accidental(self) -> None:
        """'b' after the step is a flat."""
        (note,) = only_events(piano("| Db4 q |"))
        assert note.pitch == Pitch("D", Accidental.FLAT, 4)

    def test_dotted_durations(self) -> None:
        """Dots are counted."""
        events = only_events(piano("| C4 q. D4 h.. |"))
        assert events[0].duration == Base(BaseDuration.QUARTER, 1)
        assert events[1].duration == Base(BaseDuration.HALF, 2)

    def test_note_suffixes(self) -> None:
        """Duration, dynamic and articulation in order."""
        (note,) = only_events(piano("| C#4 q. mf > |"))
        assert note == Note(
            pitch=Pitch("C", Accidental.SHARP, 4),
            duration=Base(BaseDuration.QUARTER, 1),
            dynamic="mf",
            articulation=">",
        )

    def test_dynamic_binds_to_preceding_note(self) -> None:
        """A dynamic right after a note is attached to it."""
        events = only_events(piano("| C4 q fff D4 q pp E4 q mf |"))
        assert [e.dynamic for e in events] == ["fff", "pp", "mf"]
        assert not any(isinstance(e, Dynamic) for e in events)

    def test_standalone_dynamic(self) -> None:
        """A dynamic at the start of a measure is its own event."""
        events = only_events(piano("| p C4 q |"))
        assert events[0] == Dynamic("p")
        assert events[1].dynamic is None

    def test_chord(self) -> None:
        """Bracketed pitches share one duration."""
        (chord,) = only_events(piano("| [C4 E4 G4]q |"))
        assert chord == Chord(
            pitches=(Pitch("C", None, 4), Pitch("E", None, 4), Pitch("G", None, 4)),
            duration=QUARTER,
        )

    def test_chord_with_dynamic(self) -> None:
        """Chords take dynamics like notes."""
        (chord,) = only_events(piano("| [C4 E4] h ff ^ |"))
        assert chord.dynamic == "ff"
        assert chord.articulation == "^"

    def test_rest_without_duration(self) -> None:
        """A bare rest has no duration."""
        assert only_events(piano("| r |")) == (Rest(None),)

    def test_nested_tuplet(self) -> None:
        """Tuplets can contain tuplets."""
        (outer,) = only_events(piano("| Tuplet(3:2) { C4 q Tuplet(3:2) { D4 e E4 e F4 e } } |"))
        assert outer.p == 3 and outer.q == 2
        inner = outer.events[1]
        assert isinstance(inner, Tuplet)
        assert len(inner.events) == 3

    def test_tie(self) -> None:
        """'~' is a tie event."""
        events = only_events(piano("| C4 h ~ C4 h |"))
        assert events[1] == Tie()

    def test_articulations(self) -> None:
        """All articulation marks are accepted."""
        events = only_events(piano("| C4 q > D4 q ^ E4 q ! F4 q _ |"))
        assert [e.articulation for e in events] == [">", "^", "!", "_"]

    def test_several_measures_per_line(self) -> None:
        """One line may hold several measures."""
        score = parse(piano("| C4 w | D4 w | E4 w |"))
        assert len(score.parts[0].content) == 3

    def test_comments_ignored(self) -> None:
        """Comments may appear anywhere whitespace can."""
        source = """
        // A score
        Title: "Commented" // trailing
        Part: Piano Instrument: Piano { // open
            | C4 q // inside a measure
              D4 q |
        } // done
        """
        events = parse(source).parts[0].content[0].events
        assert len(events) == 2


class TestSyntaxErrors:
    """Tests for parse failures."""

    def test_missing_part(self) -> None:
        """A score needs at least one part."""
        with pytest.raises(ScoreSyntaxError):
            parse('Title: "Nothing"')

    def test_error_location(self) -> None:
        """Errors carry line and column."""
        source = 'Title: "X"\nPart: Piano Instrument: Piano {\n    | C4 q H4 q |\n}\n'
        with pytest.raises(ScoreSyntaxError) as exc_info:
            parse(source)
        assert exc_info.value.line == 3
        assert exc_info.value.column is not None

    def test_unclosed_measure(self) -> None:
        """A measure must be closed with a bar line."""
        with pytest.raises(ScoreSyntaxError) as exc_info:
            parse(piano("| C4 q"))
        assert exc_info.value.expected

    def test_empty_measure_rejected(self) -> None:
        """A measure must contain at least one event."""
        with pytest.raises(ScoreSyntaxError):
            parse(piano("| |"))
