"""
Grammar-driven parser for Melos source.

Two phases:
1. Lark matches the source against melos.lark (LALR, contextual lexer)
2. MelosTransformer maps each matched rule onto a syntax tree node

Parsing is all-or-nothing: any mismatch raises ScoreSyntaxError carrying the
line, column and expected tokens; no partial Score is ever returned.
"""

from __future__ import annotations

import logging
import re
from functools import lru_cache
from pathlib import Path

from lark import Lark, Token, Transformer, v_args
from lark.exceptions import UnexpectedInput, VisitError

from chuk_mcp_melos.errors import ScoreSyntaxError
from chuk_mcp_melos.syntax.nodes import (
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
)

logger = logging.getLogger(__name__)

GRAMMAR_PATH = Path(__file__).parent / "melos.lark"

RE_PITCH = re.compile(r"^([A-G])(#|b)?(-?\d+)?$")

# Readable names for anonymous terminals in error messages
_TERMINAL_NAMES: dict[str, str] = {
    "VBAR": "'|'",
    "LBRACE": "'{'",
    "RBRACE": "'}'",
    "LSQB": "'['",
    "RSQB": "']'",
    "LPAR": "'('",
    "RPAR": "')'",
    "COLON": "':'",
    "SLASH": "'/'",
    "TILDE": "'~'",
}


@lru_cache(maxsize=1)
def _get_lark() -> Lark:
    """Build the LALR parser once per process."""
    grammar = GRAMMAR_PATH.read_text(encoding="utf-8")
    return Lark(grammar, start="score", parser="lalr", maybe_placeholders=True)


def _unquote(token: Token) -> str:
    return str(token)[1:-1]


class MelosTransformer(Transformer):
    """Maps parse tree rules onto syntax tree nodes."""

    # ---------- Headers ----------

    def score(self, children: list) -> Score:
        headers = tuple(c for c in children if not isinstance(c, Part))
        parts = tuple(c for c in children if isinstance(c, Part))
        return Score(headers=headers, parts=parts)

    @v_args(inline=True)
    def header(self, value):
        return value

    @v_args(inline=True)
    def context_change(self, value) -> ContextChange:
        return ContextChange(value)

    @v_args(inline=True)
    def title(self, text: Token) -> Title:
        return Title(_unquote(text))

    @v_args(inline=True)
    def tempo(self, bpm: Token) -> Tempo:
        return Tempo(int(bpm))

    @v_args(inline=True)
    def time_signature(self, numerator: Token, denominator: Token) -> TimeSignature:
        return TimeSignature(int(numerator), int(denominator))

    @v_args(inline=True)
    def key_signature(self, root: Token, scale: Token) -> KeySignature:
        return KeySignature(str(root).strip(), _unquote(scale))

    @v_args(inline=True)
    def swing_on(self, unit: Token, ratio: Token) -> Swing:
        return Swing(SwingSetting(BaseDuration(str(unit)), float(ratio)))

    def swing_off(self, _children: list) -> Swing:
        return Swing(None)

    # ---------- Parts ----------

    def part(self, children: list) -> Part:
        name, instrument, *blocks = children
        content: list = []
        for block in blocks:
            # A measure line carries several measures
            if isinstance(block, list):
                content.extend(block)
            else:
                content.append(block)
        return Part(name=name, instrument=instrument, content=tuple(content))

    @v_args(inline=True)
    def part_name(self, token: Token) -> str:
        if token.type == "STRING":
            return _unquote(token)
        return str(token).strip()

    instrument_name = part_name

    def measure_line(self, children: list) -> list[Measure]:
        return list(children)

    def measure(self, children: list) -> Measure:
        return Measure(tuple(children))

    # ---------- Events ----------

    @v_args(inline=True)
    def note(self, pitch, duration, dynamic, articulation) -> Note:
        return Note(
            pitch=self._pitch(pitch),
            duration=duration,
            dynamic=str(dynamic) if dynamic is not None else None,
            articulation=str(articulation) if articulation is not None else None,
        )

    def chord(self, children: list) -> Chord:
        *pitches, duration, dynamic, articulation = children
        return Chord(
            pitches=tuple(self._pitch(p) for p in pitches),
            duration=duration,
            dynamic=str(dynamic) if dynamic is not None else None,
            articulation=str(articulation) if articulation is not None else None,
        )

    @v_args(inline=True)
    def rest(self, duration) -> Rest:
        return Rest(duration)

    def tuplet(self, children: list) -> Tuplet:
        p, q, *events = children
        return Tuplet(p=int(p), q=int(q), events=tuple(events))

    @v_args(inline=True)
    def dynamic(self, marking: Token) -> Dynamic:
        return Dynamic(str(marking))

    def tie(self, _children: list) -> Tie:
        return Tie()

    def duration(self, children: list) -> Base:
        unit, *dots = children
        return Base(BaseDuration(str(unit)), len(dots))

    @staticmethod
    def _pitch(token: Token) -> Pitch:
        m = RE_PITCH.match(str(token))
        if not m:
            raise ValueError(f"Malformed pitch: {token}")
        step, accidental, octave = m.groups()
        return Pitch(
            step=step,
            accidental=Accidental(accidental) if accidental else None,
            octave=int(octave) if octave is not None else 4,
        )


def _expected_names(error: UnexpectedInput) -> tuple[str, ...]:
    expected = getattr(error, "expected", None) or getattr(error, "allowed", None) or ()
    return tuple(sorted(_TERMINAL_NAMES.get(name, name) for name in expected))


def parse_text(text: str) -> Score:
    """
    Parse Melos source text into a Score.

    Args:
        text: Complete source (already concatenated if it came from several files)

    Returns:
        The syntax tree

    Raises:
        ScoreSyntaxError: if the source does not match the grammar
    """
    try:
        tree = _get_lark().parse(text)
    except UnexpectedInput as e:
        raise ScoreSyntaxError(
            "Unexpected input",
            line=e.line,
            column=e.column,
            expected=_expected_names(e),
            context=e.get_context(text).rstrip("\n"),
        ) from e

    try:
        score = MelosTransformer().transform(tree)
    except VisitError as e:
        raise ScoreSyntaxError(str(e.orig_exc)) from e.orig_exc

    logger.debug(f"Parsed {len(score.headers)} headers and {len(score.parts)} parts")
    return score


def parse_file(path: str | Path) -> Score:
    """Parse a Melos source file."""
    text = Path(path).read_text(encoding="utf-8")
    return parse_text(text)


# Short alias matching the pipeline vocabulary: parse → walk → generate
parse = parse_text
