"""
Melos syntax - the grammar, the syntax tree and the parser that joins them.
"""

from chuk_mcp_melos.syntax.nodes import (
    Accidental,
    Base,
    BaseDuration,
    Chord,
    ContextChange,
    Dynamic,
    Fraction,
    KeySignature,
    Measure,
    Note,
    Part,
    Pitch,
    Rest,
    Score,
    Subdivision,
    Swing,
    SwingSetting,
    Tempo,
    Tie,
    TimeSignature,
    Title,
    Tuplet,
)
from chuk_mcp_melos.syntax.parser import parse, parse_file, parse_text

__all__ = [
    # Parser
    "parse",
    "parse_file",
    "parse_text",
    # Nodes
    "Accidental",
    "Base",
    "BaseDuration",
    "Chord",
    "ContextChange",
    "Dynamic",
    "Fraction",
    "KeySignature",
    "Measure",
    "Note",
    "Part",
    "Pitch",
    "Rest",
    "Score",
    "Subdivision",
    "Swing",
    "SwingSetting",
    "Tempo",
    "Tie",
    "TimeSignature",
    "Title",
    "Tuplet",
]
