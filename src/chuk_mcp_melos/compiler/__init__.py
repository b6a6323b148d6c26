"""
Compilation pipeline - transforms parsed scores to MIDI.

The pipeline:
    Score (syntax tree)
    → IRScore (walker: absolute ticks, one track per part)
    → MidiFile (codec: delta-time SMF type 1)
"""

# Import IR and MIDI first (no circular dependencies)
from chuk_mcp_melos.compiler.midi import generate, to_bytes, write_midi
from chuk_mcp_melos.compiler.score_ir import (
    SCHEMA_VERSION,
    IREvent,
    IRKeySignature,
    IRNote,
    IRProgramChange,
    IRScore,
    IRTempo,
    IRTimeSignature,
    IRTrack,
)
from chuk_mcp_melos.compiler.walker import Walker, walk


def __getattr__(name: str):
    """Lazy imports for the pipeline, which pulls in the loader and parser."""
    if name in ("MelosCompiler", "CompileResult", "compile_source", "compile_path"):
        from chuk_mcp_melos.compiler import pipeline

        return getattr(pipeline, name)
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


__all__ = [
    # Pipeline (lazy loaded)
    "CompileResult",
    "MelosCompiler",
    "compile_path",
    "compile_source",
    # IR
    "SCHEMA_VERSION",
    "IREvent",
    "IRKeySignature",
    "IRNote",
    "IRProgramChange",
    "IRScore",
    "IRTempo",
    "IRTimeSignature",
    "IRTrack",
    # Walker
    "Walker",
    "walk",
    # MIDI
    "generate",
    "to_bytes",
    "write_midi",
]
