"""
Core music primitives - the arithmetic every later stage composes on:
- PitchClass / resolve_pitch: written pitch → MIDI note number
- duration_to_ticks / scale_ticks: written durations and tuplet scaling
- swing_pair: drift-free swing splitting
- dynamic_to_velocity: dynamic markings → MIDI velocity
- Meter: time signature arithmetic
"""

from chuk_mcp_melos.core.pitch import PitchClass, note_name, resolve_pitch
from chuk_mcp_melos.core.rhythm import (
    Meter,
    base_ticks,
    duration_to_ticks,
    dynamic_to_velocity,
    scale_ticks,
    swing_pair,
)

__all__ = [
    # Pitch
    "PitchClass",
    "note_name",
    "resolve_pitch",
    # Rhythm
    "Meter",
    "base_ticks",
    "duration_to_ticks",
    "dynamic_to_velocity",
    "scale_ticks",
    "swing_pair",
]
