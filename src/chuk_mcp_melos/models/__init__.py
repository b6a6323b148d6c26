"""
Pydantic models for the compiler's configuration data.

This module provides:
- Instrument: a General MIDI program with aliases
- InstrumentLibrary: a YAML-backed collection of instruments
"""

from chuk_mcp_melos.models.instrument import Instrument, InstrumentLibrary, normalize_name

__all__ = [
    "Instrument",
    "InstrumentLibrary",
    "normalize_name",
]
