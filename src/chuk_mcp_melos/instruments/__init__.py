"""
Instrument lookup - General MIDI program tables loaded from YAML.
"""

from chuk_mcp_melos.instruments.loader import (
    InstrumentTable,
    default_table,
    get_instrument_program,
)

__all__ = [
    "InstrumentTable",
    "default_table",
    "get_instrument_program",
]
