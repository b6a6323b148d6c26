"""
MCP tool implementations.

Tools are organized by domain:
- compilation - compile, validate, IR export and MIDI inspection
- instruments - instrument discovery and name resolution
"""

from chuk_mcp_melos.tools.compilation import register_compilation_tools
from chuk_mcp_melos.tools.instruments import register_instrument_tools

__all__ = [
    "register_compilation_tools",
    "register_instrument_tools",
]
