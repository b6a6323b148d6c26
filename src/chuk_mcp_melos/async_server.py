#!/usr/bin/env python3
"""
Async Melos MCP Server using chuk-mcp-server

This server exposes the Melos notation compiler as MCP tools. Melos is a
plain-text score language: parts of pipe-delimited measures with notes,
chords, rests, tuplets and dynamics, compiled to a Standard MIDI File.

The server provides tools for:
- Compiling scores (inline text or .mel files) to MIDI files
- Validating scores and reporting measure length warnings
- Exporting the Score IR as JSON or YAML
- Listing and resolving General MIDI instruments
- Inspecting existing MIDI files
"""

import logging
from pathlib import Path

from chuk_mcp_server import ChukMCPServer

from chuk_mcp_melos.instruments import InstrumentTable
from chuk_mcp_melos.tools import register_compilation_tools, register_instrument_tools

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

# Create the MCP server instance
mcp = ChukMCPServer("chuk-mcp-melos")

# Paths - use standard project structure
BASE_PATH = Path.cwd()
INSTRUMENTS_DIR = BASE_PATH / "instruments"
OUTPUT_DIR = BASE_PATH / "output"
LIBRARY_PATH = Path(__file__).parent / "instruments" / "library"

# Create the instrument table (project files override the GM library)
instrument_table = InstrumentTable(
    library_path=LIBRARY_PATH,
    project_path=INSTRUMENTS_DIR,
)

# Register all tools
compilation_tools = register_compilation_tools(mcp, OUTPUT_DIR, instrument_table)
instrument_tools = register_instrument_tools(mcp, instrument_table)

# Export tool functions for direct access
melos_compile = compilation_tools["melos_compile"]
melos_validate = compilation_tools["melos_validate"]
melos_export_ir = compilation_tools["melos_export_ir"]
melos_inspect_midi = compilation_tools["melos_inspect_midi"]

melos_list_instruments = instrument_tools["melos_list_instruments"]
melos_resolve_instrument = instrument_tools["melos_resolve_instrument"]

logger.info("CHUK Melos MCP Server initialized")
logger.info(f"  Instrument library: {LIBRARY_PATH}")
logger.info(f"  Instruments dir: {INSTRUMENTS_DIR}")
logger.info(f"  Output dir: {OUTPUT_DIR}")
