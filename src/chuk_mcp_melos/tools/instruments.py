"""
Instrument tools - MCP tools for instrument discovery.

Tools for listing the General MIDI programs and checking how an
`Instrument:` name will resolve.
"""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING, Any

from chuk_mcp_melos.constants import DEFAULT_PROGRAM
from chuk_mcp_melos.instruments import InstrumentTable

if TYPE_CHECKING:
    from chuk_mcp_server import ChukMCPServer

logger = logging.getLogger(__name__)


def register_instrument_tools(
    mcp: ChukMCPServer,
    instruments: InstrumentTable,
) -> dict[str, Any]:
    """
    Register instrument tools with the MCP server.

    Args:
        mcp: The MCP server instance
        instruments: The instrument table

    Returns:
        Dictionary of registered tool functions
    """
    tools: dict[str, Any] = {}

    @mcp.tool  # type: ignore[arg-type]
    async def melos_list_instruments(family: str | None = None) -> str:
        """
        List available instruments.

        Returns General MIDI programs (plus any project overrides) with
        the aliases accepted after `Instrument:`.

        Args:
            family: Optional GM family filter (e.g. "Strings", "Brass")

        Returns:
            JSON string with list of instruments

        Example:
            melos_list_instruments()
            melos_list_instruments(family="Strings")
        """
        try:
            listed = instruments.list_instruments(family)
            return json.dumps(
                {
                    "status": "success",
                    "instruments": [
                        {
                            "program": i.program,
                            "name": i.name,
                            "family": i.family,
                            "aliases": i.aliases,
                        }
                        for i in listed
                    ],
                    "count": len(listed),
                }
            )
        except Exception as e:
            logger.exception("Failed to list instruments")
            return json.dumps({"status": "error", "message": str(e)})

    tools["melos_list_instruments"] = melos_list_instruments

    @mcp.tool  # type: ignore[arg-type]
    async def melos_resolve_instrument(name: str) -> str:
        """
        Show which program an instrument name compiles to.

        Unknown names fall back to Acoustic Grand Piano (program 0).

        Args:
            name: Instrument name as written in a part header

        Returns:
            JSON string with the resolved program

        Example:
            melos_resolve_instrument(name="Violin")
        """
        try:
            instrument = instruments.get(name)
            return json.dumps(
                {
                    "status": "success",
                    "name": name,
                    "resolved": instrument is not None,
                    "program": instrument.program if instrument else DEFAULT_PROGRAM,
                    "canonical_name": instrument.name if instrument else None,
                }
            )
        except Exception as e:
            logger.exception("Failed to resolve instrument")
            return json.dumps({"status": "error", "message": str(e)})

    tools["melos_resolve_instrument"] = melos_resolve_instrument

    return tools
