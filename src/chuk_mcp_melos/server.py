#!/usr/bin/env python3
"""
Entry point for the CHUK Melos MCP Server.

This module provides the main entry point for the MCP server,
supporting multiple transport modes (stdio, http).
"""

import argparse
import asyncio
import logging

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def add_server_arguments(parser: argparse.ArgumentParser) -> None:
    """Transport options shared with `melos serve`."""
    parser.add_argument(
        "--transport",
        choices=["stdio", "http"],
        default="stdio",
        help="Transport mode (default: stdio)",
    )
    parser.add_argument(
        "--port",
        type=int,
        default=8000,
        help="HTTP port (only for http transport)",
    )


def run_server(transport: str, port: int) -> None:
    """Start the MCP server on the chosen transport."""
    # Import late: building the server registers tools and logs paths
    from chuk_mcp_melos.async_server import mcp

    if transport == "stdio":
        logger.info("Starting CHUK Melos MCP Server (stdio)")
        asyncio.run(mcp.run_stdio())
    else:
        logger.info(f"Starting CHUK Melos MCP Server (http:{port})")
        asyncio.run(mcp.run_http(port=port))


def main() -> None:
    """Main entry point with transport detection."""
    parser = argparse.ArgumentParser(description="CHUK Melos MCP Server")
    add_server_arguments(parser)
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging",
    )

    args = parser.parse_args()

    if args.debug:
        logging.getLogger().setLevel(logging.DEBUG)

    run_server(args.transport, args.port)


if __name__ == "__main__":
    main()
