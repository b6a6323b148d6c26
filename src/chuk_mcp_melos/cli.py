#!/usr/bin/env python3
"""
Command line interface for the Melos compiler.

    melos [--debug] compile song.mel [-o song.mid] [--ir song.ir.json]
    melos inspect song.mid [--json]
    melos serve [--transport stdio|http] [--port 8000]
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

from chuk_mcp_melos.compiler.pipeline import MelosCompiler, default_output_path
from chuk_mcp_melos.errors import MelosError
from chuk_mcp_melos.inspect import format_summary, inspect_midi
from chuk_mcp_melos.server import add_server_arguments, run_server

logger = logging.getLogger(__name__)


def _compile(args: argparse.Namespace) -> int:
    source_path = Path(args.input)
    output_path = Path(args.output) if args.output else default_output_path(source_path)

    result = MelosCompiler().compile_path(source_path, output_path)

    if args.ir:
        ir_path = Path(args.ir)
        if ir_path.suffix in (".yaml", ".yml"):
            ir_path.write_text(result.score_ir.to_yaml(), encoding="utf-8")
        else:
            ir_path.write_text(result.score_ir.to_json(), encoding="utf-8")
        logger.info(f"Wrote Score IR: {ir_path}")

    if args.debug:
        print("--- IR ---")
        print(json.dumps(result.score_ir.summary(), indent=2))

    print(f"Successfully compiled {source_path} to {output_path}")
    return 0


def _inspect(args: argparse.Namespace) -> int:
    summary = inspect_midi(args.input)
    if args.json:
        print(json.dumps(summary, indent=2))
    else:
        print(format_summary(summary))
    return 0


def _serve(args: argparse.Namespace) -> int:
    run_server(args.transport, args.port)
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="melos", description="Melos notation to MIDI compiler")
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    compile_parser = subparsers.add_parser(
        "compile", help="Compile a Melos file or directory to MIDI"
    )
    compile_parser.add_argument("input", help="Input .mel file or score directory")
    compile_parser.add_argument(
        "-o", "--output", help="Output MIDI file (default: input with .mid)"
    )
    compile_parser.add_argument("--ir", help="Also write the Score IR (.json or .yaml)")
    compile_parser.set_defaults(func=_compile)

    inspect_parser = subparsers.add_parser("inspect", help="Summarize a MIDI file")
    inspect_parser.add_argument("input", help="Input MIDI file")
    inspect_parser.add_argument("--json", action="store_true", help="Print the summary as JSON")
    inspect_parser.set_defaults(func=_inspect)

    serve_parser = subparsers.add_parser("serve", help="Run the MCP server")
    add_server_arguments(serve_parser)
    serve_parser.set_defaults(func=_serve)

    return parser


def main(argv: list[str] | None = None) -> int:
    """Main entry point; returns the process exit code."""
    args = build_parser().parse_args(argv)

    logging.basicConfig(level=logging.INFO)
    if args.debug:
        logging.getLogger().setLevel(logging.DEBUG)

    try:
        return args.func(args)
    except MelosError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
