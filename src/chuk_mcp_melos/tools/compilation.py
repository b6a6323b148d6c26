"""
Compilation tools - MCP tools for compiling Melos scores.

Tools for compiling source to MIDI, validating it, exporting the Score IR
and inspecting existing MIDI files. Every tool accepts either inline source
text or a path to a `.mel` file / score directory.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import TYPE_CHECKING, Any, get_args

from chuk_mcp_melos.compiler.pipeline import MelosCompiler
from chuk_mcp_melos.constants import IRExportFormat, SuccessMessages
from chuk_mcp_melos.errors import MelosError, ScoreSyntaxError
from chuk_mcp_melos.inspect import inspect_midi
from chuk_mcp_melos.instruments import InstrumentTable
from chuk_mcp_melos.loader import load_source

if TYPE_CHECKING:
    from chuk_mcp_server import ChukMCPServer

logger = logging.getLogger(__name__)


def _read_source(source: str | None, path: str | None) -> tuple[str, Path | None]:
    """Resolve the tool's source arguments to text."""
    if source is not None:
        return source, None
    if path is not None:
        loaded = load_source(path)
        return loaded.source, loaded.base_path
    raise ValueError("Provide either 'source' or 'path'")


def error_payload(error: Exception) -> dict[str, Any]:
    """JSON-ready description of a failed call."""
    payload: dict[str, Any] = {
        "status": "error",
        "error_type": type(error).__name__,
        "message": str(error),
    }
    if isinstance(error, ScoreSyntaxError):
        payload["line"] = error.line
        payload["column"] = error.column
        payload["expected"] = list(error.expected)
    return payload


def register_compilation_tools(
    mcp: ChukMCPServer,
    output_dir: Path,
    instruments: InstrumentTable,
) -> dict[str, Any]:
    """
    Register compilation tools with the MCP server.

    Args:
        mcp: The MCP server instance
        output_dir: Directory for output files
        instruments: Instrument table used to resolve programs

    Returns:
        Dictionary of registered tool functions
    """
    tools: dict[str, Any] = {}
    compiler = MelosCompiler(instruments)

    @mcp.tool  # type: ignore[arg-type]
    async def melos_compile(
        source: str | None = None,
        path: str | None = None,
        output_name: str | None = None,
    ) -> str:
        """
        Compile a Melos score to a MIDI file.

        Generates a type 1 Standard MIDI File with a Conductor track and
        one track per part, ready to open in any DAW.

        Args:
            source: Melos source text (alternative to path)
            path: Path to a .mel file or a directory of .mel files
            output_name: Optional output filename (without .mid extension)

        Returns:
            JSON string with compilation result and file path

        Example:
            melos_compile(source='Part: Piano Instrument: Piano { | C4 q D4 q E4 h | }')
            melos_compile(path="songs/waltz", output_name="waltz")
        """
        try:
            text, base_path = _read_source(source, path)
            result = compiler.compile(text)

            stem = output_name or (base_path.stem if base_path else "score")
            output_path = output_dir / f"{stem}.mid"
            output_dir.mkdir(parents=True, exist_ok=True)
            result.midi_file.save(str(output_path))

            return json.dumps(
                {
                    "status": "success",
                    "path": str(output_path),
                    "compilation": {
                        "title": result.score_ir.title,
                        "tracks": [t.name for t in result.score_ir.part_tracks],
                        "total_notes": result.note_count,
                        "total_ticks": result.score_ir.end_tick(),
                    },
                    "warnings": [str(w) for w in result.warnings],
                    "message": SuccessMessages.SCORE_COMPILED.format(
                        tracks=result.track_count,
                        notes=result.note_count,
                        path=output_path,
                    ),
                }
            )
        except (MelosError, ValueError) as e:
            return json.dumps(error_payload(e))
        except Exception as e:
            logger.exception("Failed to compile score")
            return json.dumps(error_payload(e))

    tools["melos_compile"] = melos_compile

    @mcp.tool  # type: ignore[arg-type]
    async def melos_validate(
        source: str | None = None,
        path: str | None = None,
    ) -> str:
        """
        Validate a Melos score without writing any file.

        Runs the parser and the walker. Syntax and lowering errors are
        reported with their location; measures whose length does not match
        the time signature are reported as warnings.

        Args:
            source: Melos source text (alternative to path)
            path: Path to a .mel file or a directory of .mel files

        Returns:
            JSON string with validation result

        Example:
            melos_validate(source='Part: Piano Instrument: Piano { | C4 q | }')
        """
        try:
            text, _ = _read_source(source, path)
            ir, warnings = compiler.lower(text)
            return json.dumps(
                {
                    "status": "success",
                    "valid": True,
                    "warnings": [str(w) for w in warnings],
                    "message": SuccessMessages.SCORE_VALID.format(
                        tracks=len(ir.part_tracks), notes=ir.note_count()
                    ),
                }
            )
        except (MelosError, ValueError) as e:
            payload = error_payload(e)
            payload["valid"] = False
            return json.dumps(payload)
        except Exception as e:
            logger.exception("Failed to validate score")
            return json.dumps(error_payload(e))

    tools["melos_validate"] = melos_validate

    @mcp.tool  # type: ignore[arg-type]
    async def melos_export_ir(
        source: str | None = None,
        path: str | None = None,
        format: str = "json",
        include_events: bool = True,
    ) -> str:
        """
        Compile a score to Score IR for inspection.

        Returns the intermediate representation before MIDI encoding:
        absolute-tick events per track. The IR is versioned (melos_ir/v1)
        and deterministic, so it is suitable for diffing and golden files.

        Args:
            source: Melos source text (alternative to path)
            path: Path to a .mel file or a directory of .mel files
            format: "json" (structured) or "yaml" (text)
            include_events: Whether to include individual events (default True)

        Returns:
            JSON string with the Score IR and a summary

        Example:
            melos_export_ir(path="song.mel")
            melos_export_ir(path="song.mel", format="yaml")
        """
        try:
            formats = get_args(IRExportFormat)
            if format not in formats:
                message = f"Unknown format: {format}. Use one of {', '.join(formats)}"
                return json.dumps({"status": "error", "message": message})

            text, _ = _read_source(source, path)
            ir, warnings = compiler.lower(text)

            response: dict[str, Any] = {
                "status": "success",
                "summary": ir.summary(),
                "warnings": [str(w) for w in warnings],
            }
            if format == "yaml":
                response["yaml"] = ir.to_yaml()
            else:
                ir_dict = ir.to_dict()
                if not include_events:
                    for track in ir_dict["tracks"]:
                        track["event_count"] = len(track["events"])
                        track["events"] = []
                response["score_ir"] = ir_dict

            return json.dumps(response)
        except (MelosError, ValueError) as e:
            return json.dumps(error_payload(e))
        except Exception as e:
            logger.exception("Failed to export IR")
            return json.dumps(error_payload(e))

    tools["melos_export_ir"] = melos_export_ir

    @mcp.tool  # type: ignore[arg-type]
    async def melos_inspect_midi(path: str) -> str:
        """
        Summarize an existing MIDI file.

        Reports format, resolution and per-track tempo, time signature,
        key signature and program events with their absolute ticks.

        Args:
            path: Path to a .mid file

        Returns:
            JSON string with the file summary

        Example:
            melos_inspect_midi(path="output/score.mid")
        """
        try:
            return json.dumps({"status": "success", "midi": inspect_midi(path)})
        except MelosError as e:
            return json.dumps(error_payload(e))
        except Exception as e:
            logger.exception("Failed to inspect MIDI")
            return json.dumps(error_payload(e))

    tools["melos_inspect_midi"] = melos_inspect_midi

    return tools
