"""
Instrument table - resolves `Instrument:` names to MIDI programs.

Instrument libraries can come from:
1. Built-in library (shipped with package, General MIDI)
2. Project libraries (user's project/instruments directory)

Project entries override library entries that answer to the same name.
"""

from __future__ import annotations

import logging
from functools import lru_cache
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from chuk_mcp_melos.models.instrument import Instrument, InstrumentLibrary, normalize_name

logger = logging.getLogger(__name__)

LIBRARY_PATH = Path(__file__).parent / "library"


class InstrumentTable:
    """
    Maps instrument names to General MIDI program numbers.

    Lookups are case and whitespace insensitive and cover both canonical
    names and aliases. An unknown name resolves to None; the walker decides
    the fallback.
    """

    def __init__(
        self,
        library_path: Path | None = None,
        project_path: Path | None = None,
    ):
        """
        Initialize the instrument table.

        Args:
            library_path: Path to built-in instrument libraries
            project_path: Path to project instrument libraries
        """
        self.library_path = library_path or LIBRARY_PATH
        self.project_path = project_path
        self._index: dict[str, Instrument] | None = None

    def get(self, name: str) -> Instrument | None:
        """
        Get an instrument by name or alias.

        Args:
            name: Instrument name as written in the source

        Returns:
            Instrument if found, None otherwise
        """
        return self._get_index().get(normalize_name(name))

    def get_program(self, name: str) -> int | None:
        """Resolve a name to its program number, or None if unknown."""
        instrument = self.get(name)
        return instrument.program if instrument else None

    def list_instruments(self, family: str | None = None) -> list[Instrument]:
        """
        List distinct instruments ordered by program.

        Args:
            family: Optional GM family filter (case-insensitive)
        """
        unique: dict[tuple[int, str], Instrument] = {}
        for instrument in self._get_index().values():
            unique[(instrument.program, instrument.name)] = instrument

        instruments = sorted(unique.values(), key=lambda i: (i.program, i.name))
        if family:
            wanted = normalize_name(family)
            instruments = [
                i for i in instruments if i.family and normalize_name(i.family) == wanted
            ]
        return instruments

    def reload(self) -> None:
        """Drop the cached index so libraries are re-read on next lookup."""
        self._index = None

    def _get_index(self) -> dict[str, Instrument]:
        if self._index is None:
            index: dict[str, Instrument] = {}
            for path in self._library_files():
                library = self._load_library_file(path)
                if library is None:
                    continue
                for instrument in library.instruments:
                    for key in instrument.lookup_keys():
                        index[key] = instrument
            self._index = index
            logger.debug(f"Indexed {len(index)} instrument names")
        return self._index

    def _library_files(self) -> list[Path]:
        """Library files first, project files last so they win."""
        files: list[Path] = []
        if self.library_path.exists():
            files.extend(sorted(self.library_path.glob("*.yaml")))
        if self.project_path and self.project_path.exists():
            files.extend(sorted(self.project_path.glob("*.yaml")))
        return files

    def _load_library_file(self, path: Path) -> InstrumentLibrary | None:
        """Load an instrument library from a YAML file."""
        try:
            with open(path) as f:
                data: dict[str, Any] = yaml.safe_load(f) or {}
            return InstrumentLibrary.model_validate(data)
        except (OSError, yaml.YAMLError, ValidationError) as e:
            logger.warning(f"Skipping instrument library {path}: {e}")
            return None


@lru_cache(maxsize=1)
def default_table() -> InstrumentTable:
    """The shared General MIDI table."""
    return InstrumentTable()


def get_instrument_program(name: str) -> int | None:
    """Resolve an instrument name against the General MIDI table."""
    return default_table().get_program(name)
