"""
Source loader - reads a score from a single file or a directory of files.

A directory score is every `.mel` file directly inside it, `score.mel`
first and the rest alphabetically, joined into one source text.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from chuk_mcp_melos.constants import SCORE_ENTRY_FILE, SOURCE_EXTENSION, ErrorMessages
from chuk_mcp_melos.errors import LoaderError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LoadedSource:
    """Source text and where it came from."""

    source: str
    base_path: Path  # The file for a single file, the directory otherwise
    files: tuple[Path, ...] = ()


def load_source(path: Path | str) -> LoadedSource:
    """
    Load Melos source from a file or directory.

    Args:
        path: A `.mel` file or a directory containing `.mel` files

    Returns:
        LoadedSource with the (concatenated) text

    Raises:
        LoaderError: if the path is missing, unreadable or holds no `.mel` files
    """
    path = Path(path)
    if path.is_file():
        return LoadedSource(source=_read(path), base_path=path, files=(path,))
    if path.is_dir():
        return _load_directory(path)
    raise LoaderError(ErrorMessages.PATH_NOT_FOUND.format(path=path), path)


def source_files(directory: Path) -> list[Path]:
    """The `.mel` files of a directory score in load order."""
    files = [p for p in directory.iterdir() if p.is_file() and p.suffix == SOURCE_EXTENSION]
    return sorted(files, key=lambda p: (p.name != SCORE_ENTRY_FILE, p.name))


def _load_directory(directory: Path) -> LoadedSource:
    files = source_files(directory)
    if not files:
        raise LoaderError(ErrorMessages.NO_SOURCE_FILES.format(path=directory), directory)

    chunks: list[str] = []
    for i, file_path in enumerate(files):
        content = _read(file_path)
        chunks.append(content)
        # Keep the last line of one file off the first line of the next
        if i < len(files) - 1 and not content.endswith("\n"):
            chunks.append("\n")

    logger.debug(f"Loaded {len(files)} source files from {directory}")
    return LoadedSource(source="".join(chunks), base_path=directory, files=tuple(files))


def _read(path: Path) -> str:
    try:
        return path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise LoaderError(f"Failed to read file: {path} ({e})", path) from e
