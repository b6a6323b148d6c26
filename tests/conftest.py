"""
Pytest configuration and shared fixtures.
"""

import tempfile
from pathlib import Path

import pytest

SIMPLE_SCORE = """\
Title: "Test Score"
Tempo: 120
Time: 4/4

Part: Piano Instrument: Piano {
    | C4 q D4 q E4 q F4 q |
}
"""


@pytest.fixture
def temp_dir() -> Path:
    """Create a temporary directory for test outputs."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def temp_midi_path(temp_dir: Path) -> Path:
    """Path for a temporary MIDI file."""
    return temp_dir / "test.mid"


@pytest.fixture
def simple_source() -> str:
    """A one-part, one-measure score."""
    return SIMPLE_SCORE


@pytest.fixture
def simple_mel_path(temp_dir: Path, simple_source: str) -> Path:
    """The simple score written to a .mel file."""
    path = temp_dir / "simple.mel"
    path.write_text(simple_source, encoding="utf-8")
    return path
