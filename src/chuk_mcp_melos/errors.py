"""
Error taxonomy for the compilation pipeline.

Each pipeline stage either returns the next stage's input or raises one of
these. Measure length problems are not errors: they are reported as
MeasureLengthMismatch diagnostics and compilation continues.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from chuk_mcp_melos.constants import ErrorMessages


class MelosError(Exception):
    """Base class for all compiler errors."""


class ScoreSyntaxError(MelosError):
    """Source text does not match the grammar."""

    def __init__(
        self,
        message: str,
        line: int | None = None,
        column: int | None = None,
        expected: tuple[str, ...] = (),
        context: str = "",
    ):
        self.line = line
        self.column = column
        self.expected = expected
        self.context = context
        location = f" at line {line}, column {column}" if line is not None else ""
        detail = f"{message}{location}"
        if expected:
            detail += f" (expected one of: {', '.join(expected)})"
        if context:
            detail += f"\n{context}"
        super().__init__(detail)


class LoweringError(MelosError):
    """The syntax tree is semantically invalid."""


class EncodeError(MelosError):
    """The IR violates an invariant the codec relies on."""


class LoaderError(MelosError):
    """Source files could not be located or read."""

    def __init__(self, message: str, path: Path | str):
        self.path = Path(path)
        super().__init__(message)


@dataclass(frozen=True)
class MeasureLengthMismatch:
    """A measure whose events do not fill the active time signature."""

    part: str
    measure: int  # 1-indexed within the part block
    expected_ticks: int
    actual_ticks: int

    def __str__(self) -> str:
        return ErrorMessages.MEASURE_LENGTH.format(
            measure=self.measure,
            part=self.part,
            expected=self.expected_ticks,
            actual=self.actual_ticks,
        )
