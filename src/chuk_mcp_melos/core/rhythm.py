"""
Rhythm primitives - tick arithmetic for durations, meters, swing and dynamics.

Uses Fraction for exact tuplet scaling: a 3:2 tuplet of quarters is
480 * 2/3 = 320 ticks with no floating point drift.
"""

from __future__ import annotations

from dataclasses import dataclass
from fractions import Fraction
from typing import ClassVar

from chuk_mcp_melos.constants import DEFAULT_TIME_SIGNATURE, DYNAMIC_VELOCITIES, PPQ, ErrorMessages
from chuk_mcp_melos.errors import LoweringError
from chuk_mcp_melos.syntax.nodes import Base, BaseDuration, Duration

# Length of each nominal value in quarter notes
BASE_LENGTHS: dict[BaseDuration, Fraction] = {
    BaseDuration.WHOLE: Fraction(4),
    BaseDuration.HALF: Fraction(2),
    BaseDuration.QUARTER: Fraction(1),
    BaseDuration.EIGHTH: Fraction(1, 2),
    BaseDuration.SIXTEENTH: Fraction(1, 4),
}

# Velocity for markings missing from the table (mf)
_FALLBACK_VELOCITY = DYNAMIC_VELOCITIES["mf"]

UNIT_SCALE = Fraction(1)


def base_ticks(unit: BaseDuration, ppq: int = PPQ) -> int:
    """Ticks for an undotted nominal value."""
    return int(BASE_LENGTHS[unit] * ppq)


def duration_to_ticks(duration: Duration | None, ppq: int = PPQ) -> int:
    """
    Resolve a written duration to ticks.

    Each dot adds half of the previous increment: a dotted quarter is
    480 + 240 = 720, double dotted 720 + 120 = 840. A missing duration is a
    quarter note.

    Raises:
        LoweringError: for Subdivision and Fraction durations, which are not lowered
    """
    if duration is None:
        return ppq

    if not isinstance(duration, Base):
        raise LoweringError(ErrorMessages.UNSUPPORTED_DURATION.format(duration=duration))

    ticks = base_ticks(duration.unit, ppq)
    add = ticks // 2
    for _ in range(duration.dots):
        ticks += add
        add //= 2
    return ticks


def scale_ticks(ticks: int, time_scale: Fraction) -> int:
    """Apply a tuplet scale, truncating to whole ticks."""
    return int(ticks * time_scale)


def swing_pair(unit_ticks: int, ratio: float) -> tuple[int, int]:
    """
    Split a pair of equal notes according to a swing ratio.

    The first note gets round(2 * unit * ratio) ticks and the second the
    remainder, so the pair always totals exactly 2 * unit.

    Raises:
        LoweringError: if ratio is not strictly between 0 and 1
    """
    if not 0 < ratio < 1:
        raise LoweringError(ErrorMessages.INVALID_SWING_RATIO.format(ratio=ratio))
    pair_ticks = 2 * unit_ticks
    # Round half up
    first = int(pair_ticks * ratio + 0.5)
    return first, pair_ticks - first


def dynamic_to_velocity(marking: str) -> int:
    """Map a dynamic marking (ppp..fff) to a MIDI velocity; unknown → mf."""
    return DYNAMIC_VELOCITIES.get(marking, _FALLBACK_VELOCITY)


@dataclass(frozen=True)
class Meter:
    """
    A time signature as numerator / denominator.

    Examples:
        Meter(4, 4) = common time, 1920 ticks per bar
        Meter(6, 8) = 1440 ticks per bar
    """

    numerator: int
    denominator: int

    COMMON_TIME: ClassVar[Meter]

    def __post_init__(self) -> None:
        if self.numerator <= 0 or self.denominator <= 0:
            raise LoweringError(
                ErrorMessages.INVALID_TIME_SIGNATURE.format(
                    numerator=self.numerator, denominator=self.denominator
                )
            )

    def bar_ticks(self, ppq: int = PPQ) -> int:
        """Expected tick length of one measure."""
        return self.numerator * ppq * 4 // self.denominator

    def as_tuple(self) -> tuple[int, int]:
        return (self.numerator, self.denominator)

    def __str__(self) -> str:
        return f"{self.numerator}/{self.denominator}"


Meter.COMMON_TIME = Meter(*DEFAULT_TIME_SIGNATURE)
