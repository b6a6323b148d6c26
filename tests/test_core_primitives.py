"""
Tests for core music primitives.

Tests cover:
- PitchClass, resolve_pitch, note_name (pitch.py)
- duration_to_ticks, scale_ticks, swing_pair, dynamic_to_velocity, Meter (rhythm.py)
"""

from fractions import Fraction

import pytest

from chuk_mcp_melos.core import (
    Meter,
    PitchClass,
    base_ticks,
    duration_to_ticks,
    dynamic_to_velocity,
    note_name,
    resolve_pitch,
    scale_ticks,
    swing_pair,
)
from chuk_mcp_melos.errors import LoweringError
from chuk_mcp_melos.syntax import (
    Accidental,
    Base,
    BaseDuration,
    Fraction as FractionDuration,
    Pitch,
    Subdivision,
)


class TestPitchClass:
    """Tests for PitchClass enum."""

    def test_pitch_values(self) -> None:
        """Pitch classes have correct values."""
        assert PitchClass.C == 0
        assert PitchClass.D == 2
        assert PitchClass.E == 4
        assert PitchClass.F == 5
        assert PitchClass.G == 7
        assert PitchClass.A == 9
        assert PitchClass.B == 11

    def test_to_midi(self) -> None:
        """Convert to MIDI note numbers."""
        assert PitchClass.C.to_midi(4) == 60
        assert PitchClass.A.to_midi(4) == 69
        assert PitchClass.C.to_midi(-1) == 0

    def test_spell(self) -> None:
        """Spell with sharps or flats."""
        assert PitchClass.As.spell() == "A#"
        assert PitchClass.As.spell(prefer_flats=True) == "Bb"


class TestResolvePitch:
    """Tests for written pitch → MIDI."""

    def test_middle_c(self) -> None:
        """C4 is 60."""
        assert resolve_pitch(Pitch("C", None, 4)) == 60

    def test_accidentals(self) -> None:
        """Sharps add one, flats subtract one."""
        assert resolve_pitch(Pitch("C", Accidental.SHARP, 4)) == 61
        assert resolve_pitch(Pitch("D", Accidental.FLAT, 4)) == 61
        assert resolve_pitch(Pitch("B", Accidental.SHARP, 3)) == 60

    def test_step_offsets(self) -> None:
        """Every step in octave 4."""
        midi = [resolve_pitch(Pitch(s, None, 4)) for s in "CDEFGAB"]
        assert midi == [60, 62, 64, 65, 67, 69, 71]

    def test_range_limits(self) -> None:
        """Both ends of the MIDI range resolve."""
        assert resolve_pitch(Pitch("C", None, -1)) == 0
        assert resolve_pitch(Pitch("G", None, 9)) == 127

    def test_out_of_range(self) -> None:
        """Outside 0-127 raises."""
        with pytest.raises(LoweringError, match="out of MIDI range"):
            resolve_pitch(Pitch("A", None, 9))
        with pytest.raises(LoweringError, match="out of MIDI range"):
            resolve_pitch(Pitch("C", Accidental.FLAT, -1))

    def test_invalid_step(self) -> None:
        """Steps outside A-G raise."""
        with pytest.raises(LoweringError, match="Invalid pitch step"):
            resolve_pitch(Pitch("H", None, 4))

    def test_note_name(self) -> None:
        """MIDI numbers render in scientific pitch notation."""
        assert note_name(60) == "C4"
        assert note_name(61) == "C#4"
        assert note_name(61, prefer_flats=True) == "Db4"
        assert note_name(0) == "C-1"


class TestDurations:
    """Tests for duration → ticks."""

    def test_base_values(self) -> None:
        """Whole through sixteenth at 480 PPQ."""
        ticks = [duration_to_ticks(Base(u)) for u in BaseDuration]
        assert ticks == [1920, 960, 480, 240, 120]

    def test_dots(self) -> None:
        """Each dot adds half of the previous increment."""
        assert duration_to_ticks(Base(BaseDuration.QUARTER, 1)) == 720
        assert duration_to_ticks(Base(BaseDuration.QUARTER, 2)) == 840
        assert duration_to_ticks(Base(BaseDuration.HALF, 1)) == 1440
        assert duration_to_ticks(Base(BaseDuration.WHOLE, 3)) == 3600

    def test_missing_is_quarter(self) -> None:
        """No duration means a quarter."""
        assert duration_to_ticks(None) == 480

    def test_other_ppq(self) -> None:
        """Resolution is a parameter."""
        assert duration_to_ticks(Base(BaseDuration.EIGHTH), ppq=96) == 48
        assert base_ticks(BaseDuration.WHOLE, ppq=96) == 384

    def test_unsupported(self) -> None:
        """Subdivision and fraction durations raise."""
        with pytest.raises(LoweringError, match="Unsupported duration"):
            duration_to_ticks(Subdivision(BaseDuration.QUARTER, 3))
        with pytest.raises(LoweringError, match="Unsupported duration"):
            duration_to_ticks(FractionDuration(1, 3))

    def test_scale_ticks(self) -> None:
        """Tuplet scaling truncates."""
        assert scale_ticks(480, Fraction(2, 3)) == 320
        assert scale_ticks(240, Fraction(4, 9)) == 106
        assert scale_ticks(480, Fraction(1)) == 480


class TestSwing:
    """Tests for swing splitting."""

    def test_pair_totals(self) -> None:
        """Any ratio keeps the pair total."""
        for ratio in (0.01, 0.33, 0.5, 0.66, 0.9):
            first, second = swing_pair(240, ratio)
            assert first + second == 480

    def test_rounds_half_up(self) -> None:
        """316.8 rounds to 317; an exact half rounds up."""
        assert swing_pair(240, 0.66) == (317, 163)
        assert swing_pair(1, 0.25) == (1, 1)

    def test_straight(self) -> None:
        """Ratio 0.5 is straight."""
        assert swing_pair(240, 0.5) == (240, 240)

    def test_invalid_ratio(self) -> None:
        """Ratio must be strictly inside (0, 1)."""
        for ratio in (0.0, 1.0, 1.5, -0.2):
            with pytest.raises(LoweringError):
                swing_pair(240, ratio)


class TestDynamics:
    """Tests for dynamic markings."""

    def test_table(self) -> None:
        """Markings map to fixed velocities."""
        assert dynamic_to_velocity("fff") == 127
        assert dynamic_to_velocity("ff") == 112
        assert dynamic_to_velocity("f") == 96
        assert dynamic_to_velocity("mf") == 80
        assert dynamic_to_velocity("mp") == 64
        assert dynamic_to_velocity("p") == 48
        assert dynamic_to_velocity("pp") == 32
        assert dynamic_to_velocity("ppp") == 16

    def test_unknown_is_mf(self) -> None:
        """Unknown markings fall back to 80."""
        assert dynamic_to_velocity("sfz") == 80


class TestMeter:
    """Tests for Meter."""

    def test_bar_ticks(self) -> None:
        """Expected measure lengths."""
        assert Meter(4, 4).bar_ticks() == 1920
        assert Meter(3, 4).bar_ticks() == 1440
        assert Meter(6, 8).bar_ticks() == 1440
        assert Meter(7, 16).bar_ticks() == 840

    def test_common_time(self) -> None:
        """Default meter is 4/4."""
        assert Meter.COMMON_TIME.as_tuple() == (4, 4)
        assert str(Meter.COMMON_TIME) == "4/4"

    def test_invalid(self) -> None:
        """Zero parts are rejected."""
        with pytest.raises(LoweringError):
            Meter(0, 4)
        with pytest.raises(LoweringError):
            Meter(4, 0)
