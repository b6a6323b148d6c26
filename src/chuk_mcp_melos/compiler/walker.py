"""
Semantic walker - lowers a syntax tree into Score IR.

The walker turns relative, nested notation into flat absolute-tick events:
- Header Tempo / Time / Key become Conductor events at tick 0
- Each distinct part name gets a track and the next channel (round-robin)
- Repeated part names append to their track, shifted to its end
- Tuplets scale their contents by q/p, recursively
- Swing splits pairs of equal notes by the active ratio
- Dynamics set a velocity that persists until changed

All running state lives in a PartContext created per part block, so a
Walker can be reused and two walks never share state.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from fractions import Fraction
from typing import Protocol

from chuk_mcp_melos.compiler.score_ir import (
    IREvent,
    IRKeySignature,
    IRNote,
    IRProgramChange,
    IRScore,
    IRTempo,
    IRTimeSignature,
    IRTrack,
)
from chuk_mcp_melos.constants import (
    CONDUCTOR_TRACK_NAME,
    DEFAULT_PROGRAM,
    DEFAULT_VELOCITY,
    MIDI_CHANNELS,
    PPQ,
    ErrorMessages,
)
from chuk_mcp_melos.core.pitch import resolve_pitch
from chuk_mcp_melos.core.rhythm import (
    UNIT_SCALE,
    Meter,
    base_ticks,
    duration_to_ticks,
    dynamic_to_velocity,
    scale_ticks,
    swing_pair,
)
from chuk_mcp_melos.errors import LoweringError, MeasureLengthMismatch
from chuk_mcp_melos.syntax.nodes import (
    Chord,
    ContextChange,
    Dynamic,
    Event,
    KeySignature,
    Measure,
    Note,
    Part,
    Rest,
    Score,
    Swing,
    SwingSetting,
    Tempo,
    Tie,
    TimeSignature,
    Title,
    Tuplet,
)

logger = logging.getLogger(__name__)


class ProgramLookup(Protocol):
    """Anything that resolves an instrument name to a program number."""

    def get_program(self, name: str) -> int | None: ...


@dataclass
class PartContext:
    """
    Running state while lowering one part block.

    Created fresh for every `Part` in the score; nothing carries over
    between blocks except through the track's end tick.
    """

    name: str
    meter: Meter
    swing: SwingSetting | None = None
    current_time: int = 0
    velocity: int = DEFAULT_VELOCITY
    events: list[IREvent] = field(default_factory=list)
    measure_index: int = 0
    tuplet_depth: int = 0

    # Swing: tick length the first note of a pair received, or None
    swing_first: int | None = None

    # Ties: indices into `events` of the last note group and its pitches
    last_group: list[int] = field(default_factory=list)
    last_pitches: tuple[int, ...] = ()
    tie_pending: bool = False

    def emit(self, kind) -> None:
        """Append an event at the current position."""
        self.events.append(IREvent(time=self.current_time, kind=kind))

    def reset_swing(self) -> None:
        self.swing_first = None


@dataclass
class _TrackSlot:
    index: int
    end_time: int


class Walker:
    """
    Lowers a Score to IR.

    Measure length problems do not stop lowering; each one is logged and
    collected in `diagnostics` for the most recent walk.
    """

    def __init__(self, instruments: ProgramLookup | None = None, ppq: int = PPQ):
        """
        Initialize the walker.

        Args:
            instruments: Instrument name → program lookup (General MIDI by default)
            ppq: Ticks per quarter note
        """
        if instruments is None:
            from chuk_mcp_melos.instruments import default_table

            instruments = default_table()
        self.instruments = instruments
        self.ppq = ppq
        self.diagnostics: list[MeasureLengthMismatch] = []

    def walk(self, score: Score) -> IRScore:
        """
        Lower a whole score.

        Args:
            score: Parsed syntax tree

        Returns:
            IRScore whose first track is the Conductor

        Raises:
            LoweringError: on invalid pitches, durations, tuplets, tempos or
                swing ratios
        """
        self.diagnostics = []

        title = ""
        meter = Meter.COMMON_TIME
        swing: SwingSetting | None = None
        conductor: list[IREvent] = []
        has_time_signature = False

        for header in score.headers:
            if isinstance(header, Title):
                title = header.text
            elif isinstance(header, Tempo):
                conductor.append(IREvent(0, _checked_tempo(header.bpm)))
            elif isinstance(header, TimeSignature):
                meter = Meter(header.numerator, header.denominator)
                has_time_signature = True
                conductor.append(IREvent(0, IRTimeSignature(*meter.as_tuple())))
            elif isinstance(header, KeySignature):
                conductor.append(IREvent(0, IRKeySignature(header.root, header.scale)))
            elif isinstance(header, Swing):
                swing = _checked_swing(header.setting)

        if not has_time_signature:
            conductor.append(IREvent(0, IRTimeSignature(*Meter.COMMON_TIME.as_tuple())))

        # Part tracks, indexed by name in first-declaration order
        tracks: list[IRTrack] = []
        slots: dict[str, _TrackSlot] = {}
        next_channel = 0

        for part in score.parts:
            slot = slots.get(part.name)
            if slot is None:
                channel = next_channel
                next_channel = (next_channel + 1) % MIDI_CHANNELS
                events, end_time = self._walk_part(part, meter, swing)
                tracks.append(IRTrack(name=part.name, channel=channel, events=tuple(events)))
                slots[part.name] = _TrackSlot(index=len(tracks) - 1, end_time=end_time)
                logger.debug(f"Part '{part.name}' → channel {channel}")
            else:
                existing = tracks[slot.index]
                events, end_time = self._walk_part(part, meter, swing)
                shifted = tuple(e.shifted(slot.end_time) for e in events)
                tracks[slot.index] = IRTrack(
                    name=existing.name,
                    channel=existing.channel,
                    events=existing.events + shifted,
                )
                logger.debug(f"Part '{part.name}' merged at tick {slot.end_time}")
                slot.end_time += end_time

        conductor_track = IRTrack(
            name=CONDUCTOR_TRACK_NAME,
            channel=0,
            events=tuple(_unique(sorted(conductor, key=lambda e: e.time))),
        )
        return IRScore(tracks=(conductor_track, *tracks), ppq=self.ppq, title=title)

    # ---------- Parts ----------

    def _walk_part(
        self,
        part: Part,
        meter: Meter,
        swing: SwingSetting | None,
    ) -> tuple[list[IREvent], int]:
        """Lower one part block. Returns its events and its end tick."""
        ctx = PartContext(name=part.name, meter=meter, swing=swing)

        program = self.instruments.get_program(part.instrument)
        if program is None:
            logger.debug(f"Unknown instrument '{part.instrument}', using program {DEFAULT_PROGRAM}")
            program = DEFAULT_PROGRAM
        ctx.emit(IRProgramChange(program))
        ctx.emit(IRTimeSignature(*meter.as_tuple()))

        for block in part.content:
            if isinstance(block, Measure):
                ctx.measure_index += 1
                self._check_measure(ctx, block)
                for event in block.events:
                    self._process_event(ctx, event, UNIT_SCALE)
            elif isinstance(block, ContextChange):
                self._apply_context_change(ctx, block)

        return _collapse_initial_time_signatures(_dedup_adjacent(ctx.events)), ctx.current_time

    def _apply_context_change(self, ctx: PartContext, block: ContextChange) -> None:
        change = block.change
        if isinstance(change, TimeSignature):
            ctx.meter = Meter(change.numerator, change.denominator)
            ctx.emit(IRTimeSignature(*ctx.meter.as_tuple()))
        elif isinstance(change, Tempo):
            ctx.emit(_checked_tempo(change.bpm))
        elif isinstance(change, KeySignature):
            ctx.emit(IRKeySignature(change.root, change.scale))
        elif isinstance(change, Swing):
            ctx.swing = _checked_swing(change.setting)
            ctx.reset_swing()

    def _check_measure(self, ctx: PartContext, measure: Measure) -> None:
        expected = ctx.meter.bar_ticks(self.ppq)
        actual = sum(self._nominal_ticks(e) for e in measure.events)
        if actual != expected:
            mismatch = MeasureLengthMismatch(
                part=ctx.name,
                measure=ctx.measure_index,
                expected_ticks=expected,
                actual_ticks=actual,
            )
            logger.warning(str(mismatch))
            self.diagnostics.append(mismatch)

    def _nominal_ticks(self, event: Event) -> int:
        """Written length of an event, ignoring swing."""
        if isinstance(event, (Note, Chord, Rest)):
            return duration_to_ticks(event.duration, self.ppq)
        if isinstance(event, Tuplet):
            _check_tuplet(event)
            content = sum(self._nominal_ticks(e) for e in event.events)
            return content * event.q // event.p
        return 0

    # ---------- Events ----------

    def _process_event(self, ctx: PartContext, event: Event, time_scale: Fraction) -> None:
        if isinstance(event, Dynamic):
            ctx.velocity = dynamic_to_velocity(event.marking)
        elif isinstance(event, Tie):
            ctx.tie_pending = True
        elif isinstance(event, Tuplet):
            _check_tuplet(event)
            ctx.reset_swing()
            scale = time_scale * Fraction(event.q, event.p)
            ctx.tuplet_depth += 1
            for sub_event in event.events:
                self._process_event(ctx, sub_event, scale)
            ctx.tuplet_depth -= 1
        elif isinstance(event, Rest):
            ctx.current_time += self._event_ticks(ctx, event, time_scale)
            ctx.tie_pending = False
        elif isinstance(event, Note):
            self._sound(ctx, (event.pitch,), event, time_scale)
        elif isinstance(event, Chord):
            self._sound(ctx, event.pitches, event, time_scale)

    def _sound(self, ctx: PartContext, pitches, event: Note | Chord, time_scale: Fraction) -> None:
        """Emit a note group sharing one start, duration and velocity."""
        if event.dynamic is not None:
            ctx.velocity = dynamic_to_velocity(event.dynamic)

        midi_pitches = tuple(resolve_pitch(p) for p in pitches)
        ticks = self._event_ticks(ctx, event, time_scale)

        if ctx.tie_pending and self._extend_tied(ctx, midi_pitches, ticks):
            ctx.tie_pending = False
            ctx.current_time += ticks
            return

        ctx.tie_pending = False
        ctx.last_group = []
        for midi_pitch in midi_pitches:
            ctx.last_group.append(len(ctx.events))
            ctx.emit(IRNote(pitch=midi_pitch, velocity=ctx.velocity, duration=ticks))
        ctx.last_pitches = midi_pitches
        ctx.current_time += ticks

    def _extend_tied(self, ctx: PartContext, pitches: tuple[int, ...], ticks: int) -> bool:
        """Lengthen the previous note group if it matches and ends here."""
        if not ctx.last_group or sorted(pitches) != sorted(ctx.last_pitches):
            return False
        previous = [ctx.events[i] for i in ctx.last_group]
        if any(e.end_time != ctx.current_time for e in previous):
            return False
        for i, e in zip(ctx.last_group, previous):
            note = e.kind
            extended = IRNote(pitch=note.pitch, velocity=note.velocity, duration=note.duration + ticks)
            ctx.events[i] = IREvent(time=e.time, kind=extended)
        return True

    def _event_ticks(
        self, ctx: PartContext, event: Note | Chord | Rest, time_scale: Fraction
    ) -> int:
        """Sounding length of a note, chord or rest after tuplet scale and swing."""
        nominal = duration_to_ticks(event.duration, self.ppq)

        if ctx.swing is None or ctx.tuplet_depth:
            return scale_ticks(nominal, time_scale)

        unit_ticks = base_ticks(ctx.swing.unit, self.ppq)
        if nominal != unit_ticks:
            ctx.reset_swing()
            return nominal

        first, second = swing_pair(unit_ticks, ctx.swing.ratio)
        if ctx.swing_first is None:
            ctx.swing_first = first
            return first
        ctx.reset_swing()
        return second


def walk(score: Score, instruments: ProgramLookup | None = None) -> IRScore:
    """
    Lower a syntax tree to Score IR.

    Args:
        score: Parsed score
        instruments: Optional instrument lookup (General MIDI by default)

    Returns:
        IRScore
    """
    return Walker(instruments).walk(score)


# ---------- Helpers ----------


def _checked_swing(setting: SwingSetting | None) -> SwingSetting | None:
    if setting is not None and not 0 < setting.ratio < 1:
        raise LoweringError(ErrorMessages.INVALID_SWING_RATIO.format(ratio=setting.ratio))
    return setting


def _checked_tempo(bpm: int) -> IRTempo:
    if bpm <= 0:
        raise LoweringError(ErrorMessages.INVALID_TEMPO.format(bpm=bpm))
    return IRTempo(bpm)


def _check_tuplet(tuplet: Tuplet) -> None:
    if tuplet.p <= 0 or tuplet.q <= 0:
        raise LoweringError(ErrorMessages.INVALID_TUPLET.format(p=tuplet.p, q=tuplet.q))


def _unique(events: list[IREvent]) -> list[IREvent]:
    """Drop exact duplicates, keeping first occurrences in order."""
    seen: set[IREvent] = set()
    result = []
    for event in events:
        if event not in seen:
            seen.add(event)
            result.append(event)
    return result


def _dedup_adjacent(events: list[IREvent]) -> list[IREvent]:
    """Drop events identical to the one right before them."""
    result: list[IREvent] = []
    for event in events:
        if not result or result[-1] != event:
            result.append(event)
    return result


def _collapse_initial_time_signatures(events: list[IREvent]) -> list[IREvent]:
    """Keep only the last of several time signatures stacked at tick 0."""
    at_zero = [
        i
        for i, e in enumerate(events)
        if e.time == 0 and isinstance(e.kind, IRTimeSignature)
    ]
    if len(at_zero) < 2:
        return events
    dropped = set(at_zero[:-1])
    return [e for i, e in enumerate(events) if i not in dropped]
