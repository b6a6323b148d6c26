"""
Score IR - the intermediate representation between the syntax tree and MIDI.

This is the flat, absolute-time event model produced by the walker and
consumed by the MIDI codec (and, read-only, by playback or UI layers).
The IR is designed to be:
- Immutable: frozen dataclasses and tuples, never edited in place
- Deterministic: same source → same IR
- Serializable: JSON/YAML for inspection and golden-file testing

Schema version: melos_ir/v1
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Union

import yaml

from chuk_mcp_melos.constants import CONDUCTOR_TRACK_NAME, PPQ

# Current schema version
SCHEMA_VERSION = "melos_ir/v1"


@dataclass(frozen=True)
class IRNote:
    """A sounding note. Duration is in ticks."""

    pitch: int  # MIDI note number (0-127)
    velocity: int  # 0-127
    duration: int  # Ticks

    def __post_init__(self) -> None:
        """Validate MIDI ranges."""
        if not 0 <= self.pitch <= 127:
            raise ValueError(f"Pitch must be 0-127, got {self.pitch}")
        if not 0 <= self.velocity <= 127:
            raise ValueError(f"Velocity must be 0-127, got {self.velocity}")
        if self.duration < 0:
            raise ValueError(f"Duration must be >= 0, got {self.duration}")


@dataclass(frozen=True)
class IRTempo:
    """A tempo change in beats per minute."""

    bpm: int

    def __post_init__(self) -> None:
        if self.bpm <= 0:
            raise ValueError(f"Tempo must be positive, got {self.bpm}")


@dataclass(frozen=True)
class IRTimeSignature:
    """Time signature information."""

    numerator: int
    denominator: int


@dataclass(frozen=True)
class IRKeySignature:
    """Key signature as written, e.g. root 'G', scale 'Major'."""

    root: str
    scale: str


@dataclass(frozen=True)
class IRProgramChange:
    """Instrument selection for the track's channel."""

    program: int

    def __post_init__(self) -> None:
        if not 0 <= self.program <= 127:
            raise ValueError(f"Program must be 0-127, got {self.program}")


IREventKind = Union[IRNote, IRTempo, IRTimeSignature, IRKeySignature, IRProgramChange]

# Serialization tags for each event kind
_KIND_TAGS: dict[type, str] = {
    IRNote: "note",
    IRTempo: "tempo",
    IRTimeSignature: "time_signature",
    IRKeySignature: "key_signature",
    IRProgramChange: "program_change",
}
_TAG_KINDS: dict[str, type] = {tag: kind for kind, tag in _KIND_TAGS.items()}


@dataclass(frozen=True)
class IREvent:
    """An event at an absolute tick offset from the start of the piece."""

    time: int
    kind: IREventKind

    def __post_init__(self) -> None:
        if self.time < 0:
            raise ValueError(f"Time must be >= 0, got {self.time}")

    @property
    def is_note(self) -> bool:
        return isinstance(self.kind, IRNote)

    @property
    def end_time(self) -> int:
        """Tick at which the event stops sounding (its start for meta events)."""
        if isinstance(self.kind, IRNote):
            return self.time + self.kind.duration
        return self.time

    def shifted(self, offset: int) -> IREvent:
        """Return a copy moved later by `offset` ticks."""
        return IREvent(time=self.time + offset, kind=self.kind)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        d: dict[str, Any] = {"time": self.time, "type": _KIND_TAGS[type(self.kind)]}
        d.update(vars(self.kind))
        return d

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> IREvent:
        """Create from dictionary."""
        payload = {k: v for k, v in d.items() if k not in ("time", "type")}
        kind_cls = _TAG_KINDS.get(d["type"])
        if kind_cls is None:
            raise ValueError(f"Unknown IR event type: {d['type']}")
        return cls(time=d["time"], kind=kind_cls(**payload))


@dataclass(frozen=True)
class IRTrack:
    """One output track: the conductor track or one per distinct part name."""

    name: str
    channel: int  # MIDI channel 0-15
    events: tuple[IREvent, ...] = ()

    def __post_init__(self) -> None:
        if not 0 <= self.channel <= 15:
            raise ValueError(f"Channel must be 0-15, got {self.channel}")

    @property
    def notes(self) -> list[IREvent]:
        return [e for e in self.events if e.is_note]

    def end_tick(self) -> int:
        """Latest tick at which anything on this track ends."""
        return max((e.end_time for e in self.events), default=0)

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "channel": self.channel,
            "events": [e.to_dict() for e in self.events],
        }

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> IRTrack:
        return cls(
            name=d["name"],
            channel=d.get("channel", 0),
            events=tuple(IREvent.from_dict(e) for e in d.get("events", [])),
        )


@dataclass(frozen=True)
class IRScore:
    """
    The complete Score Intermediate Representation.

    Track 0 is always the Conductor track. Every other track corresponds
    to one distinct part name, in first-declaration order.
    """

    tracks: tuple[IRTrack, ...] = ()
    ppq: int = PPQ
    title: str = ""

    # Schema version for forward compatibility
    schema: str = field(default=SCHEMA_VERSION, compare=False)

    @property
    def conductor(self) -> IRTrack | None:
        if self.tracks and self.tracks[0].name == CONDUCTOR_TRACK_NAME:
            return self.tracks[0]
        return None

    @property
    def part_tracks(self) -> tuple[IRTrack, ...]:
        """All tracks except the conductor."""
        return self.tracks[1:] if self.conductor is not None else self.tracks

    def get_track(self, name: str) -> IRTrack | None:
        for track in self.tracks:
            if track.name == name:
                return track
        return None

    def note_count(self) -> int:
        """Total number of notes."""
        return sum(len(t.notes) for t in self.tracks)

    def end_tick(self) -> int:
        """Tick at which the last note ends."""
        return max((t.end_tick() for t in self.tracks), default=0)

    def to_dict(self) -> dict[str, Any]:
        """Convert to a dictionary for JSON/YAML serialization."""
        return {
            "schema": self.schema,
            "title": self.title,
            "ppq": self.ppq,
            "tracks": [t.to_dict() for t in self.tracks],
        }

    def to_json(self, indent: int = 2) -> str:
        """Serialize to JSON string."""
        return json.dumps(self.to_dict(), indent=indent)

    def to_yaml(self) -> str:
        """Serialize to YAML string."""
        return yaml.safe_dump(self.to_dict(), sort_keys=False, default_flow_style=False)

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> IRScore:
        """Create from dictionary."""
        return cls(
            tracks=tuple(IRTrack.from_dict(t) for t in d.get("tracks", [])),
            ppq=d.get("ppq", PPQ),
            title=d.get("title", ""),
            schema=d.get("schema", SCHEMA_VERSION),
        )

    @classmethod
    def from_json(cls, json_str: str) -> IRScore:
        """Deserialize from JSON string."""
        return cls.from_dict(json.loads(json_str))

    @classmethod
    def from_yaml(cls, yaml_str: str) -> IRScore:
        """Deserialize from YAML string."""
        return cls.from_dict(yaml.safe_load(yaml_str))

    def summary(self) -> dict[str, Any]:
        """Generate a summary for quick inspection."""
        notes = [e.kind for t in self.tracks for e in t.notes]
        return {
            "title": self.title,
            "ppq": self.ppq,
            "total_ticks": self.end_tick(),
            "total_notes": len(notes),
            "tracks": {
                t.name: {"channel": t.channel, "events": len(t.events), "notes": len(t.notes)}
                for t in self.part_tracks
            },
            "pitch_range": (
                min(n.pitch for n in notes) if notes else 0,
                max(n.pitch for n in notes) if notes else 0,
            ),
            "velocity_range": (
                min(n.velocity for n in notes) if notes else 0,
                max(n.velocity for n in notes) if notes else 0,
            ),
        }
