"""
Instrument model - General MIDI program definitions.

An instrument library is a YAML file listing programs with their canonical
General MIDI name and any short aliases writers use in `Instrument:` headers.
"""

from __future__ import annotations

from pydantic import BaseModel, Field, field_validator


def normalize_name(name: str) -> str:
    """Lookup key for an instrument name: case and spacing insensitive."""
    return " ".join(name.lower().split())


class Instrument(BaseModel):
    """A single General MIDI program."""

    program: int = Field(..., ge=0, le=127, description="GM program number (0-127)")
    name: str = Field(..., description="Canonical General MIDI name")
    family: str | None = Field(None, description="GM family (Piano, Strings, ...)")
    aliases: list[str] = Field(default_factory=list, description="Alternative names")

    model_config = {"frozen": True}

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        """Ensure the instrument has a usable name."""
        if not v.strip():
            raise ValueError("Instrument name must not be empty")
        return v.strip()

    def lookup_keys(self) -> list[str]:
        """All normalized names this instrument answers to."""
        return [normalize_name(self.name), *(normalize_name(a) for a in self.aliases)]


class InstrumentLibrary(BaseModel):
    """A named collection of instruments loaded from one YAML file."""

    schema_version: str = Field("instruments/v1", alias="schema")
    name: str = Field(..., description="Library name")
    description: str = Field("", description="What this library covers")
    instruments: list[Instrument] = Field(default_factory=list)

    model_config = {"populate_by_name": True}
