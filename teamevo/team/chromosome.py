from __future__ import annotations

from enum import Enum
from typing import Sequence

from pydantic import BaseModel, Field, field_validator, model_validator


class TournamentMode(str, Enum):
    """Tournament format; decides team size and the mode-specific bonus."""

    GBL = "GBL"
    PLAY_POKEMON = "PlayPokemon"

    @property
    def team_size(self) -> int:
        return 3 if self is TournamentMode.GBL else 6


class Chromosome(BaseModel):
    """A candidate team.

    ``anchors`` holds the indices of slots pinned to caller-chosen species for
    the whole run. ``fitness`` is recomputed every generation.
    """

    team: list[str] = Field(min_length=1)
    anchors: list[int] = Field(default_factory=list)
    fitness: float = 0.0

    @field_validator("anchors")
    @classmethod
    def _distinct_anchors(cls, value: list[int]) -> list[int]:
        if len(set(value)) != len(value):
            raise ValueError(f"anchor indices must be distinct, got {value}")
        if any(i < 0 for i in value):
            raise ValueError(f"anchor indices must be non-negative, got {value}")
        return value

    @model_validator(mode="after")
    def _anchors_in_range(self) -> "Chromosome":
        if any(i >= len(self.team) for i in self.anchors):
            raise ValueError(
                f"anchor indices {self.anchors} out of range for team of {len(self.team)}"
            )
        return self

    @property
    def team_size(self) -> int:
        return len(self.team)

    def is_anchor_slot(self, index: int) -> bool:
        return index in self.anchors

    def mutable_slots(self) -> list[int]:
        return [i for i in range(len(self.team)) if i not in self.anchors]

    def anchors_intact(self, anchor_species: Sequence[str]) -> bool:
        """True when every anchor slot still holds the species pinned to it."""
        if len(self.anchors) != len(anchor_species):
            return False
        return all(
            index < len(self.team) and self.team[index] == anchor_species[position]
            for position, index in enumerate(self.anchors)
        )

    def anchors_match(self, reference: "Chromosome") -> bool:
        return all(
            index < len(self.team) and self.team[index] == reference.team[index]
            for index in reference.anchors
        )

    def team_key(self) -> tuple[str, ...]:
        """Order-insensitive identity of the team."""
        return tuple(sorted(self.team))

    def clone(self) -> "Chromosome":
        """Deep copy; the copy never aliases this chromosome's lists."""
        return self.model_copy(update={"team": list(self.team), "anchors": list(self.anchors)})
