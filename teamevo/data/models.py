from __future__ import annotations

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class BaseStats(BaseModel):
    atk: float = Field(ge=0)
    defense: float = Field(alias="def", ge=0)
    hp: float = Field(ge=0)

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    @property
    def bulk_ratio(self) -> float:
        """(def + hp) / atk; higher means tankier."""
        if self.atk <= 0:
            return float("inf")
        return (self.defense + self.hp) / self.atk


class Species(BaseModel):
    """One selectable species/form as stored in the game master."""

    species_id: str = Field(alias="speciesId", min_length=1)
    species_name: str = Field(alias="speciesName")
    dex: int = Field(ge=0)
    types: list[str] = Field(min_length=1, max_length=2)
    base_stats: BaseStats = Field(alias="baseStats")
    fast_moves: list[str] = Field(default_factory=list, alias="fastMoves")
    charged_moves: list[str] = Field(default_factory=list, alias="chargedMoves")
    tags: list[str] = Field(default_factory=list)
    released: bool = True

    model_config = ConfigDict(populate_by_name=True, frozen=True, extra="ignore")

    @field_validator("types", mode="before")
    @classmethod
    def _drop_placeholder_types(cls, value):
        if isinstance(value, (list, tuple)):
            cleaned = [str(t).lower() for t in value if t and str(t).lower() != "none"]
            return cleaned
        return value

    @property
    def is_shadow(self) -> bool:
        return "_shadow" in self.species_id


class Move(BaseModel):
    move_id: str = Field(alias="moveId", min_length=1)
    name: str = ""
    type: str
    power: float = 0.0
    energy: float = 0.0
    energy_gain: float = Field(default=0.0, alias="energyGain")
    turns: int = 1
    buffs: Optional[list[float]] = None
    buff_target: Optional[str] = Field(default=None, alias="buffTarget")

    model_config = ConfigDict(populate_by_name=True, frozen=True, extra="ignore")

    @field_validator("type", mode="before")
    @classmethod
    def _lower_type(cls, value):
        return str(value).lower()

    @property
    def damage_per_energy(self) -> float:
        return self.power / self.energy if self.energy > 0 else 0.0

    @property
    def lowers_opponent_stats(self) -> bool:
        return bool(
            self.buffs and self.buff_target == "opponent" and any(b < 0 for b in self.buffs)
        )

    @property
    def boosts_self(self) -> bool:
        return bool(
            self.buffs and self.buff_target == "self" and any(b > 0 for b in self.buffs)
        )

    @property
    def lowers_own_stats(self) -> bool:
        return bool(
            self.buffs and self.buff_target == "self" and any(b < 0 for b in self.buffs)
        )


class RankingRole(str, Enum):
    OVERALL = "overall"
    LEADS = "leads"
    SWITCHES = "switches"
    CLOSERS = "closers"


class RankingEntry(BaseModel):
    """A row of a role ranking table."""

    name: str = Field(alias="Pokemon")
    score: float = Field(default=0.0, alias="Score")
    dex: int = Field(default=0, alias="Dex")
    type1: str = Field(default="none", alias="Type 1")
    type2: str = Field(default="none", alias="Type 2")
    fast_move: str = Field(default="", alias="Fast Move")
    charged_move1: str = Field(default="", alias="Charged Move 1")
    charged_move2: str = Field(default="", alias="Charged Move 2")

    model_config = ConfigDict(populate_by_name=True, frozen=True, extra="ignore")

    @property
    def types(self) -> list[str]:
        return [t.lower() for t in (self.type1, self.type2) if t and t.lower() != "none"]


class RankingSummary(BaseModel):
    overall: float = 0.0
    leads: float = 0.0
    switches: float = 0.0
    closers: float = 0.0

    model_config = ConfigDict(frozen=True)

    @property
    def average(self) -> float:
        """Mean over the roles with a non-zero score (0 when none)."""
        scores = [s for s in (self.overall, self.leads, self.switches, self.closers) if s > 0]
        return sum(scores) / len(scores) if scores else 0.0


class Moveset(BaseModel):
    fast_move: Optional[str] = None
    charged_move1: Optional[str] = None
    charged_move2: Optional[str] = None

    model_config = ConfigDict(frozen=True)

    @property
    def charged_moves(self) -> list[str]:
        return [m for m in (self.charged_move1, self.charged_move2) if m]

    @property
    def is_empty(self) -> bool:
        return not (self.fast_move or self.charged_move1 or self.charged_move2)
