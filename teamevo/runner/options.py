from __future__ import annotations

from typing import Any, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field, computed_field
from pydantic import ValidationError as PydanticValidationError

from teamevo.evolution.fitness import FitnessAlgorithm
from teamevo.exceptions import ValidationError
from teamevo.team.chromosome import TournamentMode


class GenerationOptions(BaseModel):
    """Caller-facing request for one team search.

    Accepts both snake_case and the camelCase keys used by JSON clients
    (``anchorPokemon``, ``populationSize`` ...). Anchor and exclusion entries
    may be species ids or display names.
    """

    mode: TournamentMode
    anchor_pokemon: list[str] = Field(default_factory=list, alias="anchorPokemon")
    excluded_pokemon: list[str] = Field(default_factory=list, alias="excludedPokemon")
    population_size: int = Field(default=150, gt=0, alias="populationSize")
    generations: int = Field(default=75, gt=0)
    algorithm: FitnessAlgorithm = FitnessAlgorithm.INDIVIDUAL
    seed: Optional[int] = None

    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    @property
    def team_size(self) -> int:
        return self.mode.team_size

    @classmethod
    def from_request(cls, payload: Mapping[str, Any]) -> "GenerationOptions":
        """Validate untrusted input, raising ``teamevo.exceptions.ValidationError``."""
        try:
            return cls.model_validate(dict(payload))
        except PydanticValidationError as exc:
            problems = "; ".join(
                f"{'.'.join(str(p) for p in err['loc']) or 'request'}: {err['msg']}"
                for err in exc.errors()
            )
            raise ValidationError(f"Invalid generation options: {problems}") from exc


class PoolConfig(BaseModel):
    """Which species are eligible for the non-anchor slots."""

    min_score: float = Field(default=80, ge=0, description="Minimum overall ranking score")
    max_count: int = Field(default=150, gt=0, description="Cap on ranked species considered")
    fallback_to_released: bool = Field(
        default=True,
        description="Use every released species when the rankings yield no candidates",
    )


class TeamResult(BaseModel):
    team: list[str]
    fitness: float
    anchors: list[int]
    generations_run: int = 0
    converged: bool = False
    stopped: bool = False
    repairs: dict[str, int] = Field(default_factory=dict)
    fitness_components: dict[str, float] = Field(default_factory=dict)

    @computed_field  # type: ignore[misc]
    @property
    def team_size(self) -> int:
        return len(self.team)
