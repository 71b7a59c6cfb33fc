from __future__ import annotations

from enum import Enum
from typing import Optional, Sequence

from pydantic import BaseModel, Field, computed_field

from teamevo.data.species import SpeciesRepository
from teamevo.team.chromosome import Chromosome


class ValidationFailureReason(str, Enum):
    """Specific reasons why a chromosome failed validation."""

    WRONG_SIZE = "wrong_size"
    DUPLICATE_BASE_SPECIES = "duplicate_base_species"
    ANCHOR_CORRUPTED = "anchor_corrupted"
    ANCHOR_OUT_OF_RANGE = "anchor_out_of_range"


class ChromosomeValidationResult(BaseModel):
    """Detailed outcome of checking a chromosome against the team invariants."""

    is_valid: bool = Field(description="Whether the chromosome passed validation")
    team: list[str] = Field(default_factory=list, description="Team that was checked")
    reason: Optional[ValidationFailureReason] = Field(
        default=None, description="Specific reason for validation failure"
    )
    slot: Optional[int] = Field(
        default=None, description="Offending slot index, when there is one"
    )
    detailed_message: Optional[str] = Field(
        default=None,
        description="Human-readable explanation of validation result",
        repr=False,
    )

    @computed_field  # type: ignore[misc]
    @property
    def summary(self) -> str:
        if self.is_valid:
            return "Chromosome passes validation"
        return f"Chromosome invalid: {self.reason.value if self.reason else 'unknown'}"

    @classmethod
    def success(cls, team: Sequence[str]) -> "ChromosomeValidationResult":
        return cls(is_valid=True, team=list(team))

    @classmethod
    def failure(
        cls,
        team: Sequence[str],
        reason: ValidationFailureReason,
        details: str,
        slot: Optional[int] = None,
    ) -> "ChromosomeValidationResult":
        return cls(
            is_valid=False,
            team=list(team),
            reason=reason,
            slot=slot,
            detailed_message=details,
        )


def validate_chromosome(
    chromosome: Chromosome,
    species: SpeciesRepository,
    *,
    team_size: int,
    anchor_species: Sequence[str] = (),
) -> ChromosomeValidationResult:
    """Check size, base-species uniqueness and anchor identity."""
    team = chromosome.team

    if len(team) != team_size:
        return ChromosomeValidationResult.failure(
            team,
            ValidationFailureReason.WRONG_SIZE,
            f"Team has {len(team)} members, expected {team_size}",
        )

    seen: dict = {}
    for slot, member in enumerate(team):
        key = species.base_species_key(member)
        if key in seen:
            return ChromosomeValidationResult.failure(
                team,
                ValidationFailureReason.DUPLICATE_BASE_SPECIES,
                f"{member} shares a base species with {team[seen[key]]}",
                slot=slot,
            )
        seen[key] = slot

    if len(chromosome.anchors) != len(anchor_species):
        return ChromosomeValidationResult.failure(
            team,
            ValidationFailureReason.ANCHOR_OUT_OF_RANGE,
            f"Expected {len(anchor_species)} anchors, chromosome declares {chromosome.anchors}",
        )

    for position, index in enumerate(chromosome.anchors):
        if index >= len(team):
            return ChromosomeValidationResult.failure(
                team,
                ValidationFailureReason.ANCHOR_OUT_OF_RANGE,
                f"Anchor index {index} outside team of {len(team)}",
                slot=index,
            )
        if team[index] != anchor_species[position]:
            return ChromosomeValidationResult.failure(
                team,
                ValidationFailureReason.ANCHOR_CORRUPTED,
                f"Anchor slot {index} holds {team[index]}, expected {anchor_species[position]}",
                slot=index,
            )

    return ChromosomeValidationResult.success(team)
