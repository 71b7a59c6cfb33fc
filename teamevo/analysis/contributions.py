from __future__ import annotations

from enum import Enum
from typing import Sequence

from pydantic import BaseModel, Field

from teamevo.analysis.threats import ThreatEntry, ThreatSeverity
from teamevo.data.game_data import GameData

HIGH_FRAGILITY_THRESHOLD = 6
MODERATE_FRAGILITY_THRESHOLD = 3


class FragilityTier(str, Enum):
    LOW = "low"
    MODERATE = "moderate"
    HIGH = "high"


class ContributionEntry(BaseModel):
    species_id: str
    pokemon: str
    threats_handled: int = 0
    coverage_added: int = Field(default=0, description="Threats this member is the only answer to")
    high_severity_relief: int = 0
    mean_rating: float = 0.0
    median_rating: float = 0.0
    ranking_average: float = 0.0
    fragility: FragilityTier = FragilityTier.LOW
    rationale: str = ""


def fragility_tier(coverage_added: int) -> FragilityTier:
    """How much the team loses if this member is replaced."""
    if coverage_added >= HIGH_FRAGILITY_THRESHOLD:
        return FragilityTier.HIGH
    if coverage_added >= MODERATE_FRAGILITY_THRESHOLD:
        return FragilityTier.MODERATE
    return FragilityTier.LOW


def build_contribution_analysis(
    data: GameData, team: Sequence[str], threats: Sequence[ThreatEntry]
) -> list[ContributionEntry]:
    pressing = {ThreatSeverity.HIGH, ThreatSeverity.CRITICAL}
    entries = []
    for species_id in team:
        handled = data.matchups.counters_threats(
            species_id, [t.species_id for t in threats if t.species_id is not None]
        )
        beaten = [
            t
            for t in threats
            if t.species_id is not None and data.matchups.wins_matchup(species_id, t.species_id)
        ]
        unique = sum(1 for t in beaten if t.team_answers == 1)
        relief = sum(1 for t in beaten if t.severity in pressing)
        tier = fragility_tier(unique)
        name = data.species.ranking_name(species_id)
        entries.append(
            ContributionEntry(
                species_id=species_id,
                pokemon=name,
                threats_handled=handled,
                coverage_added=unique,
                high_severity_relief=relief,
                fragility=tier,
                mean_rating=data.matchups.get_mean_battle_rating(species_id),
                median_rating=data.matchups.get_median_battle_rating(species_id),
                ranking_average=data.rankings.get_average_ranking_score(name),
                rationale=(
                    f"Covers {handled} ranked threats, adds {unique} unique team answers, "
                    f"and stabilizes {relief} high-pressure matchups. "
                    f"Replacement fragility is {tier.value}."
                ),
            )
        )
    return entries
