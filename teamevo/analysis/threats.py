"""Ranked threat analysis of a finished team."""

from __future__ import annotations

from enum import Enum
from typing import Optional, Sequence

from pydantic import BaseModel, Field

from teamevo.data.game_data import GameData
from teamevo.data.models import RankingRole

TOP_THREAT_COUNT = 50


class ThreatSeverity(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class ThreatEntry(BaseModel):
    pokemon: str
    species_id: Optional[str] = None
    rank: int = Field(ge=1)
    team_answers: int = Field(ge=0)
    severity: ThreatSeverity


class ThreatAnalysis(BaseModel):
    evaluated_count: int = 0
    entries: list[ThreatEntry] = Field(default_factory=list)


def threat_severity(rank: int, team_answers: int) -> ThreatSeverity:
    """0/1/2 answers score 3/2/1; top-10 ranks add one, ranks past 100 drop one."""
    answers = max(0, team_answers)
    rank = max(1, rank)
    score = {0: 3, 1: 2, 2: 1}.get(answers, 0)
    if rank <= 10:
        score += 1
    if rank > 100:
        score -= 1

    if score >= 3:
        return ThreatSeverity.CRITICAL
    if score == 2:
        return ThreatSeverity.HIGH
    if score == 1:
        return ThreatSeverity.MEDIUM
    return ThreatSeverity.LOW


def threat_species_id(data: GameData, name: str) -> Optional[str]:
    return data.species.name_to_choosable_id(name)


def build_threat_analysis(
    data: GameData, team: Sequence[str], count: int = TOP_THREAT_COUNT
) -> ThreatAnalysis:
    entries = []
    for rank, threat in enumerate(data.rankings.get_top_pokemon(RankingRole.OVERALL, count), start=1):
        species_id = threat_species_id(data, threat.name)
        answers = 0
        if species_id is not None:
            answers = sum(1 for member in team if data.matchups.wins_matchup(member, species_id))
        entries.append(
            ThreatEntry(
                pokemon=threat.name,
                species_id=species_id,
                rank=rank,
                team_answers=answers,
                severity=threat_severity(rank, answers),
            )
        )
    return ThreatAnalysis(evaluated_count=len(entries), entries=entries)


class WeaknessEntry(BaseModel):
    pokemon: str
    species_id: str
    weight: float = Field(ge=0)


def build_weakness_entries(data: GameData, team: Sequence[str]) -> list[WeaknessEntry]:
    """Simulated opponents nobody on the team beats, heaviest first."""
    entries = [
        WeaknessEntry(
            pokemon=data.species.species_id_to_name(opponent),
            species_id=opponent,
            weight=weight,
        )
        for opponent, weight in data.matchups.get_weighted_team_weaknesses(team)
    ]
    return sorted(entries, key=lambda e: e.weight, reverse=True)
