from __future__ import annotations

from datetime import datetime, timezone
from typing import Sequence

from loguru import logger
from pydantic import BaseModel, Field

from teamevo.analysis.contributions import ContributionEntry, build_contribution_analysis
from teamevo.analysis.core_breakers import CoreBreakerAnalysis, build_core_breaker_analysis
from teamevo.analysis.shield_scenarios import ShieldScenarioStats, build_shield_scenario_analysis
from teamevo.analysis.threats import (
    ThreatAnalysis,
    WeaknessEntry,
    build_threat_analysis,
    build_weakness_entries,
)
from teamevo.data.game_data import GameData
from teamevo.evolution.fitness import FitnessAlgorithm
from teamevo.team.chromosome import TournamentMode


class GenerationAnalysis(BaseModel):
    mode: TournamentMode
    algorithm: FitnessAlgorithm
    team_size: int
    generated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    threats: ThreatAnalysis
    core_breakers: CoreBreakerAnalysis
    shield_scenarios: dict[str, ShieldScenarioStats]
    contributions: list[ContributionEntry]
    weaknesses: list[WeaknessEntry] = Field(default_factory=list)


def analyze_team(
    data: GameData,
    team: Sequence[str],
    mode: TournamentMode,
    algorithm: FitnessAlgorithm = FitnessAlgorithm.INDIVIDUAL,
) -> GenerationAnalysis:
    """Summarize how a generated team fares against the ranked meta."""
    threats = build_threat_analysis(data, team)
    analysis = GenerationAnalysis(
        mode=mode,
        algorithm=FitnessAlgorithm(algorithm),
        team_size=len(team),
        threats=threats,
        core_breakers=build_core_breaker_analysis(len(team), threats.entries),
        shield_scenarios=build_shield_scenario_analysis(data, team, threats.entries),
        contributions=build_contribution_analysis(data, team, threats.entries),
        weaknesses=build_weakness_entries(data, team),
    )
    logger.debug(
        "[analysis] {} threats evaluated, {} core breakers, {} unbeaten opponents",
        threats.evaluated_count,
        len(analysis.core_breakers.entries),
        len(analysis.weaknesses),
    )
    return analysis
