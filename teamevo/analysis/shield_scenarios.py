from __future__ import annotations

from typing import Sequence

from pydantic import BaseModel

from teamevo.analysis.threats import ThreatEntry
from teamevo.data.game_data import GameData
from teamevo.data.matchups import SHIELD_SCENARIOS, WIN_THRESHOLD


class ShieldScenarioStats(BaseModel):
    covered_threats: int = 0
    evaluated_threats: int = 0
    coverage_rate: float = 0.0


def scenario_key(shields: int) -> str:
    return f"{shields}-{shields}"


def build_shield_scenario_analysis(
    data: GameData, team: Sequence[str], threats: Sequence[ThreatEntry]
) -> dict[str, ShieldScenarioStats]:
    """Per-scenario share of threats beaten by some member, over threats with data."""
    summaries: dict[str, ShieldScenarioStats] = {}
    for shields in SHIELD_SCENARIOS:
        evaluated = covered = 0
        for threat in threats:
            if threat.species_id is None:
                continue
            ratings = [
                data.matchups.get_shield_scenario_result(member, threat.species_id, shields)
                for member in team
            ]
            ratings = [r for r in ratings if r is not None]
            if not ratings:
                continue
            evaluated += 1
            if any(r > WIN_THRESHOLD for r in ratings):
                covered += 1
        summaries[scenario_key(shields)] = ShieldScenarioStats(
            covered_threats=covered,
            evaluated_threats=evaluated,
            coverage_rate=covered / evaluated if evaluated else 0.0,
        )
    return summaries
