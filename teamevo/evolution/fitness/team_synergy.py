"""
Team-level fitness strategy.

Focuses on redundancy against the simulated meta rather than on how good
each member is on its own.
"""

from __future__ import annotations

from typing import Sequence

import numpy as np

from teamevo.data.models import Species
from teamevo.evolution.fitness.base import FitnessStrategy
from teamevo.team.chromosome import Chromosome, TournamentMode

WEIGHTS = {
    "coverage_matrix": 0.4,
    "shield_balance": 0.2,
    "core_break": 0.15,
    "move_diversity": 0.1,
    "individual_quality": 0.15,
}
GBL_BONUS = 0.1

COVERAGE_MATRIX_THREATS = 100
SHIELD_BALANCE_THREATS = 50
CORE_BREAK_THREATS = 30
QUALITY_CAP = 95


class TeamSynergyFitness(FitnessStrategy):
    name = "teamSynergy"

    def components(self, chromosome: Chromosome, mode: TournamentMode) -> dict[str, float]:
        team = chromosome.team
        members = self.members(team)
        raw = {
            "coverage_matrix": self.coverage_matrix_score(members),
            "shield_balance": self.shield_balance_score(team),
            "core_break": self.core_break_score(team),
            "move_diversity": self.fast_move_diversity_score(members),
            "individual_quality": self.individual_quality_score(team),
        }
        weighted = {key: value * WEIGHTS[key] for key, value in raw.items()}
        weighted["mode_bonus"] = GBL_BONUS if mode is TournamentMode.GBL else 0.0
        return weighted

    def coverage_matrix_score(self, members: Sequence[Species]) -> float:
        """1.0 per threat with two or more counters, 0.5 with exactly one."""
        threats = self.data.matchups.get_top_threats(COVERAGE_MATRIX_THREATS)
        if not members or not threats:
            return 0.0
        counts = self.data.matchups.counter_counts([m.species_id for m in members], threats)
        per_threat = np.where(counts >= 2, 1.0, np.where(counts == 1, 0.5, 0.0))
        return float(per_threat.mean())

    def shield_balance_score(self, team: Sequence[str]) -> float:
        threats = self.data.matchups.get_top_threats(SHIELD_BALANCE_THREATS)
        if not threats:
            return 0.0
        return self.data.matchups.calculate_team_coverage(team, threats)

    def core_break_score(self, team: Sequence[str]) -> float:
        """One minus the share of top threats nobody on the team beats."""
        threats = self.data.matchups.get_top_threats(CORE_BREAK_THREATS)
        if not threats:
            return 1.0
        uncovered = int((self.data.matchups.counter_counts(team, threats) == 0).sum())
        return max(0.0, 1.0 - uncovered / len(threats))

    def fast_move_diversity_score(self, members: Sequence[Species]) -> float:
        if not members:
            return 0.0
        seen: set[str] = set()
        for member in members:
            if not member.fast_moves:
                continue
            fast = member.fast_moves[0]
            if fast in seen:
                return 0.5
            seen.add(fast)
        return 1.0

    def individual_quality_score(self, team: Sequence[str]) -> float:
        averages = [self.data.ranking_summary(m).average for m in team]
        averages = [a for a in averages if a > 0]
        if not averages:
            return 0.0
        return sum(min(a, QUALITY_CAP) / 100 for a in averages) / len(averages)
