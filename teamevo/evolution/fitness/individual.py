"""
Per-member fitness strategy.

Scores a team mostly from the quality of its members and from simple
pairwise typing rules, with battle-simulation coverage as the dominant term.
Every sub-score is in roughly ``[0, 1]`` before weighting; the weights below
are tuned values and intentionally do not sum to one.
"""

from __future__ import annotations

from collections import Counter
from itertools import permutations
from typing import Sequence

from teamevo.coverage.type_chart import (
    defensive_coverage,
    effectiveness,
    is_super_effective,
    offensive_coverage,
    resists,
    weaknesses,
)
from teamevo.data.game_data import GameData
from teamevo.data.models import Species
from teamevo.evolution.fitness.base import FitnessStrategy
from teamevo.evolution.fitness.moveset import (
    MAX_MOVE_SYNERGY,
    MovesetAdvisor,
    move_synergy_score,
    pressure_score,
)
from teamevo.evolution.initializer import GLASS_CANNON_RATIO, TANK_RATIO
from teamevo.team.chromosome import Chromosome, TournamentMode

WEIGHTS = {
    "type_coverage": 0.05,
    "ranking": 0.21,
    "strategy": 0.03,
    "meta_threats": 0.02,
    "energy": 0.02,
    "type_diversity": 0.07,
    "type_synergy": 0.08,
    "move_coverage": 0.08,
    "stat_balance": 0.15,
    "shadow": 0.02,
    "simulation": 0.3,
}
SURPRISE_WEIGHT = 0.15
CONSISTENCY_WEIGHT = 0.1
ANCHOR_SYNERGY_WEIGHT = 0.5

META_THREAT_SAMPLE = 50
SIMULATION_THREAT_SAMPLE = 50
LINEUP_SIZE = 3

# (minimum average, multiplier) below the elite band of 90
RANKING_PENALTY_BANDS = ((85, 0.8), (80, 0.6), (75, 0.4))
RANKING_PENALTY_FLOOR = 0.2
ELITE_RANKING = 90


class IndividualFitness(FitnessStrategy):
    name = "individual"

    def __init__(self, data: GameData, advisor: MovesetAdvisor | None = None):
        super().__init__(data)
        self.advisor = advisor or MovesetAdvisor(data)

    def components(self, chromosome: Chromosome, mode: TournamentMode) -> dict[str, float]:
        team = chromosome.team
        members = self.members(team)
        raw = {
            "type_coverage": self.type_coverage_score(members),
            "ranking": self.ranking_score(team),
            "strategy": self.strategy_score(team, mode),
            "meta_threats": self.meta_threat_score(members),
            "energy": self.energy_score(members, team),
            "type_diversity": self.type_diversity_score(members),
            "type_synergy": self.type_synergy_score(members),
            "move_coverage": self.move_coverage_score(members, team),
            "stat_balance": self.stat_balance_score(members),
            "shadow": self.shadow_preference_score(members),
            "simulation": self.simulation_score(team),
        }
        weighted = {key: value * WEIGHTS[key] for key, value in raw.items()}

        if mode is TournamentMode.GBL:
            weighted["surprise"] = self.surprise_factor(team) * SURPRISE_WEIGHT
        else:
            weighted["consistency"] = self.consistency_score(team) * CONSISTENCY_WEIGHT
        if chromosome.anchors:
            weighted["anchor_synergy"] = (
                self.anchor_synergy_score(team, chromosome.anchors) * ANCHOR_SYNERGY_WEIGHT
            )
        return weighted

    # ------------------------------------------------------------------ #
    # Typing
    # ------------------------------------------------------------------ #

    def _charged_move_types(self, species: Species) -> set[str]:
        types = set()
        for move_id in species.charged_moves:
            move = self.data.species.get_move(move_id)
            if move is not None:
                types.add(move.type)
        return types

    def type_coverage_score(self, members: Sequence[Species]) -> float:
        """40% offensive reach of all learnable charged moves, 60% defensive typing."""
        if not members:
            return 0.0
        move_types: set[str] = set()
        for member in members:
            move_types |= self._charged_move_types(member)
        offensive = offensive_coverage(move_types) / 18
        # ten net resisted types already earns the full defensive share; capped at 1
        defensive = min(1.0, max(0.0, defensive_coverage([m.types for m in members]) / 10))
        return offensive * 0.4 + defensive * 0.6

    def type_diversity_score(self, members: Sequence[Species]) -> float:
        if not members:
            return 0.0
        counts = Counter(t for m in members for t in m.types)
        score = 1.0
        for count in counts.values():
            if count >= 4:
                score -= 1.0
            elif count == 3:
                score -= 0.7
            elif count == 2:
                score -= 0.2
        return max(0.0, score)

    def type_synergy_score(self, members: Sequence[Species]) -> float:
        """Penalize stacked weaknesses; reward teammates that resist each other's weaknesses."""
        if not members:
            return 0.0
        member_weaknesses = [weaknesses(m.types) for m in members]
        stacked = Counter(t for weak in member_weaknesses for t in weak)

        score = 1.0
        for count in stacked.values():
            if count >= 4:
                score -= 0.6
            elif count == 3:
                score -= 0.4
            elif count == 2:
                score -= 0.2

        covered_ratio = 0.0
        for i, weak in enumerate(member_weaknesses):
            if not weak:
                continue
            covered = sum(
                1
                for attack in weak
                if any(resists(other.types, attack) for j, other in enumerate(members) if j != i)
            )
            covered_ratio += covered / len(weak)
        score += covered_ratio / len(members) * 0.3
        return max(0.0, score)

    # ------------------------------------------------------------------ #
    # Rankings
    # ------------------------------------------------------------------ #

    def ranking_score(self, team: Sequence[str]) -> float:
        """Mean normalized role average, with steep penalties below 90."""
        scores = []
        for species_id in team:
            average = self.data.ranking_summary(species_id).average
            if average <= 0:
                continue
            score = average / 100
            if average < ELITE_RANKING:
                multiplier = RANKING_PENALTY_FLOOR
                for minimum, factor in RANKING_PENALTY_BANDS:
                    if average >= minimum:
                        multiplier = factor
                        break
                score *= multiplier
            scores.append(score)
        return sum(scores) / len(scores) if scores else 0.0

    def surprise_factor(self, team: Sequence[str]) -> float:
        """Reward off-meta (60-79) and spice (<60) picks."""
        if not team:
            return 0.0
        score = 0.0
        for species_id in team:
            overall = self.data.ranking_summary(species_id).overall
            if 60 <= overall < 80:
                score += 0.3
            if 0 < overall < 60:
                score += 0.5
        return min(score / len(team), 1.0)

    def consistency_score(self, team: Sequence[str]) -> float:
        if not team:
            return 0.0
        score = 0.0
        for species_id in team:
            average = self.data.ranking_summary(species_id).average
            if average >= 85:
                score += 1.0
            elif average >= 75:
                score += 0.5
        return score / len(team)

    # ------------------------------------------------------------------ #
    # Lineups and threats
    # ------------------------------------------------------------------ #

    def lineup_score(self, lineup: Sequence[str]) -> float:
        """ABA, ABB and ABC pattern bonuses for a lead/switch/closer lineup."""
        if len(lineup) != LINEUP_SIZE:
            return 0.0
        resolved = [self.data.species.get(species_id) for species_id in lineup]
        if any(member is None for member in resolved):
            return 0.0
        lead, switch, closer = resolved

        score = 0.0
        if set(lead.types) & set(closer.types):
            score += 0.3
        if set(switch.types) & set(closer.types):
            score += 0.3
        if len(set(lead.types) | set(switch.types) | set(closer.types)) >= 5:
            score += 0.4
        return min(score, 1.0)

    def strategy_score(self, team: Sequence[str], mode: TournamentMode) -> float:
        if mode is TournamentMode.GBL:
            return self.lineup_score(team)
        if len(team) < LINEUP_SIZE:
            return 0.0
        return max(self.lineup_score(lineup) for lineup in permutations(team, LINEUP_SIZE))

    def meta_threat_score(self, members: Sequence[Species]) -> float:
        """Share of the top 50 meta threats hit super effectively by some charged move."""
        if not members:
            return 0.0
        move_types: set[str] = set()
        for member in members:
            move_types |= self._charged_move_types(member)
        covered = sum(
            1
            for threat in self.data.rankings.get_meta_threats()[:META_THREAT_SAMPLE]
            if threat.types and any(is_super_effective(threat.types, t) for t in move_types)
        )
        return covered / META_THREAT_SAMPLE

    def simulation_score(self, team: Sequence[str]) -> float:
        matchups = self.data.matchups
        threats = matchups.get_top_threats(SIMULATION_THREAT_SAMPLE)
        score = matchups.calculate_team_coverage(team, threats) * 0.4

        qualities = [matchups.get_matchup_quality_score(m) for m in team]
        with_data = [q for q in qualities if q != 0.5]
        average_quality = sum(with_data) / len(with_data) if with_data else 0.5
        score += (average_quality - 0.5) * 2.5

        score -= matchups.team_weakness_weight(team) * 0.5
        score -= sum(t.weight for t in matchups.get_single_counter_threats(team, SIMULATION_THREAT_SAMPLE)) * 0.5
        return max(0.0, score)

    # ------------------------------------------------------------------ #
    # Movesets
    # ------------------------------------------------------------------ #

    def energy_score(self, members: Sequence[Species], team: Sequence[str]) -> float:
        """Average charged-move synergy and fast-move pressure of the team movesets."""
        if not members:
            return 0.0
        get_move = self.data.species.get_move
        total_synergy = 0.0
        total_pressure = 0.0
        for member in members:
            moveset = self.advisor.recommend(member, team)
            charged = moveset.charged_moves
            if len(charged) == 2:
                total_synergy += (
                    move_synergy_score(get_move(charged[0]), get_move(charged[1])) / MAX_MOVE_SYNERGY
                )
            if moveset.fast_move and charged:
                pressure = pressure_score(get_move(moveset.fast_move), get_move(charged[0]))
                total_pressure += min(pressure * 2, 1.0)
        return total_synergy / len(members) * 0.5 + total_pressure / len(members) * 0.5

    def move_coverage_score(self, members: Sequence[Species], team: Sequence[str]) -> float:
        """Reward STAB plus coverage moves that answer the member's own weaknesses."""
        if not members:
            return 0.0
        total = 0.0
        for member in members:
            moveset = self.advisor.recommend(member, team)
            moves = [self.data.species.get_move(m) for m in moveset.charged_moves]
            moves = [m for m in moves if m is not None]
            if not moves:
                continue

            own_weaknesses = weaknesses(member.types)
            move_types = {m.type for m in moves}
            stab = sum(1 for m in moves if m.type in member.types)
            coverage = [m for m in moves if m.type not in member.types]
            answers = sum(
                1
                for m in coverage
                if any(effectiveness([w], m.type) >= 1.6 for w in own_weaknesses)
            )

            score = 0.0
            if stab >= 1:
                score += 0.4
            if stab == 2:
                score += 0.1
            if len(move_types) == 1 and stab == len(moves):
                score -= 0.7
            if len(move_types) >= 2:
                score += 0.3
            if len(coverage) >= 2:
                score += 0.4
            elif len(coverage) == 1:
                score += 0.2
            if answers >= 2:
                score += 0.7
            elif answers == 1:
                score += 0.5
            if stab >= 1 and answers >= 1:
                score += 0.3
            total += max(0.0, score)
        return total / len(members)

    # ------------------------------------------------------------------ #
    # Stats
    # ------------------------------------------------------------------ #

    def stat_balance_score(self, members: Sequence[Species]) -> float:
        if not members:
            return 0.0
        ratios = [m.base_stats.bulk_ratio for m in members]
        bulky = sum(1 for r in ratios if r >= TANK_RATIO)
        balanced = sum(1 for r in ratios if GLASS_CANNON_RATIO <= r < TANK_RATIO)
        attackers = sum(1 for r in ratios if r < GLASS_CANNON_RATIO)

        score = 1.0
        if attackers > 3:
            score -= 0.6
        elif attackers > 2:
            score -= 0.3
        if attackers >= 2:
            score -= 0.2
        if bulky == 0 and balanced <= 1:
            score -= 0.5
        if bulky >= 1:
            score += 0.25
        if bulky >= 2:
            score += 0.2
        if balanced >= 3:
            score += 0.25
        elif balanced >= 2:
            score += 0.15
        if 1 <= attackers <= 2 and bulky + balanced >= 4:
            score += 0.3
        return max(0.0, score)

    def shadow_preference_score(self, members: Sequence[Species]) -> float:
        """Prefer shadow forms on glass cannons and regular forms on tanks."""
        if not members:
            return 0.0
        score = 0.0
        for member in members:
            ratio = member.base_stats.bulk_ratio
            if ratio < GLASS_CANNON_RATIO:
                if member.is_shadow:
                    score += 0.15
                else:
                    shadow = self.data.species.get(f"{member.species_id}_shadow")
                    if shadow is not None and "shadow" in shadow.tags:
                        score -= 0.05
            if ratio >= TANK_RATIO and member.is_shadow:
                score -= 0.05
        return score / len(members)

    # ------------------------------------------------------------------ #
    # Anchors
    # ------------------------------------------------------------------ #

    def anchor_synergy_score(self, team: Sequence[str], anchors: Sequence[int]) -> float:
        """How well non-anchor members cover each anchor's weaknesses.

        Per anchor: 60% share of its weaknesses resisted by some non-anchor,
        40% share hit super effectively by some non-anchor charged move.
        """
        anchored = [self.data.species.get(team[i]) for i in anchors if i < len(team)]
        anchored = [s for s in anchored if s is not None]
        others = self.members([m for i, m in enumerate(team) if i not in anchors])
        if not anchored or not others:
            return 0.0

        other_move_types: set[str] = set()
        for member in others:
            other_move_types |= self._charged_move_types(member)

        total = 0.0
        for anchor in anchored:
            weak = weaknesses(anchor.types)
            if not weak:
                continue
            defended = sum(1 for t in weak if any(resists(o.types, t) for o in others))
            answered = sum(
                1 for t in weak if any(effectiveness([t], mt) >= 1.6 for mt in other_move_types)
            )
            total += defended / len(weak) * 0.6 + answered / len(weak) * 0.4
        return total / len(anchored)
