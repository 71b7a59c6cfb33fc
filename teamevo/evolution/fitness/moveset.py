"""
Team-contextual moveset selection.

The ranked moveset is the baseline. Charged moves are re-scored against the
team's weaknesses and the moves teammates already bring, and the top two are
kept unless that leaves a poor bait/closer pairing or a mono-type moveset.
"""

from __future__ import annotations

from collections import Counter
from functools import lru_cache
import math
from typing import NamedTuple, Optional, Sequence

from teamevo.coverage.type_chart import effectiveness, weaknesses
from teamevo.data.game_data import GameData
from teamevo.data.models import Move, Moveset, Species

MAX_MOVE_SYNERGY = 3.5
BAIT_MAX_ENERGY = 45
CLOSER_MIN_ENERGY = 50
EXPENSIVE_ENERGY = 55
BAIT_SEARCH_DEPTH = 4


class ScoredMove(NamedTuple):
    move_id: str
    score: float


def move_synergy_score(first: Optional[Move], second: Optional[Move]) -> float:
    """How well two charged moves work together, from 0 to 3.5."""
    if first is None or second is None:
        return 0.0
    score = 0.0
    if first.type != second.type:
        score += 1.0
    energies = sorted((first.energy, second.energy))
    if energies[0] <= BAIT_MAX_ENERGY and energies[1] >= CLOSER_MIN_ENERGY:
        score += 1.5
    if any(m.lowers_opponent_stats or m.boosts_self for m in (first, second)):
        score += 0.5
    if first.damage_per_energy >= 1.5 and second.damage_per_energy >= 1.5:
        score += 0.5
    return score


def pressure_score(fast: Optional[Move], charged: Optional[Move]) -> float:
    """Fast-move energy per turn relative to the charged move's cost, times 5."""
    if fast is None or charged is None or charged.energy <= 0:
        return 0.0
    per_turn = fast.energy_gain / max(1, fast.turns)
    return per_turn / charged.energy * 5


def pacing_score(charged: Optional[Move], fast_energy: float) -> float:
    if charged is None or fast_energy <= 0:
        return 0.0
    fast_moves_needed = math.ceil(charged.energy / fast_energy)
    if fast_moves_needed <= 5:
        return 0.3
    if fast_moves_needed == 6:
        return 0.1
    return -0.2


class MovesetAdvisor:
    """Picks a fast move and two charged moves for a species within a team.

    Results are memoized per advisor, keyed on the species and the sorted
    team. The cache is thread-safe and lives as long as the advisor.
    """

    def __init__(self, data: GameData, cache_size: int = 8192):
        self.data = data
        self._cached = lru_cache(maxsize=cache_size)(self._compute)

    def recommend(self, species: Species, team: Sequence[str]) -> Moveset:
        return self._cached(species.species_id, tuple(sorted(team)))

    def cache_info(self):
        return self._cached.cache_info()

    # ------------------------------------------------------------------ #

    def _move(self, move_id: Optional[str]) -> Optional[Move]:
        return self.data.species.get_move(move_id) if move_id else None

    def _team_weakness_counts(self, team: Sequence[str]) -> Counter[str]:
        counts: Counter[str] = Counter()
        for member_id in team:
            member = self.data.species.get(member_id)
            if member is not None:
                counts.update(weaknesses(member.types))
        return counts

    def _teammate_move_types(self, species_id: str, team: Sequence[str]) -> Counter[str]:
        counts: Counter[str] = Counter()
        for member_id in team:
            if member_id == species_id:
                continue
            member = self.data.species.get(member_id)
            if member is None:
                continue
            ranked = self.data.rankings.get_optimal_moveset(member.species_name)
            for move_id in ranked.charged_moves:
                move = self._move(move_id)
                if move is not None:
                    counts[move.type] += 1
        return counts

    def score_charged_move(
        self,
        move: Optional[Move],
        species: Species,
        team_weaknesses: Counter[str],
        teammate_move_types: Counter[str],
        is_ranked: bool,
    ) -> float:
        if move is None:
            return 0.0
        score = 2.0 if is_ranked else 0.0
        if move.type in species.types:
            score += 0.6

        dpe = move.damage_per_energy
        if dpe >= 1.7:
            score += 0.7
        elif dpe >= 1.5:
            score += 0.5
        elif dpe >= 1.3:
            score += 0.3
        else:
            score -= 0.2

        if move.energy >= 70:
            score -= 1.5
        if move.lowers_own_stats:
            score -= 0.1
        if move.lowers_opponent_stats:
            score += 0.6
        if move.boosts_self:
            score += 0.4

        repeated = teammate_move_types.get(move.type, 0)
        if repeated >= 3:
            score -= 0.8
        elif repeated >= 2:
            score -= 0.4

        for weak_type, count in team_weaknesses.items():
            if effectiveness([weak_type], move.type) >= 1.6:
                score += 0.2 * count

        if any(effectiveness([w], move.type) >= 1.6 for w in weaknesses(species.types)):
            score += 0.3
        return score

    def _compute(self, species_id: str, team: tuple[str, ...]) -> Moveset:
        species = self.data.species.get(species_id)
        if species is None:
            return Moveset()

        ranked = self.data.rankings.get_optimal_moveset(species.species_name)
        fast_id = ranked.fast_move or (species.fast_moves[0] if species.fast_moves else None)
        fast = self._move(fast_id)
        fast_energy = fast.energy_gain if fast else 0.0

        team_weaknesses = self._team_weakness_counts(team)
        teammate_types = self._teammate_move_types(species_id, team)

        scored = [
            ScoredMove(
                move_id,
                self.score_charged_move(
                    self._move(move_id),
                    species,
                    team_weaknesses,
                    teammate_types,
                    move_id in (ranked.charged_move1, ranked.charged_move2),
                )
                + pacing_score(self._move(move_id), fast_energy),
            )
            for move_id in species.charged_moves
        ]
        scored.sort(key=lambda s: s.score, reverse=True)

        first = scored[0].move_id if scored else None
        second = scored[1].move_id if len(scored) > 1 else None
        second = self._fix_pairing(first, second, scored)
        first, second = self._break_mono_type(first, second, fast, ranked)

        return Moveset(fast_move=fast_id, charged_move1=first, charged_move2=second)

    def _fix_pairing(
        self, first: Optional[str], second: Optional[str], scored: list[ScoredMove]
    ) -> Optional[str]:
        """Swap the second move for a bait or a closer when both cost the same."""
        move1, move2 = self._move(first), self._move(second)
        if move1 is None or move2 is None:
            return second
        shortlist = [s for s in scored[:BAIT_SEARCH_DEPTH] if s.move_id != first]

        if move1.energy > EXPENSIVE_ENERGY and move2.energy > EXPENSIVE_ENERGY:
            for candidate in shortlist:
                move = self._move(candidate.move_id)
                if move is not None and move.energy <= BAIT_MAX_ENERGY:
                    second = candidate.move_id
                    break

        if move1.energy <= BAIT_MAX_ENERGY and move2.energy <= BAIT_MAX_ENERGY:
            for candidate in shortlist:
                move = self._move(candidate.move_id)
                if move is None:
                    continue
                if move.lowers_own_stats or (
                    move.energy >= CLOSER_MIN_ENERGY and move.damage_per_energy >= 1.5
                ):
                    second = candidate.move_id
                    break
        return second

    def _break_mono_type(
        self,
        first: Optional[str],
        second: Optional[str],
        fast: Optional[Move],
        ranked: Moveset,
    ) -> tuple[Optional[str], Optional[str]]:
        move1, move2 = self._move(first), self._move(second)
        if move1 is None or move2 is None or fast is None:
            return first, second
        if not (move1.type == move2.type == fast.type):
            return first, second
        ranked1, ranked2 = self._move(ranked.charged_move1), self._move(ranked.charged_move2)
        if ranked1 is not None and ranked2 is not None:
            if ranked1.type != fast.type or ranked2.type != fast.type:
                return ranked.charged_move1, ranked.charged_move2
        return first, second


__all__ = [
    "MAX_MOVE_SYNERGY",
    "MovesetAdvisor",
    "move_synergy_score",
    "pacing_score",
    "pressure_score",
]
