"""
Heuristic population seeding.

Teams are built slot by slot. Anchors go first at indices ``0..k-1``; each
remaining slot samples a handful of pool members, scores them against the
partial team and keeps the best one whose base species is still free.
"""

from __future__ import annotations

from typing import Hashable, Optional, Sequence

from loguru import logger
import numpy as np

from teamevo.coverage.type_chart import weaknesses
from teamevo.data.game_data import GameData
from teamevo.exceptions import PoolExhaustedError, ValidationError
from teamevo.team.chromosome import Chromosome

GLASS_CANNON_RATIO = 1.8
TANK_RATIO = 2.5

# (min overall score, weight) for a threat the partial team already loses to
THREAT_WEIGHT_BANDS = ((95, 15), (90, 12), (85, 10), (80, 7), (75, 5))
THREAT_WEIGHT_FLOOR = 3
WORST_MATCHUPS_PER_MEMBER = 5


def threat_weight(score: float) -> int:
    for minimum, weight in THREAT_WEIGHT_BANDS:
        if score >= minimum:
            return weight
    return THREAT_WEIGHT_FLOOR


class PopulationInitializer:
    """Creates chromosomes that already satisfy every team invariant.

    Args:
        data: Static game data.
        pool: Candidate species ids (read-only for the run).
        team_size: Slots per team.
        anchor_species: Species pinned to slots ``0..len-1``.
        rng: Source of randomness; the only one used.
        sample_size: Candidates scored per slot (capped by pool size).
        max_fallback_attempts: Cap on uniform draws when no sampled candidate fits.
    """

    def __init__(
        self,
        data: GameData,
        pool: Sequence[str],
        team_size: int,
        anchor_species: Sequence[str] = (),
        *,
        rng: np.random.Generator,
        sample_size: int = 20,
        max_fallback_attempts: int = 1000,
    ):
        if len(anchor_species) > team_size:
            raise ValidationError(
                f"{len(anchor_species)} anchors do not fit in a team of {team_size}"
            )
        if not data.species.validate_team_uniqueness(anchor_species):
            raise ValidationError(f"Anchors {list(anchor_species)} share a base species")
        if not pool and len(anchor_species) < team_size:
            raise PoolExhaustedError("Candidate pool is empty")

        self.data = data
        self.pool = list(pool)
        self.team_size = team_size
        self.anchor_species = list(anchor_species)
        self.rng = rng
        self.sample_size = sample_size
        self.max_fallback_attempts = max_fallback_attempts

    def initialize(self, population_size: int) -> list[Chromosome]:
        population = [self.create_chromosome() for _ in range(population_size)]
        logger.info(
            "[Initializer] Created {} chromosomes (team size {}, {} anchors, pool {})",
            len(population),
            self.team_size,
            len(self.anchor_species),
            len(self.pool),
        )
        return population

    def create_chromosome(self) -> Chromosome:
        team: list[Optional[str]] = [None] * self.team_size
        anchors = list(range(len(self.anchor_species)))
        used_keys: set[Hashable] = set()
        used_types: dict[str, int] = {}

        for index, species_id in enumerate(self.anchor_species):
            team[index] = species_id
            self._place(species_id, used_keys, used_types)

        filled_non_anchor = False
        for slot in range(len(anchors), self.team_size):
            is_first_pick = slot == 0 and not anchors
            sample = 1 if is_first_pick else min(self.sample_size, len(self.pool))
            placed = [s for s in team if s is not None]

            selected = self._pick_from_sample(
                sample, placed, used_keys, used_types, slot, filled_non_anchor
            )
            if selected is None:
                selected = self._fallback(used_keys)

            team[slot] = selected
            self._place(selected, used_keys, used_types)
            filled_non_anchor = True

        return Chromosome(team=[s for s in team if s is not None], anchors=anchors)

    # ------------------------------------------------------------------ #

    def _place(self, species_id: str, used_keys: set, used_types: dict[str, int]) -> None:
        used_keys.add(self.data.species.base_species_key(species_id))
        for t in self.data.species.types_of(species_id):
            used_types[t] = used_types.get(t, 0) + 1

    def _pick_from_sample(
        self,
        sample: int,
        placed: list[str],
        used_keys: set,
        used_types: dict[str, int],
        slot: int,
        use_matchups: bool,
    ) -> Optional[str]:
        best: Optional[str] = None
        best_score = float("-inf")
        threats = self._partial_team_threats(placed) if use_matchups else None
        for _ in range(sample):
            candidate = self.pool[int(self.rng.integers(len(self.pool)))]
            if self.data.species.base_species_key(candidate) in used_keys:
                continue
            if self.data.species.get(candidate) is None:
                continue
            score = self.score_candidate(candidate, placed, used_types, slot, threats)
            if score > best_score:
                best, best_score = candidate, score
        if best is not None:
            logger.debug("[Initializer] Slot {}: picked {} (score {:.2f})", slot, best, best_score)
        return best

    def _partial_team_threats(self, placed: Sequence[str]) -> dict[str, int]:
        """Worst matchups of the placed members, weighted by the threat's overall rank."""
        threats: dict[str, int] = {}
        for member in placed:
            for threat in self.data.matchups.get_worst_matchups(member, WORST_MATCHUPS_PER_MEMBER):
                weight = threat_weight(self.data.ranking_summary(threat).overall)
                if weight > threats.get(threat, 0):
                    threats[threat] = weight
        return threats

    def score_candidate(
        self,
        candidate: str,
        placed: Sequence[str],
        used_types: dict[str, int],
        slot: int,
        threats: Optional[dict[str, int]] = None,
    ) -> float:
        species = self.data.species.get(candidate)
        if species is None:
            return float("-inf")
        score = 10.0

        for t in species.types:
            count = used_types.get(t, 0)
            if count >= 2:
                score -= 5
            elif count == 1:
                score -= 2
            else:
                score += 3

        members = [m for m in (self.data.species.get(p) for p in placed) if m is not None]
        glass_cannons = sum(1 for m in members if m.base_stats.bulk_ratio < GLASS_CANNON_RATIO)
        tanks = sum(1 for m in members if m.base_stats.bulk_ratio >= TANK_RATIO)
        ratio = species.base_stats.bulk_ratio
        if ratio < GLASS_CANNON_RATIO:
            if glass_cannons >= 2:
                score -= 4
            if species.is_shadow:
                score += 2
        elif ratio >= TANK_RATIO and tanks == 0 and slot > 0:
            score += 3

        candidate_weaknesses = set(weaknesses(species.types))
        shared = sum(len(candidate_weaknesses & set(weaknesses(m.types))) for m in members)
        if shared >= 3:
            score -= 6
        elif shared >= 2:
            score -= 3
        elif shared == 1:
            score -= 1

        if threats is not None:
            matchups = self.data.matchups
            score += sum(w for threat, w in threats.items() if matchups.wins_matchup(candidate, threat))
            score += (matchups.get_matchup_quality_score(candidate) - 0.5) * 20

        return score

    def _fallback(self, used_keys: set) -> str:
        for _ in range(self.max_fallback_attempts):
            candidate = self.pool[int(self.rng.integers(len(self.pool)))]
            if self.data.species.base_species_key(candidate) not in used_keys:
                return candidate
        logger.error(
            "[Initializer] No unique species after {} attempts (pool {}, used {})",
            self.max_fallback_attempts,
            len(self.pool),
            len(used_keys),
        )
        raise PoolExhaustedError(
            f"Failed to find a unique species after {self.max_fallback_attempts} attempts. "
            f"Pool size: {len(self.pool)}, used: {len(used_keys)}"
        )
