"""
Simulated battle ratings between species.

Ratings are held in a dense ``(species, opponent, shield scenario)`` array with
NaN marking absent scenarios. Every derived view (weighted rating, win flags,
per-row mean/median, threat weights) is computed once at construction and the
arrays are frozen, so a provider is an immutable snapshot that evaluation
threads can share.
"""

from __future__ import annotations

from typing import Mapping, NamedTuple, Optional, Sequence, TYPE_CHECKING

import numpy as np

from teamevo.data.species import normalize_species_id, species_id_to_ranking_name

if TYPE_CHECKING:
    from teamevo.data.rankings import RankingProvider
    from teamevo.data.species import SpeciesRepository

SHIELD_SCENARIOS: tuple[int, ...] = (0, 1, 2)
SCENARIO_WEIGHTS = np.array([0.3, 0.5, 0.2])
WIN_THRESHOLD = 500.0
NEUTRAL_RATING = 500.0

# (min overall score, weight); first match wins
WEAKNESS_WEIGHT_BANDS = ((95, 3.0), (90, 2.5), (85, 2.0), (80, 1.5), (75, 1.0))
WEAKNESS_WEIGHT_FLOOR = 0.5
SINGLE_COUNTER_WEIGHT_BANDS = ((95, 1.5), (90, 1.2), (85, 1.0), (80, 0.7), (75, 0.5))
SINGLE_COUNTER_WEIGHT_FLOOR = 0.3

RatingTable = Mapping[str, Mapping[str, Mapping[int, Optional[float]]]]


class WeightedThreat(NamedTuple):
    opponent: str
    weight: float


class SingleCounterThreat(NamedTuple):
    opponent: str
    weight: float
    counter: str


def banded_weight(score: float, bands, floor: float) -> float:
    for minimum, weight in bands:
        if score >= minimum:
            return weight
    return floor


def _freeze(array: np.ndarray) -> np.ndarray:
    array.flags.writeable = False
    return array


class MatchupProvider:
    """Read-only matchup matrix.

    Args:
        ratings: ``ratings[species_id][opponent_id][shields] = battle rating``.
            Non-choosable battle forms are folded into their selectable form.
        species: Used to resolve display names for threat ranking.
        rankings: Overall scores that order threats and weight weaknesses.
            Without it every threat scores 0 and ``get_top_threats`` is empty.
    """

    def __init__(
        self,
        ratings: Optional[RatingTable] = None,
        *,
        species: Optional["SpeciesRepository"] = None,
        rankings: Optional["RankingProvider"] = None,
    ):
        ratings = ratings or {}
        self._species = species
        self._rankings = rankings

        rows: dict[str, int] = {}
        cols: dict[str, int] = {}
        for species_id, opponents in ratings.items():
            rows.setdefault(normalize_species_id(species_id), len(rows))
            for opponent_id in opponents:
                cols.setdefault(normalize_species_id(opponent_id), len(cols))
        self._rows = rows
        self._cols = cols
        self._row_ids = list(rows)
        self._col_ids = list(cols)

        grid = np.full((len(rows), len(cols), len(SHIELD_SCENARIOS)), np.nan)
        for species_id, opponents in ratings.items():
            r = rows[normalize_species_id(species_id)]
            for opponent_id, scenarios in opponents.items():
                c = cols[normalize_species_id(opponent_id)]
                for shields, rating in scenarios.items():
                    if rating is not None and int(shields) in SHIELD_SCENARIOS:
                        grid[r, c, int(shields)] = float(rating)
        self._grid = _freeze(grid)

        present = ~np.isnan(grid)
        weights = np.where(present, SCENARIO_WEIGHTS, 0.0)
        total_weight = weights.sum(axis=2)
        weighted_sum = (np.where(present, grid, 0.0) * SCENARIO_WEIGHTS).sum(axis=2)
        combined = np.divide(
            weighted_sum,
            total_weight,
            out=np.full(total_weight.shape, np.nan),
            where=total_weight > 0,
        )
        self._combined = _freeze(combined)
        self._has = _freeze(total_weight > 0)
        wins = np.zeros(combined.shape, dtype=bool)
        np.greater(combined, WIN_THRESHOLD, out=wins, where=self._has)
        self._wins = _freeze(wins)

        mean = np.full(len(rows), NEUTRAL_RATING)
        median = np.full(len(rows), NEUTRAL_RATING)
        with_data = self._has.any(axis=1)
        if with_data.any():
            mean[with_data] = np.nanmean(combined[with_data], axis=1)
            median[with_data] = np.nanmedian(combined[with_data], axis=1)
        self._mean = _freeze(mean)
        self._median = _freeze(median)

        col_scores = np.array([self._threat_score(c) for c in self._col_ids], dtype=float)
        self._weakness_weights = _freeze(
            np.array(
                [banded_weight(s, WEAKNESS_WEIGHT_BANDS, WEAKNESS_WEIGHT_FLOOR) for s in col_scores],
                dtype=float,
            )
        )

        scored = [(sid, self._threat_score(sid)) for sid in self._row_ids]
        scored = [entry for entry in scored if entry[1] > 0]
        scored.sort(key=lambda entry: entry[1], reverse=True)
        self._ranked_threats = [sid for sid, _ in scored]
        self._threat_scores = dict(scored)

    @classmethod
    def empty(cls) -> "MatchupProvider":
        return cls()

    # ------------------------------------------------------------------ #
    # Lookups
    # ------------------------------------------------------------------ #

    def has_data(self) -> bool:
        return bool(self._has.any())

    @property
    def species_ids(self) -> list[str]:
        return list(self._row_ids)

    @property
    def opponent_ids(self) -> list[str]:
        return list(self._col_ids)

    def _threat_score(self, species_id: str) -> float:
        if self._rankings is None:
            return 0.0
        if self._species is not None:
            name = self._species.ranking_name(species_id)
        else:
            name = species_id_to_ranking_name(species_id)
        return self._rankings.get_all_rankings(name).overall

    def _row(self, species_id: str) -> Optional[int]:
        return self._rows.get(normalize_species_id(species_id))

    def _col(self, species_id: str) -> Optional[int]:
        return self._cols.get(normalize_species_id(species_id))

    def _team_rows(self, team: Sequence[str]) -> list[int]:
        rows = [self._row(member) for member in team]
        return [r for r in rows if r is not None]

    def get_matchup_result(self, species_id: str, opponent_id: str) -> Optional[float]:
        """Rating weighted 0.3/0.5/0.2 over the 0/1/2-shield scenarios present."""
        r, c = self._row(species_id), self._col(opponent_id)
        if r is None or c is None or not self._has[r, c]:
            return None
        return float(self._combined[r, c])

    def get_shield_scenario_result(
        self, species_id: str, opponent_id: str, shields: int
    ) -> Optional[float]:
        r, c = self._row(species_id), self._col(opponent_id)
        if r is None or c is None or shields not in SHIELD_SCENARIOS:
            return None
        value = self._grid[r, c, shields]
        return None if np.isnan(value) else float(value)

    def wins_matchup(self, species_id: str, opponent_id: str) -> bool:
        r, c = self._row(species_id), self._col(opponent_id)
        if r is None or c is None:
            return False
        return bool(self._wins[r, c])

    def get_losses(self, species_id: str) -> list[str]:
        r = self._row(species_id)
        if r is None:
            return []
        ratings = np.nan_to_num(self._combined[r], nan=WIN_THRESHOLD)
        losing = np.flatnonzero(self._has[r] & (ratings < WIN_THRESHOLD))
        return [self._col_ids[c] for c in losing]

    def get_worst_matchups(self, species_id: str, count: int = 10) -> list[str]:
        r = self._row(species_id)
        if r is None:
            return []
        ratings = np.nan_to_num(self._combined[r], nan=WIN_THRESHOLD)
        losing = np.flatnonzero(self._has[r] & (ratings < WIN_THRESHOLD))
        order = losing[np.argsort(ratings[losing], kind="stable")]
        return [self._col_ids[c] for c in order[: max(0, count)]]

    # ------------------------------------------------------------------ #
    # Team-level views
    # ------------------------------------------------------------------ #

    def counter_counts(self, team: Sequence[str], threats: Sequence[str]) -> np.ndarray:
        """Number of team members beating each threat, aligned with ``threats``."""
        counts = np.zeros(len(threats), dtype=int)
        rows = self._team_rows(team)
        if not rows:
            return counts
        positions, cols = [], []
        for i, threat in enumerate(threats):
            c = self._col(threat)
            if c is not None:
                positions.append(i)
                cols.append(c)
        if cols:
            counts[positions] = self._wins[np.ix_(rows, cols)].sum(axis=0)
        return counts

    def counters_threats(self, species_id: str, threats: Sequence[str]) -> int:
        return int(self.counter_counts([species_id], threats).sum())

    def calculate_team_coverage(self, team: Sequence[str], threats: Sequence[str]) -> float:
        """Fraction of ``threats`` beaten by at least one member (0 for no threats)."""
        if not threats:
            return 0.0
        return float((self.counter_counts(team, threats) > 0).mean())

    def _weak_columns(self, team: Sequence[str]) -> np.ndarray:
        rows = self._team_rows(team)
        if not rows:
            return np.zeros(len(self._col_ids), dtype=bool)
        seen = self._has[rows].any(axis=0)
        beaten = self._wins[rows].any(axis=0)
        return seen & ~beaten

    def get_weighted_team_weaknesses(self, team: Sequence[str]) -> list[WeightedThreat]:
        """Opponents some member has faced and no member beats, with their weakness weight."""
        weak = np.flatnonzero(self._weak_columns(team))
        return [WeightedThreat(self._col_ids[c], float(self._weakness_weights[c])) for c in weak]

    def team_weakness_weight(self, team: Sequence[str]) -> float:
        return float(self._weakness_weights[self._weak_columns(team)].sum())

    def get_top_threats(self, count: int = 50) -> list[str]:
        """Species with simulation data, ordered by overall ranking score."""
        return self._ranked_threats[: max(0, count)]

    def get_single_counter_threats(
        self, team: Sequence[str], top_n: int = 50
    ) -> list[SingleCounterThreat]:
        threats = self.get_top_threats(top_n)
        counts = self.counter_counts(team, threats)
        result: list[SingleCounterThreat] = []
        for threat, count in zip(threats, counts):
            if count != 1:
                continue
            counter = next(m for m in team if self.wins_matchup(m, threat))
            weight = banded_weight(
                self._threat_scores.get(threat, 0.0),
                SINGLE_COUNTER_WEIGHT_BANDS,
                SINGLE_COUNTER_WEIGHT_FLOOR,
            )
            result.append(SingleCounterThreat(threat, weight, counter))
        return result

    # ------------------------------------------------------------------ #
    # Per-species aggregates
    # ------------------------------------------------------------------ #

    def get_mean_battle_rating(self, species_id: str) -> float:
        r = self._row(species_id)
        return NEUTRAL_RATING if r is None else float(self._mean[r])

    def get_median_battle_rating(self, species_id: str) -> float:
        r = self._row(species_id)
        return NEUTRAL_RATING if r is None else float(self._median[r])

    def get_matchup_quality_score(self, species_id: str) -> float:
        """(mean + median) / 2000; 0.5 when the species has no data."""
        return (
            self.get_mean_battle_rating(species_id) + self.get_median_battle_rating(species_id)
        ) / 2000
