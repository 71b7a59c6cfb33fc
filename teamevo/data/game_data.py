from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Mapping, Optional, Sequence

from teamevo.data.matchups import MatchupProvider, RatingTable
from teamevo.data.models import Move, RankingEntry, RankingRole, RankingSummary, Species
from teamevo.data.rankings import RankingProvider
from teamevo.data.species import SpeciesRepository


@dataclass(frozen=True)
class GameData:
    """Immutable bundle of the static collaborators every engine part reads."""

    species: SpeciesRepository = field(default_factory=lambda: SpeciesRepository(()))
    rankings: RankingProvider = field(default_factory=RankingProvider)
    matchups: MatchupProvider = field(default_factory=MatchupProvider)

    @classmethod
    def build(
        cls,
        species: Iterable[Species] = (),
        moves: Iterable[Move] = (),
        ranking_tables: Optional[Mapping[RankingRole, Sequence[RankingEntry]]] = None,
        ratings: Optional[RatingTable] = None,
    ) -> "GameData":
        repository = SpeciesRepository(species, moves)
        rankings = RankingProvider(ranking_tables)
        matchups = MatchupProvider(ratings, species=repository, rankings=rankings)
        return cls(species=repository, rankings=rankings, matchups=matchups)

    @classmethod
    def empty(cls) -> "GameData":
        return cls.build()

    def ranking_summary(self, species_id: str) -> RankingSummary:
        return self.rankings.get_all_rankings(self.species.ranking_name(species_id))
