from teamevo.data.game_data import GameData
from teamevo.data.matchups import MatchupProvider
from teamevo.data.models import (
    BaseStats,
    Move,
    Moveset,
    RankingEntry,
    RankingRole,
    RankingSummary,
    Species,
)
from teamevo.data.rankings import RankingProvider
from teamevo.data.species import SpeciesRepository

__all__ = [
    "BaseStats",
    "GameData",
    "MatchupProvider",
    "Move",
    "Moveset",
    "RankingEntry",
    "RankingProvider",
    "RankingRole",
    "RankingSummary",
    "Species",
    "SpeciesRepository",
]
