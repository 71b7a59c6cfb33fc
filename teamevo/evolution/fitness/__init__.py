from enum import Enum

from teamevo.data.game_data import GameData
from teamevo.evolution.fitness.base import FitnessStrategy, evaluate_population
from teamevo.evolution.fitness.individual import IndividualFitness
from teamevo.evolution.fitness.moveset import (
    MovesetAdvisor,
    move_synergy_score,
    pressure_score,
)
from teamevo.evolution.fitness.team_synergy import TeamSynergyFitness


class FitnessAlgorithm(str, Enum):
    INDIVIDUAL = "individual"
    TEAM_SYNERGY = "teamSynergy"


_STRATEGIES: dict[FitnessAlgorithm, type[FitnessStrategy]] = {
    FitnessAlgorithm.INDIVIDUAL: IndividualFitness,
    FitnessAlgorithm.TEAM_SYNERGY: TeamSynergyFitness,
}


def get_fitness_strategy(algorithm: FitnessAlgorithm | str, data: GameData) -> FitnessStrategy:
    """Instantiate the scoring strategy for ``algorithm``.

    Raises:
        ValueError: unknown algorithm name.
    """
    return _STRATEGIES[FitnessAlgorithm(algorithm)](data)


__all__ = [
    "FitnessAlgorithm",
    "FitnessStrategy",
    "IndividualFitness",
    "MovesetAdvisor",
    "TeamSynergyFitness",
    "evaluate_population",
    "get_fitness_strategy",
    "move_synergy_score",
    "pressure_score",
]
