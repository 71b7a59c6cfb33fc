from __future__ import annotations

from abc import ABC, abstractmethod
from concurrent.futures import Executor
from typing import ClassVar, Optional, Sequence

from teamevo.data.game_data import GameData
from teamevo.data.models import Species
from teamevo.team.chromosome import Chromosome, TournamentMode


class FitnessStrategy(ABC):
    """Pure scoring of a chromosome against static game data.

    ``components`` returns the already-weighted terms so callers can inspect
    what drives a score; ``evaluate`` is their sum. Implementations must not
    mutate the chromosome or any shared state other than internal caches.
    """

    name: ClassVar[str]

    def __init__(self, data: GameData):
        self.data = data

    @abstractmethod
    def components(self, chromosome: Chromosome, mode: TournamentMode) -> dict[str, float]:
        """Weighted fitness terms keyed by name."""

    def evaluate(self, chromosome: Chromosome, mode: TournamentMode) -> float:
        return float(sum(self.components(chromosome, mode).values()))

    def __call__(self, chromosome: Chromosome, mode: TournamentMode) -> float:
        return self.evaluate(chromosome, mode)

    def members(self, team: Sequence[str]) -> list[Species]:
        """Known species of ``team`` in slot order; unknown ids are skipped."""
        found = (self.data.species.get(species_id) for species_id in team)
        return [s for s in found if s is not None]


def evaluate_population(
    population: Sequence[Chromosome],
    strategy: FitnessStrategy,
    mode: TournamentMode,
    executor: Optional[Executor] = None,
) -> None:
    """Assign ``fitness`` to every chromosome, optionally on a worker pool.

    Scores are written back in population order once all are computed, so
    the result is the same with or without an executor.
    """
    if executor is None:
        scores = [strategy.evaluate(c, mode) for c in population]
    else:
        scores = list(executor.map(lambda c: strategy.evaluate(c, mode), population))
    for chromosome, score in zip(population, scores):
        chromosome.fitness = score
