from abc import ABC, abstractmethod
from typing import Sequence

from loguru import logger
import numpy as np

from teamevo.evolution.operators import select_elites, tournament_selection
from teamevo.team.chromosome import Chromosome


class ParentSelector(ABC):
    """Abstract base class for picking one parent from a population."""

    @abstractmethod
    def __call__(
        self, population: Sequence[Chromosome], rng: np.random.Generator
    ) -> Chromosome:
        """Return the selected parent (not a copy)."""


class TournamentParentSelector(ParentSelector):
    """Fittest of ``tournament_size`` uniformly drawn members."""

    def __init__(self, tournament_size: int = 3):
        if tournament_size < 1:
            raise ValueError(f"tournament_size must be at least 1, got {tournament_size}")
        self.tournament_size = tournament_size

    def __call__(
        self, population: Sequence[Chromosome], rng: np.random.Generator
    ) -> Chromosome:
        return tournament_selection(population, rng, self.tournament_size)


class EliteSelector(ABC):
    @abstractmethod
    def __call__(self, population: Sequence[Chromosome], total: int) -> list[Chromosome]:
        pass


class TopFitnessEliteSelector(EliteSelector):
    def __call__(self, population: Sequence[Chromosome], total: int) -> list[Chromosome]:
        elites = select_elites(population, total)
        if elites:
            logger.debug(
                "TopFitnessEliteSelector: kept {} of {} (best={:.4f})",
                len(elites),
                len(population),
                elites[0].fitness,
            )
        return elites
