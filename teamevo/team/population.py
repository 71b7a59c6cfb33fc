from __future__ import annotations

import math
from typing import Sequence

from teamevo.team.chromosome import Chromosome


def sort_by_fitness(population: Sequence[Chromosome]) -> list[Chromosome]:
    """Best first; ties keep population order."""
    return sorted(population, key=lambda c: c.fitness, reverse=True)


def get_best_chromosome(population: Sequence[Chromosome]) -> Chromosome:
    return max(population, key=lambda c: c.fitness)


def get_worst_chromosome(population: Sequence[Chromosome]) -> Chromosome:
    return min(population, key=lambda c: c.fitness)


def calculate_diversity(population: Sequence[Chromosome]) -> float:
    """Unique teams (ignoring slot order) divided by population size."""
    if not population:
        return 0.0
    unique = {c.team_key() for c in population}
    return len(unique) / len(population)


def has_converged(
    population: Sequence[Chromosome],
    threshold: float = 0.01,
    top_fraction: float = 0.3,
) -> bool:
    """True when the top ``ceil(top_fraction * n)`` fitness values span less than ``threshold``."""
    if not population:
        return False
    top = sort_by_fitness(population)[: max(1, math.ceil(len(population) * top_fraction))]
    return top[0].fitness - top[-1].fitness < threshold
