"""
Genetic operators over ``Chromosome``.

Every operator returns a chromosome that satisfies the team invariants. When
a derived child would break uniqueness or touch an anchor slot, the operator
falls back to a copy of its input and records the repair instead of raising.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional, Sequence

from loguru import logger
import numpy as np

from teamevo.data.species import SpeciesRepository
from teamevo.evolution.diagnostics import RepairKind, RepairLog
from teamevo.team.chromosome import Chromosome
from teamevo.team.population import sort_by_fitness

if TYPE_CHECKING:
    from teamevo.evolution.strategies.selectors import EliteSelector, ParentSelector

LOW_DIVERSITY = 0.3
HIGH_DIVERSITY = 0.7
MAX_MUTATION_RATE = 0.5
MIN_MUTATION_RATE = 0.05


def _is_sound(child: Chromosome, reference: Chromosome, species: SpeciesRepository) -> bool:
    return species.validate_team_uniqueness(child.team) and child.anchors_match(reference)


def tournament_selection(
    population: Sequence[Chromosome], rng: np.random.Generator, tournament_size: int = 3
) -> Chromosome:
    """Fittest of ``tournament_size`` members drawn with replacement; first wins ties."""
    if not population:
        raise ValueError("Cannot select from an empty population")
    best: Optional[Chromosome] = None
    for index in rng.integers(len(population), size=tournament_size):
        contender = population[int(index)]
        if best is None or contender.fitness > best.fitness:
            best = contender
    return best


def crossover(
    parent1: Chromosome,
    parent2: Chromosome,
    species: SpeciesRepository,
    rng: np.random.Generator,
    *,
    repairs: Optional[RepairLog] = None,
    generation: Optional[int] = None,
) -> Chromosome:
    """Single-point crossover over mutable slots.

    From the crossover point on, each mutable slot takes parent2's species
    unless its base species is already in the child.
    """
    mutable = parent1.mutable_slots()
    if not mutable:
        return parent1.clone()

    point = mutable[int(rng.integers(len(mutable)))]
    child = parent1.clone()
    swapped = [i for i in mutable if i >= point]
    used = {
        species.base_species_key(member)
        for i, member in enumerate(child.team)
        if i not in swapped
    }

    for i in swapped:
        candidate = parent2.team[i] if i < len(parent2.team) else child.team[i]
        key = species.base_species_key(candidate)
        if key not in used:
            child.team[i] = candidate
            used.add(key)
        else:
            used.add(species.base_species_key(child.team[i]))

    if not _is_sound(child, parent1, species):
        if repairs is not None:
            repairs.emit(
                RepairKind.CROSSOVER_REVERTED,
                generation=generation,
                slot=point,
                message=f"child {child.team} rejected, kept parent {parent1.team}",
            )
        return parent1.clone()
    return child


def mutate(
    chromosome: Chromosome,
    pool: Sequence[str],
    species: SpeciesRepository,
    rng: np.random.Generator,
    rate: float,
    *,
    repairs: Optional[RepairLog] = None,
    generation: Optional[int] = None,
) -> Chromosome:
    """With probability ``rate``, swap one mutable slot for an unused pool member."""
    if rng.random() >= rate:
        return chromosome
    mutable = chromosome.mutable_slots()
    if not mutable:
        return chromosome

    slot = mutable[int(rng.integers(len(mutable)))]
    present = {species.base_species_key(member) for member in chromosome.team}
    alternatives = [s for s in pool if species.base_species_key(s) not in present]
    if not alternatives:
        if repairs is not None:
            repairs.emit(
                RepairKind.MUTATION_REVERTED,
                generation=generation,
                slot=slot,
                message="no unused species left in pool",
            )
        return chromosome

    mutated = chromosome.clone()
    mutated.team[slot] = alternatives[int(rng.integers(len(alternatives)))]
    if not _is_sound(mutated, chromosome, species):
        if repairs is not None:
            repairs.emit(
                RepairKind.MUTATION_REVERTED,
                generation=generation,
                slot=slot,
                actual=mutated.team[slot],
                message="mutated team rejected",
            )
        return chromosome
    return mutated


def select_elites(population: Sequence[Chromosome], count: int) -> list[Chromosome]:
    """Top ``count`` by fitness, deep-copied."""
    return [c.clone() for c in sort_by_fitness(population)[: max(0, count)]]


def create_next_generation(
    population: Sequence[Chromosome],
    pool: Sequence[str],
    species: SpeciesRepository,
    rng: np.random.Generator,
    *,
    elite_count: int,
    crossover_rate: float,
    mutation_rate: float,
    tournament_size: int = 3,
    parent_selector: Optional["ParentSelector"] = None,
    elite_selector: Optional["EliteSelector"] = None,
    repairs: Optional[RepairLog] = None,
    generation: Optional[int] = None,
) -> list[Chromosome]:
    """Elites plus children until the population size is restored."""
    if elite_selector is not None:
        next_population = elite_selector(population, elite_count)
    else:
        next_population = select_elites(population, elite_count)

    def pick() -> Chromosome:
        if parent_selector is not None:
            return parent_selector(population, rng)
        return tournament_selection(population, rng, tournament_size)

    while len(next_population) < len(population):
        parent1, parent2 = pick(), pick()
        if rng.random() < crossover_rate:
            child = crossover(
                parent1, parent2, species, rng, repairs=repairs, generation=generation
            )
        else:
            child = parent1.clone()
        child = mutate(
            child, pool, species, rng, mutation_rate, repairs=repairs, generation=generation
        )

        if not child.anchors_match(parent1):
            if repairs is not None:
                repairs.emit(
                    RepairKind.CHILD_ANCHOR_RESET,
                    generation=generation,
                    expected=str(parent1.team),
                    actual=str(child.team),
                    message="child anchors differ from parent",
                )
            child = parent1.clone()
        next_population.append(child)

    logger.debug(
        "[operators] Generation {}: {} elites, {} children",
        generation,
        min(elite_count, len(population)),
        len(next_population) - min(elite_count, len(population)),
    )
    return next_population


def adaptive_mutation_rate(diversity: float, base_rate: float = 0.2) -> float:
    """Raise the rate when the population collapses, lower it when it is spread out."""
    if diversity < LOW_DIVERSITY:
        return min(base_rate * 2, MAX_MUTATION_RATE)
    if diversity > HIGH_DIVERSITY:
        return max(base_rate * 0.5, MIN_MUTATION_RATE)
    return base_rate
