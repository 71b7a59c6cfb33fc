import numpy as np
import pytest

from teamevo.evolution.diagnostics import RepairKind, RepairLog
from teamevo.evolution.operators import (
    adaptive_mutation_rate,
    create_next_generation,
    crossover,
    mutate,
    select_elites,
    tournament_selection,
)
from teamevo.evolution.strategies.selectors import (
    TopFitnessEliteSelector,
    TournamentParentSelector,
)
from teamevo.team.chromosome import Chromosome

POOL = [
    "lanturn", "medicham", "azumarill", "registeel", "altaria", "swampert",
    "umbreon", "sableye", "walrein", "skarmory", "bastiodon", "trevenant",
]


def anchored_population():
    teams = [
        ["lanturn", "medicham", "azumarill"],
        ["lanturn", "registeel", "altaria"],
        ["lanturn", "umbreon", "sableye"],
        ["lanturn", "walrein", "skarmory"],
        ["lanturn", "bastiodon", "trevenant"],
        ["lanturn", "swampert", "medicham"],
    ]
    return [
        Chromosome(team=team, anchors=[0], fitness=float(i) / 10)
        for i, team in enumerate(teams)
    ]


class TestSelection:
    def test_empty_population(self, rng):
        with pytest.raises(ValueError):
            tournament_selection([], rng)

    def test_large_tournament_finds_the_best(self, rng):
        population = anchored_population()
        assert tournament_selection(population, rng, tournament_size=100).fitness == 0.5

    def test_returns_member_not_copy(self, rng):
        population = anchored_population()
        assert any(tournament_selection(population, rng) is c for c in population)

    def test_select_elites_copies(self):
        population = anchored_population()
        elites = select_elites(population, 2)
        assert [e.fitness for e in elites] == [0.5, 0.4]
        assert all(e is not c for e in elites for c in population)
        assert select_elites(population, 0) == []

    def test_selector_objects(self, rng):
        population = anchored_population()
        assert TournamentParentSelector(100)(population, rng).fitness == 0.5
        assert len(TopFitnessEliteSelector()(population, 3)) == 3
        with pytest.raises(ValueError):
            TournamentParentSelector(0)


class TestCrossover:
    def test_children_keep_invariants(self, game_data, rng):
        population = anchored_population()
        for _ in range(200):
            first, second = rng.choice(len(population), size=2, replace=False)
            child = crossover(population[first], population[second], game_data.species, rng)
            assert child.team[0] == "lanturn"
            assert child.anchors == [0]
            assert len(child.team) == 3
            assert game_data.species.validate_team_uniqueness(child.team)

    def test_parents_untouched(self, game_data, rng):
        parent1, parent2 = anchored_population()[:2]
        crossover(parent1, parent2, game_data.species, rng)
        assert parent1.team == ["lanturn", "medicham", "azumarill"]
        assert parent2.team == ["lanturn", "registeel", "altaria"]

    def test_fully_anchored_parent(self, game_data, rng):
        parent = Chromosome(team=["lanturn", "medicham", "azumarill"], anchors=[0, 1, 2])
        other = Chromosome(team=["lanturn", "registeel", "altaria"], anchors=[0, 1, 2])
        child = crossover(parent, other, game_data.species, rng)
        assert child.team == parent.team
        assert child is not parent


class TestMutation:
    def test_zero_rate_returns_input(self, game_data, rng, lanturn_team):
        assert mutate(lanturn_team, POOL, game_data.species, rng, 0.0) is lanturn_team

    def test_mutation_changes_one_free_slot(self, game_data, rng, lanturn_team):
        mutated = mutate(lanturn_team, POOL, game_data.species, rng, 1.0)
        assert mutated is not lanturn_team
        assert mutated.team[0] == "lanturn"
        changed = [i for i in range(3) if mutated.team[i] != lanturn_team.team[i]]
        assert len(changed) == 1
        assert changed[0] in (1, 2)
        assert game_data.species.validate_team_uniqueness(mutated.team)

    def test_no_alternative_is_recorded(self, game_data, rng, lanturn_team):
        repairs = RepairLog()
        pool = ["lanturn", "medicham", "azumarill"]
        result = mutate(lanturn_team, pool, game_data.species, rng, 1.0, repairs=repairs, generation=4)
        assert result is lanturn_team
        assert repairs.events[0].kind is RepairKind.MUTATION_REVERTED
        assert repairs.events[0].generation == 4

    def test_shadow_form_of_a_member_is_never_chosen(self, game_data, rng):
        chromosome = Chromosome(team=["swampert", "medicham", "azumarill"], anchors=[1])
        for _ in range(50):
            mutated = mutate(chromosome, ["swampert_shadow", "registeel"], game_data.species, rng, 1.0)
            assert "swampert_shadow" not in mutated.team


class TestNextGeneration:
    def test_size_anchors_and_elites(self, game_data, rng):
        population = anchored_population()
        repairs = RepairLog()
        offspring = create_next_generation(
            population,
            POOL,
            game_data.species,
            rng,
            elite_count=2,
            crossover_rate=0.8,
            mutation_rate=0.5,
            repairs=repairs,
            generation=1,
        )

        assert len(offspring) == len(population)
        assert [c.team for c in offspring[:2]] == [population[5].team, population[4].team]
        for child in offspring:
            assert child.team[0] == "lanturn"
            assert child.anchors == [0]
            assert game_data.species.validate_team_uniqueness(child.team)
        assert all(child is not parent for child in offspring for parent in population)

    def test_with_selector_objects(self, game_data, rng):
        population = anchored_population()
        offspring = create_next_generation(
            population,
            POOL,
            game_data.species,
            rng,
            elite_count=1,
            crossover_rate=1.0,
            mutation_rate=0.0,
            parent_selector=TournamentParentSelector(2),
            elite_selector=TopFitnessEliteSelector(),
        )
        assert len(offspring) == len(population)
        assert offspring[0].fitness == 0.5


@pytest.mark.parametrize(
    "diversity, base, expected",
    [
        (0.2, 0.2, 0.4),
        (0.1, 0.4, 0.5),
        (0.5, 0.2, 0.2),
        (0.3, 0.2, 0.2),
        (0.7, 0.2, 0.2),
        (0.9, 0.2, 0.1),
        (0.9, 0.05, 0.05),
    ],
)
def test_adaptive_mutation_rate(diversity, base, expected):
    assert adaptive_mutation_rate(diversity, base) == pytest.approx(expected)


def test_repair_log_counts_and_subscribers():
    seen = []
    repairs = RepairLog()
    repairs.subscribe(seen.append)
    repairs.emit(RepairKind.ANCHOR_DRIFT_FILTERED, generation=2, count=3)
    repairs.emit(RepairKind.POPULATION_REFILLED, generation=2, count=3)
    repairs.emit(RepairKind.ANCHOR_DRIFT_FILTERED, generation=5, count=1)

    assert len(repairs) == 3
    assert [e.kind for e in seen] == [
        RepairKind.ANCHOR_DRIFT_FILTERED,
        RepairKind.POPULATION_REFILLED,
        RepairKind.ANCHOR_DRIFT_FILTERED,
    ]
    assert repairs.counts() == {"anchor_drift_filtered": 4, "population_refilled": 3}


def test_repair_log_keeps_recent_events_but_counts_all():
    repairs = RepairLog(max_events=2)
    for generation in range(1, 6):
        repairs.emit(RepairKind.POPULATION_REFILLED, generation=generation, count=2)

    assert len(repairs) == 2
    assert [e.generation for e in repairs.events] == [4, 5]
    assert repairs.recorded == 5
    assert repairs.counts() == {"population_refilled": 10}
