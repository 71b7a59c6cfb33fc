from concurrent.futures import ThreadPoolExecutor

import pytest

from teamevo.coverage.type_chart import defensive_coverage, offensive_coverage
from teamevo.evolution.fitness import (
    FitnessAlgorithm,
    IndividualFitness,
    MovesetAdvisor,
    TeamSynergyFitness,
    evaluate_population,
    get_fitness_strategy,
    move_synergy_score,
    pressure_score,
)
from teamevo.evolution.fitness.individual import WEIGHTS as INDIVIDUAL_WEIGHTS
from teamevo.evolution.fitness.moveset import pacing_score
from teamevo.evolution.fitness.team_synergy import WEIGHTS as SYNERGY_WEIGHTS
from teamevo.team.chromosome import Chromosome, TournamentMode

PLAY_TEAM = ["lanturn", "medicham", "azumarill", "registeel", "altaria", "umbreon"]


def test_strategy_registry(game_data):
    assert isinstance(get_fitness_strategy("individual", game_data), IndividualFitness)
    assert isinstance(get_fitness_strategy(FitnessAlgorithm.TEAM_SYNERGY, game_data), TeamSynergyFitness)
    with pytest.raises(ValueError):
        get_fitness_strategy("bogus", game_data)


class TestIndividualFitness:
    @pytest.fixture
    def fitness(self, game_data):
        return IndividualFitness(game_data)

    def members(self, game_data, *ids):
        return [game_data.species.get(i) for i in ids]

    def test_gbl_components(self, fitness, lanturn_team):
        components = fitness.components(lanturn_team, TournamentMode.GBL)
        assert set(components) == set(INDIVIDUAL_WEIGHTS) | {"surprise", "anchor_synergy"}
        assert fitness.evaluate(lanturn_team, TournamentMode.GBL) == pytest.approx(sum(components.values()))
        assert fitness(lanturn_team, TournamentMode.GBL) == fitness.evaluate(lanturn_team, TournamentMode.GBL)

    def test_play_pokemon_components(self, fitness):
        chromosome = Chromosome(team=PLAY_TEAM)
        components = fitness.components(chromosome, TournamentMode.PLAY_POKEMON)
        assert "consistency" in components
        assert "surprise" not in components
        assert "anchor_synergy" not in components

    def test_evaluation_does_not_mutate(self, fitness, lanturn_team):
        before = lanturn_team.model_dump()
        fitness.evaluate(lanturn_team, TournamentMode.GBL)
        assert lanturn_team.model_dump() == before

    def test_ranking_score(self, fitness):
        assert fitness.ranking_score(["lanturn"]) == pytest.approx(0.9125)
        # average 68.25 falls in the lowest band
        assert fitness.ranking_score(["charizard"]) == pytest.approx(0.6825 * 0.2)
        assert fitness.ranking_score(["missingno"]) == 0.0

    def test_surprise_and_consistency(self, fitness):
        team = ["charizard", "marowak", "lanturn"]
        assert fitness.surprise_factor(team) == pytest.approx(0.2)
        assert fitness.consistency_score(team) == pytest.approx(1 / 3)

    def test_lineup_score(self, fitness):
        # lead and closer share water; five distinct types overall
        assert fitness.lineup_score(["lanturn", "medicham", "azumarill"]) == pytest.approx(0.7)
        assert fitness.lineup_score(["lanturn", "medicham"]) == 0.0

    def test_strategy_score_uses_best_lineup(self, fitness):
        team = PLAY_TEAM
        best = fitness.strategy_score(team, TournamentMode.PLAY_POKEMON)
        assert best >= fitness.lineup_score(team[:3])
        assert best <= 1.0

    def test_type_diversity(self, fitness, game_data):
        waters = self.members(game_data, "lanturn", "azumarill", "swampert")
        assert fitness.type_diversity_score(waters) == pytest.approx(0.3)
        varied = self.members(game_data, "registeel", "umbreon", "altaria")
        assert fitness.type_diversity_score(varied) == 1.0

    def test_type_synergy_prefers_complementary_typing(self, fitness, game_data):
        stacked = self.members(game_data, "lanturn", "azumarill", "swampert")
        complementary = self.members(game_data, "registeel", "altaria", "swampert")
        assert fitness.type_synergy_score(complementary) > fitness.type_synergy_score(stacked)

    def test_stat_balance(self, fitness, game_data):
        tanks = self.members(game_data, "registeel", "umbreon", "lanturn")
        assert fitness.stat_balance_score(tanks) == pytest.approx(1.45)
        assert fitness.stat_balance_score([]) == 0.0

    def test_defensive_coverage_is_capped(self, fitness, game_data):
        members = self.members(game_data, "registeel", "altaria", "azumarill", "venusaur", "umbreon", "swampert")
        # every attack type is resisted; fire, grass, ice, fighting and fairy each hit two members
        assert defensive_coverage([m.types for m in members]) == 13
        move_types = set().union(*(fitness._charged_move_types(m) for m in members))
        offensive = offensive_coverage(move_types) / 18
        assert fitness.type_coverage_score(members) == pytest.approx(offensive * 0.4 + 0.6)

    @pytest.mark.parametrize("raw, share", [(14, 0.6), (10, 0.6), (5, 0.3), (-3, 0.0)])
    def test_defensive_share_clamps(self, fitness, game_data, monkeypatch, raw, share):
        monkeypatch.setattr("teamevo.evolution.fitness.individual.defensive_coverage", lambda types: raw)
        members = self.members(game_data, "lanturn")
        offensive = offensive_coverage(fitness._charged_move_types(members[0])) / 18
        assert fitness.type_coverage_score(members) == pytest.approx(offensive * 0.4 + share)

    def test_scores_are_bounded(self, fitness, game_data, lanturn_team):
        members = fitness.members(lanturn_team.team)
        assert 0.0 <= fitness.type_coverage_score(members) <= 1.0
        assert 0.0 <= fitness.meta_threat_score(members) <= 1.0
        assert 0.0 <= fitness.anchor_synergy_score(lanturn_team.team, [0]) <= 1.0
        assert fitness.simulation_score(lanturn_team.team) >= 0.0
        assert fitness.energy_score(members, lanturn_team.team) >= 0.0

    def test_anchor_synergy_needs_teammates(self, fitness):
        assert fitness.anchor_synergy_score(["lanturn", "medicham", "azumarill"], [0, 1, 2]) == 0.0

    def test_neutral_without_rankings_or_simulations(self, bare_game_data, lanturn_team):
        fitness = IndividualFitness(bare_game_data)
        assert fitness.ranking_score(lanturn_team.team) == 0.0
        assert fitness.simulation_score(lanturn_team.team) == 0.0
        assert fitness.evaluate(lanturn_team, TournamentMode.GBL) >= 0.0


class TestTeamSynergyFitness:
    @pytest.fixture
    def fitness(self, game_data):
        return TeamSynergyFitness(game_data)

    def test_components(self, fitness, lanturn_team):
        gbl = fitness.components(lanturn_team, TournamentMode.GBL)
        assert set(gbl) == set(SYNERGY_WEIGHTS) | {"mode_bonus"}
        assert gbl["mode_bonus"] == pytest.approx(0.1)

        play = fitness.components(Chromosome(team=PLAY_TEAM), TournamentMode.PLAY_POKEMON)
        assert play["mode_bonus"] == 0.0

    def test_sub_scores_are_bounded(self, fitness, game_data, lanturn_team):
        members = fitness.members(lanturn_team.team)
        assert 0.0 <= fitness.coverage_matrix_score(members) <= 1.0
        assert 0.0 <= fitness.shield_balance_score(lanturn_team.team) <= 1.0
        assert 0.0 <= fitness.core_break_score(lanturn_team.team) <= 1.0

    def test_fast_move_diversity(self, fitness, game_data):
        shared = [game_data.species.get("charizard"), game_data.species.get("marowak_alolan")]
        distinct = [game_data.species.get("lanturn"), game_data.species.get("medicham")]
        assert fitness.fast_move_diversity_score(shared) == 0.5
        assert fitness.fast_move_diversity_score(distinct) == 1.0

    def test_individual_quality(self, fitness):
        assert fitness.individual_quality_score(["lanturn", "medicham"]) == pytest.approx(
            (0.9125 + 0.9325) / 2
        )

    def test_without_threat_data(self, bare_game_data, lanturn_team):
        fitness = TeamSynergyFitness(bare_game_data)
        components = fitness.components(lanturn_team, TournamentMode.GBL)
        assert components["coverage_matrix"] == 0.0
        assert components["shield_balance"] == 0.0
        assert components["core_break"] == pytest.approx(0.15)
        assert fitness.evaluate(lanturn_team, TournamentMode.GBL) == pytest.approx(0.35)


class TestMovesets:
    def move(self, game_data, move_id):
        return game_data.species.get_move(move_id)

    def test_move_synergy(self, game_data):
        hydro, quake = self.move(game_data, "HYDRO_CANNON"), self.move(game_data, "EARTHQUAKE")
        surf = self.move(game_data, "SURF")
        lunge, discharge = self.move(game_data, "LUNGE"), self.move(game_data, "DISCHARGE")

        assert move_synergy_score(hydro, quake) == pytest.approx(3.0)
        assert move_synergy_score(surf, surf) == pytest.approx(0.5)
        assert move_synergy_score(lunge, discharge) == pytest.approx(1.5)
        assert move_synergy_score(None, surf) == 0.0

    def test_pressure_and_pacing(self, game_data):
        bubble, surf = self.move(game_data, "BUBBLE"), self.move(game_data, "SURF")
        assert pressure_score(bubble, surf) == pytest.approx(11 / 3 / 45 * 5)
        assert pressure_score(bubble, None) == 0.0
        assert pacing_score(surf, 11) == 0.3
        assert pacing_score(surf, 8) == 0.1
        assert pacing_score(surf, 7) == -0.2
        assert pacing_score(None, 10) == 0.0

    def test_recommend_uses_learnable_moves(self, game_data):
        advisor = MovesetAdvisor(game_data)
        for species_id in ["lanturn", "azumarill", "registeel", "skarmory"]:
            species = game_data.species.get(species_id)
            moveset = advisor.recommend(species, ["lanturn", "azumarill", species_id])
            assert moveset.fast_move in species.fast_moves
            assert set(moveset.charged_moves) <= set(species.charged_moves)
            assert len(set(moveset.charged_moves)) == 2

    def test_recommend_is_cached_per_team(self, game_data):
        advisor = MovesetAdvisor(game_data)
        lanturn = game_data.species.get("lanturn")
        first = advisor.recommend(lanturn, ["lanturn", "medicham", "azumarill"])
        second = advisor.recommend(lanturn, ["azumarill", "lanturn", "medicham"])
        assert first == second
        assert advisor.cache_info().hits == 1
        assert first.fast_move == "SPARK"
        assert set(first.charged_moves) == {"SURF", "THUNDERBOLT"}


def test_evaluate_population_with_executor(game_data):
    strategy = IndividualFitness(game_data)
    teams = [
        ["lanturn", "medicham", "azumarill"],
        ["registeel", "altaria", "swampert"],
        ["umbreon", "walrein", "skarmory"],
    ]
    sequential = [Chromosome(team=t) for t in teams]
    threaded = [Chromosome(team=t) for t in teams]

    evaluate_population(sequential, strategy, TournamentMode.GBL)
    with ThreadPoolExecutor(max_workers=3) as executor:
        evaluate_population(threaded, strategy, TournamentMode.GBL, executor)

    assert [c.fitness for c in sequential] == pytest.approx([c.fitness for c in threaded])
    assert all(c.fitness != 0.0 for c in sequential)
