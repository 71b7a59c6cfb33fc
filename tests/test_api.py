import asyncio
import time

import pytest

from teamevo.evolution.engine import EngineConfig
from teamevo.evolution.fitness import FitnessAlgorithm, IndividualFitness
from teamevo.exceptions import PoolExhaustedError, ValidationError
from teamevo.runner import (
    GenerationOptions,
    PoolConfig,
    TeamResult,
    build_candidate_pool,
    generate_multiple_teams,
    generate_team,
    generate_team_sync,
    quick_generate_team,
    resolve_species,
)
from teamevo.team.chromosome import TournamentMode

ALL_IDS = [
    "lanturn", "medicham", "azumarill", "registeel", "altaria", "swampert", "umbreon",
    "sableye", "walrein", "skarmory", "bastiodon", "trevenant", "marowak_alolan",
    "venusaur", "galvantula", "swampert_shadow", "charizard", "marowak",
]


class TestGenerationOptions:
    def test_camel_case_request(self):
        options = GenerationOptions.from_request(
            {"mode": "GBL", "anchorPokemon": ["Lanturn"], "populationSize": 20, "generations": 10}
        )
        assert options.mode is TournamentMode.GBL
        assert options.anchor_pokemon == ["Lanturn"]
        assert options.population_size == 20
        assert options.algorithm is FitnessAlgorithm.INDIVIDUAL
        assert options.team_size == 3

    def test_snake_case_request(self):
        options = GenerationOptions(mode="PlayPokemon", excluded_pokemon=["charizard"], algorithm="teamSynergy")
        assert options.team_size == 6
        assert options.algorithm is FitnessAlgorithm.TEAM_SYNERGY

    @pytest.mark.parametrize(
        "payload",
        [
            {"mode": "Ultra"},
            {"mode": "GBL", "populationSize": 0},
            {"mode": "GBL", "generations": -1},
            {"mode": "GBL", "algorithm": "random"},
            {"mode": "GBL", "unexpected": True},
            {},
        ],
    )
    def test_invalid_requests(self, payload):
        with pytest.raises(ValidationError):
            GenerationOptions.from_request(payload)


class TestCandidatePool:
    def test_ranked_pool(self, game_data):
        pool = build_candidate_pool(game_data)
        assert len(pool) == 14
        assert "charizard" not in pool
        assert "venusaur" in pool

    def test_exclusions(self, game_data):
        pool = build_candidate_pool(game_data, {"medicham"})
        assert "medicham" not in pool

    def test_falls_back_to_released_species(self, bare_game_data):
        assert len(build_candidate_pool(bare_game_data)) == len(ALL_IDS)
        assert build_candidate_pool(bare_game_data, pool_config=PoolConfig(fallback_to_released=False)) == []

    def test_resolve_species(self, game_data):
        assert resolve_species(game_data, ["Lanturn", "medicham", "Marowak (Alolan)"]) == [
            "lanturn",
            "medicham",
            "marowak_alolan",
        ]
        with pytest.raises(ValidationError):
            resolve_species(game_data, ["Missingno"])


class TestGenerateTeam:
    async def test_anchored_gbl_team(self, game_data):
        result = await generate_team(
            {"mode": "GBL", "anchorPokemon": ["lanturn"], "populationSize": 20, "generations": 10, "seed": 1},
            game_data,
        )

        assert isinstance(result, TeamResult)
        assert result.team[0] == "lanturn"
        assert result.anchors == [0]
        assert result.team_size == 3
        assert game_data.species.validate_team_uniqueness(result.team)
        assert 1 <= result.generations_run <= 10
        assert result.fitness == pytest.approx(sum(result.fitness_components.values()))

    async def test_anchor_given_by_display_name(self, game_data):
        result = await generate_team(
            {"mode": "GBL", "anchorPokemon": ["Marowak (Alolan)"], "populationSize": 10, "generations": 3},
            game_data,
        )
        assert result.team[0] == "marowak_alolan"

    async def test_play_pokemon_with_team_synergy(self, game_data):
        result = await generate_team(
            GenerationOptions(
                mode=TournamentMode.PLAY_POKEMON,
                anchor_pokemon=["registeel", "altaria"],
                excluded_pokemon=["medicham", "unknown"],
                population_size=12,
                generations=4,
                algorithm=FitnessAlgorithm.TEAM_SYNERGY,
                seed=5,
            ),
            game_data,
        )
        assert result.team[:2] == ["registeel", "altaria"]
        assert len(result.team) == 6
        assert "medicham" not in result.team
        assert "mode_bonus" in result.fitness_components

    async def test_too_many_anchors(self, game_data):
        with pytest.raises(ValidationError, match="Too many anchor"):
            await generate_team(
                {"mode": "GBL", "anchorPokemon": ["lanturn", "medicham", "azumarill", "registeel"]},
                game_data,
            )

    async def test_too_many_anchors_checked_before_names(self, game_data):
        with pytest.raises(ValidationError, match="Too many anchor"):
            await generate_team({"mode": "GBL", "anchorPokemon": ["a", "b", "c", "d"]}, game_data)

    async def test_unknown_anchor(self, game_data):
        with pytest.raises(ValidationError, match="Missingno"):
            await generate_team({"mode": "GBL", "anchorPokemon": ["Missingno"]}, game_data)

    async def test_anchors_sharing_base_species(self, game_data):
        with pytest.raises(ValidationError):
            await generate_team({"mode": "GBL", "anchorPokemon": ["swampert", "swampert_shadow"]}, game_data)

    async def test_timeout_raises_promptly(self, game_data, monkeypatch):
        evaluate = IndividualFitness.evaluate

        def slow_evaluate(self, chromosome, mode):
            time.sleep(0.5)
            return evaluate(self, chromosome, mode)

        monkeypatch.setattr(IndividualFitness, "evaluate", slow_evaluate)
        started = time.perf_counter()

        with pytest.raises(asyncio.TimeoutError):
            await generate_team(
                {"mode": "GBL", "anchorPokemon": ["lanturn"], "populationSize": 4, "generations": 5, "seed": 1},
                game_data,
                config=EngineConfig(max_workers=2),
                timeout=0.2,
            )
        assert time.perf_counter() - started < 1.0

    async def test_generous_timeout_completes(self, game_data):
        result = await generate_team(
            {"mode": "GBL", "populationSize": 8, "generations": 2, "seed": 5}, game_data, timeout=60
        )
        assert len(result.team) == 3

    async def test_pool_too_small(self, game_data):
        excluded = [s for s in ALL_IDS if s not in ("lanturn", "medicham", "azumarill")]
        with pytest.raises(PoolExhaustedError):
            await generate_team(
                {"mode": "PlayPokemon", "excludedPokemon": excluded, "populationSize": 5, "generations": 2},
                game_data,
                config=EngineConfig(max_fallback_attempts=50),
            )

    async def test_without_rankings_or_simulations(self, bare_game_data):
        result = await generate_team(
            {"mode": "GBL", "anchorPokemon": ["lanturn"], "populationSize": 10, "generations": 3, "seed": 2},
            bare_game_data,
        )
        assert result.team[0] == "lanturn"
        assert len(result.team) == 3

    async def test_same_seed_same_team(self, game_data):
        request = {"mode": "GBL", "populationSize": 15, "generations": 5, "seed": 42}
        first = await generate_team(request, game_data)
        second = await generate_team(request, game_data)
        assert first.team == second.team
        assert first.fitness == second.fitness

    async def test_progress_callbacks(self, game_data):
        generations = []
        await generate_team(
            {"mode": "GBL", "populationSize": 10, "generations": 4, "seed": 3},
            game_data,
            on_generation=lambda generation, metrics: generations.append(generation),
            on_repair=lambda event: None,
        )
        assert generations == [1, 2, 3, 4]

    async def test_quick_generate(self, game_data):
        result = await quick_generate_team({"mode": "GBL", "seed": 4}, game_data, config=EngineConfig(stagnation_limit=0))
        assert len(result.team) == 3
        assert result.generations_run <= 30

    async def test_multiple_teams_sorted_by_fitness(self, game_data):
        results = await generate_multiple_teams(
            {"mode": "GBL", "anchorPokemon": ["lanturn"], "populationSize": 8, "generations": 2, "seed": 9},
            game_data,
            count=3,
        )
        assert len(results) == 3
        assert [r.fitness for r in results] == sorted((r.fitness for r in results), reverse=True)
        assert all(r.team[0] == "lanturn" for r in results)


def test_generate_team_sync(game_data):
    result = generate_team_sync({"mode": "GBL", "populationSize": 8, "generations": 2, "seed": 6}, game_data)
    assert len(result.team) == 3
