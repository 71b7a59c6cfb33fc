"""
Entry points for generating teams.

``generate_team`` validates everything it can before a population exists:
mode, anchor count, anchor names and anchor uniqueness. Anything that fails
later is an ``EvolutionError``.
"""

from __future__ import annotations

import asyncio
from typing import Any, Callable, Iterable, Mapping, Optional, Union

from loguru import logger
import numpy as np

from teamevo.data.game_data import GameData
from teamevo.evolution.diagnostics import RepairEvent, RepairLog
from teamevo.evolution.engine import EngineConfig, EvolutionEngine, RunState
from teamevo.evolution.engine.core import GenerationCallback
from teamevo.evolution.fitness import get_fitness_strategy
from teamevo.exceptions import ValidationError
from teamevo.runner.options import GenerationOptions, PoolConfig, TeamResult

OptionsLike = Union[GenerationOptions, Mapping[str, Any]]

QUICK_POPULATION_SIZE = 50
QUICK_GENERATIONS = 30


def _coerce(options: OptionsLike) -> GenerationOptions:
    if isinstance(options, GenerationOptions):
        return options
    return GenerationOptions.from_request(options)


def resolve_species(data: GameData, names: Iterable[str]) -> list[str]:
    """Map ids or display names to choosable species ids.

    Raises:
        ValidationError: a name matches no species.
    """
    resolved = []
    for name in names:
        if name in data.species:
            resolved.append(name)
            continue
        species_id = data.species.name_to_choosable_id(name)
        if species_id is None:
            raise ValidationError(f"Invalid Pokémon name: {name}")
        resolved.append(species_id)
    return resolved


def build_candidate_pool(
    data: GameData,
    excluded: Iterable[str] = (),
    pool_config: Optional[PoolConfig] = None,
) -> list[str]:
    """Released species among the top-ranked names, minus ``excluded``."""
    pool_config = pool_config or PoolConfig()
    excluded_ids = set(excluded)
    ranked = set(data.rankings.get_top_ranked_names(pool_config.min_score, pool_config.max_count))
    candidates = [s for s in data.species.released_species() if s.species_name in ranked]

    if not candidates and pool_config.fallback_to_released:
        logger.warning(
            "[api] No ranked species scored >= {}; using all {} released species",
            pool_config.min_score,
            len(data.species.released_species()),
        )
        candidates = data.species.released_species()

    pool = [s.species_id for s in candidates if s.species_id not in excluded_ids]
    logger.debug("[api] Candidate pool: {} species ({} excluded)", len(pool), len(excluded_ids))
    return pool


def _excluded_ids(data: GameData, names: Iterable[str]) -> set[str]:
    excluded = set()
    for name in names:
        if name in data.species:
            excluded.add(name)
            continue
        species_id = data.species.name_to_choosable_id(name)
        if species_id is None:
            logger.warning("[api] Ignoring unknown excluded species {}", name)
            continue
        excluded.add(species_id)
    return excluded


async def generate_team(
    options: OptionsLike,
    data: GameData,
    *,
    config: Optional[EngineConfig] = None,
    pool_config: Optional[PoolConfig] = None,
    timeout: Optional[float] = None,
    on_repair: Optional[Callable[[RepairEvent], None]] = None,
    on_generation: Optional[GenerationCallback] = None,
) -> TeamResult:
    """Run one genetic search and return the best team found.

    Raises:
        ValidationError: bad options, too many anchors, unknown or clashing anchors.
        PoolExhaustedError: the pool cannot fill a team.
        AnchorIntegrityError: the final team failed anchor verification.
        asyncio.TimeoutError: ``timeout`` elapsed.
    """
    options = _coerce(options)
    team_size = options.team_size
    if len(options.anchor_pokemon) > team_size:
        raise ValidationError(
            f"Too many anchor Pokémon ({len(options.anchor_pokemon)}) for "
            f"{options.mode.value} mode (max {team_size})"
        )
    anchors = resolve_species(data, options.anchor_pokemon)
    if not data.species.validate_team_uniqueness(anchors):
        raise ValidationError(f"Anchor Pokémon {anchors} share a base species")

    pool = build_candidate_pool(
        data, _excluded_ids(data, options.excluded_pokemon), pool_config
    )

    engine_config = (config or EngineConfig()).model_copy(
        update={
            "population_size": options.population_size,
            "generations": options.generations,
            "seed": options.seed if options.seed is not None else (config.seed if config else None),
        }
    )
    repairs = RepairLog()
    if on_repair is not None:
        repairs.subscribe(on_repair)

    strategy = get_fitness_strategy(options.algorithm, data)
    engine = EvolutionEngine(
        data,
        strategy,
        pool,
        options.mode,
        anchors,
        engine_config,
        rng=np.random.default_rng(engine_config.seed),
        repairs=repairs,
        on_generation=on_generation,
    )

    if timeout is None:
        best = await engine.run()
    else:
        best = await asyncio.wait_for(engine.run(), timeout=timeout)

    return TeamResult(
        team=list(best.team),
        fitness=best.fitness,
        anchors=list(best.anchors),
        generations_run=engine.metrics.total_generations,
        converged=engine.outcome is RunState.CONVERGED,
        stopped=engine.outcome is RunState.STOPPED,
        repairs=repairs.counts(),
        fitness_components=strategy.components(best, options.mode),
    )


def generate_team_sync(options: OptionsLike, data: GameData, **kwargs) -> TeamResult:
    """Blocking wrapper around ``generate_team`` for scripts and notebooks."""
    return asyncio.run(generate_team(options, data, **kwargs))


async def generate_multiple_teams(
    options: OptionsLike, data: GameData, count: int = 5, **kwargs
) -> list[TeamResult]:
    """Independent runs with seeds spawned from the options seed, best first."""
    options = _coerce(options)
    seeds = np.random.SeedSequence(options.seed).spawn(count)
    results = []
    for index, seed in enumerate(seeds, start=1):
        logger.info("[api] Generating team {}/{}", index, count)
        run_options = options.model_copy(update={"seed": int(seed.generate_state(1)[0])})
        results.append(await generate_team(run_options, data, **kwargs))
    return sorted(results, key=lambda r: r.fitness, reverse=True)


async def quick_generate_team(options: OptionsLike, data: GameData, **kwargs) -> TeamResult:
    """Smaller, faster search: population 50 over 30 generations."""
    options = _coerce(options).model_copy(
        update={"population_size": QUICK_POPULATION_SIZE, "generations": QUICK_GENERATIONS}
    )
    return await generate_team(options, data, **kwargs)
