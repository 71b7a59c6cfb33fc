from __future__ import annotations

import asyncio
from concurrent.futures import ThreadPoolExecutor
import time
from typing import Callable, Optional, Sequence

from loguru import logger
import numpy as np

from teamevo.data.game_data import GameData
from teamevo.evolution.diagnostics import RepairKind, RepairLog
from teamevo.evolution.engine.config import EngineConfig
from teamevo.evolution.engine.metrics import EngineMetrics
from teamevo.evolution.engine.state import RunState, validate_transition
from teamevo.evolution.fitness.base import FitnessStrategy, evaluate_population
from teamevo.evolution.initializer import PopulationInitializer
from teamevo.evolution.operators import adaptive_mutation_rate, create_next_generation
from teamevo.evolution.strategies.selectors import (
    TopFitnessEliteSelector,
    TournamentParentSelector,
)
from teamevo.exceptions import AnchorIntegrityError, EvolutionError
from teamevo.team.chromosome import Chromosome, TournamentMode
from teamevo.team.population import calculate_diversity, get_best_chromosome, has_converged
from teamevo.team.validation import validate_chromosome

__all__ = ["EvolutionEngine"]

GenerationCallback = Callable[[int, EngineMetrics], None]


class EvolutionEngine:
    """
    Generational loop for one team search:
    - Each generation runs to completion in a worker thread; stop, pause and
      cancellation are only observed between generations.
    - Anchor integrity is swept after every generation and re-checked on the
      returned chromosome.
    """

    def __init__(
        self,
        data: GameData,
        strategy: FitnessStrategy,
        pool: Sequence[str],
        mode: TournamentMode,
        anchor_species: Sequence[str] = (),
        config: Optional[EngineConfig] = None,
        *,
        rng: Optional[np.random.Generator] = None,
        repairs: Optional[RepairLog] = None,
        on_generation: Optional[GenerationCallback] = None,
    ):
        self.data = data
        self.strategy = strategy
        self.pool = tuple(pool)
        self.mode = mode
        self.anchor_species = tuple(anchor_species)
        self.config = config or EngineConfig()
        self.rng = rng if rng is not None else np.random.default_rng(self.config.seed)
        self.repairs = repairs or RepairLog()
        self.on_generation = on_generation

        self.team_size = mode.team_size
        self.initializer = PopulationInitializer(
            data,
            self.pool,
            self.team_size,
            self.anchor_species,
            rng=self.rng,
            sample_size=self.config.initializer_sample_size,
            max_fallback_attempts=self.config.max_fallback_attempts,
        )
        self.parent_selector = TournamentParentSelector(self.config.tournament_size)
        self.elite_selector = TopFitnessEliteSelector()

        self.metrics = EngineMetrics()
        self.state = RunState.INITIALIZING
        self.outcome: Optional[RunState] = None
        self.population: list[Chromosome] = []
        self.best: Optional[Chromosome] = None
        self.stagnation = 0

        self._running = False
        self._paused = False
        self._stop_requested = False
        self._closed = False
        self._executor: Optional[ThreadPoolExecutor] = None

        logger.info(
            "[EvolutionEngine] Init | strategy={}, mode={}, team_size={}, anchors={}, pool={}",
            self.strategy.name,
            self.mode.value,
            self.team_size,
            list(self.anchor_species),
            len(self.pool),
        )

    # ------------------------------------------------------------------ #
    # Run loop
    # ------------------------------------------------------------------ #

    async def run(self) -> Chromosome:
        """Run to convergence or the generation budget and return the best team."""
        if self._running:
            raise EvolutionError("Engine is already running")
        self._running = True
        self._closed = False
        started = time.perf_counter()
        if self.config.max_workers > 1:
            self._executor = ThreadPoolExecutor(
                max_workers=self.config.max_workers, thread_name_prefix="fitness"
            )
        logger.info(
            "[EvolutionEngine] Start | population={}, generations={}",
            self.config.population_size,
            self.config.generations,
        )

        try:
            await asyncio.to_thread(self._initialize)

            for generation in range(1, self.config.generations + 1):
                while self._paused and not self._stop_requested:
                    await asyncio.sleep(self.config.pause_poll_interval)
                if self._stop_requested:
                    logger.info("[EvolutionEngine] Stop requested before generation {}", generation)
                    self._transition(RunState.STOPPED)
                    break

                await asyncio.to_thread(self._step, generation)
                if self.on_generation is not None:
                    self.on_generation(generation, self.metrics)
                if generation % self.config.log_interval == 0:
                    self._log_progress(generation)

                if self._has_converged():
                    logger.info(
                        "[EvolutionEngine] Converged at generation {} (stagnation={})",
                        generation,
                        self.stagnation,
                    )
                    self._transition(RunState.CONVERGED)
                    break
            else:
                self._transition(RunState.EXHAUSTED)

            best = self._finalize()
            self._transition(RunState.DONE)
            return best
        finally:
            self.metrics.elapsed_seconds = time.perf_counter() - started
            # A cancelled run can leave a generation in flight on its worker thread;
            # it bails out at its next _ensure_open and pending pool work is dropped.
            self._closed = True
            executor, self._executor = self._executor, None
            if executor is not None:
                executor.shutdown(wait=False, cancel_futures=True)
            self._running = False
            logger.info(
                "[EvolutionEngine] Stopped | state={}, generations={}, best={}",
                self.state.value,
                self.metrics.total_generations,
                self.metrics.best_fitness,
            )

    def _initialize(self) -> None:
        population = self.initializer.initialize(self.config.population_size)
        self._ensure_open()
        self._transition(RunState.EVALUATING)
        self._evaluate(population)
        self._ensure_open()
        self.population = population
        self._update_best(generation=0)

    def _step(self, generation: int) -> None:
        self._ensure_open()
        diversity = calculate_diversity(self.population)
        mutation_rate = adaptive_mutation_rate(diversity, self.config.base_mutation_rate)

        self._transition(RunState.REPRODUCING)
        offspring = create_next_generation(
            self.population,
            self.pool,
            self.data.species,
            self.rng,
            elite_count=self.config.elite_count,
            crossover_rate=self.config.crossover_rate,
            mutation_rate=mutation_rate,
            parent_selector=self.parent_selector,
            elite_selector=self.elite_selector,
            repairs=self.repairs,
            generation=generation,
        )

        self._transition(RunState.EVALUATING)
        self._evaluate(offspring)
        self._ensure_open()
        self.population = self._sweep_anchors(offspring, generation)
        self._update_best(generation)

        self.metrics.record_generation(
            diversity=diversity,
            mutation_rate=mutation_rate,
            current_best=get_best_chromosome(self.population).fitness,
            evaluated=len(offspring),
        )

    # ------------------------------------------------------------------ #
    # Invariant maintenance
    # ------------------------------------------------------------------ #

    def _sweep_anchors(self, population: list[Chromosome], generation: int) -> list[Chromosome]:
        """Drop chromosomes whose anchors drifted; refill from survivors or reseed."""
        survivors = [c for c in population if c.anchors_intact(self.anchor_species)]
        dropped = len(population) - len(survivors)
        if dropped == 0:
            return population

        self.metrics.anchor_repairs += dropped
        self.repairs.emit(
            RepairKind.ANCHOR_DRIFT_FILTERED,
            generation=generation,
            count=dropped,
            expected=str(list(self.anchor_species)),
            message=f"filtered {dropped} chromosomes with drifted anchors",
        )

        if not survivors:
            logger.error("[EvolutionEngine] Generation {}: every chromosome lost its anchors", generation)
            reseeded = self.initializer.initialize(self.config.population_size)
            self._evaluate(reseeded)
            self.metrics.reseeds += 1
            self.repairs.emit(
                RepairKind.POPULATION_RESEEDED,
                generation=generation,
                count=len(reseeded),
                message="population recreated by the initializer",
            )
            return reseeded

        refill = [
            survivors[int(self.rng.integers(len(survivors)))].clone() for _ in range(dropped)
        ]
        self._evaluate(refill)
        self.repairs.emit(
            RepairKind.POPULATION_REFILLED,
            generation=generation,
            count=len(refill),
            message=f"refilled with clones of {len(survivors)} survivors",
        )
        return survivors + refill

    def _update_best(self, generation: int) -> None:
        current = get_best_chromosome(self.population)
        if not current.anchors_intact(self.anchor_species):
            self.repairs.emit(
                RepairKind.BEST_UPDATE_SKIPPED,
                generation=generation,
                expected=str(list(self.anchor_species)),
                actual=str(current.team),
                message="generation best has corrupted anchors",
            )
            self.stagnation += 1
        elif self.best is None or current.fitness > self.best.fitness:
            self.best = current.clone()
            self.stagnation = 0
            logger.debug(
                "[EvolutionEngine] Generation {}: new best {:.4f} {}",
                generation,
                current.fitness,
                current.team,
            )
        else:
            self.stagnation += 1

        self.metrics.stagnation = self.stagnation
        self.metrics.best_fitness = self.best.fitness if self.best is not None else None

    def _has_converged(self) -> bool:
        return (
            has_converged(
                self.population,
                self.config.convergence_threshold,
                self.config.convergence_top_fraction,
            )
            and self.stagnation > self.config.stagnation_limit
        )

    def _finalize(self) -> Chromosome:
        if self.best is None:
            raise AnchorIntegrityError(
                f"No chromosome with intact anchors {list(self.anchor_species)} was produced"
            )
        result = validate_chromosome(
            self.best,
            self.data.species,
            team_size=self.team_size,
            anchor_species=self.anchor_species,
        )
        if not result.is_valid:
            logger.critical(
                "[EvolutionEngine] Final team {} failed validation: {}",
                self.best.team,
                result.detailed_message,
            )
            raise AnchorIntegrityError(
                f"Final team failed validation ({result.summary}): {result.detailed_message}"
            )
        logger.info(
            "[EvolutionEngine] Final team {} | fitness={:.4f} | anchors verified",
            self.best.team,
            self.best.fitness,
        )
        return self.best.clone()

    # ------------------------------------------------------------------ #
    # Helpers
    # ------------------------------------------------------------------ #

    def _ensure_open(self) -> None:
        if self._closed:
            raise EvolutionError("Engine closed while a generation was in flight")

    def _evaluate(self, population: list[Chromosome]) -> None:
        executor = self._executor
        self._ensure_open()
        evaluate_population(population, self.strategy, self.mode, executor)

    def _transition(self, new: RunState) -> None:
        validate_transition(self.state, new)
        self.state = new
        if new in (RunState.CONVERGED, RunState.EXHAUSTED, RunState.STOPPED):
            self.outcome = new

    def _log_progress(self, generation: int) -> None:
        m = self.metrics
        logger.info(
            "[EvolutionEngine] Generation {}/{} | best={:.4f} | current={:.4f} | diversity={:.2f} | mutation={:.2f}",
            generation,
            self.config.generations,
            m.best_fitness if m.best_fitness is not None else float("nan"),
            m.current_best_fitness if m.current_best_fitness is not None else float("nan"),
            m.diversity,
            m.mutation_rate,
        )

    # ------------------------------------------------------------------ #
    # Control
    # ------------------------------------------------------------------ #

    def stop(self) -> None:
        """Request the loop to exit after the current generation."""
        self._stop_requested = True

    def pause(self) -> None:
        """Hold between generations until ``resume``."""
        self._paused = True

    def resume(self) -> None:
        self._paused = False

    def is_running(self) -> bool:
        return self._running

    async def get_status(self) -> dict[str, object]:
        """Light, non-blocking status for UIs/health checks."""
        return {
            "running": self._running,
            "paused": self._paused,
            "state": self.state.value,
            "best_team": list(self.best.team) if self.best is not None else None,
            "repairs": self.repairs.counts(),
            **self.metrics.to_dict(),
        }
